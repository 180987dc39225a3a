"""
rppg/filters.py — Signal Conditioner
=====================================
Normalises a raw colour-channel time-series and band-limits it to the
cardiac band (0.5–4.0 Hz by default, i.e. 30–240 BPM).

Bandpass strategies
-------------------
`bandpass(signal, low_freq, high_freq, sampling_rate, order)` is the one
entry point every caller uses.  The actual filter is a pluggable
`BandpassFilter` strategy picked by name:

* ``moving_average`` (default) — a 5-sample causal moving average.  This
  is the provisional smoothing baseline kept for reproducible output.  It is
  NOT a faithful bandpass: it ignores the band edges and shifts peak
  timing, which is why it can be swapped out.
* ``butterworth`` — a zero-phase Butterworth bandpass via scipy.signal.
  Maximally flat in the passband; the high cutoff is clamped below
  Nyquist when the extraction FPS is too low (5 FPS → 2.5 Hz Nyquist).

Select with `config.BANDPASS_METHOD` (env: VITALS_BANDPASS_METHOD) or the
`method` argument; register additional strategies with `register_filter`.
"""

import warnings

import numpy as np
from scipy.signal import butter, filtfilt

from config import (
    BANDPASS_METHOD,
    CARDIAC_HIGH_HZ,
    CARDIAC_LOW_HZ,
    FILTER_ORDER,
    MOVING_AVERAGE_WINDOW,
    NEAR_ZERO,
)
from utils.errors import InsufficientData
from utils.logger import get_logger
from utils.stats import as_series

logger = get_logger("rppg.filters")


# ── Primitive operations ─────────────────────────────────────────────────────


def normalize(signal) -> np.ndarray:
    """
    Zero-mean / unit-variance normalisation.

    A constant (zero-variance) signal yields an all-zero output instead
    of NaN / Inf.
    """
    s = as_series(signal)
    if s.size == 0:
        return s.copy()
    centred = s - s.mean()
    sd = s.std()
    if sd < NEAR_ZERO:
        return np.zeros_like(s)
    return centred / sd


def moving_average(signal, window: int) -> np.ndarray:
    """
    Causal trailing moving average.

    y[i] = mean(x[max(0, i - window + 1) .. i]) — the window grows over
    the first `window - 1` samples instead of zero-padding.
    """
    if window < 1:
        raise ValueError(f"Moving-average window must be >= 1, got {window}.")
    s = as_series(signal)
    if s.size == 0:
        return s.copy()
    csum = np.cumsum(np.concatenate(([0.0], s)))
    idx = np.arange(1, s.size + 1)
    start = np.maximum(0, idx - window)
    return (csum[idx] - csum[start]) / (idx - start)


# ── Strategies ───────────────────────────────────────────────────────────────


class BandpassFilter:
    """
    Strategy interface for band-limiting a 1-D signal.

    Subclasses implement `apply`; the band / order parameters are always
    passed so that a real IIR/FIR design can use them.
    """

    name = "base"

    def apply(
        self,
        signal: np.ndarray,
        low_freq: float,
        high_freq: float,
        sampling_rate: float,
        order: int,
    ) -> np.ndarray:
        raise NotImplementedError


class MovingAverageBandpass(BandpassFilter):
    """Provisional baseline: short causal moving average."""

    name = "moving_average"

    def __init__(self, window: int = MOVING_AVERAGE_WINDOW):
        self.window = window

    def apply(self, signal, low_freq, high_freq, sampling_rate, order):
        return moving_average(signal, self.window)


class ButterworthBandpass(BandpassFilter):
    """Zero-phase Butterworth bandpass (scipy.signal.butter + filtfilt)."""

    name = "butterworth"

    @staticmethod
    def design(
        low_freq: float, high_freq: float, sampling_rate: float, order: int
    ) -> tuple[np.ndarray, np.ndarray]:
        """
        Return the (b, a) coefficients for the requested band.

        Cutoffs are normalised to Nyquist; a high cutoff at or above
        Nyquist is clamped to 0.95·Nyquist with a warning.
        """
        nyq = sampling_rate / 2.0
        low = low_freq / nyq
        high = high_freq / nyq

        if high >= 1.0:
            high = 0.95
            warnings.warn(
                f"Sampling rate ({sampling_rate}) is too low for the requested upper cutoff "
                f"({high_freq} Hz).  Clamping to {high * nyq:.2f} Hz.",
                stacklevel=3,
            )
        if low >= high:
            raise ValueError(
                f"Low cutoff {low_freq} Hz is not below the usable high cutoff {high * nyq:.2f} Hz."
            )

        b, a = butter(order, [low, high], btype="band")
        return b, a

    def apply(self, signal, low_freq, high_freq, sampling_rate, order):
        b, a = self.design(low_freq, high_freq, sampling_rate, order)
        # filtfilt's default padding needs more than 3·max(len(a), len(b)) samples
        min_samples = 3 * max(len(a), len(b)) + 1
        if len(signal) < min_samples:
            raise InsufficientData(
                f"Signal too short for filtfilt: need >= {min_samples} samples, got {len(signal)}.",
                required=min_samples,
                got=len(signal),
            )
        return filtfilt(b, a, signal)


_FILTERS: dict[str, type[BandpassFilter]] = {
    MovingAverageBandpass.name: MovingAverageBandpass,
    ButterworthBandpass.name: ButterworthBandpass,
}


def register_filter(name: str, filter_cls: type[BandpassFilter]) -> None:
    """Make a custom `BandpassFilter` available to `bandpass(method=name)`."""
    _FILTERS[name] = filter_cls


def get_filter(method: str | None = None) -> BandpassFilter:
    method = method or BANDPASS_METHOD
    if method not in _FILTERS:
        raise ValueError(f"Unknown bandpass method '{method}'. Choose from {sorted(_FILTERS)}.")
    return _FILTERS[method]()


def available_filters() -> list[str]:
    return sorted(_FILTERS)


# ── Public API ───────────────────────────────────────────────────────────────


def bandpass(
    signal,
    low_freq: float,
    high_freq: float,
    sampling_rate: float,
    order: int,
    method: str | None = None,
) -> np.ndarray:
    """
    Band-limit `signal` to [low_freq, high_freq] Hz.

    Parameters
    ----------
    signal        : array-like, shape (N,)
    low_freq      : float   Lower cutoff (Hz).
    high_freq     : float   Upper cutoff (Hz).
    sampling_rate : float   Sampling frequency (Hz).
    order         : int     Filter order.
    method        : str     Strategy name (default config.BANDPASS_METHOD).

    Returns
    -------
    filtered : ndarray, shape (N,)
    """
    if sampling_rate <= 0:
        raise ValueError(f"Sampling rate must be positive, got {sampling_rate}.")
    if not 0 < low_freq < high_freq:
        raise ValueError(f"Invalid band [{low_freq}, {high_freq}] Hz.")
    if order < 1:
        raise ValueError(f"Filter order must be >= 1, got {order}.")

    s = as_series(signal)
    if s.size == 0:
        return s.copy()
    return np.asarray(get_filter(method).apply(s, low_freq, high_freq, sampling_rate, order))


def condition(signal, sampling_rate: float, method: str | None = None) -> np.ndarray:
    """Normalise, then bandpass to the configured cardiac band."""
    return bandpass(
        normalize(signal),
        CARDIAC_LOW_HZ,
        CARDIAC_HIGH_HZ,
        sampling_rate,
        FILTER_ORDER,
        method=method,
    )
