"""
features/hr.py — Heart Rate estimation
========================================
Time-domain heart rate from the conditioned green channel.

Peak detection
--------------
A sample i (1 ≤ i ≤ N−2) is a peak when it is *strictly* greater than
both neighbours; a trough when strictly smaller.  Plateaus therefore
produce no peak, and the first / last samples can never be peaks.
Both come from `scipy.signal.argrelextrema` with a one-sample window.

Heart rate
----------
    HR = round(peak_count · 60 / duration_seconds)

where duration = N / sampling_rate.  Confidence comes from the SNR of
the peak index set (see features/confidence.py).
"""

import numpy as np
from scipy.signal import argrelextrema

from config import MIN_FRAMES
from features.confidence import confidence_from_series
from features.types import Confidence, VitalMetric
from utils.errors import InsufficientData
from utils.logger import get_logger
from utils.stats import as_series

logger = get_logger("features.hr")

METHODOLOGY = "rPPG color changes in face"


def _extrema(signal, comparator) -> np.ndarray:
    s = as_series(signal)
    if s.size < 3:
        return np.empty(0, dtype=np.int64)
    # mode="clip" compares an endpoint with itself, so endpoints never qualify
    return argrelextrema(s, comparator, order=1, mode="clip")[0].astype(np.int64)


def detect_peaks(signal) -> np.ndarray:
    """Indices of strict local maxima."""
    return _extrema(signal, np.greater)


def detect_troughs(signal) -> np.ndarray:
    """Indices of strict local minima."""
    return _extrema(signal, np.less)


def heart_rate_from_peaks(peak_count: int, duration_seconds: float) -> int:
    if duration_seconds <= 0:
        raise InsufficientData("Recording duration must be positive.")
    return int(round(peak_count * 60.0 / duration_seconds))


def estimate_heart_rate(
    conditioned,
    sampling_rate: float,
    peaks: np.ndarray | None = None,
) -> VitalMetric:
    """
    Estimate heart rate (BPM) from a conditioned cardiac series.

    Parameters
    ----------
    conditioned   : array-like   Normalised + bandpassed green channel.
    sampling_rate : float        Samples per second.
    peaks         : ndarray      Pre-computed peak indices (optional).

    Returns
    -------
    VitalMetric   value=None with low confidence when the series is
                  shorter than MIN_FRAMES.
    """
    s = as_series(conditioned)
    try:
        if s.size < MIN_FRAMES:
            raise InsufficientData(
                f"Heart rate needs at least {MIN_FRAMES} samples, got {s.size}.",
                required=MIN_FRAMES,
                got=s.size,
            )
        if peaks is None:
            peaks = detect_peaks(s)
        duration = s.size / sampling_rate
        hr_bpm = heart_rate_from_peaks(len(peaks), duration)
    except InsufficientData as exc:
        logger.warning("Heart rate unavailable: %s", exc)
        return VitalMetric(
            value=None,
            unit="bpm",
            confidence=Confidence.LOW,
            methodology=METHODOLOGY,
            error=exc.message,
        )

    confidence = confidence_from_series(peaks)
    logger.info(
        "HR estimate: %d BPM  (%d peaks over %.1f s, conf=%s)",
        hr_bpm, len(peaks), duration, confidence.value,
    )
    return VitalMetric(
        value=hr_bpm,
        unit="bpm",
        confidence=confidence,
        methodology=METHODOLOGY,
        details={"peak_count": int(len(peaks)), "duration_seconds": round(duration, 3)},
    )
