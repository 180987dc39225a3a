"""
features/spo2.py — Blood-oxygen saturation (SpO2) estimation
=============================================================

⚠️  EXPERIMENTAL.  Pulse oximeters compare red and *infrared* absorption.
    A normal camera has no infrared channel, so we synthesise one as a
    fixed mix of red and blue (0.6·R + 0.4·B).  The result is a rough
    indicator only and is always labelled as such in the report.

Algorithm
---------
1. Red channel + synthetic IR channel, each normalised (zero mean, unit
   variance) and bandpassed to 0.5–4 Hz through rppg.filters.bandpass.
2. AC/DC decomposition per channel: DC is a one-second moving average,
   AC = signal − DC, AC amplitude = mean(AC at peaks) − mean(AC at troughs).
3. Ratio of ratios, blended from two independent estimators:

       amplitude ratio = (AC_red / DC_red) / (AC_ir / DC_ir)
       area ratio      = Σ|red| / Σ|ir|
       R               = 0.6 · amplitude + 0.4 · area

4. Empirical linear calibration, clamped to the physiological range:

       SpO2 = clamp(110 − 25·R, 70, 100)

5. Quality = 0.4·SNR term + 0.4·stability term + 0.2·[0.5 ≤ R ≤ 2.0]
   → high (> 0.8) / moderate (> 0.6) / low.

Any arithmetic failure is caught at `estimate_spo2` and reported as a
null measurement; it never aborts the rest of the pipeline.
"""

import math

import numpy as np

from config import (
    CARDIAC_HIGH_HZ,
    CARDIAC_LOW_HZ,
    FILTER_ORDER,
    IR_BLUE_WEIGHT,
    IR_RED_WEIGHT,
    MIN_FRAMES,
    R_VALID_HIGH,
    R_VALID_LOW,
    RATIO_AMPLITUDE_WEIGHT,
    RATIO_AREA_WEIGHT,
    SPO2_CAL_A,
    SPO2_CAL_B,
    SPO2_MAX,
    SPO2_MIN,
    SPO2_QUALITY_HIGH,
    SPO2_QUALITY_MODERATE,
)
from features.confidence import bucket_confidence, signal_to_noise
from features.hr import detect_peaks, detect_troughs
from features.types import ACDCComponents, Confidence, SpO2Metric, SpO2Quality
from rppg.filters import bandpass, moving_average, normalize
from utils.errors import DegenerateSignal, InsufficientData, OutOfRangeCalibration, VitalsError
from utils.logger import get_logger
from utils.stats import as_series, mean, safe_divide, std

logger = get_logger("features.spo2")

METHODOLOGY = "Advanced rPPG with dual ratio calculation"
FAILED_METHODOLOGY = "Advanced rPPG processing failed"


# ── Channel preparation ──────────────────────────────────────────────────────


def split_channels(rgb) -> tuple[np.ndarray, np.ndarray]:
    """
    Return (red, synthetic infrared) from a (T, 3) RGB series.

    The IR channel is 0.6·red + 0.4·blue — an approximation, not a sensor
    reading.
    """
    arr = np.asarray(rgb, dtype=np.float64).reshape(-1, 3)
    red = arr[:, 0].copy()
    infrared = IR_RED_WEIGHT * arr[:, 0] + IR_BLUE_WEIGHT * arr[:, 2]
    return red, infrared


def _bandpass_cardiac(signal: np.ndarray, sampling_rate: float, method: str | None) -> np.ndarray:
    return bandpass(
        signal,
        low_freq=CARDIAC_LOW_HZ,
        high_freq=CARDIAC_HIGH_HZ,
        sampling_rate=sampling_rate,
        order=FILTER_ORDER,
        method=method,
    )


# ── AC / DC ──────────────────────────────────────────────────────────────────


def acdc_components(signal, sampling_rate: float) -> ACDCComponents:
    """
    Split a filtered channel into AC amplitude and DC level.

    Raises
    ------
    DegenerateSignal  when the AC series has no peaks or troughs, or the
                      DC level is (near) zero.
    """
    s = as_series(signal)
    window = max(1, int(round(sampling_rate)))   # one second of samples
    dc_series = moving_average(s, window)
    ac_series = s - dc_series

    peaks = detect_peaks(ac_series)
    troughs = detect_troughs(ac_series)
    if peaks.size == 0 or troughs.size == 0:
        raise DegenerateSignal(
            f"AC component has {peaks.size} peaks and {troughs.size} troughs; need at least one of each."
        )

    ac = mean(ac_series[peaks]) - mean(ac_series[troughs])
    dc = mean(dc_series)
    perfusion = safe_divide(ac, dc, "perfusion (AC/DC)") * 100.0

    return ACDCComponents(
        ac=ac,
        dc=dc,
        perfusion=perfusion,
        peak_indices=tuple(int(i) for i in peaks),
        trough_indices=tuple(int(i) for i in troughs),
    )


# ── Ratio of ratios ──────────────────────────────────────────────────────────


def amplitude_ratio(red: ACDCComponents, infrared: ACDCComponents) -> float:
    red_ratio = safe_divide(red.ac, red.dc, "red AC/DC")
    ir_ratio = safe_divide(infrared.ac, infrared.dc, "infrared AC/DC")
    return safe_divide(red_ratio, ir_ratio, "amplitude ratio")


def area_ratio(red, infrared) -> float:
    """Ratio of areas under |signal| (sum of absolute values)."""
    red_area = float(np.sum(np.abs(as_series(red))))
    ir_area = float(np.sum(np.abs(as_series(infrared))))
    return safe_divide(red_area, ir_area, "area ratio")


def ratio_of_ratios(amplitude: float, area: float) -> float:
    return RATIO_AMPLITUDE_WEIGHT * amplitude + RATIO_AREA_WEIGHT * area


def calibrated_spo2(ratio: float) -> float:
    """
    Map R to a saturation percentage: clamp(110 − 25·R, 70, 100).

    The linear curve is an empirical placeholder; the clamp range is fixed.
    """
    if not math.isfinite(ratio):
        raise DegenerateSignal(f"Ratio R is not finite ({ratio!r}).")
    spo2 = SPO2_CAL_A - SPO2_CAL_B * ratio
    return min(SPO2_MAX, max(SPO2_MIN, spo2))


def check_calibration_range(ratio: float) -> None:
    """Raise OutOfRangeCalibration when R is outside [0.5, 2.0]."""
    if not R_VALID_LOW <= ratio <= R_VALID_HIGH:
        raise OutOfRangeCalibration(ratio, R_VALID_LOW, R_VALID_HIGH)


# ── Quality ──────────────────────────────────────────────────────────────────


def assess_quality(red, infrared, ratio: float) -> SpO2Quality:
    """
    Composite quality of the (normalised, pre-filter) channels.

    snr          : 0.3·SNR(red) + 0.7·SNR(ir)
    stability    : mean(1/std(red), 1/std(ir))
    physiological: 1 if 0.5 ≤ R ≤ 2.0 else 0
    score        : 0.4·snr + 0.4·stability + 0.2·physiological
    """
    snr = signal_to_noise(red) * 0.3 + signal_to_noise(infrared) * 0.7
    stability = (
        safe_divide(1.0, std(red), "red stability") + safe_divide(1.0, std(infrared), "infrared stability")
    ) / 2.0
    physiological = 1 if R_VALID_LOW <= ratio <= R_VALID_HIGH else 0

    score = snr * 0.4 + stability * 0.4 + physiological * 0.2
    return SpO2Quality(
        score=round(score, 4),
        confidence=bucket_confidence(score, SPO2_QUALITY_HIGH, SPO2_QUALITY_MODERATE),
        reliability=round((snr + stability + physiological) / 3.0, 4),
        snr=round(snr, 4),
        stability=round(stability, 4),
        physiological=physiological,
    )


# ── Public API ───────────────────────────────────────────────────────────────


def _compute(rgb, sampling_rate: float, method: str | None) -> SpO2Metric:
    arr = np.asarray(rgb, dtype=np.float64).reshape(-1, 3)
    if arr.shape[0] < MIN_FRAMES:
        raise InsufficientData(
            f"SpO2 needs at least {MIN_FRAMES} samples, got {arr.shape[0]}.",
            required=MIN_FRAMES,
            got=arr.shape[0],
        )

    red_raw, ir_raw = split_channels(arr)
    red = normalize(red_raw)
    infrared = normalize(ir_raw)

    filtered_red = _bandpass_cardiac(red, sampling_rate, method)
    filtered_ir = _bandpass_cardiac(infrared, sampling_rate, method)

    red_components = acdc_components(filtered_red, sampling_rate)
    ir_components = acdc_components(filtered_ir, sampling_rate)

    ratio = ratio_of_ratios(
        amplitude_ratio(red_components, ir_components),
        area_ratio(filtered_red, filtered_ir),
    )
    spo2 = calibrated_spo2(ratio)
    quality = assess_quality(red, infrared, ratio)
    perfusion_index = red_components.perfusion

    confidence = quality.confidence
    details = {
        "r_value": round(ratio, 3),
        "red_perfusion": round(red_components.perfusion, 3),
        "ir_perfusion": round(ir_components.perfusion, 3),
        "signal_quality": round(quality.score, 2),
        "reliability": quality.reliability,
    }
    try:
        check_calibration_range(ratio)
    except OutOfRangeCalibration as exc:
        logger.warning("SpO2 calibration out of range: %s", exc)
        confidence = Confidence.LOW
        details["warning"] = exc.message

    return SpO2Metric(
        value=round(spo2, 1),
        unit="%",
        confidence=confidence,
        methodology=METHODOLOGY,
        details=details,
        perfusion_index=round(perfusion_index, 3),
        quality=quality,
    )


def estimate_spo2(rgb, sampling_rate: float, method: str | None = None) -> SpO2Metric:
    """
    Estimate SpO2 from the raw (pre-bandpass) RGB series.

    Parameters
    ----------
    rgb           : array-like, shape (T, 3)   Per-frame channel means.
    sampling_rate : float                      Samples per second.
    method        : str | None                 Bandpass strategy name.

    Returns
    -------
    SpO2Metric   value=None, confidence="low" and `error` set on failure.
    """
    try:
        with np.errstate(divide="raise", invalid="raise", over="raise", under="ignore"):
            metric = _compute(rgb, sampling_rate, method)
    except (VitalsError, ArithmeticError, ValueError) as exc:
        message = exc.message if isinstance(exc, VitalsError) else str(exc)
        logger.warning("SpO2 calculation failed: %s", message)
        return SpO2Metric(
            value=None,
            unit="%",
            confidence=Confidence.LOW,
            methodology=FAILED_METHODOLOGY,
            error=message,
        )

    logger.info(
        "SpO2 estimate: %.1f%% (R=%s, quality=%.2f, conf=%s)",
        metric.value, metric.details["r_value"], metric.quality.score, metric.confidence.value,
    )
    return metric
