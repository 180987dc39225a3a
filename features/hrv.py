"""
features/hrv.py — Heart Rate Variability (HRV) time-domain features
=====================================================================
The headline HRV metric is RMSSD — the Root Mean Square of Successive
Differences between inter-beat intervals:

    interval_i = (peak[i+1] − peak[i]) / fs · 1000          (ms)
    RMSSD      = sqrt( mean( (interval[i+1] − interval[i])² ) )

SDNN, pNN50 and the mean interval are reported alongside as details.

⚠️  With a recording of a few dozen frames these estimates have high
    variance compared to the clinical standard of 5-minute recordings.
    They are suitable for *trend* comparisons only.

Edge cases
----------
* Fewer than 2 peaks → no intervals → RMSSD = 0, confidence "low".
* A single interval  → no successive differences → RMSSD = 0.
Neither case raises.
"""

import math

import numpy as np

from features.confidence import confidence_from_series
from features.types import Confidence, VitalMetric
from utils.logger import get_logger
from utils.stats import as_series

logger = get_logger("features.hrv")

METHODOLOGY = "rPPG signal interval analysis"


def inter_peak_intervals_ms(peaks, sampling_rate: float) -> np.ndarray:
    """Successive peak-to-peak intervals in milliseconds."""
    p = np.asarray(peaks, dtype=np.float64).reshape(-1)
    if p.size < 2:
        return np.empty(0, dtype=np.float64)
    return np.diff(p) / sampling_rate * 1000.0


def compute_rmssd(intervals_ms) -> float:
    """RMSSD in ms; 0.0 when fewer than two intervals are available."""
    rr = as_series(intervals_ms)
    if rr.size < 2:
        return 0.0
    successive_diffs = np.diff(rr)
    return float(math.sqrt(np.mean(successive_diffs ** 2)))


def compute_hrv(intervals_ms) -> dict:
    """
    Time-domain HRV summary of an interval series.

    Returns
    -------
    dict with keys:
        rmssd_ms   : float
        sdnn_ms    : float | None   Sample std (ddof=1), None below 2 intervals.
        pnn50      : float | None   % of successive differences > 50 ms.
        mean_rr_ms : float | None
        num_intervals : int
    """
    rr = as_series(intervals_ms)
    n = int(rr.size)
    summary = {
        "rmssd_ms": round(compute_rmssd(rr), 2),
        "sdnn_ms": None,
        "pnn50": None,
        "mean_rr_ms": round(float(rr.mean()), 2) if n else None,
        "num_intervals": n,
    }
    if n >= 2:
        successive_diffs = np.diff(rr)
        summary["sdnn_ms"] = round(float(np.std(rr, ddof=1)), 2)
        summary["pnn50"] = round(float(np.mean(np.abs(successive_diffs) > 50.0) * 100.0), 2)
    return summary


def estimate_hrv(peaks, sampling_rate: float) -> VitalMetric:
    """
    HRV (RMSSD, ms) from cardiac peak indices.

    Confidence comes from the SNR of the interval series; with fewer than
    two peaks it is always "low".
    """
    intervals = inter_peak_intervals_ms(peaks, sampling_rate)
    summary = compute_hrv(intervals)

    if intervals.size == 0:
        logger.warning("Fewer than 2 peaks — HRV undefined, reporting RMSSD=0 with low confidence.")
        confidence = Confidence.LOW
    else:
        confidence = confidence_from_series(intervals)

    rmssd = int(round(summary["rmssd_ms"]))
    logger.info(
        "HRV — RMSSD=%d ms, SDNN=%s ms, pNN50=%s%% (%d intervals, conf=%s)",
        rmssd, summary["sdnn_ms"], summary["pnn50"], summary["num_intervals"], confidence.value,
    )
    return VitalMetric(
        value=rmssd,
        unit="ms",
        confidence=confidence,
        methodology=METHODOLOGY,
        details=summary,
    )
