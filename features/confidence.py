"""
features/confidence.py — Confidence & Quality scoring
======================================================
All confidence values in the engine come from one of two places:

1. An SNR-like heuristic over a series (`mean / std`), bucketed with
   strict thresholds:

       snr > 2  →  high
       snr > 1  →  moderate
       else     →  low

   A boundary value (exactly 2.0) therefore lands in exactly one bucket
   (moderate).  A degenerate series (empty or zero variance) is "low".

2. The overall report confidence: the mean of per-metric weights
   (high = 1.0, moderate = 0.6, low = 0.3) across the six primary
   metrics, re-bucketed at 0.8 / 0.5.

Every function here is pure: identical inputs always give identical
outputs, independent of call order.
"""

import math
from typing import Iterable

from config import (
    CONFIDENCE_UNKNOWN_WEIGHT,
    CONFIDENCE_WEIGHTS,
    OVERALL_HIGH,
    OVERALL_MODERATE,
    SIGNAL_GOOD_SNR,
    SNR_HIGH,
    SNR_MODERATE,
)
from features.types import Confidence, SignalQuality, VitalMetric
from utils.errors import DegenerateSignal, InsufficientData
from utils.logger import get_logger
from utils.stats import as_series, mean, safe_divide, std

logger = get_logger("features.confidence")


def signal_to_noise(values) -> float:
    """
    SNR proxy: mean / std of a series.

    Raises
    ------
    InsufficientData  for an empty series.
    DegenerateSignal  for a zero-variance series.
    """
    arr = as_series(values)
    if arr.size == 0:
        raise InsufficientData("Cannot compute SNR of an empty series.", required=1, got=0)
    return safe_divide(mean(arr), std(arr), "signal-to-noise ratio")


def bucket_confidence(score: float, high: float = SNR_HIGH, moderate: float = SNR_MODERATE) -> Confidence:
    """Map a score to a Confidence bucket; NaN maps to low."""
    if score > high:
        return Confidence.HIGH
    if score > moderate:
        return Confidence.MODERATE
    return Confidence.LOW


def confidence_from_series(values) -> Confidence:
    """SNR bucketing with degenerate series absorbed as low confidence."""
    try:
        return bucket_confidence(signal_to_noise(values))
    except (InsufficientData, DegenerateSignal):
        return Confidence.LOW


def assess_signal_quality(green) -> SignalQuality:
    """
    Quality of the raw (un-normalised) green channel.

    quality    : "good" if snr > 1.5 else "poor"
    confidence : high if snr > 2, else moderate (low if degenerate)
    variability: coefficient of variation std / mean
    """
    arr = as_series(green)
    try:
        snr = signal_to_noise(arr)
    except (InsufficientData, DegenerateSignal) as exc:
        logger.warning("Signal quality undefined: %s", exc)
        return SignalQuality(
            signal_to_noise=None,
            variability=0.0 if arr.size else None,
            quality="poor",
            confidence=Confidence.LOW,
        )

    variability = 1.0 / snr if snr != 0 else None
    return SignalQuality(
        signal_to_noise=round(snr, 4),
        variability=round(abs(variability), 4) if variability is not None else None,
        quality="good" if snr > SIGNAL_GOOD_SNR else "poor",
        confidence=Confidence.HIGH if snr > SNR_HIGH else Confidence.MODERATE,
    )


def confidence_weight(confidence: Confidence | str | None) -> float:
    key = confidence.value if isinstance(confidence, Confidence) else confidence
    return CONFIDENCE_WEIGHTS.get(key, CONFIDENCE_UNKNOWN_WEIGHT)


def overall_confidence(metrics: Iterable[VitalMetric]) -> tuple[float, Confidence]:
    """
    Average confidence weight across `metrics`, re-bucketed.

    Returns
    -------
    score : float        Mean weight in [0.3, 1.0] (0.0 for no metrics).
    level : Confidence   > 0.8 high, > 0.5 moderate, else low.
    """
    # Exactly rounded sum: independent of metric order
    weights = [confidence_weight(m.confidence) for m in metrics]
    if not weights:
        return 0.0, Confidence.LOW
    score = math.fsum(weights) / len(weights)
    return score, bucket_confidence(score, OVERALL_HIGH, OVERALL_MODERATE)
