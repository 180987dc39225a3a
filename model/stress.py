"""
model/stress.py — Stress Level Estimation
============================================

⚠️  DISCLAIMER: This is a heuristic WELLNESS INDICATOR, not a validated
    clinical stress measure.  True psychological stress is multi-factorial
    and cannot be reliably inferred from a short rPPG recording alone.

────────────────────────────────────────────────────────────────────────
Rationale
────────────────────────────────────────────────────────────────────────
Under acute stress the sympathetic branch of the autonomic nervous
system dominates: heart-rate variability drops and breathing speeds up.
We score each of the two signals on a fixed band table:

    RMSSD (ms)          score        Respiratory rate     score
    < 20                100          > 20                 100
    < 30                 80          > 18                  80
    < 50                 60          > 15                  60
    < 100                40          > 12                  40
    otherwise            20          otherwise             20

    stress = clamp(0.7 · hrv_score + 0.4 · resp_score, 0, 100)

The score is then labelled at fixed breakpoints 20 / 40 / 60 / 80:
very low · low · moderate · high · very high.

Confidence is "low" when the inputs are themselves implausible
(RMSSD < 10 ms, or respiration outside 8–25 breaths/min), otherwise
"moderate".  It is never "high".
────────────────────────────────────────────────────────────────────────
"""

from config import (
    STRESS_HRV_BANDS,
    STRESS_HRV_FALLBACK,
    STRESS_HRV_WEIGHT,
    STRESS_RESP_BANDS,
    STRESS_RESP_FALLBACK,
    STRESS_RESP_WEIGHT,
)
from features.types import Confidence, StressMetric
from utils.logger import get_logger

logger = get_logger("model.stress")

METHODOLOGY = "Combined HRV and respiratory analysis"

# Lower bound (inclusive) → label, highest first
_LEVELS = ((80, "very high"), (60, "high"), (40, "moderate"), (20, "low"))


def hrv_stress_score(rmssd_ms: float) -> int:
    for upper, score in STRESS_HRV_BANDS:
        if rmssd_ms < upper:
            return score
    return STRESS_HRV_FALLBACK


def respiratory_stress_score(breaths_per_min: float) -> int:
    for lower, score in STRESS_RESP_BANDS:
        if breaths_per_min > lower:
            return score
    return STRESS_RESP_FALLBACK


def stress_score(rmssd_ms: float, breaths_per_min: float) -> int:
    """Weighted 0–100 stress score."""
    raw = (
        hrv_stress_score(rmssd_ms) * STRESS_HRV_WEIGHT
        + respiratory_stress_score(breaths_per_min) * STRESS_RESP_WEIGHT
    )
    return int(round(min(100.0, max(0.0, raw))))


def stress_level(score: float) -> str:
    for lower, label in _LEVELS:
        if score >= lower:
            return label
    return "very low"


def estimate_stress(rmssd_ms: float | None, breaths_per_min: float | None) -> StressMetric:
    """
    Combine HRV (RMSSD) and respiratory rate into a stress score.

    Returns a null metric with low confidence if either input is missing.
    """
    if rmssd_ms is None or breaths_per_min is None:
        missing = "HRV" if rmssd_ms is None else "respiratory rate"
        logger.warning("Stress unavailable — %s missing.", missing)
        return StressMetric(
            value=None,
            unit="score",
            confidence=Confidence.LOW,
            methodology=METHODOLOGY,
            error=f"Cannot estimate stress without {missing}.",
        )

    score = stress_score(rmssd_ms, breaths_per_min)
    level = stress_level(score)
    implausible = rmssd_ms < 10 or breaths_per_min < 8 or breaths_per_min > 25
    confidence = Confidence.LOW if implausible else Confidence.MODERATE

    logger.info("Stress estimate: score=%d, level=%s, conf=%s", score, level, confidence.value)

    return StressMetric(
        value=score,
        unit="score",
        confidence=confidence,
        methodology=METHODOLOGY,
        details={
            "hrv_score": hrv_stress_score(rmssd_ms),
            "respiratory_score": respiratory_stress_score(breaths_per_min),
        },
        level=level,
    )
