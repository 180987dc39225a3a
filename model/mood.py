"""
model/mood.py — Mood classification from movement patterns
============================================================

⚠️  A coarse hand-written heuristic, NOT a learned emotion classifier.

Uses the whole-frame motion-energy series (see features/respiration.py):

    variability > 0.2  →  "stressed" if mean > 0.15 else "active"
    mean < 0.05        →  "calm"
    otherwise          →  "neutral"

Confidence is fixed at "moderate".
"""

from config import (
    MOOD_ACTIVITY_THRESHOLD,
    MOOD_CALM_THRESHOLD,
    MOOD_VARIABILITY_THRESHOLD,
)
from features.types import Confidence, MoodMetric
from utils.logger import get_logger
from utils.stats import as_series, mean, std

logger = get_logger("model.mood")

METHODOLOGY = "Movement pattern analysis"
MOOD_STATES = ("calm", "stressed", "active", "neutral")


def classify_mood(avg_movement: float, movement_variability: float) -> str:
    if movement_variability > MOOD_VARIABILITY_THRESHOLD:
        return "stressed" if avg_movement > MOOD_ACTIVITY_THRESHOLD else "active"
    if avg_movement < MOOD_CALM_THRESHOLD:
        return "calm"
    return "neutral"


def analyze_mood(motion) -> MoodMetric:
    m = as_series(motion)
    if m.size == 0:
        logger.warning("No motion samples — mood unavailable.")
        return MoodMetric(
            value=None,
            unit="motion",
            confidence=Confidence.LOW,
            methodology=METHODOLOGY,
            error="Mood needs at least two frames.",
        )

    avg_movement = mean(m)
    variability = std(m)
    primary = classify_mood(avg_movement, variability)
    logger.info("Mood: %s (mean motion=%.4f, variability=%.4f)", primary, avg_movement, variability)

    return MoodMetric(
        value=round(avg_movement, 6),
        unit="motion",
        confidence=Confidence.MODERATE,
        methodology=METHODOLOGY,
        details={"variability": round(variability, 6)},
        primary=primary,
    )
