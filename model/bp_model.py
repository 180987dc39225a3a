"""
model/bp_model.py — Blood Pressure Estimation (heuristic)
==========================================================

⚠️⚠️⚠️  CRITICAL DISCLAIMER ⚠️⚠️⚠️
This module provides an *ESTIMATED* blood pressure, NOT a measured one.
The formulas below are fixed heuristics on rPPG peak amplitudes; they
have NOT been validated against real clinical blood-pressure readings.
The metric is always tagged confidence "low" and the report lists it
under its limitations.
⚠️⚠️⚠️

Formulas
--------
Over the conditioned green-channel values at the detected cardiac peaks:

    systolic  = 110 + round(std(peak_amplitudes)  · 30)
    diastolic =  70 + round(mean(peak_amplitudes) · 20)

No new signal processing happens here — the inputs are the peaks the
heart-rate analyzer already found.
"""

from config import (
    BP_DIASTOLIC_BASE,
    BP_DIASTOLIC_GAIN,
    BP_SYSTOLIC_BASE,
    BP_SYSTOLIC_GAIN,
)
from features.types import BloodPressureMetric, Confidence
from utils.logger import get_logger
from utils.stats import as_series, mean, std

logger = get_logger("model.bp")

METHODOLOGY = "Experimental heuristic on rPPG peak amplitudes"


def peak_amplitudes(conditioned, peaks) -> list[float]:
    """Values of the conditioned series at the given peak indices."""
    s = as_series(conditioned)
    return [float(s[i]) for i in peaks]


def estimate_blood_pressure(amplitudes) -> BloodPressureMetric:
    """
    Estimate systolic / diastolic pressure from cardiac peak amplitudes.

    Returns
    -------
    BloodPressureMetric
        value is the systolic pressure (None when no peaks were found);
        `systolic` and `diastolic` carry both numbers in mmHg.
    """
    amps = as_series(amplitudes)
    if amps.size == 0:
        logger.warning("No cardiac peaks — blood pressure unavailable.")
        return BloodPressureMetric(
            value=None,
            unit="mmHg",
            confidence=Confidence.LOW,
            methodology=METHODOLOGY,
            error="No cardiac peaks detected.",
        )

    systolic = BP_SYSTOLIC_BASE + int(round(std(amps) * BP_SYSTOLIC_GAIN))
    diastolic = BP_DIASTOLIC_BASE + int(round(mean(amps) * BP_DIASTOLIC_GAIN))

    logger.info("BP estimate: %d/%d mmHg (experimental)", systolic, diastolic)

    return BloodPressureMetric(
        value=systolic,
        unit="mmHg",
        confidence=Confidence.LOW,
        methodology=METHODOLOGY,
        details={"peak_count": int(amps.size)},
        systolic=systolic,
        diastolic=diastolic,
    )
