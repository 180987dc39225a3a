"""
report/assembler.py — VitalsBundle → VitalReport
==================================================
Pure mapping from engine output to a clinically-styled report:

    metadata     id, timestamp, recording duration / quality
    vitals       per metric: value, status, interpretation, reference range
    analysis     summary (concerns / positives / overall status),
                 concerns, recommendations
    reliability  overall confidence, measurement quality, limitations

`assemble_report` is total: it renders a coherent report for any bundle,
including one where every metric failed.  It is also deterministic — the
report id and timestamp are derived from the inputs, not from the clock.
"""

import hashlib
import json
from datetime import timezone
from typing import Any

from config import (
    REPORT_MIN_DURATION_SECONDS,
    REPORT_STABLE_VARIABILITY,
    SIGNAL_GOOD_SNR,
)
from features.confidence import overall_confidence
from features.types import (
    BloodPressureMetric,
    MoodMetric,
    RecordingContext,
    SignalQuality,
    SpO2Metric,
    StressMetric,
    VitalMetric,
    VitalReport,
    VitalsBundle,
)
from model.mood import MOOD_STATES
from report import tables
from utils.logger import get_logger

logger = get_logger("report.assembler")

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    number = abs(number)
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def report_id(bundle: VitalsBundle, context: RecordingContext) -> str:
    """
    `VR-<base36 epoch ms>-<5 hex chars of the bundle digest>`, upper-cased.

    A naive timestamp is read as UTC so the id does not depend on the host
    timezone.
    """
    stamp = context.timestamp
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    millis = int(stamp.timestamp() * 1000)
    payload = json.dumps(bundle.to_dict(), sort_keys=True, default=str).encode("utf-8")
    digest = hashlib.sha1(payload).hexdigest()[:5]
    return f"VR-{_base36(millis)}-{digest}".upper()


# ── Vitals section ───────────────────────────────────────────────────────────


def _ranged(metric: VitalMetric, key: str, status: str, interpretation: str) -> dict[str, Any]:
    bounds = tables.RANGES[key]
    return {
        "value": metric.value,
        "unit": metric.unit,
        "confidence": metric.confidence.value,
        "interpretation": interpretation,
        "status": status,
        "range": {"low": bounds["low"], "high": bounds["high"], "measured": metric.value},
    }


def format_heart_rate(metric: VitalMetric) -> dict[str, Any]:
    status = tables.heart_rate_status(metric.value)
    return _ranged(metric, "heart_rate", status, tables.interpret("heart_rate", status))


def format_hrv(metric: VitalMetric) -> dict[str, Any]:
    status = tables.hrv_status(metric.value)
    return _ranged(metric, "hrv", status, tables.interpret("hrv", status))


def format_respiratory(metric: VitalMetric) -> dict[str, Any]:
    status = tables.respiratory_status(metric.value)
    return _ranged(metric, "respiratory_rate", status, tables.interpret("respiratory_rate", status))


def format_blood_pressure(metric: BloodPressureMetric) -> dict[str, Any]:
    status = tables.blood_pressure_status(metric.systolic, metric.diastolic)
    systolic, diastolic = tables.RANGES["systolic"], tables.RANGES["diastolic"]
    return {
        "value": {"systolic": metric.systolic, "diastolic": metric.diastolic},
        "unit": metric.unit,
        "confidence": metric.confidence.value,
        "interpretation": tables.interpret("blood_pressure", status),
        "status": status,
        "range": {
            "systolic": {**systolic, "measured": metric.systolic},
            "diastolic": {**diastolic, "measured": metric.diastolic},
        },
    }


def format_stress(metric: StressMetric) -> dict[str, Any]:
    status = tables.stress_status(metric.value)
    data = _ranged(metric, "stress", status, tables.interpret("stress", status))
    data["level"] = metric.level
    data["recommendations"] = list(tables.STRESS_RECOMMENDATIONS.get(status, []))
    return data


def format_mood(metric: MoodMetric) -> dict[str, Any]:
    primary = metric.primary
    return {
        "value": primary,
        "confidence": metric.confidence.value,
        "interpretation": tables.interpret_mood(primary),
        "status": primary if primary is not None else tables.UNKNOWN,
        "valid_states": list(MOOD_STATES),
        "suggestions": list(tables.MOOD_SUGGESTIONS.get(primary, tables.DEFAULT_MOOD_SUGGESTIONS)),
    }


def format_spo2(metric: SpO2Metric) -> dict[str, Any]:
    status = tables.spo2_status(metric.value)
    data = _ranged(metric, "spo2", status, tables.interpret("spo2", status))
    perfusion = tables.RANGES["perfusion_index"]
    quality = tables.RANGES["quality"]

    data["perfusion_index"] = {
        "value": metric.perfusion_index,
        "range": {**perfusion, "measured": metric.perfusion_index},
    }
    if metric.quality is None:
        data["quality"] = {"value": None, "range": {**quality, "measured": None}}
    else:
        data["quality"] = {
            "value": metric.quality.score,
            "confidence": metric.quality.confidence.value,
            "reliability": metric.quality.reliability,
            "range": {**quality, "measured": metric.quality.score},
        }
    if metric.error:
        data["error"] = metric.error
    return data


# ── Analysis section ─────────────────────────────────────────────────────────


def health_summary(bundle: VitalsBundle) -> dict[str, Any]:
    concerns: list[str] = []
    positives: list[str] = []

    hr = bundle.heart_rate.value
    if hr is not None:
        if tables.heart_rate_status(hr) == "normal":
            positives.append("Heart rate within normal range")
        else:
            concerns.append("Heart rate outside normal range")

    hrv = bundle.hrv.value
    if hrv is not None:
        if tables.hrv_status(hrv) == "low":
            concerns.append("Lower than optimal heart rate variability")
        else:
            positives.append("Good heart rate variability")

    if tables.stress_status(bundle.stress_level.value) == "high":
        concerns.append("Elevated stress levels detected")

    spo2 = bundle.spo2.value
    status = tables.spo2_status(spo2)
    if status == "normal":
        positives.append("Normal oxygen saturation levels")
    elif status == "mild":
        concerns.append(f"Mild reduction in oxygen saturation ({spo2}%)")
    elif status != tables.UNKNOWN:
        concerns.append(f"Low oxygen saturation ({spo2}%) - immediate attention recommended")

    if concerns:
        overall = "Needs Attention"
    elif positives:
        overall = "Healthy"
    else:
        overall = "Inconclusive"

    return {"concerns": concerns, "positives": positives, "overall_status": overall}


def health_concerns(bundle: VitalsBundle) -> list[dict[str, str]]:
    concerns = []

    if tables.heart_rate_status(bundle.heart_rate.value) == "high":
        concerns.append({
            "type": "Elevated Heart Rate",
            "severity": "Moderate",
            "recommendation": "Consider relaxation techniques and consult healthcare provider if persistent",
        })

    if tables.stress_status(bundle.stress_level.value) == "high":
        concerns.append({
            "type": "High Stress",
            "severity": "Moderate",
            "recommendation": "Practice stress management techniques and ensure adequate rest",
        })

    spo2 = bundle.spo2.value
    if spo2 is not None and spo2 < tables.SPO2_NORMAL:
        severe = spo2 < tables.SPO2_MILD
        concerns.append({
            "type": "Reduced Oxygen Saturation",
            "severity": "High" if severe else "Moderate",
            "recommendation": (
                "Seek immediate medical attention if this persists"
                if severe
                else "Monitor oxygen levels and consult healthcare provider if persistent"
            ),
        })

    return concerns


def recommendations(bundle: VitalsBundle) -> list[dict[str, Any]]:
    result = []

    if tables.heart_rate_status(bundle.heart_rate.value) == "high":
        result.append({"category": "Heart Health", "suggestions": list(tables.HEART_HEALTH_SUGGESTIONS)})

    if tables.stress_status(bundle.stress_level.value) == "high":
        result.append({"category": "Stress Management", "suggestions": list(tables.STRESS_MANAGEMENT_SUGGESTIONS)})

    spo2 = bundle.spo2.value
    if spo2 is not None and spo2 < tables.SPO2_NORMAL:
        first = (
            "Seek immediate medical attention if low oxygen persists"
            if spo2 < tables.SPO2_MILD
            else "Consider following up with healthcare provider"
        )
        result.append({"category": "Oxygen Saturation", "suggestions": [first, *tables.OXYGEN_SUGGESTIONS]})

    return result


# ── Reliability section ──────────────────────────────────────────────────────


def _lighting(quality: SignalQuality) -> str:
    snr = quality.signal_to_noise
    if snr is None:
        return "poor"
    if snr > 2:
        return "good"
    if snr > 1.5:
        return "adequate"
    return "poor"


def _movement(quality: SignalQuality) -> str:
    snr = quality.signal_to_noise
    if snr is None:
        return "unstable"
    if snr > 2.5:
        return "stable"
    if snr > 1.5:
        return "moderate"
    return "unstable"


def confidence_summary(bundle: VitalsBundle) -> dict[str, Any]:
    score, level = overall_confidence(bundle.primary_metrics())
    quality = bundle.signal_quality
    snr = quality.signal_to_noise
    variability = quality.variability
    return {
        "score": round(score, 4),
        "level": level.value,
        "factors": {
            "signal_strength": "good" if snr is not None and snr > SIGNAL_GOOD_SNR else "poor",
            "measurement_stability": (
                "stable" if variability is not None and variability < REPORT_STABLE_VARIABILITY else "unstable"
            ),
            "data_completeness": "complete" if quality.quality == "good" else "partial",
        },
    }


def measurement_quality(bundle: VitalsBundle) -> dict[str, Any]:
    quality = bundle.signal_quality
    return {
        "signal_quality": quality.quality,
        "confidence": quality.confidence.value,
        "factors": {
            "lighting": _lighting(quality),
            "movement": _movement(quality),
            "duration": "adequate" if bundle.duration_seconds >= REPORT_MIN_DURATION_SECONDS else "short",
        },
    }


def limitations(bundle: VitalsBundle) -> list[str]:
    result = []
    if bundle.blood_pressure.confidence.value == "low":
        result.append(tables.LIMITATIONS["blood_pressure"])
    if bundle.signal_quality.quality == "poor":
        result.append(tables.LIMITATIONS["signal"])
    if bundle.spo2.confidence.value == "low":
        result.append(tables.LIMITATIONS["spo2"])
    if bundle.spo2.error:
        result.append(f"Oxygen saturation could not be measured: {bundle.spo2.error}")
    if not bundle.mood.failed:
        result.append(tables.LIMITATIONS["mood"])
    return result


# ── Public API ───────────────────────────────────────────────────────────────


def assemble_report(bundle: VitalsBundle, context: RecordingContext) -> VitalReport:
    """
    Build the final report for one analysis run.

    Parameters
    ----------
    bundle  : VitalsBundle       Output of rppg.pipeline.estimate_vitals.
    context : RecordingContext   Duration, video quality and timestamp.
    """
    metadata = {
        "report_id": report_id(bundle, context),
        "generated_at": context.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
        "recording_duration": context.duration_seconds,
        "recording_quality": context.video_quality,
        "processing_quality": bundle.signal_quality.to_dict(),
    }
    vitals = {
        "heart_rate": format_heart_rate(bundle.heart_rate),
        "heart_rate_variability": format_hrv(bundle.hrv),
        "respiratory_rate": format_respiratory(bundle.respiratory_rate),
        "blood_pressure": format_blood_pressure(bundle.blood_pressure),
        "stress_level": format_stress(bundle.stress_level),
        "mood": format_mood(bundle.mood),
        "spo2": format_spo2(bundle.spo2),
    }
    analysis = {
        "summary": health_summary(bundle),
        "concerns": health_concerns(bundle),
        "recommendations": recommendations(bundle),
    }
    reliability = {
        "overall_confidence": confidence_summary(bundle),
        "measurement_quality": measurement_quality(bundle),
        "limitations": limitations(bundle),
    }

    logger.info(
        "Report %s assembled — status=%s, confidence=%s",
        metadata["report_id"],
        analysis["summary"]["overall_status"],
        reliability["overall_confidence"]["level"],
    )
    return VitalReport(metadata=metadata, vitals=vitals, analysis=analysis, reliability=reliability)
