"""
report/tables.py — Reference ranges and report text
====================================================
Everything the report assembler "decides" is a lookup in the tables
below: fixed numeric ranges map a value to a status, and each status maps
to a fixed interpretation / recommendation string.  No signal processing
happens here.

    Metric              normal range          statuses
    ─────────────────   ───────────────────   ─────────────────────────────
    Heart rate          60–100 bpm            low / normal / high
    HRV (RMSSD)         20–200 ms             low / normal / high
    Respiratory rate    12–20 breaths/min     low / normal / high
    Blood pressure      90–140 / 60–90 mmHg   low / normal / high
    Stress              0–100 score           low / moderate / high (40/70)
    SpO2                ≥ 95 %                normal / mild / moderate / severe
                                              (95 / 90 / 85)

A None value always maps to status "unknown".
"""

UNKNOWN = "unknown"
MEASUREMENT_FAILED = "Measurement failed"

RANGES = {
    "heart_rate": {"low": 60, "high": 100},
    "hrv": {"low": 20, "high": 200},
    "respiratory_rate": {"low": 12, "high": 20},
    "systolic": {"low": 90, "high": 140},
    "diastolic": {"low": 60, "high": 90},
    "stress": {"low": 0, "high": 100},
    "spo2": {"low": 95, "high": 100},
    "perfusion_index": {"low": 0.5, "high": 10},
    "quality": {"low": 0, "high": 1},
}

STRESS_HIGH = 70
STRESS_MODERATE = 40

SPO2_NORMAL = 95
SPO2_MILD = 90
SPO2_MODERATE = 85


def _range_status(value, key: str) -> str:
    if value is None:
        return UNKNOWN
    bounds = RANGES[key]
    if value < bounds["low"]:
        return "low"
    if value > bounds["high"]:
        return "high"
    return "normal"


# ── Status ───────────────────────────────────────────────────────────────────


def heart_rate_status(hr) -> str:
    return _range_status(hr, "heart_rate")


def hrv_status(hrv) -> str:
    return _range_status(hrv, "hrv")


def respiratory_status(rate) -> str:
    return _range_status(rate, "respiratory_rate")


def blood_pressure_status(systolic, diastolic) -> str:
    if systolic is None or diastolic is None:
        return UNKNOWN
    if systolic > RANGES["systolic"]["high"] or diastolic > RANGES["diastolic"]["high"]:
        return "high"
    if systolic < RANGES["systolic"]["low"] or diastolic < RANGES["diastolic"]["low"]:
        return "low"
    return "normal"


def stress_status(score) -> str:
    if score is None:
        return UNKNOWN
    if score > STRESS_HIGH:
        return "high"
    if score > STRESS_MODERATE:
        return "moderate"
    return "low"


def spo2_status(value) -> str:
    if value is None:
        return UNKNOWN
    if value >= SPO2_NORMAL:
        return "normal"
    if value >= SPO2_MILD:
        return "mild"
    if value >= SPO2_MODERATE:
        return "moderate"
    return "severe"


# ── Interpretation ───────────────────────────────────────────────────────────

INTERPRETATIONS = {
    "heart_rate": {
        "low": "Below normal range (bradycardia)",
        "high": "Above normal range (tachycardia)",
        "normal": "Within normal range",
    },
    "hrv": {
        "low": "Lower than optimal variability",
        "high": "Higher than typical variability",
        "normal": "Normal variability",
    },
    "respiratory_rate": {
        "low": "Below normal range",
        "high": "Above normal range",
        "normal": "Normal breathing rate",
    },
    "blood_pressure": {
        "low": "Low blood pressure",
        "high": "Elevated blood pressure",
        "normal": "Normal blood pressure range",
    },
    "stress": {
        "low": "Low stress level",
        "moderate": "Moderate stress level",
        "high": "High stress detected",
    },
    "spo2": {
        "normal": "Normal oxygen saturation",
        "mild": "Mild hypoxemia",
        "moderate": "Moderate hypoxemia",
        "severe": "Severe hypoxemia",
    },
    "mood": {
        "stressed": "Signs of stress or anxiety detected",
        "calm": "Relaxed and composed state",
        "neutral": "Neutral emotional state",
        "active": "Alert and engaged state",
    },
}


def interpret(metric: str, status: str) -> str:
    if status == UNKNOWN:
        return MEASUREMENT_FAILED
    return INTERPRETATIONS[metric].get(status, MEASUREMENT_FAILED)


def interpret_mood(primary) -> str:
    return INTERPRETATIONS["mood"].get(primary, "Unable to determine mood")


# ── Advice ───────────────────────────────────────────────────────────────────

STRESS_RECOMMENDATIONS = {
    "high": [
        "Practice deep breathing exercises",
        "Consider meditation or mindfulness",
        "Take regular breaks",
        "Ensure adequate sleep",
        "Consider consulting a healthcare professional",
    ],
    "moderate": [
        "Take short breaks during work",
        "Practice simple relaxation techniques",
        "Maintain regular exercise",
        "Ensure work-life balance",
    ],
    "low": [
        "Maintain current stress management practices",
        "Continue regular exercise",
        "Keep up healthy sleep habits",
    ],
}

MOOD_SUGGESTIONS = {
    "stressed": [
        "Practice relaxation techniques",
        "Take breaks when needed",
        "Consider mindfulness exercises",
    ],
    "calm": [
        "Maintain current relaxation practices",
        "Continue balanced lifestyle",
    ],
    "neutral": ["Consider engaging activities", "Maintain regular exercise"],
    "active": [
        "Channel energy into productive tasks",
        "Maintain balanced activity levels",
    ],
}
DEFAULT_MOOD_SUGGESTIONS = ["Maintain regular healthy habits"]

HEART_HEALTH_SUGGESTIONS = [
    "Practice deep breathing exercises",
    "Maintain regular physical activity",
    "Ensure adequate sleep",
]

STRESS_MANAGEMENT_SUGGESTIONS = [
    "Practice mindfulness or meditation",
    "Take regular breaks during work",
    "Consider stress-reducing activities",
]

OXYGEN_SUGGESTIONS = [
    "Practice deep breathing exercises",
    "Ensure proper ventilation in your environment",
    "Consider position changes to optimize breathing",
    "Monitor for any breathing difficulties",
]

LIMITATIONS = {
    "blood_pressure": (
        "Blood pressure measurements are experimental and should not be used for medical purposes"
    ),
    "signal": "Signal quality issues may affect measurement accuracy",
    "spo2": (
        "Oxygen saturation measurements are experimental and should be verified with "
        "medical-grade equipment"
    ),
    "mood": "Mood is a coarse movement-pattern heuristic, not a learned emotion classifier",
}
