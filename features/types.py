"""
features/types.py — Engine data model
======================================
Immutable containers passed between the pipeline stages and handed to the
report assembler.  Every container exposes `to_dict()` so it can be
serialised to JSON without further conversion.

A metric whose `value` is None is a *failed* measurement.  Downstream code
must render it as "unknown" and never treat it as zero.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Confidence(str, Enum):
    """Three-level confidence scale used by every metric."""
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"


@dataclass(frozen=True)
class FrameSample:
    """Channel means of one decoded frame, in [0, 255]."""
    index: int
    rgb: tuple[float, float, float]

    @property
    def red(self) -> float:
        return self.rgb[0]

    @property
    def green(self) -> float:
        return self.rgb[1]

    @property
    def blue(self) -> float:
        return self.rgb[2]


@dataclass(frozen=True)
class ACDCComponents:
    """Pulsatile (AC) and baseline (DC) parts of one conditioned channel."""
    ac: float
    dc: float
    perfusion: float
    peak_indices: tuple[int, ...] = ()
    trough_indices: tuple[int, ...] = ()


@dataclass(frozen=True)
class VitalMetric:
    """
    One estimated vital sign.

    value       : float | None   None when the measurement failed.
    unit        : str
    confidence  : Confidence
    methodology : str            Short description of how it was derived.
    error       : str | None     Failure reason when value is None.
    details     : dict           Extra numbers useful for debugging/reports.
    """
    value: float | None
    unit: str
    confidence: Confidence
    methodology: str
    error: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return self.value is None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "value": self.value,
            "unit": self.unit,
            "confidence": self.confidence.value,
            "methodology": self.methodology,
        }
        if self.error is not None:
            data["error"] = self.error
        if self.details:
            data["details"] = dict(self.details)
        return data


@dataclass(frozen=True)
class BloodPressureMetric(VitalMetric):
    systolic: int | None = None
    diastolic: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["systolic"] = self.systolic
        data["diastolic"] = self.diastolic
        return data


@dataclass(frozen=True)
class StressMetric(VitalMetric):
    level: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["level"] = self.level
        return data


@dataclass(frozen=True)
class MoodMetric(VitalMetric):
    """`value` holds the numeric mean motion; `primary` the label."""
    primary: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["primary"] = self.primary
        return data


@dataclass(frozen=True)
class SpO2Quality:
    score: float
    confidence: Confidence
    reliability: float
    snr: float
    stability: float
    physiological: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "confidence": self.confidence.value,
            "reliability": self.reliability,
            "metrics": {
                "snr": self.snr,
                "stability": self.stability,
                "physiological": self.physiological,
            },
        }


@dataclass(frozen=True)
class SpO2Metric(VitalMetric):
    perfusion_index: float | None = None
    quality: SpO2Quality | None = None

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["perfusion_index"] = self.perfusion_index
        data["quality"] = self.quality.to_dict() if self.quality else None
        return data


@dataclass(frozen=True)
class SignalQuality:
    """Quality of the raw cardiac (green) channel, computed once per run."""
    signal_to_noise: float | None
    variability: float | None
    quality: str                   # "good" | "poor"
    confidence: Confidence

    def to_dict(self) -> dict[str, Any]:
        return {
            "signal_to_noise": self.signal_to_noise,
            "variability": self.variability,
            "quality": self.quality,
            "confidence": self.confidence.value,
        }


@dataclass(frozen=True)
class VitalsBundle:
    """All metrics produced by one `estimate_vitals` call."""
    heart_rate: VitalMetric
    hrv: VitalMetric
    respiratory_rate: VitalMetric
    blood_pressure: BloodPressureMetric
    stress_level: StressMetric
    mood: MoodMetric
    spo2: SpO2Metric
    signal_quality: SignalQuality
    sampling_rate: float
    frame_count: int

    @property
    def duration_seconds(self) -> float:
        return self.frame_count / self.sampling_rate

    def primary_metrics(self) -> tuple[VitalMetric, ...]:
        """The six metrics that feed the overall confidence score."""
        return (
            self.heart_rate,
            self.hrv,
            self.respiratory_rate,
            self.blood_pressure,
            self.stress_level,
            self.spo2,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "heart_rate": self.heart_rate.to_dict(),
            "hrv": self.hrv.to_dict(),
            "respiratory_rate": self.respiratory_rate.to_dict(),
            "blood_pressure": self.blood_pressure.to_dict(),
            "stress_level": self.stress_level.to_dict(),
            "mood": self.mood.to_dict(),
            "spo2": self.spo2.to_dict(),
            "signal_quality": self.signal_quality.to_dict(),
            "sampling_rate": self.sampling_rate,
            "frame_count": self.frame_count,
            "duration_seconds": self.duration_seconds,
        }


@dataclass(frozen=True)
class RecordingContext:
    duration_seconds: float
    timestamp: datetime
    video_quality: Any = None


@dataclass(frozen=True)
class VitalReport:
    metadata: dict[str, Any]
    vitals: dict[str, Any]
    analysis: dict[str, Any]
    reliability: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata,
            "vitals": self.vitals,
            "analysis": self.analysis,
            "reliability": self.reliability,
        }
