"""
utils/errors.py — Error taxonomy
=================================
Every failure the engine can detect is a `VitalsError`.  Analyzers raise
these internally and convert them into a degraded `VitalMetric` at their
own boundary, so one failing metric never takes down the others.

    InsufficientData       series too short for the analysis
    DegenerateSignal       zero variance / near-zero divisor
    OutOfRangeCalibration  SpO2 ratio R outside the physiological band
    DecodeError            a frame buffer is unusable
    FaceValidationError    the face-presence gate rejected the recording
"""

from typing import Any


class VitalsError(Exception):
    """Base exception for all vital-signs engine errors."""

    code = "VITALS_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class InsufficientData(VitalsError):
    code = "INSUFFICIENT_DATA"

    def __init__(self, message: str, required: int | None = None, got: int | None = None):
        details = {}
        if required is not None:
            details["required"] = required
        if got is not None:
            details["got"] = got
        super().__init__(message, details)


class DegenerateSignal(VitalsError):
    code = "DEGENERATE_SIGNAL"


class OutOfRangeCalibration(VitalsError):
    code = "OUT_OF_RANGE_CALIBRATION"

    def __init__(self, ratio: float, low: float, high: float):
        super().__init__(
            f"Ratio R={ratio:.3f} outside the physiological band [{low}, {high}].",
            {"ratio": ratio, "low": low, "high": high},
        )
        self.ratio = ratio


class DecodeError(VitalsError):
    code = "DECODE_ERROR"

    def __init__(self, message: str, frame_index: int | None = None):
        super().__init__(message, {"frame_index": frame_index} if frame_index is not None else None)
        self.frame_index = frame_index


class FaceValidationError(VitalsError):
    """Raised by the face gate; `issues` carries user-facing fixes."""

    code = "FACE_VALIDATION_FAILED"

    def __init__(self, message: str, issues: list[dict[str, Any]], metrics: dict[str, Any]):
        super().__init__(message, {"issues": issues, "metrics": metrics})
        self.issues = issues
        self.metrics = metrics
