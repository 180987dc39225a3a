"""
face/detector.py — Face-presence gate for uploaded recordings
==============================================================
Before a video is analysed we check that a single face is visible in most
frames and fills a reasonable part of the picture.  Each frame is run
through MediaPipe Face Detection; the per-frame results are then reduced
by `summarize_face_checks`, which is pure and can be tested without
MediaPipe.

Detection "confidence"
----------------------
The score used here is a size proxy, not the detector's own probability:

    confidence = min(box_area / image_area * 3, 1)

so a face covering a third of the frame or more counts as fully
confident.  The gate passes when

    frames with exactly one face / total frames  ≥ FACE_MIN_VISIBILITY_RATIO
    mean confidence over those frames            ≥ FACE_MIN_CONFIDENCE
"""

from dataclasses import dataclass, field
from typing import Any, Sequence

import numpy as np
# NOTE: mediapipe is imported lazily inside FaceGate.__init__() so that the
# API can boot and serve /health without it.

from config import (
    FACE_DETECTION_CONFIDENCE,
    FACE_MIN_CONFIDENCE,
    FACE_MIN_VISIBILITY_RATIO,
)
from utils.errors import FaceValidationError
from utils.logger import get_logger

logger = get_logger("face.detector")

VISIBILITY_FIXES = [
    "Ensure your face is clearly visible and centered",
    "Maintain a consistent position",
    "Avoid rapid movements",
]
QUALITY_FIXES = [
    "Move closer to the camera",
    "Ensure your full face is visible",
    "Face the camera directly",
    "Keep a stable position during recording",
]


@dataclass(frozen=True)
class FaceCheck:
    """Outcome of face detection on one frame."""
    frame_number: int
    has_face: bool
    confidence: float = 0.0
    box: tuple[float, float, float, float] | None = None   # relative x, y, w, h
    error: bool = False


@dataclass(frozen=True)
class FaceValidation:
    frames_analyzed: int
    visibility_ratio: float
    average_confidence: float
    issues: list[dict[str, Any]] = field(default_factory=list)
    checks: tuple[FaceCheck, ...] = ()

    @property
    def passed(self) -> bool:
        return not self.issues

    @property
    def metrics(self) -> dict[str, int]:
        return {
            "frames_analyzed": self.frames_analyzed,
            "face_visibility_percentage": round(self.visibility_ratio * 100),
            "average_detection_quality": round(self.average_confidence * 100),
        }

    def raise_for_issues(self) -> None:
        if self.issues:
            raise FaceValidationError("Video validation failed", self.issues, self.metrics)


def box_confidence(box_width: float, box_height: float) -> float:
    """Size-based confidence for a box given in image-relative units."""
    return min(max(box_width, 0.0) * max(box_height, 0.0) * 3, 1.0)


def summarize_face_checks(checks: Sequence[FaceCheck]) -> FaceValidation:
    total = len(checks)
    with_face = [c for c in checks if c.has_face]
    visibility = len(with_face) / total if total else 0.0
    average = sum(c.confidence for c in with_face) / len(with_face) if with_face else 0.0

    issues = []
    if visibility < FACE_MIN_VISIBILITY_RATIO:
        issues.append({
            "issue": "Inconsistent face detection",
            "details": (
                f"Face was only detected in {round(visibility * 100)}% of frames "
                f"(minimum required: {round(FACE_MIN_VISIBILITY_RATIO * 100)}%)"
            ),
            "fixes": list(VISIBILITY_FIXES),
        })
    if average < FACE_MIN_CONFIDENCE:
        issues.append({
            "issue": "Low face detection quality",
            "details": (
                f"Average detection quality: {round(average * 100)}% "
                f"(minimum required: {round(FACE_MIN_CONFIDENCE * 100)}%)"
            ),
            "fixes": list(QUALITY_FIXES),
        })

    return FaceValidation(
        frames_analyzed=total,
        visibility_ratio=visibility,
        average_confidence=average,
        issues=issues,
        checks=tuple(checks),
    )


class FaceGate:
    """
    Wraps MediaPipe Face Detection and checks a whole frame sequence.

    Usable as a context manager; `close()` releases the MediaPipe graph.
    """

    def __init__(self, min_detection_confidence: float = FACE_DETECTION_CONFIDENCE):
        import mediapipe as mp

        self._detector = mp.solutions.face_detection.FaceDetection(
            model_selection=0,
            min_detection_confidence=min_detection_confidence,
        )
        logger.info("MediaPipe FaceDetection initialised (min confidence=%.2f).", min_detection_confidence)

    def __enter__(self) -> "FaceGate":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def check_frame(self, frame_rgb: np.ndarray, frame_number: int) -> FaceCheck:
        """Detect faces in one RGB frame; exactly one face counts as a hit."""
        results = self._detector.process(np.ascontiguousarray(frame_rgb[..., :3]))
        detections = results.detections or []
        if len(detections) != 1:
            return FaceCheck(frame_number=frame_number, has_face=False)

        rel = detections[0].location_data.relative_bounding_box
        box = (rel.xmin, rel.ymin, rel.width, rel.height)
        return FaceCheck(
            frame_number=frame_number,
            has_face=True,
            confidence=box_confidence(rel.width, rel.height),
            box=box,
        )

    def validate(self, frames: Sequence[np.ndarray]) -> FaceValidation:
        checks = []
        for number, frame in enumerate(frames, start=1):
            try:
                checks.append(self.check_frame(frame, number))
            except (ValueError, RuntimeError) as exc:
                logger.warning("Face detection failed on frame %d: %s", number, exc)
                checks.append(FaceCheck(frame_number=number, has_face=False, error=True))

        validation = summarize_face_checks(checks)
        logger.info(
            "Face gate — visibility=%.0f%%, quality=%.0f%%, issues=%d",
            validation.visibility_ratio * 100,
            validation.average_confidence * 100,
            len(validation.issues),
        )
        return validation

    def close(self) -> None:
        """Release MediaPipe resources."""
        self._detector.close()
        logger.info("FaceDetection closed.")
