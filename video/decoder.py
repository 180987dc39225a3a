"""
video/decoder.py — Uploaded video → RGB frame sequence
========================================================
Turns a recorded face video into the short, ordered frame list the
vitals engine consumes:

  1. Probe the container for its native FPS and duration.
  2. Pick an extraction rate so roughly `VIDEO_MAX_FRAMES` frames cover the
     whole clip: `max(5, min(40 / duration, 10))` FPS.
  3. Down-sample the native stream to that rate.
  4. If still too many frames, keep the first, every ceil(n / 40)-th and
     the last frame.
  5. Convert BGR → RGB and downscale by `VIDEO_QUALITY_SCALE`.

Frames are only held inside the `decoded_frames` context manager; the
capture handle is released and the frame list cleared on every exit path.
"""

import math
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

import cv2
import numpy as np

from config import (
    VIDEO_BASE_FPS,
    VIDEO_MAX_FPS,
    VIDEO_MAX_FRAMES,
    VIDEO_QUALITY_SCALE,
)
from utils.errors import DecodeError, InsufficientData
from utils.logger import get_logger

logger = get_logger("video.decoder")


@dataclass
class DecodedVideo:
    """Frames extracted from one video, plus the rate they were taken at."""

    frames: list[np.ndarray] = field(default_factory=list)
    fps: float = VIDEO_BASE_FPS        # extraction rate before sampling
    duration: float = 0.0              # seconds, as reported by the container
    width: int = 0
    height: int = 0
    native_fps: float = 0.0

    @property
    def sampling_rate(self) -> float:
        """Effective frames per second of `frames` after index sampling."""
        if self.duration > 0 and self.frames:
            return len(self.frames) / self.duration
        return self.fps

    @property
    def quality(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "native_fps": round(self.native_fps, 2),
            "extraction_fps": round(self.fps, 2),
            "frames": len(self.frames),
        }


def optimal_fps(duration: float) -> float:
    if duration <= 0:
        return VIDEO_BASE_FPS
    return max(VIDEO_BASE_FPS, min(VIDEO_MAX_FRAMES / duration, VIDEO_MAX_FPS))


def sample_indices(n: int, max_frames: int = VIDEO_MAX_FRAMES) -> list[int]:
    """
    Indices of the frames to keep out of `n`.

    Short sequences are kept whole.  Longer ones keep index 0, every
    `ceil(n / max_frames)`-th index up to (excluding) `n - step`, and the
    last index.
    """
    if n <= max_frames:
        return list(range(n))
    step = math.ceil(n / max_frames)
    return [0, *range(step, n - step, step), n - 1]


def _open(path: str) -> cv2.VideoCapture:
    cap = cv2.VideoCapture(str(path))
    if not cap.isOpened():
        cap.release()
        raise DecodeError(f"Cannot open video file: {path}")
    return cap


def _native_properties(cap: cv2.VideoCapture) -> tuple[float, int]:
    fps = cap.get(cv2.CAP_PROP_FPS)
    count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
    if fps <= 0 or not np.isfinite(fps):
        raise DecodeError("Video reports no usable frame rate.")
    return fps, count


def probe_duration(path: str) -> float:
    """Container duration in seconds (frame count / native FPS)."""
    cap = _open(path)
    try:
        fps, count = _native_properties(cap)
    finally:
        cap.release()
    return count / fps


def _prepare(frame_bgr: np.ndarray) -> np.ndarray:
    h, w = frame_bgr.shape[:2]
    size = (max(1, w // VIDEO_QUALITY_SCALE), max(1, h // VIDEO_QUALITY_SCALE))
    small = cv2.resize(frame_bgr, size, interpolation=cv2.INTER_AREA)
    return cv2.cvtColor(small, cv2.COLOR_BGR2RGB)


def _read_at_rate(cap: cv2.VideoCapture, native_fps: float, target_fps: float) -> list[np.ndarray]:
    """Read the stream once, keeping one frame per 1/target_fps seconds."""
    frames: list[np.ndarray] = []
    interval = native_fps / target_fps
    next_keep = 0.0
    index = 0
    while True:
        ok, frame = cap.read()
        if not ok:
            break
        if index >= next_keep - 1e-6:
            if frame is None or frame.ndim != 3:
                raise DecodeError("Decoder returned an unusable frame.", frame_index=index)
            frames.append(_prepare(frame))
            next_keep += interval
        index += 1
    return frames


def decode_video(path: str) -> DecodedVideo:
    """
    Decode `path` into a `DecodedVideo`.

    Raises
    ------
    DecodeError       the file cannot be opened or read.
    InsufficientData  fewer than two frames could be extracted.
    """
    cap = _open(path)
    try:
        native_fps, count = _native_properties(cap)
        duration = count / native_fps
        fps = optimal_fps(duration)
        width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        extracted = _read_at_rate(cap, native_fps, fps)
    finally:
        cap.release()

    if len(extracted) < 2:
        raise InsufficientData("Video yielded fewer than two frames.", required=2, got=len(extracted))

    frames = [extracted[i] for i in sample_indices(len(extracted))]
    logger.info(
        "Decoded %s — %.1fs @ %.1f native FPS, %d extracted @ %.1f FPS, %d kept.",
        path, duration, native_fps, len(extracted), fps, len(frames),
    )
    return DecodedVideo(
        frames=frames,
        fps=fps,
        duration=duration,
        width=width,
        height=height,
        native_fps=native_fps,
    )


@contextmanager
def decoded_frames(path: str) -> Iterator[DecodedVideo]:
    """Context manager around `decode_video` that drops the frames on exit."""
    video = decode_video(path)
    try:
        yield video
    finally:
        video.frames.clear()
