"""
features/respiration.py — Respiratory rate from whole-frame motion
===================================================================
Breathing moves the head and upper chest slightly.  We measure that as
*motion energy*: the mean absolute pixel-wise difference between each
pair of consecutive frames, in raw pixel units whatever the frame dtype.
The result is one sample shorter than the frame count.

A breathing cycle is a local maximum of the motion series that rises
above mean + std:

    rate = round(cycles · 60 / duration_seconds)

Frames are differenced one pair at a time so only two full-resolution
float buffers exist at once.
"""

from typing import Sequence

import numpy as np

from config import MIN_FRAMES
from features.confidence import confidence_from_series
from features.hr import detect_peaks
from features.types import Confidence, VitalMetric
from utils.errors import DecodeError, InsufficientData
from utils.logger import get_logger
from utils.stats import as_series, mean, std

logger = get_logger("features.respiration")

METHODOLOGY = "Subtle head/chest movements"


def _as_float(frame: np.ndarray, index: int) -> np.ndarray:
    if frame is None:
        raise DecodeError(f"Frame {index} is missing.", frame_index=index)
    return np.asarray(frame, dtype=np.float64)


def motion_energy(frames: Sequence[np.ndarray]) -> np.ndarray:
    """
    Mean absolute difference between consecutive frames.

    Returns
    -------
    motion : ndarray, shape (len(frames) − 1,)

    Raises
    ------
    InsufficientData  fewer than two frames.
    DecodeError       consecutive frames with different shapes.
    """
    if len(frames) < MIN_FRAMES:
        raise InsufficientData(
            f"Motion analysis needs at least {MIN_FRAMES} frames, got {len(frames)}.",
            required=MIN_FRAMES,
            got=len(frames),
        )

    motion = np.empty(len(frames) - 1, dtype=np.float64)
    prev = _as_float(frames[0], 0)
    for i in range(1, len(frames)):
        cur = _as_float(frames[i], i)
        if cur.shape != prev.shape:
            raise DecodeError(
                f"Frame {i} has shape {cur.shape}, previous frame {prev.shape}.",
                frame_index=i,
            )
        motion[i - 1] = float(np.mean(np.abs(cur - prev), dtype=np.float64))
        prev = cur
    return motion


def count_breathing_cycles(motion) -> int:
    """Local maxima of the motion series strictly above mean + std."""
    m = as_series(motion)
    if m.size < 3:
        return 0
    threshold = mean(m) + std(m)
    peaks = detect_peaks(m)
    return int(np.count_nonzero(m[peaks] > threshold))


def estimate_respiratory_rate(motion, frame_count: int, sampling_rate: float) -> VitalMetric:
    """
    Respiratory rate (breaths/min) from a motion-energy series.

    Parameters
    ----------
    motion        : array-like   Output of `motion_energy`.
    frame_count   : int          Number of frames the series came from.
    sampling_rate : float        Frames per second.
    """
    m = as_series(motion)
    if frame_count < MIN_FRAMES or m.size == 0:
        message = f"Respiratory rate needs at least {MIN_FRAMES} frames, got {frame_count}."
        logger.warning("Respiratory rate unavailable: %s", message)
        return VitalMetric(
            value=None,
            unit="breaths/min",
            confidence=Confidence.LOW,
            methodology=METHODOLOGY,
            error=message,
        )

    cycles = count_breathing_cycles(m)
    duration = frame_count / sampling_rate
    rate = int(round(cycles * 60.0 / duration))
    confidence = confidence_from_series(m)

    logger.info("Respiratory rate: %d breaths/min (%d cycles, conf=%s)", rate, cycles, confidence.value)
    return VitalMetric(
        value=rate,
        unit="breaths/min",
        confidence=confidence,
        methodology=METHODOLOGY,
        details={"cycles": cycles, "duration_seconds": round(duration, 3)},
    )
