"""
rppg/frames.py — Frame-to-Signal Reducer
=========================================
Turns each decoded frame into a single (R, G, B) triplet: the spatial
mean of every colour channel over all pixels.  This is the raw rPPG
signal every later stage works from.

The per-frame reduction is embarrassingly parallel, so it runs in a
thread pool (numpy releases the GIL inside `mean`).  Results are always
re-assembled in frame-index order before they are returned, because peak
detection, moving averages and frame differencing all depend on it.

No frame is ever dropped silently: an unusable buffer fails the whole
request with `DecodeError`.  The video collaborator is responsible for
excluding frames it could not decode *before* they reach this stage.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

import numpy as np

from config import MIN_FRAMES, REDUCER_MAX_WORKERS
from features.types import FrameSample
from utils.errors import DecodeError, InsufficientData
from utils.logger import get_logger

logger = get_logger("rppg.frames")


def extract_mean_rgb(frame: np.ndarray) -> tuple[float, float, float]:
    """
    Return the spatial mean of the R, G, B channels of one frame.

    Parameters
    ----------
    frame : ndarray, shape (H, W, C), C ≥ 3
        RGB image (the video collaborator converts from OpenCV's BGR).
        Extra channels (e.g. alpha) are ignored.

    Returns
    -------
    r, g, b : float   Mean pixel values, in [0, 255] for uint8 input.
    """
    means = frame[..., :3].reshape(-1, 3).mean(axis=0, dtype=np.float64)
    return float(means[0]), float(means[1]), float(means[2])


def _check_frame(index: int, frame) -> np.ndarray:
    if frame is None:
        raise DecodeError(f"Frame {index} is missing (decode failed upstream).", frame_index=index)
    arr = np.asarray(frame)
    if arr.ndim != 3 or arr.shape[2] < 3:
        raise DecodeError(
            f"Frame {index} has shape {arr.shape}; expected (H, W, C) with C >= 3.",
            frame_index=index,
        )
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise DecodeError(f"Frame {index} is empty.", frame_index=index)
    return arr


def _reduce_one(item: tuple[int, np.ndarray]) -> FrameSample:
    index, frame = item
    return FrameSample(index=index, rgb=extract_mean_rgb(_check_frame(index, frame)))


def reduce_frames(
    frames: Sequence[np.ndarray],
    max_workers: int | None = REDUCER_MAX_WORKERS,
) -> list[FrameSample]:
    """
    Reduce every frame to a `FrameSample`, preserving order exactly.

    Parameters
    ----------
    frames      : sequence of ndarray   Decoded RGB frames in capture order.
    max_workers : int | None            Thread-pool size (None = default).

    Raises
    ------
    InsufficientData  if fewer than MIN_FRAMES frames are supplied.
    DecodeError       if any frame buffer is unusable.
    """
    if len(frames) < MIN_FRAMES:
        raise InsufficientData(
            f"Need at least {MIN_FRAMES} frames, got {len(frames)}.",
            required=MIN_FRAMES,
            got=len(frames),
        )

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        samples = list(pool.map(_reduce_one, enumerate(frames)))

    # Downstream stages require strict frame-index order
    samples.sort(key=lambda s: s.index)

    logger.debug("Reduced %d frames to RGB means.", len(samples))
    return samples


def channel(samples: Sequence[FrameSample], index: int) -> np.ndarray:
    """Extract one colour channel (0=R, 1=G, 2=B) as a float64 series."""
    return np.array([s.rgb[index] for s in samples], dtype=np.float64)


def rgb_matrix(samples: Sequence[FrameSample]) -> np.ndarray:
    """Stack samples into a (T, 3) array, one row per frame."""
    return np.array([s.rgb for s in samples], dtype=np.float64).reshape(-1, 3)
