"""
rppg/pipeline.py — End-to-end frames → VitalsBundle pipeline
==============================================================
Orchestrates the full signal-processing chain:

    frames ─┬─ mean RGB ─┬─ green ─ condition ─ peaks ─┬─ Heart Rate
            │            │                             ├─ HRV (RMSSD)
            │            │                             └─ Blood Pressure
            │            └─ red / synthetic IR ─────────── SpO2
            └─ motion energy ─┬─ Respiratory Rate
                              └─ Mood
                HRV + Respiratory Rate ─────────────────── Stress

Every run is a single synchronous pass that owns its intermediate series
exclusively; the engine holds no state between runs.  A failure in one
metric is absorbed into that metric (value=None, confidence "low") and
never stops the others.  Only input-level problems (fewer than two
frames, an unusable frame buffer, a non-positive sampling rate) abort the
whole run.
"""

from typing import Sequence

import numpy as np

from config import DEFAULT_SAMPLING_RATE, REDUCER_MAX_WORKERS
from features.confidence import assess_signal_quality
from features.hr import detect_peaks, estimate_heart_rate
from features.hr import METHODOLOGY as HR_METHODOLOGY
from features.hrv import METHODOLOGY as HRV_METHODOLOGY
from features.hrv import estimate_hrv
from features.respiration import estimate_respiratory_rate, motion_energy
from features.respiration import METHODOLOGY as RESP_METHODOLOGY
from features.spo2 import estimate_spo2
from features.types import BloodPressureMetric, Confidence, VitalMetric, VitalsBundle
from model.bp_model import METHODOLOGY as BP_METHODOLOGY
from model.bp_model import estimate_blood_pressure, peak_amplitudes
from model.mood import analyze_mood
from model.stress import estimate_stress
from rppg.filters import condition
from rppg.frames import reduce_frames, rgb_matrix
from utils.errors import VitalsError
from utils.logger import get_logger

logger = get_logger("rppg.pipeline")


def _failed(cls, unit: str, methodology: str, error: str):
    return cls(value=None, unit=unit, confidence=Confidence.LOW, methodology=methodology, error=error)


class VitalsEngine:
    """
    Stateless vital-signs estimator.

    Parameters
    ----------
    bandpass_method : str | None   Strategy name for rppg.filters.bandpass.
    max_workers     : int | None   Thread-pool size for the frame reducer.
    """

    def __init__(self, bandpass_method: str | None = None, max_workers: int | None = REDUCER_MAX_WORKERS):
        self._bandpass_method = bandpass_method
        self._max_workers = max_workers

    def estimate(self, frames: Sequence[np.ndarray], sampling_rate: float = DEFAULT_SAMPLING_RATE) -> VitalsBundle:
        """
        Run the whole pipeline on an ordered frame sequence.

        Parameters
        ----------
        frames        : sequence of ndarray (H, W, 3+)   RGB, capture order.
        sampling_rate : float   Extraction frames per second.

        Raises
        ------
        ValueError        non-positive sampling rate.
        InsufficientData  fewer than two frames.
        DecodeError       an unusable frame buffer.
        """
        if sampling_rate <= 0:
            raise ValueError(f"Sampling rate must be positive, got {sampling_rate}.")

        frame_count = len(frames)
        logger.info("Estimating vitals from %d frames @ %.2f FPS.", frame_count, sampling_rate)

        samples = reduce_frames(frames, max_workers=self._max_workers)

        # Motion energy is the last consumer of the full-resolution frames
        try:
            motion = motion_energy(frames)
            motion_error = None
        except VitalsError as exc:
            logger.warning("Motion analysis failed: %s", exc.message)
            motion, motion_error = None, exc.message
        del frames

        rgb = rgb_matrix(samples)
        green = rgb[:, 1]
        signal_quality = assess_signal_quality(green)

        heart_rate, hrv, blood_pressure = self._cardiac(green, sampling_rate)

        if motion is None:
            respiratory_rate = _failed(VitalMetric, "breaths/min", RESP_METHODOLOGY, motion_error)
            mood = analyze_mood([])
        else:
            respiratory_rate = estimate_respiratory_rate(motion, frame_count, sampling_rate)
            mood = analyze_mood(motion)

        stress_level = estimate_stress(hrv.value, respiratory_rate.value)
        spo2 = estimate_spo2(rgb, sampling_rate, method=self._bandpass_method)

        bundle = VitalsBundle(
            heart_rate=heart_rate,
            hrv=hrv,
            respiratory_rate=respiratory_rate,
            blood_pressure=blood_pressure,
            stress_level=stress_level,
            mood=mood,
            spo2=spo2,
            signal_quality=signal_quality,
            sampling_rate=float(sampling_rate),
            frame_count=frame_count,
        )
        failed = [name for name, m in (
            ("heart_rate", heart_rate), ("hrv", hrv), ("respiratory_rate", respiratory_rate),
            ("blood_pressure", blood_pressure), ("stress_level", stress_level),
            ("mood", mood), ("spo2", spo2),
        ) if m.failed]
        if failed:
            logger.warning("Vitals estimated with failed metrics: %s", ", ".join(failed))
        else:
            logger.info("Vitals estimated — all metrics available.")
        return bundle

    # ── Private ────────────────────────────────────────────────────────────

    def _cardiac(self, green: np.ndarray, sampling_rate: float) -> tuple[VitalMetric, VitalMetric, BloodPressureMetric]:
        """Heart rate, HRV and blood pressure share one conditioned series."""
        try:
            conditioned = condition(green, sampling_rate, method=self._bandpass_method)
        except (VitalsError, ValueError) as exc:
            message = exc.message if isinstance(exc, VitalsError) else str(exc)
            logger.warning("Cardiac conditioning failed: %s", message)
            return (
                _failed(VitalMetric, "bpm", HR_METHODOLOGY, message),
                _failed(VitalMetric, "ms", HRV_METHODOLOGY, message),
                _failed(BloodPressureMetric, "mmHg", BP_METHODOLOGY, message),
            )

        peaks = detect_peaks(conditioned)
        heart_rate = estimate_heart_rate(conditioned, sampling_rate, peaks=peaks)
        hrv = estimate_hrv(peaks, sampling_rate)
        blood_pressure = estimate_blood_pressure(peak_amplitudes(conditioned, peaks))
        return heart_rate, hrv, blood_pressure


def estimate_vitals(
    frames: Sequence[np.ndarray],
    sampling_rate: float = DEFAULT_SAMPLING_RATE,
    bandpass_method: str | None = None,
) -> VitalsBundle:
    """Convenience wrapper: `VitalsEngine(bandpass_method).estimate(...)`."""
    return VitalsEngine(bandpass_method=bandpass_method).estimate(frames, sampling_rate)
