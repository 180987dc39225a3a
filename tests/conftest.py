"""
Pytest Configuration and Fixtures

Synthetic frames, signals and metric bundles shared by the engine,
report and API tests.
"""
import sys
from datetime import datetime
from pathlib import Path

import numpy as np
import pytest

# Project root on the path (flat layout)
sys.path.insert(0, str(Path(__file__).parent.parent))

from features.types import (  # noqa: E402
    BloodPressureMetric,
    Confidence,
    MoodMetric,
    RecordingContext,
    SignalQuality,
    SpO2Metric,
    SpO2Quality,
    StressMetric,
    VitalMetric,
    VitalsBundle,
)

SAMPLING_RATE = 5.0
PULSE_HZ = 1.2          # 72 BPM


def make_frames(green: np.ndarray, red: float = 150.0, blue: float = 90.0, size: int = 4) -> list[np.ndarray]:
    """One small float RGB frame per green value."""
    frames = []
    for g in green:
        frame = np.empty((size, size, 3), dtype=np.float64)
        frame[..., 0] = red
        frame[..., 1] = g
        frame[..., 2] = blue
        frames.append(frame)
    return frames


@pytest.fixture
def pulse_green() -> np.ndarray:
    """100 samples (20 s @ 5 FPS) of a 1.2 Hz pulse riding on a green baseline."""
    t = np.arange(100) / SAMPLING_RATE
    return 128.0 + 10.0 * np.sin(2 * np.pi * PULSE_HZ * t)


@pytest.fixture
def pulse_frames(pulse_green) -> list[np.ndarray]:
    return make_frames(pulse_green)


@pytest.fixture
def constant_frames() -> list[np.ndarray]:
    """50 identical uint8 frames: no pulse, no motion."""
    frame = np.full((8, 8, 3), 120, dtype=np.uint8)
    return [frame.copy() for _ in range(50)]


@pytest.fixture
def timestamp() -> datetime:
    return datetime(2024, 5, 17, 9, 30, 0)


@pytest.fixture
def context(timestamp) -> RecordingContext:
    return RecordingContext(duration_seconds=20.0, timestamp=timestamp, video_quality={"frames": 100})


def metric(value, unit="", confidence=Confidence.MODERATE, **kwargs) -> VitalMetric:
    return VitalMetric(value=value, unit=unit, confidence=confidence, methodology="test", **kwargs)


def make_bundle(
    hr=72,
    hrv=45,
    resp=16,
    bp=(118, 78),
    stress=35,
    stress_label="low",
    mood="calm",
    spo2=97.0,
    snr=3.0,
    frame_count=100,
) -> VitalsBundle:
    """Hand-built bundle; pass None for any metric to mark it failed."""
    low = Confidence.LOW
    systolic, diastolic = bp if bp is not None else (None, None)
    quality = SpO2Quality(
        score=0.85, confidence=Confidence.HIGH, reliability=0.8, snr=1.2, stability=1.0, physiological=1,
    )
    return VitalsBundle(
        heart_rate=metric(hr, "bpm", Confidence.HIGH if hr is not None else low),
        hrv=metric(hrv, "ms", Confidence.MODERATE if hrv is not None else low),
        respiratory_rate=metric(resp, "breaths/min", Confidence.MODERATE if resp is not None else low),
        blood_pressure=BloodPressureMetric(
            value=systolic, unit="mmHg", confidence=low, methodology="test",
            systolic=systolic, diastolic=diastolic,
        ),
        stress_level=StressMetric(
            value=stress, unit="score", confidence=Confidence.MODERATE if stress is not None else low,
            methodology="test", level=stress_label if stress is not None else None,
        ),
        mood=MoodMetric(
            value=0.01 if mood is not None else None, unit="motion",
            confidence=Confidence.MODERATE if mood is not None else low,
            methodology="test", primary=mood,
        ),
        spo2=SpO2Metric(
            value=spo2, unit="%", confidence=Confidence.HIGH if spo2 is not None else low,
            methodology="test", perfusion_index=1.5 if spo2 is not None else None,
            quality=quality if spo2 is not None else None,
            error=None if spo2 is not None else "AC component has 0 peaks",
        ),
        signal_quality=SignalQuality(
            signal_to_noise=snr,
            variability=round(1 / snr, 4) if snr else None,
            quality="good" if snr and snr > 1.5 else "poor",
            confidence=Confidence.HIGH if snr and snr > 2 else Confidence.LOW,
        ),
        sampling_rate=SAMPLING_RATE,
        frame_count=frame_count,
    )


@pytest.fixture
def healthy_bundle() -> VitalsBundle:
    return make_bundle()


@pytest.fixture
def failed_bundle() -> VitalsBundle:
    return make_bundle(hr=None, hrv=None, resp=None, bp=None, stress=None, mood=None, spo2=None, snr=None)
