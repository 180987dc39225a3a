"""
Unit tests for respiration, SpO2, stress and mood.
"""
import numpy as np
import pytest

from features.respiration import count_breathing_cycles, estimate_respiratory_rate, motion_energy
from features.spo2 import (
    acdc_components,
    area_ratio,
    calibrated_spo2,
    check_calibration_range,
    estimate_spo2,
    ratio_of_ratios,
    split_channels,
)
from features.types import Confidence
from model.mood import MOOD_STATES, analyze_mood, classify_mood
from model.stress import (
    estimate_stress,
    hrv_stress_score,
    respiratory_stress_score,
    stress_level,
    stress_score,
)
from utils.errors import DecodeError, DegenerateSignal, InsufficientData, OutOfRangeCalibration


def spiky_motion(length=49, every=10, offset=5):
    motion = np.zeros(length)
    motion[offset::every] = 1.0
    return motion


class TestMotion:

    def test_raw_pixel_units(self):
        frames = [np.zeros((2, 2, 3), dtype=np.uint8), np.full((2, 2, 3), 255, dtype=np.uint8)]
        assert motion_energy(frames) == pytest.approx([255.0])

    def test_same_motion_and_mood_for_any_dtype(self):
        levels = np.resize([0, 5, 1, 4, 0, 5, 2, 3], 30)
        as_uint8 = [np.full((6, 6, 3), level, dtype=np.uint8) for level in levels]
        as_float = [frame.astype(np.float64) for frame in as_uint8]

        motion_uint8 = motion_energy(as_uint8)
        motion_float = motion_energy(as_float)
        np.testing.assert_array_equal(motion_uint8, motion_float)
        assert list(motion_uint8[:3]) == [5.0, 4.0, 3.0]

        assert analyze_mood(motion_uint8).primary == "stressed"
        assert analyze_mood(motion_float).primary == "stressed"

    def test_length(self, constant_frames):
        motion = motion_energy(constant_frames)
        assert motion.shape == (49,)
        assert np.all(motion == 0.0)

    def test_single_frame(self):
        with pytest.raises(InsufficientData):
            motion_energy([np.zeros((2, 2, 3))])

    def test_shape_mismatch(self):
        with pytest.raises(DecodeError):
            motion_energy([np.zeros((2, 2, 3)), np.zeros((3, 3, 3))])


class TestRespiration:

    def test_cycles_above_threshold(self):
        assert count_breathing_cycles(spiky_motion()) == 5

    def test_flat_motion_has_no_cycles(self):
        assert count_breathing_cycles(np.zeros(20)) == 0

    def test_rate(self):
        # 5 cycles over 50 frames @ 5 FPS (10 s)
        resp = estimate_respiratory_rate(spiky_motion(), frame_count=50, sampling_rate=5.0)
        assert resp.value == 30
        assert resp.unit == "breaths/min"

    def test_flat_motion_low_confidence(self):
        resp = estimate_respiratory_rate(np.zeros(49), frame_count=50, sampling_rate=5.0)
        assert resp.value == 0
        assert resp.confidence is Confidence.LOW

    def test_too_few_frames(self):
        resp = estimate_respiratory_rate([], frame_count=1, sampling_rate=5.0)
        assert resp.value is None
        assert resp.error


class TestSpO2:

    def test_synthetic_infrared(self):
        red, infrared = split_channels([[100.0, 0.0, 50.0], [200.0, 0.0, 0.0]])
        assert list(red) == [100.0, 200.0]
        assert infrared == pytest.approx([80.0, 120.0])

    @pytest.mark.parametrize("ratio, expected", [(0.0, 100.0), (0.4, 100.0), (1.0, 85.0), (1.4, 75.0), (2.0, 70.0), (5.0, 70.0)])
    def test_calibration(self, ratio, expected):
        assert calibrated_spo2(ratio) == pytest.approx(expected)

    def test_calibration_monotonic(self):
        values = [calibrated_spo2(r) for r in np.linspace(-1, 4, 200)]
        assert all(a >= b for a, b in zip(values, values[1:]))
        assert all(70.0 <= v <= 100.0 for v in values)

    def test_calibration_not_finite(self):
        with pytest.raises(DegenerateSignal):
            calibrated_spo2(float("nan"))

    def test_calibration_range(self):
        check_calibration_range(1.0)
        with pytest.raises(OutOfRangeCalibration):
            check_calibration_range(2.5)

    def test_ratio_of_ratios(self):
        assert ratio_of_ratios(1.0, 1.0) == pytest.approx(1.0)
        assert ratio_of_ratios(2.0, 0.5) == pytest.approx(1.4)

    def test_area_ratio(self):
        assert area_ratio([1.0, -1.0], [2.0, 2.0]) == pytest.approx(0.5)
        with pytest.raises(DegenerateSignal):
            area_ratio([1.0], [0.0])

    def test_acdc(self):
        t = np.arange(50) / 5.0
        signal = 10.0 + np.sin(2 * np.pi * 1.2 * t)
        components = acdc_components(signal, 5.0)
        assert components.dc == pytest.approx(10.0, abs=0.2)
        assert components.ac > 0
        assert components.perfusion == pytest.approx(components.ac / components.dc * 100)

    def test_acdc_flat(self):
        with pytest.raises(DegenerateSignal):
            acdc_components(np.ones(30), 5.0)

    def test_constant_video_is_null(self):
        spo2 = estimate_spo2(np.full((50, 3), 120.0), 5.0)
        assert spo2.value is None
        assert spo2.confidence is Confidence.LOW
        assert spo2.error
        assert spo2.quality is None

    def test_too_few_samples(self):
        spo2 = estimate_spo2(np.ones((1, 3)), 5.0)
        assert spo2.value is None
        assert spo2.error

    def test_bounded_on_noise(self):
        rng = np.random.default_rng(7)
        rgb = 120.0 + rng.normal(0, 2.0, size=(80, 3))
        spo2 = estimate_spo2(rgb, 5.0)
        if spo2.value is not None:
            assert 70.0 <= spo2.value <= 100.0
            assert spo2.quality is not None
        else:
            assert spo2.confidence is Confidence.LOW

    @staticmethod
    def matched_channels():
        """Red and blue carry the same pulse, so synthetic IR mirrors red."""
        t = np.arange(80) / 5.0
        pulse = 120.0 + 4.0 * np.sin(2 * np.pi * 1.2 * t)
        return np.column_stack([pulse, np.full(80, 128.0), pulse])

    def test_matched_channels_in_range(self):
        spo2 = estimate_spo2(self.matched_channels(), 5.0)
        assert spo2.details["r_value"] == pytest.approx(1.0)
        assert spo2.value == pytest.approx(85.0)
        assert "warning" not in spo2.details

    @pytest.mark.parametrize("ratio, expected", [(2.6, 70.0), (0.2, 100.0)])
    def test_out_of_range_ratio_keeps_clamped_value(self, monkeypatch, ratio, expected):
        monkeypatch.setattr("features.spo2.ratio_of_ratios", lambda amplitude, area: ratio)
        spo2 = estimate_spo2(self.matched_channels(), 5.0)
        assert spo2.value == pytest.approx(expected)
        assert 70.0 <= spo2.value <= 100.0
        assert spo2.confidence is Confidence.LOW
        assert spo2.details["warning"]
        assert spo2.error is None
        assert spo2.quality.physiological == 0


class TestStress:

    @pytest.mark.parametrize("rmssd, expected", [(10, 100), (20, 80), (29.9, 80), (45, 60), (99, 40), (100, 20)])
    def test_hrv_bands(self, rmssd, expected):
        assert hrv_stress_score(rmssd) == expected

    @pytest.mark.parametrize("rate, expected", [(25, 100), (20, 80), (19, 80), (16, 60), (13, 40), (12, 20), (0, 20)])
    def test_respiratory_bands(self, rate, expected):
        assert respiratory_stress_score(rate) == expected

    def test_score_clamped(self):
        assert stress_score(5, 30) == 100

    def test_score(self):
        assert stress_score(120, 10) == 22
        assert stress_score(45, 16) == 66

    @pytest.mark.parametrize("score, level", [(0, "very low"), (19, "very low"), (20, "low"), (40, "moderate"), (60, "high"), (80, "very high")])
    def test_levels(self, score, level):
        assert stress_level(score) == level

    def test_estimate(self):
        stress = estimate_stress(45, 16)
        assert stress.value == 66
        assert stress.level == "high"
        assert stress.confidence is Confidence.MODERATE

    def test_implausible_inputs_low_confidence(self):
        assert estimate_stress(0, 0).confidence is Confidence.LOW

    def test_missing_input(self):
        stress = estimate_stress(None, 16)
        assert stress.value is None
        assert stress.level is None
        assert stress.confidence is Confidence.LOW


class TestMood:

    @pytest.mark.parametrize("avg, variability, expected", [
        (0.2, 0.3, "stressed"),
        (0.1, 0.3, "active"),
        (0.01, 0.0, "calm"),
        (0.1, 0.1, "neutral"),
    ])
    def test_classify(self, avg, variability, expected):
        assert classify_mood(avg, variability) == expected
        assert expected in MOOD_STATES

    def test_still_subject_is_calm(self):
        mood = analyze_mood(np.zeros(49))
        assert mood.primary == "calm"
        assert mood.confidence is Confidence.MODERATE

    def test_no_motion_samples(self):
        mood = analyze_mood([])
        assert mood.primary is None
        assert mood.value is None
