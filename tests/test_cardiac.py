"""
Unit tests for heart rate, HRV, blood pressure and confidence scoring.
"""
import math

import numpy as np
import pytest

from features.confidence import (
    assess_signal_quality,
    bucket_confidence,
    confidence_from_series,
    overall_confidence,
    signal_to_noise,
)
from features.hr import detect_peaks, detect_troughs, estimate_heart_rate, heart_rate_from_peaks
from features.hrv import compute_hrv, compute_rmssd, estimate_hrv, inter_peak_intervals_ms
from features.types import Confidence
from model.bp_model import estimate_blood_pressure, peak_amplitudes
from rppg.filters import condition
from utils.errors import DegenerateSignal, InsufficientData

from conftest import metric


class TestPeaks:

    def test_strict_neighbours(self):
        assert list(detect_peaks([0, 2, 1, 3, 0])) == [1, 3]
        assert list(detect_troughs([2, 0, 1, -1, 2])) == [1, 3]

    def test_plateau_is_not_a_peak(self):
        assert detect_peaks([0, 1, 1, 0]).size == 0

    def test_endpoints_never_peaks(self):
        assert detect_peaks([5, 1, 5]).size == 0
        assert detect_troughs([1, 5, 1]).size == 0
        assert detect_troughs([0, 1, 1, 0]).size == 0

    def test_matches_neighbour_comparison(self):
        signal = np.random.default_rng(3).normal(size=200)
        mid = signal[1:-1]
        expected_peaks = np.flatnonzero((mid > signal[:-2]) & (mid > signal[2:])) + 1
        expected_troughs = np.flatnonzero((mid < signal[:-2]) & (mid < signal[2:])) + 1
        np.testing.assert_array_equal(detect_peaks(signal), expected_peaks)
        np.testing.assert_array_equal(detect_troughs(signal), expected_troughs)

    def test_short_series(self):
        assert detect_peaks([1, 2]).size == 0


class TestHeartRate:

    def test_formula(self):
        assert heart_rate_from_peaks(24, 20.0) == 72

    def test_zero_duration(self):
        with pytest.raises(InsufficientData):
            heart_rate_from_peaks(3, 0.0)

    def test_synthetic_pulse(self, pulse_green):
        hr = estimate_heart_rate(condition(pulse_green, 5.0), 5.0)
        assert hr.unit == "bpm"
        assert abs(hr.value - 72) <= 2
        assert hr.details["peak_count"] >= 22

    def test_flat_signal(self):
        hr = estimate_heart_rate(np.zeros(50), 5.0)
        assert hr.value == 0
        assert hr.confidence is Confidence.LOW

    def test_too_short(self):
        hr = estimate_heart_rate([1.0], 5.0)
        assert hr.value is None
        assert hr.confidence is Confidence.LOW
        assert hr.error


class TestHRV:

    def test_intervals(self):
        assert list(inter_peak_intervals_ms([0, 5, 11], 5.0)) == [1000.0, 1200.0]

    def test_regular_intervals_zero_rmssd(self):
        assert compute_rmssd([1000.0, 1000.0, 1000.0]) == 0.0

    def test_rmssd(self):
        assert compute_rmssd([1000.0, 1200.0]) == pytest.approx(200.0)
        assert compute_rmssd([800.0, 1000.0, 800.0]) == pytest.approx(200.0)

    def test_single_interval(self):
        assert compute_rmssd([1000.0]) == 0.0

    def test_summary(self):
        summary = compute_hrv([800.0, 900.0, 1000.0])
        assert summary["num_intervals"] == 3
        assert summary["sdnn_ms"] == pytest.approx(100.0)
        assert summary["pnn50"] == pytest.approx(100.0)
        assert summary["mean_rr_ms"] == pytest.approx(900.0)

    def test_fewer_than_two_peaks(self):
        hrv = estimate_hrv([4], 5.0)
        assert hrv.value == 0
        assert hrv.confidence is Confidence.LOW

    def test_irregular_peaks(self):
        hrv = estimate_hrv([0, 5, 11, 16], 5.0)
        assert hrv.value == 200
        assert hrv.unit == "ms"


class TestBloodPressure:

    def test_no_peaks(self):
        bp = estimate_blood_pressure([])
        assert bp.value is None
        assert bp.systolic is None and bp.diastolic is None
        assert bp.confidence is Confidence.LOW

    def test_formula(self):
        bp = estimate_blood_pressure([1.0, 1.0, 1.0])
        assert (bp.systolic, bp.diastolic) == (110, 90)
        assert bp.value == bp.systolic
        assert bp.confidence is Confidence.LOW

    def test_spread_raises_systolic(self):
        bp = estimate_blood_pressure([0.0, 2.0])
        assert bp.systolic == 140
        assert bp.diastolic == 90

    def test_peak_amplitudes(self):
        assert peak_amplitudes([0.0, 0.5, 0.1, 0.7], [1, 3]) == [0.5, 0.7]


class TestConfidence:

    @pytest.mark.parametrize("score, expected", [
        (2.5, Confidence.HIGH),
        (2.0, Confidence.MODERATE),
        (1.5, Confidence.MODERATE),
        (1.0, Confidence.LOW),
        (-3.0, Confidence.LOW),
        (math.nan, Confidence.LOW),
    ])
    def test_buckets(self, score, expected):
        assert bucket_confidence(score) is expected

    def test_snr_degenerate(self):
        with pytest.raises(DegenerateSignal):
            signal_to_noise([4.0, 4.0, 4.0])
        with pytest.raises(InsufficientData):
            signal_to_noise([])

    def test_degenerate_series_is_low(self):
        assert confidence_from_series([]) is Confidence.LOW
        assert confidence_from_series([3.0, 3.0]) is Confidence.LOW

    def test_signal_quality(self):
        quality = assess_signal_quality([100.0, 110.0, 90.0, 100.0])
        assert quality.quality == "good"
        assert quality.confidence is Confidence.HIGH
        assert quality.variability == pytest.approx(quality.signal_to_noise ** -1, rel=1e-3)

    def test_signal_quality_constant(self):
        quality = assess_signal_quality([128.0] * 20)
        assert quality.signal_to_noise is None
        assert quality.quality == "poor"
        assert quality.confidence is Confidence.LOW

    def test_overall_all_high(self):
        metrics = [metric(1, confidence=Confidence.HIGH)] * 6
        assert overall_confidence(metrics) == (1.0, Confidence.HIGH)

    def test_overall_mixed(self):
        metrics = [metric(1, confidence=c) for c in (Confidence.HIGH, Confidence.MODERATE, Confidence.LOW)]
        score, level = overall_confidence(metrics)
        assert score == pytest.approx((1.0 + 0.6 + 0.3) / 3)
        assert level is Confidence.MODERATE

    def test_overall_order_independent(self):
        confidences = [Confidence.HIGH, Confidence.LOW, Confidence.MODERATE,
                       Confidence.LOW, Confidence.MODERATE, Confidence.HIGH]
        forward = overall_confidence([metric(1, confidence=c) for c in confidences])
        backward = overall_confidence([metric(1, confidence=c) for c in reversed(confidences)])
        assert forward == backward

    def test_overall_empty(self):
        assert overall_confidence([]) == (0.0, Confidence.LOW)
