"""
Unit tests for the frame reducer, statistics helpers and signal conditioner.
"""
import warnings

import numpy as np
import pytest

from rppg.filters import (
    BandpassFilter,
    ButterworthBandpass,
    bandpass,
    condition,
    get_filter,
    moving_average,
    normalize,
    register_filter,
)
from rppg.frames import channel, extract_mean_rgb, reduce_frames, rgb_matrix
from utils.errors import DecodeError, DegenerateSignal, InsufficientData
from utils.stats import mean, safe_divide, std


class TestStats:
    """Tests for utils.stats."""

    def test_empty_series(self):
        assert mean([]) == 0.0
        assert std([]) == 0.0

    def test_population_std(self):
        assert std([1, 3]) == pytest.approx(1.0)

    def test_safe_divide_zero(self):
        with pytest.raises(DegenerateSignal):
            safe_divide(1.0, 0.0, "ratio")

    def test_safe_divide_nan(self):
        with pytest.raises(DegenerateSignal):
            safe_divide(1.0, float("nan"))

    def test_safe_divide(self):
        assert safe_divide(3.0, 2.0) == 1.5


class TestFrameReducer:
    """Tests for rppg.frames."""

    def test_mean_rgb(self):
        frame = np.zeros((2, 2, 3), dtype=np.uint8)
        frame[..., 0] = 10
        frame[0, 0, 1] = 40
        frame[..., 2] = 255
        assert extract_mean_rgb(frame) == (10.0, 10.0, 255.0)

    def test_alpha_channel_ignored(self):
        frame = np.full((3, 3, 4), 7, dtype=np.uint8)
        frame[..., 3] = 255
        assert extract_mean_rgb(frame) == (7.0, 7.0, 7.0)

    def test_order_preserved(self):
        frames = [np.full((4, 4, 3), i, dtype=np.uint8) for i in range(30)]
        samples = reduce_frames(frames, max_workers=4)
        assert [s.index for s in samples] == list(range(30))
        assert list(channel(samples, 1)) == [float(i) for i in range(30)]

    def test_rgb_matrix_shape(self, pulse_frames):
        matrix = rgb_matrix(reduce_frames(pulse_frames))
        assert matrix.shape == (100, 3)
        assert np.allclose(matrix[:, 0], 150.0)

    def test_single_frame_rejected(self):
        with pytest.raises(InsufficientData):
            reduce_frames([np.zeros((2, 2, 3))])

    def test_missing_frame(self):
        frames = [np.zeros((2, 2, 3)), None, np.zeros((2, 2, 3))]
        with pytest.raises(DecodeError) as excinfo:
            reduce_frames(frames)
        assert excinfo.value.frame_index == 1

    def test_grayscale_frame_rejected(self):
        with pytest.raises(DecodeError):
            reduce_frames([np.zeros((2, 2)), np.zeros((2, 2))])


class TestConditioner:
    """Tests for rppg.filters."""

    def test_normalize(self):
        out = normalize([1.0, 2.0, 3.0])
        assert out.mean() == pytest.approx(0.0)
        assert out.std() == pytest.approx(1.0)

    def test_normalize_constant_is_zero(self):
        out = normalize([5.0] * 10)
        assert np.all(out == 0.0)
        assert np.all(np.isfinite(out))

    def test_normalize_empty(self):
        assert normalize([]).size == 0

    def test_moving_average_growing_window(self):
        out = moving_average([1, 2, 3, 4, 5, 6], 5)
        assert np.allclose(out, [1.0, 1.5, 2.0, 2.5, 3.0, 4.0])

    def test_moving_average_rejects_bad_window(self):
        with pytest.raises(ValueError):
            moving_average([1, 2, 3], 0)

    def test_default_bandpass_is_moving_average(self):
        signal = np.arange(10, dtype=float)
        assert np.allclose(bandpass(signal, 0.5, 4.0, 5.0, 4), moving_average(signal, 5))

    def test_condition_preserves_length(self, pulse_green):
        assert condition(pulse_green, 5.0).shape == pulse_green.shape

    @pytest.mark.parametrize("fs, low, high, order", [(0, 0.5, 4.0, 4), (5, 0, 4.0, 4), (5, 3.0, 2.0, 4), (5, 0.5, 4.0, 0)])
    def test_invalid_arguments(self, fs, low, high, order):
        with pytest.raises(ValueError):
            bandpass([1.0, 2.0, 3.0], low, high, fs, order)

    def test_unknown_method(self):
        with pytest.raises(ValueError):
            get_filter("kalman")

    def test_butterworth_clamps_high_cutoff(self):
        with pytest.warns(UserWarning):
            ButterworthBandpass.design(0.5, 4.0, 5.0, 4)

    def test_butterworth_no_warning_below_nyquist(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            ButterworthBandpass.design(0.5, 4.0, 30.0, 4)

    def test_butterworth_short_signal(self):
        with pytest.raises(InsufficientData):
            bandpass(np.ones(10), 0.5, 4.0, 30.0, 4, method="butterworth")

    def test_butterworth_keeps_cardiac_tone(self):
        fs = 30.0
        t = np.arange(300) / fs
        pulse = np.sin(2 * np.pi * 1.2 * t)
        drift = 3.0 * t / t[-1]
        out = bandpass(pulse + drift, 0.5, 4.0, fs, 4, method="butterworth")
        # Linear drift removed, 1.2 Hz kept
        assert abs(out[50:-50].mean()) < 0.1
        assert np.corrcoef(out[50:-50], pulse[50:-50])[0, 1] > 0.95

    def test_register_custom_filter(self):
        class Identity(BandpassFilter):
            name = "identity"

            def apply(self, signal, low_freq, high_freq, sampling_rate, order):
                return signal

        register_filter("identity", Identity)
        signal = np.array([3.0, 1.0, 2.0])
        assert np.array_equal(bandpass(signal, 0.5, 4.0, 5.0, 4, method="identity"), signal)
