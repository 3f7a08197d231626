import unittest

import numpy as np
import pytest

from yin_tuner.detection.yin import (
    MAX_FREQUENCY,
    MIN_FREQUENCY,
    THRESHOLD,
    YinDetector,
    absolute_threshold,
    cumulative_mean_normalized_difference,
    difference_function,
    lag_range,
    parabolic_refine,
)
from yin_tuner.detection.smoother import FrequencySmoother
from yin_tuner.note_types import Detected, NoPitch, NoPitchReason


# (frequency, sample rate, frame length). Every frame holds at least five
# periods, which keeps the CMNDF valley under the 0.1 threshold.
SINE_CASES = [
    (30.87, 44100, 16384),  # B0, bottom of a 5 string bass
    (82.41, 44100, 8192),  # E2
    (110.0, 44100, 4096),  # A2
    (220.0, 48000, 4096),
    (440.0, 44100, 4096),
    (1000.0, 22050, 2048),
    (2000.0, 44100, 2048),
]


@pytest.mark.parametrize("frequency, sample_rate, length", SINE_CASES)
@pytest.mark.parametrize("method", ["fft", "direct"])
def test_sine_is_detected_within_one_percent(sine, frequency, sample_rate, length, method):
    detector = YinDetector(difference_method=method)

    result = detector.detect(sine(frequency, sample_rate, length), sample_rate)

    assert isinstance(result, Detected)
    assert result.frequency == pytest.approx(frequency, rel=0.01)
    assert result.confidence < THRESHOLD


@pytest.mark.parametrize("length", [1, 2, 100, 4096])
def test_silence_is_no_pitch(length):
    result = YinDetector().detect(np.zeros(length, dtype=np.float32), 44100)

    assert result == NoPitch(NoPitchReason.SILENCE)


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
def test_white_noise_is_rejected_by_the_smoother(seed):
    rng = np.random.default_rng(seed)
    noise = rng.standard_normal(4096).astype(np.float32)
    smoother = FrequencySmoother()
    smoother.update(Detected(frequency=440.0, confidence=0.01))

    result = YinDetector().detect(noise, 44100)

    if isinstance(result, Detected):
        assert np.isfinite(result.frequency)
        assert result.confidence >= FrequencySmoother.CONFIDENCE_THRESHOLD
    assert smoother.update(result) is None
    assert smoother.history == ()


@pytest.mark.parametrize("sample_rate", [8000, 16000, 22050, 44100, 48000, 96000])
def test_lag_range_is_ordered_for_long_frames(sample_rate):
    frame_length = sample_rate // 27 + 1

    tau_min, tau_max = lag_range(sample_rate, frame_length)

    assert tau_min == sample_rate // 5000
    assert tau_max == sample_rate // 27
    assert tau_min <= tau_max


class TestLagRange(unittest.TestCase):
    def test_defaults_at_44k(self):
        self.assertEqual(lag_range(44100, 4096), (8, 1633))

    def test_tau_max_clamped_to_frame(self):
        self.assertEqual(lag_range(44100, 1024), (8, 1023))

    def test_short_frame_inverts_range(self):
        tau_min, tau_max = lag_range(44100, 5)
        self.assertGreater(tau_min, tau_max)

    def test_custom_bounds(self):
        self.assertEqual(lag_range(48000, 8192, 100.0, 1000.0), (48, 480))


class TestDifferenceFunction(unittest.TestCase):
    def test_small_frame_by_hand(self):
        # d(1) = (1-2)^2 + (2-3)^2 + (3-4)^2 + 4^2 = 19
        # d(2) = (1-3)^2 + (2-4)^2 + 3^2 + 4^2 = 33
        samples = np.array([1.0, 2.0, 3.0, 4.0])
        for method in ("fft", "direct"):
            df = difference_function(samples, 2, method)
            np.testing.assert_allclose(df, [0.0, 19.0, 33.0], atol=1e-9)

    def test_fft_matches_direct(self):
        rng = np.random.default_rng(7)
        samples = rng.standard_normal(1024)
        energy = float(np.dot(samples, samples))

        fast = difference_function(samples, 500, "fft")
        slow = difference_function(samples, 500, "direct")

        np.testing.assert_allclose(fast, slow, rtol=1e-9, atol=1e-9 * energy)

    def test_writes_into_out(self):
        out = np.full(3, np.nan)
        result = difference_function(np.array([1.0, 2.0, 3.0, 4.0]), 2, out=out)
        self.assertIs(result, out)
        self.assertFalse(np.isnan(out).any())

    def test_rejects_bad_arguments(self):
        with self.assertRaises(ValueError):
            difference_function(np.ones(4), 4)
        with self.assertRaises(ValueError):
            difference_function(np.ones(4), 2, method="naive")


class TestCumulativeMeanNormalizedDifference(unittest.TestCase):
    def test_small_curve_by_hand(self):
        cmndf = cumulative_mean_normalized_difference(np.array([0.0, 19.0, 33.0]))
        np.testing.assert_allclose(cmndf, [1.0, 1.0, 66.0 / 52.0])

    def test_silence_gives_ones(self):
        cmndf = cumulative_mean_normalized_difference(np.zeros(10))
        np.testing.assert_array_equal(cmndf, np.ones(10))

    def test_leading_zeros_give_ones(self):
        cmndf = cumulative_mean_normalized_difference(np.array([0.0, 0.0, 2.0, 1.0]))
        np.testing.assert_allclose(cmndf, [1.0, 1.0, 2.0 * 2 / 2.0, 1.0 * 3 / 3.0])
        self.assertTrue(np.isfinite(cmndf).all())


class TestAbsoluteThreshold(unittest.TestCase):
    def test_descends_to_bottom_of_first_valley(self):
        cmndf = np.array([1.0, 0.9, 0.5, 0.08, 0.05, 0.02, 0.04, 0.3, 0.01, 0.5])
        # The deeper dip at 8 is a later valley and must not win
        self.assertEqual(absolute_threshold(cmndf, 0.1, 1, 9), 5)

    def test_descent_stops_before_tau_max(self):
        cmndf = np.array([1.0, 0.5, 0.09, 0.05, 0.01])
        self.assertEqual(absolute_threshold(cmndf, 0.1, 1, 4), 3)

    def test_falls_back_to_global_minimum(self):
        cmndf = np.array([1.0, 0.9, 0.5, 0.3, 0.4, 0.2, 0.15])
        # Index 6 equals tau_max and is outside the search range
        self.assertEqual(absolute_threshold(cmndf, 0.1, 1, 6), 5)

    def test_search_starts_at_tau_min(self):
        cmndf = np.array([1.0, 0.01, 0.5, 0.05, 0.5])
        self.assertEqual(absolute_threshold(cmndf, 0.1, 2, 4), 3)

    def test_empty_range_raises(self):
        with self.assertRaises(ValueError):
            absolute_threshold(np.ones(5), 0.1, 3, 3)


class TestParabolicRefine(unittest.TestCase):
    def test_recovers_parabola_vertex(self):
        x = np.arange(5, dtype=np.float64)
        cmndf = (x - 2.3) ** 2
        self.assertAlmostEqual(parabolic_refine(cmndf, 2), 2.3)

    def test_symmetric_neighbours_keep_lag(self):
        cmndf = np.array([1.0, 0.5, 0.2, 0.5, 1.0])
        self.assertEqual(parabolic_refine(cmndf, 2), 2.0)

    def test_left_boundary_uses_integer_lag(self):
        cmndf = np.array([0.1, 0.5, 0.9])
        self.assertEqual(parabolic_refine(cmndf, 0), 0.0)

    def test_right_boundary_uses_integer_lag(self):
        cmndf = np.array([0.9, 0.5, 0.1])
        self.assertEqual(parabolic_refine(cmndf, 2), 2.0)

    def test_collinear_points_use_integer_lag(self):
        self.assertEqual(parabolic_refine(np.array([0.5, 0.5, 0.5]), 1), 1.0)
        self.assertEqual(parabolic_refine(np.array([0.25, 0.5, 0.75]), 1), 1.0)


class TestYinDetector(unittest.TestCase):
    def setUp(self):
        self.detector = YinDetector()

    def test_defaults(self):
        self.assertEqual(self.detector.min_frequency, MIN_FREQUENCY)
        self.assertEqual(self.detector.max_frequency, MAX_FREQUENCY)
        self.assertEqual(self.detector.threshold, THRESHOLD)
        self.assertEqual(self.detector.difference_method, "fft")

    def test_empty_frame(self):
        result = self.detector.detect(np.array([], dtype=np.float32), 44100)
        self.assertEqual(result, NoPitch(NoPitchReason.EMPTY_FRAME))

    def test_non_finite_samples(self):
        frame = np.ones(4096, dtype=np.float32)
        frame[100] = np.nan
        result = self.detector.detect(frame, 44100)
        self.assertEqual(result, NoPitch(NoPitchReason.INVALID_SAMPLES))

    def test_frame_too_short(self):
        result = self.detector.detect(np.array([0.1, -0.2, 0.3, -0.1, 0.2]), 44100)
        self.assertEqual(result, NoPitch(NoPitchReason.FRAME_TOO_SHORT))

    def test_rms_gate(self):
        t = np.arange(4096) / 44100
        quiet = 0.001 * np.sin(2 * np.pi * 440 * t)
        detector = YinDetector(min_rms=0.01)
        self.assertEqual(detector.detect(quiet, 44100), NoPitch(NoPitchReason.SILENCE))
        self.assertIsInstance(YinDetector().detect(quiet, 44100), Detected)

    def test_dc_offset_is_not_confident(self):
        result = self.detector.detect(np.ones(4096), 44100)
        if isinstance(result, Detected):
            self.assertGreaterEqual(result.confidence, FrequencySmoother.CONFIDENCE_THRESHOLD)

    def test_low_sample_rate_never_divides_by_zero(self):
        # 4000 Hz puts tau_min at 0, where refinement has no left neighbour
        rng = np.random.default_rng(3)
        for _ in range(5):
            result = self.detector.detect(rng.standard_normal(256), 4000)
            self.assertIsInstance(result, (Detected, NoPitch))
            if isinstance(result, Detected):
                self.assertTrue(np.isfinite(result.frequency))

    def test_does_not_modify_frame(self):
        t = np.arange(4096) / 44100
        frame = np.sin(2 * np.pi * 440 * t)
        original = frame.copy()
        self.detector.detect(frame, 44100)
        np.testing.assert_array_equal(frame, original)

    def test_deterministic_across_calls_and_frame_sizes(self):
        t = np.arange(8192) / 44100
        frame = 0.3 * np.sin(2 * np.pi * 196.0 * t)
        first = self.detector.detect(frame, 44100)
        shorter = self.detector.detect(frame[:4096], 44100)
        again = self.detector.detect(frame, 44100)
        self.assertEqual(first, again)
        self.assertIsInstance(shorter, Detected)

    def test_uses_first_channel_of_stereo_input(self):
        t = np.arange(4096) / 44100
        stereo = np.column_stack(
            [np.sin(2 * np.pi * 440 * t), np.sin(2 * np.pi * 660 * t)]
        )
        result = self.detector.detect(stereo, 44100)
        self.assertAlmostEqual(result.frequency, 440.0, delta=4.4)

    def test_harmonic_tone_reports_fundamental(self):
        t = np.arange(4096) / 44100
        tone = (
            np.sin(2 * np.pi * 110 * t)
            + 0.5 * np.sin(2 * np.pi * 220 * t)
            + 0.25 * np.sin(2 * np.pi * 330 * t)
        )
        result = self.detector.detect(tone, 44100)
        self.assertIsInstance(result, Detected)
        self.assertAlmostEqual(result.frequency, 110.0, delta=1.1)

    def test_rejects_non_positive_sample_rate(self):
        with self.assertRaises(ValueError):
            self.detector.detect(np.ones(16), 0)

    def test_rejects_invalid_configuration(self):
        with self.assertRaises(ValueError):
            YinDetector(min_frequency=0)
        with self.assertRaises(ValueError):
            YinDetector(min_frequency=500, max_frequency=100)
        with self.assertRaises(ValueError):
            YinDetector(difference_method="naive")
        with self.assertRaises(ValueError):
            self.detector.threshold = 0.0
        with self.assertRaises(ValueError):
            self.detector.min_rms = -1.0


if __name__ == "__main__":
    unittest.main()
