import math
import unittest

from dhwani.detection.smoother import FrequencySmoother
from dhwani.errors import ConfigurationError


class TestFrequencySmoother(unittest.TestCase):
    def setUp(self):
        self.smoother = FrequencySmoother(capacity=5, tolerance_hz=5.0)

    def test_steady_input_passes_through(self):
        for _ in range(8):
            self.assertAlmostEqual(self.smoother.push(241.0), 241.0)

    def test_small_spread_is_averaged(self):
        for f in (200.0, 202.0):
            self.smoother.push(f)
        self.assertAlmostEqual(self.smoother.push(204.0), 202.0)

    def test_outlier_falls_back_to_median(self):
        for _ in range(4):
            self.smoother.push(200.0)
        # mean 240, median 200
        self.assertEqual(self.smoother.push(400.0), 200.0)

    def test_even_window_uses_upper_median(self):
        self.smoother.push(100.0)
        self.assertEqual(self.smoother.push(120.0), 120.0)

        smoother = FrequencySmoother(capacity=5, tolerance_hz=5.0)
        smoother.push(100.0)
        # |mean - median| == tolerance is not an outlier
        self.assertEqual(smoother.push(110.0), 105.0)

    def test_oldest_sample_is_evicted(self):
        for f in range(1, 8):
            self.smoother.push(float(100 + f))
        self.assertEqual(self.smoother.window, (103.0, 104.0, 105.0, 106.0, 107.0))
        self.assertEqual(self.smoother.capacity, 5)

    def test_missing_sample_leaves_window_alone(self):
        self.smoother.push(240.0)
        self.smoother.push(242.0)
        self.assertIsNone(self.smoother.push(None))
        self.assertEqual(self.smoother.window, (240.0, 242.0))

    def test_invalid_samples_are_ignored(self):
        self.smoother.push(240.0)
        for bad in (0.0, -10.0, math.nan, math.inf):
            self.assertIsNone(self.smoother.push(bad))
        self.assertEqual(self.smoother.window, (240.0,))

    def test_clear(self):
        self.smoother.push(240.0)
        self.smoother.clear()
        self.assertEqual(self.smoother.window, ())

    def test_validation(self):
        with self.assertRaises(ConfigurationError):
            FrequencySmoother(capacity=0)
        with self.assertRaises(ConfigurationError):
            FrequencySmoother(tolerance_hz=-1.0)


if __name__ == "__main__":
    unittest.main()
