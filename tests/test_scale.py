import math
import unittest

import numpy as np

from dhwani.errors import ConfigurationError
from dhwani.scale import (
    SWARS,
    SWAR_NAMES,
    ScaleTable,
    cents_difference,
    octave_name,
    swar_index,
)


class TestSwarDefinitions(unittest.TestCase):
    def test_canonical_order(self):
        self.assertEqual(
            SWAR_NAMES,
            ("Sa", "re", "Re", "ga", "Ga", "Ma", "Ma#", "Pa", "dha", "Dha", "ni", "Ni"),
        )

    def test_ratios_increase_within_one_octave(self):
        ratios = [s.ratio for s in SWARS]
        self.assertEqual(ratios[0], 1)
        for lower, upper in zip(ratios, ratios[1:]):
            self.assertLess(lower, upper)
        self.assertLess(ratios[-1], 2 * ratios[0])

    def test_swar_index(self):
        self.assertEqual(swar_index("Sa"), 0)
        self.assertEqual(swar_index("Ma#"), 6)
        with self.assertRaises(ConfigurationError):
            swar_index("Xa")


class TestScaleTable(unittest.TestCase):
    def setUp(self):
        self.table = ScaleTable(240.0)

    def test_madhya_saptak_for_sa_240(self):
        row = self.table[0]
        self.assertEqual(row["Sa"], 240.0)
        self.assertAlmostEqual(row["re"], 256.0)
        self.assertAlmostEqual(row["Re"], 270.0)
        self.assertAlmostEqual(row["Ga"], 300.0)
        self.assertAlmostEqual(row["Ma"], 320.0)
        self.assertAlmostEqual(row["Ma#"], 337.5)
        self.assertAlmostEqual(row["Pa"], 360.0)
        self.assertAlmostEqual(row["Dha"], 400.0)
        self.assertAlmostEqual(row["Ni"], 450.0)

    def test_octave_scaling_is_exact(self):
        for octave in self.table.octaves:
            for name in SWAR_NAMES:
                self.assertEqual(self.table[octave][name], self.table[0][name] * 2**octave)

    def test_frequencies_strictly_increase(self):
        frequencies = [f for _, _, f in self.table]
        self.assertEqual(len(frequencies), 48)
        self.assertEqual(len(self.table), 48)
        for lower, upper in zip(frequencies, frequencies[1:]):
            self.assertLess(lower, upper)

    def test_frequency_lookup(self):
        self.assertEqual(self.table.frequency(-1, "Sa"), 120.0)
        self.assertEqual(self.table.frequency(2, "Sa"), 960.0)
        self.assertAlmostEqual(self.table.frequency(1, "Pa"), 720.0)

    def test_table_is_immutable(self):
        with self.assertRaises(ValueError):
            self.table.frequencies[0, 0] = 1.0
        with self.assertRaises(TypeError):
            self.table[0]["Sa"] = 1.0

    def test_unknown_octave(self):
        with self.assertRaises(ConfigurationError):
            self.table[5]
        with self.assertRaises(ConfigurationError):
            self.table.frequency(3, "Sa")

    def test_custom_octaves(self):
        table = ScaleTable(220.0, octaves=(0, 1))
        self.assertEqual(table.octaves, (0, 1))
        self.assertEqual(table.frequencies.shape, (2, 12))
        self.assertEqual(table[1]["Sa"], 440.0)

    def test_invalid_construction(self):
        for tonic in (0, -240.0, math.nan, math.inf):
            with self.assertRaises(ConfigurationError):
                ScaleTable(tonic)
        with self.assertRaises(ConfigurationError):
            ScaleTable(240.0, octaves=())
        with self.assertRaises(ConfigurationError):
            ScaleTable(240.0, octaves=(1, 0))
        with self.assertRaises(ConfigurationError):
            ScaleTable(240.0, octaves=(0, 0, 1))

    def test_numpy_scalar_inputs(self):
        table = ScaleTable(np.float32(240.0), octaves=(np.int64(0), np.int64(1)))
        self.assertEqual(table.tonic, 240.0)
        self.assertEqual(table.octaves, (0, 1))
        self.assertIs(type(table.octaves[0]), int)
        self.assertEqual(table.frequency(1, "Pa"), 720.0)
        self.assertEqual(ScaleTable(np.int64(220)).frequency(0, "Pa"), 330.0)
        with self.assertRaises(ConfigurationError):
            ScaleTable(True)

    def test_configuration_error_is_a_value_error(self):
        with self.assertRaises(ValueError):
            ScaleTable(-1.0)


class TestHelpers(unittest.TestCase):
    def test_cents_difference(self):
        self.assertAlmostEqual(cents_difference(480.0, 240.0), 1200.0)
        self.assertAlmostEqual(cents_difference(240.0, 480.0), -1200.0)
        self.assertAlmostEqual(cents_difference(241.0, 240.0), 7.2, places=1)
        self.assertEqual(cents_difference(300.0, 300.0), 0.0)

    def test_octave_names(self):
        self.assertEqual(octave_name(-1), "Mandra")
        self.assertEqual(octave_name(0), "Madhya")
        self.assertEqual(octave_name(1), "Taar")
        self.assertEqual(octave_name(2), "Ati Taar")
        self.assertEqual(octave_name(7), "Unknown")


if __name__ == "__main__":
    unittest.main()
