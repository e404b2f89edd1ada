import sys
import os
import unittest
import numpy as np

sys.path.append(os.path.join(os.path.dirname(__file__), "../"))

from amazonia_esn.data.features import (align_features, days_in_year, proximity_signal, trailing_mean,
                                        yearly_cycle)
from amazonia_esn.errors import DimensionMismatchError, InsufficientSeriesLengthError


class TestProximitySignal(unittest.TestCase):

    def setUp(self):
        # 1979..1982, 1980 is a leap year
        self.ws = np.array([290, 300, 285, 295])
        self.ds = np.array([110, 120, 115, 105])
        self.signal = proximity_signal(self.ws, self.ds, first_year=1979)

    def test_one_value_per_day(self):
        total = sum(days_in_year(y) for y in range(1979, 1983))
        self.assertEqual(len(self.signal), total)

    def test_values_stay_in_unit_interval(self):
        self.assertTrue(np.all(self.signal >= 0))
        self.assertTrue(np.all(self.signal <= 1))

    def test_dry_season_rises_to_one_at_wet_onset(self):
        s = self.signal
        # day-of-year d of the first year sits at index d - 1
        self.assertEqual(s[self.ds[0] - 1], 0.0)
        self.assertAlmostEqual(s[self.ws[0] - 1], 1.0)
        self.assertTrue(np.all(np.diff(s[self.ds[0]:self.ws[0]]) > 0))

    def test_wet_season_falls_to_zero_at_next_dry_onset(self):
        s = self.signal
        next_ds = days_in_year(1979) + self.ds[1]
        self.assertAlmostEqual(s[next_ds - 1], 0.0)
        self.assertTrue(np.all(np.diff(s[self.ws[0]:next_ds]) < 0))

    def test_leap_year_offsets(self):
        s = self.signal
        ws_1981 = days_in_year(1979) + days_in_year(1980) + self.ws[2]
        self.assertAlmostEqual(s[ws_1981 - 1], 1.0)

    def test_wet_onset_must_follow_dry_onset(self):
        with self.assertRaises(ValueError):
            proximity_signal([100, 300], [110, 120])

    def test_mismatched_onset_series(self):
        with self.assertRaises(DimensionMismatchError):
            proximity_signal([290, 300], [110])


class TestFeatureAlignment(unittest.TestCase):

    def test_trailing_mean(self):
        series = np.arange(15.0)
        means = trailing_mean(series, 10)
        self.assertEqual(len(means), 5)
        self.assertAlmostEqual(means[0], np.mean(series[:10]))
        self.assertAlmostEqual(means[-1], np.mean(series[4:14]))
        with self.assertRaises(InsufficientSeriesLengthError):
            trailing_mean(series[:10], 10)

    def test_yearly_cycle(self):
        cycle = yearly_cycle(800)
        self.assertAlmostEqual(cycle[152], np.cos(2 * np.pi * (-0.25) / 365.25))
        self.assertAlmostEqual(np.max(np.abs(cycle)), 1.0, places=3)

    def test_alignment_offsets_target_by_window(self):
        n, window = 60, 10
        precipitation = np.arange(n, dtype=float)
        proximity = np.linspace(0, 1, n)
        features, target = align_features(precipitation, proximity, window=window)
        self.assertEqual(features.shape, (n - window, 2))
        self.assertEqual(len(target), n - window)
        np.testing.assert_array_equal(target, proximity[window:])
        for t in (0, 17, n - window - 1):
            self.assertAlmostEqual(features[t, 0], np.mean(precipitation[t:t + window]))
            self.assertAlmostEqual(features[t, 1], yearly_cycle(n)[t + window])

    def test_alignment_length_mismatch(self):
        with self.assertRaises(DimensionMismatchError):
            align_features(np.zeros(30), np.zeros(31))


if __name__ == '__main__':
    unittest.main()
