import sys
import os
import json
import shutil
import tempfile
import unittest
import numpy as np
import matplotlib

matplotlib.use("Agg")

sys.path.append(os.path.join(os.path.dirname(__file__), "../"))

from amazonia_esn.ensemble.predictor import EnsemblePrediction
from amazonia_esn.errors import InsufficientSeriesLengthError
from amazonia_esn.metrics import json_ready
from benchmarks.metrics.convergence import best_so_far, compute_search_convergence, plot_search_convergence
from benchmarks.metrics.error_analysis import plot_member_errors, plot_prediction, summarize_prediction
from benchmarks.metrics.onset_regression import onset_errors, plot_onset_comparison, predict_onsets


def yearly_ramp(n_years, crossing=290.5, slope=1 / 190.0):
    day_of_year = np.arange((n_years + 1) * 365) % 365 + 1
    return (day_of_year - crossing) * slope + 1.0


class TestOnsetRegression(unittest.TestCase):

    def test_ramp_crossing(self):
        onsets = predict_onsets(yearly_ramp(20))
        self.assertEqual(onsets.shape, (20,))
        # first candidate day on or past the crossing is 291, reported as 292
        np.testing.assert_array_equal(onsets, np.full(20, 292.0))

    def test_flat_prediction_never_reaches_one(self):
        onsets = predict_onsets(np.full(21 * 365, 0.2), n_years=20)
        self.assertTrue(np.all(np.isnan(onsets)))
        report = onset_errors(onsets, np.full(20, 290.0))
        self.assertEqual(report["n_missing"], 20)
        self.assertTrue(np.isnan(report["rmse"]))

    def test_prediction_too_short(self):
        with self.assertRaises(InsufficientSeriesLengthError):
            predict_onsets(np.zeros(365 * 5), n_years=20)

    def test_onset_errors(self):
        report = onset_errors([292, 288, np.nan], [290, 290, 300])
        self.assertAlmostEqual(report["rmse"], 2.0)
        self.assertAlmostEqual(report["mean_bias"], 0.0)
        self.assertEqual(report["n_missing"], 1)


class TestSearchConvergence(unittest.TestCase):

    def test_best_so_far(self):
        curve = best_so_far([np.inf, 5.0, 7.0, 3.0, 4.0])
        np.testing.assert_array_equal(curve, [np.inf, 5.0, 5.0, 3.0, 3.0])
        self.assertEqual(best_so_far([]).size, 0)

    def test_convergence_summary(self):
        summary = compute_search_convergence([np.inf, 5.0, 3.0, 4.0])
        self.assertEqual(summary["n_failed"], 1)
        self.assertEqual(summary["best"], 3.0)
        self.assertEqual(summary["trial_of_best"], 3)
        failed = compute_search_convergence([np.inf, np.inf])
        self.assertEqual(failed["trial_of_best"], -1)


class TestJsonExport(unittest.TestCase):

    def test_non_finite_values_become_null(self):
        summary = {"search": compute_search_convergence([np.inf, np.inf]),
                   "onsets": onset_errors([np.nan, np.nan], [290, 291]),
                   "predicted": np.array([291.0, np.nan]),
                   "count": np.int64(3)}
        exported = json.loads(json.dumps(json_ready(summary), allow_nan=False))
        self.assertIsNone(exported["search"]["best"])
        self.assertIsNone(exported["onsets"]["rmse"])
        self.assertEqual(exported["predicted"], [291.0, None])
        self.assertEqual(exported["count"], 3)


class TestPlots(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        rng = np.random.default_rng(0)
        self.actual = np.sin(np.arange(100) / 10.0)
        members = self.actual + rng.normal(0, 0.1, size=(5, 100))
        self.prediction = EnsemblePrediction(mean=members.mean(axis=0), members=members,
                                             std=members.std(axis=0))

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def test_summary(self):
        summary = summarize_prediction(self.prediction, self.actual)
        self.assertEqual(summary["n_members"], 5)
        self.assertLessEqual(summary["ensemble_sse"], summary["member_sse"]["max"])

    def test_plots_are_written(self):
        paths = [os.path.join(self.tmpdir, name) for name in ("pred.png", "errors.png", "search.png", "onset.png")]
        plot_prediction(self.actual, self.prediction, paths[0])
        plot_member_errors([1.0, 2.0, 1.5], 0.9, paths[1])
        plot_search_convergence([np.inf, 3.0, 2.0], paths[2])
        plot_onset_comparison(np.arange(2000, 2005), [290, 291, np.nan, 288, 295], [289, 292, 290, 290, 293],
                              paths[3])
        for path in paths:
            self.assertTrue(os.path.getsize(path) > 0)


if __name__ == '__main__':
    unittest.main()
