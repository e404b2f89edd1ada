import sys
import os
import shutil
import tempfile
import unittest
import numpy as np

sys.path.append(os.path.join(os.path.dirname(__file__), "../"))

from amazonia_esn.config import (HyperparameterSet, PipelineConfig, SearchGrid, config_from_dict,
                                 config_to_dict, load_config)

CONFIG_YAML = """
data:
  data_dir: /data
  window: 7
split:
  train_days: 100
  val_days: 50
grid:
  reservoir_sizes: [64, 128]
  spectral_radii: [0.9]
  sparsities: [0.1]
  ridge_values: [0.0, 1.0e-8]
  input_scales: [0.1, [0.1, 0.5]]
search:
  num_trials: 4
  seed: 7
ensemble:
  n_members: 12
  nan_aware: true
final_params:
  reservoir_size: 64
  spectral_radius: 0.9
  sparsity: 0.1
  input_scale: 0.1
  ridge_param: 1.0e-8
run_search: false
"""


class TestConfig(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def test_load_yaml(self):
        path = os.path.join(self.tmpdir, "config.yaml")
        with open(path, "w") as f:
            f.write(CONFIG_YAML)
        cfg = load_config(path)
        self.assertEqual(cfg.data.data_dir, "/data")
        self.assertEqual(cfg.data.window, 7)
        self.assertEqual(cfg.data.first_year, 1979)
        self.assertEqual(cfg.split.train_days, 100)
        self.assertEqual(cfg.grid.size, 8)
        self.assertEqual(cfg.search.seed, 7)
        self.assertEqual(cfg.search.members_per_trial, 10)
        self.assertTrue(cfg.ensemble.nan_aware)
        self.assertEqual(cfg.final_params, HyperparameterSet(64, 0.9, 0.1, 0.1, 1e-8))
        self.assertFalse(cfg.run_search)

    def test_defaults(self):
        cfg = config_from_dict({})
        self.assertEqual(cfg.grid.size, 3 * 3 * 2 * 3)
        self.assertEqual(cfg.ensemble.n_members, 100)
        self.assertEqual(cfg.search.num_trials, 50)
        self.assertTrue(cfg.run_search)

    def test_to_dict_round_trip(self):
        cfg = PipelineConfig()
        self.assertEqual(config_from_dict(config_to_dict(cfg)), cfg)

    def test_grid_combinations(self):
        grid = SearchGrid(reservoir_sizes=[10, 20], spectral_radii=[0.9], sparsities=[0.1, 0.2],
                          ridge_values=[0.0], input_scales=[(0.1, 0.2)])
        combos = grid.combinations()
        self.assertEqual(len(combos), grid.size)
        self.assertEqual(len(set(combos)), 4)
        self.assertEqual(combos[0].input_scale, (0.1, 0.2))

    def test_grid_sampling_is_uniform(self):
        grid = SearchGrid(reservoir_sizes=[10, 20], spectral_radii=[0.8, 1.0], sparsities=[0.1],
                          ridge_values=[0.0], input_scales=[0.1])
        rng = np.random.default_rng(0)
        draws = [grid.sample(rng) for _ in range(4000)]
        combos = grid.combinations()
        counts = [sum(d == c for d in draws) for c in combos]
        self.assertEqual(sum(counts), 4000)
        for count in counts:
            self.assertAlmostEqual(count / 4000, 0.25, delta=0.04)

    def test_empty_grid_axis(self):
        with self.assertRaises(ValueError):
            SearchGrid(reservoir_sizes=[])

    def test_hyperparameter_validation(self):
        for args in [(0, 0.9, 0.1, 0.1, 0.0), (10, -1.0, 0.1, 0.1, 0.0), (10, 0.9, 0.0, 0.1, 0.0),
                     (10, 0.9, 0.1, 0.1, -1e-8), (10.5, 0.9, 0.1, 0.1, 0.0)]:
            with self.assertRaises(ValueError):
                HyperparameterSet(*args)

    def test_input_scale_list_becomes_tuple(self):
        params = HyperparameterSet(10, 0.9, 0.1, [0.1, 0.2], 0.0)
        self.assertEqual(params.input_scale, (0.1, 0.2))
        self.assertEqual(params.as_dict()["input_scale"], [0.1, 0.2])
        hash(params)


if __name__ == '__main__':
    unittest.main()
