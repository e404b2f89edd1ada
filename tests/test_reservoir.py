import sys
import os
import unittest
import numpy as np

sys.path.append(os.path.join(os.path.dirname(__file__), "../"))

from amazonia_esn.config import HyperparameterSet
from amazonia_esn.core.reservoir import ReservoirModel, generate_esn, generate_reservoir
from amazonia_esn.errors import DegenerateReservoirError, DimensionMismatchError
from amazonia_esn.readout.ridge import train_readout


def largest_eigenvalue(model):
    return np.max(np.abs(np.linalg.eigvals(model.W_res.toarray())))


class TestReservoirGenerator(unittest.TestCase):

    def test_spectral_radius_is_exact(self):
        for n, radius, sparsity, seed in [(50, 0.8, 0.1, 1), (200, 1.2, 0.03, 2), (256, 0.9, 0.05, 3)]:
            model = generate_reservoir(2, n, radius, sparsity, 0.1, seed=seed)
            np.testing.assert_allclose(largest_eigenvalue(model), radius, rtol=1e-6)
            np.testing.assert_allclose(model.spectral_radius(), radius, rtol=1e-6)

    def test_sparsity_fraction(self):
        for sparsity in (0.03, 0.05, 0.5, 1.0):
            model = generate_reservoir(2, 500, 1.0, sparsity, 0.1, seed=7)
            self.assertAlmostEqual(model.density(), sparsity, delta=0.2 * sparsity)

    def test_entries_take_both_signs(self):
        W = generate_reservoir(1, 100, 1.0, 0.2, 0.1, seed=3).W_res.toarray()
        self.assertGreater(np.sum(W > 0), 0)
        self.assertGreater(np.sum(W < 0), 0)

    def test_degenerate_reservoir(self):
        with self.assertRaises(DegenerateReservoirError):
            generate_reservoir(1, 2, 0.9, 1e-12, 0.1, seed=0)

    def test_same_seed_same_reservoir(self):
        a = generate_reservoir(2, 60, 0.9, 0.1, 0.1, seed=11)
        b = generate_reservoir(2, 60, 0.9, 0.1, 0.1, seed=11)
        c = generate_reservoir(2, 60, 0.9, 0.1, 0.1, seed=12)
        self.assertEqual(a.fingerprint, b.fingerprint)
        np.testing.assert_array_equal(a.W_in, b.W_in)
        self.assertNotEqual(a.fingerprint, c.fingerprint)

    def test_weighted_input_layer(self):
        model = generate_reservoir(2, 11, 0.9, 0.5, (0.1, 2.0), seed=5)
        W_in = model.W_in
        self.assertEqual(W_in.shape, (11, 2))
        # every row is driven by exactly one feature
        self.assertTrue(np.all(np.count_nonzero(W_in, axis=1) == 1))
        first, second = W_in[:6, 0], W_in[6:, 1]
        self.assertTrue(np.all(W_in[:6, 1] == 0))
        self.assertTrue(np.all(W_in[6:, 0] == 0))
        self.assertLessEqual(np.max(np.abs(first)), 0.1)
        self.assertGreater(np.max(np.abs(second)), 0.1)
        self.assertLessEqual(np.max(np.abs(second)), 2.0)

    def test_dense_input_layer(self):
        model = generate_reservoir(3, 40, 0.9, 0.1, 0.5, seed=5, input_layer="dense")
        self.assertEqual(np.count_nonzero(model.W_in), 120)
        self.assertLessEqual(np.max(np.abs(model.W_in)), 0.5)

    def test_unknown_input_layer(self):
        with self.assertRaises(ValueError):
            generate_reservoir(1, 10, 0.9, 0.5, 0.1, seed=1, input_layer="sparse")

    def test_input_scale_length_mismatch(self):
        with self.assertRaises(DimensionMismatchError):
            generate_reservoir(2, 10, 0.9, 0.5, (0.1, 0.2, 0.3), seed=1)

    def test_invalid_hyperparameters(self):
        for args in [(0, 0.9, 0.1), (10, 0.0, 0.1), (10, 0.9, 0.0), (10, 0.9, 1.5)]:
            with self.assertRaises(ValueError):
                generate_reservoir(1, *args, 0.1, seed=1)

    def test_model_is_immutable(self):
        model = generate_reservoir(2, 20, 0.9, 0.2, 0.1, seed=1)
        with self.assertRaises(ValueError):
            model.W_in[0, 0] = 1.0
        with self.assertRaises(ValueError):
            model.W_res.data[0] = 1.0
        np.testing.assert_allclose(model.spectral_radius(), 0.9, rtol=1e-6)


class TestReservoirModel(unittest.TestCase):

    def setUp(self):
        self.model = generate_reservoir(2, 30, 0.9, 0.2, 0.5, seed=21)
        self.inputs = np.random.default_rng(0).normal(size=(40, 2))

    def test_run_matches_update_recursion(self):
        states = self.model.run(self.inputs)
        state = np.zeros(30)
        for t, u in enumerate(self.inputs):
            state = np.tanh(self.model.W_res.toarray() @ state + self.model.W_in @ u)
            np.testing.assert_allclose(states[t], state, rtol=1e-12, atol=1e-12)

    def test_run_is_deterministic(self):
        np.testing.assert_array_equal(self.model.run(self.inputs), self.model.run(self.inputs))

    def test_states_are_bounded(self):
        states = self.model.run(self.inputs * 100)
        self.assertTrue(np.all(np.abs(states) <= 1.0))

    def test_warm_state(self):
        np.testing.assert_array_equal(self.model.warm_state(None), np.zeros(30))
        np.testing.assert_array_equal(self.model.warm_state(self.inputs[:10]), self.model.run(self.inputs[:10])[-1])

    def test_wrong_feature_count(self):
        with self.assertRaises(DimensionMismatchError):
            self.model.run(np.zeros((5, 3)))

    def test_single_feature_series(self):
        model = generate_reservoir(1, 10, 0.9, 0.3, 0.1, seed=1)
        self.assertEqual(model.run(np.sin(np.arange(25))).shape, (25, 10))

    def test_generate_esn_binds_signal(self):
        params = HyperparameterSet(25, 0.9, 0.2, 0.1, 1e-8)
        model = generate_esn(self.inputs, params, seed=3)
        self.assertIsInstance(model, ReservoirModel)
        self.assertEqual(model.n_inputs, 2)
        self.assertEqual(model.n_reservoir, 25)
        np.testing.assert_array_equal(model.input_signal, self.inputs)
        unbound = generate_reservoir(2, 25, 0.9, 0.2, 0.1, seed=3, ridge_param=1e-8)
        self.assertEqual(model.fingerprint, unbound.fingerprint)
        self.assertEqual(model.seed, 3)
        with self.assertRaises(ValueError):
            model.W_res.data[0] = 1.0

    def test_predict_from_initial_state(self):
        targets = np.random.default_rng(1).normal(size=40)
        weights = train_readout(self.model, self.inputs, targets, 1e-6)
        start = self.model.run(self.inputs[:15])[-1]
        np.testing.assert_array_equal(self.model.predict(self.inputs[15:], weights, initial_state=start),
                                      self.model.predict(self.inputs[15:], weights, warmup_input=self.inputs[:15]))
        with self.assertRaises(ValueError):
            self.model.predict(self.inputs, weights, warmup_input=self.inputs[:5], initial_state=start)


if __name__ == '__main__':
    unittest.main()
