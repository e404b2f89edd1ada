# amazonia_esn/core/reservoir.py
import hashlib
import logging
from typing import Optional, Sequence, Union

import numpy as np
from scipy import sparse

from amazonia_esn.config import HyperparameterSet, InputScale
from amazonia_esn.errors import DegenerateReservoirError, DimensionMismatchError

logger = logging.getLogger(__name__)

INPUT_LAYERS = ("weighted", "dense")


def as_feature_matrix(inputs, name: str = "inputs") -> np.ndarray:
    """Return inputs as a float (T, K) array; 1-D series become a single feature."""
    arr = np.asarray(inputs, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    if arr.ndim != 2:
        raise DimensionMismatchError(f"{name} must be 1-D or 2-D (time, features), got shape {arr.shape}")
    return arr


class ReservoirModel:
    """A fixed random reservoir and input projection driven by tanh dynamics.

    state[t] = tanh(W_res @ state[t-1] + W_in @ u[t]), state[-1] = 0.

    The model holds no evolving state: every run starts from a caller-given
    initial state (zero by default), so one instance can be shared across
    processes and reused for training and prediction.
    """

    def __init__(self, W_res: sparse.csr_matrix, W_in: np.ndarray, params: HyperparameterSet,
                 input_signal: Optional[np.ndarray] = None, seed: Optional[int] = None):
        W_res = sparse.csr_matrix(W_res, dtype=float)
        W_in = np.array(W_in, dtype=float)
        if W_res.shape[0] != W_res.shape[1]:
            raise DimensionMismatchError(f"Reservoir matrix is not square: {W_res.shape}")
        if W_in.ndim != 2 or W_in.shape[0] != W_res.shape[0]:
            raise DimensionMismatchError(
                f"Input projection shape {W_in.shape} is not compatible with reservoir {W_res.shape}"
            )

        W_in.setflags(write=False)
        W_res.data.setflags(write=False)

        self.W_res = W_res
        self.W_in = W_in
        self.params = params
        self.seed = seed
        self.n_reservoir = W_res.shape[0]
        self.n_inputs = W_in.shape[1]
        self.input_signal = None if input_signal is None else self._check_inputs(input_signal, "input_signal")
        self.fingerprint = self._fingerprint()

    def _fingerprint(self) -> str:
        h = hashlib.sha1()
        h.update(np.ascontiguousarray(self.W_res.data, dtype=np.float64).tobytes())
        h.update(np.ascontiguousarray(self.W_res.indices, dtype=np.int64).tobytes())
        h.update(np.ascontiguousarray(self.W_res.indptr, dtype=np.int64).tobytes())
        h.update(np.ascontiguousarray(self.W_in, dtype=np.float64).tobytes())
        return h.hexdigest()

    def _check_inputs(self, inputs, name: str) -> np.ndarray:
        arr = as_feature_matrix(inputs, name)
        if arr.shape[1] != self.n_inputs:
            raise DimensionMismatchError(
                f"{name} has {arr.shape[1]} features but the reservoir expects {self.n_inputs}"
            )
        return arr

    def zero_state(self) -> np.ndarray:
        return np.zeros(self.n_reservoir)

    def update(self, state: np.ndarray, input_vector: np.ndarray) -> np.ndarray:
        input_part = self.W_in @ input_vector
        reservoir_part = self.W_res @ state
        return np.tanh(input_part + reservoir_part)

    def run(self, inputs, initial_state: Optional[np.ndarray] = None) -> np.ndarray:
        """Drive the reservoir over inputs and return the (T, n_reservoir) state matrix."""
        u = self._check_inputs(inputs, "inputs")
        state = self.zero_state() if initial_state is None else np.array(initial_state, dtype=float)
        states = np.empty((u.shape[0], self.n_reservoir))
        for t in range(u.shape[0]):
            state = self.update(state, u[t])
            states[t] = state
        return states

    def warm_state(self, warmup_input=None) -> np.ndarray:
        """State reached from zero after driving warmup_input; zero when there is none."""
        if warmup_input is None or len(warmup_input) == 0:
            return self.zero_state()
        return self.run(warmup_input)[-1]

    def predict(self, inputs, output_weights, warmup_input=None, initial_state=None) -> np.ndarray:
        """Apply output weights fitted on this reservoir to the states driven by inputs.

        The run starts from initial_state when given, otherwise from the state
        reached after warmup_input (zero without one).
        Returns shape (T,) for a single target, (T, m) otherwise.
        """
        self.check_weights(output_weights)
        if initial_state is not None and warmup_input is not None:
            raise ValueError("Pass either warmup_input or initial_state, not both")
        if initial_state is None:
            initial_state = self.warm_state(warmup_input)
        states = self.run(inputs, initial_state=initial_state)
        out = states @ output_weights.matrix.T
        return out[:, 0] if out.shape[1] == 1 else out

    def check_weights(self, output_weights):
        if output_weights.fingerprint != self.fingerprint:
            raise DimensionMismatchError(
                f"Output weights were fitted on reservoir {output_weights.fingerprint[:10]}, "
                f"not on this reservoir {self.fingerprint[:10]}"
            )

    def spectral_radius(self) -> float:
        return float(np.max(np.abs(np.linalg.eigvals(self.W_res.toarray()))))

    def density(self) -> float:
        return self.W_res.nnz / float(self.n_reservoir ** 2)

    def __repr__(self):
        return (f"ReservoirModel(n_reservoir={self.n_reservoir}, n_inputs={self.n_inputs}, "
                f"seed={self.seed}, fingerprint={self.fingerprint[:10]})")


def _initialize_reservoir(n: int, spectral_radius: float, sparsity: float,
                          rng: np.random.Generator) -> sparse.csr_matrix:
    mask = rng.random((n, n)) < sparsity
    W = rng.uniform(-1.0, 1.0, size=(n, n)) * mask
    eigs = np.linalg.eigvals(W)
    max_eig = np.max(np.abs(eigs))
    if max_eig <= np.finfo(float).eps:
        raise DegenerateReservoirError(
            f"Reservoir matrix has zero spectral radius (n={n}, sparsity={sparsity}, nonzeros={int(mask.sum())})"
        )
    W *= spectral_radius / max_eig
    return sparse.csr_matrix(W)


def _per_feature_scales(input_scale: InputScale, n_inputs: int) -> np.ndarray:
    scales = np.atleast_1d(np.asarray(input_scale, dtype=float))
    if scales.size == 1:
        return np.full(n_inputs, scales[0])
    if scales.size != n_inputs:
        raise DimensionMismatchError(
            f"input_scale has {scales.size} entries for {n_inputs} input features"
        )
    return scales


def _initialize_input_weights(n: int, n_inputs: int, input_scale: InputScale, rng: np.random.Generator,
                              input_layer: str = "weighted") -> np.ndarray:
    scales = _per_feature_scales(input_scale, n_inputs)
    if input_layer == "dense":
        return rng.uniform(-1.0, 1.0, size=(n, n_inputs)) * scales
    if input_layer != "weighted":
        raise ValueError(f"Unknown input layer '{input_layer}', expected one of {INPUT_LAYERS}")
    # contiguous row blocks, block j only sees feature j
    W_in = np.zeros((n, n_inputs))
    for j, rows in enumerate(np.array_split(np.arange(n), n_inputs)):
        W_in[rows, j] = rng.uniform(-scales[j], scales[j], size=rows.size)
    return W_in


def generate_reservoir(input_dim: int, reservoir_size: int, spectral_radius: float, sparsity: float,
                       input_scale: InputScale, seed: Optional[int] = None,
                       input_layer: str = "weighted", ridge_param: float = 0.0) -> ReservoirModel:
    if input_dim <= 0:
        raise ValueError(f"Input dimension must be positive, got {input_dim}")
    params = HyperparameterSet(reservoir_size, spectral_radius, sparsity, input_scale, ridge_param)
    rng = np.random.default_rng(seed)
    W_res = _initialize_reservoir(params.reservoir_size, params.spectral_radius, params.sparsity, rng)
    W_in = _initialize_input_weights(params.reservoir_size, input_dim, params.input_scale, rng, input_layer)
    logger.debug("Generated reservoir n=%d rho=%.3f sparsity=%.3f seed=%s",
                 params.reservoir_size, params.spectral_radius, params.sparsity, seed)
    return ReservoirModel(W_res, W_in, params, seed=seed)


def generate_from_params(params: HyperparameterSet, input_dim: int, seed: Optional[int] = None,
                         input_layer: str = "weighted") -> ReservoirModel:
    return generate_reservoir(input_dim, params.reservoir_size, params.spectral_radius, params.sparsity,
                              params.input_scale, seed=seed, input_layer=input_layer,
                              ridge_param=params.ridge_param)


def generate_esn(input_signal: Union[np.ndarray, Sequence], params: HyperparameterSet,
                 seed: Optional[int] = None, input_layer: str = "weighted") -> ReservoirModel:
    """Generate an ESN sized for input_signal and bind the signal to it for training."""
    signal = as_feature_matrix(input_signal, "input_signal")
    model = generate_from_params(params, signal.shape[1], seed=seed, input_layer=input_layer)
    return ReservoirModel(model.W_res, model.W_in, params, input_signal=signal, seed=seed)
