# amazonia_esn/readout/ridge.py
import logging
import warnings
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from scipy import linalg

from amazonia_esn.core.reservoir import ReservoirModel, as_feature_matrix
from amazonia_esn.errors import DimensionMismatchError, InsufficientDataError, SingularSystemError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutputWeights:
    """Readout matrix (target_dim, n_reservoir) paired with the reservoir it was fitted on."""

    matrix: np.ndarray
    fingerprint: str
    ridge_param: float
    washout: int = 0

    @property
    def target_dim(self) -> int:
        return self.matrix.shape[0]

    @property
    def reservoir_size(self) -> int:
        return self.matrix.shape[1]


def ridge_solve(states: np.ndarray, targets: np.ndarray, ridge_param: float) -> np.ndarray:
    """Closed-form ridge readout W = Y^T S (S^T S + ridge I)^-1 for states S (T, n) and targets Y (T, m)."""
    n = states.shape[1]
    gram = states.T @ states
    if ridge_param > 0:
        gram[np.diag_indices(n)] += ridge_param
    rhs = states.T @ targets

    # only an exactly singular system is an error, ill-conditioning is tolerated
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", linalg.LinAlgWarning)
            W = linalg.solve(gram, rhs, assume_a="sym")
    except linalg.LinAlgError as exc:
        raise SingularSystemError(
            f"Normal equations are singular (n={n}, ridge_param={ridge_param}): {exc}"
        ) from exc
    if not np.all(np.isfinite(W)):
        raise SingularSystemError(f"Normal equations are singular (n={n}, ridge_param={ridge_param})")
    return W.T


def train_readout(model: ReservoirModel, inputs: Optional[np.ndarray], targets: np.ndarray,
                  ridge_param: float, washout: int = 0) -> OutputWeights:
    """Fit the output weights of model on targets; inputs=None uses the model's bound signal."""
    weights, _ = train_readout_with_state(model, inputs, targets, ridge_param, washout=washout)
    return weights


def train_readout_with_state(model: ReservoirModel, inputs: Optional[np.ndarray], targets: np.ndarray,
                             ridge_param: float, washout: int = 0) -> Tuple[OutputWeights, np.ndarray]:
    """As train_readout, also returning the reservoir state after the last training step."""
    if inputs is None:
        if model.input_signal is None:
            raise ValueError("No inputs given and no input signal bound to the model")
        inputs = model.input_signal
    if ridge_param < 0:
        raise ValueError(f"Ridge parameter must be non-negative, got {ridge_param}")

    u = as_feature_matrix(inputs, "inputs")
    y = as_feature_matrix(targets, "targets")
    if u.shape[0] != y.shape[0]:
        raise DimensionMismatchError(
            f"inputs and targets are not aligned: {u.shape[0]} input steps vs {y.shape[0]} target steps"
        )
    if u.shape[0] < model.n_reservoir:
        raise InsufficientDataError(
            f"Training sequence has {u.shape[0]} steps, fewer than reservoir size {model.n_reservoir}"
        )
    if not (0 <= washout < u.shape[0]):
        raise InsufficientDataError(f"Washout {washout} leaves no training steps out of {u.shape[0]}")

    states = model.run(u)
    W = ridge_solve(states[washout:], y[washout:], ridge_param)
    logger.debug("Fitted readout on %d states, ridge=%g, |W|=%.3e", states.shape[0] - washout, ridge_param,
                 np.linalg.norm(W))
    W.setflags(write=False)
    weights = OutputWeights(matrix=W, fingerprint=model.fingerprint, ridge_param=float(ridge_param),
                            washout=int(washout))
    return weights, states[-1].copy()
