# amazonia_esn/ensemble/members.py
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from amazonia_esn.config import HyperparameterSet
from amazonia_esn.core.reservoir import ReservoirModel, as_feature_matrix, generate_from_params
from amazonia_esn.errors import ReservoirTrainingError
from amazonia_esn.readout.ridge import OutputWeights, train_readout_with_state
from amazonia_esn.seeding import derive_seed

logger = logging.getLogger(__name__)

# first attempt plus one retry with a fresh seed
MAX_ATTEMPTS = 2


@dataclass(frozen=True)
class EnsembleMember:
    index: int
    model: ReservoirModel
    weights: OutputWeights
    # state after the last training step, when known
    final_state: Optional[np.ndarray] = None

    def predict(self, inputs, warmup_input=None, initial_state=None) -> np.ndarray:
        return self.model.predict(inputs, self.weights, warmup_input=warmup_input, initial_state=initial_state)

    def continue_prediction(self, inputs) -> np.ndarray:
        """Predict inputs as the continuation of the training sequence."""
        if self.final_state is None:
            raise ValueError(f"Member {self.index} carries no final training state")
        return self.predict(inputs, initial_state=self.final_state)


def fit_member(params: HyperparameterSet, train_x, train_y, seed: Optional[int],
               washout: int = 0, input_layer: str = "weighted") -> EnsembleMember:
    train_x = as_feature_matrix(train_x, "train_x")
    model = generate_from_params(params, train_x.shape[1], seed=seed, input_layer=input_layer)
    weights, final_state = train_readout_with_state(model, train_x, train_y, params.ridge_param, washout=washout)
    final_state.setflags(write=False)
    return EnsembleMember(index=0, model=model, weights=weights, final_state=final_state)


def fit_member_with_retry(params: HyperparameterSet, train_x, train_y, base_seed: int, *keys,
                          washout: int = 0, input_layer: str = "weighted") -> EnsembleMember:
    """Fit one member, retrying once with a new derived seed on a numerical failure.

    The error of the last attempt propagates when every attempt fails.
    Data-shape errors are never retried.
    """
    for attempt in range(MAX_ATTEMPTS):
        seed = derive_seed(base_seed, *keys, "attempt", attempt)
        try:
            return fit_member(params, train_x, train_y, seed, washout=washout, input_layer=input_layer)
        except ReservoirTrainingError as exc:
            logger.warning("Member %s attempt %d failed (seed=%d): %s", keys, attempt + 1, seed, exc)
            if attempt + 1 == MAX_ATTEMPTS:
                raise
