# amazonia_esn/ensemble/predictor.py
import logging
import warnings
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple, Union

import numpy as np

from amazonia_esn.config import HyperparameterSet
from amazonia_esn.core.reservoir import ReservoirModel, as_feature_matrix
from amazonia_esn.ensemble.members import EnsembleMember, fit_member_with_retry
from amazonia_esn.errors import EmptyEnsembleError, ReservoirTrainingError
from amazonia_esn.parallel import map_tasks
from amazonia_esn.readout.ridge import OutputWeights
from amazonia_esn.seeding import resolve_base_seed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ensemble:
    """Independently generated and trained reservoirs sharing one hyperparameter set."""

    members: Tuple[EnsembleMember, ...]
    params: Optional[HyperparameterSet] = None
    n_failed: int = 0
    seed: Optional[int] = None

    def __len__(self):
        return len(self.members)

    def __iter__(self):
        return iter(self.members)

    def pairs(self):
        return [(m.model, m.weights) for m in self.members]

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[ReservoirModel, OutputWeights]],
                   params: Optional[HyperparameterSet] = None, n_failed: int = 0) -> "Ensemble":
        members = tuple(EnsembleMember(index=i, model=model, weights=weights)
                        for i, (model, weights) in enumerate(pairs, start=1))
        return cls(members=members, params=params, n_failed=n_failed)


@dataclass
class EnsemblePrediction:
    mean: np.ndarray
    members: np.ndarray
    n_excluded: int = 0
    nan_aware: bool = False
    std: Optional[np.ndarray] = None

    def __len__(self):
        return len(self.mean)

    @property
    def n_members(self) -> int:
        return self.members.shape[0]


def _train_member(index: int, params: HyperparameterSet, train_x, train_y, base_seed: int,
                  washout: int, input_layer: str):
    try:
        member = fit_member_with_retry(params, train_x, train_y, base_seed, "member", index,
                                       washout=washout, input_layer=input_layer)
    except ReservoirTrainingError as exc:
        return None, f"{type(exc).__name__}: {exc}"
    return EnsembleMember(index=index, model=member.model, weights=member.weights), None


def train_ensemble(params: HyperparameterSet, train_x, train_y, n_members: int = 100,
                   seed: Optional[int] = None, washout: int = 0, n_jobs: int = 1,
                   input_layer: str = "weighted") -> Ensemble:
    """Generate and train n_members reservoirs; members failing twice are left out."""
    if n_members < 0:
        raise ValueError(f"Number of ensemble members must be non-negative, got {n_members}")
    base_seed = resolve_base_seed(seed)
    train_x = as_feature_matrix(train_x, "train_x")
    train_y = np.asarray(train_y, dtype=float)

    tasks = [(i, params, train_x, train_y, base_seed, washout, input_layer) for i in range(1, n_members + 1)]
    results = map_tasks(_train_member, tasks, n_jobs=n_jobs)

    members = tuple(member for member, _ in results if member is not None)
    failures = [(i, err) for (i, *_), (member, err) in zip(tasks, results) if member is None]
    for i, err in failures:
        logger.warning("Ensemble member %d excluded after %s", i, err)
    if failures:
        warnings.warn(f"{len(failures)} of {n_members} ensemble members failed to train and were excluded")

    logger.info("Trained ensemble of %d/%d members (%s)", len(members), n_members, params)
    return Ensemble(members=members, params=params, n_failed=len(failures), seed=base_seed)


def _predict_member(member: EnsembleMember, test_input, warmup_input) -> np.ndarray:
    return member.predict(test_input, warmup_input=warmup_input)


def reduce_members(stack: np.ndarray, nan_aware: bool = False) -> np.ndarray:
    """Mean over the ensemble axis (axis 0).

    The mean is taken of deviations from the first member, so N identical
    members reduce exactly to that member. NaN propagates unless nan_aware.
    """
    ref = stack[0]
    if not nan_aware:
        return ref + np.mean(stack - ref, axis=0)
    ref = np.where(np.isfinite(ref), ref, 0.0)
    with warnings.catch_warnings():
        # all-NaN steps stay NaN
        warnings.simplefilter("ignore", RuntimeWarning)
        return ref + np.nanmean(stack - ref, axis=0)


def predict_ensemble(ensemble: Union[Ensemble, Sequence[Tuple[ReservoirModel, OutputWeights]]], test_input,
                     nan_aware: bool = False, warmup_input=None, n_jobs: int = 1) -> EnsemblePrediction:
    """Run every member over test_input from a zero state and average the trajectories.

    nan_aware=True switches the reduction to a NaN-ignoring mean; by default a
    NaN in any member propagates to the ensemble mean at that step.
    warmup_input, when given, is driven through each reservoir first and its
    outputs discarded.
    """
    if not isinstance(ensemble, Ensemble):
        ensemble = Ensemble.from_pairs(ensemble)
    if len(ensemble) == 0:
        raise EmptyEnsembleError(
            f"Cannot predict with an empty ensemble ({ensemble.n_failed} members failed to train)"
        )
    test_input = as_feature_matrix(test_input, "test_input")
    if warmup_input is not None:
        warmup_input = as_feature_matrix(warmup_input, "warmup_input")

    tasks = [(member, test_input, warmup_input) for member in ensemble.members]
    stack = np.stack(map_tasks(_predict_member, tasks, n_jobs=n_jobs))

    mean = reduce_members(stack, nan_aware=nan_aware)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeWarning)
        std = np.nanstd(stack, axis=0) if nan_aware else np.std(stack, axis=0)
    return EnsemblePrediction(mean=mean, members=stack, n_excluded=ensemble.n_failed,
                              nan_aware=nan_aware, std=std)
