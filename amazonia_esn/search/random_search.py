# amazonia_esn/search/random_search.py
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
from rich import box
from rich.table import Table

from amazonia_esn.config import HyperparameterSet, SearchGrid
from amazonia_esn.core.reservoir import as_feature_matrix
from amazonia_esn.ensemble.members import fit_member_with_retry
from amazonia_esn.errors import DimensionMismatchError, ReservoirTrainingError
from amazonia_esn.metrics import finite_or_none, sum_squared_error
from amazonia_esn.parallel import map_tasks
from amazonia_esn.seeding import derive_seed, resolve_base_seed

logger = logging.getLogger(__name__)


@dataclass
class TrialRecord:
    index: int
    params: HyperparameterSet
    score: float
    member_losses: List[float] = field(default_factory=list)
    failed: bool = False
    error: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "trial": self.index,
            "params": self.params.as_dict(),
            "score": finite_or_none(self.score),
            "member_losses": [finite_or_none(loss) for loss in self.member_losses],
            "failed": self.failed,
            "error": self.error,
        }


@dataclass
class SearchResult:
    best_params: Optional[HyperparameterSet]
    best_score: float
    trials: List[TrialRecord]
    seed: Optional[int] = None

    @property
    def best_trial(self) -> Optional[TrialRecord]:
        for trial in self.trials:
            if trial.params == self.best_params and trial.score == self.best_score:
                return trial
        return None

    def scores(self) -> np.ndarray:
        return np.array([t.score for t in self.trials], dtype=float)

    def as_dict(self) -> dict:
        return {
            "best_params": None if self.best_params is None else self.best_params.as_dict(),
            "best_score": finite_or_none(self.best_score),
            "seed": self.seed,
            "trials": [t.as_dict() for t in self.trials],
        }

    def table(self, top: Optional[int] = None) -> Table:
        """ Construct a `rich` table of the trials, best score first. """

        table = Table(title="Hyperparameter search", box=box.SIMPLE_HEAD)
        for name in ("Trial", "Size", "Radius", "Sparsity", "Input scale", "Ridge", "Score"):
            table.add_column(name, justify="center")

        ranked = sorted(self.trials, key=lambda t: (t.score, t.index))
        for t in ranked[:top]:
            p = t.params
            score = "failed" if t.failed else f"{t.score:.4f}"
            table.add_row(str(t.index), str(p.reservoir_size), str(p.spectral_radius), str(p.sparsity),
                          str(p.input_scale), f"{p.ridge_param:g}", score)
        return table


def evaluate_trial(index: int, params: HyperparameterSet, train_x, train_y, val_x, val_y,
                   members_per_trial: int, base_seed: int, washout: int = 0, warmup_input=None,
                   input_layer: str = "weighted", from_training_state: bool = True) -> TrialRecord:
    """Mean validation SSE of members_per_trial freshly generated reservoirs.

    The validation window is predicted as the continuation of the training
    window unless from_training_state is False, in which case each member
    starts from zero, or from the state left by warmup_input.
    """
    if from_training_state and warmup_input is not None:
        raise ValueError("warmup_input only applies when from_training_state is False")
    losses = []
    for member in range(members_per_trial):
        try:
            fitted = fit_member_with_retry(params, train_x, train_y, base_seed, "trial", index, "member", member,
                                           washout=washout, input_layer=input_layer)
        except ReservoirTrainingError as exc:
            logger.warning("Trial %d abandoned (%s): %s", index, params, exc)
            return TrialRecord(index=index, params=params, score=math.inf, member_losses=losses,
                               failed=True, error=f"{type(exc).__name__}: {exc}")
        if from_training_state:
            prediction = fitted.continue_prediction(val_x)
        else:
            prediction = fitted.predict(val_x, warmup_input=warmup_input)
        losses.append(sum_squared_error(prediction, val_y))

    score = float(np.mean(losses))
    logger.info("%d\t%d\t%g\t%g\t%s\t%g\tloss=%.6g", index, params.reservoir_size, params.spectral_radius,
                params.sparsity, params.input_scale, params.ridge_param, score)
    return TrialRecord(index=index, params=params, score=score, member_losses=losses)


def random_search(grid: SearchGrid, num_trials: int, train_x, train_y, val_x, val_y,
                  members_per_trial: int = 10, seed: Optional[int] = None, washout: int = 0,
                  warmup_days: Optional[int] = None, n_jobs: int = 1,
                  input_layer: str = "weighted") -> SearchResult:
    """Random search over a discrete hyperparameter grid.

    Every trial draws one grid combination uniformly at random (with
    replacement), trains members_per_trial reservoirs on the training window
    and scores the mean sum of squared error on the validation window. A
    member failing twice abandons its trial with an infinite score. The best
    trial is the lowest finite score, ties going to the earlier trial.

    With warmup_days=None the validation window continues from the state
    reached at the end of training. An integer instead restarts each member
    from zero and drives the last warmup_days training days through it first.
    """
    if num_trials < 0:
        raise ValueError(f"Number of trials must be non-negative, got {num_trials}")
    if members_per_trial < 1:
        raise ValueError(f"Members per trial must be positive, got {members_per_trial}")

    train_x = as_feature_matrix(train_x, "train_x")
    val_x = as_feature_matrix(val_x, "val_x")
    train_y = np.asarray(train_y, dtype=float)
    val_y = np.asarray(val_y, dtype=float)
    if len(val_x) != len(val_y):
        raise DimensionMismatchError(f"val_x has {len(val_x)} steps but val_y has {len(val_y)}")
    from_training_state = warmup_days is None
    warmup_input = None
    if not from_training_state:
        if not (0 <= warmup_days <= len(train_x)):
            raise ValueError(f"warmup_days={warmup_days} must be within the {len(train_x)} training days")
        if warmup_days > 0:
            warmup_input = train_x[len(train_x) - warmup_days:]

    base_seed = resolve_base_seed(seed)
    sampler = np.random.default_rng(derive_seed(base_seed, "sampler"))
    sampled = [grid.sample(sampler) for _ in range(num_trials)]

    logger.info("Random search: %d trials x %d members over %d combinations (seed=%d)",
                num_trials, members_per_trial, grid.size, base_seed)
    tasks = [(i, params, train_x, train_y, val_x, val_y, members_per_trial, base_seed, washout,
              warmup_input, input_layer, from_training_state) for i, params in enumerate(sampled, start=1)]
    trials = map_tasks(evaluate_trial, tasks, n_jobs=n_jobs)

    best_params, best_score = None, math.inf
    for trial in trials:
        if trial.score < best_score:
            best_params, best_score = trial.params, trial.score

    if best_params is not None:
        logger.info("Best hyperparameters %s with loss %.6g", best_params, best_score)
    return SearchResult(best_params=best_params, best_score=best_score, trials=trials, seed=base_seed)
