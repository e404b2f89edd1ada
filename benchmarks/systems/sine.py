# benchmarks/systems/sine.py
import json
import logging
import os
from typing import Dict

import numpy as np

from amazonia_esn.config import HyperparameterSet
from amazonia_esn.data.splitter import split_series
from amazonia_esn.data.synthetic import sine_wave_series
from amazonia_esn.ensemble.members import fit_member
from amazonia_esn.ensemble.predictor import predict_ensemble, train_ensemble
from amazonia_esn.metrics import json_ready, member_errors, sum_squared_error
from benchmarks.metrics.error_analysis import plot_prediction

logger = logging.getLogger(__name__)

SINE_PARAMS = HyperparameterSet(reservoir_size=256, spectral_radius=0.9, sparsity=0.05, input_scale=0.1,
                                ridge_param=1e-8)


def run_sine_benchmark(n_days: int = 2000, train_days: int = 1600, val_days: int = 200, n_members: int = 10,
                       washout: int = 100, warmup_days: int = 200, seed: int = 42,
                       params: HyperparameterSet = SINE_PARAMS, figures_dir: str = None,
                       results_dir: str = None, n_jobs: int = 1) -> Dict:
    features, target = sine_wave_series(n_days)
    split = split_series(features, target, train_days, val_days)

    single = fit_member(params, split.train_x, split.train_y, seed=seed, washout=washout)
    val_prediction = single.predict(split.val_x, warmup_input=split.train_x[-warmup_days:])
    val_sse = sum_squared_error(val_prediction, split.val_y)

    ensemble = train_ensemble(params, split.train_x, split.train_y, n_members=n_members, seed=seed,
                              washout=washout, n_jobs=n_jobs)
    warmup = np.vstack([split.train_x, split.val_x])[-warmup_days:]
    prediction = predict_ensemble(ensemble, split.test_x, warmup_input=warmup, n_jobs=n_jobs)
    errors = member_errors(prediction.members, split.test_y)

    result = {
        "val_sse_single": val_sse,
        "test_sse_ensemble": sum_squared_error(prediction.mean, split.test_y),
        "test_sse_worst_member": float(np.max(errors)),
        "test_sse_best_member": float(np.min(errors)),
        "n_members": prediction.n_members,
    }
    logger.info("Sine benchmark: %s", result)

    if figures_dir:
        os.makedirs(figures_dir, exist_ok=True)
        plot_prediction(split.test_y, prediction, os.path.join(figures_dir, "sine_prediction.png"),
                        ylabel="target")
    if results_dir:
        os.makedirs(results_dir, exist_ok=True)
        with open(os.path.join(results_dir, "sine_benchmark.json"), "w") as f:
            json.dump(json_ready(result), f, indent=2, allow_nan=False)
    return result
