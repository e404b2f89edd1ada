# benchmarks/systems/amazonia.py
import json
import logging
import os
from typing import Dict, Optional

import numpy as np
from rich.console import Console

from amazonia_esn.config import HyperparameterSet, PipelineConfig, config_to_dict
from amazonia_esn.data.features import align_features, proximity_signal
from amazonia_esn.data.loading import load_dataset
from amazonia_esn.data.splitter import SplitData, split_with_config
from amazonia_esn.ensemble.predictor import Ensemble, EnsemblePrediction, predict_ensemble, train_ensemble
from amazonia_esn.metrics import json_ready, member_errors
from amazonia_esn.search.random_search import SearchResult, random_search
from amazonia_esn.storage import ArtifactStore, FileArtifactStore, load_ensemble, save_ensemble
from benchmarks.metrics.convergence import compute_search_convergence, plot_search_convergence
from benchmarks.metrics.error_analysis import plot_member_errors, plot_prediction, summarize_prediction
from benchmarks.metrics.onset_regression import onset_errors, plot_onset_comparison, predict_onsets

logger = logging.getLogger(__name__)
console = Console()

ONSET_YEARS = 20


class AmazoniaPipeline:
    def __init__(self, config: PipelineConfig, store: Optional[ArtifactStore] = None):
        self.config = config
        self.store = store if store is not None else FileArtifactStore(config.artifacts_dir)
        self.ws_onset = None

    def prepare_data(self) -> SplitData:
        cfg = self.config.data
        precipitation, ws_onset, ds_onset = load_dataset(cfg)
        self.ws_onset = ws_onset
        proximity = proximity_signal(ws_onset, ds_onset, first_year=cfg.first_year)
        features, target = align_features(precipitation, proximity, window=cfg.window)
        split = split_with_config(features, target, self.config.split)
        logger.info("Split %d days into train=%d val=%d test=%d", len(target), len(split.train_y),
                    len(split.val_y), len(split.test_y))
        return split

    def search(self, split: SplitData) -> SearchResult:
        cfg = self.config.search
        return random_search(self.config.grid, cfg.num_trials, split.train_x, split.train_y, split.val_x,
                             split.val_y, members_per_trial=cfg.members_per_trial, seed=cfg.seed,
                             washout=cfg.washout, warmup_days=cfg.warmup_days, n_jobs=cfg.n_jobs)

    def train_final(self, split: SplitData, params: HyperparameterSet) -> Ensemble:
        cfg = self.config.ensemble
        ensemble = train_ensemble(params, split.train_x, split.train_y, n_members=cfg.n_members, seed=cfg.seed,
                                  washout=cfg.washout, n_jobs=cfg.n_jobs)
        save_ensemble(self.store, ensemble, overwrite=True)
        return ensemble

    def predict(self, split: SplitData, trained: Ensemble) -> EnsemblePrediction:
        """Predict the test window with the members reloaded from the artifact store."""
        cfg = self.config.ensemble
        ensemble = load_ensemble(self.store, len(trained), params=trained.params, n_failed=trained.n_failed)
        warmup = None
        if cfg.warmup_days > 0:
            warmup = np.vstack([split.train_x, split.val_x])[-cfg.warmup_days:]
        return predict_ensemble(ensemble, split.test_x, nan_aware=cfg.nan_aware, warmup_input=warmup,
                                n_jobs=cfg.n_jobs)

    def run(self) -> Dict:
        cfg = self.config
        for directory in (cfg.results_dir, cfg.figures_dir):
            os.makedirs(directory, exist_ok=True)

        split = self.prepare_data()
        summary = {"config": config_to_dict(cfg)}

        params = cfg.final_params
        if cfg.run_search:
            result = self.search(split)
            console.print(result.table(top=10))
            with open(os.path.join(cfg.results_dir, "search_results.json"), "w") as f:
                json.dump(json_ready(result.as_dict()), f, indent=2, allow_nan=False)
            plot_search_convergence(result.scores(), os.path.join(cfg.figures_dir, "search_convergence.png"))
            summary["search"] = compute_search_convergence(result.scores())
            if result.best_params is not None:
                params = result.best_params
            else:
                logger.warning("Every search trial failed, keeping final_params %s", params)
        summary["final_params"] = params.as_dict()

        ensemble = self.train_final(split, params)
        prediction = self.predict(split, ensemble)
        np.save(os.path.join(cfg.results_dir, "prediction_mean.npy"), prediction.mean)

        summary["prediction"] = summarize_prediction(prediction, split.test_y)
        plot_prediction(split.test_y, prediction, os.path.join(cfg.figures_dir, "mean_prediction.png"))
        plot_member_errors(member_errors(prediction.members, split.test_y), summary["prediction"]["ensemble_sse"],
                           os.path.join(cfg.figures_dir, "member_errors.png"))

        summary["onsets"] = self.onset_report(prediction.mean)

        with open(os.path.join(cfg.results_dir, "pipeline_summary.json"), "w") as f:
            json.dump(json_ready(summary), f, indent=2, default=str, allow_nan=False)
        console.print(f"Ensemble of {prediction.n_members} members "
                      f"({prediction.n_excluded} excluded): test SSE {summary['prediction']['ensemble_sse']:.4f}")
        return summary

    def onset_report(self, prediction_mean: np.ndarray) -> Dict:
        last_year = self.config.data.last_year
        years = np.arange(last_year - ONSET_YEARS + 1, last_year + 1)
        predicted = predict_onsets(prediction_mean, n_years=ONSET_YEARS)
        observed = self.ws_onset[-ONSET_YEARS:]
        report = onset_errors(predicted, observed)
        logger.info("Onset rmse: %.2f days", report["rmse"])
        plot_onset_comparison(years, predicted, observed,
                              os.path.join(self.config.figures_dir, "test_set_prediction.png"))
        report["predicted"] = predicted.tolist()
        report["observed"] = observed.tolist()
        return report


def run_pipeline(config: PipelineConfig) -> Dict:
    return AmazoniaPipeline(config).run()
