# benchmarks/metrics/error_analysis.py
import numpy as np
import matplotlib.pyplot as plt
from typing import Dict, Optional

from amazonia_esn.ensemble.predictor import EnsemblePrediction
from amazonia_esn.metrics import compute_error_statistics, member_errors, rmse, sum_squared_error


def summarize_prediction(prediction: EnsemblePrediction, actual: np.ndarray) -> Dict:
    errors = member_errors(prediction.members, actual)
    return {
        "ensemble_sse": sum_squared_error(prediction.mean, actual),
        "ensemble_rmse": rmse(prediction.mean, actual),
        "n_members": prediction.n_members,
        "n_excluded": prediction.n_excluded,
        "member_sse": compute_error_statistics(errors),
    }


def plot_prediction(actual: np.ndarray, prediction: EnsemblePrediction, save_path: str = None,
                    ylabel: str = "onset", show_spread: bool = True):
    days = np.arange(len(actual))
    plt.figure(figsize=(10, 4))
    plt.plot(days, actual, label="actual")
    plt.plot(days, prediction.mean, label=f"ensemble mean ({prediction.n_members} members)")
    if show_spread and prediction.std is not None and np.ndim(prediction.mean) == 1:
        plt.fill_between(days, prediction.mean - prediction.std, prediction.mean + prediction.std,
                         alpha=0.3, label="±1 STD")
    plt.xlabel("Test day")
    plt.ylabel(ylabel)
    plt.grid(True)
    plt.legend()

    if save_path:
        plt.savefig(save_path, dpi=600, bbox_inches="tight")
    else:
        plt.show()
    plt.close()


def plot_member_errors(errors, ensemble_error: Optional[float] = None, save_path: str = None):
    arr = np.asarray(errors, dtype=float)
    mean = float(np.mean(arr))

    plt.figure(figsize=(6, 4))
    plt.hist(arr, bins=min(30, max(1, len(arr))), alpha=0.7, color="skyblue", edgecolor="black")
    plt.axvline(mean, color='red', linestyle='--', label=f"Member mean = {mean:.4f}")
    if ensemble_error is not None:
        plt.axvline(ensemble_error, color='green', linestyle=':', label=f"Ensemble mean = {ensemble_error:.4f}")

    plt.title("Member Sum of Squared Error")
    plt.xlabel("SSE")
    plt.ylabel("Members")
    plt.grid(True)
    plt.legend()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches="tight")
    else:
        plt.show()
    plt.close()
