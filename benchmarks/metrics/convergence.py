# benchmarks/metrics/convergence.py
import numpy as np
import matplotlib.pyplot as plt
from typing import Dict, Sequence


def best_so_far(scores: Sequence[float]) -> np.ndarray:
    """Running minimum of trial scores; infinite until the first successful trial."""
    arr = np.asarray(scores, dtype=float)
    if arr.size == 0:
        return arr
    return np.minimum.accumulate(arr)


def compute_search_convergence(scores: Sequence[float]) -> Dict[str, float]:
    arr = np.asarray(scores, dtype=float)
    finite = arr[np.isfinite(arr)]
    curve = best_so_far(arr)
    if finite.size == 0:
        return {"n_trials": int(arr.size), "n_failed": int(arr.size), "best": float("inf"),
                "trial_of_best": -1, "median": float("inf")}
    return {
        "n_trials": int(arr.size),
        "n_failed": int(arr.size - finite.size),
        "best": float(curve[-1]),
        "trial_of_best": int(np.argmin(arr)) + 1,
        "median": float(np.median(finite)),
    }


def plot_search_convergence(scores: Sequence[float], save_path: str = None, config_label: str = ""):
    arr = np.asarray(scores, dtype=float)
    trials = np.arange(1, arr.size + 1)
    finite = np.isfinite(arr)

    plt.figure(figsize=(8, 4))
    plt.scatter(trials[finite], arr[finite], s=12, alpha=0.6, label="Trial loss")
    plt.step(trials, best_so_far(arr), where="post", color="red", label=f"Best so far {config_label}")
    plt.xlabel("Trial")
    plt.ylabel("Validation SSE")
    plt.yscale("log")
    plt.title("Hyperparameter Search")
    plt.grid(True)
    plt.legend()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches="tight")
    else:
        plt.show()
    plt.close()
