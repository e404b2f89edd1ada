# benchmarks/metrics/onset_regression.py
import numpy as np
import matplotlib.pyplot as plt
from typing import Dict, Sequence

from amazonia_esn.errors import InsufficientSeriesLengthError


def predict_onsets(prediction: np.ndarray, start_day: int = 110, end_day: int = 210, n_years: int = 20,
                   year_length: int = 365) -> np.ndarray:
    """Wet-season onset per test year from a linear fit to the predicted proximity.

    For year i (1..n_years) a line is fitted to prediction days
    start_day + i*year_length .. end_day + i*year_length (1-based); the onset is
    the day after the first day in start_day..year_length where the line
    reaches 1, or NaN if it never does.
    """
    prediction = np.asarray(prediction, dtype=float)
    days = np.arange(start_day, end_day + 1)
    candidates = np.arange(start_day, year_length + 1)
    onsets = np.full(n_years, np.nan)
    for i in range(1, n_years + 1):
        lo, hi = start_day - 1 + i * year_length, end_day + i * year_length
        if hi > len(prediction):
            raise InsufficientSeriesLengthError(
                f"prediction has {len(prediction)} days, onset year {i} needs days up to {hi}"
            )
        slope, intercept = np.polyfit(days, prediction[lo:hi], 1)
        hits = np.nonzero(intercept + slope * candidates >= 1)[0]
        if hits.size:
            onsets[i - 1] = candidates[hits[0]] + 1
    return onsets


def onset_errors(predicted: Sequence[float], observed: Sequence[float]) -> Dict[str, float]:
    predicted = np.asarray(predicted, dtype=float)
    observed = np.asarray(observed, dtype=float)
    valid = np.isfinite(predicted)
    diff = predicted[valid] - observed[valid]
    return {
        "rmse": float(np.sqrt(np.mean(diff ** 2))) if diff.size else float("nan"),
        "mean_bias": float(np.mean(diff)) if diff.size else float("nan"),
        "n_years": int(len(predicted)),
        "n_missing": int(np.sum(~valid)),
    }


def plot_onset_comparison(years: Sequence[int], predicted: Sequence[float], observed: Sequence[float],
                          save_path: str = None, tolerance_days: float = 5.0):
    years = np.asarray(years)
    observed = np.asarray(observed, dtype=float)

    plt.figure(figsize=(8, 4))
    plt.plot(years, predicted, marker="o", label="predicted")
    plt.plot(years, observed, marker="s", label="actual")
    plt.fill_between(years, observed - tolerance_days, observed + tolerance_days, alpha=0.2)
    plt.xlabel("Year AD")
    plt.ylabel("Wet Season Onset")
    plt.grid(True)
    plt.legend()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches="tight")
    else:
        plt.show()
    plt.close()
