# amazonia_esn/metrics.py
import math
from typing import Dict, Optional, Sequence

import numpy as np

from amazonia_esn.errors import DimensionMismatchError


def _aligned(prediction, target):
    prediction = np.asarray(prediction, dtype=float)
    target = np.asarray(target, dtype=float)
    if prediction.shape != target.shape:
        if prediction.size == target.size and prediction.shape[0] == target.shape[0]:
            target = target.reshape(prediction.shape)
        else:
            raise DimensionMismatchError(
                f"prediction shape {prediction.shape} does not match target shape {target.shape}"
            )
    return prediction, target


def finite_or_none(value) -> Optional[float]:
    """JSON-safe number: NaN and infinities become None."""
    value = float(value)
    return value if math.isfinite(value) else None


def sum_squared_error(prediction, target) -> float:
    prediction, target = _aligned(prediction, target)
    return float(np.sum((prediction - target) ** 2))


def rmse(prediction, target) -> float:
    prediction, target = _aligned(prediction, target)
    return float(np.sqrt(np.mean((prediction - target) ** 2)))


def compute_error_statistics(errors: Sequence[float]) -> Dict[str, float]:
    arr = np.asarray(errors, dtype=float)
    q25, q75 = np.percentile(arr, [25, 75])
    return {
        "mean": float(np.mean(arr)),
        "std": float(np.std(arr)),
        "min": float(np.min(arr)),
        "max": float(np.max(arr)),
        "median": float(np.median(arr)),
        "q25": float(q25),
        "q75": float(q75),
        "iqr": float(q75 - q25),
    }


def member_errors(member_predictions: np.ndarray, target) -> np.ndarray:
    """Sum of squared error of each ensemble member (first axis) against target."""
    return np.array([sum_squared_error(p, target) for p in member_predictions])


def json_ready(obj):
    """Recursively convert numpy values for json, non-finite floats becoming None."""
    if isinstance(obj, dict):
        return {k: json_ready(v) for k, v in obj.items()}
    if isinstance(obj, np.ndarray):
        return json_ready(obj.tolist())
    if isinstance(obj, (list, tuple)):
        return [json_ready(v) for v in obj]
    if isinstance(obj, (float, np.floating)):
        return finite_or_none(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.bool_):
        return bool(obj)
    return obj
