# amazonia_esn/data/splitter.py
from typing import NamedTuple

import numpy as np

from amazonia_esn.config import SplitConfig
from amazonia_esn.errors import DimensionMismatchError, InsufficientSeriesLengthError


class SplitData(NamedTuple):
    train_x: np.ndarray
    val_x: np.ndarray
    test_x: np.ndarray
    train_y: np.ndarray
    val_y: np.ndarray
    test_y: np.ndarray


def split_series(features, target, train_days: int, val_days: int) -> SplitData:
    """Chronological split: first train_days, next val_days, remainder is the test window."""
    features = np.asarray(features, dtype=float)
    target = np.asarray(target, dtype=float)
    if train_days < 0 or val_days < 0:
        raise ValueError(f"Split sizes must be non-negative, got train={train_days}, val={val_days}")
    if len(features) != len(target):
        raise DimensionMismatchError(
            f"feature series has {len(features)} days but target series has {len(target)} days"
        )
    if train_days + val_days > len(target):
        raise InsufficientSeriesLengthError(
            f"train ({train_days}) + validation ({val_days}) days exceed the series length ({len(target)})"
        )

    val_end = train_days + val_days
    return SplitData(
        train_x=features[:train_days],
        val_x=features[train_days:val_end],
        test_x=features[val_end:],
        train_y=target[:train_days],
        val_y=target[train_days:val_end],
        test_y=target[val_end:],
    )


def split_with_config(features, target, config: SplitConfig) -> SplitData:
    return split_series(features, target, config.train_days, config.val_days)
