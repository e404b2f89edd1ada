# amazonia_esn/data/features.py
import calendar
from typing import Tuple

import numpy as np

from amazonia_esn.errors import DimensionMismatchError, InsufficientSeriesLengthError

DAYS_PER_YEAR = 365.25
# day-of-year offset putting the cosine minimum in early December
CYCLE_PHASE = 152.25


def days_in_year(year: int) -> int:
    return 366 if calendar.isleap(year) else 365


def trailing_mean(series, window: int) -> np.ndarray:
    """out[i] = mean(series[i:i+window]) for i in 0..len(series)-window-1.

    The value at i summarises the window days preceding day i+window.
    """
    series = np.asarray(series, dtype=float)
    if window <= 0:
        raise ValueError(f"Window must be positive, got {window}")
    if len(series) <= window:
        raise InsufficientSeriesLengthError(
            f"precipitation series has {len(series)} days, need more than the {window}-day window"
        )
    return np.convolve(series, np.ones(window) / window, mode="valid")[:-1]


def yearly_cycle(n_days: int) -> np.ndarray:
    t = np.arange(n_days)
    return np.cos(2 * np.pi * (t - CYCLE_PHASE) / DAYS_PER_YEAR)


def proximity_signal(ws_onset, ds_onset, first_year: int = 1979) -> np.ndarray:
    """Daily sawtooth target built from yearly wet-season (ws) and dry-season (ds) onset days.

    Through each dry season the signal rises linearly from 0 towards 1 at the
    wet-season onset; through each wet season it falls from 1 towards 0 at the
    next dry-season onset. The jumps at the season boundaries are kept. The
    wet season running into the first year and out of the last one both use
    the last wet-season onset and the first dry-season onset.
    """
    ws = np.asarray(ws_onset, dtype=int)
    ds = np.asarray(ds_onset, dtype=int)
    if ws.shape != ds.shape or ws.ndim != 1 or len(ws) == 0:
        raise DimensionMismatchError(
            f"wet-season onsets {ws.shape} and dry-season onsets {ds.shape} must be matching 1-D series"
        )
    if np.any(ws <= ds):
        bad = first_year + int(np.argmax(ws <= ds))
        raise ValueError(f"Wet-season onset must follow dry-season onset, not the case in {bad}")

    n_years = len(ws)
    last_days = days_in_year(first_year + n_years - 1)
    boundary_length = last_days - ws[-1] + ds[0]

    x = np.arange(1, ds[0] + 1)
    parts = [1 - (x + (last_days - ws[-1])) / boundary_length]
    for i in range(n_years):
        ds_length = ws[i] - ds[i]
        parts.append(np.arange(1, ds_length + 1) / ds_length)
        if i < n_years - 1:
            ws_length = days_in_year(first_year + i) - ws[i] + ds[i + 1]
            parts.append(1 - np.arange(1, ws_length + 1) / ws_length)
    parts.append(1 - np.arange(1, last_days - ws[-1] + 1) / boundary_length)
    return np.concatenate(parts)


def align_features(precipitation, proximity, window: int = 10) -> Tuple[np.ndarray, np.ndarray]:
    """Build the (trailing-mean precipitation, yearly cosine) feature matrix and its target.

    Row t pairs the mean precipitation of days t..t+window-1 and the cosine of
    day t+window with the proximity of day t+window, so both series lose the
    same leading window days.
    """
    precipitation = np.asarray(precipitation, dtype=float)
    proximity = np.asarray(proximity, dtype=float)
    if len(precipitation) != len(proximity):
        raise DimensionMismatchError(
            f"precipitation series has {len(precipitation)} days but proximity series has {len(proximity)}"
        )
    mean_precipitation = trailing_mean(precipitation, window)
    cosine = yearly_cycle(len(proximity))[window:]
    features = np.column_stack([mean_precipitation, cosine])
    return features, proximity[window:]
