# amazonia_esn/data/loading.py
import logging
import os
from typing import Tuple

import numpy as np
import pandas as pd

from amazonia_esn.config import DataConfig

logger = logging.getLogger(__name__)


def _first_column(path: str, header) -> np.ndarray:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Missing data file: {path}")
    return pd.read_csv(path, header=header).iloc[:, 0].to_numpy()


def load_precipitation(directory: str, first_year: int = 1979, last_year: int = 2019) -> np.ndarray:
    """Concatenate the daily precipitation of <directory>/<year>.csv for every year."""
    years = [_first_column(os.path.join(directory, f"{year}.csv"), header=0).astype(float)
             for year in range(first_year, last_year + 1)]
    precipitation = np.concatenate(years)
    logger.info("Loaded %d days of precipitation (%d-%d)", len(precipitation), first_year, last_year)
    return precipitation


def load_onsets(directory: str) -> Tuple[np.ndarray, np.ndarray]:
    """Wet-season and dry-season onset day-of-year, one per year."""
    ws_onset = _first_column(os.path.join(directory, "ws_onset.csv"), header=None).astype(int)
    ds_onset = _first_column(os.path.join(directory, "ds_onset.csv"), header=None).astype(int)
    return ws_onset, ds_onset


def load_dataset(config: DataConfig) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    precipitation = load_precipitation(os.path.join(config.data_dir, config.precipitation_dir),
                                       config.first_year, config.last_year)
    ws_onset, ds_onset = load_onsets(os.path.join(config.data_dir, config.onset_dir))
    return precipitation, ws_onset, ds_onset
