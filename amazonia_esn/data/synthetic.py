# amazonia_esn/data/synthetic.py
from typing import Tuple

import numpy as np


def sine_wave_series(n_days: int = 2000, period: float = 50.0, phase: float = np.pi / 4,
                     noise_level: float = 0.0, seed=None) -> Tuple[np.ndarray, np.ndarray]:
    """Two-feature (sine, cosine) driving signal and a unit-amplitude phase-shifted sine target.

    The target is zero-mean since reservoir states carry no bias term.
    """
    t = np.arange(n_days)
    omega = 2 * np.pi / period
    features = np.column_stack([np.sin(omega * t), np.cos(omega * t)])
    if noise_level > 0:
        features = features + np.random.default_rng(seed).normal(0, noise_level, features.shape)
    target = np.sin(omega * t + phase)
    return features, target
