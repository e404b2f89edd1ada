# amazonia_esn/seeding.py
import hashlib
from typing import Optional

import numpy as np


def resolve_base_seed(seed: Optional[int]) -> int:
    """Fix a base seed once so every derived seed of a run is reproducible from it."""
    if seed is None:
        return int(np.random.default_rng().integers(2**32))
    return int(seed)


def derive_seed(base_seed: int, *keys) -> int:
    """Derive a deterministic 32-bit seed from a base seed and e.g. (trial, member, attempt)."""
    s = "_".join([str(base_seed)] + [str(k) for k in keys])
    return int(hashlib.sha256(s.encode()).hexdigest()[:8], 16)
