# amazonia_esn/config.py
from dataclasses import dataclass, field, asdict, fields
from itertools import product
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import yaml

InputScale = Union[float, Tuple[float, ...]]


@dataclass(frozen=True)
class HyperparameterSet:
    """Everything needed to regenerate an ESN, apart from its random seed."""

    reservoir_size: int
    spectral_radius: float
    sparsity: float
    input_scale: InputScale
    ridge_param: float

    def __post_init__(self):
        if isinstance(self.input_scale, (list, tuple, np.ndarray)):
            object.__setattr__(self, "input_scale", tuple(float(s) for s in self.input_scale))
        if int(self.reservoir_size) != self.reservoir_size or self.reservoir_size <= 0:
            raise ValueError(f"Reservoir size must be a positive integer, got {self.reservoir_size}")
        if not self.spectral_radius > 0:
            raise ValueError(f"Spectral radius must be positive, got {self.spectral_radius}")
        if not (0 < self.sparsity <= 1.0):
            raise ValueError(f"Sparsity should be in (0, 1], got {self.sparsity}")
        if not self.ridge_param >= 0:
            raise ValueError(f"Ridge parameter must be non-negative, got {self.ridge_param}")
        object.__setattr__(self, "reservoir_size", int(self.reservoir_size))

    def as_dict(self) -> dict:
        d = asdict(self)
        if isinstance(self.input_scale, tuple):
            d["input_scale"] = list(self.input_scale)
        return d


@dataclass
class SearchGrid:
    """Discrete values tried for each hyperparameter axis."""

    reservoir_sizes: List[int] = field(default_factory=lambda: [256, 512, 1024])
    spectral_radii: List[float] = field(default_factory=lambda: [0.8, 1.0, 1.2])
    sparsities: List[float] = field(default_factory=lambda: [0.03, 0.05])
    ridge_values: List[float] = field(default_factory=lambda: [0.0, 1e-10, 1e-8])
    input_scales: List[InputScale] = field(default_factory=lambda: [0.1])

    def __post_init__(self):
        for name, values in self.axes().items():
            if len(values) == 0:
                raise ValueError(f"Search grid axis '{name}' is empty")

    def axes(self) -> Dict[str, Sequence]:
        return {
            "reservoir_size": self.reservoir_sizes,
            "spectral_radius": self.spectral_radii,
            "sparsity": self.sparsities,
            "ridge_param": self.ridge_values,
            "input_scale": self.input_scales,
        }

    @property
    def size(self) -> int:
        return int(np.prod([len(v) for v in self.axes().values()]))

    def combinations(self) -> List[HyperparameterSet]:
        axes = self.axes()
        return [HyperparameterSet(**dict(zip(axes.keys(), combo))) for combo in product(*axes.values())]

    def sample(self, rng: np.random.Generator) -> HyperparameterSet:
        # independent uniform pick per axis == uniform pick over the full grid
        picked = {name: values[int(rng.integers(len(values)))] for name, values in self.axes().items()}
        return HyperparameterSet(**picked)


@dataclass
class SplitConfig:
    train_days: int = 15 * 365 + 4
    val_days: int = 5 * 365 + 2


@dataclass
class SearchConfig:
    num_trials: int = 50
    members_per_trial: int = 10
    washout: int = 0
    # None continues validation from the final training state
    warmup_days: Optional[int] = None
    seed: Optional[int] = None
    n_jobs: int = 1


@dataclass
class EnsembleConfig:
    n_members: int = 100
    nan_aware: bool = False
    washout: int = 0
    warmup_days: int = 0
    seed: Optional[int] = None
    n_jobs: int = 1


@dataclass
class DataConfig:
    data_dir: str = "."
    precipitation_dir: str = "daily_precip_southern_amazonia"
    onset_dir: str = "onset_retreat_length"
    first_year: int = 1979
    last_year: int = 2019
    window: int = 10


@dataclass
class PipelineConfig:
    data: DataConfig = field(default_factory=DataConfig)
    split: SplitConfig = field(default_factory=SplitConfig)
    grid: SearchGrid = field(default_factory=SearchGrid)
    search: SearchConfig = field(default_factory=SearchConfig)
    ensemble: EnsembleConfig = field(default_factory=EnsembleConfig)
    final_params: HyperparameterSet = field(
        default_factory=lambda: HyperparameterSet(512, 0.8, 0.03, 0.1, 1e-8)
    )
    run_search: bool = True
    artifacts_dir: str = "artifacts"
    results_dir: str = "results"
    figures_dir: str = "figures"


_SECTIONS = {
    "data": DataConfig,
    "split": SplitConfig,
    "grid": SearchGrid,
    "search": SearchConfig,
    "ensemble": EnsembleConfig,
    "final_params": HyperparameterSet,
}


def config_from_dict(data: dict) -> PipelineConfig:
    data = dict(data or {})
    sections = {name: cls(**(data.pop(name) or {})) for name, cls in _SECTIONS.items() if name in data}
    return PipelineConfig(**data, **sections)


def load_config(path: str) -> PipelineConfig:
    with open(path, "r") as f:
        data = yaml.safe_load(f)
    return config_from_dict(data)


def config_to_dict(cfg: PipelineConfig) -> dict:
    out = {}
    for f in fields(cfg):
        value = getattr(cfg, f.name)
        if isinstance(value, HyperparameterSet):
            out[f.name] = value.as_dict()
        elif hasattr(value, "__dataclass_fields__"):
            out[f.name] = asdict(value)
        else:
            out[f.name] = value
    return out
