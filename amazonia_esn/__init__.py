"""Echo State Network ensembles forecasting the southern-Amazonia wet/dry season cycle."""

from amazonia_esn.config import (
    DataConfig,
    EnsembleConfig,
    HyperparameterSet,
    PipelineConfig,
    SearchConfig,
    SearchGrid,
    SplitConfig,
    load_config,
)
from amazonia_esn.core.reservoir import ReservoirModel, generate_esn, generate_reservoir
from amazonia_esn.data.splitter import SplitData, split_series
from amazonia_esn.ensemble.predictor import Ensemble, EnsemblePrediction, predict_ensemble, train_ensemble
from amazonia_esn.errors import (
    DegenerateReservoirError,
    DimensionMismatchError,
    EmptyEnsembleError,
    ESNError,
    InsufficientDataError,
    InsufficientSeriesLengthError,
    SingularSystemError,
)
from amazonia_esn.readout.ridge import OutputWeights, train_readout
from amazonia_esn.search.random_search import SearchResult, random_search

__version__ = "0.1.0"
