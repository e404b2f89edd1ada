# amazonia_esn/errors.py


class ESNError(Exception):
    """Base class for every error raised by amazonia_esn."""


class ReservoirTrainingError(ESNError):
    """Numerical failure of a single reservoir; retrying with a new seed may help."""


class DegenerateReservoirError(ReservoirTrainingError):
    pass


class SingularSystemError(ReservoirTrainingError):
    pass


class DataShapeError(ESNError, ValueError):
    """Caller passed series whose lengths or shapes violate a contract."""


class InsufficientDataError(DataShapeError):
    pass


class InsufficientSeriesLengthError(DataShapeError):
    pass


class DimensionMismatchError(DataShapeError):
    pass


class EmptyEnsembleError(ESNError):
    pass
