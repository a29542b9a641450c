class SolverError(Exception):
    """Base class for every error raised by the solver package."""


class TensorShapeError(SolverError, ValueError):
    pass


class EmptyOutputError(SolverError):
    """The inference session returned nothing to decode."""


class RegionExtractionError(SolverError):
    pass


class ImageDecodeError(SolverError, ValueError):
    pass


class ConfigError(SolverError):
    pass
