"""Exceptions raised by the path integral sampler."""


class PathIntegralError(Exception):
    """Base class for all sampler errors."""


class InvalidParameterError(PathIntegralError, ValueError):
    """Raised when simulation parameters are rejected before sampling."""


class DegenerateNormalizationError(PathIntegralError, ArithmeticError):
    """Raised when an amplitude component sums to exactly zero.

    Parameters
    ----------
    message : str
        Description of the degenerate component(s)
    ensemble : PathEnsemble
        Ensemble carrying the raw unit-circle amplitudes, flagged
        ``degenerate=True``. It is never published by the engine.
    """

    def __init__(self, message: str, ensemble=None):
        super().__init__(message)
        self.ensemble = ensemble
