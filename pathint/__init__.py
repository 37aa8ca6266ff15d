"""Feynman path integral Monte Carlo sampler.

A Python package for sampling discretized trajectories of a particle in a
harmonic potential, weighting them by complex amplitudes derived from their
classical action, and normalizing the resulting ensemble.
"""

from pathint.params import SimulationParameters
from pathint.exceptions import (
    PathIntegralError,
    InvalidParameterError,
    DegenerateNormalizationError,
)
from pathint.simulation import EnsembleEngine, Path, PathEnsemble, PathSampler
from pathint.live import AnimationDriver

__version__ = "1.0.0"
__all__ = [
    "SimulationParameters",
    "PathIntegralError",
    "InvalidParameterError",
    "DegenerateNormalizationError",
    "EnsembleEngine",
    "Path",
    "PathEnsemble",
    "PathSampler",
    "AnimationDriver",
]
