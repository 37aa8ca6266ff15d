"""Simulation engine for sampling and normalizing path ensembles."""

from pathint.simulation.path_sampler import (
    PathSampler,
    calculate_action,
    generate_random_path,
    generate_random_paths,
    harmonic_potential,
)
from pathint.simulation.ensemble import EnsembleEngine, Path, PathEnsemble

__all__ = [
    "PathSampler",
    "calculate_action",
    "generate_random_path",
    "generate_random_paths",
    "harmonic_potential",
    "EnsembleEngine",
    "Path",
    "PathEnsemble",
]
