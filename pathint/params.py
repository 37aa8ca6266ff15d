"""Simulation parameters for the path integral sampler."""

import math
import numbers
from dataclasses import dataclass, asdict, fields, replace
from typing import Any, Dict, Mapping

from pathint.exceptions import InvalidParameterError

NOISE_KINDS = ("uniform", "gaussian")


@dataclass(frozen=True)
class SimulationParameters:
    """Immutable snapshot of the parameters consumed by one regeneration.

    Defaults match the interactive visualizer.

    Parameters
    ----------
    num_paths : int, default=500
        Number of trajectories in the ensemble
    time_steps : int, default=30
        Number of discrete time intervals per trajectory
    hbar : float, default=1.0
        Reduced Planck constant analogue; scales phase sensitivity to action
    mass : float, default=1.0
        Particle mass analogue
    dt : float, default=0.1
        Time-step width
    dx : float, default=0.1
        Spatial perturbation scale. Accepted and carried along but not used
        by the sampler or the action.
    start_pos : float, default=-2.0
        Fixed first coordinate of every trajectory
    end_pos : float, default=2.0
        Fixed last coordinate of every trajectory
    noise_scale : float, default=0.5
        Amplitude of the interior perturbation; 0 gives the straight line
    noise : str, default='uniform'
        'uniform' for ``(U(0,1) - 0.5) * 2 * noise_scale`` or 'gaussian'
        for ``N(0, 1) * noise_scale``

    Raises
    ------
    InvalidParameterError
        If any field is out of range (see ``validate``)
    """

    num_paths: int = 500
    time_steps: int = 30
    hbar: float = 1.0
    mass: float = 1.0
    dt: float = 0.1
    dx: float = 0.1
    start_pos: float = -2.0
    end_pos: float = 2.0
    noise_scale: float = 0.5
    noise: str = "uniform"

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Check every field, raising on the first invalid one."""
        for name in ("num_paths", "time_steps"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise InvalidParameterError(
                    f"{name} must be an integer, got {value!r}"
                )

        for name in ("hbar", "mass", "dt", "dx", "start_pos", "end_pos", "noise_scale"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise InvalidParameterError(
                    f"{name} must be a real number, got {value!r}"
                )
            if not math.isfinite(value):
                raise InvalidParameterError(f"{name} must be finite, got {value!r}")

        if self.num_paths < 0:
            raise InvalidParameterError(
                f"num_paths must be non-negative, got {self.num_paths}"
            )
        if self.time_steps < 1:
            raise InvalidParameterError(
                f"time_steps must be at least 1, got {self.time_steps}"
            )
        if self.hbar == 0:
            raise InvalidParameterError("hbar must be non-zero (phase is undefined)")
        if self.dt == 0:
            raise InvalidParameterError("dt must be non-zero (kinetic term divides by dt)")
        if self.noise_scale < 0:
            raise InvalidParameterError(
                f"noise_scale must be non-negative, got {self.noise_scale}"
            )
        if self.noise not in NOISE_KINDS:
            raise InvalidParameterError(
                f"noise must be one of {', '.join(NOISE_KINDS)}, got {self.noise!r}"
            )

    def with_updates(self, **changes: Any) -> "SimulationParameters":
        """Return a new validated snapshot with ``changes`` applied.

        Raises
        ------
        InvalidParameterError
            If a name is unknown or the resulting snapshot is invalid
        """
        unknown = set(changes) - self.field_names()
        if unknown:
            raise InvalidParameterError(
                f"Unknown parameter(s): {', '.join(sorted(unknown))}"
            )
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "SimulationParameters":
        """Build parameters from a mapping, ignoring keys set to None."""
        unknown = set(values) - cls.field_names()
        if unknown:
            raise InvalidParameterError(
                f"Unknown parameter(s): {', '.join(sorted(unknown))}"
            )
        return cls(**{k: v for k, v in values.items() if v is not None})

    @classmethod
    def field_names(cls) -> set:
        return {f.name for f in fields(cls)}
