"""Ensemble engine: builds, normalizes and publishes path ensembles."""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple
import numpy as np
import pandas as pd

from pathint.exceptions import DegenerateNormalizationError
from pathint.params import SimulationParameters
from pathint.simulation.path_sampler import PathSampler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Path:
    """One sampled trajectory of an ensemble.

    Paths compare equal when their scalars and positions match; the
    generated hash covers the scalar fields only.
    """

    positions: np.ndarray = field(compare=False)
    action: float
    phase: float
    amplitude: complex

    def __eq__(self, other):
        if not isinstance(other, Path):
            return NotImplemented
        return (
            self.action == other.action
            and self.phase == other.phase
            and self.amplitude == other.amplitude
            and np.array_equal(self.positions, other.positions)
        )

    @property
    def raw_amplitude(self) -> complex:
        """Unit-circle amplitude exp(i * phase) before normalization."""
        return complex(np.cos(self.phase), np.sin(self.phase))


def _readonly(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


class PathEnsemble:
    """Immutable collection of paths produced by one regeneration.

    Parameters
    ----------
    params : SimulationParameters
        Parameters the ensemble was generated with
    positions : np.ndarray
        Array of shape (num_paths, time_steps + 1)
    actions : np.ndarray
        Action of each path
    phases : np.ndarray
        Phase ``-action / hbar`` of each path
    amplitudes : np.ndarray
        Complex amplitude of each path (normalized unless ``degenerate``)
    degenerate : bool, default=False
        True when normalization was impossible and ``amplitudes`` hold the
        raw unit-circle values
    """

    def __init__(
        self,
        params: SimulationParameters,
        positions: np.ndarray,
        actions: np.ndarray,
        phases: np.ndarray,
        amplitudes: np.ndarray,
        degenerate: bool = False,
    ):
        self.params = params
        self.positions = _readonly(np.array(positions, dtype=float))
        self.actions = _readonly(np.array(actions, dtype=float))
        self.phases = _readonly(np.array(phases, dtype=float))
        self.amplitudes = _readonly(np.array(amplitudes, dtype=complex))
        self.degenerate = degenerate

    @classmethod
    def empty(cls, params: Optional[SimulationParameters] = None) -> "PathEnsemble":
        """Create an ensemble with no paths."""
        if params is None:
            params = SimulationParameters(num_paths=0)
        return cls(
            params,
            np.empty((0, params.time_steps + 1)),
            np.empty(0),
            np.empty(0),
            np.empty(0, dtype=complex),
        )

    def __len__(self) -> int:
        return len(self.actions)

    def __getitem__(self, index: int) -> Path:
        return Path(
            positions=self.positions[index],
            action=float(self.actions[index]),
            phase=float(self.phases[index]),
            amplitude=complex(self.amplitudes[index]),
        )

    def __iter__(self) -> Iterator[Path]:
        for i in range(len(self)):
            yield self[i]

    def __repr__(self) -> str:
        return (
            f"PathEnsemble(num_paths={len(self)}, "
            f"time_steps={self.params.time_steps}, degenerate={self.degenerate})"
        )

    def total_amplitude(self) -> complex:
        """Complex sum of all path amplitudes."""
        return complex(self.amplitudes.sum())

    def get_statistics(self) -> Dict:
        """Get summary statistics about the ensemble.

        Returns
        -------
        dict
            Dictionary with statistics:
            - num_paths: Number of paths
            - time_steps: Time intervals per path
            - degenerate: Whether amplitudes are unnormalized
            - action_min / action_max / action_mean: Action statistics
            - magnitude_max / magnitude_mean: Statistics of |amplitude|
            - total_amplitude: Complex sum of amplitudes
        """
        stats = {
            "num_paths": len(self),
            "time_steps": self.params.time_steps,
            "degenerate": self.degenerate,
            "total_amplitude": self.total_amplitude(),
        }
        if len(self) == 0:
            stats.update(
                action_min=None,
                action_max=None,
                action_mean=None,
                magnitude_max=None,
                magnitude_mean=None,
            )
            return stats

        magnitudes = np.abs(self.amplitudes)
        stats.update(
            action_min=float(np.min(self.actions)),
            action_max=float(np.max(self.actions)),
            action_mean=float(np.mean(self.actions)),
            magnitude_max=float(np.max(magnitudes)),
            magnitude_mean=float(np.mean(magnitudes)),
        )
        return stats

    def get_bounds_at_step(self, step: int) -> Optional[Dict[str, float]]:
        """Get min/max/mean of all paths at one time slice.

        Parameters
        ----------
        step : int
            Time slice index (0..time_steps)

        Returns
        -------
        dict, optional
            Dictionary with 'min', 'max', 'mean', 'std', 'median' keys, or
            None if the ensemble is empty or the step is out of range
        """
        if len(self) == 0 or step < 0 or step > self.params.time_steps:
            return None

        values = self.positions[:, step]
        return {
            "min": float(np.min(values)),
            "max": float(np.max(values)),
            "mean": float(np.mean(values)),
            "std": float(np.std(values)),
            "median": float(np.median(values)),
        }

    def to_frame(self) -> pd.DataFrame:
        """Tabulate the ensemble, one row per path.

        Columns are ``action``, ``phase``, ``real``, ``imag``, ``magnitude``
        followed by one ``x{t}`` column per time slice.
        """
        frame = pd.DataFrame(
            {
                "action": self.actions,
                "phase": self.phases,
                "real": self.amplitudes.real,
                "imag": self.amplitudes.imag,
                "magnitude": np.abs(self.amplitudes),
            }
        )
        slices = pd.DataFrame(
            self.positions,
            columns=[f"x{t}" for t in range(self.positions.shape[1])],
        )
        frame = pd.concat([frame, slices], axis=1)
        frame.index.name = "path"
        return frame


def compute_amplitudes(actions: np.ndarray, hbar: float) -> Tuple[np.ndarray, np.ndarray]:
    """Map actions to phases and unit-circle amplitudes.

    Returns
    -------
    tuple
        (phases ``-action / hbar``, amplitudes ``cos(phase) + i sin(phase)``)
    """
    phases = -np.asarray(actions, dtype=float) / hbar
    amplitudes = np.cos(phases) + 1j * np.sin(phases)
    return phases, amplitudes


def normalize_amplitudes(amplitudes: np.ndarray) -> np.ndarray:
    """Divide real and imaginary parts by their own sums.

    This is a per-component convention, not a modulus normalization: after
    it both components sum to one and |amplitude| may exceed one.

    Raises
    ------
    DegenerateNormalizationError
        If either component sums to exactly zero
    """
    sum_real = float(np.sum(amplitudes.real))
    sum_imag = float(np.sum(amplitudes.imag))

    zero = [name for name, total in (("real", sum_real), ("imag", sum_imag)) if total == 0]
    if zero:
        raise DegenerateNormalizationError(
            f"Amplitude {' and '.join(zero)} component(s) sum to zero"
        )

    return amplitudes.real / sum_real + 1j * (amplitudes.imag / sum_imag)


class EnsembleEngine:
    """Builds path ensembles and owns the currently published one.

    Every call to ``regenerate`` samples a fresh ensemble, normalizes it and
    swaps it in as a whole. Readers calling ``current_ensemble`` only ever
    see a complete, normalized ensemble. On any error the previous ensemble
    stays published.

    Parameters
    ----------
    sampler : PathSampler, optional
        Path sampler to draw from; a new one is created if omitted
    seed : int, optional
        Seed for the sampler created when ``sampler`` is omitted
    """

    def __init__(
        self,
        sampler: Optional[PathSampler] = None,
        seed: Optional[int] = None,
    ):
        self.sampler = sampler if sampler is not None else PathSampler(seed=seed)

        self._lock = threading.Lock()
        self._current = PathEnsemble.empty()
        self._published_ticket = 0
        self._next_ticket = 0
        self._in_flight = 0
        self.generation = 0

    @property
    def is_regenerating(self) -> bool:
        """True while at least one regeneration is in progress."""
        with self._lock:
            return self._in_flight > 0

    def current_ensemble(self) -> PathEnsemble:
        """Return the last completed ensemble."""
        with self._lock:
            return self._current

    def regenerate(self, params: SimulationParameters) -> PathEnsemble:
        """Sample, normalize and publish a new ensemble.

        Parameters
        ----------
        params : SimulationParameters
            Parameter snapshot for this regeneration

        Returns
        -------
        PathEnsemble
            The newly built ensemble

        Raises
        ------
        InvalidParameterError
            If ``params`` is invalid; nothing is sampled
        DegenerateNormalizationError
            If an amplitude component sums to zero. The exception carries
            the unnormalized ensemble; nothing is published.
        """
        params.validate()

        with self._lock:
            self._next_ticket += 1
            ticket = self._next_ticket
            self._in_flight += 1

        try:
            started = time.perf_counter()
            ensemble = self._build(params)
            self._publish(ensemble, ticket)
            logger.debug(
                "Regenerated %d paths x %d steps in %.3f ms",
                params.num_paths,
                params.time_steps,
                (time.perf_counter() - started) * 1000,
            )
            return ensemble
        finally:
            with self._lock:
                self._in_flight -= 1

    def _build(self, params: SimulationParameters) -> PathEnsemble:
        if params.num_paths == 0:
            return PathEnsemble.empty(params)

        positions, actions = self.sampler.sample(params)
        phases, raw = compute_amplitudes(actions, params.hbar)

        try:
            amplitudes = normalize_amplitudes(raw)
        except DegenerateNormalizationError as e:
            logger.warning("Degenerate ensemble, keeping previous one: %s", e)
            e.ensemble = PathEnsemble(
                params, positions, actions, phases, raw, degenerate=True
            )
            raise

        return PathEnsemble(params, positions, actions, phases, amplitudes)

    def _publish(self, ensemble: PathEnsemble, ticket: int) -> None:
        with self._lock:
            if ticket < self._published_ticket:
                logger.debug(
                    "Discarding superseded ensemble (ticket %d < %d)",
                    ticket,
                    self._published_ticket,
                )
                return
            self._current = ensemble
            self._published_ticket = ticket
            self.generation += 1
