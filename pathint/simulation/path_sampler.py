"""Monte Carlo path sampler for the discretized path integral."""

from typing import Callable, Optional, Tuple, Union
import numpy as np

from pathint.params import SimulationParameters

ArrayLike = Union[np.ndarray, list, tuple]


def harmonic_potential(x):
    """Harmonic oscillator potential V(x) = 0.5 * x^2."""
    return 0.5 * x * x


def _interior_noise(
    rng: np.random.Generator,
    shape: Tuple[int, ...],
    noise_scale: float,
    noise: str,
) -> np.ndarray:
    if noise == "gaussian":
        return rng.standard_normal(shape) * noise_scale
    # Uniform on [-noise_scale, noise_scale)
    return (rng.random(shape) - 0.5) * 2 * noise_scale


def generate_random_paths(
    start: float,
    end: float,
    time_steps: int,
    num_paths: int,
    rng: np.random.Generator,
    noise_scale: float = 0.5,
    noise: str = "uniform",
) -> np.ndarray:
    """Generate a batch of random paths between two fixed endpoints.

    Each interior point starts on the straight line between ``start`` and
    ``end`` and is perturbed by an independent noise draw. Noise for the
    whole batch is drawn at once, row by row, so row ``i`` equals the path
    the same generator state would yield from ``i`` calls to
    ``generate_random_path``.

    Parameters
    ----------
    start, end : float
        Boundary positions; copied exactly into the first and last column
    time_steps : int
        Number of time intervals (each path has ``time_steps + 1`` points)
    num_paths : int
        Number of paths in the batch
    rng : np.random.Generator
        Source of randomness
    noise_scale : float, default=0.5
        Perturbation amplitude
    noise : str, default='uniform'
        'uniform' or 'gaussian'

    Returns
    -------
    np.ndarray
        Array of shape (num_paths, time_steps + 1)
    """
    alpha = np.arange(1, time_steps) / time_steps
    line = (1 - alpha) * start + alpha * end

    paths = np.empty((num_paths, time_steps + 1))
    paths[:, 0] = start
    paths[:, -1] = end
    paths[:, 1:-1] = line + _interior_noise(
        rng, (num_paths, time_steps - 1), noise_scale, noise
    )
    return paths


def generate_random_path(
    start: float,
    end: float,
    time_steps: int,
    rng: np.random.Generator,
    noise_scale: float = 0.5,
    noise: str = "uniform",
) -> np.ndarray:
    """Generate a single random path.

    Returns
    -------
    np.ndarray
        Array of ``time_steps + 1`` positions with pinned endpoints
    """
    return generate_random_paths(
        start, end, time_steps, 1, rng, noise_scale=noise_scale, noise=noise
    )[0]


def calculate_action(
    positions: ArrayLike,
    mass: float,
    dt: float,
    potential: Callable = harmonic_potential,
):
    """Calculate the discretized classical action of a path.

    S = sum over t = 1..len-1 of (T(t) - V(x_t)) * dt, with the kinetic term
    T(t) = 0.5 * m * (x_t - x_{t-1})^2 / dt^2. Terms are accumulated left to
    right so results are reproducible to the last bit.

    Parameters
    ----------
    positions : array-like
        A path of at least two positions, or a 2-D batch with one path per row
    mass : float
        Particle mass
    dt : float
        Time-step width
    potential : callable, default=harmonic_potential
        Vectorized potential V(x)

    Returns
    -------
    float or np.ndarray
        Action of the path, or one action per row for a batch

    Raises
    ------
    ValueError
        If a path has fewer than two positions
    """
    positions = np.asarray(positions, dtype=float)
    if positions.ndim == 0 or positions.shape[-1] < 2:
        raise ValueError("A path needs at least two positions to have an action")

    steps = np.diff(positions, axis=-1)
    kinetic = 0.5 * mass * steps * steps / (dt * dt)
    terms = (kinetic - potential(positions[..., 1:])) * dt

    # cumsum is strictly sequential, unlike np.sum's pairwise reduction
    action = np.cumsum(terms, axis=-1)[..., -1]
    if action.ndim == 0:
        return float(action)
    return action


class PathSampler:
    """Samples trajectories and their actions for a parameter snapshot.

    Parameters
    ----------
    rng : np.random.Generator, optional
        Random generator; takes precedence over ``seed``
    seed : int, optional
        Seed for a fresh generator when ``rng`` is not given
    """

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ):
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def reseed(self, seed: Optional[int]) -> None:
        """Replace the generator with a freshly seeded one."""
        self.rng = np.random.default_rng(seed)

    def sample(self, params: SimulationParameters) -> Tuple[np.ndarray, np.ndarray]:
        """Sample ``params.num_paths`` paths and compute their actions.

        Returns
        -------
        tuple
            (positions of shape (num_paths, time_steps + 1), actions of
            shape (num_paths,))
        """
        positions = generate_random_paths(
            params.start_pos,
            params.end_pos,
            params.time_steps,
            params.num_paths,
            self.rng,
            noise_scale=params.noise_scale,
            noise=params.noise,
        )
        if params.num_paths == 0:
            return positions, np.empty(0)
        actions = calculate_action(positions, params.mass, params.dt)
        return positions, actions
