"""
Tests for path sampling and the discretized action.
"""

import pytest
import numpy as np
from pathint.params import SimulationParameters
from pathint.simulation.path_sampler import (
    PathSampler,
    calculate_action,
    generate_random_path,
    generate_random_paths,
    harmonic_potential,
)


def reference_action(positions, mass, dt):
    """Plain loop accumulation of the action, term by term."""
    action = 0.0
    for t in range(1, len(positions)):
        dx = positions[t] - positions[t - 1]
        kinetic = 0.5 * mass * dx * dx / (dt * dt)
        potential = 0.5 * positions[t] * positions[t]
        action += (kinetic - potential) * dt
    return action


class TestGenerateRandomPath:
    """Test suite for path generation."""

    @pytest.fixture
    def rng(self):
        return np.random.default_rng(42)

    @pytest.mark.parametrize("noise", ["uniform", "gaussian"])
    def test_endpoints_pinned(self, rng, noise):
        """First and last positions equal the boundary values exactly."""
        paths = generate_random_paths(-2.0, 2.0, 30, 100, rng, noise=noise)

        assert paths.shape == (100, 31)
        assert np.all(paths[:, 0] == -2.0)
        assert np.all(paths[:, -1] == 2.0)

    def test_single_path_length(self, rng):
        """A single path has time_steps + 1 positions."""
        path = generate_random_path(0.3, -1.7, 12, rng)

        assert isinstance(path, np.ndarray)
        assert len(path) == 13
        assert path[0] == 0.3
        assert path[-1] == -1.7

    def test_single_time_step(self, rng):
        """time_steps=1 yields the two endpoints and nothing else."""
        path = generate_random_path(-1.0, 1.0, 1, rng)

        np.testing.assert_array_equal(path, [-1.0, 1.0])

    def test_uniform_noise_bounds(self, rng):
        """Uniform perturbations stay within noise_scale of the straight line."""
        time_steps = 20
        paths = generate_random_paths(-2.0, 2.0, time_steps, 500, rng, noise_scale=0.5)

        alpha = np.arange(1, time_steps) / time_steps
        line = (1 - alpha) * -2.0 + alpha * 2.0
        offsets = paths[:, 1:-1] - line

        assert np.all(offsets >= -0.5 - 1e-12)
        assert np.all(offsets < 0.5 + 1e-12)
        # Noise is actually present
        assert np.std(offsets) > 0.1

    def test_zero_noise_is_straight_line(self, rng):
        """With noise disabled interior points sit on the interpolation."""
        path = generate_random_path(0.0, 2.0, 2, rng, noise_scale=0.0)

        np.testing.assert_array_equal(path, [0.0, 1.0, 2.0])

    def test_batch_matches_sequential_draws(self):
        """Row i of a batch equals the i-th single path from the same stream."""
        batch = generate_random_paths(-1.0, 3.0, 10, 4, np.random.default_rng(7))

        rng = np.random.default_rng(7)
        singles = np.array([generate_random_path(-1.0, 3.0, 10, rng) for _ in range(4)])

        np.testing.assert_array_equal(batch, singles)

    def test_reproducibility(self):
        """Same seed gives identical paths."""
        p1 = generate_random_paths(0.0, 1.0, 15, 5, np.random.default_rng(3))
        p2 = generate_random_paths(0.0, 1.0, 15, 5, np.random.default_rng(3))

        np.testing.assert_array_equal(p1, p2)

    def test_empty_batch(self, rng):
        """Zero paths gives an empty array of the right width."""
        paths = generate_random_paths(0.0, 1.0, 5, 0, rng)

        assert paths.shape == (0, 6)


class TestCalculateAction:
    """Test suite for the discretized action."""

    def test_harmonic_potential(self):
        assert harmonic_potential(0.0) == 0.0
        assert harmonic_potential(2.0) == 2.0
        np.testing.assert_array_equal(harmonic_potential(np.array([1.0, -3.0])), [0.5, 4.5])

    def test_stationary_path_at_origin(self):
        """A path resting at the origin has zero action."""
        assert calculate_action([0.0, 0.0, 0.0], mass=1.0, dt=1.0) == 0.0

    def test_straight_line_golden_value(self):
        """Noise-free path 0 -> 2 over two steps.

        t=1: 0.5 - V(1) = 0.0, t=2: 0.5 - V(2) = -1.5
        """
        path = generate_random_path(0.0, 2.0, 2, np.random.default_rng(0), noise_scale=0.0)

        assert calculate_action(path, mass=1.0, dt=1.0) == pytest.approx(-1.5)

    def test_excursion_golden_value(self):
        """Path 0 -> 1 -> 0: t=1 gives 0.0, t=2 gives 0.5."""
        assert calculate_action([0.0, 1.0, 0.0], mass=1.0, dt=1.0) == pytest.approx(0.5)

    def test_single_term(self):
        """With one time step the action is one term: (16 - 4.5) * 0.5."""
        assert calculate_action([1.0, 3.0], mass=2.0, dt=0.5) == pytest.approx(5.75)

    def test_left_to_right_accumulation(self):
        """Result is bit-identical to sequential accumulation."""
        path = generate_random_path(-2.0, 2.0, 50, np.random.default_rng(11))

        assert calculate_action(path, mass=1.3, dt=0.07) == reference_action(path, 1.3, 0.07)

    def test_batch_actions(self):
        """A 2-D batch yields one action per row."""
        paths = generate_random_paths(-2.0, 2.0, 30, 8, np.random.default_rng(5))

        actions = calculate_action(paths, mass=1.0, dt=0.1)

        assert actions.shape == (8,)
        for row, action in zip(paths, actions):
            assert action == reference_action(row, 1.0, 0.1)

    def test_custom_potential(self):
        """A free particle (V = 0) has only kinetic action."""
        action = calculate_action([0.0, 1.0, 3.0], mass=1.0, dt=1.0, potential=lambda x: 0 * x)

        assert action == pytest.approx(0.5 + 2.0)

    def test_too_short_path(self):
        """Fewer than two positions is rejected."""
        with pytest.raises(ValueError, match="at least two positions"):
            calculate_action([1.0], mass=1.0, dt=0.1)


class TestPathSampler:
    """Test suite for the PathSampler class."""

    def test_sample_shapes(self):
        params = SimulationParameters(num_paths=25, time_steps=10)
        positions, actions = PathSampler(seed=1).sample(params)

        assert positions.shape == (25, 11)
        assert actions.shape == (25,)

    def test_sample_actions_match_positions(self):
        params = SimulationParameters(num_paths=5, time_steps=8, mass=2.0, dt=0.2)
        positions, actions = PathSampler(seed=9).sample(params)

        for row, action in zip(positions, actions):
            assert action == reference_action(row, 2.0, 0.2)

    def test_injected_rng(self):
        """An injected generator is used as-is."""
        params = SimulationParameters(num_paths=3, time_steps=4)
        p1, _ = PathSampler(rng=np.random.default_rng(21)).sample(params)
        p2, _ = PathSampler(seed=21).sample(params)

        np.testing.assert_array_equal(p1, p2)

    def test_reseed(self):
        params = SimulationParameters(num_paths=3, time_steps=4)
        sampler = PathSampler(seed=2)
        first, _ = sampler.sample(params)
        sampler.reseed(2)
        second, _ = sampler.sample(params)

        np.testing.assert_array_equal(first, second)

    def test_empty_sample(self):
        params = SimulationParameters(num_paths=0, time_steps=4)
        positions, actions = PathSampler(seed=2).sample(params)

        assert positions.shape == (0, 5)
        assert actions.shape == (0,)
