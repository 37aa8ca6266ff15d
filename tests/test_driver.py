"""
Tests for the animation driver.
"""

import pytest
from unittest.mock import MagicMock, Mock, patch
from pathint.exceptions import DegenerateNormalizationError, InvalidParameterError
from pathint.live.driver import AnimationDriver
from pathint.params import SimulationParameters
from pathint.simulation.ensemble import EnsembleEngine, PathEnsemble


class TestAnimationDriver:
    """Test suite for the AnimationDriver class."""

    @pytest.fixture
    def params(self):
        return SimulationParameters(num_paths=20, time_steps=5)

    @pytest.fixture
    def engine(self):
        return EnsembleEngine(seed=42)

    @pytest.fixture
    def driver(self, engine, params):
        return AnimationDriver(engine, params, regenerate_every=3, frame_interval=0)

    def test_initial_regeneration(self, driver, engine):
        """Creating a driver publishes a first ensemble."""
        assert engine.generation == 1
        assert len(engine.current_ensemble()) == 20
        assert driver.regeneration_count == 1

    def test_default_parameters(self, engine):
        driver = AnimationDriver(engine, frame_interval=0)

        assert driver.params == SimulationParameters()
        assert len(engine.current_ensemble()) == 500

    def test_invalid_settings(self, engine):
        with pytest.raises(ValueError, match="regenerate_every"):
            AnimationDriver(engine, regenerate_every=0)
        with pytest.raises(ValueError, match="render_every"):
            AnimationDriver(engine, render_every=0)

    def test_interval_regeneration(self, driver, engine):
        """Ensemble is regenerated every regenerate_every ticks."""
        infos = [driver.tick() for _ in range(7)]

        assert [info["regenerated"] for info in infos] == [
            False, False, True, False, False, True, False,
        ]
        assert engine.generation == 3
        assert infos[-1]["frame_count"] == 7
        assert infos[-1]["num_paths"] == 20

    def test_pause_stops_regeneration(self, driver, engine):
        driver.pause()
        for _ in range(6):
            info = driver.tick()

        assert info["paused"] is True
        assert driver.current_frame == 0
        assert driver.frame_count == 6
        assert engine.generation == 1

        driver.resume()
        for _ in range(3):
            driver.tick()
        assert engine.generation == 2

    def test_toggle_pause(self, driver):
        assert driver.toggle_pause() is True
        assert driver.toggle_pause() is False

    def test_parameter_change_regenerates(self, driver, engine):
        ensemble = driver.set_parameter("num_paths", 8)

        assert len(ensemble) == 8
        assert engine.current_ensemble() is ensemble
        assert driver.params.num_paths == 8
        assert engine.generation == 2

    def test_update_parameters(self, driver, engine):
        driver.update_parameters(start_pos=0.0, end_pos=1.0)

        ensemble = engine.current_ensemble()
        assert driver.params.start_pos == 0.0
        assert (ensemble.positions[:, -1] == 1.0).all()

    def test_rejected_parameter_keeps_state(self, driver, engine, params):
        before = engine.current_ensemble()

        with pytest.raises(InvalidParameterError):
            driver.set_parameter("hbar", 0.0)

        assert driver.params == params
        assert engine.current_ensemble() is before
        assert engine.generation == 1

    def test_unknown_parameter(self, driver):
        with pytest.raises(InvalidParameterError, match="Unknown parameter"):
            driver.set_parameter("temperature", 1.0)

    def test_request_regenerate(self, driver, engine):
        driver.request_regenerate()

        assert engine.generation == 2
        assert driver.regeneration_count == 2

    def test_renderer_and_callback(self, engine, params):
        renderer = Mock()
        callback = Mock()
        driver = AnimationDriver(
            engine,
            params,
            frame_interval=0,
            renderer=renderer,
            render_every=2,
            callback=callback,
        )

        for _ in range(4):
            driver.tick()

        assert renderer.call_count == 2
        assert isinstance(renderer.call_args[0][0], PathEnsemble)
        assert callback.call_count == 4
        assert callback.call_args[0][0]["frame_count"] == 4

    def test_degenerate_regeneration_is_recovered(self, params):
        engine = MagicMock()
        engine.generation = 0
        engine.current_ensemble.return_value = PathEnsemble.empty()
        engine.regenerate.side_effect = DegenerateNormalizationError("Amplitude real component(s) sum to zero")

        driver = AnimationDriver(engine, params, regenerate_every=1, frame_interval=0)
        info = driver.tick()

        assert info["regenerated"] is False
        assert driver.error_count == 2
        assert driver.regeneration_count == 0

    def test_start_runs_max_frames(self, driver):
        driver.start(max_frames=5)

        assert driver.frame_count == 5
        assert driver.running is False

    def test_start_continues_after_errors(self, engine, params):
        renderer = Mock(side_effect=RuntimeError("render failed"))
        driver = AnimationDriver(engine, params, frame_interval=0, renderer=renderer)

        driver.start(max_frames=3)

        assert renderer.call_count == 3
        assert driver.error_count == 3

    @patch("pathint.live.driver.time.sleep")
    def test_start_sleeps_between_frames(self, mock_sleep, engine, params):
        driver = AnimationDriver(engine, params, frame_interval=0.5)

        driver.start(max_frames=3)

        assert mock_sleep.call_count == 2
        mock_sleep.assert_called_with(0.5)

    def test_stop(self, driver):
        driver.running = True
        driver.stop()

        assert driver.running is False

    def test_get_status(self, driver, params):
        driver.tick()
        status = driver.get_status()

        assert status["frame_count"] == 1
        assert status["current_frame"] == 1
        assert status["generation"] == 1
        assert status["regeneration_count"] == 1
        assert status["error_count"] == 0
        assert status["params"] == params.to_dict()
        assert status["paused"] is False
