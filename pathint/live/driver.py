"""Animation driver: periodic and on-demand ensemble regeneration."""

import logging
import time
from typing import Any, Callable, Optional

from pathint.exceptions import DegenerateNormalizationError
from pathint.params import SimulationParameters
from pathint.simulation.ensemble import EnsembleEngine, PathEnsemble

logger = logging.getLogger(__name__)


class AnimationDriver:
    """Drives an ensemble engine on a tick cadence.

    Regenerates the ensemble every ``regenerate_every`` ticks, whenever a
    parameter changes, and on explicit request. Holds the current
    parameter snapshot; the engine holds the current ensemble.

    Parameters
    ----------
    engine : EnsembleEngine
        Engine to regenerate
    params : SimulationParameters, optional
        Initial parameters (defaults if omitted)
    regenerate_every : int, default=300
        Regenerate every N unpaused ticks
    frame_interval : float, default=1/60
        Seconds to sleep between ticks in ``start``
    renderer : callable, optional
        Called with the current ensemble every ``render_every`` ticks
    render_every : int, default=1
        Render every N ticks
    callback : callable, optional
        Called with the tick info dict after each tick
    """

    def __init__(
        self,
        engine: EnsembleEngine,
        params: Optional[SimulationParameters] = None,
        regenerate_every: int = 300,
        frame_interval: float = 1.0 / 60,
        renderer: Optional[Callable[[PathEnsemble], Any]] = None,
        render_every: int = 1,
        callback: Optional[Callable[[dict], Any]] = None,
    ):
        if regenerate_every < 1:
            raise ValueError("regenerate_every must be at least 1")
        if render_every < 1:
            raise ValueError("render_every must be at least 1")
        if frame_interval < 0:
            raise ValueError("frame_interval must be non-negative")

        self.engine = engine
        self.params = params if params is not None else SimulationParameters()
        self.regenerate_every = regenerate_every
        self.frame_interval = frame_interval
        self.renderer = renderer
        self.render_every = render_every
        self.callback = callback

        self.running = False
        self.paused = False
        self.frame_count = 0
        self.current_frame = 0
        self.regeneration_count = 0
        self.error_count = 0
        self.fps: Optional[float] = None
        self._last_tick_time: Optional[float] = None

        self.request_regenerate()

    def request_regenerate(self) -> Optional[PathEnsemble]:
        """Regenerate immediately with the current parameters."""
        return self._regenerate("request")

    def set_parameter(self, name: str, value: Any) -> Optional[PathEnsemble]:
        """Change one parameter and regenerate.

        Raises
        ------
        InvalidParameterError
            If the change is rejected; parameters stay unchanged
        """
        return self.update_parameters(**{name: value})

    def update_parameters(self, **changes: Any) -> Optional[PathEnsemble]:
        """Change several parameters at once and regenerate."""
        try:
            new_params = self.params.with_updates(**changes)
        except ValueError as e:
            logger.warning("Rejected parameter change %s: %s", changes, e)
            raise
        self.params = new_params
        return self._regenerate("parameter")

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def toggle_pause(self) -> bool:
        """Flip the paused state and return the new value."""
        self.paused = not self.paused
        return self.paused

    def tick(self) -> dict:
        """Advance one frame.

        Returns
        -------
        dict
            Tick information
        """
        now = time.perf_counter()
        if self._last_tick_time is not None and now > self._last_tick_time:
            self.fps = 1.0 / (now - self._last_tick_time)
        self._last_tick_time = now
        self.frame_count += 1

        regenerated = False
        if not self.paused:
            self.current_frame += 1
            if self.current_frame % self.regenerate_every == 0:
                regenerated = self._regenerate("interval") is not None

        ensemble = self.engine.current_ensemble()
        if self.renderer is not None and self.frame_count % self.render_every == 0:
            self.renderer(ensemble)

        tick_info = {
            "frame_count": self.frame_count,
            "current_frame": self.current_frame,
            "paused": self.paused,
            "regenerated": regenerated,
            "num_paths": len(ensemble),
            "generation": self.engine.generation,
            "fps": self.fps,
        }

        if self.callback:
            self.callback(tick_info)

        return tick_info

    def start(self, max_frames: Optional[int] = None) -> None:
        """Run the tick loop until ``stop`` is called or ``max_frames`` ticks."""
        self.running = True
        logger.info(
            "Starting animation driver (regenerate every %d ticks, %.1f fps target)",
            self.regenerate_every,
            1.0 / self.frame_interval if self.frame_interval else float("inf"),
        )

        ticks = 0
        while self.running:
            try:
                self.tick()
            except KeyboardInterrupt:
                self.stop()
                break
            except Exception:
                # Errors in one frame must not end the loop
                logger.exception("Error in animation loop")
                self.error_count += 1

            ticks += 1
            if max_frames is not None and ticks >= max_frames:
                self.stop()
                break
            if self.frame_interval:
                time.sleep(self.frame_interval)

    def stop(self) -> None:
        """Stop the tick loop."""
        self.running = False
        logger.info("Animation driver stopped")

    def get_status(self) -> dict:
        """Get current status of the driver.

        Returns
        -------
        dict
            Status information
        """
        return {
            "running": self.running,
            "paused": self.paused,
            "frame_count": self.frame_count,
            "current_frame": self.current_frame,
            "regeneration_count": self.regeneration_count,
            "error_count": self.error_count,
            "generation": self.engine.generation,
            "params": self.params.to_dict(),
            "fps": self.fps,
        }

    def _regenerate(self, reason: str) -> Optional[PathEnsemble]:
        try:
            ensemble = self.engine.regenerate(self.params)
        except DegenerateNormalizationError as e:
            self.error_count += 1
            logger.warning("Regeneration (%s) skipped: %s", reason, e)
            return None
        self.regeneration_count += 1
        logger.debug("Regenerated ensemble (%s), generation %d", reason, self.engine.generation)
        return ensemble
