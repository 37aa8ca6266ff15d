"""Live driving loop for periodic ensemble regeneration."""

from pathint.live.driver import AnimationDriver

__all__ = ["AnimationDriver"]
