"""Frame-rate limited animation loop driven by an external frame pump."""

from enum import Enum
from typing import Optional, Tuple
import logging
import time

import numpy as np

from ..config import EngineConfig
from .grid import Grid
from .patterns import PatternType, initial_grid, initial_state, run_step
from .state import STOP_REASON_MAX_GENERATIONS, STOP_REASON_STABLE, EngineState

logger = logging.getLogger(__name__)


class SchedulerStatus(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


def now_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.monotonic() * 1000.0


class AnimationScheduler:
    """Applies the active pattern to the engine state at a bounded frame rate.

    The scheduler owns no thread or timer. The host calls ``tick(now)`` once
    per available frame; a step runs only when at least one frame interval
    has elapsed since the last applied frame. Life stops on its own once a
    step changes nothing, and every pattern stops at the generation cap.
    """

    def __init__(
        self,
        state: EngineState,
        config: Optional[EngineConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            state: State holder the scheduler reads and writes
            config: Frame interval, generation cap and random density
            rng: Random generator shared by all pattern steps
        """
        self.state = state
        self.config = config or EngineConfig(rows=state.rows, cols=state.cols)
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.frames: Tuple[np.ndarray, ...] = ()
        self._status = SchedulerStatus.STOPPED
        self._last_frame = 0.0

    @property
    def status(self) -> SchedulerStatus:
        return self._status

    @property
    def is_running(self) -> bool:
        return self._status is SchedulerStatus.RUNNING

    @property
    def pattern(self) -> PatternType:
        return self.state.pattern

    def start(self, now: Optional[float] = None) -> None:
        """Start animating from the current grid."""
        if self.is_running:
            return
        self._last_frame = now_ms() if now is None else now
        self._status = SchedulerStatus.RUNNING
        self.state.stop_reason = None
        logger.debug(f"Animation started: {self.state.pattern.value} at generation {self.state.generation}")

    def stop(self, reason: Optional[str] = None) -> None:
        """Stop animating. Calling it while stopped does nothing."""
        if not self.is_running:
            return
        self._status = SchedulerStatus.STOPPED
        self.state.stop_reason = reason
        if reason:
            logger.info(f"Animation stopped ({reason}) at generation {self.state.generation}")
        else:
            logger.debug(f"Animation stopped at generation {self.state.generation}")

    def tick(self, now: Optional[float] = None) -> bool:
        """Advance one frame if the frame interval has elapsed.

        Args:
            now: Current time in milliseconds (defaults to the monotonic clock)

        Returns:
            True if a step was committed to the state
        """
        if not self.is_running:
            return False

        now = now_ms() if now is None else now
        interval = self.config.frame_interval_ms
        elapsed = now - self._last_frame
        if elapsed < interval:
            return False

        # Keep frame pacing aligned to the interval grid instead of drifting
        self._last_frame = now - (elapsed % interval) if interval > 0 else now

        result = run_step(self.state.pattern, self.state.grid, self.state.pattern_state, self.rng, self.frames)

        if self.state.pattern is PatternType.LIFE and not result.changed:
            self.stop(STOP_REASON_STABLE)
            return False

        if self.state.generation >= self.config.max_generations:
            self.stop(STOP_REASON_MAX_GENERATIONS)
            return False

        self.state.replace_grid(result.grid)
        self.state.pattern_state = result.state
        self.state.generation += 1
        return True

    def switch_pattern(self, pattern: PatternType) -> None:
        """Make ``pattern`` active and seed its starting grid.

        Generation and pattern state are reset; the running/stopped status is
        left as it is.
        """
        grid = initial_grid(pattern, self.state.rows, self.state.cols, self.config.random_density, self.rng)
        self.state.pattern = pattern
        self.state.restart(grid, initial_state(pattern))
        logger.debug(f"Switched pattern to {pattern.value}")

    def reset(self) -> None:
        """Stop and clear the grid, generation and pattern state."""
        self.stop()
        self.state.restart(Grid.empty(self.state.rows, self.state.cols), initial_state(self.state.pattern))

    def randomize(self) -> None:
        """Stop and fill the grid with random cells."""
        self.stop()
        grid = Grid.randomized(self.state.rows, self.state.cols, self.config.random_density, self.rng)
        self.state.restart(grid, initial_state(self.state.pattern))
