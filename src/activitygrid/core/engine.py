"""Facade the rendering layer talks to."""

from typing import Any, Dict, List, Optional, Sequence, Union
import logging

import numpy as np

from ..config import EngineConfig
from .calendar import CalendarResult, CalendarWeek, ingest_calendar, parse_calendar_payload
from .grid import Grid
from .overrides import DEFAULT_OVERRIDES, OverrideTable
from .patterns import PatternType, life_step, sample_image
from .scheduler import AnimationScheduler
from .state import STOP_REASON_MAX_GENERATIONS, STOP_REASON_STABLE, EngineState

logger = logging.getLogger(__name__)

STATUS_RUNNING = "Running"
STATUS_EMPTY = "Empty Grid"
STATUS_STABLE = "Stable"
STATUS_MAX_GENERATIONS = "Max Generations Reached"
STATUS_PAUSED = "Paused"


class ActivityGridEngine:
    """Owns the grid, the active pattern and the animation clock.

    The engine starts on a randomized grid with Life selected. A successful
    calendar ingestion replaces the grid with real activity counts; pattern
    commands animate over it.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        overrides: Optional[OverrideTable] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Engine configuration (defaults to a 7x52 grid)
            overrides: Calendar override table (defaults to the built-in table)
            rng: Random generator (defaults to one seeded from ``config.seed``)
        """
        self.config = config or EngineConfig()
        self.overrides = DEFAULT_OVERRIDES if overrides is None else overrides
        rng = rng if rng is not None else np.random.default_rng(self.config.seed)

        grid = Grid.randomized(self.config.rows, self.config.cols, self.config.random_density, rng)
        self.state = EngineState(grid=grid)
        self.scheduler = AnimationScheduler(self.state, self.config, rng)

        self.calendar: Optional[CalendarResult] = None
        self.show_real_data = False
        self.active_pattern: Optional[PatternType] = None
        self._baseline: Optional[Grid] = None

    @property
    def grid(self) -> Grid:
        """Current grid. Treat it as read-only; it is replaced on every change."""
        return self.state.grid

    @property
    def generation(self) -> int:
        return self.state.generation

    @property
    def pattern(self) -> PatternType:
        return self.state.pattern

    @property
    def is_running(self) -> bool:
        return self.scheduler.is_running

    @property
    def month_labels(self) -> List[str]:
        return list(self.calendar.month_labels) if self.calendar else []

    @property
    def status(self) -> str:
        """Human-readable status label for the current state."""
        if self.is_running:
            return STATUS_RUNNING

        if self.pattern is PatternType.LIFE:
            if self.grid.population == 0:
                return STATUS_EMPTY
            if self.state.stop_reason == STOP_REASON_STABLE:
                return STATUS_STABLE
            if self.generation > 0 and not life_step(self.grid).changed:
                return STATUS_STABLE

        if self.state.stop_reason == STOP_REASON_MAX_GENERATIONS or self.generation >= self.config.max_generations:
            return STATUS_MAX_GENERATIONS

        return STATUS_PAUSED

    def start(self, now: Optional[float] = None) -> None:
        self.scheduler.start(now)

    def stop(self) -> None:
        self.scheduler.stop()

    def tick(self, now: Optional[float] = None) -> bool:
        """Forward a frame-pump tick to the scheduler."""
        return self.scheduler.tick(now)

    def switch_pattern(self, pattern: Union[PatternType, str]) -> None:
        """Select a pattern by enum or name and seed its starting grid."""
        if not isinstance(pattern, PatternType):
            pattern = PatternType.from_name(pattern)
        self.scheduler.switch_pattern(pattern)

    def reset(self) -> None:
        self.scheduler.reset()

    def randomize(self) -> None:
        self.scheduler.randomize()

    def toggle_pattern(self, pattern: Union[PatternType, str], now: Optional[float] = None) -> None:
        """Start, pause or switch a pattern the way the heading letters do.

        When stopped, the current grid is remembered and ``pattern`` starts.
        Toggling the running pattern again stops it and restores the
        remembered grid. Toggling a different pattern switches to it.
        """
        if not isinstance(pattern, PatternType):
            pattern = PatternType.from_name(pattern)
        self.show_real_data = False

        if not self.is_running:
            self._baseline = self.grid.copy()
            self.scheduler.switch_pattern(pattern)
            self.scheduler.start(now)
            self.active_pattern = pattern
            return

        if self.active_pattern is pattern:
            self.scheduler.stop()
            if self._baseline is not None:
                self.state.replace_grid(self._baseline.copy())
            self.active_pattern = None
            return

        self.scheduler.switch_pattern(pattern)
        self.active_pattern = pattern

    def set_frames(self, frames: Sequence[np.ndarray]) -> None:
        """Provide the animation frames shown in turn by the image pattern.

        Every frame is validated before any is installed. An empty sequence
        withdraws the image.

        Raises:
            ValueError: If a frame is not a grayscale or RGB(A) raster
        """
        frames = tuple(frames)
        for frame in frames:
            sample_image(frame, self.config.rows, self.config.cols)
        self.scheduler.frames = frames
        logger.debug(f"Image pattern has {len(frames)} frame(s)")

    def set_image(self, image: Optional[np.ndarray]) -> None:
        """Provide a single still raster, or withdraw the image with None."""
        self.set_frames(() if image is None else (image,))

    def ingest_calendar(self, payload: Any, login: Optional[str] = None) -> CalendarResult:
        """Replace the grid with calendar data.

        Args:
            payload: Raw calendar payload or a list of CalendarWeek
            login: Identity the calendar belongs to

        Returns:
            The ingestion result now shown on the grid

        Raises:
            CalendarDataError: If the payload holds no list of weeks or a
                count is too large for a cell. The engine state is left untouched.
        """
        try:
            if isinstance(payload, list) and all(isinstance(week, CalendarWeek) for week in payload):
                weeks = payload
            else:
                weeks = parse_calendar_payload(payload)
            result = ingest_calendar(weeks, login, self.overrides, self.config.rows, self.config.cols)
        except ValueError as e:
            logger.error(f"Calendar ingestion failed: {e}")
            raise

        self.scheduler.stop()
        self.state.restart(result.grid.copy(), self.state.pattern_state)
        self.calendar = result
        self.show_real_data = True
        self.active_pattern = None
        return result

    def get_statistics(self) -> Dict[str, Any]:
        """Get a snapshot of engine statistics.

        Returns:
            Dictionary with various statistics
        """
        cells = self.grid.rows * self.grid.cols
        return {
            "pattern": self.pattern.value,
            "pattern_name": self.pattern.display_name,
            "status": self.status,
            "generation": self.generation,
            "max_generations": self.config.max_generations,
            "population": self.grid.population,
            "population_density": self.grid.population / cells,
            "grid_size": self.grid.shape,
            "show_real_data": self.show_real_data,
            "calendar_total": self.calendar.total if self.calendar else None,
            "calendar_range": (
                (self.calendar.start_date, self.calendar.end_date) if self.calendar else None
            ),
        }
