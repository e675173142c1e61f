"""Process-local holder for the grid and the active pattern."""

from dataclasses import dataclass, field
from typing import Optional

from .grid import Grid
from .patterns import NoState, PatternState, PatternType

STOP_REASON_STABLE = "stable"
STOP_REASON_MAX_GENERATIONS = "max_generations"


@dataclass
class EngineState:
    """Everything the renderer reads: grid, active pattern and clock.

    The grid is replaced wholesale on every committed change, never edited in
    place by the scheduler.
    """

    grid: Grid
    pattern: PatternType = PatternType.LIFE
    pattern_state: PatternState = field(default_factory=NoState)
    generation: int = 0
    stop_reason: Optional[str] = None

    @property
    def rows(self) -> int:
        return self.grid.rows

    @property
    def cols(self) -> int:
        return self.grid.cols

    def replace_grid(self, grid: Grid) -> None:
        """Swap in a new grid of the same shape.

        Raises:
            ValueError: If the new grid has different dimensions
        """
        if grid.shape != self.grid.shape:
            raise ValueError(f"Grid dimensions don't match: {grid.shape} vs {self.grid.shape}")
        self.grid = grid

    def restart(self, grid: Grid, pattern_state: PatternState) -> None:
        """Install a fresh grid and state and rewind the generation counter."""
        self.replace_grid(grid)
        self.pattern_state = pattern_state
        self.generation = 0
        self.stop_reason = None
