"""Engine configuration and defaults."""

from dataclasses import dataclass
from typing import Optional

DEFAULT_ROWS = 7
DEFAULT_COLS = 52
DEFAULT_FRAME_INTERVAL_MS = 150.0
DEFAULT_MAX_GENERATIONS = 500
DEFAULT_RANDOM_DENSITY = 0.3


@dataclass
class EngineConfig:
    """Configuration for an activity grid engine.

    Attributes:
        rows: Grid rows (days of the week)
        cols: Grid columns (weeks)
        frame_interval_ms: Minimum time between applied animation steps
        max_generations: Generation cap after which the animation stops
        random_density: Live-cell probability for randomized grids
        seed: Optional seed for the engine's random generator
    """

    rows: int = DEFAULT_ROWS
    cols: int = DEFAULT_COLS
    frame_interval_ms: float = DEFAULT_FRAME_INTERVAL_MS
    max_generations: int = DEFAULT_MAX_GENERATIONS
    random_density: float = DEFAULT_RANDOM_DENSITY
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        errors = []

        if self.rows <= 0:
            errors.append("rows must be positive")
        if self.cols <= 0:
            errors.append("cols must be positive")
        if self.frame_interval_ms < 0:
            errors.append("frame_interval_ms must be non-negative")
        if self.max_generations <= 0:
            errors.append("max_generations must be positive")
        if not 0.0 <= self.random_density <= 1.0:
            errors.append("random_density must be between 0.0 and 1.0")

        if errors:
            raise ValueError(f"Invalid engine configuration: {'; '.join(errors)}")
