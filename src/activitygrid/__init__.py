"""Activity grid: contribution calendar display and animated grid patterns."""

__version__ = "0.1.0"

from .config import EngineConfig
from .core.grid import Grid
from .core.patterns import PatternType
from .core.scheduler import AnimationScheduler
from .core.calendar import CalendarDataError, ingest_calendar
from .core.engine import ActivityGridEngine

__all__ = [
    "EngineConfig",
    "Grid",
    "PatternType",
    "AnimationScheduler",
    "CalendarDataError",
    "ingest_calendar",
    "ActivityGridEngine",
]
