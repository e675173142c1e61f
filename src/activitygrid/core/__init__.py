"""Grid pattern engine and calendar ingestion."""

from .grid import Grid
from .patterns import PatternType, StepResult, run_step
from .state import EngineState
from .scheduler import AnimationScheduler, SchedulerStatus
from .calendar import CalendarDataError, CalendarDay, CalendarResult, CalendarWeek, ingest_calendar
from .engine import ActivityGridEngine

__all__ = [
    "Grid",
    "PatternType",
    "StepResult",
    "run_step",
    "EngineState",
    "AnimationScheduler",
    "SchedulerStatus",
    "CalendarDataError",
    "CalendarDay",
    "CalendarResult",
    "CalendarWeek",
    "ingest_calendar",
    "ActivityGridEngine",
]
