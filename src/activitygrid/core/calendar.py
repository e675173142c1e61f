"""Map an externally fetched contribution calendar onto the activity grid."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
import logging

from .grid import MAX_CELL_VALUE, Grid
from .overrides import DEFAULT_OVERRIDES, OverrideTable

logger = logging.getLogger(__name__)

CALENDAR_ROWS = 7
CALENDAR_COLS = 52
MAX_MONTH_LABELS = 12

MONTH_ABBREVIATIONS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
DAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


class CalendarDataError(ValueError):
    """The calendar source returned something that is not a list of weeks."""


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _parse_count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return 0
    if value > MAX_CELL_VALUE:
        raise CalendarDataError(f"Contribution count {value} is too large")
    return value


@dataclass(frozen=True)
class CalendarDay:
    """One calendar day. ``date`` is None when the source sent an unreadable date."""

    date: Optional[date]
    contribution_count: int = 0

    @property
    def date_str(self) -> Optional[str]:
        return self.date.isoformat() if self.date else None

    @classmethod
    def from_dict(cls, data: Any) -> "CalendarDay":
        """Build a day from a ``{date, contributionCount}`` record, tolerating bad fields."""
        if not isinstance(data, Mapping):
            return cls(None, 0)
        return cls(_parse_date(data.get("date")), _parse_count(data.get("contributionCount")))


@dataclass(frozen=True)
class CalendarWeek:
    """Up to seven days, Sunday first."""

    days: Tuple[CalendarDay, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> "CalendarWeek":
        """Build a week from a ``{contributionDays: [...]}`` record; malformed weeks are empty."""
        if isinstance(data, CalendarWeek):
            return data
        if not isinstance(data, Mapping):
            return cls()
        days = data.get("contributionDays")
        if not isinstance(days, list):
            return cls()
        return cls(tuple(CalendarDay.from_dict(day) for day in days))


@dataclass
class CalendarResult:
    """Grid and metadata produced by one ingestion pass."""

    grid: Grid
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    month_labels: List[str] = field(default_factory=list)
    total: int = 0
    overrides_applied: int = 0
    monthly_totals: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the result to a JSON-friendly dictionary."""
        return {
            "grid": self.grid.to_list(),
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "monthLabels": list(self.month_labels),
            "finalTotal": self.total,
            "overridesApplied": self.overrides_applied,
            "monthlyTotals": dict(self.monthly_totals),
        }


def parse_calendar_payload(payload: Any) -> List[CalendarWeek]:
    """Extract the list of weeks from a calendar payload.

    Accepts the raw GraphQL response
    (``data.user.contributionsCollection.contributionCalendar.weeks``), a
    mapping holding ``weeks`` or ``contributionCalendar``, or a bare list of
    weeks. Individual malformed weeks and days are tolerated.

    Raises:
        CalendarDataError: If no list of weeks can be found or a count is too large for a cell
    """
    weeks: Any = payload

    if isinstance(payload, Mapping):
        if "data" in payload or "errors" in payload:
            errors = payload.get("errors")
            try:
                collection = payload["data"]["user"]["contributionsCollection"]
                weeks = collection["contributionCalendar"]["weeks"]
            except (KeyError, TypeError):
                detail = f": {errors}" if errors else ""
                raise CalendarDataError(f"Unexpected response from calendar source{detail}")
        elif "contributionCalendar" in payload:
            calendar = payload["contributionCalendar"]
            weeks = calendar.get("weeks") if isinstance(calendar, Mapping) else None
        else:
            weeks = payload.get("weeks")

    if not isinstance(weeks, (list, tuple)):
        raise CalendarDataError(f"Expected a list of weeks, got {type(weeks).__name__}")

    return [CalendarWeek.from_dict(week) for week in weeks]


def month_labels(start: Optional[date], end: Optional[date], limit: int = MAX_MONTH_LABELS) -> List[str]:
    """Abbreviated month names from the month of ``start`` through ``end``."""
    if start is None or end is None:
        return []

    labels = []
    year, month = start.year, start.month
    while date(year, month, 1) <= end:
        labels.append(MONTH_ABBREVIATIONS[month - 1])
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)

    return labels[:limit]


def _date_range(weeks: Iterable[CalendarWeek]) -> Tuple[Optional[date], Optional[date]]:
    dates = [day.date for week in weeks for day in week.days if day.date is not None]
    if not dates:
        return None, None
    return min(dates), max(dates)


def _locate(weeks: Sequence[CalendarWeek], date_str: str) -> Optional[Tuple[int, int]]:
    """(day_index, week_index) of the first day matching ``date_str``."""
    for week_index, week in enumerate(weeks):
        for day_index, day in enumerate(week.days):
            if day.date_str == date_str:
                return day_index, week_index
    return None


def apply_overrides(grid: Grid, weeks: Sequence[CalendarWeek], overrides: Mapping[str, int]) -> int:
    """Fill known-missing days into ``grid`` in place.

    An override lands only on a cell that currently holds 0; observed data is
    never overwritten, so applying the same overrides again changes nothing.
    Dates outside ``weeks`` are ignored.

    Returns:
        Sum of the override counts that were applied
    """
    applied = 0
    for date_str, count in overrides.items():
        location = _locate(weeks, date_str)
        if location is None:
            logger.debug(f"Override date {date_str} is outside the calendar window")
            continue

        day_index, week_index = location
        if not grid.in_bounds(day_index, week_index):
            continue

        current = grid.get_cell(day_index, week_index)
        if current == 0:
            grid.set_cell(day_index, week_index, count)
            applied += count
            logger.info(f"Override applied: {date_str} -> {count} contributions")
        else:
            logger.info(f"Skip override: {date_str} already has {current} contributions")

    return applied


def _monthly_totals(grid: Grid, weeks: Sequence[CalendarWeek]) -> Dict[str, int]:
    totals: Dict[str, int] = {}
    for week_index, week in enumerate(weeks):
        for day_index, day in enumerate(week.days):
            if day.date is None or not grid.in_bounds(day_index, week_index):
                continue
            key = f"{day.date.year:04d}-{day.date.month:02d}"
            totals[key] = totals.get(key, 0) + grid.get_cell(day_index, week_index)
    return dict(sorted(totals.items()))


def ingest_calendar(
    weeks: Sequence[CalendarWeek],
    login: Optional[str] = None,
    overrides: Optional[OverrideTable] = None,
    rows: int = CALENDAR_ROWS,
    cols: int = CALENDAR_COLS,
) -> CalendarResult:
    """Map calendar weeks onto a ``rows x cols`` grid.

    The newest ``cols`` weeks are kept, oldest in column 0. Day ``d`` of week
    ``w`` lands in ``grid[d][w]``; days or weeks past the grid edge are
    dropped. Overrides for ``login`` are applied last.

    Args:
        weeks: Calendar weeks, oldest first
        login: Identity the calendar belongs to, used to pick overrides
        overrides: Override table (defaults to the built-in table)
        rows: Grid rows (days per week)
        cols: Grid columns (weeks)

    Returns:
        CalendarResult with grid, date range, month labels and totals

    Raises:
        CalendarDataError: If a contribution count is too large for a cell
    """
    overrides = DEFAULT_OVERRIDES if overrides is None else overrides
    kept = list(weeks)[-cols:]
    grid = Grid.empty(rows, cols)

    total = 0
    for week_index, week in enumerate(kept):
        for day_index, day in enumerate(week.days):
            if day_index < rows and week_index < cols:
                if day.contribution_count > MAX_CELL_VALUE:
                    raise CalendarDataError(f"Contribution count {day.contribution_count} is too large")
                grid.set_cell(day_index, week_index, day.contribution_count)
                total += day.contribution_count
            else:
                logger.debug(f"Dropping out-of-range day {day_index} of week {week_index}")

    start_date, end_date = _date_range(kept)
    labels = month_labels(start_date, end_date)

    user_overrides = overrides.get(login, {}) if login else {}
    applied = apply_overrides(grid, kept, user_overrides)
    total += applied

    logger.info(
        f"Ingested {len(kept)} weeks ({start_date} to {end_date}): "
        f"{total} contributions, {applied} from overrides"
    )

    return CalendarResult(
        grid=grid,
        start_date=start_date,
        end_date=end_date,
        month_labels=labels,
        total=total,
        overrides_applied=applied,
        monthly_totals=_monthly_totals(grid, kept),
    )
