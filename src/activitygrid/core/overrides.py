"""Manual corrections for calendar days the upstream source is known to miss."""

from datetime import date
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Union
import json
import logging

from .grid import MAX_CELL_VALUE

logger = logging.getLogger(__name__)

OverrideTable = Mapping[str, Mapping[str, int]]


def _is_iso_date(value: Any) -> bool:
    """True for YYYY-MM-DD strings naming a real calendar day."""
    if not isinstance(value, str):
        return False
    try:
        return date.fromisoformat(value).isoformat() == value
    except ValueError:
        return False


def validate_overrides(data: Mapping[str, Any]) -> OverrideTable:
    """Check an override mapping and return a read-only copy.

    Args:
        data: Mapping of login -> {ISO date string -> non-negative count}

    Returns:
        Immutable override table

    Raises:
        ValueError: If a login entry is not a mapping, a date is not ISO-8601,
            or a count is not a non-negative integer a cell can hold
    """
    if not isinstance(data, Mapping):
        raise ValueError(f"Override table must be a mapping, got {type(data).__name__}")

    table: Dict[str, Mapping[str, int]] = {}
    for login, entries in data.items():
        if not isinstance(entries, Mapping):
            raise ValueError(f"Overrides for '{login}' must be a mapping of dates to counts")

        checked: Dict[str, int] = {}
        for date_str, count in entries.items():
            if not _is_iso_date(date_str):
                raise ValueError(f"Invalid override date for '{login}': {date_str!r}")

            if isinstance(count, bool) or not isinstance(count, int) or count < 0:
                raise ValueError(f"Override count for '{login}' on {date_str} must be a non-negative integer")
            if count > MAX_CELL_VALUE:
                raise ValueError(f"Override count for '{login}' on {date_str} is too large")

            checked[date_str] = count

        table[str(login)] = MappingProxyType(checked)

    return MappingProxyType(table)


DEFAULT_OVERRIDES: OverrideTable = validate_overrides(
    {
        "ogvaibhavshukla": {
            "2025-03-10": 1,
            "2025-04-12": 2,
            "2025-05-12": 7,
        }
    }
)


def load_overrides(path: Union[str, Path]) -> OverrideTable:
    """Load an override table from a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file content is not a valid override table
    """
    filepath = Path(path)
    with open(filepath, "r") as f:
        data = json.load(f)

    table = validate_overrides(data)
    logger.info(f"Loaded overrides for {len(table)} login(s) from {filepath}")
    return table


def save_overrides(table: OverrideTable, path: Union[str, Path]) -> None:
    """Write an override table to a JSON file."""
    validate_overrides(table)
    plain = {login: dict(entries) for login, entries in table.items()}

    with open(Path(path), "w") as f:
        json.dump(plain, f, indent=2, sort_keys=True)
