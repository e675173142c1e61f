#!/usr/bin/env python3
"""
Example usage of the activitygrid package.
"""

from datetime import date, timedelta

from activitygrid import ActivityGridEngine, EngineConfig, PatternType


def sample_calendar(weeks=52):
    """Build a small GraphQL-shaped calendar with a few busy days."""
    start = date(2025, 1, 5)
    busy = {start + timedelta(days=n): n % 9 for n in range(0, weeks * 7, 5)}
    return {
        "weeks": [
            {
                "contributionDays": [
                    {
                        "date": (start + timedelta(days=w * 7 + d)).isoformat(),
                        "contributionCount": busy.get(start + timedelta(days=w * 7 + d), 0),
                    }
                    for d in range(7)
                ]
            }
            for w in range(weeks)
        ]
    }


def main():
    """Demonstrate programmatic usage of the activitygrid package."""
    engine = ActivityGridEngine(EngineConfig(frame_interval_ms=100.0, seed=7))

    # Show real activity first
    result = engine.ingest_calendar(sample_calendar(), login="octocat")
    print(f"Calendar {result.start_date} to {result.end_date}: {' '.join(result.month_labels)}")
    print(engine.grid)
    print(f"Total contributions: {result.total}")
    print()

    # Toggle Rule 30 on, run a few frames, then toggle it off again
    engine.toggle_pattern(PatternType.RULE30, now=0.0)
    for frame in range(1, 6):
        engine.tick(now=frame * 100.0)
        print(f"Generation {engine.generation}:")
        print(engine.grid)
        print()

    engine.toggle_pattern(PatternType.RULE30)
    print(f"Restored calendar, status: {engine.status}")

    # Show statistics
    stats = engine.get_statistics()
    print("Final statistics:")
    for key, value in stats.items():
        print(f"  {key}: {value}")


if __name__ == "__main__":
    main()
