"""Command-line interface for the activity grid."""

import argparse
import json
import logging
import sys
import time
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from PIL import Image

from ..config import DEFAULT_FRAME_INTERVAL_MS, DEFAULT_MAX_GENERATIONS, EngineConfig
from ..core.calendar import DAY_LABELS, CalendarResult
from ..core.engine import ActivityGridEngine
from ..core.grid import Grid
from ..core.overrides import load_overrides
from ..core.patterns import LETTER_PATTERNS, PATTERN_NAMES, PatternType, describe_state
from ..logging_config import setup_logging

HEADING = "Activity"


def load_image_frames(path: str) -> List[np.ndarray]:
    """Decode an image file into RGB frames.

    Animated GIFs yield every frame in order; still images yield one. A
    ``.npy`` file holds either one (H, W[, C]) raster or an (N, H, W, C) stack.

    Args:
        path: Image file path

    Returns:
        List of frames as uint8 arrays
    """
    if path.lower().endswith(".npy"):
        data = np.load(path)
        return list(data) if data.ndim == 4 else [data]

    frames = []
    with Image.open(path) as img:
        for frame_num in range(getattr(img, "n_frames", 1)):
            img.seek(frame_num)
            frames.append(np.array(img.convert("RGB"), dtype=np.uint8))
    return frames


class CLIActivityGrid:

    """Command-line interface for running patterns and showing calendars."""

    def __init__(self, overrides_path: Optional[str] = None, seed: Optional[int] = None):
        """Initialize CLI interface.

        Args:
            overrides_path: Optional JSON file replacing the built-in override table
            seed: Optional random seed
        """
        self.overrides = load_overrides(overrides_path) if overrides_path else None
        self.seed = seed

    def _engine(self, interval_ms: float, max_generations: int) -> ActivityGridEngine:
        config = EngineConfig(frame_interval_ms=interval_ms, max_generations=max_generations, seed=self.seed)
        return ActivityGridEngine(config, overrides=self.overrides)

    def run_animation(
        self,
        pattern: str,
        frames: int,
        interval_ms: float = DEFAULT_FRAME_INTERVAL_MS,
        max_generations: int = DEFAULT_MAX_GENERATIONS,
        image_path: Optional[str] = None,
        verbose: bool = False,
        show_grid: bool = False,
    ) -> Tuple[int, str, Dict[str, Any]]:
        """Run a pattern for a number of frames using synthetic timestamps.

        Args:
            pattern: Pattern name
            frames: Number of frame-pump ticks to deliver
            interval_ms: Frame interval
            max_generations: Generation cap
            image_path: Optional GIF, PNG or .npy file for the image pattern
            verbose: Print progress updates
            show_grid: Print the grid after every committed step

        Returns:
            Tuple of (final_generation, status, statistics)
        """
        engine = self._engine(interval_ms, max_generations)
        engine.switch_pattern(pattern)
        if image_path:
            engine.set_frames(load_image_frames(image_path))

        if verbose:
            print(f"Running {engine.pattern.display_name} on a {engine.grid.rows}x{engine.grid.cols} grid")

        if show_grid:
            print("\nInitial grid:")
            print(self._format_grid(engine.grid))

        start_time = time.time()
        engine.start(now=0.0)

        for frame in range(1, frames + 1):
            committed = engine.tick(now=frame * interval_ms)
            if committed and show_grid:
                print(f"\nGeneration {engine.generation} ({describe_state(engine.state.pattern_state)}):")
                print(self._format_grid(engine.grid))
            if not engine.is_running:
                break

        duration = time.time() - start_time
        engine.stop()

        stats = engine.get_statistics()
        stats["duration_seconds"] = duration
        stats["frames"] = frames
        return engine.generation, engine.status, stats

    def show_calendar(self, calendar_path: str, login: Optional[str] = None) -> CalendarResult:
        """Ingest a calendar payload from a JSON file and print it.

        Raises:
            FileNotFoundError: If the file doesn't exist
            CalendarDataError: If the payload holds no list of weeks
        """
        with open(calendar_path, "r") as f:
            payload = json.load(f)

        engine = self._engine(DEFAULT_FRAME_INTERVAL_MS, DEFAULT_MAX_GENERATIONS)
        result = engine.ingest_calendar(payload, login)

        start = result.start_date.isoformat() if result.start_date else "-"
        end = result.end_date.isoformat() if result.end_date else "-"
        print(f"Calendar for {login or 'unknown'}: {start} to {end}")
        print(f"Months: {' '.join(result.month_labels) or '-'}")
        print(self._format_calendar(result.grid))
        print(f"Total contributions: {result.total} ({result.overrides_applied} from overrides)")
        return result

    def _format_grid(self, grid: Grid, max_cols: int = 120) -> str:
        """Format grid for display, truncating if too wide."""
        if grid.cols > max_cols:
            return f"Grid too large to display ({grid.rows}x{grid.cols})"

        return str(grid)

    def _format_calendar(self, grid: Grid) -> str:
        lines = str(grid).split("\n")
        return "\n".join(f"{DAY_LABELS[i] if i < len(DAY_LABELS) else '':>4} {line}" for i, line in enumerate(lines))

    def list_patterns(self) -> None:
        """List available patterns and the heading letter that starts each."""
        letters = {pattern: index for index, pattern in enumerate(LETTER_PATTERNS)}

        print("Available patterns:")
        for pattern in PatternType:
            index = letters.get(pattern)
            suffix = f" (letter {index + 1} '{HEADING[index]}')" if index is not None else ""
            print(f"  {pattern.value}: {PATTERN_NAMES[pattern]}{suffix}")


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        description="Animate grid patterns or show a contribution calendar from the command line",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run Conway's Game of Life until it settles or hits the cap
  activitygrid --pattern life --frames 600

  # Watch Rule 30 unfold
  activitygrid --pattern rule30 --frames 20 --show-grid

  # Show a calendar saved from the GraphQL API
  activitygrid --calendar contributions.json --login octocat

  # Use a custom override table
  activitygrid --calendar contributions.json --login octocat --overrides fixes.json

  # List available patterns
  activitygrid --list-patterns
        """,
    )

    parser.add_argument("--pattern", type=str, default="life", help="Pattern to animate (default: life)")

    parser.add_argument(
        "-f",
        "--frames",
        type=int,
        default=100,
        help="Number of frames to run (default: 100)",
    )

    parser.add_argument(
        "-i",
        "--interval",
        type=float,
        default=DEFAULT_FRAME_INTERVAL_MS,
        help=f"Frame interval in milliseconds (default: {DEFAULT_FRAME_INTERVAL_MS:g})",
    )

    parser.add_argument(
        "-m",
        "--max-generations",
        type=int,
        default=DEFAULT_MAX_GENERATIONS,
        help=f"Generation cap before auto-stop (default: {DEFAULT_MAX_GENERATIONS})",
    )

    parser.add_argument("--seed", type=int, help="Random seed for reproducible runs")

    parser.add_argument("--image", type=str, help="GIF, PNG or .npy raster for the image pattern")

    parser.add_argument("--calendar", type=str, help="Calendar payload JSON file to display")

    parser.add_argument("--login", type=str, help="Login the calendar belongs to (selects overrides)")

    parser.add_argument("--overrides", type=str, help="Override table JSON file")

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print detailed progress information",
    )

    parser.add_argument(
        "-g",
        "--show-grid",
        action="store_true",
        help="Display the grid after every step",
    )

    parser.add_argument(
        "--list-patterns",
        action="store_true",
        help="List all available patterns and exit",
    )

    return parser


def print_results(final_generation: int, status: str, stats: dict, verbose: bool) -> None:
    """Print animation results.

    Args:
        final_generation: Final generation number
        status: Status label
        stats: Statistics dictionary
        verbose: Whether to show detailed statistics
    """
    print(f"\n{stats['pattern_name']} ran {final_generation} generations")
    print(f"Status: {status}")

    if verbose:
        print("\nDetailed Statistics:")
        print(f"  Grid size: {stats['grid_size'][0]}x{stats['grid_size'][1]}")
        print(f"  Population: {stats['population']}")
        print(f"  Population density: {stats['population_density']:.2%}")
        print(f"  Frames delivered: {stats['frames']}")
        print(f"  Duration: {stats['duration_seconds']:.3f} seconds")


def validate_args(args: argparse.Namespace) -> bool:
    """Validate command-line arguments.

    Args:
        args: Parsed arguments

    Returns:
        True if arguments are valid
    """
    errors = []

    if args.frames <= 0:
        errors.append("Frames must be positive")

    if args.interval < 0:
        errors.append("Interval must be non-negative")

    if args.max_generations <= 0:
        errors.append("Max generations must be positive")

    if not args.calendar:
        try:
            PatternType.from_name(args.pattern)
        except ValueError as e:
            errors.append(str(e))

    if errors:
        print("Error: Invalid arguments:")
        for error in errors:
            print(f"  - {error}")
        return False

    return True


def main(argv: Optional[list] = None) -> int:
    """Main entry point for CLI interface.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    if args.list_patterns:
        CLIActivityGrid().list_patterns()
        return 0

    if not validate_args(args):
        return 1

    try:
        cli = CLIActivityGrid(overrides_path=args.overrides, seed=args.seed)

        if args.calendar:
            cli.show_calendar(args.calendar, args.login)
            return 0

        final_generation, status, stats = cli.run_animation(
            pattern=args.pattern,
            frames=args.frames,
            interval_ms=args.interval,
            max_generations=args.max_generations,
            image_path=args.image,
            verbose=args.verbose,
            show_grid=args.show_grid,
        )
        print_results(final_generation, status, stats, args.verbose)
        return 0

    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1
    except Exception as e:
        print(f"Error: {e}")
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
