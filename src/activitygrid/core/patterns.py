"""Step algorithms for the eight animated grid patterns.

Every algorithm has the shape ``step(grid, state, rng=None, ...) -> StepResult``
and never mutates its inputs: it reads the pre-step grid and writes into a
fresh one. Randomness comes only from ``rng`` so runs can be seeded.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union
import logging

import numpy as np
import torch
import torch.nn.functional as F

from .grid import Grid

logger = logging.getLogger(__name__)

# Rule 30: 111->0, 110->0, 101->0, 100->1, 011->1, 010->1, 001->1, 000->0
RULE30_TABLE = np.array([0, 1, 1, 1, 1, 0, 0, 0], dtype=np.int32)

RIPPLE_SPAWN_PROBABILITY = 0.05
RIPPLE_GROWTH = 0.5
RIPPLE_MIN_RADIUS = 5.0
RIPPLE_MAX_RADIUS = 20.0
RIPPLE_THICKNESS = 1.0

RAIN_SPAWN_PROBABILITY = 0.05
RAIN_CLEAR_PROBABILITY = 0.3

NOISE_DENSITY = 0.2
BRIGHTNESS_THRESHOLD = 128.0


class PatternType(str, Enum):
    """The eight supported patterns."""

    LIFE = "life"
    RIPPLE = "ripple"
    WAVE = "wave"
    RAIN = "rain"
    SPIRAL = "spiral"
    NOISE = "noise"
    RULE30 = "rule30"
    IMAGE = "image"

    @property
    def display_name(self) -> str:
        return PATTERN_NAMES[self]

    @classmethod
    def from_name(cls, name: str) -> "PatternType":
        """Resolve a pattern from its value, enum name or display name.

        Raises:
            ValueError: If no pattern matches
        """
        key = name.strip().lower()
        for pattern in cls:
            if key in (pattern.value, pattern.name.lower(), PATTERN_NAMES[pattern].lower()):
                return pattern

        available = ", ".join(p.value for p in cls)
        raise ValueError(f"Unknown pattern '{name}'. Available: {available}")


PATTERN_NAMES: Dict[PatternType, str] = {
    PatternType.LIFE: "Conway's Game of Life",
    PatternType.RIPPLE: "Circular Ripples",
    PatternType.WAVE: "Wave Pattern",
    PatternType.RAIN: "Rain Effect",
    PatternType.SPIRAL: "Spiral Pattern",
    PatternType.NOISE: "Random Noise",
    PatternType.RULE30: "Rule 30 Automaton",
    PatternType.IMAGE: "GIF Pattern",
}

# One pattern per letter of the "Activity" heading
LETTER_PATTERNS: Tuple[PatternType, ...] = (
    PatternType.LIFE,
    PatternType.NOISE,
    PatternType.WAVE,
    PatternType.SPIRAL,
    PatternType.RULE30,
    PatternType.RAIN,
    PatternType.RIPPLE,
)


@dataclass(frozen=True)
class NoState:
    """State variant for patterns that carry nothing between steps."""


@dataclass(frozen=True)
class ClockState:
    """Elapsed step counter used by the Wave and Spiral patterns."""

    time: int = 0


@dataclass(frozen=True)
class Ripple:
    """A single expanding ring."""

    center_row: int
    center_col: int
    radius: float
    max_radius: float


@dataclass(frozen=True)
class RippleState:
    """Active ripples, oldest first."""

    ripples: Tuple[Ripple, ...] = ()


@dataclass(frozen=True)
class FrameState:
    """Index of the next animation frame shown by the image pattern."""

    index: int = 0


PatternState = Union[NoState, ClockState, RippleState, FrameState]


@dataclass
class StepResult:
    """Outcome of one pattern step."""

    grid: Grid
    changed: bool
    state: PatternState = field(default_factory=NoState)


def _rng(rng: Optional[np.random.Generator]) -> np.random.Generator:
    return rng if rng is not None else np.random.default_rng()


def _clock(state: PatternState) -> int:
    return state.time if isinstance(state, ClockState) else 0


def _index_grids(rows: int, cols: int) -> Tuple[np.ndarray, np.ndarray]:
    row_idx, col_idx = np.meshgrid(np.arange(rows), np.arange(cols), indexing="ij")
    return row_idx.astype(np.float64), col_idx.astype(np.float64)


def life_step(grid: Grid, state: PatternState = NoState(), rng: Optional[np.random.Generator] = None) -> StepResult:
    """Apply Conway's rules once with bounded (non-wrapping) edges."""
    neighbor_counts = grid.count_all_neighbors()
    alive = grid.alive_mask()

    survive = alive & ((neighbor_counts == 2) | (neighbor_counts == 3))
    birth = ~alive & (neighbor_counts == 3)

    new_grid = Grid(grid.rows, grid.cols)
    new_grid.cells[survive | birth] = 1

    return StepResult(new_grid, new_grid.differs_from(grid), NoState())


def ripple_step(
    grid: Grid,
    state: PatternState = RippleState(),
    rng: Optional[np.random.Generator] = None,
    spawn_probability: float = RIPPLE_SPAWN_PROBABILITY,
) -> StepResult:
    """Grow, retire and draw expanding rings, occasionally spawning a new one."""
    rng = _rng(rng)
    ripples: List[Ripple] = list(state.ripples) if isinstance(state, RippleState) else []

    if rng.random() < spawn_probability:
        ripples.append(
            Ripple(
                center_row=int(rng.integers(0, grid.rows)),
                center_col=int(rng.integers(0, grid.cols)),
                radius=0.0,
                max_radius=float(rng.uniform(RIPPLE_MIN_RADIUS, RIPPLE_MAX_RADIUS)),
            )
        )

    rows, cols = _index_grids(grid.rows, grid.cols)
    new_grid = Grid(grid.rows, grid.cols)
    survivors = []

    for ripple in ripples:
        grown = replace(ripple, radius=ripple.radius + RIPPLE_GROWTH)
        if grown.radius > grown.max_radius:
            continue
        survivors.append(grown)

        distance = np.hypot(rows - grown.center_row, cols - grown.center_col)
        new_grid.cells[np.abs(distance - grown.radius) < RIPPLE_THICKNESS] = 1

    return StepResult(new_grid, True, RippleState(tuple(survivors)))


def wave_step(grid: Grid, state: PatternState = ClockState(), rng: Optional[np.random.Generator] = None) -> StepResult:
    """Threshold two interfering sine waves travelling across rows and columns."""
    time = _clock(state)
    rows, cols = _index_grids(grid.rows, grid.cols)

    combined = (np.sin(cols * 0.2 + time * 0.1) + np.sin(rows * 0.3 + time * 0.15)) / 2

    new_grid = Grid(grid.rows, grid.cols)
    new_grid.cells[combined > 0.3] = 1
    return StepResult(new_grid, True, ClockState(time + 1))


def rain_step(
    grid: Grid,
    state: PatternState = NoState(),
    rng: Optional[np.random.Generator] = None,
    spawn_probability: float = RAIN_SPAWN_PROBABILITY,
    clear_probability: float = RAIN_CLEAR_PROBABILITY,
) -> StepResult:
    """Drop new cells on the top row, move every drop down one row, drain the bottom."""
    rng = _rng(rng)
    current = grid.cells
    new_grid = grid.copy()
    cells = new_grid.cells

    cells[0, rng.random(grid.cols) < spawn_probability] = 1

    # Movement reads the pre-step grid so a drop advances at most one row
    falling = current[:-1] > 0
    cells[:-1][falling] = 0
    cells[1:][falling] = 1

    cells[-1, rng.random(grid.cols) < clear_probability] = 0

    return StepResult(new_grid, True, NoState())


def spiral_step(grid: Grid, state: PatternState = ClockState(), rng: Optional[np.random.Generator] = None) -> StepResult:
    """Rotate a three-armed spiral around the grid centre."""
    time = _clock(state)
    rows, cols = _index_grids(grid.rows, grid.cols)

    dy = rows - grid.rows / 2
    dx = cols - grid.cols / 2
    angle = np.arctan2(dy, dx)
    distance = np.hypot(dx, dy)

    new_grid = Grid(grid.rows, grid.cols)
    new_grid.cells[np.sin(angle * 3 + distance * 0.5 - time * 0.2) > 0.5] = 1
    return StepResult(new_grid, True, ClockState(time + 1))


def noise_step(
    grid: Grid,
    state: PatternState = NoState(),
    rng: Optional[np.random.Generator] = None,
    density: float = NOISE_DENSITY,
) -> StepResult:
    """Replace the grid with fresh random noise."""
    return StepResult(Grid.randomized(grid.rows, grid.cols, density, _rng(rng)), True, NoState())


def rule30_step(grid: Grid, state: PatternState = NoState(), rng: Optional[np.random.Generator] = None) -> StepResult:
    """Advance Rule 30 along the middle row and scroll every other row right."""
    middle = grid.rows // 2
    current = grid.cells
    new_grid = grid.copy()
    cells = new_grid.cells

    line = (current[middle] > 0).astype(np.int32)
    if grid.cols > 2:
        index = (line[:-2] << 2) | (line[1:-1] << 1) | line[2:]
        cells[middle, 1:-1] = RULE30_TABLE[index]

    others = [row for row in range(grid.rows) if row != middle]
    cells[others, 1:] = current[others, :-1]
    cells[others, 0] = 0

    return StepResult(new_grid, True, NoState())


def sample_image(image: np.ndarray, rows: int, cols: int) -> np.ndarray:
    """Resample a raster to ``rows x cols`` and return per-cell brightness.

    Args:
        image: Array shaped (H, W), (H, W, 3) or (H, W, 4) with 0-255 channels
        rows: Target rows
        cols: Target columns

    Returns:
        Float array of shape (rows, cols) holding (R + G + B) / 3

    Raises:
        ValueError: If the array is not a grayscale or RGB(A) raster
    """
    arr = np.asarray(image, dtype=np.float32)
    if arr.ndim == 2:
        arr = arr[:, :, np.newaxis]
    elif arr.ndim != 3 or arr.shape[2] not in (1, 3, 4):
        raise ValueError(f"Expected an (H, W), (H, W, 3) or (H, W, 4) image, got shape {arr.shape}")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise ValueError("Image has no pixels")

    channels = arr[:, :, :3] if arr.shape[2] >= 3 else arr
    tensor = torch.from_numpy(np.ascontiguousarray(channels.transpose(2, 0, 1))).unsqueeze(0)
    resampled = F.interpolate(tensor, size=(rows, cols), mode="area")[0]

    return resampled.mean(dim=0).numpy()


def image_threshold_step(
    grid: Grid,
    state: PatternState = FrameState(),
    rng: Optional[np.random.Generator] = None,
    frames: Optional[Sequence[np.ndarray]] = None,
) -> StepResult:
    """Light the cells whose resampled frame pixel is brighter than mid-grey.

    Each step shows the frame at ``state.index`` and advances the index,
    wrapping around so an animation loops. With no frames available the grid
    is returned unchanged and ``changed`` is False, so a missing image is never
    an error.
    """
    if not frames:
        logger.debug("No image available for threshold pattern, skipping step")
        return StepResult(grid.copy(), False, state)

    index = state.index % len(frames) if isinstance(state, FrameState) else 0
    brightness = sample_image(frames[index], grid.rows, grid.cols)
    new_grid = Grid(grid.rows, grid.cols)
    new_grid.cells[brightness > BRIGHTNESS_THRESHOLD] = 1
    return StepResult(new_grid, True, FrameState((index + 1) % len(frames)))


StepFunction = Callable[..., StepResult]

STEP_FUNCTIONS: Dict[PatternType, StepFunction] = {
    PatternType.LIFE: life_step,
    PatternType.RIPPLE: ripple_step,
    PatternType.WAVE: wave_step,
    PatternType.RAIN: rain_step,
    PatternType.SPIRAL: spiral_step,
    PatternType.NOISE: noise_step,
    PatternType.RULE30: rule30_step,
    PatternType.IMAGE: image_threshold_step,
}


def run_step(
    pattern: PatternType,
    grid: Grid,
    state: PatternState,
    rng: Optional[np.random.Generator] = None,
    frames: Optional[Sequence[np.ndarray]] = None,
) -> StepResult:
    """Dispatch one step of the given pattern."""
    if pattern is PatternType.IMAGE:
        return image_threshold_step(grid, state, rng, frames=frames)
    return STEP_FUNCTIONS[pattern](grid, state, rng)


def initial_state(pattern: PatternType) -> PatternState:
    """Empty state variant for a pattern."""
    if pattern in (PatternType.WAVE, PatternType.SPIRAL):
        return ClockState()
    if pattern is PatternType.RIPPLE:
        return RippleState()
    if pattern is PatternType.IMAGE:
        return FrameState()
    return NoState()


def initial_grid(
    pattern: PatternType,
    rows: int,
    cols: int,
    density: float = 0.3,
    rng: Optional[np.random.Generator] = None,
) -> Grid:
    """Seed grid a pattern starts from.

    Life and Noise start from random cells, Rule 30 from a single live cell in
    the centre, everything else from an empty grid.
    """
    if pattern in (PatternType.LIFE, PatternType.NOISE):
        return Grid.randomized(rows, cols, density, rng)

    grid = Grid.empty(rows, cols)
    if pattern is PatternType.RULE30:
        grid.set_cell(rows // 2, cols // 2, 1)
    return grid


def describe_state(state: PatternState) -> str:
    """Short human-readable summary of a pattern state."""
    if isinstance(state, ClockState):
        return f"time={state.time}"
    if isinstance(state, RippleState):
        if not state.ripples:
            return "no ripples"
        largest = max(r.radius for r in state.ripples)
        return f"{len(state.ripples)} ripples, largest radius {largest:.1f}"
    if isinstance(state, FrameState):
        return f"frame={state.index}"
    return "-"
