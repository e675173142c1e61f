"""Grid data structure for the activity grid engine."""

from typing import Iterator, Optional, Tuple
import numpy as np
import torch
import torch.nn.functional as F

# Largest value a cell can hold
MAX_CELL_VALUE = int(np.iinfo(np.int64).max)

NEIGHBOR_KERNEL = torch.tensor([[1, 1, 1], [1, 0, 1], [1, 1, 1]], dtype=torch.float32).unsqueeze(0).unsqueeze(0)


def _validated_cells(data) -> np.ndarray:
    """Convert array-like data to cell values, rejecting anything a cell cannot hold.

    Raises:
        ValueError: If values are negative, fractional, too large or not numeric
    """
    arr = np.asarray(data)
    if arr.dtype == bool:
        return arr.astype(np.int64)
    if not np.issubdtype(arr.dtype, np.number):
        raise ValueError(f"Cell values must be numeric, got dtype {arr.dtype}")
    if arr.size and (arr < 0).any():
        raise ValueError("Cell values must be non-negative")
    if arr.size and (arr > MAX_CELL_VALUE).any():
        raise ValueError(f"Cell values must not exceed {MAX_CELL_VALUE}")
    if not np.issubdtype(arr.dtype, np.integer) and not np.array_equal(arr, np.floor(arr)):
        raise ValueError("Cell values must be whole numbers")
    return arr.astype(np.int64)


class Grid:

    """Represents a fixed-size 2D grid of non-negative integers.

    Cells are indexed as ``[row, col]``. A value of 0 is inactive; calendar
    data stores raw activity counts, automaton patterns store 0 or 1. Edges
    never wrap: lookups outside the grid count as 0.
    """

    def __init__(self, rows: int, cols: int) -> None:
        """Initialize a new empty grid.

        Args:
            rows: Number of rows
            cols: Number of columns

        Raises:
            ValueError: If either dimension is not positive
        """
        if rows <= 0 or cols <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {rows}x{cols}")

        self.rows = rows
        self.cols = cols
        self._cells = np.zeros((rows, cols), dtype=np.int64)

    @classmethod
    def empty(cls, rows: int, cols: int) -> "Grid":
        """Create a grid with every cell set to 0."""
        return cls(rows, cols)

    @classmethod
    def randomized(
        cls,
        rows: int,
        cols: int,
        probability: float = 0.3,
        rng: Optional[np.random.Generator] = None,
    ) -> "Grid":
        """Create a grid where each cell is 1 with independent probability.

        Args:
            rows: Number of rows
            cols: Number of columns
            probability: Chance each cell will be alive (0.0 to 1.0)
            rng: Optional random generator

        Returns:
            New randomized grid
        """
        grid = cls(rows, cols)
        grid.randomize(probability, rng)
        return grid

    @classmethod
    def from_array(cls, data: np.ndarray) -> "Grid":
        """Create a grid holding a copy of a 2D array.

        Raises:
            ValueError: If the array is not 2D or holds values a cell cannot hold
        """
        arr = _validated_cells(data)
        if arr.ndim != 2:
            raise ValueError(f"Expected a 2D array, got shape {arr.shape}")
        grid = cls(arr.shape[0], arr.shape[1])
        grid._cells[:] = arr
        return grid

    @property
    def cells(self) -> np.ndarray:
        """Get the current cell array."""
        return self._cells

    @property
    def shape(self) -> Tuple[int, int]:
        """Get grid dimensions as (rows, cols)."""
        return (self.rows, self.cols)

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def get_cell(self, row: int, col: int) -> int:
        """Get the value of a cell.

        Args:
            row: Row coordinate
            col: Column coordinate

        Returns:
            Cell value

        Raises:
            IndexError: If coordinates are out of bounds
        """
        if not self.in_bounds(row, col):
            raise IndexError(f"Coordinates ({row}, {col}) out of bounds")

        return int(self._cells[row, col])

    def set_cell(self, row: int, col: int, value: int) -> None:
        """Set the value of a cell.

        Args:
            row: Row coordinate
            col: Column coordinate
            value: Non-negative cell value

        Raises:
            IndexError: If coordinates are out of bounds
            ValueError: If value is negative or above MAX_CELL_VALUE
        """
        if not self.in_bounds(row, col):
            raise IndexError(f"Coordinates ({row}, {col}) out of bounds")
        if value < 0:
            raise ValueError(f"Cell values must be non-negative, got {value}")
        if value > MAX_CELL_VALUE:
            raise ValueError(f"Cell values must not exceed {MAX_CELL_VALUE}, got {value}")

        self._cells[row, col] = value

    def clear(self) -> None:
        """Clear all cells (set all to 0)."""
        self._cells.fill(0)

    def randomize(self, probability: float = 0.3, rng: Optional[np.random.Generator] = None) -> None:
        """Randomly populate the grid with 0/1 cells.

        Args:
            probability: Chance each cell will be alive (0.0 to 1.0)
            rng: Optional random generator
        """
        rng = rng if rng is not None else np.random.default_rng()
        mask = rng.random((self.rows, self.cols)) < probability
        self._cells[mask] = 1
        self._cells[~mask] = 0

    def copy(self) -> "Grid":
        """Return a deep copy of this grid."""
        other = Grid(self.rows, self.cols)
        other._cells[:] = self._cells
        return other

    def copy_from(self, other: "Grid") -> None:
        """Copy cell values from another grid.

        Raises:
            ValueError: If grids have different dimensions
        """
        if other.shape != self.shape:
            raise ValueError(f"Grid dimensions don't match: {other.shape} vs {self.shape}")

        self._cells[:] = other._cells

    def alive_mask(self) -> np.ndarray:
        """Boolean array marking cells with a value above 0."""
        return self._cells > 0

    @property
    def population(self) -> int:
        """Get the number of active cells."""
        return int(np.sum(self._cells > 0))

    @property
    def total(self) -> int:
        """Sum of all cell values."""
        return sum(self._cells.ravel().tolist())

    def count_all_neighbors(self) -> np.ndarray:
        """Count live neighbors for all cells using a zero-padded convolution.

        Returns:
            2D int array with neighbor counts (0-8) for each cell
        """
        torch_input = torch.from_numpy(self.alive_mask().astype(np.float32)).unsqueeze(0).unsqueeze(0)
        neighbors = F.conv2d(torch_input, NEIGHBOR_KERNEL, padding=1)
        return neighbors[0, 0].numpy().round().astype(np.int32)

    def differs_from(self, other: "Grid") -> bool:
        """Whether any cell differs from another grid of the same shape."""
        return other.shape != self.shape or not np.array_equal(self._cells, other._cells)

    def get_changed_cells(self, other: "Grid") -> Iterator[Tuple[int, int]]:
        """Get coordinates of cells that differ from another grid.

        Yields:
            Tuples of (row, col) coordinates for changed cells
        """
        changed = self._cells != other._cells
        coords = np.where(changed)
        for row, col in zip(coords[0], coords[1]):
            yield (int(row), int(col))

    def to_list(self) -> list:
        """Convert grid to nested list (row-major) for serialization."""
        return self._cells.tolist()

    def from_list(self, data: list) -> None:
        """Load grid from a nested row-major list.

        Raises:
            ValueError: If data dimensions don't match grid or hold invalid values
        """
        arr = _validated_cells(data)
        if arr.shape != (self.rows, self.cols):
            raise ValueError(f"Data shape {arr.shape} doesn't match grid {self.shape}")

        self._cells[:] = arr

    def __eq__(self, other: object) -> bool:
        """Check if two grids are equal."""
        if not isinstance(other, Grid):
            return False
        return self.shape == other.shape and np.array_equal(self._cells, other._cells)

    def __str__(self) -> str:
        """String representation: '.' inactive, '*' for 1, digits up to 9, '#' above."""
        result = []
        for row in range(self.rows):
            line = []
            for col in range(self.cols):
                value = int(self._cells[row, col])
                if value == 0:
                    line.append(".")
                elif value == 1:
                    line.append("*")
                elif value <= 9:
                    line.append(str(value))
                else:
                    line.append("#")
            result.append("".join(line))
        return "\n".join(result)
