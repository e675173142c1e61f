"""Tests for the Grid class."""

import numpy as np
import pytest
import torch
from activitygrid.core.grid import MAX_CELL_VALUE, Grid


class TestGrid:
    """Test cases for the Grid class."""

    def test_initialization(self):
        """Test grid initialization."""
        grid = Grid(7, 52)
        assert grid.rows == 7
        assert grid.cols == 52
        assert grid.shape == (7, 52)
        assert grid.cells.shape == (7, 52)
        assert grid.population == 0

    def test_invalid_dimensions(self):
        """Test that non-positive dimensions are rejected."""
        with pytest.raises(ValueError):
            Grid(0, 5)

        with pytest.raises(ValueError):
            Grid(5, -1)

    def test_empty(self):
        """Test the empty constructor."""
        grid = Grid.empty(7, 52)
        assert grid.shape == (7, 52)
        assert grid.total == 0

    def test_randomized_extremes(self):
        """Test randomized grids at probability 0 and 1."""
        rng = np.random.default_rng(1)

        assert Grid.randomized(7, 52, 0.0, rng).population == 0
        assert Grid.randomized(7, 52, 1.0, rng).population == 7 * 52

    def test_randomized_binary_values(self):
        """Test randomized grids only contain 0 and 1."""
        grid = Grid.randomized(7, 52, 0.3, np.random.default_rng(7))

        assert grid.shape == (7, 52)
        assert set(np.unique(grid.cells)).issubset({0, 1})
        assert 0 < grid.population < 7 * 52

    def test_randomized_is_reproducible(self):
        """Test that the same seed gives the same grid."""
        first = Grid.randomized(7, 52, 0.3, np.random.default_rng(42))
        second = Grid.randomized(7, 52, 0.3, np.random.default_rng(42))
        assert first == second

    def test_cell_operations(self):
        """Test basic cell get/set operations."""
        grid = Grid(5, 5)

        assert grid.get_cell(0, 0) == 0

        grid.set_cell(1, 2, 1)
        grid.set_cell(3, 4, 12)

        assert grid.get_cell(1, 2) == 1
        assert grid.get_cell(3, 4) == 12
        assert grid.population == 2
        assert grid.total == 13

    def test_out_of_bounds(self):
        """Test that out-of-range coordinates raise IndexError."""
        grid = Grid(3, 3)

        with pytest.raises(IndexError):
            grid.set_cell(-1, 0, 1)

        with pytest.raises(IndexError):
            grid.set_cell(0, 3, 1)

        with pytest.raises(IndexError):
            grid.get_cell(3, 0)

        assert not grid.in_bounds(3, 0)
        assert grid.in_bounds(2, 2)

    def test_negative_value_rejected(self):
        """Test that negative cell values are rejected."""
        grid = Grid(3, 3)
        with pytest.raises(ValueError):
            grid.set_cell(1, 1, -1)

    def test_clear(self):
        """Test grid clearing."""
        grid = Grid(5, 5)
        grid.set_cell(1, 1, 1)
        grid.set_cell(2, 2, 4)

        grid.clear()
        assert grid.population == 0

    def test_copy_is_independent(self):
        """Test that copies do not share storage."""
        grid = Grid(5, 5)
        grid.set_cell(2, 2, 1)

        other = grid.copy()
        assert other == grid

        other.set_cell(0, 0, 1)
        assert grid.get_cell(0, 0) == 0
        assert other != grid

    def test_copy_from_size_mismatch(self):
        """Test copy_from with mismatched dimensions."""
        with pytest.raises(ValueError, match="dimensions don't match"):
            Grid(3, 3).copy_from(Grid(4, 4))

    def test_count_neighbors_interior(self):
        """Test neighbor counts around a single live cell."""
        grid = Grid(7, 10)
        grid.set_cell(3, 3, 1)

        counts = grid.count_all_neighbors()

        assert counts.shape == (7, 10)
        assert counts[3, 3] == 0
        assert counts[2, 2] == 1
        assert counts[4, 4] == 1
        assert counts[3, 5] == 0
        assert counts.sum() == 8

    def test_count_neighbors_no_wraparound(self):
        """Test that edges do not wrap."""
        grid = Grid(7, 10)
        grid.set_cell(0, 0, 1)

        counts = grid.count_all_neighbors()

        assert counts[0, 1] == 1
        assert counts[1, 1] == 1
        assert counts[6, 9] == 0
        assert counts[0, 9] == 0
        assert counts[6, 0] == 0

    def test_count_neighbors_uses_liveness(self):
        """Test that cells above 1 count as a single live neighbor."""
        grid = Grid(3, 3)
        grid.set_cell(0, 0, 9)

        assert grid.count_all_neighbors()[1, 1] == 1

    def test_differs_from(self):
        """Test change detection between grids."""
        grid = Grid(4, 4)
        other = grid.copy()
        assert not grid.differs_from(other)

        other.set_cell(1, 3, 1)
        assert grid.differs_from(other)
        assert list(grid.get_changed_cells(other)) == [(1, 3)]

    def test_list_round_trip(self):
        """Test conversion to and from nested lists."""
        grid = Grid(2, 3)
        grid.set_cell(1, 2, 5)

        data = grid.to_list()
        assert data == [[0, 0, 0], [0, 0, 5]]

        restored = Grid(2, 3)
        restored.from_list(data)
        assert restored == grid

    def test_from_list_shape_mismatch(self):
        """Test loading a list of the wrong shape."""
        with pytest.raises(ValueError, match="doesn't match grid"):
            Grid(2, 3).from_list([[0, 0], [0, 0]])

    def test_from_array(self):
        """Test building a grid from a 2D array."""
        grid = Grid.from_array(np.eye(3, dtype=int))
        assert grid.shape == (3, 3)
        assert grid.population == 3

        with pytest.raises(ValueError):
            Grid.from_array(np.zeros((2, 2, 2)))

    def test_string_representation(self):
        """Test text rendering of cell values."""
        grid = Grid(2, 4)
        grid.set_cell(0, 1, 1)
        grid.set_cell(1, 2, 7)
        grid.set_cell(1, 3, 25)

        assert str(grid) == ".*..\n..7#"

    def test_equality(self):
        """Test grid equality."""
        assert Grid(3, 3) == Grid(3, 3)
        assert Grid(3, 3) != Grid(3, 4)
        assert Grid(3, 3) != "not a grid"

    def test_from_array_rejects_invalid_values(self):
        """Test that arrays a cell cannot hold are rejected."""
        with pytest.raises(ValueError, match="non-negative"):
            Grid.from_array(np.array([[0, -1], [2, 3]]))

        with pytest.raises(ValueError, match="whole numbers"):
            Grid.from_array(np.array([[0.5, 1.0]]))

        with pytest.raises(ValueError, match="numeric"):
            Grid.from_array(np.array([["a", "b"]]))

    def test_from_array_accepts_whole_floats_and_bools(self):
        """Test that whole floats and booleans convert to counts."""
        assert Grid.from_array(np.array([[2.0, 0.0]])).to_list() == [[2, 0]]
        assert Grid.from_array(np.array([[True, False]])).to_list() == [[1, 0]]

    def test_from_list_rejects_negative(self):
        with pytest.raises(ValueError):
            Grid(1, 2).from_list([[1, -4]])

    def test_large_values(self):
        """Test that counts beyond 32 bits are stored exactly."""
        grid = Grid(2, 2)
        grid.set_cell(0, 0, 3_000_000_000)
        grid.set_cell(1, 1, MAX_CELL_VALUE)

        assert grid.get_cell(0, 0) == 3_000_000_000
        assert grid.total == 3_000_000_000 + MAX_CELL_VALUE

        with pytest.raises(ValueError):
            grid.set_cell(0, 1, MAX_CELL_VALUE + 1)

    def test_creating_grids_leaves_torch_threads_alone(self):
        """Test that grid construction does not change global torch settings."""
        before = torch.get_num_threads()

        grid = Grid(7, 52)
        grid.set_cell(3, 3, 1)
        grid.count_all_neighbors()

        assert torch.get_num_threads() == before
