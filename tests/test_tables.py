"""
Tests for table dimension inference and grid building.
"""

from __future__ import annotations

import pytest

from hwpdoc.errors import ErrorKind, ToolError
from hwpdoc.models import CellRef, TableDescriptor
from hwpdoc.tables import (
    MAX_TABLE_CELLS,
    build_declared_grid,
    check_table_size,
    empty_grid,
    fill_row_major,
    infer_table_dims,
    sorted_cells,
)


# ═══════════════════════════════════════════════════════════════════════════════
# DIMENSION INFERENCE
# ═══════════════════════════════════════════════════════════════════════════════


class TestInferTableDims:

    @pytest.mark.parametrize("count,expected", [
        (0, (0, 0)),
        (1, (1, 1)),
        (2, (1, 2)),
        (4, (2, 2)),
        (6, (2, 3)),
        (7, (1, 7)),
        (12, (3, 4)),
        (16, (4, 4)),
        (18, (3, 6)),
    ])
    def test_most_square_shape(self, count, expected):
        assert infer_table_dims(count) == expected

    def test_rows_never_exceed_cols(self):
        for count in range(1, 60):
            rows, cols = infer_table_dims(count)
            assert rows * cols == count
            assert rows <= cols

    def test_negative_count_is_empty(self):
        assert infer_table_dims(-3) == (0, 0)


# ═══════════════════════════════════════════════════════════════════════════════
# GRIDS
# ═══════════════════════════════════════════════════════════════════════════════


class TestGrids:

    def test_empty_grid_shape(self):
        grid = empty_grid(2, 3)
        assert grid == [["", "", ""], ["", "", ""]]
        grid[0][0] = "x"
        assert grid[1][0] == ""

    def test_fill_row_major(self):
        grid = fill_row_major(["a", "b", "c", "d", "e", "f"], 2, 3)
        assert grid == [["a", "b", "c"], ["d", "e", "f"]]

    def test_fill_row_major_pads_missing(self):
        assert fill_row_major(["a"], 1, 2) == [["a", ""]]

    def test_declared_shape_within_bound(self):
        check_table_size(1000, 1000)
        check_table_size(0, 65535)

    def test_declared_shape_over_bound_rejected(self):
        with pytest.raises(ToolError) as excinfo:
            check_table_size(65535, 65535)
        assert excinfo.value.kind == ErrorKind.PARSE_FAILED
        assert excinfo.value.message == (
            f"table too large: 65535x65535 cells (max {MAX_TABLE_CELLS})"
        )


class TestDeclaredGrid:

    def test_cells_placed_by_address(self):
        descriptor = TableDescriptor(rows=2, cols=2, cells=[
            CellRef(row=1, col=1), CellRef(row=0, col=0),
            CellRef(row=0, col=1), CellRef(row=1, col=0),
        ])
        grid, spans = build_declared_grid(descriptor, ["A", "B", "C", "D"])
        assert grid == [["A", "B"], ["C", "D"]]
        assert spans == []

    def test_sorted_cells_row_major(self):
        descriptor = TableDescriptor(rows=2, cols=2, cells=[
            CellRef(row=1, col=0), CellRef(row=0, col=1), CellRef(row=0, col=0),
        ])
        assert [c.address for c in sorted_cells(descriptor)] == [
            (0, 0), (0, 1), (1, 0),
        ]

    def test_merged_cell_reports_span(self):
        descriptor = TableDescriptor(rows=2, cols=2, cells=[
            CellRef(row=0, col=0, col_span=2),
            CellRef(row=1, col=0),
            CellRef(row=1, col=1),
        ])
        grid, spans = build_declared_grid(descriptor, ["Header", "x", "y"])
        assert grid == [["Header", ""], ["x", "y"]]
        assert len(spans) == 1
        assert spans[0].model_dump() == {
            "row": 0, "col": 0, "row_span": 1, "col_span": 2,
        }

    def test_out_of_grid_cell_dropped(self):
        descriptor = TableDescriptor(rows=1, cols=1, cells=[
            CellRef(row=0, col=0), CellRef(row=0, col=5),
        ])
        grid, _ = build_declared_grid(descriptor, ["in", "out"])
        assert grid == [["in"]]

    def test_missing_text_is_empty(self):
        descriptor = TableDescriptor(rows=1, cols=2, cells=[
            CellRef(row=0, col=0), CellRef(row=0, col=1),
        ])
        grid, _ = build_declared_grid(descriptor, ["only"])
        assert grid == [["only", ""]]
