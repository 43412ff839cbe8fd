"""
Table Builders
==============
Grid construction for declared tables and near-square shape inference
for tables reconstructed from a run of paragraphs.
"""

from __future__ import annotations

from .errors import ErrorKind, ToolError
from .models import CellRef, TableDescriptor, TableSpan

# Upper bound on rows * cols for a declared table grid.
MAX_TABLE_CELLS = 1_000_000


def check_table_size(rows: int, cols: int):
    """Reject declared table shapes whose grid would exceed MAX_TABLE_CELLS."""
    if rows * cols > MAX_TABLE_CELLS:
        raise ToolError(
            ErrorKind.PARSE_FAILED,
            f"table too large: {rows}x{cols} cells (max {MAX_TABLE_CELLS})",
        )


def infer_table_dims(cell_count: int) -> tuple[int, int]:
    """
    Pick the most square ``(rows, cols)`` with ``rows * cols == cell_count``.

    Divisors are scanned upward from 1 and the first pair with the smallest
    ``cols - rows`` wins, so ``rows <= cols`` always holds. Prime counts
    degenerate to a single row.

        >>> infer_table_dims(6)
        (2, 3)
        >>> infer_table_dims(7)
        (1, 7)
    """
    if cell_count <= 0:
        return (0, 0)

    best_rows, best_cols = 1, cell_count
    best_diff = best_cols - best_rows

    d = 1
    while d * d <= cell_count:
        if cell_count % d == 0:
            other = cell_count // d
            rows, cols = min(d, other), max(d, other)
            if cols - rows < best_diff:
                best_rows, best_cols, best_diff = rows, cols, cols - rows
        d += 1

    return (best_rows, best_cols)


def empty_grid(rows: int, cols: int) -> list[list[str]]:
    return [["" for _ in range(cols)] for _ in range(rows)]


def fill_row_major(cells: list[str], rows: int, cols: int) -> list[list[str]]:
    """Lay ``cells`` out left-to-right, top-to-bottom; missing cells are empty."""
    grid = empty_grid(rows, cols)
    for idx, text in enumerate(cells[: rows * cols]):
        grid[idx // cols][idx % cols] = text
    return grid


def sorted_cells(descriptor: TableDescriptor) -> list[CellRef]:
    return sorted(descriptor.cells, key=lambda cell: cell.address)


def build_declared_grid(
    descriptor: TableDescriptor,
    cell_texts: list[str],
) -> tuple[list[list[str]], list[TableSpan]]:
    """
    Place cell texts into a ``rows x cols`` grid.

    ``cell_texts[i]`` belongs to the i-th declared cell in ``(row, col)``
    order. Cells addressed outside the grid are dropped; merged cells are
    reported as spans anchored at their top-left address.
    """
    grid = empty_grid(descriptor.rows, descriptor.cols)
    spans: list[TableSpan] = []

    for idx, cell in enumerate(sorted_cells(descriptor)):
        if cell.row < descriptor.rows and cell.col < descriptor.cols:
            grid[cell.row][cell.col] = (
                cell_texts[idx] if idx < len(cell_texts) else ""
            )
        if cell.is_merged:
            spans.append(TableSpan(
                row=cell.row,
                col=cell.col,
                row_span=cell.row_span,
                col_span=cell.col_span,
            ))

    return grid, spans
