# Model/partition_ops.py
"""
Partition math: grid lines + image bounds -> ordered cell rectangles.

Both extraction backends consume the output of this module, so the cell
geometry (and the pixel snapping in ``pixel_box``) is defined exactly once.
"""
from __future__ import annotations
import math
from typing import Iterable, List, Sequence, Tuple

from Model.errors import InputError
from Model.grid_state import CellRectangle, GridLine, ImageBounds

PixelBox = Tuple[int, int, int, int]  # (left, top, width, height)


def axis_boundaries(lines: Iterable[GridLine], bounds: ImageBounds) -> tuple[list[float], list[float]]:
    """
    Sorted boundary values per axis with 0 and the bound added as implicit lines.
    Returns (horizontal_boundaries, vertical_boundaries).
    """
    ys, xs = [], []
    for line in lines:
        (ys if line.is_horizontal else xs).append(float(line.position))
    ys.sort()
    xs.sort()
    return [0.0, *ys, float(bounds.height)], [0.0, *xs, float(bounds.width)]


def compute_cell_rectangles(lines: Iterable[GridLine], bounds: ImageBounds) -> List[CellRectangle]:
    """
    Row-major cells: top row left to right, then the next row.

    Lines may come in any order and may cross or coincide; two lines at the
    same position give a zero-sized cell, which is kept.
    """
    h_bounds, v_bounds = axis_boundaries(lines, bounds)
    rects: List[CellRectangle] = []
    for y0, y1 in zip(h_bounds, h_bounds[1:]):
        for x0, x1 in zip(v_bounds, v_bounds[1:]):
            rects.append(CellRectangle(x0, y0, x1 - x0, y1 - y0))
    return rects


def uniform_cell_rectangles(rows: int, columns: int, bounds: ImageBounds) -> List[CellRectangle]:
    """
    Fallback used when no custom grid lines exist.

    Cell size is floor(W / columns) x floor(H / rows); remainder pixels along
    the right and bottom edges are not covered by any cell.
    """
    validate_grid_size(rows, columns)
    cell_w = bounds.width // columns
    cell_h = bounds.height // rows
    return [
        CellRectangle(col * cell_w, row * cell_h, cell_w, cell_h)
        for row in range(rows)
        for col in range(columns)
    ]


def validate_grid_size(rows, columns) -> tuple[int, int]:
    try:
        r, c = int(rows), int(columns)
    except (TypeError, ValueError):
        raise InputError(f"Rows and columns must be integers, got {rows!r} x {columns!r}")
    if r <= 0 or c <= 0:
        raise InputError(f"Rows and columns must be positive, got {r} x {c}")
    return r, c


def validate_rectangles(rects: Sequence[CellRectangle], bounds: ImageBounds, *, strict: bool = False) -> None:
    # Rectangles have to stay inside the image; strict additionally forbids empty cells
    if not rects:
        raise InputError("At least one cell rectangle is required")
    for i, r in enumerate(rects):
        # NaN passes every comparison below
        if not all(math.isfinite(v) for v in (r.x, r.y, r.width, r.height)):
            raise InputError(f"Rectangle {i + 1} has a non-finite coordinate: {r}")
        if r.width < 0 or r.height < 0:
            raise InputError(f"Rectangle {i + 1} has a negative size: {r}")
        if strict and r.is_degenerate:
            raise InputError(f"Rectangle {i + 1} has a non-positive size: {r}")
        if r.x < 0 or r.y < 0 or r.x + r.width > bounds.width or r.y + r.height > bounds.height:
            raise InputError(f"Rectangle {i + 1} lies outside the {bounds.width}x{bounds.height} image: {r}")


def _snap(v: float) -> int:
    # round half up, identical for both backends (no banker's rounding)
    return int(math.floor(v + 0.5))


def pixel_box(rect: CellRectangle) -> PixelBox:
    """
    Integer crop box of a rectangle. Edges are snapped, not sizes, so two
    cells sharing an edge also share the snapped pixel column/row.
    """
    left, top = _snap(rect.x), _snap(rect.y)
    right, bottom = _snap(rect.x + rect.width), _snap(rect.y + rect.height)
    return left, top, max(0, right - left), max(0, bottom - top)
