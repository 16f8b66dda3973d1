# Model/line_ops.py
from __future__ import annotations
from typing import Sequence, Tuple

from Model.grid_state import GridLine, ImageBounds

Point = Tuple[float, float]


def viewport_to_raster(
    vx: float,
    vy: float,
    displayed_width: float,
    displayed_height: float,
    bounds: ImageBounds,
    offset: Point = (0.0, 0.0),
) -> Point:
    """
    Maps a pointer position inside the displayed image into raster pixels.

    offset is the top-left corner of the displayed image inside the viewport,
    the scale is the ratio natural size / displayed size per axis.
    Positions outside the displayed image are mapped too (no clamping here).
    """
    ox, oy = offset
    sx = bounds.width / displayed_width if displayed_width > 0 else 1.0
    sy = bounds.height / displayed_height if displayed_height > 0 else 1.0
    return (vx - ox) * sx, (vy - oy) * sy


def line_distance(line: GridLine, x: float, y: float) -> float:
    # perpendicular distance: only the coordinate across the line counts
    return abs(y - line.position) if line.is_horizontal else abs(x - line.position)


def nearest_line_index(lines: Sequence[GridLine], x: float, y: float, threshold: float) -> int | None:
    """
    Index of the closest line strictly closer than threshold, or None.
    Equal distances keep the first (lowest) index.
    """
    best_i, best_d = None, threshold
    for i, line in enumerate(lines):
        d = line_distance(line, x, y)
        if d < best_d:
            best_d, best_i = d, i
    return best_i
