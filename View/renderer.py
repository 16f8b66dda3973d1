from __future__ import annotations
from typing import Sequence

from PyQt6.QtCore import QPointF, Qt
from PyQt6.QtGui import QColor, QImage, QPainter, QPen

from Model.grid_state import GridLine, InteractionState

# Line styles: (color, width). Active wins over hovered.
IDLE_STYLE = (QColor(255, 0, 0, 178), 2.0)
HOVER_STYLE = (QColor(255, 100, 0, 204), 2.5)
ACTIVE_STYLE = (QColor(0, 120, 255, 230), 3.0)


def line_style(index: int, state: InteractionState) -> tuple[QColor, float]:
    if index == state.active_index:
        return ACTIVE_STYLE
    if index == state.hovered_index:
        return HOVER_STYLE
    return IDLE_STYLE


def paint_grid(p: QPainter, image: QImage | None, lines: Sequence[GridLine], state: InteractionState, width: int, height: int):
    """
    Paints one frame in raster coordinates: clear, source image at natural size,
    then every line as a full-width / full-height stroke.
    """
    # 1) clear the whole surface, nothing from the last frame survives
    p.save()
    p.setCompositionMode(QPainter.CompositionMode.CompositionMode_Source)
    p.fillRect(0, 0, width, height, Qt.GlobalColor.transparent)
    p.restore()

    # 2) the image
    if image is not None and not image.isNull():
        p.drawImage(0, 0, image)

    # 3) the grid lines
    for i, line in enumerate(lines):
        color, w = line_style(i, state)
        p.setPen(QPen(color, w))
        if line.is_horizontal:
            p.drawLine(QPointF(0, line.position), QPointF(width, line.position))
        else:
            p.drawLine(QPointF(line.position, 0), QPointF(line.position, height))


def render_grid(image: QImage, lines: Sequence[GridLine], state: InteractionState, target: QImage | None = None) -> QImage:
    # Renders into target (reused between frames) or a new natural-size surface
    w, h = image.width(), image.height()
    if target is None or target.width() != w or target.height() != h:
        target = QImage(w, h, QImage.Format.Format_ARGB32_Premultiplied)
    p = QPainter(target)
    p.setRenderHint(QPainter.RenderHint.Antialiasing, True)
    paint_grid(p, image, lines, state, w, h)
    p.end()
    return target
