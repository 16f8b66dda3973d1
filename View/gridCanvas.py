from pathlib import Path

from PyQt6.QtCore import QPointF, QRectF, Qt, pyqtSignal
from PyQt6.QtGui import QImage, QPainter
from PyQt6.QtWidgets import QLabel

from config import ALLOWED_SUFFIXES
from Model.grid_state import GridLine, ImageBounds, InteractionState
from Model.line_ops import viewport_to_raster
from View.renderer import render_grid


class GridCanvas(QLabel):
    # This class shows the loaded image with its grid lines, accepts dropped image files
    # and turns mouse events into raster-pixel pointer events for the drag controller.

    # Signals collected by the controller
    imageDropped = pyqtSignal(str)  # path of the dropped image file
    pointerPressed = pyqtSignal(float, float)  # raster coordinates
    pointerMoved = pyqtSignal(float, float)
    pointerReleased = pyqtSignal()
    pointerLeft = pyqtSignal()

    def __init__(self, placeholder: str = "Drag & Drop an image here"):
        super().__init__(placeholder)
        self.setObjectName("GridCanvas")
        self.setAcceptDrops(True) # activate Drag- and Drop
        self.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.setWordWrap(True)
        self.setMouseTracking(True) # hover feedback without a pressed button
        self._placeholder = placeholder

        self._image: QImage | None = None
        self._lines: list[GridLine] = []
        self._state = InteractionState()
        self._frame: QImage | None = None # natural-size render target, reused between frames

    # Mouse events - forwarded in raster coordinates
    def mousePressEvent(self, e):
        if self._image is not None and e.button() == Qt.MouseButton.LeftButton:
            x, y = self._widget_to_raster(e.position())
            self.pointerPressed.emit(x, y)
            e.accept()
            return
        super().mousePressEvent(e)

    def mouseMoveEvent(self, e):
        if self._image is not None:
            x, y = self._widget_to_raster(e.position())
            self.pointerMoved.emit(x, y)
            e.accept()
            return
        super().mouseMoveEvent(e)

    def mouseReleaseEvent(self, e):
        if self._image is not None and e.button() == Qt.MouseButton.LeftButton:
            self.pointerReleased.emit()
            e.accept()
            return
        super().mouseReleaseEvent(e)

    def leaveEvent(self, e):
        if self._image is not None:
            self.pointerLeft.emit()
        super().leaveEvent(e)

    # Paint
    def paintEvent(self, e):
        # Show the Drag&Drop placeholder text
        if self._image is None:
            super().paintEvent(e)
            return
        # The frame is rendered at natural size (so line positions are raster pixels)
        # and then scaled into the widget (aspect fit)
        self._frame = render_grid(self._image, self._lines, self._state, self._frame)
        p = QPainter(self)
        p.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, True)
        p.drawImage(self.display_rect(), self._frame)
        p.end()

    # Helper functions for the coordinate mapping
    def display_rect(self) -> QRectF:
        # Where the image is shown inside the widget: aspect fit, centered
        if self._image is None or self.width() <= 0 or self.height() <= 0:
            return QRectF()
        iw, ih = self._image.width(), self._image.height()
        s = min(self.width() / iw, self.height() / ih)
        dw, dh = iw * s, ih * s
        return QRectF((self.width() - dw) / 2.0, (self.height() - dh) / 2.0, dw, dh)

    def _widget_to_raster(self, posf: QPointF) -> tuple[float, float]:
        r = self.display_rect()
        bounds = ImageBounds(self._image.width(), self._image.height())
        return viewport_to_raster(posf.x(), posf.y(), r.width(), r.height(), bounds, (r.x(), r.y()))

    # Helper functions for Drag&Drop
    def dragEnterEvent(self, event):
        if self._has_image_url(event):
            event.acceptProposedAction()
        else:
            event.ignore()

    def dragMoveEvent(self, event):
        if self._has_image_url(event):
            event.acceptProposedAction()
        else:
            event.ignore()

    def dropEvent(self, event):
        url = next((u for u in event.mimeData().urls() if u.isLocalFile()), None)
        if not url:
            event.ignore(); return

        path = url.toLocalFile()
        if Path(path).suffix.lower() not in ALLOWED_SUFFIXES:
            event.ignore(); return

        event.acceptProposedAction()
        self.imageDropped.emit(path)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self.update()

    # ---- Public API ----
    def show_qimage(self, qimg: QImage):
        if qimg is None or qimg.isNull():
            return
        self._image = qimg
        self._frame = None
        self.setText("")
        self.update()

    def clear_image(self):
        self._image = None
        self._frame = None
        self._lines = []
        self._state = InteractionState()
        self.setText(self._placeholder)
        self.unsetCursor()
        self.update()

    def set_grid(self, lines, state: InteractionState | None = None):
        self._lines = list(lines)
        if state is not None:
            self._state = state
        self.update()

    def set_interaction(self, state: InteractionState, cursor: Qt.CursorShape):
        self._state = state
        self.setCursor(cursor)
        self.update()

    @property
    def image(self) -> QImage | None:
        return self._image

    def _has_image_url(self, event) -> bool:
        md = event.mimeData()
        if not md.hasUrls():
            return False
        for u in md.urls():
            if u.isLocalFile() and Path(u.toLocalFile()).suffix.lower() in ALLOWED_SUFFIXES:
                return True
        return False
