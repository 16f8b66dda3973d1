from __future__ import annotations
from PyQt6.QtCore import QObject, Qt, pyqtSignal

from config import HIT_THRESHOLD
from Controller.enums import DragStatus
from Model.grid_state import GridModel, InteractionState
from Model.line_ops import nearest_line_index


# Hit-test and drag state machine for the grid lines.
# The canvas converts widget coordinates to raster pixels and then calls the pointer_* methods;
# every call fully updates the state before the next event is handled (GUI thread only).
class DragController(QObject):
    # Emitted during a drag with the full line list and the image bounds (width, height)
    linesChanged = pyqtSignal(object, int, int)
    # Emitted whenever active / hovered line changed, so the view can repaint and swap the cursor
    interactionChanged = pyqtSignal(object)

    def __init__(self, grid: GridModel, threshold: float = HIT_THRESHOLD, parent=None):
        super().__init__(parent)
        self.grid = grid # the Grid Model this controller edits
        self.threshold = threshold # grab distance in raster pixels
        self._active: int | None = None # line being dragged
        self._hovered: int | None = None # line under the pointer

    # ---------- State ---------
    @property
    def status(self) -> DragStatus:
        if self._active is not None:
            return DragStatus.DRAGGING
        if self._hovered is not None:
            return DragStatus.HOVERING
        return DragStatus.IDLE

    @property
    def state(self) -> InteractionState:
        return InteractionState(self._active, self._hovered)

    @property
    def active_index(self) -> int | None:
        return self._active

    @property
    def hovered_index(self) -> int | None:
        return self._hovered

    # ---------- Pointer events (raster coordinates) ---------
    def pointer_move(self, x: float, y: float):
        before = self.state
        # Hover feedback is updated on every move, also while dragging
        self._hovered = self._hit(x, y)

        if self._active is not None:
            line = self.grid[self._active]
            # Candidate position along the axis of the dragged line; update_line clamps to [0, bound]
            candidate = y if line.is_horizontal else x
            lines = self.grid.update_line(self._active, candidate)
            b = self.grid.bounds
            self.linesChanged.emit(lines, b.width, b.height)
            self.interactionChanged.emit(self.state)
            return

        if self.state != before:
            self.interactionChanged.emit(self.state)

    def pointer_down(self, x: float, y: float) -> bool:
        # Same nearest-line search as for hovering. Nothing in reach -> no drag at all
        idx = self._hit(x, y)
        if idx is None:
            return False
        self._active = idx
        self._hovered = idx
        self.interactionChanged.emit(self.state)
        return True

    def pointer_up(self):
        if self._active is None:
            return
        self._active = None
        self.interactionChanged.emit(self.state)

    def pointer_leave(self):
        # Leaving the canvas ends a drag and clears the hover from any state
        changed = self._active is not None or self._hovered is not None
        self._active = None
        self._hovered = None
        if changed:
            self.interactionChanged.emit(self.state)

    def reset(self):
        # Called when the grid is regenerated: old indices are meaningless now
        self._active = None
        self._hovered = None

    # ---------- Cursor affordance ---------
    def cursor_shape(self) -> Qt.CursorShape:
        idx = self._active if self._active is not None else self._hovered
        if idx is None or idx >= len(self.grid):
            return Qt.CursorShape.ArrowCursor
        # horizontal line moves up/down, vertical line moves left/right
        return Qt.CursorShape.SizeVerCursor if self.grid[idx].is_horizontal else Qt.CursorShape.SizeHorCursor

    # Helper
    def _hit(self, x: float, y: float) -> int | None:
        if self.grid.bounds is None:
            return None
        return nearest_line_index(self.grid.lines, x, y, self.threshold)
