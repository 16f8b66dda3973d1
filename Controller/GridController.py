from __future__ import annotations
import logging
import os
from pathlib import Path

from PyQt6.QtCore import QObject, Qt
from PyQt6.QtGui import QGuiApplication
from PyQt6.QtWidgets import QFileDialog

from config import ALLOWED_SUFFIXES, IMAGE_EXT
from Controller.client_extractor import ClientExtractor, load_qimage
from Controller.drag_controller import DragController
from Controller.server_client import ServerClient
from Model.archive_ops import archive_filename, write_archive
from Model.errors import ExtractionError, InputError, PackagingError, SurfaceError, TransportError
from Model.grid_state import ImageBounds, InteractionState
from Model.image_state import ImageState
from Model.partition_ops import validate_grid_size

logger = logging.getLogger("gridcutter.controller")


# --- Controller ---
class GridController(QObject):
    def __init__(self, view, server: ServerClient | None = None):
        super().__init__()
        self.view = view # References the view the controller is responsible for.
        self.state = ImageState() # The loaded image, its grid and the last cut result
        self.drag = DragController(self.state.grid, parent=self) # Hit-test / drag state machine
        self.server = server or ServerClient() # Client of the extraction server

        # Wires all UI Signals with their respective Controller slots
        self._wire_view()

    # Wiring - connecting the view (widgets, buttons) with the logic
    def _wire_view(self):
        v = self.view

        # Image acquisition
        v.canvas.imageDropped.connect(self.load_image)
        v.imagePanel.toolbarButtons["Open Image"].clicked.connect(lambda: self.open_image())
        v.imagePanel.toolbarButtons["Clear Image"].clicked.connect(self.clear_image)
        v.imagePanel.toolbarButtons["Download Zip"].clicked.connect(lambda: self.download_zip())

        # Pointer events of the canvas (already in raster pixels) -> drag controller
        v.canvas.pointerPressed.connect(self.drag.pointer_down)
        v.canvas.pointerMoved.connect(self.drag.pointer_move)
        v.canvas.pointerReleased.connect(self.drag.pointer_up)
        v.canvas.pointerLeft.connect(self.drag.pointer_leave)

        # Drag controller -> view
        self.drag.linesChanged.connect(self._on_lines_changed)
        self.drag.interactionChanged.connect(self._on_interaction_changed)

        # Grid settings
        v.controlsPanel.rowsSpin.valueChanged.connect(lambda _val: self.on_grid_size_changed())
        v.controlsPanel.columnsSpin.valueChanged.connect(lambda _val: self.on_grid_size_changed())
        v.resetGridButton.clicked.connect(self.reset_grid)
        v.cutButton.clicked.connect(lambda: self.cut_client())
        v.serverButton.clicked.connect(lambda: self.cut_server())

    # ---------- Grid size ---------
    def grid_size(self) -> tuple[int, int]:
        p = self.view.controlsPanel
        return p.rowsSpin.value(), p.columnsSpin.value()

    def on_grid_size_changed(self):
        # New rows/columns -> custom line positions are discarded
        if not self.state.loaded:
            return
        self._regenerate_grid()
        self._invalidate_cut()

    def reset_grid(self):
        if not self.state.loaded:
            self._set_status_text("Cannot reset grid: no image loaded", kind="error")
            return
        self._regenerate_grid()
        self._invalidate_cut()
        self._set_status_text("Grid reset to default positions")

    def _regenerate_grid(self):
        rows, columns = self.grid_size()
        self.state.grid.regenerate(rows, columns, self.state.bounds)
        self.drag.reset()
        self.view.canvas.set_grid(self.state.grid.lines, self.drag.state)

    def _on_lines_changed(self, lines, width: int, height: int):
        # A line moved: redraw, and an older cut no longer matches the grid
        self.view.canvas.set_grid(lines)
        self._invalidate_cut()

    def _on_interaction_changed(self, state: InteractionState):
        self.view.canvas.set_interaction(state, self.drag.cursor_shape())

    # ---------- Image loading ---------
    def open_image(self, path: str | None = None):
        if path is None:
            pattern = " ".join(f"*{s}" for s in sorted(ALLOWED_SUFFIXES))
            path, _ = QFileDialog.getOpenFileName(self.view, "Open Image", "", f"Images ({pattern})")
            if not path:
                return
        self.load_image(path)

    def load_image(self, path: str) -> bool:
        if Path(path).suffix.lower() not in ALLOWED_SUFFIXES:
            self._set_status_text(f"Unsupported image type: {Path(path).name}", kind="error")
            return False
        try:
            with open(path, "rb") as f:
                data = f.read()
            img = load_qimage(data)
        except OSError as e:
            logger.error("Could not read %s: %s", path, e)
            self._set_status_text(f"Could not read image: {e}", kind="error")
            return False
        except ExtractionError as e:
            logger.error("Could not decode %s: %s", path, e)
            self._set_status_text(f"Could not decode image: {Path(path).name}", kind="error")
            return False

        # New image: the previous grid and the previous cut are discarded
        st = self.state
        st.path = path
        st.data = data
        st.original = img
        st.bounds = ImageBounds(img.width(), img.height())
        st.version += 1
        st.cut_images = []
        self.view.canvas.show_qimage(img)
        self._regenerate_grid()
        self._invalidate_cut()
        logger.info("Loaded %s (%dx%d)", path, img.width(), img.height())
        self._set_status_text(f"Loaded {Path(path).name} ({img.width()}x{img.height()})")
        return True

    def clear_image(self):
        self.state.grid.clear()
        self.state = ImageState(grid=self.state.grid, version=self.state.version + 1)
        self.drag.reset()
        self.view.canvas.clear_image()
        self._invalidate_cut()
        self._set_status_text("")

    # ---------- Client-side cut ---------
    def cut_client(self) -> list[bytes] | None:
        st = self.state
        if not st.loaded:
            self._set_status_text("Please load an image first!", kind="error")
            return None
        self._busy(True)
        try:
            extractor = ClientExtractor(st.original, ext=IMAGE_EXT)
            if st.grid.is_empty:
                # 1x1 grid (no lines): plain rows/columns cut
                rows, columns = validate_grid_size(*self.grid_size())
                images = extractor.extract_uniform(rows, columns)
            else:
                images = extractor.extract_grid(st.grid.lines, st.bounds)
        except InputError as e:
            self._set_status_text(f"Invalid grid: {e}", kind="error")
            return None
        except SurfaceError as e:
            logger.error("Client-side cut could not draw: %s", e)
            self._set_status_text(f"Could not draw the cells: {e}", kind="error")
            return None
        except ExtractionError as e:
            logger.error("Client-side cut failed: %s", e)
            self._set_status_text(f"Failed to cut image: {e}", kind="error")
            return None
        finally:
            self._busy(False)

        st.cut_images = images
        self.view.imagePanel.toolbarButtons["Download Zip"].setEnabled(True)
        self._set_status_text(f"Cut into {len(images)} pieces - ready to download", kind="ok")
        return images

    def download_zip(self, path: str | None = None) -> str | None:
        images = self.state.cut_images
        if not images:
            self._set_status_text("Nothing to download yet - cut the image first", kind="error")
            return None
        if path is None:
            path, _ = QFileDialog.getSaveFileName(self.view, "Save ZIP", archive_filename(), "ZIP (*.zip)")
            if not path:
                return None
        try:
            target = write_archive(images, path, IMAGE_EXT)
        except PackagingError as e:
            # Extraction was fine, only the archive failed
            logger.error("Packaging failed: %s", e)
            self._set_status_text(f"Failed to create zip file: {e}", kind="error")
            return None
        self._set_status_text(f"Saved {len(images)} images to {target}", kind="ok")
        return target

    # ---------- Server-side cut ---------
    def cut_server(self, path: str | None = None) -> str | None:
        st = self.state
        if not st.loaded or st.data is None:
            self._set_status_text("Please load an image first!", kind="error")
            return None
        rows, columns = self.grid_size()

        failure: TransportError | None = None
        self._busy(True)
        try:
            archive, name = self.server.cut_image(
                st.data, st.path or "image", rows, columns, lines=st.grid.lines or None)
        except TransportError as e:
            failure = e
        finally:
            self._busy(False)

        if failure is not None:
            # Server unavailable or failed -> run the whole cut again on this machine
            logger.warning("Server-side cut failed (%s), falling back to client-side processing", failure)
            images = self.cut_client()
            if images is not None:
                self._set_status_text(
                    f"Server failed - processed on this machine instead ({len(images)} pieces, ready to download)",
                    kind="ok")
            return None

        if path is None:
            path, _ = QFileDialog.getSaveFileName(self.view, "Save ZIP", name, "ZIP (*.zip)")
            if not path:
                return None
        target = os.path.abspath(path)
        tmp = target + ".part"
        try:
            with open(tmp, "wb") as f:
                f.write(archive)
            os.replace(tmp, target)
        except OSError as e:
            if os.path.exists(tmp):
                os.remove(tmp)
            self._set_status_text(f"Could not save {target}: {e}", kind="error")
            return None
        self._set_status_text(f"Server archive saved to {target}", kind="ok")
        return target

    # Helper methods
    def _invalidate_cut(self):
        self.state.cut_images = []
        self.view.imagePanel.toolbarButtons["Download Zip"].setEnabled(False)

    def _busy(self, on: bool):
        self.view.set_busy(on)
        if on:
            QGuiApplication.setOverrideCursor(Qt.CursorShape.WaitCursor)
            self._set_status_text("Processing image...")
        elif QGuiApplication.overrideCursor() is not None:
            QGuiApplication.restoreOverrideCursor()

    def _set_status_text(self, msg: str, *, kind: str = "info"):
        # Colors: error = orange, info = light grey, ok = green
        colors = {
            "error": "#ff9f1a",
            "info": "#d8d8d8",
            "ok": "#6bd66b",
        }
        col = colors.get(kind, "#d8d8d8")
        self.view.statusLine.setStyleSheet(
            f"QLineEdit {{ background:#1e1e1e; color:{col}; padding:2px 6px; }}"
        )
        self.view.statusLine.setText(msg)
