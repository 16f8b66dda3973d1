from __future__ import annotations
import logging
import time
from typing import List, Optional, Sequence

from PyQt6.QtCore import QBuffer, QByteArray, QIODevice, QRunnable, QThreadPool, Qt
from PyQt6.QtGui import QImage, QImageReader, QPainter

from config import IMAGE_EXT
from Model.errors import DecodeError, GridCutterError, InputError, SurfaceError
from Model.grid_state import CellRectangle, GridLine, ImageBounds
from Model.partition_ops import compute_cell_rectangles, pixel_box, uniform_cell_rectangles

logger = logging.getLogger("gridcutter.client")


def load_qimage(source) -> QImage:
    """Decode a path or raw bytes into a QImage (EXIF orientation applied)."""
    if isinstance(source, (bytes, bytearray)):
        buf = QBuffer()
        buf.setData(QByteArray(bytes(source)))
        buf.open(QIODevice.OpenModeFlag.ReadOnly)
        reader = QImageReader(buf)
        reader.setAutoTransform(True)
        img = reader.read()
        buf.close()
    else:
        reader = QImageReader(str(source))
        reader.setAutoTransform(True)
        img = reader.read()
    if img.isNull():
        raise DecodeError(f"Failed to load image: {reader.errorString()}")
    return img


def qimage_to_bytes(img: QImage, ext: str = IMAGE_EXT) -> bytes:
    fmt = ext.lstrip(".").upper()
    buf = QBuffer()
    buf.open(QIODevice.OpenModeFlag.WriteOnly)
    ok = img.save(buf, fmt)
    data = bytes(buf.data())
    buf.close()
    if not ok:
        raise DecodeError(f"{fmt} encode failed")
    return data


# One job per cell for the thread pool. Each job paints into its OWN surface,
# a surface is never shared between two concurrent jobs.
# The shared source image is only read.
class _CellTask(QRunnable):
    def __init__(self, index: int, source: QImage, rect: CellRectangle, ext: str, results: list, errors: list):
        super().__init__()
        self.index = index # position in row-major order
        self.source = source # shared, read-only
        self.rect = rect
        self.ext = ext
        self.results = results # pre-sized, each task writes only its own slot
        self.errors = errors
        self.setAutoDelete(False)

    def run(self):
        try:
            self.results[self.index] = render_cell(self.source, self.rect, self.ext)
        except Exception as e:  # noqa: BLE001 - re-raised by ClientExtractor after the join
            self.errors.append((self.index, e))


def render_cell(source: QImage, rect: CellRectangle, ext: str = IMAGE_EXT) -> bytes:
    left, top, w, h = pixel_box(rect)
    if w == 0 or h == 0:
        # zero-sized cell (two lines on the same spot) -> empty entry
        return b""

    # Fresh surface sized to this cell, fully cleared before drawing
    surface = QImage(w, h, QImage.Format.Format_ARGB32)
    if surface.isNull():
        raise SurfaceError(f"Could not allocate a {w}x{h} drawing surface")
    surface.fill(Qt.GlobalColor.transparent)

    p = QPainter()
    if not p.begin(surface):
        raise SurfaceError("Could not start painting on the drawing surface")
    try:
        # Source mode copies pixels 1:1 (no blending with the cleared background)
        p.setCompositionMode(QPainter.CompositionMode.CompositionMode_Source)
        p.drawImage(0, 0, source, left, top, w, h)
    finally:
        p.end()
    return qimage_to_bytes(surface, ext)


class ClientExtractor:
    """
    Client-side extraction backend working on an already decoded QImage.
    """

    def __init__(self, image: QImage, pool: Optional[QThreadPool] = None, ext: str = IMAGE_EXT):
        if image is None or image.isNull():
            raise DecodeError("No decoded image to extract from")
        # One conversion up front, every task reads the same ARGB32 pixels
        self.source = image.convertToFormat(QImage.Format.Format_ARGB32)
        self.pool = pool if pool is not None else QThreadPool()
        self.ext = ext

    @property
    def bounds(self) -> ImageBounds:
        return ImageBounds(self.source.width(), self.source.height())

    def extract(self, rects: Sequence[CellRectangle]) -> List[bytes]:
        t0 = time.perf_counter()
        results: list = [None] * len(rects)
        errors: list = []
        tasks = [_CellTask(i, self.source, r, self.ext, results, errors) for i, r in enumerate(rects)]
        for task in tasks:
            self.pool.start(task)
        # Join: nothing is handed on before every cell is done
        self.pool.waitForDone()

        if errors:
            index, err = min(errors, key=lambda e: e[0])
            logger.error("Client extraction failed at cell %d: %s", index + 1, err)
            if isinstance(err, GridCutterError):
                raise err
            raise SurfaceError(f"Cell {index + 1} could not be drawn: {err}") from err

        logger.info("Client extracted %d cells in %.1f ms", len(results), (time.perf_counter() - t0) * 1000.0)
        return results

    def extract_grid(self, lines: Sequence[GridLine], bounds: ImageBounds | None = None) -> List[bytes]:
        bounds = bounds or self.bounds
        if (bounds.width, bounds.height) != (self.source.width(), self.source.height()):
            raise InputError(
                f"Grid was made for {bounds.width}x{bounds.height}, image is "
                f"{self.source.width()}x{self.source.height()}"
            )
        return self.extract(compute_cell_rectangles(lines, bounds))

    def extract_uniform(self, rows: int, columns: int) -> List[bytes]:
        return self.extract(uniform_cell_rectangles(rows, columns, self.bounds))
