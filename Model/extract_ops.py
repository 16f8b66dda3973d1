# Model/extract_ops.py
"""
Server-side extraction backend.

Works on the raw encoded bytes: decodes once, crops every cell by integer
pixel offsets out of the shared (read-only) array and encodes each crop on
its own. Per-cell jobs run on a thread pool; the result list is only handed
back once every job has finished, and a single failing cell fails the call.
"""
from __future__ import annotations
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

import numpy as np

from Model.errors import ExtractionError, GridCutterError
from Model.grid_state import CellRectangle, GridLine, ImageBounds
from Model.image_ops import crop_pixels, decode_image_bytes, encode_image, image_size
from Model.partition_ops import compute_cell_rectangles, pixel_box, uniform_cell_rectangles

logger = logging.getLogger("gridcutter.extract")


def _extract_one(img: np.ndarray, rect: CellRectangle, ext: str) -> bytes:
    return encode_image(crop_pixels(img, pixel_box(rect)), ext)


def extract_from_array(
    img: np.ndarray,
    rects: Sequence[CellRectangle],
    *,
    ext: str = ".png",
    max_workers: Optional[int] = None,
) -> List[bytes]:
    t0 = time.perf_counter()
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [pool.submit(_extract_one, img, r, ext) for r in rects]
        try:
            # join in submission order = row-major order
            out = [f.result() for f in futures]
        except GridCutterError:
            raise
        except Exception as e:
            raise ExtractionError(f"Cell extraction failed: {e}") from e
    logger.info("Extracted %d cells in %.1f ms", len(out), (time.perf_counter() - t0) * 1000.0)
    return out


def extract_cells(
    data: bytes,
    rects: Sequence[CellRectangle],
    *,
    ext: str = ".png",
    max_workers: Optional[int] = None,
) -> List[bytes]:
    img = decode_image_bytes(data)
    return extract_from_array(img, rects, ext=ext, max_workers=max_workers)


def extract_grid(
    data: bytes,
    lines: Sequence[GridLine],
    *,
    ext: str = ".png",
    max_workers: Optional[int] = None,
) -> List[bytes]:
    # Custom grid lines, bounds come from the decoded image itself
    img = decode_image_bytes(data)
    w, h = image_size(img)
    rects = compute_cell_rectangles(lines, ImageBounds(w, h))
    return extract_from_array(img, rects, ext=ext, max_workers=max_workers)


def extract_uniform(
    data: bytes,
    rows: int,
    columns: int,
    *,
    ext: str = ".png",
    max_workers: Optional[int] = None,
) -> List[bytes]:
    img = decode_image_bytes(data)
    w, h = image_size(img)
    rects = uniform_cell_rectangles(rows, columns, ImageBounds(w, h))
    return extract_from_array(img, rects, ext=ext, max_workers=max_workers)
