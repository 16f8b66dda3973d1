"""Shared pytest fixtures for the grid cutter test suite.

Fixtures:
    qapp: Session-wide QApplication on the offscreen platform
    make_bgr: Factory for deterministic HxWx3 test images
    make_png: Factory for PNG bytes of such an image
    png_300: 300x300 PNG bytes
    qimage_300: The same image decoded as QImage
"""
import os

# Must be set before the first Qt import
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import cv2
import numpy as np
import pytest
from PyQt6.QtWidgets import QApplication


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


def _pattern(width: int, height: int) -> np.ndarray:
    # Every pixel depends on its position, so a shifted crop never matches by accident
    ys, xs = np.mgrid[0:height, 0:width]
    img = np.empty((height, width, 3), dtype=np.uint8)
    img[..., 0] = xs % 256
    img[..., 1] = ys % 256
    img[..., 2] = (xs * 7 + ys * 13) % 256
    return img


@pytest.fixture
def make_bgr():
    return _pattern


@pytest.fixture
def make_png():
    def _make(width: int, height: int) -> bytes:
        ok, buf = cv2.imencode(".png", _pattern(width, height))
        assert ok
        return buf.tobytes()
    return _make


@pytest.fixture
def png_300(make_png):
    return make_png(300, 300)


@pytest.fixture
def qimage_300(qapp, png_300):
    from Controller.client_extractor import load_qimage
    return load_qimage(png_300)


def decode_bgr(data: bytes) -> np.ndarray:
    """Decode PNG bytes to a 3-channel BGR array (alpha dropped)."""
    img = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    assert img is not None
    return img
