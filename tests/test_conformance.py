"""Both extraction backends must produce the same pixels for the same rectangles."""
import struct

import cv2
import numpy as np
import pytest

from conftest import decode_bgr
from Controller.client_extractor import ClientExtractor, load_qimage
from Model.extract_ops import extract_cells, extract_grid
from Model.grid_state import CellRectangle, GridLine, GridModel, ImageBounds, regenerate_lines
from Model.image_ops import decode_image_bytes, image_size
from Model.partition_ops import compute_cell_rectangles, uniform_cell_rectangles

SIZE = (237, 181)


def _grids():
    bounds = ImageBounds(*SIZE)
    yield "uniform-lines", compute_cell_rectangles(regenerate_lines(4, 5, bounds), bounds)
    yield "custom-lines", compute_cell_rectangles(
        [GridLine(60.4, True), GridLine(60.6, True), GridLine(170.5, True), GridLine(12.5, False), GridLine(200.25, False)],
        bounds)
    yield "floor-fallback", uniform_cell_rectangles(3, 7, bounds)
    yield "explicit", [CellRectangle(0.5, 0.5, 10.2, 9.7), CellRectangle(236, 180, 1, 1), CellRectangle(100, 50, 0, 20)]


@pytest.mark.parametrize("name,rects", list(_grids()))
def test_client_and_server_agree(qapp, make_png, name, rects):
    data = make_png(*SIZE)
    client = ClientExtractor(load_qimage(data)).extract(rects)
    server = extract_cells(data, rects)

    assert len(client) == len(server) == len(rects)
    for n, (a, b) in enumerate(zip(client, server)):
        if not b:
            assert a == b"", f"{name}: cell {n} should be empty in both"
            continue
        np.testing.assert_array_equal(decode_bgr(a), decode_bgr(b), err_msg=f"{name}: cell {n}")


def _deep_png(width: int, height: int) -> tuple[bytes, np.ndarray]:
    ys, xs = np.mgrid[0:height, 0:width]
    img = np.empty((height, width, 3), dtype=np.uint16)
    for c in range(3):
        img[..., c] = (xs * 1231 + ys * 977 + c * 4099) % 65536
    img[0, :4] = [[0, 127, 128], [257, 32896, 65535], [383, 384, 385], [65407, 65408, 65409]]
    ok, buf = cv2.imencode(".png", img)
    assert ok
    return buf.tobytes(), img


def test_16_bit_source_agrees(qapp):
    data, _ = _deep_png(48, 40)
    rects = compute_cell_rectangles(regenerate_lines(2, 3, ImageBounds(48, 40)), ImageBounds(48, 40))
    client = ClientExtractor(load_qimage(data)).extract(rects)
    server = extract_cells(data, rects)
    for n, (a, b) in enumerate(zip(client, server)):
        np.testing.assert_array_equal(decode_bgr(a), decode_bgr(b), err_msg=f"16 bit cell {n}")


def _with_orientation(jpeg: bytes, orientation: int) -> bytes:
    # Minimal big-endian EXIF block holding only the orientation tag (0x0112)
    tiff = b"MM\x00\x2a" + struct.pack(">I", 8) + struct.pack(">H", 1)
    tiff += struct.pack(">HHIHH", 0x0112, 3, 1, orientation, 0) + struct.pack(">I", 0)
    payload = b"Exif\x00\x00" + tiff
    app1 = b"\xff\xe1" + struct.pack(">H", len(payload) + 2) + payload
    pos = 2
    if jpeg[2:4] == b"\xff\xe0":
        pos = 4 + struct.unpack(">H", jpeg[4:6])[0]
    return jpeg[:pos] + app1 + jpeg[pos:]


def test_exif_rotated_jpeg_agrees(qapp):
    # Stored 400x200 with a dark left half; orientation 6 shows it as 200x400 with the dark half on top
    stored = np.full((200, 400, 3), 220, dtype=np.uint8)
    stored[:, :200] = 30
    ok, buf = cv2.imencode(".jpg", stored)
    assert ok
    data = _with_orientation(buf.tobytes(), 6)

    qimg = load_qimage(data)
    bounds = ImageBounds(qimg.width(), qimg.height())
    assert (bounds.width, bounds.height) == (200, 400)
    assert image_size(decode_image_bytes(data)) == (200, 400)

    lines = GridModel(2, 2, bounds).lines
    client = [decode_bgr(c) for c in ClientExtractor(qimg).extract_grid(lines, bounds)]
    server = [decode_bgr(c) for c in extract_grid(data, lines)]

    assert [c.shape for c in client] == [s.shape for s in server] == [(200, 100, 3)] * 4
    for n, (a, b) in enumerate(zip(client, server)):
        # JPEG decoders may differ by a few levels, the layout must not
        assert abs(float(a.mean()) - float(b.mean())) < 8, f"cell {n}"
    assert all(c.mean() < 100 for c in client[:2] + server[:2])
    assert all(c.mean() > 150 for c in client[2:] + server[2:])
