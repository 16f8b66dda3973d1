import cv2
import numpy as np

from Model.errors import DecodeError
from Model.partition_ops import PixelBox


def decode_image_bytes(data: bytes) -> np.ndarray:
    """
    Decodes raw encoded image bytes into an HxW(xC) uint8 array.

    IMREAD_UNCHANGED keeps an alpha channel if the source has one, but it
    skips the EXIF orientation. Sources without alpha are therefore decoded
    again with a flag set that applies the orientation, so the pixel grid is
    the one QImageReader (auto-transform on) shows on the desktop.
    """
    if not data:
        raise DecodeError("Empty image data")
    arr = np.frombuffer(data, dtype=np.uint8)
    img = cv2.imdecode(arr, cv2.IMREAD_UNCHANGED)
    if img is None or img.size == 0:
        raise DecodeError("Could not decode image data")
    if img.ndim == 2 or img.shape[2] < 4:
        oriented = cv2.imdecode(arr, cv2.IMREAD_ANYCOLOR | cv2.IMREAD_ANYDEPTH)
        if oriented is not None and oriented.size:
            img = oriented
    if img.dtype == np.uint16:
        img = reduce_to_8bit(img)
    elif img.dtype != np.uint8:
        raise DecodeError(f"Unsupported pixel type {img.dtype}")
    return img


def reduce_to_8bit(img: np.ndarray) -> np.ndarray:
    # Same rounding as QRgba64 (x - (x >> 8) + 0x80) >> 8, so both backends agree on 16 bit sources
    x = img.astype(np.uint32)
    return ((x - (x >> 8) + 0x80) >> 8).astype(np.uint8)


def image_size(img: np.ndarray) -> tuple[int, int]:
    # (width, height), numpy stores rows first
    h, w = img.shape[:2]
    return w, h


def crop_pixels(img: np.ndarray, box: PixelBox) -> np.ndarray:
    """
    View of the source for an integer crop box, no copy and no padding.
    The source stays read-only for every concurrent caller.
    """
    left, top, w, h = box
    return img[top:top + h, left:left + w]


def encode_image(img: np.ndarray, ext: str = ".png") -> bytes:
    # Empty crops (zero width or height) cannot be encoded -> empty entry
    if img.size == 0:
        return b""
    ok, buf = cv2.imencode(ext, img)
    if not ok:
        raise DecodeError(f"{ext} encode failed")
    return buf.tobytes()
