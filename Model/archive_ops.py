# Model/archive_ops.py
"""
Packs the ordered cell images into one ZIP container.

Entries are named image_1.png .. image_N.png in production order. The archive
is all-or-nothing: an in-memory archive is only returned once it has been
closed, and an archive on disk only appears (atomically) once it is complete.
"""
from __future__ import annotations
import io
import logging
import os
import tempfile
import zipfile
from typing import List, Optional, Sequence, Tuple

from config import DEFAULT_ARCHIVE_NAME, IMAGE_EXT
from Model.errors import PackagingError

logger = logging.getLogger("gridcutter.archive")


def entry_name(index: int, ext: str = IMAGE_EXT) -> str:
    # index is 0-based, names are 1-based
    return f"image_{index + 1}{ext}"


def archive_filename(name: Optional[str] = None) -> str:
    name = (name or "").strip() or DEFAULT_ARCHIVE_NAME
    return name if name.lower().endswith(".zip") else f"{name}.zip"


def _write_entries(fileobj, images: Sequence[bytes], ext: str) -> None:
    with zipfile.ZipFile(fileobj, "w", zipfile.ZIP_DEFLATED) as zf:
        for i, data in enumerate(images):
            zf.writestr(entry_name(i, ext), bytes(data))


def build_archive(images: Sequence[bytes], ext: str = IMAGE_EXT) -> bytes:
    if images is None:
        raise PackagingError("No images to package")
    buf = io.BytesIO()
    try:
        _write_entries(buf, images, ext)
    except (OSError, ValueError, TypeError, zipfile.BadZipFile) as e:
        raise PackagingError(f"Could not create archive: {e}") from e
    logger.info("Packed %d images into %d bytes", len(images), buf.tell())
    return buf.getvalue()


def write_archive(images: Sequence[bytes], path: str, ext: str = IMAGE_EXT) -> str:
    """
    Writes the archive to path. The archive is built next to the target and
    moved into place with os.replace, so a failure never leaves a partial file.
    """
    target = os.path.abspath(path)
    folder = os.path.dirname(target) or "."
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=".gridcutter-", suffix=".zip.part", dir=folder)
    except OSError as e:
        raise PackagingError(f"Could not write archive {target}: {e}") from e
    try:
        with os.fdopen(fd, "wb") as f:
            _write_entries(f, images, ext)
        os.replace(tmp_path, target)
    except (OSError, ValueError, TypeError, zipfile.BadZipFile) as e:
        try:
            os.remove(tmp_path)
        except OSError:
            pass
        raise PackagingError(f"Could not write archive {target}: {e}") from e
    logger.info("Wrote %d images to %s", len(images), target)
    return target


def read_archive(data: bytes) -> List[Tuple[str, bytes]]:
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return [(info.filename, zf.read(info.filename)) for info in zf.infolist()]
