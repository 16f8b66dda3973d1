"""
Configuration & Constants
=========================
Central registry for the constants shared by the desktop editor, the
extraction backends and the server.

Every value can be overridden through a ``GRIDCUTTER_*`` environment
variable so the server and the desktop client can be pointed at each other
without code changes.

Exports:
    HIT_THRESHOLD (float): Max distance in raster pixels for grabbing a line.
    DEFAULT_ROWS / DEFAULT_COLUMNS (int): Grid size for a freshly loaded image.
    MAX_GRID (int): Upper bound of the rows/columns controls.
    IMAGE_EXT (str): Suffix (and codec) of the extracted cell images.
    DEFAULT_ARCHIVE_NAME (str): Archive name offered when none is supplied.
    SERVER_URL (str): Extraction endpoint used by the desktop client.
    SERVER_TIMEOUT (float): Transport timeout in seconds.
    MAX_UPLOAD_BYTES (int): Upload cap of the server endpoint.
"""
import os


def _env(name: str, default: str) -> str:
    return os.environ.get(f"GRIDCUTTER_{name}", default)


# Interaction
HIT_THRESHOLD: float = float(_env("HIT_THRESHOLD", "10"))

# Grid defaults
DEFAULT_ROWS: int = int(_env("DEFAULT_ROWS", "3"))
DEFAULT_COLUMNS: int = int(_env("DEFAULT_COLUMNS", "3"))
MAX_GRID: int = int(_env("MAX_GRID", "20"))

# Output
IMAGE_EXT: str = _env("IMAGE_EXT", ".png")
DEFAULT_ARCHIVE_NAME: str = _env("ARCHIVE_NAME", "grid-images")

# Server path
SERVER_URL: str = _env("SERVER_URL", "http://127.0.0.1:8000/api/cut-image")
SERVER_TIMEOUT: float = float(_env("SERVER_TIMEOUT", "30"))
MAX_UPLOAD_BYTES: int = int(_env("MAX_UPLOAD_BYTES", str(50 * 1024 * 1024)))

# Image acquisition
ALLOWED_SUFFIXES = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".webp", ".tif", ".tiff"}
