# Model/errors.py
"""
Error taxonomy shared by both extraction backends, the packager and the server.

Every error carries a machine readable ``reason`` that the server puts into its
JSON error body and the desktop controller uses to pick the status message.
"""


class GridCutterError(Exception):
    reason = "error"


class InputError(GridCutterError):
    """Missing/invalid image, non-positive grid size or an invalid rectangle."""
    reason = "invalid_parameters"


class ExtractionError(GridCutterError):
    reason = "extraction_failed"


class DecodeError(ExtractionError):
    """The source could not be decoded, or a cell could not be encoded."""
    reason = "decode_failed"


class SurfaceError(ExtractionError):
    """A drawing surface could not be acquired."""
    reason = "surface_failed"


class PackagingError(GridCutterError):
    """Extraction succeeded but the archive could not be produced."""
    reason = "packaging_failed"


class TransportError(GridCutterError):
    """The server path did not answer with a success response."""
    reason = "transport_failed"

    def __init__(self, message: str, status_code: int | None = None, server_reason: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.server_reason = server_reason
