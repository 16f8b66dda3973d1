"""
HTTP client for the server extraction endpoint.

Any non-success outcome (connection error, timeout, non-2xx status) is raised
as TransportError so the caller can fall back to the client-side path.
"""
from __future__ import annotations
import json
import logging
import os
import re
from typing import Optional, Sequence

import requests

from config import SERVER_TIMEOUT, SERVER_URL
from Model.archive_ops import archive_filename
from Model.errors import TransportError
from Model.grid_state import CellRectangle, GridLine

logger = logging.getLogger("gridcutter.server_client")

_FILENAME_RE = re.compile(r'filename="?([^";]+)"?')


class ServerClient:

    def __init__(self, url: str = SERVER_URL, timeout: float = SERVER_TIMEOUT, session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def cut_image(
        self,
        data: bytes,
        filename: str,
        rows: int,
        columns: int,
        lines: Optional[Sequence[GridLine]] = None,
        rects: Optional[Sequence[CellRectangle]] = None,
    ) -> tuple[bytes, str]:
        """
        Posts the image plus grid and returns (archive_bytes, suggested_filename).
        """
        form = {"rows": str(rows), "columns": str(columns)}
        if rects:
            form["rects"] = json.dumps([r.to_dict() for r in rects])
        elif lines:
            form["lines"] = json.dumps([ln.to_dict() for ln in lines])
        files = {"image": (os.path.basename(filename) or "image", data, "application/octet-stream")}

        try:
            resp = self.session.post(self.url, data=form, files=files, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Server unreachable at %s: %s", self.url, e)
            raise TransportError(f"Server unreachable: {e}") from e

        if not resp.ok:
            reason = None
            try:
                body = resp.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                reason = body.get("reason")
            logger.warning("Server answered %s (%s)", resp.status_code, reason)
            raise TransportError(f"Server processing failed ({resp.status_code})", resp.status_code, reason)

        m = _FILENAME_RE.search(resp.headers.get("Content-Disposition", ""))
        return resp.content, archive_filename(m.group(1) if m else None)
