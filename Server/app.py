#!/usr/bin/env python3
"""
Server-side extraction endpoint for the grid cutter.

Endpoints:
 - GET  /api/health    -> {"status": "ok"}
 - POST /api/cut-image -> ZIP archive with one image per grid cell

POST /api/cut-image (multipart/form-data):
 - image    (file, required)  the source image as uploaded
 - rects    (JSON, optional)  [{"x", "y", "width", "height"}, ...] explicit cells
 - lines    (JSON, optional)  [{"position", "isHorizontal"}, ...] custom grid lines
 - rows, columns (int)        uniform grid, used when neither rects nor lines are sent
 - filename (optional)        suggested archive name, default grid-images.zip
 - strict   (optional)        "1"/"true" rejects zero-sized rectangles

Errors come back as JSON {"error": <message>, "reason": <code>} without any
partial archive.

Run:
  python -m Server.app --host 127.0.0.1 --port 8000
"""
from __future__ import annotations

import argparse
import io
import json
import logging
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request, send_file
from werkzeug.exceptions import RequestEntityTooLarge

from config import IMAGE_EXT, MAX_UPLOAD_BYTES
from logging_config import setup_logging
from Model.archive_ops import archive_filename, build_archive
from Model.errors import GridCutterError, InputError, PackagingError
from Model.extract_ops import extract_from_array
from Model.grid_state import CellRectangle, GridLine, ImageBounds
from Model.image_ops import decode_image_bytes, image_size
from Model.partition_ops import (
    compute_cell_rectangles,
    uniform_cell_rectangles,
    validate_grid_size,
    validate_rectangles,
)

logger = logging.getLogger("gridcutter.server")

_STATUS = {
    "missing_parameters": 400,
    "invalid_parameters": 400,
    "decode_failed": 400,
    "payload_too_large": 413,
    "extraction_failed": 500,
    "surface_failed": 500,
    "packaging_failed": 500,
}


def _error(message: str, reason: str):
    return jsonify({'error': message, 'reason': reason}), _STATUS.get(reason, 500)


def _parse_json_list(name: str) -> Optional[list]:
    raw = request.form.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        value = json.loads(raw)
    except ValueError as e:
        raise InputError(f'"{name}" is not valid JSON: {e}')
    if not isinstance(value, list):
        raise InputError(f'"{name}" must be a JSON list')
    return value


def _rectangles_from_request(bounds: ImageBounds) -> list[CellRectangle]:
    """Explicit rects win over custom lines, custom lines win over rows/columns."""
    strict = request.form.get('strict', '').lower() in ('1', 'true', 'yes')
    try:
        rects = _parse_json_list('rects')
        if rects is not None:
            cells = [CellRectangle.from_dict(r) for r in rects]
            validate_rectangles(cells, bounds, strict=strict)
            return cells

        lines = _parse_json_list('lines')
        if lines is not None:
            cells = compute_cell_rectangles([GridLine.from_dict(ln) for ln in lines], bounds)
            validate_rectangles(cells, bounds, strict=strict)
            return cells
    except (KeyError, TypeError, ValueError) as e:
        raise InputError(f'Malformed grid description: {e}')

    rows, columns = validate_grid_size(request.form.get('rows'), request.form.get('columns'))
    return uniform_cell_rectangles(rows, columns, bounds)


def create_app(config: Optional[Dict[str, Any]] = None) -> Flask:
    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = MAX_UPLOAD_BYTES
    app.config['IMAGE_EXT'] = IMAGE_EXT
    app.config['EXTRACT_WORKERS'] = None
    if config:
        app.config.update(config)

    @app.errorhandler(RequestEntityTooLarge)
    def too_large(_e):
        return _error('Uploaded image is too large', 'payload_too_large')

    @app.get('/api/health')
    def health():
        return jsonify({'status': 'ok'})

    @app.post('/api/cut-image')
    def cut_image():
        f = request.files.get('image')
        has_grid = any(request.form.get(k) for k in ('rects', 'lines')) or (
            request.form.get('rows') and request.form.get('columns'))
        if f is None or not has_grid:
            return _error('Missing required parameters', 'missing_parameters')
        data = f.read()
        if not data:
            return _error('Empty file', 'missing_parameters')

        ext = app.config['IMAGE_EXT']
        try:
            img = decode_image_bytes(data)
            w, h = image_size(img)
            rects = _rectangles_from_request(ImageBounds(w, h))
            cells = extract_from_array(img, rects, ext=ext, max_workers=app.config['EXTRACT_WORKERS'])
        except GridCutterError as e:
            logger.warning("Extraction rejected: %s", e)
            return _error(str(e), e.reason)
        except Exception:  # noqa: BLE001
            logger.exception("Error processing image")
            return _error('Failed to process image', 'extraction_failed')

        # Packaging is reported separately: the extraction itself went fine here
        try:
            archive = build_archive(cells, ext)
        except PackagingError as e:
            logger.error("Packaging failed after %d cells: %s", len(cells), e)
            return _error(str(e), e.reason)

        name = archive_filename(request.form.get('filename'))
        logger.info("Served %s with %d cells (%dx%d source)", name, len(cells), w, h)
        return send_file(io.BytesIO(archive), mimetype='application/zip', as_attachment=True, download_name=name)

    return app


app = create_app()


def main():
    ap = argparse.ArgumentParser(description='Run the grid cutter extraction server')
    ap.add_argument('--host', default='127.0.0.1')
    ap.add_argument('--port', type=int, default=8000)
    ap.add_argument('--debug', action='store_true')
    ap.add_argument('--log-level', default='INFO')
    args = ap.parse_args()

    setup_logging(getattr(logging, args.log_level.upper(), logging.INFO))
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == '__main__':
    main()
