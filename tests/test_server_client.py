"""Tests for Controller/server_client.py with a stubbed requests session."""
import json

import pytest
import requests

from Controller.server_client import ServerClient
from Model.errors import TransportError
from Model.grid_state import CellRectangle, GridLine


class FakeResponse:
    def __init__(self, status_code=200, content=b"", headers=None, body=None):
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}
        self._body = body

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def post(self, url, data=None, files=None, timeout=None):
        self.calls.append({'url': url, 'data': data, 'files': files, 'timeout': timeout})
        if self.exc is not None:
            raise self.exc
        return self.response


def test_success_returns_archive_and_name():
    session = FakeSession(FakeResponse(200, b"PK\x03\x04zip", {'Content-Disposition': 'attachment; filename=cells.zip'}))
    client = ServerClient("http://srv/api/cut-image", timeout=5, session=session)

    data, name = client.cut_image(b"img", "/tmp/photo.png", 2, 4)
    assert data == b"PK\x03\x04zip"
    assert name == "cells.zip"

    call = session.calls[0]
    assert call['url'] == "http://srv/api/cut-image"
    assert call['timeout'] == 5
    assert call['data'] == {'rows': '2', 'columns': '4'}
    assert call['files']['image'][0] == "photo.png"
    assert call['files']['image'][1] == b"img"


def test_quoted_filename_and_default_name():
    session = FakeSession(FakeResponse(200, b"z", {'Content-Disposition': 'attachment; filename="my grid.zip"'}))
    assert ServerClient(session=session).cut_image(b"i", "a.png", 1, 1)[1] == "my grid.zip"

    session = FakeSession(FakeResponse(200, b"z"))
    assert ServerClient(session=session).cut_image(b"i", "a.png", 1, 1)[1] == "grid-images.zip"


def test_lines_are_sent_as_json():
    session = FakeSession(FakeResponse(200, b"z"))
    ServerClient(session=session).cut_image(b"i", "a.png", 3, 3, lines=[GridLine(10, True), GridLine(20.5, False)])
    sent = json.loads(session.calls[0]['data']['lines'])
    assert sent == [{'position': 10, 'isHorizontal': True}, {'position': 20.5, 'isHorizontal': False}]
    assert 'rects' not in session.calls[0]['data']


def test_rects_take_precedence():
    session = FakeSession(FakeResponse(200, b"z"))
    ServerClient(session=session).cut_image(
        b"i", "a.png", 3, 3, lines=[GridLine(10, True)], rects=[CellRectangle(0, 0, 5, 5)])
    form = session.calls[0]['data']
    assert json.loads(form['rects']) == [{'x': 0, 'y': 0, 'width': 5, 'height': 5}]
    assert 'lines' not in form


@pytest.mark.parametrize("exc", [requests.ConnectionError("refused"), requests.Timeout("slow")])
def test_network_errors_become_transport_errors(exc):
    client = ServerClient(session=FakeSession(exc=exc))
    with pytest.raises(TransportError) as info:
        client.cut_image(b"i", "a.png", 1, 1)
    assert info.value.status_code is None
    assert info.value.reason == "transport_failed"


def test_error_status_carries_server_reason():
    resp = FakeResponse(400, body={'error': 'bad', 'reason': 'decode_failed'})
    with pytest.raises(TransportError) as info:
        ServerClient(session=FakeSession(resp)).cut_image(b"i", "a.png", 1, 1)
    assert info.value.status_code == 400
    assert info.value.server_reason == 'decode_failed'


def test_error_status_without_json_body():
    with pytest.raises(TransportError) as info:
        ServerClient(session=FakeSession(FakeResponse(502))).cut_image(b"i", "a.png", 1, 1)
    assert info.value.status_code == 502
    assert info.value.server_reason is None


@pytest.mark.parametrize("body", [["not", "an", "object"], "plain string", 42])
def test_error_body_that_is_not_an_object(body):
    with pytest.raises(TransportError) as info:
        ServerClient(session=FakeSession(FakeResponse(500, body=body))).cut_image(b"i", "a.png", 1, 1)
    assert info.value.status_code == 500
    assert info.value.server_reason is None
