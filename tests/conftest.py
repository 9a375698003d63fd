"""Shared fixtures for reqchain tests."""

import json

import pytest
import requests
from click.testing import CliRunner
from requests.structures import CaseInsensitiveDict

from reqchain import core
from reqchain.transport import TransportResponse


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def global_reqchain_dir(tmp_path, monkeypatch):
    """Override the global ~/.reqchain directory to a temp location."""
    fake_global = tmp_path / "fake_home" / ".reqchain"
    fake_global.mkdir(parents=True)
    monkeypatch.setattr(core, "GLOBAL_DIR", fake_global)
    monkeypatch.setattr(core, "GLOBAL_CONFIG", fake_global / "config.yaml")
    return fake_global


@pytest.fixture
def tmp_project(tmp_path, monkeypatch):
    """Run the test from an empty project directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _encode_body(body):
    if body is None:
        return b""
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    return json.dumps(body).encode("utf-8")


def make_requests_response(
    status_code=200,
    body=None,
    content_type="application/json",
    reason="OK",
    url="http://localhost:3000/",
):
    """Build a real requests.Response with an already-loaded body."""
    resp = requests.models.Response()
    resp.status_code = status_code
    resp.reason = reason
    resp.url = url
    resp.headers = CaseInsensitiveDict({"Content-Type": content_type} if content_type else {})
    resp._content = _encode_body(body)
    resp._content_consumed = True
    return resp


def make_transport_response(
    status_code=200,
    body=None,
    content_type="application/json",
    reason="OK",
    url="http://localhost:3000/",
):
    headers = {"Content-Type": content_type} if content_type else {}
    return TransportResponse(
        status_code=status_code,
        headers=headers,
        content=_encode_body(body),
        reason=reason,
        url=url,
    )


class RecordingTransport:
    """Transport double: records each call and replays a canned response."""

    def __init__(self, response=None, error=None):
        self.response = response or make_transport_response(body={"ok": True})
        self.error = error
        self.calls = []

    def __call__(self, method, url, *, headers=None, data=None, files=None, options=None):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "headers": headers,
                "data": data,
                "files": files,
                "options": options,
            },
        )
        if self.error is not None:
            raise self.error
        return self.response

    @property
    def last(self):
        return self.calls[-1]


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def requests_response():
    return make_requests_response


@pytest.fixture
def transport_response():
    return make_transport_response
