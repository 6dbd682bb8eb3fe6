"""
Shared fixtures and configuration for httpmocker tests
"""

import io
import json
import os
import sys
import tempfile
import shutil
from pathlib import Path

import pytest
import requests
from requests.adapters import BaseAdapter, HTTPAdapter
from urllib3 import HTTPResponse

# Add src directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))

from httpmocker.config import reset_settings


class FakeLiveAdapter(BaseAdapter):
    """Stands in for the network: answers every request with a canned response."""

    def __init__(self, status=200, body=b"live body", headers=None):
        super().__init__()
        self.status = status
        self.body = body
        self.headers = headers if headers is not None else {"Content-Type": "text/plain"}
        self.calls = []
        self.responses = []
        self.closed = False
        self._builder = HTTPAdapter()

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.calls.append(request)
        raw = HTTPResponse(
            body=io.BytesIO(self.body),
            headers=self.headers,
            status=self.status,
            preload_content=False,
            decode_content=False,
        )
        response = self._builder.build_response(request, raw)
        self.responses.append(response)
        return response

    def close(self):
        self.closed = True


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep tests away from the user's real settings file"""
    monkeypatch.setenv("HTTPMOCKER_CONFIG", str(tmp_path / "no-such-config.json"))
    monkeypatch.delenv("HTTPMOCKER_MODE", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for scenario files"""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def live():
    return FakeLiveAdapter()


@pytest.fixture
def make_request():
    """Build a prepared request the way a session would hand it to an adapter"""

    def _make(method="GET", url="http://api.example.com/users", **kwargs):
        return requests.Request(method, url, **kwargs).prepare()

    return _make


@pytest.fixture
def write_scenario():
    """Write a JSON scenario file below a root directory"""

    def _write(root, identifier, rules):
        path = Path(root) / identifier
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(rules), encoding="utf-8")
        return path

    return _write
