"""Tests for the post-deploy smoke check script."""

from __future__ import annotations

import importlib.util
from pathlib import Path

import pytest
import requests

_SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "smoke_check.py"


@pytest.fixture
def smoke():
    spec = importlib.util.spec_from_file_location("smoke_check", _SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class _Response:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else str(body)

    def json(self):
        if self._body is None:
            raise ValueError("not JSON")
        return self._body


_HEALTHY = {
    "/health": {"status": "operational", "environment": "production", "uptime": 3.0},
    "/api/status": {"success": True},
    "/api/blockchain/status": {"success": True, "blockchain": {"status": "operational"}},
}


def _serve(monkeypatch, smoke, responses):
    def fake_get(url, timeout):
        path = url.removeprefix("http://svc.test")
        result = responses[path]
        if isinstance(result, Exception):
            raise result
        if isinstance(result, _Response):
            return result
        return _Response(body=result)

    monkeypatch.setattr(smoke.requests, "get", fake_get)


class TestSmokeCheck:
    def test_all_healthy(self, smoke, monkeypatch, capsys):
        _serve(monkeypatch, smoke, _HEALTHY)
        assert smoke.main(["smoke_check.py", "http://svc.test/"]) == 0
        assert "All checks passed" in capsys.readouterr().out

    def test_initializing_chain_is_a_warning(self, smoke, monkeypatch, capsys):
        responses = dict(_HEALTHY)
        responses["/api/blockchain/status"] = {"blockchain": {"status": "initializing"}}
        _serve(monkeypatch, smoke, responses)
        assert smoke.main(["smoke_check.py", "http://svc.test"]) == 0
        assert "WARN" in capsys.readouterr().out

    def test_connection_error_reports_fail(self, smoke, monkeypatch, capsys):
        responses = dict(_HEALTHY)
        responses["/health"] = requests.ConnectionError("refused")
        _serve(monkeypatch, smoke, responses)
        assert smoke.main(["smoke_check.py", "http://svc.test"]) == 1
        assert "FAIL /health -> ConnectionError" in capsys.readouterr().out

    def test_timeout_reports_fail(self, smoke, monkeypatch, capsys):
        responses = dict(_HEALTHY)
        responses["/api/status"] = requests.Timeout("slow")
        _serve(monkeypatch, smoke, responses)
        assert smoke.main(["smoke_check.py", "http://svc.test"]) == 1
        assert "FAIL /api/status -> Timeout" in capsys.readouterr().out

    def test_non_json_body_reports_fail(self, smoke, monkeypatch, capsys):
        responses = dict(_HEALTHY)
        responses["/health"] = _Response(text="<html>gateway</html>")
        _serve(monkeypatch, smoke, responses)
        assert smoke.main(["smoke_check.py", "http://svc.test"]) == 1
        assert "non-JSON body" in capsys.readouterr().out

    def test_unexpected_chain_shape_reports_fail(self, smoke, monkeypatch, capsys):
        responses = dict(_HEALTHY)
        responses["/api/blockchain/status"] = {"success": True}
        _serve(monkeypatch, smoke, responses)
        assert smoke.main(["smoke_check.py", "http://svc.test"]) == 1
        assert "missing blockchain.status" in capsys.readouterr().out

    def test_http_error_status_reports_fail(self, smoke, monkeypatch, capsys):
        responses = dict(_HEALTHY)
        responses["/api/status"] = _Response(status_code=502, text="bad gateway")
        _serve(monkeypatch, smoke, responses)
        assert smoke.main(["smoke_check.py", "http://svc.test"]) == 1
        assert "FAIL /api/status -> 502" in capsys.readouterr().out
