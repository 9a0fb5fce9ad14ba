"""Tests for the server entry point."""

from fastapi import FastAPI

from verity import main as entrypoint


def test_main_runs_uvicorn_with_configured_address(monkeypatch):
    monkeypatch.setenv("VERITY_LLM_PROVIDER", "ollama")
    monkeypatch.setenv("VERITY_DB_DRIVER", "memory")
    monkeypatch.setenv("VERITY_HOST", "127.0.0.1")
    monkeypatch.setenv("VERITY_PORT", "8123")
    monkeypatch.setenv("VERITY_LOG_LEVEL", "warning")
    calls = {}

    def fake_run(app, **kwargs):
        calls["app"] = app
        calls.update(kwargs)

    monkeypatch.setattr(entrypoint.uvicorn, "run", fake_run)

    assert entrypoint.main() == 0
    assert isinstance(calls["app"], FastAPI)
    assert calls["host"] == "127.0.0.1"
    assert calls["port"] == 8123
    assert calls["log_level"] == "warning"
