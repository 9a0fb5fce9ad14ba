"""Tests for configuration loading."""

import json
import logging
import os

import pytest

from verity.domain.errors import ConfigurationError
from verity.infrastructure.config import (
    LLMConfig,
    LoggingConfig,
    TEXT_LOG_FORMAT,
    configure_logging,
    load_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove configuration variables inherited from the environment."""
    for name in list(os.environ):
        if name.startswith("VERITY_"):
            monkeypatch.delenv(name)
    for name in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GEMINI_API_KEY", "OLLAMA_URL", "PORT"):
        monkeypatch.delenv(name, raising=False)


def write_config(tmp_path, data) -> str:
    path = tmp_path / "verity.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_defaults_with_api_key(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    config = load_config(use_dotenv=False)

    assert config.llm.provider == "openai"
    assert config.llm.api_key == "sk-test"
    assert config.server.port == 8080
    assert config.database.driver == "sqlite"
    assert config.search.sources == ["duckduckgo", "wikipedia", "pubmed"]
    assert config.engine.max_concurrent_claims == 5
    assert config.engine.evidence_per_source == 6
    assert config.engine.run_timeout is None


def test_hosted_provider_requires_key():
    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
        load_config(use_dotenv=False)


def test_ollama_needs_no_key(monkeypatch):
    monkeypatch.setenv("VERITY_LLM_PROVIDER", "ollama")
    monkeypatch.setenv("OLLAMA_URL", "http://gpu-box:11434")

    config = load_config(use_dotenv=False)

    assert config.llm.provider == "ollama"
    assert config.llm.base_url == "http://gpu-box:11434"


def test_provider_specific_key(monkeypatch):
    monkeypatch.setenv("VERITY_LLM_PROVIDER", "anthropic")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")

    assert load_config(use_dotenv=False).llm.api_key == "sk-ant"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("VERITY_DB_DRIVER", "memory")
    monkeypatch.setenv("VERITY_SEARCH_SOURCES", "Wikipedia, pubmed")
    monkeypatch.setenv("VERITY_SEARCH_TIMEOUT", "2.5")
    monkeypatch.setenv("VERITY_MAX_CONCURRENT_CLAIMS", "8")
    monkeypatch.setenv("VERITY_PERSIST_IN_BACKGROUND", "true")
    monkeypatch.setenv("VERITY_RUN_TIMEOUT", "30")
    monkeypatch.setenv("VERITY_CORS_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("VERITY_LOG_LEVEL", "DEBUG")

    config = load_config(use_dotenv=False)

    assert config.server.port == 9000
    assert config.server.cors_origins == ["https://a.example", "https://b.example"]
    assert config.database.driver == "memory"
    assert config.search.sources == ["wikipedia", "pubmed"]
    assert config.search.timeout == 2.5
    assert config.engine.max_concurrent_claims == 8
    assert config.engine.persist_in_background is True
    assert config.engine.run_timeout == 30.0
    assert config.logging.level == "debug"


def test_empty_sources_means_air_gapped(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("VERITY_SEARCH_SOURCES", "")

    assert load_config(use_dotenv=False).search.sources == []


def test_config_file_with_env_precedence(tmp_path, monkeypatch):
    path = write_config(tmp_path, {
        "server": {"port": 7000},
        "llm": {"provider": "gemini", "api_key": "file-key", "model": "gemini-1.5-pro"},
        "engine": {"max_concurrent_claims": 3},
        "custom_claim_types": {
            "regulatory": {"description": "Claims about regulation", "prompt_hint": "Look for laws"}
        },
    })
    monkeypatch.setenv("VERITY_PORT", "7100")

    config = load_config(path, use_dotenv=False)

    assert config.server.port == 7100
    assert config.llm.provider == "gemini"
    assert config.llm.api_key == "file-key"
    assert config.llm.model == "gemini-1.5-pro"
    assert config.engine.max_concurrent_claims == 3
    assert config.custom_claim_types["regulatory"].prompt_hint == "Look for laws"


def test_config_file_from_environment(tmp_path, monkeypatch):
    path = write_config(tmp_path, {"llm": {"provider": "ollama"}, "database": {"driver": "memory"}})
    monkeypatch.setenv("VERITY_CONFIG_FILE", path)

    assert load_config(use_dotenv=False).database.driver == "memory"


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(str(tmp_path / "absent.json"), use_dotenv=False)


def test_config_file_must_be_object(tmp_path):
    with pytest.raises(ConfigurationError, match="JSON object"):
        load_config(write_config(tmp_path, ["not", "an", "object"]), use_dotenv=False)


def test_malformed_config_file(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{broken", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Failed to read"):
        load_config(str(path), use_dotenv=False)


@pytest.mark.parametrize(
    "name, value",
    [
        ("VERITY_PORT", "70000"),
        ("VERITY_DB_DRIVER", "postgres"),
        ("VERITY_LLM_PROVIDER", "watson"),
        ("VERITY_MAX_CONCURRENT_CLAIMS", "0"),
        ("VERITY_LOG_FORMAT", "xml"),
    ],
)
def test_invalid_values(monkeypatch, name, value):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        load_config(use_dotenv=False)


def test_llm_config_validation():
    assert LLMConfig(provider="ollama").api_key == ""
    with pytest.raises(ValueError):
        LLMConfig(provider="gemini")


def test_configure_logging(monkeypatch):
    calls = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(kwargs))

    configure_logging(LoggingConfig(level="warning"))

    assert calls == {"level": logging.WARNING, "format": TEXT_LOG_FORMAT}
