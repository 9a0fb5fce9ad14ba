"""Service configuration loaded from a JSON file, the environment and .env."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, model_validator

from ..domain.errors import ConfigurationError
from ..domain.models.claim import ClaimTypeConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV = "VERITY_CONFIG_FILE"

# Hosted providers and the environment variable holding their API key
PROVIDER_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "gemini": "GEMINI_API_KEY",
}

TEXT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_LOG_FORMAT = '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'


class ServerConfig(BaseModel):
    """HTTP server settings."""

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8080, ge=1, le=65535, description="Listen port")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], description="Allowed CORS origins")


class DatabaseConfig(BaseModel):
    """Analysis store settings."""

    driver: Literal["memory", "sqlite"] = Field(default="sqlite", description="Store backend")
    path: str = Field(default="./data/verity.db", description="SQLite database file")


class LLMConfig(BaseModel):
    """Language-model provider settings."""

    provider: Literal["openai", "anthropic", "gemini", "ollama"] = Field(default="openai")
    model: Optional[str] = Field(default=None, description="Model name; provider default when unset")
    api_key: str = Field(default="", description="API key for hosted providers")
    base_url: Optional[str] = Field(default=None, description="Endpoint override (Ollama server URL)")
    timeout: Optional[float] = Field(default=None, gt=0, description="Request timeout in seconds")

    @model_validator(mode="after")
    def _require_api_key(self) -> "LLMConfig":
        if self.provider in PROVIDER_KEY_ENV and not self.api_key:
            raise ValueError(f"{self.provider} API key is required (set {PROVIDER_KEY_ENV[self.provider]})")
        return self


class SearchConfig(BaseModel):
    """Evidence search settings."""

    sources: List[str] = Field(
        default_factory=lambda: ["duckduckgo", "wikipedia", "pubmed"],
        description="Enabled sources in merge order; empty means air-gapped",
    )
    timeout: float = Field(default=15.0, gt=0, description="Aggregate search ceiling in seconds")
    request_timeout: float = Field(default=10.0, gt=0, description="Per-request timeout in seconds")
    cache_ttl: int = Field(default=3600, ge=0, description="Per-source query cache TTL in seconds")


class EngineConfig(BaseModel):
    """Verification engine settings."""

    max_concurrent_claims: int = Field(default=5, ge=1)
    evidence_per_source: int = Field(default=6, ge=1)
    persist_in_background: bool = Field(default=False)
    run_timeout: Optional[float] = Field(default=None, gt=0, description="Optional per-run deadline")


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: Literal["debug", "info", "warning", "error"] = Field(default="info")
    format: Literal["text", "json"] = Field(default="text")


class VerityConfig(BaseModel):
    """Complete service configuration."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    custom_claim_types: Dict[str, ClaimTypeConfig] = Field(default_factory=dict)


def _set(data: Dict[str, Any], section: str, key: str, value: Any) -> None:
    if value is not None and value != "":
        data.setdefault(section, {})[key] = value


def _split(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    return [item.strip().lower() for item in value.split(",") if item.strip()]


def _env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    env = os.getenv

    _set(data, "server", "host", env("VERITY_HOST"))
    _set(data, "server", "port", env("VERITY_PORT") or env("PORT"))
    if env("VERITY_CORS_ORIGINS") is not None:
        data.setdefault("server", {})["cors_origins"] = [
            o.strip() for o in env("VERITY_CORS_ORIGINS").split(",") if o.strip()
        ]

    _set(data, "database", "driver", env("VERITY_DB_DRIVER"))
    _set(data, "database", "path", env("VERITY_DB_PATH"))

    data.setdefault("llm", {})
    _set(data, "llm", "provider", env("VERITY_LLM_PROVIDER"))
    _set(data, "llm", "model", env("VERITY_LLM_MODEL"))
    _set(data, "llm", "base_url", env("VERITY_LLM_BASE_URL") or env("OLLAMA_URL"))
    _set(data, "llm", "timeout", env("VERITY_LLM_TIMEOUT"))
    provider = data.get("llm", {}).get("provider", "openai")
    _set(data, "llm", "api_key", env("VERITY_LLM_API_KEY") or env(PROVIDER_KEY_ENV.get(provider, ""), ""))

    # An empty VERITY_SEARCH_SOURCES is meaningful: no sources at all
    sources = _split(env("VERITY_SEARCH_SOURCES"))
    if sources is not None:
        data.setdefault("search", {})["sources"] = sources
    _set(data, "search", "timeout", env("VERITY_SEARCH_TIMEOUT"))
    _set(data, "search", "request_timeout", env("VERITY_SEARCH_REQUEST_TIMEOUT"))
    _set(data, "search", "cache_ttl", env("VERITY_SEARCH_CACHE_TTL"))

    _set(data, "engine", "max_concurrent_claims", env("VERITY_MAX_CONCURRENT_CLAIMS"))
    _set(data, "engine", "evidence_per_source", env("VERITY_EVIDENCE_PER_SOURCE"))
    _set(data, "engine", "persist_in_background", env("VERITY_PERSIST_IN_BACKGROUND"))
    _set(data, "engine", "run_timeout", env("VERITY_RUN_TIMEOUT"))

    _set(data, "logging", "level", (env("VERITY_LOG_LEVEL") or "").lower())
    _set(data, "logging", "format", (env("VERITY_LOG_FORMAT") or "").lower())
    return data


def _read_config_file(path: str) -> Dict[str, Any]:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigurationError(f"Config file not found: {path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Failed to read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")
    return data


def load_config(config_file: Optional[str] = None, use_dotenv: bool = True) -> VerityConfig:
    """Load the service configuration.

    Values come from, in increasing precedence: model defaults, the JSON
    file named by ``config_file`` or ``VERITY_CONFIG_FILE``, and
    environment variables (optionally seeded from a ``.env`` file).

    Args:
        config_file: Optional path to a JSON config file
        use_dotenv: Whether to load a ``.env`` file first

    Returns:
        Validated configuration

    Raises:
        ConfigurationError: If the file cannot be read or a value is invalid
    """
    if use_dotenv:
        load_dotenv()

    config_file = config_file or os.getenv(CONFIG_FILE_ENV)
    data = _read_config_file(config_file) if config_file else {}
    data = _env_overrides(data)

    try:
        config = VerityConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    logger.info(
        f"⚙️ Configuration loaded (llm={config.llm.provider}, db={config.database.driver}, "
        f"sources={','.join(config.search.sources) or 'none'})"
    )
    return config


def configure_logging(config: LoggingConfig) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, config.level.upper()),
        format=JSON_LOG_FORMAT if config.format == "json" else TEXT_LOG_FORMAT,
    )
