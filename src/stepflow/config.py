"""Configuration loading from environment variables and stepflow.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_HOME_DIR = Path.home() / ".stepflow"
_DEFAULT_DATABASE_URL = f"sqlite:///{_HOME_DIR / 'memory.db'}"
_CONFIG_FILENAME = "stepflow.toml"


@dataclass
class DatabaseConfig:
    """Memory store database configuration."""

    url: str = _DEFAULT_DATABASE_URL
    echo: bool = False


@dataclass
class SearchConfig:
    """Product search (Elasticsearch-compatible) configuration."""

    domain: str = ""
    username: str = ""
    password: str = ""
    index: str = "products"
    timeout: float = 10.0

    @property
    def enabled(self) -> bool:
        return bool(self.domain)


@dataclass
class StepflowConfig:
    """Top-level stepflow configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    default_skill: str = "shopping"
    log_level: str = "INFO"


def _as_bool(value: str | bool) -> bool:
    if isinstance(value, bool):
        return value
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(config_path: Path | None = None) -> StepflowConfig:
    """Load configuration from environment variables and optional stepflow.toml.

    Priority: environment variables > stepflow.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.stepflow/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, _HOME_DIR / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    database_data = file_data.get("database", {})
    search_data = file_data.get("search", {})

    config = StepflowConfig(
        database=DatabaseConfig(
            url=os.getenv("STEPFLOW_DATABASE_URL", database_data.get("url", _DEFAULT_DATABASE_URL)),
            echo=_as_bool(os.getenv("STEPFLOW_DATABASE_ECHO", database_data.get("echo", False))),
        ),
        search=SearchConfig(
            domain=os.getenv("ELASTICSEARCH_DOMAIN", search_data.get("domain", "")),
            username=os.getenv("ELASTICSEARCH_USERNAME", search_data.get("username", "")),
            password=os.getenv("ELASTICSEARCH_PASSWORD", search_data.get("password", "")),
            index=search_data.get("index", "products"),
            timeout=float(os.getenv("STEPFLOW_SEARCH_TIMEOUT", search_data.get("timeout", 10.0))),
        ),
        default_skill=os.getenv(
            "STEPFLOW_DEFAULT_SKILL", file_data.get("default_skill", "shopping")
        ),
        log_level=os.getenv("STEPFLOW_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
    return config
