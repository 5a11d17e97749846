"""Tests for configuration loading."""

import pytest
from pathlib import Path

from stepflow.config import load_config

_ENV_KEYS = [
    "STEPFLOW_DATABASE_URL",
    "STEPFLOW_DATABASE_ECHO",
    "STEPFLOW_DEFAULT_SKILL",
    "STEPFLOW_LOG_LEVEL",
    "STEPFLOW_SEARCH_TIMEOUT",
    "ELASTICSEARCH_DOMAIN",
    "ELASTICSEARCH_USERNAME",
    "ELASTICSEARCH_PASSWORD",
]


@pytest.fixture(autouse=True)
def clean_env(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestConfig:
    def test_defaults(self, tmp_path: Path):
        config = load_config(tmp_path / "missing.toml")
        assert config.database.url.startswith("sqlite:///")
        assert config.database.url.endswith("memory.db")
        assert config.database.echo is False
        assert config.search.enabled is False
        assert config.search.index == "products"
        assert config.default_skill == "shopping"
        assert config.log_level == "INFO"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("STEPFLOW_DATABASE_URL", "postgresql+psycopg://localhost/ava")
        monkeypatch.setenv("ELASTICSEARCH_DOMAIN", "http://search:9200")
        monkeypatch.setenv("ELASTICSEARCH_USERNAME", "elastic")
        monkeypatch.setenv("STEPFLOW_SEARCH_TIMEOUT", "2.5")
        monkeypatch.setenv("STEPFLOW_DATABASE_ECHO", "true")

        config = load_config()
        assert config.database.url == "postgresql+psycopg://localhost/ava"
        assert config.database.echo is True
        assert config.search.enabled is True
        assert config.search.username == "elastic"
        assert config.search.timeout == 2.5

    def test_toml_file(self, tmp_path: Path):
        toml_path = tmp_path / "stepflow.toml"
        toml_path.write_text("""
default_skill = "travel"
log_level = "DEBUG"

[database]
url = "sqlite:///tmp/flow.db"
echo = true

[search]
domain = "http://localhost:9200"
index = "catalog"
timeout = 3
""")
        config = load_config(toml_path)
        assert config.default_skill == "travel"
        assert config.log_level == "DEBUG"
        assert config.database.url == "sqlite:///tmp/flow.db"
        assert config.database.echo is True
        assert config.search.index == "catalog"
        assert config.search.timeout == 3.0

    def test_toml_in_cwd_is_discovered(self, tmp_path: Path):
        (tmp_path / "stepflow.toml").write_text('default_skill = "cwd-skill"\n')
        config = load_config()
        assert config.default_skill == "cwd-skill"

    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("STEPFLOW_DEFAULT_SKILL", "from-env")

        toml_path = tmp_path / "stepflow.toml"
        toml_path.write_text('default_skill = "from-toml"\n')
        config = load_config(toml_path)
        assert config.default_skill == "from-env"  # env wins
