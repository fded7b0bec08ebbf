"""
Tests for runtime configuration loading.
"""

import json

import pytest

from conduit.config import (
    DEFAULT_ENDPOINT,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    AgentConfig,
    load_config,
)
from conduit.exceptions import ConfigurationError

_ENV_VARS = (
    "ANTHROPIC_API_KEY",
    "CONDUIT_CONFIG",
    "CONDUIT_ENDPOINT",
    "CONDUIT_MODEL",
    "CONDUIT_MAX_TOKENS",
    "CONDUIT_STREAM",
    "CONDUIT_TIMEOUT",
    "CONDUIT_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_defaults(self):
        config = AgentConfig()
        assert config.endpoint == DEFAULT_ENDPOINT
        assert config.model == DEFAULT_MODEL
        assert config.max_tokens == DEFAULT_MAX_TOKENS
        assert config.stream is True
        assert config.api_key == ""
        assert not config.has_credential

    def test_api_key_falls_back_to_environment(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "env-key")
        assert AgentConfig().api_key == "env-key"
        assert AgentConfig(api_key="explicit").api_key == "explicit"

    def test_encodings_become_tuple(self):
        assert AgentConfig(text_encodings=["utf-8"]).text_encodings == ("utf-8",)

    def test_repr_masks_key(self):
        text = repr(AgentConfig(api_key="sk-secret"))
        assert "sk-secret" not in text
        assert "api_key='***'" in text

    def test_to_dict_omits_key(self):
        data = AgentConfig(api_key="sk-secret").to_dict()
        assert "api_key" not in data
        assert data["text_encodings"] == ["utf-8", "utf-16", "ascii", "latin-1"]


class TestFromEnv:
    def test_reads_variables(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "k")
        monkeypatch.setenv("CONDUIT_MODEL", "claude-test")
        monkeypatch.setenv("CONDUIT_MAX_TOKENS", "123")
        monkeypatch.setenv("CONDUIT_STREAM", "no")
        monkeypatch.setenv("CONDUIT_TIMEOUT", "2.5")

        config = AgentConfig.from_env()
        assert config.api_key == "k"
        assert config.model == "claude-test"
        assert config.max_tokens == 123
        assert config.stream is False
        assert config.timeout == 2.5

    @pytest.mark.parametrize("value", ["1", "true", "YES", "on"])
    def test_truthy_stream_values(self, monkeypatch, value):
        monkeypatch.setenv("CONDUIT_STREAM", value)
        assert AgentConfig.from_env().stream is True


class TestFromFile:
    def test_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("model: claude-yaml\nmax_tokens: 99\nstream: false\n")

        config = AgentConfig.from_file(path)
        assert config.model == "claude-yaml"
        assert config.max_tokens == 99
        assert config.stream is False

    def test_json_file_with_legacy_keys(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"anthropic_api_key": "legacy", "llm_endpoint": "http://localhost:9000"}))

        config = AgentConfig.from_file(path)
        assert config.api_key == "legacy"
        assert config.endpoint == "http://localhost:9000"

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("model: m\ncolour: blue\n")
        assert AgentConfig.from_file(path).model == "m"

    def test_comma_separated_encodings(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("text_encodings: 'utf-8, latin-1'\n")
        assert AgentConfig.from_file(path).text_encodings == ("utf-8", "latin-1")

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert AgentConfig.from_file(path).model == DEFAULT_MODEL

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            AgentConfig.from_file(tmp_path / "nope.yaml")

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="expected a mapping"):
            AgentConfig.from_file(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("model: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Failed to parse"):
            AgentConfig.from_file(path)


class TestLoadConfig:
    def test_explicit_path_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CONDUIT_MODEL", "from-env")
        path = tmp_path / "c.yaml"
        path.write_text("model: from-file\n")
        assert load_config(path).model == "from-file"

    def test_env_path(self, tmp_path, monkeypatch):
        path = tmp_path / "c.yaml"
        path.write_text("model: from-env-path\n")
        monkeypatch.setenv("CONDUIT_CONFIG", str(path))
        assert load_config().model == "from-env-path"

    def test_working_directory_file(self, tmp_path, monkeypatch):
        (tmp_path / "config.yaml").write_text("model: from-cwd\n")
        monkeypatch.chdir(tmp_path)
        assert load_config().model == "from-cwd"

    def test_environment_fallback(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("CONDUIT_MODEL", "from-env")
        assert load_config().model == "from-env"
