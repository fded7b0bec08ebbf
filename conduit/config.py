"""
Conduit - Runtime configuration.

A single ``AgentConfig`` is built once at process start and handed to the
agent, the LLM client and the input normalizer. Values come from, in order
of precedence: an explicit config file, ``CONDUIT_CONFIG``, a ``config.yaml``
or ``config.json`` in the working directory, and finally the environment.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional, Union

try:
    import yaml
except ImportError:  # pragma: no cover
    yaml = None

from .exceptions import ConfigurationError

logger = logging.getLogger("conduit.config")

DEFAULT_ENDPOINT = "https://api.anthropic.com/v1/messages"
DEFAULT_MODEL = "claude-3-sonnet-20240229"
DEFAULT_MAX_TOKENS = 4000
DEFAULT_API_VERSION = "2023-06-01"
DEFAULT_MAX_INPUT_BYTES = 50 * 1024 * 1024  # 50 MB
DEFAULT_TEXT_ENCODINGS = ("utf-8", "utf-16", "ascii", "latin-1")

DEFAULT_SYSTEM_PROMPT = """You are an AI assistant that helps users with various tasks by:

1. Answering questions and providing information
2. Executing system operations through available tools
3. Managing files and directories
4. Automating workflows

When a user requests an action that requires tool usage, respond with a clear explanation of what you'll do, then execute the appropriate tool.

Be helpful, concise, and always explain what actions you're taking."""

# Key names used by older config.json files.
_LEGACY_KEYS = {
    "anthropic_api_key": "api_key",
    "llm_endpoint": "endpoint",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class AgentConfig:
    """Configuration for the agent runtime."""

    api_key: str = ""
    endpoint: str = DEFAULT_ENDPOINT
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    stream: bool = True
    api_version: str = DEFAULT_API_VERSION
    timeout: float = 60.0
    max_input_bytes: int = DEFAULT_MAX_INPUT_BYTES
    text_encodings: tuple[str, ...] = DEFAULT_TEXT_ENCODINGS
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    log_level: str = "info"

    def __post_init__(self):
        if not self.api_key:
            self.api_key = os.environ.get("ANTHROPIC_API_KEY", "")
        self.text_encodings = tuple(self.text_encodings)

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)

    def __repr__(self) -> str:
        # Keep the credential out of logs and tracebacks.
        shown = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "system_prompt"}
        shown["api_key"] = "***" if self.api_key else ""
        inner = ", ".join(f"{k}={v!r}" for k, v in shown.items())
        return f"AgentConfig({inner})"

    @classmethod
    def from_env(cls) -> "AgentConfig":
        """Create configuration from environment variables."""
        return cls(
            api_key=os.environ.get("ANTHROPIC_API_KEY", ""),
            endpoint=os.environ.get("CONDUIT_ENDPOINT", DEFAULT_ENDPOINT),
            model=os.environ.get("CONDUIT_MODEL", DEFAULT_MODEL),
            max_tokens=int(os.environ.get("CONDUIT_MAX_TOKENS", str(DEFAULT_MAX_TOKENS))),
            stream=_env_bool(os.environ.get("CONDUIT_STREAM", "true")),
            api_version=os.environ.get("CONDUIT_API_VERSION", DEFAULT_API_VERSION),
            timeout=float(os.environ.get("CONDUIT_TIMEOUT", "60")),
            max_input_bytes=int(
                os.environ.get("CONDUIT_MAX_INPUT_BYTES", str(DEFAULT_MAX_INPUT_BYTES))
            ),
            log_level=os.environ.get("CONDUIT_LOG_LEVEL", "info"),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AgentConfig":
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            key = _LEGACY_KEYS.get(key, key)
            if key in known and value is not None:
                kwargs[key] = value
            else:
                logger.debug("Ignoring unknown config key %r", key)
        if "text_encodings" in kwargs and isinstance(kwargs["text_encodings"], str):
            kwargs["text_encodings"] = tuple(
                e.strip() for e in kwargs["text_encodings"].split(",") if e.strip()
            )
        return cls(**kwargs)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "AgentConfig":
        """
        Load configuration from a YAML (or JSON) file.

        Raises:
            ConfigurationError: The file is missing or not a mapping.
        """
        if yaml is None:
            raise ConfigurationError(
                "PyYAML is required for config files.\nInstall with: pip install pyyaml"
            )
        path = Path(path)
        if not path.is_file():
            raise ConfigurationError(f"Config file not found: {path}")
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Invalid config format in {path}, expected a mapping.")
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["text_encodings"] = list(self.text_encodings)
        data.pop("api_key")
        return data


def load_config(path: Optional[Union[str, Path]] = None) -> AgentConfig:
    """Resolve configuration with file/environment precedence."""
    if path is None:
        path = os.environ.get("CONDUIT_CONFIG")
    if path is None:
        for candidate in ("config.yaml", "config.json"):
            if Path(candidate).is_file():
                path = candidate
                break
    if path is None:
        return AgentConfig.from_env()
    logger.info("Loading configuration from %s", path)
    return AgentConfig.from_file(path)
