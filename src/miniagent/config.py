"""
Configuration.

Settings are read from the environment (a ``.env`` file is loaded first):

    LLM_PROVIDER            openai | anthropic (default: anthropic when only
                            ANTHROPIC_API_KEY is set, otherwise openai)
    OPENAI_API_KEY          OpenAI or OpenAI-compatible API key
    OPENAI_BASE_URL         Custom base URL for OpenAI-compatible endpoints
    MODEL                   OpenAI model (default: gpt-4o)
    ANTHROPIC_API_KEY       Anthropic API key
    ANTHROPIC_MODEL         Anthropic model
    LLM_TIMEOUT             Request timeout in seconds (default: 60)
    LLM_MAX_TOKENS          Max tokens per response (default: 4096)
    SKILLS_DIR              Skills directory (default: ./skills)
    SUBAGENT_MAX_ITERATIONS Iteration cap for delegated tasks (default: 10)
    MCP_CONFIG_PATH         JSON file describing MCP servers
    MCP_SERVERS             Inline JSON describing MCP servers
    MINIAGENT_LOG_LEVEL     Log level (default: WARNING)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional

from dotenv import load_dotenv

from .providers.anthropic import AnthropicProvider
from .providers.base import BaseLLMProvider, LLMProviderConfig
from .providers.openai import OpenAIProvider
from .tools.mcp_client import MCPServerConfig

logger = logging.getLogger(__name__)

PROVIDERS = ("openai", "anthropic")


class ConfigError(Exception):
    """Invalid or missing configuration."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}", key=name)


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {value!r}", key=name)


def parse_mcp_servers(data: Any) -> list[MCPServerConfig]:
    """Build server configs from decoded JSON.

    Accepts ``{"mcpServers": {name: {...}}}``, ``{name: {...}}`` or a
    list of ``{"name": ..., ...}`` objects.

    Raises:
        ConfigError: If the shape is not recognised or an entry is invalid
    """
    if isinstance(data, dict) and "mcpServers" in data:
        data = data["mcpServers"]

    if isinstance(data, dict):
        entries = [(name, entry) for name, entry in data.items()]
    elif isinstance(data, list):
        entries = []
        for entry in data:
            if not isinstance(entry, dict) or "name" not in entry:
                raise ConfigError("Each MCP server entry needs a name")
            entries.append((entry["name"], entry))
    else:
        raise ConfigError("MCP server config must be an object or a list")

    servers = []
    for name, entry in entries:
        if not isinstance(entry, dict):
            raise ConfigError(f"MCP server {name} must be an object")
        try:
            servers.append(MCPServerConfig.from_dict(name, entry))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid MCP server {name}: {e}")
    return servers


def load_mcp_config(
    config_path: Optional[str] = None,
    inline_json: Optional[str] = None,
) -> list[MCPServerConfig]:
    """Load MCP server configs from a JSON file or inline JSON.

    Falls back to ``MCP_CONFIG_PATH`` / ``MCP_SERVERS``. Nothing
    configured yields an empty list.
    """
    config_path = config_path or os.getenv("MCP_CONFIG_PATH")
    inline_json = inline_json or os.getenv("MCP_SERVERS")

    if config_path:
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as e:
            raise ConfigError(f"Cannot read MCP config {config_path}: {e}", key="MCP_CONFIG_PATH")
        source = config_path
    elif inline_json:
        raw = inline_json
        source = "MCP_SERVERS"
    else:
        return []

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {source}: {e}")

    servers = parse_mcp_servers(data)
    logger.info(f"Loaded {len(servers)} MCP server configs from {source}")
    return servers


@dataclass
class Settings:
    """Runtime settings.

    Usage:
        settings = Settings.from_env()
        provider = settings.create_provider()
    """

    provider: str = "openai"
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    openai_model: str = OpenAIProvider.DEFAULT_MODEL
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = AnthropicProvider.DEFAULT_MODEL
    timeout: float = 60.0
    max_tokens: int = 4096
    skills_dir: str = "./skills"
    subagent_max_iterations: int = 10
    mcp_servers: list[MCPServerConfig] = field(default_factory=list)
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> Settings:
        """Build settings from environment variables.

        Raises:
            ConfigError: On malformed values
        """
        if load_env_file:
            load_dotenv()

        openai_key = os.getenv("OPENAI_API_KEY") or None
        anthropic_key = os.getenv("ANTHROPIC_API_KEY") or None

        provider = (os.getenv("LLM_PROVIDER") or "").strip().lower()
        if not provider:
            provider = "anthropic" if anthropic_key and not openai_key else "openai"
        if provider not in PROVIDERS:
            raise ConfigError(
                f"LLM_PROVIDER must be one of {', '.join(PROVIDERS)}, got {provider!r}",
                key="LLM_PROVIDER",
            )

        max_iterations = _int_env("SUBAGENT_MAX_ITERATIONS", 10)
        if max_iterations < 1:
            raise ConfigError(
                "SUBAGENT_MAX_ITERATIONS must be at least 1", key="SUBAGENT_MAX_ITERATIONS"
            )

        return cls(
            provider=provider,
            openai_api_key=openai_key,
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            openai_model=os.getenv("MODEL") or OpenAIProvider.DEFAULT_MODEL,
            anthropic_api_key=anthropic_key,
            anthropic_model=os.getenv("ANTHROPIC_MODEL") or AnthropicProvider.DEFAULT_MODEL,
            timeout=_float_env("LLM_TIMEOUT", 60.0),
            max_tokens=_int_env("LLM_MAX_TOKENS", 4096),
            skills_dir=os.getenv("SKILLS_DIR") or "./skills",
            subagent_max_iterations=max_iterations,
            mcp_servers=load_mcp_config(),
            log_level=(os.getenv("MINIAGENT_LOG_LEVEL") or "WARNING").upper(),
        )

    @property
    def model(self) -> str:
        """Model name for the selected provider."""
        return self.anthropic_model if self.provider == "anthropic" else self.openai_model

    def create_provider(self) -> BaseLLMProvider:
        """Create the configured LLM provider.

        Raises:
            ConfigError: If the selected provider has no API key
        """
        if self.provider == "anthropic":
            if not self.anthropic_api_key:
                raise ConfigError("ANTHROPIC_API_KEY is not set", key="ANTHROPIC_API_KEY")
            config = LLMProviderConfig(
                api_key=self.anthropic_api_key,
                model=self.anthropic_model,
                timeout=self.timeout,
                max_tokens=self.max_tokens,
            )
            logger.info(f"Using Anthropic provider with model: {config.model}")
            return AnthropicProvider(config)

        if not self.openai_api_key:
            raise ConfigError("OPENAI_API_KEY is not set", key="OPENAI_API_KEY")
        config = LLMProviderConfig(
            api_key=self.openai_api_key,
            model=self.openai_model,
            base_url=self.openai_base_url,
            timeout=self.timeout,
            max_tokens=self.max_tokens,
        )
        logger.info(f"Using OpenAI provider with model: {config.model}")
        return OpenAIProvider(config)
