"""
Tests for environment-driven configuration.
"""

import json
from unittest.mock import patch

import pytest

from miniagent.config import (
    ConfigError,
    Settings,
    load_mcp_config,
    parse_mcp_servers,
)
from miniagent.providers.anthropic import AnthropicProvider
from miniagent.providers.openai import OpenAIProvider

ENV_VARS = [
    "LLM_PROVIDER",
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "MODEL",
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_MODEL",
    "LLM_TIMEOUT",
    "LLM_MAX_TOKENS",
    "SKILLS_DIR",
    "SUBAGENT_MAX_ITERATIONS",
    "MCP_CONFIG_PATH",
    "MCP_SERVERS",
    "MINIAGENT_LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestProviderSelection:
    """Tests for choosing the provider from the environment."""

    def test_defaults_to_openai(self, clean_env):
        settings = Settings.from_env(load_env_file=False)

        assert settings.provider == "openai"
        assert settings.model == OpenAIProvider.DEFAULT_MODEL

    def test_anthropic_when_only_anthropic_key(self, clean_env):
        clean_env.setenv("ANTHROPIC_API_KEY", "sk-ant-test")

        settings = Settings.from_env(load_env_file=False)

        assert settings.provider == "anthropic"
        assert settings.model == AnthropicProvider.DEFAULT_MODEL

    def test_openai_when_both_keys(self, clean_env):
        clean_env.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
        clean_env.setenv("OPENAI_API_KEY", "sk-test")

        assert Settings.from_env(load_env_file=False).provider == "openai"

    def test_explicit_provider_wins(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-test")
        clean_env.setenv("LLM_PROVIDER", " Anthropic ")

        assert Settings.from_env(load_env_file=False).provider == "anthropic"

    def test_invalid_provider(self, clean_env):
        clean_env.setenv("LLM_PROVIDER", "gemini")

        with pytest.raises(ConfigError) as exc_info:
            Settings.from_env(load_env_file=False)

        assert exc_info.value.key == "LLM_PROVIDER"


class TestSettingsValues:
    """Tests for parsing individual settings."""

    def test_overrides(self, clean_env):
        clean_env.setenv("MODEL", "gpt-4o-mini")
        clean_env.setenv("OPENAI_BASE_URL", "http://localhost:11434/v1")
        clean_env.setenv("LLM_TIMEOUT", "12.5")
        clean_env.setenv("LLM_MAX_TOKENS", "1024")
        clean_env.setenv("SKILLS_DIR", "/opt/skills")
        clean_env.setenv("SUBAGENT_MAX_ITERATIONS", "3")
        clean_env.setenv("MINIAGENT_LOG_LEVEL", "debug")

        settings = Settings.from_env(load_env_file=False)

        assert settings.model == "gpt-4o-mini"
        assert settings.openai_base_url == "http://localhost:11434/v1"
        assert settings.timeout == 12.5
        assert settings.max_tokens == 1024
        assert settings.skills_dir == "/opt/skills"
        assert settings.subagent_max_iterations == 3
        assert settings.log_level == "DEBUG"

    def test_bad_integer(self, clean_env):
        clean_env.setenv("LLM_MAX_TOKENS", "lots")

        with pytest.raises(ConfigError, match="LLM_MAX_TOKENS must be an integer"):
            Settings.from_env(load_env_file=False)

    def test_bad_number(self, clean_env):
        clean_env.setenv("LLM_TIMEOUT", "soon")

        with pytest.raises(ConfigError, match="LLM_TIMEOUT must be a number"):
            Settings.from_env(load_env_file=False)

    def test_iterations_must_be_positive(self, clean_env):
        clean_env.setenv("SUBAGENT_MAX_ITERATIONS", "0")

        with pytest.raises(ConfigError):
            Settings.from_env(load_env_file=False)


class TestMCPConfig:
    """Tests for MCP server configuration loading."""

    def test_nothing_configured(self, clean_env):
        assert load_mcp_config() == []

    def test_mcp_servers_wrapper(self):
        servers = parse_mcp_servers(
            {"mcpServers": {"fs": {"command": "npx", "args": ["-y", "server-fs"]}}}
        )

        assert [s.name for s in servers] == ["fs"]
        assert servers[0].args == ["-y", "server-fs"]

    def test_plain_mapping(self):
        servers = parse_mcp_servers({"db": {"url": "http://localhost:9000"}})

        assert servers[0].transport == "http"

    def test_list_of_entries(self):
        servers = parse_mcp_servers(
            [{"name": "a", "command": "a-server"}, {"name": "b", "url": "http://b"}]
        )

        assert [s.name for s in servers] == ["a", "b"]

    def test_list_entry_without_name(self):
        with pytest.raises(ConfigError, match="needs a name"):
            parse_mcp_servers([{"command": "x"}])

    def test_invalid_entry(self):
        with pytest.raises(ConfigError, match="Invalid MCP server broken"):
            parse_mcp_servers({"broken": {}})

    def test_unrecognised_shape(self):
        with pytest.raises(ConfigError):
            parse_mcp_servers("fs")

    def test_inline_json(self, clean_env):
        clean_env.setenv("MCP_SERVERS", json.dumps({"fs": {"command": "npx"}}))

        settings = Settings.from_env(load_env_file=False)

        assert [s.name for s in settings.mcp_servers] == ["fs"]

    def test_bad_inline_json(self, clean_env):
        clean_env.setenv("MCP_SERVERS", "{not json")

        with pytest.raises(ConfigError, match="Invalid JSON in MCP_SERVERS"):
            load_mcp_config()

    def test_config_file(self, clean_env, tmp_path):
        path = tmp_path / "mcp.json"
        path.write_text(json.dumps({"mcpServers": {"fs": {"command": "npx"}}}))
        clean_env.setenv("MCP_CONFIG_PATH", str(path))

        servers = load_mcp_config()

        assert [s.name for s in servers] == ["fs"]

    def test_missing_config_file(self, clean_env, tmp_path):
        with pytest.raises(ConfigError) as exc_info:
            load_mcp_config(config_path=str(tmp_path / "missing.json"))

        assert exc_info.value.key == "MCP_CONFIG_PATH"


class TestCreateProvider:
    """Tests for provider construction."""

    def test_openai_provider(self):
        settings = Settings(
            provider="openai",
            openai_api_key="sk-test",
            openai_base_url="http://localhost:8080/v1",
            openai_model="local-model",
            timeout=5.0,
        )

        with patch("miniagent.providers.openai.AsyncOpenAI") as mock_client:
            provider = settings.create_provider()

        assert isinstance(provider, OpenAIProvider)
        assert provider.model_name == "local-model"
        mock_client.assert_called_once_with(
            api_key="sk-test",
            base_url="http://localhost:8080/v1",
            timeout=5.0,
            max_retries=0,
        )

    def test_anthropic_provider(self):
        settings = Settings(provider="anthropic", anthropic_api_key="sk-ant-test")

        with patch("miniagent.providers.anthropic.AsyncAnthropic"):
            provider = settings.create_provider()

        assert isinstance(provider, AnthropicProvider)
        assert provider.model_name == AnthropicProvider.DEFAULT_MODEL

    def test_missing_key(self):
        with pytest.raises(ConfigError) as exc_info:
            Settings(provider="openai").create_provider()

        assert exc_info.value.key == "OPENAI_API_KEY"

        with pytest.raises(ConfigError):
            Settings(provider="anthropic").create_provider()
