"""
LLM Provider Factory
"""

import logging
import os
from typing import Optional

from legal_intake.config import IntakeConfig
from legal_intake.errors import ConfigurationError
from legal_intake.llm.base import LLMProvider
from legal_intake.llm.claude import ClaudeProvider
from legal_intake.llm.fixture import FixtureProvider
from legal_intake.llm.gemini import GeminiProvider
from legal_intake.llm.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)


class LLMProviderFactory:
    """
    工廠模式建立 LLM Provider

    每個部署只選一個 backend；orchestrator 在建構時注入，
    商業邏輯裡不做 mock / real 判斷。

    使用方式：
        provider = LLMProviderFactory.create("claude", config=config)
        text = await provider.complete("...")
    """

    _providers = {
        "gemini": GeminiProvider,
        "claude": ClaudeProvider,
        "openai": OpenAIProvider,
        "fixture": FixtureProvider,
    }

    _default_models = {
        "gemini": "gemini-1.5-pro",
        "claude": "claude-sonnet-4-5-20250929",
        "openai": "gpt-4o",
        "fixture": "fixture",
    }

    _env_keys = {
        "gemini": "GEMINI_API_KEY",
        "claude": "ANTHROPIC_API_KEY",
        "openai": "OPENAI_API_KEY",
    }

    _env_model_keys = {
        "gemini": "GEMINI_MODEL",
        "claude": "CLAUDE_MODEL",
        "openai": "OPENAI_MODEL",
    }

    @classmethod
    def create(
        cls,
        provider: str,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        config: Optional[IntakeConfig] = None,
    ) -> LLMProvider:
        """
        建立 LLM Provider 實例

        Args:
            provider: Provider 名稱 ("gemini", "claude", "openai", "fixture")
            api_key: API Key（如果沒提供，會從環境變數讀取）
            model_name: 模型名稱（如果沒提供，使用預設值）
            config: timeout / temperature / max_tokens 來源

        Raises:
            ConfigurationError: 未知的 provider 名稱或找不到 API Key
        """
        if provider not in cls._providers:
            logger.error(f"Unknown LLM provider requested: {provider}")
            raise ConfigurationError(
                f"Unknown provider: {provider}. "
                f"Available: {list(cls._providers.keys())}"
            )

        if api_key is None and provider in cls._env_keys:
            env_key = cls._env_keys[provider]
            api_key = os.getenv(env_key)
            if not api_key:
                logger.error(f"Missing credentials for provider {provider} ({env_key})")
                raise ConfigurationError(
                    f"API key not found. Please set {env_key} environment variable.",
                    {"provider": provider, "env_key": env_key},
                )

        if model_name is None:
            model_name = cls._get_model_from_env(provider)

        config = config or IntakeConfig()
        provider_class = cls._providers[provider]
        return provider_class(
            api_key or "",
            model_name,
            timeout_seconds=config.timeout_seconds,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

    @classmethod
    def _get_model_from_env(cls, provider: str) -> str:
        """從環境變數取得模型名稱，若無則使用預設值"""
        model_from_env = os.getenv(cls._env_model_keys.get(provider, ""), "")
        return model_from_env or cls._default_models[provider]

    @classmethod
    def from_config(cls, config: IntakeConfig) -> LLMProvider:
        """依 IntakeConfig.provider（LLM_PROVIDER）建立 Provider"""
        return cls.create(config.provider, config=config)

    @classmethod
    def list_providers(cls) -> list[str]:
        """列出所有可用的 Provider"""
        return list(cls._providers.keys())
