"""
Factory for creating generative providers based on configuration.
"""

from typing import Optional

from loguru import logger

from genmatch.config import Config, get_config

from .base import LLMConfigurationError, LLMProvider
from .langchain_chat import LangChainChatProvider
from .openai_compatible import OPENROUTER_BASE_URL, OpenAICompatibleProvider

DISABLED_PROVIDER = "none"


def get_available_providers(config: Optional[Config] = None) -> dict[str, bool]:
    """
    Get dict of providers and whether their configuration is usable.

    Returns:
        Dict mapping provider name to availability status
    """
    config = config or get_config()
    has_key = bool(config.llm_api_key)
    return {
        "openai": has_key,
        "openrouter": has_key,
        "anthropic": has_key,
        "ollama": True,
    }


def create_provider(config: Optional[Config] = None) -> Optional[LLMProvider]:
    """
    Create the configured generative provider.

    Args:
        config: Configuration (default: global config)

    Returns:
        Configured LLMProvider, or None when ``llm_provider`` is "none"

    Raises:
        LLMConfigurationError: If the provider is unknown or misconfigured
    """
    config = config or get_config()
    provider_type = config.llm_provider
    models = config.model_candidates

    if provider_type == DISABLED_PROVIDER:
        logger.info("Generative provider disabled; deterministic analysis only")
        return None

    logger.info(f"Creating generative provider: {provider_type} (models: {', '.join(models)})")

    if provider_type == "openai":
        return OpenAICompatibleProvider(
            api_key=config.llm_api_key,
            models=models,
            base_url=config.llm_base_url,
            provider_name="openai",
            timeout=config.llm_timeout_seconds,
            json_mode=True,
        )

    elif provider_type == "openrouter":
        return OpenAICompatibleProvider(
            api_key=config.llm_api_key,
            models=models,
            base_url=config.llm_base_url or OPENROUTER_BASE_URL,
            provider_name="openrouter",
            timeout=config.llm_timeout_seconds,
            extra_headers={"X-Title": "GenMatch"},
        )

    elif provider_type == "anthropic":
        return LangChainChatProvider(
            backend="anthropic",
            models=models,
            api_key=config.llm_api_key,
            timeout=config.llm_timeout_seconds,
        )

    elif provider_type == "ollama":
        return LangChainChatProvider(
            backend="ollama",
            models=models,
            base_url=config.llm_base_url or config.ollama_base_url,
            timeout=config.llm_timeout_seconds,
        )

    raise LLMConfigurationError(
        f"Unknown provider: {provider_type}. "
        "Supported: 'openai', 'openrouter', 'anthropic', 'ollama', 'none'"
    )


def get_default_provider(config: Optional[Config] = None) -> Optional[LLMProvider]:
    """
    Create the configured provider, or None if it cannot be built.

    A missing key is not fatal: analysis falls back to deterministic scoring.
    """
    try:
        return create_provider(config)
    except LLMConfigurationError as e:
        logger.warning(f"Generative provider unavailable: {e}")
        return None
