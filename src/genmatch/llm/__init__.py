"""
Generative provider abstraction for GenMatch.

Supports:
- OpenAI-compatible endpoints (OpenAI, OpenRouter) via the openai SDK
- Anthropic and Ollama via LangChain chat models
"""

from .base import (
    AuthenticationError,
    CompletionResponse,
    GenerationRequest,
    LLMConfigurationError,
    LLMError,
    LLMProvider,
    ModelNotFoundError,
    RateLimitError,
)
from .factory import create_provider, get_available_providers, get_default_provider

__all__ = [
    'AuthenticationError',
    'CompletionResponse',
    'GenerationRequest',
    'LLMConfigurationError',
    'LLMError',
    'LLMProvider',
    'ModelNotFoundError',
    'RateLimitError',
    'create_provider',
    'get_available_providers',
    'get_default_provider',
]
