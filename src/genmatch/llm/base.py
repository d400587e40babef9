"""
Base classes and interfaces for generative text providers.

A provider turns one GenerationRequest into text for a named model. Errors are
translated into the small hierarchy below so callers can decide whether to try
the next model or give up on the provider.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from genmatch.errors import GenMatchError


# Custom exceptions
class LLMError(GenMatchError):
    """Base exception for generative provider errors."""
    pass


class ModelNotFoundError(LLMError):
    """Raised when a model is unknown or rejects the request (404/400 class)."""
    pass


class RateLimitError(LLMError):
    """Raised when rate limits are exceeded (429)."""
    pass


class AuthenticationError(LLMError):
    """Raised when the provider refuses our credentials (401/403)."""
    pass


class LLMConfigurationError(LLMError):
    """Raised when provider is misconfigured."""
    pass


def error_from_status(status_code: Optional[int], model: str, error: Exception) -> LLMError:
    """Map an HTTP status from a provider SDK error onto our hierarchy."""
    if status_code in (400, 404):
        return ModelNotFoundError(f"Model unavailable ({status_code}): {model}")
    if status_code == 429:
        return RateLimitError(f"Rate limit exceeded: {error}")
    if status_code in (401, 403):
        return AuthenticationError(f"Provider refused credentials ({status_code}): {error}")
    return LLMError(f"Completion failed for {model}: {error}")


# Request/response types
@dataclass
class GenerationRequest:
    """One prompt pair sent to a generative provider.

    Attributes:
        system_prompt: Role and output-format instructions
        user_prompt: The task itself
        max_tokens: Upper bound on generated tokens
        temperature: Sampling temperature (0.0-2.0)
        response_schema: Required-field description of the expected JSON, if any
    """
    system_prompt: str
    user_prompt: str
    max_tokens: int = 800
    temperature: float = 0.3
    response_schema: Optional[dict[str, Any]] = None


@dataclass
class CompletionResponse:
    """Response from a completion request."""
    text: str
    model: str
    provider: str
    tokens_used: Optional[int] = None
    metadata: dict[str, Any] = field(default_factory=dict)


# Base provider interface
class LLMProvider(ABC):
    """Abstract base class for generative providers."""

    @abstractmethod
    def complete(self, request: GenerationRequest, model: Optional[str] = None) -> CompletionResponse:
        """
        Generate a completion for a prompt pair.

        Args:
            request: System/user prompts and sampling options
            model: Model to use (None for default)

        Returns:
            CompletionResponse with generated text

        Raises:
            ModelNotFoundError: If the model doesn't exist or rejects the request
            RateLimitError: If rate limits exceeded
            AuthenticationError: If credentials are refused
            LLMError: For other errors
        """
        pass

    @abstractmethod
    def list_models(self) -> list[str]:
        """
        List candidate models, in the order they should be tried.

        Returns:
            List of model identifiers
        """
        pass

    def is_available(self) -> bool:
        """Whether the provider has what it needs to make requests."""
        return True

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for display."""
        pass

    @property
    def default_model(self) -> str:
        """Default model for this provider."""
        models = self.list_models()
        if models:
            return models[0]
        raise LLMError(f"No models available for {self.name}")
