"""
OpenAI-compatible provider implementation.

Covers OpenAI itself plus any endpoint speaking the same chat-completions
protocol (OpenRouter, Ollama's /v1 API) through the ``base_url`` setting.
"""

import time
from typing import Optional

import openai
from loguru import logger

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
from .llm_logger import log_llm_request, log_llm_response

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class OpenAICompatibleProvider(LLMProvider):
    """Provider using the OpenAI chat-completions API."""

    def __init__(
        self,
        api_key: Optional[str],
        models: list[str],
        base_url: Optional[str] = None,
        provider_name: str = "openai",
        timeout: float = 30.0,
        json_mode: bool = False,
        extra_headers: Optional[dict[str, str]] = None,
    ):
        """
        Initialize the provider.

        Args:
            api_key: API key (Ollama accepts any non-empty value)
            models: Candidate model ids, in cascade order
            base_url: Endpoint override (None for api.openai.com)
            provider_name: Name used in logs and responses
            timeout: Per-request timeout in seconds
            json_mode: Request ``response_format=json_object`` when a schema is set
            extra_headers: Headers sent with every request (OpenRouter attribution)
        """
        if not api_key:
            raise LLMConfigurationError(f"{provider_name} API key is required")
        if not models:
            raise LLMConfigurationError(f"{provider_name} requires at least one model")

        self.client = openai.OpenAI(
            base_url=base_url,
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
        )
        self._models = list(models)
        self._provider_name = provider_name
        self.json_mode = json_mode
        self.extra_headers = extra_headers or {}

    def complete(self, request: GenerationRequest, model: Optional[str] = None) -> CompletionResponse:
        """Generate a completion through the chat-completions endpoint."""
        model_name = model or self.default_model

        request_params = {
            "model": model_name,
            "messages": [
                {"role": "system", "content": request.system_prompt},
                {"role": "user", "content": request.user_prompt},
            ],
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
        }
        if self.json_mode and request.response_schema is not None:
            request_params["response_format"] = {"type": "json_object"}

        request_id = log_llm_request(
            provider=self._provider_name,
            model=model_name,
            system_prompt=request.system_prompt,
            user_prompt=request.user_prompt,
            options={"temperature": request.temperature, "max_tokens": request.max_tokens},
        )
        start = time.monotonic()

        try:
            response = self.client.chat.completions.create(
                **request_params,
                extra_headers=self.extra_headers or None,
            )
        except (openai.NotFoundError, openai.BadRequestError) as e:
            log_llm_response(request_id, "", error=str(e))
            raise ModelNotFoundError(f"Model unavailable: {model_name}") from e
        except openai.RateLimitError as e:
            log_llm_response(request_id, "", error=str(e))
            raise RateLimitError(f"Rate limit exceeded: {e}") from e
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            log_llm_response(request_id, "", error=str(e))
            raise AuthenticationError(f"{self._provider_name} refused credentials: {e}") from e
        except openai.OpenAIError as e:
            log_llm_response(request_id, "", error=str(e))
            raise LLMError(f"{self._provider_name} completion failed: {e}") from e

        text = response.choices[0].message.content or ""
        tokens = response.usage.total_tokens if response.usage else None
        duration = time.monotonic() - start

        log_llm_response(request_id, text, tokens_used=tokens, duration_seconds=duration)
        logger.debug(f"{self._provider_name}/{model_name} answered in {duration:.2f}s")

        return CompletionResponse(
            text=text,
            model=model_name,
            provider=self._provider_name,
            tokens_used=tokens,
            metadata={"request_id": request_id},
        )

    def list_models(self) -> list[str]:
        return list(self._models)

    @property
    def name(self) -> str:
        """Provider name for display."""
        return self._provider_name
