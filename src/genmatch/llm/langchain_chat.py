"""
LangChain chat-model provider.

Used for Anthropic (Claude) and local Ollama models, which the OpenAI SDK
does not cover natively. A chat model is built per call so each request can
carry its own model id, temperature and token limit.
"""

import time
from typing import Optional

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_ollama import ChatOllama
from langchain_openai import ChatOpenAI
from loguru import logger

from .base import (
    CompletionResponse,
    GenerationRequest,
    LLMConfigurationError,
    LLMError,
    LLMProvider,
    error_from_status,
)
from .llm_logger import log_llm_request, log_llm_response

SUPPORTED_BACKENDS = ("anthropic", "ollama", "openai")


class LangChainChatProvider(LLMProvider):
    """Provider backed by a LangChain chat model."""

    def __init__(
        self,
        backend: str,
        models: list[str],
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize the provider.

        Args:
            backend: "anthropic", "ollama" or "openai"
            models: Candidate model ids, in cascade order
            api_key: API key (not needed for ollama)
            base_url: Server URL (ollama) or endpoint override
            timeout: Per-request timeout in seconds
        """
        backend = backend.lower()
        if backend not in SUPPORTED_BACKENDS:
            raise LLMConfigurationError(
                f"Unknown chat backend: {backend}. Supported: {', '.join(SUPPORTED_BACKENDS)}"
            )
        if backend != "ollama" and not api_key:
            raise LLMConfigurationError(f"{backend} API key is required")
        if not models:
            raise LLMConfigurationError(f"{backend} requires at least one model")

        self.backend = backend
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self._models = list(models)

    def get_model(self, model: str, request: GenerationRequest) -> BaseChatModel:
        """Build the chat model for one request."""
        if self.backend == "anthropic":
            return ChatAnthropic(
                model=model,
                api_key=self.api_key,
                temperature=request.temperature,
                max_tokens=request.max_tokens,
                timeout=self.timeout,
                max_retries=0,
            )
        if self.backend == "ollama":
            kwargs = {
                "model": model,
                "temperature": request.temperature,
                "num_predict": request.max_tokens,
                "client_kwargs": {"timeout": self.timeout},
            }
            if self.base_url:
                kwargs["base_url"] = self.base_url
            if request.response_schema is not None:
                kwargs["format"] = "json"
            return ChatOllama(**kwargs)
        return ChatOpenAI(
            model=model,
            api_key=self.api_key,
            base_url=self.base_url,
            temperature=request.temperature,
            max_tokens=request.max_tokens,
            timeout=self.timeout,
            max_retries=0,
        )

    def complete(self, request: GenerationRequest, model: Optional[str] = None) -> CompletionResponse:
        """Generate a completion with a LangChain chat model."""
        model_name = model or self.default_model

        request_id = log_llm_request(
            provider=self.backend,
            model=model_name,
            system_prompt=request.system_prompt,
            user_prompt=request.user_prompt,
            options={"temperature": request.temperature, "max_tokens": request.max_tokens},
        )
        start = time.monotonic()

        try:
            chat_model = self.get_model(model_name, request)
            message = chat_model.invoke([
                SystemMessage(content=request.system_prompt),
                HumanMessage(content=request.user_prompt),
            ])
        except LLMError:
            raise
        except Exception as e:
            # SDK errors differ per backend; the HTTP status is what matters
            log_llm_response(request_id, "", error=str(e))
            raise error_from_status(getattr(e, "status_code", None), model_name, e) from e

        text = _message_text(message.content)
        usage = getattr(message, "usage_metadata", None) or {}
        tokens = usage.get("total_tokens")
        duration = time.monotonic() - start

        log_llm_response(request_id, text, tokens_used=tokens, duration_seconds=duration)
        logger.debug(f"{self.backend}/{model_name} answered in {duration:.2f}s")

        return CompletionResponse(
            text=text,
            model=model_name,
            provider=self.backend,
            tokens_used=tokens,
            metadata={"request_id": request_id},
        )

    def list_models(self) -> list[str]:
        return list(self._models)

    @property
    def name(self) -> str:
        """Provider name for display."""
        return self.backend


def _message_text(content) -> str:
    """Flatten message content, which may be a list of content blocks."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)
