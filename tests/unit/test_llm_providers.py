"""
Test generative providers.

Covers the provider factory, OpenAI SDK error mapping and LangChain chat
model responses. No test makes a network call.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from genmatch.config import Config
from genmatch.llm import (
    AuthenticationError,
    GenerationRequest,
    LLMConfigurationError,
    LLMError,
    ModelNotFoundError,
    RateLimitError,
    create_provider,
    get_available_providers,
    get_default_provider,
)
from genmatch.llm.base import error_from_status
from genmatch.llm.langchain_chat import LangChainChatProvider, _message_text
from genmatch.llm.openai_compatible import OPENROUTER_BASE_URL, OpenAICompatibleProvider

REQUEST = GenerationRequest(
    system_prompt="Respond with JSON only.",
    user_prompt="Compare these two people.",
    max_tokens=200,
    temperature=0.1,
    response_schema={"confidence": "number"},
)

COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"


def _config(**overrides) -> Config:
    values = {"llm_api_key": None, "llm_base_url": None}
    values.update(overrides)
    return Config(_env_file=None, **values)


def _status_error(error_class, status_code):
    response = httpx.Response(status_code, request=httpx.Request("POST", COMPLETIONS_URL))
    return error_class(f"HTTP {status_code}", response=response, body=None)


def _chat_completion(text, total_tokens=42):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))],
        usage=SimpleNamespace(total_tokens=total_tokens),
    )


# =============================================================================
# Factory
# =============================================================================


class TestProviderFactory:
    """Test provider factory and configuration."""

    def test_get_available_providers(self):
        providers = get_available_providers(_config())

        assert providers == {"openai": False, "openrouter": False, "anthropic": False, "ollama": True}

    def test_disabled_provider(self):
        assert create_provider(_config(llm_provider="none")) is None

    def test_provider_name_is_case_insensitive(self):
        assert create_provider(_config(llm_provider=" NONE ")) is None

    def test_unknown_provider(self):
        with pytest.raises(LLMConfigurationError, match="Unknown provider"):
            create_provider(_config(llm_provider="crystal-ball"))

    def test_missing_key(self):
        with pytest.raises(LLMConfigurationError, match="API key is required"):
            create_provider(_config(llm_provider="openai"))

    def test_default_provider_is_none_without_key(self):
        assert get_default_provider(_config(llm_provider="openai")) is None

    def test_create_openai_provider(self):
        provider = create_provider(_config(llm_provider="openai", llm_api_key="sk-test", llm_models="a,b"))

        assert isinstance(provider, OpenAICompatibleProvider)
        assert provider.name == "openai"
        assert provider.list_models() == ["a", "b"]
        assert provider.json_mode is True

    def test_create_openrouter_provider(self):
        with patch("genmatch.llm.openai_compatible.openai.OpenAI") as mock_openai:
            provider = create_provider(_config(llm_provider="openrouter", llm_api_key="or-test"))

        assert provider.name == "openrouter"
        assert mock_openai.call_args.kwargs["base_url"] == OPENROUTER_BASE_URL
        assert provider.extra_headers == {"X-Title": "GenMatch"}

    def test_create_anthropic_provider(self):
        provider = create_provider(_config(llm_provider="anthropic", llm_api_key="ak-test"))

        assert isinstance(provider, LangChainChatProvider)
        assert provider.name == "anthropic"

    def test_create_ollama_provider_without_key(self):
        provider = create_provider(_config(llm_provider="ollama", llm_models="llama3.1"))

        assert isinstance(provider, LangChainChatProvider)
        assert provider.base_url == "http://localhost:11434"
        assert provider.default_model == "llama3.1"


# =============================================================================
# OpenAI-compatible provider
# =============================================================================


class TestOpenAICompatibleProvider:
    """Test requests and error mapping for the chat-completions API."""

    @pytest.fixture
    def provider(self):
        provider = OpenAICompatibleProvider(api_key="sk-test", models=["gpt-a", "gpt-b"], json_mode=True)
        provider.client = MagicMock()
        return provider

    def test_requires_models(self):
        with pytest.raises(LLMConfigurationError):
            OpenAICompatibleProvider(api_key="sk-test", models=[])

    def test_complete(self, provider):
        provider.client.chat.completions.create.return_value = _chat_completion('{"confidence": 0.7}')

        response = provider.complete(REQUEST, "gpt-b")

        assert response.text == '{"confidence": 0.7}'
        assert response.model == "gpt-b"
        assert response.tokens_used == 42
        kwargs = provider.client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-b"
        assert kwargs["messages"][0] == {"role": "system", "content": "Respond with JSON only."}
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["max_tokens"] == 200

    def test_default_model(self, provider):
        provider.client.chat.completions.create.return_value = _chat_completion("{}")

        assert provider.complete(REQUEST).model == "gpt-a"

    @pytest.mark.parametrize(
        "error_class, status_code, expected",
        [
            (openai.NotFoundError, 404, ModelNotFoundError),
            (openai.BadRequestError, 400, ModelNotFoundError),
            (openai.RateLimitError, 429, RateLimitError),
            (openai.AuthenticationError, 401, AuthenticationError),
            (openai.PermissionDeniedError, 403, AuthenticationError),
            (openai.InternalServerError, 500, LLMError),
        ],
    )
    def test_error_mapping(self, provider, error_class, status_code, expected):
        provider.client.chat.completions.create.side_effect = _status_error(error_class, status_code)

        with pytest.raises(expected):
            provider.complete(REQUEST)

    def test_connection_error(self, provider):
        provider.client.chat.completions.create.side_effect = openai.APIConnectionError(
            request=httpx.Request("POST", COMPLETIONS_URL)
        )

        with pytest.raises(LLMError):
            provider.complete(REQUEST)


# =============================================================================
# LangChain chat provider
# =============================================================================


class TestLangChainChatProvider:
    """Test chat model responses and status-code error mapping."""

    def test_unknown_backend(self):
        with pytest.raises(LLMConfigurationError, match="Unknown chat backend"):
            LangChainChatProvider(backend="palm", models=["x"])

    def test_anthropic_requires_key(self):
        with pytest.raises(LLMConfigurationError):
            LangChainChatProvider(backend="anthropic", models=["claude"])

    def test_complete_flattens_content_blocks(self):
        provider = LangChainChatProvider(backend="ollama", models=["llama3.1"])
        message = SimpleNamespace(
            content=[{"type": "text", "text": '{"ok": '}, {"type": "text", "text": "true}"}],
            usage_metadata={"total_tokens": 17},
        )
        chat_model = MagicMock()
        chat_model.invoke.return_value = message

        with patch.object(provider, "get_model", return_value=chat_model) as mock_get_model:
            response = provider.complete(REQUEST)

        assert response.text == '{"ok": true}'
        assert response.tokens_used == 17
        assert response.provider == "ollama"
        assert mock_get_model.call_args.args[0] == "llama3.1"

    def test_sdk_error_mapped_by_status(self):
        provider = LangChainChatProvider(backend="anthropic", models=["claude-x"], api_key="ak-test")

        class SDKError(Exception):
            status_code = 404

        chat_model = MagicMock()
        chat_model.invoke.side_effect = SDKError("model not found")

        with patch.object(provider, "get_model", return_value=chat_model):
            with pytest.raises(ModelNotFoundError):
                provider.complete(REQUEST)

    def test_get_model_per_backend(self):
        from langchain_anthropic import ChatAnthropic
        from langchain_ollama import ChatOllama
        from langchain_openai import ChatOpenAI

        anthropic = LangChainChatProvider(backend="anthropic", models=["claude-x"], api_key="ak-test")
        ollama = LangChainChatProvider(backend="ollama", models=["llama3.1"])
        compatible = LangChainChatProvider(
            backend="openai", models=["local-model"], api_key="sk-test", base_url="http://localhost:8000/v1"
        )

        assert isinstance(anthropic.get_model("claude-x", REQUEST), ChatAnthropic)
        assert isinstance(ollama.get_model("llama3.1", REQUEST), ChatOllama)
        assert isinstance(compatible.get_model("local-model", REQUEST), ChatOpenAI)

    def test_ollama_model_gets_timeout(self):
        provider = LangChainChatProvider(backend="ollama", models=["llama3.1"], timeout=12.5)

        chat_model = provider.get_model("llama3.1", REQUEST)

        assert chat_model.client_kwargs == {"timeout": 12.5}
        assert chat_model.format == "json"

    def test_message_text(self):
        assert _message_text("plain") == "plain"
        assert _message_text(["a", {"type": "image"}, {"type": "text", "text": "b"}]) == "ab"
        assert _message_text(None) == ""


class TestErrorFromStatus:
    @pytest.mark.parametrize(
        "status_code, expected",
        [
            (400, ModelNotFoundError),
            (404, ModelNotFoundError),
            (401, AuthenticationError),
            (403, AuthenticationError),
            (429, RateLimitError),
            (None, LLMError),
            (502, LLMError),
        ],
    )
    def test_mapping(self, status_code, expected):
        assert type(error_from_status(status_code, "m", Exception("boom"))) is expected
