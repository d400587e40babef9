"""Dedicated generative-provider interaction logger.

Logs all prompts, responses, and metadata through a bound loguru logger.
The file sink for these records is installed by ``configure_logging``.
"""

import json
from datetime import datetime
from typing import Any

from loguru import logger

from genmatch.logging_setup import LLM_LOGGER_NAME

llm_logger = logger.bind(name=LLM_LOGGER_NAME)


def log_llm_request(
    provider: str,
    model: str,
    system_prompt: str,
    user_prompt: str,
    options: dict[str, Any] | None = None,
    context: dict[str, Any] | None = None,
) -> str:
    """Log a request before sending.

    Args:
        provider: Provider name (e.g., "openai", "anthropic")
        model: Model name/ID
        system_prompt: System prompt text
        user_prompt: User prompt text
        options: Sampling options (temperature, max_tokens)
        context: Additional context (subject_id, call site)

    Returns:
        Request ID for correlation with response
    """
    request_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")

    llm_logger.info("=" * 80)
    llm_logger.info(f"LLM REQUEST: {request_id}")
    llm_logger.info(f"Provider: {provider}")
    llm_logger.info(f"Model: {model}")
    llm_logger.info(f"Options: {json.dumps(options or {})}")
    llm_logger.info(f"Context: {json.dumps(context or {}, default=str)}")
    llm_logger.info("-" * 40)
    llm_logger.info("SYSTEM:")
    llm_logger.info(system_prompt)
    llm_logger.info("USER:")
    llm_logger.info(user_prompt)
    llm_logger.info("=" * 80)

    return request_id


def log_llm_response(
    request_id: str,
    response_text: str,
    tokens_used: int | None = None,
    duration_seconds: float | None = None,
    error: str | None = None,
) -> None:
    """Log a response (or failure) after receiving.

    Args:
        request_id: Request ID from log_llm_request
        response_text: The full response text
        tokens_used: Total tokens consumed
        duration_seconds: Request duration
        error: Error message if request failed
    """
    llm_logger.info("=" * 80)
    llm_logger.info(f"LLM RESPONSE: {request_id}")

    if error:
        llm_logger.error(f"ERROR: {error}")
    else:
        llm_logger.info(f"Duration: {duration_seconds:.2f}s" if duration_seconds else "Duration: N/A")
        llm_logger.info(f"Tokens: {tokens_used or 'N/A'}")
        llm_logger.info(f"Response length: {len(response_text)} chars")
        llm_logger.info("-" * 40)
        llm_logger.info("RESPONSE:")
        llm_logger.info(response_text)

    llm_logger.info("=" * 80)
