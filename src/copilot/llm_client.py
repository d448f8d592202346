"""
LLM client abstraction -- provider-agnostic async chat completion.

Supported providers:
  mock      -- keyword-based intent JSON (for tests / offline dev)
  openai    -- OpenAI Chat Completions (gpt-4o-mini default)
  azure     -- Azure OpenAI deployment via the openai SDK
  anthropic -- Anthropic Messages (claude-3-haiku default)

Configuration is read from Settings (env / .env).  Any failure of the call
itself surfaces as LLMTransportError; nothing is retried here.  Each call
opens its own SDK client and closes it before returning.
"""
from __future__ import annotations

from typing import Any, Awaitable, Callable

from src.copilot.errors import LLMTransportError
from src.copilot.mock_llm import mock_reply
from src.core.config import get_settings
from src.core.logging import get_logger

logger = get_logger(__name__)


def _messages(system_prompt: str, user_message: str | None) -> list[dict[str, str]]:
    messages = [{"role": "system", "content": system_prompt}]
    if user_message:
        messages.append({"role": "user", "content": user_message})
    return messages


def _first_choice_text(response: Any, provider: str) -> str:
    if not response.choices:
        raise LLMTransportError(f"Chat completion failed ({provider}): no choices returned")
    return response.choices[0].message.content or ""


async def _call_mock(system_prompt: str, user_message: str | None, timeout: float) -> str:
    return mock_reply(system_prompt, user_message)


async def _call_openai(system_prompt: str, user_message: str | None, timeout: float) -> str:
    """Call OpenAI Chat Completions."""
    settings = get_settings()
    if not settings.openai_api_key:
        raise LLMTransportError(
            "openai_api_key is not set.  "
            "Set OPENAI_API_KEY in your .env file or environment."
        )

    import openai

    try:
        async with openai.AsyncOpenAI(
            api_key=settings.openai_api_key, timeout=timeout, max_retries=0
        ) as client:
            response = await client.chat.completions.create(
                model=settings.openai_model,
                messages=_messages(system_prompt, user_message),
                temperature=settings.llm_temperature,
                max_tokens=settings.llm_max_tokens,
            )
    except openai.OpenAIError as exc:
        raise LLMTransportError(f"Chat completion failed (openai): {exc}") from exc
    text = _first_choice_text(response, "openai")
    logger.info("OpenAI response (%d chars)", len(text))
    return text


async def _call_azure(system_prompt: str, user_message: str | None, timeout: float) -> str:
    """Call an Azure OpenAI chat deployment."""
    settings = get_settings()
    if not settings.azure_openai_endpoint or not settings.azure_openai_api_key:
        raise LLMTransportError(
            "azure_openai_endpoint and azure_openai_api_key must be set.  "
            "Set AZURE_OPENAI_ENDPOINT / AZURE_OPENAI_API_KEY in your .env file or environment."
        )

    import openai

    try:
        async with openai.AsyncAzureOpenAI(
            azure_endpoint=settings.azure_openai_endpoint,
            api_key=settings.azure_openai_api_key,
            api_version=settings.azure_openai_api_version,
            timeout=timeout,
            max_retries=0,
        ) as client:
            # Azure routes by deployment name, passed where the model name goes
            response = await client.chat.completions.create(
                model=settings.azure_openai_deployment,
                messages=_messages(system_prompt, user_message),
                temperature=settings.llm_temperature,
                max_tokens=settings.llm_max_tokens,
            )
    except openai.OpenAIError as exc:
        raise LLMTransportError(f"Chat completion failed (azure): {exc}") from exc
    text = _first_choice_text(response, "azure")
    logger.info("Azure OpenAI response (%d chars)", len(text))
    return text


async def _call_anthropic(system_prompt: str, user_message: str | None, timeout: float) -> str:
    """Call Anthropic Messages API."""
    settings = get_settings()
    if not settings.anthropic_api_key:
        raise LLMTransportError(
            "anthropic_api_key is not set.  "
            "Set ANTHROPIC_API_KEY in your .env file or environment."
        )

    import anthropic

    # Messages API needs at least one user turn
    user_turn = user_message or "Respond with the JSON object now."
    try:
        async with anthropic.AsyncAnthropic(
            api_key=settings.anthropic_api_key, timeout=timeout, max_retries=0
        ) as client:
            response = await client.messages.create(
                model=settings.anthropic_model,
                system=system_prompt,
                max_tokens=settings.llm_max_tokens,
                temperature=settings.llm_temperature,
                messages=[{"role": "user", "content": user_turn}],
            )
    except anthropic.AnthropicError as exc:
        raise LLMTransportError(f"Chat completion failed (anthropic): {exc}") from exc
    text = response.content[0].text if response.content else ""
    logger.info("Anthropic response (%d chars)", len(text))
    return text


_PROVIDERS: dict[str, Callable[[str, str | None, float], Awaitable[str]]] = {
    "mock": _call_mock,
    "openai": _call_openai,
    "azure": _call_azure,
    "anthropic": _call_anthropic,
}


async def complete_chat(
    system_prompt: str,
    user_message: str | None = None,
    *,
    provider: str | None = None,
    timeout: float | None = None,
) -> str:
    """Send the prompt to the configured (or overridden) provider; return the reply text.

    Parameters
    ----------
    system_prompt : str
        Instruction text sent as the system message.
    user_message : str, optional
        The user's turn, if the query is not embedded in the system prompt.
    provider : str, optional
        Override the provider from settings.  One of: mock, openai, azure, anthropic.
    timeout : float, optional
        Seconds before the outbound request is abandoned.  Defaults to
        ``llm_timeout_seconds``.
    """
    settings = get_settings()
    if provider is None:
        provider = settings.llm_provider
    provider = provider.lower()
    if timeout is None:
        timeout = settings.llm_timeout_seconds

    fn = _PROVIDERS.get(provider)
    if fn is None:
        raise NotImplementedError(
            f"LLM provider '{provider}' is not supported.  "
            f"Choose from: {', '.join(_PROVIDERS)}"
        )

    logger.info("Calling LLM provider=%s  prompt_len=%d", provider, len(system_prompt))
    return await fn(system_prompt, user_message, timeout)
