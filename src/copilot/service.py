"""
Intent service -- orchestrates prompt -> chat completion -> parse -> validate.

Stateless: every call builds its own prompt and parses its own reply, so
concurrent requests share nothing but the read-only vocabularies.  The only
suspension point is the outbound LLM call.
"""
from __future__ import annotations

from src.copilot.intent import Intent
from src.copilot.intent_parser import parse_intent_response
from src.copilot.llm_client import complete_chat
from src.copilot.prompt_builder import build_intent_prompt, build_system_prompt
from src.core.config import get_settings
from src.core.logging import get_logger
from src.core.utils import clip, timer
from src.governance.vocabulary import load_vocabularies

logger = get_logger(__name__)

PROMPT_STYLES = ("embedded", "system")


async def parse_intent(
    query: str,
    *,
    provider: str | None = None,
    prompt_style: str | None = None,
    timeout: float | None = None,
) -> Intent:
    """End-to-end: question -> validated Intent.

    Parameters
    ----------
    query : str
        Natural-language business question.
    provider : str, optional
        LLM provider override -- "mock", "openai", "azure" or "anthropic".
    prompt_style : str, optional
        "embedded" puts the query inside the system prompt; "system" sends
        the instructions as system message and the query as user message.
    timeout : float, optional
        Forwarded to the outbound LLM request.

    Raises LLMTransportError, IntentParsingError or IntentValidationError.
    """
    settings = get_settings()
    style = (prompt_style or settings.prompt_style).lower()
    if style not in PROMPT_STYLES:
        raise ValueError(f"Unknown prompt style '{style}'. Choose from: {', '.join(PROMPT_STYLES)}")

    logger.info("Parsing intent | query=%s | style=%s", query, style)
    vocab = load_vocabularies()

    with timer() as t:
        if style == "embedded":
            reply = await complete_chat(build_intent_prompt(query, vocab), provider=provider, timeout=timeout)
        else:
            reply = await complete_chat(build_system_prompt(vocab), query, provider=provider, timeout=timeout)
    logger.debug("LLM reply (%d ms): %s", t["elapsed_ms"], clip(reply))

    intent = parse_intent_response(reply, query, vocab)
    logger.info("Parsed intent -> %s", intent.model_dump_json(by_alias=True))
    return intent
