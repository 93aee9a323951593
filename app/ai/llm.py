# app/ai/llm.py
from __future__ import annotations

import logging
import time

import openai

from app.config import settings

log = logging.getLogger(__name__)


class LLMUnavailable(RuntimeError):
    """No API key configured, or the model returned nothing usable."""


def chat_completion(
    system: str,
    user: str,
    *,
    max_tokens: int = 1500,
    temperature: float = 0.7,
    json_mode: bool = False,
) -> str:
    """
    One chat completion call; returns the assistant message text.
    Raises LLMUnavailable or openai.OpenAIError; callers fall back.
    """
    if not settings.OPENAI_API_KEY:
        raise LLMUnavailable("OPENAI_API_KEY is not configured")
    openai.api_key = settings.OPENAI_API_KEY
    if settings.OPENAI_BASE_URL:
        openai.base_url = settings.OPENAI_BASE_URL

    kwargs = {}
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}

    start = time.time()
    completion = openai.chat.completions.create(
        model=settings.OPENAI_MODEL,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ],
        temperature=temperature,
        max_tokens=max_tokens,
        **kwargs,
    )
    content = completion.choices[0].message.content if completion.choices else None
    log.info("[ai] %s completion in %.2fs", settings.OPENAI_MODEL, time.time() - start)
    if not content:
        raise LLMUnavailable("Empty completion")
    return content
