"""
OpenAI chat helper for question extraction.

Text documents go in as a single user message; scanned pages go in as a
text + image_url content list so the vision model reads the image directly.

Model: GPT_MODEL env var (default gpt-4o-mini).
"""

import logging
import os
from typing import List, Optional, Union

from openai import AsyncOpenAI

log = logging.getLogger(__name__)

GPT_MODEL = os.getenv("GPT_MODEL", "gpt-4o-mini")
DEFAULT_SYSTEM = "You extract exam questions from documents. Reply with JSON only."

_client: Optional[AsyncOpenAI] = None


def _get_client() -> AsyncOpenAI:
    global _client
    if _client is None:
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY is not set. Add it to your .env file.")
        _client = AsyncOpenAI(api_key=api_key)
    return _client


def _user_content(prompt: str, image_url: Optional[str]) -> Union[str, List[dict]]:
    if not image_url:
        return prompt
    return [
        {"type": "text", "text": prompt},
        {"type": "image_url", "image_url": {"url": image_url}},
    ]


async def call_gpt(
    prompt: str,
    system: str = DEFAULT_SYSTEM,
    temperature: float = 0.2,
    max_tokens: int = 4096,
    image_url: Optional[str] = None,
    json_mode: bool = False,
) -> str:
    """
    Send one chat turn and return the reply text ("" when the model sends none).

    image_url may be an https URL or a data: URL. json_mode asks the API for
    a JSON object reply; callers still parse defensively.

    Raises:
        RuntimeError: OPENAI_API_KEY is missing
    """
    kwargs = {}
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}

    response = await _get_client().chat.completions.create(
        model=GPT_MODEL,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": _user_content(prompt, image_url)},
        ],
        temperature=temperature,
        max_tokens=max_tokens,
        **kwargs,
    )
    if response.usage is not None:
        log.info(
            f"[GPT] {GPT_MODEL} prompt={response.usage.prompt_tokens} "
            f"completion={response.usage.completion_tokens}"
        )
    return response.choices[0].message.content or ""
