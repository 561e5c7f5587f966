"""
Content providers for NCLEX question generation.

LLMContentProvider talks to the Anthropic Messages API or the OpenAI Chat
Completions API over httpx and returns the raw model text. Parsing and
validation happen in nclex_study.content.schemas.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from typing import Any, Protocol

import httpx
from loguru import logger

from nclex_study.config import Settings, get_settings
from nclex_study.core.errors import ContentProviderUnavailableError, InvalidContentError

ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
OPENAI_URL = "https://api.openai.com/v1/chat/completions"

SYSTEM_PROMPT = (
    "You are an expert NCLEX question writer. Write clinically accurate, "
    "exam-style multiple choice questions. Respond with JSON only."
)


class ContentProvider(Protocol):
    def generate_questions(self, topic: str, count: int, exclude_ids: Iterable[str] = ()) -> str: ...


def build_prompt(topic: str, count: int, exclude_ids: Iterable[str] = ()) -> str:
    excluded = ", ".join(sorted(exclude_ids))
    lines = [
        f"Generate {count} NCLEX-style practice questions about: {topic}.",
        "Return a JSON array. Each element must have exactly these fields:",
        '  "id": unique string identifier',
        '  "question": the question stem',
        '  "options": list of {"value": "a", "label": "..."} (four options, values a-d)',
        '  "correctAnswer": the value of the correct option',
        '  "explanation": {"main": "...", "concepts": [{"title": "...", "description": "..."}]}',
    ]
    if excluded:
        lines.append(f"Do not reuse these question ids: {excluded}")
    return "\n".join(lines)


class LLMContentProvider:
    """HTTP client for LLM-backed question generation."""

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.Client | None = None,
        retry_attempts: int = 3,
        backoff_seconds: float = 1.0,
    ):
        """
        Initialize the provider.

        Args:
            settings: Application settings (provider, model, keys, timeout)
            client: Preconfigured httpx client; created from settings if omitted
            retry_attempts: Attempts on timeouts, transport errors and 5xx
            backoff_seconds: Base delay, doubled after each failed attempt
        """
        self.settings = settings or get_settings()
        self.provider = self.settings.ai_provider
        self.retry_attempts = max(1, retry_attempts)
        self.backoff_seconds = backoff_seconds
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(self.settings.ai_timeout_seconds),
            follow_redirects=True,
        )

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> LLMContentProvider:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # =========================================================================
    # Requests
    # =========================================================================

    def _request(self, prompt: str) -> tuple[str, dict[str, str], dict[str, Any]]:
        if self.provider == "openai":
            key = self.settings.openai_api_key
            if not key:
                raise ContentProviderUnavailableError("OPENAI_API_KEY is not configured")
            return (
                OPENAI_URL,
                {"Authorization": f"Bearer {key}", "content-type": "application/json"},
                {
                    "model": self.settings.ai_model,
                    "max_tokens": self.settings.ai_max_tokens,
                    "messages": [
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                },
            )

        key = self.settings.anthropic_api_key
        if not key:
            raise ContentProviderUnavailableError("ANTHROPIC_API_KEY is not configured")
        return (
            ANTHROPIC_URL,
            {
                "x-api-key": key,
                "anthropic-version": ANTHROPIC_VERSION,
                "content-type": "application/json",
            },
            {
                "model": self.settings.ai_model,
                "max_tokens": self.settings.ai_max_tokens,
                "system": SYSTEM_PROMPT,
                "messages": [{"role": "user", "content": prompt}],
            },
        )

    def _extract_text(self, data: dict[str, Any]) -> str:
        try:
            if self.provider == "openai":
                return data["choices"][0]["message"]["content"] or ""
            return "".join(
                block.get("text", "") for block in data["content"] if block.get("type") == "text"
            )
        except (KeyError, IndexError, TypeError) as e:
            raise InvalidContentError(f"Unexpected {self.provider} response shape", error=str(e)) from e

    def generate_questions(self, topic: str, count: int, exclude_ids: Iterable[str] = ()) -> str:
        """
        Ask the model for questions and return its raw text.

        Raises:
            ContentProviderUnavailableError: Missing key, 4xx, or retries exhausted
            InvalidContentError: Response body is not the expected shape
        """
        url, headers, payload = self._request(build_prompt(topic, count, exclude_ids))
        last_error: Exception | None = None

        for attempt in range(self.retry_attempts):
            try:
                response = self.client.post(url, headers=headers, json=payload)
                response.raise_for_status()
                text = self._extract_text(response.json())
                logger.debug(f"{self.provider} returned {len(text)} chars for '{topic}'")
                return text

            except httpx.HTTPStatusError as e:
                last_error = e
                status = e.response.status_code
                if status < 500 and status != 429:
                    logger.error(f"{self.provider} client error: {status}")
                    raise ContentProviderUnavailableError(
                        f"{self.provider} rejected the request", status_code=status
                    ) from e
                logger.warning(
                    f"{self.provider} error {status} on attempt {attempt + 1}/{self.retry_attempts}"
                )

            except ValueError as e:
                # response.json() on a non-JSON body
                raise InvalidContentError(f"{self.provider} returned a non-JSON body") from e

            except httpx.RequestError as e:
                last_error = e
                logger.warning(
                    f"{self.provider} request error on attempt {attempt + 1}/{self.retry_attempts}: {e}"
                )

            if attempt < self.retry_attempts - 1 and self.backoff_seconds > 0:
                time.sleep(self.backoff_seconds * 2**attempt)

        logger.error(f"{self.provider} unavailable after {self.retry_attempts} attempts: {last_error}")
        raise ContentProviderUnavailableError(
            f"{self.provider} unavailable after {self.retry_attempts} attempts",
            error=str(last_error),
        )
