"""OpenRouter chat-completions client for the review summary."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

import httpx

from diff_review.config import LlmConfig

logger = logging.getLogger(__name__)

MISSING_KEY_SUMMARY = "OpenRouter API key is not configured. AI review is unavailable."
FAILED_SUMMARY = "AI communication failed. Summary unavailable."
EMPTY_SUMMARY = "No summary received from the AI."
SKIPPED_SUMMARY = "AI review skipped."


class LlmError(RuntimeError):
    """Raised when the model endpoint cannot produce a summary."""


class NetworkError(LlmError):
    """Transport-level failure (DNS, connect, timeout)."""


class AuthError(LlmError):
    """Missing or rejected API key."""


class ServerError(LlmError):
    """Non-success response or unusable response body."""


@dataclass(slots=True)
class LlmSettings:
    """Resolved endpoint settings for one run."""

    model: str
    base_url: str
    api_key: str | None
    timeout_seconds: float = 120.0

    @classmethod
    def from_config(cls, config: LlmConfig) -> LlmSettings:
        api_key = config.api_key or os.environ.get(config.api_key_env, "").strip() or None
        return cls(
            model=config.model,
            base_url=config.base_url.rstrip("/"),
            api_key=api_key,
            timeout_seconds=config.timeout_seconds,
        )


async def submit(
    prompt: str,
    settings: LlmSettings,
    *,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Send the prompt and return the model's reply text."""
    if not settings.api_key:
        raise AuthError("API key is not set")

    headers = {
        "Authorization": f"Bearer {settings.api_key}",
        "Content-Type": "application/json",
    }
    payload = {
        "model": settings.model,
        "messages": [{"role": "user", "content": prompt}],
    }
    url = f"{settings.base_url}/chat/completions"

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.timeout_seconds) as owned:
                response = await owned.post(url, headers=headers, json=payload)
        else:
            response = await client.post(url, headers=headers, json=payload)
    except httpx.HTTPError as exc:
        raise NetworkError(f"request to {url} failed: {exc}") from exc

    if response.status_code in (401, 403):
        raise AuthError(f"API rejected credentials (status {response.status_code})")
    if response.is_error:
        raise ServerError(f"API request failed with status {response.status_code}: {response.text}")

    try:
        data = response.json()
    except ValueError as exc:
        raise ServerError("API returned a non-JSON body") from exc
    return _extract_content(data) or EMPTY_SUMMARY


async def request_review(
    prompt: str,
    settings: LlmSettings,
    *,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Call the model; failures become a fixed placeholder summary."""
    if not settings.api_key:
        logger.error("No API key configured; skipping AI review")
        return MISSING_KEY_SUMMARY

    logger.info("Requesting AI review from model %s", settings.model)
    try:
        return await submit(prompt, settings, client=client)
    except LlmError as exc:
        logger.error("AI review failed: %s", exc)
        return FAILED_SUMMARY


def _extract_content(data: Any) -> str:
    if not isinstance(data, dict):
        raise ServerError("API returned an unexpected payload")
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    message = first.get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""
