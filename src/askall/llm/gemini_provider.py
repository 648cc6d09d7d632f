# Copyright 2025 KTTC AI (https://github.com/kttc-ai)
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Google Gemini LLM provider implementation.

Implements the BaseLLMProvider interface for Google's Gemini API.
Uses the Generative Language REST API via aiohttp for lightweight,
async operation without heavy SDK dependencies.
"""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from askall.core.models import ProviderName

from .base import (
    BaseLLMProvider,
    LLMAuthenticationError,
    LLMRateLimitError,
    MalformedResponseError,
    NormalizedRequest,
    ProviderRejectedRequestError,
    TransportError,
)

logger = logging.getLogger(__name__)

# Gemini API base URL
GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"


def build_request_body(request: NormalizedRequest) -> dict[str, Any]:
    """Build request body for the generateContent endpoint.

    Assistant turns map to Gemini's ``model`` role; everything else is
    sent as ``user``.
    """
    contents = [
        {
            "role": "model" if turn.role == "assistant" else "user",
            "parts": [{"text": turn.content}],
        }
        for turn in request.turns()
    ]
    contents.append({"role": "user", "parts": [{"text": request.prompt}]})

    body: dict[str, Any] = {"contents": contents}
    if request.system_instruction:
        body["systemInstruction"] = {"parts": [{"text": request.system_instruction}]}

    generation_config: dict[str, Any] = {}
    if request.temperature is not None:
        generation_config["temperature"] = request.temperature
    if request.max_output_tokens is not None:
        generation_config["maxOutputTokens"] = request.max_output_tokens
    if generation_config:
        body["generationConfig"] = generation_config
    return body


def extract_text(data: Any) -> str:
    """Extract text from a generateContent response.

    Raises:
        ProviderRejectedRequestError: If the body carries an error or a block reason
        MalformedResponseError: If there are no candidates or parts
    """
    if not isinstance(data, dict):
        raise MalformedResponseError("Gemini returned a non-object response")

    if data.get("error"):
        error = data["error"]
        message = error.get("message") if isinstance(error, dict) else error
        raise ProviderRejectedRequestError(f"Gemini API error: {message}")

    candidates = data.get("candidates") or []
    if not candidates:
        # Check for safety block
        feedback = data.get("promptFeedback") or {}
        if feedback.get("blockReason"):
            raise ProviderRejectedRequestError(
                f"Gemini blocked request: {feedback['blockReason']}"
            )
        raise MalformedResponseError("Gemini returned no candidates")

    content = candidates[0].get("content") or {}
    parts = content.get("parts")
    if not isinstance(parts, list) or not parts:
        raise MalformedResponseError("Gemini returned empty content")

    return "".join(
        part.get("text", "") for part in parts if isinstance(part, dict)
    )


class GeminiProvider(BaseLLMProvider):
    """Google Gemini LLM provider implementation.

    Example:
        >>> provider = GeminiProvider(api_key="your-api-key")
        >>> text = await provider.ask(
        ...     NormalizedRequest(prompt="Hello", model="gemini-1.5-flash")
        ... )
    """

    name = ProviderName.GEMINI
    credential_hint = "GEMINI_API_KEY or GOOGLE_API_KEY"

    def _session(self, api_key: str, timeout_ms: int) -> aiohttp.ClientSession:
        """Create a session scoped to one call."""
        return aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=timeout_ms / 1000),
            headers={
                "Content-Type": "application/json",
                "x-goog-api-key": api_key,
            },
        )

    async def ask(self, request: NormalizedRequest) -> str:
        """Generate a single completion from Gemini."""
        api_key = self._require_credential()
        url = f"{GEMINI_API_BASE}/models/{request.model}:generateContent"
        body = build_request_body(request)

        try:
            async with self._session(api_key, request.timeout_ms) as session:
                async with session.post(url, json=body) as response:
                    await self._raise_for_status(response)
                    try:
                        data = await response.json()
                    except (aiohttp.ContentTypeError, ValueError) as e:
                        raise MalformedResponseError(
                            f"Failed to parse Gemini response: {e}"
                        ) from e
        except TimeoutError as e:
            raise TransportError(f"Gemini request timed out: {e}") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Gemini connection error: {e}") from e

        return extract_text(data)

    @staticmethod
    async def _raise_for_status(response: aiohttp.ClientResponse) -> None:
        if response.status in (401, 403):
            raise LLMAuthenticationError("Gemini authentication failed: Invalid API key")
        if response.status == 429:
            raise LLMRateLimitError("Gemini rate limit exceeded")
        if response.status >= 400:
            error_text = await response.text()
            logger.debug(f"Gemini error body: {error_text}")
            raise ProviderRejectedRequestError(
                f"Gemini API error ({response.status}): {error_text}"
            )
