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

"""OpenAI LLM provider implementation.

Implements the BaseLLMProvider interface for OpenAI's API:
- Chat Completions for ordinary models, with the gpt-5 family quirks
  (no custom temperature, ``max_completion_tokens`` instead of ``max_tokens``)
- The Responses API for deep-research models, which take a single flattened
  input string and a fixed tool declaration
- Streaming chat completions and image generation
"""

from __future__ import annotations

import logging
import re
from collections.abc import AsyncGenerator
from typing import Any

import openai

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
from .prompts import deep_research_planner_instructions

logger = logging.getLogger(__name__)

DEEP_RESEARCH_PATTERN = re.compile(r"deep-research", re.IGNORECASE)
COMPLETION_TOKENS_PATTERNS = (
    re.compile(r"gpt-5", re.IGNORECASE),
    re.compile(r"-2025-"),
)

# At least one of web_search_preview or mcp tools must be declared
DEEP_RESEARCH_TOOLS: list[dict[str, Any]] = [
    {"type": "web_search_preview"},
    {"type": "code_interpreter", "container": {"type": "auto"}},
]

IMAGE_MODEL = "gpt-image-1"

_TRANSCRIPT_LABELS = {"user": "User", "assistant": "Assistant", "system": "System"}


def is_deep_research_model(model: str) -> bool:
    """Whether a model only supports the Responses API."""
    return bool(DEEP_RESEARCH_PATTERN.search(model or ""))


def uses_completion_tokens(model: str) -> bool:
    """Whether a model rejects custom temperature and renames max_tokens."""
    return any(pattern.search(model or "") for pattern in COMPLETION_TOKENS_PATTERNS)


def build_chat_messages(request: NormalizedRequest) -> list[dict[str, str]]:
    """System message, transcript and final prompt as chat messages."""
    messages: list[dict[str, str]] = []
    if request.system_instruction:
        messages.append({"role": "system", "content": request.system_instruction})
    for turn in request.turns():
        messages.append({"role": turn.role, "content": turn.content})
    messages.append({"role": "user", "content": request.prompt})
    return messages


def build_chat_payload(request: NormalizedRequest) -> dict[str, Any]:
    """Chat Completions payload with model-family-specific parameters."""
    payload: dict[str, Any] = {
        "model": request.model,
        "messages": build_chat_messages(request),
    }
    if uses_completion_tokens(request.model):
        # Newer models only accept the default temperature
        if request.max_output_tokens is not None:
            payload["max_completion_tokens"] = request.max_output_tokens
    else:
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_output_tokens is not None:
            payload["max_tokens"] = request.max_output_tokens
    return payload


def build_deep_research_input(request: NormalizedRequest) -> str:
    """Flatten planner instructions, system, transcript and prompt into one string."""
    parts = [f"System: {deep_research_planner_instructions()}"]
    if request.system_instruction:
        parts.append(f"System: {request.system_instruction}")
    for turn in request.turns():
        parts.append(f"{_TRANSCRIPT_LABELS[turn.role]}: {turn.content}")
    parts.append(f"User: {request.prompt}")
    return "\n\n".join(parts)


def _content_text(content: Any) -> str:
    if isinstance(content, list):
        return "".join(
            part if isinstance(part, str) else str(getattr(part, "text", "") or "")
            for part in content
        )
    return str(content)


class OpenAIProvider(BaseLLMProvider):
    """OpenAI LLM provider implementation.

    Uses the official OpenAI Python SDK (v1.0+). A client is opened per
    call, after the credential check, and closed when the call settles,
    so a missing key never reaches the SDK and no connection pool outlives
    its request.

    Example:
        >>> provider = OpenAIProvider(api_key="sk-...")
        >>> text = await provider.ask(
        ...     NormalizedRequest(prompt="Hello", model="gpt-4o-mini")
        ... )
    """

    name = ProviderName.OPENAI
    credential_hint = "OPENAI_API_KEY"

    def _client(self, timeout_ms: int | None = None) -> openai.AsyncOpenAI:
        api_key = self._require_credential()
        if timeout_ms is None:
            return openai.AsyncOpenAI(api_key=api_key)
        return openai.AsyncOpenAI(api_key=api_key, timeout=timeout_ms / 1000)

    async def ask(self, request: NormalizedRequest) -> str:
        """Generate a single completion from OpenAI.

        Deep-research models are routed to the Responses API; everything
        else goes through Chat Completions.
        """
        async with self._client(request.timeout_ms) as client:
            if is_deep_research_model(request.model):
                return await self._ask_deep_research(client, request)
            return await self._ask_chat(client, request)

    async def _ask_chat(self, client: openai.AsyncOpenAI, request: NormalizedRequest) -> str:
        payload = build_chat_payload(request)
        logger.debug(f"OpenAI chat.completions.create model={request.model}")
        try:
            completion = await client.chat.completions.create(**payload)
        except openai.APIError as e:
            raise _normalize_error(e) from e

        choices = getattr(completion, "choices", None)
        if not choices:
            raise MalformedResponseError("OpenAI returned no choices")

        content = choices[0].message.content
        if content is None:
            raise MalformedResponseError("OpenAI returned empty response")
        return _content_text(content)

    async def _ask_deep_research(
        self, client: openai.AsyncOpenAI, request: NormalizedRequest
    ) -> str:
        """Run a deep-research model through the Responses API.

        Temperature and max tokens have no mapping here and are ignored.
        """
        logger.debug(f"OpenAI responses.create model={request.model}")
        try:
            response = await client.responses.create(
                model=request.model,
                input=build_deep_research_input(request),
                tools=DEEP_RESEARCH_TOOLS,
            )
        except openai.APIError as e:
            raise _normalize_error(e) from e

        output_text = getattr(response, "output_text", None)
        if isinstance(output_text, str) and output_text:
            return output_text

        output = getattr(response, "output", None)
        if not isinstance(output, list):
            raise MalformedResponseError("OpenAI deep research response has no output")

        combined = []
        for item in output:
            text = getattr(item, "text", None)
            if isinstance(text, str):
                combined.append(text)
                continue
            content = getattr(item, "content", None)
            if isinstance(content, list):
                combined.append("".join(getattr(c, "text", None) or "" for c in content))
        return "".join(combined)

    async def stream(self, request: NormalizedRequest) -> AsyncGenerator[str, None]:
        """Generate a streaming completion from OpenAI.

        Yields:
            Non-empty text fragments in arrival order
        """
        async with self._client() as client:
            if is_deep_research_model(request.model):
                # Not streamed by the Responses API; delivered as one fragment
                text = await self._ask_deep_research(client, request)
                if text:
                    yield text
                return

            payload = build_chat_payload(request)
            try:
                stream = await client.chat.completions.create(**payload, stream=True)
                async for chunk in stream:
                    if not chunk.choices:
                        continue
                    delta = chunk.choices[0].delta.content
                    if delta:
                        yield delta
            except openai.APIError as e:
                raise _normalize_error(e) from e

    async def draw(self, prompt: str, size: str = "1024x1024") -> str:
        """Generate an image and return it as a PNG data URL.

        Raises:
            MissingCredentialError: If no API key is configured
            MalformedResponseError: If no image data came back
        """
        async with self._client() as client:
            try:
                response = await client.images.generate(
                    model=IMAGE_MODEL, prompt=prompt, size=size
                )
            except openai.APIError as e:
                raise _normalize_error(e) from e

        data = getattr(response, "data", None) or []
        b64 = getattr(data[0], "b64_json", None) if data else None
        if not b64:
            raise MalformedResponseError("No image generated")
        return f"data:image/png;base64,{b64}"


def _normalize_error(error: openai.APIError) -> Exception:
    """Map an OpenAI SDK fault onto the provider error taxonomy."""
    if isinstance(error, openai.AuthenticationError):
        return LLMAuthenticationError(f"OpenAI authentication failed: {error}")
    if isinstance(error, openai.RateLimitError):
        return LLMRateLimitError(f"OpenAI rate limit exceeded: {error}")
    if isinstance(error, openai.APITimeoutError):
        return TransportError(f"OpenAI request timed out: {error}")
    if isinstance(error, openai.APIConnectionError):
        return TransportError(f"OpenAI connection error: {error}")
    if isinstance(error, openai.APIResponseValidationError):
        return MalformedResponseError(f"OpenAI returned an invalid response: {error}")
    return ProviderRejectedRequestError(f"OpenAI API error: {error}")
