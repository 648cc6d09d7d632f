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

"""Anthropic (Claude) LLM provider implementation.

Implements the BaseLLMProvider interface for Anthropic's Messages API.
"""

from __future__ import annotations

from typing import Any

import anthropic

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

# The Messages API requires max_tokens on every call
DEFAULT_MAX_TOKENS = 1024


def build_messages(request: NormalizedRequest) -> list[dict[str, str]]:
    """Transcript and prompt as Claude messages.

    Claude only knows user and assistant turns; system turns are sent as user.
    """
    messages = [
        {"role": "assistant" if turn.role == "assistant" else "user", "content": turn.content}
        for turn in request.turns()
    ]
    messages.append({"role": "user", "content": request.prompt})
    return messages


def build_payload(request: NormalizedRequest) -> dict[str, Any]:
    """Messages API payload for a normalized request."""
    payload: dict[str, Any] = {
        "model": request.model,
        "max_tokens": request.max_output_tokens or DEFAULT_MAX_TOKENS,
        "messages": build_messages(request),
    }
    if request.system_instruction:
        payload["system"] = request.system_instruction
    if request.temperature is not None:
        payload["temperature"] = request.temperature
    return payload


class AnthropicProvider(BaseLLMProvider):
    """Anthropic Claude LLM provider implementation.

    Uses the official Anthropic Python SDK. The client is closed as soon
    as its call settles.

    Example:
        >>> provider = AnthropicProvider(api_key="sk-ant-...")
        >>> text = await provider.ask(
        ...     NormalizedRequest(prompt="Hello", model="claude-3-5-sonnet-latest")
        ... )
    """

    name = ProviderName.CLAUDE
    credential_hint = "ANTHROPIC_API_KEY"

    async def ask(self, request: NormalizedRequest) -> str:
        """Generate a single completion from Claude.

        Claude returns content as a list of blocks; text blocks are joined
        in order and any other block type is skipped.
        """
        api_key = self._require_credential()
        timeout = request.timeout_ms / 1000

        try:
            async with anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout) as client:
                response = await client.messages.create(**build_payload(request))
        except anthropic.AuthenticationError as e:
            raise LLMAuthenticationError(f"Anthropic authentication failed: {e}") from e
        except anthropic.RateLimitError as e:
            raise LLMRateLimitError(f"Anthropic rate limit exceeded: {e}") from e
        except anthropic.APITimeoutError as e:
            raise TransportError(f"Anthropic request timed out: {e}") from e
        except anthropic.APIConnectionError as e:
            raise TransportError(f"Anthropic connection error: {e}") from e
        except anthropic.APIResponseValidationError as e:
            raise MalformedResponseError(f"Anthropic returned an invalid response: {e}") from e
        except anthropic.APIError as e:
            raise ProviderRejectedRequestError(f"Anthropic API error: {e}") from e

        blocks = getattr(response, "content", None)
        if blocks is None:
            raise MalformedResponseError("Anthropic response has no content")

        return "".join(
            block.text for block in blocks if getattr(block, "type", None) == "text"
        )
