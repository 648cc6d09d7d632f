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

"""Incremental delivery for the chat-completion provider.

A single best-effort attempt: no retries and no deadline wrapper. Faults
are reported as one ``{"error": ...}`` event, after which the stream ends.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import AsyncGenerator
from typing import Any

from askall.core.models import AskRequest, ProviderName
from askall.llm import NormalizedRequest, build_provider
from askall.utils.config import Settings

from .attachments import inline_attachments
from .history import resolve_history
from .orchestrator import ProviderFactory, missing_credential_message

logger = logging.getLogger(__name__)

STREAM_PROVIDER = ProviderName.OPENAI


def format_sse(event: dict[str, Any]) -> str:
    """Frame one event as a Server-Sent-Events data line."""
    return f"data: {json.dumps(event)}\n\n"


async def stream_events(
    request: AskRequest,
    settings: Settings,
    provider_factory: ProviderFactory | None = None,
) -> AsyncGenerator[dict[str, Any], None]:
    """Stream one OpenAI completion as a sequence of event dicts.

    Yields:
        ``{"provider": "openai", "delta": ...}`` for each fragment, then
        ``{"provider": "openai", "done": True, "text": ..., "latencyMs": ...}``,
        or a single ``{"error": ...}`` on any failure
    """
    if not request.has_prompt:
        yield {"error": "Missing prompt"}
        return
    if not settings.has_credential(STREAM_PROVIDER):
        yield {"error": missing_credential_message(STREAM_PROVIDER)}
        return

    provider_key = STREAM_PROVIDER.value
    started_at = time.monotonic()
    accumulated: list[str] = []

    try:
        normalized = NormalizedRequest(
            prompt=inline_attachments(request.prompt or "", request.attachments),
            model=request.model
            or request.model_for(STREAM_PROVIDER)
            or settings.default_model_for(STREAM_PROVIDER),
            system_instruction=request.system or None,
            transcript=tuple(
                resolve_history(
                    provider_key,
                    histories=request.histories,
                    legacy_history=request.history,
                    model_id=request.model_id,
                )
            ),
            temperature=request.temperature,
            max_output_tokens=request.max_tokens,
        )
        adapter = (provider_factory or build_provider)(STREAM_PROVIDER, settings)
        async for delta in adapter.stream(normalized):
            accumulated.append(delta)
            yield {"provider": provider_key, "delta": delta}
    except Exception as e:
        logger.warning(f"OpenAI stream failed: {e}")
        yield {"error": str(e) or type(e).__name__}
        return

    yield {
        "provider": provider_key,
        "done": True,
        "text": "".join(accumulated),
        "latencyMs": int((time.monotonic() - started_at) * 1000),
    }
