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

"""Concurrent fan-out of one request to several LLM providers.

Key components:
- with_deadline: Races one call against a timer without cancelling it
- with_retries: Bounded sequential attempts, each under its own deadline
- resolve_history: Picks the transcript each provider should see
- FanoutOrchestrator: Runs every requested provider and joins the outcomes
- stream_events: Incremental delivery for the chat-completion provider

Example:
    >>> from askall.orchestration import FanoutOrchestrator
    >>> from askall.utils.config import get_settings
    >>>
    >>> orchestrator = FanoutOrchestrator(get_settings())
    >>> result = await orchestrator.dispatch(
    ...     AskRequest(prompt="Hello", providers={"openai": True, "gemini": True})
    ... )
"""

from .attachments import MAX_ATTACHMENT_CHARS, inline_attachments
from .deadline import Outcome, with_deadline
from .history import resolve_history
from .orchestrator import FanoutOrchestrator, missing_credential_message
from .retry import RetryPolicy, with_retries
from .streaming import format_sse, stream_events

__all__ = [
    "MAX_ATTACHMENT_CHARS",
    "FanoutOrchestrator",
    "Outcome",
    "RetryPolicy",
    "format_sse",
    "inline_attachments",
    "missing_credential_message",
    "resolve_history",
    "stream_events",
    "with_deadline",
    "with_retries",
]
