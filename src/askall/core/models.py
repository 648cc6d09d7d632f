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

"""Core data models for askall.

This module defines the request and result shapes shared by the CLI,
the HTTP server and the orchestration layer:
- Provider names and conversation turns
- The top-level ask request (camelCase on the wire)
- Per-provider outcomes joined into the aggregate result
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

TurnRole = Literal["user", "assistant", "system"]

_ROLES: frozenset[str] = frozenset({"user", "assistant", "system"})


class ProviderName(str, Enum):
    """Supported LLM providers.

    Declaration order is the dispatch and rendering order.
    """

    OPENAI = "openai"
    CLAUDE = "claude"
    GEMINI = "gemini"

    @property
    def label(self) -> str:
        """Human-readable provider label used in messages and headers."""
        return _LABELS[self]


_LABELS: dict[ProviderName, str] = {
    ProviderName.OPENAI: "OpenAI",
    ProviderName.CLAUDE: "Claude",
    ProviderName.GEMINI: "Gemini",
}


class Turn(BaseModel):
    """One prior conversational exchange attached to a request."""

    role: TurnRole = Field(default="user", description="Author of the turn")
    content: str = Field(default="", description="Turn text (may be empty)")

    model_config = ConfigDict(frozen=True)

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value: Any) -> str:
        return value if isinstance(value, str) and value in _ROLES else "user"

    @field_validator("content", mode="before")
    @classmethod
    def _normalize_content(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @classmethod
    def coerce(cls, raw: Any) -> Turn:
        """Build a turn from a loosely-shaped JSON value.

        Unknown roles fall back to ``user`` and non-string content to an
        empty string, so malformed history entries never reject a request.
        """
        if isinstance(raw, Turn):
            return raw
        if isinstance(raw, dict):
            return cls(role=raw.get("role"), content=raw.get("content"))
        return cls()


class Attachment(BaseModel):
    """A small text file inlined into the prompt before dispatch."""

    name: str = Field(default="attachment", description="File name shown to the model")
    content: str = Field(default="", description="File text content")

    @field_validator("name", mode="before")
    @classmethod
    def _default_name(cls, value: Any) -> str:
        return value if isinstance(value, str) and value.strip() else "attachment"


class AskRequest(BaseModel):
    """Top-level fan-out request.

    Field names are snake_case in Python and camelCase on the wire
    (``maxTokens``, ``timeoutMs``, ``useModelConfig``, ``modelId``...).
    """

    prompt: str | None = Field(default=None, description="User prompt")
    system: str | None = Field(default=None, description="System instruction / persona")
    providers: dict[str, Any] = Field(
        default_factory=dict, description="Providers explicitly requested (true to run)"
    )
    models: dict[str, str | None] = Field(
        default_factory=dict, description="Per-provider model overrides"
    )
    model: str | None = Field(default=None, description="Model for the streaming endpoint")
    temperature: float | None = Field(default=None, description="Sampling temperature")
    max_tokens: int | None = Field(default=None, alias="maxTokens", gt=0)
    timeout_ms: int | None = Field(default=None, alias="timeoutMs", gt=0)
    history: list[Any] | None = Field(default=None, description="Shared legacy transcript")
    histories: dict[str, Any] | None = Field(
        default=None, description="Transcripts keyed by provider, card id or legacy slot"
    )
    show_reasoning: bool = Field(default=False, alias="showReasoning")
    use_model_config: bool = Field(default=False, alias="useModelConfig")
    model_id: str | None = Field(default=None, alias="modelId")
    attachments: list[Attachment] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, extra="ignore", protected_namespaces=())

    @field_validator("providers", "models", mode="before")
    @classmethod
    def _null_mapping(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("attachments", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def has_prompt(self) -> bool:
        """Whether a non-blank prompt was supplied."""
        return bool(self.prompt and self.prompt.strip())

    def requested(self, provider: ProviderName) -> bool:
        """Whether the caller explicitly asked for this provider."""
        return self.providers.get(provider.value) is True

    def model_for(self, provider: ProviderName) -> str | None:
        """Caller's model override for a provider, if any."""
        return self.models.get(provider.value) or None


class ProviderOutcome(BaseModel):
    """Uniform settled result of one provider for one request."""

    provider: ProviderName
    model: str
    ok: bool
    text: str | None = None
    error: str | None = None
    latency_ms: int = Field(default=0, alias="latencyMs", ge=0)

    model_config = ConfigDict(frozen=True, populate_by_name=True, use_enum_values=True)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with wire names, omitting absent text/error."""
        return self.model_dump(by_alias=True, exclude_none=True)


AggregateResult = dict[str, ProviderOutcome]


def aggregate_to_dict(result: AggregateResult) -> dict[str, dict[str, Any]]:
    """Serialize an aggregate result for JSON output."""
    return {name: outcome.to_dict() for name, outcome in result.items()}
