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

"""Unit tests for core data models."""

import pytest
from pydantic import ValidationError

from askall.core.models import (
    AskRequest,
    Attachment,
    ProviderName,
    ProviderOutcome,
    Turn,
    aggregate_to_dict,
)
from askall.llm.base import NormalizedRequest


@pytest.mark.unit
class TestProviderName:
    """Test ProviderName ordering and labels."""

    def test_dispatch_order(self) -> None:
        assert [p.value for p in ProviderName] == ["openai", "claude", "gemini"]

    def test_labels(self) -> None:
        assert ProviderName.OPENAI.label == "OpenAI"
        assert ProviderName.CLAUDE.label == "Claude"
        assert ProviderName.GEMINI.label == "Gemini"


@pytest.mark.unit
class TestTurn:
    """Test Turn coercion of loose JSON values."""

    def test_valid_turn(self) -> None:
        turn = Turn.coerce({"role": "assistant", "content": "hi"})
        assert turn == Turn(role="assistant", content="hi")

    @pytest.mark.parametrize("role", ["robot", None, 3, ["user"]])
    def test_unknown_role_becomes_user(self, role: object) -> None:
        assert Turn.coerce({"role": role, "content": "x"}).role == "user"

    def test_non_string_content_becomes_empty(self) -> None:
        assert Turn.coerce({"role": "user", "content": {"text": "x"}}).content == ""

    def test_non_dict_becomes_empty_user_turn(self) -> None:
        assert Turn.coerce("hello") == Turn(role="user", content="")

    def test_turn_passthrough(self) -> None:
        turn = Turn(role="system", content="rules")
        assert Turn.coerce(turn) is turn


@pytest.mark.unit
class TestAskRequest:
    """Test AskRequest wire parsing."""

    def test_camel_case_aliases(self) -> None:
        request = AskRequest.model_validate(
            {
                "prompt": "Hi",
                "maxTokens": 50,
                "timeoutMs": 2000,
                "useModelConfig": True,
                "modelId": "card-2",
                "showReasoning": True,
            }
        )

        assert request.max_tokens == 50
        assert request.timeout_ms == 2000
        assert request.use_model_config is True
        assert request.model_id == "card-2"
        assert request.show_reasoning is True

    def test_snake_case_names_accepted(self) -> None:
        request = AskRequest(prompt="Hi", max_tokens=10, timeout_ms=100)
        assert request.max_tokens == 10
        assert request.timeout_ms == 100

    def test_unknown_fields_ignored(self) -> None:
        request = AskRequest.model_validate({"prompt": "Hi", "maxCompletionTokens": 5})
        assert request.prompt == "Hi"

    @pytest.mark.parametrize("prompt", [None, "", "   "])
    def test_has_prompt_false_for_blank(self, prompt: str | None) -> None:
        assert AskRequest(prompt=prompt).has_prompt is False

    def test_only_literal_true_requests_provider(self) -> None:
        request = AskRequest(
            prompt="Hi", providers={"openai": True, "claude": "yes", "gemini": 1}
        )

        assert request.requested(ProviderName.OPENAI) is True
        assert request.requested(ProviderName.CLAUDE) is False
        assert request.requested(ProviderName.GEMINI) is False

    def test_model_for(self) -> None:
        request = AskRequest(prompt="Hi", models={"claude": "claude-3-haiku", "gemini": ""})

        assert request.model_for(ProviderName.CLAUDE) == "claude-3-haiku"
        assert request.model_for(ProviderName.GEMINI) is None
        assert request.model_for(ProviderName.OPENAI) is None

    def test_null_containers_become_empty(self) -> None:
        request = AskRequest.model_validate(
            {"prompt": "Hi", "providers": None, "models": None, "attachments": None}
        )

        assert request.providers == {}
        assert request.models == {}
        assert request.attachments == []

    def test_null_model_override_ignored(self) -> None:
        request = AskRequest.model_validate({"prompt": "Hi", "models": {"openai": None}})

        assert request.model_for(ProviderName.OPENAI) is None

    def test_attachments_parsed(self) -> None:
        request = AskRequest.model_validate(
            {"prompt": "Hi", "attachments": [{"name": "a.txt", "content": "A"}, {"content": "B"}]}
        )

        assert request.attachments == [
            Attachment(name="a.txt", content="A"),
            Attachment(name="attachment", content="B"),
        ]

    def test_rejects_non_positive_max_tokens(self) -> None:
        with pytest.raises(ValidationError):
            AskRequest.model_validate({"prompt": "Hi", "maxTokens": 0})


@pytest.mark.unit
class TestProviderOutcome:
    """Test ProviderOutcome serialization."""

    def test_success_omits_error(self) -> None:
        outcome = ProviderOutcome(
            provider=ProviderName.OPENAI, model="gpt-4o", ok=True, text="hello", latency_ms=50
        )

        assert outcome.to_dict() == {
            "provider": "openai",
            "model": "gpt-4o",
            "ok": True,
            "text": "hello",
            "latencyMs": 50,
        }

    def test_failure_omits_text(self) -> None:
        outcome = ProviderOutcome(
            provider=ProviderName.GEMINI, model="gemini-1.5-flash", ok=False, error="boom"
        )

        data = outcome.to_dict()
        assert "text" not in data
        assert data["error"] == "boom"
        assert data["latencyMs"] == 0

    def test_negative_latency_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ProviderOutcome(provider=ProviderName.OPENAI, model="m", ok=True, latency_ms=-1)

    def test_aggregate_to_dict(self) -> None:
        outcome = ProviderOutcome(provider=ProviderName.CLAUDE, model="m", ok=True, text="t")
        assert aggregate_to_dict({"claude": outcome}) == {"claude": outcome.to_dict()}


@pytest.mark.unit
class TestNormalizedRequest:
    """Test NormalizedRequest invariants."""

    @pytest.mark.parametrize("prompt", ["", "  \n"])
    def test_empty_prompt_rejected(self, prompt: str) -> None:
        with pytest.raises(ValueError):
            NormalizedRequest(prompt=prompt, model="gpt-4o")

    def test_turns_drop_empty_content(self) -> None:
        request = NormalizedRequest(
            prompt="Hi",
            model="gpt-4o",
            transcript=(Turn(content="kept"), Turn(content=""), Turn(role="assistant", content="also")),
        )

        assert [t.content for t in request.turns()] == ["kept", "also"]
