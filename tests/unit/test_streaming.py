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

"""Unit tests for the OpenAI streaming events."""

import json

import pytest

from askall.core.models import AskRequest, ProviderName
from askall.llm.base import TransportError
from askall.orchestration import format_sse, stream_events


async def collect(request, settings, factory) -> list[dict]:
    return [event async for event in stream_events(request, settings, provider_factory=factory)]


@pytest.mark.unit
class TestStreamEvents:
    """Test stream_events event sequences."""

    @pytest.mark.asyncio
    async def test_deltas_then_done(self, settings, stub_provider_class) -> None:
        stub = stub_provider_class(fragments=["Hel", "lo"])

        events = await collect(AskRequest(prompt="hi"), settings, lambda n, s: stub)

        assert events[0] == {"provider": "openai", "delta": "Hel"}
        assert events[1] == {"provider": "openai", "delta": "lo"}
        done = events[2]
        assert done["done"] is True
        assert done["text"] == "Hello"
        assert done["provider"] == "openai"
        assert done["latencyMs"] >= 0
        assert len(events) == 3

    @pytest.mark.asyncio
    async def test_missing_prompt(self, settings, stub_provider_class) -> None:
        stub = stub_provider_class()

        events = await collect(AskRequest(prompt=""), settings, lambda n, s: stub)

        assert events == [{"error": "Missing prompt"}]
        assert stub.call_count == 0

    @pytest.mark.asyncio
    async def test_missing_credential(self, bare_settings, stub_provider_class) -> None:
        stub = stub_provider_class()

        events = await collect(AskRequest(prompt="hi"), bare_settings, lambda n, s: stub)

        assert events == [{"error": "Missing OPENAI_API_KEY"}]
        assert stub.call_count == 0

    @pytest.mark.asyncio
    async def test_failure_mid_stream_ends_with_error(self, settings, stub_provider_class):
        stub = stub_provider_class(fragments=["partial"], errors=[TransportError("socket closed")])

        events = await collect(AskRequest(prompt="hi"), settings, lambda n, s: stub)

        assert events == [
            {"provider": "openai", "delta": "partial"},
            {"error": "socket closed"},
        ]

    @pytest.mark.asyncio
    async def test_single_attempt_only(self, settings, stub_provider_class) -> None:
        stub = stub_provider_class(fragments=[], errors=[TransportError("down")])

        events = await collect(AskRequest(prompt="hi"), settings, lambda n, s: stub)

        assert events == [{"error": "down"}]
        assert stub.call_count == 1

    @pytest.mark.asyncio
    async def test_model_precedence(self, settings, stub_provider_class) -> None:
        stub = stub_provider_class()
        factory = lambda n, s: stub  # noqa: E731

        await collect(
            AskRequest(prompt="hi", model="gpt-4o", models={"openai": "gpt-4o-mini"}),
            settings,
            factory,
        )
        await collect(AskRequest(prompt="hi", models={"openai": "gpt-4o-mini"}), settings, factory)
        await collect(AskRequest(prompt="hi"), settings, factory)

        assert [r.model for r in stub.requests] == [
            "gpt-4o",
            "gpt-4o-mini",
            settings.openai_model,
        ]

    @pytest.mark.asyncio
    async def test_request_passthrough(self, settings, stub_provider_class) -> None:
        stub = stub_provider_class()
        request = AskRequest(
            prompt="hi",
            system="Be brief",
            temperature=0.5,
            history=[{"role": "user", "content": "earlier"}],
        )

        await collect(request, settings, lambda n, s: stub)

        sent = stub.requests[0]
        assert sent.system_instruction == "Be brief"
        assert sent.temperature == 0.5
        assert sent.max_output_tokens is None
        assert [t.content for t in sent.transcript] == ["earlier"]

    @pytest.mark.asyncio
    async def test_factory_receives_openai(self, settings, stub_provider_class) -> None:
        seen = []

        def factory(name, s):
            seen.append(name)
            return stub_provider_class()

        await collect(AskRequest(prompt="hi"), settings, factory)

        assert seen == [ProviderName.OPENAI]


@pytest.mark.unit
class TestFormatSse:
    """Test Server-Sent-Events framing."""

    def test_frame(self) -> None:
        frame = format_sse({"provider": "openai", "delta": "hi"})

        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        assert json.loads(frame[len("data: ") :]) == {"provider": "openai", "delta": "hi"}

    def test_error_frame(self) -> None:
        assert format_sse({"error": "Missing prompt"}) == 'data: {"error": "Missing prompt"}\n\n'
