# Copyright 2025 KTTC AI (https://github.com/kttc-ai)
# SPDX-License-Identifier: Apache-2.0
"""Property-based tests for request shaping.

Uses Hypothesis to check invariants of turn coercion, history selection,
attachment inlining and override layering.
"""

from typing import Any

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from askall.core.models import Attachment, Turn
from askall.orchestration.attachments import inline_attachments, render_attachment
from askall.orchestration.history import resolve_history
from askall.utils.overrides import OVERRIDE_KEYS, ConfigLayer, merge_layers

# ============================================================================
# Custom Strategies
# ============================================================================

json_scalars = st.none() | st.booleans() | st.integers() | st.floats(allow_nan=False) | st.text()


@st.composite
def loose_turn_strategy(draw: Any) -> Any:
    """Generate history entries of any shape a client might send."""
    role = draw(st.sampled_from(["user", "assistant", "system", "tool", ""]) | json_scalars)
    content = draw(json_scalars)
    return draw(st.sampled_from([{"role": role, "content": content}, {"role": role}, content]))


@st.composite
def layer_strategy(draw: Any) -> ConfigLayer:
    """Generate a layer with a random subset of override keys."""
    keys = draw(st.lists(st.sampled_from(OVERRIDE_KEYS), unique=True))
    values = {key: draw(st.none() | st.integers(min_value=0, max_value=10)) for key in keys}
    return ConfigLayer(name=draw(st.text(max_size=8)), values=values)


# ============================================================================
# Property Tests
# ============================================================================


@pytest.mark.unit
class TestTurnProperties:
    """Property-based tests for Turn coercion."""

    @given(raw=loose_turn_strategy())
    @settings(max_examples=200)
    def test_coerce_never_raises(self, raw: Any) -> None:
        turn = Turn.coerce(raw)

        assert turn.role in ("user", "assistant", "system")
        assert isinstance(turn.content, str)


@pytest.mark.unit
class TestHistoryProperties:
    """Property-based tests for history selection."""

    @given(
        provider_turns=st.lists(loose_turn_strategy(), max_size=5),
        legacy=st.lists(loose_turn_strategy(), max_size=5),
    )
    def test_provider_history_always_wins(self, provider_turns: list, legacy: list) -> None:
        histories = {"claude": provider_turns, "model1": legacy}

        turns = resolve_history("claude", histories=histories, legacy_history=legacy)

        assert turns == [Turn.coerce(entry) for entry in provider_turns]

    @given(histories=st.dictionaries(st.text(max_size=10), json_scalars | st.lists(json_scalars)))
    def test_any_mapping_resolves(self, histories: dict) -> None:
        turns = resolve_history("openai", histories=histories)

        assert all(isinstance(turn, Turn) for turn in turns)


@pytest.mark.unit
class TestAttachmentProperties:
    """Property-based tests for attachment inlining."""

    @given(content=st.text(max_size=300), limit=st.integers(min_value=1, max_value=200))
    def test_content_never_exceeds_limit(self, content: str, limit: int) -> None:
        block = render_attachment(Attachment(name="f.txt", content=content), limit=limit)

        body = block[len("[Attachment: f.txt]\n") :]
        if len(content) <= limit:
            assert body == content
        else:
            assert body.startswith(content[:limit])
            assert body.endswith(f"\n[...truncated {len(content) - limit} characters]")

    @given(prompt=st.text(min_size=1, max_size=50), count=st.integers(min_value=0, max_value=4))
    def test_prompt_stays_last(self, prompt: str, count: int) -> None:
        attachments = [Attachment(name=f"a{i}", content="x") for i in range(count)]

        result = inline_attachments(prompt, attachments)

        assert result.endswith(prompt)
        assert result.count("[Attachment: ") >= count


@pytest.mark.unit
class TestMergeProperties:
    """Property-based tests for override layering."""

    @given(layers=st.lists(layer_strategy(), max_size=5))
    def test_last_non_none_value_wins(self, layers: list[ConfigLayer]) -> None:
        merged = merge_layers(layers)

        for key in OVERRIDE_KEYS:
            candidates = [layer.values[key] for layer in layers if layer.values.get(key) is not None]
            if candidates:
                assert merged[key] == candidates[-1]
            else:
                assert key not in merged
