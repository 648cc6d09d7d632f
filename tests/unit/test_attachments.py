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

"""Unit tests for attachment inlining."""

import pytest

from askall.core.models import Attachment
from askall.orchestration.attachments import (
    MAX_ATTACHMENT_CHARS,
    inline_attachments,
    render_attachment,
)


@pytest.mark.unit
class TestInlineAttachments:
    """Test attachment rendering and truncation."""

    def test_no_attachments_returns_prompt(self) -> None:
        assert inline_attachments("Hello", []) == "Hello"
        assert inline_attachments("Hello", None) == "Hello"

    def test_blocks_precede_prompt(self) -> None:
        attachments = [
            Attachment(name="a.py", content="x = 1"),
            Attachment(name="b.md", content="# Title"),
        ]

        result = inline_attachments("Review these", attachments)

        assert result == (
            "[Attachment: a.py]\nx = 1\n\n[Attachment: b.md]\n# Title\n\nReview these"
        )

    def test_blank_name_defaults(self) -> None:
        block = render_attachment(Attachment(name="  ", content="data"))
        assert block == "[Attachment: attachment]\ndata"

    def test_content_at_limit_untouched(self) -> None:
        content = "a" * MAX_ATTACHMENT_CHARS
        block = render_attachment(Attachment(name="big.txt", content=content))
        assert block == f"[Attachment: big.txt]\n{content}"

    def test_oversized_content_truncated(self) -> None:
        content = "a" * (MAX_ATTACHMENT_CHARS + 5)

        block = render_attachment(Attachment(name="big.txt", content=content))

        assert block.startswith("[Attachment: big.txt]\n" + "a" * MAX_ATTACHMENT_CHARS + "\n")
        assert block.endswith("\n[...truncated 5 characters]")

    def test_custom_limit(self) -> None:
        result = inline_attachments("Q", [Attachment(name="n", content="abcdef")], limit=3)
        assert result == "[Attachment: n]\nabc\n[...truncated 3 characters]\n\nQ"
