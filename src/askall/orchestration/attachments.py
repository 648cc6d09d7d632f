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

"""Inline text attachments into the prompt."""

from __future__ import annotations

from collections.abc import Iterable

from askall.core.models import Attachment

MAX_ATTACHMENT_CHARS = 100_000


def render_attachment(attachment: Attachment, limit: int = MAX_ATTACHMENT_CHARS) -> str:
    """Render one attachment block, truncating oversized content."""
    content = attachment.content
    if len(content) > limit:
        dropped = len(content) - limit
        content = f"{content[:limit]}\n[...truncated {dropped} characters]"
    return f"[Attachment: {attachment.name}]\n{content}"


def inline_attachments(
    prompt: str,
    attachments: Iterable[Attachment] | None,
    limit: int = MAX_ATTACHMENT_CHARS,
) -> str:
    """Prepend attachment blocks to the prompt, separated by blank lines.

    Example:
        >>> inline_attachments("Review", [Attachment(name="a.py", content="x = 1")])
        '[Attachment: a.py]\\nx = 1\\n\\nReview'
    """
    blocks = [render_attachment(a, limit) for a in attachments or []]
    if not blocks:
        return prompt
    return "\n\n".join([*blocks, prompt])
