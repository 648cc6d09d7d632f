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

"""Prompt template management for askall.

Templates are packaged as .txt files next to this module:
- ``deep_research_planner``: meta-instructions prepended to deep-research
  requests so the model returns researcher instructions
- ``summarize_system``: system prompt for the multi-answer summarizer
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from askall.core.models import ProviderOutcome


class PromptTemplateError(Exception):
    """Raised when there's an error loading or formatting a prompt template."""

    pass


class PromptTemplate:
    """A packaged prompt template.

    Example:
        >>> template = PromptTemplate.load("deep_research_planner")
        >>> text = template.text
    """

    def __init__(self, template_text: str):
        """Initialize with template text.

        Args:
            template_text: The raw template text
        """
        self.template = template_text

    @property
    def text(self) -> str:
        """Template text without surrounding whitespace."""
        return self.template.strip()

    @classmethod
    def load(cls, name: str) -> PromptTemplate:
        """Load a packaged prompt template.

        Args:
            name: Template name without extension

        Returns:
            PromptTemplate instance

        Raises:
            PromptTemplateError: If template file doesn't exist or can't be read
        """
        template_file = Path(__file__).parent / f"{name}.txt"

        if not template_file.exists():
            raise PromptTemplateError(f"Template not found: {name} (expected: {template_file})")

        try:
            return cls(template_file.read_text(encoding="utf-8"))
        except OSError as e:
            raise PromptTemplateError(f"Error reading template {name}: {e}") from e


def deep_research_planner_instructions() -> str:
    """Meta-instructions that steer deep-research models."""
    return PromptTemplate.load("deep_research_planner").text


@dataclass(frozen=True)
class SummarizeConfig:
    """Prompt pieces for the Summarize feature of the web UI.

    Attributes:
        system: System prompt for the summarizer model
        preface: Lines that appear before the sources
        sources_title: Heading inserted before the collected outputs
    """

    system: str
    preface: list[str] = field(default_factory=list)
    sources_title: str = "Sources:"

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase names the UI expects."""
        return {
            "system": self.system,
            "preface": list(self.preface),
            "sourcesTitle": self.sources_title,
        }


def load_summarize_config() -> SummarizeConfig:
    """Return the summarization prompt configuration."""
    return SummarizeConfig(
        system=PromptTemplate.load("summarize_system").text,
        preface=[
            "Summarize the following model outputs into a concise list of bullet points.",
            "- Use short, scannable bullets.",
            "- Group related ideas and remove duplicates.",
            "- Highlight agreements, contradictions, and standout insights.",
        ],
        sources_title="Sources:",
    )


def build_summarize_prompt(
    outcomes: Iterable[ProviderOutcome],
    config: SummarizeConfig | None = None,
) -> str:
    """Render the summarizer prompt from successful provider outcomes.

    Failed outcomes are skipped; each answer becomes one
    ``### <provider> (<model>)`` block under the sources title.
    """
    config = config or load_summarize_config()
    lines = list(config.preface)
    lines.append("")
    lines.append(config.sources_title)
    for outcome in outcomes:
        if not outcome.ok or not outcome.text:
            continue
        lines.append("")
        lines.append(f"### {outcome.provider} ({outcome.model})")
        lines.append(outcome.text.strip())
    return "\n".join(lines)


__all__ = [
    "PromptTemplate",
    "PromptTemplateError",
    "SummarizeConfig",
    "build_summarize_prompt",
    "deep_research_planner_instructions",
    "load_summarize_config",
]
