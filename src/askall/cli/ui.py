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

"""Rich rendering of fan-out results for the CLI."""

from __future__ import annotations

from collections.abc import Mapping

from rich.panel import Panel
from rich.text import Text

from askall.core.models import AggregateResult, ProviderName, ProviderOutcome
from askall.utils.console import console, print_error, print_info, print_warning

__all__ = [
    "console",
    "print_error",
    "print_info",
    "print_warning",
    "print_startup_info",
    "print_outcome",
    "print_aggregate",
]

PROVIDER_STYLES: dict[ProviderName, str] = {
    ProviderName.OPENAI: "cyan",
    ProviderName.CLAUDE: "magenta",
    ProviderName.GEMINI: "yellow",
}

DIVIDER = "─" * 40


def print_startup_info(info: Mapping[str, str]) -> None:
    """Print request settings in a compact panel (verbose mode).

    Args:
        info: Dictionary of key-value pairs to display
    """
    lines = [f"[cyan]{key:12}[/cyan] {value}" for key, value in info.items()]
    panel = Panel(
        "\n".join(lines),
        title="askall",
        border_style="cyan",
        padding=(0, 1),
    )
    console.print(panel)


def print_outcome(outcome: ProviderOutcome, title: str | None = None) -> None:
    """Print one provider block: header, answer or error, divider.

    Args:
        outcome: Settled provider outcome
        title: Header label (defaults to the provider label)
    """
    provider = ProviderName(outcome.provider)
    style = PROVIDER_STYLES[provider]

    header = Text(f"{title or provider.label} ({outcome.model}) ", style=f"bold {style}")
    header.append(f"[{outcome.latency_ms}ms]", style=style)
    console.print(header)

    # Model output is printed as plain Text so brackets are not read as markup
    if outcome.ok:
        console.print(Text((outcome.text or "").strip()))
    else:
        console.print(Text(f"Error: {outcome.error}", style="red"))
    console.print(Text(DIVIDER, style="bright_black"))


def print_aggregate(result: AggregateResult) -> None:
    """Print every outcome in provider order."""
    if not result:
        print_warning("No providers ran. Set an API key or enable a provider.")
        return
    for outcome in result.values():
        print_outcome(outcome)
