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

"""Main CLI application entry point for askall.

Commands:
- ``askall ask``: send one prompt to every configured provider
- ``askall serve``: run the HTTP API and web UI
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from enum import Enum

import typer

from askall import __version__
from askall.cli.ui import (
    console,
    print_aggregate,
    print_error,
    print_info,
    print_outcome,
    print_startup_info,
)
from askall.core.models import AggregateResult, AskRequest, ProviderName, ProviderOutcome
from askall.llm.prompts import build_summarize_prompt, load_summarize_config
from askall.orchestration import FanoutOrchestrator, RetryPolicy
from askall.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


# Create main app
app = typer.Typer(
    name="askall",
    help="askall - ask every model at once\n\nSend one prompt to OpenAI, Claude and Gemini concurrently and compare the answers.",
    add_completion=True,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"askall version: [bold cyan]{__version__}[/bold cyan]")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(  # noqa: ARG001 - Used by Typer callback
        False,
        "--version",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    askall - ask every model at once.

    Fans a single prompt out to several LLM providers and shows each
    answer (or failure) side by side.
    """
    pass


def read_prompt(prompt: str | None, words: list[str] | None) -> str | None:
    """Prompt from the flag, else positional words, else piped stdin."""
    if prompt and prompt.strip():
        return prompt.strip()
    if words:
        joined = " ".join(words).strip()
        if joined:
            return joined
    if not sys.stdin.isatty():
        piped = sys.stdin.read().strip()
        if piped:
            return piped
    return None


async def _summarize(
    orchestrator: FanoutOrchestrator,
    request: AskRequest,
    result: AggregateResult,
) -> ProviderOutcome | None:
    """Ask the first successful provider to condense all answers."""
    succeeded = [outcome for outcome in result.values() if outcome.ok]
    if not succeeded:
        return None

    provider = ProviderName(succeeded[0].provider)
    config = load_summarize_config()
    summary_request = AskRequest(
        prompt=build_summarize_prompt(succeeded, config),
        system=config.system,
        providers={provider.value: True},
        models=request.models,
        temperature=request.temperature,
        max_tokens=request.max_tokens,
        timeout_ms=request.timeout_ms,
    )
    summary = await orchestrator.dispatch(summary_request)
    return summary[provider.value]


async def _ask_async(
    request: AskRequest,
    settings: Settings,
    attempts: int,
    summarize: bool,
) -> tuple[AggregateResult, ProviderOutcome | None]:
    """Async implementation of the ask command."""
    orchestrator = FanoutOrchestrator(
        settings,
        retry_policy=RetryPolicy(
            max_attempts=attempts,
            timeout_ms=request.timeout_ms or settings.request_timeout_ms,
        ),
    )
    result = await orchestrator.dispatch(request)
    summary = await _summarize(orchestrator, request, result) if summarize else None
    return result, summary


@app.command()
def ask(
    words: list[str] | None = typer.Argument(None, help="Prompt words (alternative to --prompt)"),
    prompt: str | None = typer.Option(
        None, "--prompt", "-p", help="Prompt to ask all providers"
    ),
    system: str | None = typer.Option(None, "--system", help="System instruction / persona"),
    temperature: float | None = typer.Option(
        None, "--temperature", "-t", help="Sampling temperature [default: 0.2]"
    ),
    max_tokens: int | None = typer.Option(
        None, "--max-tokens", "-m", min=1, help="Max output tokens [default: 1024]"
    ),
    timeout: int | None = typer.Option(
        None, "--timeout", min=1, help="Timeout in milliseconds per provider [default: 30000]"
    ),
    attempts: int = typer.Option(1, "--attempts", min=1, help="Attempts per provider"),
    model_openai: str | None = typer.Option(None, "--model-openai", help="OpenAI model"),
    model_claude: str | None = typer.Option(None, "--model-claude", help="Claude model"),
    model_gemini: str | None = typer.Option(None, "--model-gemini", help="Gemini model"),
    openai: bool = typer.Option(True, "--openai/--no-openai", help="Enable OpenAI provider"),
    claude: bool = typer.Option(
        True, "--claude/--no-claude", help="Enable Anthropic Claude provider"
    ),
    gemini: bool = typer.Option(True, "--gemini/--no-gemini", help="Enable Google Gemini provider"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.TEXT, "--format", "-f", help="Output format"
    ),
    summarize: bool = typer.Option(
        False, "--summarize", help="Condense all answers with the first provider that succeeded"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """
    Ask every configured provider the same question.

    Providers without an API key are skipped.

    Example:
        askall ask -p "What is a monad?" --no-gemini
        echo "Explain CRDTs" | askall ask -f json
    """
    # Configure logging
    log_level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=log_level, format="%(message)s", force=True)

    text = read_prompt(prompt, words)
    if not text:
        print_error('No prompt provided. Use -p "your question" or pipe text.')
        raise typer.Exit(code=1)

    settings = get_settings()
    enabled = {
        ProviderName.OPENAI: openai,
        ProviderName.CLAUDE: claude,
        ProviderName.GEMINI: gemini,
    }
    models = {
        ProviderName.OPENAI.value: model_openai,
        ProviderName.CLAUDE.value: model_claude,
        ProviderName.GEMINI.value: model_gemini,
    }

    request = AskRequest(
        prompt=text,
        system=system,
        providers={
            provider.value: True
            for provider in ProviderName
            if enabled[provider] and settings.has_credential(provider)
        },
        models={key: value for key, value in models.items() if value},
        temperature=temperature,
        max_tokens=max_tokens,
        timeout_ms=timeout or settings.request_timeout_ms,
    )

    if verbose:
        print_startup_info(
            {
                "Providers": ", ".join(request.providers) or "none",
                "Timeout": f"{request.timeout_ms}ms",
                "Attempts": str(attempts),
            }
        )

    try:
        result, summary = asyncio.run(_ask_async(request, settings, attempts, summarize))
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠ Interrupted by user[/yellow]")
        raise typer.Exit(code=130)
    except Exception as e:
        print_error(f"Fatal error: {e}")
        if verbose:
            console.print_exception()
        raise typer.Exit(code=1)

    if output_format is OutputFormat.JSON:
        data = {name: outcome.to_dict() for name, outcome in result.items()}
        if summary is not None:
            data["summary"] = summary.to_dict()
        console.print_json(json.dumps(data))
        return

    print_aggregate(result)
    if summarize:
        if summary is None:
            print_info("Nothing to summarize: no provider succeeded.")
        else:
            label = ProviderName(summary.provider).label
            print_outcome(summary, title=f"Summary via {label}")


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address [default: 127.0.0.1]"),
    port: int | None = typer.Option(None, "--port", help="Port [default: 3000]"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """
    Run the HTTP API and web UI.

    Example:
        askall serve --port 8080
    """
    from askall.webui.server import run_server

    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(message)s", force=True)
    run_server(host=host or settings.host, port=port or settings.port, reload=reload)


def run() -> None:
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    run()
