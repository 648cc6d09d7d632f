"""Shared pytest fixtures for askall tests.

Provides stub LLM providers, isolated settings, and common utilities.
"""

import asyncio
from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import pytest
from typer.testing import CliRunner

from askall.core.models import ProviderName
from askall.llm.base import BaseLLMProvider, NormalizedRequest
from askall.utils.config import Settings

CREDENTIAL_ENV_VARS = ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY")

# ============================================================================
# Stub LLM Provider Fixtures
# ============================================================================


class StubProvider(BaseLLMProvider):
    """Stub LLM provider for testing without real API calls."""

    credential_hint = "STUB_API_KEY"

    def __init__(
        self,
        name: ProviderName = ProviderName.OPENAI,
        response: str = "hello",
        delay: float = 0.0,
        errors: list[Exception] | None = None,
        fragments: list[str] | None = None,
    ):
        """Initialize stub provider.

        Args:
            name: Provider this stub stands in for
            response: Text returned by ask()
            delay: Seconds to sleep before answering
            errors: Exceptions raised by successive calls before succeeding
            fragments: Chunks yielded by stream() (defaults to the response)
        """
        super().__init__(api_key="stub-key")
        self.name = name
        self.response = response
        self.delay = delay
        self.errors = list(errors or [])
        self.fragments = fragments
        self.call_count = 0
        self.requests: list[NormalizedRequest] = []

    async def ask(self, request: NormalizedRequest) -> str:
        """Return the canned response, or raise the next queued error."""
        self.call_count += 1
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.errors:
            raise self.errors.pop(0)
        return self.response

    async def stream(self, request: NormalizedRequest) -> AsyncGenerator[str, None]:
        """Yield the canned fragments, then raise a queued error if any."""
        self.call_count += 1
        self.requests.append(request)
        for fragment in self.fragments if self.fragments is not None else [self.response]:
            yield fragment
        if self.errors:
            raise self.errors.pop(0)


@pytest.fixture
def stubs() -> dict[ProviderName, StubProvider]:
    """One stub per provider, answering '<provider> answer'."""
    return {p: StubProvider(name=p, response=f"{p.value} answer") for p in ProviderName}


@pytest.fixture
def stub_provider_class() -> type[StubProvider]:
    """Provide StubProvider class for tests that need custom instances.

    Example:
        def test_slow_openai(stub_provider_class):
            provider = stub_provider_class(delay=0.05)
    """
    return StubProvider


@pytest.fixture
def stub_factory(
    stubs: dict[ProviderName, StubProvider],
) -> Callable[[ProviderName, Settings], BaseLLMProvider]:
    """Provider factory that hands out the stubs fixture."""

    def factory(name: ProviderName, settings: Settings) -> BaseLLMProvider:
        return stubs[name]

    return factory


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real API keys from the environment out of every test."""
    for var in CREDENTIAL_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with all three credentials and temp config/public dirs."""
    return Settings(
        _env_file=None,
        openai_api_key="test-openai",
        anthropic_api_key="test-anthropic",
        gemini_api_key="test-gemini",
        config_dir=tmp_path / "config",
        public_dir=tmp_path / "public",
    )


@pytest.fixture
def bare_settings(tmp_path: Path) -> Settings:
    """Settings with no credentials at all."""
    return Settings(
        _env_file=None,
        config_dir=tmp_path / "config",
        public_dir=tmp_path / "public",
    )


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide Typer CLI test runner."""
    return CliRunner()


# ============================================================================
# Pytest Configuration Hooks
# ============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Modify test collection to auto-mark tests based on location."""
    for item in items:
        # Auto-mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "e2e" in str(item.fspath):
            item.add_marker(pytest.mark.e2e)


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add custom command line options."""
    parser.addoption(
        "--run-e2e",
        action="store_true",
        default=False,
        help="Run E2E tests (requires real API keys)",
    )
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Run slow tests",
    )


def pytest_runtest_setup(item: pytest.Item) -> None:
    """Skip tests based on markers and command line options."""
    # Skip E2E tests unless --run-e2e is specified
    if "e2e" in item.keywords and not item.config.getoption("--run-e2e"):
        pytest.skip("E2E tests skipped (use --run-e2e to run)")

    # Skip slow tests unless --run-slow is specified
    if "slow" in item.keywords and not item.config.getoption("--run-slow"):
        pytest.skip("Slow tests skipped (use --run-slow to run)")
