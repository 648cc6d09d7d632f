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

"""Fan-out orchestrator for concurrent multi-provider requests.

Sends one prompt to every requested provider at the same time and joins
the settled outcomes into a single aggregate keyed by provider:
- Parallel execution via asyncio.gather
- Bounded sequential retries per provider
- Per-attempt deadlines
- Independent failure isolation

Example:
    >>> orchestrator = FanoutOrchestrator(get_settings())
    >>> result = await orchestrator.dispatch(
    ...     AskRequest(prompt="Hello", providers={"openai": True, "claude": True})
    ... )
    >>> result["openai"].text
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from askall.core.models import AggregateResult, AskRequest, ProviderName, ProviderOutcome
from askall.llm import PROVIDER_CLASSES, BaseLLMProvider, NormalizedRequest, build_provider
from askall.usage import UsageLog
from askall.utils.config import Settings
from askall.utils.overrides import (
    BASE_DEFAULTS,
    ConfigLayer,
    ResolvedParams,
    file_layers,
    merge_layers,
)

from .attachments import inline_attachments
from .history import resolve_history
from .retry import RetryPolicy, with_retries

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[ProviderName, Settings], BaseLLMProvider]


def missing_credential_message(provider: ProviderName) -> str:
    """Error text reported for a provider with no API key."""
    return f"Missing {PROVIDER_CLASSES[provider].credential_hint}"


class FanoutOrchestrator:
    """Dispatches one request to several providers concurrently.

    Every requested provider produces exactly one ProviderOutcome; a
    failure in one provider never affects the others and never raises
    out of ``dispatch``.

    Attributes:
        settings: Application settings (credentials, default models)
        retry_policy: Attempts and per-attempt deadline
        usage_log: Optional sink that receives every settled outcome
    """

    def __init__(
        self,
        settings: Settings,
        retry_policy: RetryPolicy | None = None,
        provider_factory: ProviderFactory | None = None,
        usage_log: UsageLog | None = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            settings: Application settings
            retry_policy: Retry settings (defaults from settings if None)
            provider_factory: Adapter factory, replaceable in tests
            usage_log: Usage sink (nothing is recorded if None)
        """
        self.settings = settings
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=settings.max_attempts,
            timeout_ms=settings.attempt_timeout_ms,
        )
        self.provider_factory = provider_factory or build_provider
        self.usage_log = usage_log

    def resolve_params(
        self, request: AskRequest, provider: ProviderName, model: str
    ) -> ResolvedParams:
        """Merge default, file and request layers for one provider."""
        if request.use_model_config:
            layers = [
                ConfigLayer(name="defaults", values=BASE_DEFAULTS),
                *file_layers(self.settings.config_dir, provider, model),
            ]
        else:
            layers = [
                ConfigLayer(
                    name="defaults",
                    values={
                        "temperature": self.settings.default_temperature,
                        "maxTokens": self.settings.default_max_tokens,
                    },
                )
            ]

        layers.append(
            ConfigLayer(
                name="request",
                values={
                    "system": request.system,
                    "temperature": request.temperature,
                    "maxTokens": request.max_tokens,
                    "timeoutMs": request.timeout_ms,
                },
            )
        )
        return ResolvedParams.from_mapping(merge_layers(layers), self.retry_policy.timeout_ms)

    def build_request(
        self, request: AskRequest, provider: ProviderName, prompt: str
    ) -> NormalizedRequest:
        """Build the normalized request a provider adapter receives."""
        model = request.model_for(provider) or self.settings.default_model_for(provider)
        params = self.resolve_params(request, provider, model)
        transcript = resolve_history(
            provider.value,
            histories=request.histories,
            legacy_history=request.history,
            model_id=request.model_id,
        )
        return NormalizedRequest(
            prompt=prompt,
            model=model,
            system_instruction=params.system,
            transcript=tuple(transcript),
            temperature=params.temperature,
            max_output_tokens=params.max_tokens,
            timeout_ms=params.timeout_ms,
        )

    async def dispatch(self, request: AskRequest) -> AggregateResult:
        """Fan the request out and wait for every provider to settle.

        Args:
            request: Parsed ask request with a non-empty prompt

        Returns:
            Outcomes keyed by provider name, in provider order, containing
            only the providers the caller requested
        """
        if not request.has_prompt:
            raise ValueError("Missing prompt")

        # All providers see the same augmented prompt
        prompt = inline_attachments(request.prompt or "", request.attachments)

        settled: dict[ProviderName, ProviderOutcome] = {}
        jobs: list[ProviderName] = []

        for provider in ProviderName:
            if not request.requested(provider):
                continue
            if not self.settings.has_credential(provider):
                message = missing_credential_message(provider)
                logger.warning(f"{provider.label} disabled: {message}")
                settled[provider] = ProviderOutcome(
                    provider=provider,
                    model=request.model_for(provider) or self.settings.default_model_for(provider),
                    ok=False,
                    error=message,
                    latency_ms=0,
                )
                continue
            jobs.append(provider)

        if jobs:
            logger.info(f"Dispatching to {len(jobs)} provider(s): {[p.value for p in jobs]}")
            outcomes = await asyncio.gather(
                *(self._submit(request, provider, prompt) for provider in jobs)
            )
            settled.update(zip(jobs, outcomes))

        return {
            provider.value: self._record(settled[provider])
            for provider in ProviderName
            if provider in settled
        }

    async def _submit(
        self, request: AskRequest, provider: ProviderName, prompt: str
    ) -> ProviderOutcome:
        """Run one provider through the retry supervisor; never raises."""
        started_at = time.monotonic()
        model = request.model_for(provider) or self.settings.default_model_for(provider)

        try:
            normalized = self.build_request(request, provider, prompt)
        except Exception as e:
            logger.error(f"{provider.label} request could not be built: {e}")
            return ProviderOutcome(
                provider=provider, model=model, ok=False, error=str(e), latency_ms=0
            )

        async def operation() -> str:
            adapter = self.provider_factory(provider, self.settings)
            return await adapter.ask(normalized)

        outcome = await with_retries(
            provider.label,
            operation,
            max_attempts=self.retry_policy.max_attempts,
            timeout=normalized.timeout_ms / 1000,
        )
        latency_ms = int((time.monotonic() - started_at) * 1000)

        if outcome.ok:
            logger.info(f"{provider.label} answered in {latency_ms}ms")
            return ProviderOutcome(
                provider=provider,
                model=normalized.model,
                ok=True,
                text=outcome.value,
                latency_ms=latency_ms,
            )

        return ProviderOutcome(
            provider=provider,
            model=normalized.model,
            ok=False,
            error=outcome.error_message,
            latency_ms=latency_ms,
        )

    def _record(self, outcome: ProviderOutcome) -> ProviderOutcome:
        if self.usage_log is not None:
            entry = outcome.to_dict()
            entry.pop("text", None)
            entry["endpoint"] = "ask"
            self.usage_log.record(entry)
        return outcome
