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

"""LLM integration layer for askall.

Provides the abstract adapter interface and concrete implementations for
OpenAI (chat completions and deep research), Anthropic Claude and Google
Gemini.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from askall.core.models import ProviderName

from .anthropic_provider import AnthropicProvider
from .base import (
    BaseLLMProvider,
    LLMAuthenticationError,
    LLMError,
    LLMRateLimitError,
    LLMTimeoutError,
    MalformedResponseError,
    MissingCredentialError,
    NormalizedRequest,
    ProviderRejectedRequestError,
    TransportError,
)
from .gemini_provider import GeminiProvider
from .openai_provider import OpenAIProvider
from .prompts import PromptTemplate, PromptTemplateError

if TYPE_CHECKING:
    from askall.utils.config import Settings

PROVIDER_CLASSES: dict[ProviderName, type[BaseLLMProvider]] = {
    ProviderName.OPENAI: OpenAIProvider,
    ProviderName.CLAUDE: AnthropicProvider,
    ProviderName.GEMINI: GeminiProvider,
}


def build_provider(name: ProviderName, settings: Settings) -> BaseLLMProvider:
    """Create the adapter for a provider using credentials from settings."""
    return PROVIDER_CLASSES[name](api_key=settings.credential_for(name))


__all__ = [
    "BaseLLMProvider",
    "OpenAIProvider",
    "AnthropicProvider",
    "GeminiProvider",
    "NormalizedRequest",
    "PromptTemplate",
    "PromptTemplateError",
    "LLMError",
    "LLMAuthenticationError",
    "LLMRateLimitError",
    "LLMTimeoutError",
    "MalformedResponseError",
    "MissingCredentialError",
    "ProviderRejectedRequestError",
    "TransportError",
    "PROVIDER_CLASSES",
    "build_provider",
]
