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

"""Base abstract class for LLM providers.

Defines the normalized request every provider adapter accepts, the
interface all adapters implement, and the error taxonomy they raise.
Vendor response shapes never leave an adapter: ``ask`` always returns
plain text or raises one of the errors below.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field

from askall.core.models import ProviderName, Turn

DEFAULT_TIMEOUT_MS = 30000


@dataclass(frozen=True)
class NormalizedRequest:
    """The unit of work submitted to one provider.

    Attributes:
        prompt: Final user prompt (attachments already inlined)
        model: Vendor model identifier
        system_instruction: Optional system instruction / persona
        transcript: Prior turns, oldest first
        temperature: Sampling temperature (None = vendor default)
        max_output_tokens: Output length cap (None = vendor default)
        timeout_ms: Per-attempt deadline in milliseconds
    """

    prompt: str
    model: str
    system_instruction: str | None = None
    transcript: tuple[Turn, ...] = field(default_factory=tuple)
    temperature: float | None = None
    max_output_tokens: int | None = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    def __post_init__(self) -> None:
        if not self.prompt or not self.prompt.strip():
            raise ValueError("NormalizedRequest requires a non-empty prompt")

    def turns(self) -> list[Turn]:
        """Transcript turns with empty content dropped."""
        return [turn for turn in self.transcript if turn.content]


class BaseLLMProvider(ABC):
    """Abstract base class for LLM provider adapters.

    Subclasses translate a NormalizedRequest into their vendor's call
    shape and normalize the vendor response back into text.

    Attributes:
        name: Provider key used in aggregate results
        credential_hint: Environment variable(s) that configure the key
    """

    name: ProviderName
    credential_hint: str

    def __init__(self, api_key: str | None) -> None:
        """Initialize provider.

        Args:
            api_key: Vendor API key; may be None, in which case every call
                fails fast with MissingCredentialError
        """
        self.api_key = api_key

    @property
    def label(self) -> str:
        """Human-readable provider label."""
        return self.name.label

    def _require_credential(self) -> str:
        """Return the API key or fail before any network call is made."""
        if not self.api_key:
            raise MissingCredentialError(f"Missing {self.credential_hint}")
        return self.api_key

    @abstractmethod
    async def ask(self, request: NormalizedRequest) -> str:
        """Send one request and return the response text.

        Args:
            request: Normalized request for this provider

        Returns:
            The generated text, multi-part content concatenated in order

        Raises:
            MissingCredentialError: If no API key is configured
            ProviderRejectedRequestError: If the vendor returned an error
            MalformedResponseError: If the response has an unexpected shape
            TransportError: For network-level faults
        """

    async def stream(self, request: NormalizedRequest) -> AsyncGenerator[str, None]:
        """Yield text fragments as the vendor produces them.

        Only the chat-completion provider supports this.
        """
        raise LLMError(f"{self.label} does not support streaming")
        yield  # pragma: no cover


class LLMError(Exception):
    """Base exception for LLM-related errors."""

    pass


class MissingCredentialError(LLMError):
    """Raised when a provider's API key is not configured."""

    pass


class ProviderRejectedRequestError(LLMError):
    """Raised when the vendor answers with a structured error."""

    pass


class LLMAuthenticationError(ProviderRejectedRequestError):
    """Raised when authentication fails."""

    pass


class LLMRateLimitError(ProviderRejectedRequestError):
    """Raised when hitting rate limits."""

    pass


class MalformedResponseError(LLMError):
    """Raised when a vendor response does not have the expected shape."""

    pass


class TransportError(LLMError):
    """Raised for connection failures and client-side network timeouts."""

    pass


class LLMTimeoutError(LLMError):
    """Raised (or reported) when an attempt misses its deadline."""

    def __init__(self, label: str, timeout_ms: int) -> None:
        super().__init__(f"{label} timed out after {timeout_ms}ms")
        self.label = label
        self.timeout_ms = timeout_ms
