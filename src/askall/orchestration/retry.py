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

"""Bounded retry supervisor for provider calls.

Attempts are strictly sequential with no delay between them, and every
kind of failure is retried the same way.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from .deadline import Outcome, with_deadline

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry settings for one provider submission.

    Attributes:
        max_attempts: Attempts before giving up
        timeout_ms: Deadline for each attempt in milliseconds
    """

    max_attempts: int = 3
    timeout_ms: int = 5000

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")

    @property
    def timeout(self) -> float:
        """Per-attempt deadline in seconds."""
        return self.timeout_ms / 1000


async def with_retries(
    label: str,
    operation_factory: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    timeout: float = 5.0,
) -> Outcome[T]:
    """Run an operation until it succeeds or attempts run out.

    Each attempt calls ``operation_factory`` again, so it is a fresh call
    under its own deadline.

    Args:
        label: Name used in logs and timeout messages
        operation_factory: Zero-argument callable producing the awaitable
        max_attempts: Maximum number of attempts (>= 1)
        timeout: Per-attempt deadline in seconds

    Returns:
        The first successful outcome, or the last failure
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    attempt = 1
    while True:
        outcome = await with_deadline(operation_factory, timeout, label)
        if outcome.ok:
            if attempt > 1:
                logger.info(f"{label} succeeded on attempt {attempt}/{max_attempts}")
            return outcome
        logger.warning(
            f"{label} attempt {attempt}/{max_attempts} failed: {outcome.error_message}"
        )
        if attempt == max_attempts:
            return outcome
        attempt += 1
