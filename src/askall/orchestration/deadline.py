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

"""Deadline wrapper for a single in-flight provider call.

The operation races a timer. Whichever settles first decides the outcome;
an operation that loses the race is abandoned, not cancelled, and keeps
running in the background until it finishes on its own.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from askall.llm.base import LLMError, LLMTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Abandoned operations stay referenced here until they settle
_abandoned: set[asyncio.Task[Any]] = set()


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Settled result of one asynchronous operation.

    Attributes:
        ok: Whether the operation produced a value
        value: The value (if ok)
        error: The failure (if not ok)
    """

    ok: bool
    value: T | None = None
    error: BaseException | None = None

    @classmethod
    def success(cls, value: T) -> Outcome[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: BaseException) -> Outcome[T]:
        return cls(ok=False, error=error)

    @property
    def error_message(self) -> str | None:
        """Human-readable failure text, or None on success."""
        if self.ok:
            return None
        return str(self.error) or type(self.error).__name__


def _settle_abandoned(task: asyncio.Task[Any]) -> None:
    _abandoned.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"Abandoned operation failed after its deadline: {error}")
    else:
        logger.debug("Abandoned operation finished after its deadline; result discarded")


async def with_deadline(
    operation: Callable[[], Awaitable[T]],
    timeout: float,
    label: str,
) -> Outcome[T]:
    """Run an operation and settle no later than ``timeout`` seconds.

    Args:
        operation: Zero-argument callable returning an awaitable
        timeout: Deadline in seconds (must be positive)
        label: Name used in the timeout error message

    Returns:
        Outcome mirroring the operation, or a failure carrying
        LLMTimeoutError if the deadline passed first
    """
    if timeout <= 0:
        raise ValueError("timeout must be positive")

    try:
        task = asyncio.ensure_future(operation())
    except Exception as e:
        return Outcome.failure(e)

    done, _ = await asyncio.wait({task}, timeout=timeout)

    if task not in done:
        _abandoned.add(task)
        task.add_done_callback(_settle_abandoned)
        return Outcome.failure(LLMTimeoutError(label, round(timeout * 1000)))

    if task.cancelled():
        return Outcome.failure(LLMError(f"{label} was cancelled"))

    error = task.exception()
    if error is not None:
        return Outcome.failure(error)
    return Outcome.success(task.result())
