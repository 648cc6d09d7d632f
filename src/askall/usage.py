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

"""In-memory usage log.

Keeps the most recent provider calls for the ``/api/usage`` endpoint.
Nothing is persisted; the log is reset when the process restarts.
"""

from __future__ import annotations

import time
import uuid
from collections import deque
from collections.abc import Mapping
from typing import Any

DEFAULT_CAPACITY = 100


class UsageLog:
    """Bounded, append-only ring buffer of usage entries.

    Example:
        >>> log = UsageLog(capacity=2)
        >>> _ = log.record({"provider": "openai", "ok": True})
        >>> log.entries()[0]["provider"]
        'openai'
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._entries: deque[dict[str, Any]] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, entry: Mapping[str, Any]) -> dict[str, Any]:
        """Append an entry stamped with an id and epoch-millisecond time."""
        stamped = {"id": uuid.uuid4().hex, "ts": int(time.time() * 1000), **entry}
        self._entries.append(stamped)
        return stamped

    def entries(self) -> list[dict[str, Any]]:
        """Entries, most recent first."""
        return list(reversed(self._entries))

    def clear(self) -> None:
        self._entries.clear()
