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

"""Selection of the conversation transcript a provider should see."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from askall.core.models import Turn

# Card slots used by older UI builds
LEGACY_SLOTS = ("model1", "model2", "model3")


def resolve_history(
    provider_key: str,
    histories: Mapping[str, Any] | None = None,
    legacy_history: Any = None,
    model_id: str | None = None,
) -> list[Turn]:
    """Pick the transcript for one provider; first match wins.

    Order of precedence:
        1. ``histories[provider_key]``
        2. ``histories[model_id]`` when a model id is given
        3. The legacy ``model1``/``model2``/``model3`` slots, concatenated
           in that order
        4. ``legacy_history``

    Only list values count as a match. Entries are coerced into turns;
    empty content is kept here and dropped by the adapters.
    """
    histories = histories if isinstance(histories, Mapping) else {}

    selected: list[Any] | None = None
    by_provider = histories.get(provider_key)
    if isinstance(by_provider, list):
        selected = by_provider
    elif model_id and isinstance(histories.get(model_id), list):
        selected = histories[model_id]
    else:
        slots = [histories[slot] for slot in LEGACY_SLOTS if isinstance(histories.get(slot), list)]
        if slots:
            selected = [entry for slot in slots for entry in slot]
        elif isinstance(legacy_history, list):
            selected = legacy_history

    return [Turn.coerce(entry) for entry in selected or []]
