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

"""Per-provider and per-model request overrides.

Sampling parameters are resolved from an ordered list of layers, lowest
precedence first:

1. Hard-coded base defaults
2. ``<config_dir>/<provider>.json``
3. A model-specific file (e.g. ``gpt5-mini.json``) for known model families
4. Values supplied on the request itself

A layer only overrides keys whose value is not None. Files are re-read on
every call, so edits take effect on the next request.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from askall.core.models import ProviderName

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM = "You are a helpful assistant. Be concise and direct."

BASE_DEFAULTS: dict[str, Any] = {
    "system": DEFAULT_SYSTEM,
    "temperature": 0.2,
    "maxTokens": 1024,
    "timeoutMs": 30000,
}

# Model-specific override files; applied above the provider file
MODEL_OVERRIDE_FILES: dict[str, str] = {
    "gpt-5-mini": "gpt5-mini.json",
    "gpt-5-mini-2025-08-07": "gpt5-mini.json",
}

OVERRIDE_KEYS = ("system", "temperature", "maxTokens", "timeoutMs")


@dataclass(frozen=True)
class ConfigLayer:
    """One named set of override values."""

    name: str
    values: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ResolvedParams:
    """Effective request parameters after all layers are applied."""

    system: str | None
    temperature: float | None
    max_tokens: int | None
    timeout_ms: int

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any], timeout_ms: int) -> ResolvedParams:
        return cls(
            system=values.get("system") or None,
            temperature=values.get("temperature"),
            max_tokens=values.get("maxTokens"),
            timeout_ms=int(values.get("timeoutMs") or timeout_ms),
        )


def read_json_file(path: Path) -> dict[str, Any] | None:
    """Read a JSON object from disk; missing or invalid files yield None."""
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Ignoring unreadable override file {path}: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning(f"Ignoring override file {path}: expected a JSON object")
        return None
    return data


def file_layers(config_dir: Path, provider: ProviderName, model: str) -> list[ConfigLayer]:
    """Layers read from disk for a provider and model, lowest precedence first."""
    layers: list[ConfigLayer] = []

    provider_file = config_dir / f"{provider.value}.json"
    provider_values = read_json_file(provider_file)
    if provider_values is not None:
        layers.append(ConfigLayer(name=provider_file.name, values=provider_values))

    model_file_name = MODEL_OVERRIDE_FILES.get(model)
    if model_file_name:
        model_values = read_json_file(config_dir / model_file_name)
        if model_values is not None:
            layers.append(ConfigLayer(name=model_file_name, values=model_values))

    return layers


def merge_layers(layers: Iterable[ConfigLayer]) -> dict[str, Any]:
    """Apply layers low-to-high; None values never override."""
    merged: dict[str, Any] = {}
    for layer in layers:
        for key in OVERRIDE_KEYS:
            value = layer.values.get(key)
            if value is not None:
                merged[key] = value
    return merged
