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

"""
askall - ask every model at once

Fans a single prompt out to OpenAI, Anthropic Claude and Google Gemini
concurrently and returns each provider's answer or failure side by side.
"""

__version__ = "0.1.0"
__author__ = "KTTC Development"
__email__ = "dev@kt.tc"

from askall.core.models import (
    AskRequest,
    Attachment,
    ProviderName,
    ProviderOutcome,
    Turn,
)
from askall.orchestration import FanoutOrchestrator

__all__ = [
    "AskRequest",
    "Attachment",
    "FanoutOrchestrator",
    "ProviderName",
    "ProviderOutcome",
    "Turn",
    "__version__",
]
