# Copyright 2026 Firefly Software Solutions Inc.
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
"""AopProxy: the strategy object that turns a configuration into a proxy."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from proxykit.kernel.exceptions import ConfigurationError
from proxykit.proxy.target import EMPTY_TARGET_SOURCE

if TYPE_CHECKING:
    from proxykit.proxy.support import AdvisedSupport


class AopProxy(ABC):
    """Builds proxies (or proxy classes) for one configuration."""

    @abstractmethod
    def get_proxy(self) -> Any: ...

    @abstractmethod
    def get_proxy_class(self) -> type: ...


def check_config(config: AdvisedSupport) -> None:
    """Reject configurations that could never serve a call."""
    if config.get_advisor_count() == 0 and config.target_source is EMPTY_TARGET_SOURCE:
        raise ConfigurationError("No advisors and no TargetSource specified")
