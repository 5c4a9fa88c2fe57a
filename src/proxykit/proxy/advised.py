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
"""Interfaces implemented by generated proxies.

These are plain classes rather than ABCs so that they combine with any
base class metaclass when a proxy class is synthesized. Their method
bodies are never run: proxy classes route every ``Advised`` and
``TargetClassAware`` method to the configuration (``DISPATCH_ADVISED``),
and the configuration implements them itself.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from proxykit.aop.advisor import Advisor
    from proxykit.proxy.target import TargetSource


class TargetClassAware:
    """Exposes the class of the object behind a proxy."""

    def get_target_class(self) -> type | None:
        ...


class ProxyKitProxy:
    """Marker implemented by every generated proxy."""


class RawTargetAccess:
    """Marker for types whose methods may hand out the raw target.

    A method declared on such a type that returns the target itself is
    not rewritten to return the proxy.
    """


class Advised(TargetClassAware):
    """Live view of a proxy's configuration.

    Every proxy implements this interface unless it was created with
    ``opaque`` set; calls to these methods go straight to the configuration.
    """

    def is_frozen(self) -> bool:
        ...

    def is_proxy_target_class(self) -> bool:
        ...

    def get_proxied_interfaces(self) -> tuple[type, ...]:
        ...

    def is_interface_proxied(self, interface: type) -> bool:
        ...

    def get_target_source(self) -> TargetSource:
        ...

    def set_target_source(self, target_source: TargetSource) -> None:
        ...

    def is_expose_proxy(self) -> bool:
        ...

    def set_expose_proxy(self, expose_proxy: bool) -> None:
        ...

    def is_pre_filtered(self) -> bool:
        ...

    def set_pre_filtered(self, pre_filtered: bool) -> None:
        ...

    def get_advisors(self) -> tuple[Advisor, ...]:
        ...

    def get_advisor_count(self) -> int:
        ...

    def add_advisor(self, advisor: Advisor) -> None:
        ...

    def add_advisor_at(self, pos: int, advisor: Advisor) -> None:
        ...

    def remove_advisor(self, advisor: Advisor) -> bool:
        ...

    def remove_advisor_at(self, index: int) -> None:
        ...

    def index_of(self, advisor_or_advice: Any) -> int:
        ...

    def replace_advisor(self, old: Advisor, new: Advisor) -> bool:
        ...

    def add_advice(self, advice: Any) -> None:
        ...

    def add_advice_at(self, pos: int, advice: Any) -> None:
        ...

    def remove_advice(self, advice: Any) -> bool:
        ...

    def to_proxy_config_string(self) -> str:
        ...


ADVISED_INTERFACES: frozenset[type] = frozenset({Advised, TargetClassAware})
