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
"""Proxy flags shared by every proxy-creating configuration."""

from __future__ import annotations

from proxykit.proxy.properties import ProxyProperties


class ProxyConfig:
    """Flags controlling how a proxy is built.

    Attributes:
        proxy_target_class: Subclass the target class even when interfaces are available.
        optimize: Allow aggressive optimizations; implies a subclass proxy.
        opaque: Do not let the proxy implement :class:`~proxykit.proxy.advised.Advised`.
        expose_proxy: Publish the proxy for :func:`~proxykit.proxy.context.current_proxy`.
        frozen: Reject any further advice changes.
    """

    def __init__(self) -> None:
        self.proxy_target_class = False
        self.optimize = False
        self.opaque = False
        self.expose_proxy = False
        self.frozen = False

    def copy_from(self, other: ProxyConfig) -> None:
        self.proxy_target_class = other.proxy_target_class
        self.optimize = other.optimize
        self.opaque = other.opaque
        self.expose_proxy = other.expose_proxy
        self.frozen = other.frozen

    def apply_properties(self, properties: ProxyProperties) -> None:
        """Take the flag defaults from bound ``proxykit.aop.proxy`` properties."""
        self.proxy_target_class = properties.proxy_target_class
        self.optimize = properties.optimize
        self.opaque = properties.opaque
        self.expose_proxy = properties.expose_proxy
        self.frozen = properties.frozen

    def __str__(self) -> str:
        return (
            f"proxy_target_class={self.proxy_target_class}; optimize={self.optimize}; "
            f"opaque={self.opaque}; expose_proxy={self.expose_proxy}; frozen={self.frozen}"
        )
