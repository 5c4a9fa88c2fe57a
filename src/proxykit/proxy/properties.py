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
"""Proxy subsystem configuration properties."""

from __future__ import annotations

from dataclasses import dataclass

from proxykit.core.config import config_properties


@config_properties(prefix="proxykit.aop.proxy")
@dataclass
class ProxyProperties:
    """Default proxy flags (proxykit.aop.proxy.*)."""

    proxy_target_class: bool = False
    optimize: bool = False
    opaque: bool = False
    expose_proxy: bool = False
    frozen: bool = False


@config_properties(prefix="proxykit.aop.pool")
@dataclass
class PoolProperties:
    """Pooled target source sizing (proxykit.aop.pool.*)."""

    max_size: int = 8
    wait_timeout: float = 5.0
