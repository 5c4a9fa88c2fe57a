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
"""Proxy creation: configurations, target sources, strategies and auto proxying."""

from proxykit.proxy.advised import Advised, ProxyKitProxy, RawTargetAccess, TargetClassAware
from proxykit.proxy.autoproxy import AdvisorAutoProxyCreator, AspectProxyFactory
from proxykit.proxy.base import AopProxy
from proxykit.proxy.chain import DefaultAdvisorChainFactory
from proxykit.proxy.config import ProxyConfig
from proxykit.proxy.context import current_proxy, exposed
from proxykit.proxy.factory import DefaultAopProxyFactory, ProxyCreatorSupport, ProxyFactory
from proxykit.proxy.interface import InterfaceAopProxy
from proxykit.proxy.properties import PoolProperties, ProxyProperties
from proxykit.proxy.subclass import CallbackCategory, ProxyCallbackFilter, SubclassAopProxy
from proxykit.proxy.support import AdvisedSupport
from proxykit.proxy.target import (
    EMPTY_TARGET_SOURCE,
    EmptyTargetSource,
    PooledTargetSource,
    PrototypeTargetSource,
    SingletonTargetSource,
    TargetSource,
)
from proxykit.proxy.utils import (
    can_apply,
    find_advisors_that_can_apply,
    get_target_class,
    is_aop_proxy,
    is_interface_proxy,
    is_subclass_proxy,
    ultimate_target_class,
)

__all__ = [
    # Interfaces
    "Advised",
    "ProxyKitProxy",
    "RawTargetAccess",
    "TargetClassAware",
    # Configuration
    "AdvisedSupport",
    "DefaultAdvisorChainFactory",
    "PoolProperties",
    "ProxyConfig",
    "ProxyProperties",
    # Factories
    "AdvisorAutoProxyCreator",
    "AopProxy",
    "AspectProxyFactory",
    "DefaultAopProxyFactory",
    "InterfaceAopProxy",
    "ProxyCreatorSupport",
    "ProxyFactory",
    "SubclassAopProxy",
    "CallbackCategory",
    "ProxyCallbackFilter",
    # Target sources
    "EMPTY_TARGET_SOURCE",
    "EmptyTargetSource",
    "PooledTargetSource",
    "PrototypeTargetSource",
    "SingletonTargetSource",
    "TargetSource",
    # Utilities
    "can_apply",
    "current_proxy",
    "exposed",
    "find_advisors_that_can_apply",
    "get_target_class",
    "is_aop_proxy",
    "is_interface_proxy",
    "is_subclass_proxy",
    "ultimate_target_class",
]
