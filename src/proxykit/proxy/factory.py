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
"""Proxy factories: strategy selection and the programmatic ProxyFactory API."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol, TypeVar

import structlog

from proxykit.aop.advice import Interceptor
from proxykit.aop.reflection import get_all_interfaces, is_interface, is_interface_proxy_class
from proxykit.core.config import Config
from proxykit.kernel.exceptions import ConfigurationError
from proxykit.proxy.advised import ProxyKitProxy
from proxykit.proxy.base import AopProxy
from proxykit.proxy.interface import InterfaceAopProxy
from proxykit.proxy.properties import ProxyProperties
from proxykit.proxy.subclass import SubclassAopProxy
from proxykit.proxy.support import AdvisedSupport
from proxykit.proxy.target import TargetSource

logger = structlog.get_logger("proxykit.proxy.factory")

T = TypeVar("T")


def has_no_user_supplied_proxy_interfaces(config: AdvisedSupport) -> bool:
    interfaces = config.get_proxied_interfaces()
    return not interfaces or (len(interfaces) == 1 and issubclass(interfaces[0], ProxyKitProxy))


class DefaultAopProxyFactory:
    """Chooses the proxy strategy for a configuration.

    A subclass proxy is used when ``optimize`` or ``proxy_target_class`` is
    set or no interfaces were supplied, unless the target class is itself
    an interface or an interface proxy class. Otherwise the proxy
    implements the configured interfaces.
    """

    def create_aop_proxy(self, config: AdvisedSupport) -> AopProxy:
        if config.optimize or config.proxy_target_class or has_no_user_supplied_proxy_interfaces(config):
            target_class = config.get_target_class()
            if target_class is None:
                raise ConfigurationError(
                    "TargetSource cannot determine target class: "
                    "Either an interface or a target is required for proxy creation."
                )
            if is_interface(target_class) or is_interface_proxy_class(target_class):
                logger.debug("proxy_strategy_selected", strategy="interface", target_class=target_class.__qualname__)
                return InterfaceAopProxy(config)
            logger.debug("proxy_strategy_selected", strategy="subclass", target_class=target_class.__qualname__)
            return SubclassAopProxy(config)
        logger.debug("proxy_strategy_selected", strategy="interface")
        return InterfaceAopProxy(config)


class AdvisedSupportListener(Protocol):
    """Notified when a proxy creator's configuration is first used or changes."""

    def activated(self, advised: AdvisedSupport) -> None: ...

    def advice_changed(self, advised: AdvisedSupport) -> None: ...


class ProxyCreatorSupport(AdvisedSupport):
    """Configuration that creates proxies through a pluggable AOP proxy factory."""

    def __init__(self, *interfaces: type, aop_proxy_factory: DefaultAopProxyFactory | None = None) -> None:
        self._listeners: list[AdvisedSupportListener] = []
        self._active = False
        super().__init__(*interfaces)
        self.aop_proxy_factory = aop_proxy_factory or DefaultAopProxyFactory()

    def add_listener(self, listener: AdvisedSupportListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: AdvisedSupportListener) -> None:
        self._listeners.remove(listener)

    def create_aop_proxy(self) -> AopProxy:
        if not self._active:
            self._active = True
            for listener in self._listeners:
                listener.activated(self)
        return self.aop_proxy_factory.create_aop_proxy(self)

    def advice_changed(self) -> None:
        super().advice_changed()
        if self._active:
            for listener in self._listeners:
                listener.advice_changed(self)

    @property
    def is_active(self) -> bool:
        return self._active


class ProxyFactory(ProxyCreatorSupport):
    """Programmatic proxy creation.

    Usage::

        factory = ProxyFactory(order_service)
        factory.add_advice(TimingInterceptor())
        service = factory.get_proxy()

    Given a target and no interfaces, the proxy implements every interface
    of the target's class; with no interfaces at all a subclass proxy of
    the target's class is created.
    """

    def __init__(self, target: Any = None, interfaces: Iterable[type] = ()) -> None:
        interfaces = tuple(interfaces)
        super().__init__(*interfaces)
        if target is not None:
            self.set_target(target)
            if not interfaces:
                self.set_interfaces(*get_all_interfaces(type(target)))

    @classmethod
    def from_config(cls, config: Config, target: Any = None, interfaces: Iterable[type] = ()) -> ProxyFactory:
        """Factory whose flags default from ``proxykit.aop.proxy.*`` in *config*."""
        factory = cls(target, interfaces)
        factory.apply_properties(config.bind(ProxyProperties))
        return factory

    def get_proxy(self) -> Any:
        return self.create_aop_proxy().get_proxy()

    def get_proxy_class(self) -> type:
        return self.create_aop_proxy().get_proxy_class()

    @staticmethod
    def get_proxy_for(interface: type[T], interceptor: Interceptor) -> T:
        """Proxy *interface* with a single interceptor and no target."""
        factory = ProxyFactory(interfaces=(interface,))
        factory.add_advice(interceptor)
        return factory.get_proxy()

    @staticmethod
    def get_proxy_for_target_source(interface: type[T], target_source: TargetSource) -> T:
        """Proxy *interface* over *target_source* with no advice."""
        factory = ProxyFactory(interfaces=(interface,))
        factory.set_target_source(target_source)
        return factory.get_proxy()
