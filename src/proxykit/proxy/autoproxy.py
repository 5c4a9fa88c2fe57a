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
"""Automatic proxying of beans by eligible advisors."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import structlog

from proxykit.aop.advice import Advice
from proxykit.aop.advisor import Advisor
from proxykit.aop.decorators import is_aspect
from proxykit.aop.interceptors import EXPOSE_INVOCATION_ADVISOR
from proxykit.aop.reflection import get_all_interfaces
from proxykit.aop.registry import AspectPointcutAdvisor, AspectRegistry
from proxykit.core.config import Config
from proxykit.proxy.advised import ProxyKitProxy
from proxykit.proxy.factory import ProxyFactory
from proxykit.proxy.properties import ProxyProperties
from proxykit.proxy.utils import find_advisors_that_can_apply, get_target_class, sort_advisors

logger = structlog.get_logger("proxykit.proxy.autoproxy")


def make_advisor_chain_aspect_capable(advisors: list[Advisor]) -> bool:
    """Put the invocation-exposing advisor first when aspect advice is present.

    Returns whether the list was changed.
    """
    if not advisors or EXPOSE_INVOCATION_ADVISOR in advisors:
        return False
    if any(isinstance(advisor, AspectPointcutAdvisor) for advisor in advisors):
        advisors.insert(0, EXPOSE_INVOCATION_ADVISOR)
        return True
    return False


class AdvisorAutoProxyCreator:
    """Bean post-processor that proxies every bean some advisor applies to.

    During ``before_init``, advisor beans and ``@aspect`` beans are
    collected. During ``after_init``, each other bean gets the advisors
    eligible for its class; a bean with at least one is replaced by a
    proxy. Advisors, advice, aspects and existing proxies are never proxied.
    """

    def __init__(self, advisors: Iterable[Advisor] = (), properties: ProxyProperties | None = None) -> None:
        self._advisors: list[Advisor] = list(advisors)
        self._aspects = AspectRegistry()
        self._properties = properties or ProxyProperties()

    @classmethod
    def from_config(cls, config: Config, advisors: Iterable[Advisor] = ()) -> AdvisorAutoProxyCreator:
        return cls(advisors, config.bind(ProxyProperties))

    def add_advisor(self, advisor: Advisor) -> None:
        self._advisors.append(advisor)

    def add_aspect(self, aspect_instance: Any) -> None:
        self._aspects.register(aspect_instance)

    def before_init(self, bean: Any, bean_name: str) -> Any:
        """Collect advisor and @aspect beans."""
        if isinstance(bean, Advisor):
            self.add_advisor(bean)
        elif is_aspect(bean):
            self.add_aspect(bean)
        return bean

    def after_init(self, bean: Any, bean_name: str) -> Any:
        """Wrap *bean* in a proxy when advisors apply to it."""
        if self.is_infrastructure_class(type(bean)) or isinstance(bean, ProxyKitProxy):
            return bean
        advisors = self.find_eligible_advisors(get_target_class(bean), bean_name)
        if not advisors:
            return bean
        return self.create_proxy(bean, bean_name, advisors)

    def is_infrastructure_class(self, bean_class: type) -> bool:
        return issubclass(bean_class, (Advice, Advisor)) or is_aspect(bean_class)

    def find_candidate_advisors(self) -> list[Advisor]:
        return [*self._advisors, *self._aspects.get_advisors()]

    def find_eligible_advisors(self, bean_class: type, bean_name: str) -> list[Advisor]:
        """Advisors that apply to *bean_class*, extended and sorted by precedence."""
        eligible = find_advisors_that_can_apply(self.find_candidate_advisors(), bean_class)
        self.extend_advisors(eligible)
        if eligible:
            eligible = sort_advisors(eligible)
        return eligible

    def extend_advisors(self, candidate_advisors: list[Advisor]) -> None:
        """Hook for adding synthetic advisors to an eligible list, in place."""
        make_advisor_chain_aspect_capable(candidate_advisors)

    def create_proxy(self, bean: Any, bean_name: str, advisors: list[Advisor]) -> Any:
        factory = ProxyFactory()
        factory.apply_properties(self._properties)
        freeze = factory.frozen
        factory.frozen = False
        factory.set_target(bean)
        if not factory.proxy_target_class:
            factory.set_interfaces(*get_all_interfaces(type(bean)))
        factory.add_advisors(*advisors)
        factory.pre_filtered = True
        factory.frozen = freeze
        proxy = factory.get_proxy()
        logger.debug(
            "auto_proxy_created",
            bean=bean_name,
            bean_class=type(bean).__qualname__,
            advisors=len(advisors),
            proxy_class=type(proxy).__qualname__,
        )
        return proxy


class AspectProxyFactory(ProxyFactory):
    """ProxyFactory that takes ``@aspect`` instances directly.

    Usage::

        factory = AspectProxyFactory(order_service)
        factory.add_aspect(AuditAspect())
        service = factory.get_proxy()
    """

    def add_aspect(self, aspect_instance: Any) -> None:
        registry = AspectRegistry()
        registry.register(aspect_instance)
        target_class = self.get_target_class()
        advisors: list[Advisor] = list(registry.get_advisors())
        if target_class is not None:
            advisors = find_advisors_that_can_apply(advisors, target_class)
        if EXPOSE_INVOCATION_ADVISOR not in self.get_advisors():
            make_advisor_chain_aspect_capable(advisors)
        self.add_advisors(*sort_advisors(advisors))
