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
"""Tests for automatic proxy creation and aspect-driven proxies."""

from __future__ import annotations

from abc import ABC, abstractmethod

import pytest

from proxykit.aop.advice import MethodInterceptor
from proxykit.aop.advisor import DefaultPointcutAdvisor
from proxykit.aop.decorators import after, after_returning, after_throwing, around, aspect, before
from proxykit.aop.interceptors import EXPOSE_INVOCATION_ADVISOR
from proxykit.aop.pointcut import NameMatchMethodPointcut
from proxykit.core.config import Config
from proxykit.core.ordering import order
from proxykit.kernel.exceptions import ConfigurationError
from proxykit.proxy.autoproxy import AdvisorAutoProxyCreator, AspectProxyFactory
from proxykit.proxy.utils import is_aop_proxy

# ---- Fixtures ---------------------------------------------------------------


class OrderService(ABC):
    @abstractmethod
    def place(self, item: str) -> str: ...


class DefaultOrderService(OrderService):
    def place(self, item: str) -> str:
        if not item:
            raise ValueError("empty item")
        return f"order:{item}"


class Clock:
    def now(self) -> str:
        return "noon"


class Upper(MethodInterceptor):
    def invoke(self, invocation):
        return invocation.proceed().upper()


@aspect
class Tracing:
    def __init__(self) -> None:
        self.events: list[str] = []

    @around("**.DefaultOrderService.place")
    def wrap(self, join_point):
        self.events.append("around:start")
        result = join_point.proceed()
        self.events.append("around:end")
        return result

    @before("**.DefaultOrderService.place")
    def log_before(self, join_point):
        self.events.append("before")

    @after_returning("**.DefaultOrderService.place")
    def returned(self, join_point):
        self.events.append("after_returning")

    @after("**.DefaultOrderService.place")
    def done(self, join_point):
        self.events.append("after")

    @after_throwing("**.DefaultOrderService.place")
    def failed(self, join_point):
        self.events.append(f"after_throwing:{type(join_point.exception).__name__}")


@aspect
@order(1)
class Shouting:
    @around("**.DefaultOrderService.place")
    def shout(self, join_point):
        return join_point.proceed(join_point.args[0].upper())


def place_advisor() -> DefaultPointcutAdvisor:
    return DefaultPointcutAdvisor(Upper(), NameMatchMethodPointcut("place"))


# ---- AdvisorAutoProxyCreator ------------------------------------------------


class TestAutoProxyCreator:
    def test_matching_bean_is_proxied(self):
        creator = AdvisorAutoProxyCreator([place_advisor()])
        bean = creator.after_init(DefaultOrderService(), "orders")
        assert is_aop_proxy(bean)
        assert isinstance(bean, OrderService)
        assert bean.place("tea") == "ORDER:TEA"

    def test_unmatched_bean_is_returned_unchanged(self):
        creator = AdvisorAutoProxyCreator([place_advisor()])
        clock = Clock()
        assert creator.after_init(clock, "clock") is clock

    def test_advisor_beans_are_collected(self):
        creator = AdvisorAutoProxyCreator()
        advisor = place_advisor()
        assert creator.before_init(advisor, "upperAdvisor") is advisor
        assert creator.after_init(advisor, "upperAdvisor") is advisor
        assert creator.find_candidate_advisors() == [advisor]

    def test_existing_proxy_is_not_wrapped_again(self):
        creator = AdvisorAutoProxyCreator([place_advisor()])
        proxy = creator.after_init(DefaultOrderService(), "orders")
        assert creator.after_init(proxy, "orders") is proxy

    def test_from_config_proxies_target_class(self):
        config = Config({"proxykit": {"aop": {"proxy": {"proxy_target_class": True}}}})
        creator = AdvisorAutoProxyCreator.from_config(config, [place_advisor()])
        bean = creator.after_init(DefaultOrderService(), "orders")
        assert isinstance(bean, DefaultOrderService)
        assert bean.place("tea") == "ORDER:TEA"

    def test_frozen_config_yields_frozen_proxy(self):
        config = Config({"proxykit": {"aop": {"proxy": {"frozen": True}}}})
        creator = AdvisorAutoProxyCreator.from_config(config, [place_advisor()])
        bean = creator.after_init(DefaultOrderService(), "orders")
        assert bean.is_frozen()
        with pytest.raises(ConfigurationError, match="frozen"):
            bean.add_advice(Upper())


class TestAspectAutoProxy:
    def _proxied(self, *aspects):
        creator = AdvisorAutoProxyCreator()
        for instance in aspects:
            assert creator.before_init(instance, type(instance).__name__) is instance
            assert creator.after_init(instance, type(instance).__name__) is instance
        return creator, creator.after_init(DefaultOrderService(), "orders")

    def test_advice_runs_in_kind_order(self):
        tracing = Tracing()
        _, bean = self._proxied(tracing)
        assert bean.place("tea") == "order:tea"
        assert tracing.events == ["around:start", "before", "after_returning", "after", "around:end"]

    def test_failure_path(self):
        tracing = Tracing()
        _, bean = self._proxied(tracing)
        with pytest.raises(ValueError, match="empty item"):
            bean.place("")
        assert tracing.events == ["around:start", "before", "after_throwing:ValueError", "after"]

    def test_expose_invocation_advisor_comes_first(self):
        creator, _ = self._proxied(Tracing())
        advisors = creator.find_eligible_advisors(DefaultOrderService, "orders")
        assert advisors[0] is EXPOSE_INVOCATION_ADVISOR
        assert advisors.count(EXPOSE_INVOCATION_ADVISOR) == 1

    def test_around_proceeds_with_new_arguments(self):
        _, bean = self._proxied(Shouting())
        assert bean.place("tea") == "order:TEA"

    def test_aspect_order_decides_nesting(self):
        tracing = Tracing()
        _, bean = self._proxied(tracing, Shouting())
        assert bean.place("tea") == "order:TEA"
        assert tracing.events[0] == "around:start"


class TestAspectProxyFactory:
    def test_aspects_applied_to_target(self):
        tracing = Tracing()
        factory = AspectProxyFactory(DefaultOrderService())
        factory.add_aspect(tracing)
        proxy = factory.get_proxy()
        assert proxy.place("pen") == "order:pen"
        assert tracing.events[0] == "around:start"

    def test_expose_advisor_added_once(self):
        factory = AspectProxyFactory(DefaultOrderService())
        factory.add_aspect(Tracing())
        factory.add_aspect(Shouting())
        assert factory.get_advisors().count(EXPOSE_INVOCATION_ADVISOR) == 1
        assert factory.get_advisors()[0] is EXPOSE_INVOCATION_ADVISOR
