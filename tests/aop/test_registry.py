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
"""Tests for AspectRegistry and AdviceBinding."""

from __future__ import annotations

from proxykit.aop.aspect_advice import (
    AspectAfterReturningAdvice,
    AspectAroundAdvice,
    AspectBeforeAdvice,
)
from proxykit.aop.decorators import after_returning, around, aspect, before
from proxykit.aop.pointcut import ExpressionPointcut
from proxykit.aop.registry import AspectPointcutAdvisor, AspectRegistry
from proxykit.core.ordering import LOWEST_PRECEDENCE, order

# ---- Fixture aspects --------------------------------------------------------


@aspect
class LoggingAspect:
    @before("service.*.*")
    def log_before(self, jp):
        pass

    @after_returning("service.*.*")
    def log_after(self, jp):
        pass

    @around("service.*.*")
    def time_call(self, jp):
        return jp.proceed()


@order(10)
@aspect
class SecurityAspect:
    @around("service.*.create")
    def check_auth(self, jp):
        pass


@order(-5)
@aspect
class EarlyAspect:
    @before("service.*.*")
    def run_early(self, jp):
        pass


# ---- Tests ------------------------------------------------------------------


class TestAspectRegistry:
    """AspectRegistry registration, ordering, and matching."""

    def test_register_single_aspect_binding_count(self) -> None:
        registry = AspectRegistry()
        registry.register(LoggingAspect())
        assert len(registry.get_all_bindings()) == 3

    def test_bindings_have_correct_types_and_pointcuts(self) -> None:
        registry = AspectRegistry()
        registry.register(LoggingAspect())
        bindings = registry.get_all_bindings()

        assert {b.advice_type for b in bindings} == {"before", "after_returning", "around"}
        assert {b.pointcut for b in bindings} == {"service.*.*"}

    def test_advice_within_aspect_ordered_by_kind(self) -> None:
        registry = AspectRegistry()
        registry.register(LoggingAspect())
        kinds = [b.advice_type for b in registry.get_all_bindings()]
        assert kinds == ["around", "before", "after_returning"]

    def test_multiple_aspects_ordered_by_order(self) -> None:
        registry = AspectRegistry()
        registry.register(LoggingAspect())  # unordered
        registry.register(SecurityAspect())  # order 10
        registry.register(EarlyAspect())  # order -5

        orders = [b.aspect_order for b in registry.get_all_bindings()]
        assert orders == sorted(orders)
        assert orders[0] == -5
        assert orders[-1] == LOWEST_PRECEDENCE

    def test_get_matching_returns_matching_bindings(self) -> None:
        registry = AspectRegistry()
        registry.register(LoggingAspect())
        registry.register(SecurityAspect())

        matches = registry.get_matching("service.OrderService.create")
        assert len(matches) == 4

    def test_get_matching_partial(self) -> None:
        registry = AspectRegistry()
        registry.register(LoggingAspect())
        registry.register(SecurityAspect())

        # "delete" does not match SecurityAspect's "service.*.create"
        matches = registry.get_matching("service.OrderService.delete")
        assert len(matches) == 3

    def test_no_match_for_unrelated_qualified_name(self) -> None:
        registry = AspectRegistry()
        registry.register(LoggingAspect())
        assert registry.get_matching("repo.UserRepo.find_by_id") == []

    def test_register_returns_new_bindings(self) -> None:
        registry = AspectRegistry()
        registry.register(LoggingAspect())
        added = registry.register(SecurityAspect())

        assert [(b.advice_type, b.aspect_name) for b in added] == [("around", "SecurityAspect")]
        assert len(registry) == 4

    def test_equal_precedence_keeps_registration_order(self) -> None:
        registry = AspectRegistry()
        first, second = LoggingAspect(), LoggingAspect()
        registry.register(first)
        registry.register(second)
        owners = [b.handler.__self__ for b in registry.get_all_bindings()]
        assert owners == [first] * 3 + [second] * 3


class TestAspectAdvisors:
    """Every binding becomes an AspectPointcutAdvisor."""

    def test_one_advisor_per_binding(self) -> None:
        registry = AspectRegistry()
        registry.register(LoggingAspect())
        advisors = registry.get_advisors()

        assert len(advisors) == 3
        assert all(isinstance(a, AspectPointcutAdvisor) for a in advisors)
        assert [type(a.advice) for a in advisors] == [
            AspectAroundAdvice,
            AspectBeforeAdvice,
            AspectAfterReturningAdvice,
        ]

    def test_advisor_carries_expression_pointcut_and_order(self) -> None:
        registry = AspectRegistry()
        registry.register(SecurityAspect())
        (advisor,) = registry.get_advisors()

        assert advisor.pointcut == ExpressionPointcut("service.*.create")
        assert advisor.get_order() == 10
        assert advisor.aspect_name == "SecurityAspect"

    def test_advisors_sorted_across_aspects(self) -> None:
        registry = AspectRegistry()
        registry.register(SecurityAspect())
        registry.register(EarlyAspect())
        assert [a.get_order() for a in registry.get_advisors()] == [-5, 10]
