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
"""Interceptor chain assembly for a (method, target class) pair."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from proxykit.aop.adapters import DefaultAdvisorAdapterRegistry, get_advisor_adapter_registry
from proxykit.aop.advisor import Advisor, IntroductionAdvisor, PointcutAdvisor
from proxykit.aop.invocation import ChainLink, InterceptorAndDynamicMethodMatcher
from proxykit.aop.pointcut import matches_method
from proxykit.aop.reflection import Method

if TYPE_CHECKING:
    from proxykit.proxy.support import AdvisedSupport


class DefaultAdvisorChainFactory:
    """Resolves the ordered interceptor chain for a method from a configuration.

    Advisors contribute in configuration order. Pointcut advisors contribute
    when their pointcut accepts the method on the target class, introduction
    advisors when their class filter accepts the class, and any other advisor
    always contributes. Advisors with a runtime method matcher contribute
    :class:`InterceptorAndDynamicMethodMatcher` links that are re-checked
    against the call arguments.
    """

    def __init__(self, registry: DefaultAdvisorAdapterRegistry | None = None) -> None:
        self._registry = registry or get_advisor_adapter_registry()

    def get_interceptors_and_dynamic_interception_advice(
        self, config: AdvisedSupport, method: Method, target_class: type | None
    ) -> list[ChainLink]:
        advisors = config.get_advisors()
        actual_class = target_class or method.declaring_class
        chain: list[ChainLink] = []
        has_introductions: bool | None = None

        for advisor in advisors:
            if isinstance(advisor, PointcutAdvisor):
                pointcut = advisor.pointcut
                if not (config.is_pre_filtered() or pointcut.class_filter.matches(actual_class)):
                    continue
                matcher = pointcut.method_matcher
                if has_introductions is None:
                    has_introductions = has_matching_introductions(advisors, actual_class)
                if not matches_method(matcher, method, actual_class, has_introductions):
                    continue
                interceptors = self._registry.get_interceptors(advisor)
                if matcher.is_runtime():
                    chain.extend(InterceptorAndDynamicMethodMatcher(i, matcher) for i in interceptors)
                else:
                    chain.extend(interceptors)
            elif isinstance(advisor, IntroductionAdvisor):
                if config.is_pre_filtered() or advisor.class_filter.matches(actual_class):
                    chain.extend(self._registry.get_interceptors(advisor))
            else:
                chain.extend(self._registry.get_interceptors(advisor))

        return chain

    def __eq__(self, other: object) -> bool:
        return isinstance(other, DefaultAdvisorChainFactory) and self._registry is other._registry

    def __hash__(self) -> int:
        return hash((DefaultAdvisorChainFactory, id(self._registry)))


def has_matching_introductions(advisors: Sequence[Advisor], actual_class: type) -> bool:
    return any(
        isinstance(advisor, IntroductionAdvisor) and advisor.class_filter.matches(actual_class)
        for advisor in advisors
    )
