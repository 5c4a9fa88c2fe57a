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
"""Advisor adapters: turn every kind of advice into MethodInterceptor chain links."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from proxykit.aop.advice import (
    Advice,
    AfterReturningAdvice,
    FinallyAdvice,
    MethodBeforeAdvice,
    MethodInterceptor,
    ThrowsAdvice,
)
from proxykit.aop.advisor import Advisor, DefaultPointcutAdvisor
from proxykit.aop.interceptors import (
    AfterReturningAdviceInterceptor,
    FinallyAdviceInterceptor,
    MethodBeforeAdviceInterceptor,
    ThrowsAdviceInterceptor,
)
from proxykit.kernel.exceptions import UnknownAdviceTypeError


class AdvisorAdapter(ABC):
    """Knows how to turn one advice kind into an interceptor."""

    @abstractmethod
    def supports_advice(self, advice: Advice) -> bool: ...

    @abstractmethod
    def get_interceptor(self, advisor: Advisor) -> MethodInterceptor: ...


class MethodBeforeAdviceAdapter(AdvisorAdapter):
    def supports_advice(self, advice: Advice) -> bool:
        return isinstance(advice, MethodBeforeAdvice)

    def get_interceptor(self, advisor: Advisor) -> MethodInterceptor:
        return MethodBeforeAdviceInterceptor(advisor.advice)  # type: ignore[arg-type]


class AfterReturningAdviceAdapter(AdvisorAdapter):
    def supports_advice(self, advice: Advice) -> bool:
        return isinstance(advice, AfterReturningAdvice)

    def get_interceptor(self, advisor: Advisor) -> MethodInterceptor:
        return AfterReturningAdviceInterceptor(advisor.advice)  # type: ignore[arg-type]


class ThrowsAdviceAdapter(AdvisorAdapter):
    def supports_advice(self, advice: Advice) -> bool:
        return isinstance(advice, ThrowsAdvice)

    def get_interceptor(self, advisor: Advisor) -> MethodInterceptor:
        return ThrowsAdviceInterceptor(advisor.advice)  # type: ignore[arg-type]


class FinallyAdviceAdapter(AdvisorAdapter):
    def supports_advice(self, advice: Advice) -> bool:
        return isinstance(advice, FinallyAdvice)

    def get_interceptor(self, advisor: Advisor) -> MethodInterceptor:
        return FinallyAdviceInterceptor(advisor.advice)  # type: ignore[arg-type]


class DefaultAdvisorAdapterRegistry:
    """Registry of advice adapters.

    Out of the box it handles around (MethodInterceptor), before,
    after-returning, throws and finally advice. Further adapters can be
    registered with :meth:`register_advisor_adapter`.
    """

    def __init__(self) -> None:
        self._adapters: list[AdvisorAdapter] = [
            MethodBeforeAdviceAdapter(),
            AfterReturningAdviceAdapter(),
            ThrowsAdviceAdapter(),
            FinallyAdviceAdapter(),
        ]

    def wrap(self, advice: Any) -> Advisor:
        """Return *advice* as an advisor; bare advice applies to every method."""
        if isinstance(advice, Advisor):
            return advice
        if not isinstance(advice, Advice):
            raise UnknownAdviceTypeError(advice)
        if isinstance(advice, MethodInterceptor):
            return DefaultPointcutAdvisor(advice)
        for adapter in self._adapters:
            if adapter.supports_advice(advice):
                return DefaultPointcutAdvisor(advice)
        raise UnknownAdviceTypeError(advice)

    def get_interceptors(self, advisor: Advisor) -> list[MethodInterceptor]:
        """Return the interceptors that implement *advisor*'s advice, in adapter order."""
        advice = advisor.advice
        interceptors: list[MethodInterceptor] = []
        if isinstance(advice, MethodInterceptor):
            interceptors.append(advice)
        for adapter in self._adapters:
            if adapter.supports_advice(advice):
                interceptors.append(adapter.get_interceptor(advisor))
        if not interceptors:
            raise UnknownAdviceTypeError(advice)
        return interceptors

    def register_advisor_adapter(self, adapter: AdvisorAdapter) -> None:
        self._adapters.append(adapter)


_registry = DefaultAdvisorAdapterRegistry()


def get_advisor_adapter_registry() -> DefaultAdvisorAdapterRegistry:
    """Return the process-wide adapter registry."""
    return _registry
