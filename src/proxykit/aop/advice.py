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
"""Advice types: the cross-cutting behaviours an advisor applies.

Every advice kind is turned into a :class:`MethodInterceptor` chain link by
the adapter registry, so the invocation machinery only ever sees
``interceptor.invoke(invocation)``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from proxykit.aop.invocation import MethodInvocation
    from proxykit.aop.reflection import Method


class Advice:
    """Marker base for every kind of advice."""


class Interceptor(Advice):
    """Marker for advice that takes control of the call itself."""


class MethodInterceptor(Interceptor, ABC):
    """Around advice: receives the invocation and decides whether to proceed.

    Usage::

        class TimingInterceptor(MethodInterceptor):
            def invoke(self, invocation):
                started = time.perf_counter()
                try:
                    return invocation.proceed()
                finally:
                    record(invocation.method.name, time.perf_counter() - started)
    """

    @abstractmethod
    def invoke(self, invocation: MethodInvocation) -> Any: ...


class BeforeAdvice(Advice):
    """Marker for advice that runs before the join point."""


class MethodBeforeAdvice(BeforeAdvice, ABC):
    """Runs before the method; raising prevents the call."""

    @abstractmethod
    def before(self, method: Method, args: tuple, target: Any) -> None: ...


class AfterAdvice(Advice):
    """Marker for advice that runs after the join point."""


class AfterReturningAdvice(AfterAdvice, ABC):
    """Runs after a normal return; sees but cannot replace the return value."""

    @abstractmethod
    def after_returning(self, return_value: Any, method: Method, args: tuple, target: Any) -> None: ...


class ThrowsAdvice(AfterAdvice, ABC):
    """Runs when the join point raises; the failure is re-raised afterwards.

    ``exception_types`` narrows which failures trigger the advice.
    """

    exception_types: tuple[type[BaseException], ...] = (Exception,)

    @abstractmethod
    def after_throwing(self, method: Method, args: tuple, target: Any, ex: BaseException) -> None: ...


class FinallyAdvice(AfterAdvice, ABC):
    """Runs after the join point whatever the outcome."""

    @abstractmethod
    def after(self, method: Method, args: tuple, target: Any) -> None: ...


class DynamicIntroductionAdvice(Advice, ABC):
    """Advice that makes the proxy implement additional interfaces."""

    @abstractmethod
    def implements_interface(self, interface: type) -> bool: ...


class IntroductionInterceptor(MethodInterceptor, DynamicIntroductionAdvice, ABC):
    """Interceptor that serves the methods of introduced interfaces."""
