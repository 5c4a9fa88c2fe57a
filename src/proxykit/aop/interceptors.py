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
"""Built-in interceptors: one chain link per advice kind, plus exposure and introduction."""

from __future__ import annotations

import contextvars
from typing import Any

from proxykit.aop.advice import (
    AfterReturningAdvice,
    FinallyAdvice,
    IntroductionInterceptor,
    MethodBeforeAdvice,
    MethodInterceptor,
    ThrowsAdvice,
)
from proxykit.aop.advisor import DefaultPointcutAdvisor
from proxykit.aop.invocation import MethodInvocation
from proxykit.aop.reflection import get_all_interfaces, inherits
from proxykit.core.ordering import HIGHEST_PRECEDENCE
from proxykit.kernel.exceptions import InvocationError


# ---------------------------------------------------------------------------
# Advice adapters' interceptors
# ---------------------------------------------------------------------------


class MethodBeforeAdviceInterceptor(MethodInterceptor):
    def __init__(self, advice: MethodBeforeAdvice) -> None:
        self.advice = advice

    def invoke(self, invocation: MethodInvocation) -> Any:
        self.advice.before(invocation.method, invocation.arguments, invocation.target)
        return invocation.proceed()


class AfterReturningAdviceInterceptor(MethodInterceptor):
    def __init__(self, advice: AfterReturningAdvice) -> None:
        self.advice = advice

    def invoke(self, invocation: MethodInvocation) -> Any:
        result = invocation.proceed()
        self.advice.after_returning(result, invocation.method, invocation.arguments, invocation.target)
        return result


class ThrowsAdviceInterceptor(MethodInterceptor):
    """Notifies the advice of matching failures, then re-raises them unchanged."""

    def __init__(self, advice: ThrowsAdvice) -> None:
        self.advice = advice

    def invoke(self, invocation: MethodInvocation) -> Any:
        try:
            return invocation.proceed()
        except BaseException as ex:
            if isinstance(ex, self.advice.exception_types):
                self.advice.after_throwing(invocation.method, invocation.arguments, invocation.target, ex)
            raise


class FinallyAdviceInterceptor(MethodInterceptor):
    def __init__(self, advice: FinallyAdvice) -> None:
        self.advice = advice

    def invoke(self, invocation: MethodInvocation) -> Any:
        try:
            return invocation.proceed()
        finally:
            self.advice.after(invocation.method, invocation.arguments, invocation.target)


# ---------------------------------------------------------------------------
# Invocation exposure
# ---------------------------------------------------------------------------

_current_invocation: contextvars.ContextVar[MethodInvocation | None] = contextvars.ContextVar(
    "proxykit_current_invocation", default=None
)


class ExposeInvocationInterceptor(MethodInterceptor):
    """Publishes the running :class:`MethodInvocation` for :func:`current_invocation`.

    Must run first in a chain so later advice can see the invocation.
    """

    def invoke(self, invocation: MethodInvocation) -> Any:
        token = _current_invocation.set(invocation)
        try:
            return invocation.proceed()
        finally:
            _current_invocation.reset(token)

    def get_order(self) -> int:
        return HIGHEST_PRECEDENCE + 1

    def __repr__(self) -> str:
        return "ExposeInvocationInterceptor.INSTANCE"


EXPOSE_INVOCATION_INTERCEPTOR = ExposeInvocationInterceptor()
EXPOSE_INVOCATION_ADVISOR = DefaultPointcutAdvisor(EXPOSE_INVOCATION_INTERCEPTOR)


def current_invocation() -> MethodInvocation:
    """Return the invocation exposed by :class:`ExposeInvocationInterceptor`."""
    invocation = _current_invocation.get()
    if invocation is None:
        raise InvocationError(
            "No MethodInvocation found: check that an AOP invocation is in progress and that "
            "ExposeInvocationInterceptor is first in the interceptor chain"
        )
    return invocation


# ---------------------------------------------------------------------------
# Introductions
# ---------------------------------------------------------------------------


class DelegatingIntroductionInterceptor(IntroductionInterceptor):
    """Serves introduced interface methods from a delegate object.

    Calls to methods declared by an introduced interface go to *delegate*;
    everything else proceeds down the chain. Without explicit interfaces,
    every interface implemented by the delegate's class is introduced. A
    delegate returning itself is replaced by the proxy.

    Usage::

        advisor = DefaultIntroductionAdvisor(DelegatingIntroductionInterceptor(AuditTrailImpl()))
    """

    def __init__(self, delegate: Any = None, *interfaces: type) -> None:
        self.delegate = delegate if delegate is not None else self
        published = interfaces or tuple(get_all_interfaces(type(self.delegate)))
        self._interfaces: tuple[type, ...] = tuple(
            i for i in published if not issubclass(IntroductionInterceptor, i)
        )

    def get_interfaces(self) -> tuple[type, ...]:
        return self._interfaces

    def implements_interface(self, interface: type) -> bool:
        return any(inherits(published, interface) for published in self._interfaces)

    def is_introduced(self, declaring_class: type) -> bool:
        return any(inherits(published, declaring_class) for published in self._interfaces)

    def invoke(self, invocation: MethodInvocation) -> Any:
        if self.is_introduced(invocation.method.declaring_class):
            result = getattr(self.delegate, invocation.method.name)(*invocation.arguments, **invocation.kwargs)
            if result is self.delegate:
                return invocation.proxy
            return result
        return invocation.proceed()
