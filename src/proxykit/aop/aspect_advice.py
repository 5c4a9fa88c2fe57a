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
"""Advice backed by @aspect handler methods."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from proxykit.aop.advice import AfterReturningAdvice, MethodBeforeAdvice, MethodInterceptor
from proxykit.aop.interceptors import current_invocation
from proxykit.aop.invocation import MethodInvocation
from proxykit.aop.reflection import Method
from proxykit.aop.types import JoinPoint

JOIN_POINT_ATTRIBUTE = "proxykit.aop.join_point"


def join_point_for(invocation: MethodInvocation) -> JoinPoint:
    """The JoinPoint shared by all aspect advice running for *invocation*."""
    join_point = invocation.get_user_attribute(JOIN_POINT_ATTRIBUTE)
    if join_point is None:
        join_point = JoinPoint.of(invocation)
        invocation.set_user_attribute(JOIN_POINT_ATTRIBUTE, join_point)
    return join_point


class AspectAdvice:
    """Advice delegating to one handler method of an aspect instance.

    Attributes:
        handler: The bound handler, called with a :class:`JoinPoint`.
        pointcut: The pointcut expression the handler was declared with.
        aspect_order: Precedence of the declaring aspect.
    """

    advice_type = ""

    def __init__(self, handler: Callable[[JoinPoint], Any], pointcut: str, aspect_order: int) -> None:
        self.handler = handler
        self.pointcut = pointcut
        self.aspect_order = aspect_order

    def get_order(self) -> int:
        return self.aspect_order

    def __repr__(self) -> str:
        name = getattr(self.handler, "__qualname__", repr(self.handler))
        return f"{type(self).__name__}({name} @ {self.pointcut!r})"


class AspectBeforeAdvice(AspectAdvice, MethodBeforeAdvice):
    advice_type = "before"

    def before(self, method: Method, args: tuple, target: Any) -> None:
        self.handler(join_point_for(current_invocation()))


class AspectAfterReturningAdvice(AspectAdvice, AfterReturningAdvice):
    advice_type = "after_returning"

    def after_returning(self, return_value: Any, method: Method, args: tuple, target: Any) -> None:
        join_point = join_point_for(current_invocation())
        join_point.return_value = return_value
        self.handler(join_point)


class AspectAfterThrowingAdvice(AspectAdvice, MethodInterceptor):
    advice_type = "after_throwing"

    def invoke(self, invocation: MethodInvocation) -> Any:
        try:
            return invocation.proceed()
        except Exception as exc:
            join_point = join_point_for(invocation)
            join_point.exception = exc
            self.handler(join_point)
            raise


class AspectAfterAdvice(AspectAdvice, MethodInterceptor):
    advice_type = "after"

    def invoke(self, invocation: MethodInvocation) -> Any:
        try:
            return invocation.proceed()
        finally:
            self.handler(join_point_for(invocation))


class AspectAroundAdvice(AspectAdvice, MethodInterceptor):
    """Around advice; the handler decides whether and how often to call ``proceed``."""

    advice_type = "around"

    def invoke(self, invocation: MethodInvocation) -> Any:
        def proceed(*args: Any, **kwargs: Any) -> Any:
            return invocation.invocable_clone(*args, **kwargs).proceed()

        join_point = join_point_for(invocation).with_proceed(proceed)
        return self.handler(join_point)


ADVICE_CLASSES: dict[str, type[AspectAdvice]] = {
    cls.advice_type: cls
    for cls in (
        AspectAroundAdvice,
        AspectBeforeAdvice,
        AspectAfterAdvice,
        AspectAfterReturningAdvice,
        AspectAfterThrowingAdvice,
    )
}
