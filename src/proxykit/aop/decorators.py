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
"""Aspect declarations: ``@aspect`` marks a class, advice decorators mark its handlers.

Usage::

    @aspect(order=10)
    class Auditing:
        @before("**.OrderService.place")
        def record(self, join_point: JoinPoint) -> None: ...

        @around("**.OrderService.*")
        def timed(self, join_point: JoinPoint) -> Any:
            return join_point.proceed()
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar, overload

from proxykit.core import ordering
from proxykit.kernel.exceptions import ConfigurationError

T = TypeVar("T", bound=type)
F = TypeVar("F", bound=Callable[..., Any])

#: Advice kinds, in the order they are applied within one aspect.
ADVICE_TYPES = ("around", "before", "after", "after_returning", "after_throwing")


@dataclass(frozen=True)
class AdviceSpec:
    """The advice kind and pointcut recorded on a handler function."""

    advice_type: str
    pointcut: str

    @property
    def rank(self) -> int:
        return ADVICE_TYPES.index(self.advice_type)


@overload
def aspect(cls: T) -> T: ...


@overload
def aspect(*, order: int | None = None) -> Callable[[T], T]: ...


def aspect(cls: Any = None, *, order: int | None = None) -> Any:
    """Mark a class as an aspect, optionally with its precedence.

    Aspect instances are turned into advisors by the aspect registry and
    are never proxied themselves by the auto proxy creator. ``@aspect`` and
    ``@aspect(order=...)`` are both accepted; the latter is shorthand for
    stacking :func:`~proxykit.core.ordering.order`.
    """

    def mark(target: T) -> T:
        target.__proxykit_aspect__ = True  # type: ignore[attr-defined]
        if order is not None:
            ordering.order(order)(target)
        return target

    return mark if cls is None else mark(cls)


def is_aspect(obj: Any) -> bool:
    cls = obj if isinstance(obj, type) else type(obj)
    return bool(getattr(cls, "__proxykit_aspect__", False))


def advice_spec(fn: Any) -> AdviceSpec | None:
    """The :class:`AdviceSpec` declared on *fn* (function or bound method), if any."""
    return getattr(fn, "__proxykit_advice__", None)


def declared_advice(aspect_instance: Any) -> list[tuple[AdviceSpec, Callable[..., Any]]]:
    """Advice handlers of *aspect_instance*, bound, ranked by kind then name."""
    found = []
    for name, fn in inspect.getmembers(type(aspect_instance), inspect.isfunction):
        spec = advice_spec(fn)
        if spec is not None:
            found.append((spec, name))
    found.sort(key=lambda item: (item[0].rank, item[1]))
    return [(spec, getattr(aspect_instance, name)) for spec, name in found]


def _validated(pointcut: Any) -> str:
    if not isinstance(pointcut, str) or not pointcut.strip():
        raise ConfigurationError("Advice needs a non-empty pointcut expression", context={"pointcut": pointcut})
    if any(not segment for segment in pointcut.split(".")):
        raise ConfigurationError(f"Malformed pointcut expression '{pointcut}'", context={"pointcut": pointcut})
    return pointcut


def _advice_decorator(advice_type: str) -> Callable[[str], Callable[[F], F]]:
    def declare(pointcut: str) -> Callable[[F], F]:
        spec = AdviceSpec(advice_type, _validated(pointcut))

        def decorator(fn: F) -> F:
            existing = advice_spec(fn)
            if existing is not None:
                raise ConfigurationError(
                    f"'{fn.__qualname__}' is already declared as {existing.advice_type} advice",
                    context={"pointcut": existing.pointcut},
                )
            fn.__proxykit_advice__ = spec  # type: ignore[attr-defined]
            return fn

        return decorator

    declare.__name__ = declare.__qualname__ = advice_type
    declare.__doc__ = f"Declare the decorated aspect method as ``{advice_type}`` advice for *pointcut*."
    return declare


before = _advice_decorator("before")
after_returning = _advice_decorator("after_returning")
after_throwing = _advice_decorator("after_throwing")
after = _advice_decorator("after")
around = _advice_decorator("around")
