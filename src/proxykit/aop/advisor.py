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
"""Advisors: advice paired with the predicate that decides where it applies."""

from __future__ import annotations

from abc import ABC, abstractmethod

from proxykit.aop.advice import Advice, DynamicIntroductionAdvice
from proxykit.aop.pointcut import ClassFilter, Pointcut
from proxykit.core.ordering import LOWEST_PRECEDENCE, get_order
from proxykit.kernel.exceptions import ConfigurationError


class Advisor(ABC):
    """Holds one piece of advice.

    An advisor that is neither a :class:`PointcutAdvisor` nor an
    :class:`IntroductionAdvisor` applies to every method of every class.
    """

    @property
    @abstractmethod
    def advice(self) -> Advice: ...

    def get_order(self) -> int:
        return get_order(self.advice)


class PointcutAdvisor(Advisor):
    """Advisor driven by a pointcut."""

    @property
    @abstractmethod
    def pointcut(self) -> Pointcut: ...


class IntroductionAdvisor(Advisor):
    """Advisor that adds interfaces to the proxy; only class-level filtering applies."""

    @property
    @abstractmethod
    def class_filter(self) -> ClassFilter: ...

    @abstractmethod
    def get_interfaces(self) -> tuple[type, ...]: ...

    def validate_interfaces(self) -> None:
        """Raise ConfigurationError if the advice cannot serve the introduced interfaces."""


class _OrderedAdvisorMixin:
    _order: int | None = None

    def set_order(self, value: int) -> None:
        self._order = value

    def get_order(self) -> int:
        if self._order is not None:
            return self._order
        advice = self.advice  # type: ignore[attr-defined]
        return get_order(advice) if advice is not None else LOWEST_PRECEDENCE


class DefaultPointcutAdvisor(_OrderedAdvisorMixin, PointcutAdvisor):
    """Pointcut advisor for any kind of advice. Defaults to ``Pointcut.TRUE``.

    The advisor's order is its explicit ``order`` when given, otherwise the
    advice's own order.
    """

    def __init__(self, advice: Advice, pointcut: Pointcut = Pointcut.TRUE, order: int | None = None) -> None:
        self._advice = advice
        self._pointcut = pointcut
        self._order = order

    @property
    def advice(self) -> Advice:
        return self._advice

    @property
    def pointcut(self) -> Pointcut:
        return self._pointcut

    def __repr__(self) -> str:
        return f"DefaultPointcutAdvisor(pointcut={self._pointcut!r}, advice={type(self._advice).__name__})"


class DefaultIntroductionAdvisor(_OrderedAdvisorMixin, IntroductionAdvisor):
    """Introduction advisor publishing *interfaces* through *advice*.

    When no interfaces are given and the advice publishes its own
    (``get_interfaces()``), those are used.
    """

    def __init__(
        self,
        advice: Advice,
        *interfaces: type,
        class_filter: ClassFilter = ClassFilter.TRUE,
        order: int | None = None,
    ) -> None:
        self._advice = advice
        self._class_filter = class_filter
        self._order = order
        if not interfaces:
            published = getattr(advice, "get_interfaces", None)
            interfaces = tuple(published()) if callable(published) else ()
        for interface in interfaces:
            if not isinstance(interface, type):
                raise ConfigurationError(f"Introduced interface [{interface!r}] is not a class")
        self._interfaces: tuple[type, ...] = tuple(interfaces)

    @property
    def advice(self) -> Advice:
        return self._advice

    @property
    def class_filter(self) -> ClassFilter:
        return self._class_filter

    def get_interfaces(self) -> tuple[type, ...]:
        return self._interfaces

    def validate_interfaces(self) -> None:
        if not isinstance(self._advice, DynamicIntroductionAdvice):
            return
        for interface in self._interfaces:
            if not self._advice.implements_interface(interface):
                raise ConfigurationError(
                    f"DynamicIntroductionAdvice [{self._advice!r}] does not implement interface "
                    f"[{interface.__qualname__}] specified for introduction"
                )

    def __repr__(self) -> str:
        names = ", ".join(i.__qualname__ for i in self._interfaces)
        return f"DefaultIntroductionAdvisor(interfaces=[{names}], advice={type(self._advice).__name__})"
