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
"""Aspect registration: advice handlers become pointcut advisors."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from operator import itemgetter
from typing import Any

import structlog

from proxykit.aop.advisor import DefaultPointcutAdvisor
from proxykit.aop.aspect_advice import ADVICE_CLASSES, AspectAdvice
from proxykit.aop.decorators import declared_advice
from proxykit.aop.pointcut import ExpressionPointcut, matches_pointcut
from proxykit.core.ordering import get_order

logger = structlog.get_logger("proxykit.aop.registry")


@dataclass(frozen=True)
class AdviceBinding:
    """One advice handler of a registered aspect.

    Attributes:
        advice_type: The advice kind, one of ``ADVICE_TYPES``.
        pointcut: Expression selecting the advised methods.
        handler: The handler bound to the aspect instance.
        aspect_order: Precedence of the declaring aspect.
        aspect_name: Qualified name of the declaring aspect class.
    """

    advice_type: str
    pointcut: str
    handler: Callable[..., Any] = field(compare=False)
    aspect_order: int
    aspect_name: str = ""

    def matches(self, qualified_name: str) -> bool:
        return matches_pointcut(self.pointcut, qualified_name)

    def to_advice(self) -> AspectAdvice:
        return ADVICE_CLASSES[self.advice_type](self.handler, self.pointcut, self.aspect_order)


class AspectPointcutAdvisor(DefaultPointcutAdvisor):
    """Advisor generated from one advice method of an aspect."""

    def __init__(self, advice: AspectAdvice, aspect_name: str) -> None:
        super().__init__(advice, ExpressionPointcut(advice.pointcut), order=advice.aspect_order)
        self.aspect_name = aspect_name

    def __repr__(self) -> str:
        return f"AspectPointcutAdvisor(aspect={self.aspect_name}, advice={self.advice!r})"


class AspectRegistry:
    """Holds the advice of registered aspects, ordered by aspect precedence.

    Within one aspect, handlers keep the ranking of
    :func:`~proxykit.aop.decorators.declared_advice`; equal precedence
    across aspects keeps registration order.

    Usage::

        registry = AspectRegistry()
        registry.register(AuditingAspect())
        factory.add_advisors(*registry.get_advisors())
    """

    def __init__(self) -> None:
        self._entries: list[tuple[AdviceBinding, AspectPointcutAdvisor]] = []

    def register(self, aspect_instance: Any) -> list[AdviceBinding]:
        """Bind every advice handler of *aspect_instance* and return the new bindings."""
        aspect_name = type(aspect_instance).__qualname__
        precedence = get_order(aspect_instance)
        added = [
            AdviceBinding(spec.advice_type, spec.pointcut, handler, precedence, aspect_name)
            for spec, handler in declared_advice(aspect_instance)
        ]
        entries = self._entries + [(b, AspectPointcutAdvisor(b.to_advice(), aspect_name)) for b in added]
        self._entries = sorted(entries, key=lambda entry: entry[0].aspect_order)
        logger.debug("aspect_registered", aspect=aspect_name, order=precedence, advice=len(added))
        return added

    def get_all_bindings(self) -> list[AdviceBinding]:
        return list(map(itemgetter(0), self._entries))

    def get_matching(self, qualified_name: str) -> list[AdviceBinding]:
        """Bindings whose pointcut matches *qualified_name*, in precedence order."""
        return [binding for binding, _ in self._entries if binding.matches(qualified_name)]

    def get_advisors(self) -> list[AspectPointcutAdvisor]:
        return list(map(itemgetter(1), self._entries))

    def __len__(self) -> int:
        return len(self._entries)
