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
"""Precedence ordering: @order decorator, Ordered protocol and precedence constants."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Protocol, TypeVar, runtime_checkable

T = TypeVar("T", bound=type)
E = TypeVar("E")

HIGHEST_PRECEDENCE: int = -(2**31)
LOWEST_PRECEDENCE: int = 2**31 - 1


@runtime_checkable
class Ordered(Protocol):
    """Objects that report their own precedence. Lower value = higher priority."""

    def get_order(self) -> int: ...


def order(value: int) -> Callable[[T], T]:
    """Set the precedence of a class.

    Lower value = higher priority (runs first / outermost in a chain).
    Classes without an order sort last, at LOWEST_PRECEDENCE.
    """

    def decorator(cls: T) -> T:
        cls.__proxykit_order__ = value  # type: ignore[attr-defined]
        return cls

    return decorator


def get_order(obj: Any) -> int:
    """Get the order value for an instance or class.

    An instance implementing :class:`Ordered` wins over an ``@order`` on its
    class.
    """
    if not isinstance(obj, type) and isinstance(obj, Ordered):
        return obj.get_order()
    cls = obj if isinstance(obj, type) else type(obj)
    return getattr(cls, "__proxykit_order__", LOWEST_PRECEDENCE)


def sort_by_order(items: Iterable[E], key: Callable[[E], Any] | None = None) -> list[E]:
    """Return *items* sorted by precedence; ties keep their original order."""
    resolve = key or (lambda item: item)
    return sorted(items, key=lambda item: get_order(resolve(item)))
