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
"""Pointcuts: class filters, method matchers and pointcut expressions."""

from __future__ import annotations

import fnmatch
import re
from abc import ABC, abstractmethod
from typing import ClassVar

from proxykit.aop.reflection import Method, find_method, get_user_class, inherits, iter_methods


# ---------------------------------------------------------------------------
# Dotted glob expressions
# ---------------------------------------------------------------------------


def matches_pointcut(pattern: str, qualified_name: str) -> bool:
    """Check whether *qualified_name* matches a pointcut *pattern*.

    Pattern syntax
    --------------
    * ``*``: matches exactly one dot-separated segment.
    * ``**``: matches one or more segments (crosses dots).
    * Partial globs use fnmatch rules within one segment,
      e.g. ``get_*`` matches ``get_order``.

    Examples
    --------
    >>> matches_pointcut("service.*.*", "service.OrderService.create")
    True
    >>> matches_pointcut("**.*Service.*", "a.b.c.OrderService.create")
    True
    >>> matches_pointcut("*.my_method", "a.b.MyClass.my_method")
    False
    """
    return _pattern_to_regex(pattern).fullmatch(qualified_name) is not None


def _segment_to_regex(seg: str) -> str:
    if seg == "**":
        return r"(?:[^.]+\.)*[^.]+"
    if seg == "*":
        return r"[^.]+"

    parts: list[str] = []
    for ch in seg:
        if ch == "*":
            parts.append("[^.]*")
        elif ch == "?":
            parts.append("[^.]")
        else:
            parts.append(re.escape(ch))
    return "".join(parts)


def _pattern_to_regex(pattern: str) -> re.Pattern[str]:
    return re.compile(r"\.".join(_segment_to_regex(seg) for seg in pattern.split(".")))


# ---------------------------------------------------------------------------
# Class filters
# ---------------------------------------------------------------------------


class ClassFilter(ABC):
    """Restricts a pointcut to a set of target classes."""

    TRUE: ClassVar[ClassFilter]

    @abstractmethod
    def matches(self, cls: type) -> bool: ...


class _TrueClassFilter(ClassFilter):
    def matches(self, cls: type) -> bool:
        return True

    def __repr__(self) -> str:
        return "ClassFilter.TRUE"


ClassFilter.TRUE = _TrueClassFilter()


class SubclassFilter(ClassFilter):
    """Matches subclasses of any of the given types."""

    def __init__(self, *types_: type) -> None:
        self.types = types_

    def matches(self, cls: type) -> bool:
        return issubclass(get_user_class(cls), self.types)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SubclassFilter) and self.types == other.types

    def __hash__(self) -> int:
        return hash((SubclassFilter, self.types))

    def __repr__(self) -> str:
        return f"SubclassFilter({', '.join(t.__qualname__ for t in self.types)})"


# ---------------------------------------------------------------------------
# Method matchers
# ---------------------------------------------------------------------------


class MethodMatcher(ABC):
    """Decides whether advice applies to a method.

    Static matching (:meth:`matches`) happens once per method when the chain
    is built. A runtime matcher (:meth:`is_runtime` True) is consulted again
    with the actual call arguments through :meth:`matches_runtime`.
    """

    TRUE: ClassVar[MethodMatcher]

    @abstractmethod
    def matches(self, method: Method, target_class: type | None) -> bool: ...

    def is_runtime(self) -> bool:
        return False

    def matches_runtime(self, method: Method, target_class: type | None, args: tuple, kwargs: dict) -> bool:
        raise TypeError(f"{type(self).__name__} is not a runtime matcher")


class _TrueMethodMatcher(MethodMatcher):
    def matches(self, method: Method, target_class: type | None) -> bool:
        return True

    def __repr__(self) -> str:
        return "MethodMatcher.TRUE"


MethodMatcher.TRUE = _TrueMethodMatcher()


class IntroductionAwareMethodMatcher(MethodMatcher):
    """Matcher told whether introduction advisors already apply to the target class."""

    @abstractmethod
    def matches(self, method: Method, target_class: type | None, has_introductions: bool = False) -> bool: ...


class StaticMethodMatcher(MethodMatcher):
    """Matcher decided entirely at chain-build time."""


class DynamicMethodMatcher(MethodMatcher):
    """Matcher that also inspects call arguments on every invocation."""

    def matches(self, method: Method, target_class: type | None) -> bool:
        return True

    def is_runtime(self) -> bool:
        return True

    @abstractmethod
    def matches_runtime(self, method: Method, target_class: type | None, args: tuple, kwargs: dict) -> bool: ...


def matches_method(
    matcher: MethodMatcher, method: Method, target_class: type | None, has_introductions: bool = False
) -> bool:
    """Static match, passing *has_introductions* only to introduction-aware matchers."""
    if isinstance(matcher, IntroductionAwareMethodMatcher):
        return matcher.matches(method, target_class, has_introductions)
    return matcher.matches(method, target_class)


# ---------------------------------------------------------------------------
# Pointcuts
# ---------------------------------------------------------------------------


class Pointcut(ABC):
    """A class filter paired with a method matcher."""

    TRUE: ClassVar[Pointcut]

    @property
    @abstractmethod
    def class_filter(self) -> ClassFilter: ...

    @property
    @abstractmethod
    def method_matcher(self) -> MethodMatcher: ...


class _TruePointcut(Pointcut):
    @property
    def class_filter(self) -> ClassFilter:
        return ClassFilter.TRUE

    @property
    def method_matcher(self) -> MethodMatcher:
        return MethodMatcher.TRUE

    def __repr__(self) -> str:
        return "Pointcut.TRUE"


Pointcut.TRUE = _TruePointcut()


class StaticMethodMatcherPointcut(StaticMethodMatcher, Pointcut):
    """Convenience base: the pointcut is its own static method matcher."""

    _class_filter: ClassFilter = ClassFilter.TRUE

    @property
    def class_filter(self) -> ClassFilter:
        return self._class_filter

    @class_filter.setter
    def class_filter(self, value: ClassFilter) -> None:
        self._class_filter = value

    @property
    def method_matcher(self) -> MethodMatcher:
        return self


class DynamicMethodMatcherPointcut(DynamicMethodMatcher, Pointcut):
    """Convenience base: the pointcut is its own runtime method matcher."""

    @property
    def class_filter(self) -> ClassFilter:
        return ClassFilter.TRUE

    @property
    def method_matcher(self) -> MethodMatcher:
        return self


class NameMatchMethodPointcut(StaticMethodMatcherPointcut):
    """Matches method names against fnmatch patterns such as ``get_*``."""

    def __init__(self, *mapped_names: str) -> None:
        self.mapped_names: tuple[str, ...] = mapped_names

    def add_method_name(self, name: str) -> NameMatchMethodPointcut:
        widened = NameMatchMethodPointcut(*self.mapped_names, name)
        widened.class_filter = self.class_filter
        return widened

    def matches(self, method: Method, target_class: type | None) -> bool:
        return any(fnmatch.fnmatchcase(method.name, pattern) for pattern in self.mapped_names)

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, NameMatchMethodPointcut)
            and self.mapped_names == other.mapped_names
            and self.class_filter == other.class_filter
        )

    def __hash__(self) -> int:
        return hash((NameMatchMethodPointcut, self.mapped_names, self.class_filter))

    def __repr__(self) -> str:
        return f"NameMatchMethodPointcut({', '.join(self.mapped_names)})"


class AttributeMatchingPointcut(StaticMethodMatcherPointcut):
    """Matches methods whose function carries a truthy marker attribute.

    The target class implementation is checked first so markers placed on
    an overriding method count.
    """

    def __init__(self, attribute: str) -> None:
        self.attribute = attribute

    def matches(self, method: Method, target_class: type | None) -> bool:
        if getattr(method.function, self.attribute, False):
            return True
        if target_class is None:
            return False
        specific = find_method(get_user_class(target_class), method.name)
        return specific is not None and bool(getattr(specific.function, self.attribute, False))

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, AttributeMatchingPointcut)
            and self.attribute == other.attribute
            and self.class_filter == other.class_filter
        )

    def __hash__(self) -> int:
        return hash((AttributeMatchingPointcut, self.attribute, self.class_filter))

    def __repr__(self) -> str:
        return f"AttributeMatchingPointcut({self.attribute!r})"


class _ExpressionClassFilter(ClassFilter):
    def __init__(self, pointcut: ExpressionPointcut) -> None:
        self.pointcut = pointcut

    def matches(self, cls: type) -> bool:
        user_class = get_user_class(cls)
        return any(self.pointcut.matches(method, user_class) for method in iter_methods(user_class))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _ExpressionClassFilter) and self.pointcut == other.pointcut

    def __hash__(self) -> int:
        return hash((_ExpressionClassFilter, self.pointcut))


class ExpressionPointcut(Pointcut, IntroductionAwareMethodMatcher):
    """Dotted glob pointcut over ``module.Class.method`` qualified names.

    The class filter accepts a class when at least one of its methods
    matches. A method declared by a type the target class does not inherit
    from (an introduced interface) only matches while introductions apply,
    and is then matched by its declaring interface's name.
    """

    def __init__(self, expression: str) -> None:
        self.expression = expression
        self._regex = _pattern_to_regex(expression)
        self._class_filter = _ExpressionClassFilter(self)

    @property
    def class_filter(self) -> ClassFilter:
        return self._class_filter

    @property
    def method_matcher(self) -> MethodMatcher:
        return self

    def matches(self, method: Method, target_class: type | None, has_introductions: bool = False) -> bool:
        if target_class is None:
            return self._hit(method.qualified_name())
        owner = get_user_class(target_class)
        if method.declaring_class is not object and not inherits(owner, method.declaring_class):
            return has_introductions and self._hit(method.qualified_name())
        return self._hit(method.qualified_name(owner)) or self._hit(method.qualified_name())

    def _hit(self, qualified_name: str) -> bool:
        return self._regex.fullmatch(qualified_name) is not None

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ExpressionPointcut) and self.expression == other.expression

    def __hash__(self) -> int:
        return hash((ExpressionPointcut, self.expression))

    def __repr__(self) -> str:
        return f"ExpressionPointcut({self.expression!r})"


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


class _UnionClassFilter(ClassFilter):
    def __init__(self, *filters: ClassFilter) -> None:
        self.filters = filters

    def matches(self, cls: type) -> bool:
        return any(f.matches(cls) for f in self.filters)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _UnionClassFilter) and self.filters == other.filters

    def __hash__(self) -> int:
        return hash((_UnionClassFilter, self.filters))


class _IntersectionClassFilter(ClassFilter):
    def __init__(self, *filters: ClassFilter) -> None:
        self.filters = filters

    def matches(self, cls: type) -> bool:
        return all(f.matches(cls) for f in self.filters)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _IntersectionClassFilter) and self.filters == other.filters

    def __hash__(self) -> int:
        return hash((_IntersectionClassFilter, self.filters))


class _UnionMethodMatcher(IntroductionAwareMethodMatcher):
    def __init__(self, *matchers: MethodMatcher) -> None:
        self.matchers = matchers

    def matches(self, method: Method, target_class: type | None, has_introductions: bool = False) -> bool:
        return any(matches_method(m, method, target_class, has_introductions) for m in self.matchers)

    def is_runtime(self) -> bool:
        return any(m.is_runtime() for m in self.matchers)

    def matches_runtime(self, method: Method, target_class: type | None, args: tuple, kwargs: dict) -> bool:
        for m in self.matchers:
            if matches_method(m, method, target_class) and (
                not m.is_runtime() or m.matches_runtime(method, target_class, args, kwargs)
            ):
                return True
        return False

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _UnionMethodMatcher) and self.matchers == other.matchers

    def __hash__(self) -> int:
        return hash((_UnionMethodMatcher, self.matchers))


class _IntersectionMethodMatcher(IntroductionAwareMethodMatcher):
    def __init__(self, *matchers: MethodMatcher) -> None:
        self.matchers = matchers

    def matches(self, method: Method, target_class: type | None, has_introductions: bool = False) -> bool:
        return all(matches_method(m, method, target_class, has_introductions) for m in self.matchers)

    def is_runtime(self) -> bool:
        return any(m.is_runtime() for m in self.matchers)

    def matches_runtime(self, method: Method, target_class: type | None, args: tuple, kwargs: dict) -> bool:
        return all(
            not m.is_runtime() or m.matches_runtime(method, target_class, args, kwargs) for m in self.matchers
        )

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _IntersectionMethodMatcher) and self.matchers == other.matchers

    def __hash__(self) -> int:
        return hash((_IntersectionMethodMatcher, self.matchers))


class ComposablePointcut(Pointcut):
    """Immutable pointcut built by union and intersection of other pointcuts.

    Usage::

        pc = ComposablePointcut(SubclassFilter(Repository)).intersection(NameMatchMethodPointcut("save*"))
    """

    def __init__(
        self,
        class_filter: ClassFilter = ClassFilter.TRUE,
        method_matcher: MethodMatcher = MethodMatcher.TRUE,
    ) -> None:
        self._class_filter = class_filter
        self._method_matcher = method_matcher

    @property
    def class_filter(self) -> ClassFilter:
        return self._class_filter

    @property
    def method_matcher(self) -> MethodMatcher:
        return self._method_matcher

    def union(self, other: Pointcut) -> ComposablePointcut:
        return ComposablePointcut(
            _UnionClassFilter(self._class_filter, other.class_filter),
            _UnionMethodMatcher(self._method_matcher, other.method_matcher),
        )

    def intersection(self, other: Pointcut) -> ComposablePointcut:
        return ComposablePointcut(
            _IntersectionClassFilter(self._class_filter, other.class_filter),
            _IntersectionMethodMatcher(self._method_matcher, other.method_matcher),
        )

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, ComposablePointcut)
            and self._class_filter == other._class_filter
            and self._method_matcher == other._method_matcher
        )

    def __hash__(self) -> int:
        return hash((ComposablePointcut, self._class_filter, self._method_matcher))
