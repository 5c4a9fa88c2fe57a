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
"""Proxy helpers: advisor eligibility, target class resolution, proxy identity."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from proxykit.aop.advisor import Advisor, IntroductionAdvisor, PointcutAdvisor
from proxykit.aop.pointcut import MethodMatcher, Pointcut, matches_method
from proxykit.aop.reflection import (
    Method,
    get_all_interfaces,
    get_user_class,
    is_interface,
    is_interface_proxy_class,
    is_subclass_proxy_class,
    iter_methods,
)
from proxykit.core.ordering import sort_by_order
from proxykit.kernel.exceptions import InvocationError
from proxykit.proxy.advised import Advised, ProxyKitProxy, RawTargetAccess, TargetClassAware

if TYPE_CHECKING:
    from proxykit.proxy.support import AdvisedSupport


# ---------------------------------------------------------------------------
# Advisor eligibility
# ---------------------------------------------------------------------------


def can_apply_pointcut(pointcut: Pointcut, target_class: type, has_introductions: bool = False) -> bool:
    """Whether *pointcut* can match any method of *target_class*.

    Methods are searched on the user class behind *target_class* and on
    every interface it implements; a universal method matcher accepts
    without looking at methods at all.
    """
    if not pointcut.class_filter.matches(target_class):
        return False
    matcher = pointcut.method_matcher
    if matcher is MethodMatcher.TRUE:
        return True

    classes: list[type] = []
    if not is_interface_proxy_class(target_class):
        classes.append(get_user_class(target_class))
    classes.extend(get_all_interfaces(target_class))
    for cls in classes:
        for method in iter_methods(cls):
            if matches_method(matcher, method, target_class, has_introductions):
                return True
    return False


def can_apply(advisor: Advisor, target_class: type, has_introductions: bool = False) -> bool:
    """Whether *advisor* applies to *target_class* at all."""
    if isinstance(advisor, IntroductionAdvisor):
        return advisor.class_filter.matches(target_class)
    if isinstance(advisor, PointcutAdvisor):
        return can_apply_pointcut(advisor.pointcut, target_class, has_introductions)
    return True


def find_advisors_that_can_apply(candidates: Sequence[Advisor], target_class: type) -> list[Advisor]:
    """The subset of *candidates* applicable to *target_class*, in candidate order.

    Introduction advisors are collected first; whether any matched is then
    passed to the remaining advisors' matchers.
    """
    if not candidates:
        return []
    eligible = [c for c in candidates if isinstance(c, IntroductionAdvisor) and can_apply(c, target_class)]
    has_introductions = bool(eligible)
    for candidate in candidates:
        if isinstance(candidate, IntroductionAdvisor):
            continue
        if can_apply(candidate, target_class, has_introductions):
            eligible.append(candidate)
    return eligible


def sort_advisors(advisors: Iterable[Advisor]) -> list[Advisor]:
    """Stable sort by precedence; unordered advisors keep their relative order."""
    return sort_by_order(advisors)


# ---------------------------------------------------------------------------
# Target class resolution
# ---------------------------------------------------------------------------


def is_aop_proxy(obj: Any) -> bool:
    return isinstance(obj, ProxyKitProxy)


def is_subclass_proxy(obj: Any) -> bool:
    return isinstance(obj, ProxyKitProxy) and is_subclass_proxy_class(type(obj))


def is_interface_proxy(obj: Any) -> bool:
    return isinstance(obj, ProxyKitProxy) and is_interface_proxy_class(type(obj))


def get_target_class(candidate: Any) -> type:
    """Resolve *candidate*, possibly a proxy, to the class of the object behind it."""
    result: type | None = None
    if isinstance(candidate, TargetClassAware):
        result = candidate.get_target_class()
    if result is None:
        cls = type(candidate)
        result = cls.__bases__[0] if is_subclass_proxy_class(cls) else cls
    return result


def ultimate_target_class(candidate: Any) -> type:
    """Like :func:`get_target_class` but unwraps nested proxies with static targets."""
    current = candidate
    result: type | None = None
    while isinstance(current, TargetClassAware):
        result = current.get_target_class()
        if not isinstance(current, Advised):
            break
        source = current.get_target_source()
        if not source.is_static():
            break
        current = source.get_target()
        if current is None:
            break
    if result is None:
        result = get_target_class(candidate)
    return result


# ---------------------------------------------------------------------------
# Interfaces and identity
# ---------------------------------------------------------------------------


def complete_proxied_interfaces(advised: AdvisedSupport) -> tuple[type, ...]:
    """The interfaces a proxy for *advised* implements, markers included.

    Without user interfaces, a target class that is itself an interface
    (or an interface proxy class) supplies them.
    """
    specified = list(advised.get_proxied_interfaces())
    if not specified:
        target_class = advised.get_target_class()
        if target_class is not None:
            if is_interface(target_class):
                advised.set_interfaces(target_class)
            elif is_interface_proxy_class(target_class):
                advised.set_interfaces(*proxied_user_interfaces_of_class(target_class))
            specified = list(advised.get_proxied_interfaces())
    if not advised.is_interface_proxied(ProxyKitProxy):
        specified.append(ProxyKitProxy)
    if not advised.opaque and not advised.is_interface_proxied(Advised):
        specified.append(Advised)
    return tuple(specified)


def proxied_user_interfaces_of_class(proxy_class: type) -> list[type]:
    return [b for b in proxy_class.__bases__ if b not in (ProxyKitProxy, Advised, object) and is_interface(b)]


def proxied_user_interfaces(proxy: Any) -> list[type]:
    """The user interfaces implemented by *proxy*, markers excluded."""
    return proxied_user_interfaces_of_class(type(proxy))


def _advisor_signature(advisor: Advisor) -> tuple[Any, ...]:
    pointcut = advisor.pointcut if isinstance(advisor, PointcutAdvisor) else None
    return type(advisor), type(advisor.advice), pointcut


def equals_advisors(a: AdvisedSupport, b: AdvisedSupport) -> bool:
    """Advisors match pairwise by advice class and pointcut equality, in order."""
    left, right = a.get_advisors(), b.get_advisors()
    if len(left) != len(right):
        return False
    return all(_advisor_signature(x) == _advisor_signature(y) for x, y in zip(left, right))


def equals_in_proxy(a: AdvisedSupport, b: AdvisedSupport) -> bool:
    """Proxy equality: interfaces, advisors and flags, never target identity."""
    return a is b or (
        a.get_proxied_interfaces() == b.get_proxied_interfaces()
        and equals_advisors(a, b)
        and a.frozen == b.frozen
        and a.expose_proxy == b.expose_proxy
        and a.target_source.is_static() == b.target_source.is_static()
    )


def proxy_hash(advised: AdvisedSupport) -> int:
    """Hash consistent with :func:`equals_in_proxy`."""
    advisors = tuple(
        (type(advisor), type(advisor.advice), type(advisor.pointcut) if isinstance(advisor, PointcutAdvisor) else None)
        for advisor in advised.get_advisors()
    )
    return hash(
        (
            advised.get_proxied_interfaces(),
            advisors,
            advised.frozen,
            advised.expose_proxy,
            advised.target_source.is_static(),
        )
    )


def advised_of(proxy: Any) -> AdvisedSupport | None:
    """The configuration behind a generated proxy instance, or None."""
    if not isinstance(proxy, ProxyKitProxy):
        return None
    return vars(proxy).get("__proxykit_advised__")


# ---------------------------------------------------------------------------
# Return values
# ---------------------------------------------------------------------------


def process_return_type(proxy: Any, target: Any, method: Method, return_value: Any) -> Any:
    """Replace a returned target with the proxy; reject None for primitive returns."""
    if (
        return_value is not None
        and return_value is target
        and not isinstance(target, RawTargetAccess)
        and not issubclass(method.declaring_class, RawTargetAccess)
    ):
        return proxy
    if return_value is None and method.returns_primitive():
        raise InvocationError(
            f"Null return value from advice does not match primitive return type for: {method}",
            context={"method": str(method)},
        )
    return return_value
