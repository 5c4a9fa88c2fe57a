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
"""MethodInvocation: the resumable call context that walks an interceptor chain."""

from __future__ import annotations

import copy
import inspect
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from proxykit.aop.advice import MethodInterceptor
from proxykit.aop.pointcut import MethodMatcher
from proxykit.aop.reflection import Method
from proxykit.kernel.exceptions import FastPathUnavailableError, InvocationError

logger = structlog.get_logger("proxykit.aop.invocation")


class InvocationState(str, Enum):
    """Lifecycle of a single call through a proxy."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    TARGET_INVOKED = "TARGET_INVOKED"
    RETURNED = "RETURNED"
    THREW = "THREW"


@dataclass(frozen=True)
class InterceptorAndDynamicMethodMatcher:
    """Chain link whose interceptor only runs when the runtime matcher accepts the call."""

    interceptor: MethodInterceptor
    method_matcher: MethodMatcher


ChainLink = MethodInterceptor | InterceptorAndDynamicMethodMatcher


# ---------------------------------------------------------------------------
# Join point dispatch
# ---------------------------------------------------------------------------


class MethodProxy:
    """Direct call path to the plain function implementing a method.

    Resolution is cached per concrete target class. A target whose method is
    not a plain function on its class (a builtin, a descriptor, an instance
    attribute shadowing it) has no fast path and must be called through
    :func:`invoke_joinpoint_using_reflection`.
    """

    __slots__ = ("name", "_owner", "_function", "_resolved")

    def __init__(self, name: str, function: Callable[..., Any], owner: type) -> None:
        self.name = name
        self._owner = owner
        self._function = function
        self._resolved: dict[type, Callable[..., Any]] = {owner: function}

    @classmethod
    def create(cls, owner: type, name: str) -> MethodProxy:
        raw = inspect.getattr_static(owner, name, None)
        if not inspect.isfunction(raw):
            raise FastPathUnavailableError(name, f"{type(raw).__name__} on {owner.__qualname__} is not a plain function")
        return cls(name, raw, owner)

    def resolve(self, target: Any) -> Callable[..., Any]:
        """Return the function to call with *target* as ``self``."""
        instance_dict = getattr(target, "__dict__", None)
        if instance_dict and self.name in instance_dict:
            raise FastPathUnavailableError(self.name, "shadowed by an instance attribute")
        target_type = type(target)
        function = self._resolved.get(target_type)
        if function is None:
            raw = inspect.getattr_static(target_type, self.name, None)
            if not inspect.isfunction(raw):
                raise FastPathUnavailableError(
                    self.name, f"{type(raw).__name__} on {target_type.__qualname__} is not a plain function"
                )
            self._resolved[target_type] = function = raw
        return function

    def invoke(self, target: Any, args: tuple, kwargs: dict) -> Any:
        return self.resolve(target)(target, *args, **kwargs)


def log_fast_path_failure(method: Method, ex: FastPathUnavailableError) -> None:
    logger.debug("fast_path_unavailable", method=str(method), reason=str(ex))


def invoke_joinpoint_using_reflection(target: Any, method: Method, args: tuple, kwargs: dict) -> Any:
    """Invoke *method* on *target* by attribute lookup.

    Lookup problems become :class:`InvocationError`; whatever the target
    itself raises propagates unchanged.
    """
    if target is None:
        raise InvocationError(f"No target available to invoke method [{method}]")
    try:
        bound = getattr(target, method.name)
    except AttributeError as ex:
        raise InvocationError(
            f"AOP configuration seems to be invalid: tried calling method [{method}] on target [{target!r}]",
            context={"method": str(method)},
        ) from ex
    if not callable(bound):
        raise InvocationError(f"Attribute [{method.name}] on target [{target!r}] is not callable")
    return bound(*args, **kwargs)


def invoke_joinpoint(target: Any, method: Method, args: tuple, kwargs: dict, method_proxy: MethodProxy | None) -> Any:
    """Call the target through the fast path when possible, reflection otherwise."""
    if method_proxy is not None:
        try:
            function = method_proxy.resolve(target)
        except FastPathUnavailableError as ex:
            log_fast_path_failure(method, ex)
        else:
            return function(target, *args, **kwargs)
    return invoke_joinpoint_using_reflection(target, method, args, kwargs)


# ---------------------------------------------------------------------------
# MethodInvocation
# ---------------------------------------------------------------------------


class MethodInvocation:
    """A single call through a proxy, walking its interceptor chain with a cursor.

    ``proceed()`` runs the interceptor at the cursor, which is responsible
    for calling ``proceed()`` again to continue down the chain. Once the
    chain is exhausted the target method itself is invoked. Interceptors may
    skip ``proceed()`` entirely or replace its result; to run the rest of
    the chain more than once use :meth:`invocable_clone`.

    Attributes:
        proxy: The proxy the call arrived on.
        target: The target instance, or None.
        method: The invoked method.
        arguments: Positional arguments (mutable through :meth:`set_arguments`).
        kwargs: Keyword arguments.
        target_class: The class of the target.
    """

    def __init__(
        self,
        proxy: Any,
        target: Any,
        method: Method,
        arguments: Sequence[Any],
        target_class: type | None,
        interceptors: Sequence[ChainLink],
        kwargs: dict[str, Any] | None = None,
        method_proxy: MethodProxy | None = None,
    ) -> None:
        self.proxy = proxy
        self.target = target
        self.method = method
        self.arguments: tuple = tuple(arguments)
        self.kwargs: dict[str, Any] = dict(kwargs or {})
        self.target_class = target_class
        self.interceptors: tuple[ChainLink, ...] = tuple(interceptors)
        self._method_proxy = method_proxy
        self._current_index = -1
        self._depth = 0
        self._state = InvocationState.PENDING
        self._user_attributes: dict[str, Any] | None = None

    @property
    def this(self) -> Any:
        return self.target

    @property
    def state(self) -> InvocationState:
        return self._state

    @property
    def current_index(self) -> int:
        """Position of the interceptor currently running; -1 before the first."""
        return self._current_index

    def set_arguments(self, *arguments: Any, **kwargs: Any) -> None:
        self.arguments = arguments
        if kwargs:
            self.kwargs = kwargs

    def proceed(self) -> Any:
        self._depth += 1
        try:
            result = self._proceed()
        except BaseException:
            if self._depth == 1:
                self._state = InvocationState.THREW
            raise
        else:
            if self._depth == 1:
                self._state = InvocationState.RETURNED
            return result
        finally:
            self._depth -= 1

    def _proceed(self) -> Any:
        if self._current_index == len(self.interceptors) - 1:
            self._state = InvocationState.TARGET_INVOKED
            return self.invoke_joinpoint()

        self._current_index += 1
        self._state = InvocationState.RUNNING
        link = self.interceptors[self._current_index]
        if isinstance(link, InterceptorAndDynamicMethodMatcher):
            target_class = self.target_class or self.method.declaring_class
            if link.method_matcher.matches_runtime(self.method, target_class, self.arguments, self.kwargs):
                return link.interceptor.invoke(self)
            # Runtime match failed: skip this interceptor.
            return self._proceed()
        return link.invoke(self)

    def invoke_joinpoint(self) -> Any:
        return invoke_joinpoint(self.target, self.method, self.arguments, self.kwargs, self._method_proxy)

    def invocable_clone(self, *arguments: Any, **kwargs: Any) -> MethodInvocation:
        """Copy that resumes from the current cursor, optionally with new arguments."""
        clone = copy.copy(self)
        clone._depth = 0
        clone._state = InvocationState.PENDING
        if arguments:
            clone.arguments = arguments
        if kwargs:
            clone.kwargs = kwargs
        if self._user_attributes is not None:
            clone._user_attributes = dict(self._user_attributes)
        return clone

    def set_user_attribute(self, key: str, value: Any) -> None:
        if value is None:
            if self._user_attributes is not None:
                self._user_attributes.pop(key, None)
            return
        if self._user_attributes is None:
            self._user_attributes = {}
        self._user_attributes[key] = value

    def get_user_attribute(self, key: str) -> Any:
        return self._user_attributes.get(key) if self._user_attributes is not None else None

    @property
    def user_attributes(self) -> dict[str, Any]:
        if self._user_attributes is None:
            self._user_attributes = {}
        return self._user_attributes

    def __repr__(self) -> str:
        target = f"target of type [{type(self.target).__qualname__}]" if self.target is not None else "no target"
        return f"MethodInvocation: {self.method}; {target}; state={self._state.value}"
