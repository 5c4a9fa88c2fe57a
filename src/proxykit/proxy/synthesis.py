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
"""Proxy class synthesis.

:class:`ProxyClassSynthesizer` builds a class over a base type and a set of
interfaces in which every proxyable method is replaced by a dispatcher.
Each dispatcher is bound at class-creation time to the callback index its
:class:`CallbackFilter` assigns, and at call time looks the callback up in
the proxy instance's own callback table. One generated class therefore
serves every proxy instance whose configuration classifies methods the
same way.
"""

from __future__ import annotations

import functools
import itertools
import threading
import weakref
from collections.abc import Callable, Hashable, Sequence
from typing import Any, Protocol

import structlog

from proxykit.aop.invocation import MethodProxy, log_fast_path_failure
from proxykit.aop.reflection import PROXY_CLASS_SEPARATOR, Method, collect_methods, inherits, is_final_class
from proxykit.kernel.exceptions import (
    CheckedException,
    FastPathUnavailableError,
    ProxyConfigurationError,
    UndeclaredFailureError,
)

logger = structlog.get_logger("proxykit.proxy.synthesis")

CALLBACKS_ATTRIBUTE = "__proxykit_callbacks__"
ADVISED_ATTRIBUTE = "__proxykit_advised__"


class Callback(Protocol):
    """Handles calls to the methods a filter routes to it."""

    def intercept(
        self, proxy: Any, method: Method, args: tuple, kwargs: dict, method_proxy: MethodProxy | None
    ) -> Any: ...


class CallbackFilter(Protocol):
    """Assigns each method of a proxy class an index into the callback table.

    Generated classes are cached by the indices a filter assigns, so a
    filter needs no equality of its own.
    """

    def accept(self, method: Method) -> int: ...


def proxy_methods(base: type | None, interfaces: Sequence[type]) -> dict[str, Method]:
    """The methods a proxy class over *base* and *interfaces* overrides.

    ``typing.final`` methods are left alone: they run on the proxy instance
    itself.
    """
    classes = ([base] if base is not None else []) + list(interfaces)
    return {name: method for name, method in collect_methods(classes).items() if not method.is_final}


def make_dispatcher(method: Method, index: int, method_proxy: MethodProxy | None) -> Callable[..., Any]:
    """Build the function installed for *method* on a proxy class.

    This is the outermost boundary of a proxied call: a checked failure the
    method does not declare leaves it as :class:`UndeclaredFailureError`.
    """

    def dispatch(self: Any, *args: Any, **kwargs: Any) -> Any:
        callback = getattr(self, CALLBACKS_ATTRIBUTE)[index]
        try:
            return callback.intercept(self, method, args, kwargs, method_proxy)
        except CheckedException as ex:
            if method.declares(ex):
                raise
            raise UndeclaredFailureError(ex, str(method)) from ex

    functools.update_wrapper(dispatch, method.function, updated=())
    dispatch.__proxykit_callback_index__ = index  # type: ignore[attr-defined]
    return dispatch


def _winning_metaclass(bases: Sequence[type]) -> type:
    winner: type = type
    for base in bases:
        meta = type(base)
        if issubclass(meta, winner):
            winner = meta
        elif not issubclass(winner, meta):
            raise TypeError(f"metaclass conflict between {winner.__name__} and {meta.__name__}")
    return winner


def _minimal(interfaces: Sequence[type], base: type | None) -> list[type]:
    unique = list(dict.fromkeys(interfaces))
    return [
        interface
        for interface in unique
        if not (base is not None and inherits(base, interface))
        and not any(other is not interface and inherits(other, interface) for other in unique)
    ]


class ProxyClassSynthesizer:
    """Creates (and caches) proxy classes.

    With a *base*, the generated class subclasses it and its name carries
    the ``$$`` separator. Without one, the class implements *interfaces*
    only and is flagged as an interface proxy class.

    Generated classes are cached process-wide by base, interfaces, the
    callback index of every method and the extra namespace. The cache holds
    classes weakly: an entry lives as long as its class has live proxies or
    other referrers.

    Args:
        base: Class to subclass, or None for an interface-only proxy.
        interfaces: Additional interfaces (markers included).
        callback_filter: Maps each method to its callback index.
        namespace: Extra class attributes, e.g. attribute delegation hooks.
        use_cache: Reuse a previously generated equivalent class.
    """

    _cache: weakref.WeakValueDictionary[Hashable, type] = weakref.WeakValueDictionary()
    _lock = threading.Lock()
    _counter = itertools.count()

    def __init__(
        self,
        base: type | None,
        interfaces: Sequence[type],
        callback_filter: CallbackFilter,
        namespace: dict[str, Any] | None = None,
        use_cache: bool = True,
    ) -> None:
        self.base = base
        self.interfaces = tuple(interfaces)
        self.callback_filter = callback_filter
        self.namespace = dict(namespace or {})
        self.use_cache = use_cache

    def create_class(self) -> type:
        routing = self._routing()
        if not self.use_cache:
            return self._generate(routing)
        key = (
            self.base,
            self.interfaces,
            tuple((name, index) for name, (_, index) in routing.items()),
            tuple(self.namespace.items()),
        )
        with self._lock:
            cls = self._cache.get(key)
            if cls is None:
                cls = self._generate(routing)
                self._cache[key] = cls
            return cls

    @classmethod
    def clear_cache(cls) -> None:
        with cls._lock:
            cls._cache.clear()

    def _routing(self) -> dict[str, tuple[Method, int]]:
        return {
            name: (method, self.callback_filter.accept(method))
            for name, method in proxy_methods(self.base, self.interfaces).items()
        }

    def _class_name(self) -> str:
        serial = next(self._counter)
        if self.base is None:
            return f"$Proxy{serial}"
        return f"{self.base.__name__}{PROXY_CLASS_SEPARATOR}ProxyKit{PROXY_CLASS_SEPARATOR}{serial}"

    def _method_proxy(self, method: Method) -> MethodProxy | None:
        if self.base is None:
            return None
        try:
            return MethodProxy.create(self.base, method.name)
        except FastPathUnavailableError as ex:
            log_fast_path_failure(method, ex)
            return None

    def _generate(self, routing: dict[str, tuple[Method, int]]) -> type:
        base = self.base
        if base is not None and is_final_class(base):
            raise ProxyConfigurationError(f"Cannot subclass final class {base.__qualname__}", base=base)

        interfaces = _minimal(self.interfaces, base)
        bases = tuple(([base] if base is not None else []) + interfaces) or (object,)
        name = self._class_name()
        namespace: dict[str, Any] = {
            "__module__": base.__module__ if base is not None else __name__,
            "__qualname__": name,
            "__doc__": base.__doc__ if base is not None else None,
        }
        if base is None:
            namespace["__proxykit_interface_proxy__"] = True
        namespace.update(self.namespace)

        for method_name, (method, index) in routing.items():
            namespace[method_name] = make_dispatcher(method, index, self._method_proxy(method))

        try:
            cls = _winning_metaclass(bases)(name, bases, namespace)
        except TypeError as ex:
            target = base.__qualname__ if base is not None else ", ".join(i.__qualname__ for i in interfaces)
            raise ProxyConfigurationError(
                f"Could not generate proxy class for [{target}]: {ex}", base=base
            ) from ex

        logger.debug("proxy_class_generated", proxy_class=name, base=base.__qualname__ if base else None)
        return cls
