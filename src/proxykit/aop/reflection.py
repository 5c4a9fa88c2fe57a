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
"""Method and class introspection used by pointcuts, chains and proxy synthesis."""

from __future__ import annotations

import builtins
import inspect
import types
import typing
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, TypeVar

F = TypeVar("F", bound=Callable[..., Any])

#: Marker embedded in the names of generated subclass proxies.
PROXY_CLASS_SEPARATOR = "$$"

#: Return annotation could not be determined.
UNKNOWN = inspect.Signature.empty

_PRIMITIVES: tuple[type, ...] = (int, float, bool, complex)

_INFRASTRUCTURE_MODULES = frozenset({"builtins", "typing", "typing_extensions", "abc", "collections.abc"})

# Names owned by the object model or by the proxy machinery itself.
_NEVER_PROXIED = frozenset(
    {
        "__init__",
        "__new__",
        "__init_subclass__",
        "__class_getitem__",
        "__subclasshook__",
        "__getattribute__",
        "__getattr__",
        "__setattr__",
        "__delattr__",
        "__dir__",
        "__reduce__",
        "__reduce_ex__",
        "__getstate__",
        "__setstate__",
        "__sizeof__",
        "__set_name__",
        "__get__",
        "__set__",
        "__delete__",
        "__instancecheck__",
        "__subclasscheck__",
    }
)


@dataclass(frozen=True)
class Method:
    """A method as seen on a type: its name, implementing function and declaring class."""

    name: str
    function: Callable[..., Any] = field(compare=False, repr=False)
    declaring_class: type

    def __str__(self) -> str:
        return f"{self.declaring_class.__qualname__}.{self.name}"

    @cached_property
    def return_type(self) -> Any:
        """The resolved return annotation, or :data:`UNKNOWN`."""
        try:
            hints = typing.get_type_hints(self.function)
        except (NameError, TypeError, AttributeError):
            raw = getattr(self.function, "__annotations__", {}).get("return", UNKNOWN)
            if isinstance(raw, str):
                return getattr(builtins, raw, raw)
            return raw
        return hints.get("return", UNKNOWN)

    @property
    def declared_exceptions(self) -> tuple[type[BaseException], ...]:
        return getattr(self.function, "__proxykit_throws__", ())

    @property
    def is_final(self) -> bool:
        return bool(getattr(self.function, "__final__", False))

    @property
    def is_private(self) -> bool:
        return self.name.startswith("_") and not is_dunder(self.name)

    @property
    def is_coroutine(self) -> bool:
        return inspect.iscoroutinefunction(self.function)

    def is_equals(self) -> bool:
        return self.name == "__eq__"

    def is_hash_code(self) -> bool:
        return self.name == "__hash__"

    def is_to_string(self) -> bool:
        return self.name in ("__repr__", "__str__")

    def is_finalize(self) -> bool:
        return self.name == "__del__"

    def returns_primitive(self) -> bool:
        """True when the return annotation is a non-optional numeric/bool type."""
        return self.return_type in _PRIMITIVES

    def may_return(self, cls: type | None) -> bool:
        """Whether a value of type *cls* is assignable to this method's return type.

        Unknown annotations are treated as assignable.
        """
        if cls is None:
            return False
        return _assignable(self.return_type, cls)

    def declares(self, ex: BaseException) -> bool:
        return isinstance(ex, self.declared_exceptions) if self.declared_exceptions else False

    def qualified_name(self, target_class: type | None = None) -> str:
        owner = target_class or self.declaring_class
        return f"{owner.__module__}.{owner.__qualname__}.{self.name}"


def _assignable(annotation: Any, cls: type) -> bool:
    if annotation is UNKNOWN or annotation is Any or annotation is typing.Self:
        return True
    if annotation is None or annotation is type(None):
        return False
    if isinstance(annotation, str):
        return annotation != "None"
    if isinstance(annotation, typing.TypeVar):
        return True
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        return any(_assignable(arg, cls) for arg in typing.get_args(annotation))
    if origin is not None:
        annotation = origin
    if isinstance(annotation, type):
        try:
            return issubclass(cls, annotation)
        except TypeError:
            return True
    return True


def is_dunder(name: str) -> bool:
    return len(name) > 4 and name.startswith("__") and name.endswith("__")


def inherits(cls: type, base: type) -> bool:
    """Nominal subclass check; unlike issubclass it accepts non-runtime protocols."""
    return base in inspect.getmro(cls)


def throws(*exception_types: type[BaseException]) -> Callable[[F], F]:
    """Declare the checked failures a method may raise.

    Usage::

        class Repository:
            @throws(NotFound, StaleVersion)
            def load(self, key: str) -> Record: ...
    """

    def decorator(fn: F) -> F:
        fn.__proxykit_throws__ = tuple(exception_types)  # type: ignore[attr-defined]
        return fn

    return decorator


def is_interface(cls: type) -> bool:
    """Abstract base classes with abstract methods and Protocol classes count as interfaces."""
    return bool(getattr(cls, "_is_protocol", False)) or inspect.isabstract(cls)


def is_final_class(cls: type) -> bool:
    return bool(getattr(cls, "__final__", False))


def _is_infrastructure(cls: type) -> bool:
    return cls is object or cls.__module__ in _INFRASTRUCTURE_MODULES


def is_subclass_proxy_class(cls: type) -> bool:
    return PROXY_CLASS_SEPARATOR in cls.__name__


def is_interface_proxy_class(cls: type) -> bool:
    return bool(vars(cls).get("__proxykit_interface_proxy__", False))


def get_user_class(cls: type) -> type:
    """Return the user-defined class for a possibly generated subclass proxy class."""
    if is_subclass_proxy_class(cls) and cls.__bases__[0] is not object:
        return cls.__bases__[0]
    return cls


def get_all_interfaces(cls: type) -> list[type]:
    """All interfaces in the MRO of *cls*, most specific first, including *cls* itself."""
    return [c for c in inspect.getmro(cls) if not _is_infrastructure(c) and is_interface(c)]


def iter_methods(cls: type) -> Iterable[Method]:
    """Proxyable methods visible on *cls*, first definition in the MRO wins."""
    seen: set[str] = set()
    for klass in inspect.getmro(cls):
        if _is_infrastructure(klass):
            continue
        for name, value in vars(klass).items():
            if name in seen or name in _NEVER_PROXIED:
                continue
            seen.add(name)
            if inspect.isfunction(value):
                yield Method(name, value, klass)


def collect_methods(classes: Iterable[type], identity: bool = True) -> dict[str, Method]:
    """Merge the method sets of *classes* in order; earlier classes win.

    With *identity*, ``__eq__`` and ``__hash__`` are always present,
    falling back to the ``object`` slots.
    """
    methods: dict[str, Method] = {}
    for cls in classes:
        for method in iter_methods(cls):
            methods.setdefault(method.name, method)
    if identity:
        for name in ("__eq__", "__hash__"):
            if name not in methods:
                methods[name] = Method(name, vars(object)[name], object)
    return methods


def find_method(cls: type, name: str) -> Method | None:
    """Resolve *name* on *cls* to a :class:`Method`, or None when it is not a plain function."""
    for klass in inspect.getmro(cls):
        if name in vars(klass):
            value = vars(klass)[name]
            if inspect.isfunction(value):
                return Method(name, value, klass)
            return None
    return None


def method_of(cls: type, name: str) -> Method:
    """Like :func:`find_method` but raises AttributeError when absent."""
    method = find_method(cls, name)
    if method is None:
        raise AttributeError(f"{cls.__qualname__} has no proxyable method '{name}'")
    return method
