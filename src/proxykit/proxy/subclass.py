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
"""Subclass-based proxies.

A subclass proxy is an instance of a generated subclass of the target's
user class. Each of its methods is bound to one of a fixed set of
callbacks, chosen once per generated class by :class:`ProxyCallbackFilter`:

====================  =======================================================
``AOP_PROXY``         run the interceptor chain (advised, exposing or unfrozen)
``INVOKE_TARGET``     call the target, fetching/releasing it and rewriting a
                      returned target to the proxy
``NO_OVERRIDE``       ``__del__``; does nothing
``DISPATCH_TARGET``   call the fixed target directly, no return processing
``DISPATCH_ADVISED``  call the configuration (:class:`Advised` methods)
``INVOKE_EQUALS``     proxy equality
``INVOKE_HASHCODE``   proxy hash
====================  =======================================================

Frozen configurations with a static target additionally get one
precomputed fixed-chain callback per advised method, at indices starting
after the ones above.
"""

from __future__ import annotations

import threading
import weakref
from collections.abc import Sequence
from enum import Enum
from typing import Any

import structlog

from proxykit.aop.invocation import (
    ChainLink,
    MethodInvocation,
    MethodProxy,
    invoke_joinpoint,
    invoke_joinpoint_using_reflection,
)
from proxykit.aop.reflection import (
    Method,
    get_all_interfaces,
    is_dunder,
    is_interface,
    is_subclass_proxy_class,
    iter_methods,
)
from proxykit.kernel.exceptions import ConfigurationError, ProxyConfigurationError
from proxykit.proxy.advised import ADVISED_INTERFACES, Advised, ProxyKitProxy
from proxykit.proxy.base import AopProxy, check_config
from proxykit.proxy.context import reset_current_proxy, set_current_proxy
from proxykit.proxy.support import AdvisedSupport
from proxykit.proxy.synthesis import ADVISED_ATTRIBUTE, CALLBACKS_ATTRIBUTE, ProxyClassSynthesizer, proxy_methods
from proxykit.proxy.target import TargetSource
from proxykit.proxy.utils import (
    advised_of,
    complete_proxied_interfaces,
    equals_in_proxy,
    process_return_type,
    proxy_hash,
)

logger = structlog.get_logger("proxykit.proxy.subclass")

AOP_PROXY = 0
INVOKE_TARGET = 1
NO_OVERRIDE = 2
DISPATCH_TARGET = 3
DISPATCH_ADVISED = 4
INVOKE_EQUALS = 5
INVOKE_HASHCODE = 6

_LIVE_ATTRIBUTE = "__proxykit_live__"


class CallbackCategory(str, Enum):
    """The behaviour a callback index stands for."""

    IDENTITY = "IDENTITY"
    LIFECYCLE_NOOP = "LIFECYCLE_NOOP"
    INTROSPECTION = "INTROSPECTION"
    ADVISED = "ADVISED"
    PASSTHROUGH = "PASSTHROUGH"


def classify(index: int) -> CallbackCategory:
    """Map a callback index to its category; fixed-chain indices are ADVISED."""
    if index in (INVOKE_EQUALS, INVOKE_HASHCODE):
        return CallbackCategory.IDENTITY
    if index == NO_OVERRIDE:
        return CallbackCategory.LIFECYCLE_NOOP
    if index == DISPATCH_ADVISED:
        return CallbackCategory.INTROSPECTION
    if index in (INVOKE_TARGET, DISPATCH_TARGET):
        return CallbackCategory.PASSTHROUGH
    return CallbackCategory.ADVISED


# ---------------------------------------------------------------------------
# Callbacks
# ---------------------------------------------------------------------------


class _NoOp:
    def intercept(self, proxy: Any, method: Method, args: tuple, kwargs: dict, method_proxy: MethodProxy | None) -> Any:
        return None


_NO_OP = _NoOp()


class StaticUnadvisedInterceptor:
    """Passthrough to a static target, rewriting a returned target to the proxy."""

    def __init__(self, target: Any) -> None:
        self.target = target

    def intercept(self, proxy: Any, method: Method, args: tuple, kwargs: dict, method_proxy: MethodProxy | None) -> Any:
        result = invoke_joinpoint(self.target, method, args, kwargs, method_proxy)
        return process_return_type(proxy, self.target, method, result)


class StaticUnadvisedExposedInterceptor(StaticUnadvisedInterceptor):
    """:class:`StaticUnadvisedInterceptor` that also exposes the proxy."""

    def intercept(self, proxy: Any, method: Method, args: tuple, kwargs: dict, method_proxy: MethodProxy | None) -> Any:
        token = set_current_proxy(proxy)
        try:
            return super().intercept(proxy, method, args, kwargs, method_proxy)
        finally:
            reset_current_proxy(token)


class DynamicUnadvisedInterceptor:
    """Passthrough that fetches the target per call and always releases it."""

    def __init__(self, target_source: TargetSource) -> None:
        self.target_source = target_source

    def intercept(self, proxy: Any, method: Method, args: tuple, kwargs: dict, method_proxy: MethodProxy | None) -> Any:
        target = self.target_source.get_target()
        try:
            result = invoke_joinpoint(target, method, args, kwargs, method_proxy)
            return process_return_type(proxy, target, method, result)
        finally:
            if target is not None:
                self.target_source.release_target(target)


class DynamicUnadvisedExposedInterceptor(DynamicUnadvisedInterceptor):
    """:class:`DynamicUnadvisedInterceptor` that also exposes the proxy."""

    def intercept(self, proxy: Any, method: Method, args: tuple, kwargs: dict, method_proxy: MethodProxy | None) -> Any:
        token = set_current_proxy(proxy)
        try:
            return super().intercept(proxy, method, args, kwargs, method_proxy)
        finally:
            reset_current_proxy(token)


class StaticDispatcher:
    """Calls the fixed target directly. Used only when no return rewriting is possible."""

    def __init__(self, target: Any) -> None:
        self.target = target

    def intercept(self, proxy: Any, method: Method, args: tuple, kwargs: dict, method_proxy: MethodProxy | None) -> Any:
        return invoke_joinpoint(self.target, method, args, kwargs, method_proxy)


class AdvisedDispatcher:
    """Routes :class:`Advised` methods to the configuration."""

    def __init__(self, advised: AdvisedSupport) -> None:
        self.advised = advised

    def intercept(self, proxy: Any, method: Method, args: tuple, kwargs: dict, method_proxy: MethodProxy | None) -> Any:
        return invoke_joinpoint_using_reflection(self.advised, method, args, kwargs)


class EqualsInterceptor:
    def __init__(self, advised: AdvisedSupport) -> None:
        self.advised = advised

    def intercept(self, proxy: Any, method: Method, args: tuple, kwargs: dict, method_proxy: MethodProxy | None) -> Any:
        other = args[0]
        if proxy is other:
            return True
        other_advised = advised_of(other)
        if other_advised is None:
            return False
        return equals_in_proxy(self.advised, other_advised)


class HashCodeInterceptor:
    def __init__(self, advised: AdvisedSupport) -> None:
        self.advised = advised

    def intercept(self, proxy: Any, method: Method, args: tuple, kwargs: dict, method_proxy: MethodProxy | None) -> Any:
        return proxy_hash(self.advised)


class FixedChainStaticTargetInterceptor:
    """Runs a chain precomputed for one method of a frozen, static configuration."""

    def __init__(self, chain: Sequence[ChainLink], target: Any, target_class: type | None) -> None:
        self.chain = tuple(chain)
        self.target = target
        self.target_class = target_class

    def intercept(self, proxy: Any, method: Method, args: tuple, kwargs: dict, method_proxy: MethodProxy | None) -> Any:
        invocation = MethodInvocation(
            proxy, self.target, method, args, self.target_class, self.chain, kwargs, method_proxy
        )
        result = invocation.proceed()
        return process_return_type(proxy, self.target, method, result)


class DynamicAdvisedInterceptor:
    """General-purpose advised path: resolves the chain on every call.

    The target is fetched as late as possible and released on every exit
    path; with ``expose_proxy`` the proxy is published around the call.
    """

    def __init__(self, advised: AdvisedSupport) -> None:
        self.advised = advised

    def intercept(self, proxy: Any, method: Method, args: tuple, kwargs: dict, method_proxy: MethodProxy | None) -> Any:
        token = None
        target = None
        target_source = self.advised.target_source
        try:
            if self.advised.expose_proxy:
                token = set_current_proxy(proxy)
            target = target_source.get_target()
            target_class = type(target) if target is not None else None
            chain = self.advised.get_interceptors_and_dynamic_interception_advice(method, target_class)
            if not chain:
                result = invoke_joinpoint(target, method, args, kwargs, method_proxy)
            else:
                invocation = MethodInvocation(proxy, target, method, args, target_class, chain, kwargs, method_proxy)
                result = invocation.proceed()
            return process_return_type(proxy, target, method, result)
        finally:
            if target is not None and not target_source.is_static():
                target_source.release_target(target)
            if token is not None:
                reset_current_proxy(token)


# ---------------------------------------------------------------------------
# Callback filter
# ---------------------------------------------------------------------------


class ProxyCallbackFilter:
    """Assigns every proxied method its callback index.

    Configurations whose filters assign every method the same index share
    one generated class.
    """

    def __init__(self, advised: AdvisedSupport, fixed_interceptor_map: dict[str, int], fixed_interceptor_offset: int) -> None:
        self.advised = advised
        self.fixed_interceptor_map = dict(fixed_interceptor_map)
        self.fixed_interceptor_offset = fixed_interceptor_offset

    def accept(self, method: Method) -> int:
        if method.is_finalize():
            logger.debug("callback_no_override", method=str(method))
            return NO_OVERRIDE
        if not self.advised.opaque and method.declaring_class in ADVISED_INTERFACES:
            logger.debug("callback_dispatch_advised", method=str(method))
            return DISPATCH_ADVISED
        if method.is_equals():
            logger.debug("callback_equals", method=str(method))
            return INVOKE_EQUALS
        if method.is_hash_code():
            logger.debug("callback_hash", method=str(method))
            return INVOKE_HASHCODE

        target_class = self.advised.get_target_class()
        chain = self.advised.get_interceptors_and_dynamic_interception_advice(method, target_class)
        have_advice = bool(chain)
        expose_proxy = self.advised.expose_proxy
        is_static = self.advised.target_source.is_static()
        is_frozen = self.advised.frozen

        if have_advice or not is_frozen:
            if expose_proxy:
                logger.debug("callback_aop_proxy", method=str(method), reason="expose_proxy")
                return AOP_PROXY
            if is_static and is_frozen and method.name in self.fixed_interceptor_map:
                logger.debug("callback_fixed_chain", method=str(method))
                return self.fixed_interceptor_offset + self.fixed_interceptor_map[method.name]
            logger.debug("callback_aop_proxy", method=str(method))
            return AOP_PROXY

        if expose_proxy or not is_static:
            logger.debug("callback_invoke_target", method=str(method))
            return INVOKE_TARGET
        if method.may_return(target_class):
            logger.debug("callback_invoke_target", method=str(method), reason="may_return_target")
            return INVOKE_TARGET
        logger.debug("callback_dispatch_target", method=str(method))
        return DISPATCH_TARGET


# ---------------------------------------------------------------------------
# Attribute delegation
# ---------------------------------------------------------------------------


def _proxy_getattr(self: Any, name: str) -> Any:
    if is_dunder(name):
        raise AttributeError(name)
    advised = vars(self).get(ADVISED_ATTRIBUTE)
    if advised is None:
        raise AttributeError(name)
    source = advised.target_source
    target = source.get_target()
    if target is None:
        raise AttributeError(f"{type(self).__name__!r} proxy has no target to read {name!r} from")
    try:
        return getattr(target, name)
    finally:
        if not source.is_static():
            source.release_target(target)


def _proxy_setattr(self: Any, name: str, value: Any) -> None:
    state = vars(self)
    if is_dunder(name) or not state.get(_LIVE_ATTRIBUTE):
        object.__setattr__(self, name, value)
        return
    source = state[ADVISED_ATTRIBUTE].target_source
    target = source.get_target()
    if target is None:
        object.__setattr__(self, name, value)
        return
    try:
        setattr(target, name, value)
    finally:
        if not source.is_static():
            source.release_target(target)


_ATTRIBUTE_DELEGATION = {"__getattr__": _proxy_getattr, "__setattr__": _proxy_setattr}


# ---------------------------------------------------------------------------
# Class validation
# ---------------------------------------------------------------------------

_validated_classes: weakref.WeakKeyDictionary[type, bool] = weakref.WeakKeyDictionary()
_validated_lock = threading.Lock()


def validate_class_if_necessary(proxy_super: type) -> None:
    """Log, once per class, the methods a subclass proxy cannot intercept."""
    with _validated_lock:
        if proxy_super in _validated_classes:
            return
        _do_validate_class(proxy_super)
        _validated_classes[proxy_super] = True


def _do_validate_class(proxy_super: type) -> None:
    interface_methods = {
        method.name
        for interface in get_all_interfaces(proxy_super)
        if interface is not proxy_super
        for method in iter_methods(interface)
    }
    for method in iter_methods(proxy_super):
        if not method.is_final:
            continue
        if method.name in interface_methods:
            logger.info(
                "final_method_not_proxyable",
                method=str(method),
                hint="interface-implementing method is final; consider an interface-based proxy instead",
            )
        else:
            logger.debug(
                "final_method_not_proxyable",
                method=str(method),
                hint="calls run on the proxy instance and are not routed to the target",
            )


# ---------------------------------------------------------------------------
# SubclassAopProxy
# ---------------------------------------------------------------------------


class SubclassAopProxy(AopProxy):
    """Creates subclass proxies of the configuration's target class.

    Without constructor arguments the proxy instance is created without
    running ``__init__``; attribute reads it cannot satisfy itself, and
    attribute writes, go to the target.
    """

    def __init__(self, config: AdvisedSupport) -> None:
        check_config(config)
        self._advised = config
        self._constructor_args: tuple | None = None
        self._constructor_arg_types: tuple | None = None
        self._fixed_interceptor_map: dict[str, int] = {}
        self._fixed_interceptor_offset = 0

    def set_constructor_arguments(self, args: Sequence[Any] | None, arg_types: Sequence[type] | None) -> None:
        """Initialise proxy instances through the base ``__init__`` with *args*."""
        if args is None or arg_types is None:
            raise ConfigurationError("Both 'constructor_args' and 'constructor_arg_types' need to be specified")
        if len(args) != len(arg_types):
            raise ConfigurationError(
                f"Number of 'constructor_args' ({len(args)}) must match number of "
                f"'constructor_arg_types' ({len(arg_types)})"
            )
        for arg, arg_type in zip(args, arg_types):
            if arg is not None and not isinstance(arg, arg_type):
                raise ConfigurationError(
                    f"Constructor argument {arg!r} is not an instance of {arg_type.__qualname__}"
                )
        self._constructor_args = tuple(args)
        self._constructor_arg_types = tuple(arg_types)

    def get_proxy(self) -> Any:
        proxy_class, callbacks = self._build()
        return self._create_instance(proxy_class, callbacks)

    def get_proxy_class(self) -> type:
        return self._build()[0]

    @property
    def fixed_interceptor_offset(self) -> int:
        return self._fixed_interceptor_offset

    def _build(self) -> tuple[type, list[Any]]:
        root_class = self._advised.get_target_class()
        if root_class is None:
            raise ConfigurationError("Target class must be available for creating a subclass proxy")
        logger.debug(
            "creating_subclass_proxy",
            target_class=root_class.__qualname__,
            target_source=repr(self._advised.target_source),
        )

        proxy_super = root_class
        if is_subclass_proxy_class(root_class):
            proxy_super = root_class.__bases__[0]
            for extra in root_class.__bases__[1:]:
                if extra not in (ProxyKitProxy, Advised) and is_interface(extra):
                    self._advised.add_interface(extra)

        validate_class_if_necessary(proxy_super)
        interfaces = complete_proxied_interfaces(self._advised)
        callbacks = self._get_callbacks(proxy_super, interfaces, root_class)
        callback_filter = ProxyCallbackFilter(
            self._advised.configuration_only_copy(), self._fixed_interceptor_map, self._fixed_interceptor_offset
        )
        synthesizer = ProxyClassSynthesizer(proxy_super, interfaces, callback_filter, namespace=_ATTRIBUTE_DELEGATION)
        return synthesizer.create_class(), callbacks

    def _get_callbacks(self, proxy_super: type, interfaces: Sequence[type], root_class: type) -> list[Any]:
        advised = self._advised
        expose_proxy = advised.expose_proxy
        is_frozen = advised.frozen
        target_source = advised.target_source
        is_static = target_source.is_static()

        aop_interceptor = DynamicAdvisedInterceptor(advised)
        target_interceptor: Any
        if expose_proxy:
            target_interceptor = (
                StaticUnadvisedExposedInterceptor(target_source.get_target())
                if is_static
                else DynamicUnadvisedExposedInterceptor(target_source)
            )
        else:
            target_interceptor = (
                StaticUnadvisedInterceptor(target_source.get_target())
                if is_static
                else DynamicUnadvisedInterceptor(target_source)
            )
        target_dispatcher: Any = StaticDispatcher(target_source.get_target()) if is_static else _NO_OP

        callbacks: list[Any] = [
            aop_interceptor,
            target_interceptor,
            _NO_OP,
            target_dispatcher,
            AdvisedDispatcher(advised),
            EqualsInterceptor(advised),
            HashCodeInterceptor(advised),
        ]

        self._fixed_interceptor_map = {}
        self._fixed_interceptor_offset = 0
        if is_static and is_frozen:
            target = target_source.get_target()
            fixed: list[FixedChainStaticTargetInterceptor] = []
            for name, method in proxy_methods(proxy_super, interfaces).items():
                chain = advised.get_interceptors_and_dynamic_interception_advice(method, root_class)
                if not chain:
                    continue
                self._fixed_interceptor_map[name] = len(fixed)
                fixed.append(FixedChainStaticTargetInterceptor(chain, target, advised.get_target_class()))
            self._fixed_interceptor_offset = len(callbacks)
            callbacks.extend(fixed)
        return callbacks

    def _create_instance(self, proxy_class: type, callbacks: list[Any]) -> Any:
        args = self._constructor_args
        try:
            proxy = proxy_class.__new__(proxy_class, *args) if args else proxy_class.__new__(proxy_class)
            object.__setattr__(proxy, CALLBACKS_ATTRIBUTE, tuple(callbacks))
            object.__setattr__(proxy, ADVISED_ATTRIBUTE, self._advised)
            if args:
                proxy_class.__init__(proxy, *args)
        except TypeError as ex:
            raise ProxyConfigurationError(
                f"Unable to instantiate proxy class {proxy_class.__qualname__}: {ex}", base=proxy_class.__bases__[0]
            ) from ex
        object.__setattr__(proxy, _LIVE_ATTRIBUTE, True)
        logger.debug("proxy_created", proxy_class=proxy_class.__qualname__, callbacks=len(callbacks))
        return proxy

    def __eq__(self, other: object) -> bool:
        return self is other or (
            isinstance(other, SubclassAopProxy) and equals_in_proxy(self._advised, other._advised)
        )

    def __hash__(self) -> int:
        return hash((SubclassAopProxy, proxy_hash(self._advised)))
