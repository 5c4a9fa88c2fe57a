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
"""Interface-based proxies.

The generated class implements the proxied interfaces only; it does not
subclass the target's class. Every method goes through one handler,
:meth:`InterfaceAopProxy.intercept`.
"""

from __future__ import annotations

from typing import Any

import structlog

from proxykit.aop.invocation import MethodInvocation, MethodProxy, invoke_joinpoint_using_reflection
from proxykit.aop.reflection import Method
from proxykit.proxy.advised import ADVISED_INTERFACES
from proxykit.proxy.base import AopProxy, check_config
from proxykit.proxy.context import reset_current_proxy, set_current_proxy
from proxykit.proxy.support import AdvisedSupport
from proxykit.proxy.synthesis import ADVISED_ATTRIBUTE, CALLBACKS_ATTRIBUTE, ProxyClassSynthesizer
from proxykit.proxy.utils import advised_of, complete_proxied_interfaces, equals_in_proxy, process_return_type, proxy_hash

logger = structlog.get_logger("proxykit.proxy.interface")


class _SingleHandlerFilter:
    """Routes every method to callback 0."""

    def accept(self, method: Method) -> int:
        return 0

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _SingleHandlerFilter)

    def __hash__(self) -> int:
        return hash(_SingleHandlerFilter)


_SINGLE_HANDLER = _SingleHandlerFilter()


class InterfaceAopProxy(AopProxy):
    """Creates proxies implementing the configuration's interfaces.

    ``__eq__`` and ``__hash__`` implement proxy identity unless one of the
    interfaces declares them itself, in which case they run through the
    chain like any other method.
    """

    def __init__(self, config: AdvisedSupport) -> None:
        check_config(config)
        self._advised = config
        self._proxied_interfaces = complete_proxied_interfaces(config)
        self._equals_defined = any("__eq__" in vars(i) for i in self._proxied_interfaces)
        self._hash_code_defined = any(
            "__hash__" in vars(i) and vars(i)["__hash__"] is not None for i in self._proxied_interfaces
        )

    def get_proxy(self) -> Any:
        logger.debug("creating_interface_proxy", target_source=repr(self._advised.target_source))
        proxy_class = self.get_proxy_class()
        proxy = proxy_class.__new__(proxy_class)
        object.__setattr__(proxy, CALLBACKS_ATTRIBUTE, (self,))
        object.__setattr__(proxy, ADVISED_ATTRIBUTE, self._advised)
        logger.debug("proxy_created", proxy_class=proxy_class.__qualname__)
        return proxy

    def get_proxy_class(self) -> type:
        return ProxyClassSynthesizer(None, self._proxied_interfaces, _SINGLE_HANDLER).create_class()

    def intercept(self, proxy: Any, method: Method, args: tuple, kwargs: dict, method_proxy: MethodProxy | None) -> Any:
        token = None
        target = None
        target_source = self._advised.target_source
        try:
            if not self._equals_defined and method.is_equals():
                return self._equals(proxy, args[0])
            if not self._hash_code_defined and method.is_hash_code():
                return proxy_hash(self._advised)
            if not self._advised.opaque and method.declaring_class in ADVISED_INTERFACES:
                return invoke_joinpoint_using_reflection(self._advised, method, args, kwargs)

            if self._advised.expose_proxy:
                token = set_current_proxy(proxy)

            target = target_source.get_target()
            target_class = type(target) if target is not None else None
            chain = self._advised.get_interceptors_and_dynamic_interception_advice(method, target_class)
            if not chain:
                result = invoke_joinpoint_using_reflection(target, method, args, kwargs)
            else:
                invocation = MethodInvocation(proxy, target, method, args, target_class, chain, kwargs)
                result = invocation.proceed()
            return process_return_type(proxy, target, method, result)
        finally:
            if target is not None and not target_source.is_static():
                target_source.release_target(target)
            if token is not None:
                reset_current_proxy(token)

    def _equals(self, proxy: Any, other: Any) -> bool:
        if proxy is other:
            return True
        other_advised = advised_of(other)
        if other_advised is None:
            return False
        return equals_in_proxy(self._advised, other_advised)

    def __eq__(self, other: object) -> bool:
        return self is other or (
            isinstance(other, InterfaceAopProxy) and equals_in_proxy(self._advised, other._advised)
        )

    def __hash__(self) -> int:
        return hash((InterfaceAopProxy, proxy_hash(self._advised)))
