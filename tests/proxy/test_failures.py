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
"""Tests for failure propagation through proxies."""

from __future__ import annotations

import pytest

from proxykit.aop.advice import MethodInterceptor
from proxykit.aop.reflection import throws
from proxykit.kernel.exceptions import CheckedException, InvocationError, UndeclaredFailureError
from proxykit.proxy.factory import ProxyFactory

# ---- Fixtures ---------------------------------------------------------------


class Missing(CheckedException):
    pass


class Ledger:
    @throws(Missing)
    def lookup(self, key: str) -> str:
        raise Missing(key)

    def careless(self) -> str:
        raise Missing("careless")

    def unchecked(self) -> str:
        raise ValueError("bad input")

    def balance(self) -> int:
        return 10


class Passthrough(MethodInterceptor):
    def invoke(self, invocation):
        return invocation.proceed()


class Swallow(MethodInterceptor):
    def invoke(self, invocation):
        return None


def ledger_proxy(target=None, *advice):
    factory = ProxyFactory(target if target is not None else Ledger())
    for item in advice or (Passthrough(),):
        factory.add_advice(item)
    return factory.get_proxy()


# ---- Tests ------------------------------------------------------------------


class TestCheckedFailures:
    def test_declared_failure_propagates(self):
        with pytest.raises(Missing):
            ledger_proxy().lookup("k")

    def test_undeclared_failure_is_wrapped(self):
        with pytest.raises(UndeclaredFailureError) as exc_info:
            ledger_proxy().careless()
        error = exc_info.value
        assert isinstance(error.undeclared, Missing)
        assert error.__cause__ is error.undeclared
        assert error.code == "AOP_UNDECLARED"
        assert "Ledger.careless" in str(error)

    def test_unchecked_failure_propagates_unchanged(self):
        with pytest.raises(ValueError, match="bad input"):
            ledger_proxy().unchecked()

    def test_nested_proxies_wrap_once(self):
        outer = ledger_proxy(ledger_proxy())
        with pytest.raises(UndeclaredFailureError) as exc_info:
            outer.careless()
        assert isinstance(exc_info.value.undeclared, Missing)

    def test_unadvised_proxy_wraps_too(self):
        factory = ProxyFactory(Ledger())
        factory.frozen = True
        with pytest.raises(UndeclaredFailureError):
            factory.get_proxy().careless()


class TestPrimitiveReturns:
    def test_none_for_primitive_return_rejected(self):
        with pytest.raises(InvocationError, match="primitive return type"):
            ledger_proxy(None, Swallow()).balance()

    def test_none_allowed_for_other_returns(self):
        assert ledger_proxy(None, Swallow()).unchecked() is None

    def test_value_returned(self):
        assert ledger_proxy().balance() == 10
