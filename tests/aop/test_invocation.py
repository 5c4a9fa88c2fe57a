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
"""Tests for MethodInvocation and the fast call path."""

from __future__ import annotations

import pytest

from proxykit.aop.advice import MethodInterceptor
from proxykit.aop.invocation import (
    InterceptorAndDynamicMethodMatcher,
    InvocationState,
    MethodInvocation,
    MethodProxy,
    invoke_joinpoint,
    invoke_joinpoint_using_reflection,
)
from proxykit.aop.pointcut import DynamicMethodMatcher
from proxykit.aop.reflection import method_of
from proxykit.kernel.exceptions import FastPathUnavailableError, InvocationError

# ---- Helpers ----------------------------------------------------------------


class Calculator:
    def __init__(self) -> None:
        self.calls = 0

    def add(self, a: int, b: int) -> int:
        self.calls += 1
        return a + b

    def fail(self) -> None:
        raise KeyError("boom")


class Recording(MethodInterceptor):
    def __init__(self, name: str, log: list[str]) -> None:
        self.name = name
        self.log = log

    def invoke(self, invocation):
        self.log.append(f"{self.name}:before")
        result = invocation.proceed()
        self.log.append(f"{self.name}:after")
        return result


class ShortCircuit(MethodInterceptor):
    def invoke(self, invocation):
        return -1


class ProceedTwice(MethodInterceptor):
    def invoke(self, invocation):
        first = invocation.invocable_clone().proceed()
        second = invocation.invocable_clone(10, 20).proceed()
        return first, second


class StateProbe(MethodInterceptor):
    def __init__(self) -> None:
        self.seen: list[tuple[InvocationState, int]] = []

    def invoke(self, invocation):
        self.seen.append((invocation.state, invocation.current_index))
        return invocation.proceed()


class FirstArgAbove(DynamicMethodMatcher):
    def __init__(self, limit: int) -> None:
        self.limit = limit

    def matches_runtime(self, method, target_class, args, kwargs):
        return args[0] > self.limit


def invocation_for(target, name, args, chain, kwargs=None, method_proxy=None):
    return MethodInvocation(
        None, target, method_of(type(target), name), args, type(target), chain, kwargs, method_proxy
    )


# ---- Tests ------------------------------------------------------------------


class TestProceed:
    def test_empty_chain_invokes_target(self) -> None:
        invocation = invocation_for(Calculator(), "add", (1, 2), [])
        assert invocation.state is InvocationState.PENDING
        assert invocation.proceed() == 3
        assert invocation.state is InvocationState.RETURNED

    def test_interceptors_nest_in_chain_order(self) -> None:
        log: list[str] = []
        chain = [Recording("outer", log), Recording("inner", log)]
        assert invocation_for(Calculator(), "add", (2, 2), chain).proceed() == 4
        assert log == ["outer:before", "inner:before", "inner:after", "outer:after"]

    def test_interceptor_may_skip_target(self) -> None:
        calc = Calculator()
        assert invocation_for(calc, "add", (1, 1), [ShortCircuit()]).proceed() == -1
        assert calc.calls == 0

    def test_failure_propagates_unchanged(self) -> None:
        invocation = invocation_for(Calculator(), "fail", (), [Recording("r", [])])
        with pytest.raises(KeyError, match="boom"):
            invocation.proceed()
        assert invocation.state is InvocationState.THREW

    def test_cursor_advances_per_interceptor(self) -> None:
        first, second = StateProbe(), StateProbe()
        invocation_for(Calculator(), "add", (1, 1), [first, second]).proceed()
        assert first.seen == [(InvocationState.RUNNING, 0)]
        assert second.seen == [(InvocationState.RUNNING, 1)]

    def test_set_arguments(self) -> None:
        class Doubling(MethodInterceptor):
            def invoke(self, invocation):
                invocation.set_arguments(*(a * 2 for a in invocation.arguments))
                return invocation.proceed()

        assert invocation_for(Calculator(), "add", (1, 2), [Doubling()]).proceed() == 6

    def test_keyword_arguments_reach_target(self) -> None:
        invocation = invocation_for(Calculator(), "add", (1,), [], kwargs={"b": 5})
        assert invocation.proceed() == 6


class TestDynamicLinks:
    def test_runtime_match_runs_interceptor(self) -> None:
        link = InterceptorAndDynamicMethodMatcher(ShortCircuit(), FirstArgAbove(0))
        assert invocation_for(Calculator(), "add", (5, 1), [link]).proceed() == -1

    def test_runtime_mismatch_skips_interceptor(self) -> None:
        link = InterceptorAndDynamicMethodMatcher(ShortCircuit(), FirstArgAbove(0))
        assert invocation_for(Calculator(), "add", (-5, 1), [link]).proceed() == -4


class TestInvocableClone:
    def test_clone_reruns_rest_of_chain(self) -> None:
        calc = Calculator()
        result = invocation_for(calc, "add", (1, 2), [ProceedTwice()]).proceed()
        assert result == (3, 30)
        assert calc.calls == 2

    def test_clone_copies_user_attributes(self) -> None:
        invocation = invocation_for(Calculator(), "add", (1, 2), [])
        invocation.set_user_attribute("k", "v")
        clone = invocation.invocable_clone()
        clone.set_user_attribute("k", "changed")
        assert invocation.get_user_attribute("k") == "v"


class TestUserAttributes:
    def test_set_and_get(self) -> None:
        invocation = invocation_for(Calculator(), "add", (1, 2), [])
        assert invocation.get_user_attribute("missing") is None
        invocation.set_user_attribute("trace", 7)
        assert invocation.user_attributes == {"trace": 7}

    def test_none_removes(self) -> None:
        invocation = invocation_for(Calculator(), "add", (1, 2), [])
        invocation.set_user_attribute("trace", 7)
        invocation.set_user_attribute("trace", None)
        assert invocation.get_user_attribute("trace") is None

    def test_repr_mentions_state(self) -> None:
        invocation = invocation_for(Calculator(), "add", (1, 2), [])
        assert "state=PENDING" in repr(invocation)


class TestMethodProxy:
    def test_invoke_calls_function_directly(self) -> None:
        proxy = MethodProxy.create(Calculator, "add")
        assert proxy.invoke(Calculator(), (4, 5), {}) == 9

    def test_builtin_method_has_no_fast_path(self) -> None:
        with pytest.raises(FastPathUnavailableError):
            MethodProxy.create(dict, "get")

    def test_instance_attribute_shadowing_disables_fast_path(self) -> None:
        calc = Calculator()
        calc.add = lambda a, b: "shadowed"
        with pytest.raises(FastPathUnavailableError):
            MethodProxy.create(Calculator, "add").resolve(calc)

    def test_invoke_joinpoint_falls_back_to_reflection(self) -> None:
        calc = Calculator()
        calc.add = lambda a, b: "shadowed"
        method_proxy = MethodProxy.create(Calculator, "add")
        assert invoke_joinpoint(calc, method_of(Calculator, "add"), (1, 2), {}, method_proxy) == "shadowed"

    def test_resolution_follows_target_subclass(self) -> None:
        class Overriding(Calculator):
            def add(self, a: int, b: int) -> int:
                return 0

        method_proxy = MethodProxy.create(Calculator, "add")
        assert method_proxy.invoke(Overriding(), (1, 2), {}) == 0


class TestReflectiveInvocation:
    def test_no_target(self) -> None:
        with pytest.raises(InvocationError, match="No target"):
            invoke_joinpoint_using_reflection(None, method_of(Calculator, "add"), (1, 2), {})

    def test_missing_method_on_target(self) -> None:
        with pytest.raises(InvocationError, match="invalid"):
            invoke_joinpoint_using_reflection(object(), method_of(Calculator, "add"), (1, 2), {})

    def test_target_failure_is_not_wrapped(self) -> None:
        with pytest.raises(KeyError):
            invoke_joinpoint_using_reflection(Calculator(), method_of(Calculator, "fail"), (), {})
