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
"""Tests for method and class introspection."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Protocol, final

import pytest

from proxykit.aop.reflection import (
    Method,
    collect_methods,
    find_method,
    get_all_interfaces,
    get_user_class,
    is_final_class,
    is_interface,
    iter_methods,
    method_of,
    throws,
)
from proxykit.kernel.exceptions import CheckedException


class NotFound(CheckedException):
    pass


class Greeter(ABC):
    @abstractmethod
    def greet(self, name: str) -> str: ...


class Closeable(Protocol):
    def close(self) -> None: ...


class Account(Greeter):
    def __init__(self, owner: str = "ada") -> None:
        self.owner = owner

    def greet(self, name: str) -> str:
        return f"hello {name}"

    def balance(self) -> int:
        return 0

    def me(self) -> Account:
        return self

    def maybe_me(self) -> Optional[Account]:
        return self

    def nothing(self) -> None:
        return None

    def untyped(self):
        return 1

    def anything(self) -> Any:
        return 1

    @throws(NotFound)
    def load(self, key: str) -> str:
        raise NotFound(key)

    @final
    def sealed(self) -> str:
        return "sealed"

    @staticmethod
    def helper() -> int:
        return 1

    def _private(self) -> None:
        pass


@final
class Terminal:
    pass


class TestMethod:
    def test_str_uses_declaring_class(self) -> None:
        assert str(method_of(Account, "greet")) == "Account.greet"

    def test_equality_ignores_function(self) -> None:
        assert method_of(Account, "greet") == Method("greet", lambda self: None, Account)

    def test_returns_primitive(self) -> None:
        assert method_of(Account, "balance").returns_primitive()
        assert not method_of(Account, "greet").returns_primitive()

    def test_may_return(self) -> None:
        assert method_of(Account, "me").may_return(Account)
        assert method_of(Account, "maybe_me").may_return(Account)
        assert method_of(Account, "untyped").may_return(Account)
        assert method_of(Account, "anything").may_return(Account)
        assert not method_of(Account, "nothing").may_return(Account)
        assert not method_of(Account, "greet").may_return(Account)

    def test_declared_exceptions(self) -> None:
        load = method_of(Account, "load")
        assert load.declared_exceptions == (NotFound,)
        assert load.declares(NotFound("x"))
        assert not load.declares(ValueError("x"))
        assert not method_of(Account, "greet").declares(NotFound("x"))

    def test_final_and_private(self) -> None:
        assert method_of(Account, "sealed").is_final
        assert not method_of(Account, "greet").is_final
        assert method_of(Account, "_private").is_private
        assert not Method("__eq__", object.__eq__, object).is_private

    def test_identity_predicates(self) -> None:
        assert Method("__eq__", object.__eq__, object).is_equals()
        assert Method("__hash__", object.__hash__, object).is_hash_code()
        assert Method("__repr__", object.__repr__, object).is_to_string()

    def test_qualified_name(self) -> None:
        greet = method_of(Greeter, "greet")
        assert greet.qualified_name().endswith(".Greeter.greet")
        assert greet.qualified_name(Account).endswith(".Account.greet")


class TestInterfaces:
    def test_abstract_base_is_interface(self) -> None:
        assert is_interface(Greeter)

    def test_protocol_is_interface(self) -> None:
        assert is_interface(Closeable)

    def test_concrete_class_is_not_interface(self) -> None:
        assert not is_interface(Account)

    def test_all_interfaces_of_class(self) -> None:
        assert get_all_interfaces(Account) == [Greeter]

    def test_final_class(self) -> None:
        assert is_final_class(Terminal)
        assert not is_final_class(Account)


class TestMethodCollection:
    def test_iter_methods_skips_construction_and_non_functions(self) -> None:
        names = {m.name for m in iter_methods(Account)}
        assert {"greet", "balance", "load", "sealed", "_private"} <= names
        assert "__init__" not in names
        assert "helper" not in names

    def test_first_definition_in_mro_wins(self) -> None:
        greet = {m.name: m for m in iter_methods(Account)}["greet"]
        assert greet.declaring_class is Account

    def test_collect_methods_adds_identity_methods(self) -> None:
        methods = collect_methods([Greeter])
        assert methods["__eq__"].declaring_class is object
        assert methods["__hash__"].declaring_class is object
        assert "__eq__" not in collect_methods([Greeter], identity=False)

    def test_collect_methods_earlier_class_wins(self) -> None:
        methods = collect_methods([Account, Greeter])
        assert methods["greet"].declaring_class is Account

    def test_find_method(self) -> None:
        assert find_method(Account, "greet") is not None
        assert find_method(Account, "helper") is None
        assert find_method(Account, "missing") is None

    def test_method_of_raises_when_absent(self) -> None:
        with pytest.raises(AttributeError, match="no proxyable method"):
            method_of(Account, "missing")


class TestUserClass:
    def test_plain_class_is_its_own_user_class(self) -> None:
        assert get_user_class(Account) is Account

    def test_generated_class_resolves_to_base(self) -> None:
        generated = type("Account$$ProxyKit$$0", (Account,), {})
        assert get_user_class(generated) is Account
