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
"""Tests for @aspect and advice decorators."""

from __future__ import annotations

import pytest

from proxykit.aop.decorators import (
    ADVICE_TYPES,
    AdviceSpec,
    advice_spec,
    after,
    after_returning,
    after_throwing,
    around,
    aspect,
    before,
    declared_advice,
    is_aspect,
)
from proxykit.core.ordering import LOWEST_PRECEDENCE, get_order
from proxykit.kernel.exceptions import ConfigurationError


class TestAspectDecorator:
    def test_bare_form_marks_class(self) -> None:
        @aspect
        class Auditing:
            pass

        assert is_aspect(Auditing)
        assert is_aspect(Auditing())
        assert get_order(Auditing) == LOWEST_PRECEDENCE

    def test_order_keyword_sets_precedence(self) -> None:
        @aspect(order=10)
        class Auditing:
            pass

        assert is_aspect(Auditing)
        assert get_order(Auditing()) == 10

    def test_plain_class_is_not_an_aspect(self) -> None:
        class Plain:
            pass

        assert not is_aspect(Plain)
        assert not is_aspect(Plain())


class TestAdviceDecorators:
    def test_records_kind_and_pointcut(self) -> None:
        @after_throwing("service.*.create")
        def on_failure(self, jp):
            pass

        assert advice_spec(on_failure) == AdviceSpec("after_throwing", "service.*.create")

    def test_each_decorator_has_its_kind(self) -> None:
        decorators = (before, after_returning, after_throwing, after, around)
        kinds = {advice_spec(d("x.*")(lambda self, jp: None)).advice_type for d in decorators}
        assert kinds == set(ADVICE_TYPES)
        assert [d.__name__ for d in decorators] == [
            "before",
            "after_returning",
            "after_throwing",
            "after",
            "around",
        ]

    def test_undecorated_function_has_no_spec(self) -> None:
        def plain(self):
            pass

        assert advice_spec(plain) is None

    @pytest.mark.parametrize("pointcut", ["", "   ", "service..create", "service.*.", None])
    def test_malformed_pointcut_rejected(self, pointcut) -> None:
        with pytest.raises(ConfigurationError):
            before(pointcut)

    def test_second_advice_declaration_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="already declared as around"):

            @before("x.*")
            @around("x.*")
            def twice(self, jp):
                pass


class TestDeclaredAdvice:
    def test_handlers_bound_and_ranked(self) -> None:
        @aspect
        class Mixed:
            @after_throwing("x.*")
            def zeta(self, jp):
                pass

            @before("x.*")
            def beta(self, jp):
                pass

            @before("x.*")
            def alpha(self, jp):
                pass

            @around("x.*")
            def omega(self, jp):
                pass

            def helper(self):
                pass

        instance = Mixed()
        found = declared_advice(instance)

        assert [handler.__name__ for _, handler in found] == ["omega", "alpha", "beta", "zeta"]
        assert all(handler.__self__ is instance for _, handler in found)
        assert found[0][0].rank == ADVICE_TYPES.index("around")
