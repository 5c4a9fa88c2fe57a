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
"""JoinPoint: the method execution handed to aspect advice."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from proxykit.aop.reflection import Method
from proxykit.kernel.exceptions import InvocationError

if TYPE_CHECKING:
    from proxykit.aop.invocation import MethodInvocation


@dataclass
class JoinPoint:
    """A proxied method execution as seen by ``@aspect`` handlers.

    All aspect advice running for one call share a single join point, so
    ``return_value`` and ``exception`` are filled in as the call completes.
    Around advice receives a copy that can :meth:`proceed`.
    """

    method: Method
    target: Any
    args: tuple
    kwargs: dict[str, Any] = field(default_factory=dict)
    proxy: Any = None
    return_value: Any = None
    exception: BaseException | None = None
    _proceed: Callable[..., Any] | None = field(default=None, repr=False, compare=False)

    @classmethod
    def of(cls, invocation: MethodInvocation) -> JoinPoint:
        return cls(
            method=invocation.method,
            target=invocation.target,
            args=invocation.arguments,
            kwargs=invocation.kwargs,
            proxy=invocation.proxy,
        )

    @property
    def method_name(self) -> str:
        return self.method.name

    @property
    def target_class(self) -> type:
        return type(self.target) if self.target is not None else self.method.declaring_class

    @property
    def signature(self) -> str:
        """Qualified name of the executing method, as pointcut expressions see it."""
        return self.method.qualified_name(self.target_class)

    def proceed(self, *args: Any, **kwargs: Any) -> Any:
        """Continue the call; with arguments, continue with those instead."""
        if self._proceed is None:
            raise InvocationError(
                "proceed() is only available to around advice", context={"method": str(self.method)}
            )
        return self._proceed(*args, **kwargs)

    def with_proceed(self, proceed: Callable[..., Any]) -> JoinPoint:
        return dataclasses.replace(self, _proceed=proceed)
