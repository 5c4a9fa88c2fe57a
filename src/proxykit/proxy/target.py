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
"""Target sources: where a proxy obtains the target for each call."""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from proxykit.kernel.exceptions import PoolExhaustedError

if TYPE_CHECKING:
    from proxykit.proxy.properties import PoolProperties

logger = structlog.get_logger("proxykit.proxy.target")


class TargetSource(ABC):
    """Supplies the target for each invocation.

    A static source always returns the same instance, so callers may hold
    on to it; a non-static one must be given every fetched target back
    through :meth:`release_target`.
    """

    @property
    @abstractmethod
    def target_class(self) -> type | None: ...

    @abstractmethod
    def is_static(self) -> bool: ...

    @abstractmethod
    def get_target(self) -> Any: ...

    def release_target(self, target: Any) -> None:
        """Return *target* once the invocation is over. No-op by default."""


class SingletonTargetSource(TargetSource):
    """Static source for one fixed target."""

    def __init__(self, target: Any) -> None:
        if target is None:
            raise ValueError("Target object must not be None")
        self._target = target

    @property
    def target_class(self) -> type:
        return type(self._target)

    def is_static(self) -> bool:
        return True

    def get_target(self) -> Any:
        return self._target

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SingletonTargetSource) and self._target is other._target

    def __hash__(self) -> int:
        return id(self._target)

    def __repr__(self) -> str:
        return f"SingletonTargetSource for target object [{type(self._target).__qualname__}]"


class EmptyTargetSource(TargetSource):
    """Source with no target: every invocation must be fully handled by advice."""

    def __init__(self, target_class: type | None = None, static: bool = True) -> None:
        self._target_class = target_class
        self._static = static

    @classmethod
    def for_class(cls, target_class: type | None, static: bool = True) -> EmptyTargetSource:
        if target_class is None and static:
            return EMPTY_TARGET_SOURCE
        return cls(target_class, static)

    @property
    def target_class(self) -> type | None:
        return self._target_class

    def is_static(self) -> bool:
        return self._static

    def get_target(self) -> Any:
        return None

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, EmptyTargetSource)
            and self._target_class is other._target_class
            and self._static == other._static
        )

    def __hash__(self) -> int:
        return hash((EmptyTargetSource, self._target_class, self._static))

    def __repr__(self) -> str:
        if self._target_class is None:
            return "EmptyTargetSource: no target class, static"
        return f"EmptyTargetSource: target class [{self._target_class.__qualname__}], static={self._static}"


EMPTY_TARGET_SOURCE = EmptyTargetSource()


class PrototypeTargetSource(TargetSource):
    """Creates a fresh target for every invocation.

    *destroy* is called with each released target.
    """

    def __init__(
        self,
        factory: Callable[[], Any],
        target_class: type | None = None,
        destroy: Callable[[Any], None] | None = None,
    ) -> None:
        self._factory = factory
        self._target_class = target_class or (factory if isinstance(factory, type) else None)
        self._destroy = destroy

    @property
    def target_class(self) -> type | None:
        return self._target_class

    def is_static(self) -> bool:
        return False

    def get_target(self) -> Any:
        return self._factory()

    def release_target(self, target: Any) -> None:
        if self._destroy is not None:
            self._destroy(target)


class PooledTargetSource(TargetSource):
    """Hands out targets from a bounded pool.

    At most ``max_size`` targets are in use at once; callers beyond that
    block until a target is released, failing with
    :class:`PoolExhaustedError` after ``wait_timeout`` seconds.
    """

    def __init__(
        self,
        factory: Callable[[], Any],
        max_size: int = 8,
        wait_timeout: float = 5.0,
        target_class: type | None = None,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._factory = factory
        self._target_class = target_class or (factory if isinstance(factory, type) else None)
        self.max_size = max_size
        self.wait_timeout = wait_timeout
        self._idle: deque[Any] = deque()
        self._active = 0
        self._available = threading.Condition()

    @classmethod
    def from_properties(
        cls, factory: Callable[[], Any], properties: PoolProperties, target_class: type | None = None
    ) -> PooledTargetSource:
        return cls(factory, properties.max_size, properties.wait_timeout, target_class)

    @property
    def target_class(self) -> type | None:
        return self._target_class

    @property
    def active_count(self) -> int:
        return self._active

    @property
    def idle_count(self) -> int:
        return len(self._idle)

    def is_static(self) -> bool:
        return False

    def get_target(self) -> Any:
        deadline = time.monotonic() + self.wait_timeout
        with self._available:
            while not self._idle and self._active >= self.max_size:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise PoolExhaustedError(self.max_size, self.wait_timeout)
                logger.debug("pool_exhausted_waiting", active=self._active, max_size=self.max_size)
                self._available.wait(remaining)
            target = self._idle.pop() if self._idle else self._factory()
            self._active += 1
            return target

    def release_target(self, target: Any) -> None:
        with self._available:
            self._active -= 1
            self._idle.append(target)
            self._available.notify()

    def clear(self) -> None:
        """Drop all idle targets."""
        with self._available:
            self._idle.clear()

    def __repr__(self) -> str:
        return f"PooledTargetSource(max_size={self.max_size}, active={self._active}, idle={len(self._idle)})"
