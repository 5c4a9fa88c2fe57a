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
"""Tests for target sources."""

from __future__ import annotations

import threading

import pytest

from proxykit.kernel.exceptions import PoolExhaustedError
from proxykit.proxy.properties import PoolProperties
from proxykit.proxy.target import (
    EMPTY_TARGET_SOURCE,
    EmptyTargetSource,
    PooledTargetSource,
    PrototypeTargetSource,
    SingletonTargetSource,
)


class Worker:
    def __init__(self) -> None:
        self.jobs = 0


class TestSingletonTargetSource:
    def test_returns_same_target(self):
        worker = Worker()
        source = SingletonTargetSource(worker)
        assert source.get_target() is worker
        assert source.get_target() is worker
        assert source.is_static()
        assert source.target_class is Worker

    def test_rejects_none(self):
        with pytest.raises(ValueError):
            SingletonTargetSource(None)

    def test_equality_is_target_identity(self):
        worker = Worker()
        assert SingletonTargetSource(worker) == SingletonTargetSource(worker)
        assert SingletonTargetSource(worker) != SingletonTargetSource(Worker())


class TestEmptyTargetSource:
    def test_shared_instance_for_no_class(self):
        assert EmptyTargetSource.for_class(None) is EMPTY_TARGET_SOURCE
        assert EMPTY_TARGET_SOURCE.get_target() is None
        assert EMPTY_TARGET_SOURCE.target_class is None
        assert EMPTY_TARGET_SOURCE.is_static()

    def test_class_only_source(self):
        source = EmptyTargetSource.for_class(Worker, static=False)
        assert source.target_class is Worker
        assert not source.is_static()
        assert source.get_target() is None

    def test_value_equality(self):
        assert EmptyTargetSource.for_class(Worker) == EmptyTargetSource(Worker)
        assert hash(EmptyTargetSource.for_class(Worker)) == hash(EmptyTargetSource(Worker))
        assert EmptyTargetSource(Worker) != EmptyTargetSource(Worker, static=False)


class TestPrototypeTargetSource:
    def test_new_target_per_call(self):
        source = PrototypeTargetSource(Worker)
        assert source.get_target() is not source.get_target()
        assert not source.is_static()
        assert source.target_class is Worker

    def test_release_calls_destroy(self):
        destroyed = []
        source = PrototypeTargetSource(Worker, destroy=destroyed.append)
        target = source.get_target()
        source.release_target(target)
        assert destroyed == [target]

    def test_factory_function_needs_explicit_class(self):
        source = PrototypeTargetSource(lambda: Worker())
        assert source.target_class is None
        assert PrototypeTargetSource(lambda: Worker(), target_class=Worker).target_class is Worker


class TestPooledTargetSource:
    def test_released_target_is_reused(self):
        source = PooledTargetSource(Worker, max_size=2)
        first = source.get_target()
        source.release_target(first)
        assert source.get_target() is first

    def test_counts(self):
        source = PooledTargetSource(Worker, max_size=2)
        a = source.get_target()
        source.get_target()
        assert source.active_count == 2
        assert source.idle_count == 0
        source.release_target(a)
        assert source.active_count == 1
        assert source.idle_count == 1
        source.clear()
        assert source.idle_count == 0

    def test_exhausted_pool_times_out(self):
        source = PooledTargetSource(Worker, max_size=1, wait_timeout=0.05)
        source.get_target()
        with pytest.raises(PoolExhaustedError) as exc_info:
            source.get_target()
        assert exc_info.value.context["max_size"] == 1

    def test_waiter_gets_released_target(self):
        source = PooledTargetSource(Worker, max_size=1, wait_timeout=5.0)
        held = source.get_target()
        timer = threading.Timer(0.05, source.release_target, args=(held,))
        timer.start()
        try:
            assert source.get_target() is held
        finally:
            timer.cancel()

    def test_from_properties(self):
        source = PooledTargetSource.from_properties(Worker, PoolProperties(max_size=3, wait_timeout=0.5))
        assert source.max_size == 3
        assert source.wait_timeout == 0.5
        assert source.target_class is Worker

    def test_rejects_empty_pool(self):
        with pytest.raises(ValueError):
            PooledTargetSource(Worker, max_size=0)
