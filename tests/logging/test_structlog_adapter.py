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
"""Tests for StructlogAdapter and the proxy-describing processor."""

from __future__ import annotations

import io
import logging

import structlog

from proxykit.aop.advice import MethodInterceptor
from proxykit.core.config import Config
from proxykit.logging.port import LoggingPort, LoggingProperties
from proxykit.logging.structlog_adapter import StructlogAdapter, configure_logging, describe_proxies
from proxykit.proxy.factory import ProxyFactory


class Clock:
    def now(self) -> str:
        return "noon"

    def __repr__(self) -> str:
        return "Clock()"


class Passthrough(MethodInterceptor):
    def invoke(self, invocation):
        return invocation.proceed()


class TestStructlogAdapterConfigure:
    def test_satisfies_port(self):
        assert isinstance(StructlogAdapter(), LoggingPort)

    def test_configure_from_config(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({"proxykit": {"logging": {"level": {"root": "debug"}}}}))
        assert adapter.properties.root_level == "DEBUG"
        assert logging.getLogger().level == logging.DEBUG

    def test_configure_from_properties(self):
        adapter = StructlogAdapter()
        adapter.configure(LoggingProperties(level={"root": "INFO", "myapp.services": "ERROR"}))
        assert logging.getLogger("myapp.services").level == logging.ERROR

    def test_nested_levels_applied(self):
        configure_logging(Config({"proxykit": {"logging": {"level": {"proxykit": {"proxy": "DEBUG"}}}}}))
        assert logging.getLogger("proxykit.proxy").level == logging.DEBUG

    def test_json_rendering_to_stream(self):
        stream = io.StringIO()
        configure_logging(Config({"proxykit": {"logging": {"format": "json"}}}), stream=stream)
        structlog.get_logger("myapp.rendering").info("ready", attempt=1)
        output = stream.getvalue()
        assert '"event": "ready"' in output
        assert '"attempt": 1' in output

    def test_defaults_when_no_config(self):
        adapter = configure_logging()
        assert adapter.properties.format == "console"


class TestStructlogAdapterLoggers:
    def test_get_logger_returns_bound_logger(self):
        adapter = configure_logging(Config({}))
        logger = adapter.get_logger("proxykit.test")
        assert callable(getattr(logger, "info", None))

    def test_set_level_is_case_insensitive(self):
        adapter = StructlogAdapter()
        adapter.set_level("myapp.services", "warning")
        assert logging.getLogger("myapp.services").level == logging.WARNING


class TestDescribeProxies:
    def test_subclass_proxy_labelled(self):
        factory = ProxyFactory(Clock())
        factory.add_advice(Passthrough())
        proxy = factory.get_proxy()

        event = describe_proxies(None, "info", {"event": "created", "bean": proxy, "target": Clock()})

        assert event["bean"] == "<proxy of Clock>"
        assert isinstance(event["target"], Clock)

    def test_interface_proxy_labelled(self):
        port = ProxyFactory.get_proxy_for(LoggingPort, Passthrough())
        event = describe_proxies(None, "info", {"port": port})
        assert event["port"].startswith("<$Proxy")
