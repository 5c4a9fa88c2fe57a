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
"""structlog-backed LoggingPort."""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

import structlog

from proxykit.aop.reflection import get_user_class, is_interface_proxy_class, is_subclass_proxy_class
from proxykit.core.config import Config
from proxykit.logging.port import LoggingProperties


def describe_proxies(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Replace proxy values with a label so rendering never calls an advised ``__repr__``."""
    for key, value in event_dict.items():
        cls = type(value)
        if is_subclass_proxy_class(cls):
            event_dict[key] = f"<proxy of {get_user_class(cls).__qualname__}>"
        elif is_interface_proxy_class(cls):
            event_dict[key] = f"<{cls.__name__}>"
    return event_dict


class StructlogAdapter:
    """Routes structlog through stdlib handlers writing to *stream*.

    Usage::

        adapter = StructlogAdapter()
        adapter.configure(Config.from_file("proxykit.yaml"))
        adapter.get_logger("myapp").info("ready")
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self.properties = LoggingProperties()
        self._stream = stream

    def configure(self, config: Config | LoggingProperties) -> None:
        """Apply levels and rendering from *config* (a :class:`Config` or bound properties)."""
        properties = config.bind(LoggingProperties) if isinstance(config, Config) else config
        self.properties = properties

        renderer: Any = (
            structlog.processors.JSONRenderer() if properties.format == "json" else structlog.dev.ConsoleRenderer()
        )
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                describe_proxies,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                renderer,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(
            format="%(message)s",
            stream=self._stream or sys.stdout,
            level=properties.root_level,
            force=True,
        )
        for name, level in properties.logger_levels().items():
            self.set_level(name, level)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(level.upper())


def configure_logging(config: Config | None = None, stream: TextIO | None = None) -> StructlogAdapter:
    """Configure proxykit logging from *config*, or from the built-in defaults."""
    adapter = StructlogAdapter(stream)
    adapter.configure(config if config is not None else Config.defaults())
    return adapter
