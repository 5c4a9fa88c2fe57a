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
"""Logging contract and its bindable settings (``proxykit.logging.*``)."""

from __future__ import annotations

import logging
from typing import Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, field_validator

from proxykit.core.config import config_properties


@config_properties(prefix="proxykit.logging")
class LoggingProperties(BaseModel):
    """Log rendering and levels.

    ``level`` maps logger names to level names; ``root`` sets the root
    logger. Nested YAML sections are flattened, so
    ``level: {proxykit: {proxy: DEBUG}}`` configures ``proxykit.proxy``.
    """

    format: Literal["console", "json"] = "console"
    level: dict[str, str] = {"root": "INFO"}

    @field_validator("format", mode="before")
    @classmethod
    def _lower(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @field_validator("level", mode="before")
    @classmethod
    def _flatten_levels(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        levels = {name: str(level).upper() for name, level in _flatten(value).items()}
        unknown = sorted(name for name, level in levels.items() if level not in logging.getLevelNamesMapping())
        if unknown:
            raise ValueError(f"unknown log level for {', '.join(unknown)}")
        return levels

    @property
    def root_level(self) -> str:
        return self.level.get("root", "INFO")

    def logger_levels(self) -> dict[str, str]:
        """Per-logger levels, without the root entry."""
        return {name: level for name, level in self.level.items() if name != "root"}


@runtime_checkable
class LoggingPort(Protocol):
    """What proxykit needs from a logging backend."""

    def configure(self, config: Any) -> None: ...
    def get_logger(self, name: str) -> Any: ...
    def set_level(self, name: str, level: str) -> None: ...


def _flatten(section: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key, value in section.items():
        name = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            flat.update(_flatten(value, name))
        else:
            flat[name] = value
    return flat
