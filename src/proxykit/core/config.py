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
"""Layered configuration: built-in defaults, YAML/TOML files and ``PROXYKIT_*`` environment variables.

Usage::

    config = Config.load("proxykit.yaml", "proxykit-local.toml")
    properties = config.bind(ProxyProperties)
"""

from __future__ import annotations

import dataclasses
import functools
import importlib.resources
import os
import re
import tomllib
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, TypeVar

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, TypeAdapter, ValidationError

T = TypeVar("T")

ENV_PREFIX = "PROXYKIT_"
DEFAULTS_RESOURCE = "proxykit-defaults.yaml"

_PREFIX_ATTR = "__proxykit_config_prefix__"
_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")
_MAX_PLACEHOLDER_DEPTH = 10


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Bind a dataclass or pydantic model to the configuration section at *prefix*.

    Usage::

        @config_properties(prefix="proxykit.aop.pool")
        @dataclass
        class PoolProperties:
            max_size: int = 8
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _PREFIX_ATTR, prefix)
        return cls

    return decorator


def env_key(key: str) -> str:
    """The variable overriding *key*: ``proxykit.aop.proxy.frozen`` is ``PROXYKIT_AOP_PROXY_FROZEN``."""
    return ENV_PREFIX + re.sub(r"[.\-]", "_", key.removeprefix("proxykit.")).upper()


def read_file(path: Path) -> dict[str, Any]:
    """Parse a ``.toml`` file with tomllib, anything else as YAML."""
    text = path.read_text()
    if path.suffix == ".toml":
        return tomllib.loads(text)
    return yaml.safe_load(text) or {}


def merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge *override* into a copy of *base*; nested sections merge, other values replace."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        merged[key] = merge(current, value) if isinstance(current, dict) and isinstance(value, dict) else value
    return merged


def _read_defaults() -> dict[str, Any]:
    resource = importlib.resources.files("proxykit.resources").joinpath(DEFAULTS_RESOURCE)
    return yaml.safe_load(resource.read_text()) or {}


def _field_names(cls: type) -> list[str]:
    if issubclass(cls, BaseModel):
        return list(cls.model_fields)
    return [f.name for f in dataclasses.fields(cls)]  # type: ignore[arg-type]


class Config:
    """Dot-addressed configuration tree.

    A value is looked up in this order:

    1. the environment variable named by :func:`env_key`
    2. the merged configuration data
    3. the caller's default

    String values may reference ``${ENV_VAR}``, ``${other.key}`` or
    ``${key:fallback}``.
    """

    def __init__(self, data: dict[str, Any] | None = None, sources: Iterable[str] = ()) -> None:
        self._data: dict[str, Any] = data or {}
        self._sources = list(sources)

    @classmethod
    def load(cls, *paths: str | Path, load_defaults: bool = True) -> Config:
        """Merge the built-in defaults and every existing file in *paths*, later files winning."""
        layers: list[tuple[str, dict[str, Any]]] = []
        if load_defaults:
            layers.append((f"{DEFAULTS_RESOURCE} (built-in defaults)", _read_defaults()))
        for path in map(Path, paths):
            if path.exists():
                layers.append((str(path), read_file(path)))
        data = functools.reduce(merge, (layer for _, layer in layers), {})
        return cls(data, (source for source, _ in layers))

    @classmethod
    def from_file(cls, path: str | Path, load_defaults: bool = True) -> Config:
        return cls.load(path, load_defaults=load_defaults)

    @classmethod
    def defaults(cls) -> Config:
        return cls.load()

    @property
    def loaded_sources(self) -> list[str]:
        """Where the data came from, in merge order."""
        return list(self._sources)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    def get(self, key: str, default: Any = None) -> Any:
        override = os.environ.get(env_key(key))
        if override is not None:
            return override
        value = self._lookup(key)
        if value is None:
            return default
        return self._interpolate(value) if isinstance(value, str) else value

    def get_section(self, prefix: str) -> dict[str, Any]:
        section = self._lookup(prefix)
        return section if isinstance(section, dict) else {}

    def bind(self, config_cls: type[T]) -> T:
        """Build a ``@config_properties`` dataclass or pydantic model from its section.

        Each field is read through :meth:`get`, so environment overrides apply
        per field; pydantic coerces their string values.
        """
        prefix = getattr(config_cls, _PREFIX_ATTR, None)
        if prefix is None:
            raise ValueError(f"{config_cls.__name__} is not decorated with @config_properties")

        values = {}
        for name in _field_names(config_cls):
            value = self.get(f"{prefix}.{name}")
            if value is not None:
                values[name] = value
        try:
            return TypeAdapter(config_cls).validate_python(values)
        except ValidationError as exc:
            raise ValueError(
                f"Configuration validation failed for '{config_cls.__name__}' (prefix='{prefix}'):\n{exc}"
            ) from exc

    def _lookup(self, key: str) -> Any:
        node: Any = self._data
        for part in key.split("."):
            node = node.get(part) if isinstance(node, dict) else None
            if node is None:
                break
        return node

    def _interpolate(self, value: str, depth: int = 0) -> str:
        if "${" not in value:
            return value
        if depth > _MAX_PLACEHOLDER_DEPTH:
            raise ValueError(f"Placeholders in '{value}' nest too deeply; check for circular references")

        def substitute(match: re.Match[str]) -> str:
            ref, has_fallback, fallback = match.group(1).partition(":")
            resolved = os.environ.get(ref)
            if resolved is None:
                found = self._lookup(ref)
                if found is not None:
                    resolved = self._interpolate(str(found), depth + 1)
            if resolved is not None:
                return resolved
            if has_fallback:
                return fallback
            raise ValueError(f"Cannot resolve placeholder '${{{ref}}}': not found in environment or config")

        return _PLACEHOLDER.sub(substitute, value)
