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
"""Unified exception hierarchy for proxykit.

All framework errors inherit from ProxyKitException and carry a
machine-readable ``code`` plus a context dict.

Categories:
- ConfigurationError: invalid proxy setup, raised at proxy-creation time
- InvocationError: a call through the proxy could not be completed
- UndeclaredFailureError: a checked failure escaped a method that does
  not declare it
"""

from __future__ import annotations

from typing import Any


# =============================================================================
# Base Exception
# =============================================================================


class ProxyKitException(Exception):
    """Base exception for all proxykit errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "AOP_CONFIG").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# User-side failure contract
# =============================================================================


class CheckedException(Exception):
    """Base for failures that a method must declare with ``@throws``.

    A checked failure raised through a proxy by a method that does not
    declare it reaches the caller as :class:`UndeclaredFailureError`.
    All other exceptions are unchecked and propagate unchanged.
    """


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationError(ProxyKitException):
    """Invalid proxy configuration, detected when the proxy is created."""

    def __init__(self, message: str, code: str = "AOP_CONFIG", context: dict | None = None) -> None:
        super().__init__(message, code=code, context=context)


class ProxyConfigurationError(ConfigurationError):
    """The proxy class could not be synthesized for the requested base type."""

    def __init__(self, message: str, base: type | None = None) -> None:
        super().__init__(message, code="AOP_PROXY_SYNTHESIS", context={"base": base})
        self.base = base


class UnknownAdviceTypeError(ConfigurationError):
    """An advisor carries advice that no registered adapter understands."""

    def __init__(self, advice: Any) -> None:
        super().__init__(
            f"Advice object [{advice!r}] is neither a supported subinterface of "
            "Advice nor an Advisor",
            code="AOP_UNKNOWN_ADVICE",
        )
        self.advice = advice


# =============================================================================
# Invocation Exceptions
# =============================================================================


class InvocationError(ProxyKitException):
    """A call through the proxy failed for reasons unrelated to the target logic."""

    def __init__(self, message: str, context: dict | None = None) -> None:
        super().__init__(message, code="AOP_INVOCATION", context=context)


class UndeclaredFailureError(ProxyKitException):
    """A checked failure not declared by the invoked method.

    The original failure is available as :attr:`undeclared` and is chained
    as ``__cause__``.
    """

    def __init__(self, undeclared: BaseException, method_name: str | None = None) -> None:
        super().__init__(
            f"Undeclared checked failure {type(undeclared).__name__} raised by '{method_name}'",
            code="AOP_UNDECLARED",
            context={"method": method_name},
        )
        self.undeclared = undeclared


class ProxyNotExposedError(ProxyKitException):
    """The current proxy was requested outside an exposing invocation."""

    def __init__(self) -> None:
        super().__init__(
            "Cannot find current proxy: set 'expose_proxy' on the proxy configuration "
            "to make it available, and call current_proxy() from code running inside "
            "the proxied invocation",
            code="AOP_PROXY_NOT_EXPOSED",
        )


class PoolExhaustedError(ProxyKitException):
    """No pooled target became available within the configured wait time."""

    def __init__(self, max_size: int, timeout: float) -> None:
        super().__init__(
            f"Target pool exhausted: {max_size} targets in use, none released within {timeout}s",
            code="AOP_POOL_EXHAUSTED",
            context={"max_size": max_size, "timeout": timeout},
        )


class FastPathUnavailableError(ProxyKitException):
    """The direct-call fast path cannot serve a method; callers fall back to reflection."""

    def __init__(self, method_name: str, reason: str) -> None:
        super().__init__(
            f"No fast path for '{method_name}': {reason}",
            code="AOP_FAST_PATH",
        )
