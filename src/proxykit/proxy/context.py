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
"""Access to the proxy currently handling a call.

With ``expose_proxy`` set, a proxy publishes itself while its advised
path runs, so target code can call back through the proxy (for example to
apply advice on self-invocation)::

    def place(self, order):
        current_proxy().audit(order)
"""

from __future__ import annotations

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from proxykit.kernel.exceptions import ProxyNotExposedError

_current_proxy: contextvars.ContextVar[Any] = contextvars.ContextVar("proxykit_current_proxy", default=None)


def current_proxy() -> Any:
    """Return the proxy handling the current call.

    Raises:
        ProxyNotExposedError: No exposing proxy invocation is in progress.
    """
    proxy = _current_proxy.get()
    if proxy is None:
        raise ProxyNotExposedError()
    return proxy


def set_current_proxy(proxy: Any) -> contextvars.Token[Any]:
    """Publish *proxy*; pass the returned token to :func:`reset_current_proxy`."""
    return _current_proxy.set(proxy)


def reset_current_proxy(token: contextvars.Token[Any]) -> None:
    _current_proxy.reset(token)


@contextmanager
def exposed(proxy: Any) -> Iterator[Any]:
    """Publish *proxy* for the duration of the block, restoring the previous one after."""
    token = _current_proxy.set(proxy)
    try:
        yield proxy
    finally:
        _current_proxy.reset(token)
