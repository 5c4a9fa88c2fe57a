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
"""AdvisedSupport: the mutable-until-frozen proxy configuration."""

from __future__ import annotations

from typing import Any

from proxykit.aop.advice import Advice, DynamicIntroductionAdvice, IntroductionInterceptor
from proxykit.aop.advisor import Advisor, DefaultIntroductionAdvisor, DefaultPointcutAdvisor, IntroductionAdvisor
from proxykit.aop.invocation import ChainLink
from proxykit.aop.reflection import Method, inherits, is_interface
from proxykit.kernel.exceptions import ConfigurationError
from proxykit.proxy.advised import Advised
from proxykit.proxy.chain import DefaultAdvisorChainFactory
from proxykit.proxy.config import ProxyConfig
from proxykit.proxy.target import EMPTY_TARGET_SOURCE, EmptyTargetSource, SingletonTargetSource, TargetSource


class AdvisedSupport(ProxyConfig, Advised):
    """Holds everything a proxy is built from.

    The configuration carries the target source, the interfaces to proxy,
    the ordered advisor list and the :class:`ProxyConfig` flags. Resolved
    interceptor chains are cached per (method, target class) and the cache
    is dropped on every advice change. Once ``frozen`` is set, advisors can
    no longer be added, removed or replaced.
    """

    def __init__(self, *interfaces: type) -> None:
        super().__init__()
        self.target_source: TargetSource = EMPTY_TARGET_SOURCE
        self.pre_filtered = False
        self.advisor_chain_factory = DefaultAdvisorChainFactory()
        self._interfaces: list[type] = []
        self._advisors: list[Advisor] = []
        self._method_cache: dict[tuple[Method, type | None], list[ChainLink]] = {}
        self.set_interfaces(*interfaces)

    # ------------------------------------------------------------------
    # Target
    # ------------------------------------------------------------------

    def set_target(self, target: Any) -> None:
        self.set_target_source(SingletonTargetSource(target))

    def set_target_source(self, target_source: TargetSource | None) -> None:
        self.target_source = target_source if target_source is not None else EMPTY_TARGET_SOURCE

    def get_target_source(self) -> TargetSource:
        return self.target_source

    def set_target_class(self, target_class: type | None) -> None:
        """Proxy *target_class* without a target; advice must handle every call."""
        self.target_source = EmptyTargetSource.for_class(target_class)

    def get_target_class(self) -> type | None:
        return self.target_source.target_class

    # ------------------------------------------------------------------
    # Flags exposed through Advised
    # ------------------------------------------------------------------

    def is_frozen(self) -> bool:
        return self.frozen

    def is_proxy_target_class(self) -> bool:
        return self.proxy_target_class

    def is_expose_proxy(self) -> bool:
        return self.expose_proxy

    def set_expose_proxy(self, expose_proxy: bool) -> None:
        self.expose_proxy = expose_proxy

    def is_pre_filtered(self) -> bool:
        return self.pre_filtered

    def set_pre_filtered(self, pre_filtered: bool) -> None:
        self.pre_filtered = pre_filtered

    # ------------------------------------------------------------------
    # Interfaces
    # ------------------------------------------------------------------

    def set_interfaces(self, *interfaces: type) -> None:
        self._interfaces.clear()
        for interface in interfaces:
            self.add_interface(interface)

    def add_interface(self, interface: type) -> None:
        if not isinstance(interface, type) or not is_interface(interface):
            raise ConfigurationError(f"[{getattr(interface, '__qualname__', interface)!r}] is not an interface")
        if interface not in self._interfaces:
            self._interfaces.append(interface)
            self.advice_changed()

    def remove_interface(self, interface: type) -> bool:
        if interface in self._interfaces:
            self._interfaces.remove(interface)
            self.advice_changed()
            return True
        return False

    def get_proxied_interfaces(self) -> tuple[type, ...]:
        return tuple(self._interfaces)

    def is_interface_proxied(self, interface: type) -> bool:
        return any(inherits(proxied, interface) for proxied in self._interfaces)

    # ------------------------------------------------------------------
    # Advisors
    # ------------------------------------------------------------------

    def get_advisors(self) -> tuple[Advisor, ...]:
        return tuple(self._advisors)

    def get_advisor_count(self) -> int:
        return len(self._advisors)

    def add_advisor(self, advisor: Advisor) -> None:
        self.add_advisor_at(len(self._advisors), advisor)

    def add_advisor_at(self, pos: int, advisor: Advisor) -> None:
        if isinstance(advisor, IntroductionAdvisor):
            self._validate_introduction_advisor(advisor)
        self._add_advisor_internal(pos, advisor)

    def add_advisors(self, *advisors: Advisor) -> None:
        self._check_not_frozen("add advisors")
        for advisor in advisors:
            if isinstance(advisor, IntroductionAdvisor):
                self._validate_introduction_advisor(advisor)
            self._advisors.append(advisor)
        self.advice_changed()

    def remove_advisor(self, advisor: Advisor) -> bool:
        index = self.index_of(advisor)
        if index == -1:
            return False
        self.remove_advisor_at(index)
        return True

    def remove_advisor_at(self, index: int) -> None:
        self._check_not_frozen("remove advisor")
        if not 0 <= index < len(self._advisors):
            raise ConfigurationError(
                f"Advisor index {index} is out of bounds: only have {len(self._advisors)} advisors"
            )
        advisor = self._advisors.pop(index)
        if isinstance(advisor, IntroductionAdvisor):
            for interface in advisor.get_interfaces():
                self.remove_interface(interface)
        self.advice_changed()

    def index_of(self, advisor_or_advice: Any) -> int:
        """Position of an advisor, or of the first advisor holding the given advice; -1 if absent."""
        for index, advisor in enumerate(self._advisors):
            if advisor is advisor_or_advice or advisor.advice is advisor_or_advice:
                return index
        return -1

    def replace_advisor(self, old: Advisor, new: Advisor) -> bool:
        index = self.index_of(old)
        if index == -1:
            return False
        self.remove_advisor_at(index)
        self.add_advisor_at(index, new)
        return True

    def add_advice(self, advice: Advice) -> None:
        self.add_advice_at(len(self._advisors), advice)

    def add_advice_at(self, pos: int, advice: Advice) -> None:
        """Add *advice* wrapped in an advisor that applies to every method.

        Introduction interceptors publishing their interfaces are wrapped
        in an introduction advisor instead.
        """
        if isinstance(advice, IntroductionInterceptor) and callable(getattr(advice, "get_interfaces", None)):
            self.add_advisor_at(pos, DefaultIntroductionAdvisor(advice))
        elif isinstance(advice, DynamicIntroductionAdvice):
            raise ConfigurationError("DynamicIntroductionAdvice may only be added as part of IntroductionAdvisor")
        else:
            self.add_advisor_at(pos, DefaultPointcutAdvisor(advice))

    def remove_advice(self, advice: Advice) -> bool:
        index = self.index_of(advice)
        if index == -1:
            return False
        self.remove_advisor_at(index)
        return True

    def advice_included(self, advice: Advice | None) -> bool:
        return advice is not None and any(advisor.advice is advice for advisor in self._advisors)

    def count_advices_of_type(self, advice_class: type | None) -> int:
        if advice_class is None:
            return 0
        return sum(1 for advisor in self._advisors if isinstance(advisor.advice, advice_class))

    def _validate_introduction_advisor(self, advisor: IntroductionAdvisor) -> None:
        advisor.validate_interfaces()
        for interface in advisor.get_interfaces():
            self.add_interface(interface)

    def _add_advisor_internal(self, pos: int, advisor: Advisor) -> None:
        self._check_not_frozen("add advisor")
        if not 0 <= pos <= len(self._advisors):
            raise ConfigurationError(
                f"Illegal position {pos} in advisor list with size {len(self._advisors)}"
            )
        self._advisors.insert(pos, advisor)
        self.advice_changed()

    def _check_not_frozen(self, action: str) -> None:
        if self.frozen:
            raise ConfigurationError(f"Cannot {action}: Configuration has been frozen.")

    # ------------------------------------------------------------------
    # Chains
    # ------------------------------------------------------------------

    def get_interceptors_and_dynamic_interception_advice(
        self, method: Method, target_class: type | None
    ) -> list[ChainLink]:
        """Return the (cached) chain for *method* on *target_class*."""
        key = (method, target_class)
        cached = self._method_cache.get(key)
        if cached is None:
            cached = self.advisor_chain_factory.get_interceptors_and_dynamic_interception_advice(
                self, method, target_class
            )
            self._method_cache[key] = cached
        return cached

    def advice_changed(self) -> None:
        """Drop cached chains; subclasses extend this to notify listeners."""
        self._method_cache.clear()

    # ------------------------------------------------------------------
    # Copies and diagnostics
    # ------------------------------------------------------------------

    def copy_configuration_from(
        self,
        other: AdvisedSupport,
        target_source: TargetSource | None = None,
        advisors: list[Advisor] | None = None,
    ) -> None:
        """Take flags, interfaces and advisors (or the given ones) from *other*."""
        self.copy_from(other)
        self.target_source = target_source if target_source is not None else other.target_source
        self.advisor_chain_factory = other.advisor_chain_factory
        self._interfaces = list(other._interfaces)
        frozen, self.frozen = self.frozen, False
        for advisor in other._advisors if advisors is None else advisors:
            if isinstance(advisor, IntroductionAdvisor):
                self._validate_introduction_advisor(advisor)
            self._advisors.append(advisor)
        self.frozen = frozen
        self.advice_changed()

    def configuration_only_copy(self) -> AdvisedSupport:
        """Copy with the same flags, interfaces and advisors but no target instance."""
        copy = AdvisedSupport()
        copy.copy_from(self)
        copy.target_source = EmptyTargetSource.for_class(self.get_target_class(), self.target_source.is_static())
        copy.pre_filtered = self.pre_filtered
        copy.advisor_chain_factory = self.advisor_chain_factory
        copy._interfaces = list(self._interfaces)
        copy._advisors = list(self._advisors)
        return copy

    def to_proxy_config_string(self) -> str:
        return str(self)

    def __str__(self) -> str:
        interfaces = ",".join(i.__qualname__ for i in self._interfaces)
        return (
            f"{type(self).__name__}: {len(self._interfaces)} interfaces [{interfaces}]; "
            f"{len(self._advisors)} advisors {list(self._advisors)}; "
            f"targetSource [{self.target_source!r}]; {ProxyConfig.__str__(self)}"
        )

    __repr__ = __str__
