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
"""Aspect-Oriented Programming primitives: advice, pointcuts, advisors and invocations."""

from proxykit.aop.adapters import DefaultAdvisorAdapterRegistry, get_advisor_adapter_registry
from proxykit.aop.advice import (
    Advice,
    AfterAdvice,
    AfterReturningAdvice,
    BeforeAdvice,
    DynamicIntroductionAdvice,
    FinallyAdvice,
    Interceptor,
    IntroductionInterceptor,
    MethodBeforeAdvice,
    MethodInterceptor,
    ThrowsAdvice,
)
from proxykit.aop.advisor import (
    Advisor,
    DefaultIntroductionAdvisor,
    DefaultPointcutAdvisor,
    IntroductionAdvisor,
    PointcutAdvisor,
)
from proxykit.aop.decorators import (
    AdviceSpec,
    advice_spec,
    after,
    after_returning,
    after_throwing,
    around,
    aspect,
    before,
    is_aspect,
)
from proxykit.aop.interceptors import (
    EXPOSE_INVOCATION_ADVISOR,
    DelegatingIntroductionInterceptor,
    ExposeInvocationInterceptor,
    current_invocation,
)
from proxykit.aop.invocation import InvocationState, MethodInvocation, MethodProxy
from proxykit.aop.pointcut import (
    ClassFilter,
    ComposablePointcut,
    DynamicMethodMatcher,
    DynamicMethodMatcherPointcut,
    ExpressionPointcut,
    IntroductionAwareMethodMatcher,
    MethodMatcher,
    NameMatchMethodPointcut,
    Pointcut,
    StaticMethodMatcher,
    StaticMethodMatcherPointcut,
    matches_pointcut,
)
from proxykit.aop.reflection import Method, method_of, throws
from proxykit.aop.registry import AdviceBinding, AspectPointcutAdvisor, AspectRegistry
from proxykit.aop.types import JoinPoint

__all__ = [
    # Advice
    "Advice",
    "AfterAdvice",
    "AfterReturningAdvice",
    "BeforeAdvice",
    "DynamicIntroductionAdvice",
    "FinallyAdvice",
    "Interceptor",
    "IntroductionInterceptor",
    "MethodBeforeAdvice",
    "MethodInterceptor",
    "ThrowsAdvice",
    # Advisors
    "Advisor",
    "DefaultIntroductionAdvisor",
    "DefaultPointcutAdvisor",
    "IntroductionAdvisor",
    "PointcutAdvisor",
    "DefaultAdvisorAdapterRegistry",
    "get_advisor_adapter_registry",
    # Pointcuts
    "ClassFilter",
    "ComposablePointcut",
    "DynamicMethodMatcher",
    "DynamicMethodMatcherPointcut",
    "ExpressionPointcut",
    "IntroductionAwareMethodMatcher",
    "MethodMatcher",
    "NameMatchMethodPointcut",
    "Pointcut",
    "StaticMethodMatcher",
    "StaticMethodMatcherPointcut",
    "matches_pointcut",
    # Invocation
    "EXPOSE_INVOCATION_ADVISOR",
    "DelegatingIntroductionInterceptor",
    "ExposeInvocationInterceptor",
    "InvocationState",
    "Method",
    "MethodInvocation",
    "MethodProxy",
    "current_invocation",
    "method_of",
    "throws",
    # Aspects
    "AdviceBinding",
    "AdviceSpec",
    "AspectPointcutAdvisor",
    "AspectRegistry",
    "JoinPoint",
    "advice_spec",
    "after",
    "after_returning",
    "after_throwing",
    "around",
    "aspect",
    "before",
    "is_aspect",
]
