"""Throttle policy model for request rate limiting middleware."""

from throttle.exceptions import (
    DuplicatePolicyEntryError,
    PatternCompilationError,
    ThrottlePolicyError,
)
from throttle.policy import (
    DuplicateEntryMode,
    EndpointRule,
    HttpMethod,
    PolicyHolder,
    RateLimitPeriod,
    RateLimits,
    RequestIdentity,
    ThrottlePolicy,
    ThrottlePolicyType,
)
from throttle.providers import (
    ConfigurationPolicyProvider,
    InMemoryPolicyProvider,
    PolicyRuleEntry,
    PolicySettings,
    PolicyWhitelistEntry,
    ThrottlePolicyProvider,
)

__all__ = [
    "ThrottlePolicyError",
    "PatternCompilationError",
    "DuplicatePolicyEntryError",
    "DuplicateEntryMode",
    "EndpointRule",
    "HttpMethod",
    "PolicyHolder",
    "RateLimitPeriod",
    "RateLimits",
    "RequestIdentity",
    "ThrottlePolicy",
    "ThrottlePolicyType",
    "ConfigurationPolicyProvider",
    "InMemoryPolicyProvider",
    "PolicyRuleEntry",
    "PolicySettings",
    "PolicyWhitelistEntry",
    "ThrottlePolicyProvider",
]
