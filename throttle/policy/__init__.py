"""Throttle policy package.

- models.py: Value types (RateLimits, RequestIdentity, enums)
- endpoint.py: EndpointRule and its matcher
- policy.py: ThrottlePolicy aggregate and assembly
- holder.py: Snapshot publication
"""

from throttle.policy.models import (
    STACK_ORDER,
    HttpMethod,
    RateLimitPeriod,
    RateLimits,
    RequestIdentity,
    ThrottlePolicyType,
)
from throttle.policy.endpoint import EndpointRule
from throttle.policy.policy import DuplicateEntryMode, ThrottlePolicy
from throttle.policy.holder import PolicyHolder

__all__ = [
    "STACK_ORDER",
    "HttpMethod",
    "RateLimitPeriod",
    "RateLimits",
    "RequestIdentity",
    "ThrottlePolicyType",
    "EndpointRule",
    "DuplicateEntryMode",
    "ThrottlePolicy",
    "PolicyHolder",
]
