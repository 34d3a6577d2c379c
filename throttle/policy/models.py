"""Throttle policy value types.

This module contains the enums and dataclasses shared by rules, policies
and providers.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Dict, Mapping, Optional


class RateLimitPeriod(Enum):
    """Window over which a rate limit ceiling applies."""
    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"

    @property
    def seconds(self) -> int:
        """Length of the window in seconds."""
        return _PERIOD_SECONDS[self]


_PERIOD_SECONDS = {
    RateLimitPeriod.SECOND: 1,
    RateLimitPeriod.MINUTE: 60,
    RateLimitPeriod.HOUR: 3600,
    RateLimitPeriod.DAY: 86400,
    RateLimitPeriod.WEEK: 604800,
}

# Order in which blocked requests are stacked when stack_blocked_requests is on
STACK_ORDER = (
    RateLimitPeriod.DAY,
    RateLimitPeriod.HOUR,
    RateLimitPeriod.MINUTE,
    RateLimitPeriod.SECOND,
)


class HttpMethod(str, Enum):
    """HTTP request methods. Compared case-sensitively."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"
    CONNECT = "CONNECT"

    def __str__(self) -> str:
        return self.value


class ThrottlePolicyType(str, Enum):
    """Throttling dimension a rule or whitelist entry belongs to."""
    IP_THROTTLING = "IpThrottling"
    CLIENT_THROTTLING = "ClientThrottling"
    ENDPOINT_THROTTLING = "EndpointThrottling"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RateLimits:
    """Optional request ceiling per period.

    None means the period is unconstrained, 0 means no requests allowed.
    """
    per_second: Optional[int] = None
    per_minute: Optional[int] = None
    per_hour: Optional[int] = None
    per_day: Optional[int] = None
    per_week: Optional[int] = None

    def limit_for(self, period: RateLimitPeriod) -> Optional[int]:
        """Return the ceiling configured for period, or None."""
        return getattr(self, f"per_{period.value}")

    def as_rates(self) -> Dict[RateLimitPeriod, int]:
        """Return the configured periods only, shortest window first."""
        return {
            period: limit
            for period in RateLimitPeriod
            if (limit := self.limit_for(period)) is not None
        }

    @classmethod
    def from_rates(cls, rates: Mapping[RateLimitPeriod, int]) -> "RateLimits":
        return cls(**{f"per_{period.value}": limit for period, limit in rates.items()})

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


@dataclass(frozen=True)
class RequestIdentity:
    """Routing-relevant facts about an inbound request.

    Built by the calling middleware for each request.
    """
    endpoint: str
    method: Optional[HttpMethod] = None
    client_ip: str = ""
    client_key: str = ""
