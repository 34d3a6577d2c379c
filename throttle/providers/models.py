"""Provider record models.

Records are validated with pydantic so providers can hand over data
parsed from JSON or environment variables. Field names accept either
snake_case or the camelCase aliases used by stored policies.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from throttle.policy.models import RateLimits, ThrottlePolicyType


class PolicySettings(BaseModel):
    """Global flags and default rates."""

    ip_throttling: bool = Field(False, alias="ipThrottling")
    client_throttling: bool = Field(False, alias="clientThrottling")
    endpoint_throttling: bool = Field(False, alias="endpointThrottling")
    stack_blocked_requests: bool = Field(False, alias="stackBlockedRequests")
    limit_per_second: Optional[int] = Field(None, alias="limitPerSecond", ge=0)
    limit_per_minute: Optional[int] = Field(None, alias="limitPerMinute", ge=0)
    limit_per_hour: Optional[int] = Field(None, alias="limitPerHour", ge=0)
    limit_per_day: Optional[int] = Field(None, alias="limitPerDay", ge=0)
    limit_per_week: Optional[int] = Field(None, alias="limitPerWeek", ge=0)

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class PolicyWhitelistEntry(BaseModel):
    """An identifier exempted from one throttling dimension."""

    policy_type: ThrottlePolicyType = Field(..., alias="policyType")
    entry: str

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class PolicyRuleEntry(BaseModel):
    """Limits for one IP, client key or endpoint pattern."""

    policy_type: ThrottlePolicyType = Field(..., alias="policyType")
    entry: str
    limit_per_second: Optional[int] = Field(None, alias="limitPerSecond", ge=0)
    limit_per_minute: Optional[int] = Field(None, alias="limitPerMinute", ge=0)
    limit_per_hour: Optional[int] = Field(None, alias="limitPerHour", ge=0)
    limit_per_day: Optional[int] = Field(None, alias="limitPerDay", ge=0)
    limit_per_week: Optional[int] = Field(None, alias="limitPerWeek", ge=0)

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_rate_limits(self) -> RateLimits:
        return RateLimits(
            per_second=self.limit_per_second,
            per_minute=self.limit_per_minute,
            per_hour=self.limit_per_hour,
            per_day=self.limit_per_day,
            per_week=self.limit_per_week,
        )
