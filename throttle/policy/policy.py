"""ThrottlePolicy aggregate and its assembly from a provider."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Tuple

from throttle.core.config import settings
from throttle.core.logging import get_log_context, get_logger
from throttle.exceptions import DuplicatePolicyEntryError
from throttle.policy.endpoint import EndpointRule
from throttle.policy.models import (
    RateLimitPeriod,
    RateLimits,
    RequestIdentity,
    ThrottlePolicyType,
)

if TYPE_CHECKING:
    from throttle.providers.base import ThrottlePolicyProvider

logger = get_logger(__name__)


class DuplicateEntryMode(str, Enum):
    """How assembly treats two IP or client rules with the same entry."""
    RAISE = "raise"
    LAST_WINS = "last_wins"


@dataclass(frozen=True)
class ThrottlePolicy:
    """Rate limits policy.

    A snapshot of which requests are throttled and how. Built once, either
    directly or with from_store, then shared read-only between requests.
    Reloading means building a new policy and publishing it through a
    PolicyHolder.

    Attributes:
        rates: Default ceilings used when no specific rule applies
        ip_throttling: Whether IP throttling is enabled
        client_throttling: Whether client key throttling is enabled
        endpoint_throttling: Whether endpoint throttling is enabled
        stack_blocked_requests: Whether rejected requests are still counted,
            stacked in STACK_ORDER (day, hour, minute, second)
        ip_rules: Per-IP overrides
        client_rules: Per-client-key overrides
        endpoint_rules: Endpoint rules in configured order
        ip_whitelist, client_whitelist, endpoint_whitelist: Exempted entries
    """
    rates: Mapping[RateLimitPeriod, int] = field(default_factory=dict)
    ip_throttling: bool = False
    client_throttling: bool = False
    endpoint_throttling: bool = False
    stack_blocked_requests: bool = False
    ip_rules: Mapping[str, RateLimits] = field(default_factory=dict)
    client_rules: Mapping[str, RateLimits] = field(default_factory=dict)
    endpoint_rules: Tuple[EndpointRule, ...] = ()
    ip_whitelist: Tuple[str, ...] = ()
    client_whitelist: Tuple[str, ...] = ()
    endpoint_whitelist: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Copy so later edits to the caller's collections cannot leak in
        for name in ("rates", "ip_rules", "client_rules"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))
        for name in ("endpoint_rules", "ip_whitelist", "client_whitelist", "endpoint_whitelist"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    def __hash__(self) -> int:
        return hash((
            frozenset(self.rates.items()),
            self.ip_throttling,
            self.client_throttling,
            self.endpoint_throttling,
            self.stack_blocked_requests,
            frozenset(self.ip_rules.items()),
            frozenset(self.client_rules.items()),
            self.endpoint_rules,
            self.ip_whitelist,
            self.client_whitelist,
            self.endpoint_whitelist,
        ))

    @classmethod
    def from_limits(
        cls,
        per_second: Optional[int] = None,
        per_minute: Optional[int] = None,
        per_hour: Optional[int] = None,
        per_day: Optional[int] = None,
        per_week: Optional[int] = None,
        **options,
    ) -> ThrottlePolicy:
        """Configure default request limits per second, minute, hour, day or week.

        Only the periods given get a default rate. Flags and rule
        collections can be passed as keyword options; rates cannot, since
        the per-period arguments build them.
        """
        if "rates" in options:
            raise TypeError(
                "from_limits() builds rates from per_second..per_week; "
                "pass rates to ThrottlePolicy() instead"
            )
        limits = RateLimits(
            per_second=per_second,
            per_minute=per_minute,
            per_hour=per_hour,
            per_day=per_day,
            per_week=per_week,
        )
        return cls(rates=limits.as_rates(), **options)

    @classmethod
    def from_store(
        cls,
        provider: ThrottlePolicyProvider,
        on_duplicate: Optional[DuplicateEntryMode] = None,
    ) -> ThrottlePolicy:
        """Assemble a policy from a provider's settings, rules and whitelists.

        Endpoint rules keep the provider's order and match every method,
        since stored rules carry no method. The policy is only created
        once every record has been processed, so a failure never leaves a
        partially built policy behind.

        Args:
            provider: Source of settings, rules and whitelists
            on_duplicate: Handling of repeated IP/client entries
                (defaults to settings.policy_duplicate_entries)

        Returns:
            The assembled policy

        Raises:
            DuplicatePolicyEntryError: Two IP or two client rules share an
                entry and on_duplicate is RAISE
            PatternCompilationError: An endpoint entry is not a valid regex
        """
        mode = DuplicateEntryMode(on_duplicate or settings.policy_duplicate_entries)

        policy_settings = provider.read_settings()
        rules = provider.all_rules() or ()
        whitelists = provider.all_whitelists()

        rates = RateLimits(
            per_second=policy_settings.limit_per_second,
            per_minute=policy_settings.limit_per_minute,
            per_hour=policy_settings.limit_per_hour,
            per_day=policy_settings.limit_per_day,
            per_week=policy_settings.limit_per_week,
        ).as_rates()

        ip_rules: Dict[str, RateLimits] = {}
        client_rules: Dict[str, RateLimits] = {}
        endpoint_rules: List[EndpointRule] = []

        for item in rules:
            rate_limits = item.to_rate_limits()

            if item.policy_type == ThrottlePolicyType.IP_THROTTLING:
                _add_keyed_rule(ip_rules, item.policy_type, item.entry, rate_limits, mode)
            elif item.policy_type == ThrottlePolicyType.CLIENT_THROTTLING:
                _add_keyed_rule(client_rules, item.policy_type, item.entry, rate_limits, mode)
            elif item.policy_type == ThrottlePolicyType.ENDPOINT_THROTTLING:
                endpoint_rules.append(EndpointRule(item.entry, None, rate_limits))

        whitelist_entries: Dict[ThrottlePolicyType, List[str]] = {
            policy_type: [] for policy_type in ThrottlePolicyType
        }
        if whitelists is not None:
            for item in whitelists:
                whitelist_entries[item.policy_type].append(item.entry)

        policy = cls(
            rates=rates,
            ip_throttling=policy_settings.ip_throttling,
            client_throttling=policy_settings.client_throttling,
            endpoint_throttling=policy_settings.endpoint_throttling,
            stack_blocked_requests=policy_settings.stack_blocked_requests,
            ip_rules=ip_rules,
            client_rules=client_rules,
            endpoint_rules=tuple(endpoint_rules),
            ip_whitelist=tuple(whitelist_entries[ThrottlePolicyType.IP_THROTTLING]),
            client_whitelist=tuple(whitelist_entries[ThrottlePolicyType.CLIENT_THROTTLING]),
            endpoint_whitelist=tuple(whitelist_entries[ThrottlePolicyType.ENDPOINT_THROTTLING]),
        )
        logger.info(
            f"Assembled throttle policy: {len(ip_rules)} ip rules, "
            f"{len(client_rules)} client rules, {len(endpoint_rules)} endpoint rules"
        )
        return policy

    @property
    def default_limits(self) -> RateLimits:
        return RateLimits.from_rates(self.rates)

    def ip_limits(self, client_ip: str) -> Optional[RateLimits]:
        """Return the override for an IP, or None."""
        return self.ip_rules.get(client_ip)

    def client_limits(self, client_key: str) -> Optional[RateLimits]:
        """Return the override for a client key, or None."""
        return self.client_rules.get(client_key)

    def matching_endpoint_rules(self, request: RequestIdentity) -> List[EndpointRule]:
        """Return every endpoint rule matching the request, in policy order."""
        return [rule for rule in self.endpoint_rules if rule.match(request)]

    def is_whitelisted(self, request: RequestIdentity) -> bool:
        """Check whether the request is exempt in any enabled dimension.

        Whitelist entries are compared exactly with the request's IP,
        client key and endpoint.
        """
        if self.ip_throttling and request.client_ip in self.ip_whitelist:
            return True

        if self.client_throttling and request.client_key in self.client_whitelist:
            return True

        if self.endpoint_throttling and request.endpoint in self.endpoint_whitelist:
            return True

        return False


def _add_keyed_rule(
    rules: Dict[str, RateLimits],
    policy_type: ThrottlePolicyType,
    entry: str,
    limits: RateLimits,
    mode: DuplicateEntryMode,
) -> None:
    if entry in rules:
        if mode == DuplicateEntryMode.RAISE:
            raise DuplicatePolicyEntryError(policy_type.value, entry)
        logger.warning(
            f"Overwriting duplicate {policy_type.value} rule for '{entry}'",
            extra=get_log_context(policy_type=policy_type.value, entry=entry),
        )
    rules[entry] = limits
