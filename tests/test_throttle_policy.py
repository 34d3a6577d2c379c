"""Tests for ThrottlePolicy construction and assembly."""

from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from throttle.exceptions import DuplicatePolicyEntryError, PatternCompilationError
from throttle.policy import (
    DuplicateEntryMode,
    EndpointRule,
    HttpMethod,
    RateLimitPeriod,
    RateLimits,
    RequestIdentity,
    ThrottlePolicy,
    ThrottlePolicyType,
)
from throttle.providers import (
    InMemoryPolicyProvider,
    PolicyRuleEntry,
    PolicySettings,
    PolicyWhitelistEntry,
)


IP = ThrottlePolicyType.IP_THROTTLING
CLIENT = ThrottlePolicyType.CLIENT_THROTTLING
ENDPOINT = ThrottlePolicyType.ENDPOINT_THROTTLING


def rule(policy_type, entry, **limits):
    return PolicyRuleEntry(policy_type=policy_type, entry=entry, **limits)


def whitelist(policy_type, entry):
    return PolicyWhitelistEntry(policy_type=policy_type, entry=entry)


class TestDirectConstruction:
    """Test suite for building policies in code."""

    def test_empty_policy(self):
        """Test the default policy is disabled and empty."""
        policy = ThrottlePolicy()

        assert policy.rates == {}
        assert not policy.ip_throttling
        assert not policy.client_throttling
        assert not policy.endpoint_throttling
        assert not policy.stack_blocked_requests
        assert policy.ip_rules == {}
        assert policy.client_rules == {}
        assert policy.endpoint_rules == ()
        assert policy.ip_whitelist == ()
        assert policy.client_whitelist == ()
        assert policy.endpoint_whitelist == ()

    def test_from_limits_subset(self):
        """Test only supplied periods become default rates."""
        policy = ThrottlePolicy.from_limits(per_second=1, per_hour=100)

        assert policy.rates == {RateLimitPeriod.SECOND: 1, RateLimitPeriod.HOUR: 100}
        assert policy.default_limits == RateLimits(per_second=1, per_hour=100)
        assert policy.ip_rules == {}
        assert not policy.ip_throttling

    def test_from_limits_with_options(self):
        """Test flags and rules can be set explicitly."""
        policy = ThrottlePolicy.from_limits(
            per_minute=30,
            ip_throttling=True,
            ip_rules={"10.0.0.1": RateLimits(per_minute=5)},
        )

        assert policy.ip_throttling
        assert policy.ip_limits("10.0.0.1") == RateLimits(per_minute=5)
        assert policy.ip_limits("10.0.0.2") is None


class TestFromStore:
    """Test suite for ThrottlePolicy.from_store."""

    def test_example_policy(self):
        """Test the per-minute default with one endpoint rule."""
        provider = InMemoryPolicyProvider(
            settings=PolicySettings(limit_per_minute=60),
            rules=[rule(ENDPOINT, "^/api/.*$", limit_per_second=5)],
        )

        policy = ThrottlePolicy.from_store(provider)

        assert policy.rates == {RateLimitPeriod.MINUTE: 60}
        assert policy.endpoint_rules == (
            EndpointRule("^/api/.*$", None, RateLimits(per_second=5)),
        )
        assert policy.endpoint_rules[0].method is None
        assert policy.endpoint_whitelist == ()

        api = RequestIdentity(endpoint="/api/users", method=HttpMethod.GET)
        health = RequestIdentity(endpoint="/health", method=HttpMethod.GET)
        assert policy.endpoint_rules[0].match(api)
        assert not policy.endpoint_rules[0].match(health)

    def test_settings_flags_carried_over(self):
        """Test enable flags and stacking come from settings."""
        provider = InMemoryPolicyProvider(
            settings=PolicySettings(
                ip_throttling=True,
                client_throttling=True,
                endpoint_throttling=False,
                stack_blocked_requests=True,
                limit_per_second=1,
                limit_per_minute=20,
                limit_per_hour=200,
                limit_per_day=1500,
                limit_per_week=3000,
            ),
        )

        policy = ThrottlePolicy.from_store(provider)

        assert policy.ip_throttling
        assert policy.client_throttling
        assert not policy.endpoint_throttling
        assert policy.stack_blocked_requests
        assert policy.rates == {
            RateLimitPeriod.SECOND: 1,
            RateLimitPeriod.MINUTE: 20,
            RateLimitPeriod.HOUR: 200,
            RateLimitPeriod.DAY: 1500,
            RateLimitPeriod.WEEK: 3000,
        }

    def test_rules_dispatched_by_dimension(self):
        """Test each rule lands in its dimension's collection."""
        provider = InMemoryPolicyProvider(
            rules=[
                rule(IP, "192.168.0.1", limit_per_minute=10),
                rule(CLIENT, "api-key-1", limit_per_hour=100),
                rule(ENDPOINT, "^/upload$", limit_per_day=50),
            ],
        )

        policy = ThrottlePolicy.from_store(provider)

        assert policy.ip_rules == {"192.168.0.1": RateLimits(per_minute=10)}
        assert policy.client_rules == {"api-key-1": RateLimits(per_hour=100)}
        assert [r.pattern for r in policy.endpoint_rules] == ["^/upload$"]
        assert policy.endpoint_rules[0].limits == RateLimits(per_day=50)

    def test_endpoint_rule_order_preserved(self):
        """Test endpoint rules keep provider order without dedup."""
        patterns = ["^/b", "^/a", "^/c", "^/a"]
        provider = InMemoryPolicyProvider(
            rules=[rule(ENDPOINT, p, limit_per_second=i) for i, p in enumerate(patterns)],
        )

        policy = ThrottlePolicy.from_store(provider)

        assert [r.pattern for r in policy.endpoint_rules] == patterns
        assert [r.limits.per_second for r in policy.endpoint_rules] == [0, 1, 2, 3]

    def test_whitelists_partitioned_in_order(self):
        """Test whitelist entries are split by dimension, order kept."""
        provider = InMemoryPolicyProvider(
            whitelists=[
                whitelist(IP, "10.0.0.2"),
                whitelist(ENDPOINT, "/health"),
                whitelist(IP, "10.0.0.1"),
                whitelist(CLIENT, "admin-key"),
            ],
        )

        policy = ThrottlePolicy.from_store(provider)

        assert policy.ip_whitelist == ("10.0.0.2", "10.0.0.1")
        assert policy.client_whitelist == ("admin-key",)
        assert policy.endpoint_whitelist == ("/health",)

    def test_missing_whitelists_mean_no_exemptions(self):
        """Test a provider returning None whitelists is not an error."""
        provider = MagicMock()
        provider.read_settings.return_value = PolicySettings()
        provider.all_rules.return_value = []
        provider.all_whitelists.return_value = None

        policy = ThrottlePolicy.from_store(provider)

        assert policy.ip_whitelist == ()
        assert policy.client_whitelist == ()
        assert policy.endpoint_whitelist == ()
        assert policy.ip_rules == {}
        assert policy.client_rules == {}
        assert policy.endpoint_rules == ()

    def test_deterministic(self):
        """Test two assemblies from the same provider are equal."""
        provider = InMemoryPolicyProvider(
            settings=PolicySettings(limit_per_minute=60, ip_throttling=True),
            rules=[
                rule(IP, "10.0.0.1", limit_per_second=2),
                rule(ENDPOINT, "^/api/", limit_per_second=5),
                rule(CLIENT, "key", limit_per_day=10),
            ],
            whitelists=[whitelist(IP, "127.0.0.1")],
        )

        assert ThrottlePolicy.from_store(provider) == ThrottlePolicy.from_store(provider)

    def test_duplicate_ip_entry_raises(self):
        """Test two IP rules for the same entry abort assembly."""
        provider = InMemoryPolicyProvider(
            rules=[
                rule(IP, "10.0.0.1", limit_per_second=1),
                rule(IP, "10.0.0.1", limit_per_second=2),
            ],
        )

        with pytest.raises(DuplicatePolicyEntryError) as exc_info:
            ThrottlePolicy.from_store(provider, on_duplicate=DuplicateEntryMode.RAISE)

        assert exc_info.value.policy_type == "IpThrottling"
        assert exc_info.value.entry == "10.0.0.1"
        assert "IpThrottling" in str(exc_info.value)
        assert "10.0.0.1" in str(exc_info.value)

    def test_duplicate_client_entry_raises(self):
        """Test two client rules for the same key abort assembly."""
        provider = InMemoryPolicyProvider(
            rules=[rule(CLIENT, "key", limit_per_hour=1), rule(CLIENT, "key")],
        )

        with pytest.raises(DuplicatePolicyEntryError) as exc_info:
            ThrottlePolicy.from_store(provider, on_duplicate=DuplicateEntryMode.RAISE)

        assert exc_info.value.policy_type == "ClientThrottling"

    def test_same_entry_in_different_dimensions(self):
        """Test an IP rule and a client rule may share an entry."""
        provider = InMemoryPolicyProvider(
            rules=[
                rule(IP, "shared", limit_per_second=1),
                rule(CLIENT, "shared", limit_per_second=2),
            ],
        )

        policy = ThrottlePolicy.from_store(provider, on_duplicate=DuplicateEntryMode.RAISE)

        assert policy.ip_rules["shared"] == RateLimits(per_second=1)
        assert policy.client_rules["shared"] == RateLimits(per_second=2)

    def test_duplicate_last_wins(self):
        """Test last_wins keeps the later record."""
        provider = InMemoryPolicyProvider(
            rules=[
                rule(IP, "10.0.0.1", limit_per_second=1),
                rule(IP, "10.0.0.1", limit_per_second=2),
            ],
        )

        policy = ThrottlePolicy.from_store(provider, on_duplicate=DuplicateEntryMode.LAST_WINS)

        assert policy.ip_rules == {"10.0.0.1": RateLimits(per_second=2)}

    def test_duplicate_mode_from_settings(self, monkeypatch):
        """Test the configured mode is used when none is passed."""
        from throttle.core.config import settings

        monkeypatch.setattr(settings, "policy_duplicate_entries", "last_wins")
        provider = InMemoryPolicyProvider(
            rules=[rule(CLIENT, "key", limit_per_day=1), rule(CLIENT, "key", limit_per_day=9)],
        )

        policy = ThrottlePolicy.from_store(provider)

        assert policy.client_rules == {"key": RateLimits(per_day=9)}

    def test_invalid_endpoint_pattern_aborts(self):
        """Test a malformed endpoint entry fails assembly."""
        provider = InMemoryPolicyProvider(
            rules=[rule(ENDPOINT, "^/ok$"), rule(ENDPOINT, "^/broken($")],
        )

        with pytest.raises(PatternCompilationError):
            ThrottlePolicy.from_store(provider)

    def test_provider_errors_propagate(self):
        """Test provider exceptions reach the caller unchanged."""
        provider = MagicMock()
        provider.read_settings.side_effect = IOError("store unavailable")

        with pytest.raises(IOError, match="store unavailable"):
            ThrottlePolicy.from_store(provider)

    def test_negative_limit_rejected_by_record(self):
        """Test rule records refuse negative ceilings."""
        with pytest.raises(ValidationError):
            PolicyRuleEntry(policy_type=IP, entry="10.0.0.1", limit_per_second=-1)


class TestPolicyQueries:
    """Test suite for lookups used by the enforcement engine."""

    @pytest.fixture
    def policy(self):
        return ThrottlePolicy.from_store(
            InMemoryPolicyProvider(
                settings=PolicySettings(
                    ip_throttling=True,
                    client_throttling=True,
                    endpoint_throttling=True,
                    limit_per_second=10,
                ),
                rules=[
                    rule(IP, "10.0.0.9", limit_per_second=1),
                    rule(CLIENT, "partner", limit_per_second=100),
                    rule(ENDPOINT, "^/api/", limit_per_second=5),
                    rule(ENDPOINT, "^/api/upload$", limit_per_minute=2),
                    rule(ENDPOINT, "^/admin/", limit_per_second=1),
                ],
                whitelists=[
                    whitelist(IP, "127.0.0.1"),
                    whitelist(CLIENT, "internal"),
                    whitelist(ENDPOINT, "/health"),
                ],
            )
        )

    def test_matching_endpoint_rules_in_order(self, policy):
        """Test all matching rules are returned in policy order."""
        request = RequestIdentity(endpoint="/api/upload", method=HttpMethod.POST)

        matched = policy.matching_endpoint_rules(request)

        assert [r.pattern for r in matched] == ["^/api/", "^/api/upload$"]

    def test_no_matching_endpoint_rules(self, policy):
        """Test an unconfigured path matches nothing."""
        assert policy.matching_endpoint_rules(RequestIdentity(endpoint="/public")) == []

    def test_rule_lookups(self, policy):
        """Test IP and client overrides."""
        assert policy.ip_limits("10.0.0.9") == RateLimits(per_second=1)
        assert policy.client_limits("partner") == RateLimits(per_second=100)
        assert policy.client_limits("unknown") is None

    @pytest.mark.parametrize(
        "identity",
        [
            RequestIdentity(endpoint="/api/x", client_ip="127.0.0.1"),
            RequestIdentity(endpoint="/api/x", client_key="internal"),
            RequestIdentity(endpoint="/health"),
        ],
    )
    def test_whitelisted(self, policy, identity):
        """Test exact whitelist matches in each dimension."""
        assert policy.is_whitelisted(identity)

    def test_whitelist_is_exact_match(self, policy):
        """Test whitelist entries do not match by prefix."""
        identity = RequestIdentity(
            endpoint="/health/deep", client_ip="127.0.0.10", client_key="internal-2"
        )

        assert not policy.is_whitelisted(identity)

    def test_whitelist_ignored_when_dimension_disabled(self):
        """Test a whitelist only applies to an enabled dimension."""
        policy = ThrottlePolicy(ip_throttling=False, ip_whitelist=("127.0.0.1",))

        assert not policy.is_whitelisted(RequestIdentity(endpoint="/", client_ip="127.0.0.1"))


class TestPolicySnapshot:
    """Test suite for the read-only guarantees of an assembled policy."""

    @pytest.fixture
    def policy(self):
        return ThrottlePolicy.from_store(
            InMemoryPolicyProvider(
                settings=PolicySettings(limit_per_minute=60),
                rules=[
                    rule(IP, "1.2.3.4", limit_per_second=1),
                    rule(CLIENT, "key", limit_per_second=2),
                    rule(ENDPOINT, "^/api/", limit_per_second=3),
                ],
                whitelists=[whitelist(IP, "127.0.0.1")],
            )
        )

    def test_rule_mappings_are_read_only(self, policy):
        """Test rates and keyed rules reject item assignment."""
        with pytest.raises(TypeError):
            policy.ip_rules["9.9.9.9"] = RateLimits(per_second=1)
        with pytest.raises(TypeError):
            policy.client_rules["other"] = RateLimits()
        with pytest.raises(TypeError):
            policy.rates[RateLimitPeriod.SECOND] = 1

        assert policy.ip_rules == {"1.2.3.4": RateLimits(per_second=1)}
        assert policy.rates == {RateLimitPeriod.MINUTE: 60}

    def test_sequences_are_tuples(self, policy):
        """Test whitelists and endpoint rules cannot be appended to."""
        assert isinstance(policy.endpoint_rules, tuple)
        assert isinstance(policy.ip_whitelist, tuple)

        with pytest.raises(AttributeError):
            policy.ip_whitelist.append("10.0.0.1")

    def test_fields_cannot_be_reassigned(self, policy):
        """Test the snapshot itself is frozen."""
        with pytest.raises(AttributeError):
            policy.ip_rules = {}

    def test_caller_collections_are_copied(self):
        """Test later edits to the caller's dicts and lists do not leak in."""
        ip_rules = {"a": RateLimits(per_second=1)}
        rates = {RateLimitPeriod.HOUR: 100}
        whitelist_ips = ["127.0.0.1"]
        endpoint_rules = [EndpointRule("^/a")]

        policy = ThrottlePolicy(
            rates=rates,
            ip_rules=ip_rules,
            ip_whitelist=whitelist_ips,
            endpoint_rules=endpoint_rules,
        )
        ip_rules["b"] = RateLimits(per_second=2)
        rates[RateLimitPeriod.DAY] = 1000
        whitelist_ips.append("10.0.0.1")
        endpoint_rules.append(EndpointRule("^/b"))

        assert policy.ip_rules == {"a": RateLimits(per_second=1)}
        assert policy.rates == {RateLimitPeriod.HOUR: 100}
        assert policy.ip_whitelist == ("127.0.0.1",)
        assert policy.endpoint_rules == (EndpointRule("^/a"),)

    def test_hashable(self, policy):
        """Test snapshots can be used as set members and cache keys."""
        assert hash(ThrottlePolicy()) == hash(ThrottlePolicy())

        rebuilt = ThrottlePolicy(
            rates=dict(policy.rates),
            ip_rules=dict(policy.ip_rules),
            client_rules=dict(policy.client_rules),
            endpoint_rules=policy.endpoint_rules,
            ip_whitelist=policy.ip_whitelist,
        )
        assert rebuilt == policy
        assert len({policy, rebuilt, ThrottlePolicy()}) == 2

    def test_from_limits_rejects_rates_option(self):
        """Test rates cannot be passed alongside the per-period arguments."""
        with pytest.raises(TypeError, match="pass rates to ThrottlePolicy"):
            ThrottlePolicy.from_limits(per_second=1, rates={})
