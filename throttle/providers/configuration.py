"""Policy provider backed by application configuration.

Reads the throttle policy from environment variables (prefix
``THROTTLE_``) or a .env file. Rules and whitelists are JSON lists:

    THROTTLE_IP_THROTTLING=true
    THROTTLE_LIMIT_PER_MINUTE=60
    THROTTLE_RULES='[{"policyType": "EndpointThrottling", "entry": "^/api/.*$", "limitPerSecond": 5}]'
    THROTTLE_WHITELISTS='[{"policyType": "IpThrottling", "entry": "127.0.0.1"}]'
"""

from typing import List, Optional, Sequence

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from throttle.core.logging import get_logger
from throttle.providers.base import ThrottlePolicyProvider
from throttle.providers.models import (
    PolicyRuleEntry,
    PolicySettings,
    PolicyWhitelistEntry,
)

logger = get_logger(__name__)

_SETTINGS_FIELDS = set(PolicySettings.model_fields)


class PolicyConfiguration(BaseSettings):
    """Throttle policy section of the application configuration."""

    ip_throttling: bool = False
    client_throttling: bool = False
    endpoint_throttling: bool = False
    stack_blocked_requests: bool = False

    limit_per_second: Optional[int] = Field(None, ge=0)
    limit_per_minute: Optional[int] = Field(None, ge=0)
    limit_per_hour: Optional[int] = Field(None, ge=0)
    limit_per_day: Optional[int] = Field(None, ge=0)
    limit_per_week: Optional[int] = Field(None, ge=0)

    rules: List[PolicyRuleEntry] = []
    whitelists: List[PolicyWhitelistEntry] = []

    model_config = SettingsConfigDict(
        env_prefix="THROTTLE_", env_file=".env", extra="ignore"
    )


class ConfigurationPolicyProvider(ThrottlePolicyProvider):
    """Provider reading the policy from a PolicyConfiguration section."""

    def __init__(self, configuration: Optional[PolicyConfiguration] = None):
        """Initialize the provider.

        Args:
            configuration: Parsed section (loaded from the environment if None)
        """
        self.configuration = configuration or PolicyConfiguration()
        logger.debug(
            f"Loaded throttle configuration with {len(self.configuration.rules)} rules "
            f"and {len(self.configuration.whitelists)} whitelist entries"
        )

    def read_settings(self) -> PolicySettings:
        return PolicySettings(
            **self.configuration.model_dump(include=_SETTINGS_FIELDS)
        )

    def all_whitelists(self) -> Optional[Sequence[PolicyWhitelistEntry]]:
        return self.configuration.whitelists

    def all_rules(self) -> Sequence[PolicyRuleEntry]:
        return self.configuration.rules
