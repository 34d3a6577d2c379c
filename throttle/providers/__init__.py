"""Throttle policy providers.

- models.py: Provider record models
- base.py: Provider interface
- memory.py: In-memory provider
- configuration.py: Environment/.env backed provider
"""

from throttle.providers.models import (
    PolicyRuleEntry,
    PolicySettings,
    PolicyWhitelistEntry,
)
from throttle.providers.base import ThrottlePolicyProvider
from throttle.providers.memory import InMemoryPolicyProvider
from throttle.providers.configuration import (
    ConfigurationPolicyProvider,
    PolicyConfiguration,
)

__all__ = [
    "PolicySettings",
    "PolicyRuleEntry",
    "PolicyWhitelistEntry",
    "ThrottlePolicyProvider",
    "InMemoryPolicyProvider",
    "ConfigurationPolicyProvider",
    "PolicyConfiguration",
]
