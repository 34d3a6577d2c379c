from abc import ABC, abstractmethod
from typing import Optional, Sequence

from throttle.providers.models import (
    PolicyRuleEntry,
    PolicySettings,
    PolicyWhitelistEntry,
)


class ThrottlePolicyProvider(ABC):
    """Base class for throttle policy sources.

    A provider reads raw settings, whitelist entries and rule entries from
    wherever they are stored (configuration, database, remote service).
    ThrottlePolicy.from_store depends only on these three reads, so any
    backend can be substituted.

    Errors raised by a provider (I/O, deserialization) are not caught by
    the policy assembly and reach the caller unchanged.
    """

    @abstractmethod
    def read_settings(self) -> PolicySettings:
        """Read the global flags and default rates.

        Returns:
            Policy settings record
        """
        pass

    @abstractmethod
    def all_whitelists(self) -> Optional[Sequence[PolicyWhitelistEntry]]:
        """Read every whitelist entry.

        Returns:
            Whitelist entries in storage order, or None if there are none
        """
        pass

    @abstractmethod
    def all_rules(self) -> Sequence[PolicyRuleEntry]:
        """Read every rule entry.

        Returns:
            Rule entries in storage order. Order matters for endpoint rules.
        """
        pass
