"""In-memory policy provider."""

from typing import Iterable, List, Optional, Sequence

from throttle.providers.base import ThrottlePolicyProvider
from throttle.providers.models import (
    PolicyRuleEntry,
    PolicySettings,
    PolicyWhitelistEntry,
)


class InMemoryPolicyProvider(ThrottlePolicyProvider):
    """Provider serving records held in memory.

    Useful for policies configured in code and as a test double.
    """

    def __init__(
        self,
        settings: Optional[PolicySettings] = None,
        rules: Iterable[PolicyRuleEntry] = (),
        whitelists: Optional[Iterable[PolicyWhitelistEntry]] = None,
    ):
        """Initialize the provider.

        Args:
            settings: Global flags and default rates (all disabled if None)
            rules: Rule entries, order preserved
            whitelists: Whitelist entries, or None for no whitelist data
        """
        self._settings = settings or PolicySettings()
        self._rules: List[PolicyRuleEntry] = list(rules)
        self._whitelists: Optional[List[PolicyWhitelistEntry]] = (
            list(whitelists) if whitelists is not None else None
        )

    def read_settings(self) -> PolicySettings:
        return self._settings

    def all_whitelists(self) -> Optional[Sequence[PolicyWhitelistEntry]]:
        return self._whitelists

    def all_rules(self) -> Sequence[PolicyRuleEntry]:
        return self._rules
