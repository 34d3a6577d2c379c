"""Publication of the current policy snapshot."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Optional

from throttle.core.logging import get_logger
from throttle.policy.policy import DuplicateEntryMode, ThrottlePolicy

if TYPE_CHECKING:
    from throttle.providers.base import ThrottlePolicyProvider

logger = get_logger(__name__)


class PolicyHolder:
    """Holds the policy snapshot in effect for an enforcement engine.

    Readers take ``holder.current`` once per request and use that snapshot
    throughout; the reference is replaced whole, so a reader never sees a
    partially built policy. Writers are serialized.
    """

    def __init__(self, policy: Optional[ThrottlePolicy] = None):
        self._policy = policy if policy is not None else ThrottlePolicy()
        self._lock = threading.Lock()

    @property
    def current(self) -> ThrottlePolicy:
        return self._policy

    def swap(self, policy: ThrottlePolicy) -> ThrottlePolicy:
        """Publish a new snapshot.

        Returns:
            The snapshot it replaced
        """
        with self._lock:
            previous = self._policy
            self._policy = policy
        return previous

    def reload(
        self,
        provider: ThrottlePolicyProvider,
        on_duplicate: Optional[DuplicateEntryMode] = None,
    ) -> ThrottlePolicy:
        """Rebuild the policy from a provider and publish it.

        If assembly fails the current snapshot stays in effect and the
        error is raised to the caller.

        Returns:
            The newly published snapshot
        """
        with self._lock:
            try:
                policy = ThrottlePolicy.from_store(provider, on_duplicate=on_duplicate)
            except Exception as e:
                logger.error(f"Failed to reload throttle policy, keeping previous: {e}")
                raise
            self._policy = policy
        logger.info("Throttle policy reloaded successfully")
        return policy
