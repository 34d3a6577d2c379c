"""Custom exceptions for the throttle policy model."""


class ThrottlePolicyError(Exception):
    """Base class for throttle policy exceptions.

    Raised while building rules or assembling a policy. All custom
    exceptions inherit from this class so callers can catch assembly
    failures in one place.
    """

    def __init__(self, message: str = "Throttle policy error"):
        self.message = message
        super().__init__(message)


class PatternCompilationError(ThrottlePolicyError):
    """Raised when an endpoint rule's path pattern is not a valid regex.

    Raised when the rule is constructed, never when it is matched.
    """

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid endpoint pattern '{pattern}': {reason}")


class DuplicatePolicyEntryError(ThrottlePolicyError):
    """Raised when two rule records share an entry within one dimension.

    Only IP and client rules are keyed, so only they can collide.
    """

    def __init__(self, policy_type: str, entry: str):
        self.policy_type = policy_type
        self.entry = entry
        super().__init__(
            f"Duplicate {policy_type} rule for entry '{entry}'"
        )
