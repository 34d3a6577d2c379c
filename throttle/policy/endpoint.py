"""Endpoint rules and the request matcher."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Union

from throttle.exceptions import PatternCompilationError
from throttle.policy.models import HttpMethod, RateLimits, RequestIdentity


@dataclass(frozen=True)
class EndpointRule:
    """Rate limits applied to requests whose path matches a pattern.

    The pattern is a regular expression searched anywhere in the request
    path; anchor it with ``^`` and ``$`` for a full match. A rule without
    a method applies to every HTTP method.

    Args:
        pattern: Regex string or compiled pattern
        method: Only match requests with this method (None = any)
        limits: Limits enforced for matching requests

    Raises:
        PatternCompilationError: If pattern is not a valid regex
    """
    pattern: Union[str, re.Pattern]
    method: Optional[HttpMethod] = None
    limits: RateLimits = field(default_factory=RateLimits)
    regex: re.Pattern = field(init=False, repr=False, compare=False)
    flags: int = field(init=False, repr=False, default=0)

    def __post_init__(self) -> None:
        if isinstance(self.pattern, re.Pattern):
            compiled = self.pattern
            object.__setattr__(self, "pattern", compiled.pattern)
        else:
            try:
                compiled = re.compile(self.pattern)
            except re.error as e:
                raise PatternCompilationError(str(self.pattern), str(e)) from e
        object.__setattr__(self, "regex", compiled)
        object.__setattr__(self, "flags", compiled.flags)

    def match(self, request: RequestIdentity) -> bool:
        """Check whether this rule applies to the request.

        Args:
            request: Identity of the inbound request

        Returns:
            True if the path matches and the method is unset or equal
        """
        if not self.regex.search(request.endpoint):
            return False

        if self.method is not None and self.method != request.method:
            return False

        return True
