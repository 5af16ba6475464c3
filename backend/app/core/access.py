"""
Route-level access control.

An ordered table of (path patterns, requirement) rules, evaluated
first-match-wins. Order matters: recruiter-only job paths such as
``/jobs/create`` must be matched before the public ``/jobs/*`` detail rule and
the generic authenticated ``/jobs/**`` rule, which both also match them.

Patterns use Ant-style segments: ``*`` matches exactly one path segment and a
trailing ``**`` matches the rest of the path (including nothing).
"""

import enum
import logging
from dataclasses import dataclass
from typing import FrozenSet, Optional, Sequence, Tuple

from app.models import UserRole

logger = logging.getLogger("access")


class Decision(str, enum.Enum):
    ALLOW = "ALLOW"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"


@dataclass(frozen=True)
class Requirement:
    """What a matched route needs from the caller."""

    public: bool = False
    roles: FrozenSet[UserRole] = frozenset()

    def check(self, role: Optional[UserRole]) -> Decision:
        if self.public:
            return Decision.ALLOW
        if role is None:
            return Decision.UNAUTHENTICATED
        if self.roles and role not in self.roles:
            return Decision.FORBIDDEN
        return Decision.ALLOW


PUBLIC = Requirement(public=True)
AUTHENTICATED = Requirement()


def require_roles(*roles: UserRole) -> Requirement:
    return Requirement(roles=frozenset(roles))


@dataclass(frozen=True)
class AccessRule:
    patterns: Tuple[str, ...]
    requirement: Requirement

    def matches(self, path: str) -> bool:
        return any(path_matches(pattern, path) for pattern in self.patterns)


def _segments(path: str) -> list[str]:
    return [segment for segment in path.split("/") if segment]


def path_matches(pattern: str, path: str) -> bool:
    """Match a path against an Ant-style pattern."""
    pattern_parts = _segments(pattern)
    path_parts = _segments(path)

    for index, part in enumerate(pattern_parts):
        if part == "**":
            return True
        if index >= len(path_parts):
            return False
        if part != "*" and part != path_parts[index]:
            return False

    return len(pattern_parts) == len(path_parts)


def build_rules(api_prefix: str) -> list[AccessRule]:
    """The route table for the API mounted under ``api_prefix``."""
    api = api_prefix.rstrip("/")

    def under(*paths: str) -> Tuple[str, ...]:
        return tuple(f"{api}{path}" for path in paths)

    return [
        AccessRule(
            ("/", "/health", "/docs", "/docs/**", "/redoc", "/openapi.json", "/ws/**")
            + under("/auth/**"),
            PUBLIC,
        ),
        AccessRule(under("/admin/**", "/users/**"), require_roles(UserRole.ADMIN)),
        # Recruiter job management: before the public and generic job rules
        AccessRule(
            under(
                "/jobs/create",
                "/jobs/update/**",
                "/jobs/delete/**",
                "/jobs/my-jobs",
                "/jobs/toggle-status/**",
            ),
            require_roles(UserRole.RECRUITER),
        ),
        AccessRule(
            under(
                "/applications/job/**",
                "/applications/update-status/**",
                "/applications/stats/**",
            ),
            require_roles(UserRole.RECRUITER),
        ),
        AccessRule(
            under(
                "/applications/apply/**",
                "/applications/my-applications",
                "/applications/withdraw/**",
            ),
            require_roles(UserRole.JOB_SEEKER),
        ),
        AccessRule(
            under("/jobs/all", "/jobs/search", "/jobs/filter", "/jobs/recent", "/jobs/*"),
            PUBLIC,
        ),
        AccessRule(under("/notifications/**"), AUTHENTICATED),
        AccessRule(under("/jobs/**", "/applications/**"), AUTHENTICATED),
    ]


class AccessEvaluator:
    """Evaluates a request path and caller role against the ordered rule table."""

    def __init__(self, rules: Sequence[AccessRule], default: Requirement = AUTHENTICATED):
        self.rules = list(rules)
        self.default = default

    def requirement_for(self, path: str) -> Requirement:
        for rule in self.rules:
            if rule.matches(path):
                return rule.requirement
        return self.default

    def evaluate(self, path: str, role: Optional[UserRole]) -> Decision:
        decision = self.requirement_for(path).check(role)
        if decision is not Decision.ALLOW:
            logger.debug("Denied %s for role=%s: %s", path, role, decision.value)
        return decision
