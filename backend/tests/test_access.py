from __future__ import annotations

import pytest

from app.core.access import (
    AUTHENTICATED,
    PUBLIC,
    AccessEvaluator,
    AccessRule,
    Decision,
    build_rules,
    path_matches,
    require_roles,
)
from app.models import UserRole

API = "/api/v1"

SEEKER = UserRole.JOB_SEEKER
RECRUITER = UserRole.RECRUITER
ADMIN = UserRole.ADMIN


@pytest.fixture(scope="module")
def evaluator() -> AccessEvaluator:
    return AccessEvaluator(build_rules(API))


@pytest.mark.parametrize(
    ("pattern", "path", "expected"),
    [
        ("/api/v1/jobs/*", "/api/v1/jobs/12", True),
        ("/api/v1/jobs/*", "/api/v1/jobs/12/extra", False),
        ("/api/v1/jobs/*", "/api/v1/jobs", False),
        ("/api/v1/auth/**", "/api/v1/auth", True),
        ("/api/v1/auth/**", "/api/v1/auth/login", True),
        ("/api/v1/jobs/create", "/api/v1/jobs/create/", True),
        ("/", "/", True),
        ("/", "/health", False),
    ],
)
def test_path_matching(pattern: str, path: str, expected: bool) -> None:
    assert path_matches(pattern, path) is expected


def test_job_creation_by_seeker_is_forbidden(evaluator) -> None:
    assert evaluator.evaluate(f"{API}/jobs/create", SEEKER) is Decision.FORBIDDEN


def test_job_creation_anonymous_is_unauthenticated(evaluator) -> None:
    assert evaluator.evaluate(f"{API}/jobs/create", None) is Decision.UNAUTHENTICATED


def test_job_listing_is_public(evaluator) -> None:
    assert evaluator.evaluate(f"{API}/jobs/all", None) is Decision.ALLOW
    assert evaluator.evaluate(f"{API}/jobs/42", None) is Decision.ALLOW
    assert evaluator.evaluate(f"{API}/jobs/search", None) is Decision.ALLOW


def test_my_jobs_is_recruiter_only_despite_matching_job_detail_pattern(evaluator) -> None:
    # "/jobs/my-jobs" also matches the public "/jobs/*" detail rule
    assert evaluator.evaluate(f"{API}/jobs/my-jobs", None) is Decision.UNAUTHENTICATED
    assert evaluator.evaluate(f"{API}/jobs/my-jobs", SEEKER) is Decision.FORBIDDEN
    assert evaluator.evaluate(f"{API}/jobs/my-jobs", RECRUITER) is Decision.ALLOW


@pytest.mark.parametrize(
    "path",
    ["/jobs/update/3", "/jobs/delete/3", "/jobs/toggle-status/3"],
)
def test_job_mutations_require_recruiter(evaluator, path: str) -> None:
    assert evaluator.evaluate(API + path, SEEKER) is Decision.FORBIDDEN
    assert evaluator.evaluate(API + path, ADMIN) is Decision.FORBIDDEN
    assert evaluator.evaluate(API + path, RECRUITER) is Decision.ALLOW


def test_application_paths_split_by_role(evaluator) -> None:
    assert evaluator.evaluate(f"{API}/applications/apply/1", SEEKER) is Decision.ALLOW
    assert evaluator.evaluate(f"{API}/applications/apply/1", RECRUITER) is Decision.FORBIDDEN
    assert evaluator.evaluate(f"{API}/applications/job/1", RECRUITER) is Decision.ALLOW
    assert evaluator.evaluate(f"{API}/applications/job/1", SEEKER) is Decision.FORBIDDEN
    assert evaluator.evaluate(f"{API}/applications/stats/1", SEEKER) is Decision.FORBIDDEN
    assert evaluator.evaluate(f"{API}/applications/withdraw/1", RECRUITER) is Decision.FORBIDDEN


def test_application_detail_needs_any_principal(evaluator) -> None:
    assert evaluator.evaluate(f"{API}/applications/5", None) is Decision.UNAUTHENTICATED
    assert evaluator.evaluate(f"{API}/applications/5", SEEKER) is Decision.ALLOW
    assert evaluator.evaluate(f"{API}/applications/5", RECRUITER) is Decision.ALLOW


def test_admin_and_notifications(evaluator) -> None:
    assert evaluator.evaluate(f"{API}/admin/users", RECRUITER) is Decision.FORBIDDEN
    assert evaluator.evaluate(f"{API}/admin/users", ADMIN) is Decision.ALLOW
    assert evaluator.evaluate(f"{API}/notifications/unread", None) is Decision.UNAUTHENTICATED
    assert evaluator.evaluate(f"{API}/notifications/unread", SEEKER) is Decision.ALLOW


def test_public_infrastructure_paths(evaluator) -> None:
    for path in ("/", "/health", "/docs", "/openapi.json", "/ws/notifications", f"{API}/auth/login"):
        assert evaluator.evaluate(path, None) is Decision.ALLOW


def test_unmatched_paths_default_to_authenticated(evaluator) -> None:
    assert evaluator.evaluate("/something/else", None) is Decision.UNAUTHENTICATED
    assert evaluator.evaluate("/something/else", SEEKER) is Decision.ALLOW


def test_first_matching_rule_wins() -> None:
    rules = [
        AccessRule(("/jobs/create",), require_roles(RECRUITER)),
        AccessRule(("/jobs/**",), PUBLIC),
    ]
    assert AccessEvaluator(rules).evaluate("/jobs/create", None) is Decision.UNAUTHENTICATED
    assert AccessEvaluator(list(reversed(rules))).evaluate("/jobs/create", None) is Decision.ALLOW


def test_requirement_check() -> None:
    assert PUBLIC.check(None) is Decision.ALLOW
    assert AUTHENTICATED.check(None) is Decision.UNAUTHENTICATED
    assert AUTHENTICATED.check(ADMIN) is Decision.ALLOW
    assert require_roles(RECRUITER, ADMIN).check(ADMIN) is Decision.ALLOW
