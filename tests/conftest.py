"""Shared test fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from prwatch.models import Commit, PageConfig, PRState, PullRequest
from prwatch.providers.base import PullRequestSource

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def create_test_pr(
    count: int,
    base_name: str = "master",
    skip_ci: bool = False,
    is_cross_repo: bool = False,
    approved_reviews: int = 0,
    labels: list[str] | None = None,
    is_draft: bool = False,
    state: PRState = PRState.OPEN,
    has_status: bool = False,
) -> PullRequest:
    """Build PR #count, committed count days before NOW (lower numbers are newer)."""
    message = f"commit message{count}"
    if skip_ci:
        message = "[skip ci]" + message
    return PullRequest(
        id=f"pr{count}",
        number=count,
        title=f"pr{count} title",
        url=f"pr{count} url",
        base_ref_name=base_name,
        head_ref_name=f"pr{count}",
        repository_url=f"repo{count} url",
        is_cross_repository=is_cross_repo,
        is_draft=is_draft,
        state=state,
        closed_at=NOW - timedelta(days=2),
        merged_at=NOW - timedelta(days=1),
        tip=Commit(
            id=f"commit{count}",
            oid=f"oid{count}",
            committed_date=NOW - timedelta(days=count),
            message=message,
            author_login=f"login{count}",
            author_email=f"user{count}@example.com",
        ),
        approved_review_count=approved_reviews,
        labels=labels or [],
        has_status=has_status,
    )


TEST_PULL_REQUESTS = [
    create_test_pr(1, skip_ci=True),
    create_test_pr(2, has_status=True),
    create_test_pr(3, is_draft=True),
    create_test_pr(4, has_status=True),
    create_test_pr(5, is_cross_repo=True),
    create_test_pr(6),
    create_test_pr(7, base_name="develop", labels=["enhancement"], has_status=True),
    create_test_pr(8, approved_reviews=1, labels=["wontfix"], has_status=True),
    create_test_pr(9),
    create_test_pr(10, state=PRState.CLOSED),
    create_test_pr(11, state=PRState.MERGED),
    create_test_pr(12),
]


class FakeSource(PullRequestSource):
    """In-memory pull request source that records how it was called.

    Like the real API it only returns pull requests in the requested states.
    Changed-file lists are handed out per call, in order.
    """

    def __init__(
        self,
        pulls: list[PullRequest] | None = None,
        files: list[list[str]] | None = None,
        list_error: Exception | None = None,
        files_error: Exception | None = None,
    ) -> None:
        self.pulls = pulls or []
        self.files = files or []
        self.list_error = list_error
        self.files_error = files_error
        self.list_calls: list[tuple[list[PRState], PageConfig]] = []
        self.files_calls: list[int] = []

    def list_pull_requests(self, states: list[PRState], page: PageConfig) -> list[PullRequest]:
        self.list_calls.append((states, page))
        if self.list_error is not None:
            raise self.list_error
        return [p for p in self.pulls if p.state in states]

    def list_modified_files(self, number: int) -> list[str]:
        call = len(self.files_calls)
        self.files_calls.append(number)
        if self.files_error is not None:
            raise self.files_error
        return self.files[call] if call < len(self.files) else []


@pytest.fixture
def pulls() -> list[PullRequest]:
    return list(TEST_PULL_REQUESTS)


@pytest.fixture
def fake_source(pulls: list[PullRequest]) -> FakeSource:
    return FakeSource(pulls)
