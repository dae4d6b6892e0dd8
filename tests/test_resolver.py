"""Tests for prwatch.resolver."""

from datetime import timedelta

from conftest import NOW, TEST_PULL_REQUESTS, create_test_pr

from prwatch.models import Version
from prwatch.resolver import by_committed_date, resolve

OPEN_PULLS = [p for p in TEST_PULL_REQUESTS if p.state == "OPEN"]


def test_sorts_oldest_first() -> None:
    previous = Version.from_pull_request(create_test_pr(30))
    out = resolve([create_test_pr(2), create_test_pr(9), create_test_pr(5)], previous)
    assert [v.pr for v in out] == [9, 5, 2]


def test_ordering_is_monotonic() -> None:
    previous = Version.from_pull_request(create_test_pr(30))
    out = resolve(TEST_PULL_REQUESTS, previous)
    dates = [by_committed_date(v) for v in out]
    assert dates == sorted(dates)
    assert len(out) == len(TEST_PULL_REQUESTS)


def test_equal_dates_keep_input_order() -> None:
    first = create_test_pr(4)
    second = create_test_pr(4).model_copy(update={"number": 40})
    previous = Version.from_pull_request(create_test_pr(30))
    assert [v.pr for v in resolve([first, second], previous)] == [4, 40]
    assert [v.pr for v in resolve([second, first], previous)] == [40, 4]


def test_first_run_returns_only_latest() -> None:
    out = resolve(OPEN_PULLS, Version())
    assert out == [Version.from_pull_request(create_test_pr(1, skip_ci=True))]


def test_first_run_single_survivor() -> None:
    assert resolve([create_test_pr(7)], Version()) == [Version.from_pull_request(create_test_pr(7))]


def test_nothing_new_returns_previous_unchanged() -> None:
    previous = Version(pr=12, commit="oid12", committed_date=NOW - timedelta(days=12), approved_review_count=3)
    out = resolve([], previous)
    assert out == [previous]
    assert out[0] is previous


def test_nothing_new_and_no_previous_is_empty() -> None:
    assert resolve([], Version()) == []


def test_incremental_returns_every_new_version() -> None:
    previous = Version.from_pull_request(create_test_pr(10))
    out = resolve([create_test_pr(3), create_test_pr(4)], previous)
    assert [v.pr for v in out] == [4, 3]


def test_resolve_is_idempotent() -> None:
    previous = Version.from_pull_request(create_test_pr(30))
    assert resolve(TEST_PULL_REQUESTS, previous) == resolve(TEST_PULL_REQUESTS, previous)
    assert resolve(TEST_PULL_REQUESTS, Version()) == resolve(TEST_PULL_REQUESTS, Version())


def test_uses_effective_date_for_closed_and_merged() -> None:
    previous = Version.from_pull_request(create_test_pr(30))
    closed = create_test_pr(10, state="CLOSED")  # closed NOW - 2 days
    merged = create_test_pr(11, state="MERGED")  # merged NOW - 1 day
    out = resolve([merged, create_test_pr(3), closed], previous)
    assert [v.pr for v in out] == [3, 10, 11]
