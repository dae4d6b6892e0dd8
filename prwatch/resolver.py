"""Turns the surviving pull requests into the ordered list of versions to report."""

from collections.abc import Iterable
from datetime import datetime, timezone

from prwatch.models import PullRequest, Version

_NEVER = datetime.min.replace(tzinfo=timezone.utc)


def by_committed_date(version: Version) -> datetime:
    return version.committed_date or _NEVER


def resolve(survivors: Iterable[PullRequest], previous: Version) -> list[Version]:
    """Sort survivors oldest first, then collapse.

    - nothing new but a previous version exists: report the previous version again
    - first check (no previous version): report only the latest version
    - otherwise: report every new version
    """
    versions = sorted((Version.from_pull_request(p) for p in survivors), key=by_committed_date)

    if not versions and not previous.is_empty:
        return [previous]
    if versions and previous.is_empty:
        return versions[-1:]
    return versions
