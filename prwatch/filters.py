"""The ordered filter chain deciding which pull requests are eligible for a new version.

Predicates run in a fixed order and the first one that rejects a pull request
ends its evaluation. Changed files are only fetched for candidates that reach
the path predicates, and at most once per candidate.
"""

import logging
import re
from collections.abc import Callable, Iterable

from prwatch.errors import CollaboratorError, ConfigError
from prwatch.models import PullRequest, Source, Version
from prwatch.paths import filter_ignore_path, filter_path

LOGGER = logging.getLogger(__name__)

_SKIP_CI = re.compile(r"\[(ci skip|skip ci)\]", re.IGNORECASE)


def contains_skip_ci(text: str) -> bool:
    """Return True if text contains [ci skip] or [skip ci], in any case."""
    return _SKIP_CI.search(text) is not None


class FilterChain:
    """Applies the source's filter rules to candidate pull requests."""

    def __init__(
        self,
        source: Source,
        previous: Version,
        list_modified_files: Callable[[int], list[str]],
        logger: logging.Logger | None = None,
    ) -> None:
        self._source = source
        self._previous = previous
        self._list_modified_files = list_modified_files
        self._log = logger or LOGGER
        self._predicates: list[Callable[[PullRequest], str | None]] = [
            self._skip_ci,
            self._base_branch,
            self._stale,
            self._has_status,
            self._labels,
            self._fork,
            self._draft,
            self._approvals,
            self._paths,
        ]

    def select(self, candidates: Iterable[PullRequest]) -> list[PullRequest]:
        """Return the candidates that pass every predicate, in input order."""
        survivors: list[PullRequest] = []
        for pull in candidates:
            self._log.debug("PR #%d, commit %s", pull.number, pull.tip.oid)
            reason = self.rejection(pull)
            if reason is not None:
                self._log.debug("#%d skipped, reason: %s", pull.number, reason)
                continue
            self._log.debug("#%d not skipped", pull.number)
            survivors.append(pull)
        return survivors

    def rejection(self, pull: PullRequest) -> str | None:
        """Return why pull is rejected, or None when it passes the whole chain."""
        for predicate in self._predicates:
            reason = predicate(pull)
            if reason is not None:
                return reason
        return None

    # -- predicates: each returns a rejection reason or None ------------------

    def _skip_ci(self, pull: PullRequest) -> str | None:
        if self._source.disable_ci_skip:
            return None
        if contains_skip_ci(pull.title):
            return f"[ci skip]/[skip ci] in pull request title ({pull.title!r})"
        if contains_skip_ci(pull.tip.message):
            return f"[ci skip]/[skip ci] in commit message ({pull.tip.message!r})"
        return None

    def _base_branch(self, pull: PullRequest) -> str | None:
        wanted = self._source.base_branch
        if wanted and pull.base_ref_name != wanted:
            return f"base branch {pull.base_ref_name!r} does not match {wanted!r}"
        return None

    def _stale(self, pull: PullRequest) -> str | None:
        if self._source.status_context:
            return None
        last_seen = self._previous.committed_date
        if last_seen is None:
            return None
        updated = pull.updated_date()
        if not updated > last_seen:
            return f"not updated since the previous version ({updated.isoformat()} <= {last_seen.isoformat()})"
        return None

    def _has_status(self, pull: PullRequest) -> str | None:
        if self._source.status_context and pull.has_status:
            return f"commit already has a {self._source.status_context!r} status"
        return None

    def _labels(self, pull: PullRequest) -> str | None:
        wanted = self._source.labels
        if wanted and not set(wanted).intersection(pull.labels):
            return f"none of the labels {wanted} found in {pull.labels}"
        return None

    def _fork(self, pull: PullRequest) -> str | None:
        if self._source.disable_forks and pull.is_cross_repository:
            return "opened from a fork"
        return None

    def _draft(self, pull: PullRequest) -> str | None:
        if self._source.ignore_drafts and pull.is_draft:
            return "draft pull request"
        return None

    def _approvals(self, pull: PullRequest) -> str | None:
        required = self._source.required_review_approvals
        if pull.approved_review_count < required:
            return f"{pull.approved_review_count} approved review(s), {required} required"
        return None

    def _paths(self, pull: PullRequest) -> str | None:
        paths, ignore_paths = self._source.paths, self._source.ignore_paths
        if not paths and not ignore_paths:
            return None

        try:
            files = self._list_modified_files(pull.number)
        except Exception as err:
            raise CollaboratorError(f"failed to list modified files: {err}") from err

        if paths:
            try:
                wanted = [f for pattern in paths for f in filter_path(files, pattern)]
            except ConfigError as err:
                raise ConfigError(f"path match failed: {err}") from err
            if not wanted:
                return f"no changed files match paths {paths}"

        if ignore_paths:
            remaining = files
            try:
                for pattern in ignore_paths:
                    remaining = filter_ignore_path(remaining, pattern)
            except ConfigError as err:
                raise ConfigError(f"ignore path match failed: {err}") from err
            if not remaining:
                return f"all changed files match ignore_paths {ignore_paths}"

        return None
