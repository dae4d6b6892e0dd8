"""Abstract base class for pull request sources."""

from abc import ABC, abstractmethod

from prwatch.models import PageConfig, PRState, PullRequest


class PullRequestSource(ABC):
    @abstractmethod
    def list_pull_requests(self, states: list[PRState], page: PageConfig) -> list[PullRequest]:
        """Return pull requests in the given states, ordered as page requests."""

    @abstractmethod
    def list_modified_files(self, number: int) -> list[str]:
        """Return the repository-relative paths changed by the pull request."""
