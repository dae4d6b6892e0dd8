"""GitHub GraphQL API v4 pull request source."""

import logging
import time

import httpx

from prwatch.models import Commit, PageConfig, PRState, PullRequest, Source
from prwatch.providers.base import PullRequestSource
from prwatch.settings import PrwatchSettings

LOGGER = logging.getLogger(__name__)

FILES_PAGE_SIZE = 100
LABELS_FIRST = 100
DEFAULT_RETRIES = 4
DEFAULT_DELAY_MS = 500

# Secondary rate limits come back as 403.
RETRYABLE_STATUS = {403, 429, 500, 502, 503, 504}

_LIST_PULL_REQUESTS = """
query ListPullRequests(
  $owner: String!
  $name: String!
  $states: [PullRequestState!]
  $first: Int!
  $after: String
  $orderField: IssueOrderField!
  $orderDirection: OrderDirection!
  $labelFirst: Int!
  $statusContextName: String!
  $withStatus: Boolean!
) {
  repository(owner: $owner, name: $name) {
    pullRequests(
      first: $first
      after: $after
      states: $states
      orderBy: { field: $orderField, direction: $orderDirection }
    ) {
      pageInfo { endCursor hasNextPage }
      nodes {
        id
        number
        title
        url
        baseRefName
        headRefName
        repository { url }
        isCrossRepository
        isDraft
        state
        closedAt
        mergedAt
        commits(last: 1) {
          nodes {
            commit {
              id
              oid
              committedDate
              message
              author { user { login } email }
              status @include(if: $withStatus) {
                context(name: $statusContextName) { context }
              }
            }
          }
        }
        reviews(states: [APPROVED]) { totalCount }
        labels(first: $labelFirst) { nodes { name } }
      }
    }
  }
}
"""

_LIST_MODIFIED_FILES = """
query ListModifiedFiles($owner: String!, $name: String!, $number: Int!, $first: Int!, $after: String) {
  repository(owner: $owner, name: $name) {
    pullRequest(number: $number) {
      files(first: $first, after: $after) {
        pageInfo { endCursor hasNextPage }
        nodes { path }
      }
    }
  }
}
"""


class _RetryableError(Exception):
    pass


class GitHubProvider(PullRequestSource):
    def __init__(
        self,
        settings: PrwatchSettings,
        source: Source,
        logger: logging.Logger | None = None,
    ) -> None:
        self._owner, self._name = source.owner_and_name()
        self._token = self._resolve_token(settings, source)
        self._endpoint = source.v4_endpoint or settings.v4_endpoint
        self._timeout = settings.timeout
        self._status_context = source.status_context
        self._page: PageConfig | None = None
        self._log = logger or LOGGER
        self._headers = {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }

    def _resolve_token(self, settings: PrwatchSettings, source: Source) -> str:
        if source.access_token:
            return source.access_token.get_secret_value()
        if settings.access_token:
            return settings.access_token.get_secret_value()
        raise RuntimeError("No GitHub credentials. Set access_token in the source or PRWATCH_ACCESS_TOKEN.")

    def _gql(self, query: str, variables: dict) -> dict:
        try:
            response = httpx.post(
                self._endpoint,
                json={"query": query, "variables": variables},
                headers=self._headers,
                timeout=self._timeout,
            )
        except httpx.TransportError as exc:
            raise _RetryableError(str(exc) or type(exc).__name__) from exc
        if response.status_code == 401:
            raise RuntimeError("GitHub API returned 401. Check the access_token for this repository.")
        if response.status_code in RETRYABLE_STATUS:
            raise _RetryableError(f"GitHub API returned {response.status_code}")
        response.raise_for_status()
        data = response.json()
        if data.get("errors"):
            raise RuntimeError(f"GitHub API error: {data['errors']}")
        return data["data"]

    def _request(self, query: str, variables: dict, retries: int, delay_ms: int) -> dict:
        """Run a query, retrying transient failures with a linearly growing delay."""
        attempt = 0
        while True:
            try:
                return self._gql(query, variables)
            except _RetryableError as exc:
                if attempt >= retries:
                    raise RuntimeError(f"GitHub API request failed after {attempt + 1} attempt(s): {exc}") from exc
                attempt += 1
                self._log.warning("GitHub API request failed (%s), retry %d of %d", exc, attempt, retries)
                time.sleep(delay_ms * attempt / 1000)

    def _retry_policy(self) -> tuple[int, int]:
        if self._page is None:
            return DEFAULT_RETRIES, DEFAULT_DELAY_MS
        return self._page.max_retries, self._page.delay_between_pages

    def _repository(self, data: dict) -> dict:
        repository = data.get("repository")
        if repository is None:
            raise RuntimeError(f"Repository '{self._owner}/{self._name}' not found")
        return repository

    def _pull_from_node(self, node: dict) -> PullRequest | None:
        commits = node.get("commits", {}).get("nodes") or []
        if not commits:
            return None
        commit = commits[-1]["commit"]
        author = commit.get("author") or {}
        status = commit.get("status") or {}
        return PullRequest(
            id=node["id"],
            number=node["number"],
            title=node["title"],
            url=node["url"],
            base_ref_name=node["baseRefName"],
            head_ref_name=node["headRefName"],
            repository_url=(node.get("repository") or {}).get("url", ""),
            is_cross_repository=node["isCrossRepository"],
            is_draft=node.get("isDraft", False),
            state=PRState(node["state"]),
            closed_at=node.get("closedAt"),
            merged_at=node.get("mergedAt"),
            tip=Commit(
                id=commit["id"],
                oid=commit["oid"],
                committed_date=commit["committedDate"],
                message=commit.get("message", ""),
                author_login=(author.get("user") or {}).get("login"),
                author_email=author.get("email"),
            ),
            approved_review_count=node["reviews"]["totalCount"],
            labels=[label["name"] for label in node.get("labels", {}).get("nodes", [])],
            has_status=status.get("context") is not None,
        )

    def list_pull_requests(self, states: list[PRState], page: PageConfig) -> list[PullRequest]:
        # File listings later in the same check reuse this retry policy.
        self._page = page
        pulls: list[PullRequest] = []
        cursor: str | None = None
        while len(pulls) < page.max_prs:
            if cursor is not None:
                time.sleep(page.delay_between_pages / 1000)
            data = self._request(
                _LIST_PULL_REQUESTS,
                {
                    "owner": self._owner,
                    "name": self._name,
                    "states": [s.value for s in states],
                    "first": min(page.page_size, page.max_prs - len(pulls)),
                    "after": cursor,
                    "orderField": page.sort_field.value,
                    "orderDirection": page.sort_direction.value,
                    "labelFirst": LABELS_FIRST,
                    "statusContextName": self._status_context,
                    "withStatus": bool(self._status_context),
                },
                retries=page.max_retries,
                delay_ms=page.delay_between_pages,
            )
            connection = self._repository(data)["pullRequests"]
            for node in connection["nodes"]:
                pull = self._pull_from_node(node)
                if pull is not None:
                    pulls.append(pull)
            self._log.debug("fetched %d pull request(s) so far", len(pulls))

            page_info = connection["pageInfo"]
            if not page_info["hasNextPage"]:
                break
            cursor = page_info["endCursor"]
        return pulls[: page.max_prs]

    def list_modified_files(self, number: int) -> list[str]:
        retries, delay_ms = self._retry_policy()
        files: list[str] = []
        cursor: str | None = None
        while True:
            data = self._request(
                _LIST_MODIFIED_FILES,
                {
                    "owner": self._owner,
                    "name": self._name,
                    "number": number,
                    "first": FILES_PAGE_SIZE,
                    "after": cursor,
                },
                retries=retries,
                delay_ms=delay_ms,
            )
            pull = self._repository(data).get("pullRequest")
            if pull is None:
                raise RuntimeError(f"Pull request #{number} not found in {self._owner}/{self._name}")
            connection = pull["files"]
            # files is null for pull requests with no changes
            if connection is None:
                return files
            files.extend(node["path"] for node in connection["nodes"])
            if not connection["pageInfo"]["hasNextPage"]:
                return files
            cursor = connection["pageInfo"]["endCursor"]
