"""Shared pydantic models: the contract between providers, the check pipeline and main.py."""

from datetime import datetime
from enum import Enum

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, SecretStr, field_validator

from prwatch.errors import ConfigError


class PRState(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    MERGED = "MERGED"

    @classmethod
    def parse(cls, value: str) -> "PRState":
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise ConfigError(f'states value "{value}" must be one of: OPEN, MERGED, CLOSED') from None


class SortField(str, Enum):
    UPDATED_AT = "UPDATED_AT"
    CREATED_AT = "CREATED_AT"
    COMMENTS = "COMMENTS"

    @classmethod
    def parse(cls, value: str) -> "SortField":
        if not value:
            return cls.UPDATED_AT
        try:
            return cls(value)
        except ValueError:
            raise ConfigError(
                f"sort_field '{value}' not valid, please choose one of 'UPDATED_AT', 'CREATED_AT' or 'COMMENTS'"
            ) from None


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def parse(cls, value: str) -> "SortDirection":
        if not value:
            return cls.DESC
        try:
            return cls(value)
        except ValueError:
            raise ConfigError(f"sort_dir '{value}' not valid, please choose one of 'ASC' or 'DESC'") from None


class Commit(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""  # GraphQL node ID
    oid: str  # git SHA
    committed_date: AwareDatetime
    message: str = ""
    author_login: str | None = None
    author_email: str | None = None


class PullRequest(BaseModel):
    """Snapshot of a pull request and its tip commit, as returned by a provider."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    number: int
    title: str = ""
    url: str = ""
    base_ref_name: str = ""
    head_ref_name: str = ""
    repository_url: str = ""
    is_cross_repository: bool = False  # opened from a fork
    is_draft: bool = False
    state: PRState = PRState.OPEN
    closed_at: AwareDatetime | None = None
    merged_at: AwareDatetime | None = None
    tip: Commit
    approved_review_count: int = 0
    labels: list[str] = []
    has_status: bool = False  # tip already carries the configured status context

    def updated_date(self) -> datetime:
        """Return the last time the PR changed, either by commit or by being closed/merged."""
        if self.state is PRState.CLOSED and self.closed_at is not None:
            return self.closed_at
        if self.state is PRState.MERGED and self.merged_at is not None:
            return self.merged_at
        return self.tip.committed_date


class Version(BaseModel):
    """A version as tracked by the pipeline. An empty version (no pr) means "no previous"."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    pr: int | None = None
    commit: str = ""
    committed_date: AwareDatetime | None = Field(default=None, alias="committed")
    approved_review_count: int = 0
    state: PRState | None = None

    @field_validator("pr", "committed_date", "state", mode="before")
    @classmethod
    def _blank_is_none(cls, value: object) -> object:
        return None if value == "" else value

    @field_validator("approved_review_count", mode="before")
    @classmethod
    def _blank_is_zero(cls, value: object) -> object:
        return 0 if value in ("", None) else value

    @property
    def is_empty(self) -> bool:
        return self.pr is None

    @classmethod
    def from_pull_request(cls, pull: PullRequest) -> "Version":
        return cls(
            pr=pull.number,
            commit=pull.tip.oid,
            committed_date=pull.updated_date(),
            approved_review_count=pull.approved_review_count,
            state=pull.state,
        )

    def to_wire(self) -> dict[str, str]:
        """Serialize to the string-only mapping the pipeline stores."""
        if self.is_empty:
            return {}
        wire = {
            "pr": str(self.pr),
            "commit": self.commit,
            "approved_review_count": str(self.approved_review_count),
        }
        if self.committed_date is not None:
            wire["committed"] = self.committed_date.isoformat()
        if self.state is not None:
            wire["state"] = self.state.value
        return wire


class Page(BaseModel):
    """Raw paging options as written by the user; zero/empty means "use the default"."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    page_size: int = 0
    max_prs: int = 0
    sort_field: str = ""
    sort_direction: str = ""
    max_retries: int = 0
    delay_between_pages: int = 0  # milliseconds


class PageConfig(BaseModel):
    """Paging options after normalization, always within bounds."""

    model_config = ConfigDict(frozen=True)

    page_size: int
    max_prs: int
    sort_field: SortField
    sort_direction: SortDirection
    max_retries: int
    delay_between_pages: int


class Source(BaseModel):
    """Resource configuration: credentials, endpoints and the filter rules for a check."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    repository: str = ""  # owner/repo
    access_token: SecretStr | None = None
    v3_endpoint: str | None = None  # only validated as a pair with v4_endpoint, queries go to v4
    v4_endpoint: str | None = None
    paths: list[str] = []
    ignore_paths: list[str] = []
    disable_ci_skip: bool = False
    disable_forks: bool = False
    ignore_drafts: bool = False
    base_branch: str = ""
    required_review_approvals: int = 0
    labels: list[str] = []
    states: list[PRState] = []
    status_context: str = ""
    page: Page = Page()
    verbose: bool = False

    @field_validator("states", mode="before")
    @classmethod
    def _parse_states(cls, value: object) -> object:
        if isinstance(value, list):
            return [PRState.parse(v) if isinstance(v, str) else v for v in value]
        return value

    def owner_and_name(self) -> tuple[str, str]:
        owner, _, name = self.repository.partition("/")
        if not owner or not name or "/" in name:
            raise ConfigError(f"malformed repository: '{self.repository}', expected owner/repo")
        return owner, name

    def validate_config(self) -> None:
        if not self.access_token or not self.access_token.get_secret_value():
            raise ConfigError("access_token must be set")
        if not self.repository:
            raise ConfigError("repository must be set")
        self.owner_and_name()
        if self.v3_endpoint and not self.v4_endpoint:
            raise ConfigError("v4_endpoint must be set together with v3_endpoint")
        if self.v4_endpoint and not self.v3_endpoint:
            raise ConfigError("v3_endpoint must be set together with v4_endpoint")


class CheckRequest(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    source: Source = Source()
    version: Version = Version()
    page: Page | None = None  # overrides source.page when present

    @field_validator("version", mode="before")
    @classmethod
    def _null_version(cls, value: object) -> object:
        return {} if value is None else value

    def page_params(self) -> Page:
        return self.page if self.page is not None else self.source.page
