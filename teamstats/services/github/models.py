"""Input records supplied by the upstream data fetch.

The records mirror the GitHub REST/GraphQL shapes the dashboard consumes. They
are parsed once per fetch cycle and treated as immutable snapshots; optional
fields get explicit defaults and every date goes through the tolerant parser.
"""

from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator

from ..dates import parse_date

Timestamp = Annotated[datetime | None, BeforeValidator(parse_date)]


class GithubRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


class Member(GithubRecord):
    """A team member, keyed by login."""

    login: str
    avatar_url: str = ""
    id: int | None = None

    @field_validator("avatar_url", mode="before")
    @classmethod
    def default_missing_avatar(cls, v: Any) -> Any:
        return "" if v is None else v


class RepositoryRef(GithubRecord):
    name: str
    full_name: str | None = None


class Repository(GithubRecord):
    name: str
    full_name: str | None = None
    description: str | None = None
    html_url: str | None = None


class ProjectRef(GithubRecord):
    name: str
    number: int | None = None


class IssueComment(GithubRecord):
    id: str
    body: str = ""
    user: Member
    created_at: Timestamp = None
    html_url: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("body", mode="before")
    @classmethod
    def default_missing_body(cls, v: Any) -> Any:
        return "" if v is None else v


class Issue(GithubRecord):
    """An issue snapshot, unique by (number, repository name)."""

    number: int
    title: str = ""
    state: str = "open"
    body: str | None = None
    repository: RepositoryRef
    assignee: Member | None = None
    created_at: Timestamp = None
    updated_at: Timestamp = None
    closed_at: Timestamp = None
    start_date: Timestamp = None
    due_date: Timestamp = None
    labels: list[str] = Field(default_factory=list)
    comments: list[IssueComment] = Field(default_factory=list)
    comments_count: int = 0
    project: ProjectRef | None = None
    html_url: str | None = None

    @model_validator(mode="before")
    @classmethod
    def split_comment_count(cls, data: Any) -> Any:
        """Accept ``comments`` as either comment records or GitHub's numeric count."""
        if isinstance(data, dict) and isinstance(data.get("comments"), int):
            data = dict(data)
            data.setdefault("comments_count", data.pop("comments"))
        return data

    @field_validator("title", mode="before")
    @classmethod
    def default_missing_title(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("comments", mode="before")
    @classmethod
    def default_missing_comments(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("comments_count", mode="before")
    @classmethod
    def default_missing_count(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("labels", mode="before")
    @classmethod
    def label_names(cls, v: Any) -> list[str]:
        """Accept label names or GitHub label objects; unnamed labels are dropped."""
        if v is None:
            return []
        names = []
        for label in v:
            if isinstance(label, dict):
                label = label.get("name")
            if isinstance(label, str):
                names.append(label)
        return names

    @field_validator("state", mode="before")
    @classmethod
    def normalize_state(cls, v: Any) -> str:
        return str(v).lower() if v else "open"

    @property
    def is_closed(self) -> bool:
        return self.state == "closed"

    @property
    def activity_count(self) -> int:
        return max(self.comments_count, len(self.comments))


class PullRequest(GithubRecord):
    number: int
    title: str = ""
    state: str = "open"
    body: str | None = None
    repository: RepositoryRef
    user: Member
    created_at: Timestamp = None
    updated_at: Timestamp = None
    merged_at: Timestamp = None
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0
    review_comments: int = 0
    html_url: str | None = None

    @field_validator("additions", "deletions", "changed_files", "review_comments", mode="before")
    @classmethod
    def default_missing_counts(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("title", mode="before")
    @classmethod
    def default_missing_title(cls, v: Any) -> Any:
        return "" if v is None else v

    def get_display_state(self) -> str:
        """Get the display state of the PR.

        Returns:
            "merged" if a merge timestamp exists, otherwise the raw state
        """
        if self.merged_at is not None:
            return "merged"
        return self.state


class Commit(GithubRecord):
    sha: str = ""
    repository: RepositoryRef
    author: Member | None = None
    authored_at: Timestamp = None
    message: str = ""

    @model_validator(mode="before")
    @classmethod
    def flatten_git_metadata(cls, data: Any) -> Any:
        """Lift ``commit.author.date`` and ``commit.message`` from the REST shape."""
        if isinstance(data, dict) and isinstance(data.get("commit"), dict):
            data = dict(data)
            git_commit = data.pop("commit")
            git_author = git_commit.get("author") or {}
            data.setdefault("authored_at", git_author.get("date"))
            data.setdefault("message", git_commit.get("message") or "")
        return data


class TimelineEvent(GithubRecord):
    """A unit of contributor activity attached to a repository."""

    id: str
    type: str
    repository: str
    author: Member | None = None
    title: str = ""
    content: str = ""
    timestamp: Timestamp = None
    link_url: str | None = Field(default=None, alias="linkUrl")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("title", "content", mode="before")
    @classmethod
    def default_missing_text(cls, v: Any) -> Any:
        return "" if v is None else v


class ProjectItem(GithubRecord):
    number: int
    repository: str
    status: str | None = None


class Project(GithubRecord):
    id: int | None = None
    number: int
    name: str
    body: str | None = None
    html_url: str | None = None
    issues: list[ProjectItem] = Field(default_factory=list)

    @field_validator("issues", mode="before")
    @classmethod
    def default_missing_items(cls, v: Any) -> Any:
        return [] if v is None else v


class DataSnapshot(GithubRecord):
    """Everything one fetch cycle returns."""

    issues: list[Issue] = Field(default_factory=list)
    pull_requests: list[PullRequest] = Field(default_factory=list, alias="pullRequests")
    commits: list[Commit] = Field(default_factory=list)
    repositories: list[Repository] = Field(default_factory=list)
    projects: list[Project] = Field(default_factory=list)
    members: list[Member] = Field(default_factory=list)
    timeline_events: list[TimelineEvent] = Field(default_factory=list, alias="timelineEvents")

    @model_validator(mode="before")
    @classmethod
    def drop_null_collections(cls, data: Any) -> Any:
        """Treat ``null`` collections from the upstream as empty."""
        if isinstance(data, dict):
            data = {key: value for key, value in data.items() if value is not None}
        return data

    @classmethod
    def from_file(cls, path: str | Path) -> "DataSnapshot":
        """Load a snapshot from a JSON file.

        Raises:
            OSError: If the file cannot be read
            pydantic.ValidationError: If the content is not a valid snapshot
        """
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))
