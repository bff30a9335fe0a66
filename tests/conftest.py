from datetime import datetime, timezone
from typing import Any

import pytest

from teamstats.services.github.models import Commit, Issue, Member, Project, PullRequest, TimelineEvent

NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for schedule calculations."""
    return NOW


def _member(login: str | None) -> dict[str, Any] | None:
    if login is None:
        return None
    return {"login": login, "avatar_url": f"https://avatars.example.com/{login}"}


@pytest.fixture
def make_issue():
    """Factory for issues in the upstream JSON shape."""

    def _make(
        number: int = 1,
        repo: str = "api",
        state: str = "open",
        body: str | None = None,
        assignee: str | None = None,
        created_at: Any = "2024-06-01T09:00:00Z",
        updated_at: Any = "2024-06-02T09:00:00Z",
        due_date: Any = None,
        comments: list[dict[str, Any]] | None = None,
        title: str | None = None,
        labels: list[Any] | None = None,
        closed_at: Any = None,
    ) -> Issue:
        return Issue.model_validate(
            {
                "number": number,
                "title": title or f"Issue {number}",
                "state": state,
                "body": body,
                "repository": {"name": repo, "full_name": f"acme/{repo}"},
                "assignee": _member(assignee),
                "created_at": created_at,
                "updated_at": updated_at,
                "due_date": due_date,
                "comments": comments or [],
                "labels": labels or [],
                "closed_at": closed_at,
                "html_url": f"https://github.com/acme/{repo}/issues/{number}",
            }
        )

    return _make


@pytest.fixture
def make_comment():
    def _make(comment_id: int, login: str, created_at: str, body: str = "Looks good") -> dict[str, Any]:
        return {
            "id": comment_id,
            "body": body,
            "user": _member(login),
            "created_at": created_at,
            "html_url": f"https://github.com/acme/api/issues/1#issuecomment-{comment_id}",
        }

    return _make


@pytest.fixture
def make_pull():
    def _make(
        number: int = 1,
        repo: str = "api",
        author: str = "alice",
        state: str = "open",
        created_at: str = "2024-06-10T10:00:00Z",
        merged_at: str | None = None,
        additions: int | None = 10,
        deletions: int | None = 5,
        changed_files: int | None = 2,
        title: str | None = None,
    ) -> PullRequest:
        return PullRequest.model_validate(
            {
                "number": number,
                "title": title or f"PR {number}",
                "state": state,
                "repository": {"name": repo},
                "user": _member(author),
                "created_at": created_at,
                "merged_at": merged_at,
                "additions": additions,
                "deletions": deletions,
                "changed_files": changed_files,
            }
        )

    return _make


@pytest.fixture
def make_commit():
    def _make(
        sha: str = "abc123", repo: str = "api", author: str | None = "alice", date: str = "2024-06-10T10:00:00Z"
    ) -> Commit:
        return Commit.model_validate(
            {
                "sha": sha,
                "repository": {"name": repo},
                "author": _member(author),
                "commit": {"author": {"name": author, "date": date}, "message": f"Commit {sha}"},
            }
        )

    return _make


@pytest.fixture
def make_event():
    def _make(
        event_id: str,
        event_type: str = "commit",
        author: str | None = "alice",
        timestamp: str = "2024-06-10T10:00:00Z",
        repo: str = "api",
    ) -> TimelineEvent:
        return TimelineEvent.model_validate(
            {
                "id": event_id,
                "type": event_type,
                "repository": repo,
                "author": _member(author),
                "title": f"{event_type} {event_id}",
                "content": "",
                "timestamp": timestamp,
                "linkUrl": f"https://github.com/acme/{repo}/{event_id}",
            }
        )

    return _make


@pytest.fixture
def alice() -> Member:
    return Member(login="alice", avatar_url="https://avatars.example.com/alice")


@pytest.fixture
def bob() -> Member:
    return Member(login="bob", avatar_url="https://avatars.example.com/bob")


@pytest.fixture
def make_project():
    def _make(number: int, name: str, items: list[tuple], body: str | None = None) -> Project:
        """Items are (number, repository) or (number, repository, board status) tuples."""
        return Project.model_validate(
            {
                "id": number * 100,
                "number": number,
                "name": name,
                "body": body,
                "issues": [
                    {"number": item[0], "repository": item[1], "status": item[2] if len(item) > 2 else None}
                    for item in items
                ],
            }
        )

    return _make


@pytest.fixture
def snapshot_data() -> dict[str, Any]:
    """A small snapshot in the upstream JSON shape."""
    return {
        "repositories": [
            {"name": "api", "full_name": "acme/api", "description": "Backend API"},
            {"name": "web", "full_name": "acme/web", "description": "Frontend"},
        ],
        "members": [_member("alice"), _member("bob")],
        "issues": [
            {
                "number": 1,
                "title": "Add login endpoint",
                "state": "closed",
                "body": "- [x] route\n- [x] tests",
                "repository": {"name": "api"},
                "assignee": _member("alice"),
                "created_at": "2024-06-01T09:00:00Z",
                "updated_at": "2024-06-05T09:00:00Z",
                "due_date": "2024-06-20",
            },
            {
                "number": 2,
                "title": "Rate limiting",
                "state": "open",
                "body": "- [x] design\n- [ ] implement",
                "repository": {"name": "api"},
                "assignee": _member("bob"),
                "created_at": "2024-06-03T09:00:00Z",
                "updated_at": "2024-06-10T09:00:00Z",
                "due_date": "2024-06-30",
                "comments": [
                    {
                        "id": 11,
                        "body": "Working on it",
                        "user": _member("alice"),
                        "created_at": "2024-06-10T11:00:00Z",
                    }
                ],
            },
            {
                "number": 1,
                "title": "Landing page",
                "state": "open",
                "body": None,
                "repository": {"name": "web"},
                "assignee": _member("alice"),
                "created_at": "2024-06-12T09:00:00Z",
                "updated_at": "2024-06-12T09:00:00Z",
            },
        ],
        "pullRequests": [
            {
                "number": 7,
                "title": "Login endpoint",
                "state": "closed",
                "repository": {"name": "api"},
                "user": _member("alice"),
                "created_at": "2024-06-04T09:00:00Z",
                "merged_at": "2024-06-05T09:00:00Z",
                "additions": 120,
                "deletions": 30,
                "changed_files": 4,
            }
        ],
        "commits": [
            {
                "sha": "c1",
                "repository": {"name": "api"},
                "author": _member("alice"),
                "commit": {"author": {"date": "2024-06-04T08:00:00Z"}, "message": "Add route"},
            },
            {
                "sha": "c2",
                "repository": {"name": "api"},
                "author": None,
                "commit": {"author": {"date": "2024-06-04T09:00:00Z"}, "message": "Unlinked author"},
            },
        ],
        "projects": [
            {
                "id": 1,
                "number": 7,
                "name": "Auth",
                "body": "Authentication work",
                "issues": [{"number": 1, "repository": "api"}, {"number": 2, "repository": "api"}],
            },
            {
                "id": 2,
                "number": 8,
                "name": "Website",
                "issues": [{"number": 1, "repository": "web"}],
            },
        ],
        "timelineEvents": [
            {
                "id": "e1",
                "type": "commit",
                "repository": "api",
                "author": _member("alice"),
                "title": "Add route",
                "content": "",
                "timestamp": "2024-06-04T08:00:00Z",
                "linkUrl": "https://github.com/acme/api/commit/c1",
            },
            {
                "id": "e2",
                "type": "pull_request",
                "repository": "api",
                "author": _member("alice"),
                "title": "Login endpoint",
                "content": "",
                "timestamp": "2024-06-04T09:00:00Z",
                "linkUrl": "https://github.com/acme/api/pull/7",
            },
        ],
    }
