"""
Data models for GitLab entities and the releases derived from them.

Each GitLab entity is a small dataclass with a ``from_json`` constructor
that picks the fields the changelog needs out of the GitLab v4 JSON
payload. Missing fields raise :class:`KeyError` and malformed timestamps
raise :class:`ValueError`; the API client turns both into a
:class:`~gitlab_changelog.api.gitlab_client.TransportError`.

:class:`Tag` and :class:`MergeRequest` share a common read-only view
(``ref_name``, ``head_commit_id``, ``version_name``, ``release_date``) so
the release resolvers can treat them as interchangeable release
candidates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


MERGE_NOISE_PREFIX = "Merge branch"


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 date or timestamp into an aware datetime.

    GitLab reports timestamps such as ``2012-05-28T04:42:42-07:00`` or
    ``2020-01-01T10:00:00.000Z``. Values without an offset (including a
    bare ``2020-01-01``) are read as local time.

    Parameters
    ----------
    value : str
        The timestamp text.

    Returns
    -------
    datetime
        A timezone-aware datetime.

    Raises
    ------
    ValueError
        If ``value`` is not a string or not ISO 8601.
    """
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO 8601 string, got {value!r}")
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        # Attach the local timezone without shifting the wall clock time
        parsed = parsed.astimezone()
    return parsed


@dataclass(frozen=True)
class Project:
    """A GitLab project as returned by the project search."""

    id: int
    name: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Project:
        return cls(id=data["id"], name=data["name"])


@dataclass(frozen=True)
class Commit:
    """A single commit from a repository commit listing."""

    id: str
    title: str
    committed_date: Optional[datetime] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Commit:
        committed = data.get("committed_date")
        return cls(
            id=data["id"],
            title=data["title"],
            committed_date=parse_timestamp(committed) if committed else None,
        )

    @property
    def is_merge_noise(self) -> bool:
        """True for automatic ``Merge branch ...`` commits."""
        return self.title.startswith(MERGE_NOISE_PREFIX)


@dataclass(frozen=True)
class Tag:
    """A repository tag together with the commit it points to.

    Attributes
    ----------
    name : str
        The tag name, used as the release version.
    commit_id : str
        Id of the commit the tag points to (its head commit).
    committed_date : datetime
        Commit date of the head commit; this is the release date.
    """

    name: str
    commit_id: str
    committed_date: datetime

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Tag:
        commit = data["commit"]
        return cls(
            name=data["name"],
            commit_id=commit["id"],
            committed_date=parse_timestamp(commit["committed_date"]),
        )

    @property
    def ref_name(self) -> str:
        return self.name

    @property
    def head_commit_id(self) -> str:
        return self.commit_id

    @property
    def version_name(self) -> str:
        return self.name

    @property
    def release_date(self) -> datetime:
        return self.committed_date


@dataclass(frozen=True)
class MergeRequest:
    """A merged merge request.

    ``sha`` is the head commit of the source branch at merge time, which
    is what the source branch's commit log starts with.
    """

    source_branch: str
    target_branch: str
    sha: str
    created_at: datetime

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> MergeRequest:
        return cls(
            source_branch=data["source_branch"],
            target_branch=data["target_branch"],
            sha=data["sha"],
            created_at=parse_timestamp(data["created_at"]),
        )

    @property
    def ref_name(self) -> str:
        return self.source_branch

    @property
    def head_commit_id(self) -> str:
        return self.sha

    @property
    def version_name(self) -> str:
        return self.source_branch

    @property
    def release_date(self) -> datetime:
        return self.created_at


@dataclass
class Release:
    """A changelog entry: a version label, its date and its commits.

    ``commits`` keeps the order the API returned them in (newest first).
    """

    version_name: str
    release_date: datetime
    commits: List[Commit] = field(default_factory=list)

    @property
    def visible_commits(self) -> List[Commit]:
        return [commit for commit in self.commits if not commit.is_merge_noise]
