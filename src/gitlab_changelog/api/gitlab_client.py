"""
Client for the GitLab v4 REST API.

Only the handful of read-only endpoints the changelog needs are wrapped:
project search, tags, commits and merged merge requests. Requests are
made with :func:`requests.get`, authenticated by a static private token.
There is no pagination, retry or backoff: every failure (connection
errors, non-2xx responses, undecodable or unexpected JSON) is raised as
a :class:`TransportError`.

The client is split in two immutable halves. :class:`GitLabClient`
knows the server and the token and can search for projects;
:class:`ProjectClient` is obtained from :meth:`GitLabClient.for_project`
once a project is known and carries every project-scoped call.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TypeVar

import requests

from gitlab_changelog.release.models import Commit, MergeRequest, Project, Tag


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

T = TypeVar("T")

API_PREFIX = "/api/v4/projects"


class GitLabError(Exception):
    """Base class for errors raised while talking to GitLab."""

    pass


class PreconditionError(GitLabError):
    """Raised when a project-scoped operation has no project to work on."""

    pass


class TransportError(GitLabError):
    """Raised when a request fails or its response cannot be used.

    Parameters
    ----------
    message : str
        Human readable description.
    status_code : int, optional
        HTTP status of the response, when one was received.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class GitLabClient:
    """Handle on a GitLab server.

    Parameters
    ----------
    base_url : str
        Root URL of the GitLab instance, e.g. ``"https://gitlab.example.com"``.
    private_token : str
        Personal access token sent in the ``PRIVATE-TOKEN`` header.
    request_timeout : float, optional
        Timeout in seconds for each HTTP request. Defaults to 30 seconds.
    """

    base_url: str
    private_token: str = field(repr=False)
    request_timeout: float = 30.0

    @property
    def projects_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{API_PREFIX}"

    def get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        """Issue a GET request below the projects endpoint and decode it.

        Parameters
        ----------
        path : str
            Path relative to ``/api/v4/projects`` (empty for the list).
        params : dict, optional
            Query parameters; requests takes care of URL escaping.

        Returns
        -------
        Any
            The decoded JSON body.

        Raises
        ------
        TransportError
            On connection failure, non-2xx status or invalid JSON.
        """
        url = self.projects_url + path
        headers = {"PRIVATE-TOKEN": self.private_token}
        logger.debug("GET %s params=%s", url, params)
        try:
            response = requests.get(
                url,
                params=params,
                headers=headers,
                timeout=self.request_timeout,
            )
        except requests.RequestException as exc:
            logger.error("Request to %s failed: %s", url, exc)
            raise TransportError(f"Request to {url} failed: {exc}") from exc
        if not 200 <= response.status_code < 300:
            logger.error(
                "GitLab returned status %s for %s: %s", response.status_code, url, response.text
            )
            raise TransportError(
                f"GitLab returned status {response.status_code} for {url}: {response.text}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except json.JSONDecodeError as exc:
            logger.error("Failed to parse response from %s: %s", url, exc)
            raise TransportError(f"Invalid JSON in response from {url}") from exc

    def get_list(
        self,
        path: str,
        factory: Callable[[Dict[str, Any]], T],
        params: Optional[Dict[str, str]] = None,
    ) -> List[T]:
        """Fetch a JSON array and build one model per element."""
        data = self.get_json(path, params)
        if not isinstance(data, list):
            raise TransportError(f"Expected a JSON array from {self.projects_url + path}")
        try:
            return [factory(item) for item in data]
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("Unexpected payload from %s: %s", self.projects_url + path, exc)
            raise TransportError(
                f"Unexpected payload from {self.projects_url + path}: {exc!r}"
            ) from exc

    def search_projects(self, name: Optional[str] = None) -> List[Project]:
        """Return the projects visible to the token, optionally filtered.

        Parameters
        ----------
        name : str, optional
            Substring filter applied server side.
        """
        params = {"simple": "true"}
        if name:
            params["search"] = name
        return self.get_list("", Project.from_json, params)

    def for_project(self, project: Optional[Project]) -> ProjectClient:
        """Bind the client to ``project``.

        Raises
        ------
        PreconditionError
            If ``project`` is ``None``.
        """
        if project is None:
            raise PreconditionError("no project selected")
        return ProjectClient(self, project)


@dataclass(frozen=True)
class ProjectClient:
    """Project-scoped view of a :class:`GitLabClient`."""

    client: GitLabClient
    project: Project

    def _path(self, suffix: str) -> str:
        return f"/{self.project.id}{suffix}"

    def list_tags(self) -> List[Tag]:
        return self.client.get_list(self._path("/repository/tags"), Tag.from_json)

    def list_commits(self, ref_name: Optional[str] = None) -> List[Commit]:
        """List commits, newest first, optionally limited to ``ref_name``."""
        params = {"ref_name": ref_name} if ref_name else None
        return self.client.get_list(self._path("/repository/commits"), Commit.from_json, params)

    def list_merged_merge_requests(self) -> List[MergeRequest]:
        return self.client.get_list(
            self._path("/merge_requests"), MergeRequest.from_json, {"state": "merged"}
        )
