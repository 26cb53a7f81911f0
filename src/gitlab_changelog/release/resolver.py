"""
Release resolution strategies.

A resolver turns GitLab data into :class:`Release` objects. Both
strategies work the same way:

1. collect the release candidates (tags, or merged merge requests that
   target a given branch);
2. fetch the commit log of every candidate's ref concurrently;
3. attribute each commit log to the single candidate whose head commit
   is the first commit of that log.

A commit log that cannot be attributed to exactly one candidate is
dropped and a warning is logged.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, List, Sequence, Union

from gitlab_changelog.release.models import Commit, MergeRequest, Release, Tag

if TYPE_CHECKING:
    from gitlab_changelog.api.gitlab_client import ProjectClient


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

RELEASE_INDICATOR_TAGS = "tags"
RELEASE_INDICATOR_MERGE_REQUESTS = "merge_requests"
RELEASE_INDICATORS = (RELEASE_INDICATOR_TAGS, RELEASE_INDICATOR_MERGE_REQUESTS)

DEFAULT_TARGET_BRANCH = "master"
DEFAULT_MAX_WORKERS = 8

Candidate = Union[Tag, MergeRequest]


def fetch_commit_batches(
    project_client: ProjectClient,
    refs: Sequence[str],
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> List[List[Commit]]:
    """Fetch the commit log of every ref in parallel.

    Parameters
    ----------
    project_client : ProjectClient
        Client bound to the project.
    refs : Sequence[str]
        Ref names (tags or branches).
    max_workers : int, optional
        Upper bound on concurrent requests.

    Returns
    -------
    List[List[Commit]]
        One batch per ref, in the order of ``refs``.

    Raises
    ------
    Exception
        The error of a failed request. Once any request fails, requests
        that have not started yet are cancelled and no partial result is
        returned. When several requests have failed by then, the one for
        the earliest ref in ``refs`` is raised, which is not necessarily
        the one that failed first in time.
    """
    if not refs:
        return []
    workers = max(1, min(max_workers, len(refs)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="commits") as pool:
        futures = [pool.submit(project_client.list_commits, ref) for ref in refs]
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        for future in pending:
            future.cancel()
        for future in futures:
            if future in done and future.exception() is not None:
                raise future.exception()
        return [future.result() for future in futures]


def build_releases(
    candidates: Sequence[Candidate], batches: Sequence[List[Commit]]
) -> List[Release]:
    """Attribute commit batches to release candidates.

    A batch becomes a :class:`Release` when exactly one candidate has a
    head commit id equal to the id of the batch's first commit.
    Otherwise the batch is dropped with a warning.
    """
    releases: List[Release] = []
    for batch in batches:
        if not batch:
            logger.warning("Dropping an empty commit list")
            continue
        first_id = batch[0].id
        matches = [c for c in candidates if c.head_commit_id == first_id]
        if not matches:
            logger.warning("Dropping commits starting at %s: no release points to it", first_id)
            continue
        if len(matches) > 1:
            logger.warning(
                "Dropping commits starting at %s: claimed by several releases (%s)",
                first_id,
                ", ".join(m.version_name for m in matches),
            )
            continue
        match = matches[0]
        releases.append(
            Release(version_name=match.version_name, release_date=match.release_date, commits=batch)
        )
    return releases


class ReleaseResolver(ABC):
    """Base class for release strategies.

    Subclasses implement :meth:`collect_candidates`.
    """

    name = ""

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS) -> None:
        self.max_workers = max_workers

    @abstractmethod
    def collect_candidates(self, project_client: ProjectClient) -> List[Candidate]:
        """Return the tags or merge requests that define releases."""

    def resolve(self, project_client: ProjectClient) -> List[Release]:
        """Return the releases of the project, in no particular order."""
        candidates = self.collect_candidates(project_client)
        logger.info("Found %d %s", len(candidates), self.name.replace("_", " "))
        batches = fetch_commit_batches(
            project_client, [c.ref_name for c in candidates], self.max_workers
        )
        releases = build_releases(candidates, batches)
        logger.debug("Resolved %d of %d candidates", len(releases), len(candidates))
        return releases


class TagReleaseResolver(ReleaseResolver):
    """Every tag is a release containing the commits reachable from it."""

    name = RELEASE_INDICATOR_TAGS

    def collect_candidates(self, project_client: ProjectClient) -> List[Candidate]:
        return list(project_client.list_tags())


class MergeRequestReleaseResolver(ReleaseResolver):
    """Every merged merge request into ``target_branch`` is a release."""

    name = RELEASE_INDICATOR_MERGE_REQUESTS

    def __init__(
        self,
        target_branch: str = DEFAULT_TARGET_BRANCH,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        super().__init__(max_workers)
        self.target_branch = target_branch

    def collect_candidates(self, project_client: ProjectClient) -> List[Candidate]:
        return [
            mr
            for mr in project_client.list_merged_merge_requests()
            if mr.target_branch == self.target_branch
        ]


def create_resolver(
    release_indicator: str,
    target_branch: str = DEFAULT_TARGET_BRANCH,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> ReleaseResolver:
    """Pick the strategy for ``release_indicator``.

    ``merge_requests`` selects :class:`MergeRequestReleaseResolver`; any
    other value falls back to :class:`TagReleaseResolver`.
    """
    if release_indicator == RELEASE_INDICATOR_MERGE_REQUESTS:
        return MergeRequestReleaseResolver(target_branch=target_branch, max_workers=max_workers)
    logger.info("Using tags as release indicator")
    return TagReleaseResolver(max_workers=max_workers)
