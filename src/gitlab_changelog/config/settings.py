"""
Run settings for gitlab_changelog.

The tool reads no configuration files and no environment variables;
everything comes from the command line. :func:`build_settings` checks
those values the way a configuration file would be checked and returns
a frozen :class:`ChangelogSettings`. Invalid values raise
:class:`ConfigError`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from gitlab_changelog.release.resolver import (
    DEFAULT_MAX_WORKERS,
    DEFAULT_TARGET_BRANCH,
    RELEASE_INDICATOR_MERGE_REQUESTS,
    RELEASE_INDICATOR_TAGS,
)


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

DEFAULT_REQUEST_TIMEOUT = 30.0


class ConfigError(Exception):
    """Raised when the command line values are unusable."""

    pass


@dataclass(frozen=True)
class ChangelogSettings:
    """Validated settings for one changelog run."""

    base_url: str
    project_name: str
    private_token: str = field(repr=False)
    release_indicator: str = RELEASE_INDICATOR_TAGS
    target_branch: str = DEFAULT_TARGET_BRANCH
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    max_workers: int = DEFAULT_MAX_WORKERS


def normalize_release_indicator(value: Optional[str]) -> str:
    """Return ``merge_requests`` when asked for it and ``tags`` otherwise."""
    if value == RELEASE_INDICATOR_MERGE_REQUESTS:
        return RELEASE_INDICATOR_MERGE_REQUESTS
    if value and value != RELEASE_INDICATOR_TAGS:
        logger.debug("Unknown release indicator %r, falling back to tags", value)
    return RELEASE_INDICATOR_TAGS


def build_settings(
    base_url: str,
    project_name: str,
    private_token: str,
    release_indicator: Optional[str] = None,
    target_branch: str = DEFAULT_TARGET_BRANCH,
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> ChangelogSettings:
    """Validate command line values and return the run settings.

    Args:
        base_url: Root URL of the GitLab instance (``http://`` or ``https://``).
        project_name: Exact name of the project.
        private_token: GitLab private token.
        release_indicator: ``tags`` or ``merge_requests``; anything else means ``tags``.
        target_branch: Branch merge requests must target to count as releases.
        request_timeout: Per-request timeout in seconds.
        max_workers: Maximum number of concurrent commit list requests.

    Returns:
        The validated :class:`ChangelogSettings`.

    Raises:
        ConfigError: If a value is missing or invalid.
    """
    base_url = (base_url or "").strip()
    if not base_url.startswith(("http://", "https://")):
        raise ConfigError(f"GitLab URL must start with http:// or https://, got '{base_url}'")
    base_url = base_url.rstrip("/")
    if base_url in ("http:", "https:"):
        raise ConfigError("GitLab URL is missing a host name")

    missing = [
        label
        for label, value in (("project name", project_name), ("private token", private_token))
        if not value or not value.strip()
    ]
    if missing:
        raise ConfigError(f"Missing required values: {', '.join(missing)}")

    if not target_branch or not target_branch.strip():
        raise ConfigError("'target_branch' must not be empty")
    if request_timeout <= 0:
        raise ConfigError("'timeout' must be a positive number")
    if max_workers < 1:
        raise ConfigError("'max_workers' must be at least 1")

    settings = ChangelogSettings(
        base_url=base_url,
        project_name=project_name,
        private_token=private_token,
        release_indicator=normalize_release_indicator(release_indicator),
        target_branch=target_branch,
        request_timeout=float(request_timeout),
        max_workers=max_workers,
    )
    logger.debug("Settings: %s", settings)
    return settings
