"""
GitLab API integration for gitlab_changelog.

This package contains the :class:`GitLabClient`, its project-scoped
counterpart :class:`ProjectClient` and the errors they raise.
"""

from .gitlab_client import (  # noqa: F401
    GitLabClient,
    GitLabError,
    PreconditionError,
    ProjectClient,
    TransportError,
)
