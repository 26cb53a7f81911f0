"""
Release model and resolution strategies.

See :mod:`gitlab_changelog.release.models` for the GitLab entities and
:mod:`gitlab_changelog.release.resolver` for the tag and merge request
strategies that group commits into releases.
"""

from .models import Commit, MergeRequest, Project, Release, Tag  # noqa: F401
from .resolver import (  # noqa: F401
    MergeRequestReleaseResolver,
    ReleaseResolver,
    TagReleaseResolver,
    create_resolver,
)
