"""
Plain-text rendering of releases.

Releases are printed oldest first. Each block is a separator line, a
header naming the project, version and local release date, one tab
indented line per commit (``Merge branch`` commits are left out) and a
blank line.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, List

import click

from gitlab_changelog.release.models import Release


SEPARATOR = "=" * 49


def format_date(value: datetime) -> str:
    """Return ``Y-M-D`` in local time without zero padding."""
    local = value.astimezone()
    return f"{local.year}-{local.month}-{local.day}"


def sort_releases(releases: Iterable[Release]) -> List[Release]:
    return sorted(releases, key=lambda release: release.release_date)


def format_release(release: Release, project_name: str) -> List[str]:
    """Return the output lines for a single release."""
    lines = [
        SEPARATOR,
        f"{project_name} - {release.version_name} (Released {format_date(release.release_date)})",
    ]
    lines.extend(f"\t{commit.title}" for commit in release.visible_commits)
    lines.append("")
    return lines


def render(
    releases: Iterable[Release],
    project_name: str,
    echo: Callable[[str], None] = click.echo,
) -> None:
    """Sort ``releases`` by date and write them to standard output."""
    for release in sort_releases(releases):
        for line in format_release(release, project_name):
            echo(line)
