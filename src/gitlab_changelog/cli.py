"""
Command line interface for the gitlab_changelog tool.

This module defines the ``main`` function which is used as the entry
point when executing the ``gitlab-changelog`` command. It validates the
arguments, finds the project, resolves its releases with the selected
strategy and prints the changelog. The changelog goes to standard
output; status messages, warnings and errors go to standard error.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import click

from gitlab_changelog import __version__
from gitlab_changelog.api.gitlab_client import (
    GitLabClient,
    PreconditionError,
    TransportError,
)
from gitlab_changelog.config.settings import (
    DEFAULT_REQUEST_TIMEOUT,
    ConfigError,
    build_settings,
)
from gitlab_changelog.formatter import render
from gitlab_changelog.release.models import Project
from gitlab_changelog.release.resolver import (
    DEFAULT_MAX_WORKERS,
    DEFAULT_TARGET_BRANCH,
    create_resolver,
)

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1
EXIT_CONFIG_ERROR = 3
EXIT_NO_PROJECT = 4
EXIT_TRANSPORT_ERROR = 5

POSITIONAL_ARGUMENTS = ("GITLAB_URL", "GITLAB_PROJECT", "GITLAB_PRIVATE_TOKEN")


# ---------------------------------------------------------------------------
# Display utilities
# ---------------------------------------------------------------------------

def print_info(message: str) -> None:
    """Print a status message on standard error."""
    click.echo(f"ℹ {message}", err=True)


def print_error(message: str) -> None:
    """Print an error message on standard error."""
    click.echo(f"✗ {message}", err=True)


# ---------------------------------------------------------------------------
# Core functionality
# ---------------------------------------------------------------------------

def select_project(projects: Sequence[Project], name: str) -> Optional[Project]:
    """Return the first project whose name is exactly ``name``.

    The comparison is case sensitive. ``None`` is returned when the
    search results contain no such project.
    """
    for project in projects:
        if project.name == name:
            return project
    return None


def split_arguments(arguments: Tuple[str, ...]) -> Optional[Tuple[str, str, str]]:
    """Return the three positional arguments, or ``None`` for any other count."""
    if len(arguments) != len(POSITIONAL_ARGUMENTS):
        return None
    base_url, project_name, private_token = arguments
    return base_url, project_name, private_token


class ChangelogCommand(click.Command):
    """Command that answers malformed arguments with the help text.

    Click would otherwise report a usage error on standard error and
    exit with status 2.
    """

    def parse_args(self, ctx: click.Context, args: List[str]) -> List[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as exc:
            logger.debug("Invalid arguments: %s", exc)
            click.echo(ctx.get_help())
            ctx.exit(EXIT_SUCCESS)


@click.command(cls=ChangelogCommand)
@click.argument("arguments", nargs=-1, metavar=" ".join(POSITIONAL_ARGUMENTS))
@click.option(
    "--release_indicator",
    "release_indicator",
    default="tags",
    show_default=True,
    help="What makes a release: 'tags' or 'merge_requests'. Unknown values mean 'tags'.",
)
@click.option(
    "--target-branch",
    default=DEFAULT_TARGET_BRANCH,
    show_default=True,
    help="Branch merge requests must be merged into to count as releases.",
)
@click.option(
    "--timeout",
    "request_timeout",
    type=float,
    default=DEFAULT_REQUEST_TIMEOUT,
    show_default=True,
    help="Timeout in seconds for each GitLab request.",
)
@click.option(
    "--max-workers",
    type=int,
    default=DEFAULT_MAX_WORKERS,
    show_default=True,
    help="Maximum number of commit lists fetched in parallel.",
)
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(version=__version__, prog_name="gitlab-changelog")
def main(
    arguments: Tuple[str, ...],
    release_indicator: str,
    target_branch: str,
    request_timeout: float,
    max_workers: int,
    verbose: bool,
) -> None:
    """Print a changelog of a GitLab project grouped by release.

    \b
    Example:
      gitlab-changelog http://example.gitlab.com myGitLabProject yAS8Kkmdcma2fjw09e --release_indicator tags

    \b
    Possible values for --release_indicator are merge_requests and tags.
    Default is tags.

    If tags is selected as the release indicator, each release in the
    changelog is a GitLab tag, and the release content is the commits in
    that tag.

    If merge_requests is selected as the release indicator, each release in
    the changelog is a merge request into the master branch (that is
    actually merged), and the release content is the commits in that merge
    request.
    """
    ctx = click.get_current_context(silent=True)

    positional = split_arguments(arguments)
    if positional is None:
        click.echo(ctx.get_help())
        raise click.exceptions.Exit(EXIT_SUCCESS)

    # Configure logging. Use force=True to ensure handlers are reconfigured
    # on subsequent invocations (important for tests).
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
        force=True,
    )

    try:
        base_url, project_name, private_token = positional
        try:
            settings = build_settings(
                base_url,
                project_name,
                private_token,
                release_indicator=release_indicator,
                target_branch=target_branch,
                request_timeout=request_timeout,
                max_workers=max_workers,
            )
        except ConfigError as exc:
            print_error(f"Configuration error: {exc}")
            raise click.exceptions.Exit(EXIT_CONFIG_ERROR)

        client = GitLabClient(
            base_url=settings.base_url,
            private_token=settings.private_token,
            request_timeout=settings.request_timeout,
        )
        resolver = create_resolver(
            settings.release_indicator,
            target_branch=settings.target_branch,
            max_workers=settings.max_workers,
        )

        try:
            projects = client.search_projects(settings.project_name)
            project = select_project(projects, settings.project_name)
            if project is None:
                logger.debug(
                    "No exact match for '%s' among %s",
                    settings.project_name,
                    [p.name for p in projects],
                )
            project_client = client.for_project(project)
            releases = resolver.resolve(project_client)
        except PreconditionError as exc:
            print_error(f"{exc}: no project named '{settings.project_name}' was found")
            raise click.exceptions.Exit(EXIT_NO_PROJECT)
        except TransportError as exc:
            print_error(f"GitLab error: {exc}")
            raise click.exceptions.Exit(EXIT_TRANSPORT_ERROR)

        if not releases:
            print_info(f"No releases found for {project_client.project.name}")
        render(releases, project_client.project.name)

        raise click.exceptions.Exit(EXIT_SUCCESS)

    except click.exceptions.Exit:
        # Click uses its own Exit exception; re-raise to let Click handle it
        raise
    except Exception as exc:
        logging.exception("Unhandled error: %s", exc)
        print_error(f"Unexpected error: {exc}")
        ctx.exit(EXIT_GENERIC_ERROR)
