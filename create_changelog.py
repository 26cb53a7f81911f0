#!/usr/bin/env python
"""
Thin wrapper script to invoke the gitlab_changelog CLI.

Running ``python create_changelog.py`` is equivalent to running the
``gitlab-changelog`` console script installed via ``pyproject.toml``.
"""

from gitlab_changelog.cli import main


if __name__ == "__main__":
    main(prog_name="gitlab-changelog")
