"""
Top-level package for gitlab_changelog.

This package exposes the main CLI entry point via the
``gitlab_changelog.cli`` module.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
