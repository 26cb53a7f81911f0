"""
Run settings for gitlab_changelog.

See :mod:`gitlab_changelog.config.settings` for validation details.
"""

from .settings import ChangelogSettings, ConfigError, build_settings  # noqa: F401
