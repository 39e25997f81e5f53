"""Errors raised while reading goldenlink settings from the environment."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A setting such as the EID system or schema version holds an unusable value.

    The CLI maps this to exit status 2.
    """


class MissingConfigurationError(ConfigurationError):
    """A required ``GOLDENLINK_*`` variable is unset or blank."""
