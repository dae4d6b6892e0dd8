"""Error kinds raised by the check pipeline."""


class PrwatchError(Exception):
    """Base class for every error the check pipeline reports."""


class ConfigError(PrwatchError, ValueError):
    """Invalid configuration: bad enum value, malformed glob or incomplete source.

    Never retried. The whole check is aborted.
    """


class CollaboratorError(PrwatchError):
    """A pull request source call failed (listing pull requests or changed files)."""
