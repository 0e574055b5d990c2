# blockindex/errors.py
"""
Exception types raised by the build and query paths.

Unknown terms are not errors: lookups simply return an empty result.
"""


class BlockIndexError(Exception):
    """Base class for every error raised by blockindex."""


class CorruptShard(BlockIndexError, ValueError):
    """A shard's declared counts do not match the bytes available."""

    def __init__(self, message: str, path: str | None = None):
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)
        self.path = path


class IOFailure(BlockIndexError, OSError):
    """Creating, opening, reading or writing a block/index file failed."""

    def __init__(self, action: str, path: str, cause: OSError | None = None):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"could not {action} {path}{detail}")
        self.action = action
        self.path = path


class QuerySyntaxError(BlockIndexError, ValueError):
    """A boolean query string could not be parsed."""
