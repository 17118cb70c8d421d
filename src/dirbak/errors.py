"""Error types raised by dirbak."""

from __future__ import annotations


class ValidationError(Exception):
    """A run option is missing or points at something unusable.

    Raised before any staging or archiving work starts.
    """


class BuildError(Exception):
    """Archive compression failed.

    ``exit_code`` is set when an external compressor exited non-zero.
    """

    def __init__(self, message: str, exit_code: int | None = None) -> None:
        super().__init__(message)
        self.exit_code = exit_code
