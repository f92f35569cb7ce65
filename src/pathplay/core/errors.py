from __future__ import annotations


class PathplayError(Exception):
    """Base class for errors raised by pathplay."""


class InvalidArgumentError(PathplayError, ValueError):
    pass


class FetchError(PathplayError, RuntimeError):
    """The fleet API could not be reached or answered with an error status."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
