from __future__ import annotations

from typing import Optional


class AgcError(Exception):
    """Base class for agcpy errors."""


# Library / handle lifecycle
class LibraryNotFoundError(AgcError, OSError):
    def __init__(self, tried):
        self.tried = list(tried)
        super().__init__("Unable to load libagc; tried: " + ", ".join(self.tried))


class OpenError(AgcError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Failed to open AGC file: {path}")


class CloseError(AgcError):
    def __init__(self, path: str, status: int):
        self.path = path
        self.status = status
        super().__init__(f"agc_close reported status {status} for: {path}")


class ArchiveClosedError(AgcError, RuntimeError):
    pass


# Text conversion at the boundary
class EncodingError(AgcError, ValueError):
    pass


class DecodingError(AgcError, ValueError):
    pass


# Queries
class QueryError(AgcError):
    pass


class NotFoundError(QueryError):
    def __init__(self, message: str, *, sample: Optional[str] = None, name: Optional[str] = None):
        self.sample = sample
        self.name = name
        super().__init__(message)


class ListFailedError(QueryError):
    def __init__(self, message: str, *, sample: Optional[str] = None):
        self.sample = sample
        super().__init__(message)


class SequenceFetchFailedError(QueryError):
    def __init__(self, message: str, *, sample: Optional[str], name: str, start: int, end: int):
        self.sample = sample
        self.name = name
        self.start = start
        self.end = end
        super().__init__(message)
