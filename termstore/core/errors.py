"""Exception hierarchy for the termstore client.

Every error raised by the query/execution core derives from TermStoreError
so callers can catch the whole family with one clause.
"""

from typing import Any, Optional


class TermStoreError(Exception):
    """Base exception for termstore client errors."""
    pass


class PathResolutionError(TermStoreError):
    """Raised when a resource path chain cannot be resolved to an absolute URL."""
    pass


# Older name kept for callers that learned it first
InvalidPathError = PathResolutionError


class PipelineHandlerError(TermStoreError):
    """Raised when a pipeline handler breaks the handler contract.

    Attributes:
        moment: Moment the offending handler was registered on
        handler: Name of the handler (None when no handler was found)
    """

    def __init__(self, message: str, moment: Optional[str] = None, handler: Optional[str] = None):
        super().__init__(message)
        self.moment = moment
        self.handler = handler


class TransportError(TermStoreError):
    """Raised when the network call inside the send moment fails."""
    pass


class RequestTimeoutError(TransportError):
    """Raised when a request exceeds its deadline."""
    pass


class HttpRequestError(TermStoreError):
    """Raised when the remote API answers with a non-success status.

    Attributes:
        status_code: HTTP status code
        response: The raw response object
    """

    def __init__(self, message: str, status_code: int, response: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class ParseError(TermStoreError):
    """Raised when a response body does not match the expected shape."""
    pass


class OrderingInconsistencyError(TermStoreError):
    """A custom sort order references a child that was not returned.

    Only raised when ordered-tree reconstruction runs in strict mode;
    otherwise the condition is logged and an empty slot is kept.
    """

    def __init__(self, message: str, set_id: str, missing_ids: list):
        super().__init__(message)
        self.set_id = set_id
        self.missing_ids = missing_ids
