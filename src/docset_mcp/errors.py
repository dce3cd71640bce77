"""Errors raised by the docset resolution pipeline."""


class DocsetError(Exception):
    """Base class for docset pipeline errors."""


class InvalidInput(DocsetError, ValueError):
    """Raised when a base URL is empty or cannot be parsed."""


class FetchFailure(DocsetError):
    """Raised when a remote document cannot be fetched.

    Carries the last HTTP status (``None`` for network errors or blocked
    URLs) and a short reason.
    """

    def __init__(self, url: str, status: int | None = None, reason: str = ""):
        self.url = url
        self.status = status
        self.reason = reason
        detail = f"{status} {reason}".strip() if status is not None else reason
        super().__init__(f"Failed to fetch {url}: {detail or 'unknown error'}")
