"""
Errors raised by the content store.

Validation errors (UnsupportedMimeType, FileTooLarge) are raised before any remote call is made.
Everything the remote host reports is a RemoteError carrying the status and message it returned.
"""

from typing import Iterable


class ContentStoreError(Exception):
    pass


class UnsupportedMimeType(ContentStoreError, ValueError):
    def __init__(self, mime_type: str | None, allowed: Iterable[str]):
        self.mime_type = mime_type
        self.allowed = tuple(allowed)
        super().__init__(f"Unsupported file type: {mime_type}. Allowed types: {', '.join(self.allowed)}")


class FileTooLarge(ContentStoreError, ValueError):
    def __init__(self, size: int, max_size: int):
        self.size = size
        self.max_size = max_size
        super().__init__(
            f"File too large ({size / 1024 / 1024:.1f} MB, {size} bytes). "
            f"Maximum allowed size is {max_size / 1024 / 1024:g} MB ({max_size} bytes)."
        )


class RemoteError(ContentStoreError):
    def __init__(self, message: str, status: int | None = None):
        self.status = status
        self.message = message
        super().__init__(f"{message} ({status})" if status is not None else message)


class NotFound(RemoteError):
    def __init__(self, path: str, message: str = "Not Found"):
        self.path = path
        super().__init__(f"{path}: {message}", status=404)


class Conflict(RemoteError):
    """The precondition sha of a write did not match the current version of the path.

    Re-read the current state and decide whether to retry.
    """

    retryable = True

    def __init__(self, path: str, message: str = "Conflict"):
        self.path = path
        super().__init__(f"{path} was changed by someone else: {message}", status=409)


class TransportError(RemoteError):
    pass
