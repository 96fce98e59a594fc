"""Exception types shared by the canvas core, the proxy and its client."""

from __future__ import annotations


class DetachedHandleError(LookupError):
    """Raised when a registered node's geometry cannot be read."""

    def __init__(self, handle: int) -> None:
        super().__init__(f"No mounted node for handle {handle}")
        self.handle = handle


class MalformedValueError(ValueError):
    """A value that fits none of the classifier's kinds."""


class BackendError(Exception):
    """Any non-success response from the proxy, reduced to its message."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ProxyError(Exception):
    """Raised when the database driver rejects a proxied operation."""


class ProxyConnectionError(ProxyError):
    """Raised when the target database cannot be reached or authenticated."""
