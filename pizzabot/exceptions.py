from typing import Optional


class BackendError(Exception):
    """A backend round trip failed (timeout, network error or unexpected status)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransportError(Exception):
    """The messaging platform refused or failed to deliver a message."""
