from typing import Any, Optional


class BackendError(Exception):
    """
    A request to the booking backend failed (network, validation, 4xx/5xx).
    Always recoverable: surfaced to the admin as a transient notification.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class SessionExpired(Exception):
    """Token refresh failed. Stored credentials are gone; the admin must log in again."""

    def __init__(self, redirect: str, message: str = "Session expired, please log in again"):
        super().__init__(message)
        self.redirect = redirect
        self.message = message


class ActionUnavailable(Exception):
    """
    A booking action refused before any request is sent: the booking status
    does not allow it, or there is no candidate slot to assign.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def server_message(payload: Any, fallback: str) -> str:
    """
    Extract the server-provided message from an error body, or return `fallback`.
    Accepts {"message": ...}, {"error": ...} or {"error": {"message": ...}}.
    """
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message:
            return message
        error = payload.get("error")
        if isinstance(error, str) and error:
            return error
        if isinstance(error, dict) and isinstance(error.get("message"), str) and error["message"]:
            return error["message"]
    return fallback
