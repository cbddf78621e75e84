"""
Playlist bridge error types.

AuthExpiredError is recovered locally by a token refresh; AuthRequiredError
means the user has to go through the authorization redirect again.
"""

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


class BridgeError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class AuthError(BridgeError):
    def __init__(self, message: str, code: str = "auth_error"):
        super().__init__(code, message)


class AuthExpiredError(AuthError):
    def __init__(self, message: str = "Access token expired"):
        super().__init__(message, code="auth_expired")


class AuthRequiredError(AuthError):
    def __init__(self, slot: Any, message: Optional[str] = None, url: Optional[str] = None):
        super().__init__(message or f"Authorization required for {slot} slot", code="auth_required")
        self.slot = slot
        self.url = url


class RemoteApiError(BridgeError):
    def __init__(self, message: str, status: Optional[int] = None, details: Optional[dict[str, Any]] = None):
        super().__init__("remote_api_error", message, details)
        self.status = status


class TransferActionError(BridgeError):
    def __init__(self, message: str, code: str = "transfer_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


def report_error(error: BaseException) -> None:
    """Default error-reporting collaborator: log and move on."""
    code = getattr(error, "code", type(error).__name__)
    logger.error(f"[{code}] {error}")
