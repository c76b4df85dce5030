"""Exception classes for Fabric Git integration operations."""

from typing import Any, Dict, Optional


class FabricGitError(Exception):
    """Base exception for all Git integration errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self):
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConfigurationError(FabricGitError):
    """Exception raised when settings are missing or invalid."""

    pass


class AuthError(FabricGitError):
    """Exception raised when a principal cannot be authenticated."""

    pass


class HttpError(FabricGitError):
    """Exception raised for non-2xx responses and transport failures."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[Any] = None,
        details: Optional[str] = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.body = body


class NotFoundError(FabricGitError):
    """Exception raised when a named resource cannot be resolved."""

    pass


class OperationFailedError(FabricGitError):
    """Exception raised when a long-running operation reports Failed."""

    def __init__(self, operation_id: str, error: Optional[Dict[str, Any]] = None):
        error = error or {}
        detail = error.get("message") or error.get("errorCode")
        super().__init__(f"Operation {operation_id} failed", detail)
        self.operation_id = operation_id
        self.error = error
