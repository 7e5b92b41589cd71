"""
Custom Exceptions for ProjectHub
================================

Use these instead of generic Exception to:
1. Make errors more specific and debuggable
2. Enable proper error handling at API layer
3. Provide meaningful error messages to users

Every error carries the HTTP status it maps to; the app-level exception
handler in main.py turns any ProjectHubError into a JSON error body.

Usage:
    from projecthub.core.exceptions import ProjectNotFoundError

    if not project:
        raise ProjectNotFoundError(project_id)
"""

from typing import Optional, Any, Dict


class ProjectHubError(Exception):
    """Base exception for all ProjectHub errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


class InternalError(ProjectHubError):
    """Store or infrastructure failure"""

    def __init__(self, message: str = "An internal error occurred"):
        super().__init__(message, code="INTERNAL_ERROR", status_code=500)


# ============================================
# Authentication Errors (401-type)
# ============================================

class AuthenticationError(ProjectHubError):
    """Request is not authenticated"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed", code: str = "AUTH_FAILED",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details=details)


class NoTokenError(AuthenticationError):
    """Authorization header is missing"""

    def __init__(self):
        super().__init__("Access denied, no token provided", code="NO_TOKEN")


class MalformedTokenError(AuthenticationError):
    """Authorization header is not of the form '<scheme> <token>'"""

    def __init__(self, message: str = "Access denied, malformed token"):
        super().__init__(message, code="MALFORMED_TOKEN")


class InvalidTokenError(AuthenticationError):
    """Token failed verification (bad signature, expired, unreadable)"""

    def __init__(self, reason: Optional[str] = None):
        details = {"reason": reason} if reason else {}
        super().__init__("Invalid or expired token", code="INVALID_TOKEN", details=details)


# ============================================
# Token Service Errors
# ============================================
# Raised by TokenService.verify(); the access dependency converts them
# into InvalidTokenError.

class TokenVerificationError(Exception):
    """Base class for token verification failures"""

    reason = "invalid"


class TokenMalformed(TokenVerificationError):
    reason = "malformed"


class TokenExpired(TokenVerificationError):
    reason = "expired"


class TokenSignatureInvalid(TokenVerificationError):
    reason = "invalid_signature"


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(ProjectHubError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class ProjectNotFoundError(ResourceNotFoundError):
    """Project not found (or not owned by the caller)"""

    def __init__(self, project_id: str):
        super().__init__("Project", project_id)


class UserNotFoundError(ResourceNotFoundError):
    """User not found"""

    def __init__(self, user_id: str):
        super().__init__("User", user_id)


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(ProjectHubError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class InvalidCredentialsError(ProjectHubError):
    """Email/password pair did not match a user"""

    status_code = 400

    def __init__(self):
        super().__init__("Invalid credentials", code="INVALID_CREDENTIALS")


# ============================================
# Conflict Errors (400-type)
# ============================================

class ConflictError(ProjectHubError):
    """Request conflicts with the current state of a record"""

    status_code = 400


class DuplicateEmailError(ConflictError):
    """Email is already registered"""

    def __init__(self, email: str):
        super().__init__(
            "Email already registered",
            code="EMAIL_ALREADY_REGISTERED",
            details={"email": email}
        )


class ProjectAlreadyCompletedError(ConflictError):
    """Project status is already Completed"""

    def __init__(self, project_id: str):
        super().__init__(
            "Project is already completed",
            code="PROJECT_ALREADY_COMPLETED",
            details={"project_id": project_id}
        )


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: ProjectHubError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }
