"""
AskBoard Backend: Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for the question resource.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return responses with the matching HTTP status code.
Who:   Raised by services and the authentication dependency.

Exception Hierarchy:
    AskBoardError (base)
    ├── NotFoundError         → 404 Not Found (empty body)
    ├── ForbiddenError        → 403 Forbidden (empty body)
    ├── AuthenticationError   → 401 Unauthorized
    └── DatabaseError         → 500 Internal Server Error

There is no validation error here: request bodies are parsed by FastAPI
against the Pydantic schemas, and anything the schemas accept goes
straight to the store.
"""

from typing import Any, Dict, Optional


class AskBoardError(Exception):
    """
    Base exception for all AskBoard application errors.

    Attributes:
        message:  Human-readable error description
        context:  Additional debug info (logged server-side)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class NotFoundError(AskBoardError):
    """
    Raised when a requested resource does not exist.

    Also raised when an embedded-document filter matches nothing: an answer
    id that is not in the question, or a comment that exists but belongs to
    somebody else. Callers cannot tell those cases apart.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ForbiddenError(AskBoardError):
    """
    Raised when an authenticated user tries to modify a question they do not own.

    HTTP: 403 Forbidden. The store is never touched once this is raised.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ):
        ctx: Dict[str, Any] = {"resource": resource}
        if resource_id:
            ctx["resource_id"] = resource_id
        if user_id:
            ctx["user_id"] = user_id
        super().__init__(
            message=f"You are not allowed to modify this {resource}",
            context=ctx,
        )


class AuthenticationError(AskBoardError):
    """Raised when the bearer token is missing, expired or invalid (HTTP 401)."""

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(AskBoardError):
    """
    Raised when a database operation fails.

    What:    A query, insert, update or delete failed, including a version
             conflict when another request changed the same question first.
    HTTP:    500 Internal Server Error

    The response carries the underlying error type and message from
    `context` (`error_type`, `error`) so clients see which store failure
    happened.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

    @classmethod
    def wrap(cls, exc: Exception, message: str, **context: Any) -> "DatabaseError":
        """Build a DatabaseError describing the store exception `exc`."""
        ctx = dict(context)
        ctx["error_type"] = type(exc).__name__
        ctx["error"] = str(exc)
        return cls(message=message, context=ctx)
