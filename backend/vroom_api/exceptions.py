"""
Vroom Route API — Custom Exception Hierarchy
=============================================

What:  Defines application-specific exceptions for each failure cause.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return a single-field JSON body: {"message": "<text>"}.
Who:   Raised by VroomService and CommandRunner; caught by global handlers.
When:  During request processing; nothing is retried, every error is terminal.

Exception Hierarchy:
    VroomApiError (base)                 → 400 Bad Request
    ├── ConfigurationError
    │   ├── BinaryNotFoundError          "Vroom binary file doesn't exist"
    │   └── BinaryNotExecutableError     "Cannot execute Vroom binary file"
    ├── ValidationError                  "Must send more than one location"
    ├── ExecutionError                   spawn failure / unparseable output
    └── UnclassifiedError                anything else, message = str(cause)

Every type maps to the same response shape; only the message differs.
"""

from typing import Any, Dict, Optional


class VroomApiError(Exception):
    """
    Base exception for all Vroom Route API errors.

    Attributes:
        message:  User-facing error description (returned in the API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ConfigurationError(VroomApiError):
    """
    Raised when the configured VROOM binary cannot be used.

    The path itself goes into context only; clients see the fixed message.
    """


class BinaryNotFoundError(ConfigurationError):
    """The configured binary path does not exist."""

    def __init__(self, path: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["path"] = path
        super().__init__(message="Vroom binary file doesn't exist", context=ctx)


class BinaryNotExecutableError(ConfigurationError):
    """The configured binary exists but the current process may not execute it."""

    def __init__(self, path: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["path"] = path
        super().__init__(message="Cannot execute Vroom binary file", context=ctx)


class ValidationError(VroomApiError):
    """
    Raised when client input fails validation.

    What:    The client sent a request that can be corrected.
    When:    Fewer than two locations were supplied.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class ExecutionError(VroomApiError):
    """
    Raised when running VROOM did not produce a usable result.

    When:
        - The process could not be spawned (OS error text as message)
        - The captured output is not a valid JSON document (parser error text)

    The raw output, when there is one, is kept in context for the server log.
    """

    def __init__(
        self,
        message: str = "Vroom execution failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnclassifiedError(VroomApiError):
    """
    Wraps any other exception raised while handling a route request.

    The original exception's text becomes the message and it stays chained
    as __cause__ so its stack trace reaches the log.
    """

    def __init__(self, cause: BaseException, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["error_type"] = type(cause).__name__
        super().__init__(message=str(cause), context=ctx)
