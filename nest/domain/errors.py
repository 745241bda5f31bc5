"""
Error hierarchy shared by domain and application layers.

The API layer maps each class to an HTTP status (see nest.main).
"""


class NestError(Exception):
    """Base class for expected, user-facing errors"""

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.fields = fields or []


class ValidationError(NestError, ValueError):
    """Missing or malformed input (400)"""
    pass


class AccessDeniedError(NestError):
    """Permission check failed (403)"""
    pass


class NotFoundError(NestError):
    """Referenced row does not exist (404)"""
    pass


class ConflictError(NestError):
    """Request clashes with current state (409)"""
    pass


class NothingToUndoError(NotFoundError):
    def __init__(self, message: str = "Nothing to undo"):
        super().__init__(message)


class NotYourCompletionError(AccessDeniedError):
    def __init__(self, message: str = "You can only undo your own completions"):
        super().__init__(message)
