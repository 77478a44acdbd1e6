"""
Application Error Types
=======================
Every failure the API reports to a client is one of these exceptions.
Each carries a user-safe message and the HTTP status the gateway responds with;
low-level causes are logged where they are caught and chained with ``from``.
"""


class AppError(Exception):
    """Base class for errors that map directly onto an HTTP response"""

    status_code = 500
    default_message = "An unexpected error occurred."

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """A required request field is missing or empty"""

    status_code = 400
    default_message = "A required field is missing."


class SerializationError(ValidationError):
    """A value cannot be converted to plain storable data"""

    default_message = "The request contains a value that cannot be stored."


class NotFoundError(AppError):
    status_code = 404
    default_message = "The requested note was not found."


class StorageError(AppError):
    """Document store I/O failure"""

    status_code = 500
    default_message = "A database error occurred."


class ConfigurationError(AppError):
    status_code = 500
    default_message = "The server is not configured correctly."


class AnalysisError(AppError):
    """LLM call or reply parsing failed"""

    status_code = 500
    default_message = "Failed to analyze the file."


class AnalysisTimeoutError(AnalysisError):
    """The analysis did not finish within the gateway's time budget"""

    status_code = 504
    default_message = "The analysis timed out. Please try again later."
