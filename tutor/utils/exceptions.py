"""
Application-specific exception classes.

Each failure domain of the chat pipeline gets its own error type so callers
can decide what is fatal (completion, malformed request) and what is not
(reference extraction, telemetry).
"""

from typing import Optional


class TutorError(Exception):
    """Base exception class for tutor application errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


class ExtractionError(TutorError):
    """Raised when a reference document cannot be read or parsed."""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        super().__init__(message, error_code="EXTRACTION_ERROR", **kwargs)
        self.path = path


class CompletionError(TutorError):
    """Raised when the completion provider call fails."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, error_code="COMPLETION_ERROR", **kwargs)
        self.provider = provider
        self.status_code = status_code


class MalformedRequestError(TutorError):
    """Raised when an inbound request body cannot be parsed."""

    def __init__(self, message: str = "Malformed request body", **kwargs):
        super().__init__(message, error_code="MALFORMED_REQUEST", **kwargs)


class TelemetryError(TutorError):
    """Raised by telemetry sinks; never allowed past the observer boundary."""

    def __init__(self, message: str, sink: Optional[str] = None, **kwargs):
        super().__init__(message, error_code="TELEMETRY_ERROR", **kwargs)
        self.sink = sink


class ConfigurationError(TutorError):
    """Raised when application configuration is invalid."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        super().__init__(message, error_code="CONFIGURATION_ERROR", **kwargs)
        self.config_key = config_key


def log_error(error: TutorError, logger=None, level: str = "error"):
    """
    Log a TutorError with structured information.

    Args:
        error: The error to log
        logger: Logger instance (uses default logger if None)
        level: Log level ("error", "warning", "info", "debug")
    """
    if logger is None:
        import logging
        logger = logging.getLogger(__name__)

    log_func = getattr(logger, level)
    log_func(
        f"{error.error_code}: {error.message}",
        extra={
            "error_code": error.error_code,
            "details": error.details,
            "context": {
                attr: getattr(error, attr, None)
                for attr in ['path', 'provider', 'status_code', 'sink', 'config_key']
                if hasattr(error, attr)
            }
        }
    )
