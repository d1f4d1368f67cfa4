"""
BloomFrame Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for each failure stage of a request.
How:   Each exception carries a user-facing message, optional details text
       (returned to the caller) and an optional context dict (logged only).
       Global exception handlers in main.py turn these into
       {"ok": false, "error": ..., "details": ...} JSON responses.
Who:   Raised by schemas and services; caught by the global handlers.

Exception Hierarchy:
    BloomFrameError (base)
    ├── DecodeError           → 400 (empty or malformed request body)
    ├── ValidationError       → 400 (missing field, bad query parameter)
    ├── LimitExceededError    → 400 (export matched too many orders)
    ├── AuthenticationError   → 401
    ├── RenderError           → 500
    │   └── TemplateError     → 500 (carries stage, path, templates)
    ├── ConversionError       → 500 (PDF converter failed)
    ├── SendError             → 500 (SMTP delivery failed)
    └── QueryError            → 500 (record store lookup failed)

None of these are retried.
"""

from typing import Any, Dict, List, Optional


class BloomFrameError(Exception):
    """
    Base exception for all BloomFrame application errors.

    Attributes:
        message:  User-facing error description (returned as "error")
        details:  Diagnostic text returned as "details" (may be None)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        details: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.details = details
        self.context = context or {}
        super().__init__(self.message)

    def extra_fields(self) -> Dict[str, Any]:
        """Exception-specific keys merged into the JSON error body."""
        return {}


class DecodeError(BloomFrameError):
    """
    Raised when a request body cannot be decoded into an invoice payload.

    `details` holds the decoder message; for JSON failures it ends with
    a preview of the raw body (at most 600 characters).
    """

    status_code = 400

    def __init__(
        self,
        details: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message="Invalid payload.", details=details, context=context)


class ValidationError(BloomFrameError):
    """Raised when client input is well-formed but unusable."""

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        details: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, details=details, context=ctx)
        self.field = field


class LimitExceededError(BloomFrameError):
    """Raised when an export would contain more orders than allowed."""

    status_code = 400

    def __init__(self, count: int, limit: int):
        super().__init__(
            message=f"Too many orders ({count}). Please narrow the date range.",
            context={"count": count, "limit": limit},
        )
        self.count = count
        self.limit = limit


class AuthenticationError(BloomFrameError):
    status_code = 401

    def __init__(self, message: str = "The request requires valid record authorization token."):
        super().__init__(message=message)


class RenderError(BloomFrameError):
    """Raised when the invoice HTML could not be produced."""

    status_code = 500

    def __init__(
        self,
        message: str = "Failed to render invoice.",
        details: Optional[str] = None,
        path: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, details=details, context=context)
        self.path = path

    def extra_fields(self) -> Dict[str, Any]:
        return {"path": self.path} if self.path else {}


class TemplateError(RenderError):
    """
    Raised by the template renderer, tagged with the stage that failed.

    Stages, in the order they are attempted:
        views_dir      the views directory does not exist
        template_file  the configured template file does not exist
        parse          a template in the views directory has a syntax error
        lookup         the configured template name is not among the loaded templates
        execute        rendering failed, e.g. a missing view-model field

    `templates` lists every template name found in the views directory,
    once that directory was readable.
    """

    def __init__(
        self,
        stage: str,
        details: str,
        path: str,
        templates: Optional[List[str]] = None,
    ):
        super().__init__(details=details, path=path, context={"stage": stage})
        self.stage = stage
        self.templates = templates

    def extra_fields(self) -> Dict[str, Any]:
        fields = super().extra_fields()
        fields["stage"] = self.stage
        if self.templates is not None:
            fields["templates"] = self.templates
        return fields


class ConversionError(BloomFrameError):
    """Raised when the HTML-to-PDF converter fails; `details` holds its stderr."""

    status_code = 500

    def __init__(
        self,
        details: str,
        message: str = "Failed to generate invoice PDF.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, details=details, context=context)


class SendError(BloomFrameError):
    status_code = 500

    def __init__(
        self,
        message: str = "Failed to send email.",
        details: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, details=details, context=context)


class QueryError(BloomFrameError):
    """
    Raised when a record store lookup fails during an export.

    The message names the collection, e.g. "Failed to load customers.".
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, details=details, context=context)
