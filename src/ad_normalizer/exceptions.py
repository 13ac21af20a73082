"""Ad normalizer custom exception hierarchy.

Provides specific exception types for the error scenarios of ad document
parsing, collaborator calls and configuration. Most of them are raised deep in
the pipeline and caught again at the fail-soft boundaries of the normalizer,
so a caller of the core never sees them.

Exception Hierarchy:
    NormalizerException (base)
    ├── AdParseError
    │   ├── AdXMLError
    │   ├── AdElementError
    │   └── AdDurationError
    ├── AdServerError
    ├── ConfigError
    ├── StoreError
    └── EncoreError
"""

from typing import Optional


class NormalizerException(Exception):
    """Base exception for all ad normalizer errors.

    All normalizer-specific exceptions inherit from this class to allow
    catching them with a single except clause.
    """

    def __init__(self, message: str, context: Optional[dict] = None):
        """Initialize normalizer exception.

        Args:
            message: Error message
            context: Optional context dictionary for debugging
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return string representation with context."""
        if self.context:
            context_str = "; ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


# Parsing Errors

class AdParseError(NormalizerException):
    """Base exception for VAST/VMAP parsing errors."""

    pass


class AdXMLError(AdParseError):
    """Raised when XML parsing fails or the root element is not the expected one.

    Attributes:
        xml_preview: First 200 characters of XML that failed to parse
        parser_error: The underlying lxml parser error
    """

    def __init__(
        self,
        message: str,
        xml_preview: Optional[str] = None,
        parser_error: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        if context is None:
            context = {}
        if xml_preview:
            context["xml_preview"] = xml_preview[:200]
        super().__init__(message, context)
        self.xml_preview = xml_preview
        self.parser_error = parser_error


class AdElementError(AdParseError):
    """Raised when a required element of an ad is missing or malformed.

    Attributes:
        element_tag: Local name of the problematic element
        operation: The operation that failed (e.g. 'select_rendition')
    """

    def __init__(
        self,
        message: str,
        element_tag: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[dict] = None,
    ):
        if context is None:
            context = {}
        if element_tag:
            context["element_tag"] = element_tag
        if operation:
            context["operation"] = operation
        super().__init__(message, context)
        self.element_tag = element_tag
        self.operation = operation


class AdDurationError(AdParseError):
    """Raised when parsing an HH:MM:SS duration fails.

    Attributes:
        duration_text: The duration string that failed to parse
    """

    def __init__(
        self,
        message: str,
        duration_text: Optional[str] = None,
        context: Optional[dict] = None,
    ):
        if context is None:
            context = {}
        if duration_text:
            context["duration_text"] = duration_text
        super().__init__(message, context)
        self.duration_text = duration_text


# Collaborator Errors

class AdServerError(NormalizerException):
    """Raised when the ad server answers with a non-OK status or cannot be reached.

    Attributes:
        url: Requested URL
        status_code: HTTP status code, if a response was received
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        context: Optional[dict] = None,
    ):
        if context is None:
            context = {}
        if url:
            context["url"] = url[:200]
        if status_code is not None:
            context["status_code"] = status_code
        super().__init__(message, context)
        self.url = url
        self.status_code = status_code


class ConfigError(NormalizerException):
    """Raised when required configuration is missing or invalid.

    Attributes:
        config_keys: Names of the offending settings
    """

    def __init__(
        self,
        message: str,
        config_keys: Optional[list[str]] = None,
        context: Optional[dict] = None,
    ):
        if context is None:
            context = {}
        if config_keys:
            context["config_keys"] = ",".join(config_keys)
        super().__init__(message, context)
        self.config_keys = config_keys or []


class StoreError(NormalizerException):
    """Raised when the transcode status store cannot be read or written."""

    pass


class EncoreError(NormalizerException):
    """Raised when an Encore request fails.

    Attributes:
        status_code: HTTP status code returned by Encore, if any
        job_id: Encore job id, if known
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        job_id: Optional[str] = None,
        context: Optional[dict] = None,
    ):
        if context is None:
            context = {}
        if status_code is not None:
            context["status_code"] = status_code
        if job_id:
            context["job_id"] = job_id
        super().__init__(message, context)
        self.status_code = status_code
        self.job_id = job_id


__all__ = [
    "NormalizerException",
    "AdParseError",
    "AdXMLError",
    "AdElementError",
    "AdDurationError",
    "AdServerError",
    "ConfigError",
    "StoreError",
    "EncoreError",
]
