"""
Custom exceptions for the product editor core.
Provides structured error handling with rich context for debugging and user messaging.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Categories of errors for routing and handling."""
    VALIDATION = "validation"
    TEMPLATE = "template"
    TRANSFORMATION = "transformation"
    NETWORK = "network"
    TIMEOUT = "timeout"
    CONFIGURATION = "configuration"


@dataclass
class ErrorContext:
    """Rich context for error tracking and debugging."""
    correlation_id: Optional[str] = None
    product_id: Optional[int] = None
    category_id: Optional[int] = None
    variant_index: Optional[int] = None
    section: Optional[str] = None
    field_name: Optional[str] = None
    expected_type: Optional[str] = None
    actual_value: Optional[Any] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    additional_data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert context to dictionary for logging."""
        return {
            "correlation_id": self.correlation_id,
            "product_id": self.product_id,
            "category_id": self.category_id,
            "variant_index": self.variant_index,
            "section": self.section,
            "field_name": self.field_name,
            "expected_type": self.expected_type,
            "actual_value": str(self.actual_value) if self.actual_value is not None else None,
            "timestamp": self.timestamp,
            **self.additional_data,
        }


class EditorError(Exception):
    """Base exception for all product editor errors."""

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.VALIDATION,
        retryable: bool = False,
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.severity = severity
        self.category = category
        self.retryable = retryable
        self.original_exception = original_exception

    @property
    def user_message(self) -> str:
        """Message suitable for showing to the person editing the product."""
        return self.message

    def to_dict(self) -> dict:
        """Serialize exception for logging and monitoring."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "retryable": self.retryable,
            "context": self.context.to_dict(),
            "original_exception": str(self.original_exception) if self.original_exception else None,
        }


class ValidationError(EditorError):
    """Raised when the working copy cannot be saved or a mutation names an unknown field."""

    def __init__(
        self,
        message: str,
        field_name: str,
        expected: str,
        actual: Any,
        context: Optional[ErrorContext] = None,
    ):
        ctx = context or ErrorContext()
        ctx.field_name = field_name
        ctx.expected_type = expected
        ctx.actual_value = actual

        super().__init__(
            message=message,
            context=ctx,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
            retryable=False,
        )
        self.field_name = field_name
        self.expected = expected
        self.actual = actual


class TransformationError(EditorError):
    """Raised when a product document from the API cannot be turned into a working copy."""

    def __init__(
        self,
        message: str,
        product_id: Optional[int],
        field_name: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        original_exception: Optional[Exception] = None,
    ):
        ctx = context or ErrorContext()
        ctx.product_id = product_id
        ctx.field_name = field_name

        super().__init__(
            message=message,
            context=ctx,
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.TRANSFORMATION,
            retryable=False,
            original_exception=original_exception,
        )


class TemplateFetchError(EditorError):
    """Raised when category templates or defaults cannot be fetched."""

    def __init__(
        self,
        message: str,
        category_id: Optional[int],
        resource: str = "templates",
        context: Optional[ErrorContext] = None,
        original_exception: Optional[Exception] = None,
    ):
        ctx = context or ErrorContext()
        ctx.category_id = category_id
        ctx.additional_data["resource"] = resource

        super().__init__(
            message=message,
            context=ctx,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.TEMPLATE,
            retryable=True,
            original_exception=original_exception,
        )
        self.category_id = category_id
        self.resource = resource


class ApiError(EditorError):
    """Raised when a call to the catalog API fails."""

    def __init__(
        self,
        message: str,
        method: str,
        url: str,
        status_code: Optional[int] = None,
        detail: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        original_exception: Optional[Exception] = None,
        category: ErrorCategory = ErrorCategory.NETWORK,
    ):
        ctx = context or ErrorContext()
        ctx.additional_data["method"] = method
        ctx.additional_data["url"] = url
        ctx.additional_data["status_code"] = status_code

        super().__init__(
            message=message,
            context=ctx,
            severity=ErrorSeverity.HIGH,
            category=category,
            retryable=False,
            original_exception=original_exception,
        )
        self.method = method
        self.url = url
        self.status_code = status_code
        self.detail = detail

    @property
    def user_message(self) -> str:
        return self.detail or self.message


class SaveTimeoutError(ApiError):
    """Raised when the save request times out (client timeout, HTTP 408 or 504)."""

    TIMEOUT_MESSAGE = (
        "Request timed out. The product data is large and may take longer to "
        "process. Please try again or reduce the number of images/variants."
    )

    def __init__(
        self,
        message: str,
        method: str,
        url: str,
        status_code: Optional[int] = None,
        context: Optional[ErrorContext] = None,
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            method=method,
            url=url,
            status_code=status_code,
            context=context,
            original_exception=original_exception,
            category=ErrorCategory.TIMEOUT,
        )

    @property
    def user_message(self) -> str:
        return self.TIMEOUT_MESSAGE


class ConfigurationError(EditorError):
    """Raised when configuration is invalid or missing."""

    def __init__(
        self,
        message: str,
        config_key: str,
        context: Optional[ErrorContext] = None,
    ):
        ctx = context or ErrorContext()
        ctx.additional_data["config_key"] = config_key

        super().__init__(
            message=message,
            context=ctx,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CONFIGURATION,
            retryable=False,
        )
        self.config_key = config_key
