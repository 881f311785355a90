"""
Structured Exception Hierarchy

Every error raised by configtree carries an error code, context data and a
correlation ID so that failures can be logged and traced consistently.
"""

from typing import Dict, List, Any, Optional
import uuid
from datetime import datetime, timezone


class ConfigTreeException(Exception):
    """
    Base exception class for all configtree-specific exceptions.

    Provides structured error information including error codes,
    context data, and correlation IDs for tracing.
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        correlation_id: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause
        self.correlation_id = correlation_id or str(uuid.uuid4())
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
            "correlation_id": self.correlation_id,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None
        }


class ConfigurationError(ConfigTreeException):
    """Raised when a configuration cannot be loaded or declared."""

    def __init__(
        self,
        message: str,
        config_path: Optional[str] = None,
        validation_errors: Optional[List[Any]] = None,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        if config_path:
            context['config_path'] = config_path
        if validation_errors:
            context['validation_errors'] = validation_errors

        super().__init__(
            message=message,
            error_code=kwargs.pop('error_code', "CONFIG_ERROR"),
            context=context,
            **kwargs
        )


class ConfigurationStateError(ConfigTreeException):
    """Raised when an operation conflicts with the current state of a configuration."""

    def __init__(
        self,
        message: str,
        configuration_name: Optional[str] = None,
        key: Optional[str] = None,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        if configuration_name:
            context['configuration_name'] = configuration_name
        if key:
            context['key'] = key

        super().__init__(
            message=message,
            error_code="CONFIGURATION_STATE_ERROR",
            context=context,
            **kwargs
        )


class InvalidKeyError(ConfigTreeException):
    """Raised when a key cannot be used for the requested operation."""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        if key is not None:
            context['key'] = key

        super().__init__(
            message=message,
            error_code="INVALID_KEY",
            context=context,
            **kwargs
        )


class ConversionError(ConfigTreeException):
    """Raised when a property value cannot be converted to the requested type."""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        target_type: Optional[str] = None,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        if key:
            context['key'] = key
        if target_type:
            context['target_type'] = target_type

        super().__init__(
            message=message,
            error_code="CONVERSION_ERROR",
            context=context,
            **kwargs
        )
