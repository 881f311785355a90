"""
Definition file validation utilities.
"""

import logging
from typing import Dict, Any, List
from pydantic import ValidationError

from ..exceptions import ConfigurationError
from .models import CombinedDefinition

logger = logging.getLogger(__name__)


class ConfigurationValidationError(ConfigurationError):
    """Exception raised when definition validation fails."""

    def __init__(self, message: str, validation_errors: List[Dict[str, Any]], **kwargs):
        super().__init__(
            message,
            validation_errors=validation_errors,
            error_code="CONFIGURATION_VALIDATION_ERROR",
            **kwargs
        )
        self.validation_errors = validation_errors

    def get_detailed_message(self) -> str:
        """Get a detailed error message with all validation errors."""
        lines = [self.message]
        lines.append("Validation errors:")

        for error in self.validation_errors:
            location = " -> ".join(str(loc) for loc in error.get('loc', []))
            msg = error.get('msg', 'Unknown error')
            lines.append(f"- {location}: {msg}")

        return "\n".join(lines)


class ConfigurationValidator:
    """Validates definition data and provides detailed error messages."""

    KNOWN_KEYS = {'combiner', 'list_nodes', 'sources'}

    @staticmethod
    def validate_definition(definition_data: Dict[str, Any]) -> CombinedDefinition:
        """
        Validate the data of a definition file.

        Args:
            definition_data: Raw definition data as read from YAML

        Returns:
            The parsed definition

        Raises:
            ConfigurationValidationError: If validation fails with errors
        """
        if not isinstance(definition_data, dict):
            raise ConfigurationValidationError(
                "Definition validation failed",
                [{'loc': ['root'], 'msg': "Definition must be a mapping", 'type': 'type_error'}]
            )

        for warning in ConfigurationValidator.get_warnings(definition_data):
            logger.warning(warning)

        try:
            return CombinedDefinition(**definition_data)
        except ValidationError as e:
            errors = [
                {
                    'loc': list(error['loc']),
                    'msg': error['msg'],
                    'type': error['type']
                }
                for error in e.errors()
            ]
            raise ConfigurationValidationError("Definition validation failed", errors, cause=e) from e

    @staticmethod
    def get_warnings(definition_data: Dict[str, Any]) -> List[str]:
        """Return warning messages for unknown top-level keys."""
        return [
            f"Unknown definition key: {key}"
            for key in definition_data
            if key not in ConfigurationValidator.KNOWN_KEYS
        ]
