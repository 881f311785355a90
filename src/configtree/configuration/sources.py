"""
Configurations backed by concrete stores: in-memory mappings, environment
variables and YAML files.
"""

import os
import logging
import yaml
from typing import Dict, Any, Iterator, Optional, Union
from pathlib import Path

from ..events import EventType
from ..exceptions import ConfigurationError, ConfigurationStateError
from ..tree import ExpressionEngine, node_from_mapping, node_to_mapping
from .base import AbstractConfiguration
from .hierarchical import HierarchicalConfiguration

logger = logging.getLogger(__name__)


def load_yaml_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a YAML file that must contain a mapping at the top level."""
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            config_path=str(path),
            error_code="CONFIG_FILE_NOT_FOUND"
        )

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in configuration file: {path}",
            config_path=str(path),
            error_code="INVALID_YAML",
            context={"yaml_error": str(e)},
            cause=e
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Error reading configuration file: {path}",
            config_path=str(path),
            error_code="CONFIG_READ_ERROR",
            context={"error": str(e)},
            cause=e
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file must contain a mapping at the top level: {path}",
            config_path=str(path),
            error_code="INVALID_YAML"
        )
    return data


class MapConfiguration(AbstractConfiguration):
    """
    Flat configuration stored in a dictionary.

    Keys are plain strings. Nested mappings passed to the constructor are
    flattened into dotted keys; list values make a key multi-valued.
    """

    def __init__(self, mapping: Optional[Dict[str, Any]] = None):
        super().__init__()
        self._map: Dict[str, Any] = {}
        self._flatten(mapping or {}, "")

    def _flatten(self, mapping: Dict[str, Any], prefix: str) -> None:
        for key, value in mapping.items():
            full_key = f"{prefix}.{key}" if prefix else str(key)
            if isinstance(value, dict):
                self._flatten(value, full_key)
            elif isinstance(value, (list, tuple)):
                self._map[full_key] = list(value)
            else:
                self._map[full_key] = value

    def get_map(self) -> Dict[str, Any]:
        return dict(self._map)

    def _get_property_direct(self, key: str) -> Any:
        value = self._map.get(key)
        if isinstance(value, list):
            return list(value) if value else None
        return value

    def _add_property_direct(self, key: str, value: Any) -> None:
        if key not in self._map:
            self._map[key] = value
        elif isinstance(self._map[key], list):
            self._map[key].append(value)
        else:
            self._map[key] = [self._map[key], value]

    def _clear_property_direct(self, key: str) -> None:
        self._map.pop(key, None)

    def _iter_keys(self) -> Iterator[str]:
        return iter(list(self._map))


class EnvironmentConfiguration(MapConfiguration):
    """
    Read-only configuration of environment variables.

    Only variables starting with the prefix are included. The prefix is
    removed, the rest is lowercased and underscores become key delimiters, so
    ``APP_DATABASE_HOST`` is available as ``database.host``.
    """

    def __init__(self, prefix: str = "", environ: Optional[Dict[str, str]] = None):
        super().__init__()
        self.prefix = prefix.upper()
        self._environ = environ
        self._load_environment()

    def _load_environment(self) -> None:
        environ = self._environ if self._environ is not None else os.environ
        self._map = {}
        for key, value in environ.items():
            if key.startswith(self.prefix) and len(key) > len(self.prefix):
                config_key = key[len(self.prefix):].lower().strip('_').replace('_', '.')
                self._map[config_key] = self._parse_value(value)
        logger.debug(f"Loaded {len(self._map)} environment variables with prefix '{self.prefix}'")

    def _parse_value(self, value: str) -> Any:
        """Parse environment variable value to appropriate type."""
        # Try to parse as boolean
        if value.lower() in ('true', 'false'):
            return value.lower() == 'true'

        # Try to parse as integer
        try:
            return int(value)
        except ValueError:
            pass

        # Try to parse as float
        try:
            return float(value)
        except ValueError:
            pass

        # Comma-separated values make a multi-valued property
        if ',' in value:
            return [item.strip() for item in value.split(',')]

        return value

    def reload(self) -> None:
        """Re-read the environment and notify listeners."""
        self.fire_event(EventType.RELOAD, before_update=True)
        self._load_environment()
        self.fire_event(EventType.RELOAD)

    def _add_property_direct(self, key: str, value: Any) -> None:
        raise ConfigurationStateError("Environment configuration is read-only", key=key)

    def _clear_property_direct(self, key: str) -> None:
        raise ConfigurationStateError("Environment configuration is read-only", key=key)


class YAMLConfiguration(HierarchicalConfiguration):
    """
    Hierarchical configuration loaded from a YAML file.

    Mappings become nodes with children, lists become repeated nodes with the
    same name and scalars become node values.
    """

    def __init__(
        self,
        file_path: Optional[Union[str, Path]] = None,
        expression_engine: Optional[ExpressionEngine] = None
    ):
        super().__init__(expression_engine=expression_engine)
        self.file_path = Path(file_path) if file_path is not None else None
        self._last_modified: Optional[float] = None
        if self.file_path is not None:
            self.load()

    def load(self, file_path: Optional[Union[str, Path]] = None) -> None:
        """
        Load configuration from YAML file, replacing the current content.

        Fires a ``RELOAD`` event before and after the content is replaced.
        """
        if file_path is not None:
            self.file_path = Path(file_path)
        if self.file_path is None:
            raise ConfigurationError("No file path set for YAML configuration", error_code="CONFIG_FILE_NOT_FOUND")

        data = load_yaml_file(self.file_path)
        self.fire_event(EventType.RELOAD, before_update=True)
        self.set_root_node(node_from_mapping(data))
        self._last_modified = self.file_path.stat().st_mtime
        self.fire_event(EventType.RELOAD)
        logger.debug(f"Loaded YAML configuration from {self.file_path}")

    def save(self, file_path: Optional[Union[str, Path]] = None) -> None:
        """
        Write the current tree to a YAML file.

        Attributes and the values of nodes with children are not written; see
        ``node_to_mapping``.
        """
        path = Path(file_path) if file_path is not None else self.file_path
        if path is None:
            raise ConfigurationError("No file path set for YAML configuration", error_code="CONFIG_WRITE_ERROR")

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(node_to_mapping(self.get_root_node()), f, default_flow_style=False, sort_keys=False)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Error writing configuration file: {path}",
                config_path=str(path),
                error_code="CONFIG_WRITE_ERROR",
                cause=e
            ) from e
        logger.debug(f"Saved YAML configuration to {path}")

    def reload(self) -> None:
        """Reload the file and notify listeners."""
        try:
            self.load()
        except ConfigurationError as e:
            logger.error(f"Failed to reload configuration from {self.file_path}: {e}")
            raise

    def has_changed(self) -> bool:
        """Check if the file has been modified since last load."""
        if self.file_path is None or not self.file_path.exists():
            return False
        return self.file_path.stat().st_mtime != self._last_modified

    def refresh(self) -> bool:
        """Reload the file if it has changed. Returns True if it was reloaded."""
        if self.has_changed():
            logger.info(f"Configuration file {self.file_path} changed, reloading...")
            self.reload()
            return True
        return False
