"""
Builder for creating CombinedConfiguration instances.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union
from pathlib import Path

from ..tree import NodeCombiner, create_combiner
from .base import AbstractConfiguration
from .combined import CombinedConfiguration
from .models import CombinedDefinition
from .sources import EnvironmentConfiguration, MapConfiguration, YAMLConfiguration, load_yaml_file
from .validation import ConfigurationValidator

logger = logging.getLogger(__name__)


@dataclass
class _SourceEntry:
    factory: Callable[[], Optional[AbstractConfiguration]]
    name: Optional[str] = None
    at: Optional[str] = None


class CombinedConfigurationBuilder:
    """
    Builder for creating CombinedConfiguration instances with multiple sources.

    Sources are created when ``build`` is called, in the order they were
    added. The first source has the highest priority for the override
    combiner.
    """

    def __init__(self):
        self._combiner: Union[str, Callable, NodeCombiner] = "union"
        self._list_nodes: List[str] = []
        self._sources: List[_SourceEntry] = []

    def with_combiner(self, combiner: Union[str, Callable, NodeCombiner]) -> 'CombinedConfigurationBuilder':
        """
        Set the combiner.

        Args:
            combiner: "union", "override", a combine function or a NodeCombiner instance
        """
        self._combiner = combiner
        return self

    def add_list_nodes(self, *names: str) -> 'CombinedConfigurationBuilder':
        """Register node names that must not be merged by the combiner."""
        self._list_nodes.extend(names)
        return self

    def add_yaml_source(
        self,
        path: Union[str, Path],
        name: Optional[str] = None,
        at: Optional[str] = None,
        optional: bool = False
    ) -> 'CombinedConfigurationBuilder':
        """
        Add a YAML configuration source.

        Args:
            path: Path to the YAML configuration file
            name: Optional name of the child configuration
            at: Optional position in the combined tree
            optional: Skip the file with a warning if it does not exist
        """
        file_path = Path(path)

        def create() -> Optional[AbstractConfiguration]:
            if optional and not file_path.exists():
                logger.warning(f"Optional configuration file not found, skipping: {file_path}")
                return None
            return YAMLConfiguration(file_path)

        self._sources.append(_SourceEntry(create, name, at))
        return self

    def add_environment_source(
        self,
        prefix: str = "",
        name: Optional[str] = None,
        at: Optional[str] = None
    ) -> 'CombinedConfigurationBuilder':
        """
        Add environment variable configuration source.

        Args:
            prefix: Environment variable prefix, e.g. ``APP_``
            name: Optional name of the child configuration
            at: Optional position in the combined tree
        """
        self._sources.append(_SourceEntry(lambda: EnvironmentConfiguration(prefix), name, at))
        return self

    def add_mapping_source(
        self,
        mapping: Dict[str, Any],
        name: Optional[str] = None,
        at: Optional[str] = None
    ) -> 'CombinedConfigurationBuilder':
        """Add in-memory properties, e.g. defaults."""
        self._sources.append(_SourceEntry(lambda: MapConfiguration(mapping), name, at))
        return self

    def add_configuration(
        self,
        config: AbstractConfiguration,
        name: Optional[str] = None,
        at: Optional[str] = None
    ) -> 'CombinedConfigurationBuilder':
        """Add an existing configuration."""
        self._sources.append(_SourceEntry(lambda: config, name, at))
        return self

    def add_definition(
        self,
        definition: CombinedDefinition,
        base_path: Optional[Union[str, Path]] = None
    ) -> 'CombinedConfigurationBuilder':
        """
        Apply a parsed definition.

        Relative YAML paths are resolved against ``base_path``.
        """
        base = Path(base_path) if base_path is not None else Path.cwd()
        self.with_combiner(definition.combiner)
        self.add_list_nodes(*definition.list_nodes)

        for source in definition.sources:
            if source.type == 'yaml':
                path = Path(source.path)
                if not path.is_absolute():
                    path = base / path
                self.add_yaml_source(path, source.name, source.at, source.optional)
            elif source.type == 'env':
                self.add_environment_source(source.prefix, source.name, source.at)
            else:
                self.add_mapping_source(source.properties, source.name, source.at)
        return self

    def add_definition_file(self, path: Union[str, Path]) -> 'CombinedConfigurationBuilder':
        """
        Read, validate and apply a YAML definition file.

        Raises:
            ConfigurationError: If the file cannot be read
            ConfigurationValidationError: If the definition is invalid
        """
        file_path = Path(path)
        definition = ConfigurationValidator.validate_definition(load_yaml_file(file_path))
        logger.info(f"Loaded definition {file_path} with {len(definition.sources)} sources")
        return self.add_definition(definition, file_path.parent)

    def build(self) -> CombinedConfiguration:
        """
        Build the combined configuration with all added sources.

        Returns:
            CombinedConfiguration containing all sources that could be created
        """
        combiner = create_combiner(self._combiner)
        for name in self._list_nodes:
            combiner.add_list_node(name)

        config = CombinedConfiguration(combiner)
        for entry in self._sources:
            child = entry.factory()
            if child is not None:
                config.add_configuration(child, entry.name, entry.at)
        return config
