"""
Utility functions for common configuration patterns.
"""

from typing import Union
from pathlib import Path

from .builder import CombinedConfigurationBuilder
from .combined import CombinedConfiguration
from .sources import YAMLConfiguration


def load_combined_configuration(definition_path: Union[str, Path]) -> CombinedConfiguration:
    """
    Load a combined configuration declared in a YAML definition file.

    Args:
        definition_path: Path to the definition file

    Returns:
        CombinedConfiguration instance
    """
    return (CombinedConfigurationBuilder()
            .add_definition_file(definition_path)
            .build())


def load_yaml_configuration(file_path: Union[str, Path]) -> YAMLConfiguration:
    """
    Load configuration from a single YAML file.

    Args:
        file_path: Path to the YAML configuration file

    Returns:
        YAMLConfiguration instance
    """
    return YAMLConfiguration(file_path)


def load_layered_configuration(
    *file_paths: Union[str, Path],
    env_prefix: str = "",
    combiner: str = "override"
) -> CombinedConfiguration:
    """
    Combine environment variables and YAML files, the environment taking precedence.

    Files are given in priority order, missing files are skipped.
    """
    builder = CombinedConfigurationBuilder().with_combiner(combiner)
    if env_prefix:
        builder.add_environment_source(env_prefix, name="environment")
    for path in file_paths:
        builder.add_yaml_source(path, optional=True)
    return builder.build()


def create_combined_builder() -> CombinedConfigurationBuilder:
    """
    Create a new combined configuration builder.

    Returns:
        CombinedConfigurationBuilder instance
    """
    return CombinedConfigurationBuilder()
