"""
Configuration Management System

Uniform key/value access to hierarchical and flat configurations, YAML and
environment variable sources, and combined configurations merging several
sources into one tree.
"""

from .base import AbstractConfiguration

from .hierarchical import (
    HierarchicalConfiguration,
    convert_to_hierarchical
)

from .sources import (
    MapConfiguration,
    EnvironmentConfiguration,
    YAMLConfiguration,
    load_yaml_file
)

from .combined import (
    ConfigData,
    CombinedConfiguration
)

from .models import (
    SourceDefinition,
    CombinedDefinition
)

from .validation import (
    ConfigurationValidator,
    ConfigurationValidationError
)

from .builder import CombinedConfigurationBuilder

from .utils import (
    load_combined_configuration,
    load_yaml_configuration,
    load_layered_configuration,
    create_combined_builder
)

__all__ = [
    # Base
    'AbstractConfiguration',
    'HierarchicalConfiguration',
    'convert_to_hierarchical',

    # Sources
    'MapConfiguration',
    'EnvironmentConfiguration',
    'YAMLConfiguration',
    'load_yaml_file',

    # Combined
    'ConfigData',
    'CombinedConfiguration',

    # Models
    'SourceDefinition',
    'CombinedDefinition',

    # Validation
    'ConfigurationValidator',
    'ConfigurationValidationError',

    # Builder
    'CombinedConfigurationBuilder',

    # Utilities
    'load_combined_configuration',
    'load_yaml_configuration',
    'load_layered_configuration',
    'create_combined_builder'
]
