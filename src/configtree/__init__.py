"""
configtree

Hierarchical configuration trees with key expressions, node combiners and
combined configurations that merge several sources into one lazily rebuilt
tree.
"""

from .exceptions import (
    ConfigTreeException,
    ConfigurationError,
    ConfigurationStateError,
    InvalidKeyError,
    ConversionError
)
from .events import EventType, ConfigurationEvent, EventSource
from .tree import (
    Node,
    ExpressionEngine,
    ExpressionSymbols,
    NodeCombiner,
    UnionCombiner,
    OverrideCombiner,
    FunctionCombiner,
    create_combiner
)
from .configuration import (
    AbstractConfiguration,
    HierarchicalConfiguration,
    MapConfiguration,
    EnvironmentConfiguration,
    YAMLConfiguration,
    CombinedConfiguration,
    CombinedConfigurationBuilder,
    ConfigurationValidationError,
    load_combined_configuration,
    load_yaml_configuration,
    load_layered_configuration,
    create_combined_builder
)

__version__ = "0.1.0"

__all__ = [
    'ConfigTreeException',
    'ConfigurationError',
    'ConfigurationStateError',
    'InvalidKeyError',
    'ConversionError',
    'EventType',
    'ConfigurationEvent',
    'EventSource',
    'Node',
    'ExpressionEngine',
    'ExpressionSymbols',
    'NodeCombiner',
    'UnionCombiner',
    'OverrideCombiner',
    'FunctionCombiner',
    'create_combiner',
    'AbstractConfiguration',
    'HierarchicalConfiguration',
    'MapConfiguration',
    'EnvironmentConfiguration',
    'YAMLConfiguration',
    'CombinedConfiguration',
    'CombinedConfigurationBuilder',
    'ConfigurationValidationError',
    'load_combined_configuration',
    'load_yaml_configuration',
    'load_layered_configuration',
    'create_combined_builder',
]
