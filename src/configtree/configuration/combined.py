"""
Combined configuration.

A ``CombinedConfiguration`` merges the trees of an ordered list of child
configurations into one tree using a node combiner. The combined tree is built
lazily: adding or removing children, changing the combiner and change events
of the children only invalidate it, and it is rebuilt on the next access.
"""

import logging
import threading
from typing import Dict, List, Optional, Set, Union

from ..events import ConfigurationEvent, EventType
from ..exceptions import ConfigurationStateError, InvalidKeyError
from ..tree import DEFAULT_ENGINE, ExpressionEngine, Node, NodeCombiner, UnionCombiner, print_tree
from .base import AbstractConfiguration
from .hierarchical import HierarchicalConfiguration, convert_to_hierarchical

logger = logging.getLogger(__name__)


class ConfigData:
    """A child configuration of a combined configuration with its name and position."""

    def __init__(self, configuration: AbstractConfiguration, name: Optional[str] = None, at: Optional[str] = None):
        self.configuration = configuration
        self.name = name
        self.at = at
        self.at_path = self._parse_at(at)
        self.root_node: Optional[Node] = None

    @staticmethod
    def _parse_at(at: Optional[str]) -> List[str]:
        path = []
        for segment in DEFAULT_ENGINE.parse_key(at):
            if segment.is_attribute:
                raise InvalidKeyError(f"Position of a configuration must not contain attributes: {at}", key=at)
            path.append(segment.name)
        return path

    def transform(self, conversion_engine: Optional[ExpressionEngine] = None) -> Node:
        """
        Return a copy of the child's tree placed at the configured position.

        Flat configurations are converted to a tree first; their keys are
        split using the conversion engine.
        """
        source_root = convert_to_hierarchical(self.configuration, conversion_engine).get_root_node()
        self.root_node = source_root

        result = Node()
        parent = result
        for name in self.at_path:
            parent = parent.add_child(Node(name))
        parent.append_children(source_root)
        parent.append_attributes(source_root)
        return result


class CombinedConfiguration(HierarchicalConfiguration):
    """
    Hierarchical configuration combining several child configurations.

    Children are kept in the order they were added; the combiner is applied
    from left to right, so earlier children have priority for an
    ``OverrideCombiner``. Children can be named and placed at a path of the
    combined tree.

    The combined configuration registers itself as event listener at all its
    children and fires a ``COMBINED_INVALIDATE`` event whenever its tree
    becomes invalid. As it is a configuration itself, it can be nested in
    another combined configuration.

    Changes made directly on the combined configuration only affect the
    current combined tree and are lost on the next rebuild.
    """

    def __init__(self, node_combiner: Optional[NodeCombiner] = None):
        super().__init__()
        self._node_combiner: NodeCombiner = node_combiner or UnionCombiner()
        self._configurations: List[ConfigData] = []
        self._named_configurations: Dict[str, AbstractConfiguration] = {}
        self._conversion_expression_engine: Optional[ExpressionEngine] = None
        self._combined_root: Optional[Node] = None
        self._lock = threading.RLock()

    # Combiner and conversion

    @property
    def node_combiner(self) -> NodeCombiner:
        return self._node_combiner

    @node_combiner.setter
    def node_combiner(self, combiner: NodeCombiner) -> None:
        self.set_node_combiner(combiner)

    def set_node_combiner(self, combiner: NodeCombiner) -> None:
        if combiner is None:
            raise ConfigurationStateError("Node combiner must not be None")
        with self._lock:
            self._node_combiner = combiner
        self.invalidate()

    @property
    def conversion_expression_engine(self) -> Optional[ExpressionEngine]:
        """Engine used to split the keys of flat child configurations into paths."""
        return self._conversion_expression_engine

    @conversion_expression_engine.setter
    def conversion_expression_engine(self, engine: Optional[ExpressionEngine]) -> None:
        with self._lock:
            self._conversion_expression_engine = engine
        self.invalidate()

    # Children

    def add_configuration(
        self,
        config: AbstractConfiguration,
        name: Optional[str] = None,
        at: Optional[str] = None
    ) -> None:
        """
        Add a child configuration.

        Args:
            config: The configuration to add
            name: Optional name, must be unique among the children
            at: Optional path in the combined tree where the content is placed

        Raises:
            ConfigurationStateError: If config is None or the name is already used
        """
        if config is None:
            raise ConfigurationStateError("Added configuration must not be None")

        with self._lock:
            if name is not None and name in self._named_configurations:
                raise ConfigurationStateError(
                    f"A configuration with the name '{name}' already exists in this combined configuration",
                    configuration_name=name
                )
            data = ConfigData(config, name, at)
            self._configurations.append(data)
            if name is not None:
                self._named_configurations[name] = config
            config.add_event_listener(self.configuration_changed)

        logger.debug(f"Added configuration {type(config).__name__} (name={name}, at={at})")
        self.invalidate()

    def remove_configuration(self, target: Union[AbstractConfiguration, str, int]) -> bool:
        """Remove a child given by the configuration itself, its name or its index."""
        with self._lock:
            if isinstance(target, str):
                config = self._named_configurations.get(target)
                index = self._index_of(config) if config is not None else -1
            elif isinstance(target, int) and not isinstance(target, bool):
                index = target if 0 <= target < len(self._configurations) else -1
            else:
                index = self._index_of(target)

            if index < 0:
                return False
            self.remove_configuration_at(index)
            return True

    def remove_configuration_at(self, index: int) -> AbstractConfiguration:
        """Remove the child at the given index and return it."""
        with self._lock:
            self._check_index(index)
            data = self._configurations.pop(index)
            if data.name is not None:
                del self._named_configurations[data.name]
            data.configuration.remove_event_listener(self.configuration_changed)

        logger.debug(f"Removed configuration {type(data.configuration).__name__} (name={data.name})")
        self.invalidate()
        return data.configuration

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._configurations):
            raise IndexError(f"Configuration index out of range: {index} (size {len(self._configurations)})")

    def _index_of(self, config: AbstractConfiguration) -> int:
        for index, data in enumerate(self._configurations):
            if data.configuration is config:
                return index
        return -1

    def get_configuration(self, index_or_name: Union[int, str]) -> Optional[AbstractConfiguration]:
        """Return a child by index, or by name (None for an unknown name)."""
        with self._lock:
            if isinstance(index_or_name, str):
                return self._named_configurations.get(index_or_name)
            self._check_index(index_or_name)
            return self._configurations[index_or_name].configuration

    def get_number_of_configurations(self) -> int:
        with self._lock:
            return len(self._configurations)

    def get_configurations(self) -> List[AbstractConfiguration]:
        with self._lock:
            return [data.configuration for data in self._configurations]

    def get_configuration_names(self) -> Set[str]:
        """Return the names of all named children."""
        with self._lock:
            return set(self._named_configurations)

    def get_configuration_name_list(self) -> List[Optional[str]]:
        """Return the names of all children in order, None for unnamed ones."""
        with self._lock:
            return [data.name for data in self._configurations]

    def clear(self) -> None:
        """Remove all child configurations."""
        self.fire_event(EventType.CLEAR, before_update=True)
        with self._lock:
            for data in self._configurations:
                data.configuration.remove_event_listener(self.configuration_changed)
            self._configurations = []
            self._named_configurations = {}
        self.invalidate()
        self.fire_event(EventType.CLEAR)

    # Invalidation and rebuild

    def invalidate(self) -> None:
        """Discard the combined tree; it is rebuilt on the next access."""
        with self._lock:
            self._combined_root = None
        self.fire_event(EventType.COMBINED_INVALIDATE)

    def configuration_changed(self, event: ConfigurationEvent) -> None:
        """Listener registered at all children."""
        if not event.before_update:
            self.invalidate()

    def get_root_node(self) -> Node:
        with self._lock:
            if self._combined_root is None:
                self._combined_root = self._construct_combined_node()
            return self._combined_root

    def set_root_node(self, root: Node) -> None:
        raise ConfigurationStateError("The root node of a combined configuration cannot be set")

    def _construct_combined_node(self) -> Node:
        if not self._configurations:
            logger.debug("No configurations defined, using an empty root node")
            return Node()

        node = None
        for data in self._configurations:
            transformed = data.transform(self._conversion_expression_engine)
            node = transformed if node is None else self._node_combiner.combine(node, transformed)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Constructed combined node tree:\n{print_tree(node)}")
        return node

    # Sources

    def get_sources(self, key: str) -> List[AbstractConfiguration]:
        """
        Return the configurations that define the given key.

        Nodes created by the combiner (for instance when merging two nodes of
        the same name) belong to the combined configuration itself.
        """
        if key is None:
            raise ValueError("Key must not be None")

        with self._lock:
            sources: List[AbstractConfiguration] = []
            for result in self.fetch_nodes(key):
                for config in self._find_source_configurations(result.node):
                    if not any(config is source for source in sources):
                        sources.append(config)
            return sources

    def get_source(self, key: str) -> Optional[AbstractConfiguration]:
        """
        Return the configuration that defines the given key, or None if the
        key is not defined.

        Raises:
            ConfigurationStateError: If the key is defined by several children
        """
        sources = self.get_sources(key)
        if not sources:
            return None
        if len(sources) > 1:
            raise ConfigurationStateError(f"The key {key} is defined by multiple sources", key=key)
        return sources[0]

    def _find_source_configurations(self, node: Node) -> List[AbstractConfiguration]:
        found = [
            data.configuration for data in self._configurations
            if data.root_node is not None
            and any(node.is_copy_of(source_node) for source_node in data.root_node.iter_subtree())
        ]
        return found or [self]
