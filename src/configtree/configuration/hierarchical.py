"""
Tree-backed configuration.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional

from ..events import EventType
from ..exceptions import ConfigurationStateError
from ..tree import DEFAULT_ENGINE, ExpressionEngine, Node, QueryResult
from .base import AbstractConfiguration

logger = logging.getLogger(__name__)


class HierarchicalConfiguration(AbstractConfiguration):
    """
    Configuration that stores its properties in a node tree.

    Keys are interpreted by an expression engine, so they can navigate the
    tree (``database.tables.table(1).name``) and address attributes
    (``server[@port]``). All tree access goes through ``get_root_node`` so
    that subclasses can compute the tree on demand.
    """

    def __init__(self, root: Optional[Node] = None, expression_engine: Optional[ExpressionEngine] = None):
        super().__init__()
        self._root = root if root is not None else Node()
        self._expression_engine = expression_engine

    @property
    def expression_engine(self) -> ExpressionEngine:
        return self._expression_engine or DEFAULT_ENGINE

    @expression_engine.setter
    def expression_engine(self, engine: Optional[ExpressionEngine]) -> None:
        self._expression_engine = engine

    def get_root_node(self) -> Node:
        return self._root

    def set_root_node(self, root: Node) -> None:
        if root is None:
            raise ValueError("Root node must not be None")
        self._root = root

    def fetch_nodes(self, key: Optional[str]) -> List[QueryResult]:
        """Evaluate a key against the tree of this configuration."""
        return self.expression_engine.query(self.get_root_node(), key)

    # Primitives

    def _get_property_direct(self, key: str) -> Any:
        values = [result.value for result in self.fetch_nodes(key) if result.value is not None]
        if not values:
            return None
        return values[0] if len(values) == 1 else values

    def _add_property_direct(self, key: str, value: Any) -> None:
        data = self.expression_engine.prepare_add(self.get_root_node(), key)
        parent = data.parent
        for name in data.path_nodes:
            parent = parent.add_child(Node(name))
        if data.is_attribute:
            parent.set_attribute(data.new_node_name, value)
        else:
            parent.add_child(Node(data.new_node_name, value))

    def _set_property_direct(self, key: str, value: Any) -> None:
        # existing nodes are reused in order, surplus values are added and
        # surplus nodes are cleared
        if isinstance(value, (list, tuple)):
            values = list(value)
        else:
            values = [] if value is None else [value]

        results = self.fetch_nodes(key)
        for result, item in zip(results, values):
            if result.is_attribute_result:
                result.node.set_attribute(result.attribute_name, item)
            else:
                result.node.value = item
        for item in values[len(results):]:
            self._add_property_direct(key, item)
        for result in results[len(values):]:
            self._clear_result(result)

    def _clear_property_direct(self, key: str) -> None:
        for result in self.fetch_nodes(key):
            self._clear_result(result)

    def _clear_result(self, result: QueryResult) -> None:
        if result.is_attribute_result:
            result.node.remove_attribute(result.attribute_name)
        else:
            result.node.value = None
        self._remove_if_empty(result.node)

    def _remove_if_empty(self, node: Node) -> None:
        while node.parent is not None and node.is_empty():
            parent = node.parent
            parent.remove_child(node)
            node = parent

    def _iter_keys(self) -> Iterator[str]:
        keys: Dict[str, None] = {}
        self._collect_keys(self.get_root_node(), "", keys)
        return iter(keys)

    def _collect_keys(self, node: Node, key: str, keys: Dict[str, None]) -> None:
        engine = self.expression_engine
        if key and node.value is not None:
            keys[key] = None
        for name in node.attributes:
            keys[engine.attribute_key(key, name)] = None
        for child in node.get_children():
            self._collect_keys(child, engine.node_key(child, key), keys)

    # Hierarchical operations

    def keys(self, prefix: Optional[str] = None) -> List[str]:
        """
        Get all defined keys in depth-first order, or the keys below the nodes
        selected by ``prefix``.
        """
        if prefix is None:
            return list(self._iter_keys())

        keys: Dict[str, None] = {}
        for result in self.fetch_nodes(prefix):
            if result.is_attribute_result:
                keys[prefix] = None
            else:
                self._collect_keys(result.node, prefix, keys)
        return list(keys)

    def clear(self) -> None:
        self.fire_event(EventType.CLEAR, before_update=True)
        root = self.get_root_node()
        root.remove_children()
        root.value = None
        for name in root.attributes:
            root.remove_attribute(name)
        self.fire_event(EventType.CLEAR)

    def clear_tree(self, key: str) -> None:
        """Remove the nodes selected by the key together with all their descendants."""
        self.fire_event(EventType.CLEAR_TREE, key, None, before_update=True)
        removed: List[Node] = []
        for result in self.fetch_nodes(key):
            if result.is_attribute_result:
                result.node.remove_attribute(result.attribute_name)
                self._remove_if_empty(result.node)
            elif result.node.parent is not None:
                parent = result.node.parent
                parent.remove_child(result.node)
                removed.append(result.node)
                self._remove_if_empty(parent)
        self.fire_event(EventType.CLEAR_TREE, key, removed)

    def is_empty(self) -> bool:
        root = self.get_root_node()
        return not any(node.value is not None or node.attributes for node in root.iter_subtree())

    def get_max_index(self, key: str) -> int:
        """Return the highest index usable with the key, or -1 if the key selects nothing."""
        return len(self.fetch_nodes(key)) - 1

    def configuration_at(self, key: str) -> "HierarchicalConfiguration":
        """
        Return a configuration for the sub tree selected by the key.

        The key must select exactly one node. The returned configuration works
        on a copy of that sub tree.

        Raises:
            ConfigurationStateError: If the key selects no node or several nodes
        """
        results = [result for result in self.fetch_nodes(key) if not result.is_attribute_result]
        if len(results) != 1:
            raise ConfigurationStateError(
                f"Passed in key must select exactly one node (found {len(results)}): {key}",
                key=key
            )
        return HierarchicalConfiguration(results[0].node.copy(), self._expression_engine)

    def configurations_at(self, key: str) -> List["HierarchicalConfiguration"]:
        """Return a configuration for each node selected by the key."""
        return [
            HierarchicalConfiguration(result.node.copy(), self._expression_engine)
            for result in self.fetch_nodes(key)
            if not result.is_attribute_result
        ]

    def copy(self) -> "HierarchicalConfiguration":
        """Create an independent configuration with a copy of the current tree. Listeners are not copied."""
        return HierarchicalConfiguration(self.get_root_node().copy(), self._expression_engine)


def convert_to_hierarchical(
    config: AbstractConfiguration,
    engine: Optional[ExpressionEngine] = None
) -> HierarchicalConfiguration:
    """
    Return a hierarchical view of a configuration.

    Hierarchical configurations are returned as they are. For flat
    configurations a new tree is built by adding all properties, so that keys
    are split into path nodes by the given expression engine.
    """
    if isinstance(config, HierarchicalConfiguration):
        return config

    result = HierarchicalConfiguration(expression_engine=engine)
    for key in config.keys():
        result.add_property(key, config.get_property(key))
    logger.debug(f"Converted {type(config).__name__} with {config.size()} keys into a node tree")
    return result
