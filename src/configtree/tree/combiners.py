"""
Node combiners.

A node combiner merges two node trees into a new one. The first (left) tree
has the higher priority. Combiners never modify their input trees; every node
of the result is either newly created or a deep copy of an input node.
"""

from abc import ABC, abstractmethod
from typing import Callable, FrozenSet, Optional, Set, Union

from .node import Node


class NodeCombiner(ABC):
    """
    Base class for combining two node trees.

    Maintains a registry of list node names. Children with such names are
    never merged with their counterparts, because configuration lists are
    ordered multi-valued data rather than named structures.
    """

    def __init__(self):
        self._list_nodes: Set[str] = set()

    def add_list_node(self, name: str) -> None:
        """Register a node name whose nodes must not be merged by name."""
        if not name:
            raise ValueError("List node name must not be empty")
        self._list_nodes.add(name)

    @property
    def list_nodes(self) -> FrozenSet[str]:
        return frozenset(self._list_nodes)

    def is_list_node(self, node: Node) -> bool:
        return node.name in self._list_nodes

    @abstractmethod
    def combine(self, node1: Node, node2: Node) -> Node:
        """Combine two root nodes into a new root; ``node1`` has priority."""
        pass


class UnionCombiner(NodeCombiner):
    """
    Combines two trees into their union.

    Nodes that exist exactly once on both sides and carry no value are merged
    recursively. Everything else from both sides is kept, the nodes of the
    first tree coming first, so a key defined in both trees yields both values
    with the first tree's value in front.
    """

    def combine(self, node1: Node, node2: Node) -> Node:
        result = Node(node1.name)
        # attributes of the first node take precedence
        result.append_attributes(node2)
        result.append_attributes(node1)

        children2 = node2.get_children()
        for child1 in node1.get_children():
            child2 = self._find_combine_node(node1, node2, child1)
            if child2 is not None:
                result.add_child(self.combine(child1, child2))
                children2 = [child for child in children2 if child is not child2]
            else:
                result.add_child(child1.copy())

        for child in children2:
            result.add_child(child.copy())

        return result

    def _find_combine_node(self, node1: Node, node2: Node, child: Node) -> Optional[Node]:
        if (child.value is None and not self.is_list_node(child)
                and node1.child_count(child.name) == 1
                and node2.child_count(child.name) == 1):
            child2 = node2.get_children(child.name)[0]
            if child2.value is None:
                return child2
        return None


class OverrideCombiner(NodeCombiner):
    """
    Combines two trees so that the first one overrides the second.

    Nodes that exist exactly once on both sides are merged recursively, so a
    value from the second tree only becomes visible where the first tree does
    not define that node. Nodes that occur several times, or list nodes, are
    taken from the first tree as a whole and hide their counterparts.
    """

    def combine(self, node1: Node, node2: Node) -> Node:
        result = Node(node1.name)

        for child in node1.get_children():
            child2 = self._can_combine(node1, node2, child)
            if child2 is not None:
                result.add_child(self.combine(child, child2))
            else:
                result.add_child(child.copy())

        for child in node2.get_children():
            if node1.child_count(child.name) < 1:
                result.add_child(child.copy())

        self._add_attributes(result, node1, node2)
        result.value = node1.value if node1.value is not None else node2.value
        return result

    def _add_attributes(self, result: Node, node1: Node, node2: Node) -> None:
        result.append_attributes(node1)
        for name, value in node2.attributes.items():
            if not node1.has_attribute(name):
                result.set_attribute(name, value)

    def _can_combine(self, node1: Node, node2: Node, child: Node) -> Optional[Node]:
        if (node2.child_count(child.name) == 1
                and node1.child_count(child.name) == 1
                and not self.is_list_node(child)):
            return node2.get_children(child.name)[0]
        return None


CombineFunction = Callable[[Node, Node, NodeCombiner], Node]


class FunctionCombiner(NodeCombiner):
    """
    Combiner delegating to a user supplied function.

    The function receives both nodes and the combiner itself, which gives it
    access to the list node registry. The input nodes must be treated as read
    only; the returned tree must not share nodes with them.
    """

    def __init__(self, function: CombineFunction):
        super().__init__()
        if not callable(function):
            raise ValueError("Combine function must be callable")
        self._function = function

    def combine(self, node1: Node, node2: Node) -> Node:
        return self._function(node1, node2, self)


COMBINER_TYPES = {
    "union": UnionCombiner,
    "override": OverrideCombiner,
}


def create_combiner(kind: Union[str, CombineFunction, NodeCombiner] = "union") -> NodeCombiner:
    """Create a combiner from a type name, a combine function or an existing combiner."""
    if isinstance(kind, NodeCombiner):
        return kind
    if isinstance(kind, str):
        combiner_class = COMBINER_TYPES.get(kind.lower())
        if combiner_class is None:
            raise ValueError(f"Unknown combiner type: {kind}. Supported types: {sorted(COMBINER_TYPES)}")
        return combiner_class()
    if callable(kind):
        return FunctionCombiner(kind)
    raise ValueError(f"Cannot create a combiner from {kind!r}")
