"""
Configuration node tree.

A hierarchical configuration is represented as a tree of ``Node`` objects.
Each node has a name, an optional value, an ordered list of children and a
collection of attributes.
"""

from typing import Any, Dict, Iterator, List, Optional


class Node:
    """
    A single node of a configuration tree.

    Children are owned exclusively by their parent: a node can only be added
    to one parent at a time. Copies remember the node they were created from
    (``origin``) so that combined trees can be traced back to their sources.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        value: Any = None,
        children: Optional[List["Node"]] = None,
        attributes: Optional[Dict[str, Any]] = None
    ):
        self.name = name
        self.value = value
        self.parent: Optional["Node"] = None
        self.origin: Optional["Node"] = None
        self._children: List["Node"] = []
        self._attributes: Dict[str, Any] = dict(attributes or {})

        for child in children or []:
            self.add_child(child)

    @property
    def children(self) -> List["Node"]:
        return list(self._children)

    @property
    def attributes(self) -> Dict[str, Any]:
        return dict(self._attributes)

    def get_children(self, name: Optional[str] = None) -> List["Node"]:
        """Get all children, or only the children with the given name."""
        if name is None:
            return list(self._children)
        return [child for child in self._children if child.name == name]

    def child_count(self, name: Optional[str] = None) -> int:
        if name is None:
            return len(self._children)
        return sum(1 for child in self._children if child.name == name)

    def has_children(self) -> bool:
        return bool(self._children)

    def add_child(self, child: "Node") -> "Node":
        """Append a child node and take ownership of it."""
        if child is None:
            raise ValueError("Child node must not be None")
        if child.parent is not None:
            raise ValueError(f"Node '{child.name}' already belongs to parent '{child.parent.name}'")
        child.parent = self
        self._children.append(child)
        return child

    def remove_child(self, child: "Node") -> bool:
        for index, existing in enumerate(self._children):
            if existing is child:
                del self._children[index]
                child.parent = None
                return True
        return False

    def remove_children(self) -> None:
        for child in self._children:
            child.parent = None
        self._children = []

    def append_children(self, other: "Node") -> None:
        """Append copies of all children of another node."""
        if other is None:
            raise ValueError("Source node must not be None")
        for child in other._children:
            self.add_child(child.copy())

    def append_attributes(self, other: "Node") -> None:
        """Copy all attributes of another node, replacing existing ones of the same name."""
        if other is None:
            raise ValueError("Source node must not be None")
        self._attributes.update(other._attributes)

    def set_attribute(self, name: str, value: Any) -> None:
        if name is None:
            raise ValueError("Attribute name must not be None")
        self._attributes[name] = value

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self._attributes.get(name, default)

    def has_attribute(self, name: str) -> bool:
        return name in self._attributes

    def remove_attribute(self, name: str) -> bool:
        if name in self._attributes:
            del self._attributes[name]
            return True
        return False

    def is_empty(self) -> bool:
        """A node is empty if it carries neither a value, children nor attributes."""
        return self.value is None and not self._children and not self._attributes

    def copy(self) -> "Node":
        """Create a deep, structurally independent copy of this subtree."""
        result = Node(self.name, self.value, attributes=self._attributes)
        result.origin = self.origin if self.origin is not None else self
        for child in self._children:
            result.add_child(child.copy())
        return result

    def is_copy_of(self, other: "Node") -> bool:
        """Check whether this node is ``other`` or was copied from the same original."""
        if self is other:
            return True
        return self.origin is not None and (self.origin is other or self.origin is other.origin)

    def iter_subtree(self) -> Iterator["Node"]:
        """Iterate over this node and all its descendants in depth-first order."""
        yield self
        for child in self._children:
            yield from child.iter_subtree()

    def __repr__(self) -> str:
        return (f"Node(name={self.name!r}, value={self.value!r}, "
                f"children={len(self._children)}, attributes={self._attributes!r})")
