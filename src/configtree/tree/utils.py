"""
Helper functions for working with node trees.
"""

from collections import deque
from typing import Any, Callable, Dict, Iterator, List, Optional

from .node import Node


def walk_bfs(root: Optional[Node]) -> Iterator[Node]:
    """Iterate over a tree in breadth-first order."""
    if root is None:
        return
    queue = deque([root])
    while queue:
        node = queue.popleft()
        yield node
        queue.extend(node.get_children())


def find_node(root: Optional[Node], predicate: Callable[[Node], bool]) -> Optional[Node]:
    """Return the first node (breadth-first) matching the predicate."""
    for node in walk_bfs(root):
        if predicate(node):
            return node
    return None


def print_tree(root: Node, indent: str = "  ") -> str:
    """Render a tree as indented text, mainly for debug logging."""
    lines: List[str] = []
    _print_node(root, 0, indent, lines)
    return "\n".join(lines)


def _print_node(node: Node, level: int, indent: str, lines: List[str]) -> None:
    line = f"{indent * level}<{node.name or ''}"
    for name, value in node.attributes.items():
        line += f" {name}='{value}'"
    if node.has_children():
        lines.append(line + ">")
        if node.value is not None:
            lines.append(f"{indent * (level + 1)}{node.value}")
        for child in node.get_children():
            _print_node(child, level + 1, indent, lines)
        lines.append(f"{indent * level}</{node.name or ''}>")
    elif node.value is not None:
        lines.append(f"{line}>{node.value}</{node.name or ''}>")
    else:
        lines.append(line + "/>")


def node_from_mapping(data: Optional[Dict[str, Any]], name: Optional[str] = None) -> Node:
    """
    Build a node tree from nested mappings as produced by a YAML parser.

    Mappings become nodes with children, lists become repeated sibling nodes
    with the same name and everything else becomes a leaf value.
    """
    root = Node(name)
    for key, value in (data or {}).items():
        for child in _construct_hierarchy(str(key), value):
            root.add_child(child)
    return root


def _construct_hierarchy(name: str, element: Any) -> List[Node]:
    if isinstance(element, dict):
        return [node_from_mapping(element, name)]
    if isinstance(element, (list, tuple)):
        nodes: List[Node] = []
        for item in element:
            nodes.extend(_construct_hierarchy(name, item))
        return nodes
    return [Node(name, element)]


def node_to_mapping(node: Node) -> Dict[str, Any]:
    """
    Convert the children of a node back into nested mappings.

    Repeated sibling names are collected into lists. Attributes are not
    represented, and neither is the value of a node that also has children.
    A node with neither value nor children becomes None, so an empty mapping
    read by ``node_from_mapping`` is written back as a null value.
    """
    result: Dict[str, Any] = {}
    collected = set()
    for child in node.get_children():
        value = node_to_mapping(child) if child.has_children() else child.value
        if child.name not in result:
            result[child.name] = value
        elif child.name in collected:
            result[child.name].append(value)
        else:
            result[child.name] = [result[child.name], value]
            collected.add(child.name)
    return result
