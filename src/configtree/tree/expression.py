"""
Expression engine for configuration keys.

Translates between key strings such as ``database.tables.table(0)[@id]`` and
locations in a node tree. The engine parses keys into segments, evaluates
them against a tree and renders node paths back into keys.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from ..exceptions import InvalidKeyError
from .node import Node


@dataclass(frozen=True)
class ExpressionSymbols:
    """The symbols used by an expression engine to structure keys."""
    property_delimiter: str = "."
    escaped_delimiter: Optional[str] = ".."
    attribute_start: str = "[@"
    attribute_end: Optional[str] = "]"
    index_start: str = "("
    index_end: str = ")"

    def __post_init__(self):
        if not self.property_delimiter:
            raise ValueError("Property delimiter must not be empty")
        if not self.attribute_start:
            raise ValueError("Attribute start marker must not be empty")
        if not self.index_start or not self.index_end:
            raise ValueError("Index markers must not be empty")


DEFAULT_SYMBOLS = ExpressionSymbols()


@dataclass(frozen=True)
class KeySegment:
    """One part of a parsed key: a child name or an attribute, with an optional index."""
    name: str
    index: Optional[int] = None
    is_attribute: bool = False

    @property
    def has_index(self) -> bool:
        return self.index is not None


@dataclass
class QueryResult:
    """A node selected by a key, or an attribute of that node."""
    node: Node
    attribute_name: Optional[str] = None

    @property
    def is_attribute_result(self) -> bool:
        return self.attribute_name is not None

    @property
    def value(self) -> Any:
        if self.is_attribute_result:
            return self.node.get_attribute(self.attribute_name)
        return self.node.value


@dataclass
class NodeAddData:
    """Describes where and how new nodes must be created for an add operation."""
    parent: Node
    new_node_name: str
    is_attribute: bool = False
    path_nodes: List[str] = field(default_factory=list)


class ExpressionEngine:
    """
    Default expression engine.

    Keys consist of node names separated by the property delimiter. A name can
    be followed by an index in index markers to select one of several siblings
    with the same name, and the last part of a key can address an attribute.
    A doubled delimiter stands for a literal delimiter inside a name.
    """

    def __init__(self, symbols: ExpressionSymbols = DEFAULT_SYMBOLS):
        if symbols is None:
            raise ValueError("Symbols must not be None")
        self._symbols = symbols

    @property
    def symbols(self) -> ExpressionSymbols:
        return self._symbols

    # Parsing

    def parse_key(self, key: Optional[str]) -> List[KeySegment]:
        """Split a key into its segments. An empty key yields no segments."""
        segments: List[KeySegment] = []
        if not key:
            return segments

        text = self.trim(key)
        pos = 0
        while pos < len(text):
            pos = self._skip_delimiters(text, pos)
            if pos >= len(text):
                break
            end = self._next_part_end(text, pos)
            segments.append(self._create_segment(self._unescape(text[pos:end])))
            pos = end
        return segments

    def trim(self, key: Optional[str]) -> str:
        """Remove leading and trailing (unescaped) delimiters from a key."""
        if key is None:
            return ""
        delimiter = self._symbols.property_delimiter
        result = key
        while self._has_leading_delimiter(result):
            result = result[len(delimiter):]
        while self._has_trailing_delimiter(result):
            result = result[:-len(delimiter)]
        return result

    def is_attribute_key(self, key: Optional[str]) -> bool:
        if key is None:
            return False
        end = self._symbols.attribute_end
        return key.startswith(self._symbols.attribute_start) and (end is None or key.endswith(end))

    def construct_attribute_key(self, name: Optional[str]) -> str:
        if name is None:
            return ""
        if self.is_attribute_key(name):
            return name
        return self._symbols.attribute_start + name + (self._symbols.attribute_end or "")

    # Rendering

    def append(self, key: Optional[str], name: Optional[str], escape: bool = False) -> str:
        """Append a node name to a key, inserting a delimiter where needed."""
        base = self.trim(key)
        part = self._escape(name) if escape and name is not None else name
        part = self.trim(part)
        if base and part and not self.is_attribute_key(name):
            base += self._symbols.property_delimiter
        return base + part

    def append_index(self, key: str, index: int) -> str:
        return f"{key}{self._symbols.index_start}{index}{self._symbols.index_end}"

    def render_key(self, segments: Iterable[KeySegment]) -> str:
        """Render parsed segments back into a key string."""
        key = ""
        for segment in segments:
            if segment.is_attribute:
                key += self.construct_attribute_key(segment.name)
            else:
                key = self.append(key, segment.name, escape=True)
                if segment.has_index:
                    key = self.append_index(key, segment.index)
        return key

    def node_key(self, node: Node, parent_key: Optional[str]) -> str:
        """Return the key of a node given the key of its parent; the root has an empty key."""
        if parent_key is None:
            return ""
        return self.append(parent_key, node.name, escape=True)

    def attribute_key(self, parent_key: Optional[str], attribute_name: str) -> str:
        return self.trim(parent_key) + self.construct_attribute_key(attribute_name)

    def canonical_key(self, node: Node, parent_key: Optional[str]) -> str:
        """Return a key that selects exactly this node, including its index among equally named siblings."""
        key = self.append(parent_key, node.name or "")
        if node.parent is not None:
            siblings = node.parent.get_children(node.name)
            index = next(i for i, sibling in enumerate(siblings) if sibling is node)
            key = self.append_index(key, index)
        return key

    # Tree operations

    def query(self, root: Node, key: Optional[str]) -> List[QueryResult]:
        """
        Evaluate a key against a tree.

        Returns an empty list if the key does not select anything; the empty
        key selects the root node itself.
        """
        results: List[QueryResult] = []
        self._find_nodes(self.parse_key(key), 0, root, results)
        return results

    def prepare_add(self, root: Node, key: str) -> NodeAddData:
        """
        Determine the nodes to create for adding a property with the given key.

        The longest existing path is reused; without an explicit index the last
        of several equally named siblings is followed.
        """
        segments = self.parse_key(key)
        if not segments:
            raise InvalidKeyError("Key for add operation must be defined", key=key)

        parent = root
        pos = 0
        while pos < len(segments) - 1:
            segment = segments[pos]
            if segment.is_attribute:
                raise InvalidKeyError(f"Invalid key for add operation: {key} (attribute key in the middle)", key=key)
            children = parent.get_children(segment.name)
            index = segment.index if segment.has_index else len(children) - 1
            if index < 0 or index >= len(children):
                break
            parent = children[index]
            pos += 1

        path_nodes = []
        for segment in segments[pos:-1]:
            if segment.is_attribute:
                raise InvalidKeyError(f"Invalid key for add operation: {key} (attribute key in the middle)", key=key)
            path_nodes.append(segment.name)

        last = segments[-1]
        return NodeAddData(parent, last.name, last.is_attribute, path_nodes)

    def _find_nodes(self, segments: List[KeySegment], pos: int, node: Node, results: List[QueryResult]) -> None:
        if pos >= len(segments):
            results.append(QueryResult(node))
            return

        segment = segments[pos]
        if segment.is_attribute:
            if pos == len(segments) - 1 and node.has_attribute(segment.name):
                results.append(QueryResult(node, segment.name))
            return

        children = node.get_children(segment.name)
        if segment.has_index:
            if 0 <= segment.index < len(children):
                self._find_nodes(segments, pos + 1, children[segment.index], results)
        else:
            for child in children:
                self._find_nodes(segments, pos + 1, child, results)

    # Internal helpers

    def _create_segment(self, part: str) -> KeySegment:
        name = part
        index = None
        start = self._symbols.index_start
        idx = part.rfind(start)
        if idx > 0:
            end_idx = part.find(self._symbols.index_end, idx)
            if end_idx > idx + len(start):
                try:
                    index = int(part[idx + len(start):end_idx])
                    name = part[:idx]
                except ValueError:
                    index = None

        if self.is_attribute_key(name):
            return KeySegment(self._remove_attribute_markers(name), index, True)
        return KeySegment(name, index, False)

    def _next_part_end(self, text: str, pos: int) -> int:
        attr_idx = text.find(self._symbols.attribute_start, pos)
        if attr_idx < 0 or attr_idx == pos:
            attr_idx = len(text)
        delimiter_idx = self._next_delimiter(text, pos, attr_idx)
        if delimiter_idx < 0:
            delimiter_idx = attr_idx
        return min(attr_idx, delimiter_idx)

    def _next_delimiter(self, text: str, start: int, end: int) -> int:
        delimiter = self._symbols.property_delimiter
        escaped = self._symbols.escaped_delimiter
        offset = escaped.find(delimiter) if escaped else -1
        pos = start
        while True:
            pos = text.find(delimiter, pos)
            if pos < 0 or pos >= end:
                return -1
            escape_pos = pos - offset
            if offset >= 0 and escape_pos >= 0 and text.startswith(escaped, escape_pos):
                pos = escape_pos + len(escaped)
                continue
            return pos

    def _skip_delimiters(self, text: str, pos: int) -> int:
        delimiter = self._symbols.property_delimiter
        while pos < len(text) and self._has_leading_delimiter(text[pos:]):
            pos += len(delimiter)
        return pos

    def _has_leading_delimiter(self, key: str) -> bool:
        escaped = self._symbols.escaped_delimiter
        return key.startswith(self._symbols.property_delimiter) and not (escaped and key.startswith(escaped))

    def _has_trailing_delimiter(self, key: str) -> bool:
        escaped = self._symbols.escaped_delimiter
        return key.endswith(self._symbols.property_delimiter) and not (escaped and key.endswith(escaped))

    def _remove_attribute_markers(self, key: str) -> str:
        end = len(key) - len(self._symbols.attribute_end or "")
        return key[len(self._symbols.attribute_start):end]

    def _escape(self, name: str) -> str:
        escaped = self._symbols.escaped_delimiter
        delimiter = self._symbols.property_delimiter
        if escaped is None or delimiter not in name:
            return name
        return name.replace(delimiter, escaped)

    def _unescape(self, part: str) -> str:
        escaped = self._symbols.escaped_delimiter
        if escaped is None:
            return part
        return part.replace(escaped, self._symbols.property_delimiter)


DEFAULT_ENGINE = ExpressionEngine()
