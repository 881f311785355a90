"""
Node trees, key expressions and node combiners.
"""

from .node import Node
from .expression import (
    ExpressionSymbols, ExpressionEngine, KeySegment, QueryResult, NodeAddData,
    DEFAULT_SYMBOLS, DEFAULT_ENGINE
)
from .combiners import (
    NodeCombiner, UnionCombiner, OverrideCombiner, FunctionCombiner, create_combiner
)
from .utils import walk_bfs, find_node, print_tree, node_from_mapping, node_to_mapping

__all__ = [
    'Node',
    'ExpressionSymbols',
    'ExpressionEngine',
    'KeySegment',
    'QueryResult',
    'NodeAddData',
    'DEFAULT_SYMBOLS',
    'DEFAULT_ENGINE',
    'NodeCombiner',
    'UnionCombiner',
    'OverrideCombiner',
    'FunctionCombiner',
    'create_combiner',
    'walk_bfs',
    'find_node',
    'print_tree',
    'node_from_mapping',
    'node_to_mapping',
]
