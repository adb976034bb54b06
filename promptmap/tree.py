"""Labeled tree used for Markdown interchange."""

from __future__ import annotations

import enum
import sys
from typing import Any, Dict, Iterator, List, Optional, TextIO


class NodeType(enum.Enum):

    """Kinds of text blocks a tree node can represent."""

    HEADING_1 = "heading-1"
    HEADING_2 = "heading-2"
    HEADING_3 = "heading-3"
    HEADING_4 = "heading-4"
    LIST_ITEM = "list-item"
    PARAGRAPH = "paragraph"

    def __str__(self) -> str:
        return self.value

    @staticmethod
    def heading(level: int) -> NodeType:
        """Return the heading type for a level, clamping to 1-4."""
        return HEADINGS[max(1, min(4, level)) - 1]

    @property
    def heading_level(self) -> Optional[int]:
        """Return the heading level, or None if this is not a heading."""
        if self in HEADINGS:
            return HEADINGS.index(self) + 1
        return None


HEADINGS = (
    NodeType.HEADING_1,
    NodeType.HEADING_2,
    NodeType.HEADING_3,
    NodeType.HEADING_4,
)

# Returned by node_depth when the node is not in the tree.
NOT_FOUND = -1


class TreeNode:

    """A node in a prompt tree.

    Each node owns its children, which are kept in document order. The
    metadata mapping is opaque and carried through conversions untouched.
    """

    def __init__(
        self,
        id: str,
        content: str,
        node_type: NodeType,
        children: Optional[List[TreeNode]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        self.id = id
        self.content = content
        self.node_type = node_type
        self.children: List[TreeNode] = children if children is not None else []
        self.metadata = metadata

    def __repr__(self) -> str:
        return (
            f"TreeNode(id={self.id!r}, content={self.content!r}, "
            f"node_type={self.node_type}, children={len(self.children)})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TreeNode):
            return NotImplemented
        return (
            self.id == other.id
            and self.content == other.content
            and self.node_type is other.node_type
            and self.metadata == other.metadata
            and self.children == other.children
        )

    def walk(self) -> Iterator[TreeNode]:
        """Iterate over this node and its descendants in pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def size(self) -> int:
        return sum(1 for _ in self.walk())

    def dump(self, out: TextIO = sys.stdout):
        """Dump a textual outline of the tree to out."""

        def go(node: TreeNode, indent: int):
            space = "    " * indent
            print(f"{space}[{node.node_type}] {node.content}", file=out)
            for child in node.children:
                go(child, indent + 1)

        go(self, 0)


def find_node(tree: TreeNode, node_id: str) -> Optional[TreeNode]:
    """Find a node by id, searching in pre-order."""
    for node in tree.walk():
        if node.id == node_id:
            return node
    return None


def node_depth(tree: TreeNode, node_id: str) -> int:
    """Return the number of edges from the root to a node, or NOT_FOUND."""

    def go(node: TreeNode, depth: int) -> int:
        if node.id == node_id:
            return depth
        for child in node.children:
            found = go(child, depth + 1)
            if found != NOT_FOUND:
                return found
        return NOT_FOUND

    return go(tree, 0)


def same_shape(a: TreeNode, b: TreeNode) -> bool:
    """Compare two trees by content, type and child order, ignoring ids."""
    if a.content != b.content or a.node_type is not b.node_type:
        return False
    if len(a.children) != len(b.children):
        return False
    return all(same_shape(x, y) for x, y in zip(a.children, b.children))
