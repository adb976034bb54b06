"""Prompt tree to Markdown conversion."""

import re
from typing import List, NamedTuple, Optional

from promptmap.tree import NodeType, TreeNode


class SerializeOptions(NamedTuple):

    """Options for serializing a tree to Markdown."""

    # If false, each node's type is inferred from its depth instead.
    use_explicit_types: bool = True


def inferred_type(depth: int) -> NodeType:
    """Return the node type implied by a depth in the tree."""
    if depth < 4:
        return NodeType.heading(depth + 1)
    return NodeType.LIST_ITEM


def prefix(node_type: NodeType) -> str:
    level = node_type.heading_level
    if level is not None:
        return "#" * level + " "
    if node_type is NodeType.LIST_ITEM:
        return "- "
    return ""


def serialize_tree(tree: TreeNode, use_explicit_types: bool = True) -> str:
    """Serialize a tree to Markdown.

    Nodes are written in pre-order. Headings and paragraphs are separated by
    blank lines, and a list is separated from the text line before it. List
    items are indented two spaces for each list item above them, so nested
    lists read back with the same nesting.
    """
    return serialize(tree, SerializeOptions(use_explicit_types))


def serialize_tree_inferred(tree: TreeNode) -> str:
    """Serialize a tree with node types inferred from depth."""
    return serialize(tree, SerializeOptions(use_explicit_types=False))


def serialize(tree: TreeNode, options: SerializeOptions) -> str:
    lines: List[str] = []
    # Nesting of the last list item written, or None after any other line.
    last_item_depth: Optional[int] = None

    def go(node: TreeNode, depth: int, list_depth: int):
        nonlocal last_item_depth
        if options.use_explicit_types:
            node_type = node.node_type
        else:
            node_type = inferred_type(depth)
        if node_type is NodeType.LIST_ITEM:
            # A list right under a text line, or an empty item right under its
            # parent item, would otherwise read back as a setext underline.
            if last_item_depth is None or (
                not node.content and last_item_depth < list_depth
            ):
                lines.append("")
            indent = "  " * list_depth
            lines.append(f"{indent}{prefix(node_type)}{node.content}")
            last_item_depth = list_depth
            list_depth += 1
        else:
            lines.append("")
            lines.append(f"{prefix(node_type)}{node.content}")
            last_item_depth = None
            list_depth = 0
        for child in node.children:
            go(child, depth + 1, list_depth)

    go(tree, 0, 0)
    text = "\n".join(lines).lstrip("\n")
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.rstrip("\n") + "\n"
