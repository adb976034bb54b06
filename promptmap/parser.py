"""Markdown to prompt tree conversion."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from mistletoe import block_token
from mistletoe.block_token import (
    BlockToken,
    Heading,
    ListItem,
    Paragraph,
    SetextHeading,
)

from promptmap.tokens import MarkdownSyntaxError, flatten_text, parse_document
from promptmap.tree import NodeType, TreeNode

__all__ = [
    "HeadingStack",
    "IdCounter",
    "MarkdownSyntaxError",
    "ROOT_ID",
    "parse_file",
    "parse_markdown",
]

# Id of the synthetic root node every parse produces.
ROOT_ID = "root"


class IdCounter:

    """Generator for parser node ids of the form md-node-<n>.

    Each parse gets its own counter unless one is passed in, so separate
    parses never interleave ids. Call reset() to make output repeatable.
    """

    def __init__(self, seed: int = 0):
        self.value = seed

    def __repr__(self) -> str:
        return f"IdCounter(value={self.value})"

    def reset(self, seed: int = 0):
        self.value = seed

    def next_id(self) -> str:
        self.value += 1
        return f"md-node-{self.value}"


class HeadingStack:

    """The open ancestor for each heading depth during a parse.

    Entry 0 is the root. Entry d is the most recent node opened at heading
    depth d, or None if no heading of that depth is currently open. Instances
    are immutable: open() returns a new stack.
    """

    def __init__(self, entries: Tuple[Optional[TreeNode], ...]):
        assert entries and entries[0] is not None
        self.entries = entries

    @staticmethod
    def start(root: TreeNode) -> HeadingStack:
        return HeadingStack((root,))

    def __repr__(self) -> str:
        ids = ", ".join(e.id if e else "-" for e in self.entries)
        return f"HeadingStack([{ids}])"

    @property
    def root(self) -> TreeNode:
        return self.entries[0]

    @property
    def deepest(self) -> TreeNode:
        """Return the deepest open node, where body content attaches."""
        for entry in reversed(self.entries):
            if entry is not None:
                return entry
        return self.root

    def parent_for(self, depth: int) -> TreeNode:
        """Return the node a heading of the given depth attaches to.

        This is the entry at depth - 1, or the last entry if the stack is
        shorter than that. A closed entry (None) means the root.
        """
        entry = self.entries[min(max(1, depth), len(self.entries)) - 1]
        return entry if entry is not None else self.root

    def open(self, depth: int, node: TreeNode) -> HeadingStack:
        """Return a stack with node open at depth and deeper entries closed."""
        kept = self.entries[:depth]
        padding = (None,) * (depth - len(kept))
        return HeadingStack(kept + padding + (node,))


def parse_markdown(
    markdown: Union[str, bytes], ids: Optional[IdCounter] = None
) -> TreeNode:
    """Parse Markdown text into a prompt tree.

    Headings open sections that collect the blocks after them, paragraphs
    become leaves, and lists become list-item nodes nested the way the list
    is. Unsupported blocks are skipped. Raises MarkdownSyntaxError only when
    the text cannot be tokenized.
    """
    if ids is None:
        ids = IdCounter()
    doc = parse_document(markdown)
    return build_tree(doc.children, ids)


def parse_file(path: Path, ids: Optional[IdCounter] = None) -> TreeNode:
    """Read a UTF-8 Markdown file and parse it."""
    with open(path, "rb") as f:
        return parse_markdown(f.read(), ids)


def build_tree(blocks: List[BlockToken], ids: IdCounter) -> TreeNode:
    """Build a prompt tree from top-level block tokens."""
    root = TreeNode(ROOT_ID, "", NodeType.HEADING_1)
    stack = HeadingStack.start(root)
    seen_heading = False
    for token in blocks:
        if isinstance(token, (Heading, SetextHeading)):
            node = TreeNode(
                ids.next_id(),
                flatten_text(token.children),
                NodeType.heading(token.level),
            )
            if not seen_heading and token.level == 1:
                root.content = node.content
                root.node_type = node.node_type
                stack = stack.open(1, root)
            else:
                depth = min(token.level, 4)
                stack.parent_for(depth).children.append(node)
                stack = stack.open(depth, node)
            seen_heading = True
        elif isinstance(token, Paragraph):
            content = flatten_text(token.children)
            if content.strip():
                paragraph = TreeNode(ids.next_id(), content, NodeType.PARAGRAPH)
                stack.deepest.children.append(paragraph)
        elif isinstance(token, block_token.List):
            stack.deepest.children.extend(list_nodes(token, ids))
        else:
            logging.debug("skipping %s block", type(token).__name__)

    if not root.content and root.children:
        first = root.children.pop(0)
        root.content = first.content
        root.node_type = first.node_type
        root.children = first.children + root.children
    return root


def list_nodes(token: block_token.List, ids: IdCounter) -> List[TreeNode]:
    """Convert a list token into list-item nodes."""
    return [
        list_item_node(item, ids)
        for item in token.children
        if isinstance(item, ListItem)
    ]


def list_item_node(item: ListItem, ids: IdCounter) -> TreeNode:
    node = TreeNode(ids.next_id(), "", NodeType.LIST_ITEM)
    content_set = False
    for child in item.children:
        if isinstance(child, Paragraph) and not content_set:
            node.content = flatten_text(child.children)
            content_set = True
        elif isinstance(child, block_token.List):
            node.children.extend(list_nodes(child, ids))
    return node
