"""Editing session over a prompt graph."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from promptmap.graph import (
    Graph,
    GraphEdge,
    GraphNode,
    TextBlock,
    children_map,
    descendant_ids,
    find_root,
    graph_to_tree,
    parent_map,
    tree_to_graph,
    visible_subgraph,
)
from promptmap.parser import ROOT_ID, parse_markdown
from promptmap.serializer import serialize_tree
from promptmap.tree import NodeType, TreeNode


class Editor:

    """The mutable state of one editing session.

    An editor owns a list of nodes, a list of edges, and the selected node id.
    Every edit either applies fully or does nothing, so the edges always form
    a single rooted tree. Edits that name an unknown node are no-ops, and the
    root can never be deleted.

    Derived views (visible subgraph, tree, Markdown) are computed from the
    current state each time they are requested.
    """

    def __init__(
        self,
        nodes: Optional[List[GraphNode]] = None,
        edges: Optional[List[GraphEdge]] = None,
        selected_id: Optional[str] = None,
    ):
        self.nodes: List[GraphNode] = nodes if nodes is not None else []
        self.edges: List[GraphEdge] = edges if edges is not None else []
        self.selected_id = selected_id
        self._next_id = 0

    def __repr__(self) -> str:
        return (
            f"Editor(nodes={len(self.nodes)}, edges={len(self.edges)}, "
            f"selected_id={self.selected_id!r})"
        )

    @staticmethod
    def demo() -> Editor:
        """Return an editor seeded with the starter prompt."""

        def block(node_id: str, content: str, node_type: NodeType) -> GraphNode:
            return GraphNode(node_id, TextBlock(content, node_type))

        nodes = [
            block(ROOT_ID, "My Prompt", NodeType.HEADING_1),
            block("node-1", "Context", NodeType.HEADING_2),
            block("node-2", "Instructions", NodeType.HEADING_2),
            block("node-3", "Output Format", NodeType.HEADING_2),
            block("node-1-1", "You are an expert assistant", NodeType.PARAGRAPH),
            block("node-2-1", "Step 1: Analyze the input", NodeType.LIST_ITEM),
            block("node-2-2", "Step 2: Generate response", NodeType.LIST_ITEM),
        ]
        edges = [
            GraphEdge.between(ROOT_ID, "node-1"),
            GraphEdge.between(ROOT_ID, "node-2"),
            GraphEdge.between(ROOT_ID, "node-3"),
            GraphEdge.between("node-1", "node-1-1"),
            GraphEdge.between("node-2", "node-2-1"),
            GraphEdge.between("node-2", "node-2-2"),
        ]
        return Editor(nodes, edges, ROOT_ID)

    @staticmethod
    def from_tree(tree: TreeNode) -> Editor:
        nodes, edges = tree_to_graph(tree)
        return Editor(nodes, edges, tree.id)

    def node(self, node_id: str) -> Optional[GraphNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    @property
    def root_id(self) -> Optional[str]:
        return find_root(self.nodes, self.edges)

    def parent_id(self, node_id: str) -> Optional[str]:
        return parent_map(self.edges).get(node_id)

    def child_ids(self, node_id: str) -> List[str]:
        return children_map(self.edges).get(node_id, [])

    def sibling_ids(self, node_id: str) -> List[str]:
        """Return the children of the node's parent, including the node."""
        parent = self.parent_id(node_id)
        if parent is None:
            return []
        return self.child_ids(parent)

    def child_count(self, node_id: str) -> int:
        return sum(1 for edge in self.edges if edge.source == node_id)

    def new_id(self) -> str:
        """Return a node id not used by any node in the graph."""
        used = {node.id for node in self.nodes}
        while True:
            self._next_id += 1
            candidate = f"node-{self._next_id}"
            if candidate not in used:
                return candidate

    def add_child(self, parent_id: str, block: Optional[TextBlock] = None) -> Optional[str]:
        """Add a text block under a parent and select it.

        Returns the new node id, or None if the parent does not exist.
        """
        if self.node(parent_id) is None:
            logging.debug("add_child: no node %r", parent_id)
            return None
        if block is None:
            block = TextBlock("", NodeType.PARAGRAPH)
        node_id = self.new_id()
        self.nodes.append(GraphNode(node_id, block))
        self.edges.append(GraphEdge.between(parent_id, node_id))
        self.selected_id = node_id
        return node_id

    def add_sibling(self, node_id: str, block: Optional[TextBlock] = None) -> Optional[str]:
        """Add a text block after the node's last sibling. The root has none."""
        parent = self.parent_id(node_id)
        if parent is None:
            return None
        return self.add_child(parent, block)

    def update_node(self, node_id: str, **fields: Any):
        """Merge fields into a node's payload.

        Unknown ids are ignored, and so are fields the payload kind does not
        have, such as content on a reference.
        """
        node = self.node(node_id)
        if node is None:
            logging.debug("update_node: no node %r", node_id)
            return
        known = type(node.data)._fields
        ignored = sorted(key for key in fields if key not in known)
        if ignored:
            logging.debug(
                "update_node: %s has no fields %s", node.kind.value, ", ".join(ignored)
            )
        node.data = node.data._replace(
            **{key: value for key, value in fields.items() if key in known}
        )

    def set_node_type(self, node_id: str, node_type: NodeType):
        node = self.node(node_id)
        if node is not None and isinstance(node.data, TextBlock):
            self.update_node(node_id, node_type=node_type)

    def toggle_collapse(self, node_id: str):
        """Flip the collapse flag of a text block."""
        node = self.node(node_id)
        if node is None or not isinstance(node.data, TextBlock):
            return
        node.data = node.data._replace(is_collapsed=not node.data.is_collapsed)

    def delete_node(self, node_id: str):
        """Delete a node and all of its descendants.

        Deleting the root or an unknown id does nothing. Otherwise the
        selection is cleared.
        """
        if node_id == ROOT_ID or node_id == self.root_id:
            logging.debug("delete_node: refusing to delete root %r", node_id)
            return
        if self.node(node_id) is None:
            logging.debug("delete_node: no node %r", node_id)
            return
        doomed = {node_id, *descendant_ids(node_id, children_map(self.edges))}
        self.nodes = [node for node in self.nodes if node.id not in doomed]
        self.edges = [
            edge
            for edge in self.edges
            if edge.source not in doomed and edge.target not in doomed
        ]
        self.selected_id = None

    def delete_if_empty(self, node_id: str) -> bool:
        """Delete an empty text block and select its parent.

        Returns True if the node was deleted.
        """
        node = self.node(node_id)
        if node is None or not isinstance(node.data, TextBlock) or node.data.content:
            return False
        parent = self.parent_id(node_id)
        if parent is None:
            return False
        self.delete_node(node_id)
        self.selected_id = parent
        return True

    def select(self, node_id: Optional[str]):
        if node_id is None or self.node(node_id) is not None:
            self.selected_id = node_id

    def select_parent(self):
        if self.selected_id is None:
            return
        parent = self.parent_id(self.selected_id)
        if parent is not None:
            self.selected_id = parent

    def select_first_child(self):
        if self.selected_id is None:
            return
        children = self.child_ids(self.selected_id)
        if children:
            self.selected_id = children[0]

    def select_previous_sibling(self):
        self._select_sibling(-1)

    def select_next_sibling(self):
        self._select_sibling(1)

    def _select_sibling(self, offset: int):
        if self.selected_id is None:
            return
        siblings = self.sibling_ids(self.selected_id)
        if self.selected_id not in siblings:
            return
        index = siblings.index(self.selected_id) + offset
        if 0 <= index < len(siblings):
            self.selected_id = siblings[index]

    def visible(self) -> Graph:
        """Return the nodes and edges not hidden by a collapsed ancestor."""
        return visible_subgraph(self.nodes, self.edges)

    def to_tree(self) -> Optional[TreeNode]:
        return graph_to_tree(self.nodes, self.edges)

    def import_markdown(self, markdown: str):
        """Replace the whole graph with the tree parsed from Markdown."""
        tree = parse_markdown(markdown)
        self.nodes, self.edges = tree_to_graph(tree)
        self.selected_id = tree.id

    def export_markdown(self, use_explicit_types: bool = True) -> str:
        """Serialize the graph to Markdown, or "" if there is nothing to export."""
        tree = self.to_tree()
        if tree is None:
            logging.warning("nothing to export: graph has no root")
            return ""
        return serialize_tree(tree, use_explicit_types)

    def to_dict(self) -> Dict[str, Any]:
        """Return the state that is persisted per document."""
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "selectedNodeId": self.selected_id,
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> Editor:
        return Editor(
            [GraphNode.from_dict(n) for n in data.get("nodes", [])],
            [GraphEdge.from_dict(e) for e in data.get("edges", [])],
            data.get("selectedNodeId"),
        )
