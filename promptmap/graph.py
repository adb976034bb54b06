"""Node/edge graph representation of a prompt tree.

The editor works on a flat list of nodes and a list of parent -> child edges.
These must always encode a single rooted out-tree. This module converts
between that graph and TreeNode, and derives which nodes are visible given
the collapse flags.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Set, Tuple, Union

import networkx as nx

from promptmap.tree import NodeType, TreeNode


class Kind(enum.Enum):

    """Kinds of graph nodes."""

    TEXT_BLOCK = "text-block"
    REFERENCE = "reference"


class Side(enum.Enum):

    """Side of a node that an edge connects to."""

    LEFT = "left"
    RIGHT = "right"


class Point(NamedTuple):
    x: float = 0.0
    y: float = 0.0


class TextBlock(NamedTuple):

    """Payload of a node that holds Markdown-convertible text."""

    content: str
    node_type: NodeType
    is_collapsed: bool = False
    metadata: Optional[Dict[str, Any]] = None

    @property
    def kind(self) -> Kind:
        return Kind.TEXT_BLOCK

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "content": self.content,
            "nodeType": self.node_type.value,
            "isCollapsed": self.is_collapsed,
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata
        return data

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> TextBlock:
        return TextBlock(
            content=data.get("content", ""),
            node_type=NodeType(data.get("nodeType", NodeType.PARAGRAPH.value)),
            is_collapsed=bool(data.get("isCollapsed", False)),
            metadata=data.get("metadata"),
        )


class Reference(NamedTuple):

    """Payload of a node pointing at another stored prompt or block.

    References take part in the graph but have no Markdown form.
    """

    ref_type: str  # "prompt" or "block"
    ref_id: str
    ref_title: str

    @property
    def kind(self) -> Kind:
        return Kind.REFERENCE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "refType": self.ref_type,
            "refId": self.ref_id,
            "refTitle": self.ref_title,
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> Reference:
        return Reference(data["refType"], data["refId"], data.get("refTitle", ""))


Payload = Union[TextBlock, Reference]


class GraphNode:

    """A node in the editor graph.

    The position and connection sides are display concerns set by layout.
    """

    def __init__(
        self,
        id: str,
        data: Payload,
        position: Point = Point(),
        source_side: Optional[Side] = None,
        target_side: Optional[Side] = None,
    ):
        self.id = id
        self.data = data
        self.position = position
        self.source_side = source_side
        self.target_side = target_side

    def __repr__(self) -> str:
        return f"GraphNode(id={self.id!r}, data={self.data!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GraphNode):
            return NotImplemented
        return (
            self.id == other.id
            and self.data == other.data
            and self.position == other.position
            and self.source_side is other.source_side
            and self.target_side is other.target_side
        )

    @property
    def kind(self) -> Kind:
        return self.data.kind

    def placed(self, position: Point, source: Side, target: Side) -> GraphNode:
        """Return a copy of this node at a new position."""
        return GraphNode(self.id, self.data, position, source, target)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.kind.value,
            "position": {"x": self.position.x, "y": self.position.y},
            "data": self.data.to_dict(),
        }
        if self.source_side is not None:
            data["sourcePosition"] = self.source_side.value
        if self.target_side is not None:
            data["targetPosition"] = self.target_side.value
        return data

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> GraphNode:
        kind = Kind(data.get("type", Kind.TEXT_BLOCK.value))
        payload: Payload
        if kind is Kind.TEXT_BLOCK:
            payload = TextBlock.from_dict(data.get("data", {}))
        else:
            payload = Reference.from_dict(data["data"])
        position = data.get("position") or {}
        source = data.get("sourcePosition")
        target = data.get("targetPosition")
        return GraphNode(
            data["id"],
            payload,
            Point(position.get("x", 0.0), position.get("y", 0.0)),
            Side(source) if source else None,
            Side(target) if target else None,
        )


class GraphEdge(NamedTuple):

    """A directed edge from a parent node to a child node."""

    id: str
    source: str
    target: str

    @staticmethod
    def between(source: str, target: str) -> GraphEdge:
        return GraphEdge(f"edge-{source}-{target}", source, target)

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "source": self.source, "target": self.target}

    @staticmethod
    def from_dict(data: Mapping[str, str]) -> GraphEdge:
        return GraphEdge(data["id"], data["source"], data["target"])


Graph = Tuple[List[GraphNode], List[GraphEdge]]


def children_map(edges: Iterable[GraphEdge]) -> Dict[str, List[str]]:
    """Map each parent id to its child ids in edge order."""
    children: Dict[str, List[str]] = {}
    for edge in edges:
        children.setdefault(edge.source, []).append(edge.target)
    return children


def parent_map(edges: Iterable[GraphEdge]) -> Dict[str, str]:
    """Map each child id to its parent id."""
    return {edge.target: edge.source for edge in edges}


def descendant_ids(node_id: str, children: Mapping[str, List[str]]) -> List[str]:
    """Return the ids of all descendants of a node, in pre-order."""
    found: List[str] = []
    seen: Set[str] = {node_id}
    stack = list(reversed(children.get(node_id, [])))
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        found.append(current)
        stack.extend(reversed(children.get(current, [])))
    return found


def find_root(nodes: Iterable[GraphNode], edges: Iterable[GraphEdge]) -> Optional[str]:
    """Return the id of the unique node with no incoming edge.

    Returns None if there is no such node or more than one.
    """
    targets = {edge.target for edge in edges}
    roots = [node.id for node in nodes if node.id not in targets]
    if len(roots) != 1:
        return None
    return roots[0]


def is_single_rooted_tree(nodes: List[GraphNode], edges: List[GraphEdge]) -> bool:
    """Check that the edges form a single rooted out-tree over the nodes."""
    ids = [node.id for node in nodes]
    if not ids or len(set(ids)) != len(ids):
        return False
    if len(edges) != len(ids) - 1:
        return False
    id_set = set(ids)
    if any(e.source not in id_set or e.target not in id_set for e in edges):
        return False
    g = nx.DiGraph()
    g.add_nodes_from(ids)
    g.add_edges_from((e.source, e.target) for e in edges)
    return nx.is_arborescence(g)


def tree_to_graph(tree: TreeNode) -> Graph:
    """Convert a tree into graph nodes and edges.

    All nodes start at the origin and expanded; layout positions them later.
    """
    nodes: List[GraphNode] = []
    edges: List[GraphEdge] = []

    def go(node: TreeNode, parent_id: Optional[str]):
        block = TextBlock(node.content, node.node_type, False, node.metadata)
        nodes.append(GraphNode(node.id, block))
        if parent_id is not None:
            edges.append(GraphEdge.between(parent_id, node.id))
        for child in node.children:
            go(child, node.id)

    go(tree, None)
    return nodes, edges


def graph_to_tree(nodes: List[GraphNode], edges: List[GraphEdge]) -> Optional[TreeNode]:
    """Convert graph nodes and edges back into a tree.

    Returns None when the graph is empty or has no unique root. Nodes that
    are not text blocks are left out along with everything below them.
    """
    root_id = find_root(nodes, edges)
    if root_id is None:
        logging.debug("graph has no unique root (%d nodes)", len(nodes))
        return None
    by_id = {node.id: node for node in nodes}
    children = children_map(edges)
    seen: Set[str] = set()

    def build(node_id: str) -> Optional[TreeNode]:
        node = by_id.get(node_id)
        if node is None or node_id in seen:
            return None
        seen.add(node_id)
        if not isinstance(node.data, TextBlock):
            return None
        block = node.data
        tree = TreeNode(node.id, block.content, block.node_type, [], block.metadata)
        for child_id in children.get(node_id, []):
            child = build(child_id)
            if child is not None:
                tree.children.append(child)
        return tree

    return build(root_id)


def collapsed_ids(nodes: Iterable[GraphNode]) -> Set[str]:
    """Return the ids of text blocks that are collapsed."""
    return {
        node.id
        for node in nodes
        if isinstance(node.data, TextBlock) and node.data.is_collapsed
    }


def hidden_ids(nodes: List[GraphNode], edges: List[GraphEdge]) -> Set[str]:
    """Return the ids of nodes hidden below a collapsed ancestor."""
    children = children_map(edges)
    hidden: Set[str] = set()
    for node_id in collapsed_ids(nodes):
        hidden.update(descendant_ids(node_id, children))
    return hidden


def visible_subgraph(nodes: List[GraphNode], edges: List[GraphEdge]) -> Graph:
    """Return the nodes and edges not hidden by a collapsed ancestor."""
    hidden = hidden_ids(nodes, edges)
    visible = [node for node in nodes if node.id not in hidden]
    visible_set = {node.id for node in visible}
    visible_edges = [
        edge
        for edge in edges
        if edge.source in visible_set and edge.target in visible_set
    ]
    return visible, visible_edges
