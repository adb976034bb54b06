"""Automatic left-to-right layout of the visible prompt graph.

Positions come from a tidy tree layout (Reingold-Tilford, with Buchheim's
linear-time improvements): each node's cross-axis position follows its rank
among the leaves, and its main-axis position follows its depth. The layout is
computed top-to-bottom and then rotated so the tree reads left to right.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterator, List, NamedTuple, Optional, Set, Tuple

import networkx as nx

from promptmap.graph import GraphEdge, GraphNode, Point, Side


class LayoutParams(NamedTuple):

    """Spacing parameters for layout, in canvas units."""

    horizontal_gap: float = 50
    vertical_gap: float = 20
    node_width: float = 250
    node_height: float = 50


DEFAULT_PARAMS = LayoutParams()

# Minimum extent of the laid out tree along each axis.
MIN_SPREAD = 300
MIN_DEPTH_EXTENT = 400

SIBLING_SEPARATION = 1.0
COUSIN_SEPARATION = 1.2


class LayoutNode:

    """Node of the rose tree that the layout algorithm works on."""

    def __init__(self, id: Optional[str], parent: Optional[LayoutNode], index: int):
        self.id = id
        self.parent = parent
        self.index = index
        self.depth = parent.depth + 1 if parent else -1
        self.children: List[LayoutNode] = []
        # Buchheim et al. bookkeeping.
        self.ancestor = self
        self.default_ancestor: Optional[LayoutNode] = None
        self.prelim = 0.0
        self.mod = 0.0
        self.change = 0.0
        self.shift = 0.0
        self.thread: Optional[LayoutNode] = None
        # Final coordinates: x across siblings, y along depth.
        self.x = 0.0
        self.y = 0.0

    def __repr__(self) -> str:
        return f"LayoutNode(id={self.id!r}, x={self.x}, y={self.y})"

    def add_child(self, id: str) -> LayoutNode:
        child = LayoutNode(id, self, len(self.children))
        self.children.append(child)
        return child

    def pre_order(self) -> Iterator[LayoutNode]:
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def post_order(self) -> Iterator[LayoutNode]:
        stack: List[Tuple[LayoutNode, bool]] = [(self, False)]
        while stack:
            node, expanded = stack.pop()
            if expanded:
                yield node
                continue
            stack.append((node, True))
            stack.extend((child, False) for child in reversed(node.children))

    def leaves(self) -> int:
        return sum(1 for node in self.pre_order() if not node.children)

    def height(self) -> int:
        return max(node.depth for node in self.pre_order()) - self.depth


Separation = Callable[[LayoutNode, LayoutNode], float]


def default_separation(a: LayoutNode, b: LayoutNode) -> float:
    if a.parent is b.parent:
        return SIBLING_SEPARATION
    return COUSIN_SEPARATION


def next_left(v: LayoutNode) -> Optional[LayoutNode]:
    return v.children[0] if v.children else v.thread


def next_right(v: LayoutNode) -> Optional[LayoutNode]:
    return v.children[-1] if v.children else v.thread


def move_subtree(wm: LayoutNode, wp: LayoutNode, shift: float):
    change = shift / (wp.index - wm.index)
    wp.change -= change
    wp.shift += shift
    wm.change += change
    wp.prelim += shift
    wp.mod += shift


def execute_shifts(v: LayoutNode):
    shift = 0.0
    change = 0.0
    for w in reversed(v.children):
        w.prelim += shift
        w.mod += shift
        change += w.change
        shift += w.shift + change


def next_ancestor(vim: LayoutNode, v: LayoutNode, ancestor: LayoutNode) -> LayoutNode:
    if vim.ancestor.parent is v.parent:
        return vim.ancestor
    return ancestor


def apportion(
    v: LayoutNode, w: Optional[LayoutNode], ancestor: LayoutNode, separation: Separation
) -> LayoutNode:
    if w is None:
        return ancestor
    assert v.parent
    vip: Optional[LayoutNode] = v
    vop = v
    vim: Optional[LayoutNode] = w
    vom = v.parent.children[0]
    sip = vip.mod
    sop = vop.mod
    sim = vim.mod
    som = vom.mod
    vim = next_right(vim)
    vip = next_left(vip)
    while vim and vip:
        vom = next_left(vom)
        vop = next_right(vop)
        assert vom and vop
        vop.ancestor = v
        shift = vim.prelim + sim - vip.prelim - sip + separation(vim, vip)
        if shift > 0:
            move_subtree(next_ancestor(vim, v, ancestor), v, shift)
            sip += shift
            sop += shift
        sim += vim.mod
        sip += vip.mod
        som += vom.mod
        sop += vop.mod
        vim = next_right(vim)
        vip = next_left(vip)
    if vim and not next_right(vop):
        vop.thread = vim
        vop.mod += sim - sop
    if vip and not next_left(vom):
        vom.thread = vip
        vom.mod += sip - som
        ancestor = v
    return ancestor


def tidy_tree(
    root: LayoutNode,
    width: float,
    height: float,
    separation: Separation = default_separation,
):
    """Lay out the tree under root, setting x and y on every node.

    The x coordinates are scaled to span [0, width] and depth is scaled so the
    deepest level sits at height. Root must be the only child of a dummy
    parent node, which is left untouched.
    """
    assert root.parent and root.parent.children == [root]

    def first_walk(v: LayoutNode):
        assert v.parent
        siblings = v.parent.children
        w = siblings[v.index - 1] if v.index else None
        if v.children:
            execute_shifts(v)
            midpoint = (v.children[0].prelim + v.children[-1].prelim) / 2
            if w:
                v.prelim = w.prelim + separation(v, w)
                v.mod = v.prelim - midpoint
            else:
                v.prelim = midpoint
        elif w:
            v.prelim = w.prelim + separation(v, w)
        v.parent.default_ancestor = apportion(
            v, w, v.parent.default_ancestor or siblings[0], separation
        )

    for node in root.post_order():
        first_walk(node)
    root.parent.mod = -root.prelim
    for node in root.pre_order():
        assert node.parent
        node.x = node.prelim + node.parent.mod
        node.mod += node.parent.mod

    left = right = bottom = root
    for node in root.pre_order():
        if node.x < left.x:
            left = node
        if node.x > right.x:
            right = node
        if node.depth > bottom.depth:
            bottom = node
    s = 1.0 if left is right else separation(left, right) / 2
    tx = s - left.x
    kx = width / (right.x + s + tx)
    ky = height / (bottom.depth or 1)
    for node in root.pre_order():
        node.x = (node.x + tx) * kx
        node.y = node.depth * ky


def build_layout_tree(
    nodes: List[GraphNode], edges: List[GraphEdge]
) -> Optional[LayoutNode]:
    """Mirror the graph as a rose tree under a dummy parent.

    Returns the tree's root, or None if the nodes have no unique root.
    """
    g = nx.DiGraph()
    g.add_nodes_from(node.id for node in nodes)
    g.add_edges_from(
        (e.source, e.target) for e in edges if e.source in g and e.target in g
    )
    roots = [node_id for node_id, degree in g.in_degree() if degree == 0]
    if len(roots) != 1:
        return None
    dummy = LayoutNode(None, None, 0)
    root = dummy.add_child(roots[0])
    seen: Set[str] = {roots[0]}
    stack = [root]
    while stack:
        parent = stack.pop()
        for child_id in g.successors(parent.id):
            if child_id in seen:
                continue
            seen.add(child_id)
            stack.append(parent.add_child(child_id))
    return root


def layout(
    nodes: List[GraphNode],
    edges: List[GraphEdge],
    params: LayoutParams = DEFAULT_PARAMS,
) -> List[GraphNode]:
    """Return the nodes positioned as a left-to-right tree.

    The input is not modified. With no nodes the result is empty. If the
    nodes have no unique root the nodes are returned at their current
    positions. Nodes not reachable from the root also keep their positions.
    """
    if not nodes:
        return []
    root = build_layout_tree(nodes, edges)
    if root is None:
        logging.warning("cannot lay out graph without a unique root")
        return list(nodes)

    spread = max(root.leaves() * (params.node_height + params.vertical_gap), MIN_SPREAD)
    extent = max(root.height() * (params.node_width + params.horizontal_gap), MIN_DEPTH_EXTENT)
    tidy_tree(root, spread, extent)

    # Swap axes: depth runs along x, the spread along y.
    positions: Dict[str, Point] = {
        node.id: Point(node.y, node.x) for node in root.pre_order()
    }
    return [
        node.placed(positions[node.id], Side.RIGHT, Side.LEFT)
        if node.id in positions
        else node
        for node in nodes
    ]


class Bounds(NamedTuple):
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


def edge_midpoint(source: Point, target: Point) -> Point:
    return Point((source.x + target.x) / 2, (source.y + target.y) / 2)


def bezier_control_points(
    source: Point, target: Point, params: LayoutParams = DEFAULT_PARAMS
) -> Tuple[Point, Point]:
    """Return control points for a horizontal bezier edge."""
    offset = params.horizontal_gap / 2
    return Point(source.x + offset, source.y), Point(target.x - offset, target.y)


def point_in_node(
    point: Point, node_position: Point, params: LayoutParams = DEFAULT_PARAMS
) -> bool:
    return (
        node_position.x <= point.x <= node_position.x + params.node_width
        and node_position.y <= point.y <= node_position.y + params.node_height
    )


def viewport_bounds(
    positions: List[Point], params: LayoutParams = DEFAULT_PARAMS
) -> Optional[Bounds]:
    """Return the box enclosing nodes at the given positions, or None if empty."""
    if not positions:
        return None
    return Bounds(
        min(p.x for p in positions),
        min(p.y for p in positions),
        max(p.x for p in positions) + params.node_width,
        max(p.y for p in positions) + params.node_height,
    )
