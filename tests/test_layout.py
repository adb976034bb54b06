"""Tests for automatic layout."""

from __future__ import annotations

import pytest

from promptmap.editor import Editor
from promptmap.graph import GraphEdge, GraphNode, Point, Side, TextBlock
from promptmap.layout import (
    Bounds,
    LayoutParams,
    bezier_control_points,
    edge_midpoint,
    layout,
    point_in_node,
    viewport_bounds,
)
from promptmap.tree import NodeType


def block(node_id: str) -> GraphNode:
    return GraphNode(node_id, TextBlock(node_id, NodeType.PARAGRAPH))


def graph(*pairs):
    node_ids = []
    for source, target in pairs:
        for node_id in (source, target):
            if node_id not in node_ids:
                node_ids.append(node_id)
    nodes = [block(node_id) for node_id in node_ids]
    edges = [GraphEdge.between(source, target) for source, target in pairs]
    return nodes, edges


def positions(nodes):
    return {node.id: node.position for node in nodes}


def test_empty():
    assert layout([], []) == []


def test_single_node():
    [node] = layout([block("r")], [])
    assert node.position == Point(0, 150)
    assert node.source_side is Side.RIGHT
    assert node.target_side is Side.LEFT


def test_two_children():
    nodes, edges = graph(("r", "a"), ("r", "b"))
    result = positions(layout(nodes, edges))
    assert result["r"] == Point(0, pytest.approx(150))
    assert result["a"] == Point(400, pytest.approx(75))
    assert result["b"] == Point(400, pytest.approx(225))


def test_depth_runs_left_to_right():
    nodes, edges = graph(("r", "a"), ("a", "b"), ("b", "c"))
    result = positions(layout(nodes, edges))
    xs = [result[node_id].x for node_id in ["r", "a", "b", "c"]]
    assert xs == sorted(xs)
    assert xs[0] == 0
    assert xs[-1] == pytest.approx(3 * (250 + 50))


def test_cousins_are_further_apart_than_siblings():
    nodes, edges = graph(("r", "a"), ("r", "b"), ("a", "a1"), ("a", "a2"), ("b", "b1"))
    result = positions(layout(nodes, edges))
    sibling_gap = result["a2"].y - result["a1"].y
    cousin_gap = result["b1"].y - result["a2"].y
    assert sibling_gap > 0
    assert cousin_gap == pytest.approx(1.2 * sibling_gap)


def test_params_scale_the_layout():
    nodes, edges = graph(("r", "a"))
    result = positions(layout(nodes, edges, LayoutParams(node_width=500)))
    assert result["a"].x == pytest.approx(550)


def test_layout_is_deterministic(demo_editor):
    first = layout(demo_editor.nodes, demo_editor.edges)
    second = layout(demo_editor.nodes, demo_editor.edges)
    assert first == second


def test_layout_does_not_modify_input(demo_editor):
    layout(demo_editor.nodes, demo_editor.edges)
    assert all(node.position == Point() for node in demo_editor.nodes)
    assert all(node.source_side is None for node in demo_editor.nodes)


def test_siblings_keep_their_order(demo_editor):
    result = positions(layout(demo_editor.nodes, demo_editor.edges))
    ys = [result[node_id].y for node_id in ["node-1", "node-2", "node-3"]]
    assert ys == sorted(ys)


def test_layout_of_visible_subgraph():
    editor = Editor.demo()
    editor.toggle_collapse("node-2")
    nodes, edges = editor.visible()
    result = layout(nodes, edges)
    assert {node.id for node in result} == {n.id for n in nodes}
    assert "node-2-1" not in positions(result)


def test_no_unique_root_returns_input():
    nodes = [block("a"), block("b")]
    result = layout(nodes, [])
    assert result == nodes
    assert all(node.source_side is None for node in result)


def test_geometry_helpers():
    assert edge_midpoint(Point(0, 0), Point(10, 20)) == Point(5, 10)
    first, second = bezier_control_points(Point(0, 0), Point(100, 50))
    assert first == Point(25, 0)
    assert second == Point(75, 50)
    assert point_in_node(Point(10, 10), Point(0, 0))
    assert point_in_node(Point(250, 50), Point(0, 0))
    assert not point_in_node(Point(251, 10), Point(0, 0))
    assert viewport_bounds([]) is None
    bounds = viewport_bounds([Point(0, 0), Point(100, -20)])
    assert bounds == Bounds(0, -20, 350, 50)
    assert bounds.width == 350
    assert bounds.height == 70
