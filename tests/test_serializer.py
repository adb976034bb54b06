"""Tests for Markdown serialization."""

from __future__ import annotations

import pytest

from promptmap.parser import parse_markdown
from promptmap.serializer import (
    SerializeOptions,
    inferred_type,
    serialize,
    serialize_tree,
    serialize_tree_inferred,
)
from promptmap.tree import NodeType, TreeNode, same_shape


def node(content: str, node_type: NodeType, *children: TreeNode) -> TreeNode:
    return TreeNode(content.lower().replace(" ", "-"), content, node_type, list(children))


def test_scenario_explicit(scenario_markdown):
    tree = parse_markdown(scenario_markdown)
    assert serialize_tree(tree) == (
        "# Title\n"
        "\n"
        "## Section A\n"
        "\n"
        "Some text.\n"
        "\n"
        "- item 1\n"
        "- item 2\n"
    )


def test_scenario_inferred(scenario_markdown):
    tree = parse_markdown(scenario_markdown)
    assert serialize_tree_inferred(tree) == (
        "# Title\n"
        "\n"
        "## Section A\n"
        "\n"
        "### Some text.\n"
        "\n"
        "### item 1\n"
        "\n"
        "### item 2\n"
    )


def test_inferred_mode_ignores_stored_type():
    tree = node("Root", NodeType.PARAGRAPH, node("Child", NodeType.LIST_ITEM))
    assert serialize_tree(tree, use_explicit_types=False) == "# Root\n\n## Child\n"
    assert serialize_tree(tree) == "Root\n\n- Child\n"


def test_inferred_types_by_depth():
    assert [inferred_type(d) for d in range(6)] == [
        NodeType.HEADING_1,
        NodeType.HEADING_2,
        NodeType.HEADING_3,
        NodeType.HEADING_4,
        NodeType.LIST_ITEM,
        NodeType.LIST_ITEM,
    ]


def test_inferred_deep_nodes_become_indented_list_items():
    tree = node(
        "A",
        NodeType.PARAGRAPH,
        node(
            "B",
            NodeType.PARAGRAPH,
            node(
                "C",
                NodeType.PARAGRAPH,
                node(
                    "D",
                    NodeType.PARAGRAPH,
                    node("E", NodeType.PARAGRAPH, node("F", NodeType.PARAGRAPH)),
                    node("G", NodeType.PARAGRAPH),
                ),
            ),
        ),
    )
    assert serialize_tree_inferred(tree) == (
        "# A\n\n## B\n\n### C\n\n#### D\n\n- E\n  - F\n- G\n"
    )


def test_explicit_nested_list_indentation():
    tree = node(
        "Title",
        NodeType.HEADING_1,
        node(
            "a",
            NodeType.LIST_ITEM,
            node("a1", NodeType.LIST_ITEM, node("a2", NodeType.LIST_ITEM)),
        ),
        node("b", NodeType.LIST_ITEM),
    )
    assert serialize_tree(tree) == "# Title\n\n- a\n  - a1\n    - a2\n- b\n"


def test_empty_list_item_after_paragraph_is_not_an_underline():
    tree = node(
        "T",
        NodeType.HEADING_1,
        node("Para", NodeType.PARAGRAPH),
        node("", NodeType.LIST_ITEM),
        node("b", NodeType.LIST_ITEM),
    )
    markdown = serialize_tree(tree)
    assert markdown == "# T\n\nPara\n\n- \n- b\n"
    again = parse_markdown(markdown)
    assert [c.node_type for c in again.children] == [
        NodeType.PARAGRAPH,
        NodeType.LIST_ITEM,
        NodeType.LIST_ITEM,
    ]


def test_empty_nested_list_item_is_set_apart_from_its_parent():
    tree = node(
        "T",
        NodeType.HEADING_1,
        node("a", NodeType.LIST_ITEM, node("", NodeType.LIST_ITEM)),
        node("b", NodeType.LIST_ITEM),
    )
    assert serialize_tree(tree) == "# T\n\n- a\n\n  - \n- b\n"


def test_heading_prefixes():
    tree = node(
        "One",
        NodeType.HEADING_1,
        node("Two", NodeType.HEADING_2),
        node("Three", NodeType.HEADING_3),
        node("Four", NodeType.HEADING_4),
    )
    assert serialize_tree(tree) == "# One\n\n## Two\n\n### Three\n\n#### Four\n"


def test_blank_lines_collapse():
    tree = node(
        "T",
        NodeType.HEADING_1,
        TreeNode("empty", "", NodeType.PARAGRAPH),
        node("S", NodeType.HEADING_2),
    )
    assert serialize_tree(tree) == "# T\n\n## S\n"


def test_single_trailing_newline():
    tree = node("T", NodeType.HEADING_1, TreeNode("p", "text\n\n", NodeType.PARAGRAPH))
    assert serialize_tree(tree) == "# T\n\ntext\n"


def test_options_tuple():
    tree = node("Root", NodeType.PARAGRAPH)
    assert serialize(tree, SerializeOptions()) == "Root\n"
    assert serialize(tree, SerializeOptions(use_explicit_types=False)) == "# Root\n"


ROUND_TRIP_INPUTS = [
    "# Title\n## Section A\nSome text.\n- item 1\n- item 2\n",
    "# T\n- a\n  - a1\n    - a2\n- b\n",
    "## A\ntext\n\n## B\n",
    "1. one\n2. two\n",
    "# T\n##### Deep\ntext\n",
    "# T\n## S\n#### x\n#### y\n## U\n",
    "# T\n## S\n#### x\n#### y\n",
    "# T\nPara\n\n- \n- b\n",
    "# T\nSome **bold** and *it* and `code` and [link](http://example.com).\n",
    (
        "# Doc\n"
        "Intro paragraph.\n"
        "\n"
        "## Steps\n"
        "1. first\n"
        "2. second\n"
        "   - detail\n"
        "\n"
        "## Notes\n"
        "A *note*.\n"
        "\n"
        "### Sub\n"
        "* star item\n"
    ),
]


@pytest.mark.parametrize("markdown", ROUND_TRIP_INPUTS)
def test_round_trip_is_structurally_stable(markdown):
    tree = parse_markdown(markdown)
    again = parse_markdown(serialize_tree(tree))
    assert same_shape(tree, again)
    assert tree.size() == again.size()


@pytest.mark.parametrize("markdown", ROUND_TRIP_INPUTS)
def test_serialization_is_idempotent(markdown):
    once = serialize_tree(parse_markdown(markdown))
    assert serialize_tree(parse_markdown(once)) == once
