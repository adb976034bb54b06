"""Command-line interface."""

import json
import logging
import sys
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

from promptmap.config import CONFIG_FILENAME, MapConfig
from promptmap.editor import Editor
from promptmap.graph import tree_to_graph
from promptmap.layout import layout
from promptmap.logs import fatal, setup_logging
from promptmap.parser import MarkdownSyntaxError, parse_markdown
from promptmap.serializer import serialize
from promptmap.tree import TreeNode


def main(argv: Optional[List[str]] = None):
    parser, commands = get_parser()
    args = parser.parse_args(argv)
    if args.command == "help":
        if args.help_target:
            commands[args.help_target].print_help()
        else:
            parser.print_help()
        return

    log_level = logging.WARNING
    if args.verbose and args.verbose == 1:
        log_level = logging.INFO
    elif args.verbose and args.verbose >= 2:
        log_level = logging.DEBUG
    exit_level = logging.ERROR
    if args.keep_going:
        exit_level = logging.FATAL
    setup_logging(sys.stderr, log_level, exit_level)

    command = globals()[f"command_{args.command}"]
    assert command, "unexpected command name"
    command(args, load_config(args.config))


def get_parser() -> Tuple[ArgumentParser, Mapping[str, ArgumentParser]]:
    parser = ArgumentParser(
        prog="promptmap", description="convert prompt documents between Markdown and trees"
    )
    commands = parser.add_subparsers(metavar="command", dest="command", required=True)

    parser_help = commands.add_parser("help", help="show this help message and exit")
    parser_help.add_argument(
        metavar="command",
        dest="help_target",
        nargs="?",
        help="get help for a specific command",
    )

    parser_outline = commands.add_parser("outline", help="show the parsed tree")

    parser_convert = commands.add_parser("convert", help="normalize Markdown")
    parser_convert.add_argument(
        "-i",
        "--inferred",
        action="store_true",
        help="derive block types from tree depth",
    )
    parser_convert.add_argument(
        "-o", "--output", metavar="FILE", help="write to FILE instead of stdout"
    )

    parser_graph = commands.add_parser("graph", help="print nodes and edges as JSON")

    parser_layout = commands.add_parser("layout", help="print node positions as JSON")

    for subparser in [parser_outline, parser_convert, parser_graph, parser_layout]:
        subparser.add_argument(
            "file", nargs="?", default="-", help="Markdown file (default: stdin)"
        )
        subparser.add_argument(
            "-c", "--config", metavar="FILE", help=f"config file (default: {CONFIG_FILENAME})"
        )
        subparser.add_argument(
            "-k",
            "--keep-going",
            action="store_true",
            help="keep going if there are errors",
        )
        subparser.add_argument(
            "-v",
            "--verbose",
            action="count",
            help="increase logging (can use multiple times)",
        )

    return parser, commands.choices


def load_config(name: Optional[str]) -> MapConfig:
    """Load the named config file, or promptmap.yml if present."""
    if name:
        path = Path(name)
        if not path.is_file():
            fatal("%s: no such config file", path)
    else:
        path = Path.cwd() / CONFIG_FILENAME
        if not path.is_file():
            return MapConfig.default()
    logging.info("loading config %s", path)
    cfg = MapConfig.load(path)
    cfg.validate()
    return cfg


def read_tree(name: str) -> Optional[TreeNode]:
    """Parse the named Markdown file, or stdin for "-"."""
    try:
        if name == "-":
            raw = sys.stdin.read()
        else:
            raw = Path(name).read_bytes()
    except OSError as ex:
        logging.error("cannot read %s: %s", name, ex)
        return None
    try:
        return parse_markdown(raw)
    except MarkdownSyntaxError as ex:
        logging.error("%s: %s", name, ex)
        return None


def command_outline(args: Namespace, cfg: MapConfig):
    tree = read_tree(args.file)
    if tree:
        tree.dump(sys.stdout)


def command_convert(args: Namespace, cfg: MapConfig):
    tree = read_tree(args.file)
    if not tree:
        return
    options = cfg.serialize_options()
    if args.inferred:
        options = options._replace(use_explicit_types=False)
    text = serialize(tree, options)
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        logging.info("wrote %s", args.output)
    else:
        sys.stdout.write(text)


def command_graph(args: Namespace, cfg: MapConfig):
    tree = read_tree(args.file)
    if tree:
        editor = Editor.from_tree(tree)
        print(json.dumps(editor.to_dict(), indent=2))


def command_layout(args: Namespace, cfg: MapConfig):
    tree = read_tree(args.file)
    if not tree:
        return
    nodes, edges = tree_to_graph(tree)
    positioned = layout(nodes, edges, cfg.layout_params())
    print(json.dumps([node.to_dict() for node in positioned], indent=2))
