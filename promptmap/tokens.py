"""Helpers for tokenizing Markdown with mistletoe and reading the tokens."""

from typing import Iterable, Union

from mistletoe import block_token, span_token
from mistletoe.block_token import BlockToken, Document, HTMLBlock
from mistletoe.span_token import (
    Emphasis,
    HTMLSpan,
    Image,
    InlineCode,
    LineBreak,
    Link,
    RawText,
    SpanToken,
    Strong,
)

Token = Union[SpanToken, BlockToken]


class MarkdownSyntaxError(ValueError):
    """Raised when raw input cannot be tokenized as Markdown."""


def set_default_tokens():
    """Reset the mistletoe token sets to the defaults plus raw HTML.

    Mistletoe keeps its active token types in module globals, and renderers
    add their own tokens on entry. Resetting before every tokenization keeps
    parsing independent of whatever ran before. HTML tokens are added so that
    raw HTML is recognized (and later dropped) instead of read as text.
    """
    block_token.reset_tokens()
    span_token.reset_tokens()
    block_token.add_token(HTMLBlock)
    span_token.add_token(HTMLSpan)


def parse_document(raw: Union[str, bytes]) -> Document:
    """Tokenize raw Markdown into a mistletoe Document.

    Bytes are decoded as UTF-8. Raises MarkdownSyntaxError if the input cannot
    be decoded or the tokenizer fails on it.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as ex:
            raise MarkdownSyntaxError(f"input is not valid UTF-8: {ex}") from ex
    set_default_tokens()
    try:
        return Document(raw)
    except Exception as ex:  # pylint: disable=broad-except
        raise MarkdownSyntaxError(f"cannot tokenize Markdown: {ex}") from ex


def flatten_text(tokens: Iterable[SpanToken]) -> str:
    """Flatten span tokens into display text.

    Strong and emphasis keep their ** and * markers, inline code keeps its
    backticks, and links are reduced to their text. Images are dropped. This
    is lossy: it does not attempt to reproduce the source text.
    """
    parts = []
    for token in tokens:
        if isinstance(token, RawText):
            parts.append(token.content)
        elif isinstance(token, InlineCode):
            parts.append(f"`{token.children[0].content}`")
        elif isinstance(token, Strong):
            parts.append(f"**{flatten_text(token.children)}**")
        elif isinstance(token, Emphasis):
            parts.append(f"*{flatten_text(token.children)}*")
        elif isinstance(token, LineBreak):
            parts.append("\n")
        elif isinstance(token, (Image, HTMLSpan)):
            continue
        elif isinstance(token, Link) or getattr(token, "children", None):
            parts.append(flatten_text(token.children))
    return "".join(parts)
