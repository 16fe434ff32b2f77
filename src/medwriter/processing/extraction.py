"""Conversion of editable content trees into plain text with a position map."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from medwriter.errors import InvalidInputError

from .models import PlainTextResult, PositionEntry
from .statistics import get_text_statistics

LOGGER = logging.getLogger(__name__)

BLOCK_TAGS = frozenset(
    {
        "p",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "section",
        "article",
        "aside",
        "header",
        "footer",
        "main",
        "nav",
        "blockquote",
        "pre",
        "ul",
        "ol",
        "li",
        "div",
        "br",
    }
)
_VOID_TAGS = frozenset({"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "track", "wbr"})
_SKIPPED_TAGS = frozenset({"script", "style", "template"})
# Marks the end of a block element's children on the traversal stack.
_BLOCK_END = object()


@runtime_checkable
class ContentTreeNode(Protocol):
    """Minimal view of the host editor's content tree."""

    @property
    def is_text(self) -> bool: ...

    @property
    def is_block(self) -> bool: ...

    @property
    def text(self) -> str: ...

    @property
    def children(self) -> Sequence["ContentTreeNode"]: ...


@dataclass(slots=True)
class ContentNode:
    """Concrete content tree node.

    Text leaves carry ``text`` and have ``tag`` set to ``None``; element nodes
    carry a lower-case tag name and their children in document order.
    """

    tag: Optional[str] = None
    text: str = ""
    children: List["ContentNode"] = field(default_factory=list)

    @classmethod
    def text_node(cls, text: str) -> "ContentNode":
        return cls(tag=None, text=text)

    @classmethod
    def element(cls, tag: str, *children: "ContentNode") -> "ContentNode":
        return cls(tag=tag.lower(), children=list(children))

    @property
    def is_text(self) -> bool:
        return self.tag is None

    @property
    def is_block(self) -> bool:
        return self.tag in BLOCK_TAGS


class _TreeBuilder(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.root = ContentNode.element("div")
        self._stack: List[ContentNode] = [self.root]
        self._skip_depth = 0

    def handle_starttag(self, tag, attrs):  # noqa: ANN001 - HTMLParser signature
        if tag in _SKIPPED_TAGS:
            self._skip_depth += 1
            return
        if self._skip_depth:
            return
        node = ContentNode.element(tag)
        self._stack[-1].children.append(node)
        if tag not in _VOID_TAGS:
            self._stack.append(node)

    def handle_startendtag(self, tag, attrs):  # noqa: ANN001 - HTMLParser signature
        if tag in _SKIPPED_TAGS or self._skip_depth:
            return
        self._stack[-1].children.append(ContentNode.element(tag))

    def handle_endtag(self, tag):  # noqa: ANN001 - HTMLParser signature
        if tag in _SKIPPED_TAGS:
            self._skip_depth = max(self._skip_depth - 1, 0)
            return
        if self._skip_depth or tag in _VOID_TAGS:
            return
        # Unbalanced markup: close back to the nearest matching open element.
        for depth in range(len(self._stack) - 1, 0, -1):
            if self._stack[depth].tag == tag:
                del self._stack[depth:]
                return

    def handle_data(self, data):  # noqa: ANN001 - HTMLParser signature
        if self._skip_depth or not data:
            return
        self._stack[-1].children.append(ContentNode.text_node(data))


def parse_html(markup: str) -> ContentNode:
    """Build a content tree from the editor's HTML.

    The returned root is a synthetic ``div`` standing in for the editable
    surface; the markup's top-level nodes are its children.
    """

    if not isinstance(markup, str):
        raise InvalidInputError(f"Expected markup to be str, got {type(markup).__name__}")
    builder = _TreeBuilder()
    builder.feed(markup)
    builder.close()
    return builder.root


def _require_node(node: object) -> ContentTreeNode:
    if not isinstance(node, ContentTreeNode):
        raise InvalidInputError(f"Expected a content tree node, got {type(node).__name__}")
    return node


class _Walker:
    def __init__(self) -> None:
        self.parts: List[str] = []
        self.length = 0
        self.last_char = ""
        self.entries: List[PositionEntry] = []
        self.node_index = 0

    def _append(self, text: str) -> None:
        if not text:
            return
        self.parts.append(text)
        self.length += len(text)
        self.last_char = text[-1]

    def _needs_break(self) -> bool:
        return self.length > 0 and self.last_char != "\n"

    def _record(self, node_type: str) -> None:
        self.entries.append(
            PositionEntry(
                dom_offset=self.length,
                text_offset=self.length,
                node_index=self.node_index,
                node_type=node_type,  # type: ignore[arg-type]
            )
        )
        self.node_index += 1

    def visit(self, root: ContentTreeNode) -> None:
        # Explicit stack; editor markup can nest deeper than the recursion limit.
        stack: List[object] = [root]
        while stack:
            node = stack.pop()
            if node is _BLOCK_END:
                if self._needs_break():
                    self._append("\n")
                continue

            node = _require_node(node)
            if node.is_text:
                text = node.text
                if not isinstance(text, str):
                    raise InvalidInputError(f"Text node content must be str, got {type(text).__name__}")
                self._record("text")
                self._append(text)
                continue

            if node.is_block:
                if self._needs_break():
                    self._append("\n")
                stack.append(_BLOCK_END)
            self._record("element")
            stack.extend(reversed(list(node.children)))


def extract_plain_text(root: ContentTreeNode) -> PlainTextResult:
    """Flatten ``root``'s descendants into plain text.

    Block-level elements are separated by line breaks as they would be when
    rendered. The root itself stands for the editable surface and is not
    recorded in the position map.
    """

    walker = _Walker()
    for child in _require_node(root).children:
        walker.visit(child)

    raw_text = "".join(walker.parts)
    plain_text = raw_text.strip()
    leading = len(raw_text) - len(raw_text.lstrip())
    upper = len(plain_text)

    position_map = []
    for entry in walker.entries:
        offset = min(max(entry.text_offset - leading, 0), upper)
        position_map.append(
            PositionEntry(
                dom_offset=offset,
                text_offset=offset,
                node_index=entry.node_index,
                node_type=entry.node_type,
            )
        )

    stats = get_text_statistics(plain_text)
    LOGGER.debug(
        "Extracted %s chars and %s position entries from content tree",
        stats.character_count,
        len(position_map),
    )
    return PlainTextResult(
        plain_text=plain_text,
        position_map=tuple(position_map),
        word_count=stats.word_count,
        character_count=stats.character_count,
    )
