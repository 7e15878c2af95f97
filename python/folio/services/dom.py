"""Minimal document model for the rendered reader view.

The rendering host owns the real DOM. Selection translation only needs a
small slice of it: element and text nodes, parent links, and document-order
traversal. This module provides that slice so the offset math can run and be
tested without a browser.

`build_rendered_paragraphs` produces the tree the reader renders from
segment output: one `p` element per paragraph, holding text nodes for plain
segments and `mark` elements (carrying `data-highlight-id`) for highlighted
segments.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from folio.schemas.reader import HighlightSegment, Segment

TEXT_NODE = "#text"


@dataclass(eq=False)
class RenderedNode:
    """An element or text node in the rendered content tree.

    Nodes compare by identity, like DOM nodes.
    """

    tag: str
    text: str = ""
    attrs: dict[str, str] = field(default_factory=dict)
    children: list["RenderedNode"] = field(default_factory=list)
    parent: "RenderedNode | None" = field(default=None, repr=False)

    @property
    def is_text(self) -> bool:
        return self.tag == TEXT_NODE

    @property
    def length(self) -> int:
        """Boundary-offset length: characters for text, children for elements."""
        return len(self.text) if self.is_text else len(self.children)

    def append(self, child: "RenderedNode") -> "RenderedNode":
        child.parent = self
        self.children.append(child)
        return child

    def ancestors(self) -> Iterator["RenderedNode"]:
        """Yield this node and then each ancestor up to the root."""
        node: RenderedNode | None = self
        while node is not None:
            yield node
            node = node.parent

    def contains(self, other: "RenderedNode") -> bool:
        """True if `other` is this node or one of its descendants."""
        return any(node is self for node in other.ancestors())

    def iter_text_nodes(self) -> Iterator["RenderedNode"]:
        """Yield descendant text nodes in document order."""
        if self.is_text:
            yield self
            return
        for child in self.children:
            yield from child.iter_text_nodes()

    @property
    def text_content(self) -> str:
        return "".join(node.text for node in self.iter_text_nodes())


def text_node(text: str) -> RenderedNode:
    return RenderedNode(tag=TEXT_NODE, text=text)


def element(tag: str, *children: RenderedNode, **attrs: str) -> RenderedNode:
    """Build an element and attach children to it."""
    node = RenderedNode(tag=tag, attrs=dict(attrs))
    for child in children:
        node.append(child)
    return node


def segment_node(segment: Segment) -> RenderedNode:
    """Render one segment as the node the reader would insert."""
    if isinstance(segment, HighlightSegment):
        return element(
            "mark",
            text_node(segment.text),
            **{
                "data-highlight-id": segment.highlight_id,
                "data-color": segment.color,
            },
        )
    return text_node(segment.text)


def build_rendered_paragraphs(
    rendered: Sequence[Sequence[Segment]],
) -> tuple[RenderedNode, list[RenderedNode]]:
    """Build the reader's content tree from per-paragraph segment lists.

    Args:
        rendered: Segment lists in paragraph order.

    Returns:
        Tuple of (content root, paragraph elements in order).
    """
    root = element("article")
    paragraphs: list[RenderedNode] = []
    for index, segments in enumerate(rendered):
        p = root.append(element("p", **{"data-paragraph-index": str(index)}))
        for segment in segments:
            p.append(segment_node(segment))
        paragraphs.append(p)
    return root, paragraphs
