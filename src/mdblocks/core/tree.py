"""Read-only adapter over the markdown-it syntax tree

Section extraction only needs a handful of questions answered about a node:
its heading level, its source lines, its next sibling, and how it reads back
as Markdown or as plain text. DocumentTree answers them for one ParsedDoc and
holds no state beyond it.
"""

from typing import Iterator, Optional

from markdown_it.tree import SyntaxTreeNode

from mdblocks.core.models import ParsedDoc
from mdblocks.errors import StructuralError


_LITERAL_BLOCKS = {'fence', 'code_block', 'html_block'}
_INLINE_CONTAINERS = {'inline', 'link', 'image', 'strong', 'em', 's'}


def _inline_text(node: SyntaxTreeNode) -> str:
    """Concatenate the visible text of an inline subtree."""
    out = []
    for child in node.children:
        if child.type in ('text', 'code_inline'):
            out.append(child.content)
        elif child.type == 'softbreak':
            out.append(' ')
        elif child.type == 'hardbreak':
            out.append('\n')
        elif child.children:
            out.append(_inline_text(child))
    return ''.join(out)


class DocumentTree:
    """Node queries over one parsed document, in original-file line numbers."""

    def __init__(self, parsed: ParsedDoc):
        self.parsed = parsed
        self._lines = parsed.source_lines
        try:
            self.root = SyntaxTreeNode(parsed.tokens)
        except (ValueError, AttributeError) as e:
            raise StructuralError(str(parsed.path), f"cannot build syntax tree: {e}") from e

    @property
    def last_line(self) -> int:
        return len(self._lines) + self.parsed.line_offset

    def headings(self) -> list[SyntaxTreeNode]:
        """Top-level heading nodes in document order.

        Headings nested in blockquotes or list items belong to their container
        block and never open a section.
        """
        return [n for n in self.root.children if n.type == 'heading']

    def walk(self, *node_types: str) -> Iterator[SyntaxTreeNode]:
        """Every node of the given types at any depth, in document order."""
        return (n for n in self.root.walk(include_self=False) if n.type in node_types)

    def line_of(self, node: SyntaxTreeNode) -> Optional[int]:
        """Start line of node, or of its nearest enclosing block for inline nodes."""
        while node is not None and not node.map:
            node = node.parent
        return self.start_line(node) if node is not None else None

    def blocks(self) -> Iterator[SyntaxTreeNode]:
        """Top-level block nodes in document order."""
        return iter(self.root.children)

    @staticmethod
    def heading_level(node: SyntaxTreeNode) -> int:
        if node.type == 'heading' and node.tag[1:].isdigit():
            return int(node.tag[1:])
        return 0

    def start_line(self, node: SyntaxTreeNode) -> Optional[int]:
        if not node.map:
            return None
        return node.map[0] + 1 + self.parsed.line_offset

    def end_line(self, node: SyntaxTreeNode) -> Optional[int]:
        if not node.map:
            return None
        return node.map[1] + self.parsed.line_offset

    @staticmethod
    def next_sibling(node: SyntaxTreeNode) -> Optional[SyntaxTreeNode]:
        return node.next_sibling

    @staticmethod
    def first_child(node: SyntaxTreeNode) -> Optional[SyntaxTreeNode]:
        return node.children[0] if node.children else None

    def render_as_markdown(self, node: SyntaxTreeNode) -> str:
        """Source-faithful Markdown for a block node (via node.map), newline-terminated."""
        if node.map:
            start, end = node.map
            text = ''.join(self._lines[start:end])
        else:
            text = node.content
        return text.rstrip() + '\n'

    @staticmethod
    def render_as_plain_text(node: SyntaxTreeNode) -> str:
        """Visible text of a node with markup removed."""
        if node.type in _INLINE_CONTAINERS:
            return _inline_text(node)
        if node.type in _LITERAL_BLOCKS:
            return node.content.rstrip('\n')
        return '\n'.join(_inline_text(n) for n in node.walk() if n.type == 'inline')
