"""Syntax tree -> flat element sequence (one block element per top-level node)"""

import logging
from typing import Optional

from markdown_it.tree import SyntaxTreeNode

from mdblocks.core.codecs import DEFAULT_CODEC, PayloadCodec
from mdblocks.core.content import table_data
from mdblocks.core.models import Element, ElementKind, ElementType, Encoding
from mdblocks.core.sections import FRONTMATTER_ID, Source, as_tree
from mdblocks.core.tree import DocumentTree
from mdblocks.core.utils.slug import SlugRegistry


logger = logging.getLogger(__name__)

BLOCK_TYPE_MAP: dict[str, ElementType] = {
    'heading':      ElementType.heading,
    'paragraph':    ElementType.paragraph,
    'fence':        ElementType.code,
    'code_block':   ElementType.code,
    'blockquote':   ElementType.blockquote,
    'bullet_list':  ElementType.list,
    'ordered_list': ElementType.list,
    'table':        ElementType.table,
    'hr':           ElementType.hr,
    'html_block':   ElementType.html,
}


def _image_only(node: SyntaxTreeNode) -> Optional[SyntaxTreeNode]:
    """Return the image node if a paragraph holds nothing but one image, else None."""
    for child in node.children:
        if child.type == 'inline':
            non_ws = [c for c in child.children if c.type not in ('softbreak', 'hardbreak')]
            if len(non_ws) == 1 and non_ws[0].type == 'image':
                return non_ws[0]
    return None


def _unquote(text: str) -> str:
    """Strip one level of '>' markers from blockquote source."""
    lines = []
    for line in text.splitlines():
        stripped = line.lstrip()
        if stripped.startswith('> '):
            lines.append(stripped[2:])
        elif stripped.startswith('>'):
            lines.append(stripped[1:])
        else:
            lines.append(line)
    return '\n'.join(lines).rstrip('\n')


def _list_items(tree: DocumentTree, node: SyntaxTreeNode) -> list[str]:
    """Text of each list item's first paragraph (nested lists are not descended)."""
    items = []
    for item in node.children:
        text = ""
        for child in item.children:
            if child.type in ('bullet_list', 'ordered_list'):
                break
            text = tree.render_as_plain_text(child)
            if child.type == 'paragraph' or text:
                break
        items.append(text)
    return items


def _element(tree: DocumentTree, node: SyntaxTreeNode, registry: SlugRegistry,
             codec: PayloadCodec, order: int) -> Element:
    element_type = BLOCK_TYPE_MAP.get(node.type)
    content = ""
    level = None
    encoding = Encoding.text
    attributes: dict[str, str] = {}

    if element_type is ElementType.heading:
        content = tree.render_as_plain_text(node)
        level = tree.heading_level(node)
        attributes["id"] = registry.unique(content)

    elif element_type is ElementType.paragraph:
        image = _image_only(node)
        if image is not None:
            element_type = ElementType.image
            content = tree.render_as_plain_text(image) or image.content
            attributes = {"src": str(image.attrGet("src") or ""), "alt": content}
            if image.attrGet("title"):
                attributes["title"] = str(image.attrGet("title"))
        else:
            content = tree.render_as_markdown(node).rstrip('\n')

    elif element_type is ElementType.code:
        content = node.content.rstrip('\n')
        info = (node.info or "").strip()
        if info:
            language, _, rest = info.partition(' ')
            attributes["language"] = language
            if rest:
                attributes["info_string"] = info

    elif element_type is ElementType.blockquote:
        level = 1
        content = _unquote(tree.render_as_markdown(node))

    elif element_type is ElementType.list:
        level = 1
        encoding = Encoding.structured
        content = codec.dump_items(_list_items(tree, node))
        ordered = node.type == 'ordered_list'
        attributes["ordered"] = "true" if ordered else "false"
        if ordered:
            attributes["start"] = str(node.attrGet("start") or 1)

    elif element_type is ElementType.table:
        encoding = Encoding.structured
        content = codec.dump_table(table_data(tree, node))

    elif element_type is ElementType.hr:
        content = ""

    elif element_type is ElementType.html:
        content = node.content.rstrip('\n')

    else:
        element_type = ElementType.raw
        content = tree.render_as_markdown(node)
        attributes["original_type"] = node.type

    return Element(
        kind=ElementKind.block,
        element_type=element_type.value,
        content=content,
        level=level,
        encoding=encoding,
        attributes=attributes,
        order=order,
    )


def markdown_to_elements(source: Source, codec: PayloadCodec = DEFAULT_CODEC,
                         parser_config: str = 'gfm-like') -> list[Element]:
    """Convert a document into its flat block element sequence (order starts at 1)."""
    tree = as_tree(source, parser_config)
    registry = SlugRegistry()
    elements: list[Element] = []

    if tree.parsed.raw_frontmatter:
        registry.reserve(FRONTMATTER_ID)
        elements.append(Element(
            kind=ElementKind.block,
            element_type=ElementType.frontmatter.value,
            content=tree.parsed.raw_frontmatter,
            level=0,
            encoding=Encoding.yaml,
            order=1,
        ))

    for node in tree.blocks():
        elements.append(_element(tree, node, registry, codec, order=len(elements) + 1))

    logger.debug("Converted %s into %d element(s)", tree.parsed.path, len(elements))
    return elements
