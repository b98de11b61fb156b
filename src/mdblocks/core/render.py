"""Element -> Markdown rendering for single elements, sequences and section rows"""

import logging
from typing import Callable, Iterable

from mdblocks.core.codecs import DEFAULT_CODEC, PayloadCodec
from mdblocks.core.models import Element, ElementType as T, Encoding, Section


logger = logging.getLogger(__name__)


def heading_level(element: Element) -> int:
    """Heading depth 1-6: heading_level attribute first, then the level field, else 1."""
    level = 1
    attr = element.attr("heading_level")
    if attr:
        try:
            level = int(attr.strip())
        except ValueError:
            level = 1
    elif element.level is not None and 1 <= element.level <= 6:
        level = element.level
    return min(max(level, 1), 6)


def _int_attr(element: Element, key: str, default: int) -> int:
    try:
        return int(element.attr(key))
    except ValueError:
        return default


def _titled(url: str, title: str) -> str:
    return f'{url} "{title}"' if title else url


# --- block renderers ---

def _heading(el: Element, codec: PayloadCodec) -> str:
    return "#" * heading_level(el) + " " + el.content + "\n\n"


def _code(el: Element, codec: PayloadCodec) -> str:
    return f"```{el.attr('language')}\n{el.content}\n```\n\n"


def _blockquote(el: Element, codec: PayloadCodec) -> str:
    return "".join(f"> {line}\n" for line in el.content.splitlines()) + "\n"


def _list(el: Element, codec: PayloadCodec) -> str:
    items = codec.parse_items(el.content) if el.encoding == Encoding.structured else None
    if not items:
        if el.encoding == Encoding.structured:
            logger.warning("List payload did not decode; rendering as text: %.40r", el.content)
        return el.content + "\n\n"
    if el.attr("ordered") == "true":
        start = _int_attr(el, "start", 1)
        lines = [f"{n}. {item}\n" for n, item in enumerate(items, start)]
    else:
        lines = [f"- {item}\n" for item in items]
    return "".join(lines) + "\n"


def _list_item(el: Element, codec: PayloadCodec) -> str:
    number = el.attr("item_number")
    if el.attr("ordered") == "true" and number:
        return f"{number}. {el.content}\n"
    return f"- {el.content}\n"


def _table(el: Element, codec: PayloadCodec) -> str:
    table = codec.parse_table(el.content) if el.encoding == Encoding.structured else None
    if not table:
        if el.encoding == Encoding.structured:
            logger.warning("Table payload did not decode; rendering as text: %.40r", el.content)
        return el.content + "\n\n"
    cols = table.column_count
    header = table.headers or [""] * cols
    out = ["|" + "".join(f" {h} |" if h else " |" for h in header) + "\n"]
    out.append("|" + "---|" * cols + "\n")
    out.extend("|" + "".join(f" {cell} |" for cell in row) + "\n" for row in table.rows)
    return "".join(out) + "\n"


def _metadata(el: Element, codec: PayloadCodec) -> str:
    return f"---\n{el.content}\n---\n\n"


def _block_image(el: Element, codec: PayloadCodec) -> str:
    alt = el.attr("alt") or el.content
    return f"![{alt}]({_titled(el.attr('src'), el.attr('title'))})\n\n"


def _paragraph(el: Element, codec: PayloadCodec) -> str:
    return el.content + "\n\n"


BLOCK_RENDERERS: dict[T, Callable[[Element, PayloadCodec], str]] = {
    T.heading:     _heading,
    T.paragraph:   _paragraph,
    T.code:        _code,
    T.blockquote:  _blockquote,
    T.list:        _list,
    T.list_item:   _list_item,
    T.table:       _table,
    T.hr:          lambda el, codec: "---\n\n",
    T.metadata:    _metadata,
    T.frontmatter: _metadata,
    T.image:       _block_image,
    T.raw:         _paragraph,
    T.html:        _paragraph,
    T.html_block:  _paragraph,
}


# --- inline renderers ---

def _inline_code(el: Element) -> str:
    if "`" in el.content:
        return f"`` {el.content} ``"
    return f"`{el.content}`"


def _math(el: Element) -> str:
    if el.attr("display") == "block":
        return f"$${el.content}$$"
    return f"${el.content}$"


def _quoted(el: Element) -> str:
    if el.attr("quote_type") == "single":
        return f"'{el.content}'"
    return f'"{el.content}"'


def _cite(el: Element) -> str:
    key = el.attr("key")
    return f"[@{key}]" if key else el.content


INLINE_RENDERERS: dict[T, Callable[[Element], str]] = {
    T.link:          lambda el: f"[{el.content}]({_titled(el.attr('href'), el.attr('title'))})",
    T.image:         lambda el: f"![{el.content}]({_titled(el.attr('src'), el.attr('title'))})",
    T.bold:          lambda el: f"**{el.content}**",
    T.strong:        lambda el: f"**{el.content}**",
    T.italic:        lambda el: f"*{el.content}*",
    T.emphasis:      lambda el: f"*{el.content}*",
    T.em:            lambda el: f"*{el.content}*",
    T.code:          _inline_code,
    T.text:          lambda el: el.content,
    T.space:         lambda el: " ",
    T.softbreak:     lambda el: "\n",
    T.linebreak:     lambda el: "  \n",
    T.br:            lambda el: "  \n",
    T.strikethrough: lambda el: f"~~{el.content}~~",
    T.delete:        lambda el: f"~~{el.content}~~",
    T.superscript:   lambda el: f"^{el.content}^",
    T.sup:           lambda el: f"^{el.content}^",
    T.subscript:     lambda el: f"~{el.content}~",
    T.sub:           lambda el: f"~{el.content}~",
    T.underline:     lambda el: f"<u>{el.content}</u>",
    T.smallcaps:     lambda el: f'<span style="font-variant: small-caps">{el.content}</span>',
    T.math:          _math,
    T.quoted:        _quoted,
    T.cite:          _cite,
    T.note:          lambda el: f"[^{el.content}]",
}


def render_element(element: Element, codec: PayloadCodec = DEFAULT_CODEC) -> str:
    """Render one element to a Markdown fragment. Unknown types degrade to literal text."""
    if element.is_inline:
        render = INLINE_RENDERERS.get(element.type)
        return render(element) if render else element.content
    render = BLOCK_RENDERERS.get(element.type, _paragraph)
    return render(element, codec)


def render_elements(elements: Iterable[Element], codec: PayloadCodec = DEFAULT_CODEC) -> str:
    """Render an element sequence (in `order`) to one Markdown document.

    Blocks that follow inline content get an extra paragraph break so they
    always start on a fresh paragraph.
    """
    parts = []
    last_was_inline = False
    for element in sorted(elements, key=lambda e: e.order):
        if last_was_inline and not element.is_inline:
            parts.append("\n\n")
        parts.append(render_element(element, codec))
        last_was_inline = element.is_inline
    return "".join(parts)


def render_section(section: Section, blank_lines: int = 1) -> str:
    """Render one section row as a heading followed by its content."""
    if section.level == 0:
        return f"---\n{section.content}\n---\n\n" if section.content else ""
    out = ""
    if 1 <= section.level <= 6 and section.title:
        out = "#" * section.level + " " + section.title + "\n"
    if section.content:
        out += "\n" + section.content + "\n"
    return out + "\n" * blank_lines


def render_sections(sections: Iterable[Section], frontmatter: str = "", blank_lines: int = 1) -> str:
    """Write section rows back out as a Markdown document.

    An explicit frontmatter string takes precedence over level-0 section rows.
    """
    out = [f"---\n{frontmatter}\n---\n\n"] if frontmatter else []
    for section in sections:
        if section.level == 0 and frontmatter:
            continue
        out.append(render_section(section, blank_lines))
    return "".join(out)
