"""Whole-document content queries: code, links, images, tables, stats, text, metadata"""

import re
from typing import Optional

from markdown_it.tree import SyntaxTreeNode

from mdblocks.core.codecs import TableData
from mdblocks.core.models import CodeBlock, DocumentStats, Image, Link, Table, TableCell
from mdblocks.core.sections import Source, as_tree
from mdblocks.core.tree import DocumentTree


REFERENCE_DEF_RE = re.compile(r'^\s*\[([^\]]+)\]:\s+<?([^\s>]+)>?', re.MULTILINE)
WORDS_PER_MINUTE = 200


def table_data(tree: DocumentTree, node: SyntaxTreeNode) -> TableData:
    """Cell text of a table node; the first row is the header row."""
    table = TableData()
    for row in (n for n in node.walk() if n.type == 'tr'):
        cells = [tree.render_as_plain_text(cell) for cell in row.children]
        if not table.headers and not table.rows:
            table.headers = cells
        else:
            table.rows.append(cells)
    return table


def extract_code_blocks(source: Source, language: Optional[str] = None) -> list[CodeBlock]:
    """Fenced and indented code blocks, optionally only those in one language."""
    tree = as_tree(source)
    blocks = []
    for node in tree.walk('fence', 'code_block'):
        info = (node.info or "").strip()
        lang = info.split(' ', 1)[0] if info else ""
        if language and lang.lower() != language.lower():
            continue
        blocks.append(CodeBlock(
            language=lang,
            code=node.content,
            line_number=tree.start_line(node),
            info_string=info,
        ))
    return blocks


def extract_links(source: Source) -> list[Link]:
    """Every link, with is_reference set when its url comes from a [label]: url definition."""
    tree = as_tree(source)
    reference_urls = {m.group(2) for m in REFERENCE_DEF_RE.finditer(tree.parsed.markdown)}
    return [
        Link(
            text=tree.render_as_plain_text(node),
            url=str(node.attrGet('href') or ""),
            title=str(node.attrGet('title') or ""),
            is_reference=str(node.attrGet('href') or "") in reference_urls,
            line_number=tree.line_of(node),
        )
        for node in tree.walk('link')
    ]


def extract_images(source: Source) -> list[Image]:
    tree = as_tree(source)
    return [
        Image(
            alt_text=tree.render_as_plain_text(node),
            url=str(node.attrGet('src') or ""),
            title=str(node.attrGet('title') or ""),
            line_number=tree.line_of(node),
        )
        for node in tree.walk('image')
    ]


def extract_tables(source: Source) -> list[Table]:
    tree = as_tree(source)
    tables = []
    for index, node in enumerate(tree.walk('table')):
        data = table_data(tree, node)
        tables.append(Table(
            table_index=index,
            line_number=tree.start_line(node),
            num_columns=data.column_count,
            num_rows=len(data.rows),
            headers=data.headers,
            rows=data.rows,
        ))
    return tables


def extract_table_rows(source: Source) -> list[TableCell]:
    """One row per table cell: header cells first (row_index 0), then data rows from 1."""
    cells = []
    for table in extract_tables(source):
        shared = dict(
            table_index=table.table_index,
            line_number=table.line_number,
            num_columns=table.num_columns,
            num_rows=table.num_rows,
        )
        for col, value in enumerate(table.headers):
            cells.append(TableCell(row_type="header", row_index=0, column_index=col, cell_value=value, **shared))
        for row_index, row in enumerate(table.rows, 1):
            for col, value in enumerate(row):
                cells.append(TableCell(row_type="data", row_index=row_index, column_index=col,
                                       cell_value=value, **shared))
    return cells


def document_stats(source: Source) -> DocumentStats:
    """Counts over the full text (frontmatter included) and over the parsed tree."""
    tree = as_tree(source)
    raw = tree.parsed.raw_markdown
    words = len(raw.split())
    return DocumentStats(
        word_count=words,
        char_count=len(raw),
        line_count=raw.count('\n') + 1 if raw else 0,
        heading_count=sum(1 for _ in tree.walk('heading')),
        code_block_count=sum(1 for _ in tree.walk('fence', 'code_block')),
        link_count=sum(1 for _ in tree.walk('link')),
        reading_time_minutes=words / WORDS_PER_MINUTE,
    )


def to_text(source: Source) -> str:
    """Plain text of the document body: one paragraph per block, markup removed."""
    tree = as_tree(source)
    parts = [tree.render_as_plain_text(node) for node in tree.blocks()]
    text = "\n\n".join(p for p in parts if p)
    return text + "\n" if text else ""


def extract_metadata(source: Source) -> dict[str, str]:
    """Frontmatter as a flat key -> value map ({} without a YAML header)."""
    return dict(as_tree(source).parsed.frontmatter)
