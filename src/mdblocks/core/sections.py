"""Heading tree -> section rows, plus lookups built on top of them"""

import logging
from typing import Optional, Union

from mdblocks.core.models import ContentMode, ParsedDoc, Section
from mdblocks.core.parse import parse_text
from mdblocks.core.tree import DocumentTree
from mdblocks.core.utils.slug import SlugRegistry, slugify


logger = logging.getLogger(__name__)

FRONTMATTER_ID = "frontmatter"
DEFAULT_MAX_CONTENT_LENGTH = 2000

Source = Union[str, ParsedDoc, DocumentTree]


def as_tree(source: Source, parser_config: str = 'gfm-like') -> DocumentTree:
    """Accept raw markdown text, a ParsedDoc, or an existing DocumentTree."""
    if isinstance(source, DocumentTree):
        return source
    if isinstance(source, ParsedDoc):
        return DocumentTree(source)
    return DocumentTree(parse_text(source, parser_config=parser_config))


def _smart_trim(content: str, immediate: str, limit: int) -> str:
    """Shorten over-long smart-mode content to its lead-in text."""
    if immediate and len(immediate) <= limit:
        return immediate
    prefix = content[:limit]
    cut = prefix.rfind('\n')
    if cut > limit // 2:
        prefix = prefix[:cut]
    return prefix


def extract_sections(
    source: Source,
    min_level: int = 1,
    max_level: int = 6,
    include_content: bool = True,
    content_mode: str = "minimal",
    max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH,
    parser_config: str = 'gfm-like',
    ) -> list[Section]:
    """Build section rows for every heading within [min_level, max_level].

    content_mode decides where a section's content stops:
      minimal - at the next heading of any level
      full    - at the next heading of the same or a shallower level
      smart   - as full, but content over max_content_length is cut back to
                the text before the first subsection (or a prefix) followed by
                one "... (see #id)" line per direct child
    A leading YAML frontmatter block becomes a level-0 "frontmatter" section.
    """
    if min_level > max_level:
        raise ValueError(f"min_level ({min_level}) exceeds max_level ({max_level})")
    mode = ContentMode(content_mode)
    limit = max_content_length if max_content_length and max_content_length > 0 else DEFAULT_MAX_CONTENT_LENGTH
    tree = as_tree(source, parser_config)
    parsed = tree.parsed

    registry = SlugRegistry()
    sections: list[Section] = []
    if parsed.raw_frontmatter:
        registry.reserve(FRONTMATTER_ID)
        sections.append(Section(
            id=FRONTMATTER_ID,
            path=FRONTMATTER_ID,
            level=0,
            content=parsed.raw_frontmatter if include_content else "",
            start_line=1,
            end_line=parsed.line_offset,
        ))

    # All headings, regardless of the level filter, so boundaries stay correct.
    headings = tree.headings()
    levels = [tree.heading_level(h) for h in headings]
    titles = [tree.render_as_plain_text(h) for h in headings]
    ids: list[Optional[str]] = [
        registry.unique(title) if min_level <= level <= max_level else None
        for title, level in zip(titles, levels)
    ]

    for i, heading in enumerate(headings):
        level = levels[i]
        if ids[i] is None:
            continue

        parent = next((s for s in reversed(sections) if 0 < s.level < level), None)
        path = f"{parent.path}/{ids[i]}" if parent else ids[i]

        stop = next(
            (j for j in range(i + 1, len(headings))
             if mode is ContentMode.minimal or levels[j] <= level),
            None,
        )
        if stop is not None:
            end_line = tree.start_line(headings[stop]) - 1
        else:
            end_line = tree.last_line

        content = ""
        if include_content:
            stop_node = headings[stop] if stop is not None else None
            parts: list[str] = []
            immediate = None
            node = tree.next_sibling(heading)
            while node is not None and node is not stop_node:
                if node.type == 'heading':
                    sub_level = tree.heading_level(node)
                    if mode is ContentMode.minimal or sub_level <= level:
                        break
                    if immediate is None:
                        immediate = ''.join(parts)
                parts.append(tree.render_as_markdown(node) + '\n')
                node = tree.next_sibling(node)
            content = ''.join(parts)

            if mode is ContentMode.smart and len(content) > limit:
                content = _smart_trim(content, immediate or "", limit)
                for j in range(i + 1, len(headings)):
                    if levels[j] <= level:
                        break
                    if levels[j] == level + 1:
                        content += f"\n... (see #{ids[j] or slugify(titles[j])})\n"

        sections.append(Section(
            id=ids[i],
            path=path,
            level=level,
            title=titles[i],
            content=content,
            parent_id=parent.id if parent else "",
            start_line=tree.start_line(heading),
            end_line=end_line,
        ))

    logger.debug("Extracted %d section(s) from %s (mode=%s)", len(sections), parsed.path, mode.value)
    return sections


def extract_headings(source: Source, max_level: int = 6) -> list[Section]:
    """Heading rows (no content, no frontmatter) for a table of contents."""
    sections = extract_sections(source, 1, max_level, include_content=False)
    return [s for s in sections if s.level > 0]


def extract_section(source: Source, section_id: str, include_subsections: bool = False) -> str:
    """Content of the section with section_id, or "" when there is none."""
    mode = "full" if include_subsections else "minimal"
    for section in extract_sections(source, content_mode=mode):
        if section.id == section_id:
            return section.content
    return ""


def breadcrumb(source: Source, section_id: str, separator: str = " > ") -> str:
    """Titles from the top-level ancestor down to section_id, joined by separator."""
    by_id = {s.id: s for s in extract_sections(source, include_content=False)}
    current = by_id.get(section_id)
    titles = []
    while current is not None:
        titles.append(current.title)
        current = by_id.get(current.parent_id) if current.parent_id else None
    return separator.join(reversed(titles))


def validate_internal_link(source: Source, link_target: str) -> bool:
    """External targets are assumed valid; '#id' targets must name a heading."""
    if not link_target.startswith('#'):
        return True
    section_id = link_target[1:]
    return any(s.id == section_id for s in extract_headings(source))
