"""Unit tests for core/sections.py"""

import pytest

from mdblocks.core.parse import parse_text
from mdblocks.core.sections import (
    breadcrumb,
    extract_headings,
    extract_section,
    extract_sections,
    validate_internal_link,
)
from mdblocks.core.tree import DocumentTree


LONG = " ".join(["word"] * 30)


def test_minimal_mode(nested_md):
    """Minimal content stops at the next heading of any level."""
    sections = extract_sections(nested_md)
    assert [(s.id, s.level, s.parent_id, s.path) for s in sections] == [
        ("intro", 1, "", "intro"),
        ("setup", 2, "intro", "intro/setup"),
        ("install", 3, "setup", "intro/setup/install"),
    ]
    assert [s.content for s in sections] == ["intro text\n\n", "setup text\n\n", "install text\n\n"]
    assert [s.title for s in sections] == ["Intro", "Setup", "Install"]


def test_full_mode(nested_md):
    """Full content runs to the next heading of the same or a shallower level."""
    intro, setup, install = extract_sections(nested_md, content_mode="full")
    assert intro.content == "intro text\n\n## Setup\n\nsetup text\n\n### Install\n\ninstall text\n\n"
    assert setup.content == "setup text\n\n### Install\n\ninstall text\n\n"
    assert install.content == "install text\n\n"


def test_line_ranges(nested_md):
    """start_line is the heading line; end_line is the line before the boundary heading."""
    sections = extract_sections(nested_md)
    assert [(s.start_line, s.end_line) for s in sections] == [(1, 4), (5, 8), (9, 11)]
    intro = extract_sections(nested_md, content_mode="full")[0]
    assert (intro.start_line, intro.end_line) == (1, 11)


def test_level_filter_keeps_boundaries():
    """Headings outside [min_level, max_level] still end their neighbours' content."""
    md = "# A\n\n## B\n\n### C\n\nc text\n\n## D\n"
    minimal = extract_sections(md, min_level=2, max_level=2)
    assert [(s.id, s.parent_id, s.path, s.content) for s in minimal] == [
        ("b", "", "b", ""),
        ("d", "", "d", ""),
    ]
    full = extract_sections(md, min_level=2, max_level=2, content_mode="full")
    assert full[0].content == "### C\n\nc text\n\n"


def test_duplicate_titles_get_unique_ids():
    """Repeated heading titles are suffixed in document order."""
    md = "# Test\n\n# Test\n\n## Test\n"
    assert [s.id for s in extract_sections(md)] == ["test", "test-1", "test-2"]


def test_frontmatter_section():
    """A YAML header becomes a level-0 'frontmatter' section that is nobody's parent."""
    md = "---\ntitle: Doc\n---\n\n# A\n\ntext\n"
    fm, a = extract_sections(md)
    assert (fm.id, fm.path, fm.level, fm.content) == ("frontmatter", "frontmatter", 0, "title: Doc")
    assert (fm.start_line, fm.end_line) == (1, 4)
    assert a.parent_id == ""
    assert a.path == "a"
    assert a.start_line == 5


def test_frontmatter_id_is_reserved():
    """A heading titled 'Frontmatter' cannot take the frontmatter section's id."""
    md = "---\na: 1\n---\n# Frontmatter\n"
    assert [s.id for s in extract_sections(md)] == ["frontmatter", "frontmatter-1"]


def test_without_content(nested_md):
    """include_content=False leaves every content field empty."""
    sections = extract_sections("---\na: 1\n---\n" + nested_md, include_content=False)
    assert all(s.content == "" for s in sections)
    assert len(sections) == 4


def test_empty_document():
    """A document with no headings and no header has no sections."""
    assert extract_sections("") == []
    assert extract_sections("just a paragraph\n") == []


def test_heading_title_is_plain_text():
    """Section titles drop inline markup."""
    (section,) = extract_sections("# Hello **World**\n")
    assert section.title == "Hello World"
    assert section.id == "hello-world"


def test_accepts_parsed_doc_and_tree(nested_md):
    """Text, ParsedDoc and DocumentTree sources give the same rows."""
    parsed = parse_text(nested_md)
    expected = extract_sections(nested_md)
    assert extract_sections(parsed) == expected
    assert extract_sections(DocumentTree(parsed)) == expected


def test_invalid_level_bounds(nested_md):
    """min_level above max_level is rejected."""
    with pytest.raises(ValueError, match="exceeds"):
        extract_sections(nested_md, min_level=3, max_level=2)


def test_invalid_content_mode(nested_md):
    """An unknown content mode is rejected."""
    with pytest.raises(ValueError):
        extract_sections(nested_md, content_mode="everything")


# --- smart mode ---

def test_smart_mode_short_content_unchanged(nested_md):
    """Within the limit, smart mode is identical to full mode."""
    assert extract_sections(nested_md, content_mode="smart") == extract_sections(nested_md, content_mode="full")


def test_smart_mode_uses_lead_in_text():
    """Over the limit, a short lead-in is kept and each direct child is referenced."""
    md = "# Guide\n\nShort intro.\n\n## Alpha\n\n" + LONG + "\n"
    guide = extract_sections(md, content_mode="smart", max_content_length=50)[0]
    assert guide.content == "Short intro.\n\n\n... (see #alpha)\n"


def test_smart_mode_falls_back_to_prefix():
    """A long lead-in is cut to a prefix of the limit, then children are referenced."""
    md = "# Guide\n\n" + LONG + "\n\n## Alpha\n\na\n\n## Beta\n\nb\n"
    guide = extract_sections(md, content_mode="smart", max_content_length=50)[0]
    assert guide.content == LONG[:50] + "\n... (see #alpha)\n\n... (see #beta)\n"


def test_smart_mode_references_direct_children_only():
    """Grandchildren are not listed; their parent's reference covers them."""
    md = "# Top\n\n" + LONG + "\n\n## Child\n\n### Grandchild\n\ng\n"
    top = extract_sections(md, content_mode="smart", max_content_length=40)[0]
    assert "(see #child)" in top.content
    assert "grandchild" not in top.content


def test_smart_mode_cuts_at_newline():
    """A newline in the second half of the limit window becomes the cut point."""
    md = "# Top\n\n" + "a" * 30 + "\n" + "b" * 30 + "\n"
    top = extract_sections(md, content_mode="smart", max_content_length=40)[0]
    assert top.content == "a" * 30


def test_smart_mode_bounded():
    """Every smart section fits the limit or ends in its child references."""
    md = "# A\n\n" + LONG + "\n\n## B\n\n" + LONG + "\n\n### C\n\n" + LONG + "\n\n## D\n\nd\n"
    limit = 60
    for section in extract_sections(md, content_mode="smart", max_content_length=limit):
        head, sep, _ = section.content.partition("\n... (see #")
        assert len(head) <= limit


# --- queries ---

def test_extract_headings(nested_md):
    """extract_headings lists heading rows without content."""
    headings = extract_headings(nested_md)
    assert [h.title for h in headings] == ["Intro", "Setup", "Install"]
    assert all(h.content == "" for h in headings)
    assert [h.id for h in extract_headings(nested_md, max_level=2)] == ["intro", "setup"]


def test_extract_headings_skips_frontmatter():
    """The frontmatter pseudo-section is not a heading."""
    assert [h.id for h in extract_headings("---\na: 1\n---\n# A\n")] == ["a"]


def test_extract_section(nested_md):
    """extract_section returns one section's content, optionally with subsections."""
    assert extract_section(nested_md, "setup") == "setup text\n\n"
    assert extract_section(nested_md, "setup", include_subsections=True) == (
        "setup text\n\n### Install\n\ninstall text\n\n"
    )
    assert extract_section(nested_md, "missing") == ""


def test_breadcrumb(nested_md):
    """breadcrumb joins ancestor titles down to the section."""
    assert breadcrumb(nested_md, "install") == "Intro > Setup > Install"
    assert breadcrumb(nested_md, "intro", separator=" / ") == "Intro"
    assert breadcrumb(nested_md, "missing") == ""


@pytest.mark.parametrize("target,expected", [
    ("#setup", True),
    ("#missing", False),
    ("https://example.com", True),
    ("other.md#setup", True),
])
def test_validate_internal_link(nested_md, target, expected):
    """Only '#id' targets are checked against the document's headings."""
    assert validate_internal_link(nested_md, target) is expected


def test_unicode_line_separator_keeps_content():
    """Characters that are not markdown line breaks do not shift section content."""
    a, b = extract_sections("# A\n\ntext\u2028more\n\n# B\n\nb text\n")
    assert a.content == "text\u2028more\n\n"
    assert b.content == "b text\n\n"
    assert (b.start_line, b.end_line) == (5, 7)


def test_crlf_document():
    """CRLF frontmatter yields the frontmatter section rather than a setext heading."""
    sections = extract_sections("---\r\ntitle: Doc\r\n---\r\n\r\n# A\r\n\r\ntext\r\n")
    assert [(s.id, s.level) for s in sections] == [("frontmatter", 0), ("a", 1)]
    assert sections[0].content == "title: Doc"
    assert sections[1].content == "text\n\n"
    assert sections[1].start_line == 5


def test_nested_heading_is_content():
    """A heading inside a blockquote or list item is part of the enclosing section."""
    md = "# A\n\n> ## B\n\n- ### C\n\ntail\n"
    (a,) = extract_sections(md)
    assert a.content == "> ## B\n\n- ### C\n\ntail\n\n"
    assert a.end_line == 7
    assert [h.id for h in extract_headings(md)] == ["a"]
