"""Element and section models shared by the extract, render and reduce paths"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


_NEWLINE_RE = re.compile(r"\r\n?")


class ElementKind(str, Enum):
    """Top-level element category; governs which render table applies."""
    block = "block"
    inline = "inline"


class Encoding(str, Enum):
    """How an element's content must be read before rendering."""
    text = "text"
    structured = "json"
    yaml = "yaml"

    @classmethod
    def _missing_(cls, value):
        aliases = {"structured": cls.structured, "yamllike": cls.yaml, "yaml_like": cls.yaml}
        if isinstance(value, str):
            return aliases.get(value.lower())
        return None


class ContentMode(str, Enum):
    """How much nested text a section's content absorbs."""
    minimal = "minimal"
    full = "full"
    smart = "smart"


class ElementType(str, Enum):
    """Known element_type tags. Anything else resolves to `other`."""
    # block
    heading = "heading"
    paragraph = "paragraph"
    code = "code"
    blockquote = "blockquote"
    list = "list"
    list_item = "list_item"
    table = "table"
    hr = "hr"
    metadata = "metadata"
    frontmatter = "frontmatter"
    image = "image"
    raw = "raw"
    html = "html"
    html_block = "md:html_block"
    # inline
    link = "link"
    bold = "bold"
    strong = "strong"
    italic = "italic"
    emphasis = "emphasis"
    em = "em"
    text = "text"
    space = "space"
    softbreak = "softbreak"
    linebreak = "linebreak"
    br = "br"
    strikethrough = "strikethrough"
    delete = "del"
    superscript = "superscript"
    sup = "sup"
    subscript = "subscript"
    sub = "sub"
    underline = "underline"
    smallcaps = "smallcaps"
    math = "math"
    quoted = "quoted"
    cite = "cite"
    note = "note"
    span = "span"
    other = "other"


BLOCK_TYPES = frozenset({
    ElementType.heading, ElementType.paragraph, ElementType.blockquote, ElementType.list,
    ElementType.table, ElementType.hr, ElementType.metadata, ElementType.frontmatter,
    ElementType.code, ElementType.image,
})

METADATA_TYPES = frozenset({ElementType.metadata, ElementType.frontmatter})


def element_type_of(tag: str) -> ElementType:
    """Resolve a raw element_type tag to the closed vocabulary (unknown -> other)."""
    try:
        return ElementType(tag)
    except ValueError:
        return ElementType.other


class Element(BaseModel):
    """One typed unit (block or inline) of a flat document sequence."""
    model_config = ConfigDict(frozen=True)

    kind: Optional[ElementKind] = None      # None: guessed from element_type
    element_type: str
    content: str = ""
    level: Optional[int] = None             # heading depth or nesting depth
    encoding: Encoding = Encoding.text
    attributes: dict[str, str] = Field(default_factory=dict)
    order: int = 0

    @field_validator("content", mode="before")
    @classmethod
    def _none_content(cls, v):
        return "" if v is None else v

    @field_validator("encoding", mode="before")
    @classmethod
    def _none_encoding(cls, v):
        return Encoding.text if v is None else v

    @field_validator("attributes", mode="before")
    @classmethod
    def _fold_attributes(cls, v):
        """Accept a mapping or key/value pairs; duplicate keys are last-write-wins."""
        if v is None:
            return {}
        if isinstance(v, dict):
            items = v.items()
        else:
            items = (
                (p["key"], p["value"]) if isinstance(p, dict) else tuple(p)
                for p in v
            )
        return {str(k): "" if val is None else str(val) for k, val in items}

    @property
    def type(self) -> ElementType:
        return element_type_of(self.element_type)

    @property
    def is_inline(self) -> bool:
        if self.kind is None:
            return self.type not in BLOCK_TYPES
        return self.kind == ElementKind.inline

    def attr(self, key: str) -> str:
        """Return attribute value, or "" when absent."""
        return self.attributes.get(key, "")


class Section(BaseModel):
    """A heading-rooted section row."""
    id: str
    path: str
    level: int                              # 0 for the frontmatter pseudo-section
    title: str = ""
    content: str = ""
    parent_id: str = ""
    start_line: Optional[int] = None
    end_line: Optional[int] = None



class CodeBlock(BaseModel):
    language: str = ""
    code: str = ""
    line_number: Optional[int] = None
    info_string: str = ""


class Link(BaseModel):
    text: str = ""
    url: str = ""
    title: str = ""
    is_reference: bool = False
    line_number: Optional[int] = None


class Image(BaseModel):
    alt_text: str = ""
    url: str = ""
    title: str = ""
    line_number: Optional[int] = None


class Table(BaseModel):
    """A GFM table as header cells plus data rows."""
    table_index: int
    line_number: Optional[int] = None
    num_columns: int = 0
    num_rows: int = 0
    headers: list[str] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)


class TableCell(BaseModel):
    """One cell of a table, flattened; the header row has row_index 0."""
    table_index: int
    row_type: str                           # "header" or "data"
    row_index: int
    column_index: int
    cell_value: str = ""
    line_number: Optional[int] = None
    num_columns: int = 0
    num_rows: int = 0


class DocumentStats(BaseModel):
    word_count: int = 0
    char_count: int = 0
    line_count: int = 0
    heading_count: int = 0
    code_block_count: int = 0
    link_count: int = 0
    reading_time_minutes: float = 0.0


@dataclass
class ParsedDoc:
    """Internal parse result carrying markdown-it tokens; not persisted."""
    path:            Path
    raw_markdown:    str               # full text (includes frontmatter)
    markdown:        str               # body only (frontmatter stripped)
    frontmatter:     dict[str, str]    # flat key -> value view of the YAML header
    raw_frontmatter: str               # YAML text between the --- fences, "" if none
    line_offset:     int               # source lines consumed by the frontmatter block
    tokens:          list = field(default_factory=list)   # markdown-it Token objects

    @property
    def source_lines(self) -> list[str]:
        """Body lines numbered the way markdown-it numbers them (only \\n, \\r\\n and \\r break)."""
        text = _NEWLINE_RE.sub("\n", self.markdown)
        lines = [line + "\n" for line in text.split("\n")]
        if not text or text.endswith("\n"):
            lines.pop()
        return lines
