"""File discovery, frontmatter extraction, and markdown-it tokenization"""

import logging
import re
from pathlib import Path
from typing import Any

import yaml
from markdown_it import MarkdownIt

from mdblocks.core.models import ParsedDoc
from mdblocks.errors import StructuralError


logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r'^---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:(?:\r?\n)+|$)', re.DOTALL)
MD_EXTENSIONS = {'.md', '.mdx', '.markdown'}


def _make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset, options_update={"linkify": False})


def _flatten(value: Any) -> str:
    """Render a YAML value as a flat string (scalars as-is, collections as YAML flow)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, dict)):
        return yaml.safe_dump(value, default_flow_style=True, sort_keys=False).strip()
    return str(value)


def split_frontmatter(text: str) -> tuple[str, str]:
    """Return (raw_yaml, body). raw_yaml is "" when the text has no frontmatter block."""
    m = FRONTMATTER_RE.match(text)
    if m:
        return m.group(1).replace('\r\n', '\n'), text[m.end():]
    return "", text


def frontmatter_map(raw_yaml: str) -> dict[str, str]:
    """Parse raw YAML frontmatter into a flat string-to-string map."""
    if not raw_yaml.strip():
        return {}
    try:
        fm = yaml.safe_load(raw_yaml) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML frontmatter: {e}") from e
    if not isinstance(fm, dict):
        raise ValueError(f"Invalid YAML frontmatter: expected a mapping, got {type(fm).__name__}")
    return {str(k): _flatten(v) for k, v in fm.items()}


def discover_files(path: Path) -> list[Path]:
    """Return sorted markdown files under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(p for p in path.rglob('*') if p.suffix in MD_EXTENSIONS)


def parse_text(text: str, source: str = "<string>", parser_config: str = 'gfm-like') -> ParsedDoc:
    """Split frontmatter and tokenize the body. Raises StructuralError on failure."""
    raw_yaml, body = split_frontmatter(text)
    try:
        frontmatter = frontmatter_map(raw_yaml)
        tokens = _make_parser(parser_config).parse(body)
    except (ValueError, KeyError) as e:
        raise StructuralError(source, str(e)) from e
    offset = text[:len(text) - len(body)].count('\n')
    logger.debug("Parsed %s: %d tokens, frontmatter=%s", source, len(tokens), bool(raw_yaml))
    return ParsedDoc(
        path=Path(source),
        raw_markdown=text,
        markdown=body,
        frontmatter=frontmatter,
        raw_frontmatter=raw_yaml,
        line_offset=offset,
        tokens=tokens,
    )


def parse_file(path: Path, parser_config: str = 'gfm-like') -> ParsedDoc:
    """Read and parse a single markdown file into a ParsedDoc with token stream."""
    try:
        raw = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise StructuralError(str(path), f"cannot read file: {e}") from e
    return parse_text(raw, source=str(path), parser_config=parser_config)
