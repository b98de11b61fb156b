"""CLI command implementations"""

import json
from pathlib import Path
from typing import Annotated, Optional

import typer

from mdblocks.config import Settings, load_config
from mdblocks.core.content import (
    document_stats,
    extract_code_blocks,
    extract_images,
    extract_links,
    extract_metadata,
    extract_table_rows,
    extract_tables,
    to_text,
)
from mdblocks.core.parse import parse_file
from mdblocks.core.pipeline import (
    dump_elements,
    dump_sections,
    run_blocks,
    run_reduce,
    run_render,
    run_sections,
)
from mdblocks.core.render import render_sections
from mdblocks.core.sections import breadcrumb, extract_headings, extract_section, validate_internal_link
from mdblocks.errors import StructuralError
from mdblocks.logger import setup_logging


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling, then configure logging."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    setup_logging(settings.log_level)
    return settings


def _write(text: str, out: Optional[str]) -> None:
    """Write text to out, or echo it when no output file is given."""
    if out:
        Path(out).parent.mkdir(parents=True, exist_ok=True)
        Path(out).write_text(text, encoding='utf-8')
        typer.echo(f"Wrote {out}")
    else:
        typer.echo(text, nl=False)


def _parsed(path: str, settings: Settings):
    try:
        return parse_file(Path(path), settings.parser_config)
    except StructuralError as e:
        _fail(f"Cannot parse {path}", e)


def sections_cmd(
    path: Annotated[str, typer.Argument(help="File or directory to read")],
    min_level: Annotated[Optional[int], typer.Option("--min-level", help="Shallowest heading level")] = None,
    max_level: Annotated[Optional[int], typer.Option("--max-level", help="Deepest heading level")] = None,
    mode: Annotated[Optional[str], typer.Option("--content-mode", help="minimal, full or smart")] = None,
    max_length: Annotated[Optional[int], typer.Option("--max-content-length", help="Smart mode length budget")] = None,
    content: Annotated[Optional[bool], typer.Option("--content/--no-content", help="Include section content")] = None,
    as_markdown: Annotated[bool, typer.Option("--markdown", help="Write sections back out as Markdown")] = False,
    out: Annotated[Optional[str], typer.Option("--out", help="Output file")] = None,
    ):
    """Extract section rows (id, path, level, title, content, ...) as JSON."""
    settings = _settings(overrides={
        "min_level": min_level, "max_level": max_level, "content_mode": mode,
        "max_content_length": max_length, "include_content": content,
    })
    try:
        results, failures = run_sections(path, settings)
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))

    if as_markdown:
        text = "".join(render_sections(rows, blank_lines=settings.blank_lines) for _, rows in results)
    else:
        text = json.dumps(
            [{"file": str(p), **row.model_dump()} for p, rows in results for row in rows],
            indent=2, ensure_ascii=False,
        ) + "\n"
    _write(text, out)
    for failure in failures:
        typer.echo(f"  skipped: {failure}", err=True)


def section_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file")],
    section_id: Annotated[str, typer.Argument(help="Section id")],
    subsections: Annotated[bool, typer.Option("--include-subsections", help="Include nested subsections")] = False,
    ):
    """Print the content of one section."""
    settings = _settings()
    parsed = _parsed(path, settings)
    if not validate_internal_link(parsed, f"#{section_id}"):
        typer.echo(f"No section '{section_id}' in {path}.", err=True)
        raise typer.Exit(1)
    typer.echo(extract_section(parsed, section_id, include_subsections=subsections), nl=False)


def headings_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file")],
    max_level: Annotated[Optional[int], typer.Option("--max-level", help="Deepest heading level")] = None,
    ):
    """Print an indented table of contents."""
    settings = _settings(overrides={"max_level": max_level})
    for h in extract_headings(_parsed(path, settings), settings.max_level):
        typer.echo(f"{'  ' * (h.level - 1)}- {h.title} (#{h.id})")


def breadcrumb_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file")],
    section_id: Annotated[str, typer.Argument(help="Section id")],
    separator: Annotated[str, typer.Option("--separator", help="Separator between titles")] = " > ",
    ):
    """Print the title chain leading to a section."""
    settings = _settings()
    trail = breadcrumb(_parsed(path, settings), section_id, separator)
    if not trail:
        typer.echo(f"No section '{section_id}' in {path}.", err=True)
        raise typer.Exit(1)
    typer.echo(trail)


def blocks_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file")],
    out: Annotated[Optional[str], typer.Option("--out", help="Output JSON file")] = None,
    ):
    """Convert a Markdown file into its element sequence (JSON)."""
    settings = _settings()
    try:
        results, _ = run_blocks(path, settings, skip_errors=False)
    except (FileNotFoundError, StructuralError) as e:
        _fail(str(e))
    if len(results) != 1:
        _fail(f"Expected a single markdown file, found {len(results)}")
    _write(dump_elements(results[0][1]) + "\n", out)


def render_cmd(
    elements: Annotated[str, typer.Argument(help="Element JSON file")],
    out: Annotated[Optional[str], typer.Option("--out", help="Output Markdown file")] = None,
    ):
    """Render an element sequence (JSON) to Markdown."""
    _settings()
    try:
        text = run_render(Path(elements))
    except StructuralError as e:
        _fail("Render failed", e)
    _write(text, out)


def reduce_cmd(
    elements: Annotated[str, typer.Argument(help="Element JSON file")],
    out: Annotated[Optional[str], typer.Option("--out", help="Output JSON file")] = None,
    ):
    """Fold an element sequence (JSON) into section rows (JSON)."""
    _settings()
    try:
        sections = run_reduce(Path(elements))
    except StructuralError as e:
        _fail("Reduce failed", e)
    _write(dump_sections(sections) + "\n", out)


def _echo_json(data) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


def code_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file")],
    language: Annotated[Optional[str], typer.Option("--language", help="Only blocks in this language")] = None,
    ):
    """List code blocks (language, code, line_number, info_string) as JSON."""
    settings = _settings()
    blocks = extract_code_blocks(_parsed(path, settings), language)
    _echo_json([b.model_dump() for b in blocks])


def links_cmd(path: Annotated[str, typer.Argument(help="Markdown file")]):
    """List links as JSON."""
    settings = _settings()
    _echo_json([link.model_dump() for link in extract_links(_parsed(path, settings))])


def images_cmd(path: Annotated[str, typer.Argument(help="Markdown file")]):
    """List images as JSON."""
    settings = _settings()
    _echo_json([image.model_dump() for image in extract_images(_parsed(path, settings))])


def tables_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file")],
    cells: Annotated[bool, typer.Option("--cells", help="One row per cell instead of one per table")] = False,
    ):
    """List tables (or their cells) as JSON."""
    settings = _settings()
    parsed = _parsed(path, settings)
    rows = extract_table_rows(parsed) if cells else extract_tables(parsed)
    _echo_json([row.model_dump() for row in rows])


def stats_cmd(path: Annotated[str, typer.Argument(help="Markdown file")]):
    """Print word, line, heading, code block and link counts as JSON."""
    settings = _settings()
    _echo_json(document_stats(_parsed(path, settings)).model_dump())


def text_cmd(path: Annotated[str, typer.Argument(help="Markdown file")]):
    """Print the document body as plain text."""
    settings = _settings()
    typer.echo(to_text(_parsed(path, settings)), nl=False)


def metadata_cmd(path: Annotated[str, typer.Argument(help="Markdown file")]):
    """Print the frontmatter fields as a JSON object."""
    settings = _settings()
    _echo_json(extract_metadata(_parsed(path, settings)))
