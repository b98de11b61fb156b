"""Pipeline step functions: file-level sections, blocks, render and reduce"""

import json
import logging
from pathlib import Path
from typing import Callable, TypeVar

from pydantic import TypeAdapter, ValidationError

from mdblocks.config import Settings
from mdblocks.core.blocks import markdown_to_elements
from mdblocks.core.models import Element, ParsedDoc, Section
from mdblocks.core.parse import discover_files, parse_file
from mdblocks.core.reduce import reduce_sections
from mdblocks.core.render import render_elements
from mdblocks.core.sections import extract_sections
from mdblocks.errors import StructuralError


logger = logging.getLogger(__name__)

_ELEMENTS = TypeAdapter(list[Element])

R = TypeVar("R")


def _each_document(
    path: str,
    settings: Settings,
    step: Callable[[ParsedDoc], R],
    skip_errors: bool,
    ) -> tuple[list[tuple[Path, R]], list[StructuralError]]:
    """Parse every markdown file under path and apply step to it.

    A StructuralError fails only its own document: it is collected (and
    logged) when skip_errors is set, otherwise re-raised.
    """
    files = discover_files(Path(path))
    if not files:
        raise FileNotFoundError(f"No markdown files found at {path}")

    results: list[tuple[Path, R]] = []
    failures: list[StructuralError] = []
    for p in files:
        try:
            results.append((p, step(parse_file(p, settings.parser_config))))
        except StructuralError as e:
            if not skip_errors:
                raise
            logger.warning("Skipping %s: %s", e.source, e.reason)
            failures.append(e)
    return results, failures


def run_sections(
    path: str,
    settings: Settings,
    skip_errors: bool = True,
    ) -> tuple[list[tuple[Path, list[Section]]], list[StructuralError]]:
    """Extract section rows from each document. Returns ((file, sections) pairs, failures)."""
    def step(parsed: ParsedDoc) -> list[Section]:
        return extract_sections(
            parsed,
            min_level=settings.min_level,
            max_level=settings.max_level,
            include_content=settings.include_content,
            content_mode=settings.content_mode,
            max_content_length=settings.max_content_length,
        )
    return _each_document(path, settings, step, skip_errors)


def run_blocks(
    path: str,
    settings: Settings,
    skip_errors: bool = True,
    ) -> tuple[list[tuple[Path, list[Element]]], list[StructuralError]]:
    """Convert each document into its element sequence."""
    return _each_document(path, settings, markdown_to_elements, skip_errors)


def load_elements(path: Path) -> list[Element]:
    """Read an element sequence from a JSON array file."""
    try:
        return _ELEMENTS.validate_json(path.read_bytes())
    except (OSError, ValidationError) as e:
        raise StructuralError(str(path), f"invalid element file: {e}") from e


def dump_elements(elements: list[Element]) -> str:
    return _ELEMENTS.dump_json(elements, indent=2).decode('utf-8')


def dump_sections(sections: list[Section]) -> str:
    return json.dumps([s.model_dump() for s in sections], indent=2, ensure_ascii=False)


def run_render(elements_file: Path) -> str:
    """Element JSON file -> Markdown document text."""
    return render_elements(load_elements(elements_file))


def run_reduce(elements_file: Path) -> list[Section]:
    """Element JSON file -> section rows."""
    return reduce_sections(load_elements(elements_file))
