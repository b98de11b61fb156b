"""Fold a flat element sequence into section rows

The reducer walks elements in order, accumulating rendered body text under the
most recent heading. Each transition is a method so it can be driven (and
tested) one element at a time:

    reducer = SectionsReducer()
    for el in elements:
        reducer.feed(el)
    sections = reducer.finish()
"""

import logging
from typing import Iterable, Optional

from mdblocks.core.codecs import DEFAULT_CODEC, PayloadCodec
from mdblocks.core.models import METADATA_TYPES, Element, ElementType, Section
from mdblocks.core.render import heading_level, render_element
from mdblocks.core.sections import FRONTMATTER_ID
from mdblocks.core.utils.slug import SlugRegistry


logger = logging.getLogger(__name__)


class SectionsReducer:
    """Explicit state machine: current section accumulator plus the ancestor stack."""

    def __init__(self, codec: PayloadCodec = DEFAULT_CODEC):
        self.codec = codec
        self.sections: list[Section] = []
        self.current_title = ""
        self.current_level = 0
        self.current_id = ""
        self.current_content = ""
        self.path_stack: list[tuple[int, str]] = []     # (level, id), root first
        self.preamble: Optional[Section] = None
        self._registry = SlugRegistry()

    @property
    def current_path(self) -> str:
        return "/".join(section_id for _, section_id in self.path_stack)

    def _reset(self) -> None:
        self.current_title = ""
        self.current_level = 0
        self.current_id = ""
        self.current_content = ""

    def flush(self) -> None:
        """Emit the accumulated section unless both title and content are empty."""
        if not (self.current_title or self.current_content):
            return
        if self.current_level == 0:
            self._add_preamble(self.current_content)
            return
        path = self.current_path
        parent_id = self.path_stack[-2][1] if len(self.path_stack) > 1 else ""
        self.sections.append(Section(
            id=self.current_id,
            path=path,
            level=self.current_level,
            title=self.current_title,
            content=self.current_content,
            parent_id=parent_id,
        ))

    def _add_preamble(self, content: str) -> None:
        """Body text outside any heading collects into one untitled level-0 row."""
        if self.preamble is None:
            self._registry.reserve("")
            self.preamble = Section(id="", path="", level=0)
            self.sections.append(self.preamble)
        self.preamble.content += content

    def on_heading(self, element: Element) -> None:
        self.flush()
        level = heading_level(element)
        while self.path_stack and self.path_stack[-1][0] >= level:
            self.path_stack.pop()

        explicit = element.attr("id")
        section_id = self._registry.claim(explicit) if explicit else self._registry.unique(element.content)
        self.path_stack.append((level, section_id))

        self._reset()
        self.current_title = element.content
        self.current_level = level
        self.current_id = section_id

    def on_metadata(self, element: Element) -> None:
        self.flush()
        self._registry.reserve(FRONTMATTER_ID)
        self.sections.append(Section(
            id=FRONTMATTER_ID,
            path=FRONTMATTER_ID,
            level=0,
            content=element.content,
        ))
        # Frontmatter never owns the content that follows it.
        self._reset()

    def on_other(self, element: Element) -> None:
        self.current_content += render_element(element, self.codec)

    def feed(self, element: Element) -> None:
        kind = element.type
        if kind is ElementType.heading:
            self.on_heading(element)
        elif kind in METADATA_TYPES:
            self.on_metadata(element)
        else:
            self.on_other(element)

    def finish(self) -> list[Section]:
        self.flush()
        self._reset()
        return self.sections


def reduce_sections(elements: Iterable[Element], codec: PayloadCodec = DEFAULT_CODEC) -> list[Section]:
    """Group elements (in `order`) under their nearest preceding heading."""
    reducer = SectionsReducer(codec)
    for element in sorted(elements, key=lambda e: e.order):
        reducer.feed(element)
    sections = reducer.finish()
    logger.debug("Reduced elements into %d section(s)", len(sections))
    return sections
