"""Slug generation for section identifiers"""

import re


_INVALID_RE = re.compile(r'[^a-z0-9\-_]+')


def slugify(text: str) -> str:
    """Convert heading text to a lowercase anchor slug (GitHub-style).

    Runs of characters outside [a-z0-9-_] collapse to a single hyphen;
    leading/trailing hyphens are stripped.
    """
    text = _INVALID_RE.sub('-', text.lower())
    return re.sub(r'-+', '-', text).strip('-')


class SlugRegistry:
    """Hands out document-unique ids: repeats of a slug get -1, -2, ... appended."""

    def __init__(self):
        self._counts: dict[str, int] = {}
        self._used: set[str] = set()

    def __contains__(self, slug: str) -> bool:
        return slug in self._used

    def reserve(self, slug: str) -> None:
        """Mark slug as taken so later headings with the same slug get a suffix."""
        self._used.add(slug)
        self._counts.setdefault(slug, 1)

    def claim(self, slug: str) -> str:
        """Return slug, or slug-{n} with the smallest n not yet handed out."""
        n = self._counts.get(slug, 0)
        candidate = f"{slug}-{n}" if n else slug
        while candidate in self._used:
            n += 1
            candidate = f"{slug}-{n}"
        self._counts[slug] = n + 1
        self._used.add(candidate)
        return candidate

    def unique(self, text: str) -> str:
        """Slugify text and dedupe it against every id handed out so far."""
        return self.claim(slugify(text))
