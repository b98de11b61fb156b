"""Shared fixtures for core unit tests"""

import pytest

from mdblocks.core.parse import parse_text
from mdblocks.core.tree import DocumentTree


SAMPLE_MD = """\
# Heading 1

A paragraph with **bold** text.

## Heading 2

- item one
- item two

```python
print("hello")
```

---

Footer paragraph.
"""

SAMPLE_FM_MD = """\
---
title: Test Doc
slug: test-doc
tags: [a, b]
---

# Title

Body content.
"""

NESTED_MD = """\
# Intro

intro text

## Setup

setup text

### Install

install text
"""


@pytest.fixture(name="parsed")
def parsed_fixture():
    return parse_text(SAMPLE_MD, source="sample.md")


@pytest.fixture(name="fm_parsed")
def fm_parsed_fixture():
    return parse_text(SAMPLE_FM_MD, source="fm.md")


@pytest.fixture(name="tree")
def tree_fixture(parsed):
    return DocumentTree(parsed)


@pytest.fixture(name="sample_md")
def sample_md_fixture():
    return SAMPLE_MD


@pytest.fixture(name="nested_md")
def nested_md_fixture():
    return NESTED_MD
