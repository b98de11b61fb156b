"""Codecs for the structured payloads carried in list and table element content

List content is a bracketed array of quoted strings: ["a", "b"]
Table content is {"headers": [...], "rows": [[...], ...]}

MiniFormatCodec reads both shapes leniently with a hand-rolled scanner and
never raises; JsonPayloadCodec does the same job with the json module for
callers who want strict decoding. The renderer only sees the PayloadCodec
protocol.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Protocol


logger = logging.getLogger(__name__)

_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r'}
_HEADERS_RE = re.compile(r'"headers"\s*:')
_ROWS_RE = re.compile(r'"rows"\s*:')


@dataclass
class TableData:
    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)

    @property
    def column_count(self) -> int:
        if self.headers:
            return len(self.headers)
        return len(self.rows[0]) if self.rows else 0

    def __bool__(self) -> bool:
        return bool(self.headers or self.rows)


class PayloadCodec(Protocol):
    def parse_items(self, content: str) -> Optional[list[str]]: ...
    def dump_items(self, items: list[str]) -> str: ...
    def parse_table(self, content: str) -> TableData: ...
    def dump_table(self, table: TableData) -> str: ...


def _escape(text: str) -> str:
    return (
        text.replace('\\', '\\\\')
            .replace('"', '\\"')
            .replace('\n', '\\n')
            .replace('\r', '\\r')
            .replace('\t', '\\t')
    )


def _quoted_strings(span: str) -> list[str]:
    """Collect the quoted string leaves of span, decoding escapes.

    Text outside quotes is ignored; an unterminated trailing string is dropped.
    """
    out: list[str] = []
    current: list[str] = []
    in_string = escape = False
    for c in span:
        if escape:
            current.append(_ESCAPES.get(c, c))
            escape = False
        elif c == '\\':
            escape = True
        elif c == '"':
            if in_string:
                out.append(''.join(current))
                current = []
            in_string = not in_string
        elif in_string:
            current.append(c)
    return out


def _bracket_end(content: str, start: int) -> int:
    """Index of the ']' matching content[start] == '[', skipping quoted text; -1 if unbalanced."""
    depth = 0
    in_string = escape = False
    for i in range(start, len(content)):
        c = content[i]
        if escape:
            escape = False
        elif c == '\\':
            escape = True
        elif c == '"':
            in_string = not in_string
        elif in_string:
            continue
        elif c == '[':
            depth += 1
        elif c == ']':
            depth -= 1
            if depth == 0:
                return i
    return -1


def _array_after(content: str, key_re: re.Pattern) -> Optional[tuple[int, int]]:
    """(open, close) bracket indices of the array following a "key": marker."""
    m = key_re.search(content)
    if not m:
        return None
    open_ = content.find('[', m.end())
    if open_ == -1:
        return None
    close = _bracket_end(content, open_)
    return open_, (close if close != -1 else len(content))


class MiniFormatCodec:
    """Lenient reader/writer for the list and table mini-formats."""

    def parse_items(self, content: str) -> Optional[list[str]]:
        """Return the string items of a bracketed array, or None if content is not one."""
        text = content.strip()
        if not text.startswith('['):
            return None
        end = _bracket_end(text, 0)
        return _quoted_strings(text[1:end] if end != -1 else text[1:])

    def dump_items(self, items: list[str]) -> str:
        return '[' + ', '.join(f'"{_escape(i)}"' for i in items) + ']'

    def parse_table(self, content: str) -> TableData:
        table = TableData()
        span = _array_after(content, _HEADERS_RE)
        if span:
            table.headers = _quoted_strings(content[span[0] + 1:span[1]])

        span = _array_after(content, _ROWS_RE)
        if span:
            pos, outer_end = span[0] + 1, span[1]
            while pos < outer_end:
                row_start = content.find('[', pos, outer_end)
                if row_start == -1:
                    break
                row_end = _bracket_end(content, row_start)
                if row_end == -1 or row_end > outer_end:
                    break
                row = _quoted_strings(content[row_start + 1:row_end])
                if row:
                    table.rows.append(row)
                pos = row_end + 1
        return table

    def dump_table(self, table: TableData) -> str:
        rows = ', '.join(self.dump_items(r) for r in table.rows)
        return f'{{"headers": {self.dump_items(table.headers)}, "rows": [{rows}]}}'


class JsonPayloadCodec:
    """Strict json-module codec; malformed payloads decode as absent."""

    def parse_items(self, content: str) -> Optional[list[str]]:
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            logger.debug("List payload is not valid JSON: %.40r", content)
            return None
        if not isinstance(data, list):
            return None
        return [str(i) for i in data if isinstance(i, str)]

    def dump_items(self, items: list[str]) -> str:
        return json.dumps(list(items), ensure_ascii=False)

    def parse_table(self, content: str) -> TableData:
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            logger.debug("Table payload is not valid JSON: %.40r", content)
            return TableData()
        if not isinstance(data, dict):
            return TableData()
        headers = [str(h) for h in data.get('headers') or []]
        rows = [[str(c) for c in row] for row in data.get('rows') or [] if isinstance(row, list) and row]
        return TableData(headers=headers, rows=rows)

    def dump_table(self, table: TableData) -> str:
        return json.dumps({"headers": table.headers, "rows": table.rows}, ensure_ascii=False)


DEFAULT_CODEC: PayloadCodec = MiniFormatCodec()
