"""Indentation-driven parser for the YAML subset used inside card containers

Supported: nested mappings, block sequences (scalar items and ``- key: value``
items), inline ``[...]`` / ``{...}`` collections, quoted strings, null/bool/number
scalars, and ``#`` comments. Not supported: block scalars (``|`` and ``>`` only
open a nested block), anchors, aliases, and tags.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional

from cardbox.errors import TextFormatError


_KEY_RE = re.compile(r"(.+?):(?:\s|$)")
_NUMBER_RE = re.compile(r"-?\d+(\.\d+)?", re.ASCII)
_ESCAPE_RE = re.compile(r"\\(.)")
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "\\": "\\", '"': '"', "/": "/"}

BLOCK_INDICATORS = {"", "|", ">", "|-", ">-", "|+", ">+"}
MAX_DEPTH = 64   # nested blocks or inline collections


@dataclass(frozen=True)
class _Line:
    number: int     # 1-based source line
    indent: int
    text: str       # content with indentation removed


def _content_lines(text: str) -> list[_Line]:
    """Split into non-blank, non-comment lines with their indentation measured."""
    lines = []
    for number, raw in enumerate(text.lstrip("\ufeff").split("\n"), start=1):
        raw = raw.rstrip("\r")
        content = raw.lstrip()
        if not content or content.startswith("#"):
            continue
        lines.append(_Line(number, len(raw) - len(content), content))
    return lines


def _is_item(text: str) -> bool:
    return text == "-" or text.startswith("- ")


def _unquote(value: str) -> str:
    """Strip matching quotes and resolve the escapes each quote style allows."""
    inner = value[1:-1]
    if value[0] == "'":
        return inner.replace("''", "'")
    return _ESCAPE_RE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(1)), inner)


def _is_quoted(value: str) -> bool:
    return len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'"


def _split_key(text: str) -> Optional[tuple[str, str]]:
    """Return (key, remainder) for a `key: value` line, or None if the line has no key."""
    m = _KEY_RE.match(text)
    if not m:
        return None
    key = m.group(1).strip()
    if _is_quoted(key):
        key = _unquote(key)
    return key, text[m.end():].strip()


def _strip_comment(value: str) -> str:
    """Drop a trailing ` #comment` that sits outside any quoted run."""
    quote = None
    for i, ch in enumerate(value):
        if quote:
            if ch == quote and not (quote == '"' and value[i - 1] == "\\"):
                quote = None
        elif ch in "\"'" and (i == 0 or value[i - 1] in " [{,:"):
            quote = ch
        elif ch == "#" and i > 0 and value[i - 1] == " ":
            return value[:i]
    return value


def _split_flow(inner: str) -> list[str]:
    """Split inline collection content on commas that are not nested or quoted."""
    parts, depth, quote, start = [], 0, None, 0
    for i, ch in enumerate(inner):
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch in "[{":
            depth += 1
        elif ch in "]}":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(inner[start:i].strip())
            start = i + 1
    parts.append(inner[start:].strip())
    return parts


def parse_value(raw: str, depth: int = 0) -> Any:
    """Parse a single scalar or inline collection literal."""
    if depth >= MAX_DEPTH:
        raise TextFormatError(f"inline collections nested deeper than {MAX_DEPTH} levels")
    value = _strip_comment(raw).strip()

    if value in ("", "null", "~"):
        return None
    if value == "true":
        return True
    if value == "false":
        return False
    if _is_quoted(value):
        return _unquote(value)

    if value.startswith("[") and value.endswith("]"):
        inner = value[1:-1].strip()
        return [parse_value(item, depth + 1) for item in _split_flow(inner)] if inner else []

    if value.startswith("{") and value.endswith("}"):
        inner = value[1:-1].strip()
        result: dict[str, Any] = {}
        if not inner:
            return result
        for pair in _split_flow(inner):
            idx = pair.find(":")
            if idx > 0:
                key = pair[:idx].strip()
                result[_unquote(key) if _is_quoted(key) else key] = parse_value(pair[idx + 1:], depth + 1)
        return result

    if _NUMBER_RE.fullmatch(value):
        return float(value) if "." in value else int(value)
    return value


class _BlockParser:
    """Single forward pass over content lines; the cursor only ever advances."""

    def __init__(self, lines: list[_Line]):
        self.lines = lines
        self.pos = 0
        self.depth = 0

    def _peek(self) -> Optional[_Line]:
        return self.lines[self.pos] if self.pos < len(self.lines) else None

    def _descend(self) -> None:
        self.depth += 1
        if self.depth > MAX_DEPTH:
            line = self._peek()
            raise TextFormatError(
                f"blocks nested deeper than {MAX_DEPTH} levels",
                line.number if line is not None else None,
            )

    def block(self) -> Any:
        """Parse the block whose first line is under the cursor."""
        line = self.lines[self.pos]
        if _is_item(line.text):
            return self.sequence(line.indent)
        return self.mapping(line.indent)

    def mapping(self, base: int) -> dict[str, Any]:
        self._descend()
        result: dict[str, Any] = {}
        while (line := self._peek()) is not None and line.indent >= base:
            if _is_item(line.text):
                raise TextFormatError("sequence item inside a mapping", line.number)
            split = _split_key(line.text)
            self.pos += 1
            if split is None:
                continue
            key, rest = split
            if rest in BLOCK_INDICATORS:
                result[key] = self._nested(line.indent)
            else:
                result[key] = parse_value(rest)
        self.depth -= 1
        return result

    def sequence(self, base: int) -> list[Any]:
        self._descend()
        items: list[Any] = []
        while (line := self._peek()) is not None and line.indent >= base:
            if line.indent > base:
                self.pos += 1
                continue
            if not _is_item(line.text):
                break
            items.append(self._item(line))
        self.depth -= 1
        return items

    def _nested(self, key_indent: int) -> Any:
        """Value of a key with no inline value: a deeper block, a compact sequence, or None."""
        nxt = self._peek()
        if nxt is None:
            return None
        if nxt.indent > key_indent:
            return self.block()
        if nxt.indent == key_indent and _is_item(nxt.text):
            return self.sequence(key_indent)
        return None

    def _item(self, line: _Line) -> Any:
        content = line.text[1:].lstrip()
        if not content:
            self.pos += 1
            nxt = self._peek()
            return self.block() if nxt is not None and nxt.indent > line.indent else None

        nested_item = _is_item(content)
        if nested_item or (content[0] not in "\"'[{" and _split_key(content) is not None):
            # Re-read the item body as if it started its own line at the column after "- ".
            column = line.indent + len(line.text) - len(content)
            self.lines[self.pos] = _Line(line.number, column, content)
            if nested_item:
                return self.block()
            # Any line indented past the dash belongs to this item's mapping.
            return self.mapping(line.indent + 1)

        self.pos += 1
        return parse_value(content)


def parse(text: str) -> dict[str, Any]:
    """Parse structured text into nested dicts/lists/scalars. The top level must be a mapping."""
    lines = _content_lines(text)
    if not lines:
        return {}
    if _is_item(lines[0].text):
        raise TextFormatError("top level must be a mapping, found a sequence", lines[0].number)
    return _BlockParser(lines).mapping(0)


def parse_bytes(data: bytes) -> dict[str, Any]:
    """Decode UTF-8 (BOM tolerated) and parse."""
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise TextFormatError(f"not valid UTF-8: {e}") from e
    return parse(text)
