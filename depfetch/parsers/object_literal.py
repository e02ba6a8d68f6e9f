"""Restricted parser for JavaScript object literals — never executes input.

Accepted grammar (a superset of JSON, a strict subset of JavaScript)::

    value   := object | array | string | number | keyword | '!0' | '!1' | ident
    object  := '{' [ member (',' member)* [','] ] '}'
    member  := (string | number | ident) ':' value
    array   := '[' [ value (',' value)* [','] ] ']'
    keyword := true | false | null | undefined

Line and block comments are skipped. A bare identifier in value position
(a reference the parser cannot follow) is read as ``None``. Anything else
(calls, operators, template literals, spread) raises :class:`~depfetch.exceptions.LiteralSyntaxError`.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import Any

from depfetch.exceptions import LiteralSyntaxError

MAX_DEPTH = 64

_IDENT_RE = re.compile(r"[A-Za-z_$][\w$]*")
_NUMBER_RE = re.compile(
    r"-?(?:0[xX][0-9a-fA-F]+|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
)
_KEYWORDS: dict[str, Any] = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
}
_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}

# Places where bundlers and hand-written modules hang an object literal.
_ANCHOR_RE = re.compile(
    r"(?:"
    r"\b(?:__WEBPACK_NAMESPACE_OBJECT__|module\.exports|exports\.[A-Za-z_$][\w$]*)\s*="
    r"|\b(?:var|let|const)\s+[A-Za-z_$][\w$]*\s*="
    r"|\bexport\s+default"
    r")\s*\(?\s*(?=\{)"
)


class _Parser:
    def __init__(self, text: str, pos: int) -> None:
        self.text = text
        self.pos = pos

    # ── lexical helpers ─────────────────────────────────────────────────

    def skip_ws(self) -> None:
        text = self.text
        n = len(text)
        while self.pos < n:
            ch = text[self.pos]
            if ch.isspace():
                self.pos += 1
            elif text.startswith("//", self.pos):
                end = text.find("\n", self.pos)
                self.pos = n if end == -1 else end + 1
            elif text.startswith("/*", self.pos):
                end = text.find("*/", self.pos + 2)
                if end == -1:
                    raise LiteralSyntaxError("unterminated comment", self.pos)
                self.pos = end + 2
            else:
                break

    def peek(self) -> str:
        self.skip_ws()
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def expect(self, ch: str) -> None:
        if self.peek() != ch:
            raise LiteralSyntaxError(f"expected {ch!r}", self.pos)
        self.pos += 1

    # ── grammar ─────────────────────────────────────────────────────────

    def value(self, depth: int) -> Any:
        if depth > MAX_DEPTH:
            raise LiteralSyntaxError("nesting too deep", self.pos)
        ch = self.peek()
        if ch == "{":
            return self.obj(depth + 1)
        if ch == "[":
            return self.array(depth + 1)
        if ch in ("'", '"'):
            return self.string()
        if ch == "!":
            return self.minified_bool()
        if ch and (ch.isdigit() or ch in "-."):
            return self.number()
        m = _IDENT_RE.match(self.text, self.pos)
        if m:
            self.pos = m.end()
            return _KEYWORDS.get(m.group(0))
        if not ch:
            raise LiteralSyntaxError("unexpected end of input", self.pos)
        raise LiteralSyntaxError(f"unexpected character {ch!r}", self.pos)

    def obj(self, depth: int) -> dict[str, Any]:
        self.expect("{")
        result: dict[str, Any] = {}
        while True:
            ch = self.peek()
            if ch == "}":
                self.pos += 1
                return result
            key = self.key()
            self.expect(":")
            result[key] = self.value(depth)
            ch = self.peek()
            if ch == ",":
                self.pos += 1
            elif ch != "}":
                raise LiteralSyntaxError("expected ',' or '}'", self.pos)

    def array(self, depth: int) -> list[Any]:
        self.expect("[")
        items: list[Any] = []
        while True:
            ch = self.peek()
            if ch == "]":
                self.pos += 1
                return items
            items.append(self.value(depth))
            ch = self.peek()
            if ch == ",":
                self.pos += 1
            elif ch != "]":
                raise LiteralSyntaxError("expected ',' or ']'", self.pos)

    def key(self) -> str:
        ch = self.peek()
        if ch in ("'", '"'):
            return self.string()
        if ch and (ch.isdigit() or ch == "."):
            start = self.pos
            self.number()
            return self.text[start : self.pos]
        m = _IDENT_RE.match(self.text, self.pos)
        if not m:
            raise LiteralSyntaxError("expected property name", self.pos)
        self.pos = m.end()
        return m.group(0)

    def string(self) -> str:
        quote = self.text[self.pos]
        self.pos += 1
        out: list[str] = []
        text = self.text
        n = len(text)
        while self.pos < n:
            ch = text[self.pos]
            if ch == quote:
                self.pos += 1
                return "".join(out)
            if ch == "\n":
                break
            if ch == "\\":
                out.append(self.escape())
                continue
            out.append(ch)
            self.pos += 1
        raise LiteralSyntaxError("unterminated string", self.pos)

    def escape(self) -> str:
        # self.pos is on the backslash
        text = self.text
        self.pos += 1
        if self.pos >= len(text):
            raise LiteralSyntaxError("unterminated escape", self.pos)
        ch = text[self.pos]
        self.pos += 1
        if ch in _SIMPLE_ESCAPES:
            return _SIMPLE_ESCAPES[ch]
        if ch == "\n":
            return ""
        if ch in ("x", "u"):
            width = 2 if ch == "x" else 4
            digits = text[self.pos : self.pos + width]
            if len(digits) != width or not all(c in "0123456789abcdefABCDEF" for c in digits):
                raise LiteralSyntaxError(f"bad \\{ch} escape", self.pos)
            self.pos += width
            return chr(int(digits, 16))
        return ch

    def number(self) -> int | float:
        m = _NUMBER_RE.match(self.text, self.pos)
        if not m:
            raise LiteralSyntaxError("malformed number", self.pos)
        self.pos = m.end()
        token = m.group(0)
        if token.lstrip("-").lower().startswith("0x"):
            return int(token, 16)
        if any(c in token for c in ".eE"):
            return float(token)
        return int(token)

    def minified_bool(self) -> bool:
        # Minifiers emit !0 / !1 for true / false.
        token = self.text[self.pos : self.pos + 2]
        if token == "!0":
            self.pos += 2
            return True
        if token == "!1":
            self.pos += 2
            return False
        raise LiteralSyntaxError("unsupported unary expression", self.pos)


def parse_literal(text: str, start: int = 0) -> tuple[Any, int]:
    """Parse one literal value beginning at *start*.

    Returns ``(value, end)`` where *end* is the offset just past the value.
    """
    parser = _Parser(text, start)
    value = parser.value(0)
    return value, parser.pos


def loads(text: str) -> Any:
    """Parse *text* as exactly one literal, optionally parenthesised."""
    parser = _Parser(text, 0)
    wrapped = parser.peek() == "("
    if wrapped:
        parser.pos += 1
    value = parser.value(0)
    if wrapped:
        parser.expect(")")
    if parser.peek() == ";":
        parser.pos += 1
    if parser.peek():
        raise LiteralSyntaxError("trailing content", parser.pos)
    return value


def iter_object_literals(text: str) -> Iterator[dict[str, Any]]:
    """Yield every object literal found at a recognised anchor in *text*.

    A whole-file literal comes first; then literals assigned to
    ``__WEBPACK_NAMESPACE_OBJECT__``, ``module.exports``, ``exports.<name>``,
    ``var/let/const <name>`` or ``export default``. Anchors whose literal
    does not parse are skipped.
    """
    try:
        whole = loads(text)
    except LiteralSyntaxError:
        pass
    else:
        if isinstance(whole, dict):
            yield whole
        return

    for m in _ANCHOR_RE.finditer(text):
        try:
            value, _ = parse_literal(text, m.end())
        except LiteralSyntaxError:
            continue
        if isinstance(value, dict):
            yield value
