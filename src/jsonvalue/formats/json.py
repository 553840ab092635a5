"""
JSON format strategy.

Parses RFC 8259 JSON text into a tree of Values with a single-regex lexer and
a stack-driven parser. Rendering is the tree's own canonical text.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from typing import NamedTuple

from ..config import get_config
from ..dom import Array, Boolean, Null, Number, Object, String, Value
from ..strings import parse_str, str_to_int
from .base import FormatStrategy

logger = logging.getLogger("jsonvalue.formats.json")

_NUMBER = r"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?"
_STRING = r'"(?:[^"\\]|\\.)*"'

TOKEN_PATTERN = re.compile(
    rf"(?P<STRING>{_STRING})|"
    rf"(?P<NUMBER>{_NUMBER})|"
    r"(?P<LITERAL>true|false|null)|"
    r"(?P<PUNCT>[{}\[\],:])|"
    r"(?P<WHITESPACE>[ \t\n\r]+)",
    re.DOTALL,
)

LITERALS = {"true": lambda: Boolean(True), "false": lambda: Boolean(False), "null": Null}


class JSONParseError(ValueError):
    """Malformed JSON text. Carries the position like json.JSONDecodeError."""

    def __init__(self, msg: str, doc: str, pos: int):
        lineno = doc.count("\n", 0, pos) + 1
        colno = pos - doc.rfind("\n", 0, pos)
        super().__init__(f"{msg}: line {lineno} column {colno} (char {pos})")
        self.msg = msg
        self.doc = doc
        self.pos = pos
        self.lineno = lineno
        self.colno = colno


class Token(NamedTuple):
    kind: str
    text: str
    pos: int


def tokenize(doc: str) -> Iterator[Token]:
    """Yield tokens, skipping whitespace. Any uncovered character is an error."""
    pos = 0
    for m in TOKEN_PATTERN.finditer(doc):
        if m.start() != pos:
            break
        pos = m.end()
        if m.lastgroup != "WHITESPACE":
            yield Token(m.lastgroup, m.group(), m.start())

    if pos != len(doc):
        if doc[pos] == '"':
            raise JSONParseError("Unterminated string starting at", doc, pos)
        raise JSONParseError(f"Unexpected character {doc[pos]!r}", doc, pos)


class _Parser:
    """Descent over the token list with an explicit stack. One instance per document."""

    def __init__(self, doc: str, max_depth: int, duplicate_keys: str):
        self.doc = doc
        self.max_depth = max_depth
        self.duplicate_keys = duplicate_keys
        self.tokens = list(tokenize(doc))
        self.index = 0

    def error(self, msg: str, pos: int | None = None) -> JSONParseError:
        return JSONParseError(msg, self.doc, len(self.doc) if pos is None else pos)

    def next(self) -> Token:
        if self.index >= len(self.tokens):
            raise self.error("Unexpected end of input")
        token = self.tokens[self.index]
        self.index += 1
        return token

    def peek(self) -> Token | None:
        if self.index >= len(self.tokens):
            return None
        return self.tokens[self.index]

    def expect(self, text: str) -> Token:
        token = self.next()
        if token.text != text:
            raise self.error(f"Expected {text!r}, got {token.text!r}", token.pos)
        return token

    def parse_document(self) -> Value:
        root = self.parse_value()
        trailing = self.peek()
        if trailing is not None:
            raise self.error("Extra data after document", trailing.pos)
        return root

    def parse_value(self) -> Value:
        """
        Parse one value. Open containers wait on an explicit stack, each with
        the key its next value goes under, so depth costs memory, not frames.
        """
        stack: list[tuple[Array | Object, list[str]]] = []
        while True:
            value = self.start_value(self.next(), len(stack))
            if isinstance(value, (Array, Object)) and not self.close_if_empty(value):
                pending: list[str] = []
                if isinstance(value, Object):
                    pending.append(self.read_key(value))
                stack.append((value, pending))
                continue

            # value is complete: attach it, then close every container it finishes
            while stack:
                parent, pending = stack[-1]
                if isinstance(parent, Array):
                    parent.append(value)
                else:
                    parent[pending.pop()] = value

                token = self.next()
                if token.text == ",":
                    if isinstance(parent, Object):
                        pending.append(self.read_key(parent))
                    break
                closer = "]" if isinstance(parent, Array) else "}"
                if token.text != closer:
                    raise self.error(f"Expected ',' or '{closer}', got {token.text!r}", token.pos)
                value, _ = stack.pop()
            else:
                return value

    def start_value(self, token: Token, depth: int) -> Value:
        """A leaf, or an empty container for an opening bracket."""
        if token.kind == "STRING":
            return String(self.decode_string(token))
        if token.kind == "NUMBER":
            return self.decode_number(token)
        if token.kind == "LITERAL":
            return LITERALS[token.text]()
        if token.text in ("[", "{"):
            if depth + 1 > self.max_depth:
                raise self.error(f"Nesting deeper than {self.max_depth}", token.pos)
            return Array() if token.text == "[" else Object()
        raise self.error(f"Expected a value, got {token.text!r}", token.pos)

    def close_if_empty(self, container: Array | Object) -> bool:
        closer = "]" if isinstance(container, Array) else "}"
        token = self.peek()
        if token is not None and token.text == closer:
            self.next()
            return True
        return False

    def read_key(self, obj: Object) -> str:
        """Consume `"key" :` and return the decoded key."""
        key_token = self.next()
        if key_token.kind != "STRING":
            raise self.error(f"Expected a string key, got {key_token.text!r}", key_token.pos)
        key = self.decode_string(key_token)
        if key in obj and self.duplicate_keys == "error":
            raise self.error(f"Duplicate key {key!r}", key_token.pos)
        self.expect(":")
        return key

    def decode_string(self, token: Token) -> str:
        try:
            return parse_str(token.text[1:-1])
        except ValueError as e:
            raise self.error(f"Bad string: {e}", token.pos) from e

    def decode_number(self, token: Token) -> Number:
        text = token.text
        if not any(c in text for c in ".eE"):
            return Number(str_to_int(text))
        try:
            return Number(float(text))
        except ValueError as e:
            raise self.error(f"Number out of range: {text}", token.pos) from e


class JSONStrategy(FormatStrategy):
    """JSON parser strategy."""

    def __init__(self, max_depth: int | None = None, duplicate_keys: str | None = None):
        """
        Args:
            max_depth: Deepest container nesting accepted (config default if None)
            duplicate_keys: "last" or "error" (config default if None)
        """
        self._max_depth = max_depth
        self._duplicate_keys = duplicate_keys

    @property
    def name(self) -> str:
        return "json"

    @property
    def extensions(self) -> list[str]:
        return [".json"]

    def detect(self, content: str) -> bool:
        """Objects and arrays only; a bare scalar looks like plain text."""
        return content.lstrip()[:1] in ("{", "[")

    def parse(self, content: str) -> Value:
        """Parse JSON into a detached tree of Values."""
        cfg = get_config().parse
        max_depth = self._max_depth if self._max_depth is not None else cfg.max_depth
        duplicate_keys = self._duplicate_keys if self._duplicate_keys is not None else cfg.duplicate_keys

        root = _Parser(content, max_depth, duplicate_keys).parse_document()
        logger.debug("Parsed %s from %d chars", root.kind.value, len(content))
        return root


def parse_json(content: str, *, max_depth: int | None = None, duplicate_keys: str | None = None) -> Value:
    """Parse JSON text (helper function)."""
    return JSONStrategy(max_depth=max_depth, duplicate_keys=duplicate_keys).parse(content)


def render_json(value: Value) -> str:
    """Render a tree as canonical JSON text (helper function)."""
    return JSONStrategy().render(value)
