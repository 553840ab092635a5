"""
String escaping for JSON text.

escape_str() is what String.to_string() applies to its raw text. It escapes
exactly the quote, backslash, solidus and the five named control characters;
everything else, other control characters and non-ASCII included, passes
through unchanged.

parse_str() goes the other way for the parser: it decodes the body of a JSON
string literal.

int_to_str() and str_to_int() convert integers of any length, splitting long
digit runs so the interpreter's digit limit never applies.
"""

from __future__ import annotations

ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "/": "\\/",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

# Single-character escapes accepted inside a literal, mapped to what they mean
UNESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def escape_str(raw: str) -> str:
    """Escape raw text for placement between double quotes."""
    return "".join(ESCAPES.get(c, c) for c in raw)


def _read_hex4(body: str, i: int) -> int:
    """Read the 4 hex digits of a \\u escape whose backslash is at body[i]."""
    digits = body[i + 2:i + 6]
    if len(digits) < 4 or not all(c in HEX_DIGITS for c in digits):
        raise ValueError(f"Invalid \\u escape at offset {i}")
    return int(digits, 16)


def parse_str(body: str) -> str:
    """
    Decode the text between the quotes of a JSON string literal.

    Handles the single-character escapes and \\uXXXX, joining UTF-16
    surrogate pairs. A lone surrogate is kept as that code point.

    Raises ValueError (with the offset into body) on an unknown escape, a
    short or non-hex \\u escape, a trailing backslash, or a raw control
    character.
    """
    out: list[str] = []
    i = 0
    n = len(body)
    while i < n:
        c = body[i]
        if c != "\\":
            if ord(c) < 0x20:
                raise ValueError(f"Unescaped control character {c!r} at offset {i}")
            out.append(c)
            i += 1
            continue

        if i + 1 >= n:
            raise ValueError(f"Trailing backslash at offset {i}")
        esc = body[i + 1]
        if esc in UNESCAPES:
            out.append(UNESCAPES[esc])
            i += 2
            continue
        if esc != "u":
            raise ValueError(f"Invalid escape \\{esc} at offset {i}")

        code = _read_hex4(body, i)
        i += 6
        # High surrogate followed by a low one: combine into a single code point
        if 0xD800 <= code <= 0xDBFF and body.startswith("\\u", i):
            low = _read_hex4(body, i)
            if 0xDC00 <= low <= 0xDFFF:
                code = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
                i += 6
        out.append(chr(code))

    return "".join(out)


# Below this many bits (about 570 digits) str()/int() stay under the
# interpreter's integer string conversion limit, even at its lowest setting.
SMALL_INT_BITS = 1900
SMALL_INT_DIGITS = 570


def int_to_str(n: int) -> str:
    """Decimal text for any int, however many digits it has."""
    if n < 0:
        return "-" + int_to_str(-n)
    if n.bit_length() <= SMALL_INT_BITS:
        return str(n)
    # split near the middle digit; each half converts on its own
    k = int(n.bit_length() * 0.30103) // 2
    high, low = divmod(n, 10 ** k)
    return int_to_str(high) + int_to_str(low).zfill(k)


def str_to_int(text: str) -> int:
    """Inverse of int_to_str for an optionally signed run of decimal digits."""
    if text.startswith("-"):
        return -str_to_int(text[1:])
    if len(text) <= SMALL_INT_DIGITS:
        return int(text)
    k = len(text) // 2
    return str_to_int(text[:-k]) * 10 ** k + str_to_int(text[-k:])
