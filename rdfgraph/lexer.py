"""Turtle tokenizer.

Turns Turtle text into a lazy stream of `Token` values. Whitespace and `#`
comments are skipped; string, IRI and prefixed-name escapes are decoded here
so the parser only sees final values. The same tokenizer feeds the
N-Triples parser, which accepts a subset of the token kinds.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator

from .errors import LexicalError

IRIREF = "IRIREF"
PNAME = "PNAME"
BLANK_NODE_LABEL = "BLANK_NODE_LABEL"
STRING = "STRING"
LANGTAG = "LANGTAG"
DATATYPE_MARK = "DATATYPE_MARK"
INTEGER = "INTEGER"
DECIMAL = "DECIMAL"
DOUBLE = "DOUBLE"
BOOLEAN = "BOOLEAN"
A = "A"
PREFIX = "PREFIX"
BASE = "BASE"
SPARQL_PREFIX = "SPARQL_PREFIX"
SPARQL_BASE = "SPARQL_BASE"
PUNCT = "PUNCT"
EOF = "EOF"

PUNCTUATION = ".;,[]()"


@dataclass(frozen=True)
class Token:
    """One lexical token with the position of its first character."""

    kind: str
    value: str
    line: int
    column: int
    prefix: str | None = None
    quote: str | None = None

    def describe(self) -> str:
        """Return a short human-readable rendering used in error messages."""
        if self.kind == EOF:
            return "end of input"
        if self.kind == PNAME:
            return f"'{self.prefix}:{self.value}'"
        if self.kind == IRIREF:
            return f"<{self.value}>"
        if self.kind == STRING:
            return f"string {self.value!r}"
        if self.kind == BLANK_NODE_LABEL:
            return f"'_:{self.value}'"
        return f"'{self.value}'"


class Scanner:
    """Cursor over an in-memory document.

    Only the character offset moves while scanning; line and column numbers
    are derived from it when a token or an error needs them.
    """

    def __init__(self, text: str, source: str):
        self.text = text
        self.source = source
        self.pos = 0
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", text)]

    def peek(self, offset: int = 0) -> str:
        """Return the character `offset` places ahead, or `""` past the end."""
        return self.text[self.pos + offset : self.pos + offset + 1]

    def looking_at(self, literal: str) -> bool:
        """Return whether the text continues with `literal`."""
        return self.text.startswith(literal, self.pos)

    def take(self, count: int = 1) -> str:
        """Consume and return the next `count` characters."""
        end = self.pos + count
        if end > len(self.text):
            self.fail("unexpected end of input")
        chunk = self.text[self.pos : end]
        self.pos = end
        return chunk

    def take_if(self, literal: str) -> bool:
        """Consume `literal` when it comes next and report whether it did."""
        if not self.looking_at(literal):
            return False
        self.pos += len(literal)
        return True

    def require(self, literal: str, message: str | None = None) -> None:
        """Consume `literal` or fail with `message`."""
        if not self.take_if(literal):
            self.fail(message or f"expected '{literal}'")

    def match(self, pattern: re.Pattern) -> re.Match | None:
        """Match `pattern` at the cursor without consuming anything."""
        return pattern.match(self.text, self.pos)

    def location(self, pos: int | None = None) -> tuple[int, int]:
        """Return the 1-based (line, column) of `pos`, by default the cursor."""
        if pos is None:
            pos = self.pos
        line = bisect_right(self._line_starts, pos)
        return line, pos - self._line_starts[line - 1] + 1

    def fail(self, message: str, pos: int | None = None):
        """Raise `LexicalError` at the cursor or at the given offset."""
        line, column = self.location(pos)
        raise LexicalError(self.source, line, column, message)


def is_space(ch: str) -> bool:
    """Return whether a character is Turtle whitespace."""
    return ch != "" and ch in " \t\r\n"


def is_digit(ch: str) -> bool:
    """Return whether a character is an ASCII digit."""
    return len(ch) == 1 and "0" <= ch <= "9"


def _in_ranges(cp: int, ranges: Iterable[tuple[int, int]]) -> bool:
    return any(lo <= cp <= hi for lo, hi in ranges)


PN_BASE_RANGES = (
    (0x00C0, 0x00D6),
    (0x00D8, 0x00F6),
    (0x00F8, 0x02FF),
    (0x0370, 0x037D),
    (0x037F, 0x1FFF),
    (0x200C, 0x200D),
    (0x2070, 0x218F),
    (0x2C00, 0x2FEF),
    (0x3001, 0xD7FF),
    (0xF900, 0xFDCF),
    (0xFDF0, 0xFFFD),
    (0x10000, 0xEFFFF),
)


def is_pn_chars_base(ch: str) -> bool:
    """Return whether a character is a valid `PN_CHARS_BASE` code point."""
    if len(ch) != 1:
        return False
    if "A" <= ch <= "Z" or "a" <= ch <= "z":
        return True
    return _in_ranges(ord(ch), PN_BASE_RANGES)


def is_pn_chars_u(ch: str) -> bool:
    """Return whether a character is `PN_CHARS_BASE` or an underscore."""
    return ch == "_" or is_pn_chars_base(ch)


def is_pn_chars(ch: str) -> bool:
    """Return whether a character is a valid `PN_CHARS` code point."""
    if is_pn_chars_u(ch) or is_digit(ch) or ch == "-":
        return True
    if len(ch) != 1:
        return False
    cp = ord(ch)
    return cp == 0x00B7 or 0x0300 <= cp <= 0x036F or 0x203F <= cp <= 0x2040


def is_hex(ch: str) -> bool:
    """Return whether a character is an ASCII hexadecimal digit."""
    return len(ch) == 1 and ch in "0123456789abcdefABCDEF"


def is_name_boundary(ch: str) -> bool:
    """Return whether a character terminates a keyword or name token."""
    if not ch:
        return True
    return is_space(ch) or ch in ";,.()[]{}<>\"'|#^"


PN_LOCAL_ESCAPES = "_~.-!$&'()*+,;=/?#@%"

ECHAR = {
    "t": "\t",
    "b": "\b",
    "n": "\n",
    "r": "\r",
    "f": "\f",
    '"': '"',
    "'": "'",
    "\\": "\\",
}

NUMERIC_PATTERNS = (
    (re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)[eE][+-]?[0-9]+"), DOUBLE),
    (re.compile(r"[+-]?[0-9]*\.[0-9]+"), DECIMAL),
    (re.compile(r"[+-]?[0-9]+"), INTEGER),
)

LANGTAG_RE = re.compile(r"[a-zA-Z]+(?:-[a-zA-Z0-9]+)*")

IRI_FORBIDDEN = '<"{}|^`'


class TurtleLexer:
    """Single-pass tokenizer over an in-memory Turtle document.

    Iterating the lexer yields tokens lazily, ending with one `EOF` token.
    The only state kept between tokens is the cursor and the kind of the
    previous token (an `@word` right after a string is a language tag, not a
    directive).
    """

    def __init__(self, text: str, source: str = "<string>"):
        self.scanner = Scanner(text, source)
        self._last_kind: str | None = None

    def __iter__(self) -> Iterator[Token]:
        return self.tokens()

    def tokens(self) -> Iterator[Token]:
        """Yield tokens until, and including, the `EOF` token."""
        while True:
            token = self.next_token()
            yield token
            if token.kind == EOF:
                return

    def next_token(self) -> Token:
        """Scan and return the next token."""
        self.skip_ws_comments()
        token = self._scan()
        self._last_kind = token.kind
        return token

    def skip_ws_comments(self) -> None:
        """Move the cursor past whitespace and `#` comments."""
        scanner = self.scanner
        while True:
            ch = scanner.peek()
            if is_space(ch):
                scanner.pos += 1
            elif ch == "#":
                while scanner.peek() not in ("", "\r", "\n"):
                    scanner.pos += 1
            else:
                return

    def _token(self, kind: str, value: str, start: int, **extra) -> Token:
        line, column = self.scanner.location(start)
        return Token(kind, value, line, column, **extra)

    def _scan(self) -> Token:
        scanner = self.scanner
        start = scanner.pos
        ch = scanner.peek()

        if not ch:
            return self._token(EOF, "", start)
        if ch == "<":
            return self._token(IRIREF, self.scan_iri_ref(), start)
        if ch in "\"'":
            quote, value = self.scan_string()
            return self._token(STRING, value, start, quote=quote)
        if ch == "@":
            return self.scan_at_word(start)
        if ch == "^":
            scanner.require("^^", "expected '^^' before datatype")
            return self._token(DATATYPE_MARK, "^^", start)
        if ch == "_" and scanner.peek(1) == ":":
            return self._token(BLANK_NODE_LABEL, self.scan_blank_node_label(), start)
        if is_digit(ch) or ch in "+-" or (ch == "." and is_digit(scanner.peek(1))):
            return self.scan_numeric(start)
        if ch in PUNCTUATION:
            scanner.pos += 1
            return self._token(PUNCT, ch, start)
        if ch == ":" or is_pn_chars_base(ch):
            return self.scan_name(start)
        scanner.fail(f"unexpected character {ch!r}")

    def read_hex(self, count: int, what: str) -> int:
        """Consume `count` hex digits and return their value."""
        scanner = self.scanner
        digits = scanner.text[scanner.pos : scanner.pos + count]
        if len(digits) != count or not all(is_hex(d) for d in digits):
            scanner.fail(f"invalid {what} escape")
        scanner.pos += count
        return int(digits, 16)

    def decode_uchar(self) -> str:
        """Decode `\\uXXXX` and `\\UXXXXXXXX` escapes."""
        scanner = self.scanner
        if scanner.take_if("\\U"):
            codepoint = self.read_hex(8, "\\U")
            if codepoint > 0x10FFFF or 0xD800 <= codepoint <= 0xDFFF:
                scanner.fail("code point out of range")
            return chr(codepoint)
        scanner.require("\\u", "expected unicode escape")
        codepoint = self.read_hex(4, "\\u")
        if 0xDC00 <= codepoint <= 0xDFFF:
            scanner.fail("lone surrogate is not allowed")
        if 0xD800 <= codepoint <= 0xDBFF:
            # Surrogate pair written as two escapes.
            if not scanner.take_if("\\u"):
                scanner.fail("lone surrogate is not allowed")
            low = self.read_hex(4, "\\u")
            if not 0xDC00 <= low <= 0xDFFF:
                scanner.fail("invalid low surrogate in pair")
            codepoint = 0x10000 + ((codepoint - 0xD800) << 10) + (low - 0xDC00)
        return chr(codepoint)

    def decode_escape(self) -> str:
        """Decode an escape sequence inside a string literal."""
        scanner = self.scanner
        if scanner.peek(1) in ("u", "U"):
            return self.decode_uchar()
        escaped = ECHAR.get(scanner.peek(1))
        if escaped is None:
            scanner.fail("invalid escape sequence", scanner.pos + 1)
        scanner.pos += 2
        return escaped

    def scan_iri_ref(self) -> str:
        """Scan an IRIREF and return its decoded content."""
        scanner = self.scanner
        start = scanner.pos
        scanner.require("<")
        chars: list[str] = []
        while True:
            ch = scanner.peek()
            if ch in ("", "\r", "\n"):
                scanner.fail("unterminated IRI", start)
            if ch == ">":
                scanner.pos += 1
                return "".join(chars)
            if ch == "\\":
                if scanner.peek(1) not in ("u", "U"):
                    scanner.fail("invalid escape in IRI")
                chars.append(self.decode_uchar())
            elif ch in IRI_FORBIDDEN or ord(ch) <= 0x20:
                scanner.fail(f"invalid character {ch!r} in IRI")
            else:
                chars.append(scanner.take())

    def scan_string(self) -> tuple[str, str]:
        """Scan a short or long quoted string; returns (delimiter, value)."""
        scanner = self.scanner
        start = scanner.pos
        quote = scanner.peek()
        delim = quote * 3 if scanner.looking_at(quote * 3) else quote
        scanner.pos += len(delim)
        long_form = len(delim) == 3
        out: list[str] = []
        while True:
            ch = scanner.peek()
            if not ch or (not long_form and ch in "\r\n"):
                scanner.fail("unterminated string", start)
            if ch == "\\":
                out.append(self.decode_escape())
            # In a long string a quote directly before the closing delimiter is content.
            elif scanner.looking_at(delim) and not (long_form and scanner.peek(3) == quote):
                scanner.pos += len(delim)
                return delim, "".join(out)
            else:
                out.append(scanner.take())

    def scan_at_word(self, start: int) -> Token:
        """Scan `@prefix`, `@base`, or a language tag following a string."""
        scanner = self.scanner
        scanner.pos += 1
        match = scanner.match(LANGTAG_RE)
        if match is None:
            scanner.fail("expected language tag or directive after '@'")
        word = match.group()
        if self._last_kind == STRING:
            scanner.pos = match.end()
            return self._token(LANGTAG, word, start)
        if word not in ("prefix", "base"):
            scanner.fail(f"unknown directive '@{word}'", start)
        after = scanner.peek(len(word))
        if not is_name_boundary(after) and after != ":":
            scanner.fail(f"malformed directive '@{word}'")
        scanner.pos += len(word)
        return self._token(PREFIX if word == "prefix" else BASE, f"@{word}", start)

    def scan_blank_node_label(self) -> str:
        """Scan `_:label` and return the label."""
        scanner = self.scanner
        scanner.pos += 2
        first = scanner.peek()
        if not (is_pn_chars_u(first) or is_digit(first)):
            scanner.fail("invalid blank node label")
        return first + self._scan_dotted(is_pn_chars, offset=1)

    def _scan_dotted(self, accept: Callable[[str], bool], offset: int = 0) -> str:
        """Consume a run of `accept` characters with inner dots; never a trailing dot.

        The first `offset` characters are already known to belong to the name.
        """
        scanner = self.scanner
        end = scanner.pos + offset
        text = scanner.text
        while end < len(text):
            ch = text[end]
            if accept(ch):
                end += 1
                continue
            if ch != ".":
                break
            run = end
            while run < len(text) and text[run] == ".":
                run += 1
            if run == len(text) or not accept(text[run]):
                break
            end = run
        chunk = text[scanner.pos + offset : end]
        scanner.pos = end
        return chunk

    def scan_numeric(self, start: int) -> Token:
        """Scan an integer, decimal or double literal."""
        scanner = self.scanner
        for regex, kind in NUMERIC_PATTERNS:
            match = scanner.match(regex)
            if match and is_name_boundary(scanner.text[match.end() : match.end() + 1]):
                scanner.pos = match.end()
                return self._token(kind, match.group(), start)
        scanner.fail("invalid numeric literal")

    def scan_name(self, start: int) -> Token:
        """Scan a prefixed name or one of the bare keywords."""
        scanner = self.scanner
        label = ""
        if is_pn_chars_base(scanner.peek()):
            label = self._scan_dotted(is_pn_chars)
        if scanner.take_if(":"):
            local = "" if is_name_boundary(scanner.peek()) else self.scan_pn_local()
            return self._token(PNAME, local, start, prefix=label)
        if label == "a":
            return self._token(A, label, start)
        if label in ("true", "false"):
            return self._token(BOOLEAN, label, start)
        keyword = {"PREFIX": SPARQL_PREFIX, "BASE": SPARQL_BASE}.get(label.upper())
        if keyword is None:
            scanner.fail(f"unexpected name '{label}' (missing prefix?)", start)
        return self._token(keyword, label, start)

    def scan_pn_local(self) -> str:
        """Scan PN_LOCAL text, decoding `\\` escapes and keeping `%XX` as written."""
        scanner = self.scanner
        first = scanner.peek()
        if not (first in ":%\\" or is_digit(first) or is_pn_chars_u(first)):
            scanner.fail("invalid local name")

        parts: list[str] = []
        while True:
            ch = scanner.peek()
            if ch == "%":
                parts.append(self.scan_percent())
            elif ch == "\\":
                parts.append(self.scan_local_escape())
            elif ch == ":" or is_pn_chars(ch):
                parts.append(scanner.take())
            elif ch == "." and self._dots_then_local_char():
                parts.append(scanner.take())
            else:
                return "".join(parts)

    def _dots_then_local_char(self) -> bool:
        offset = 0
        while self.scanner.peek(offset) == ".":
            offset += 1
        nxt = self.scanner.peek(offset)
        return nxt in (":", "%", "\\") or is_pn_chars(nxt)

    def scan_percent(self) -> str:
        """Scan a `%XX` escape and return it undecoded."""
        scanner = self.scanner
        if not (is_hex(scanner.peek(1)) and is_hex(scanner.peek(2))):
            scanner.fail("invalid percent escape")
        return scanner.take(3)

    def scan_local_escape(self) -> str:
        """Scan a `\\` escape in a local name and return the escaped character."""
        scanner = self.scanner
        ch = scanner.peek(1)
        if not ch or ch not in PN_LOCAL_ESCAPES:
            scanner.fail("invalid local name escape")
        scanner.pos += 2
        return ch


def tokenize(text: str, source: str = "<string>") -> Iterator[Token]:
    """Return a lazy token iterator over `text`."""
    return TurtleLexer(text, source).tokens()
