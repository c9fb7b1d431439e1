"""Tokenizer for pipeline command lines."""

from __future__ import annotations

import string
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

STRICT_WORD_CHARS = frozenset(string.ascii_letters + '.-"')
WORD_CHARS = STRICT_WORD_CHARS | frozenset(string.digits + "/_~+=:,@%")

WORD_CLASSES: dict[str, frozenset[str]] = {
    "strict": STRICT_WORD_CHARS,
    "extended": WORD_CHARS,
}


class TokenTag(Enum):
    SIMPLE = "simple"
    IDENTIFIER = "identifier"
    UNCLASSIFIED = "unclassified"


class SimpleKind(Enum):
    END_OF_LINE = "End of input"
    PIPE = "|"
    BACKGROUND = "&"
    REDIRECT_IN = "<"
    REDIRECT_OUT = ">"


_OPERATORS: dict[str, SimpleKind] = {
    "|": SimpleKind.PIPE,
    "&": SimpleKind.BACKGROUND,
    "<": SimpleKind.REDIRECT_IN,
    ">": SimpleKind.REDIRECT_OUT,
}


@dataclass(frozen=True)
class Span:
    """Half-open range of offsets into a caller-owned buffer."""

    start: int
    end: int

    def text(self, buffer: str) -> str:
        return buffer[self.start : self.end]

    def __len__(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class Token:
    """One lexeme. Never owns text; `span` indexes the scanned buffer."""

    tag: TokenTag
    span: Span
    kind: SimpleKind | None = None

    def is_simple(self, kind: SimpleKind) -> bool:
        return self.tag is TokenTag.SIMPLE and self.kind is kind

    def text(self, buffer: str) -> str:
        if self.tag is TokenTag.SIMPLE and self.kind is not None:
            return self.kind.value
        return self.span.text(buffer)


def next_token(buffer: str, offset: int, word_chars: frozenset[str] = WORD_CHARS) -> tuple[Token, int]:
    """Classify the lexeme starting at `offset`.

    Leading whitespace is skipped. Returns the token and the offset just past
    it; at end of buffer an `END_OF_LINE` token is returned and the offset
    stays at the end.
    """

    size = len(buffer)
    while offset < size and buffer[offset].isspace():
        offset += 1

    if offset >= size:
        return Token(TokenTag.SIMPLE, Span(size, size), SimpleKind.END_OF_LINE), size

    char = buffer[offset]
    if char in word_chars:
        end = offset
        while end < size and buffer[end] in word_chars:
            end += 1
        return Token(TokenTag.IDENTIFIER, Span(offset, end)), end

    kind = _OPERATORS.get(char)
    if kind is not None:
        return Token(TokenTag.SIMPLE, Span(offset, offset + 1), kind), offset + 1

    end = offset
    while end < size and not buffer[end].isspace():
        end += 1
    return Token(TokenTag.UNCLASSIFIED, Span(offset, end)), end


def tokenize(buffer: str, word_chars: frozenset[str] = WORD_CHARS) -> Iterator[Token]:
    """Yield every token of `buffer`, ending with `END_OF_LINE`."""

    offset = 0
    while True:
        token, offset = next_token(buffer, offset, word_chars)
        yield token
        if token.is_simple(SimpleKind.END_OF_LINE):
            return
