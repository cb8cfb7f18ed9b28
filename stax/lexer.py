"""Tokenizer for Stax source text.

`tokenize` walks the source once, left to right, and classifies each
position by its first character: digits start numbers, quotes start
strings, letters start words, newlines bump the line counter, blanks are
skipped and anything else becomes a one-character symbol. Multi-character
operators such as `==` are left to the parser, which sees them as adjacent
symbols.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List, Optional, Tuple

from .errors import lex_error

WORD = 'Word'
STRING = 'String'
NUMBER = 'Number'
SYMBOL = 'Symbol'
BOOLEAN = 'Boolean'

QUOTES = ('"', "'")
DECIMAL_SEPARATORS = ('.', ',')
WORD_SEPARATORS = ('_', '-')
BLANKS = (' ', '\t', '\r')


@dataclass(frozen=True)
class Token:
    kind: str
    value: Any
    line: int

    def __str__(self) -> str:
        return f"( type {self.kind} at line {self.line} value: {self.value} )"

    def to_source(self) -> str:
        """Render the token as source text that tokenizes back to it."""
        if self.kind == NUMBER:
            # positional notation; an exponent would lex as a word
            return format(Decimal(repr(self.value)), 'f')
        if self.kind == STRING:
            escaped = (self.value.replace('\\', '\\\\')
                       .replace('"', '\\"')
                       .replace("'", "\\'")
                       .replace('\n', '\\n'))
            return '"' + escaped + '"'
        if self.kind == BOOLEAN:
            return 'true' if self.value else 'false'
        return str(self.value)


def _scan_number(source: str, i: int, line: int) -> Tuple[Token, int]:
    length = len(source)
    start = i
    while i < length and source[i].isdecimal():
        i += 1
    whole = source[start:i]
    fraction = ''
    if i < length and source[i] in DECIMAL_SEPARATORS:
        i += 1
        frac_start = i
        while i < length and source[i].isdecimal():
            i += 1
        fraction = source[frac_start:i]
    # '1.5' and '1,5' both end up as the same float
    value = float(f"{whole}.{fraction or '0'}")
    return Token(NUMBER, value, line), i


def _scan_string(source: str, i: int, line: int) -> Tuple[Token, int]:
    length = len(source)
    start_line = line
    i += 1  # opening quote
    chars: List[str] = []
    while True:
        if i >= length:
            raise lex_error('unterminated string literal, reached end of input', start_line)
        ch = source[i]
        if ch in QUOTES:
            break
        if ch == '\\':
            i += 1
            if i >= length:
                raise lex_error('unterminated string literal, reached end of input', start_line)
            escaped = source[i]
            chars.append('\n' if escaped == 'n' else escaped)
        else:
            chars.append(ch)
        i += 1
    return Token(STRING, ''.join(chars), start_line), i + 1


def _scan_word(source: str, i: int, line: int) -> Tuple[Token, int]:
    length = len(source)
    start = i
    while i < length and (source[i].isalpha() or source[i].isdecimal() or source[i] in WORD_SEPARATORS):
        i += 1
    word = source[start:i]
    if word == 'true' or word == 'false':
        return Token(BOOLEAN, word == 'true', line), i
    return Token(WORD, word, line), i


def tokenize(source: Optional[str]) -> List[Token]:
    """Convert source text into a list of tokens.

    Raises LexError for empty input and for string literals that are not
    closed before the end of the text.
    """
    if not source:
        raise lex_error('cannot tokenize empty source')
    tokens: List[Token] = []
    i = 0
    line = 1
    length = len(source)
    while i < length:
        c = source[i]
        if c.isdecimal():
            token, i = _scan_number(source, i, line)
        elif c in QUOTES:
            start = i
            token, i = _scan_string(source, i, line)
            # raw newlines inside the literal still advance the line counter
            line += source.count('\n', start, i)
        elif c.isalpha():
            token, i = _scan_word(source, i, line)
        elif c == '\n':
            line += 1
            i += 1
            continue
        elif c in BLANKS:
            i += 1
            continue
        else:
            token = Token(SYMBOL, c, line)
            i += 1
        tokens.append(token)
    return tokens
