from dataclasses import dataclass
from typing import Optional


@dataclass
class ErrorVal:
    """Describes a Stax failure.

    `name` is the specific failure (e.g. 'StackUnderflow'), `message` the
    human readable description and `line` the 1-based source line when it
    is known.
    """
    name: str
    message: str
    line: Optional[int] = None

    def __str__(self) -> str:
        if self.line is None:
            return f"{self.name}: {self.message}"
        return f"{self.name}: {self.message} (line {self.line})"


class StaxError(Exception):
    """Base exception for every error raised while lexing, parsing or running."""
    kind = 'StaxError'

    def __init__(self, err: ErrorVal):
        super().__init__(str(err))
        self.err = err

    def __str__(self) -> str:
        if self.err.name == self.kind:
            return str(self.err)
        return f"{self.kind}: {self.err}"


class LexError(StaxError):
    """Empty source or unterminated string literal."""
    kind = 'LexError'


class ParseError(StaxError):
    """The token stream does not form a valid program."""
    kind = 'ParseError'


class StaxRuntimeError(StaxError):
    """Failure while executing a statement."""
    kind = 'RuntimeError'


def lex_error(message: str, line: Optional[int] = None) -> LexError:
    return LexError(ErrorVal('LexError', message, line))


def parse_error(message: str, line: Optional[int] = None) -> ParseError:
    return ParseError(ErrorVal('ParseError', message, line))


def runtime_error(name: str, message: str, line: Optional[int] = None) -> StaxRuntimeError:
    return StaxRuntimeError(ErrorVal(name, message, line))
