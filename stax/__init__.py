# Stax language package
# This package provides a tokenizer, parser and interpreter for the Stax stack language.
from .errors import StaxError, LexError, ParseError, StaxRuntimeError
from .lexer import Token, tokenize
from .parser import parse, parse_program
from .interpreter import run_program, Interpreter
from .state import ExecutionState

__all__ = [
    'tokenize',
    'parse',
    'parse_program',
    'run_program',
    'Interpreter',
    'ExecutionState',
    'Token',
    'StaxError',
    'LexError',
    'ParseError',
    'StaxRuntimeError',
]
