"""Parser for Stax.

The tokens produced by `stax.lexer.tokenize` are fed one by one into a
Lark LALR parser built from `STAX_GRAMMAR`:

1. **Classification**: each token is mapped to a grammar terminal. Word
   tokens become keyword terminals (`PUSH`, `STLOC`, ...), the operator
   words `and`/`or`, or `NAME`; one-character symbols become operator
   terminals, and unknown symbols get a terminal the grammar never accepts.

2. **Parsing**: the terminals are pushed through Lark's interactive parser
   so that a bare word at the start of a statement can be reported as an
   unrecognized keyword before it is mistaken for a variable reference.
   The finished parse tree is turned into AST nodes by `ASTTransformer`.

`parse` is the public entry point and returns a `Program` node.
"""

from __future__ import annotations

from typing import List, Optional

from lark import Lark, Transformer, Token as LarkToken
from lark.exceptions import UnexpectedInput, UnexpectedToken
from lark.lexer import Lexer

from .ast import (
    Program, NumberLiteral, StringLiteral, BooleanLiteral, VarRef,
    ArithmeticExpr, BooleanExpr, PrintStmt, PushStmt, PopStmt, DupStmt,
    ReadStmt, ConvertStmt, StoreLocal, LoadLocal, RemoveLocal,
)
from .errors import parse_error
from .lexer import Token, tokenize, WORD, STRING, NUMBER, SYMBOL, BOOLEAN


KEYWORDS = {
    'print': 'PRINT',
    'push': 'PUSH',
    'pop': 'POP',
    'dup': 'DUP',
    'read': 'READ',
    'cint': 'CINT',
    'cfloat': 'CFLOAT',
    'cstr': 'CSTR',
    'cbool': 'CBOOL',
    'stloc': 'STLOC',
    'ldloc': 'LDLOC',
    'rmloc': 'RMLOC',
}

OPERATOR_WORDS = {
    'and': '_AND',
    'or': '_OR',
}

OPERATOR_SYMBOLS = {
    '+': '_PLUS',
    '-': '_MINUS',
    '*': '_STAR',
    '/': '_SLASH',
    '%': '_PERCENT',
    '=': '_EQUAL',
    '<': '_LESS',
    '>': '_MORE',
    '!': '_BANG',
}

CONVERSIONS = {
    'CINT': 'Integer',
    'CFLOAT': 'Float',
    'CSTR': 'String',
    'CBOOL': 'Boolean',
}


STAX_GRAMMAR = r"""
    start: statement+

    ?statement: PRINT            -> print_stmt
              | PUSH expr        -> push_stmt
              | POP              -> pop_stmt
              | DUP              -> dup_stmt
              | READ             -> read_stmt
              | CINT             -> convert
              | CFLOAT           -> convert
              | CSTR             -> convert
              | CBOOL            -> convert
              | STLOC NAME       -> store_local
              | LDLOC NAME       -> load_local
              | RMLOC NAME       -> remove_local
              | expr

    // An operand followed by an operator takes the rest of the expression
    // as its right operand, so chains group to the right. The right operand
    // of * / % is a term, which never continues with + or -; there the
    // expression ends.
    ?expr: term
         | unary _PLUS expr                        -> add
         | unary _MINUS expr                       -> subtract

    ?term: unary
         | unary _STAR term                        -> multiply
         | unary _SLASH term                       -> divide
         | unary _PERCENT term                     -> modulo
         | unary _EQUAL _EQUAL expr                -> eq
         | unary _BANG _EQUAL expr                 -> ne
         | unary _LESS expr                        -> lt
         | unary _LESS _EQUAL expr                 -> le
         | unary _MORE expr                        -> gt
         | unary _MORE _EQUAL expr                 -> ge
         | unary _AND expr                         -> and_
         | unary _OR expr                          -> or_

    ?unary: atom
          | _MINUS unary                           -> negate
          | _BANG unary                            -> not_

    ?atom: NUMBER                                  -> number
         | STRING                                  -> string
         | BOOLEAN                                 -> boolean
         | NAME                                    -> variable

    %declare PRINT PUSH POP DUP READ CINT CFLOAT CSTR CBOOL STLOC LDLOC RMLOC
    %declare NAME NUMBER STRING BOOLEAN
    %declare _AND _OR _PLUS _MINUS _STAR _SLASH _PERCENT _EQUAL _LESS _MORE _BANG
"""


def terminal_for(token: Token) -> str:
    """Return the grammar terminal a Stax token is parsed as."""
    if token.kind == WORD:
        if token.value in KEYWORDS:
            return KEYWORDS[token.value]
        if token.value in OPERATOR_WORDS:
            return OPERATOR_WORDS[token.value]
        return 'NAME'
    if token.kind == NUMBER:
        return 'NUMBER'
    if token.kind == STRING:
        return 'STRING'
    if token.kind == BOOLEAN:
        return 'BOOLEAN'
    # symbols the grammar has no use for still need a terminal name
    return OPERATOR_SYMBOLS.get(token.value, 'SYMBOL')


def to_lark_token(token: Token, index: int) -> LarkToken:
    # start_pos indexes back into the Stax token list
    return LarkToken(terminal_for(token), str(token.value), start_pos=index, line=token.line)


class TokenStreamLexer(Lexer):
    """Lark lexer that reads an already tokenized list of Stax tokens."""
    def __init__(self, lexer_conf):
        pass

    def lex(self, data):
        for index, token in enumerate(data):
            yield to_lark_token(token, index)


STAX_PARSER = Lark(
    STAX_GRAMMAR,
    parser='lalr',
    lexer=TokenStreamLexer,
    maybe_placeholders=False,
)


class ASTTransformer(Transformer):
    """Transforms the raw parse tree into an AST."""

    def __init__(self, tokens: List[Token]):
        super().__init__()
        self.tokens = tokens

    def source(self, lark_token: LarkToken) -> Token:
        return self.tokens[lark_token.start_pos]

    def start(self, items):
        return Program(body=list(items))

    # Statements
    def print_stmt(self, items):
        return PrintStmt(line=self.source(items[0]).line)

    def push_stmt(self, items):
        return PushStmt(expr=items[1], line=self.source(items[0]).line)

    def pop_stmt(self, items):
        return PopStmt(line=self.source(items[0]).line)

    def dup_stmt(self, items):
        return DupStmt(line=self.source(items[0]).line)

    def read_stmt(self, items):
        return ReadStmt(line=self.source(items[0]).line)

    def convert(self, items):
        keyword = items[0]
        return ConvertStmt(target=CONVERSIONS[keyword.type], line=self.source(keyword).line)

    def store_local(self, items):
        return StoreLocal(name=self.source(items[1]).value, line=self.source(items[0]).line)

    def load_local(self, items):
        return LoadLocal(name=self.source(items[1]).value, line=self.source(items[0]).line)

    def remove_local(self, items):
        return RemoveLocal(name=self.source(items[1]).value, line=self.source(items[0]).line)

    # Expressions
    def boolean_op(self, op: str, items):
        left, right = items
        return BooleanExpr(left=left, op=op, right=right, line=left.line)

    def arithmetic_op(self, op: str, items):
        left, right = items
        return ArithmeticExpr(left=left, op=op, right=right, line=left.line)

    def and_(self, items):
        return self.boolean_op('and', items)

    def or_(self, items):
        return self.boolean_op('or', items)

    def eq(self, items):
        return self.boolean_op('eq', items)

    def ne(self, items):
        return self.boolean_op('ne', items)

    def lt(self, items):
        return self.boolean_op('lt', items)

    def le(self, items):
        return self.boolean_op('le', items)

    def gt(self, items):
        return self.boolean_op('gt', items)

    def ge(self, items):
        return self.boolean_op('ge', items)

    def add(self, items):
        return self.arithmetic_op('add', items)

    def subtract(self, items):
        return self.arithmetic_op('subtract', items)

    def multiply(self, items):
        return self.arithmetic_op('multiply', items)

    def divide(self, items):
        return self.arithmetic_op('divide', items)

    def modulo(self, items):
        return self.arithmetic_op('modulo', items)

    def negate(self, items):
        # -x is parsed as 0 - x
        operand = items[0]
        zero = NumberLiteral(0.0, line=operand.line)
        return ArithmeticExpr(left=zero, op='subtract', right=operand, line=operand.line)

    def not_(self, items):
        operand = items[0]
        return BooleanExpr(left=operand, op='not', right=None, line=operand.line)

    # Literals and variables
    def number(self, items):
        token = self.source(items[0])
        return NumberLiteral(float(token.value), line=token.line)

    def string(self, items):
        token = self.source(items[0])
        return StringLiteral(token.value, line=token.line)

    def boolean(self, items):
        token = self.source(items[0])
        return BooleanLiteral(bool(token.value), line=token.line)

    def variable(self, items):
        token = self.source(items[0])
        return VarRef(token.value, line=token.line)


def describe(token: Token) -> str:
    return f"{token.kind} {token.value!r}"


def unexpected_token_error(err: UnexpectedToken, token: Token, previous: Optional[Token]):
    expected = set(err.expected)
    after = f" after {previous.value!r}" if previous is not None else ''
    if expected == {'NAME'}:
        return parse_error(f"expected a Word (variable name){after}, got {describe(token)}", token.line)
    if expected == {'_EQUAL'}:
        return parse_error(f"expected '='{after}, got {describe(token)}", token.line)
    if token.kind == SYMBOL:
        return parse_error(f"not an arithmetic or boolean expression: unexpected symbol {token.value!r}", token.line)
    return parse_error(f"unexpected {describe(token)}", token.line)


def parse(tokens: List[Token]) -> Program:
    """Parse a token list into a Program.

    Raises ParseError on the first problem; no partial program is
    returned.
    """
    if not tokens:
        raise parse_error('cannot parse an empty token stream')
    interactive = STAX_PARSER.parse_interactive('')
    previous: Optional[Token] = None
    lark_token = None
    for index, token in enumerate(tokens):
        lark_token = to_lark_token(token, index)
        # a plain word where a new statement may begin is not a keyword we know
        if lark_token.type == 'NAME' and 'PUSH' in interactive.choices():
            raise parse_error(f"unrecognized keyword {token.value!r}", token.line)
        try:
            interactive.feed_token(lark_token)
        except UnexpectedToken as e:
            raise unexpected_token_error(e, token, previous) from None
        previous = token
    try:
        tree = interactive.feed_eof(lark_token)
    except UnexpectedInput:
        raise parse_error(f"unexpected end of input after {describe(previous)}", previous.line) from None
    return ASTTransformer(tokens).transform(tree)


def parse_program(source: str) -> Program:
    """Tokenize and parse Stax source text into a Program."""
    return parse(tokenize(source))
