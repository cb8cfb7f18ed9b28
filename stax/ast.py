"""Abstract Syntax Tree (AST) definitions for Stax.

A parsed program is a flat, ordered list of statements. Statements act on
the execution state; expressions are statements that additionally leave
exactly one value on the operand stack, and literals are expressions whose
value is known when parsing. Every node records the source line of the
token it started at.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .types import Value, FloatVal, StrVal, BoolVal

ARITHMETIC_OPS = ('add', 'subtract', 'multiply', 'divide', 'modulo')
BOOLEAN_OPS = ('eq', 'ne', 'gt', 'lt', 'ge', 'le', 'and', 'or', 'not')
CONVERSION_TARGETS = ('Integer', 'Float', 'String', 'Boolean')


class Node:
    """Base class for all AST nodes."""


class Statement(Node):
    """A node that can be executed against the execution state."""


class Expression(Statement):
    """A statement that leaves exactly one value on the stack."""


class Literal(Expression):
    def constant(self) -> Value:
        raise NotImplementedError


@dataclass
class Program(Node):
    body: List[Statement]


@dataclass
class NumberLiteral(Literal):
    value: float
    line: int = 0

    def constant(self) -> Value:
        return FloatVal(self.value)


@dataclass
class StringLiteral(Literal):
    value: str
    line: int = 0

    def constant(self) -> Value:
        return StrVal(self.value)


@dataclass
class BooleanLiteral(Literal):
    value: bool
    line: int = 0

    def constant(self) -> Value:
        return BoolVal(self.value)


@dataclass
class VarRef(Expression):
    name: str
    line: int = 0


@dataclass
class ArithmeticExpr(Expression):
    left: Expression
    op: str  # one of ARITHMETIC_OPS
    right: Expression
    line: int = 0


@dataclass
class BooleanExpr(Expression):
    left: Expression
    op: str  # one of BOOLEAN_OPS
    right: Optional[Expression]  # None for 'not'
    line: int = 0


@dataclass
class PrintStmt(Statement):
    line: int = 0


@dataclass
class PushStmt(Statement):
    expr: Expression
    line: int = 0


@dataclass
class PopStmt(Statement):
    line: int = 0


@dataclass
class DupStmt(Statement):
    line: int = 0


@dataclass
class ReadStmt(Statement):
    line: int = 0


@dataclass
class ConvertStmt(Statement):
    target: str  # one of CONVERSION_TARGETS
    line: int = 0


@dataclass
class StoreLocal(Statement):
    name: str
    line: int = 0


@dataclass
class LoadLocal(Statement):
    name: str
    line: int = 0


@dataclass
class RemoveLocal(Statement):
    name: str
    line: int = 0
