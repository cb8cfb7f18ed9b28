"""Interpreter for Stax.

The interpreter walks the statement list produced by `stax.parser` and
executes it against an `ExecutionState`. Statements run strictly in order;
expression nodes evaluate by pushing their result onto the operand stack.
Binary nodes evaluate their right operand before their left operand and
then pop the left result first.
"""

from __future__ import annotations

import builtins
import math
import sys
from typing import Callable, List, Optional, TextIO

from .ast import (
    BOOLEAN_OPS, Program, Statement, Literal, VarRef, ArithmeticExpr, BooleanExpr,
    PrintStmt, PushStmt, PopStmt, DupStmt, ReadStmt, ConvertStmt,
    StoreLocal, LoadLocal, RemoveLocal,
)
from .errors import StaxRuntimeError, runtime_error
from .lexer import tokenize
from .parser import parse
from .state import ExecutionState
from .types import (
    Value, FloatVal, IntVal, StrVal, BoolVal,
    convert_to_integer, convert_to_float, convert_to_string, convert_to_boolean,
    to_number, to_string, type_name,
)

CONVERTERS = {
    'Integer': convert_to_integer,
    'Float': convert_to_float,
    'String': convert_to_string,
    'Boolean': convert_to_boolean,
}


def int_divide(a: int, b: int) -> int:
    # truncate toward zero
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def float_divide(a: float, b: float) -> float:
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def float_modulo(a: float, b: float) -> float:
    if b == 0.0 or math.isinf(a):
        return math.nan
    return math.fmod(a, b)


class Interpreter:
    """Executes a Stax Program against a fresh ExecutionState."""
    def __init__(self, debug_level: int = 0, debug_file: str = 'debug.txt',
                 input_fn: Optional[Callable[[str], str]] = None,
                 output: Optional[TextIO] = None):
        self.debug_level = debug_level
        self.debug_file = debug_file
        # opened by run() and closed when it returns
        self.debug_fp = None
        self.input_fn = input_fn
        self.output = output

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg, file=sys.stderr)

    # Public API
    def run(self, program: Program, state: Optional[ExecutionState] = None) -> ExecutionState:
        """Execute every statement of `program` in order and return the state."""
        if state is None:
            state = ExecutionState()
        if self.debug_level > 0 and self.debug_fp is None:
            self.debug_fp = open(self.debug_file, 'w', encoding='utf-8')
        try:
            self.debug(f"run: {len(program.body)} statements")
            self.execute_block(program.body, state)
            self.debug(f"run finished, stack={state.describe_stack()}")
            return state
        finally:
            if self.debug_fp:
                self.debug_fp.close()
                self.debug_fp = None

    def execute_block(self, statements: List[Statement], state: ExecutionState):
        for stmt in statements:
            try:
                self.execute(stmt, state)
            except StaxRuntimeError as e:
                if e.err.line is None:
                    e.err.line = getattr(stmt, 'line', None)
                self.debug(f"error: {e}")
                raise
            if self.debug_level >= 3:
                self.debug(f"  stack={state.describe_stack()}")

    def execute(self, node: Statement, state: ExecutionState):
        if self.debug_level >= 2:
            self.debug(f"line {getattr(node, 'line', '?')}: {type(node).__name__}")
        if isinstance(node, PushStmt):
            self.evaluate(node.expr, state)
            return
        if isinstance(node, PrintStmt):
            self.write(to_string(state.peek()))
            return
        if isinstance(node, PopStmt):
            state.pop()
            return
        if isinstance(node, DupStmt):
            value = state.pop()
            state.push(value)
            state.push(value)
            return
        if isinstance(node, ReadStmt):
            state.push(self.read_line())
            return
        if isinstance(node, ConvertStmt):
            value = state.pop()
            state.push(self.convert(node.target, value))
            return
        if isinstance(node, StoreLocal):
            value = state.pop()
            state.set_local(node.name, value)
            if self.debug_level >= 2:
                self.debug(f"stloc {node.name} = {value!r}")
            return
        if isinstance(node, LoadLocal):
            state.push(state.get_local(node.name))
            return
        if isinstance(node, RemoveLocal):
            removed = state.remove_local(node.name)
            if self.debug_level >= 2:
                self.debug(f"rmloc {node.name} (was {removed!r})")
            return
        if isinstance(node, (Literal, VarRef, ArithmeticExpr, BooleanExpr)):
            # expression used as a statement leaves its value on the stack
            self.evaluate(node, state)
            return
        raise NotImplementedError(f"execute: unexpected node type {type(node)}")

    def evaluate(self, node: Statement, state: ExecutionState):
        # Every expression pushes exactly one value
        if isinstance(node, Literal):
            state.push(node.constant())
            return
        if isinstance(node, VarRef):
            state.push(state.get_local(node.name))
            return
        if isinstance(node, ArithmeticExpr):
            self.evaluate(node.right, state)
            self.evaluate(node.left, state)
            a = state.pop()
            b = state.pop()
            state.push(self.apply_arithmetic(node.op, a, b))
            return
        if isinstance(node, BooleanExpr):
            if node.op == 'not':
                self.evaluate(node.left, state)
                state.push(self.apply_not(state.pop()))
                return
            self.evaluate(node.right, state)
            self.evaluate(node.left, state)
            a = state.pop()
            b = state.pop()
            state.push(self.apply_boolean(node.op, a, b))
            return
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    # Side effects
    def write(self, text: str):
        print(text, end='', file=self.output if self.output is not None else sys.stdout, flush=True)

    def read_line(self) -> Value:
        reader = self.input_fn if self.input_fn is not None else builtins.input
        try:
            return StrVal(reader(''))
        except EOFError:
            raise runtime_error('EndOfInput', 'read reached the end of input')

    def convert(self, target: str, value: Value) -> Value:
        if target not in CONVERTERS:
            raise runtime_error('UnknownOperator', f"unknown conversion target {target}")
        try:
            return CONVERTERS[target](value)
        except (ValueError, TypeError) as e:
            raise runtime_error('ConversionError', str(e))

    # Operator dispatch
    def apply_arithmetic(self, op: str, a: Value, b: Value) -> Value:
        if isinstance(a, IntVal) and isinstance(b, IntVal):
            x, y = a.value, b.value
            if op == 'add':
                return IntVal(x + y)
            if op == 'subtract':
                return IntVal(x - y)
            if op == 'multiply':
                return IntVal(x * y)
            if op == 'divide':
                if y == 0:
                    raise runtime_error('DivisionByZero', 'Integer division by zero')
                return IntVal(int_divide(x, y))
            if op == 'modulo':
                if y == 0:
                    raise runtime_error('DivisionByZero', 'Integer modulo by zero')
                # remainder takes the sign of the dividend
                return IntVal(x - y * int_divide(x, y))
            raise runtime_error('UnknownOperator', f"unknown arithmetic operator {op}")
        if isinstance(a, FloatVal) and isinstance(b, FloatVal):
            x, y = a.value, b.value
            if op == 'add':
                return FloatVal(x + y)
            if op == 'subtract':
                return FloatVal(x - y)
            if op == 'multiply':
                return FloatVal(x * y)
            if op == 'divide':
                return FloatVal(float_divide(x, y))
            if op == 'modulo':
                return FloatVal(float_modulo(x, y))
            raise runtime_error('UnknownOperator', f"unknown arithmetic operator {op}")
        raise runtime_error('TypeMismatch', f"unsupported operands for {op}: {type_name(a)} and {type_name(b)}")

    def apply_not(self, a: Value) -> Value:
        if isinstance(a, BoolVal):
            return BoolVal(not a.value)
        raise runtime_error('TypeMismatch', f"cannot apply negation to non boolean {type_name(a)} {to_string(a)!r}")

    def apply_boolean(self, op: str, a: Value, b: Value) -> Value:
        if op not in BOOLEAN_OPS or op == 'not':
            raise runtime_error('UnknownOperator', f"unknown binary boolean operator {op}")
        if isinstance(a, BoolVal) and isinstance(b, BoolVal) and op in ('eq', 'ne', 'and', 'or'):
            if op == 'eq':
                return BoolVal(a.value == b.value)
            if op == 'ne':
                return BoolVal(a.value != b.value)
            if op == 'and':
                return BoolVal(a.value and b.value)
            return BoolVal(a.value or b.value)
        try:
            x = to_number(a)
            y = to_number(b)
        except (TypeError, OverflowError) as e:
            raise runtime_error('TypeMismatch', f"{op}: {e}")
        if op == 'eq':
            return BoolVal(x == y)
        if op == 'ne':
            return BoolVal(x != y)
        if op == 'gt':
            return BoolVal(x > y)
        if op == 'lt':
            return BoolVal(x < y)
        if op == 'ge':
            return BoolVal(x >= y)
        if op == 'le':
            return BoolVal(x <= y)
        raise runtime_error('TypeMismatch', f"{op} requires Boolean operands, got {type_name(a)} and {type_name(b)}")


def run_program(source: str, debug_level: int = 0) -> ExecutionState:
    """Convenience function to tokenize, parse and run a Stax program from source."""
    program = parse(tokenize(source))
    interpreter = Interpreter(debug_level=debug_level)
    return interpreter.run(program)
