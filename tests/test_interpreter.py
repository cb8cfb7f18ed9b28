import builtins
import math

import pytest

from stax.ast import (
    Program, PushStmt, ConvertStmt, ArithmeticExpr, BooleanExpr,
    NumberLiteral, BooleanLiteral, VarRef,
)
from stax.errors import StaxRuntimeError
from stax.interpreter import Interpreter, run_program
from stax.lexer import Token, NUMBER
from stax.parser import parse_program
from stax.types import FloatVal, IntVal, StrVal, BoolVal


def run(source, **kwargs):
    return Interpreter(**kwargs).run(parse_program(source))


def top(source, **kwargs):
    return run(source, **kwargs).stack[-1]


def runtime_failure(source, **kwargs):
    with pytest.raises(StaxRuntimeError) as e:
        run(source, **kwargs)
    return e.value.err


def test_push_addition():
    assert top('push 2 + 3') == FloatVal(5.0)


def test_multiplication_first():
    assert top('push 2 + 3 * 4') == FloatVal(14.0)


def test_right_grouping_of_subtraction():
    assert top('push 10 - 4 - 3') == FloatVal(9.0)


def test_minus_after_multiplication_is_a_separate_expression():
    assert run('push 2 * 3 - 1').stack == [FloatVal(6.0), FloatVal(-1.0)]


def test_comparison_binds_to_the_nearest_operand():
    # 1 + (2 == 3) adds a Float and a Boolean
    assert runtime_failure('push 1 + 2 == 3').name == 'TypeMismatch'
    assert top('push 1 < 2 + 3') == BoolVal(True)


def test_boolean_results():
    assert top('push true and false') == BoolVal(False)
    assert top('push true or false') == BoolVal(True)
    assert top('push !true') == BoolVal(False)
    assert top('push 3 > 2') == BoolVal(True)
    assert top('push 2 >= 2') == BoolVal(True)
    assert top('push 2 < 2') == BoolVal(False)
    assert top('push 1 <= 0') == BoolVal(False)
    assert top('push true == false') == BoolVal(False)
    assert top('push true != false') == BoolVal(True)
    assert top('push 1 == 1') == BoolVal(True)


def test_integer_and_float_compare_numerically():
    assert top('push 2 cint stloc i push i == 2') == BoolVal(True)


def test_store_load_and_remove():
    state = run('push 10 stloc x ldloc x')
    assert state.stack == [FloatVal(10.0)]
    assert state.locals == {'x': FloatVal(10.0)}
    err = runtime_failure('push 10 stloc x rmloc x ldloc x')
    assert err.name == 'UnknownVariable'


def test_variable_reference_in_expression():
    assert top('push 4 stloc x push x * x') == FloatVal(16.0)
    assert runtime_failure('push y + 1').name == 'UnknownVariable'


def test_stloc_overwrites():
    state = run('push 1 stloc x push "two" stloc x')
    assert state.locals['x'] == StrVal('two')
    assert state.stack == []


def test_removing_an_absent_name_is_a_no_op():
    state = run('rmloc nothing push 1')
    assert state.stack == [FloatVal(1.0)]


@pytest.mark.parametrize('source', [
    'pop', 'dup', 'print', 'cint', 'cfloat', 'cstr', 'cbool', 'stloc x',
])
def test_stack_underflow(source):
    assert runtime_failure(source).name == 'StackUnderflow'


def test_dup():
    assert run('push 4 dup').stack == [FloatVal(4.0), FloatVal(4.0)]


def test_expression_statement_pushes():
    assert run('1 + 2').stack == [FloatVal(3.0)]


def test_right_operand_is_evaluated_first():
    class RecordingInterpreter(Interpreter):
        def __init__(self):
            super().__init__()
            self.seen = []

        def evaluate(self, node, state):
            if isinstance(node, VarRef):
                self.seen.append(node.name)
            super().evaluate(node, state)

    interp = RecordingInterpreter()
    state = interp.run(parse_program('push 1 stloc a push 2 stloc b push a - b'))
    assert interp.seen == ['b', 'a']
    assert state.stack == [FloatVal(-1.0)]


def integers(source):
    # binds a = 7 and b = 2 as Integer values before running source
    return 'push 7 cint stloc a push 2 cint stloc b ' + source


def test_integer_arithmetic():
    assert top(integers('push a + b')) == IntVal(9)
    assert top(integers('push a - b')) == IntVal(5)
    assert top(integers('push a * b')) == IntVal(14)
    assert top(integers('push a / b')) == IntVal(3)
    assert top(integers('push a % b')) == IntVal(1)


def test_integer_division_truncates_toward_zero():
    assert top('push -7 cint stloc a push 2 cint stloc b push a / b') == IntVal(-3)
    assert top('push -7 cint stloc a push 2 cint stloc b push a % b') == IntVal(-1)
    assert top('push 7 cint stloc a push -2 cint stloc b push a % b') == IntVal(1)


@pytest.mark.parametrize('op', ['/', '%'])
def test_integer_division_by_zero(op):
    err = runtime_failure(f'push 1 cint stloc a push 0 cint stloc b push a {op} b')
    assert err.name == 'DivisionByZero'


def test_float_division_by_zero_follows_ieee():
    assert top('push 1 / 0') == FloatVal(math.inf)
    assert top('push -1 / 0') == FloatVal(-math.inf)
    assert math.isnan(top('push 0 / 0').value)
    assert math.isnan(top('push 5 % 0').value)


def test_float_modulo():
    assert top('push 7.5 % 2') == FloatVal(1.5)
    assert top('push -7.5 % 2') == FloatVal(-1.5)


@pytest.mark.parametrize('source', [
    'push 1 cint stloc a push a + 1',
    'push "a" + "b"',
    'push true * 2',
])
def test_mixed_or_non_numeric_arithmetic_is_an_error(source):
    assert runtime_failure(source).name == 'TypeMismatch'


@pytest.mark.parametrize('source', [
    'push "a" < 1',
    'push true < false',
    'push true == 1',
    'push !1',
    'push 1 and 2',
])
def test_invalid_boolean_operands(source):
    assert runtime_failure(source).name == 'TypeMismatch'


def test_print_does_not_pop(capsys):
    state = run('push "hi" print print')
    assert capsys.readouterr().out == 'hihi'
    assert state.stack == [StrVal('hi')]


def test_print_renders_values(capsys):
    run('push 5 print push 2.5 print push false print push 9 cint print')
    assert capsys.readouterr().out == '52.5false9'


def test_print_to_custom_output(tmp_path):
    out_path = tmp_path / 'out.txt'
    with open(out_path, 'w', encoding='utf-8') as out:
        run('push "x" print', output=out)
    assert out_path.read_text(encoding='utf-8') == 'x'


def test_read_pushes_a_string(monkeypatch):
    monkeypatch.setattr(builtins, 'input', lambda prompt='': 'hello')
    assert top('read') == StrVal('hello')


def test_read_with_input_function():
    lines = iter(['1', '2'])
    state = run('read read', input_fn=lambda prompt: next(lines))
    assert state.stack == [StrVal('1'), StrVal('2')]


def test_read_at_end_of_input(monkeypatch):
    def no_input(prompt=''):
        raise EOFError
    monkeypatch.setattr(builtins, 'input', no_input)
    assert runtime_failure('read').name == 'EndOfInput'


@pytest.mark.parametrize('source, expected', [
    ('push 3.9 cint', IntVal(3)),
    ('push -3.9 cint', IntVal(-3)),
    ('push "42" cint', IntVal(42)),
    ('push " -8 " cint', IntVal(-8)),
    ('push true cint', IntVal(1)),
    ('push "2,5" cfloat', FloatVal(2.5)),
    ('push "2.5" cfloat', FloatVal(2.5)),
    ('push 3 cint cfloat', FloatVal(3.0)),
    ('push false cfloat', FloatVal(0.0)),
    ('push 2.5 cstr', StrVal('2.5')),
    ('push 3 cstr', StrVal('3')),
    ('push true cstr', StrVal('true')),
    ('push 5 cint cstr', StrVal('5')),
    ('push "TRUE" cbool', BoolVal(True)),
    ('push " false " cbool', BoolVal(False)),
    ('push 0 cbool', BoolVal(False)),
    ('push 2 cbool', BoolVal(True)),
    ('push false cbool', BoolVal(False)),
])
def test_conversions(source, expected):
    assert top(source) == expected


@pytest.mark.parametrize('source', [
    'push "4.2" cint',
    'push "abc" cint',
    'push 1 / 0 cint',
    'push "abc" cfloat',
    'push "yes" cbool',
])
def test_failed_conversions(source):
    assert runtime_failure(source).name == 'ConversionError'


@pytest.mark.parametrize('x', [0.0, 3.0, 2.5, 1234.5678, 0.1, 1e20])
def test_cstr_cfloat_round_trip(x):
    literal = Token(NUMBER, x, 1).to_source()
    assert top(f'push {literal} cstr cfloat') == FloatVal(x)


def test_runtime_errors_carry_the_statement_line():
    err = runtime_failure('push 1\npop\npop')
    assert err.line == 3
    assert 'line 3' in str(err)


def test_runs_do_not_share_state():
    first = run('push 1 stloc x')
    second = run('push 2')
    assert 'x' not in second.locals
    assert first.locals == {'x': FloatVal(1.0)}
    assert second.stack == [FloatVal(2.0)]


def test_run_program():
    state = run_program('push "a" stloc s ldloc s')
    assert state.stack == [StrVal('a')]


def test_debug_trace(tmp_path):
    debug_file = tmp_path / 'debug.txt'
    run('push 1 stloc x rmloc x', debug_level=3, debug_file=str(debug_file))
    trace = debug_file.read_text(encoding='utf-8')
    assert 'StoreLocal' in trace
    assert 'stloc x = Float(1)' in trace
    assert 'rmloc x' in trace
    assert 'stack=[]' in trace


def test_debug_file_is_opened_by_run(tmp_path):
    debug_file = tmp_path / 'debug.txt'
    interp = Interpreter(debug_level=1, debug_file=str(debug_file))
    assert not debug_file.exists()
    interp.run(parse_program('push 1'))
    assert interp.debug_fp is None
    assert 'run finished' in debug_file.read_text(encoding='utf-8')


@pytest.mark.parametrize('node', [
    PushStmt(ArithmeticExpr(NumberLiteral(2.0), 'pow', NumberLiteral(3.0))),
    PushStmt(BooleanExpr(BooleanLiteral(True), 'xor', BooleanLiteral(False))),
    ConvertStmt('Array'),
])
def test_unknown_operators_are_runtime_errors(node):
    program = Program(body=[PushStmt(NumberLiteral(1.0)), node])
    with pytest.raises(StaxRuntimeError) as e:
        Interpreter().run(program)
    assert e.value.err.name == 'UnknownOperator'


def test_no_debug_file_without_verbosity(tmp_path):
    debug_file = tmp_path / 'debug.txt'
    run('push 1', debug_file=str(debug_file))
    assert not debug_file.exists()
