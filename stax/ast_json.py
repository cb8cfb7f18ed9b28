"""JSON serialization/deserialization for the Stax AST.

This module converts between Stax AST dataclasses and plain Python
dict/list structures suitable for JSON encoding. It supports a full
round-trip for every node type, including source lines.

`ast_from_obj` only builds nodes the parser could have produced: unknown
node types, operators or conversion targets and missing fields raise
ValueError.
"""

from __future__ import annotations

from typing import Any

from .ast import (
    ARITHMETIC_OPS,
    BOOLEAN_OPS,
    CONVERSION_TARGETS,
    Expression,
    Program,
    NumberLiteral,
    StringLiteral,
    BooleanLiteral,
    VarRef,
    ArithmeticExpr,
    BooleanExpr,
    PrintStmt,
    PushStmt,
    PopStmt,
    DupStmt,
    ReadStmt,
    ConvertStmt,
    StoreLocal,
    LoadLocal,
    RemoveLocal,
)

# Statements without operands only need their type and line
SIMPLE_STATEMENTS = {
    'PrintStmt': PrintStmt,
    'PopStmt': PopStmt,
    'DupStmt': DupStmt,
    'ReadStmt': ReadStmt,
}

LOCAL_STATEMENTS = {
    'StoreLocal': StoreLocal,
    'LoadLocal': LoadLocal,
    'RemoveLocal': RemoveLocal,
}


def ast_to_obj(node: Any) -> Any:
    if node is None:
        return None

    if isinstance(node, Program):
        return {"type": "Program", "body": [ast_to_obj(n) for n in node.body]}
    if isinstance(node, NumberLiteral):
        return {"type": "NumberLiteral", "value": node.value, "line": node.line}
    if isinstance(node, StringLiteral):
        return {"type": "StringLiteral", "value": node.value, "line": node.line}
    if isinstance(node, BooleanLiteral):
        return {"type": "BooleanLiteral", "value": node.value, "line": node.line}
    if isinstance(node, VarRef):
        return {"type": "VarRef", "name": node.name, "line": node.line}
    if isinstance(node, ArithmeticExpr):
        return {
            "type": "ArithmeticExpr",
            "op": node.op,
            "left": ast_to_obj(node.left),
            "right": ast_to_obj(node.right),
            "line": node.line,
        }
    if isinstance(node, BooleanExpr):
        return {
            "type": "BooleanExpr",
            "op": node.op,
            "left": ast_to_obj(node.left),
            "right": ast_to_obj(node.right),
            "line": node.line,
        }
    if isinstance(node, PushStmt):
        return {"type": "PushStmt", "expr": ast_to_obj(node.expr), "line": node.line}
    if isinstance(node, ConvertStmt):
        return {"type": "ConvertStmt", "target": node.target, "line": node.line}
    if isinstance(node, (StoreLocal, LoadLocal, RemoveLocal)):
        return {"type": type(node).__name__, "name": node.name, "line": node.line}
    if isinstance(node, (PrintStmt, PopStmt, DupStmt, ReadStmt)):
        return {"type": type(node).__name__, "line": node.line}

    raise TypeError(f"Unsupported node for serialization: {type(node).__name__}")


def _field(obj: dict, key: str) -> Any:
    if key not in obj:
        raise ValueError(f"{obj.get('type')} node is missing '{key}'")
    return obj[key]


def _float_from_obj(value: Any) -> float:
    # json.load gives ints for whole numbers written without a fraction
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"NumberLiteral value must be a number, got {value!r}")
    return float(value)


def _name_from_obj(obj: dict) -> str:
    name = _field(obj, "name")
    if not isinstance(name, str) or not name:
        raise ValueError(f"{obj['type']} name must be a non-empty string, got {name!r}")
    return name


def _op_from_obj(obj: dict, allowed) -> str:
    op = _field(obj, "op")
    if op not in allowed:
        raise ValueError(f"Unknown {obj['type']} operator: {op!r}")
    return op


def ast_from_obj(obj: Any) -> Any:
    if obj is None:
        return None
    if not isinstance(obj, dict):
        raise TypeError("Invalid AST object")
    t = obj.get("type")
    line = int(obj.get("line", 0))
    if t == "Program":
        return Program(body=[ast_from_obj(n) for n in _field(obj, "body")])
    if t == "NumberLiteral":
        return NumberLiteral(value=_float_from_obj(_field(obj, "value")), line=line)
    if t == "StringLiteral":
        value = _field(obj, "value")
        if not isinstance(value, str):
            raise ValueError(f"StringLiteral value must be a string, got {value!r}")
        return StringLiteral(value=value, line=line)
    if t == "BooleanLiteral":
        return BooleanLiteral(value=bool(_field(obj, "value")), line=line)
    if t == "VarRef":
        return VarRef(name=_name_from_obj(obj), line=line)
    if t == "ArithmeticExpr":
        return ArithmeticExpr(
            left=_expr_from_obj(_field(obj, "left")),
            op=_op_from_obj(obj, ARITHMETIC_OPS),
            right=_expr_from_obj(_field(obj, "right")),
            line=line,
        )
    if t == "BooleanExpr":
        op = _op_from_obj(obj, BOOLEAN_OPS)
        left = _expr_from_obj(_field(obj, "left"))
        if op == "not":
            # the right operand of a negation is never used
            right = None
        else:
            right = _expr_from_obj(_field(obj, "right"))
        return BooleanExpr(left=left, op=op, right=right, line=line)
    if t == "PushStmt":
        return PushStmt(expr=_expr_from_obj(_field(obj, "expr")), line=line)
    if t == "ConvertStmt":
        target = _field(obj, "target")
        if target not in CONVERSION_TARGETS:
            raise ValueError(f"Unknown conversion target: {target!r}")
        return ConvertStmt(target=target, line=line)
    if t in LOCAL_STATEMENTS:
        return LOCAL_STATEMENTS[t](name=_name_from_obj(obj), line=line)
    if t in SIMPLE_STATEMENTS:
        return SIMPLE_STATEMENTS[t](line=line)

    raise ValueError(f"Unknown AST node type: {t}")


def _expr_from_obj(obj: Any) -> Expression:
    node = ast_from_obj(obj)
    if not isinstance(node, Expression):
        raise ValueError(f"expected an expression, got {type(node).__name__ if node is not None else 'nothing'}")
    return node
