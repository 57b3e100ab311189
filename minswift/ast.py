from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

# Precedence of "no operator here"; lower than every real operator.
NO_PRECEDENCE = -1


class Operator(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    EQUAL = "=="
    LESS_THAN = "<"
    GREATER_THAN = ">"

    @property
    def precedence(self) -> int:
        return _PRECEDENCE[self]


_PRECEDENCE: Dict[Operator, int] = {
    Operator.MUL: 40,
    Operator.DIV: 40,
    Operator.ADD: 20,
    Operator.SUB: 20,
    Operator.LESS_THAN: 10,
    Operator.GREATER_THAN: 10,
    Operator.EQUAL: 10,
}

_OPERATORS_BY_TEXT: Dict[str, Operator] = {op.value: op for op in Operator}


def operator_from_text(text: str) -> Optional[Operator]:
    return _OPERATORS_BY_TEXT.get(text)


class ReturnType(Enum):
    INT = "Int"
    DOUBLE = "Double"
    VOID = "Void"


_RETURN_TYPE_NAMES: Dict[str, ReturnType] = {
    "Int": ReturnType.INT,
    "Int64": ReturnType.INT,
    "Double": ReturnType.DOUBLE,
    "Void": ReturnType.VOID,
}


def return_type_from_name(name: str) -> Optional[ReturnType]:
    return _RETURN_TYPE_NAMES.get(name)


class Node:
    pass


@dataclass(frozen=True)
class Number(Node):
    value: float


@dataclass(frozen=True)
class Variable(Node):
    identifier: str


@dataclass(frozen=True)
class BinaryExpression(Node):
    operator: Operator
    lhs: Node
    rhs: Node


@dataclass(frozen=True)
class FunctionArgument:
    label: Optional[str]
    variable_name: str


@dataclass(frozen=True)
class Function(Node):
    name: str
    arguments: Tuple[FunctionArgument, ...]
    return_type: ReturnType
    body: Node


@dataclass(frozen=True)
class CallArgument:
    label: Optional[str]
    value: Node


@dataclass(frozen=True)
class CallExpression(Node):
    callee: str
    arguments: Tuple[CallArgument, ...]


@dataclass(frozen=True)
class IfElse(Node):
    condition: Node
    then_value: Node
    else_value: Optional[Node] = None


@dataclass(frozen=True)
class Return(Node):
    body: Optional[Node] = None


@dataclass(frozen=True)
class Void(Node):
    pass
