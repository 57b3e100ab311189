"""AST → LLVM IR lowering.

Every value lives in a single floating-point domain: numbers are doubles,
comparisons produce 1.0 / 0.0, and each function takes and returns doubles
whatever its declared return category. Conditionals lower to a
then/else/merge diamond joined by a phi.
"""

from __future__ import annotations

import logging
from typing import Iterable

from llvmlite import ir  # type: ignore

from . import ast
from .context import DOUBLE, NO_VALUE, ZERO, BuildContext
from .errors import (
    ArgumentCountMismatch,
    GenerationError,
    MissingElseBranch,
    RedefinedFunction,
    UndefinedFunction,
    UndefinedVariable,
)

logger = logging.getLogger(__name__)

_COMPARISON_PREDICATES = {
    ast.Operator.EQUAL: "==",
    ast.Operator.LESS_THAN: "<",
    ast.Operator.GREATER_THAN: ">",
}


def generate(node: ast.Node, context: BuildContext) -> ir.Value:
    """Lower `node` into `context` and return the IR value it produces."""
    if isinstance(node, ast.Number):
        return ir.Constant(DOUBLE, node.value)
    if isinstance(node, ast.Variable):
        return _generate_variable(node, context)
    if isinstance(node, ast.BinaryExpression):
        return _generate_binary(node, context)
    if isinstance(node, ast.Function):
        return _generate_function(node, context)
    if isinstance(node, ast.CallExpression):
        return _generate_call(node, context)
    if isinstance(node, ast.IfElse):
        return _generate_if_else(node, context)
    if isinstance(node, ast.Return):
        if node.body is None:
            return NO_VALUE
        return generate(node.body, context)
    if isinstance(node, ast.Void):
        return NO_VALUE
    raise GenerationError(f"unsupported node {type(node).__name__}")


def declare_functions(nodes: Iterable[ast.Node], context: BuildContext) -> None:
    """Declare every top-level function before any body is lowered.

    Calls may then target functions defined later in the source, including
    mutually recursive ones. Names that already exist are left alone; the
    body lowering reports real redefinitions.
    """
    for node in nodes:
        if isinstance(node, ast.Function) and node.name not in context.module.globals:
            _declare_function(node, context)


def _function_type(arity: int) -> ir.FunctionType:
    return ir.FunctionType(DOUBLE, [DOUBLE] * arity)


def _declare_function(node: ast.Function, context: BuildContext) -> ir.Function:
    function = ir.Function(context.module, _function_type(len(node.arguments)), name=node.name)
    for argument, param in zip(node.arguments, function.args):
        param.name = argument.variable_name
    return function


def _generate_variable(node: ast.Variable, context: BuildContext) -> ir.Value:
    value = context.named_values.get(node.identifier)
    if value is None:
        raise UndefinedVariable(node.identifier)
    return value


def _generate_binary(node: ast.BinaryExpression, context: BuildContext) -> ir.Value:
    lhs = generate(node.lhs, context)
    rhs = generate(node.rhs, context)
    builder = context.builder
    op = node.operator
    if op is ast.Operator.ADD:
        return builder.fadd(lhs, rhs, name="addtmp")
    if op is ast.Operator.SUB:
        return builder.fsub(lhs, rhs, name="subtmp")
    if op is ast.Operator.MUL:
        return builder.fmul(lhs, rhs, name="multmp")
    if op is ast.Operator.DIV:
        return builder.fdiv(lhs, rhs, name="divtmp")
    flag = builder.fcmp_ordered(_COMPARISON_PREDICATES[op], lhs, rhs, name="cmptmp")
    # i1 true must become 1.0, so the conversion is unsigned.
    return builder.uitofp(flag, DOUBLE, name="booltmp")


def _generate_function(node: ast.Function, context: BuildContext) -> ir.Value:
    existing = context.module.globals.get(node.name)
    if existing is None:
        function = _declare_function(node, context)
    elif isinstance(existing, ir.Function) and existing.is_declaration:
        if len(existing.args) != len(node.arguments):
            raise ArgumentCountMismatch(node.name, len(existing.args), len(node.arguments))
        function = existing
    else:
        raise RedefinedFunction(node.name)
    logger.debug("lowering function '%s'", node.name)

    builder = context.builder
    outer_block = builder.block
    # An unterminated insertion block means an enclosing body is still open.
    nested = outer_block is not None and not outer_block.is_terminated
    outer_values = dict(context.named_values)

    try:
        entry = function.append_basic_block(name="entry")
        builder.position_at_end(entry)
        context.named_values.clear()
        for argument, param in zip(node.arguments, function.args):
            context.named_values[argument.variable_name] = param

        body = generate(node.body, context)
        builder.ret(body)
    finally:
        context.named_values.clear()
        context.named_values.update(outer_values)
        if nested:
            builder.position_at_end(outer_block)
    if nested:
        # A definition inside an expression has no value of its own.
        return NO_VALUE
    return function


def _generate_call(node: ast.CallExpression, context: BuildContext) -> ir.Value:
    callee = context.function(node.callee)
    if callee is None:
        raise UndefinedFunction(node.callee)
    if len(callee.args) != len(node.arguments):
        raise ArgumentCountMismatch(node.callee, len(callee.args), len(node.arguments))
    args = [generate(argument.value, context) for argument in node.arguments]
    return context.builder.call(callee, args, name="calltmp")


def _generate_if_else(node: ast.IfElse, context: BuildContext) -> ir.Value:
    if node.else_value is None:
        raise MissingElseBranch("conditional used as a value has no 'else' branch")
    builder = context.builder
    condition = generate(node.condition, context)
    flag = builder.fcmp_ordered("!=", condition, ZERO, name="ifcond")

    function = builder.block.parent
    # Mirrors the phi below; the phi alone carries the result.
    local = builder.alloca(DOUBLE, name="local")

    then_block = function.append_basic_block(name="then")
    else_block = function.append_basic_block(name="else")
    merge_block = function.append_basic_block(name="merge")
    builder.cbranch(flag, then_block, else_block)

    builder.position_at_end(then_block)
    then_value = generate(node.then_value, context)
    # Nested conditionals move the builder, so take the block the arm ended in.
    then_exit = builder.block
    builder.branch(merge_block)

    builder.position_at_end(else_block)
    else_value = generate(node.else_value, context)
    else_exit = builder.block
    builder.branch(merge_block)

    builder.position_at_end(merge_block)
    phi = builder.phi(DOUBLE, name="phi")
    phi.add_incoming(then_value, then_exit)
    phi.add_incoming(else_value, else_exit)
    builder.store(phi, local)
    return phi
