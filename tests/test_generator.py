"""
IR generator: per-node lowering, conditional diamonds, declaration pre-pass
and generation errors.
"""

from __future__ import annotations

import pytest

pytest.importorskip("llvmlite")

from llvmlite import ir  # type: ignore

from minswift.ast import (
    BinaryExpression,
    CallArgument,
    CallExpression,
    Function,
    FunctionArgument,
    IfElse,
    Number,
    Operator,
    Return,
    ReturnType,
    Variable,
    Void,
)
from minswift.compiler import compile_source, verify_module
from minswift.context import DOUBLE, NO_VALUE, BuildContext
from minswift.errors import (
    ArgumentCountMismatch,
    GenerationError,
    MissingElseBranch,
    RedefinedFunction,
    UndefinedFunction,
    UndefinedVariable,
)
from minswift.generator import declare_functions, generate
from minswift.parser import parse_source


def _lower(source: str) -> BuildContext:
    context = BuildContext()
    nodes = parse_source(source)
    declare_functions(nodes, context)
    for node in nodes:
        generate(node, context)
    return context


def _opnames(block: ir.Block):
    return [instr.opname for instr in block.instructions]


def _fn(name: str, args, body) -> Function:
    return Function(name, tuple(FunctionArgument(None, a) for a in args), ReturnType.DOUBLE, body)


def test_number_is_double_constant():
    value = generate(Number(2.5), BuildContext())
    assert isinstance(value, ir.Constant)
    assert isinstance(value.type, ir.DoubleType)
    assert value.constant == 2.5


def test_valueless_nodes_yield_no_value_marker():
    context = BuildContext()
    assert generate(Return(None), context) is NO_VALUE
    assert generate(Void(), context) is NO_VALUE


def test_return_yields_its_body():
    value = generate(Return(Number(3)), BuildContext())
    assert value.constant == 3.0


def test_function_declares_double_signature_and_returns_body():
    context = BuildContext()
    fn = generate(_fn("add", ["a", "b"], BinaryExpression(Operator.ADD, Variable("a"), Variable("b"))), context)
    assert context.module.get_global("add") is fn
    assert isinstance(fn.ftype.return_type, ir.DoubleType)
    assert [type(a.type) for a in fn.args] == [ir.DoubleType, ir.DoubleType]
    assert [a.name for a in fn.args] == ["a", "b"]
    (entry,) = fn.blocks
    assert entry.name == "entry"
    assert _opnames(entry) == ["fadd", "ret"]


@pytest.mark.parametrize(
    "op, opname",
    [
        (Operator.ADD, "fadd"),
        (Operator.SUB, "fsub"),
        (Operator.MUL, "fmul"),
        (Operator.DIV, "fdiv"),
    ],
)
def test_arithmetic_operators(op, opname):
    context = BuildContext()
    fn = generate(_fn("f", ["x"], BinaryExpression(op, Variable("x"), Number(2))), context)
    assert _opnames(fn.blocks[0])[0] == opname


def test_comparison_is_converted_to_double():
    context = BuildContext()
    fn = generate(_fn("lt", ["x", "y"], BinaryExpression(Operator.LESS_THAN, Variable("x"), Variable("y"))), context)
    assert _opnames(fn.blocks[0]) == ["fcmp", "uitofp", "ret"]
    assert "fcmp olt double" in str(fn)


def test_declared_return_category_does_not_change_signature():
    context = BuildContext()
    fn = generate(Function("v", (), ReturnType.VOID, Number(1)), context)
    assert isinstance(fn.ftype.return_type, ir.DoubleType)


def test_if_else_builds_diamond_with_phi():
    context = _lower("func f(_ x: Double) -> Double { if x < 3 { return 1 } else { return 2 } }")
    fn = context.module.get_global("f")
    assert [b.name for b in fn.blocks] == ["entry", "then", "else", "merge"]
    entry, then_block, else_block, merge = fn.blocks
    assert _opnames(entry) == ["fcmp", "uitofp", "fcmp", "alloca", "br"]
    assert _opnames(then_block) == ["br"]
    assert _opnames(else_block) == ["br"]
    assert _opnames(merge) == ["phi", "store", "ret"]
    phi = merge.instructions[0]
    (then_value, then_pred), (else_value, else_pred) = phi.incomings
    assert then_pred is then_block
    assert else_pred is else_block
    assert then_value.constant == 1.0
    assert else_value.constant == 2.0


def test_else_if_phi_uses_block_where_arm_ended():
    context = _lower("func sign(_ x: Double) -> Double { if x < 0 { 0 - 1 } else if x == 0 { 0 } else { 1 } }")
    fn = context.module.get_global("sign")
    names = [b.name for b in fn.blocks]
    assert names == ["entry", "then", "else", "merge", "then.1", "else.1", "merge.1"]
    outer_merge = fn.blocks[3]
    outer_phi = outer_merge.instructions[0]
    assert outer_phi.incomings[0][1].name == "then"
    assert outer_phi.incomings[1][1].name == "merge.1"


def test_call_resolves_callee_and_keeps_argument_order():
    context = _lower("func sub(a: Double, b: Double) -> Double { a - b }\nsub(a: 10, b: 4)")
    main = context.module.get_global("main")
    (entry,) = main.blocks
    call = entry.instructions[0]
    assert call.opname == "call"
    assert call.callee is context.module.get_global("sub")
    assert [arg.constant for arg in call.args] == [10.0, 4.0]


def test_pre_pass_allows_forward_and_mutual_calls():
    context = _lower(
        "func isEven(_ n: Double) -> Double { if n == 0 { 1 } else { isOdd(n - 1) } }\n"
        "func isOdd(_ n: Double) -> Double { if n == 0 { 0 } else { isEven(n - 1) } }"
    )
    assert not context.module.get_global("isEven").is_declaration
    assert not context.module.get_global("isOdd").is_declaration


def test_forward_call_without_pre_pass_is_undefined():
    context = BuildContext()
    caller = _fn("caller", [], CallExpression("later", ()))
    with pytest.raises(UndefinedFunction):
        generate(caller, context)


def test_nested_function_resets_and_restores_bindings():
    context = BuildContext()
    inner = _fn("inner", ["y"], Variable("y"))
    outer = _fn("outer", ["x"], IfElse(Number(1), Return(Variable("x")), Return(Number(0))))
    generate(outer, context)
    context.named_values["x"] = context.module.get_global("outer").args[0]
    generate(inner, context)
    assert set(context.named_values) == {"x"}

    leaking = _fn("leaking", ["z"], Variable("x"))
    with pytest.raises(UndefinedVariable):
        generate(leaking, context)


def test_undefined_variable():
    with pytest.raises(UndefinedVariable) as excinfo:
        generate(_fn("f", [], Variable("nope")), BuildContext())
    assert excinfo.value.name == "nope"


def test_undefined_function():
    with pytest.raises(UndefinedFunction):
        _lower("missing(1)")


def test_argument_count_mismatch():
    with pytest.raises(ArgumentCountMismatch):
        _lower("func one(_ x: Double) -> Double { x }\none(1, 2)")


def test_missing_else_branch():
    with pytest.raises(MissingElseBranch):
        _lower("func f(_ x: Double) -> Double { if x { 1 } }")


def test_redefined_function():
    with pytest.raises(RedefinedFunction):
        _lower("func f() { 1 }\nfunc f() { 2 }")


def test_two_top_level_expressions_collide_on_entry_name():
    with pytest.raises(RedefinedFunction):
        _lower("1\n2")


def test_unknown_node_type():
    with pytest.raises(GenerationError):
        generate(CallArgument(None, Number(1)), BuildContext())


def test_function_defined_inside_a_body_yields_no_value():
    module = compile_source("func outer(_ x: Double) -> Double { func inner(_ y: Double) -> Double { y } }")
    outer = module.get_global("outer")
    inner = module.get_global("inner")
    assert not inner.is_declaration
    (ret,) = outer.blocks[0].instructions
    assert ret.opname == "ret"
    assert ret.operands[0] is NO_VALUE
    assert "double (double)*" not in str(outer)
    verify_module(module)


def test_failed_nested_function_restores_enclosing_state():
    context = BuildContext()
    outer = ir.Function(context.module, ir.FunctionType(DOUBLE, [DOUBLE]), name="outer")
    entry = outer.append_basic_block(name="entry")
    context.builder.position_at_end(entry)
    context.named_values["x"] = outer.args[0]

    with pytest.raises(UndefinedVariable):
        generate(_fn("inner", ["y"], Variable("w")), context)
    assert context.named_values == {"x": outer.args[0]}
    assert context.builder.block is entry
