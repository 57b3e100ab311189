"""Source → LLVM module pipeline shared by the CLI and the JIT engine."""

from __future__ import annotations

import logging
from pathlib import Path

from llvmlite import binding as llvm  # type: ignore
from llvmlite import ir  # type: ignore

from .context import BuildContext
from .errors import VerificationError
from .generator import declare_functions, generate
from .lexer import tokenize
from .parser import parse

logger = logging.getLogger(__name__)


def init_native() -> None:
    llvm.initialize_native_target()
    llvm.initialize_native_asmprinter()


def compile_source(source: str, module_name: str = "main") -> ir.Module:
    """Tokenize, parse and lower `source` into a fresh LLVM module."""
    nodes = parse(tokenize(source))
    context = BuildContext(module_name=module_name)
    context.module.triple = llvm.get_default_triple()
    declare_functions(nodes, context)
    for node in nodes:
        generate(node, context)
    logger.debug("compiled %d top-level node(s) into module '%s'", len(nodes), module_name)
    return context.module


def compile_file(source_path: Path) -> ir.Module:
    return compile_source(source_path.read_text(), module_name=source_path.stem)


def verify_module(module: ir.Module) -> llvm.ModuleRef:
    """Parse `module` back through LLVM and check it is well formed."""
    try:
        llvm_module = llvm.parse_assembly(str(module))
        llvm_module.verify()
    except RuntimeError as e:
        raise VerificationError(f"invalid LLVM IR in module '{module.name}': {e}") from e
    return llvm_module


def emit_object(module: ir.Module, out_path: Path) -> None:
    """Verify `module` and write it as a native object file."""
    init_native()
    target = llvm.Target.from_default_triple()
    tm = target.create_target_machine()
    llvm_module = verify_module(module)
    obj = tm.emit_object(llvm_module)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(obj)
    logger.debug("wrote %d byte(s) to %s", len(obj), out_path)
