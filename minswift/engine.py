from __future__ import annotations

import ctypes
import logging
from typing import Callable, Optional

from llvmlite import binding as llvm  # type: ignore
from llvmlite import ir  # type: ignore

from .compiler import compile_source, init_native, verify_module
from .errors import ArgumentCountMismatch, EngineError, UndefinedFunction

logger = logging.getLogger(__name__)


class Engine:
    """MCJIT host for compiled MinSwift modules.

    Every MinSwift function has the native signature `double(double, ...)`,
    so a function is called through a ctypes prototype built from its arity.
    Loading replaces whatever was loaded before.
    """

    def __init__(self) -> None:
        init_native()
        self._target_machine = llvm.Target.from_default_triple().create_target_machine()
        self._module: Optional[ir.Module] = None
        self._engine: Optional[llvm.ExecutionEngine] = None

    @property
    def ir(self) -> str:
        if self._module is None:
            raise EngineError("no module loaded")
        return str(self._module)

    def load(self, source: str) -> None:
        self.load_module(compile_source(source))

    def load_module(self, module: ir.Module) -> None:
        llvm_module = verify_module(module)
        engine = llvm.create_mcjit_compiler(llvm_module, self._target_machine)
        engine.finalize_object()
        engine.run_static_constructors()
        self._module = module
        self._engine = engine
        logger.debug("JIT-loaded module '%s'", module.name)

    def function(self, name: str) -> Callable[..., float]:
        if self._module is None or self._engine is None:
            raise EngineError("no module loaded")
        declared = self._module.globals.get(name)
        if not isinstance(declared, ir.Function) or declared.is_declaration:
            raise UndefinedFunction(name)
        address = self._engine.get_function_address(name)
        if not address:
            raise UndefinedFunction(name)
        arity = len(declared.args)
        prototype = ctypes.CFUNCTYPE(ctypes.c_double, *([ctypes.c_double] * arity))
        native = prototype(address)

        def call(*args: float) -> float:
            if len(args) != arity:
                raise ArgumentCountMismatch(name, arity, len(args))
            return native(*(float(a) for a in args))

        # The handle keeps its JIT memory alive across later loads.
        call.engine = self._engine  # type: ignore[attr-defined]
        return call

    def run(self, name: str, *args: float) -> float:
        return self.function(name)(*args)
