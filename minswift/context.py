from __future__ import annotations

from typing import Dict, Optional

from llvmlite import ir  # type: ignore

DOUBLE = ir.DoubleType()
ZERO = ir.Constant(DOUBLE, 0.0)

# Result of a valueless `return` or an empty block.
NO_VALUE = ir.Constant(DOUBLE, ir.Undefined)


class BuildContext:
    """State shared by every `generate` call while lowering one module.

    - `module` receives the declared functions.
    - `builder` is the insertion cursor; it points into the function whose
      body is being lowered.
    - `named_values` binds argument names of that function to their IR values.
      It is cleared on entry to every function, nested ones included.
    """

    def __init__(self, module_name: str = "main") -> None:
        self.module = ir.Module(name=module_name)
        self.builder = ir.IRBuilder()
        self.named_values: Dict[str, ir.Value] = {}

    def function(self, name: str) -> Optional[ir.Function]:
        value = self.module.globals.get(name)
        return value if isinstance(value, ir.Function) else None
