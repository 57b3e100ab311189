#!/usr/bin/env python3
"""minswiftc: MinSwift source -> LLVM IR / object file / JIT run."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .compiler import compile_source, emit_object
from .engine import Engine
from .errors import CompileError


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="minswiftc: minimal MinSwift -> LLVM compiler")
    ap.add_argument("source", type=Path, help="MinSwift source file")
    ap.add_argument("-o", "--output", type=Path, help="Output object file (.o)")
    ap.add_argument("--emit-ir", action="store_true", help="Print the generated LLVM IR to stdout")
    ap.add_argument("--run", metavar="NAME", help="JIT-compile and call function NAME, printing the result")
    ap.add_argument(
        "--arg",
        dest="run_args",
        metavar="VALUE",
        type=float,
        action="append",
        default=[],
        help="Argument passed to --run (repeat once per argument)",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Log compiler progress to stderr")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        source = args.source.read_text()
    except OSError as e:
        print(f"minswiftc: error: cannot read {args.source}: {e}", file=sys.stderr)
        return 1

    try:
        module = compile_source(source, module_name=args.source.stem)
        if args.emit_ir:
            print(module)
        if args.output is not None:
            emit_object(module, args.output)
        if args.run is not None:
            engine = Engine()
            engine.load_module(module)
            print(engine.run(args.run, *args.run_args))
    except CompileError as e:
        print(f"minswiftc: error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
