"""
minswift: MinSwift compiler front end.

Pipeline:
  lexer:     source text -> tokens
  parser:    tokens -> AST (recursive descent + precedence climbing)
  generator: AST -> LLVM IR (SSA, phi merges for conditionals)
  engine:    MCJIT execution of compiled functions
"""

__all__ = ["ast", "compiler", "context", "engine", "errors", "generator", "lexer", "parser", "tokens"]
