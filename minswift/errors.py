"""Compile-time errors.

Every failure in tokenizing, parsing, lowering or running aborts the
compilation by raising one of these. Nothing is recovered locally.

    CompileError
    ├── LexError
    │   └── UnexpectedCharacter
    ├── ParseError
    │   ├── UnexpectedToken
    │   ├── MissingExpectedToken
    │   └── InvalidArgumentSyntax
    ├── GenerationError
    │   ├── UndefinedVariable
    │   ├── UndefinedFunction
    │   ├── MissingElseBranch
    │   ├── RedefinedFunction
    │   └── ArgumentCountMismatch
    ├── VerificationError
    └── EngineError
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .tokens import Token


@dataclass(frozen=True)
class Located:
    line: int
    column: int

    @classmethod
    def of(cls, token: Token) -> "Located":
        return cls(token.line, token.column)


class CompileError(Exception):
    def __init__(self, message: str, loc: Optional[Located] = None) -> None:
        self.message = message
        self.loc = loc
        super().__init__(self._format())

    def _format(self) -> str:
        if self.loc is None:
            return self.message
        return f"{self.loc.line}:{self.loc.column}: {self.message}"


class LexError(CompileError):
    pass


class UnexpectedCharacter(LexError):
    pass


class ParseError(CompileError):
    def __init__(self, message: str, token: Optional[Token] = None) -> None:
        self.token = token
        super().__init__(message, Located.of(token) if token is not None else None)


class UnexpectedToken(ParseError):
    pass


class MissingExpectedToken(ParseError):
    pass


class InvalidArgumentSyntax(ParseError):
    pass


class GenerationError(CompileError):
    pass


class UndefinedVariable(GenerationError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"undefined variable '{name}'")


class UndefinedFunction(GenerationError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"undefined function '{name}'")


class MissingElseBranch(GenerationError):
    pass


class RedefinedFunction(GenerationError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"function '{name}' is already defined")


class ArgumentCountMismatch(GenerationError):
    def __init__(self, name: str, expected: int, got: int) -> None:
        self.name = name
        self.expected = expected
        self.got = got
        super().__init__(f"'{name}' expects {expected} argument(s), got {got}")


class EngineError(CompileError):
    pass


class VerificationError(CompileError):
    """LLVM rejected the module text produced by lowering."""
