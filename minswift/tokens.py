from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence


class TokenKind(Enum):
    IDENTIFIER = "identifier"
    INTEGER_LITERAL = "integer literal"
    FLOATING_LITERAL = "floating literal"
    SPACED_BINARY_OPERATOR = "spaced binary operator"
    UNSPACED_BINARY_OPERATOR = "unspaced binary operator"
    PREFIX_OPERATOR = "prefix operator"
    POSTFIX_OPERATOR = "postfix operator"
    FUNC_KEYWORD = "'func'"
    IF_KEYWORD = "'if'"
    ELSE_KEYWORD = "'else'"
    RETURN_KEYWORD = "'return'"
    WILDCARD_KEYWORD = "'_'"
    LEFT_PAREN = "'('"
    RIGHT_PAREN = "')'"
    LEFT_BRACE = "'{'"
    RIGHT_BRACE = "'}'"
    COMMA = "','"
    COLON = "':'"
    ARROW = "'->'"
    EOF = "end of file"

    def __str__(self) -> str:  # pragma: no cover - trivial repr
        return self.value


BINARY_OPERATOR_KINDS = frozenset({TokenKind.SPACED_BINARY_OPERATOR, TokenKind.UNSPACED_BINARY_OPERATOR})


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    line: int = 0
    column: int = 0

    def describe(self) -> str:
        if self.kind is TokenKind.EOF:
            return str(self.kind)
        return f"{self.kind} '{self.text}'"


def eof_token(line: int = 0, column: int = 0) -> Token:
    return Token(TokenKind.EOF, "", line, column)


class TokenCursor:
    """Token sequence plus an explicit read position.

    `current` starts at the first token. Reading past the end keeps returning
    the trailing EOF token, which the cursor appends when the input lacks one.
    """

    def __init__(self, tokens: Sequence[Token]) -> None:
        self._tokens: List[Token] = list(tokens)
        if not self._tokens or self._tokens[-1].kind is not TokenKind.EOF:
            last = self._tokens[-1] if self._tokens else None
            self._tokens.append(eof_token(last.line, last.column) if last else eof_token())
        self._index = 0

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> Token:
        return self._tokens[self._index]

    def read(self) -> Token:
        """Advance one token and return the new current token."""
        if self._index < len(self._tokens) - 1:
            self._index += 1
        return self.current

    def peek(self, n: int = 0) -> Token:
        """Return the token `n + 1` positions after the current one."""
        target = min(self._index + n + 1, len(self._tokens) - 1)
        return self._tokens[target]

    def at_end(self) -> bool:
        return self.current.kind is TokenKind.EOF
