from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List

from lark import Lark, Token as LarkToken
from lark.exceptions import UnexpectedCharacters

from .errors import Located, UnexpectedCharacter
from .tokens import Token, TokenKind

logger = logging.getLogger(__name__)

_GRAMMAR_PATH = Path(__file__).with_name("tokens.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_LEXER = Lark(_GRAMMAR_SRC, parser="lalr", lexer="basic", start="start")

_KINDS: Dict[str, TokenKind] = {
    "FUNC": TokenKind.FUNC_KEYWORD,
    "IF": TokenKind.IF_KEYWORD,
    "ELSE": TokenKind.ELSE_KEYWORD,
    "RETURN": TokenKind.RETURN_KEYWORD,
    "WILDCARD": TokenKind.WILDCARD_KEYWORD,
    "NAME": TokenKind.IDENTIFIER,
    "FLOAT": TokenKind.FLOATING_LITERAL,
    "INT": TokenKind.INTEGER_LITERAL,
    "ARROW": TokenKind.ARROW,
    "LPAR": TokenKind.LEFT_PAREN,
    "RPAR": TokenKind.RIGHT_PAREN,
    "LBRACE": TokenKind.LEFT_BRACE,
    "RBRACE": TokenKind.RIGHT_BRACE,
    "COMMA": TokenKind.COMMA,
    "COLON": TokenKind.COLON,
}

# Characters that count as whitespace when deciding how an operator is bound.
_LEFT_SEPARATORS = frozenset(" \t\r\n([{,;:")
_RIGHT_SEPARATORS = frozenset(" \t\r\n)]},;:")


def _operator_kind(source: str, start: int, end: int) -> TokenKind:
    """Classify an operator by what touches it on each side.

    - bound on both sides or on neither: binary (unspaced / spaced)
    - bound on the right only: prefix, as in `-x`
    - bound on the left only: postfix, as in `x!`
    """
    left_bound = start > 0 and source[start - 1] not in _LEFT_SEPARATORS
    right_bound = end < len(source) and source[end] not in _RIGHT_SEPARATORS
    if left_bound and right_bound:
        return TokenKind.UNSPACED_BINARY_OPERATOR
    if not left_bound and not right_bound:
        return TokenKind.SPACED_BINARY_OPERATOR
    if right_bound:
        return TokenKind.PREFIX_OPERATOR
    return TokenKind.POSTFIX_OPERATOR


def _convert(source: str, tok: LarkToken) -> Token:
    if tok.type == "OPERATOR":
        kind = _operator_kind(source, tok.start_pos, tok.end_pos)
    else:
        kind = _KINDS[tok.type]
    return Token(kind, str(tok), tok.line, tok.column)


def _eof_position(source: str) -> Located:
    line = source.count("\n") + 1
    column = len(source) - (source.rfind("\n") + 1) + 1
    return Located(line, column)


def tokenize(source: str) -> List[Token]:
    """Split source text into tokens, ending with a single EOF token."""
    tokens: List[Token] = []
    try:
        for tok in _LEXER.lex(source):
            tokens.append(_convert(source, tok))
    except UnexpectedCharacters as e:
        raise UnexpectedCharacter(
            f"unexpected character {e.char!r}", Located(e.line, e.column)
        ) from e
    end = _eof_position(source)
    tokens.append(Token(TokenKind.EOF, "", end.line, end.column))
    logger.debug("tokenized %d token(s)", len(tokens))
    return tokens
