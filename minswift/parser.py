"""Recursive-descent parser with operator-precedence climbing.

Grammar (informal):

    program     := (function | expression)* EOF
    function    := 'func' NAME '(' (argument (',' argument)*)? ')' ('->' NAME)? '{' expression '}'
    argument    := NAME ':' NAME | NAME NAME ':' NAME | '_' NAME ':' NAME
    expression  := primary (binop primary)*
    primary     := NAME | NAME '(' call_args ')' | NUMBER | '(' expression ')'
                 | function | 'return' expression? | if_else | '}'
    if_else     := 'if' expression '{' expression '}' ('else' ('{' expression '}' | if_else))?
    call_args   := ((NAME ':')? expression (',' (NAME ':')? expression)*)?

A bare top-level expression becomes the body of a zero-argument function
named `main`. Any structural violation raises a ParseError; there is no
recovery.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .ast import (
    NO_PRECEDENCE,
    BinaryExpression,
    CallArgument,
    CallExpression,
    Function,
    FunctionArgument,
    IfElse,
    Node,
    Number,
    Operator,
    Return,
    ReturnType,
    Variable,
    Void,
    operator_from_text,
    return_type_from_name,
)
from .errors import InvalidArgumentSyntax, MissingExpectedToken, UnexpectedToken
from .lexer import tokenize
from .tokens import BINARY_OPERATOR_KINDS, Token, TokenCursor, TokenKind

logger = logging.getLogger(__name__)

ENTRY_FUNCTION_NAME = "main"


def binary_operator(token: Token) -> Optional[Operator]:
    """Binary operator carried by `token`; prefix/postfix operators are not binary."""
    if token.kind not in BINARY_OPERATOR_KINDS:
        return None
    return operator_from_text(token.text)


def _precedence(token: Token) -> int:
    op = binary_operator(token)
    return op.precedence if op is not None else NO_PRECEDENCE


class Parser:
    def __init__(self, tokens: Sequence[Token]) -> None:
        self._cursor = TokenCursor(tokens)

    @property
    def current(self) -> Token:
        return self._cursor.current

    def parse(self) -> List[Node]:
        """Parse the whole token stream into top-level nodes."""
        nodes: List[Node] = []
        while True:
            kind = self.current.kind
            if kind is TokenKind.EOF:
                return nodes
            if kind is TokenKind.FUNC_KEYWORD:
                node = self.parse_function_definition()
            elif kind is TokenKind.RIGHT_BRACE:
                raise UnexpectedToken(f"unexpected {self.current.describe()} at top level", self.current)
            else:
                node = self._parse_top_level_expression()
            logger.debug("parsed top-level %s", _describe_node(node))
            nodes.append(node)

    def parse_expression(self) -> Optional[Node]:
        lhs = self._parse_primary()
        if lhs is None:
            return None
        return self._parse_binary_operator_rhs(0, lhs)

    # --- primaries ---------------------------------------------------------

    def _parse_primary(self) -> Optional[Node]:
        kind = self.current.kind
        if kind is TokenKind.IDENTIFIER:
            return self._parse_identifier_expression()
        if kind in (TokenKind.INTEGER_LITERAL, TokenKind.FLOATING_LITERAL):
            return self._parse_number()
        if kind is TokenKind.LEFT_PAREN:
            return self._parse_paren()
        if kind is TokenKind.FUNC_KEYWORD:
            return self.parse_function_definition()
        if kind is TokenKind.RETURN_KEYWORD:
            return self._parse_return()
        if kind is TokenKind.IF_KEYWORD:
            return self._parse_if_else()
        if kind is TokenKind.EOF:
            return None
        if kind is TokenKind.RIGHT_BRACE:
            # Empty block; the brace itself is consumed by the block's owner.
            return Void()
        raise UnexpectedToken(f"unexpected {self.current.describe()}", self.current)

    def _parse_number(self) -> Node:
        token = self.current
        if token.kind not in (TokenKind.INTEGER_LITERAL, TokenKind.FLOATING_LITERAL):
            raise UnexpectedToken(f"expected a number, got {token.describe()}", token)
        self._cursor.read()
        return Number(float(token.text))

    def _parse_identifier_expression(self) -> Node:
        name = self._expect(TokenKind.IDENTIFIER, "an identifier").text
        if self.current.kind is not TokenKind.LEFT_PAREN:
            return Variable(name)
        self._cursor.read()
        arguments = self._parse_call_arguments()
        self._expect(TokenKind.RIGHT_PAREN, "')' after call arguments")
        return CallExpression(name, tuple(arguments))

    def _parse_call_arguments(self) -> List[CallArgument]:
        arguments: List[CallArgument] = []
        while self.current.kind is not TokenKind.RIGHT_PAREN:
            label: Optional[str] = None
            if self.current.kind is TokenKind.IDENTIFIER and self._cursor.peek().kind is TokenKind.COLON:
                label = self.current.text
                self._cursor.read()
                self._cursor.read()
            value = self.parse_expression()
            if value is None:
                raise UnexpectedToken("expected a call argument", self.current)
            arguments.append(CallArgument(label, value))
            if self.current.kind is not TokenKind.COMMA:
                break
            self._cursor.read()
        return arguments

    def _parse_paren(self) -> Node:
        self._expect(TokenKind.LEFT_PAREN, "'('")
        value = self.parse_expression()
        if value is None:
            raise UnexpectedToken("expected an expression after '('", self.current)
        self._expect(TokenKind.RIGHT_PAREN, "')'")
        return value

    def _parse_return(self) -> Node:
        self._expect(TokenKind.RETURN_KEYWORD, "'return'")
        if self.current.kind in (TokenKind.RIGHT_BRACE, TokenKind.EOF):
            return Return(None)
        return Return(self.parse_expression())

    # --- binary operators --------------------------------------------------

    def _parse_binary_operator_rhs(self, expression_precedence: int, lhs: Node) -> Node:
        """Fold `lhs (op primary)*` while operators bind at least as tightly as the threshold.

        An operator that binds tighter than the one before it takes the pending
        right-hand side as its own left-hand side, so `a + b * c` becomes
        `a + (b * c)`. Equal precedence folds to the left.
        """
        while True:
            op_token = self.current
            op = binary_operator(op_token)
            if op is None or op.precedence < expression_precedence:
                return lhs
            precedence = op.precedence
            self._cursor.read()
            rhs = self._parse_primary()
            if rhs is None:
                raise UnexpectedToken(f"expected an expression after '{op_token.text}'", self.current)
            if precedence < _precedence(self.current):
                rhs = self._parse_binary_operator_rhs(precedence + 1, rhs)
            lhs = BinaryExpression(op, lhs, rhs)

    # --- functions ---------------------------------------------------------

    def parse_function_definition(self) -> Node:
        self._expect(TokenKind.FUNC_KEYWORD, "'func'")
        name = self._expect(TokenKind.IDENTIFIER, "a function name").text
        self._expect(TokenKind.LEFT_PAREN, f"'(' after function name '{name}'")
        arguments: List[FunctionArgument] = []
        while self.current.kind is not TokenKind.RIGHT_PAREN:
            arguments.append(self._parse_function_argument())
            if self.current.kind is not TokenKind.COMMA:
                break
            self._cursor.read()
        self._expect(TokenKind.RIGHT_PAREN, "')' after function arguments")
        return_type = self._parse_return_type()
        self._expect(TokenKind.LEFT_BRACE, f"'{{' to open the body of '{name}'")
        body = self.parse_expression()
        if body is None:
            raise UnexpectedToken(f"unterminated body of '{name}'", self.current)
        self._expect(TokenKind.RIGHT_BRACE, f"'}}' to close the body of '{name}'")
        return Function(name, tuple(arguments), return_type, body)

    def _parse_function_argument(self) -> FunctionArgument:
        first = self.current
        p0, p1, p2 = self._cursor.peek(0), self._cursor.peek(1), self._cursor.peek(2)
        if first.kind is TokenKind.IDENTIFIER and p0.kind is TokenKind.COLON and p1.kind is TokenKind.IDENTIFIER:
            self._advance(3)
            return FunctionArgument(first.text, first.text)
        if (
            first.kind in (TokenKind.IDENTIFIER, TokenKind.WILDCARD_KEYWORD)
            and p0.kind is TokenKind.IDENTIFIER
            and p1.kind is TokenKind.COLON
            and p2.kind is TokenKind.IDENTIFIER
        ):
            self._advance(4)
            label = first.text if first.kind is TokenKind.IDENTIFIER else None
            return FunctionArgument(label, p0.text)
        raise InvalidArgumentSyntax(f"invalid argument declaration starting at {first.describe()}", first)

    def _parse_return_type(self) -> ReturnType:
        return_type = ReturnType.VOID
        if self.current.kind is not TokenKind.ARROW:
            return return_type
        self._cursor.read()
        type_name = self._expect(TokenKind.IDENTIFIER, "a return type after '->'").text
        # Unknown type names keep the default category.
        return return_type_from_name(type_name) or return_type

    # --- conditionals ------------------------------------------------------

    def _parse_if_else(self) -> Node:
        self._expect(TokenKind.IF_KEYWORD, "'if'")
        condition = self.parse_expression()
        if condition is None:
            raise UnexpectedToken("'if' needs a condition", self.current)
        then_value = self._parse_block("'{' after the condition")
        else_value: Optional[Node] = None
        if self.current.kind is TokenKind.ELSE_KEYWORD:
            self._cursor.read()
            if self.current.kind is TokenKind.LEFT_BRACE:
                else_value = self._parse_block("'{' after 'else'")
            elif self.current.kind is TokenKind.IF_KEYWORD:
                else_value = self._parse_if_else()
            else:
                raise MissingExpectedToken(
                    f"expected '{{' or 'if' after 'else', got {self.current.describe()}", self.current
                )
        return IfElse(condition, then_value, else_value)

    def _parse_block(self, what: str) -> Node:
        self._expect(TokenKind.LEFT_BRACE, what)
        value = self.parse_expression()
        if value is None:
            raise UnexpectedToken("unterminated block", self.current)
        self._expect(TokenKind.RIGHT_BRACE, "'}' to close the block")
        return value

    def _parse_top_level_expression(self) -> Node:
        expression = self.parse_expression()
        if expression is None:
            raise UnexpectedToken("expected an expression", self.current)
        return Function(ENTRY_FUNCTION_NAME, (), ReturnType.DOUBLE, expression)

    # --- helpers -----------------------------------------------------------

    def _expect(self, kind: TokenKind, what: str) -> Token:
        token = self.current
        if token.kind is not kind:
            raise MissingExpectedToken(f"expected {what}, got {token.describe()}", token)
        self._cursor.read()
        return token

    def _advance(self, count: int) -> None:
        for _ in range(count):
            self._cursor.read()


def _describe_node(node: Node) -> str:
    if isinstance(node, Function):
        return f"function '{node.name}' ({len(node.arguments)} argument(s))"
    return type(node).__name__


def parse(tokens: Sequence[Token]) -> List[Node]:
    return Parser(tokens).parse()


def parse_source(source: str) -> List[Node]:
    return parse(tokenize(source))
