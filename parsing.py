"""
PJScript Parser
Pratt (top-down operator precedence) parser producing the AST in nodes.py
"""

from enum import IntEnum
from typing import Callable, Dict, List, Optional, Tuple

from lexer import Lexer, Token, TokenKind
from nodes import (
    Program, Statement, BlockStatement, ReturnStatement, WhileStatement,
    ExpressionStatement, Expression, Identifier, IntegerLiteral, StringLiteral,
    BooleanLiteral, PrefixExpression, InfixExpression, IfExpression,
    FunctionLiteral, ArrowFunctionLiteral, CallExpression, ArrayLiteral,
    IndexExpression, MemberExpression, AssignExpression, RecordLiteral,
)


class Precedence(IntEnum):
    LOWEST = 0
    ASSIGN = 1
    LOGICAL = 2
    EQUALITY = 3
    RELATIONAL = 4
    ADDITIVE = 5
    MULTIPLICATIVE = 6
    PREFIX = 7
    POWER = 8
    INDEX = 9
    MEMBER = 10
    CALL = 11


PRECEDENCES: Dict[TokenKind, Precedence] = {
    TokenKind.ASSIGN: Precedence.ASSIGN,
    TokenKind.AND: Precedence.LOGICAL,
    TokenKind.OR: Precedence.LOGICAL,
    TokenKind.EQUALS: Precedence.EQUALITY,
    TokenKind.NOT_EQUALS: Precedence.EQUALITY,
    TokenKind.LT: Precedence.RELATIONAL,
    TokenKind.GT: Precedence.RELATIONAL,
    TokenKind.LTE: Precedence.RELATIONAL,
    TokenKind.GTE: Precedence.RELATIONAL,
    TokenKind.PLUS: Precedence.ADDITIVE,
    TokenKind.MINUS: Precedence.ADDITIVE,
    TokenKind.ASTERISK: Precedence.MULTIPLICATIVE,
    TokenKind.SLASH: Precedence.MULTIPLICATIVE,
    TokenKind.PERCENT: Precedence.MULTIPLICATIVE,
    TokenKind.DOUBLE_ASTERISK: Precedence.POWER,
    TokenKind.LBRACKET: Precedence.INDEX,
    TokenKind.DOT: Precedence.MEMBER,
    TokenKind.LPAREN: Precedence.CALL,
}

BINARY_OPERATORS = (
    TokenKind.PLUS, TokenKind.MINUS, TokenKind.ASTERISK, TokenKind.SLASH,
    TokenKind.PERCENT, TokenKind.DOUBLE_ASTERISK,
    TokenKind.EQUALS, TokenKind.NOT_EQUALS,
    TokenKind.LT, TokenKind.GT, TokenKind.LTE, TokenKind.GTE,
    TokenKind.AND, TokenKind.OR,
)

PrefixParseFn = Callable[[], Optional[Expression]]
InfixParseFn = Callable[[Expression], Optional[Expression]]


class Parser:
    """Parses one source text into a Program, collecting errors instead of raising"""

    def __init__(self, source: str, debug: bool = False):
        self.debug = debug
        self.lexer = Lexer(source)
        self._diagnostics: List[Tuple[str, int]] = []

        self.prefix_parse_fns: Dict[TokenKind, PrefixParseFn] = {
            TokenKind.IDENTIFIER: self.parse_identifier,
            TokenKind.INT: self.parse_integer_literal,
            TokenKind.STRING: self.parse_string_literal,
            TokenKind.TRUE: self.parse_boolean_literal,
            TokenKind.FALSE: self.parse_boolean_literal,
            TokenKind.BANG: self.parse_prefix_expression,
            TokenKind.MINUS: self.parse_prefix_expression,
            TokenKind.NOT: self.parse_prefix_expression,
            TokenKind.LPAREN: self.parse_grouped_expression,
            TokenKind.IF: self.parse_if_expression,
            TokenKind.FUNCTION: self.parse_function_literal,
            TokenKind.LBRACKET: self.parse_array_literal,
            TokenKind.LBRACE: self.parse_record_literal,
        }
        self.infix_parse_fns: Dict[TokenKind, InfixParseFn] = {
            kind: self.parse_infix_expression for kind in BINARY_OPERATORS
        }
        self.infix_parse_fns[TokenKind.ASSIGN] = self.parse_assign_expression
        self.infix_parse_fns[TokenKind.LPAREN] = self.parse_call_expression
        self.infix_parse_fns[TokenKind.LBRACKET] = self.parse_index_expression
        self.infix_parse_fns[TokenKind.DOT] = self.parse_member_expression

        self.current: Token = self.lexer.next()
        self.peek: Token = self.lexer.next()
        if self.debug:
            print(f"Token: {self.current}")

    # ========================================================================
    # ERRORS
    # ========================================================================

    def errors(self) -> List[str]:
        """Error messages in the order they were found"""
        return [message for message, _ in self._diagnostics]

    def diagnostics(self) -> List[Tuple[str, int]]:
        """(message, source offset) pairs"""
        return list(self._diagnostics)

    def _error(self, message: str, position: int) -> None:
        self._diagnostics.append((message, position))

    def _peek_error(self, kind: TokenKind) -> None:
        self._error(f"expected {kind.value} but instead got {self.peek.literal}",
                    self.peek.position)

    def _no_prefix_parse_fn_error(self, token: Token) -> None:
        self._error(f"no prefix parse function for {token.kind.value} found", token.position)

    # ========================================================================
    # TOKEN CURSOR
    # ========================================================================

    def _advance(self) -> None:
        self.current = self.peek
        self.peek = self.lexer.next()
        if self.debug:
            print(f"Token: {self.current}")

    def _current_is(self, kind: TokenKind) -> bool:
        return self.current.kind == kind

    def _peek_is(self, kind: TokenKind) -> bool:
        return self.peek.kind == kind

    def _expect_peek(self, kind: TokenKind) -> bool:
        """Advance onto the peek token if it has the given kind, else record an error"""
        if self._peek_is(kind):
            self._advance()
            return True
        self._peek_error(kind)
        return False

    def _peek_precedence(self) -> Precedence:
        return PRECEDENCES.get(self.peek.kind, Precedence.LOWEST)

    def _current_precedence(self) -> Precedence:
        return PRECEDENCES.get(self.current.kind, Precedence.LOWEST)

    def _skip_semicolon(self) -> None:
        if self._peek_is(TokenKind.SEMICOLON):
            self._advance()

    # ========================================================================
    # STATEMENTS
    # ========================================================================

    def parse_program(self) -> Program:
        token = self.current
        statements = []
        while not self._current_is(TokenKind.EOF):
            statement = self.parse_statement()
            if statement is not None:
                statements.append(statement)
            self._advance()
        return Program(token, tuple(statements))

    def parse_statement(self) -> Optional[Statement]:
        if self._current_is(TokenKind.RETURN):
            return self.parse_return_statement()
        if self._current_is(TokenKind.WHILE):
            return self.parse_while_statement()
        return self.parse_expression_statement()

    def parse_return_statement(self) -> Optional[ReturnStatement]:
        token = self.current
        self._advance()
        value = self.parse_expression(Precedence.LOWEST)
        if value is None:
            return None
        self._skip_semicolon()
        return ReturnStatement(token, value)

    def parse_while_statement(self) -> Optional[WhileStatement]:
        token = self.current
        condition = self._parse_condition()
        if condition is None:
            return None
        body = self._parse_body()
        if body is None:
            return None
        self._skip_semicolon()
        return WhileStatement(token, condition, body)

    def parse_expression_statement(self) -> Optional[ExpressionStatement]:
        token = self.current
        expression = self.parse_expression(Precedence.LOWEST)
        if expression is None:
            return None
        self._skip_semicolon()
        return ExpressionStatement(token, expression)

    def parse_block_statement(self) -> BlockStatement:
        """Parse from the current '{' up to its matching '}'"""
        token = self.current
        statements = []
        self._advance()
        while not self._current_is(TokenKind.RBRACE) and not self._current_is(TokenKind.EOF):
            statement = self.parse_statement()
            if statement is not None:
                statements.append(statement)
            self._advance()
        if not self._current_is(TokenKind.RBRACE):
            self._error(f"expected {TokenKind.RBRACE.value} but instead got {self.current.literal}",
                        self.current.position)
        return BlockStatement(token, tuple(statements))

    def _parse_condition(self) -> Optional[Expression]:
        """'(' expression ')' following an if or while keyword"""
        if not self._expect_peek(TokenKind.LPAREN):
            return None
        self._advance()
        condition = self.parse_expression(Precedence.LOWEST)
        if condition is None or not self._expect_peek(TokenKind.RPAREN):
            return None
        return condition

    def _parse_body(self) -> Optional[Statement]:
        """A braced block, or a single statement"""
        self._advance()
        if self._current_is(TokenKind.LBRACE):
            return self.parse_block_statement()
        return self.parse_statement()

    # ========================================================================
    # EXPRESSIONS
    # ========================================================================

    def parse_expression(self, precedence: Precedence) -> Optional[Expression]:
        prefix = self.prefix_parse_fns.get(self.current.kind)
        if prefix is None:
            self._no_prefix_parse_fn_error(self.current)
            return None

        left = prefix()
        while left is not None and precedence < self._peek_precedence():
            infix = self.infix_parse_fns.get(self.peek.kind)
            if infix is None:
                return left
            self._advance()
            left = infix(left)
        return left

    def parse_identifier(self) -> Identifier:
        return Identifier(self.current, self.current.literal)

    def parse_integer_literal(self) -> Optional[IntegerLiteral]:
        token = self.current
        try:
            return IntegerLiteral(token, int(token.literal))
        except ValueError:
            self._error(f"could not parse {token.literal} as integer", token.position)
            return None

    def parse_string_literal(self) -> StringLiteral:
        return StringLiteral(self.current, self.current.literal)

    def parse_boolean_literal(self) -> BooleanLiteral:
        return BooleanLiteral(self.current, self._current_is(TokenKind.TRUE))

    def parse_prefix_expression(self) -> Optional[PrefixExpression]:
        token = self.current
        self._advance()
        right = self.parse_expression(Precedence.PREFIX)
        if right is None:
            return None
        return PrefixExpression(token, token.literal, right)

    def parse_infix_expression(self, left: Expression) -> Optional[InfixExpression]:
        token = self.current
        precedence = self._current_precedence()
        self._advance()
        right = self.parse_expression(precedence)
        if right is None:
            return None
        return InfixExpression(token, left, token.literal, right)

    def parse_assign_expression(self, target: Expression) -> Optional[AssignExpression]:
        token = self.current
        self._advance()
        # One level below ASSIGN so a chained '=' binds to the right
        value = self.parse_expression(Precedence.LOWEST)
        if value is None:
            return None
        return AssignExpression(token, target, value)

    def parse_grouped_expression(self) -> Optional[Expression]:
        self._advance()
        expression = self.parse_expression(Precedence.LOWEST)
        if expression is None or not self._expect_peek(TokenKind.RPAREN):
            return None
        return expression

    def parse_if_expression(self) -> Optional[IfExpression]:
        token = self.current
        condition = self._parse_condition()
        if condition is None:
            return None
        consequence = self._parse_body()
        if consequence is None:
            return None

        alternative = None
        if self._peek_is(TokenKind.ELSE):
            self._advance()
            alternative = self._parse_body()
            if alternative is None:
                return None
        return IfExpression(token, condition, consequence, alternative)

    def parse_function_literal(self) -> Optional[Expression]:
        token = self.current
        if not self._expect_peek(TokenKind.LPAREN):
            return None
        parameters = self.parse_function_parameters()
        if parameters is None:
            return None

        if self._peek_is(TokenKind.ARROW):
            self._advance()
            self._advance()
            body = self.parse_expression(Precedence.LOWEST)
            if body is None:
                return None
            return ArrowFunctionLiteral(token, parameters, body)

        if not self._expect_peek(TokenKind.LBRACE):
            return None
        return FunctionLiteral(token, parameters, self.parse_block_statement())

    def parse_function_parameters(self) -> Optional[Tuple[Identifier, ...]]:
        parameters = []
        if self._peek_is(TokenKind.RPAREN):
            self._advance()
            return ()

        if not self._expect_peek(TokenKind.IDENTIFIER):
            return None
        parameters.append(self.parse_identifier())
        while self._peek_is(TokenKind.COMMA):
            self._advance()
            if not self._expect_peek(TokenKind.IDENTIFIER):
                return None
            parameters.append(self.parse_identifier())

        if not self._expect_peek(TokenKind.RPAREN):
            return None
        return tuple(parameters)

    def parse_expression_list(self, end: TokenKind) -> Optional[Tuple[Expression, ...]]:
        """Comma separated expressions up to `end`; shared by calls and array literals"""
        items = []
        if self._peek_is(end):
            self._advance()
            return ()

        self._advance()
        item = self.parse_expression(Precedence.LOWEST)
        if item is not None:
            items.append(item)
        while self._peek_is(TokenKind.COMMA):
            self._advance()
            if self._peek_is(end):
                break
            self._advance()
            item = self.parse_expression(Precedence.LOWEST)
            if item is not None:
                items.append(item)

        if not self._expect_peek(end):
            return None
        return tuple(items)

    def parse_call_expression(self, function: Expression) -> Optional[CallExpression]:
        token = self.current
        arguments = self.parse_expression_list(TokenKind.RPAREN)
        if arguments is None:
            return None
        return CallExpression(token, function, arguments)

    def parse_array_literal(self) -> Optional[ArrayLiteral]:
        token = self.current
        elements = self.parse_expression_list(TokenKind.RBRACKET)
        if elements is None:
            return None
        return ArrayLiteral(token, elements)

    def parse_index_expression(self, left: Expression) -> Optional[IndexExpression]:
        token = self.current
        self._advance()
        index = self.parse_expression(Precedence.LOWEST)
        if index is None or not self._expect_peek(TokenKind.RBRACKET):
            return None
        return IndexExpression(token, left, index)

    def parse_member_expression(self, obj: Expression) -> Optional[MemberExpression]:
        token = self.current
        if not self._expect_peek(TokenKind.IDENTIFIER):
            return None
        # Binds only a following call, so `a.b.c` nests left to right
        prop = self.parse_expression(Precedence.MEMBER)
        if prop is None:
            return None
        return MemberExpression(token, obj, prop)

    def parse_record_literal(self) -> Optional[RecordLiteral]:
        token = self.current
        pairs = []
        while not self._peek_is(TokenKind.RBRACE):
            self._advance()
            key = self.parse_expression(Precedence.LOWEST)
            if key is None:
                return None

            value = None
            if self._peek_is(TokenKind.COLON):
                self._advance()
                self._advance()
                value = self.parse_expression(Precedence.LOWEST)
                if value is None:
                    return None
            pairs.append((key, value))

            if not self._peek_is(TokenKind.RBRACE) and not self._expect_peek(TokenKind.COMMA):
                return None
        self._advance()
        return RecordLiteral(token, tuple(pairs))


# Factory functions for creating parsers
def create_parser(source: str, debug: bool = False) -> Parser:
    """Create a PJScript parser for source"""
    return Parser(source, debug=debug)


def create_debug_parser(source: str) -> Parser:
    """Create a PJScript parser that prints every token it consumes"""
    return Parser(source, debug=True)


def parse(source: str) -> Tuple[Program, List[str]]:
    """Parse source, returning the program together with its error list"""
    parser = Parser(source)
    program = parser.parse_program()
    return program, parser.errors()


def parse_file(filepath: str) -> Tuple[Program, List[str]]:
    """Parse a PJScript source file"""
    with open(filepath, 'r', encoding='utf-8') as f:
        return parse(f.read())


# Utility functions for working with the AST
def find_nodes_by_type(node, node_type: type) -> list:
    """Find every node of a given class below (and including) node"""
    result = []

    def search(item):
        if isinstance(item, tuple):
            for child in item:
                search(child)
            return
        if not hasattr(item, "token"):
            return
        if isinstance(item, node_type):
            result.append(item)
        for name in item.__dataclass_fields__:
            if name != "token":
                search(getattr(item, name))

    search(node)
    return result
