"""
PJScript AST
Immutable statement and expression nodes, each able to print itself back
as canonical source text
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from lexer import Token


def quote_string(value: str) -> str:
    """Render a string value as a double-quoted literal"""
    escaped = (value.replace("\\", "\\\\")
                    .replace('"', '\\"')
                    .replace("\n", "\\n")
                    .replace("\t", "\\t"))
    return f'"{escaped}"'


def braced(statements) -> str:
    if not statements:
        return "{ }"
    return "{ " + "; ".join(stmt.stringify() for stmt in statements) + " }"


@dataclass(frozen=True)
class Node:
    """Base class for all AST nodes; keeps the token it was parsed from"""
    token: Token

    def token_literal(self) -> str:
        return self.token.literal

    def stringify(self) -> str:
        raise NotImplementedError(type(self).__name__)

    def __str__(self) -> str:
        return self.stringify()


@dataclass(frozen=True)
class Statement(Node):
    pass


@dataclass(frozen=True)
class Expression(Node):
    pass


# ============================================================================
# STATEMENTS
# ============================================================================

@dataclass(frozen=True)
class Program(Statement):
    """Root of the AST"""
    statements: Tuple[Statement, ...] = ()

    def stringify(self) -> str:
        return ";\n".join(stmt.stringify() for stmt in self.statements)


@dataclass(frozen=True)
class BlockStatement(Statement):
    statements: Tuple[Statement, ...] = ()

    def stringify(self) -> str:
        return braced(self.statements)


@dataclass(frozen=True)
class ReturnStatement(Statement):
    value: Expression

    def stringify(self) -> str:
        return f"return {self.value.stringify()}"


@dataclass(frozen=True)
class WhileStatement(Statement):
    condition: Expression
    body: Statement

    def stringify(self) -> str:
        return f"while ({self.condition.stringify()}) {as_block(self.body)}"


@dataclass(frozen=True)
class ExpressionStatement(Statement):
    expression: Expression

    def stringify(self) -> str:
        return self.expression.stringify()


def as_block(statement: Statement) -> str:
    """Branches and loop bodies always print braced"""
    if isinstance(statement, BlockStatement):
        return statement.stringify()
    return braced((statement,))


# ============================================================================
# EXPRESSIONS
# ============================================================================

@dataclass(frozen=True)
class Identifier(Expression):
    value: str

    def stringify(self) -> str:
        return self.value


@dataclass(frozen=True)
class IntegerLiteral(Expression):
    value: int

    def stringify(self) -> str:
        return self.token.literal


@dataclass(frozen=True)
class StringLiteral(Expression):
    value: str

    def stringify(self) -> str:
        return quote_string(self.value)


@dataclass(frozen=True)
class BooleanLiteral(Expression):
    value: bool

    def stringify(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class PrefixExpression(Expression):
    operator: str
    right: Expression

    def stringify(self) -> str:
        separator = " " if self.operator == "not" else ""
        return f"({self.operator}{separator}{self.right.stringify()})"


@dataclass(frozen=True)
class InfixExpression(Expression):
    left: Expression
    operator: str
    right: Expression

    def stringify(self) -> str:
        return f"({self.left.stringify()} {self.operator} {self.right.stringify()})"


@dataclass(frozen=True)
class IfExpression(Expression):
    condition: Expression
    consequence: Statement
    alternative: Optional[Statement] = None

    def stringify(self) -> str:
        text = f"if ({self.condition.stringify()}) {as_block(self.consequence)}"
        if self.alternative is not None:
            text += f" else {as_block(self.alternative)}"
        return text


@dataclass(frozen=True)
class FunctionLiteral(Expression):
    parameters: Tuple[Identifier, ...]
    body: BlockStatement

    def parameter_names(self) -> Tuple[str, ...]:
        return tuple(param.value for param in self.parameters)

    def stringify(self) -> str:
        params = ", ".join(self.parameter_names())
        return f"f({params}) {self.body.stringify()}"


@dataclass(frozen=True)
class ArrowFunctionLiteral(Expression):
    parameters: Tuple[Identifier, ...]
    body: Expression

    def parameter_names(self) -> Tuple[str, ...]:
        return tuple(param.value for param in self.parameters)

    def stringify(self) -> str:
        params = ", ".join(self.parameter_names())
        return f"(f({params}) => {self.body.stringify()})"


@dataclass(frozen=True)
class CallExpression(Expression):
    function: Expression
    arguments: Tuple[Expression, ...] = ()

    def stringify(self) -> str:
        args = ", ".join(arg.stringify() for arg in self.arguments)
        return f"{self.function.stringify()}({args})"


@dataclass(frozen=True)
class ArrayLiteral(Expression):
    elements: Tuple[Expression, ...] = ()

    def stringify(self) -> str:
        elems = ", ".join(elem.stringify() for elem in self.elements)
        return f"([{elems}])"


@dataclass(frozen=True)
class IndexExpression(Expression):
    left: Expression
    index: Expression

    def stringify(self) -> str:
        return f"({self.left.stringify()}[{self.index.stringify()}])"


@dataclass(frozen=True)
class MemberExpression(Expression):
    """object.name or object.name(args); property is an Identifier or a CallExpression"""
    object: Expression
    property: Union[Identifier, CallExpression]

    def property_name(self) -> str:
        if isinstance(self.property, CallExpression):
            return self.property.function.stringify()
        return self.property.value

    def stringify(self) -> str:
        return f"({self.object.stringify()}.{self.property.stringify()})"


@dataclass(frozen=True)
class AssignExpression(Expression):
    target: Expression
    value: Expression

    def stringify(self) -> str:
        return f"({self.target.stringify()} = {self.value.stringify()})"


@dataclass(frozen=True)
class RecordLiteral(Expression):
    """Ordered key/value pairs; a None value is the {name} shorthand"""
    pairs: Tuple[Tuple[Expression, Optional[Expression]], ...] = ()

    def stringify(self) -> str:
        fields = []
        for key, value in self.pairs:
            if value is None:
                fields.append(key.stringify())
            else:
                fields.append(f"{key.stringify()}: {value.stringify()}")
        return "{" + ", ".join(fields) + "}"
