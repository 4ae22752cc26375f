"""
PJScript Lexer
Turns source text into a lazy stream of tokens, one per next() call
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, Iterator

from pyparsing import alphas, alphanums, nums


class TokenKind(Enum):
    """Token kinds; the value is the name shown in diagnostics"""
    ILLEGAL = "illegal"
    EOF = "EOF"

    IDENTIFIER = "identifier"
    INT = "integer"
    STRING = "string"

    ASSIGN = "assign"
    PLUS = "plus"
    MINUS = "minus"
    ASTERISK = "asterisk"
    DOUBLE_ASTERISK = "double_asterisk"
    SLASH = "slash"
    PERCENT = "percent"
    BANG = "bang"

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    LT = "lt"
    GT = "gt"
    LTE = "lte"
    GTE = "gte"

    ARROW = "arrow"
    COMMA = "comma"
    SEMICOLON = "semicolon"
    COLON = "colon"
    DOT = "dot"
    LPAREN = "lparen"
    RPAREN = "rparen"
    LBRACE = "lbrace"
    RBRACE = "rbrace"
    LBRACKET = "lbracket"
    RBRACKET = "rbracket"

    FUNCTION = "function"
    TRUE = "true"
    FALSE = "false"
    AND = "and"
    OR = "or"
    NOT = "not"
    IF = "if"
    ELSE = "else"
    WHILE = "while"
    RETURN = "return"


@dataclass(frozen=True)
class Token:
    """PJScript token; position is the source offset and is ignored by =="""
    kind: TokenKind
    literal: str
    position: int = field(default=0, compare=False)

    def __str__(self) -> str:
        return f"{self.kind.name}({self.literal!r})"


EOF_LITERAL = "\0"

KEYWORDS: Dict[str, TokenKind] = {
    "f": TokenKind.FUNCTION,
    "true": TokenKind.TRUE,
    "false": TokenKind.FALSE,
    "and": TokenKind.AND,
    "or": TokenKind.OR,
    "not": TokenKind.NOT,
    "if": TokenKind.IF,
    "else": TokenKind.ELSE,
    "while": TokenKind.WHILE,
    "return": TokenKind.RETURN,
}

# Operators that may be followed by a second character, keyed by (first, second)
TWO_CHAR_OPERATORS: Dict[tuple, TokenKind] = {
    ("=", "="): TokenKind.EQUALS,
    ("=", ">"): TokenKind.ARROW,
    ("*", "*"): TokenKind.DOUBLE_ASTERISK,
    ("!", "="): TokenKind.NOT_EQUALS,
    (">", "="): TokenKind.GTE,
    ("<", "="): TokenKind.LTE,
}

SINGLE_CHAR_TOKENS: Dict[str, TokenKind] = {
    "=": TokenKind.ASSIGN,
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.ASTERISK,
    "/": TokenKind.SLASH,
    "%": TokenKind.PERCENT,
    "!": TokenKind.BANG,
    "<": TokenKind.LT,
    ">": TokenKind.GT,
    ",": TokenKind.COMMA,
    ";": TokenKind.SEMICOLON,
    ":": TokenKind.COLON,
    ".": TokenKind.DOT,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
}

STRING_ESCAPES = {"n": "\n", "t": "\t", '"': '"', "\\": "\\"}

WHITESPACE = {" ", "\t", "\r", "\n"}
IDENTIFIER_START = set(alphas + "_")
IDENTIFIER_CHARS = set(alphanums + "_")
DIGITS = set(nums)


def lookup_identifier(ident: str) -> TokenKind:
    """Classify an identifier as a keyword or a plain identifier"""
    return KEYWORDS.get(ident, TokenKind.IDENTIFIER)


class Lexer:
    """Single-pass scanner with one character of lookahead"""

    def __init__(self, source: str):
        self.source = source
        self.cursor = 0
        self.next_cursor = 0
        self.character = EOF_LITERAL
        self._read_char()

    def at_end(self) -> bool:
        return self.cursor >= len(self.source)

    def peek_char(self) -> str:
        if self.next_cursor >= len(self.source):
            return EOF_LITERAL
        return self.source[self.next_cursor]

    def next(self) -> Token:
        """Return the next token; keeps returning EOF once input is exhausted"""
        self._skip_whitespace()
        start = self.cursor

        if self.at_end():
            return Token(TokenKind.EOF, EOF_LITERAL, start)

        char = self.character

        if char == '"':
            return Token(TokenKind.STRING, self._read_string(), start)

        if char in IDENTIFIER_START:
            ident = self._read_while(IDENTIFIER_CHARS)
            return Token(lookup_identifier(ident), ident, start)

        if char in DIGITS:
            return Token(TokenKind.INT, self._read_while(DIGITS), start)

        pair = (char, self.peek_char())
        if pair in TWO_CHAR_OPERATORS:
            self._read_char()
            self._read_char()
            return Token(TWO_CHAR_OPERATORS[pair], char + pair[1], start)

        kind = SINGLE_CHAR_TOKENS.get(char, TokenKind.ILLEGAL)
        self._read_char()
        return Token(kind, char, start)

    def __iter__(self) -> Iterator[Token]:
        """Yield tokens up to and including the first EOF"""
        while True:
            token = self.next()
            yield token
            if token.kind == TokenKind.EOF:
                return

    def _read_char(self) -> None:
        if self.next_cursor >= len(self.source):
            self.character = EOF_LITERAL
        else:
            self.character = self.source[self.next_cursor]
        self.cursor = self.next_cursor
        self.next_cursor += 1

    def _read_while(self, allowed: set) -> str:
        start = self.cursor
        while not self.at_end() and self.character in allowed:
            self._read_char()
        return self.source[start:self.cursor]

    def _read_string(self) -> str:
        """Read a string body after the opening quote; unterminated strings run to EOF"""
        result = []
        self._read_char()
        while not self.at_end():
            char = self.character
            if char == '"':
                self._read_char()
                break
            if char == "\\":
                self._read_char()
                if self.at_end():
                    break
                # Unknown escape, keep the character as-is
                result.append(STRING_ESCAPES.get(self.character, self.character))
            else:
                result.append(char)
            self._read_char()
        return "".join(result)

    def _skip_whitespace(self) -> None:
        while not self.at_end() and self.character in WHITESPACE:
            self._read_char()


def tokenize(source: str) -> list:
    """Collect every token of source, EOF included"""
    return list(Lexer(source))
