"""
Error handling for PJScript: host exceptions and parse diagnostics with
source context. Runtime failures inside a program are Error values (see
objects.py), not exceptions.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from pyparsing import col, line, lineno

from lexer import EOF_LITERAL, Lexer


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_parse_error(
    message: str,
    location: int,
    line_num: int,
    column: int,
    got: Optional[str] = None,
    context: Optional[str] = None,
    suggestions: Optional[List[str]] = None,
    filename: str = "<input>",
    source_line: str = ""
) -> Dict:
    """Create an immutable parse error structure"""
    return {
        'message': message,
        'location': location,
        'line': line_num,
        'column': column,
        'got': got,
        'context': context,
        'suggestions': suggestions or [],
        'filename': filename,
        'source_line': source_line,
    }


def format_parse_error(error: Dict) -> str:
    """Format parse error as string"""
    error_msg = f"Parse error in {error['filename']} at line {error['line']}, column {error['column']}:\n"
    error_msg += f"  {error['message']}\n"

    if error['got']:
        error_msg += f"  Got: {error['got']}\n"

    if error['context']:
        error_msg += f"{error['context']}\n"

    if error['suggestions']:
        error_msg += "  Suggestions:\n"
        for suggestion in error['suggestions']:
            error_msg += f"    - {suggestion}\n"

    return error_msg


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 2) -> str:
    """Numbered source lines around line_num with a caret under col_num"""
    lines = source_text.split('\n')
    first = max(0, line_num - context_lines - 1)
    last = min(len(lines), line_num + context_lines)

    parts = []
    for i in range(first, last):
        parts.append(f"{i + 1:4d}: {lines[i]}")
        if i == line_num - 1:
            parts.append(f"{'':6}{' ' * (col_num - 1)}^ Error here")
    return '\n'.join(parts)


def extract_got(source_text: str, location: int) -> str:
    """Text of the token starting at location"""
    token = Lexer(source_text[location:]).next()
    if token.literal == EOF_LITERAL:
        return "end of input"
    return f"'{token.literal}'"


# Message fragment -> hint
SUGGESTIONS: Sequence[Tuple[str, str]] = (
    ("expected rparen", "Check for an unclosed '('"),
    ("expected rbrace", "Check for an unclosed '{'"),
    ("expected rbracket", "Check for an unclosed '['"),
    ("expected lbrace", "Function bodies are either '{ ... }' or '=> expression'"),
    ("expected lparen", "Conditions of if and while go in parentheses"),
    ("expected identifier", "Parameters and property names must be identifiers"),
    ("no prefix parse function for illegal", "Remove the character the lexer does not recognise"),
    ("no prefix parse function for rbrace", "An expression is missing before '}'"),
    ("no prefix parse function for semicolon", "An expression is missing before ';'"),
)


def generate_suggestions(message: str) -> List[str]:
    """Hints for common mistakes, keyed on the diagnostic message"""
    return [hint for fragment, hint in SUGGESTIONS if fragment in message]


def enhance_diagnostic(source_text: str, message: str, location: int, filename: str = "<input>") -> Dict:
    """Turn a (message, offset) diagnostic into a full parse error dict"""
    location = min(max(location, 0), len(source_text))
    line_num = lineno(location, source_text)
    col_num = col(location, source_text)

    return make_parse_error(
        message=message,
        location=location,
        line_num=line_num,
        column=col_num,
        got=extract_got(source_text, location),
        context=get_context_lines(source_text, line_num, col_num),
        suggestions=generate_suggestions(message),
        filename=filename,
        source_line=line(location, source_text),
    )


def format_diagnostics(source_text: str, diagnostics: Sequence[Tuple[str, int]],
                       filename: str = "<input>") -> str:
    """Format every diagnostic of a parse, in order"""
    return "\n".join(
        format_parse_error(enhance_diagnostic(source_text, message, location, filename))
        for message, location in diagnostics
    )


# ============================================================================
# EXCEPTION CLASSES
# ============================================================================

class PJError(Exception):
    """Base class for host-level PJScript exceptions"""


class PJParseError(PJError):
    """Raised by drivers when a parse produced errors"""
    def __init__(self, errors: List[str], report: str = ""):
        self.errors = list(errors)
        self.report = report
        super().__init__(report or "\n".join(self.errors))


class PJInvariantError(PJError):
    """A Return or Error wrapper reached storage; always an evaluator bug"""


class PJErrorHandler:
    """Source-aware front end over the functions above, used by the CLI"""
    def __init__(self, source_text: str, filename: str = "<input>"):
        self.source_text = source_text
        self.filename = filename

    def enhance(self, message: str, location: int) -> Dict:
        return enhance_diagnostic(self.source_text, message, location, self.filename)

    def report(self, diagnostics: Sequence[Tuple[str, int]]) -> str:
        return format_diagnostics(self.source_text, diagnostics, self.filename)

    def raise_for_errors(self, parser) -> None:
        """Raise PJParseError if parser has recorded any errors"""
        diagnostics = parser.diagnostics()
        if diagnostics:
            raise PJParseError([message for message, _ in diagnostics], self.report(diagnostics))
