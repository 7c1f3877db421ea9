"""
Error handling for the Astro interpreter
Error taxonomy, diagnostic formatting and enhanced pyparsing failures
"""

from enum import Enum
from typing import List, Optional
from pyparsing import ParseBaseException
import re


class ErrorKind(Enum):
    """Closed set of failure kinds an Astro run can end with"""
    SYNTAX = "SyntaxError"
    UNDEFINED_SYMBOL = "UndefinedSymbol"
    TYPE_MISMATCH = "TypeMismatch"
    NOT_WRITABLE = "NotWritable"
    ARITY_MISMATCH = "ArityMismatch"


# ============================================================================
# EXCEPTION CLASSES
# ============================================================================

class AstroError(Exception):
    """Base class for every Astro failure, carrying an optional source span"""
    kind: Optional[ErrorKind] = None

    def __init__(self, message: str, span=None):
        self.message = message
        self.span = span
        super().__init__(message)

    @property
    def line(self) -> int:
        return self.span.start_line if self.span else 0

    @property
    def column(self) -> int:
        return self.span.start_col if self.span else 0

    def __str__(self) -> str:
        return format_diagnostic(self)


class AstroSyntaxError(AstroError):
    """Source text does not match the Astro grammar"""
    kind = ErrorKind.SYNTAX

    def __init__(self, message: str, line: int = 0, column: int = 0,
                 expected: Optional[List[str]] = None, got: Optional[str] = None,
                 context: Optional[str] = None, suggestions: Optional[List[str]] = None,
                 filename: str = "<input>"):
        super().__init__(message)
        self._line = line
        self._column = column
        self.filename = filename
        self.expected = expected or []
        self.got = got
        self.context = context
        self.suggestions = suggestions or []

    @property
    def line(self) -> int:
        return self._line

    @property
    def column(self) -> int:
        return self._column

    def details(self) -> str:
        """Multi-line report with context and suggestions"""
        report = [format_diagnostic(self)]
        if self.expected:
            report.append(f"  Expected: {', '.join(self.expected)}")
        if self.got:
            report.append(f"  Got: {self.got}")
        if self.context:
            report.append(self.context)
        if self.suggestions:
            report.append("  Suggestions:")
            report.extend(f"    - {hint}" for hint in self.suggestions)
        return "\n".join(report) + "\n"


class AstroRuntimeError(AstroError):
    """A check performed during evaluation failed"""


class UndefinedSymbolError(AstroRuntimeError):
    """Identifier not present in the symbol table"""
    kind = ErrorKind.UNDEFINED_SYMBOL


class TypeMismatchError(AstroRuntimeError):
    """Identifier used where a different binding kind is required"""
    kind = ErrorKind.TYPE_MISMATCH


class NotWritableError(AstroRuntimeError):
    """Assignment to an immutable number binding"""
    kind = ErrorKind.NOT_WRITABLE


class ArityMismatchError(AstroRuntimeError):
    """Argument count differs from the callable's parameter count"""
    kind = ErrorKind.ARITY_MISMATCH


# ============================================================================
# FORMATTING
# ============================================================================

def format_diagnostic(error: AstroError) -> str:
    """Render an error as `<line>:<column>: <message>`"""
    if error.line:
        return f"{error.line}:{error.column}: {error.message}"
    return error.message


# ============================================================================
# SOURCE CONTEXT
# ============================================================================

def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 0) -> str:
    """Get the offending line (plus neighbours) with a caret under the column"""
    lines = source_text.split('\n')
    if not 1 <= line_num <= len(lines):
        return ""
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i+1:4d} | "
        context_parts.append(f"{line_prefix}{lines[i]}")
        if i == line_num - 1:
            context_parts.append(f"{'':7}{' ' * (col_num - 1)}^")

    return '\n'.join(context_parts)


def extract_expected(exc: ParseBaseException) -> List[str]:
    """Extract expected tokens from exception"""
    match = re.search(r"Expected\s+(.+?)(?:,\s+found|\s+\(at|$)", exc.msg)
    if match:
        return [match.group(1)]
    return ["valid syntax"]


def extract_got(source_text: str, line_num: int, col_num: int) -> str:
    """Extract what was actually found at the error location"""
    lines = source_text.split('\n')

    if line_num <= len(lines):
        error_line = lines[line_num - 1]
        if col_num <= len(error_line):
            got_text = error_line[col_num - 1:col_num + 9].strip()
            if got_text:
                return f"'{got_text}'"
        return "end of line"
    return "end of input"


def generate_suggestions(expected: List[str], got: str) -> List[str]:
    """Generate helpful suggestions based on the error"""
    suggestions = []
    expected_text = ' '.join(expected)

    if "';'" in expected_text:
        suggestions.append("Every statement must end with ';'")

    if "')'" in expected_text:
        suggestions.append("Check that every '(' has a matching ')'")

    if got.startswith("'print") and "=" in got:
        suggestions.append("'print' is a keyword and cannot be assigned to")

    if got.startswith("'#"):
        suggestions.append("Comments start with '//'")

    return suggestions


def enhance_parse_exception(exc: ParseBaseException, source_text: str,
                            filename: str = "<input>") -> AstroSyntaxError:
    """Convert a pyparsing exception (including fatal ones) into an AstroSyntaxError"""
    line_num = exc.lineno
    col_num = exc.col
    expected = extract_expected(exc)
    got = extract_got(source_text, line_num, col_num)

    return AstroSyntaxError(
        message=exc.msg,
        line=line_num,
        column=col_num,
        expected=expected,
        got=got,
        context=get_context_lines(source_text, line_num, col_num),
        suggestions=generate_suggestions(expected, got),
        filename=filename
    )


def nesting_error(line: int = 1, column: int = 1, filename: str = "<input>") -> AstroSyntaxError:
    """Source nests deeper than the Python stack allows"""
    return AstroSyntaxError(
        message="expression nested too deeply",
        line=line,
        column=column,
        suggestions=["Split the expression across several assignments"],
        filename=filename
    )
