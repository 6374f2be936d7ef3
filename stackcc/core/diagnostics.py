from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional

from .tokens import SourceLocation


class DiagnosticLevel(Enum):
    ERROR = "error"
    NOTE = "note"


@dataclass
class Diagnostic:
    level: DiagnosticLevel
    message: str
    location: Optional[SourceLocation] = None
    notes: List[str] = field(default_factory=list)

    def format(self, with_colors: bool = False) -> str:
        colors = {
            DiagnosticLevel.ERROR: "\033[91m",
            DiagnosticLevel.NOTE: "\033[96m",
        }
        reset = "\033[0m"

        if not with_colors:
            colors = {k: "" for k in colors}
            reset = ""

        color = colors[self.level]
        result = f"{color}{self.level.value}: {self.message}{reset}"

        if self.location:
            result = f"{self.location}: {result}"
            if self.location.raw_line:
                result += f"\n  {self.location.raw_line}"
                result += f"\n  {self.location.caret_padding()}^"

        for note in self.notes:
            result += f"\n{colors[DiagnosticLevel.NOTE]}note: {note}{reset}"

        return result


class CompileError(Exception):
    """Base class for every fatal compilation error.

    Compilation stops at the first error; callers must treat a raised
    CompileError as "no valid output produced".
    """

    kind = "error"

    def __init__(self, message: str, location: Optional[SourceLocation] = None,
                 notes: Optional[List[str]] = None):
        self.message = message
        self.location = location
        self.notes = list(notes or [])
        self.diagnostic = Diagnostic(DiagnosticLevel.ERROR, message, location, self.notes)
        super().__init__(self._format_error())

    def _format_error(self) -> str:
        if self.location is not None:
            return f"{self.location}: {self.message}"
        return self.message

    def render(self, with_colors: bool = False) -> str:
        """Source line, caret under the offending column, and the message."""
        return self.diagnostic.format(with_colors)


class LexerError(CompileError):
    kind = "lexical error"


class ParseError(CompileError):
    """Missing token or construct, undeclared name, bad call arity."""

    kind = "syntax error"


class TypeCheckError(CompileError):
    """Invalid operand combination, dereference of a non-pointer, non-lvalue."""

    kind = "type error"
