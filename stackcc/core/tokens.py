from enum import Enum
from dataclasses import dataclass
from typing import Optional

class TokenType(Enum):
    # Literals and names
    IDENTIFIER = "IDENTIFIER"
    NUMBER = "NUMBER"

    # Keywords
    INT = "int"
    RETURN = "return"
    IF = "if"
    ELSE = "else"
    WHILE = "while"
    FOR = "for"
    SIZEOF = "sizeof"

    # Operators
    EQUALS = "=="
    NOT_EQUALS = "!="
    LESS_EQUAL = "<="
    GREATER_EQUAL = ">="
    LESS_THAN = "<"
    GREATER_THAN = ">"
    ASSIGN = "="
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"
    PERCENT = "%"
    AMPERSAND = "&"

    # Punctuation
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    LEFT_BRACE = "{"
    RIGHT_BRACE = "}"
    LEFT_BRACKET = "["
    RIGHT_BRACKET = "]"
    SEMICOLON = ";"
    COMMA = ","

    EOF = "EOF"


KEYWORDS = {
    tt.value: tt
    for tt in (
        TokenType.INT, TokenType.RETURN, TokenType.IF, TokenType.ELSE,
        TokenType.WHILE, TokenType.FOR, TokenType.SIZEOF,
    )
}

# Longest first so "<=" wins over "<"
PUNCTUATORS = [
    ('==', TokenType.EQUALS), ('!=', TokenType.NOT_EQUALS),
    ('<=', TokenType.LESS_EQUAL), ('>=', TokenType.GREATER_EQUAL),
    ('<', TokenType.LESS_THAN), ('>', TokenType.GREATER_THAN),
    ('=', TokenType.ASSIGN), ('+', TokenType.PLUS), ('-', TokenType.MINUS),
    ('*', TokenType.STAR), ('/', TokenType.SLASH), ('%', TokenType.PERCENT),
    ('&', TokenType.AMPERSAND),
    ('(', TokenType.LEFT_PAREN), (')', TokenType.RIGHT_PAREN),
    ('{', TokenType.LEFT_BRACE), ('}', TokenType.RIGHT_BRACE),
    ('[', TokenType.LEFT_BRACKET), (']', TokenType.RIGHT_BRACKET),
    (';', TokenType.SEMICOLON), (',', TokenType.COMMA),
]


@dataclass
class SourceLocation:
    line: int
    column: int
    file: str = "<stdin>"
    raw_line: str = ""
    offset: int = 0

    def __str__(self):
        return f"{self.file}:{self.line}:{self.column}"

    def caret_padding(self) -> str:
        """Whitespace that lines a caret up under `column` in `raw_line`"""
        prefix = self.raw_line[:self.column - 1]
        padding = ''.join(c if c == '\t' else ' ' for c in prefix)
        return padding + ' ' * (self.column - 1 - len(prefix))


@dataclass
class Token:
    type: TokenType
    value: str
    location: SourceLocation
    number: Optional[int] = None

    def __str__(self):
        return f"{self.type.name}('{self.value}') @ {self.location}"
