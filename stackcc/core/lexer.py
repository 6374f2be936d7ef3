from typing import List, Tuple

from .diagnostics import LexerError
from .tokens import KEYWORDS, PUNCTUATORS, SourceLocation, Token, TokenType

DIGITS = "0123456789"


def _is_ident_start(c: str) -> bool:
    return c.isascii() and (c.isalpha() or c == '_')


def _is_ident_char(c: str) -> bool:
    return c.isascii() and (c.isalnum() or c == '_')


class Lexer:
    """Turns source text into a token list terminated by a single EOF token."""

    def __init__(self, source: str, filename: str = "<stdin>"):
        self.source = source
        self.filename = filename
        self.lines = source.split('\n')
        self.pos = 0
        self.current_line = 1
        self.current_column = 1

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        src = self.source

        while self.pos < len(src):
            c = src[self.pos]

            if c == '\n':
                self._advance(1)
                continue

            if c.isspace():
                self._advance(1)
                continue

            # Comments
            if src.startswith('//', self.pos):
                while self.pos < len(src) and src[self.pos] != '\n':
                    self._advance(1)
                continue

            if src.startswith('/*', self.pos):
                end = src.find('*/', self.pos + 2)
                if end == -1:
                    raise LexerError("unclosed block comment", self._location())
                self._advance(end + 2 - self.pos)
                continue

            if c in DIGITS:
                location = self._location()
                text, value = self._extract_number()
                tokens.append(Token(TokenType.NUMBER, text, location, number=value))
                continue

            if _is_ident_start(c):
                location = self._location()
                identifier = self._extract_identifier()
                token_type = KEYWORDS.get(identifier, TokenType.IDENTIFIER)
                tokens.append(Token(token_type, identifier, location))
                continue

            matched = False
            for op_text, op_type in PUNCTUATORS:
                if src.startswith(op_text, self.pos):
                    tokens.append(Token(op_type, op_text, self._location()))
                    self._advance(len(op_text))
                    matched = True
                    break

            if matched:
                continue

            raise LexerError("invalid token", self._location())

        tokens.append(Token(TokenType.EOF, '', self._location()))
        return tokens

    def _advance(self, count: int):
        for _ in range(count):
            if self.source[self.pos] == '\n':
                self.current_line += 1
                self.current_column = 1
            else:
                self.current_column += 1
            self.pos += 1

    def _location(self) -> SourceLocation:
        raw_line = self.lines[self.current_line - 1] if self.current_line <= len(self.lines) else ""
        return SourceLocation(
            line=self.current_line,
            column=self.current_column,
            file=self.filename,
            raw_line=raw_line,
            offset=self.pos,
        )

    def _extract_number(self) -> Tuple[str, int]:
        """Decimal or 0x-prefixed hexadecimal integer literal"""
        src = self.source
        start = self.pos

        if src.startswith(('0x', '0X'), start):
            i = start + 2
            while i < len(src) and src[i] in '0123456789abcdefABCDEF':
                i += 1
            text = src[start:i]
            if i == start + 2:
                raise LexerError("invalid hexadecimal literal", self._location())
            self._advance(i - start)
            return text, int(text, 16)

        i = start
        while i < len(src) and src[i] in DIGITS:
            i += 1
        text = src[start:i]
        self._advance(i - start)
        return text, int(text, 10)

    def _extract_identifier(self) -> str:
        src = self.source
        start = self.pos
        i = start
        while i < len(src) and _is_ident_char(src[i]):
            i += 1
        self._advance(i - start)
        return src[start:i]


def tokenize(source: str, filename: str = "<stdin>") -> List[Token]:
    return Lexer(source, filename).tokenize()
