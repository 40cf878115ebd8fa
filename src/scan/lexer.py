"""
C++ lexer (tokenizer).

Converts raw source text into a stream of tokens without preprocessing.
Handles: identifiers, keywords, numbers, string/char literals (including raw
strings), comments, punctuators and whole-line preprocessor directives.

Malformed regions (unterminated literals or comments, stray characters) do not
stop tokenization: they are recorded as ScanPartialFailure diagnostics and the
lexer resynchronises at the next line.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, List, Optional

from core.errors import ScanPartialFailure
from core.utils import debug


class TokenType(Enum):
    """Types of tokens in C++ source."""

    IDENTIFIER = auto()  # foo, operator, static_assert (keywords included)
    NUMBER = auto()  # 42, 0x1F, 1'000, 1.5f16, 10uz
    STRING = auto()  # "text", u8"text", R"(raw)"
    CHAR = auto()  # 'a', L'x'
    PUNCT = auto()  # ( ) [ ] { } :: -> ... and operators
    DIRECTIVE = auto()  # whole preprocessor line, e.g. #elifdef FOO


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""

    type: TokenType
    value: str
    line: int
    column: int
    offset: int
    end: int

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, L{self.line}:{self.column})"


class LexerError(Exception):
    """Error during lexical analysis."""

    def __init__(self, message: str, line: int, column: int):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"Lexer error at line {line}, column {column}: {message}")


# Longest first; '>>' is deliberately absent so template closers stay separate
PUNCTUATORS = (
    "<=>",
    "<<=",
    "->*",
    "...",
    "::",
    "->",
    "++",
    "--",
    "<<",
    "<=",
    ">=",
    "==",
    "!=",
    "&&",
    "||",
    "+=",
    "-=",
    "*=",
    "/=",
    "%=",
    "&=",
    "|=",
    "^=",
    ".*",
    "##",
)

SINGLE_PUNCT = set("()[]{};:,.<>+-*/%&|^!~=?#")

# Encoding prefixes that may precede a string or character literal
LITERAL_PREFIXES = ("u8R", "uR", "UR", "LR", "R", "u8", "u", "U", "L")


class Lexer:
    """
    Tokenizer for C++ source files.

    Usage:
        lexer = Lexer(source_text)
        tokens = list(lexer.tokenize())
        lexer.diagnostics  # ScanPartialFailure records
    """

    @staticmethod
    def _is_ident_start(ch: str) -> bool:
        """Check if character can start an identifier (letter or underscore)."""
        return ch == "_" or ch.isalpha()

    @staticmethod
    def _is_ident_cont(ch: str) -> bool:
        """Check if character can continue an identifier."""
        return ch == "_" or ch.isalnum()

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1
        self.length = len(source)
        self.diagnostics: List[ScanPartialFailure] = []
        # True until the first non-whitespace character of a line is consumed
        self._line_start = True

    def _current(self) -> Optional[str]:
        """Get current character or None if at end."""
        if self.pos >= self.length:
            return None
        return self.source[self.pos]

    def _peek(self, offset: int = 1) -> Optional[str]:
        """Peek ahead by offset characters."""
        pos = self.pos + offset
        if pos >= self.length:
            return None
        return self.source[pos]

    def _advance(self) -> Optional[str]:
        """Advance one character and return it."""
        ch = self._current()
        if ch is not None:
            self.pos += 1
            if ch == "\n":
                self.line += 1
                self.column = 1
                self._line_start = True
            else:
                self.column += 1
        return ch

    def _advance_n(self, n: int) -> None:
        for _ in range(n):
            self._advance()

    def _startswith(self, text: str) -> bool:
        return self.source.startswith(text, self.pos)

    def _skip_to_next_line(self) -> None:
        """Resynchronise after an error by dropping the rest of the line."""
        while self._current() not in (None, "\n"):
            self._advance()

    def _skip_line_comment(self) -> None:
        while self._current() not in (None, "\n"):
            if self._current() == "\\" and self._peek() == "\n":
                self._advance()
            self._advance()

    def _skip_block_comment(self) -> None:
        start_line, start_col = self.line, self.column
        self._advance_n(2)
        while True:
            ch = self._current()
            if ch is None:
                raise LexerError("Unterminated block comment", start_line, start_col)
            if ch == "*" and self._peek() == "/":
                self._advance_n(2)
                return
            self._advance()

    def _read_directive(self) -> str:
        """Read a preprocessor line, joining backslash continuations and dropping comments."""
        result = []
        while True:
            ch = self._current()
            if ch is None or ch == "\n":
                break
            if ch == "\\" and self._peek() == "\n":
                self._advance_n(2)
                result.append(" ")
                continue
            if ch == "/" and self._peek() == "/":
                self._skip_line_comment()
                break
            if ch == "/" and self._peek() == "*":
                self._skip_block_comment()
                result.append(" ")
                continue
            result.append(ch)
            self._advance()
        return "".join(result).rstrip()

    def _read_quoted(self, quote_char: str) -> str:
        """Read a quoted literal, keeping escapes verbatim."""
        start_line = self.line
        start_col = self.column
        start = self.pos

        self._advance()
        while True:
            ch = self._current()
            if ch is None or ch == "\n":
                kind = "string" if quote_char == '"' else "character"
                raise LexerError(f"Unterminated {kind} literal", start_line, start_col)
            if ch == "\\":
                self._advance()
                if self._current() is not None:
                    self._advance()
                continue
            self._advance()
            if ch == quote_char:
                break

        return self.source[start : self.pos]

    def _read_raw_string(self) -> str:
        """Read R"delim( ... )delim" with the cursor on the opening quote."""
        start_line = self.line
        start_col = self.column
        start = self.pos

        self._advance()
        delim = []
        while self._current() not in (None, "(", "\n") and len(delim) <= 16:
            delim.append(self._current())
            self._advance()
        if self._current() != "(":
            raise LexerError("Malformed raw string delimiter", start_line, start_col)
        self._advance()

        terminator = ")" + "".join(delim) + '"'
        end = self.source.find(terminator, self.pos)
        if end < 0:
            raise LexerError("Unterminated raw string literal", start_line, start_col)
        self._advance_n(end + len(terminator) - self.pos)
        return self.source[start : self.pos]

    def _read_identifier(self) -> str:
        start = self.pos
        while True:
            ch = self._current()
            if ch is not None and self._is_ident_cont(ch):
                self._advance()
            else:
                break
        return self.source[start : self.pos]

    def _read_number(self) -> str:
        """Read a pp-number: digits, letters, digit separators, dots and signed exponents."""
        start = self.pos
        self._advance()
        while True:
            ch = self._current()
            if ch is None:
                break
            if ch in "+-" and self.source[self.pos - 1] in "eEpP":
                # Exponent sign, except after hex digits such as 0xE+1
                text = self.source[start : self.pos].lower()
                if not (text.startswith("0x") and self.source[self.pos - 1] in "eE"):
                    self._advance()
                    continue
                break
            if ch == "'" and self._peek() is not None and self._peek().isalnum():
                self._advance()
                continue
            if ch == "." or self._is_ident_cont(ch):
                self._advance()
                continue
            break
        return self.source[start : self.pos]

    def _literal_prefix(self) -> Optional[str]:
        """Return an encoding prefix if the cursor starts a prefixed literal."""
        for prefix in LITERAL_PREFIXES:
            if self._startswith(prefix):
                nxt = self._peek(len(prefix))
                if nxt == '"' or (nxt == "'" and "R" not in prefix):
                    return prefix
        return None

    def _token(self, ttype: TokenType, value: str, line: int, column: int, offset: int) -> Token:
        return Token(ttype, value, line, column, offset, self.pos)

    def _next_token(self) -> Optional[Token]:
        """Produce the next token, or None at end of input."""
        while True:
            ch = self._current()
            if ch is None:
                return None

            if ch in " \t\r\f\v\n":
                self._advance()
                continue
            if ch == "\\" and self._peek() == "\n":
                self._advance_n(2)
                continue
            if ch == "/" and self._peek() == "/":
                self._skip_line_comment()
                continue
            if ch == "/" and self._peek() == "*":
                self._skip_block_comment()
                continue
            break

        line, column, offset = self.line, self.column, self.pos
        at_line_start = self._line_start
        self._line_start = False

        if ch == "#" and at_line_start:
            return self._token(TokenType.DIRECTIVE, self._read_directive(), line, column, offset)

        prefix = self._literal_prefix()
        if prefix is not None:
            self._advance_n(len(prefix))
            if prefix.endswith("R"):
                body = self._read_raw_string()
                return self._token(TokenType.STRING, prefix + body, line, column, offset)
            quote = self._current()
            body = self._read_quoted(quote)
            ttype = TokenType.STRING if quote == '"' else TokenType.CHAR
            return self._token(ttype, prefix + body, line, column, offset)

        if self._is_ident_start(ch):
            value = self._read_identifier()
            return self._token(TokenType.IDENTIFIER, value, line, column, offset)

        if ch.isdigit() or (ch == "." and self._peek() is not None and self._peek().isdigit()):
            value = self._read_number()
            return self._token(TokenType.NUMBER, value, line, column, offset)

        if ch == '"':
            return self._token(TokenType.STRING, self._read_quoted('"'), line, column, offset)
        if ch == "'":
            return self._token(TokenType.CHAR, self._read_quoted("'"), line, column, offset)

        for punct in PUNCTUATORS:
            if self._startswith(punct):
                self._advance_n(len(punct))
                return self._token(TokenType.PUNCT, punct, line, column, offset)

        if ch in SINGLE_PUNCT:
            self._advance()
            return self._token(TokenType.PUNCT, ch, line, column, offset)

        self._advance()
        raise LexerError(f"Unexpected character {ch!r}", line, column)

    def tokenize(self) -> Iterator[Token]:
        """Yield tokens; lexical errors are recorded in self.diagnostics."""
        while True:
            try:
                token = self._next_token()
            except LexerError as e:
                debug(f"Lexer[{self.filename}]: {e}")
                self.diagnostics.append(ScanPartialFailure(e.line, e.column, e.message))
                self._skip_to_next_line()
                continue
            if token is None:
                return
            yield token


def tokenize(source: str, filename: str = "<input>") -> List[Token]:
    """Convenience: tokenize source into a list, discarding diagnostics."""
    return list(Lexer(source, filename).tokenize())
