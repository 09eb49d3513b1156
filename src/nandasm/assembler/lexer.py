"""
NAND Assembly Language Lexer
============================

This module implements the lexer (tokenizer) for NAND-style assembly. It
converts source text into a lazy stream of tokens, each carrying the Span
of UTF-8 bytes it came from.

Token Types
-----------
- IDENTIFIER: Mnemonics, label names and label references
- NUMBER: Decimal, hex (0xFF), binary (0b1010), octal (0o17), optional '-'
- HASH: '#' immediate operand prefix
- PLUS: '+' indirect operand prefix
- COLON: ':' label definition suffix
- COMMENT: '; text' or '// text' to end of line
- NEWLINE: End of line (\\n, \\r\\n or \\r)
- ERROR: A malformed lexeme; carries the LexError
- EOF: End of input

Number Formats
--------------
| Format      | Prefix | Example | Value |
|-------------|--------|---------|-------|
| Decimal     | (none) | 123     | 123   |
| Hexadecimal | 0x     | 0x7F    | 127   |
| Binary      | 0b     | 0b1010  | 10    |
| Octal       | 0o     | 0o177   | 127   |
| Negative    | -      | -0x01   | -1    |

Error Recovery
--------------
The lexer never stops at a bad character. It emits an ERROR token with the
offending span and resumes at the next whitespace or newline, so the parser
can go on to report later, independent problems.

Example
-------
>>> from nandasm.assembler.lexer import Lexer
>>> for token in Lexer("loop: ; spin").tokenize():
...     print(token)
Token(IDENTIFIER, 'loop', 0..4)
Token(COLON, ':', 4..5)
Token(COMMENT, 'spin', 6..12)
Token(EOF, 12..12)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional
import string

from nandasm.errors import LexError, Span, byte_offsets


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """
    Token types for NAND assembly.

    Each token type represents a category of lexical element that can
    appear in assembly source code.
    """

    # Structural tokens
    NEWLINE = auto()     # End of line (significant for statement boundaries)
    EOF = auto()         # End of input

    # Values
    IDENTIFIER = auto()  # Mnemonics, labels
    NUMBER = auto()      # Numeric literals (all formats)

    # Delimiters
    HASH = auto()        # # (immediate operand prefix)
    PLUS = auto()        # + (indirect operand prefix)
    COLON = auto()       # : (label definition)

    # Trivia
    COMMENT = auto()     # ; or // to end of line

    # Lexing failure (value is the LexError)
    ERROR = auto()

    def describe(self) -> str:
        """Human-readable description used in diagnostics."""
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    TokenType.NEWLINE: "a newline",
    TokenType.EOF: "end of input",
    TokenType.IDENTIFIER: "an identifier",
    TokenType.NUMBER: "a number",
    TokenType.HASH: "'#'",
    TokenType.PLUS: "'+'",
    TokenType.COLON: "':'",
    TokenType.COMMENT: "a comment",
    TokenType.ERROR: "an invalid token",
}


_DIGIT_FORMATS = {2: "b", 8: "o", 10: "d", 16: "X"}


# =============================================================================
# Token Data Classes
# =============================================================================

@dataclass(frozen=True)
class NumberLiteral:
    """
    The value of a NUMBER token.

    Attributes:
        value: The signed integer value
        radix: 2, 8, 10 or 16
        negative: True if written with a leading '-'
        digits: The digits as written, without sign or radix prefix
    """
    value: int
    radix: int = 10
    negative: bool = False
    digits: str = ""

    def render(self) -> str:
        """
        Canonical spelling: lowercase prefix, uppercase hex digits.

        Leading zeros as written are kept, so 0x01 stays 0x01.
        """
        digits = self.digits or format(abs(self.value), _DIGIT_FORMATS[self.radix])
        if self.radix == 16:
            body = f"0x{digits.upper()}"
        elif self.radix == 2:
            body = f"0b{digits}"
        elif self.radix == 8:
            body = f"0o{digits}"
        else:
            body = digits
        return f"-{body}" if self.negative else body


@dataclass(frozen=True)
class Token:
    """
    Represents a single token from the source code.

    Attributes:
        type: The TokenType classification
        text: The exact source text of the token
        span: Where the token is in the source
        value: NumberLiteral for numbers, comment body for comments,
               LexError for error tokens, otherwise None
    """
    type: TokenType
    text: str
    span: Span
    value: object = None

    def __repr__(self) -> str:
        if self.type == TokenType.COMMENT:
            return f"Token({self.type.name}, {self.value!r}, {self.span})"
        if self.text and self.type not in (TokenType.NEWLINE, TokenType.EOF):
            return f"Token({self.type.name}, {self.text!r}, {self.span})"
        return f"Token({self.type.name}, {self.span})"

    def describe(self) -> str:
        """Describe this token for an 'expected ..., but found ...' message."""
        if self.type in (TokenType.IDENTIFIER, TokenType.NUMBER):
            return f"{self.type.describe()} '{self.text}'"
        return self.type.describe()


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes NAND assembly source code.

    tokenize() is a generator; every call starts from the beginning of the
    source, so the token stream can be restarted at will.

    Usage:
        lexer = Lexer(source_text, filename)
        tokens = list(lexer.tokenize())

    Attributes:
        source: The source code being tokenized
        filename: Name of the source file (for error reporting)
    """

    # Characters that can start an identifier
    IDENT_START = string.ascii_letters + "_"

    # Characters that can continue an identifier
    IDENT_CHARS = string.ascii_letters + string.digits + "_"

    # Single-character tokens
    SINGLE_CHAR_TOKENS = {
        "#": TokenType.HASH,
        "+": TokenType.PLUS,
        ":": TokenType.COLON,
    }

    # Radix prefixes after a leading 0
    RADIX_PREFIXES = {
        "x": (16, string.hexdigits),
        "b": (2, "01"),
        "o": (8, "01234567"),
    }

    # Characters that end a lexeme (used for error resynchronization)
    BOUNDARY = " \t\n\r"

    # Longest accepted digit string; stays below the interpreter's minimum
    # int conversion limit (640 digits) so int() can never refuse a literal
    MAX_NUMBER_DIGITS = 512

    def __init__(self, source: str, filename: str = "<input>"):
        """
        Initialize the lexer with source code.

        Args:
            source: The assembly source code to tokenize
            filename: Name of the source file (for error messages)
        """
        self.source = source
        self.filename = filename
        self._pos = 0
        # Byte offset of every character index, plus one for end of source
        self._offsets = byte_offsets(source)

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the source code.

        Yields:
            Token objects, ending with exactly one EOF token. Malformed
            input yields ERROR tokens instead of raising.
        """
        self._pos = 0

        while not self._at_end():
            # Skip whitespace (but not newlines)
            if self._skip_whitespace():
                continue

            yield self._scan_token()

        yield Token(TokenType.EOF, "", self._span(self._pos))

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        """Check if we've reached the end of source."""
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """
        Look at character at current position + offset without advancing.

        Returns empty string if past end of source.
        """
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """Consume and return the current character."""
        if self._at_end():
            return ""
        char = self.source[self._pos]
        self._pos += 1
        return char

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _span(self, start: int) -> Span:
        """Byte span of source[start:current position]."""
        return Span(self._offsets[start], self._offsets[self._pos])

    def _make_token(self, token_type: TokenType, start: int, value: object = None) -> Token:
        """Create a token covering source[start:current position]."""
        return Token(token_type, self.source[start:self._pos], self._span(start), value)

    def _error(self, message: str, start: int) -> Token:
        """
        Create an ERROR token, resynchronizing at the next boundary.

        The error span covers everything from `start` up to the next
        whitespace or newline.
        """
        while self._peek() and self._peek() not in self.BOUNDARY:
            self._advance()
        span = self._span(start)
        text = self.source[start:self._pos]
        return Token(TokenType.ERROR, text, span, LexError(message, span, text))

    # =========================================================================
    # Whitespace Handling
    # =========================================================================

    def _skip_whitespace(self) -> bool:
        """
        Skip whitespace characters (space, tab) but not newlines.

        Returns:
            True if any whitespace was skipped
        """
        skipped = False
        # Note: Must check for non-empty string first because '' in ' \t' is True in Python
        while self._peek() and self._peek() in " \t":
            self._advance()
            skipped = True
        return skipped

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        """Scan the next token from source."""
        start = self._pos
        char = self._peek()

        # Newlines - significant for statement boundaries
        if char == "\n":
            self._advance()
            return self._make_token(TokenType.NEWLINE, start)

        if char == "\r":
            self._advance()
            if self._peek() == "\n":
                self._advance()
            return self._make_token(TokenType.NEWLINE, start)

        # Comments
        if char == ";":
            return self._scan_comment(start, 1)

        if char == "/":
            if self._peek(1) == "/":
                return self._scan_comment(start, 2)
            self._advance()
            return self._error("expected '//' to start a comment", start)

        # Identifiers (mnemonics and labels)
        if char in self.IDENT_START:
            return self._scan_identifier(start)

        # Numbers
        if char.isdigit():
            return self._scan_number(start, negative=False)

        # Negative numbers
        if char == "-":
            self._advance()
            if self._peek().isdigit():
                return self._scan_number(start, negative=True)
            return self._error("expected a number after '-'", start)

        # Single-character tokens
        if char in self.SINGLE_CHAR_TOKENS:
            self._advance()
            return self._make_token(self.SINGLE_CHAR_TOKENS[char], start)

        # Unknown character
        self._advance()
        return self._error(f"unexpected character '{char}'", start)

    def _scan_comment(self, start: int, marker_length: int) -> Token:
        """Scan a comment to end of line; the value is the stripped body."""
        while not self._at_end() and self._peek() not in "\r\n":
            self._advance()
        body = self.source[start + marker_length:self._pos].strip()
        return self._make_token(TokenType.COMMENT, start, body)

    def _scan_identifier(self, start: int) -> Token:
        """
        Scan an identifier (mnemonic or label).

        Identifiers start with a letter or underscore and can contain
        letters, digits, and underscores.
        """
        # Note: Must check for non-empty string first because '' in 'string' is True in Python
        while self._peek() and self._peek() in self.IDENT_CHARS:
            self._advance()
        return self._make_token(TokenType.IDENTIFIER, start)

    def _scan_number(self, start: int, negative: bool) -> Token:
        """
        Scan a numeric literal.

        Handles decimal and the 0x, 0b and 0o prefixes (either case). A
        literal running straight into letters or other digits (12ab, 0xFG,
        0b102) is malformed.
        """
        radix = 10
        digits = string.digits

        if self._peek() == "0":
            prefix = self._peek(1).lower()
            if prefix in self.RADIX_PREFIXES:
                radix, digits = self.RADIX_PREFIXES[prefix]
                self._advance()  # consume 0
                self._advance()  # consume radix letter

        digit_start = self._pos
        # Note: Must check for non-empty string first because '' in string.hexdigits is True
        while self._peek() and self._peek() in digits:
            self._advance()
        body = self.source[digit_start:self._pos]

        if not body:
            return self._error(f"expected digits after '{self.source[start:self._pos]}'", start)

        if self._peek() and self._peek() in self.IDENT_CHARS:
            return self._error(f"malformed number '{self._rest_of_lexeme(start)}'", start)

        if len(body) > self.MAX_NUMBER_DIGITS:
            return self._error(f"number with {len(body)} digits is too large", start)

        value = int(body, radix)
        if negative:
            value = -value
        return self._make_token(TokenType.NUMBER, start, NumberLiteral(value, radix, negative, body))

    def _rest_of_lexeme(self, start: int) -> str:
        """Text from start up to the next boundary, without consuming it."""
        end = self._pos
        while end < len(self.source) and self.source[end] not in self.BOUNDARY:
            end += 1
        return self.source[start:end]


def tokenize(source: str, filename: str = "<input>") -> Iterator[Token]:
    """Convenience wrapper: tokenize a source string."""
    return Lexer(source, filename).tokenize()
