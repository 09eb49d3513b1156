"""
nandasm Error Hierarchy
=======================

This module defines the exception hierarchy for the assembler. Every
user-facing problem is an AssemblerError carrying a Span into the source
text, so that a caller (terminal, editor, UI) can point at the exact
bytes that caused it.

Exception Hierarchy
-------------------
NandAsmError (base)
├── AssemblerError (user-facing diagnostics)
│   ├── LexError - malformed literal or unrecognized character
│   ├── OpcodeDoesNotExist - mnemonic not in the instruction set
│   ├── Unexpected - grammar mismatch inside a line
│   ├── DuplicateLabel - label defined twice
│   ├── UnknownLabel - reference to an undefined label
│   ├── ValueOutOfRange - operand does not fit in a byte
│   ├── ConfigError - invalid instruction-set configuration
│   └── TooManyErrors - collection limit reached
├── AssemblyFailed - raised by assemble()/format() with all diagnostics
└── InternalConsistencyError - engine defect, never a user input error

Error messages follow this format when rendered against the source:
    filename:line:column: error: description
        source_line_text
        ^^^^^ (underline of the span)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Iterable, Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class NandAsmError(Exception):
    """
    Base exception for all nandasm errors.

    Callers can catch every error raised by the package with a single
    except clause:

        try:
            binary = assemble(source, config)
        except NandAsmError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Positions
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A human-oriented position in source code.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


@dataclass(frozen=True)
class Span:
    """
    Half-open UTF-8 byte range [start, end) into the original source.

    Spans are attached to every token, statement, operand and diagnostic.
    They are only used for reporting. Byte offsets are what editors and
    other UIs consume; text(), locate() and render() map them back onto
    the source string, and columns in a SourceLocation count characters.
    """
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid span [{self.start}, {self.end})")

    def __len__(self) -> int:
        return self.end - self.start

    def __str__(self) -> str:
        return f"{self.start}..{self.end}"

    def join(self, other: "Span") -> "Span":
        """Return the smallest span covering both spans."""
        return Span(min(self.start, other.start), max(self.end, other.end))

    def text(self, source: str) -> str:
        """Return the slice of source covered by this span."""
        return source[char_offset(source, self.start):char_offset(source, self.end)]

    def locate(self, source: str, filename: str = "<input>") -> SourceLocation:
        """Convert the start offset into a line/column location."""
        offset = char_offset(source, self.start)
        line = 1
        line_start = 0
        index = 0
        while index < offset:
            char = source[index]
            if char == "\n" or (char == "\r" and source[index + 1:index + 2] != "\n"):
                line += 1
                line_start = index + 1
            index += 1
        return SourceLocation(filename, line, offset - line_start + 1)


def _utf8_width(char: str) -> int:
    """Number of UTF-8 bytes used by one character."""
    code = ord(char)
    if code < 0x80:
        return 1
    if code < 0x800:
        return 2
    if code < 0x10000:
        return 3
    return 4


def byte_offsets(source: str) -> list[int]:
    """
    Map every character index of source to its UTF-8 byte offset.

    The returned list has len(source) + 1 entries; the last one is the
    byte length of the whole source.
    """
    offsets = [0]
    total = 0
    for char in source:
        total += _utf8_width(char)
        offsets.append(total)
    return offsets


def char_offset(source: str, offset: int) -> int:
    """
    Convert a UTF-8 byte offset into a character index of source.

    Offsets past the end clamp to len(source); an offset inside a
    multi-byte character maps to the start of that character.
    """
    if source.isascii():
        return min(offset, len(source))
    total = 0
    for index, char in enumerate(source):
        total += _utf8_width(char)
        if total > offset:
            return index
    return len(source)


def _line_bounds(source: str, offset: int) -> tuple[int, int]:
    """Return the [start, end) offsets of the line containing offset."""
    start = max(source.rfind("\n", 0, offset), source.rfind("\r", 0, offset)) + 1
    end = len(source)
    for terminator in ("\n", "\r"):
        pos = source.find(terminator, offset)
        if pos != -1:
            end = min(end, pos)
    return start, end


# =============================================================================
# Assembler Diagnostics
# =============================================================================

class AssemblerError(NandAsmError):
    """
    Base class for all user-facing assembler diagnostics.

    Attributes:
        message: The error description
        span: Where in the source the error occurred (None for config errors)
        hint: A suggestion for fixing the error (optional)
        code: Stable identifier of the diagnostic kind
    """

    code = "nandasm::error"

    def __init__(
        self,
        message: str,
        span: Optional[Span] = None,
        hint: Optional[str] = None,
    ):
        self.message = message
        self.span = span
        self.hint = hint
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.span is not None:
            return f"{self.message} (at {self.span})"
        return self.message

    @property
    def spans(self) -> tuple[Span, ...]:
        """All spans this diagnostic refers to, primary span first."""
        return (self.span,) if self.span is not None else ()

    def render(self, source: str, filename: str = "<input>") -> str:
        """
        Format the error with location, source context, and hint.

        Example output:
            prog.asm:3:5: error: label 'LOPP' does not exist
                jmp LOPP
                    ^^^^
            hint: labels need to be defined to be used
        """
        parts = []

        if self.span is None:
            parts.append(f"{filename}: error: {self.message}")
        else:
            location = self.span.locate(source, filename)
            parts.append(f"{location}: error: {self.message}")

            start = char_offset(source, self.span.start)
            end = char_offset(source, self.span.end)
            line_start, line_end = _line_bounds(source, start)
            source_line = source[line_start:line_end]
            parts.append(f"    {source_line}")

            width = max(1, min(end, line_end) - start)
            padding = " " * (4 + start - line_start)
            parts.append(f"{padding}{'^' * width}")

        hint = self._render_hint(source, filename)
        if hint:
            parts.append(f"hint: {hint}")

        return "\n".join(parts)

    def _render_hint(self, source: str, filename: str) -> Optional[str]:
        return self.hint


class LexError(AssemblerError):
    """
    Malformed numeric literal or unrecognized character.

    Examples:
        - 0x with no digits
        - 12ab (digits running into letters)
        - a lone '-' or '/'
        - $ or any other character outside the grammar
    """

    code = "nandasm::lexing"

    def __init__(self, message: str, span: Span, text: str = ""):
        self.text = text
        super().__init__(message, span)


class OpcodeDoesNotExist(AssemblerError):
    """A mnemonic that the instruction set does not define."""

    code = "nandasm::opcode_dne"

    def __init__(self, mnemonic: str, span: Span, similar: Optional[list[str]] = None):
        self.mnemonic = mnemonic
        self.similar = similar or []

        hint = "try using a different opcode"
        if self.similar:
            suggestions = ", ".join(f"'{s}'" for s in self.similar[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(f"opcode '{mnemonic}' does not exist", span, hint)


def _edit_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    distances = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        new_distances = [i + 1]
        for j, c2 in enumerate(s2):
            if c1 == c2:
                new_distances.append(distances[j])
            else:
                new_distances.append(1 + min(distances[j], distances[j + 1], new_distances[-1]))
        distances = new_distances
    return distances[-1]


def find_similar(name: str, candidates: Iterable[str]) -> list[str]:
    """
    Find names similar to `name` for "did you mean" hints.

    Matches case-only differences and small typos (edit distance <= 2 with
    lengths differing by at most one). Returns at most 3 suggestions.
    """
    name_lower = name.lower()
    similar = []

    for candidate in candidates:
        if candidate == name:
            continue
        candidate_lower = candidate.lower()
        if (
            candidate_lower == name_lower or
            abs(len(candidate) - len(name)) <= 1 and
            _edit_distance(name_lower, candidate_lower) <= 2
        ):
            similar.append(candidate)

    return similar[:3]


def join_expected(items: Iterable[str]) -> str:
    """
    Join descriptions into a readable list: "a", "a or b", "a, b or c".

    An empty list reads as "nothing".
    """
    items = list(items)
    if not items:
        return "nothing"
    if len(items) == 1:
        return items[0]
    return ", ".join(items[:-1]) + " or " + items[-1]


class Unexpected(AssemblerError):
    """
    The next token does not fit the grammar at this point.

    Attributes:
        expected: Descriptions of the token kinds that would have been valid
        found: Description of the token that was actually found
    """

    code = "nandasm::unexpected"

    def __init__(self, expected: Iterable[str], found: str, span: Span):
        self.expected = tuple(expected)
        self.found = found
        super().__init__(
            f"expected {join_expected(self.expected)}, but found {found}",
            span,
        )


class DuplicateLabel(AssemblerError):
    """A label defined more than once."""

    code = "nandasm::duplicate_label"

    def __init__(self, name: str, first_span: Span, second_span: Span):
        self.name = name
        self.first_span = first_span
        self.second_span = second_span
        super().__init__(
            f"label '{name}' is already defined",
            second_span,
            hint=f"'{name}' was first defined at {first_span}",
        )

    @property
    def spans(self) -> tuple[Span, ...]:
        return (self.second_span, self.first_span)

    def _render_hint(self, source: str, filename: str) -> Optional[str]:
        first = self.first_span.locate(source, filename)
        return f"'{self.name}' was first defined at {first}"


class UnknownLabel(AssemblerError):
    """A label reference with no matching definition."""

    code = "nandasm::label_dne"

    def __init__(self, name: str, span: Span, similar: Optional[list[str]] = None):
        self.name = name
        self.similar = similar or []

        hint = "labels need to be defined to be used"
        if self.similar:
            suggestions = ", ".join(f"'{s}'" for s in self.similar[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(f"label '{name}' does not exist", span, hint)


class ValueOutOfRange(AssemblerError):
    """An operand value that does not fit in its single byte."""

    code = "nandasm::out_of_range"

    def __init__(self, value: int, span: Span, minimum: int, maximum: int):
        self.value = value
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            f"value {value} is out of range",
            span,
            hint=f"this operand must be between {minimum} and {maximum}",
        )


class ConfigError(AssemblerError):
    """
    Invalid instruction-set configuration.

    Raised when building the instruction set, before any source is read:
    duplicate or blank mnemonics, encodings that are not a byte, or an
    operand shape that cannot be understood.
    """

    code = "nandasm::config"

    def __init__(self, message: str, mnemonic: Optional[str] = None):
        self.mnemonic = mnemonic
        super().__init__(message)


class TooManyErrors(AssemblerError):
    """
    Raised when too many errors have been encountered.

    This stops a badly broken source from producing an endless report.
    """

    code = "nandasm::too_many_errors"

    def __init__(self, message: str = "Too many errors"):
        super().__init__(message)


# =============================================================================
# Failures Raised by the Public Operations
# =============================================================================

class AssemblyFailed(NandAsmError):
    """
    Raised by assemble() and format() when the source has diagnostics.

    Attributes:
        diagnostics: Every diagnostic gathered before the pipeline stopped,
                     in the order they were found
    """

    def __init__(self, diagnostics: list[AssemblerError]):
        self.diagnostics = list(diagnostics)
        count = len(self.diagnostics)
        word = "error" if count == 1 else "errors"
        lines = [f"assembly failed with {count} {word}"]
        lines.extend(f"  {d}" for d in self.diagnostics)
        super().__init__("\n".join(lines))

    def render(self, source: str, filename: str = "<input>") -> str:
        """Render every diagnostic against the source, followed by a summary."""
        collector = ErrorCollector(max_errors=len(self.diagnostics) + 1)
        for diagnostic in self.diagnostics:
            collector.add(diagnostic)
        return collector.report(source, filename)


class InternalConsistencyError(NandAsmError):
    """
    An engine invariant was violated.

    This signals a defect in the assembler itself (for example, the encoder
    produced a different number of bytes than the resolver sized), never a
    problem with the user's source.
    """
    pass


# =============================================================================
# Error Collection for Multiple Error Reporting
# =============================================================================

class ErrorCollector:
    """
    Collects multiple errors for batch reporting.

    The lexer, parser, resolver and encoder use this to keep going after an
    error, so that one run reports every independent problem.

    Example:
        collector = ErrorCollector(max_errors=100)
        collector.add(UnknownLabel("loop", span))
        if collector.has_errors():
            print(collector.report(source))
    """

    def __init__(self, max_errors: int = 100):
        """
        Initialize the error collector.

        Args:
            max_errors: Maximum errors to collect before raising TooManyErrors
        """
        self.errors: list[AssemblerError] = []
        self.max_errors = max_errors

    def __iter__(self):
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    def add(self, error: AssemblerError) -> None:
        """
        Add an error to the collection.

        Raises:
            TooManyErrors: If max_errors has been reached
        """
        self.errors.append(error)
        if len(self.errors) >= self.max_errors:
            raise TooManyErrors(f"Too many errors ({self.max_errors}), stopping")

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return len(self.errors) > 0

    def error_count(self) -> int:
        """Return the number of collected errors."""
        return len(self.errors)

    def report(self, source: str, filename: str = "<input>") -> str:
        """
        Format all errors for display against the source text.

        Returns:
            Formatted string with every error and a summary line
        """
        lines = []

        for error in self.errors:
            lines.append(error.render(source, filename))
            lines.append("")

        error_word = "error" if len(self.errors) == 1 else "errors"
        lines.append(f"{len(self.errors)} {error_word}")

        return "\n".join(lines)

    def clear(self) -> None:
        """Clear all collected errors."""
        self.errors.clear()
