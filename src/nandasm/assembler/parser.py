"""
NAND Assembly Language Parser
=============================

This module converts the token stream from the lexer into an ordered list
of statements. Source order is significant: it is the program's linear
address order.

Statement Types
---------------
1. **LabelDefinition**: a name followed by a colon, on its own line
   ```asm
   loop:
   ```

2. **Instruction**: a mnemonic followed by exactly as many operands as the
   instruction set declares for it
   ```asm
   nop
   lda #0x05
   ldb +0x10
   jmp loop
   ```

Operands
--------
| Syntax  | Operand                       |
|---------|-------------------------------|
| #value  | ImmediateLiteral              |
| +value  | IndirectLiteral               |
| value   | slot default (see opcodes.py) |
| name    | LabelReference                |

There is no explicit instruction terminator other than the end of the
operand list, so the parser looks the mnemonic up before reading operands
and never needs more than one token of lookahead.

Error Recovery
--------------
Every error is recorded in the parser's ErrorCollector and the rest of the
line is skipped. Lex errors met while skipping are still reported, so one
pass surfaces every independent problem in the source.

When no instruction set is given the parser runs in structural mode: any
mnemonic is accepted and operands are read until the end of the line. The
formatter uses this mode.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from nandasm.errors import (
    AssemblerError,
    ErrorCollector,
    OpcodeDoesNotExist,
    Span,
    TooManyErrors,
    Unexpected,
)
from nandasm.assembler.lexer import Lexer, Token, TokenType
from nandasm.assembler.opcodes import InstructionSet, OperandKind

logger = logging.getLogger(__name__)


# =============================================================================
# Operand Data Classes
# =============================================================================

@dataclass(frozen=True)
class ImmediateLiteral:
    """A literal value used directly by the instruction."""
    value: int
    span: Span

    @property
    def kind(self) -> OperandKind:
        return OperandKind.IMMEDIATE


@dataclass(frozen=True)
class IndirectLiteral:
    """A literal value the target machine treats as a memory reference."""
    value: int
    span: Span

    @property
    def kind(self) -> OperandKind:
        return OperandKind.INDIRECT


@dataclass(frozen=True)
class LabelReference:
    """
    A label used as an operand.

    Attributes:
        name: The referenced label
        kind: The operand kind the resolved address is encoded as
        span: Location of the reference (including any prefix)
    """
    name: str
    kind: OperandKind
    span: Span


Operand = Union[ImmediateLiteral, IndirectLiteral, LabelReference]


# =============================================================================
# Statement Data Classes
# =============================================================================

@dataclass(frozen=True)
class LabelDefinition:
    """
    Label definition statement.

    Attributes:
        name: Label name (case-sensitive)
        span: Location of 'name:'
    """
    name: str
    span: Span


@dataclass(frozen=True)
class Instruction:
    """
    Machine instruction statement.

    Attributes:
        mnemonic: The instruction mnemonic, as written
        operands: The operands in source order
        span: Location of the whole instruction
        mnemonic_span: Location of the mnemonic alone
    """
    mnemonic: str
    operands: tuple[Operand, ...]
    span: Span
    mnemonic_span: Optional[Span] = None

    @property
    def byte_length(self) -> int:
        """One opcode byte plus one byte per operand."""
        return 1 + len(self.operands)


Statement = Union[LabelDefinition, Instruction]


# =============================================================================
# Parser Implementation
# =============================================================================

class Parser:
    """
    Parses NAND assembly tokens into statements.

    The parser processes tokens line by line, producing Statement objects
    and recording diagnostics instead of raising them.

    Usage:
        tokens = Lexer(source).tokenize()
        parser = Parser(tokens, instruction_set)
        statements = parser.parse()
        if parser.errors.has_errors():
            ...

    Attributes:
        errors: ErrorCollector with every diagnostic found so far
    """

    # Tokens that end a line
    LINE_END = (TokenType.NEWLINE, TokenType.EOF)

    def __init__(
        self,
        tokens: Iterable[Token],
        instruction_set: Optional[InstructionSet] = None,
        max_errors: int = 100,
    ):
        """
        Initialize the parser.

        Args:
            tokens: Tokens from the lexer (comments are dropped here)
            instruction_set: Table used to check mnemonics and arity;
                             None selects structural mode
            max_errors: Stop after this many diagnostics
        """
        self._tokens = [t for t in tokens if t.type != TokenType.COMMENT]
        if not self._tokens or self._tokens[-1].type != TokenType.EOF:
            end = self._tokens[-1].span.end if self._tokens else 0
            self._tokens.append(Token(TokenType.EOF, "", Span(end, end)))
        self._instruction_set = instruction_set
        self._pos = 0
        self.errors = ErrorCollector(max_errors=max_errors)

    def parse(self) -> list[Statement]:
        """
        Parse all tokens into statements.

        Returns:
            Statements in source order. Lines with errors produce no
            statement; their diagnostics are in self.errors.
        """
        statements: list[Statement] = []
        self._pos = 0

        try:
            while not self._check(TokenType.EOF):
                # Skip blank lines
                if self._match(TokenType.NEWLINE):
                    continue

                stmt = self._parse_line()
                if stmt is not None:
                    statements.append(stmt)
        except TooManyErrors as e:
            self.errors.errors.append(e)
            logger.debug(f"Parsing stopped after {self.errors.error_count()} errors")

        logger.debug(
            f"Parsed {len(statements)} statements with {self.errors.error_count()} errors"
        )
        return statements

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        """Get current token."""
        return self._tokens[min(self._pos, len(self._tokens) - 1)]

    def _peek(self, offset: int = 0) -> Token:
        """Look ahead at token."""
        return self._tokens[min(self._pos + offset, len(self._tokens) - 1)]

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        if token.type != TokenType.EOF:
            self._pos += 1
        return token

    def _check(self, *types: TokenType) -> bool:
        """Check if current token is one of the given types."""
        return self._current().type in types

    def _match(self, *types: TokenType) -> Optional[Token]:
        """Match and consume if current token is one of the types."""
        if self._check(*types):
            return self._advance()
        return None

    # =========================================================================
    # Error Reporting and Recovery
    # =========================================================================

    def _report(self, error: AssemblerError) -> None:
        self.errors.add(error)

    def _report_lex_error(self) -> None:
        """Report the LexError carried by the current ERROR token and consume it."""
        token = self._advance()
        self._report(token.value)

    def _unexpected(self, expected: Iterable[TokenType]) -> None:
        """Report that the current token is not one of `expected`."""
        token = self._current()
        self._report(Unexpected(
            [t.describe() for t in expected],
            token.describe(),
            token.span,
        ))

    def _skip_to_eol(self) -> None:
        """
        Skip remaining tokens to end of line.

        Lex errors on the skipped part are independent problems, so they
        are reported rather than dropped.
        """
        while not self._check(*self.LINE_END):
            if self._check(TokenType.ERROR):
                self._report_lex_error()
            else:
                self._advance()

    def _expect_end_of_line(self) -> bool:
        """Require the line to end here; report and recover otherwise."""
        if self._check(*self.LINE_END):
            return True

        if self._check(TokenType.ERROR):
            self._report_lex_error()
        else:
            self._unexpected(self.LINE_END)
        self._skip_to_eol()
        return False

    # =========================================================================
    # Line Parsing
    # =========================================================================

    def _parse_line(self) -> Optional[Statement]:
        """
        Parse a single line of assembly.

        Returns a statement, or None if the line had an error.
        """
        if self._check(TokenType.ERROR):
            self._report_lex_error()
            self._skip_to_eol()
            return None

        if not self._check(TokenType.IDENTIFIER):
            self._unexpected((TokenType.IDENTIFIER,))
            self._skip_to_eol()
            return None

        # One token of lookahead tells labels and instructions apart
        if self._peek(1).type == TokenType.COLON:
            return self._parse_label()

        return self._parse_instruction()

    def _parse_label(self) -> LabelDefinition:
        """Parse 'name:'. The label must be alone on its line."""
        name_token = self._advance()
        colon_token = self._advance()
        label = LabelDefinition(
            name=name_token.text,
            span=name_token.span.join(colon_token.span),
        )
        self._expect_end_of_line()
        return label

    # =========================================================================
    # Instruction Parsing
    # =========================================================================

    def _parse_instruction(self) -> Optional[Instruction]:
        """Parse a mnemonic and its operands."""
        mnemonic_token = self._advance()
        mnemonic = mnemonic_token.text

        if self._instruction_set is not None:
            spec = self._instruction_set.lookup(mnemonic)
            if spec is None:
                self._report(OpcodeDoesNotExist(
                    mnemonic,
                    mnemonic_token.span,
                    similar=self._instruction_set.similar(mnemonic),
                ))
                self._skip_to_eol()
                return None
            slots = list(spec.operands)
        else:
            slots = None

        operands: list[Operand] = []

        if slots is not None:
            for kind in slots:
                operand = self._parse_operand(kind)
                if operand is None:
                    self._skip_to_eol()
                    return None
                operands.append(operand)
        else:
            while not self._check(*self.LINE_END):
                operand = self._parse_operand(OperandKind.ANY)
                if operand is None:
                    self._skip_to_eol()
                    return None
                operands.append(operand)

        if not self._expect_end_of_line():
            return None

        span = mnemonic_token.span
        if operands:
            span = span.join(operands[-1].span)

        return Instruction(
            mnemonic=mnemonic,
            operands=tuple(operands),
            span=span,
            mnemonic_span=mnemonic_token.span,
        )

    def _parse_operand(self, slot: OperandKind) -> Optional[Operand]:
        """
        Parse one operand for a slot of the given kind.

        operand := ('#' | '+')? (NUMBER | IDENTIFIER)

        Returns None after reporting an error.
        """
        if self._check(TokenType.ERROR):
            self._report_lex_error()
            return None

        prefix = None
        if self._check(TokenType.HASH, TokenType.PLUS):
            if self._check(TokenType.HASH):
                kind = OperandKind.IMMEDIATE
            else:
                kind = OperandKind.INDIRECT
            if not slot.accepts(kind):
                self._unexpected(self._operand_start(slot))
                return None
            prefix = self._advance()

            if self._check(TokenType.ERROR):
                self._report_lex_error()
                return None
            if not self._check(TokenType.NUMBER, TokenType.IDENTIFIER):
                self._unexpected((TokenType.NUMBER, TokenType.IDENTIFIER))
                return None
        else:
            if not self._check(TokenType.NUMBER, TokenType.IDENTIFIER):
                self._unexpected(self._operand_start(slot))
                return None
            # Unprefixed operands take the slot's kind; legacy slots default to immediate
            kind = OperandKind.IMMEDIATE if slot is OperandKind.ANY else slot

        token = self._advance()
        span = prefix.span.join(token.span) if prefix is not None else token.span

        if token.type == TokenType.IDENTIFIER:
            return LabelReference(name=token.text, kind=kind, span=span)

        value = token.value.value
        if kind is OperandKind.INDIRECT:
            return IndirectLiteral(value=value, span=span)
        return ImmediateLiteral(value=value, span=span)

    @staticmethod
    def _operand_start(slot: OperandKind) -> tuple[TokenType, ...]:
        """Token types that may start an operand in this slot."""
        if slot is OperandKind.IMMEDIATE:
            return (TokenType.HASH, TokenType.NUMBER, TokenType.IDENTIFIER)
        if slot is OperandKind.INDIRECT:
            return (TokenType.PLUS, TokenType.NUMBER, TokenType.IDENTIFIER)
        return (TokenType.HASH, TokenType.PLUS, TokenType.NUMBER, TokenType.IDENTIFIER)


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(
    source: str,
    instruction_set: Optional[InstructionSet] = None,
    filename: str = "<input>",
) -> tuple[list[Statement], list[AssemblerError]]:
    """
    Lex and parse source text.

    Args:
        source: Assembly source code
        instruction_set: Table for mnemonic lookup (None for structural mode)
        filename: Source filename for the lexer

    Returns:
        (statements, diagnostics)
    """
    parser = Parser(Lexer(source, filename).tokenize(), instruction_set)
    statements = parser.parse()
    return statements, list(parser.errors)
