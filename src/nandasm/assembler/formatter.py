"""
Source Formatter
================

Rewrites assembly source into one canonical layout (block lines are
indented with a tab):

    ; comment before any label stays at column 0
    jmp loop

    loop:
        lda #0x05 ; trailing comment
        ldb +0x10
        hlt

Rules
-----
- Labels start at column 0 as 'name:'.
- Instructions are 'mnemonic op op ...' with single spaces, indented by
  one tab once a label has been seen.
- Operand prefixes are attached to their value ('#0x05', '+16').
- Hex digits are uppercase with a lowercase '0x'; '0b' and '0o' are
  lowercase; signs and leading zeros are kept.
- Comments become '; body'. A trailing comment follows the code after one
  space; a full-line comment takes the indentation of its block.
- Runs of blank lines collapse to one; leading and trailing blank lines
  are dropped; the result ends with exactly one newline (or is empty).

The source is lexed and parsed with the same grammar the assembler uses.
If that finds problems, format() raises AssemblyFailed with those
diagnostics instead of guessing at a layout. Without an instruction set
any mnemonic and operand count is accepted; with one, arity and operand
kinds are checked too.

Formatting is idempotent: format(format(s)) == format(s).
"""

import logging
from typing import Iterable, Iterator, Optional

from nandasm.errors import AssemblyFailed
from nandasm.assembler.lexer import Lexer, Token, TokenType
from nandasm.assembler.opcodes import InstructionSet
from nandasm.assembler.parser import Parser

logger = logging.getLogger(__name__)


class Formatter:
    """
    Canonical source formatter.

    A Formatter holds no per-call state and can be reused freely.

    Usage:
        formatted = Formatter().format(source)
    """

    def __init__(self, indent: str = "\t"):
        """
        Args:
            indent: Indentation for lines inside a label block
        """
        self.indent = indent

    def format(self, source: str, instruction_set: Optional[InstructionSet] = None) -> str:
        """
        Format source text.

        Args:
            source: Assembly source code
            instruction_set: Optional table to check mnemonics and arity

        Returns:
            The formatted source

        Raises:
            AssemblyFailed: If the source has lex or parse errors
        """
        tokens = list(Lexer(source).tokenize())

        parser = Parser(tokens, instruction_set)
        parser.parse()
        if parser.errors.has_errors():
            raise AssemblyFailed(list(parser.errors))

        output: list[str] = []
        seen_label = False
        pending_blank = False

        for line in _split_lines(tokens):
            code = [t for t in line if t.type != TokenType.COMMENT]
            comment = next((t for t in line if t.type == TokenType.COMMENT), None)

            if not code and comment is None:
                # Leading blank lines are dropped by never setting the flag
                if output:
                    pending_blank = True
                continue

            if pending_blank:
                output.append("")
                pending_blank = False

            if code and code[-1].type == TokenType.COLON:
                seen_label = True
                text = f"{code[0].text}:"
                indent = ""
            else:
                text = self._render_instruction(code) if code else ""
                indent = self.indent if seen_label else ""

            if comment is not None:
                rendered = self._render_comment(comment)
                text = f"{text} {rendered}" if text else rendered

            output.append(indent + text)

        logger.debug(f"Formatted {len(output)} lines")
        if not output:
            return ""
        return "\n".join(output) + "\n"

    def _render_instruction(self, tokens: list[Token]) -> str:
        """Render 'mnemonic op op ...' from the tokens of one line."""
        parts = [tokens[0].text]
        prefix = ""

        for token in tokens[1:]:
            if token.type in (TokenType.HASH, TokenType.PLUS):
                prefix = token.text
                continue
            if token.type == TokenType.NUMBER:
                parts.append(prefix + token.value.render())
            else:
                parts.append(prefix + token.text)
            prefix = ""

        return " ".join(parts)

    @staticmethod
    def _render_comment(token: Token) -> str:
        body = token.value
        return f"; {body}" if body else ";"


def _split_lines(tokens: Iterable[Token]) -> Iterator[list[Token]]:
    """Group tokens into lines, dropping NEWLINE and EOF."""
    line: list[Token] = []
    for token in tokens:
        if token.type in (TokenType.NEWLINE, TokenType.EOF):
            yield line
            line = []
        else:
            line.append(token)


def format_source(source: str, config=None) -> str:
    """
    Format source text.

    Args:
        source: Assembly source code
        config: Optional AssemblerConfig; when given, mnemonics and
                operand counts are checked against it

    Raises:
        AssemblyFailed: If the source has lex or parse errors
    """
    instruction_set = config.instruction_set if config is not None else None
    return Formatter().format(source, instruction_set)
