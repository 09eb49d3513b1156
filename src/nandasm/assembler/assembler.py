"""
NAND Assembler - Main Interface
===============================

This module provides the Assembler class, the primary interface for
assembling NAND-style source code. It runs the lexer, parser, symbol
resolver and encoder in order and stops at the first stage that reports
diagnostics:

1. **Parsing (Lexer + Parser)**: every independent syntax error is collected
2. **Pass 1 (SymbolResolver.assign_addresses)**: duplicate labels
3. **Pass 2 (SymbolResolver.resolve)**: unknown labels
4. **Encoding (Encoder)**: operand values that do not fit a byte

Example Usage
-------------
>>> from nandasm import Assembler, AssemblerConfig
>>> config = AssemblerConfig.from_dict({"opcodes": [
...     {"mnemonic": "nop", "binary": 0x00, "num_args": 0},
...     {"mnemonic": "lda", "binary": 0x01, "num_args": 1},
...     {"mnemonic": "hlt", "binary": 0xFF, "num_args": 0},
... ]})
>>> Assembler(config).assemble("lda #0x05\\nhlt")
b'\\x01\\x05\\xff'

An Assembler keeps no state between calls, so one instance (and its
configuration) can be shared by several threads.

Command-Line Usage
------------------
    $ nandasm asm program.asm -c machine.json -o program.bin -s program.sym
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from nandasm.errors import AssemblerError, AssemblyFailed, TooManyErrors
from nandasm.assembler.config import AssemblerConfig
from nandasm.assembler.encoder import Encoder
from nandasm.assembler.lexer import Lexer
from nandasm.assembler.parser import Parser, Statement
from nandasm.assembler.resolver import Symbol, SymbolResolver

logger = logging.getLogger(__name__)


# =============================================================================
# Assembly Result
# =============================================================================

@dataclass(frozen=True)
class Program:
    """
    A successfully assembled program.

    Attributes:
        code: The machine code
        statements: Statements with every label reference resolved
        symbols: Label table, in definition order
    """
    code: bytes
    statements: tuple[Statement, ...] = ()
    symbols: Mapping[str, Symbol] = field(default_factory=dict)

    @property
    def size(self) -> int:
        return len(self.code)

    def get_symbols(self) -> dict[str, int]:
        """Get all label addresses by name."""
        return {name: sym.address for name, sym in self.symbols.items()}

    def symbol_listing(self) -> str:
        """
        Render the symbol table, one 'NAME = $XX' line per label.

        Labels are listed in address order.
        """
        lines = [
            f"{sym.name} = ${sym.address:02X}"
            for sym in sorted(self.symbols.values(), key=lambda s: (s.address, s.name))
        ]
        return "\n".join(lines) + "\n" if lines else ""

    def to_hex(self) -> str:
        """Return the code as space-separated uppercase hex bytes."""
        return " ".join(f"{b:02X}" for b in self.code)


# =============================================================================
# Assembler
# =============================================================================

class Assembler:
    """
    Assembler for a configured NAND-style instruction set.

    Usage:
        asm = Assembler(config)
        code = asm.assemble(source)          # raises AssemblyFailed
        program = asm.assemble_program(source)
        diagnostics = asm.check(source)      # never raises for bad source
    """

    def __init__(self, config: AssemblerConfig, max_errors: int = 100):
        """
        Initialize the assembler.

        Args:
            config: The instruction set to assemble for
            max_errors: Stop collecting after this many diagnostics per stage
        """
        self.config = config
        self.max_errors = max_errors

    @property
    def instruction_set(self):
        return self.config.instruction_set

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble(self, source: str, filename: str = "<input>") -> bytes:
        """
        Assemble source code into bytes.

        Args:
            source: Assembly source code
            filename: Virtual filename for error messages

        Returns:
            The machine code

        Raises:
            AssemblyFailed: If the source has any diagnostics
        """
        return self.assemble_program(source, filename).code

    def assemble_program(self, source: str, filename: str = "<input>") -> Program:
        """
        Assemble source code, keeping the resolved statements and symbols.

        Raises:
            AssemblyFailed: If the source has any diagnostics
        """
        program, diagnostics = self._run(source, filename)
        if diagnostics:
            raise AssemblyFailed(diagnostics)
        return program

    def assemble_file(self, filepath: str | Path) -> Program:
        """
        Assemble a source file.

        Raises:
            AssemblyFailed: If the source has any diagnostics
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)
        logger.debug(f"Assembling {filepath}")
        return self.assemble_program(filepath.read_text(encoding="utf-8"), str(filepath))

    def check(self, source: str, filename: str = "<input>") -> list[AssemblerError]:
        """
        Run the full pipeline and return its diagnostics.

        Returns:
            Diagnostics in the order they were found; empty if the source
            assembles cleanly
        """
        _, diagnostics = self._run(source, filename)
        return diagnostics

    # =========================================================================
    # Pipeline
    # =========================================================================

    def _run(
        self, source: str, filename: str
    ) -> tuple[Optional[Program], list[AssemblerError]]:
        """Run every stage, stopping at the first that reports diagnostics."""
        instruction_set = self.config.instruction_set

        # Parse
        parser = Parser(
            Lexer(source, filename).tokenize(),
            instruction_set,
            max_errors=self.max_errors,
        )
        statements = parser.parse()
        if parser.errors.has_errors():
            logger.debug(f"{filename}: {parser.errors.error_count()} parse errors")
            return None, list(parser.errors)

        # Resolve labels
        resolver = SymbolResolver(statements, max_errors=self.max_errors)
        try:
            resolver.assign_addresses()
            if resolver.errors.has_errors():
                return None, list(resolver.errors)
            resolved = resolver.resolve()
        except TooManyErrors as e:
            return None, [*resolver.errors, e]
        if resolver.errors.has_errors():
            return None, list(resolver.errors)

        # Encode
        encoder = Encoder(instruction_set, max_errors=self.max_errors)
        try:
            code = encoder.encode(resolved, resolver.size)
        except TooManyErrors as e:
            return None, [*encoder.errors, e]
        if encoder.errors.has_errors():
            return None, list(encoder.errors)

        logger.debug(f"{filename}: assembled {len(code)} bytes")
        return Program(code, tuple(resolved), resolver.symbols), []


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, config: AssemblerConfig, filename: str = "<input>") -> bytes:
    """
    Convenience function to assemble source code.

    Args:
        source: Assembly source code
        config: The instruction set
        filename: Virtual filename for errors

    Returns:
        Generated machine code

    Raises:
        AssemblyFailed: If assembly fails
    """
    return Assembler(config).assemble(source, filename)


def check(source: str, config: AssemblerConfig, filename: str = "<input>") -> list[AssemblerError]:
    """Convenience function returning the diagnostics for source code."""
    return Assembler(config).check(source, filename)
