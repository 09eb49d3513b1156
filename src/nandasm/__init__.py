"""
nandasm - Configurable Assembler for NAND-Style Machines
========================================================

This package assembles a small line-oriented assembly language into bytes
for a machine whose instruction set is described by the caller, and
formats that language into a canonical layout.

Main Components
---------------
- **assembler**: Lexer, parser, two-pass label resolver and encoder
    Converts source text into machine code, or into a list of diagnostics

- **errors**: Diagnostic hierarchy
    Every diagnostic carries a span into the source and renders with the
    offending line underlined

- **cli**: The nandasm command-line tool

Quick Start
-----------
Assemble a program:
    >>> from nandasm import AssemblerConfig, assemble
    >>> config = AssemblerConfig.from_file("machine.json")
    >>> code = assemble("lda #0x05\\nhlt", config)

Format source:
    >>> from nandasm import format_source
    >>> format_source("loop:\\n  nop   ; spin\\n")
    'loop:\\n\\tnop ; spin\\n'

Or use the command-line tool:
    $ nandasm asm program.asm -c machine.json -o program.bin
    $ nandasm fmt program.asm -i
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from nandasm.assembler import (
    Assembler,
    AssemblerConfig,
    Formatter,
    InstructionSet,
    OpcodeSpec,
    OperandKind,
    Program,
    assemble,
    check,
    format_source,
)
from nandasm.errors import (
    NandAsmError,
    AssemblerError,
    LexError,
    OpcodeDoesNotExist,
    Unexpected,
    DuplicateLabel,
    UnknownLabel,
    ValueOutOfRange,
    ConfigError,
    TooManyErrors,
    AssemblyFailed,
    InternalConsistencyError,
    ErrorCollector,
    Span,
    SourceLocation,
)

__all__ = [
    "__version__",
    # Assembler
    "Assembler",
    "AssemblerConfig",
    "InstructionSet",
    "OpcodeSpec",
    "OperandKind",
    "Program",
    "assemble",
    "check",
    # Formatter
    "Formatter",
    "format_source",
    # Errors
    "NandAsmError",
    "AssemblerError",
    "LexError",
    "OpcodeDoesNotExist",
    "Unexpected",
    "DuplicateLabel",
    "UnknownLabel",
    "ValueOutOfRange",
    "ConfigError",
    "TooManyErrors",
    "AssemblyFailed",
    "InternalConsistencyError",
    "ErrorCollector",
    "Span",
    "SourceLocation",
]
