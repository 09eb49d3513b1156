"""
Configurable NAND-Style Assembler
=================================

This package assembles source for a small NAND-style machine whose
instruction set is supplied by the caller.

Main Components
---------------
- **Assembler**: Runs the whole pipeline and reports diagnostics
- **AssemblerConfig / InstructionSet**: The configured opcodes
- **Lexer**: Tokenizes source text
- **Parser**: Parses tokens into label and instruction statements
- **SymbolResolver**: Two-pass label address resolution
- **Encoder**: Emits opcode and operand bytes
- **Formatter**: Rewrites source in canonical layout

Assembly Process
----------------
1. **Parsing (Lexer + Parser)**:
   - Tokenize source, keeping a span for every token
   - Parse lines into labels and instructions, checking each mnemonic and
     its operand count against the instruction set

2. **Resolution (SymbolResolver)** (two-pass):
   - Pass 1: Assign label addresses (1 byte per opcode, 1 per operand)
   - Pass 2: Replace label references with their addresses

3. **Encoding (Encoder)**:
   - Emit the opcode byte and one byte per operand

Example Usage
-------------
>>> from nandasm.assembler import AssemblerConfig, assemble
>>> config = AssemblerConfig.from_dict({"opcodes": [
...     {"mnemonic": "jmp", "binary": 4, "num_args": 1},
...     {"mnemonic": "nop", "binary": 0, "num_args": 0},
... ]})
>>> assemble("start:\\n    nop\\n    jmp start", config)
b'\\x00\\x04\\x00'
"""

from nandasm.assembler.assembler import Assembler, Program, assemble, check
from nandasm.assembler.config import AssemblerConfig
from nandasm.assembler.encoder import Encoder
from nandasm.assembler.formatter import Formatter, format_source
from nandasm.assembler.lexer import Lexer, NumberLiteral, Token, TokenType, tokenize
from nandasm.assembler.opcodes import InstructionSet, OpcodeSpec, OperandKind
from nandasm.assembler.parser import (
    ImmediateLiteral,
    IndirectLiteral,
    Instruction,
    LabelDefinition,
    LabelReference,
    Operand,
    Parser,
    Statement,
    parse_source,
)
from nandasm.assembler.resolver import Symbol, SymbolResolver

__all__ = [
    # Main class and functions
    "Assembler",
    "Program",
    "assemble",
    "check",
    # Configuration
    "AssemblerConfig",
    "InstructionSet",
    "OpcodeSpec",
    "OperandKind",
    # Lexer
    "Lexer",
    "NumberLiteral",
    "Token",
    "TokenType",
    "tokenize",
    # Parser
    "Parser",
    "Statement",
    "Instruction",
    "LabelDefinition",
    "Operand",
    "ImmediateLiteral",
    "IndirectLiteral",
    "LabelReference",
    "parse_source",
    # Resolution and encoding
    "Symbol",
    "SymbolResolver",
    "Encoder",
    # Formatting
    "Formatter",
    "format_source",
]
