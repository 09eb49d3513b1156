"""
Machine Code Encoder
====================

Turns fully resolved statements into the output byte sequence.

Each instruction becomes its opcode byte followed by one byte per operand;
label definitions emit nothing. Operand values must fit a single byte:

| Operand          | Accepted range | Encoding                     |
|------------------|----------------|------------------------------|
| ImmediateLiteral | -128 .. 255    | negatives as two's complement |
| IndirectLiteral  | 0 .. 255       | unsigned                     |

Every out-of-range operand is reported. The encoder also checks that it
produced exactly as many bytes as the resolver sized the program at; a
mismatch is an engine defect and raises InternalConsistencyError.
"""

import logging
from typing import Iterable, Optional

from nandasm.errors import (
    AssemblerError,
    ErrorCollector,
    InternalConsistencyError,
    ValueOutOfRange,
)
from nandasm.assembler.opcodes import InstructionSet
from nandasm.assembler.parser import (
    ImmediateLiteral,
    IndirectLiteral,
    Instruction,
    LabelReference,
    Operand,
    Statement,
)

logger = logging.getLogger(__name__)


# Operand byte ranges
IMMEDIATE_MIN = -128
IMMEDIATE_MAX = 0xFF
INDIRECT_MIN = 0
INDIRECT_MAX = 0xFF


class Encoder:
    """
    Emits bytes for resolved statements.

    Usage:
        encoder = Encoder(instruction_set)
        code = encoder.encode(resolved_statements, resolver.size)
        if encoder.errors.has_errors():
            ...

    Attributes:
        errors: ValueOutOfRange diagnostics from the last encode() call
    """

    def __init__(self, instruction_set: InstructionSet, max_errors: int = 100):
        self._instruction_set = instruction_set
        self.errors = ErrorCollector(max_errors=max_errors)

    def encode(
        self,
        statements: Iterable[Statement],
        expected_size: Optional[int] = None,
    ) -> bytes:
        """
        Encode statements into bytes.

        Args:
            statements: Statements with every label reference resolved
            expected_size: Program size computed during address assignment

        Returns:
            The encoded program. When self.errors is non-empty the bytes
            for offending operands are zero and must not be used.

        Raises:
            InternalConsistencyError: If the output size differs from
                                      expected_size, an instruction's operand
                                      count disagrees with its opcode, an
                                      operand is still a label reference
                                      or a mnemonic is missing from the
                                      instruction set
        """
        self.errors.clear()
        code = bytearray()

        for stmt in statements:
            if isinstance(stmt, Instruction):
                self._encode_instruction(stmt, code)

        if expected_size is not None and len(code) != expected_size:
            raise InternalConsistencyError(
                f"encoded {len(code)} bytes but the program was sized at {expected_size}"
            )

        logger.debug(f"Encoded {len(code)} bytes with {self.errors.error_count()} errors")
        return bytes(code)

    def _encode_instruction(self, inst: Instruction, code: bytearray) -> None:
        spec = self._instruction_set.lookup(inst.mnemonic)
        if spec is None:
            raise InternalConsistencyError(
                f"instruction '{inst.mnemonic}' reached the encoder without an opcode"
            )
        if inst.byte_length != spec.size:
            raise InternalConsistencyError(
                f"instruction '{inst.mnemonic}' was sized at {inst.byte_length} bytes "
                f"but encodes to {spec.size}"
            )

        code.append(spec.encoding)
        for operand in inst.operands:
            try:
                code.append(self._encode_operand(operand))
            except AssemblerError as e:
                self.errors.add(e)
                code.append(0)

    def _encode_operand(self, operand: Operand) -> int:
        """Return the byte for a single operand."""
        if isinstance(operand, LabelReference):
            raise InternalConsistencyError(
                f"label reference '{operand.name}' reached the encoder unresolved"
            )

        value = operand.value
        if isinstance(operand, IndirectLiteral):
            if not INDIRECT_MIN <= value <= INDIRECT_MAX:
                raise ValueOutOfRange(value, operand.span, INDIRECT_MIN, INDIRECT_MAX)
            return value

        if isinstance(operand, ImmediateLiteral):
            if not IMMEDIATE_MIN <= value <= IMMEDIATE_MAX:
                raise ValueOutOfRange(value, operand.span, IMMEDIATE_MIN, IMMEDIATE_MAX)
            return value & 0xFF

        raise InternalConsistencyError(f"unknown operand {operand!r}")
