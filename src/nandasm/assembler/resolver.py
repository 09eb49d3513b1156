"""
Symbol Resolution
=================

Labels are resolved in two passes over the parsed statements.

Pass 1 - Address Assignment:
    Walk the statements with a running byte offset starting at 0. Every
    instruction advances the offset by 1 + its operand count; every label
    records the current offset. A label defined twice is reported and the
    pass carries on, so all duplicates show up in one run.

Pass 2 - Reference Resolution:
    Replace each LabelReference operand with a literal holding the label's
    address, keeping the reference's operand kind. Undefined labels are all
    reported. This pass does not run if pass 1 found duplicates.

Instruction sizes never depend on label values, so two passes are always
enough and forward and backward references resolve to the same address.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping

from nandasm.errors import (
    AssemblerError,
    DuplicateLabel,
    ErrorCollector,
    Span,
    UnknownLabel,
    find_similar,
)
from nandasm.assembler.opcodes import OperandKind
from nandasm.assembler.parser import (
    ImmediateLiteral,
    IndirectLiteral,
    Instruction,
    LabelDefinition,
    LabelReference,
    Operand,
    Statement,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Symbol Table Entry
# =============================================================================

@dataclass(frozen=True)
class Symbol:
    """
    Symbol table entry.

    Attributes:
        name: Label name
        address: Byte offset of the label in the output
        span: Where the label was defined
    """
    name: str
    address: int
    span: Span


# =============================================================================
# Resolver
# =============================================================================

class SymbolResolver:
    """
    Two-pass label resolver.

    Usage:
        resolver = SymbolResolver(statements)
        resolver.assign_addresses()
        if not resolver.errors.has_errors():
            resolved = resolver.resolve()

    Attributes:
        errors: Diagnostics from both passes
        size: Total program size in bytes (valid after pass 1)
    """

    def __init__(self, statements: Iterable[Statement], max_errors: int = 100):
        self._statements = list(statements)
        self._symbols: dict[str, Symbol] = {}
        self._assigned = False
        self.size = 0
        self.errors = ErrorCollector(max_errors=max_errors)

    @property
    def symbols(self) -> Mapping[str, Symbol]:
        """The symbol table, in definition order."""
        return dict(self._symbols)

    def get_symbols(self) -> dict[str, int]:
        """Get all label addresses by name."""
        return {name: sym.address for name, sym in self._symbols.items()}

    # =========================================================================
    # Pass 1: Address Assignment
    # =========================================================================

    def assign_addresses(self) -> dict[str, int]:
        """
        First pass: record every label's address.

        Returns:
            Mapping of label name to address
        """
        self._symbols.clear()
        offset = 0

        for stmt in self._statements:
            try:
                if isinstance(stmt, LabelDefinition):
                    self._define_label(stmt, offset)
                elif isinstance(stmt, Instruction):
                    offset += stmt.byte_length
            except AssemblerError as e:
                self.errors.add(e)

        self.size = offset
        self._assigned = True
        logger.debug(f"Pass 1: {len(self._symbols)} labels, {self.size} bytes")
        return self.get_symbols()

    def _define_label(self, label: LabelDefinition, address: int) -> None:
        """Define a label in the symbol table."""
        existing = self._symbols.get(label.name)
        if existing is not None:
            raise DuplicateLabel(label.name, existing.span, label.span)

        self._symbols[label.name] = Symbol(
            name=label.name,
            address=address,
            span=label.span,
        )

    # =========================================================================
    # Pass 2: Reference Resolution
    # =========================================================================

    def resolve(self) -> list[Statement]:
        """
        Second pass: replace label references with literal addresses.

        Returns:
            New statements with no LabelReference operands left. Statements
            that referenced an unknown label are returned unchanged; the
            error is in self.errors.
        """
        if not self._assigned:
            self.assign_addresses()

        resolved: list[Statement] = []
        for stmt in self._statements:
            if isinstance(stmt, Instruction):
                stmt = self._resolve_instruction(stmt)
            resolved.append(stmt)

        logger.debug(f"Pass 2: resolved with {self.errors.error_count()} errors")
        return resolved

    def _resolve_instruction(self, inst: Instruction) -> Instruction:
        if not any(isinstance(op, LabelReference) for op in inst.operands):
            return inst

        operands = []
        failed = False
        for operand in inst.operands:
            try:
                operands.append(self._resolve_operand(operand))
            except UnknownLabel as e:
                self.errors.add(e)
                failed = True

        if failed:
            return inst

        return Instruction(
            mnemonic=inst.mnemonic,
            operands=tuple(operands),
            span=inst.span,
            mnemonic_span=inst.mnemonic_span,
        )

    def _resolve_operand(self, operand: Operand) -> Operand:
        if not isinstance(operand, LabelReference):
            return operand

        symbol = self._symbols.get(operand.name)
        if symbol is None:
            raise UnknownLabel(
                operand.name,
                operand.span,
                similar=find_similar(operand.name, self._symbols),
            )

        if operand.kind is OperandKind.INDIRECT:
            return IndirectLiteral(value=symbol.address, span=operand.span)
        return ImmediateLiteral(value=symbol.address, span=operand.span)
