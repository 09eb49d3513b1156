# =============================================================================
# test_parser.py - Parser Unit Tests
# =============================================================================
# Tests for the NAND assembly parser.
#
# Test coverage includes:
#   - Label and instruction statements
#   - Operand prefixes and slot kinds
#   - Arity checking against the instruction set
#   - Error recovery: one diagnostic per bad line, parsing continues
#   - Structural mode (no instruction set)
# =============================================================================

import pytest

from nandasm.assembler.lexer import Lexer
from nandasm.assembler.opcodes import OperandKind
from nandasm.assembler.parser import (
    ImmediateLiteral,
    IndirectLiteral,
    Instruction,
    LabelDefinition,
    LabelReference,
    Parser,
    parse_source,
)
from nandasm.errors import (
    LexError,
    OpcodeDoesNotExist,
    Span,
    TooManyErrors,
    Unexpected,
)


# =============================================================================
# Helper Functions
# =============================================================================

def parse(source, config):
    """Parse source against a config; fail the test on diagnostics."""
    statements, errors = parse_source(source, config.instruction_set)
    assert errors == [], [str(e) for e in errors]
    return statements


def parse_errors(source, config):
    _, errors = parse_source(source, config.instruction_set)
    return errors


# =============================================================================
# Statement Tests
# =============================================================================

class TestStatements:
    """Test the two statement kinds."""

    def test_empty_source(self, machine_config):
        assert parse("", machine_config) == []

    def test_blank_lines_and_comments(self, machine_config):
        assert parse("\n\n; only a comment\n   \n", machine_config) == []

    def test_label(self, machine_config):
        statements = parse("start:", machine_config)
        assert statements == [LabelDefinition(name="start", span=Span(0, 6))]

    def test_label_with_comment(self, machine_config):
        statements = parse("start: ; entry point", machine_config)
        assert len(statements) == 1
        assert isinstance(statements[0], LabelDefinition)

    def test_instruction_without_operands(self, machine_config):
        (inst,) = parse("nop", machine_config)
        assert inst == Instruction("nop", (), Span(0, 3), Span(0, 3))
        assert inst.byte_length == 1

    def test_instruction_span_covers_operands(self, machine_config):
        (inst,) = parse("  add #1 +2 3  ; sum", machine_config)
        assert inst.span == Span(2, 13)
        assert inst.mnemonic_span == Span(2, 5)
        assert inst.byte_length == 4

    def test_source_order(self, machine_config):
        statements = parse("nop\nloop:\njmp loop\nhlt", machine_config)
        assert [type(s).__name__ for s in statements] == [
            "Instruction", "LabelDefinition", "Instruction", "Instruction",
        ]

    def test_crlf_source(self, machine_config):
        assert len(parse("nop\r\nhlt\r\n", machine_config)) == 2


# =============================================================================
# Operand Tests
# =============================================================================

class TestOperands:
    """Test operand prefixes against slot kinds."""

    def operand(self, source, config):
        (inst,) = parse(source, config)
        return inst.operands[0]

    def test_hash_in_legacy_slot(self, machine_config):
        op = self.operand("jmp #5", machine_config)
        assert op == ImmediateLiteral(5, Span(4, 6))

    def test_plus_in_legacy_slot(self, machine_config):
        assert self.operand("jmp +5", machine_config) == IndirectLiteral(5, Span(4, 6))

    def test_bare_number_in_legacy_slot(self, machine_config):
        assert isinstance(self.operand("jmp 5", machine_config), ImmediateLiteral)

    def test_label_in_legacy_slot(self, machine_config):
        op = self.operand("jmp loop", machine_config)
        assert op == LabelReference("loop", OperandKind.IMMEDIATE, Span(4, 8))

    def test_bare_number_in_indirect_slot(self, machine_config):
        assert isinstance(self.operand("ldb 16", machine_config), IndirectLiteral)

    def test_label_in_indirect_slot(self, machine_config):
        op = self.operand("ldb data", machine_config)
        assert op.kind is OperandKind.INDIRECT

    def test_prefixed_label(self, machine_config):
        op = self.operand("jmp +table", machine_config)
        assert op == LabelReference("table", OperandKind.INDIRECT, Span(4, 10))

    def test_negative_immediate(self, machine_config):
        assert self.operand("lda #-1", machine_config).value == -1

    def test_typed_two_slot_shape(self, machine_config):
        (inst,) = parse("mov +0x10 #2", machine_config)
        assert isinstance(inst.operands[0], IndirectLiteral)
        assert isinstance(inst.operands[1], ImmediateLiteral)

    def test_plus_in_immediate_slot(self, machine_config):
        (error,) = parse_errors("lda +5", machine_config)
        assert isinstance(error, Unexpected)
        assert error.found == "'+'"
        assert error.span == Span(4, 5)

    def test_hash_in_indirect_slot(self, machine_config):
        (error,) = parse_errors("ldb #5", machine_config)
        assert isinstance(error, Unexpected)
        assert "'#'" not in error.expected
        assert "'+'" in error.expected

    def test_prefix_without_value(self, machine_config):
        (error,) = parse_errors("lda #", machine_config)
        assert isinstance(error, Unexpected)
        assert error.expected == ("a number", "an identifier")
        assert error.found == "end of input"


# =============================================================================
# Arity Tests
# =============================================================================

class TestArity:
    """The instruction set decides how many operands follow a mnemonic."""

    def test_missing_operand(self, machine_config):
        (error,) = parse_errors("jmp\nnop", machine_config)
        assert isinstance(error, Unexpected)
        assert error.found == "a newline"

    def test_missing_operand_at_end(self, machine_config):
        (error,) = parse_errors("add 1 2", machine_config)
        assert error.found == "end of input"

    def test_extra_operand(self, machine_config):
        (error,) = parse_errors("nop 5", machine_config)
        assert isinstance(error, Unexpected)
        assert error.expected == ("a newline", "end of input")
        assert error.found == "a number '5'"
        assert error.span == Span(4, 5)

    def test_label_must_be_alone(self, machine_config):
        (error,) = parse_errors("loop: nop", machine_config)
        assert isinstance(error, Unexpected)
        assert error.found == "an identifier 'nop'"


# =============================================================================
# Error Recovery Tests
# =============================================================================

class TestErrorRecovery:
    """One diagnostic per independent problem; parsing continues."""

    def test_unknown_mnemonic(self, machine_config):
        (error,) = parse_errors("foo", machine_config)
        assert isinstance(error, OpcodeDoesNotExist)
        assert error.mnemonic == "foo"
        assert error.span == Span(0, 3)

    def test_unknown_mnemonic_skips_operands(self, machine_config):
        """Operands of an unknown mnemonic are not parsed."""
        errors = parse_errors("foo #1 +2 bar", machine_config)
        assert len(errors) == 1

    def test_mnemonics_are_case_sensitive(self, machine_config):
        (error,) = parse_errors("NOP", machine_config)
        assert isinstance(error, OpcodeDoesNotExist)
        assert "nop" in error.similar

    def test_continues_after_error(self, machine_config):
        statements, errors = parse_source("foo\nnop\nbar\nhlt", machine_config.instruction_set)
        assert len(errors) == 2
        assert [s.mnemonic for s in statements] == ["nop", "hlt"]

    def test_errors_in_source_order(self, machine_config):
        errors = parse_errors("nop 1\nfoo\nlda +1", machine_config)
        assert [type(e) for e in errors] == [Unexpected, OpcodeDoesNotExist, Unexpected]

    def test_lex_error_reported(self, machine_config):
        (error,) = parse_errors("lda #12ab", machine_config)
        assert isinstance(error, LexError)
        assert error.span == Span(5, 9)

    def test_lex_errors_on_skipped_line(self, machine_config):
        """Lex errors after the first problem on a line are still reported."""
        errors = parse_errors("foo $ 0x", machine_config)
        assert [type(e) for e in errors] == [OpcodeDoesNotExist, LexError, LexError]

    def test_line_starting_with_number(self, machine_config):
        (error,) = parse_errors("5", machine_config)
        assert isinstance(error, Unexpected)
        assert error.expected == ("an identifier",)

    def test_too_many_errors(self, machine_config):
        source = "\n".join(["foo"] * 10)
        parser = Parser(Lexer(source).tokenize(), machine_config.instruction_set, max_errors=3)
        parser.parse()
        errors = list(parser.errors)
        assert len(errors) == 4
        assert isinstance(errors[-1], TooManyErrors)


# =============================================================================
# Structural Mode Tests
# =============================================================================

class TestStructuralMode:
    """Without an instruction set any mnemonic and operand count is accepted."""

    def test_unknown_mnemonics_accepted(self):
        statements, errors = parse_source("frobnicate #1 +2 three")
        assert errors == []
        (inst,) = statements
        assert inst.byte_length == 4

    def test_grammar_still_checked(self):
        _, errors = parse_source("nop :")
        assert len(errors) == 1

    @pytest.mark.parametrize("source", ["loop: nop", "# 5", "lda #", "x $"])
    def test_invalid_lines(self, source):
        _, errors = parse_source(source)
        assert errors
