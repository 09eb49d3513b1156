# =============================================================================
# test_errors.py - Diagnostic Tests
# =============================================================================
# Tests for spans, diagnostic messages and source-annotated rendering.
# =============================================================================

import pytest

from nandasm.errors import (
    AssemblyFailed,
    ConfigError,
    DuplicateLabel,
    ErrorCollector,
    NandAsmError,
    OpcodeDoesNotExist,
    SourceLocation,
    Span,
    TooManyErrors,
    Unexpected,
    UnknownLabel,
    ValueOutOfRange,
    byte_offsets,
    char_offset,
    find_similar,
    join_expected,
)


# =============================================================================
# Span Tests
# =============================================================================

class TestSpan:
    """Test span helpers."""

    def test_invalid_span(self):
        with pytest.raises(ValueError):
            Span(5, 2)

    def test_join(self):
        assert Span(4, 6).join(Span(1, 2)) == Span(1, 6)

    def test_len_and_text(self):
        span = Span(4, 7)
        assert len(span) == 3
        assert span.text("jmp end") == "end"

    @pytest.mark.parametrize("source,offset,line,column", [
        ("nop", 0, 1, 1),
        ("nop\nhlt", 4, 2, 1),
        ("nop\r\nhlt", 5, 2, 1),
        ("nop\rhlt", 4, 2, 1),
        ("a:\n  jmp a", 10, 2, 8),
        ("\u00e9\nx", 3, 2, 1),
        ("\u00e9 x", 3, 1, 3),
    ])
    def test_locate(self, source, offset, line, column):
        location = Span(offset, offset).locate(source, "f.asm")
        assert location == SourceLocation("f.asm", line, column)
        assert str(location) == f"f.asm:{line}:{column}"

    def test_byte_offsets(self):
        assert byte_offsets("a\u00e9\u20ac\U0001F600") == [0, 1, 3, 6, 10]

    def test_char_offset(self):
        """Offsets inside a multi-byte character map to its start."""
        source = "a\u00e9\u20ac"
        assert [char_offset(source, n) for n in range(8)] == [0, 1, 1, 2, 2, 2, 3, 3]

    def test_text_after_non_ascii(self):
        assert Span(8, 11).text("; caf\u00e9\nfoo") == "foo"


# =============================================================================
# Message Tests
# =============================================================================

class TestMessages:
    """Test diagnostic messages, codes and hints."""

    def test_join_expected(self):
        assert join_expected([]) == "nothing"
        assert join_expected(["a"]) == "a"
        assert join_expected(["a", "b", "c"]) == "a, b or c"

    def test_unexpected_message(self):
        error = Unexpected(["a number", "an identifier"], "'+'", Span(4, 5))
        assert error.message == "expected a number or an identifier, but found '+'"
        assert str(error) == f"{error.message} (at 4..5)"

    def test_codes(self):
        assert OpcodeDoesNotExist("x", Span(0, 1)).code == "nandasm::opcode_dne"
        assert UnknownLabel("x", Span(0, 1)).code == "nandasm::label_dne"
        assert ConfigError("bad").code == "nandasm::config"

    def test_opcode_hint(self):
        assert OpcodeDoesNotExist("x", Span(0, 1)).hint == "try using a different opcode"
        error = OpcodeDoesNotExist("lad", Span(0, 3), similar=["lda"])
        assert error.hint == "did you mean 'lda'?"

    def test_config_error_has_no_span(self):
        assert ConfigError("bad").spans == ()

    def test_duplicate_label_spans(self):
        error = DuplicateLabel("A", Span(0, 2), Span(3, 5))
        assert error.span == Span(3, 5)
        assert error.spans == (Span(3, 5), Span(0, 2))

    def test_find_similar(self):
        assert find_similar("loop", ["LOOP", "lop", "loops", "start"]) == [
            "LOOP", "lop", "loops",
        ]
        assert find_similar("x", ["x"]) == []

    def test_hierarchy(self):
        assert issubclass(ValueOutOfRange, NandAsmError)
        assert issubclass(AssemblyFailed, NandAsmError)


# =============================================================================
# Rendering Tests
# =============================================================================

class TestRender:
    """Test source-annotated rendering."""

    def test_render_with_underline(self):
        source = "loop:\n    jmp LOPP\n"
        error = UnknownLabel("LOPP", Span(14, 18))
        assert error.render(source, "prog.asm") == (
            "prog.asm:2:9: error: label 'LOPP' does not exist\n"
            "        jmp LOPP\n"
            "            ^^^^\n"
            "hint: labels need to be defined to be used"
        )

    def test_render_zero_width_span(self):
        source = "lda #"
        error = Unexpected(["a number"], "end of input", Span(5, 5))
        lines = error.render(source).splitlines()
        assert lines[2] == " " * 9 + "^"

    def test_render_after_non_ascii(self):
        source = "; caf\u00e9\nfoo \u00e9"
        error = OpcodeDoesNotExist("foo", Span(8, 11))
        assert error.render(source, "p.asm").splitlines()[:3] == [
            "p.asm:2:1: error: opcode 'foo' does not exist",
            "    foo \u00e9",
            "    ^^^",
        ]

    def test_render_underlines_characters(self):
        source = "; \u20ac\nnop \u00e9"
        error = Unexpected(["end of line"], "'\u00e9'", Span(10, 12))
        lines = error.render(source, "p.asm").splitlines()
        assert lines[0].startswith("p.asm:2:5: error:")
        assert lines[2] == " " * 8 + "^"

    def test_render_without_span(self):
        assert ConfigError("bad").render("", "m.json") == "m.json: error: bad"

    def test_duplicate_label_hint_locates_first(self):
        source = "A:\nnop\nA:"
        error = DuplicateLabel("A", Span(0, 2), Span(7, 9))
        rendered = error.render(source, "p.asm")
        assert rendered.startswith("p.asm:3:1: error: label 'A' is already defined")
        assert rendered.endswith("hint: 'A' was first defined at p.asm:1:1")

    def test_assembly_failed_render(self):
        source = "foo\nbar"
        failure = AssemblyFailed([
            OpcodeDoesNotExist("foo", Span(0, 3)),
            OpcodeDoesNotExist("bar", Span(4, 7)),
        ])
        report = failure.render(source, "p.asm")
        assert "p.asm:1:1: error: opcode 'foo' does not exist" in report
        assert "p.asm:2:1: error: opcode 'bar' does not exist" in report
        assert report.endswith("2 errors")


# =============================================================================
# Error Collector Tests
# =============================================================================

class TestErrorCollector:
    """Test batch collection."""

    def test_collects(self):
        collector = ErrorCollector()
        assert not collector.has_errors()
        for message in "abc":
            collector.add(ConfigError(message))
        assert collector.error_count() == 3
        assert [e.message for e in collector] == ["a", "b", "c"]

    def test_limit(self):
        collector = ErrorCollector(max_errors=2)
        collector.add(ConfigError("a"))
        with pytest.raises(TooManyErrors):
            collector.add(ConfigError("b"))
        assert len(collector) == 2

    def test_clear(self):
        collector = ErrorCollector()
        collector.add(ConfigError("a"))
        collector.clear()
        assert len(collector) == 0
