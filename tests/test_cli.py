# =============================================================================
# test_cli.py - Command-Line Interface Tests
# =============================================================================
# Tests for the nandasm asm and fmt commands.
# =============================================================================

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from nandasm import __version__
from nandasm.cli.errors import ExitCode
from nandasm.cli.nandasm import main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def program(tmp_path):
    """A small valid program."""
    path = tmp_path / "prog.asm"
    path.write_text("start:\n\tlda #0x05\n\tjmp start\n")
    return path


# =============================================================================
# General Tests
# =============================================================================

class TestGeneral:
    """Test help and version output."""

    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "asm" in result.output
        assert "fmt" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


# =============================================================================
# Assemble Command Tests
# =============================================================================

class TestAsmCommand:
    """Test the asm command."""

    def test_default_output(self, runner, program, machine_config_file):
        result = runner.invoke(main, ["asm", str(program), "-c", str(machine_config_file)])
        assert result.exit_code == 0, result.output
        assert program.with_suffix(".bin").read_bytes() == bytes([0x01, 0x05, 0x04, 0x00])

    def test_output_option(self, runner, program, machine_config_file, tmp_path):
        out = tmp_path / "out.bin"
        result = runner.invoke(
            main, ["asm", str(program), "-c", str(machine_config_file), "-o", str(out)]
        )
        assert result.exit_code == 0, result.output
        assert out.read_bytes() == bytes([0x01, 0x05, 0x04, 0x00])

    def test_hex_output(self, runner, program, machine_config_file):
        result = runner.invoke(
            main, ["asm", str(program), "-c", str(machine_config_file), "--hex"]
        )
        assert result.exit_code == 0, result.output
        assert result.output.strip() == "01 05 04 00"
        assert not program.with_suffix(".bin").exists()

    def test_symbol_file(self, runner, program, machine_config_file, tmp_path):
        symbols = tmp_path / "prog.sym"
        result = runner.invoke(
            main,
            ["asm", str(program), "-c", str(machine_config_file), "-s", str(symbols)],
        )
        assert result.exit_code == 0, result.output
        assert symbols.read_text() == "start = $00\n"

    def test_verbose(self, runner, program, machine_config_file):
        result = runner.invoke(
            main, ["asm", str(program), "-c", str(machine_config_file), "-v"]
        )
        assert result.exit_code == 0, result.output
        assert "Assembly complete: 4 bytes, 1 labels" in result.output

    def test_assembly_errors(self, runner, machine_config_file, tmp_path):
        source = tmp_path / "bad.asm"
        source.write_text("nop\njmp MISSING\n")
        result = runner.invoke(main, ["asm", str(source), "-c", str(machine_config_file)])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "bad.asm:2:5: error: label 'MISSING' does not exist" in result.output
        assert "^^^^^^^" in result.output
        assert not source.with_suffix(".bin").exists()

    def test_source_not_utf8(self, runner, machine_config_file, tmp_path):
        source = tmp_path / "latin1.asm"
        source.write_bytes(b"; caf\xe9\nnop\n")
        result = runner.invoke(main, ["asm", str(source), "-c", str(machine_config_file)])
        assert result.exit_code == ExitCode.INVALID_ARGS
        assert "Internal error" not in result.output

    def test_config_not_utf8(self, runner, program, tmp_path):
        config = tmp_path / "latin1.json"
        config.write_bytes(b'{"opcodes": [{"mnemonic": "caf\xe9", "binary": 0}]}')
        result = runner.invoke(main, ["asm", str(program), "-c", str(config)])
        assert result.exit_code == ExitCode.INVALID_ARGS

    def test_config_required(self, runner, program):
        result = runner.invoke(main, ["asm", str(program)])
        assert result.exit_code == 2

    def test_missing_source(self, runner, machine_config_file, tmp_path):
        result = runner.invoke(
            main, ["asm", str(tmp_path / "nope.asm"), "-c", str(machine_config_file)]
        )
        assert result.exit_code == 2

    def test_invalid_config(self, runner, program, tmp_path):
        config = tmp_path / "bad.json"
        config.write_text(json.dumps({"opcodes": [
            {"mnemonic": "nop", "binary": 0},
            {"mnemonic": "nop", "binary": 1},
        ]}))
        result = runner.invoke(main, ["asm", str(program), "-c", str(config)])
        assert result.exit_code == ExitCode.INVALID_ARGS
        assert "Configuration error" in result.output


# =============================================================================
# Format Command Tests
# =============================================================================

class TestFmtCommand:
    """Test the fmt command."""

    def test_prints_formatted(self, runner, tmp_path):
        source = tmp_path / "prog.asm"
        source.write_text("loop:\n   nop   ;  spin\n")
        result = runner.invoke(main, ["fmt", str(source)])
        assert result.exit_code == 0, result.output
        assert result.output == "loop:\n\tnop ; spin\n"

    def test_in_place(self, runner, tmp_path):
        source = tmp_path / "prog.asm"
        source.write_text("lda   #0xff\n\n\n")
        result = runner.invoke(main, ["fmt", str(source), "-i"])
        assert result.exit_code == 0, result.output
        assert source.read_text() == "lda #0xFF\n"

    def test_check_formatted(self, runner, program):
        result = runner.invoke(main, ["fmt", str(program), "--check"])
        assert result.exit_code == 0, result.output

    def test_check_unformatted(self, runner, tmp_path):
        source = tmp_path / "prog.asm"
        source.write_text("  nop\n")
        result = runner.invoke(main, ["fmt", str(source), "--check"])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "would be reformatted" in result.output
        assert source.read_text() == "  nop\n"

    def test_check_and_in_place_exclusive(self, runner, program):
        result = runner.invoke(main, ["fmt", str(program), "--check", "-i"])
        assert result.exit_code == ExitCode.INVALID_ARGS

    def test_invalid_source(self, runner, tmp_path):
        source = tmp_path / "bad.asm"
        source.write_text("nop $\n")
        result = runner.invoke(main, ["fmt", str(source)])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "unexpected character '$'" in result.output

    def test_non_ascii_comment(self, runner, tmp_path):
        source = tmp_path / "prog.asm"
        source.write_bytes("nop   ; caf\u00e9\n".encode("utf-8"))
        result = runner.invoke(main, ["fmt", str(source), "-i"])
        assert result.exit_code == 0, result.output
        assert source.read_bytes() == "nop ; caf\u00e9\n".encode("utf-8")

    def test_source_not_utf8(self, runner, tmp_path):
        source = tmp_path / "latin1.asm"
        source.write_bytes(b"nop ; caf\xe9\n")
        result = runner.invoke(main, ["fmt", str(source)])
        assert result.exit_code == ExitCode.INVALID_ARGS

    def test_with_config(self, runner, machine_config_file, tmp_path):
        source = tmp_path / "prog.asm"
        source.write_text("frob 1\n")
        result = runner.invoke(main, ["fmt", str(source), "-c", str(machine_config_file)])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "opcode 'frob' does not exist" in result.output
