"""
nandasm - NAND Assembler Command-Line Interface
===============================================

This module implements the command-line interface for the assembler and
the source formatter.

Commands
--------
- **asm**: Assemble a source file into a binary
- **fmt**: Format a source file

Usage Examples
--------------
Basic assembly (writes program.bin):
    $ nandasm asm program.asm -c machine.json

With output and symbol files:
    $ nandasm asm program.asm -c machine.json -o out.bin -s out.sym

Print the machine code as hex:
    $ nandasm asm program.asm -c machine.json --hex

Format a file in place, or check that it is formatted:
    $ nandasm fmt program.asm -i
    $ nandasm fmt program.asm --check

Configuration File
------------------
The instruction set is a JSON file:

    {"opcodes": [
        {"mnemonic": "nop", "binary": 0, "num_args": 0},
        {"mnemonic": "lda", "binary": 1, "args": ["Immediate"]}
    ]}
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from nandasm import __version__
from nandasm.assembler import Assembler, AssemblerConfig, format_source
from nandasm.cli.errors import ExitCode, handle_cli_exception


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.version_option(__version__, "--version", "-V", prog_name="nandasm")
def main() -> None:
    """
    Assembler for configurable NAND-style machines.

    \b
    Commands:
      asm   Assemble a source file
      fmt   Format a source file

    \b
    Examples:
      nandasm asm program.asm -c machine.json
      nandasm fmt program.asm --check
    """
    pass


# =============================================================================
# Assemble Command
# =============================================================================

@main.command("asm")
@click.argument(
    "source_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-c", "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Instruction-set configuration (JSON)",
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output binary file (default: source.bin)",
)
@click.option(
    "--hex",
    "hex_output",
    is_flag=True,
    help="Print the machine code as hex instead of writing a binary",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
def cmd_asm(
    source_file: Path,
    config_file: Path,
    output: Optional[Path],
    hex_output: bool,
    symbols: Optional[Path],
    verbose: bool,
) -> None:
    """
    Assemble a source file.

    SOURCE_FILE is the assembly source to assemble.

    \b
    Examples:
        nandasm asm prog.asm -c machine.json            # Outputs prog.bin
        nandasm asm prog.asm -c machine.json -o a.bin   # Specify output file
        nandasm asm prog.asm -c machine.json --hex      # Print hex
    """
    setup_logging(verbose)
    source = None

    try:
        config = AssemblerConfig.from_file(config_file)
        if verbose:
            click.echo(f"Loaded {len(config.opcodes)} opcodes from {config_file}")

        source = source_file.read_text(encoding="utf-8")
        program = Assembler(config).assemble_program(source, str(source_file))

        if hex_output:
            click.echo(program.to_hex())

        # --hex replaces the binary unless an output file is named explicitly
        if output is not None or not hex_output:
            output_file = output if output is not None else source_file.with_suffix(".bin")
            output_file.write_bytes(program.code)
            if verbose:
                click.echo(f"Wrote {program.size} bytes to {output_file}")

        if symbols:
            symbols.write_text(program.symbol_listing())
            if verbose:
                click.echo(f"Wrote symbols to {symbols}")

        if verbose:
            click.echo(
                f"Assembly complete: {program.size} bytes, "
                f"{len(program.symbols)} labels"
            )

    except Exception as e:
        handle_cli_exception(
            e,
            verbose=verbose,
            error_type="Assembly",
            source=source,
            filename=str(source_file),
        )


# =============================================================================
# Format Command
# =============================================================================

@main.command("fmt")
@click.argument(
    "source_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-c", "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Also check mnemonics and operands against this configuration",
)
@click.option(
    "--check",
    is_flag=True,
    help="Exit with status 1 if the file is not already formatted",
)
@click.option(
    "-i", "--in-place",
    is_flag=True,
    help="Rewrite the file instead of printing the result",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
def cmd_fmt(
    source_file: Path,
    config_file: Optional[Path],
    check: bool,
    in_place: bool,
    verbose: bool,
) -> None:
    """
    Format a source file.

    SOURCE_FILE is the assembly source to format. The result is printed
    unless --in-place or --check is given.

    \b
    Examples:
        nandasm fmt prog.asm            # Print formatted source
        nandasm fmt prog.asm -i         # Rewrite prog.asm
        nandasm fmt prog.asm --check    # Fail if prog.asm needs formatting
    """
    if check and in_place:
        click.echo("Error: --check and --in-place are mutually exclusive", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    setup_logging(verbose)
    source = None

    try:
        config = AssemblerConfig.from_file(config_file) if config_file else None
        source = source_file.read_text(encoding="utf-8")
        formatted = format_source(source, config)

        if check:
            if formatted != source:
                click.echo(f"{source_file} would be reformatted", err=True)
                sys.exit(ExitCode.BUILD_ERROR)
            if verbose:
                click.echo(f"{source_file} is already formatted")
        elif in_place:
            if formatted != source:
                source_file.write_text(formatted, encoding="utf-8")
                if verbose:
                    click.echo(f"Reformatted {source_file}")
            elif verbose:
                click.echo(f"{source_file} is already formatted")
        else:
            click.echo(formatted, nl=False)

    except Exception as e:
        handle_cli_exception(
            e,
            verbose=verbose,
            error_type="Format",
            source=source,
            filename=str(source_file),
        )


if __name__ == "__main__":
    main()
