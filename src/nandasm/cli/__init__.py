"""
nandasm Command-Line Interface
==============================

This package provides the nandasm command-line tool:

- **nandasm asm**: assemble source into a binary
- **nandasm fmt**: format source in canonical layout

The tool is a Click-based CLI application with help for every command and
source-annotated error reports.
"""

__all__ = ["nandasm"]
