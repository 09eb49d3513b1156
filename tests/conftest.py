# =============================================================================
# conftest.py - Shared Fixtures
# =============================================================================
# Instruction-set configurations used across the test modules.
# =============================================================================

import json

import pytest

from nandasm.assembler import AssemblerConfig


BASIC_OPCODES = [
    {"mnemonic": "nop", "binary": 0x00, "num_args": 0},
    {"mnemonic": "lda", "binary": 0x01, "num_args": 1},
    {"mnemonic": "hlt", "binary": 0xFF, "num_args": 0},
]

MACHINE_OPCODES = [
    {"mnemonic": "nop", "binary": 0x00, "num_args": 0},
    {"mnemonic": "lda", "binary": 0x01, "args": ["Immediate"]},
    {"mnemonic": "add", "binary": 0x02, "num_args": 3},
    {"mnemonic": "jmp", "binary": 0x04, "num_args": 1},
    {"mnemonic": "ldb", "binary": 0x05, "args": ["Indirect"]},
    {"mnemonic": "mov", "binary": 0x06, "args": ["Indirect", "Immediate"]},
    {"mnemonic": "hlt", "binary": 0xFF, "num_args": 0},
]


@pytest.fixture
def basic_config():
    """The three-opcode configuration: nop, lda (1 operand), hlt."""
    return AssemblerConfig.from_dict({"opcodes": BASIC_OPCODES})


@pytest.fixture
def machine_config():
    """A richer configuration mixing legacy and typed operand shapes."""
    return AssemblerConfig.from_dict({"opcodes": MACHINE_OPCODES})


@pytest.fixture
def jump_config():
    """A configuration with only jmp (1 operand)."""
    return AssemblerConfig.from_dict({"opcodes": [
        {"mnemonic": "jmp", "binary": 0x04, "num_args": 1},
    ]})


@pytest.fixture
def machine_config_file(tmp_path):
    """The machine configuration written to a JSON file."""
    path = tmp_path / "machine.json"
    path.write_text(json.dumps({"opcodes": MACHINE_OPCODES}))
    return path
