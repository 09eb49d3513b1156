"""
Assembler Configuration
=======================

AssemblerConfig is the caller-supplied description of the instruction set:
an ordered list of opcodes. It is validated once, when it is created, and
is immutable afterwards, so a single instance can be shared by any number
of assemble() and format() calls, including from several threads.

Configurations are usually loaded from JSON:

    {
        "opcodes": [
            {"mnemonic": "nop", "binary": 0,   "num_args": 0},
            {"mnemonic": "lda", "binary": 1,   "args": ["Immediate"]},
            {"mnemonic": "ldb", "binary": 5,   "args": ["Indirect"]},
            {"mnemonic": "hlt", "binary": 255, "numArgs": 0}
        ]
    }

Example
-------
>>> from nandasm.assembler.config import AssemblerConfig
>>> config = AssemblerConfig.from_dict({"opcodes": [
...     {"mnemonic": "nop", "binary": 0, "num_args": 0},
... ]})
>>> config.instruction_set.lookup("nop").encoding
0
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

from nandasm.assembler.opcodes import InstructionSet, OpcodeSpec
from nandasm.errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, init=False)
class AssemblerConfig:
    """
    Immutable instruction-set configuration.

    Attributes:
        opcodes: The opcodes, in configuration order
        instruction_set: The validated lookup table built from them

    Raises:
        ConfigError: On construction, if the opcodes are invalid
    """
    opcodes: tuple[OpcodeSpec, ...]
    instruction_set: InstructionSet = field(repr=False, compare=False)

    def __init__(self, opcodes: Iterable[OpcodeSpec]):
        opcodes = tuple(opcodes)
        for spec in opcodes:
            if not isinstance(spec, OpcodeSpec):
                raise ConfigError(f"expected OpcodeSpec, got {type(spec).__name__}")
        object.__setattr__(self, "opcodes", opcodes)
        object.__setattr__(self, "instruction_set", InstructionSet(opcodes))

    # =========================================================================
    # Loading
    # =========================================================================

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AssemblerConfig":
        """
        Build a configuration from a mapping with an "opcodes" list.

        A bare list of opcode entries is also accepted.
        """
        if isinstance(data, Mapping):
            if "opcodes" not in data:
                raise ConfigError("configuration has no 'opcodes' list")
            entries = data["opcodes"]
        else:
            entries = data

        if not isinstance(entries, list):
            raise ConfigError("'opcodes' must be a list of opcode entries")

        return cls(OpcodeSpec.from_dict(entry) for entry in entries)

    @classmethod
    def from_json(cls, text: str) -> "AssemblerConfig":
        """Build a configuration from JSON text."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(f"invalid JSON configuration: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: str | Path) -> "AssemblerConfig":
        """
        Load a JSON configuration file.

        Raises:
            ConfigError: If the file content is invalid
            FileNotFoundError: If the file does not exist
        """
        path = Path(path)
        config = cls.from_json(path.read_text(encoding="utf-8"))
        logger.debug(f"Loaded {len(config.opcodes)} opcodes from {path}")
        return config

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-compatible form of this configuration."""
        return {"opcodes": [spec.to_dict() for spec in self.opcodes]}

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def get_opcode(self, mnemonic: str) -> OpcodeSpec | None:
        """Get an opcode by its mnemonic (case-sensitive)."""
        return self.instruction_set.lookup(mnemonic)
