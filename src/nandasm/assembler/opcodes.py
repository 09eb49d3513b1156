"""
Instruction-Set Definition
==========================

This module defines the building blocks of a user-supplied instruction set:
the operand kinds, the per-mnemonic OpcodeSpec, and the InstructionSet
table the parser queries while reading source.

Unlike a fixed CPU, the NAND-style machine has no built-in opcodes. The
caller lists every mnemonic together with its opcode byte and its operand
shape, and the assembler validates that list once, up front.

Operand Shapes
--------------
Two configuration forms exist and both map onto one canonical shape, an
ordered tuple of OperandKind:

| Form    | Example entry                                   | Shape               |
|---------|-------------------------------------------------|---------------------|
| Legacy  | {"mnemonic": "add", "binary": 2, "num_args": 3} | (ANY, ANY, ANY)     |
| Typed   | {"mnemonic": "ldb", "binary": 5,                | (INDIRECT,)         |
|         |  "args": ["Indirect"]}                          |                     |

A single entry must use exactly one form. Slot rules:

| Slot      | #n         | +n         | bare n     | label            |
|-----------|------------|------------|------------|------------------|
| ANY       | immediate  | indirect   | immediate  | immediate        |
| IMMEDIATE | immediate  | error      | immediate  | immediate        |
| INDIRECT  | error      | indirect   | indirect   | indirect         |

Every instruction occupies one opcode byte plus one byte per operand.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Optional

from nandasm.errors import ConfigError, find_similar


# =============================================================================
# Operand Kinds
# =============================================================================

class OperandKind(Enum):
    """
    The kind of value an operand slot accepts.

    ANY only appears in shapes converted from the legacy numeric-arity
    form, where the configuration says how many operands an opcode takes
    but not what they are.
    """
    IMMEDIATE = auto()  # #value, used directly
    INDIRECT = auto()   # +value, a memory reference
    ANY = auto()        # legacy slot, either of the above

    def __str__(self) -> str:
        return self.name.lower()

    @classmethod
    def from_name(cls, name: str) -> "OperandKind":
        """
        Parse a configuration name ("Immediate", "indirect", ...).

        Raises:
            ConfigError: If the name is not an operand kind
        """
        try:
            kind = cls[str(name).strip().upper()]
        except KeyError:
            raise ConfigError(f"unknown operand kind '{name}'") from None
        if kind is cls.ANY:
            raise ConfigError("operand kind 'any' is only implied by 'num_args'")
        return kind

    def accepts(self, other: "OperandKind") -> bool:
        """Return True if a value of kind `other` fits this slot."""
        return self is OperandKind.ANY or self is other


# =============================================================================
# Opcode Specification
# =============================================================================

@dataclass(frozen=True)
class OpcodeSpec:
    """
    One instruction of the configured instruction set.

    Attributes:
        mnemonic: Case-sensitive instruction name (e.g. "nop", "lda")
        encoding: The opcode byte (0-255)
        operands: Ordered operand kinds; the length is the arity
        typed: False when the shape was converted from a legacy arity
    """
    mnemonic: str
    encoding: int
    operands: tuple[OperandKind, ...] = ()
    typed: bool = True

    @property
    def arity(self) -> int:
        """Number of operands the instruction takes."""
        return len(self.operands)

    @property
    def size(self) -> int:
        """Encoded size in bytes (opcode byte + one byte per operand)."""
        return 1 + len(self.operands)

    def __repr__(self) -> str:
        shape = ", ".join(str(kind) for kind in self.operands)
        return f"OpcodeSpec({self.mnemonic!r}, ${self.encoding:02X}, [{shape}])"

    @classmethod
    def legacy(cls, mnemonic: str, encoding: int, num_args: int) -> "OpcodeSpec":
        """Build a spec from the numeric-arity form."""
        if isinstance(num_args, bool) or not isinstance(num_args, int) or num_args < 0:
            raise ConfigError(
                f"opcode '{mnemonic}': argument count must be a non-negative integer, "
                f"got {num_args!r}",
                mnemonic,
            )
        return cls(mnemonic, encoding, (OperandKind.ANY,) * num_args, typed=False)

    @classmethod
    def with_kinds(
        cls, mnemonic: str, encoding: int, kinds: Iterable[OperandKind | str]
    ) -> "OpcodeSpec":
        """Build a spec from the typed operand-kind form."""
        if isinstance(kinds, str):
            raise ConfigError(f"opcode '{mnemonic}': 'args' must be a list", mnemonic)
        operands = tuple(
            kind if isinstance(kind, OperandKind) else OperandKind.from_name(kind)
            for kind in kinds
        )
        return cls(mnemonic, encoding, operands, typed=True)

    @classmethod
    def from_dict(cls, entry: Mapping[str, Any]) -> "OpcodeSpec":
        """
        Build a spec from a configuration mapping.

        Accepted keys:
            mnemonic (or name): instruction name
            binary (or encoding): opcode byte
            num_args (or numArgs): legacy operand count
            args: list of operand kind names

        Raises:
            ConfigError: If the entry is malformed or mixes both shape forms
        """
        if not isinstance(entry, Mapping):
            raise ConfigError(f"opcode entry must be an object, got {type(entry).__name__}")

        mnemonic = entry.get("mnemonic", entry.get("name"))
        if not isinstance(mnemonic, str):
            raise ConfigError(f"opcode entry {dict(entry)!r} has no mnemonic")

        encoding = entry.get("binary", entry.get("encoding"))
        if encoding is None:
            raise ConfigError(f"opcode '{mnemonic}' has no binary encoding", mnemonic)

        num_args = entry.get("num_args", entry.get("numArgs"))
        args = entry.get("args")

        if num_args is not None and args is not None:
            raise ConfigError(
                f"opcode '{mnemonic}' declares both 'num_args' and 'args'; "
                "use exactly one operand shape",
                mnemonic,
            )
        if args is not None:
            return cls.with_kinds(mnemonic, encoding, args)
        return cls.legacy(mnemonic, encoding, num_args if num_args is not None else 0)

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the configuration form this spec came from."""
        if self.typed:
            return {
                "mnemonic": self.mnemonic,
                "binary": self.encoding,
                "args": [kind.name.capitalize() for kind in self.operands],
            }
        return {"mnemonic": self.mnemonic, "binary": self.encoding, "num_args": self.arity}


# =============================================================================
# Instruction-Set Table
# =============================================================================

@dataclass(frozen=True, init=False)
class InstructionSet:
    """
    Validated, read-only lookup table over a list of OpcodeSpec.

    The table is immutable after construction and safe to share between
    threads. Construction fails with ConfigError on:
    - empty or whitespace-only mnemonics
    - mnemonics containing characters outside [A-Za-z0-9_] or starting
      with a digit (they could never be written in source)
    - duplicate mnemonics
    - encodings outside 0-255

    Usage:
        table = InstructionSet([OpcodeSpec.legacy("nop", 0x00, 0)])
        spec = table.lookup("nop")
    """
    opcodes: tuple[OpcodeSpec, ...]
    _by_mnemonic: Mapping[str, OpcodeSpec] = field(init=False, repr=False, compare=False)

    def __init__(self, opcodes: Iterable[OpcodeSpec]):
        opcodes = tuple(opcodes)
        table: dict[str, OpcodeSpec] = {}

        for spec in opcodes:
            _validate_spec(spec)
            if spec.mnemonic in table:
                raise ConfigError(f"duplicate mnemonic '{spec.mnemonic}'", spec.mnemonic)
            table[spec.mnemonic] = spec

        object.__setattr__(self, "opcodes", opcodes)
        object.__setattr__(self, "_by_mnemonic", MappingProxyType(table))

    @classmethod
    def build(cls, config) -> "InstructionSet":
        """Build the table for an AssemblerConfig (or any iterable of specs)."""
        opcodes = getattr(config, "opcodes", config)
        return cls(opcodes)

    def lookup(self, mnemonic: str) -> Optional[OpcodeSpec]:
        """Return the spec for a mnemonic, or None if it is not defined."""
        return self._by_mnemonic.get(mnemonic)

    def similar(self, mnemonic: str) -> list[str]:
        """Suggest defined mnemonics close to an unknown one."""
        return find_similar(mnemonic, self.mnemonics)

    @property
    def mnemonics(self) -> tuple[str, ...]:
        """Defined mnemonics in configuration order."""
        return tuple(self._by_mnemonic)

    def __contains__(self, mnemonic: object) -> bool:
        return mnemonic in self._by_mnemonic

    def __iter__(self) -> Iterator[OpcodeSpec]:
        return iter(self.opcodes)

    def __len__(self) -> int:
        return len(self.opcodes)


def _validate_spec(spec: OpcodeSpec) -> None:
    """Check a single spec; raises ConfigError."""
    mnemonic = spec.mnemonic
    if not isinstance(mnemonic, str) or not mnemonic.strip():
        raise ConfigError("mnemonics must not be empty or blank", mnemonic)
    if not (mnemonic[0].isalpha() or mnemonic[0] == "_") or not all(
        c.isalnum() or c == "_" for c in mnemonic
    ) or not mnemonic.isascii():
        raise ConfigError(f"mnemonic '{mnemonic}' is not a valid identifier", mnemonic)

    encoding = spec.encoding
    if isinstance(encoding, bool) or not isinstance(encoding, int) or not 0 <= encoding <= 0xFF:
        raise ConfigError(
            f"opcode '{mnemonic}': encoding must be a byte (0-255), got {encoding!r}",
            mnemonic,
        )

    for kind in spec.operands:
        if not isinstance(kind, OperandKind):
            raise ConfigError(f"opcode '{mnemonic}': invalid operand kind {kind!r}", mnemonic)
        if spec.typed and kind is OperandKind.ANY:
            raise ConfigError(
                f"opcode '{mnemonic}': typed shapes must use immediate or indirect",
                mnemonic,
            )
