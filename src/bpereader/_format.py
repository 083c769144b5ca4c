"""
Fixed binary layout of a serialized BPE model.

All integers are big-endian with no padding::

    n_chars  n_rules                    uint32, uint32
    (char, char_id)     * n_chars       uint32, uint32
    (left, right, result) * n_rules     uint32 x 3
    unk pad bos eos                     int32 x 4
"""

import struct
from dataclasses import dataclass
from typing import BinaryIO, Final

from .exceptions import TruncatedInputError
from .types import Token

HEADER: Final[struct.Struct] = struct.Struct(">II")
CHAR_RECORD: Final[struct.Struct] = struct.Struct(">II")
RULE_RECORD: Final[struct.Struct] = struct.Struct(">III")
SPECIAL_RECORD: Final[struct.Struct] = struct.Struct(">iiii")

UNSET: Final[int] = -1


@dataclass(frozen=True, slots=True)
class Rule:
    """A merge rule: ``left`` followed by ``right`` forms ``result``."""

    left: Token
    right: Token
    result: Token


@dataclass(frozen=True, slots=True)
class SpecialTokens:
    """Ids of the four reserved roles; ``-1`` marks a role as unset."""

    unk: int = UNSET
    pad: int = UNSET
    bos: int = UNSET
    eos: int = UNSET


def read_record(source: BinaryIO, record: struct.Struct, field: str) -> tuple:
    """
    Read exactly one fixed-width record from ``source`` and unpack it.

    :param source: Binary stream positioned at the record.
    :param record: Layout of the record.
    :param field: Name of the field used in error messages.
    :raises TruncatedInputError: If fewer than ``record.size`` bytes remain.
    """
    buf = bytearray()
    # raw streams may return short reads before EOF
    while len(buf) < record.size:
        chunk = source.read(record.size - len(buf))
        if not chunk:
            raise TruncatedInputError(
                "unexpected end of model data",
                field=field,
                expected=record.size,
                got=len(buf),
            )
        buf += chunk
    return record.unpack(bytes(buf))


def read_rule(source: BinaryIO, index: int) -> Rule:
    """Read the 12-byte record of rule number ``index``."""
    left, right, result = read_record(source, RULE_RECORD, f"rule[{index}]")
    return Rule(left, right, result)


def read_special_tokens(source: BinaryIO) -> SpecialTokens:
    """Read the trailing 16-byte special token record."""
    unk, pad, bos, eos = read_record(source, SPECIAL_RECORD, "special tokens")
    return SpecialTokens(unk=unk, pad=pad, bos=bos, eos=eos)
