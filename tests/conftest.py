"""Shared fixtures: binary model builder and a small loaded vocabulary."""

import io
import struct

import pytest

import bpereader


def build_model_bytes(
    chars: list[tuple[str | int, int]],
    rules: list[tuple[int, int, int]] = (),
    specials: tuple[int, int, int, int] = (-1, -1, -1, -1),
) -> bytes:
    """Serialize characters, rules and special ids in the binary model layout."""
    out = bytearray(struct.pack(">II", len(chars), len(rules)))
    for char, tok in chars:
        codepoint = ord(char) if isinstance(char, str) else char
        out += struct.pack(">II", codepoint, tok)
    for left, right, result in rules:
        out += struct.pack(">III", left, right, result)
    out += struct.pack(">iiii", *specials)
    return bytes(out)


# pad=0 unk=1 bos=2 eos=3, then the word-start marker as the smallest character id
CHARS = [("▁", 4), ("a", 5), ("b", 6), ("c", 10)]
RULES = [
    (4, 5, 7),  # ▁a
    (7, 6, 8),  # ▁ab
    (5, 6, 9),  # ab
    (8, 10, 11),  # ▁abc
]
SPECIALS = (1, 0, 2, 3)


# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def build_model():
    """Return the binary model builder."""
    return build_model_bytes


@pytest.fixture
def model_bytes() -> bytes:
    """Return the serialized reference vocabulary."""
    return build_model_bytes(CHARS, RULES, SPECIALS)


@pytest.fixture
def model(model_bytes) -> bpereader.Model:
    """Return the reference vocabulary loaded with the default policy."""
    return bpereader.load_model(io.BytesIO(model_bytes), "minimum")


@pytest.fixture
def model_path(model_bytes, tmp_path):
    """Write the reference vocabulary to disk and return its path."""
    path = tmp_path / "vocab.bpe"
    path.write_bytes(model_bytes)
    return path
