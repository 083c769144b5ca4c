"""Unit tests for reading the binary BPE model format."""

import dataclasses
import io

import pytest

import bpereader
from bpereader.exceptions import (
    ModelLoadError,
    PolicyError,
    TruncatedInputError,
    UnresolvedReferenceError,
)


class TrickleReader:
    """Binary stream that hands out one byte per read call."""

    def __init__(self, data: bytes) -> None:
        self._buf = io.BytesIO(data)

    def read(self, n: int = -1) -> bytes:
        return self._buf.read(min(n, 1) if n > 0 else n)


# Successful loads
# ---------------------------------------------------------------------------


def test_load_populates_vocabulary(model):
    """Characters land in both vocabulary maps."""
    assert dict(model.char2id) == {"▁": 4, "a": 5, "b": 6, "c": 10}
    assert dict(model.id2char) == {4: "▁", 5: "a", 6: "b", 10: "c"}


def test_load_builds_recipes(model):
    """Base ids expand to themselves, merges to the concatenation of their parts."""
    assert model.recipes[5] == (5,)
    assert model.recipes[7] == (4, 5)
    assert model.recipes[8] == (4, 5, 6)
    assert model.recipes[11] == (4, 5, 6, 10)
    assert model.vocab_size() == 8


def test_load_keeps_rules_in_order(model):
    """Rules are kept in file order."""
    assert [r.result for r in model.rules] == [7, 8, 9, 11]
    assert model.rules[0] == bpereader.Rule(4, 5, 7)


def test_load_builds_reverse_index(model):
    """Spelled recipes map back to their token ids."""
    assert model.reverse_recipes["a"] == 5
    assert model.reverse_recipes["▁ab"] == 8
    assert model.reverse_recipes["ab"] == 9


def test_load_reads_special_tokens(model):
    """Trailing record is read as unk, pad, bos, eos."""
    assert model.special_tokens == bpereader.SpecialTokens(unk=1, pad=0, bos=2, eos=3)


def test_space_id_is_smallest_character_id(model):
    """Word-start marker is the character with the smallest id."""
    assert model.space_id == 4


def test_load_from_short_reads(model_bytes):
    """Streams returning fewer bytes than asked still load completely."""
    model = bpereader.load_model(TrickleReader(model_bytes), "minimum")
    assert model.recipes[11] == (4, 5, 6, 10)


def test_empty_model(build_model):
    """A model without characters or rules loads with only special tokens."""
    model = bpereader.load_model(io.BytesIO(build_model([])), "minimum")
    assert model.vocab_size() == 0
    assert model.space_id == 0


def test_duplicate_ids_last_write_wins(build_model):
    """Later records silently overwrite earlier ones."""
    data = build_model(
        [("a", 1), ("b", 2), ("x", 1)],
        [(1, 2, 3), (2, 1, 3)],
    )
    model = bpereader.load_model(io.BytesIO(data), "minimum")
    assert model.id2char[1] == "x"
    assert model.recipes[3] == (2, 1)
    assert model.reverse_recipes["bx"] == 3


def test_model_is_immutable(model):
    """Neither the model nor its tables can be changed after loading."""
    with pytest.raises(dataclasses.FrozenInstanceError):
        model.space_id = 5
    with pytest.raises(TypeError):
        model.recipes[99] = (5,)
    with pytest.raises(TypeError):
        model.id2char[99] = "z"


# Space marker policies
# ---------------------------------------------------------------------------


def test_minimum_policy_accepts_zero(build_model):
    """An id of 0 read first is a real minimum under the minimum policy."""
    data = build_model([("▁", 0), ("a", 5), ("b", 2)])
    model = bpereader.load_model(io.BytesIO(data), bpereader.SpacePolicy.MINIMUM)
    assert model.space_id == 0


def test_legacy_policy_treats_zero_as_unset(build_model):
    """Under the legacy policy a leading 0 lets later characters take over."""
    data = build_model([("▁", 0), ("a", 5), ("b", 2)])
    model = bpereader.load_model(io.BytesIO(data), bpereader.SpacePolicy.LEGACY)
    assert model.space_id == 2


def test_policies_agree_without_zero(build_model):
    """Both policies pick the smallest id when no character uses 0."""
    data = build_model([("a", 7), ("▁", 3), ("b", 9)])
    for policy in ("minimum", "legacy"):
        assert bpereader.load_model(io.BytesIO(data), policy).space_id == 3


def test_policy_from_environment(build_model, monkeypatch):
    """Loads without an explicit policy follow BPEREADER_SPACE_POLICY."""
    data = build_model([("▁", 0), ("a", 5), ("b", 2)])
    monkeypatch.setenv("BPEREADER_SPACE_POLICY", "LEGACY")
    assert bpereader.load_model(io.BytesIO(data)).space_id == 2
    monkeypatch.delenv("BPEREADER_SPACE_POLICY")
    assert bpereader.load_model(io.BytesIO(data)).space_id == 0


def test_unknown_policy_raises(model_bytes):
    """Unknown policy names are rejected before reading."""
    with pytest.raises(PolicyError):
        bpereader.load_model(io.BytesIO(model_bytes), "maximum")


# Failures
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "cut, field",
    [
        (0, "header"),
        (6, "header"),
        (8 + 12, "character[1]"),
        (8 + 32 + 14, "rule[1]"),
        (8 + 32 + 48 + 10, "special tokens"),
    ],
)
def test_truncated_input(model_bytes, cut, field):
    """Running out of bytes in any field raises TruncatedInputError."""
    with pytest.raises(TruncatedInputError) as exc_info:
        bpereader.load_model(io.BytesIO(model_bytes[:cut]), "minimum")
    assert exc_info.value.field == field


def test_truncated_input_reports_sizes(model_bytes):
    """Error records how many bytes were expected and received."""
    with pytest.raises(TruncatedInputError) as exc_info:
        bpereader.load_model(io.BytesIO(model_bytes[:-3]), "minimum")
    assert exc_info.value.expected == 16
    assert exc_info.value.got == 13


def test_forward_reference_rejected(build_model):
    """A rule using a result defined only by a later rule fails."""
    data = build_model(
        [("▁", 1), ("a", 2), ("b", 3)],
        [(1, 5, 4), (2, 3, 5)],
    )
    with pytest.raises(UnresolvedReferenceError) as exc_info:
        bpereader.load_model(io.BytesIO(data), "minimum")
    assert exc_info.value.token == 5
    assert exc_info.value.rule_index == 0


def test_self_reference_rejected(build_model):
    """A rule cannot reference its own, not yet defined, result."""
    data = build_model([("a", 1)], [(1, 2, 2)])
    with pytest.raises(UnresolvedReferenceError):
        bpereader.load_model(io.BytesIO(data), "minimum")


def test_load_errors_share_base_class(build_model):
    """Structural failures are all ModelLoadError."""
    data = build_model([("a", 1)], [(9, 1, 2)])
    with pytest.raises(ModelLoadError):
        bpereader.load_model(io.BytesIO(data), "minimum")


# Character values
# ---------------------------------------------------------------------------


def test_surrogate_character_loads(build_model):
    """Lone surrogate values load as one-character strings."""
    data = build_model([(0xD800, 1), ("a", 2)], [(1, 2, 3)])
    model = bpereader.load_model(io.BytesIO(data), "minimum")
    assert model.id2char[1] == "\ud800"
    assert model.id_to_token(3) == "\ud800a"


def test_out_of_range_character_reads_as_replacement(build_model):
    """Values past U+10FFFF load as U+FFFD instead of failing."""
    data = build_model([(0x110000, 1), (0xFFFFFFFF, 2), ("a", 3)])
    model = bpereader.load_model(io.BytesIO(data), "minimum")
    assert model.id2char[1] == "\ufffd"
    assert model.id2char[2] == "\ufffd"
    # both map to the same character, the later record wins
    assert model.char2id["\ufffd"] == 2
    assert model.id_to_token(3) == "a"


# Files
# ---------------------------------------------------------------------------


def test_load_model_file(model_path):
    """Loading from a path matches loading from a stream."""
    model = bpereader.load_model_file(model_path, "minimum")
    assert model.recipes[8] == (4, 5, 6)


def test_load_model_file_missing(tmp_path):
    """A missing path raises ModelLoadError with the path attached."""
    path = tmp_path / "missing.bpe"
    with pytest.raises(ModelLoadError) as exc_info:
        bpereader.load_model_file(path)
    assert exc_info.value.model_path == str(path)
