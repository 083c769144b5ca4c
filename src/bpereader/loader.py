"""
Reader for the binary BPE model format.
"""

import logging
from os import PathLike
from pathlib import Path
from types import MappingProxyType
from typing import BinaryIO

from ._decorators import log_load_time
from ._format import (
    CHAR_RECORD,
    HEADER,
    Rule,
    read_record,
    read_rule,
    read_special_tokens,
)
from .exceptions import (
    MissingCharacterError,
    ModelLoadError,
    UnresolvedCharacterError,
    UnresolvedReferenceError,
)
from .model import Model, spell
from .policy import SpacePolicy, SpacePolicyName, default_space_policy
from .types import CharVocabulary, IdVocabulary, Recipe, Token

log = logging.getLogger(__name__)

_MAX_CODEPOINT = 0x10FFFF
REPLACEMENT_CHAR = "\ufffd"


def _to_char(codepoint: int) -> str:
    """Convert a character record value into a one-character string."""
    # values past the unicode range read as U+FFFD
    if codepoint > _MAX_CODEPOINT:
        log.debug(f"character value {codepoint:#x} out of range, using U+FFFD")
        return REPLACEMENT_CHAR
    return chr(codepoint)


class _SpaceTracker:
    """Follows character ids as they are read and settles on the word-start marker."""

    def __init__(self, policy: SpacePolicy) -> None:
        self.policy = policy
        self.space_id: Token = 0
        self._seen = False

    def update(self, char_id: Token) -> None:
        if self.policy is SpacePolicy.LEGACY:
            # 0 doubles as "unset" here
            if char_id < self.space_id or self.space_id == 0:
                self.space_id = char_id
            return
        if not self._seen or char_id < self.space_id:
            self.space_id = char_id
            self._seen = True


@log_load_time
def load_model(
    source: BinaryIO, policy: SpacePolicy | SpacePolicyName | None = None
) -> Model:
    """
    Load a BPE model from a binary stream.

    The stream is read once, front to back. Rules must reference tokens
    defined by earlier characters or rules; they are applied in file order.

    :param source: Binary file-like object positioned at the model header.
    :param policy: How the word-start marker is chosen; defaults to the
        environment setting, or ``SpacePolicy.MINIMUM``.
    :return: Fully populated, read-only model.
    :raises TruncatedInputError: If the stream ends inside a field.
    :raises UnresolvedReferenceError: If a rule cites a token not yet defined.
    :raises UnresolvedCharacterError: If a merged recipe cannot be spelled.
    """
    if policy is None:
        policy = default_space_policy()
    elif isinstance(policy, str):
        policy = SpacePolicy.get(policy)

    n_chars, n_rules = read_record(source, HEADER, "header")
    log.debug(f"model header: {n_chars} characters, {n_rules} rules")

    char2id: CharVocabulary = {}
    id2char: IdVocabulary = {}
    recipes: dict[Token, Recipe] = {}
    reverse_recipes: dict[str, Token] = {}
    tracker = _SpaceTracker(policy)

    for i in range(n_chars):
        codepoint, char_id = read_record(source, CHAR_RECORD, f"character[{i}]")
        char = _to_char(codepoint)
        char2id[char] = char_id
        id2char[char_id] = char
        recipes[char_id] = (char_id,)
        reverse_recipes[char] = char_id
        tracker.update(char_id)

    log.debug(f"space marker id {tracker.space_id} ({policy.value} policy)")

    rules: list[Rule] = []
    for i in range(n_rules):
        rule = read_rule(source, i)
        for ref in (rule.left, rule.right):
            if ref not in recipes:
                log.error(f"rule {i}: token {ref} not described before")
                raise UnresolvedReferenceError(
                    "rule references an undefined token", token=ref, rule_index=i
                )
        recipe = recipes[rule.left] + recipes[rule.right]
        recipes[rule.result] = recipe
        try:
            spelled = spell(recipe, id2char)
        except MissingCharacterError as e:
            log.error(f"rule {i}: token {e.token} has no corresponding character")
            raise UnresolvedCharacterError(
                f"rule {i} expands to a token without a character", token=e.token
            ) from e
        reverse_recipes[spelled] = rule.result
        rules.append(rule)

    log.debug(f"resolved {len(rules)} merge rules")

    specials = read_special_tokens(source)
    log.debug(f"special tokens: {specials}")

    return Model(
        char2id=MappingProxyType(char2id),
        id2char=MappingProxyType(id2char),
        rules=tuple(rules),
        recipes=MappingProxyType(recipes),
        reverse_recipes=MappingProxyType(reverse_recipes),
        special_tokens=specials,
        space_id=tracker.space_id,
    )


def load_model_file(
    path: str | PathLike[str], policy: SpacePolicy | SpacePolicyName | None = None
) -> Model:
    """
    Load a BPE model from a file on disk.

    :raises ModelLoadError: If the path does not exist, or any error raised by
        :func:`load_model`.
    """
    model_path = Path(path)
    if not model_path.is_file():
        raise ModelLoadError("model filepath does not exist", model_path=str(model_path))

    log.info(f"loading model from {model_path}")
    with model_path.open("rb") as f:
        model = load_model(f, policy)

    log.info(
        f"model loaded successfully: {len(model.id2char)} characters, "
        f"{len(model.rules)} merge rules, {model.vocab_size()} total tokens"
    )
    return model


__all__ = ["load_model", "load_model_file"]
