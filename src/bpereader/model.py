"""
Loaded BPE vocabulary model and the decode paths built on it.
"""

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Final

import regex as re

from ._format import Rule, SpecialTokens
from .exceptions import (
    DecodeError,
    MalformedIdentifierError,
    MissingCharacterError,
    StreamReadError,
    UnknownTokenIDError,
)
from .types import Recipe, Token

UNK_TOKEN: Final[str] = "<UNK>"
PAD_TOKEN: Final[str] = "<PAD>"
BOS_TOKEN: Final[str] = "<BOS>"
EOS_TOKEN: Final[str] = "<EOS>"

MAX_TOKEN: Final[int] = 0xFFFFFFFF

# whitespace runs delimit fields; only plain ascii digits form an id
_FIELD_PAT: Final = re.compile(r"\S+")
_TOKEN_PAT: Final = re.compile(r"[0-9]+")

log = logging.getLogger(__name__)


def spell(recipe: Iterable[Token], id2char: Mapping[Token, str]) -> str:
    """
    Convert a sequence of base character ids into the string they spell.

    :raises MissingCharacterError: If any id has no character in ``id2char``.
    """
    chars: list[str] = []
    for tok in recipe:
        char = id2char.get(tok)
        if char is None:
            raise MissingCharacterError("base token has no character", token=tok)
        chars.append(char)
    return "".join(chars)


def parse_token_line(line: str, line_no: int | None = None) -> list[Token]:
    """
    Split one line of text into token ids.

    :param line: Whitespace separated base-10 token ids.
    :param line_no: Line number reported in errors.
    :raises MalformedIdentifierError: If a field is not an unsigned 32-bit integer.
    """
    tokens: list[Token] = []
    for field_str in _FIELD_PAT.findall(line):
        if not _TOKEN_PAT.fullmatch(field_str):
            raise MalformedIdentifierError(
                "token id is not a non-negative integer",
                field=field_str,
                line_no=line_no,
            )
        tok = int(field_str)
        if tok > MAX_TOKEN:
            raise MalformedIdentifierError(
                "token id does not fit in 32 bits", field=field_str, line_no=line_no
            )
        tokens.append(tok)
    return tokens


def _iter_lines(source: Iterable[str]) -> Iterator[tuple[int, str]]:
    """Yield numbered lines, turning read faults of ``source`` into StreamReadError."""
    line_no = 0
    try:
        for line in source:
            line_no += 1
            yield line_no, line
    except (OSError, UnicodeDecodeError) as e:
        raise StreamReadError("failed to read token stream", line_no=line_no) from e


@dataclass(frozen=True)
class BatchDecoding:
    """
    Outcome of decoding several sentences.

    Decoding stops at the first failing sentence; ``sentences`` then holds
    everything decoded before it and ``error`` the failure.
    """

    sentences: list[str]
    error: DecodeError | None = None

    @property
    def ok(self) -> bool:
        """Return True if every sentence was decoded."""
        return self.error is None

    def unwrap(self) -> list[str]:
        """Return the sentences, or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.sentences


@dataclass(frozen=True, eq=False)
class Model:
    """
    Read-only Byte-Pair-Encoding vocabulary.

    Every token id maps to a recipe: the sequence of base character ids it
    expands to. Instances are built by :func:`bpereader.loader.load_model`
    and never change afterwards, so one model can serve any number of readers.
    """

    char2id: Mapping[str, Token] = field(repr=False)
    id2char: Mapping[Token, str] = field(repr=False)
    rules: tuple[Rule, ...] = field(repr=False)
    recipes: Mapping[Token, Recipe] = field(repr=False)
    # spelled recipe -> token, kept for encoders; decoding never reads it
    reverse_recipes: Mapping[str, Token] = field(repr=False)
    special_tokens: SpecialTokens
    space_id: Token

    def vocab_size(self) -> int:
        """Return the number of tokens with a recipe."""
        return len(self.recipes)

    def spell(self, recipe: Iterable[Token]) -> str:
        """Spell a recipe using this model's character vocabulary."""
        return spell(recipe, self.id2char)

    def id_to_token(self, token: Token, replace_space: bool = False) -> str:
        """
        Return the text of a single token.

        :param token: Token id to look up.
        :param replace_space: Emit a plain space instead of the word-start
            marker when the token's recipe begins with it.
        :raises UnknownTokenIDError: If the id is neither a recipe nor a
            configured special token.
        :raises MissingCharacterError: If the recipe references an unknown character.
        """
        recipe = self.recipes.get(token)
        if recipe is None:
            return self._special_surface(token)
        if replace_space and recipe[0] == self.space_id:
            return " " + spell(recipe[1:], self.id2char)
        return spell(recipe, self.id2char)

    def _special_surface(self, token: Token) -> str:
        """Return the surface string of a special token id."""
        specials = self.special_tokens
        # ids are unsigned; negatives would match unset roles
        if token < 0:
            raise UnknownTokenIDError("token id is negative", token=token)
        # fixed precedence when roles share an id
        if token == specials.unk:
            return UNK_TOKEN
        if token == specials.pad:
            return PAD_TOKEN
        if token == specials.bos:
            return BOS_TOKEN
        if token == specials.eos:
            return EOS_TOKEN
        raise UnknownTokenIDError("token id is not in the vocabulary", token=token)

    def decode_sentence(self, tokens: Iterable[Token]) -> str:
        """
        Decode a sequence of token ids into a sentence.

        Word-start markers become spaces. The single space produced by a
        leading word-start token is dropped, and ``"<BOS> "`` at the start of
        the sentence is collapsed into ``"<BOS>"``.

        :raises DecodeError: If any token fails; no partial sentence is returned.
        """
        sentence = "".join(self.id_to_token(tok, replace_space=True) for tok in tokens)
        if sentence.startswith(" "):
            sentence = sentence[1:]
        if sentence.startswith(BOS_TOKEN + " "):
            sentence = BOS_TOKEN + sentence[len(BOS_TOKEN) + 1 :]
        return sentence

    def decode_sentences(self, batch: Iterable[Iterable[Token]]) -> BatchDecoding:
        """
        Decode several token sequences in order.

        :returns: All sentences, or those decoded before the first failure
            together with that failure.
        """
        sentences: list[str] = []
        for tokens in batch:
            try:
                sentences.append(self.decode_sentence(tokens))
            except DecodeError as e:
                log.error(f"batch decoding stopped after {len(sentences)} sentences: {e}")
                return BatchDecoding(sentences, e)
        return BatchDecoding(sentences)

    def decode_from_stream(self, source: Iterable[str]) -> BatchDecoding:
        """
        Decode one sentence per line of a text stream.

        Each line holds whitespace separated token ids. Reading stops at the
        first malformed field, read fault or decode failure.

        :param source: Text file object or any iterable of lines.
        :returns: Decoded sentences in line order, plus the error if one stopped the scan.
        """
        sentences: list[str] = []
        try:
            for line_no, line in _iter_lines(source):
                tokens = parse_token_line(line, line_no)
                sentences.append(self.decode_sentence(tokens))
        except DecodeError as e:
            log.error(f"stream decoding stopped after {len(sentences)} sentences: {e}")
            return BatchDecoding(sentences, e)
        log.debug(f"decoded {len(sentences)} sentences from stream")
        return BatchDecoding(sentences)
