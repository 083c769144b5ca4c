"""bpereader: decode token ids of a trained BPE vocabulary back into text."""

from ._format import Rule, SpecialTokens
from .exceptions import (
    BPEReaderError,
    DecodeError,
    MalformedIdentifierError,
    MissingCharacterError,
    ModelLoadError,
    PolicyError,
    StreamReadError,
    TruncatedInputError,
    UnknownTokenIDError,
    UnresolvedCharacterError,
    UnresolvedReferenceError,
)
from .loader import load_model, load_model_file
from .model import (
    BOS_TOKEN,
    EOS_TOKEN,
    PAD_TOKEN,
    UNK_TOKEN,
    BatchDecoding,
    Model,
    parse_token_line,
)
from .policy import SpacePolicy, default_space_policy, list_space_policies

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("bpereader")
except PackageNotFoundError:
    __version__ = "dev"

__all__ = [
    "Model",
    "Rule",
    "SpecialTokens",
    "BatchDecoding",
    "SpacePolicy",
    "load_model",
    "load_model_file",
    "parse_token_line",
    "default_space_policy",
    "list_space_policies",
    "UNK_TOKEN",
    "PAD_TOKEN",
    "BOS_TOKEN",
    "EOS_TOKEN",
    "BPEReaderError",
    "PolicyError",
    "ModelLoadError",
    "TruncatedInputError",
    "UnresolvedReferenceError",
    "UnresolvedCharacterError",
    "DecodeError",
    "MissingCharacterError",
    "UnknownTokenIDError",
    "MalformedIdentifierError",
    "StreamReadError",
]
