"""Custom exception hierarchy for bpereader loading and decoding errors."""

from .types import Token


class BPEReaderError(Exception):
    """Base exception for all bpereader errors."""


class PolicyError(BPEReaderError):
    """Raised when a configuration policy name cannot be resolved."""

    def __init__(
        self,
        message: str,
        *,
        invalid_name: str | None = None,
        available: list[str] | None = None,
    ) -> None:
        extra = " "
        if invalid_name:
            extra += f"(available: {available}) (got {invalid_name}) "
        super().__init__(message + extra)
        self.invalid_name = invalid_name
        self.available = available


# Loading
# ===================================================================================


class ModelLoadError(BPEReaderError):
    """Raised when loading a BPE model fails."""

    def __init__(self, message: str, *, model_path: str | None = None) -> None:
        extra = " "
        if model_path:
            extra += f"(path: {model_path}) "
        super().__init__(message + extra)
        self.model_path = model_path


class TruncatedInputError(ModelLoadError):
    """Raised when the byte source ends in the middle of a field."""

    def __init__(self, message: str, *, field: str, expected: int, got: int) -> None:
        super().__init__(f"{message} (field: {field}) (expected {expected} bytes) (got {got})")
        self.field = field
        self.expected = expected
        self.got = got


class UnresolvedReferenceError(ModelLoadError):
    """Raised when a merge rule cites a token with no prior recipe."""

    def __init__(
        self, message: str, *, token: Token, rule_index: int | None = None
    ) -> None:
        extra = f" (token: {token})"
        if rule_index is not None:
            extra += f" (rule: {rule_index})"
        super().__init__(message + extra)
        self.token = token
        self.rule_index = rule_index


class UnresolvedCharacterError(ModelLoadError):
    """Raised when a merged recipe references a base token with no character."""

    def __init__(self, message: str, *, token: Token) -> None:
        super().__init__(f"{message} (token: {token})")
        self.token = token


# ===================================================================================


# Decoding
# ===================================================================================


class DecodeError(BPEReaderError):
    """Raised when token ids cannot be turned back into text."""


class MissingCharacterError(DecodeError):
    """Raised when a recipe contains a base token absent from the vocabulary."""

    def __init__(self, message: str, *, token: Token) -> None:
        super().__init__(f"{message} (token: {token})")
        self.token = token


class UnknownTokenIDError(DecodeError):
    """Raised when a token id is neither a known recipe nor a special token."""

    def __init__(self, message: str, *, token: Token) -> None:
        super().__init__(f"{message} (invalid token: {token})")
        self.token = token


class MalformedIdentifierError(DecodeError):
    """Raised when a stream field is not a valid unsigned 32-bit token id."""

    def __init__(
        self, message: str, *, field: str, line_no: int | None = None
    ) -> None:
        extra = f" (field: {field!r})"
        if line_no is not None:
            extra += f" (line: {line_no})"
        super().__init__(message + extra)
        self.field = field
        self.line_no = line_no


class StreamReadError(DecodeError):
    """Raised when the underlying text source fails while lines are read."""

    def __init__(self, message: str, *, line_no: int | None = None) -> None:
        extra = " "
        if line_no is not None:
            extra += f"(after line: {line_no}) "
        super().__init__(message + extra)
        self.line_no = line_no


# ===================================================================================
