"""
Core types for BPE vocabulary decoding.
"""

from typing import TypeAlias

Token: TypeAlias = int
Recipe: TypeAlias = tuple[Token, ...]
CharVocabulary: TypeAlias = dict[str, Token]
IdVocabulary: TypeAlias = dict[Token, str]
