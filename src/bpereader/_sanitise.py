"""
Display helpers for token text in vocabulary listings.
"""

from typing import Final

import regex as re

# control, format, surrogate, private use and unassigned code points
_UNPRINTABLE_PAT: Final = re.compile(r"\p{C}")


def _escape(m) -> str:
    cp = ord(m.group())
    return f"\\u{cp:04x}" if cp <= 0xFFFF else f"\\U{cp:08x}"


def render_token(text: str) -> str:
    """Return ``text`` with every unprintable code point written as a Python escape."""
    return _UNPRINTABLE_PAT.sub(_escape, text)
