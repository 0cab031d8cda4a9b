"""Abbrlink generation and lookup"""

import re

from mdstage.core.utils.hashing import short_hash


ABBRLINK_LENGTH = 8
ABBRLINK_RE = re.compile(r'^abbrlink:[ \t]*(\S+)[ \t]*$', re.MULTILINE)


def generate_abbrlink(content: str) -> str:
    """Derive an 8-hex abbrlink from content. Identical content gives identical abbrlinks."""
    return short_hash(content, ABBRLINK_LENGTH)


def find_abbrlink(text: str) -> str | None:
    """Return the value of the first `abbrlink:` line in text, else None."""
    m = ABBRLINK_RE.search(text)
    return m.group(1) if m else None
