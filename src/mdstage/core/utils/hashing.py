"""MD5 short hashing for abbrlinks and image names"""

import hashlib


def md5(content: str) -> str:
    """Return hex-encoded MD5 hash of content (32 chars)."""
    return hashlib.md5(content.encode("utf-8")).hexdigest()


def short_hash(content: str, length: int = 8) -> str:
    """Return the first `length` hex chars of md5(content)."""
    return md5(content)[:length]
