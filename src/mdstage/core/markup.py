"""Custom inline markup -> inline HTML tags"""

import re


# Applied in order: multi-character delimiters before the single-character
# ones that would otherwise match inside them (~~ before ~).
MARKUP_RULES: list[tuple[str, re.Pattern]] = [
    ('mark', re.compile(r'==([^=]+)==')),
    ('kbd',  re.compile(r'!!!([^!]+)!!!')),
    ('s',    re.compile(r'~~([^~]+)~~')),
    ('sup',  re.compile(r'\^([^\^]+)\^')),
    ('sub',  re.compile(r'~([^~]+)~')),
    ('ins',  re.compile(r'\+\+([^+]+)\+\+')),
]


def normalize_markup(text: str, skip: bool = False) -> tuple[str, dict[str, int]]:
    """Rewrite ==x==, !!!x!!!, ~~x~~, ^x^, ~x~, ++x++ to mark/kbd/s/sup/sub/ins tags.

    Returns (new_text, {tag: replacements}) with only tags that matched. With
    skip=True the text is returned untouched.
    """
    if skip:
        return text, {}
    applied: dict[str, int] = {}
    for tag, pattern in MARKUP_RULES:
        text, n = pattern.subn(rf'<{tag}>\1</{tag}>', text)
        if n:
            applied[tag] = n
    return text, applied
