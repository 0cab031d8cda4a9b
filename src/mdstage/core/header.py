"""Header block parsing, rendering, and in-place field patching"""

import json
import logging
import re
from typing import Any

import yaml
from markdown_it import MarkdownIt

from mdstage.core.models import HeaderBlock


HEADER_RE = re.compile(r'\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)', re.DOTALL | re.MULTILINE)
DATE_VALUE = r'[ \t]*["\']?(\d{4}-\d{2}-\d{2})'

logger = logging.getLogger(__name__)


def split_header(text: str) -> tuple[str | None, str]:
    """Return (header, body). header includes both delimiter lines; None when absent."""
    m = HEADER_RE.match(text)
    if m:
        return m.group(0), text[m.end():]
    return None, text


def has_header(text: str) -> bool:
    return HEADER_RE.match(text) is not None


FIELD_RE = re.compile(r'^([A-Za-z_][\w-]*):(?:[ \t]+(.*?))?[ \t]*$')
ITEM_RE = re.compile(r'^[ \t]+-[ \t]+(.*?)[ \t]*$')


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def scan_fields(block: str) -> dict[str, Any]:
    """Read top-level `key: value` lines and indented `- item` lists without YAML rules.

    Values keep everything after the first `: `, so `title: Python: tips` is fine.
    """
    fields: dict[str, Any] = {}
    key = None
    for line in block.splitlines():
        m = FIELD_RE.match(line)
        if m:
            key = m.group(1)
            fields[key] = _unquote(m.group(2) or '')
            continue
        item = ITEM_RE.match(line)
        if item and key is not None:
            if not isinstance(fields[key], list):
                fields[key] = [fields[key]] if fields[key] else []
            fields[key].append(_unquote(item.group(1)))
    return fields


def parse_header(text: str) -> dict[str, Any]:
    """Return the header fields of a document with all scalars kept as strings.

    BaseLoader keeps values like `abbrlink: 00012345` or dates verbatim.
    Headers that are not valid YAML (e.g. an unquoted `title: a: b`) are read
    line by line instead. Returns {} when the document has no header.
    """
    m = HEADER_RE.match(text)
    if not m:
        return {}
    try:
        fields = yaml.load(m.group(1), Loader=yaml.BaseLoader) or {}
    except yaml.YAMLError as e:
        logger.debug("Header is not valid YAML (%s); reading it line by line", e)
        return scan_fields(m.group(1))
    if not isinstance(fields, dict):
        raise ValueError(f"Invalid header block: expected a mapping, got {type(fields).__name__}")
    return fields


def _patch_header(text: str, pattern: re.Pattern, repl) -> tuple[str, int]:
    """Apply pattern.subn to the header region only."""
    header, body = split_header(text)
    if header is None:
        return text, 0
    new_header, n = pattern.subn(repl, header)
    return new_header + body, n


def header_date(text: str, key: str) -> str | None:
    """Return the yyyy-mm-dd value of a header date field, else None."""
    header, _ = split_header(text)
    if header is None:
        return None
    m = re.search(rf'^{re.escape(key)}:{DATE_VALUE}', header, re.MULTILINE)
    return m.group(1) if m else None


def replace_abbrlink(text: str, old: str, new: str) -> str:
    """Rewrite the header's `abbrlink: old` field to `abbrlink: new`. The body is untouched."""
    pattern = re.compile(rf'^(abbrlink:[ \t]*){re.escape(old)}([ \t]*)$', re.MULTILINE)
    patched, _ = _patch_header(text, pattern, lambda m: f'{m.group(1)}{new}{m.group(2)}')
    return patched


def add_header_field(text: str, key: str, value: str) -> str:
    """Append `key: value` as the last header line. Text without a header is returned unchanged."""
    header, body = split_header(text)
    if header is None:
        return text
    close = header.rstrip("\r\n").rfind("\n") + 1
    newline = "\r\n" if header[:close].endswith("\r\n") else "\n"
    return f"{header[:close]}{key}: {value}{newline}{header[close:]}{body}"


def set_updated(text: str, value: str) -> str:
    """Set the header's `updated` field, inserting it after `published` when absent."""
    patched, n = _patch_header(
        text, re.compile(r'^updated:.*$', re.MULTILINE), lambda _: f'updated: {value}',
    )
    if n:
        return patched
    patched, _ = _patch_header(
        text, re.compile(rf'^(published:{DATE_VALUE}.*)$', re.MULTILINE),
        lambda m: f'{m.group(1)}\nupdated: {value}',
    )
    return patched


def first_heading(body: str) -> str | None:
    """Return the text of the first level-1 heading in body, else None."""
    tokens = MarkdownIt("commonmark").parse(body)
    for i, tok in enumerate(tokens):
        if tok.type == 'heading_open' and tok.tag == 'h1' and i + 1 < len(tokens):
            title = tokens[i + 1].content.strip()
            if title:
                return title
    return None


def _scalar(value: str) -> str:
    """Emit value plain when YAML reads it back unchanged, else double-quoted."""
    try:
        plain = '\n' not in value and yaml.safe_load(value) == value
    except yaml.YAMLError:
        plain = False
    return value if plain else json.dumps(value, ensure_ascii=False)


def render_header(header: HeaderBlock) -> str:
    """Render a header block followed by one blank line."""
    lines = [
        '---',
        f'title: {_scalar(header.title)}',
        f'published: {header.published}',
        f'updated: {header.updated}',
        'tags:',
        *(f'  - {_scalar(tag)}' for tag in header.tags),
        f'toc: {str(header.toc).lower()}',
        f'lang: {_scalar(header.lang)}',
        f'abbrlink: {header.abbrlink}',
        '---',
    ]
    return '\n'.join(lines) + '\n\n'


def build_header(
    body: str,
    source_stem: str,
    abbrlink: str,
    published: str,
    updated: str,
    tags: list[str],
    toc: bool,
    lang: str,
    title: str | None = None,
    ) -> HeaderBlock:
    """Assemble a new header; title falls back to the first h1, then the source file stem."""
    return HeaderBlock(
        title=title or first_heading(body) or source_stem,
        published=published,
        updated=updated,
        tags=tags,
        toc=toc,
        lang=lang,
        abbrlink=abbrlink,
    )
