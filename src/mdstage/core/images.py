"""Image reference scanning and relocation into the per-abbrlink image directory"""

import logging
import os
import re
from pathlib import Path
from typing import Callable
from urllib.parse import unquote

from mdstage.core.layout import BlogLayout
from mdstage.core.models import (
    ImageRef, RelocationPlan, RelocationResult, ScheduledCopy, Substitution,
)
from mdstage.core.utils.hashing import short_hash
from mdstage.store.store import FileStore


logger = logging.getLogger(__name__)

MD_IMAGE_RE = re.compile(r'!\[(.*?)\]\(([^)]+)\)')
HTML_IMAGE_RE = re.compile(r'<img\s+[^>]*?src=["\']([^"\']+)["\'][^>]*?>', re.IGNORECASE)
HTML_SRC_RE = re.compile(r'src=["\'][^"\']+["\']', re.IGNORECASE)
HTML_ALT_RE = re.compile(r'alt=["\']([^"\']*)["\']', re.IGNORECASE)
EXTERNAL_PREFIXES = ('http://', 'https://', 'data:')


def is_external(path: str) -> bool:
    return path.startswith(EXTERNAL_PREFIXES)


def find_image_refs(text: str) -> list[ImageRef]:
    """Return all bracket and tag image references in text, in document order."""
    refs = [
        ImageRef(kind='md', start=m.start(), end=m.end(), span=m.group(0),
                 alt=m.group(1), path=m.group(2).strip())
        for m in MD_IMAGE_RE.finditer(text)
    ]
    for m in HTML_IMAGE_RE.finditer(text):
        alt = HTML_ALT_RE.search(m.group(0))
        refs.append(ImageRef(kind='html', start=m.start(), end=m.end(), span=m.group(0),
                             alt=alt.group(1) if alt else '', path=m.group(1)))
    return sorted(refs, key=lambda r: r.start)


def with_path(ref: ImageRef, new_path: str) -> str:
    """Return ref's span pointing at new_path; alt text or other tag attributes are kept."""
    if ref.kind == 'md':
        return f'![{ref.alt}]({new_path})'
    return HTML_SRC_RE.sub(lambda _: f'src="{new_path}"', ref.span, count=1)


def canonical_image_name(image_path: Path, abbrlink: str) -> str:
    """<abbrlink>-<md5(basename without extension)[:8]><extension>"""
    return f'{abbrlink}-{short_hash(image_path.stem)}{image_path.suffix}'


def resolve_image_path(path: str, source_dir: Path, exists: Callable[[Path], bool]) -> Path | None:
    """Resolve a written image path against source_dir; None if no file is there.

    Percent-encoded paths (e.g. my%20image.png) are retried decoded.
    """
    candidates = [path]
    if unquote(path) != path:
        candidates.append(unquote(path))
    for candidate in candidates:
        p = Path(candidate)
        resolved = Path(os.path.normpath(p if p.is_absolute() else source_dir / p))
        if exists(resolved):
            return resolved
    return None


def plan_relocation(
    body: str,
    source_dir: Path,
    abbrlink: str,
    layout: BlogLayout,
    exists: Callable[[Path], bool],
    ) -> RelocationPlan:
    """Scan body for local images; schedule copies and substitutions without touching files."""
    plan = RelocationPlan()
    for ref in find_image_refs(body):
        if is_external(ref.path):
            continue
        resolved = resolve_image_path(ref.path, source_dir, exists)
        if resolved is None:
            plan.missing.append(Path(os.path.normpath(source_dir / ref.path)))
            continue
        name = canonical_image_name(resolved, abbrlink)
        plan.copies.append(ScheduledCopy(source=resolved, dest=layout.image_path(abbrlink, name)))
        plan.substitutions.append(Substitution(
            start=ref.start, end=ref.end, old=ref.span,
            new=with_path(ref, layout.image_url(abbrlink, name)),
        ))
    return plan


def apply_substitutions(text: str, subs: list[Substitution]) -> str:
    """Apply position-based substitutions in one pass. Overlapping spans after the first are ignored."""
    parts = []
    pos = 0
    for sub in sorted(subs, key=lambda s: s.start):
        if sub.start < pos:
            continue
        parts.append(text[pos:sub.start])
        parts.append(sub.new)
        pos = sub.end
    parts.append(text[pos:])
    return ''.join(parts)


def relocate_images(
    body: str,
    source_dir: Path,
    abbrlink: str,
    layout: BlogLayout,
    store: FileStore,
    ) -> RelocationResult:
    """Copy each local image into the abbrlink image directory and rewrite its reference.

    Missing images are warned about and left as written. A copy that fails is
    logged and its reference left as written; the rest still go through.
    """
    plan = plan_relocation(body, source_dir, abbrlink, layout, store.is_file)
    for path in plan.missing:
        logger.warning("Image %s does not exist; reference left unchanged", path)

    done: dict[Path, bool] = {}
    for copy in plan.copies:
        if copy.dest in done:
            continue
        try:
            store.copy_file(copy.source, copy.dest)
            done[copy.dest] = True
            logger.info("Copied image %s -> %s", copy.source, copy.dest)
        except OSError as e:
            done[copy.dest] = False
            logger.error("Failed to copy image %s: %s", copy.source, e)

    applied = [
        sub for sub, copy in zip(plan.substitutions, plan.copies)
        if done[copy.dest]
    ]
    return RelocationResult(
        body=apply_substitutions(body, applied),
        image_count=len(applied),
        copied=[c for c in plan.copies if done[c.dest]],
        missing=plan.missing,
    )
