"""Abbrlink migration: rewrite image references and move the post's image files"""

import logging
import re
from pathlib import Path

from mdstage.core.layout import BlogLayout
from mdstage.store.store import FileStore


logger = logging.getLogger(__name__)


def renamed(filename: str, old: str, new: str) -> str:
    """Swap an `old` filename prefix for `new`; other names are returned unchanged."""
    return new + filename[len(old):] if filename.startswith(old) else filename


def rewrite_image_links(text: str, old: str, new: str, layout: BlogLayout) -> tuple[str, int]:
    """Point every image reference under <prefix>/<old>/ at <prefix>/<new>/.

    Filenames carrying the old abbrlink prefix get the same rename as
    move_image_dir gives the files. Returns (new_text, references_rewritten).
    """
    if not old or not new or old == new:
        return text, 0
    prefix = re.escape(f'{layout.url_prefix}/')
    md_re = re.compile(rf'!\[([^\]]*)\]\({prefix}{re.escape(old)}/([^)]+)\)')
    html_re = re.compile(
        rf'<img([^>]*)src=(["\']){prefix}{re.escape(old)}/([^"\']+)\2([^>]*)>', re.IGNORECASE,
    )

    text, md_count = md_re.subn(
        lambda m: f'![{m.group(1)}]({layout.image_url(new, renamed(m.group(2), old, new))})', text,
    )
    text, html_count = html_re.subn(
        lambda m: (
            f'<img{m.group(1)}src="{layout.image_url(new, renamed(m.group(3), old, new))}"{m.group(4)}>'
        ),
        text,
    )
    return text, md_count + html_count


def _move(store: FileStore, source: Path, dest: Path) -> bool:
    """Copy source to dest then delete source. Errors are logged and reported as False."""
    try:
        store.copy_file(source, dest)
        store.remove(source)
    except OSError as e:
        logger.error("Failed to move %s -> %s: %s", source, dest, e)
        return False
    logger.info("Moved %s -> %s", source, dest)
    return True


def move_image_dir(store: FileStore, layout: BlogLayout, old: str, new: str) -> list[tuple[Path, Path]]:
    """Move every file of the old abbrlink image directory into the new one.

    Files prefixed with the old abbrlink are renamed to the new prefix. The old
    directory is removed once empty. Missing old directory is a logged no-op.
    Returns the (source, dest) pairs that moved.
    """
    old_dir, new_dir = layout.image_dir(old), layout.image_dir(new)
    if not store.is_dir(old_dir):
        logger.info("Image directory %s does not exist; nothing to move", old_dir)
        return []

    files = [p for p in store.list_dir(old_dir) if store.is_file(p)]
    if not files:
        logger.info("No image files to move in %s", old_dir)
    else:
        logger.info("Moving %d image file(s) %s -> %s", len(files), old_dir, new_dir)

    moved = []
    try:
        store.make_dirs(new_dir)
    except OSError as e:
        logger.error("Failed to create %s: %s", new_dir, e)
        return moved
    for source in files:
        dest = new_dir / renamed(source.name, old, new)
        if _move(store, source, dest):
            moved.append((source, dest))

    try:
        if not store.list_dir(old_dir):
            store.remove_dir(old_dir)
            logger.info("Removed empty directory %s", old_dir)
    except OSError as e:
        logger.error("Failed to remove %s: %s", old_dir, e)
    return moved


def move_image_file(store: FileStore, layout: BlogLayout, old: str, new: str, filename: str) -> bool:
    """Move a single image from the old abbrlink directory to the new one, keeping its name."""
    source = layout.image_path(old, filename)
    if not store.is_file(source):
        logger.warning("Image %s does not exist; nothing to move", source)
        return False
    return _move(store, source, layout.image_path(new, filename))
