"""Orphan image collection: image files no post references"""

import logging
from pathlib import Path

from mdstage.core.images import find_image_refs
from mdstage.core.layout import BlogLayout
from mdstage.store.store import FileStore


logger = logging.getLogger(__name__)

POST_SUFFIX = '.md'


def extract_image_paths(text: str, layout: BlogLayout) -> set[Path]:
    """Absolute paths of all references containing the url prefix; other references are ignored."""
    paths = set()
    for ref in find_image_refs(text):
        p = layout.url_to_path(ref.path)
        if p is not None:
            paths.add(p)
    return paths


def referenced_images(layout: BlogLayout, store: FileStore) -> set[Path]:
    """Union of image paths referenced anywhere in the posts corpus."""
    referenced: set[Path] = set()
    for post in store.walk_files(layout.posts_root, POST_SUFFIX):
        try:
            paths = extract_image_paths(store.read_text(post), layout)
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Failed to read %s: %s", post, e)
            continue
        if paths:
            logger.debug("%s references %d image(s)", post, len(paths))
        referenced |= paths
    return referenced


def find_unreferenced(layout: BlogLayout, store: FileStore) -> tuple[list[Path], list[Path]]:
    """Return (all image files, unreferenced image files) under the post images root."""
    images = store.walk_files(layout.images_root)
    referenced = referenced_images(layout, store)
    return images, [p for p in images if p not in referenced]


def delete_images(store: FileStore, paths: list[Path]) -> int:
    """Delete each path; failures are logged and skipped. Returns the number deleted."""
    deleted = 0
    for p in paths:
        try:
            store.remove(p)
        except OSError as e:
            logger.error("Failed to delete %s: %s", p, e)
            continue
        deleted += 1
        logger.debug("Deleted %s", p)
    return deleted
