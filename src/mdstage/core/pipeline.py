"""Command orchestration: add, update, check, cleanup"""

import logging
import os
from pathlib import Path

from mdstage.config import Settings
from mdstage.core.abbrlink import find_abbrlink, generate_abbrlink
from mdstage.core.cleanup import delete_images, find_unreferenced
from mdstage.core.header import (
    add_header_field, build_header, has_header, parse_header, render_header, replace_abbrlink,
)
from mdstage.core.images import relocate_images
from mdstage.core.layout import BlogLayout
from mdstage.core.links import check_document
from mdstage.core.markup import normalize_markup
from mdstage.core.migrate import move_image_dir, rewrite_image_links
from mdstage.core.models import (
    AddOptions, AddResult, CheckReport, CleanupReport, Confirm,
)
from mdstage.core.utils.dates import format_date, month_dir
from mdstage.store.store import FileStore


logger = logging.getLogger(__name__)


def _stage_new(raw: str, source: Path, options: AddOptions, settings: Settings,
               layout: BlogLayout, store: FileStore) -> tuple[str, AddResult]:
    """Create mode: normalize markup, relocate images, prepend a fresh header."""
    body, applied = normalize_markup(raw, skip=options.skip_formatting)
    if applied:
        logger.debug("Normalized markup in %s: %s", source, applied)

    abbrlink = options.abbrlink or find_abbrlink(raw) or generate_abbrlink(raw)
    relocated = relocate_images(body, source.parent, abbrlink, layout, store)
    if relocated.image_count:
        logger.info("Processed %d local image(s)", relocated.image_count)

    header = build_header(
        relocated.body,
        source_stem=source.stem,
        abbrlink=abbrlink,
        published=options.published or format_date(store.created_date(source)),
        updated=format_date(store.modified_date(source)),
        tags=options.tags or [settings.default_tag],
        toc=settings.default_toc if options.toc is None else options.toc,
        lang=options.lang or settings.default_lang,
        title=options.title,
    )
    result = AddResult(target=source, abbrlink=abbrlink,
                       image_count=relocated.image_count, created_header=True)
    return render_header(header) + relocated.body, result


def _stage_existing(raw: str, source: Path, options: AddOptions,
                    layout: BlogLayout, store: FileStore) -> tuple[str, AddResult]:
    """Patch mode: keep the header, swap the abbrlink, optionally migrate image links."""
    existing = parse_header(raw).get('abbrlink') or None
    abbrlink = options.abbrlink or existing
    text = raw

    if abbrlink and existing and abbrlink != existing:
        text = replace_abbrlink(text, existing, abbrlink)
        logger.info("Header abbrlink %s -> %s", existing, abbrlink)
    elif abbrlink and not existing:
        text = add_header_field(text, 'abbrlink', abbrlink)
        logger.info("Header abbrlink set to %s", abbrlink)

    result = AddResult(target=source, abbrlink=abbrlink)
    old = options.old_abbrlink or existing
    if options.update_image_links and abbrlink and old and old != abbrlink:
        text, count = rewrite_image_links(text, old, abbrlink, layout)
        if count:
            logger.info("Rewrote %d image link(s) %s -> %s", count, old, abbrlink)
        else:
            logger.info("No image links under %s to rewrite", old)
        move_image_dir(store, layout, old, abbrlink)
        result.links_updated = count
    return text, result


def run_add(
    options: AddOptions,
    settings: Settings,
    layout: BlogLayout,
    store: FileStore,
    in_place: bool = False,
    ) -> AddResult:
    """Stage a draft into <posts_root>/<subdirectory>/<name>.

    Subdirectory defaults to yyyy/mm of the draft's creation date. With
    in_place and no subdirectory the source file itself is rewritten.
    Raises FileNotFoundError when the source does not exist.
    """
    source = Path(os.path.abspath(options.source))
    if not store.is_file(source):
        raise FileNotFoundError(f"Source file {source} does not exist")
    raw = store.read_text(source)

    if has_header(raw):
        text, result = _stage_existing(raw, source, options, layout, store)
    else:
        text, result = _stage_new(raw, source, options, settings, layout, store)

    if options.subdirectory:
        target_dir = layout.posts_root / options.subdirectory
    elif in_place:
        target_dir = source.parent
    else:
        target_dir = layout.posts_root / month_dir(store.created_date(source))
    store.make_dirs(target_dir)
    result.target = target_dir / source.name
    store.write_text(result.target, text)
    logger.info("Wrote %s", result.target)
    return result


def run_update(options: AddOptions, settings: Settings, layout: BlogLayout, store: FileStore) -> AddResult:
    """Move a post to a new abbrlink: header, image links, and image directory."""
    if not options.abbrlink:
        raise ValueError("update requires a new abbrlink (--abbrlink)")
    options = options.model_copy(update={"update_image_links": True})
    return run_add(options, settings, layout, store, in_place=True)


def run_check(
    layout: BlogLayout,
    store: FileStore,
    confirm: Confirm,
    force: bool = False,
    source: str | None = None,
    ) -> CheckReport:
    """Check one post (source) or every post under the posts root."""
    posts = [Path(os.path.abspath(source))] if source else store.walk_files(layout.posts_root, '.md')
    report = CheckReport()
    for post in posts:
        try:
            outcome = check_document(post, layout, store, confirm, force)
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.error("Failed to check %s: %s", post, e)
            report.skipped += 1
            continue
        report.outcomes.append(outcome)
        if outcome.skipped:
            report.skipped += 1
            continue
        report.checked += 1
        report.links_fixed += outcome.links_fixed
        report.dates_fixed += outcome.date_fixed
    return report


def run_cleanup(
    layout: BlogLayout,
    store: FileStore,
    confirm: Confirm,
    force: bool = False,
    ) -> CleanupReport:
    """Delete unreferenced images, then prune empty image directories.

    Without force the unreferenced files are listed and one confirmation
    covers them all.
    """
    report = CleanupReport()
    if not store.is_dir(layout.images_root):
        logger.info("Image directory %s does not exist; nothing to clean", layout.images_root)
        return report

    images, report.unreferenced = find_unreferenced(layout, store)
    report.total = len(images)
    logger.info("Found %d image file(s), %d unreferenced", report.total, len(report.unreferenced))
    if not report.unreferenced:
        return report

    if not force:
        for p in report.unreferenced:
            logger.info("Unreferenced: %s", p)
        if not confirm(f"Delete {len(report.unreferenced)} unreferenced image(s)?"):
            return report

    report.deleted = delete_images(store, report.unreferenced)
    logger.info("Deleted %d unreferenced image(s)", report.deleted)
    try:
        report.pruned = store.prune_empty_dirs(layout.images_root)
    except OSError as e:
        logger.error("Failed to prune empty directories: %s", e)
    for d in report.pruned:
        logger.info("Removed empty directory %s", d)
    return report
