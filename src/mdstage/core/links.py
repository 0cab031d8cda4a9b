"""Link consistency: image references pointing at another post's abbrlink, stale `updated` dates"""

import logging
from datetime import date
from pathlib import Path

from mdstage.core.header import header_date, parse_header, set_updated
from mdstage.core.images import apply_substitutions, find_image_refs, with_path
from mdstage.core.layout import BlogLayout
from mdstage.core.migrate import move_image_file
from mdstage.core.models import CheckOutcome, Confirm, Mismatch, Substitution
from mdstage.core.utils.dates import format_date
from mdstage.store.store import FileStore


logger = logging.getLogger(__name__)


def find_mismatches(text: str, abbrlink: str, layout: BlogLayout) -> list[Mismatch]:
    """Return image references under the url prefix whose abbrlink segment is not `abbrlink`."""
    marker = f'{layout.url_prefix}/'
    mismatches = []
    for ref in find_image_refs(text):
        if not ref.path.startswith(marker):
            continue
        segment, sep, filename = ref.path[len(marker):].partition('/')
        if sep and filename and segment != abbrlink:
            mismatches.append(Mismatch(ref=ref, abbrlink=segment, filename=filename))
    return mismatches


def retarget_references(text: str, mismatches: list[Mismatch], abbrlink: str, layout: BlogLayout) -> str:
    """Rewrite each mismatched reference to the `abbrlink` directory, same filename."""
    subs = [
        Substitution(
            start=m.ref.start, end=m.ref.end, old=m.ref.span,
            new=with_path(m.ref, layout.image_url(abbrlink, m.filename)),
        )
        for m in mismatches
    ]
    return apply_substitutions(text, subs)


def needs_date_refresh(text: str, modified: date) -> bool:
    """True if `updated` is missing from a header that has `published`, or differs from modified."""
    updated = header_date(text, 'updated')
    if updated is None:
        return header_date(text, 'published') is not None
    return updated != format_date(modified)


def check_document(
    path: Path,
    layout: BlogLayout,
    store: FileStore,
    confirm: Confirm,
    force: bool = False,
    ) -> CheckOutcome:
    """Check one post; fix mismatched image references and a stale `updated` on confirmation."""
    outcome = CheckOutcome(path=path)
    content = store.read_text(path)
    abbrlink = parse_header(content).get('abbrlink')
    if not isinstance(abbrlink, str) or not abbrlink:
        logger.warning("No abbrlink found in %s; skipped", path)
        outcome.skipped = True
        return outcome

    mismatches = find_mismatches(content, abbrlink, layout)
    modified = store.modified_date(path)
    stale = needs_date_refresh(content, modified)
    outcome.mismatches = len(mismatches)

    updated = content
    if mismatches:
        logger.info("%s has %d image link(s) not under %s", path, len(mismatches), abbrlink)
        if force or confirm(f"Fix image links in {path.name}?"):
            updated = retarget_references(updated, mismatches, abbrlink, layout)
            for old, filename in dict.fromkeys((m.abbrlink, m.filename) for m in mismatches):
                move_image_file(store, layout, old, abbrlink, filename)
            outcome.links_fixed = True

    if stale:
        logger.info("%s needs its updated date refreshed", path)
        if force or confirm(f"Update the modified date of {path.name}?"):
            updated = set_updated(updated, format_date(modified))
            outcome.date_fixed = True

    if updated != content:
        store.write_text(path, updated)
        outcome.written = True
        logger.info("Updated %s", path)
    return outcome
