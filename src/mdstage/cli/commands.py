"""CLI command implementations"""

from pathlib import Path
from typing import Annotated, Optional

import typer

from mdstage.config import Settings, load_config
from mdstage.core.layout import BlogLayout
from mdstage.core.models import AddOptions, AddResult
from mdstage.core.pipeline import run_add, run_check, run_cleanup, run_update
from mdstage.store.local_store import LocalStore


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(ctx: typer.Context) -> Settings:
    """Load config with standard CLI error handling; --root from the app callback wins."""
    root = (ctx.obj or {}).get("root")
    try:
        return load_config(overrides={"root_dir": root})
    except ValueError as e:
        _fail(str(e))


def _confirm(prompt: str) -> bool:
    return typer.confirm(prompt, default=False)


def _split_tags(tags: Optional[str]) -> list[str]:
    return [t.strip() for t in tags.split(",") if t.strip()] if tags else []


def _options(**fields) -> AddOptions:
    try:
        return AddOptions(**fields)
    except ValueError as e:
        _fail("Invalid options", e)


def _echo_result(result: AddResult) -> None:
    if result.image_count:
        typer.echo(f"  images: {result.image_count}")
    if result.links_updated:
        typer.echo(f"  image links updated: {result.links_updated}")
    typer.echo(f"  abbrlink: {result.abbrlink}")
    typer.echo(f"Wrote {result.target}")


def add_cmd(
    ctx: typer.Context,
    source_arg: Annotated[Optional[str], typer.Argument(metavar="SOURCE", help="Markdown draft to stage")] = None,
    subdir_arg: Annotated[Optional[str], typer.Argument(metavar="SUBDIR", help="Subdirectory under the posts root")] = None,
    tags_arg: Annotated[Optional[str], typer.Argument(metavar="TAGS", help="Comma-separated tags")] = None,
    source: Annotated[Optional[str], typer.Option("--source", "-s", "--file", help="Markdown draft to stage")] = None,
    subdir: Annotated[Optional[str], typer.Option("--dir", "-d", help="Subdirectory under the posts root (default: yyyy/mm)")] = None,
    tags: Annotated[Optional[str], typer.Option("--tags", "-t", help="Comma-separated tags")] = None,
    title: Annotated[Optional[str], typer.Option("--title", help="Title (default: first h1, then file name)")] = None,
    published: Annotated[Optional[str], typer.Option("--date", "--published", help="Publish date yyyy-mm-dd")] = None,
    toc: Annotated[Optional[bool], typer.Option("--toc/--no-toc", help="Table of contents flag")] = None,
    lang: Annotated[Optional[str], typer.Option("--lang", help="Language code")] = None,
    abbrlink: Annotated[Optional[str], typer.Option("--abbrlink", "-a", "--link", help="Abbrlink (default: content hash)")] = None,
    old_abbrlink: Annotated[Optional[str], typer.Option("--old-abbrlink", "-o", "--old", help="Previous abbrlink")] = None,
    update_links: Annotated[bool, typer.Option("--update-image-links", help="Move image links to the new abbrlink")] = False,
    skip_formatting: Annotated[bool, typer.Option("--skip-formatting", help="Leave custom markup as written")] = False,
    ):
    """Stage a draft: header, abbrlink, local images, destination placement."""
    path = source or source_arg
    if not path:
        typer.echo(ctx.get_help())
        _fail("No source file given")
    settings = _settings(ctx)
    options = _options(
        source=path, subdirectory=subdir or subdir_arg, tags=_split_tags(tags or tags_arg),
        title=title, published=published, toc=toc, lang=lang, abbrlink=abbrlink,
        old_abbrlink=old_abbrlink, update_image_links=update_links, skip_formatting=skip_formatting,
    )
    try:
        result = run_add(options, settings, BlogLayout.from_settings(settings), LocalStore())
    except FileNotFoundError as e:
        typer.echo(ctx.get_help())
        _fail(str(e))
    except (OSError, ValueError) as e:
        _fail("Add failed", e)
    _echo_result(result)


def update_cmd(
    ctx: typer.Context,
    source_arg: Annotated[Optional[str], typer.Argument(metavar="SOURCE", help="Staged post to update")] = None,
    source: Annotated[Optional[str], typer.Option("--source", "-s", "--file", help="Staged post to update")] = None,
    abbrlink: Annotated[Optional[str], typer.Option("--abbrlink", "-a", "--link", help="New abbrlink")] = None,
    old_abbrlink: Annotated[Optional[str], typer.Option("--old-abbrlink", "-o", "--old", help="Old abbrlink (default: from the header)")] = None,
    subdir: Annotated[Optional[str], typer.Option("--dir", "-d", help="Write to this posts subdirectory instead of in place")] = None,
    force: Annotated[bool, typer.Option("--force", "-f", help="Do not ask for confirmation")] = False,
    ):
    """Change a post's abbrlink and move its image links and image files along."""
    path = source or source_arg
    if not path:
        typer.echo(ctx.get_help())
        _fail("No source file given")
    settings = _settings(ctx)
    options = _options(source=path, subdirectory=subdir, abbrlink=abbrlink, old_abbrlink=old_abbrlink)
    if not abbrlink:
        typer.echo(ctx.get_help())
        _fail("update requires a new abbrlink (--abbrlink)")
    if not force and not _confirm(f"Move {Path(path).name} to abbrlink {abbrlink}?"):
        typer.echo("Aborted.")
        raise typer.Exit(0)
    try:
        result = run_update(options, settings, BlogLayout.from_settings(settings), LocalStore())
    except FileNotFoundError as e:
        typer.echo(ctx.get_help())
        _fail(str(e))
    except (OSError, ValueError) as e:
        _fail("Update failed", e)
    _echo_result(result)


def check_cmd(
    ctx: typer.Context,
    source: Annotated[Optional[str], typer.Option("--source", "-s", "--file", help="Check only this post")] = None,
    force: Annotated[bool, typer.Option("--force", "-f", help="Fix without asking")] = False,
    ):
    """Fix image links pointing at another abbrlink and refresh stale `updated` dates."""
    settings = _settings(ctx)
    try:
        report = run_check(BlogLayout.from_settings(settings), LocalStore(), _confirm, force, source)
    except OSError as e:
        _fail("Check failed", e)
    typer.echo(
        f"Check complete - "
        f"{report.checked} checked, "
        f"{report.skipped} skipped, "
        f"{report.links_fixed} link fix(es), "
        f"{report.dates_fixed} date update(s)"
    )


def cleanup_cmd(
    ctx: typer.Context,
    force: Annotated[bool, typer.Option("--force", "-f", help="Delete without listing and asking")] = False,
    ):
    """Delete image files no post references, then remove empty image directories."""
    settings = _settings(ctx)
    try:
        report = run_cleanup(BlogLayout.from_settings(settings), LocalStore(), _confirm, force)
    except OSError as e:
        _fail("Cleanup failed", e)
    typer.echo(
        f"Cleanup complete - "
        f"{report.total} image(s), "
        f"{len(report.unreferenced)} unreferenced, "
        f"{report.deleted} deleted"
    )
