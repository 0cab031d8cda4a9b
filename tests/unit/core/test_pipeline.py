"""Unit tests for core/pipeline.py add/update/check flows"""

import hashlib
from datetime import date
from pathlib import Path

import pytest

from mdstage.core.abbrlink import generate_abbrlink
from mdstage.core.header import parse_header
from mdstage.core.models import AddOptions
from mdstage.core.pipeline import run_add, run_check, run_update
from mdstage.store.local_store import LocalStore


PREFIX = "/src/assets/images/posts"
IMAGES = "/blog/src/assets/images/posts"
POSTS = "/blog/src/content/posts"
DRAFT = "# My Title\n\nSome ==marked== text.\n\n![shot](img/shot.png)\n"


def _h8(stem: str) -> str:
    return hashlib.md5(stem.encode("utf-8")).hexdigest()[:8]


@pytest.fixture(name="draft")
def draft_fixture(store):
    store.add_file("/drafts/post.md", DRAFT, created=date(2024, 3, 10), modified=date(2024, 4, 1))
    store.add_file("/drafts/img/shot.png", b"PNG")
    return "/drafts/post.md"


# --- run_add: create mode ---

def test_run_add_creates_header(draft, settings, layout, store):
    result = run_add(AddOptions(source=draft), settings, layout, store)
    fields = parse_header(store.read_text(result.target))
    assert result.created_header
    assert fields == {
        "title": "My Title",
        "published": "2024-03-10",
        "updated": "2024-04-01",
        "tags": ["未分类"],
        "toc": "true",
        "lang": "zh",
        "abbrlink": generate_abbrlink(DRAFT),
    }


def test_run_add_places_by_creation_month(draft, settings, layout, store):
    result = run_add(AddOptions(source=draft), settings, layout, store)
    assert result.target == Path(f"{POSTS}/2024/03/post.md")


def test_run_add_explicit_subdirectory(draft, settings, layout, store):
    result = run_add(AddOptions(source=draft, subdirectory="tech"), settings, layout, store)
    assert result.target == Path(f"{POSTS}/tech/post.md")


def test_run_add_normalizes_markup_and_relocates_images(draft, settings, layout, store):
    result = run_add(AddOptions(source=draft, abbrlink="abc12345"), settings, layout, store)
    text = store.read_text(result.target)
    name = f"abc12345-{_h8('shot')}.png"
    assert "<mark>marked</mark>" in text
    assert f"![shot]({PREFIX}/abc12345/{name})" in text
    assert store.read_bytes(f"{IMAGES}/abc12345/{name}") == b"PNG"
    assert result.image_count == 1


def test_run_add_skip_formatting(draft, settings, layout, store):
    result = run_add(AddOptions(source=draft, skip_formatting=True), settings, layout, store)
    assert "==marked==" in store.read_text(result.target)


def test_run_add_overrides(draft, settings, layout, store):
    options = AddOptions(
        source=draft, title="Custom", published="2023-12-31", tags=["py", "blog"],
        toc=False, lang="en", abbrlink="0badf00d",
    )
    fields = parse_header(store.read_text(run_add(options, settings, layout, store).target))
    assert fields["title"] == "Custom"
    assert fields["published"] == "2023-12-31"
    assert fields["tags"] == ["py", "blog"]
    assert fields["toc"] == "false"
    assert fields["lang"] == "en"
    assert fields["abbrlink"] == "0badf00d"


def test_run_add_missing_source(settings, layout, store):
    with pytest.raises(FileNotFoundError):
        run_add(AddOptions(source="/drafts/nope.md"), settings, layout, store)


def test_add_options_reject_bad_date():
    with pytest.raises(ValueError):
        AddOptions(source="x.md", published="March 3")


def test_add_options_old_and_new_enable_link_update():
    assert AddOptions(source="x.md", abbrlink="b", old_abbrlink="a").update_image_links


# --- run_add: patch mode ---

def test_run_add_existing_header_keeps_body(post_md, settings, layout, store):
    store.add_file("/drafts/post.md", post_md + "\n==not touched==\n")
    result = run_add(AddOptions(source="/drafts/post.md", subdirectory="x"), settings, layout, store)
    assert store.read_text(result.target) == post_md + "\n==not touched==\n"
    assert result.abbrlink == "abc12345"
    assert not result.created_header


def test_run_add_existing_header_new_abbrlink_with_links(post_md, settings, layout, store):
    store.add_file("/drafts/post.md", post_md)
    store.add_file(f"{IMAGES}/abc12345/abc12345-aaaaaaaa.png", b"a")
    options = AddOptions(source="/drafts/post.md", subdirectory="x", abbrlink="0badf00d", update_image_links=True)
    result = run_add(options, settings, layout, store)
    text = store.read_text(result.target)
    assert "abbrlink: 0badf00d" in text
    assert f"{PREFIX}/0badf00d/0badf00d-aaaaaaaa.png" in text
    assert store.is_file(f"{IMAGES}/0badf00d/0badf00d-aaaaaaaa.png")
    assert result.links_updated == 1


def test_run_add_existing_header_new_abbrlink_without_links(post_md, settings, layout, store):
    store.add_file("/drafts/post.md", post_md)
    options = AddOptions(source="/drafts/post.md", subdirectory="x", abbrlink="0badf00d")
    text = store.read_text(run_add(options, settings, layout, store).target)
    assert "abbrlink: 0badf00d" in text
    assert f"{PREFIX}/abc12345/" in text


# --- run_update ---

def test_run_update_in_place(post_md, settings, layout, store):
    path = f"{POSTS}/tech/post.md"
    store.add_file(path, post_md)
    store.add_file(f"{IMAGES}/abc12345/abc12345-aaaaaaaa.png", b"a")
    result = run_update(AddOptions(source=path, abbrlink="0badf00d"), settings, layout, store)
    assert result.target == Path(path)
    assert f"{PREFIX}/0badf00d/0badf00d-aaaaaaaa.png" in store.read_text(path)
    assert not store.exists(f"{IMAGES}/abc12345")


def test_run_update_inserts_missing_abbrlink(settings, layout, store):
    path = f"{POSTS}/tech/post.md"
    store.add_file(path, f"---\ntitle: t\npublished: 2024-01-02\n---\n\n![a]({PREFIX}/aaaa1111/aaaa1111-x.png)\n")
    store.add_file(f"{IMAGES}/aaaa1111/aaaa1111-x.png", b"x")

    result = run_update(AddOptions(source=path, abbrlink="bbbb2222", old_abbrlink="aaaa1111"), settings, layout, store)

    text = store.read_text(path)
    assert parse_header(text)["abbrlink"] == "bbbb2222"
    assert text.startswith("---\ntitle: t\npublished: 2024-01-02\nabbrlink: bbbb2222\n---\n")
    assert f"{PREFIX}/bbbb2222/bbbb2222-x.png" in text
    assert store.read_bytes(f"{IMAGES}/bbbb2222/bbbb2222-x.png") == b"x"
    assert result.links_updated == 1


def test_run_update_header_with_unquoted_colon(post_md, settings, layout, store):
    path = f"{POSTS}/tech/post.md"
    store.add_file(path, post_md.replace("title: Post\n", "title: Python: tips and tricks\n"))
    store.add_file(f"{IMAGES}/abc12345/abc12345-aaaaaaaa.png", b"a")

    run_update(AddOptions(source=path, abbrlink="0badf00d"), settings, layout, store)

    text = store.read_text(path)
    assert "abbrlink: 0badf00d\n" in text and "abc12345" not in text
    assert store.is_file(f"{IMAGES}/0badf00d/0badf00d-aaaaaaaa.png")


def test_run_update_requires_abbrlink(post_md, settings, layout, store):
    store.add_file("/drafts/post.md", post_md)
    with pytest.raises(ValueError, match="abbrlink"):
        run_update(AddOptions(source="/drafts/post.md"), settings, layout, store)


# --- run_check ---

def test_run_check_continues_past_bad_documents(settings, layout, store, answers):
    store.add_file(f"{POSTS}/bad.md", "---\ntags: [unclosed\n---\n")
    store.add_file(f"{POSTS}/noabbr.md", "---\ntitle: t\n---\n")
    store.add_file(
        f"{POSTS}/good.md",
        f"---\npublished: 2024-01-01\nupdated: 2024-06-01\nabbrlink: abc12345\n---\n"
        f"![x]({PREFIX}/old99999/x.png)\n",
    )
    report = run_check(layout, store, answers(), force=True)
    assert report.skipped == 2
    assert report.checked == 1
    assert report.links_fixed == 1
    assert f"{PREFIX}/abc12345/x.png" in store.read_text(f"{POSTS}/good.md")


def test_run_check_single_source(post_md, settings, layout, store, answers):
    store.add_file(f"{POSTS}/a.md", post_md, modified=date(2024, 1, 5))
    store.add_file(f"{POSTS}/b.md", "---\ntitle: t\n---\n")
    report = run_check(layout, store, answers(), source=f"{POSTS}/a.md")
    assert report.checked == 1 and report.skipped == 0


# --- on disk ---

def test_run_add_on_disk(tmp_path, blog_settings, blog_layout):
    drafts = tmp_path / "drafts"
    drafts.mkdir()
    (drafts / "pic.png").write_bytes(b"PNG")
    (drafts / "hello.md").write_text("# Hello\n\n![p](pic.png)\n", encoding="utf-8")

    result = run_add(AddOptions(source=str(drafts / "hello.md"), subdirectory="notes"),
                     blog_settings, blog_layout, LocalStore())

    assert result.target == blog_layout.posts_root / "notes" / "hello.md"
    text = result.target.read_text(encoding="utf-8")
    assert text.startswith("---\ntitle: Hello\n")
    assert (blog_layout.image_dir(result.abbrlink) / f"{result.abbrlink}-{_h8('pic')}.png").exists()
