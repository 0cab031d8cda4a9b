"""Shared fixtures for core unit tests: an in-memory blog rooted at /blog"""

from datetime import date

import pytest

from mdstage.config import Settings
from mdstage.core.layout import BlogLayout
from mdstage.store.memory_store import MemoryStore


POST_MD = """\
---
title: Post
published: 2024-01-02
updated: 2024-01-05
tags:
  - misc
toc: true
lang: zh
abbrlink: abc12345
---

# Post

![one](/src/assets/images/posts/abc12345/abc12345-aaaaaaaa.png)
"""


@pytest.fixture(name="settings")
def settings_fixture():
    return Settings(root_dir="/blog")


@pytest.fixture(name="layout")
def layout_fixture(settings):
    return BlogLayout.from_settings(settings)


@pytest.fixture(name="store")
def store_fixture():
    return MemoryStore(today=date(2024, 6, 1))


class Answers:
    """Confirmation stub: replays answers in order and records every prompt."""

    def __init__(self, *answers: bool):
        self.answers = list(answers)
        self.prompts: list[str] = []

    def __call__(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        return self.answers.pop(0) if self.answers else False


@pytest.fixture(name="answers")
def answers_fixture():
    return Answers


@pytest.fixture(name="post_md")
def post_md_fixture():
    return POST_MD
