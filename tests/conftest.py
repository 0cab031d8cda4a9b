"""Root test configuration: blog settings rooted in a tmp directory"""

import pytest

from mdstage.config import Settings
from mdstage.core.layout import BlogLayout


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch):
    """Keep MDSTAGE_* variables from the developer's shell out of the tests."""
    for name in Settings.model_fields:
        monkeypatch.delenv(f"MDSTAGE_{name.upper()}", raising=False)


@pytest.fixture(name="blog_settings")
def blog_settings_fixture(tmp_path):
    return Settings(root_dir=str(tmp_path / "blog"))


@pytest.fixture(name="blog_layout")
def blog_layout_fixture(blog_settings):
    return BlogLayout.from_settings(blog_settings)
