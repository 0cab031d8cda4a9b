"""On-disk blog layout: where posts and post images live, and how the body refers to images"""

import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from mdstage.config import Settings


@dataclass(frozen=True)
class BlogLayout:
    root: Path           # blog repository root
    posts_root: Path     # <root>/<posts_dir>
    images_root: Path    # <root>/<images_dir>/posts, one subdirectory per abbrlink
    url_prefix: str      # body reference prefix, e.g. /src/assets/images/posts

    @classmethod
    def from_settings(cls, settings: Settings) -> "BlogLayout":
        root = Path(os.path.abspath(settings.root_dir))
        images_rel = PurePosixPath(Path(settings.images_dir).as_posix().strip("/")) / "posts"
        return cls(
            root=root,
            posts_root=root / settings.posts_dir,
            images_root=root / Path(*images_rel.parts),
            url_prefix=f"/{images_rel}",
        )

    def image_dir(self, abbrlink: str) -> Path:
        return self.images_root / abbrlink

    def image_path(self, abbrlink: str, filename: str) -> Path:
        return self.images_root / abbrlink / filename

    def image_url(self, abbrlink: str, filename: str) -> str:
        return f"{self.url_prefix}/{abbrlink}/{filename}"

    def url_to_path(self, url: str) -> Path | None:
        """Map a body reference containing the url prefix to a normalized absolute path."""
        marker = f"{self.url_prefix}/"
        idx = url.find(marker)
        if idx < 0:
            return None
        rel = url[idx + 1:].split("?", 1)[0].split("#", 1)[0]
        return Path(os.path.normpath(self.root / rel))
