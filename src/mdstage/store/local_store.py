from __future__ import annotations

import shutil
from datetime import date
from pathlib import Path

from mdstage.core.utils.dates import from_timestamp
from mdstage.store.store import FileStore


class LocalStore(FileStore):
    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def is_file(self, path: Path) -> bool:
        return Path(path).is_file()

    def is_dir(self, path: Path) -> bool:
        return Path(path).is_dir()

    def read_text(self, path: Path) -> str:
        return Path(path).read_text(encoding="utf-8")

    def write_text(self, path: Path, text: str) -> None:
        Path(path).write_text(text, encoding="utf-8")

    def copy_file(self, source: Path, dest: Path) -> None:
        Path(dest).parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, dest)

    def remove(self, path: Path) -> None:
        Path(path).unlink()

    def list_dir(self, path: Path) -> list[Path]:
        return sorted(Path(path).iterdir())

    def make_dirs(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def remove_dir(self, path: Path) -> None:
        Path(path).rmdir()

    def created_date(self, path: Path) -> date:
        st = Path(path).stat()
        # st_birthtime is missing on most Linux filesystems
        return from_timestamp(getattr(st, "st_birthtime", st.st_ctime))

    def modified_date(self, path: Path) -> date:
        return from_timestamp(Path(path).stat().st_mtime)
