import errno
import os
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from mdstage.store.store import FileStore


def _key(path) -> Path:
    return Path(os.path.normpath(str(path)))


def _error(code: int, path: Path) -> OSError:
    return OSError(code, os.strerror(code), str(path))


@dataclass
class MemoryStore(FileStore):
    """Dict-backed FileStore. Dates default to `today` and can be set per file."""
    today: date = field(default_factory=date.today)
    _files: dict[Path, bytes] = field(default_factory=dict)
    _dirs: set[Path] = field(default_factory=set)
    _created: dict[Path, date] = field(default_factory=dict)
    _modified: dict[Path, date] = field(default_factory=dict)

    def add_file(self, path, content: str | bytes = b"", created: date = None, modified: date = None) -> Path:
        """Seed a file (and its parent directories) for tests."""
        p = _key(path)
        data = content.encode("utf-8") if isinstance(content, str) else content
        self._put(p, data)
        if created:
            self._created[p] = created
        if modified:
            self._modified[p] = modified
        return p

    def set_dates(self, path, created: date = None, modified: date = None) -> None:
        p = _key(path)
        if created:
            self._created[p] = created
        if modified:
            self._modified[p] = modified

    def _put(self, p: Path, data: bytes) -> None:
        self.make_dirs(p.parent)
        self._files[p] = data
        self._created.setdefault(p, self.today)
        self._modified[p] = self.today

    def exists(self, path) -> bool:
        p = _key(path)
        return p in self._files or p in self._dirs

    def is_file(self, path) -> bool:
        return _key(path) in self._files

    def is_dir(self, path) -> bool:
        return _key(path) in self._dirs

    def read_bytes(self, path) -> bytes:
        p = _key(path)
        if p not in self._files:
            raise _error(errno.ENOENT, p)
        return self._files[p]

    def read_text(self, path) -> str:
        return self.read_bytes(path).decode("utf-8")

    def write_text(self, path, text: str) -> None:
        p = _key(path)
        if p.parent not in self._dirs:
            raise _error(errno.ENOENT, p.parent)
        self._put(p, text.encode("utf-8"))

    def copy_file(self, source, dest) -> None:
        data = self.read_bytes(source)
        p = _key(dest)
        self._put(p, data)
        self._created[p] = self.today

    def remove(self, path) -> None:
        p = _key(path)
        if p not in self._files:
            raise _error(errno.ENOENT, p)
        del self._files[p]
        self._created.pop(p, None)
        self._modified.pop(p, None)

    def list_dir(self, path) -> list[Path]:
        p = _key(path)
        if p not in self._dirs:
            raise _error(errno.ENOENT, p)
        children = {f for f in self._files if f.parent == p}
        children |= {d for d in self._dirs if d.parent == p and d != p}
        return sorted(children)

    def make_dirs(self, path) -> None:
        p = _key(path)
        if p in self._files:
            raise _error(errno.EEXIST, p)
        while p not in self._dirs:
            self._dirs.add(p)
            if p.parent == p:
                break
            p = p.parent

    def remove_dir(self, path) -> None:
        p = _key(path)
        if p not in self._dirs:
            raise _error(errno.ENOENT, p)
        if self.list_dir(p):
            raise _error(errno.ENOTEMPTY, p)
        self._dirs.discard(p)

    def created_date(self, path) -> date:
        p = _key(path)
        if p not in self._files:
            raise _error(errno.ENOENT, p)
        return self._created.get(p, self.today)

    def modified_date(self, path) -> date:
        p = _key(path)
        if p not in self._files:
            raise _error(errno.ENOENT, p)
        return self._modified.get(p, self.today)
