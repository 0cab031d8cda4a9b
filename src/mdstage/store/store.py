"""Filesystem capability used by the staging pipeline, plus tree traversal built on it"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path


class FileStore(ABC):
    """Primitive file operations. Errors surface as OSError, like the os module."""

    @abstractmethod
    def exists(self, path: Path) -> bool:
        raise NotImplementedError

    @abstractmethod
    def is_file(self, path: Path) -> bool:
        raise NotImplementedError

    @abstractmethod
    def is_dir(self, path: Path) -> bool:
        raise NotImplementedError

    @abstractmethod
    def read_text(self, path: Path) -> str:
        raise NotImplementedError

    @abstractmethod
    def write_text(self, path: Path, text: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def copy_file(self, source: Path, dest: Path) -> None:
        """Copy source to dest, creating dest's parent directories."""
        raise NotImplementedError

    @abstractmethod
    def remove(self, path: Path) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_dir(self, path: Path) -> list[Path]:
        """Return the direct children of a directory, sorted."""
        raise NotImplementedError

    @abstractmethod
    def make_dirs(self, path: Path) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove_dir(self, path: Path) -> None:
        """Remove an empty directory."""
        raise NotImplementedError

    @abstractmethod
    def created_date(self, path: Path) -> date:
        raise NotImplementedError

    @abstractmethod
    def modified_date(self, path: Path) -> date:
        raise NotImplementedError

    def walk_files(self, root: Path, suffix: str | None = None) -> list[Path]:
        """Return every file under root (recursively), optionally filtered by suffix."""
        if not self.is_dir(root):
            return []
        files: list[Path] = []
        for child in self.list_dir(root):
            if self.is_dir(child):
                files.extend(self.walk_files(child, suffix))
            elif suffix is None or child.suffix == suffix:
                files.append(child)
        return files

    def prune_empty_dirs(self, root: Path) -> list[Path]:
        """Remove empty directories below root, deepest first. root itself is kept.

        Returns the removed directories.
        """
        removed: list[Path] = []
        if not self.is_dir(root):
            return removed
        for child in self.list_dir(root):
            if not self.is_dir(child):
                continue
            removed.extend(self.prune_empty_dirs(child))
            if not self.list_dir(child):
                self.remove_dir(child)
                removed.append(child)
        return removed
