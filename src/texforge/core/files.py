"""File naming, directory snapshot and copy/delete helpers."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
import re
import shutil

from .diagnostics import LogWrapper
from .exceptions import BuildFailureError


PLACEHOLDER_MAIN = "T$T"

FileFilter = Callable[[Path], bool]


def bare_name(path: Path) -> str:
    """Return the file name without its last suffix."""
    name = path.name
    index = name.rfind(".")
    return name if index == -1 else name[:index]


def suffix_of(path: Path) -> str:
    """Return the last suffix of ``path`` including the dot, or an empty string."""
    name = path.name
    index = name.rfind(".")
    return "" if index == -1 else name[index:]


def replace_suffix(path: Path, suffix: str) -> Path:
    """Return the sibling of ``path`` sharing its bare name with a new suffix."""
    return path.parent / f"{bare_name(path)}{suffix}"


def is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


def main_file_pattern(tex_file: Path, pattern: str) -> re.Pattern[str]:
    """Instantiate a pattern containing the main-document placeholder."""
    return re.compile(pattern.replace(PLACEHOLDER_MAIN, re.escape(bare_name(tex_file))))


def file_filter(tex_file: Path, pattern: str, *, allow_dirs: bool = False) -> FileFilter:
    """Return a filter accepting siblings of ``tex_file`` whose name matches ``pattern``.

    ``T$T`` inside the pattern stands for the bare name of ``tex_file``. The
    source itself is never accepted.
    """
    compiled = main_file_pattern(tex_file, pattern)

    def accept(candidate: Path) -> bool:
        if candidate == tex_file:
            return False
        if not allow_dirs and candidate.is_dir():
            return False
        return compiled.fullmatch(candidate.name) is not None

    return accept


@dataclass(slots=True)
class DirNode:
    """Snapshot of a directory tree: regular file names and readable subdirectories."""

    path: Path
    readable: bool = True
    file_names: set[str] = field(default_factory=set)
    subdirs: dict[str, DirNode] = field(default_factory=dict)

    @classmethod
    def snapshot(cls, directory: Path, emitter: LogWrapper) -> DirNode:
        """Record the tree below ``directory``.

        Unreadable directories are reported and marked instead of skipped
        silently; the parent does not list them as subdirectories.
        """
        node = cls(path=directory)
        try:
            entries = sorted(directory.iterdir())
        except OSError as exc:
            emitter.warning(f"Cannot read directory '{directory}'; build may be incomplete.", exc)
            node.readable = False
            return node

        for entry in entries:
            if entry.is_dir():
                child = cls.snapshot(entry, emitter)
                if child.readable:
                    node.subdirs[entry.name] = child
            else:
                node.file_names.add(entry.name)
        return node


class TexFileUtils:
    """Copy, delete and clean-up operations reporting through a log wrapper."""

    def __init__(self, emitter: LogWrapper) -> None:
        self.log = emitter

    def list_files_or_warn(
        self, directory: Path, accept: FileFilter | None = None
    ) -> list[Path] | None:
        """List ``directory`` or warn and return ``None`` when it cannot be read."""
        try:
            entries = sorted(directory.iterdir())
        except OSError as exc:
            self.log.warning(f"Cannot read directory '{directory}'; build may be incomplete.", exc)
            return None
        if accept is None:
            return entries
        return [entry for entry in entries if accept(entry)]

    def target_directory(self, src_file: Path, src_base: Path, target_base: Path) -> Path:
        """Mirror the location of ``src_file`` below ``src_base`` into ``target_base``."""
        try:
            relative = src_file.parent.relative_to(src_base)
        except ValueError as exc:
            raise BuildFailureError(
                f"Source '{src_file}' is not located below '{src_base}'."
            ) from exc
        target_dir = target_base / relative
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise BuildFailureError(
                f"Cannot create destination directory '{target_dir}'."
            ) from exc
        if not target_dir.is_dir():
            raise BuildFailureError(f"Cannot create destination directory '{target_dir}'.")
        return target_dir

    def copy_output_to_target(
        self, tex_file: Path, accept: FileFilter, target_dir: Path
    ) -> set[Path]:
        """Copy siblings of ``tex_file`` accepted by ``accept`` into ``target_dir``.

        Modification times are preserved. Returns the copies that were written.
        """
        copied: set[Path] = set()
        candidates = self.list_files_or_warn(tex_file.parent)
        if candidates is None:
            return copied
        for src_file in candidates:
            if not accept(src_file):
                continue
            dest_file = target_dir / src_file.name
            if dest_file.is_dir():
                raise BuildFailureError(f"Cannot overwrite directory '{dest_file}'.")
            self.log.debug(f"Copying '{src_file.name}' to '{target_dir}'.")
            try:
                shutil.copy2(src_file, dest_file)
            except OSError as exc:
                raise BuildFailureError(
                    f"Cannot copy '{src_file.name}' to '{target_dir}'."
                ) from exc
            copied.add(dest_file)
        return copied

    def delete_or_error(self, path: Path) -> bool:
        """Delete a regular file, logging an error when that fails."""
        try:
            path.unlink()
        except OSError as exc:
            self.log.error(f"Cannot delete file '{path}'.", exc)
            return False
        return True

    def delete_if_exists(self, path: Path) -> None:
        if path.is_file():
            self.delete_or_error(path)

    def delete_matching(self, tex_file: Path, accept: FileFilter) -> None:
        """Delete the siblings of ``tex_file`` accepted by ``accept``.

        Directories accepted by the filter are removed with their content.
        """
        candidates = self.list_files_or_warn(tex_file.parent)
        if candidates is None:
            return
        for candidate in candidates:
            if not accept(candidate):
                continue
            if candidate.is_dir():
                try:
                    shutil.rmtree(candidate)
                except OSError as exc:
                    self.log.error(f"Cannot delete directory '{candidate}'.", exc)
            else:
                self.delete_or_error(candidate)

    def clean_up(self, original: DirNode, directory: Path) -> None:
        """Delete every regular file below ``directory`` missing from ``original``."""
        current = DirNode.snapshot(directory, self.log)
        self._clean_up(original, current, directory)

    def _clean_up(self, original: DirNode, current: DirNode, directory: Path) -> None:
        for name, original_child in original.subdirs.items():
            current_child = current.subdirs.get(name)
            if current_child is None:
                continue
            self._clean_up(original_child, current_child, directory / name)
        for name in sorted(current.file_names - original.file_names):
            self.delete_or_error(directory / name)


__all__ = [
    "PLACEHOLDER_MAIN",
    "DirNode",
    "FileFilter",
    "TexFileUtils",
    "bare_name",
    "file_filter",
    "is_hidden",
    "main_file_pattern",
    "replace_suffix",
    "suffix_of",
]
