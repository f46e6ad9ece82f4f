"""File commands: reading a file into a buffer, writing and saving it."""

from __future__ import annotations

import errno
import os
import stat as statmod
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from .fileio import (
    BackupSettings,
    FileIOError,
    FileStat,
    backup_file,
    check_mtime,
    file_stat,
    is_dir,
    is_gzip,
    read_lines,
    write_lines,
)

Confirm = Callable[[str], bool]


def _always_yes(prompt: str) -> bool:
    return True


@dataclass
class ReadResult:
    """The text of a file read into a buffer and what the editor learned about it."""

    lines: list[str]
    message: str
    readonly: bool = False
    new_file: bool = False
    missing_directory: Optional[str] = None
    stat: Optional[FileStat] = None


@dataclass
class SaveOptions:
    """Settings that govern how buffers are saved."""

    make_backup: bool = True
    newline_prompt: bool = True
    newline: str = "\n"
    backup: BackupSettings = field(default_factory=BackupSettings)

    def toggle_backup(self, n: Optional[int] = None) -> bool:
        """Flip backup creation, or set it on when ``n > 0`` if ``n`` is given."""
        self.make_backup = (not self.make_backup) if n is None else n > 0
        return self.make_backup

    def toggle_newline_prompt(self) -> bool:
        """Flip asking whether to add a final newline when saving."""
        self.newline_prompt = not self.newline_prompt
        return self.newline_prompt


def dir_name(path: str) -> str:
    """Return the directory part of ``path``, with the root given as ``""``.

    An empty result means the root, so a ``/`` may always be appended.
    """
    if not path:
        return "."
    stripped = path.rstrip("/")
    if not stripped:
        return ""
    cut = stripped.rfind("/")
    if cut < 0:
        return "."
    return stripped[:cut].rstrip("/")


def base_name(path: str) -> str:
    """Return the last component of ``path`` as POSIX basename does."""
    if not path:
        return "."
    stripped = path.rstrip("/")
    if not stripped:
        return "/"
    return stripped[stripped.rfind("/") + 1:]


def readonly_status(path: str) -> tuple[bool, Optional[str]]:
    """Decide whether a buffer visiting ``path`` should be read-only.

    Returns ``(readonly, missing_directory)``; the second item names the
    directory (with a trailing ``/``) when the file's directory does not
    exist, so that the caller may offer to create it.
    """
    if is_dir(path):
        return True, None
    if os.path.exists(path):
        return (not os.access(path, os.W_OK)), None
    directory = dir_name(path) + "/"
    if not os.path.exists(directory):
        return False, directory
    if not os.access(directory, os.W_OK):
        return True, None
    return False, None


def insert_file(path: str, newline: str = "\n") -> ReadResult:
    """Read ``path`` for a buffer; a missing file gives an empty new buffer."""
    try:
        lines = read_lines(path, newline)
    except FileNotFoundError:
        readonly, missing = readonly_status(path)
        message = "(New file)"
        if readonly:
            message = "File not found and directory write-protected"
        return ReadResult([""], message, readonly, True, missing)
    except IsADirectoryError as exc:
        raise IsADirectoryError(
            errno.EISDIR, f"Cannot insert: file is a directory, {path}", path
        ) from exc
    except OSError as exc:
        raise FileIOError(exc.errno, f"File is not readable: {path}", path) from exc

    count = len(lines)
    message = "(Read 1 line)" if count == 1 else f"(Read {count} lines)"
    readonly, missing = readonly_status(path)
    gzipped = is_gzip(path)
    stat = None if gzipped else file_stat(path)
    return ReadResult(lines, message, readonly or gzipped, False, missing, stat)


def check_target_dir(path: str) -> None:
    """Raise FileIOError if a missing ``path`` could not be created in its directory."""
    if os.path.exists(path):
        return
    directory = dir_name(path) + "/"
    if not os.path.exists(directory):
        raise FileIOError(errno.ENOENT, f"{directory}: no such directory", directory)
    if not os.access(directory, os.W_OK):
        raise FileIOError(errno.EACCES, f"Directory {directory} write-protected", directory)


def _writeout(
    path: str,
    lines: Sequence[str],
    newline: str,
    confirm: Confirm,
    stat: Optional[FileStat],
    ask_newline: bool = True,
) -> list[str]:
    check_target_dir(path)
    add_newline = False
    if ask_newline and lines and lines[-1] != "":
        add_newline = confirm("No newline at end of file, add one")
    return write_lines(path, lines, newline, add_newline, stat)


def write_file(
    path: str,
    lines: Sequence[str],
    newline: str = "\n",
    confirm: Optional[Confirm] = None,
    stat: Optional[FileStat] = None,
) -> Optional[list[str]]:
    """Write a buffer to ``path``, asking before overwriting an existing file.

    Returns the buffer's lines as written, or None if the user declined.
    """
    confirm = confirm or _always_yes
    try:
        existing = os.stat(path)
    except OSError:
        existing = None
    if existing is not None:
        if statmod.S_ISDIR(existing.st_mode):
            raise IsADirectoryError(errno.EISDIR, f"{path} is a directory", path)
        if not confirm(f"File `{path}' exists; overwrite"):
            return None
    return _writeout(path, lines, newline, confirm, stat)


def save_buffer(
    path: str,
    lines: Sequence[str],
    changed: bool,
    options: Optional[SaveOptions] = None,
    confirm: Optional[Confirm] = None,
    stat: Optional[FileStat] = None,
) -> Optional[list[str]]:
    """Save a buffer back to its file, backing up the old contents first.

    Returns the lines written, or None when nothing was saved because the
    buffer was unchanged or the user declined.
    """
    options = options or SaveOptions()
    confirm = confirm or _always_yes
    if not changed:
        return None
    if not path:
        raise ValueError("No file name")
    if stat is not None and not check_mtime(path, stat):
        if not confirm("File has changed on disk since last save. Save anyway"):
            return None
    if options.make_backup and os.path.exists(path):
        try:
            backup_file(path, options.backup)
        except FileIOError:
            if not confirm("Backup error, save anyway"):
                return None
    return _writeout(path, lines, options.newline, confirm, stat, options.newline_prompt)