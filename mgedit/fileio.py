"""File access for the editor: reading, writing, backups and file names."""

from __future__ import annotations

import errno
import gzip
import os
import stat as statmod
import tempfile
from dataclasses import dataclass
from typing import Optional, Sequence

try:
    import pwd
except ImportError:  # pragma: no cover - non-POSIX systems
    pwd = None  # type: ignore[assignment]

NFILEN = 1024
MAXNAMLEN = 255
LOGIN_NAME_MAX = 256
DEFFILEMODE = 0o666
ENCODING = "latin-1"
MG_DIR = "~/.mg.d"
STARTUP_NAME = ".mg"


class FileIOError(OSError):
    """A file operation failed in a way the editor reports to the user."""


@dataclass(frozen=True)
class FileStat:
    """The file attributes remembered for a buffer."""

    mode: int = 0
    uid: int = -1
    gid: int = -1
    mtime_ns: int = 0

    @classmethod
    def from_stat(cls, st: os.stat_result) -> "FileStat":
        return cls(st.st_mode, st.st_uid, st.st_gid, st.st_mtime_ns)


def is_gzip(name: str) -> bool:
    """Return True for names longer than four characters ending in ``.gz``."""
    return len(name) > 4 and name.endswith(".gz")


def is_dir(path: str) -> bool:
    """Return True if ``path`` is a directory; False if not or if it cannot be examined."""
    try:
        return statmod.S_ISDIR(os.stat(path).st_mode)
    except OSError:
        return False


def file_stat(path: str) -> FileStat:
    """Return the attributes of ``path``; raises FileNotFoundError if it is missing."""
    return FileStat.from_stat(os.stat(path))


def read_lines(path: str, newline: str = "\n") -> list[str]:
    """Read a file as a list of lines split on ``newline``.

    The last element holds whatever follows the final separator, so a file
    ending in a newline yields a trailing empty string. Files whose names end
    in ``.gz`` are decompressed.
    """
    if is_gzip(path):
        with gzip.open(path, "rb") as fh:
            data = fh.read()
    else:
        if is_dir(path):
            raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), path)
        with open(path, "rb") as fh:
            data = fh.read()
    return data.decode(ENCODING).split(newline)


def write_lines(
    path: str,
    lines: Sequence[str],
    newline: str = "\n",
    add_final_newline: bool = False,
    stat: Optional[FileStat] = None,
) -> list[str]:
    """Write ``lines`` joined by ``newline`` and return the buffer's new lines.

    No separator follows the last line unless ``add_final_newline`` is set, in
    which case an empty line is appended to the returned buffer. The file
    takes the mode and ownership recorded in ``stat`` when one is given.
    """
    mode = stat.mode & 0o7777 if stat is not None and stat.mode else DEFFILEMODE
    try:
        fd = os.open(path, os.O_RDWR | os.O_CREAT | os.O_TRUNC, mode)
    except OSError as exc:
        raise FileIOError(exc.errno, f"Cannot open file for writing : {exc.strerror}", path) from exc
    result = list(lines)
    if add_final_newline:
        result.append("")
    with os.fdopen(fd, "wb") as fh:
        if stat is not None and stat.mode:
            os.fchmod(fd, stat.mode & 0o7777)
            if hasattr(os, "fchown"):
                try:
                    os.fchown(fd, stat.uid, stat.gid)
                except PermissionError:
                    pass
        try:
            fh.write(newline.join(result).encode(ENCODING))
        except OSError as exc:
            raise FileIOError(exc.errno, "Write I/O error", path) from exc
    return result


@dataclass
class BackupSettings:
    """Where backup copies go."""

    directory: Optional[str] = None
    leave_tmp: bool = False

    def backup_to_home_dir(self, directory: Optional[str] = None) -> bool:
        """Toggle keeping backups in a single directory; return whether it is on."""
        if self.directory is None:
            path = adjust_name(directory or MG_DIR, True)
            self.directory = path[:NFILEN]
            try:
                os.mkdir(self.directory, 0o700)
            except FileExistsError:
                pass
            except OSError:
                self.directory = None
        else:
            self.directory = None
        return self.directory is not None

    def toggle_leave_tmp(self) -> bool:
        """Toggle leaving backups of files under /tmp beside them."""
        self.leave_tmp = not self.leave_tmp
        return self.leave_tmp

    def _keep_in_tmp(self, path: str) -> bool:
        return self.leave_tmp and path.startswith("/tmp")

    def location(self, path: str) -> str:
        """Return the path, without the trailing ``~``, of the backup of ``path``."""
        if (
            self.directory is not None
            and is_dir(self.directory)
            and not self._keep_in_tmp(path)
        ):
            escaped = path.replace("!", "!!").replace("/", "!")
            if len(escaped) > NFILEN - len(self.directory) - 1:
                raise FileIOError(errno.ENAMETOOLONG, "Backup path too long", path)
            return f"{self.directory}/{escaped}"
        return path[:NFILEN]


def backup_file(path: str, settings: Optional[BackupSettings] = None) -> str:
    """Copy ``path`` to its backup, keeping mode and times; return the backup's path."""
    settings = settings or BackupSettings()
    try:
        st = os.stat(path)
    except OSError as exc:
        raise FileIOError(exc.errno, f"Can't stat {path} : {exc.strerror}", path) from exc
    base = settings.location(path)
    target = base + "~"
    folder = os.path.dirname(base) or "."
    try:
        source = open(path, "rb")
    except OSError as exc:
        raise FileIOError(exc.errno, exc.strerror, path) from exc
    with source:
        fd, tname = tempfile.mkstemp(prefix=os.path.basename(base) + ".", dir=folder)
        try:
            with os.fdopen(fd, "wb") as out:
                while chunk := source.read(8192):
                    out.write(chunk)
                os.fchmod(out.fileno(), st.st_mode & 0o777)
            os.utime(tname, ns=(st.st_atime_ns, st.st_mtime_ns))
            os.replace(tname, target)
        except OSError as exc:
            try:
                os.unlink(tname)
            except OSError:
                pass
            raise FileIOError(exc.errno, f"Can't write backup : {exc.strerror}", target) from exc
    return target


def _home_of(user: str) -> Optional[str]:
    if pwd is None:
        return None
    try:
        if user:
            return pwd.getpwnam(user).pw_dir
        return pwd.getpwuid(os.geteuid()).pw_dir
    except KeyError:
        return None


def expand_tilde(name: str) -> str:
    """Expand a leading ``~`` or ``~user`` unless a file of that name exists."""
    if not name.startswith("~") or os.path.exists(name):
        return name[:NFILEN]
    slash = name.find("/")
    end = len(name) if slash < 0 else slash
    user = name[1:end]
    if len(user) >= LOGIN_NAME_MAX:
        return name[:NFILEN]
    home = _home_of(user)
    prefix = ""
    rest = name
    if home is not None:
        prefix = home if home.endswith("/") else home + "/"
        if len(prefix) >= NFILEN:
            raise FileIOError(errno.ENAMETOOLONG, "Path too long", name)
        rest = name[end:]
        if rest.startswith("/"):
            rest = rest[1:]
    result = prefix + rest
    if len(result) >= NFILEN:
        raise FileIOError(errno.ENAMETOOLONG, "Path too long", name)
    return result


def adjust_name(name: str, slashslash: bool = True) -> str:
    """Return the canonical absolute form of ``name``.

    With ``slashslash``, anything before the last ``//`` or ``/~`` is dropped.
    Names that do not exist are returned after tilde expansion only.
    """
    if slashslash:
        ep: Optional[int] = None
        for i in range(len(name) - 1, -1, -1):
            c = name[i]
            if ep is not None and c == "/":
                name = name[ep:]
                break
            ep = i if c in "/~" else None
    path = expand_tilde(name)
    if not path:
        return path
    try:
        return os.path.realpath(path, strict=True)
    except OSError:
        return path


def _opens_plainly(path: str) -> bool:
    if is_gzip(path) or is_dir(path):
        return False
    try:
        with open(path, "rb"):
            return True
    except OSError:
        return False


def startup_file(suffix: Optional[str] = None, conffile: Optional[str] = None) -> Optional[str]:
    """Return the path of the user's startup file if it can be read, else None."""
    home = os.environ.get("HOME")
    if not home:
        return None
    if conffile is not None:
        path = conffile
    elif suffix is None:
        path = f"{home}/{STARTUP_NAME}"
    else:
        path = f"{home}/{STARTUP_NAME}-{suffix}"
    if len(path) >= NFILEN:
        return None
    return path if _opens_plainly(path) else None


def copy_file(source: str, target: str) -> None:
    """Copy ``source`` to ``target`` with the original's mode and ownership."""
    try:
        src = open(source, "rb")
    except OSError as exc:
        raise FileIOError(exc.errno, exc.strerror, source) from exc
    with src:
        orig = os.fstat(src.fileno())
        try:
            ofd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, DEFFILEMODE)
        except OSError as exc:
            raise FileIOError(exc.errno, exc.strerror, target) from exc
        with os.fdopen(ofd, "wb") as out:
            try:
                while chunk := src.read(8192):
                    out.write(chunk)
            except OSError as exc:
                raise FileIOError(exc.errno, f"Read error : {exc.strerror}", source) from exc
            os.fchmod(ofd, statmod.S_IMODE(orig.st_mode))
            if hasattr(os, "fchown"):
                try:
                    os.fchown(ofd, orig.st_uid, orig.st_gid)
                except PermissionError:
                    pass


def file_list(prefix: str) -> list[str]:
    """Return the file names that complete ``prefix``, directories ending in ``/``."""
    if prefix.endswith("."):
        directory = adjust_name(prefix[:-1] + "x", True)
    else:
        directory = adjust_name(prefix, True)
    if prefix and not prefix.endswith("/"):
        cut = directory.rfind("/")
        if cut < 0:
            return []
        directory = directory[:cut] or "/"
    cut = prefix.rfind("/")
    typed = prefix[:cut + 1] if cut >= 0 else ""
    tail = prefix[len(typed):]
    if len(typed) > NFILEN - MAXNAMLEN:
        return []
    try:
        names = [".", ".."] + os.listdir(directory)
    except OSError:
        return []
    found = []
    for entry in names:
        if not entry.startswith(tail):
            continue
        full = f"{directory}/{entry}"
        if len(full) > NFILEN + 1:
            continue
        try:
            st = os.stat(full)
        except OSError:
            continue
        name = typed + entry + ("/" if statmod.S_ISDIR(st.st_mode) else "")
        if len(name) >= NFILEN + 2:
            continue
        found.append(name)
    return sorted(found)


def check_mtime(path: str, stat: FileStat) -> bool:
    """Return False only if ``path`` was modified since ``stat`` was taken."""
    try:
        st = os.stat(path)
    except OSError:
        return True
    return st.st_mtime_ns == stat.mtime_ns