import gzip
import os
import pwd

import pytest

from mgedit.fileio import (
    BackupSettings,
    FileIOError,
    FileStat,
    adjust_name,
    backup_file,
    check_mtime,
    copy_file,
    expand_tilde,
    file_list,
    file_stat,
    is_dir,
    is_gzip,
    read_lines,
    startup_file,
    write_lines,
)


@pytest.mark.parametrize(
    "name, expected",
    [("a.gz", False), ("ab.gz", True), ("file.txt", False), ("x.gzip", False)],
)
def test_is_gzip(name, expected):
    assert is_gzip(name) is expected


def test_is_dir(tmp_path):
    f = tmp_path / "f"
    f.write_text("x")
    assert is_dir(str(tmp_path)) is True
    assert is_dir(str(f)) is False
    assert is_dir(str(tmp_path / "missing")) is False


def test_write_then_read_round_trip(tmp_path):
    p = str(tmp_path / "f.txt")
    lines = ["alpha", "beta", ""]
    assert write_lines(p, lines) == lines
    assert (tmp_path / "f.txt").read_bytes() == b"alpha\nbeta\n"
    assert read_lines(p) == lines


def test_write_adds_final_newline(tmp_path):
    p = str(tmp_path / "f.txt")
    result = write_lines(p, ["one", "two"], add_final_newline=True)
    assert result == ["one", "two", ""]
    assert (tmp_path / "f.txt").read_bytes().endswith(b"two\n")
    assert read_lines(p) == result


def test_custom_newline(tmp_path):
    p = str(tmp_path / "f.txt")
    write_lines(p, ["a", "b"], newline="\r")
    assert (tmp_path / "f.txt").read_bytes() == b"a\rb"
    assert read_lines(p, newline="\r") == ["a", "b"]


def test_read_gzip(tmp_path):
    p = tmp_path / "f.txt.gz"
    with gzip.open(p, "wb") as fh:
        fh.write(b"x\ny")
    assert read_lines(str(p)) == ["x", "y"]


def test_read_errors(tmp_path):
    with pytest.raises(IsADirectoryError):
        read_lines(str(tmp_path))
    with pytest.raises(FileNotFoundError):
        read_lines(str(tmp_path / "missing"))


def test_write_uses_stat_mode(tmp_path):
    p = str(tmp_path / "f")
    st = FileStat(mode=0o100600, uid=os.getuid(), gid=os.getgid(), mtime_ns=0)
    write_lines(p, ["z"], stat=st)
    assert os.stat(p).st_mode & 0o7777 == 0o600


def test_write_to_missing_directory_raises(tmp_path):
    with pytest.raises(FileIOError):
        write_lines(str(tmp_path / "nodir" / "f"), ["a"])


def test_file_stat_and_check_mtime(tmp_path):
    p = tmp_path / "f"
    p.write_text("x")
    st = file_stat(str(p))
    assert st.mtime_ns == os.stat(p).st_mtime_ns
    assert check_mtime(str(p), st) is True
    os.utime(p, ns=(st.mtime_ns + 10**9, st.mtime_ns + 10**9))
    assert check_mtime(str(p), st) is False
    assert check_mtime(str(tmp_path / "missing"), st) is True
    with pytest.raises(FileNotFoundError):
        file_stat(str(tmp_path / "missing"))


def test_location_without_directory():
    assert BackupSettings().location("/some/file") == "/some/file"


def test_location_escapes_into_directory(tmp_path):
    settings = BackupSettings(directory=str(tmp_path))
    assert settings.location("/a!b/c") == f"{tmp_path}/!a!!b!c"


def test_location_too_long(tmp_path):
    settings = BackupSettings(directory=str(tmp_path))
    with pytest.raises(FileIOError):
        settings.location("/" + "x" * 2000)


def test_leave_tmp_keeps_backup_beside_file(tmp_path):
    settings = BackupSettings(directory=str(tmp_path))
    assert settings.toggle_leave_tmp() is True
    assert settings.location("/tmp/file") == "/tmp/file"
    assert settings.toggle_leave_tmp() is False


def test_backup_to_home_dir_toggles(tmp_path):
    settings = BackupSettings()
    target = tmp_path / "bk"
    assert settings.backup_to_home_dir(str(target)) is True
    assert target.is_dir()
    assert settings.directory == str(target)
    assert settings.backup_to_home_dir(str(target)) is False
    assert settings.directory is None


def test_backup_file_beside_original(tmp_path):
    p = tmp_path / "f"
    p.write_bytes(b"content")
    os.utime(p, ns=(10**9, 2 * 10**9))
    backup = backup_file(str(p))
    assert backup == str(p) + "~"
    assert (tmp_path / "f~").read_bytes() == b"content"
    assert os.stat(backup).st_mtime_ns == os.stat(p).st_mtime_ns


def test_backup_file_into_directory(tmp_path):
    bkdir = tmp_path / "bk"
    bkdir.mkdir()
    p = tmp_path / "f"
    p.write_bytes(b"data")
    settings = BackupSettings(directory=str(bkdir))
    backup = backup_file(str(p), settings)
    assert os.path.dirname(backup) == str(bkdir)
    assert backup.endswith("~")
    assert open(backup, "rb").read() == b"data"


def test_backup_missing_file_raises(tmp_path):
    with pytest.raises(FileIOError):
        backup_file(str(tmp_path / "missing"))


def test_expand_tilde(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert expand_tilde("plain/name") == "plain/name"
    home = pwd.getpwuid(os.geteuid()).pw_dir.rstrip("/")
    assert expand_tilde("~/x") == home + "/x"
    assert expand_tilde("~nosuchuserzz/f") == "~nosuchuserzz/f"
    (tmp_path / "~local").write_text("")
    assert expand_tilde("~local") == "~local"


def test_adjust_name_double_slash(tmp_path):
    real = os.path.realpath(tmp_path)
    assert adjust_name("/junk/dir/" + str(tmp_path), True) == real


def test_adjust_name_missing_and_symlink(tmp_path):
    missing = str(tmp_path / "missing")
    assert adjust_name(missing, True) == missing
    target = tmp_path / "target"
    target.write_text("")
    link = tmp_path / "link"
    link.symlink_to(target)
    assert adjust_name(str(link), True) == os.path.realpath(target)


def test_startup_file(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    assert startup_file() is None
    (tmp_path / ".mg").write_text("")
    assert startup_file() == f"{tmp_path}/.mg"
    assert startup_file("xterm") is None
    (tmp_path / ".mg-xterm").write_text("")
    assert startup_file("xterm") == f"{tmp_path}/.mg-xterm"
    conf = tmp_path / "conf"
    conf.write_text("")
    assert startup_file(None, str(conf)) == str(conf)


def test_copy_file(tmp_path):
    src = tmp_path / "src"
    src.write_bytes(b"copy me")
    os.chmod(src, 0o640)
    dst = tmp_path / "dst"
    copy_file(str(src), str(dst))
    assert dst.read_bytes() == b"copy me"
    assert os.stat(dst).st_mode & 0o777 == 0o640
    with pytest.raises(FileIOError):
        copy_file(str(tmp_path / "missing"), str(dst))


def test_file_list_completes_prefix(tmp_path):
    (tmp_path / "abc").write_text("")
    (tmp_path / "abd").write_text("")
    (tmp_path / "abx").mkdir()
    (tmp_path / "zzz").write_text("")
    base = str(tmp_path) + "/"
    assert file_list(base + "ab") == [base + "abc", base + "abd", base + "abx/"]


def test_file_list_directory_and_dots(tmp_path):
    (tmp_path / "abc").write_text("")
    base = str(tmp_path) + "/"
    everything = file_list(base)
    assert base + "abc" in everything
    assert base + "../" in everything
    dots = file_list(base + ".")
    assert base + "./" in dots and base + "../" in dots
    assert base + "abc" not in dots


def test_file_list_unmatched(tmp_path):
    assert file_list(str(tmp_path) + "/nothing") == []
    assert file_list("") == []