import gzip
import os

import pytest

from mgedit.file import (
    SaveOptions,
    base_name,
    check_target_dir,
    dir_name,
    insert_file,
    readonly_status,
    save_buffer,
    write_file,
)
from mgedit.fileio import FileIOError, FileStat


class Recorder:
    def __init__(self, answer=True):
        self.answer = answer
        self.prompts = []

    def __call__(self, prompt):
        self.prompts.append(prompt)
        return self.answer


@pytest.mark.parametrize(
    "path, expected",
    [("/usr/lib", "/usr"), ("/usr", ""), ("foo", "."), ("a/b/", "a"), ("", "."), ("/", "")],
)
def test_dir_name(path, expected):
    assert dir_name(path) == expected


@pytest.mark.parametrize(
    "path, expected",
    [("/usr/lib", "lib"), ("/", "/"), ("a/b/", "b"), ("", "."), ("name", "name")],
)
def test_base_name(path, expected):
    assert base_name(path) == expected


def test_insert_file_reads_lines(tmp_path):
    target = tmp_path / "f.txt"
    target.write_bytes(b"a\nb\n")
    result = insert_file(str(target))
    assert result.lines == ["a", "b", ""]
    assert result.message == f"(Read {len(result.lines)} lines)"
    assert not result.new_file
    assert result.stat.mtime_ns == os.stat(target).st_mtime_ns


def test_insert_empty_file_reads_one_line(tmp_path):
    target = tmp_path / "empty"
    target.write_bytes(b"")
    result = insert_file(str(target))
    assert result.lines == [""]
    assert result.message == "(Read 1 line)"


def test_insert_missing_file_is_new(tmp_path):
    result = insert_file(str(tmp_path / "missing.txt"))
    assert result.new_file
    assert result.lines == [""]
    assert result.message == "(New file)"
    assert result.missing_directory is None


def test_insert_directory_raises(tmp_path):
    with pytest.raises(IsADirectoryError):
        insert_file(str(tmp_path))


def test_insert_gzip_is_readonly(tmp_path):
    target = tmp_path / "data.txt.gz"
    with gzip.open(target, "wb") as fh:
        fh.write(b"x\ny")
    result = insert_file(str(target))
    assert result.lines == ["x", "y"]
    assert result.readonly


def test_readonly_status_directory(tmp_path):
    assert readonly_status(str(tmp_path)) == (True, None)


def test_readonly_status_missing_directory(tmp_path):
    path = str(tmp_path / "nodir" / "file")
    assert readonly_status(path) == (False, str(tmp_path / "nodir") + "/")


def test_check_target_dir_missing(tmp_path):
    with pytest.raises(FileIOError):
        check_target_dir(str(tmp_path / "nodir" / "file"))


def test_write_file_adds_final_newline(tmp_path):
    target = tmp_path / "out.txt"
    confirm = Recorder(True)
    result = write_file(str(target), ["one", "two"], confirm=confirm)
    assert result == ["one", "two", ""]
    assert target.read_bytes() == b"one\ntwo\n"
    assert confirm.prompts == ["No newline at end of file, add one"]


def test_write_file_declined_newline(tmp_path):
    target = tmp_path / "out.txt"
    result = write_file(str(target), ["one", "two"], confirm=Recorder(False))
    assert result == ["one", "two"]
    assert target.read_bytes() == b"one\ntwo"


def test_write_file_declined_overwrite(tmp_path):
    target = tmp_path / "out.txt"
    target.write_bytes(b"keep")
    confirm = Recorder(False)
    assert write_file(str(target), ["new", ""], confirm=confirm) is None
    assert target.read_bytes() == b"keep"
    assert confirm.prompts == [f"File `{target}' exists; overwrite"]


def test_write_file_to_directory_raises(tmp_path):
    with pytest.raises(IsADirectoryError):
        write_file(str(tmp_path), ["x"])


def test_write_then_read_round_trip(tmp_path):
    target = tmp_path / "rt.txt"
    lines = ["alpha", "", "gamma\tdelta", ""]
    write_file(str(target), lines)
    assert insert_file(str(target)).lines == lines


def test_save_unchanged_does_nothing(tmp_path):
    target = tmp_path / "s.txt"
    assert save_buffer(str(target), ["x", ""], changed=False) is None
    assert not target.exists()


def test_save_without_name_raises():
    with pytest.raises(ValueError):
        save_buffer("", ["x"], changed=True)


def test_save_makes_backup(tmp_path):
    target = tmp_path / "s.txt"
    target.write_bytes(b"old\n")
    result = save_buffer(str(target), ["new", ""], changed=True)
    assert result == ["new", ""]
    assert target.read_bytes() == b"new\n"
    assert (tmp_path / "s.txt~").read_bytes() == b"old\n"


def test_save_without_backup(tmp_path):
    target = tmp_path / "s.txt"
    target.write_bytes(b"old\n")
    options = SaveOptions(make_backup=False)
    save_buffer(str(target), ["new", ""], changed=True, options=options)
    assert target.read_bytes() == b"new\n"
    assert not (tmp_path / "s.txt~").exists()


def test_save_declined_when_changed_on_disk(tmp_path):
    target = tmp_path / "s.txt"
    target.write_bytes(b"old\n")
    confirm = Recorder(False)
    result = save_buffer(str(target), ["new", ""], changed=True,
                         confirm=confirm, stat=FileStat(mtime_ns=1))
    assert result is None
    assert target.read_bytes() == b"old\n"
    assert confirm.prompts == ["File has changed on disk since last save. Save anyway"]


def test_save_skips_newline_prompt_when_disabled(tmp_path):
    target = tmp_path / "s.txt"
    options = SaveOptions(make_backup=False, newline_prompt=False)
    confirm = Recorder(True)
    result = save_buffer(str(target), ["a"], changed=True, options=options, confirm=confirm)
    assert result == ["a"]
    assert confirm.prompts == []
    assert target.read_bytes() == b"a"


def test_save_options_toggles():
    options = SaveOptions()
    assert options.toggle_backup() is False
    assert options.toggle_backup() is True
    assert options.toggle_backup(0) is False
    assert options.toggle_backup(3) is True
    assert options.toggle_newline_prompt() is False
    assert options.toggle_newline_prompt() is True