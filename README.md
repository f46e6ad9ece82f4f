# mgedit

Building blocks of a small Emacs-style text editor. Each module can be used
on its own. The package has no third-party dependencies.

## Modules

- `mgedit.funmap`: `FunctionMap` is a table of command names, the callables
  they run and how many arguments each takes. `add` registers an entry, and
  later entries shadow earlier ones. `name_function` and `function_name` look
  entries up by name or by callable. `complete(prefix)` lists the matching
  names, and `numparams` returns an entry's argument count. The table starts
  empty.
- `mgedit.vscreen`: `VirtualScreen` holds the virtual and physical screen
  images as lists of `Video` lines, plus a virtual cursor.
  - `putc` and `puts` expand tabs, show control characters as `^X` and other
    non-printing bytes as octal escapes such as `\200`. A `$` marks text that
    runs past the right margin.
  - `pute` writes a line that is scrolled left.
  - `eeol` blanks the rest of the line and `line(row)` returns a line's text.
  - `display_width(text, tabwidth)` measures text by the same rules.
- `mgedit.modeline`: `render_modeline` draws a status line into a screen row.
  It takes a `ModelineInfo` (buffer name, read-only and changed flags, modes,
  line and column). `DisplayOptions` switches line numbers, column numbers and
  the clock on or off; each toggle also marks the screen for a full redraw.
- `mgedit.redisplay`: `Redisplay` brings a `Terminal` up to date with a
  `VirtualScreen`. `Terminal` is an in-memory cell grid that records its
  operations.
  - `refresh(row, col, garbage, hard)` either redraws everything, redraws only
    the changed lines, or does a "hard" update.
  - A hard update matches lines by hash and then picks the cheapest mix of
    line insert, line delete and redraw by dynamic programming, weighted by
    `TerminalCosts`.
- `mgedit.fileio`: file access.
  - `read_lines` and `write_lines` read and write a file as lines. Files ending
    in `.gz` are decompressed with the `gzip` module when read.
  - `backup_file` and `BackupSettings` make `file~` backups, optionally in one
    directory with `/` written as `!`.
  - `expand_tilde` expands a leading `~`, and `adjust_name` canonicalises a
    name.
  - `file_list` completes file names, `check_mtime` detects changes made on
    disk, and `copy_file` copies a file.
  - `startup_file` finds a readable `~/.mg` or `~/.mg-<suffix>`.
  - Failures raise `FileIOError`.
- `mgedit.file`: higher-level file commands.
  - `insert_file` returns a `ReadResult` with the lines, a message such as
    `(Read 3 lines)`, and read-only and new-file information. A missing file
    gives an empty new buffer.
  - `write_file` asks before overwriting an existing file.
  - `save_buffer` checks the modification time, makes a backup and writes the
    file. `SaveOptions` controls backups and the final-newline question.
  - Questions go to a `confirm(prompt) -> bool` callback, which defaults to
    "yes".
  - Also here: `readonly_status`, `check_target_dir`, `dir_name` and
    `base_name`.
- `mgedit.echo`: the echo line and one-line input.
  - `EchoLine` is the message line.
  - `LineEditor` reads a line one key at a time through `feed`. It supports
    the usual control keys, arrow-key escape sequences, kill and yank, quoting
    and tab completion.
  - `format_message` handles the `%c %k %d %ld %o %p %s` directives.
  - `complete`, `common_extra` and `completion_columns` do name completion and
    lay out completion lists.
  - `parse_yorn`, `parse_ynr` and `parse_yesno` turn replies into an `Answer`.
- `mgedit.extend`: key bindings and the startup-file interpreter.
  - `Keymap` binds key sequences to callables or to nested keymaps.
  - `Interpreter` runs lines such as `global-set-key "\^x\^f" find-file` or
    `set-fill-column 72` against a `FunctionMap`. Errors raise `ExtendError`
    with the line number.
  - `parse_line`, `parse_token`, `parse_quoted` and `parse_key_string` split
    and decode those lines.

## Example

```python
from mgedit.funmap import FunctionMap
from mgedit.extend import Interpreter, Keymap
from mgedit.vscreen import VirtualScreen

def find_file(count, *args):
    return True

commands = FunctionMap()
commands.add(find_file, "find-file", 1)
print(commands.complete("find"))          # ['find-file']

interp = Interpreter(commands)
interp.execute_line('global-set-key "\\^x\\^f" find-file')
print(interp.global_map.lookup([0x18, 0x06]) is find_file)   # True

screen = VirtualScreen(24, 80)
screen.move(0, 0)
screen.puts("a\tb\x01", tabwidth=8)
screen.eeol()
print(repr(screen.line(0)[:12]))          # 'a       b^A '
```

## What it does not do

This package is made of parts, not a complete editor.

- It has no terminal driver. `Terminal` only updates an in-memory grid.
- It has no buffers, windows or main loop, and no key reader. Keys are passed
  to `LineEditor.feed` by the caller.
- `FunctionMap` comes with no editing commands registered.
- `Interpreter` does not accept parenthesised expressions.
- There is no command-line program to run.

## Tests

```
pip install -e .[test]
pytest
```