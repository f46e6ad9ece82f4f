import pytest

from mgedit.vscreen import CTEXT, VirtualScreen, display_width


NCOL = 20


@pytest.fixture
def screen():
    s = VirtualScreen(5, NCOL)
    s.move(0, 0)
    return s


def test_image_sizes(screen):
    assert len(screen.virtual) == 4
    assert len(screen.physical) == 4
    assert all(len(v.text) == NCOL for v in screen.virtual)


def test_blanks_line(screen):
    assert screen.blanks.color == CTEXT
    assert "".join(screen.blanks.text) == " " * NCOL


def test_puts_returns_length_and_writes(screen):
    assert screen.puts("hello") == len("hello")
    screen.eeol()
    assert screen.line(0) == "hello".ljust(NCOL)
    assert screen.col == NCOL


def test_tab_moves_to_tabstop(screen):
    screen.putc("\t", 8)
    assert screen.col == 8
    assert screen.line(0)[:8] == " " * 8


def test_tab_after_text_respects_width(screen):
    screen.puts("abc", 4)
    screen.putc("\t", 4)
    assert screen.col == 4
    assert screen.line(0)[:4] == "abc "


def test_control_char_shown_with_caret(screen):
    screen.putc("\x01")
    assert screen.line(0).startswith("^A")
    assert screen.col == 2


def test_delete_char(screen):
    screen.putc(0x7F)
    assert screen.line(0).startswith("^?")


def test_high_byte_as_octal(screen):
    screen.putc(0x80)
    assert screen.line(0).startswith("\\200")


def test_overflow_marks_dollar(screen):
    screen.puts("x" * (NCOL + 5))
    line = screen.line(0)
    assert line[-1] == "$"
    assert line[:-1] == "x" * (NCOL - 1)


@pytest.mark.parametrize(
    "text", ["plain", "a\tb", "\x01\x02", "tab\there\x7f", "\x90z", ""]
)
def test_display_width_matches_cursor(screen, text):
    screen.puts(text, 8)
    assert screen.col == display_width(text, 8)


def test_pute_scrolls_left(screen):
    text = "0123456789abcdefghijklmnopqrstuvwxyz"
    lbound = 10
    screen.move(1, -lbound)
    for ch in text:
        screen.pute(ch, 8, lbound)
    screen.eeol()
    line = screen.line(1)
    assert line[:-1] == text[lbound:lbound + NCOL - 1]
    assert line[-1] == "$"


def test_pute_short_line_is_blank_padded(screen):
    screen.move(2, -3)
    for ch in "abcdef":
        screen.pute(ch, 8, 3)
    screen.eeol()
    assert screen.line(2) == "def".ljust(NCOL)


def test_resize_invalid_raises(screen):
    with pytest.raises(ValueError):
        screen.resize(0, 10)
    with pytest.raises(ValueError):
        screen.resize(10, 0)


def test_resize_keeps_text(screen):
    screen.puts("keep")
    screen.resize(8, NCOL + 10)
    assert len(screen.virtual) == 7
    assert screen.line(0) == "keep".ljust(NCOL + 10)
    screen.resize(3, 2)
    assert screen.line(0) == "ke"
    assert len(screen.physical) == 2


def test_invalid_tab_width(screen):
    with pytest.raises(ValueError):
        screen.putc("\t", 0)
    with pytest.raises(ValueError):
        display_width("\t", 0)


def test_fresh_lines_have_no_flags(screen):
    assert all(v.flag == 0 for v in screen.virtual)