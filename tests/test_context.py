import io
import os
import re
import sys
import time
import types
import select
import logging
import subprocess

import pytest

from pyask.prompt import read_line, InterruptedByUser
from pyask.rewind import RewindStack, ResumePoint, RewindRequested
from pyask.term import TerminalContext, CharReader, probe_kind
from pyask.term._context import NullTerminalContext


class FakeTTY(io.StringIO):
    """A text stream that claims to be a terminal."""

    def __init__(self, text="", fd=None):
        super().__init__(text)
        self._fd = fd

    def isatty(self):
        return True

    def fileno(self):
        if self._fd is None:
            raise io.UnsupportedOperation("fileno")
        return self._fd


# %% Null


def test_null_context_for_non_tty():
    context = TerminalContext(io.StringIO())
    assert isinstance(context, NullTerminalContext)
    with context:
        assert not context.raw
    # Even when a kind is asked for
    context = TerminalContext(io.StringIO(), kind="termios")
    assert isinstance(context, NullTerminalContext)


def test_context_not_reentrant():
    context = TerminalContext(io.StringIO())
    with context:
        with pytest.raises(RuntimeError):
            context.__enter__()
    # But can be used again after
    with context:
        pass


def test_probe_kind():
    assert probe_kind(io.StringIO()) == "null"
    if sys.platform.startswith("win"):
        assert probe_kind(FakeTTY()) == "windows"
    else:
        assert probe_kind(FakeTTY()) in ("termios", "curses", "stty")


def test_unknown_kind():
    with pytest.raises(ValueError):
        TerminalContext(FakeTTY(), kind="teletype")


def test_kind_not_on_this_platform(monkeypatch):
    other = "termios" if sys.platform.startswith("win") else "windows"
    with pytest.raises(ValueError) as info:
        TerminalContext(FakeTTY(), kind=other)
    assert "not available on this platform" in str(info.value)

    monkeypatch.setenv("PYASK_RAW_MODE", other)
    with pytest.raises(ValueError):
        read_line(FakeTTY("x\r"), io.StringIO())


# %% termios


ECHO_FLAGS = ("ECHO", "ICANON", "ISIG", "IEXTEN")


def fake_termios(monkeypatch, termios, fail=False):
    original = [
        termios.ICRNL | termios.IXON,
        0,
        0,
        termios.ECHO | termios.ICANON | termios.ISIG | termios.IEXTEN,
        0,
        0,
        [0] * 32,
    ]
    calls = []

    def tcgetattr(fd):
        if fail:
            raise termios.error(25, "Inappropriate ioctl for device")
        return [list(x) if isinstance(x, list) else x for x in original]

    def tcsetattr(fd, when, attrs):
        calls.append((fd, when, attrs))

    monkeypatch.setattr(termios, "tcgetattr", tcgetattr)
    monkeypatch.setattr(termios, "tcsetattr", tcsetattr)
    return original, calls


def test_unix_context(monkeypatch):
    termios = pytest.importorskip("termios")
    from pyask.term._context_unix import UnixTerminalContext

    original, calls = fake_termios(monkeypatch, termios)

    context = TerminalContext(FakeTTY(fd=7), kind="termios")
    assert isinstance(context, UnixTerminalContext)

    with context:
        assert context.raw
        fd, when, raw = calls[-1]
        assert fd == 7
        for name in ECHO_FLAGS:
            assert not raw[3] & getattr(termios, name)
        assert not raw[0] & termios.ICRNL
        assert not raw[0] & termios.IXON
        assert raw[6][termios.VMIN] == 1

    assert not context.raw
    assert calls[-1][2] == original
    # The original attributes were not touched
    assert original[3] & termios.ECHO


@pytest.mark.parametrize(
    "error",
    [ValueError(), InterruptedByUser(), RewindRequested(ResumePoint(0, "q"))],
)
def test_unix_context_restores_on_error(monkeypatch, error):
    termios = pytest.importorskip("termios")
    original, calls = fake_termios(monkeypatch, termios)

    context = TerminalContext(FakeTTY(fd=7), kind="termios")
    with pytest.raises(type(error)):
        with context:
            raise error
    assert calls[-1][2] == original
    assert not context.raw


def test_unix_context_unavailable(monkeypatch, caplog):
    termios = pytest.importorskip("termios")
    original, calls = fake_termios(monkeypatch, termios, fail=True)

    ran = []
    with caplog.at_level(logging.WARNING, logger="pyask"):
        with TerminalContext(FakeTTY(fd=7), kind="termios") as context:
            ran.append(context.raw)
    assert ran == [False]
    assert calls == []
    assert "Raw mode unavailable" in caplog.text


def test_context_kind_from_env(monkeypatch):
    from pyask.term._context_stty import SttyTerminalContext

    monkeypatch.setenv("PYASK_RAW_MODE", "stty")
    assert isinstance(TerminalContext(FakeTTY()), SttyTerminalContext)
    monkeypatch.setenv("PYASK_RAW_MODE", "null")
    assert isinstance(TerminalContext(FakeTTY()), NullTerminalContext)


# %% stty


def fake_stty(monkeypatch, fail=False):
    from pyask.term import _context_stty

    calls = []

    def run(args, **kwargs):
        calls.append(list(args))
        if fail:
            raise _context_stty.subprocess.CalledProcessError(1, args)
        stdout = "saved:state\n" if args[1:] == ["-g"] else ""
        return types.SimpleNamespace(stdout=stdout)

    monkeypatch.setattr(_context_stty.subprocess, "run", run)
    return calls


STTY_RAW = ["stty", "-echo", "-icanon", "-isig", "-icrnl", "min", "1"]


def test_stty_context(monkeypatch):
    calls = fake_stty(monkeypatch)
    with TerminalContext(FakeTTY(), kind="stty") as context:
        assert context.raw
        assert calls == [["stty", "-g"], STTY_RAW]
    assert calls[-1] == ["stty", "saved:state"]


def test_stty_read_line(monkeypatch):
    calls = fake_stty(monkeypatch)
    out = io.StringIO()
    assert read_line(FakeTTY("hi\x1b[Do\r"), out, context_kind="stty") == "hoi"
    assert calls[-1] == ["stty", "saved:state"]

    with pytest.raises(InterruptedByUser):
        read_line(FakeTTY("x\x03"), out, context_kind="stty")
    assert calls[-1] == ["stty", "saved:state"]


def test_stty_rewind_restores(monkeypatch):
    calls = fake_stty(monkeypatch)
    stack = RewindStack()
    stack.remember(ResumePoint(0, "q"), "a")
    with pytest.raises(RewindRequested):
        read_line(FakeTTY("\x1b[A"), io.StringIO(), rewind=stack, context_kind="stty")
    assert calls[-1] == ["stty", "saved:state"]


def test_stty_unavailable_falls_back_to_lines(monkeypatch):
    calls = fake_stty(monkeypatch, fail=True)
    out = io.StringIO()
    assert read_line(FakeTTY("hello\nmore\n"), out, context_kind="stty") == "hello"
    # The terminal echoes in line mode, so we don't
    assert out.getvalue() == ""
    assert calls == [["stty", "-g"]]

    assert read_line(FakeTTY(""), out, context_kind="stty") == ""


def test_stty_unavailable_masked_input_not_echoed(monkeypatch):
    from pyask import prompt

    fake_stty(monkeypatch, fail=True)
    prompts = []

    def getpass(text="", stream=None):
        prompts.append((text, stream))
        return "secret"

    monkeypatch.setattr(prompt.getpass, "getpass", getpass)
    stdin, out = FakeTTY("typed\n"), io.StringIO()
    assert read_line(stdin, out, echo="*", context_kind="stty") == "secret"
    assert prompts == [("", out)]
    # The line was not read with echo on
    assert stdin.read() == "typed\n"
    assert out.getvalue() == ""


# %% curses

CA_STRINGS = {"smcup": b"\x1b[?1049h", "rmcup": b"\x1b[?1049l"}


class RecordingTTY(FakeTTY):
    """A terminal output that logs what is written in a shared list."""

    def __init__(self, calls):
        super().__init__(fd=1)
        self.calls = calls

    def write(self, text):
        self.calls.append(text)
        return super().write(text)


def fake_curses(monkeypatch, curses, ca_strings):
    calls = []
    screen = types.SimpleNamespace(refresh=lambda: calls.append("refresh"))
    for name in ("setupterm", "raw", "noecho", "noraw", "echo", "endwin"):
        monkeypatch.setattr(
            curses, name, lambda *args, _name=name, **kwargs: calls.append(_name)
        )
    monkeypatch.setattr(curses, "initscr", lambda: calls.append("initscr") or screen)
    monkeypatch.setattr(curses, "tigetstr", ca_strings.get)
    return calls


def test_curses_context(monkeypatch):
    curses = pytest.importorskip("curses")
    from pyask.term._context_curses import CursesTerminalContext

    calls = fake_curses(monkeypatch, curses, {})

    context = TerminalContext(FakeTTY(), RecordingTTY(calls), kind="curses")
    assert isinstance(context, CursesTerminalContext)
    with pytest.raises(ValueError):
        with context:
            assert context.raw
            assert calls == ["setupterm", "initscr", "raw", "noecho"]
            raise ValueError()
    assert calls[-3:] == ["noraw", "echo", "endwin"]


def test_curses_context_alternate_screen(monkeypatch):
    curses = pytest.importorskip("curses")
    calls = fake_curses(monkeypatch, curses, CA_STRINGS)

    with TerminalContext(FakeTTY(), RecordingTTY(calls), kind="curses"):
        # Switched back to the normal screen, after curses got its output out
        assert calls == [
            "setupterm",
            "initscr",
            "raw",
            "noecho",
            "refresh",
            "\x1b[?1049l",
        ]
        del calls[:]
    # And to the alternate screen again, so endwin() leaves it
    assert calls == ["\x1b[?1049h", "noraw", "echo", "endwin"]


def test_curses_context_unavailable(monkeypatch):
    curses = pytest.importorskip("curses")

    def setupterm(*args, **kwargs):
        raise curses.error("setupterm: could not find terminal")

    monkeypatch.setattr(curses, "setupterm", setupterm)
    with TerminalContext(FakeTTY(), FakeTTY(fd=1), kind="curses") as context:
        assert not context.raw


CURSES_CHILD = """
import sys
import curses

try:
    curses.setupterm("xterm", sys.stdout.fileno())
except curses.error:
    sys.exit(3)

from pyask.prompt import read_line

sys.stdout.write("Name: ")
sys.stdout.flush()
answer = read_line(sys.stdin, sys.stdout, context_kind="curses")
sys.stdout.write("\\n<" + answer + ">\\n")
sys.stdout.flush()
"""


def normal_screen_text(text):
    """The parts of the output that land on the normal screen."""
    parts, alternate = [], False
    for part in re.split(r"(\x1b\[\?1049[hl])", text):
        if part == "\x1b[?1049h":
            alternate = True
        elif part == "\x1b[?1049l":
            alternate = False
        elif not alternate:
            parts.append(part)
    return "".join(parts)


@pytest.mark.skipif(sys.platform.startswith("win"), reason="needs a pty")
def test_curses_read_line_in_pty():
    pty = pytest.importorskip("pty")
    termios = pytest.importorskip("termios")
    pytest.importorskip("curses")

    root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    env = dict(os.environ, TERM="xterm", PYTHONPATH=root)
    env.pop("PYASK_RAW_MODE", None)

    master, slave = pty.openpty()
    proc = subprocess.Popen(
        [sys.executable, "-c", CURSES_CHILD],
        stdin=slave,
        stdout=slave,
        stderr=slave,
        env=env,
        start_new_session=True,
    )
    os.close(slave)
    try:
        # Type only once in raw mode, or the pty would echo the keys itself
        deadline = time.time() + 10
        while termios.tcgetattr(master)[3] & termios.ICANON:
            if proc.poll() is not None or time.time() > deadline:
                break
            time.sleep(0.01)
        if proc.poll() == 3:
            pytest.skip("no terminfo entry for xterm")
        os.write(master, b"ab\r")

        output = b""
        while True:
            ready, _, _ = select.select([master], [], [], 10)
            if not ready:
                break
            try:
                data = os.read(master, 1024)
            except OSError:
                break  # EIO when the child is gone
            if not data:
                break
            output += data
        assert proc.wait(10) == 0
    finally:
        if proc.poll() is None:
            proc.kill()
        os.close(master)

    text = output.decode("utf-8", "replace")
    assert "<ab>" in text
    normal = normal_screen_text(text)
    # No jumping around on the normal screen
    assert not re.search(r"\x1b\[\d*(;\d*)?[Hf]", normal)
    plain = re.sub(r"\x1b(\[[0-9;?]*[A-Za-z]|[=>])", "", normal)
    assert "Name: ab" in plain


# %% CharReader


def test_char_reader_stream():
    reader = CharReader(io.StringIO("aé"))
    assert reader.read_char() == "a"
    assert reader.read_char() == "é"
    assert not reader.exhausted
    assert reader.read_char() == ""
    assert reader.exhausted
    assert reader.read_char() == ""


def test_char_reader_fd():
    r, w = os.pipe()
    try:
        os.write(w, "é€x".encode())
        os.close(w)
        reader = CharReader(FakeTTY(fd=r))
        assert reader.read_char() == "é"
        assert reader.read_char() == "€"
        assert reader.read_char() == "x"
        assert reader.read_char() == ""
        assert reader.exhausted
    finally:
        os.close(r)


def test_char_reader_getch():
    chars = iter("ab")
    reader = CharReader(FakeTTY(), getch=lambda: next(chars, ""))
    assert reader.read_char() == "a"
    assert reader.read_char() == "b"
    assert reader.read_char() == ""
