import sys
import shutil
import logging

from ..config import Config
from ._input_reader import CharReader, _isatty
from .input_keys import LEAD_CHARS


logger = logging.getLogger("pyask")


class DeviceUnavailable(OSError):
    """Raised when raw mode cannot be acquired on an interactive device."""


def probe_kind(stdin):
    """Select the raw-mode implementation that is available for ``stdin``."""
    if not _isatty(stdin):
        return "null"
    if sys.platform.startswith("win"):
        return "windows"
    try:
        import termios  # noqa
    except ImportError:
        pass
    else:
        return "termios"
    try:
        import curses  # noqa
    except ImportError:
        pass
    else:
        return "curses"
    if shutil.which("stty"):
        return "stty"
    return "null"


def get_context_class(kind):
    try:
        if kind == "windows":
            from ._context_windows import WindowsTerminalContext as cls
        elif kind == "termios":
            from ._context_unix import UnixTerminalContext as cls
        elif kind == "curses":
            from ._context_curses import CursesTerminalContext as cls
        elif kind == "stty":
            from ._context_stty import SttyTerminalContext as cls
        elif kind == "null":
            cls = NullTerminalContext
        else:
            raise ValueError(f"Unknown raw-mode kind: {kind!r}")
    except (ImportError, AttributeError) as err:
        # E.g. msvcrt on Unix, or ctypes.WinDLL
        raise ValueError(
            f"Raw-mode kind {kind!r} is not available on this platform: {err}"
        ) from None
    return cls


class TerminalContext:
    """Context manager that puts the terminal in raw mode.

    Instantiating this class produces a subclass corresponding with the
    capabilities of the current platform (or the given ``kind``). Within
    the context, input is not echoed, not line-buffered, and control keys
    like ctrl-c arrive as characters. On exit the original mode is
    restored, however the context is left.

    When ``stdin`` is not a terminal, nothing is changed.
    """

    kind = "base"
    lead_chars = LEAD_CHARS

    def __new__(cls, stdin=None, stdout=None, kind=None):
        if cls is not TerminalContext:
            return super().__new__(cls)
        stdin = stdin or sys.__stdin__
        if not _isatty(stdin):
            kind = "null"
        elif kind is None or kind == "auto":
            kind = Config().raw_mode
            if kind == "auto":
                kind = probe_kind(stdin)
        return super().__new__(get_context_class(kind))

    def __init__(self, stdin=None, stdout=None, kind=None):
        self._entered = False
        self._raw = False
        self.stdin = stdin or sys.__stdin__
        self.stdout = stdout or sys.__stdout__

    def __repr__(self):
        return f"<{self.__class__.__name__} raw={self._raw}>"

    def __enter__(self):
        if self._entered:
            raise RuntimeError("Can only enter the context state once.")
        self._entered = True
        try:
            self._store_terminal_mode()
            self._set_terminal_mode()
        except DeviceUnavailable as err:
            logger.warning(f"Raw mode unavailable, using line input: {err}")
            self._reset_silently()
        else:
            self._raw = True
            logger.info(f"entered raw mode via {self.kind}")
        return self

    def __exit__(self, *args):
        self._entered = False
        if self._raw:
            self._raw = False
            self._reset_silently()
            logger.info(f"left raw mode via {self.kind}")

    @property
    def raw(self):
        """Whether the terminal is currently in raw mode."""
        return self._raw

    def reader(self):
        """Get a CharReader to read from the input within this context."""
        return CharReader(self.stdin)

    def _reset_silently(self):
        # Errors while restoring must not mask the error that got us here
        try:
            self._reset_terminal_mode()
        except Exception as err:
            logger.error(f"Could not restore terminal mode: {err}")

    # For subclasses to implement

    def _store_terminal_mode(self):
        raise NotImplementedError()

    def _set_terminal_mode(self):
        raise NotImplementedError()

    def _reset_terminal_mode(self):
        raise NotImplementedError()


class NullTerminalContext(TerminalContext):
    """Used when the input is not a terminal. Leaves everything as is."""

    kind = "null"

    def __enter__(self):
        if self._entered:
            raise RuntimeError("Can only enter the context state once.")
        self._entered = True
        return self

    def __exit__(self, *args):
        self._entered = False

    def _store_terminal_mode(self):
        pass

    def _set_terminal_mode(self):
        pass

    def _reset_terminal_mode(self):
        pass
