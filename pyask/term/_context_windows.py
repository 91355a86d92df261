import msvcrt
import ctypes
from ctypes import wintypes

from ._context import TerminalContext, DeviceUnavailable
from ._input_reader import CharReader
from .input_keys import WINDOWS_LEAD_CHARS


KERNEL32 = ctypes.WinDLL("kernel32", use_last_error=True)  # type: ignore

# Input modes
ENABLE_PROCESSED_INPUT = 0x0001
ENABLE_LINE_INPUT = 0x0002
ENABLE_ECHO_INPUT = 0x0004

# Output modes
ENABLE_VIRTUAL_TERMINAL_PROCESSING = 0x0004


def get_console_mode(fd) -> int:
    """Get the console mode for a given file descriptor (for stdout or stdin)"""
    windows_filehandle = msvcrt.get_osfhandle(fd)  # type: ignore
    mode = wintypes.DWORD()
    if not KERNEL32.GetConsoleMode(windows_filehandle, ctypes.byref(mode)):
        raise DeviceUnavailable(
            f"GetConsoleMode failed with error {ctypes.get_last_error()}"
        )
    return mode.value


def set_console_mode(fd, mode: int) -> bool:
    """Set the console mode for a given file descriptor (for stdout or stdin)."""
    windows_filehandle = msvcrt.get_osfhandle(fd)  # type: ignore
    success = KERNEL32.SetConsoleMode(windows_filehandle, mode)
    return bool(success)


class WindowsTerminalContext(TerminalContext):
    """Raw mode via the Windows console API.

    Characters are read with ``msvcrt.getwch()``, which reports special
    keys as "\\xe0" followed by a letter.
    """

    kind = "windows"
    lead_chars = WINDOWS_LEAD_CHARS

    def __init__(self, *args, **kwargs):
        self._ori_mode_in = None
        self._ori_mode_out = None
        super().__init__(*args, **kwargs)

    def reader(self):
        return CharReader(self.stdin, getch=msvcrt.getwch)

    def _store_terminal_mode(self):
        try:
            self.fd_in = self.stdin.fileno()
            self.fd_out = self.stdout.fileno()
        except (OSError, ValueError) as err:
            raise DeviceUnavailable(f"no console handles: {err}")
        # Get current mode, and store for reset
        mode_in = get_console_mode(self.fd_in)
        mode_out = get_console_mode(self.fd_out)
        self._ori_mode_in, self._ori_mode_out = mode_in, mode_out

    def _set_terminal_mode(self):
        mode_in = self._ori_mode_in & ~(
            ENABLE_LINE_INPUT | ENABLE_ECHO_INPUT | ENABLE_PROCESSED_INPUT
        )
        mode_out = self._ori_mode_out | ENABLE_VIRTUAL_TERMINAL_PROCESSING
        if not set_console_mode(self.fd_in, mode_in):
            raise DeviceUnavailable("SetConsoleMode failed for input")
        # Older consoles don't do VT; backspaces still work there
        set_console_mode(self.fd_out, mode_out)

    def _reset_terminal_mode(self):
        if self._ori_mode_in is not None:
            set_console_mode(self.fd_in, self._ori_mode_in)
            set_console_mode(self.fd_out, self._ori_mode_out)
            self._ori_mode_in = self._ori_mode_out = None
