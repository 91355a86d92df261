import os
import tty  # Unix
import signal
import termios  # Unix
import threading

from ._context import TerminalContext, DeviceUnavailable


def patch_lflag(attrs: int) -> int:
    # No echo, no line buffering, and ctrl-c / ctrl-z arrive as characters.
    return attrs & ~(termios.ECHO | termios.ICANON | termios.IEXTEN | termios.ISIG)


def patch_iflag(attrs: int) -> int:
    return attrs & ~(
        # Disable XON/XOFF flow control on output and input.
        # (Don't capture Ctrl-S and Ctrl-Q.)
        # Like executing: "stty -ixon."
        termios.IXON
        | termios.IXOFF
        |
        # Don't translate carriage return into newline on input.
        termios.ICRNL
        | termios.INLCR
        | termios.IGNCR
    )


class UnixTerminalContext(TerminalContext):
    """Raw mode via POSIX terminal attributes."""

    kind = "termios"

    def __init__(self, *args, **kwargs):
        self._ori_term_attr = None
        self.fd_in = None
        super().__init__(*args, **kwargs)

    def _store_terminal_mode(self):
        try:
            self.fd_in = self.stdin.fileno()
            self._ori_term_attr = termios.tcgetattr(self.fd_in)
        except (termios.error, OSError, ValueError) as err:
            raise DeviceUnavailable(f"cannot get terminal attributes: {err}")
        self._check_foreground()

    def _check_foreground(self):
        # This was from Textual's start_application_mode()
        def _stop_again(*_) -> None:
            """Signal handler that will put the application back to sleep."""
            os.kill(os.getpid(), signal.SIGSTOP)

        # Signal handlers can only be installed from the main thread
        hook = threading.current_thread() is threading.main_thread()
        if hook:
            # If there's a SIGTTOU or a SIGTTIN, we go back to sleep.
            signal.signal(signal.SIGTTOU, _stop_again)
            signal.signal(signal.SIGTTIN, _stop_again)
        try:
            # Perform a NOP tcsetattr. If we've been put in the background,
            # this fails right away, rather than halfway reading a line.
            termios.tcsetattr(self.fd_in, termios.TCSANOW, self._ori_term_attr)
        except termios.error as err:
            self._ori_term_attr = None
            raise DeviceUnavailable(f"terminal is not ours to change: {err}")
        finally:
            if hook:
                signal.signal(signal.SIGTTOU, signal.SIG_DFL)
                signal.signal(signal.SIGTTIN, signal.SIG_DFL)

    def _set_terminal_mode(self):
        newattr = list(self._ori_term_attr)
        newattr[tty.CC] = list(newattr[tty.CC])
        newattr[tty.LFLAG] = patch_lflag(newattr[tty.LFLAG])
        newattr[tty.IFLAG] = patch_iflag(newattr[tty.IFLAG])

        # VMIN defines the number of characters read at a time in
        # non-canonical mode. It seems to default to 1 on Linux, but on
        # Solaris and derived operating systems it defaults to 4. (This is
        # because the VMIN slot is the same as the VEOF slot, which
        # defaults to ASCII EOT = Ctrl-D = 4.)
        newattr[tty.CC][termios.VMIN] = 1

        try:
            termios.tcsetattr(self.fd_in, termios.TCSANOW, newattr)
        except termios.error as err:
            raise DeviceUnavailable(f"cannot set terminal attributes: {err}")

    def _reset_terminal_mode(self):
        if self._ori_term_attr is not None:
            attr, self._ori_term_attr = self._ori_term_attr, None
            termios.tcsetattr(self.fd_in, termios.TCSANOW, attr)
