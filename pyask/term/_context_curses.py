import curses

from ._context import TerminalContext, DeviceUnavailable


class CursesTerminalContext(TerminalContext):
    """Raw mode via curses, for platforms that have curses but no termios.

    This always acts on the process' own terminal (stdin/stdout). Where
    the terminal has an alternate screen, curses switches to it on
    ``initscr()``; we switch right back so that the line is edited next
    to its prompt, like with the other implementations.
    """

    kind = "curses"

    def __init__(self, *args, **kwargs):
        self._screen = None
        self._enter_ca = self._exit_ca = None
        super().__init__(*args, **kwargs)

    @property
    def _has_ca(self):
        return bool(self._enter_ca and self._exit_ca)

    def _write_ca(self, sequence):
        # Written by us rather than curses, which buffers its output
        self.stdout.write(sequence.decode("latin-1"))
        self.stdout.flush()

    def _store_terminal_mode(self):
        try:
            # setupterm raises on a bad TERM, where initscr would exit
            curses.setupterm(fd=self.stdout.fileno())
            # initscr saves the shell mode, which endwin() restores
            self._screen = curses.initscr()
        except (curses.error, OSError, ValueError) as err:
            raise DeviceUnavailable(f"cannot initialize curses: {err}")
        self._enter_ca = curses.tigetstr("smcup")
        self._exit_ca = curses.tigetstr("rmcup")

    def _set_terminal_mode(self):
        try:
            curses.raw()
            curses.noecho()
            if self._has_ca:
                # Flush what curses has pending, on the alternate screen
                self._screen.refresh()
        except curses.error as err:
            raise DeviceUnavailable(f"cannot enter curses raw mode: {err}")
        if self._has_ca:
            # Back to the normal screen, with the cursor at the prompt
            self._write_ca(self._exit_ca)

    def _reset_terminal_mode(self):
        if self._screen is not None:
            self._screen = None
            if self._has_ca:
                # endwin() moves the cursor to the bottom row before it leaves
                # the alternate screen. Let it do that there, so the cursor
                # comes back to where the edit ended.
                self._write_ca(self._enter_ca)
            curses.noraw()
            curses.echo()
            curses.endwin()
