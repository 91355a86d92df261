import subprocess

from ._context import TerminalContext, DeviceUnavailable


class SttyTerminalContext(TerminalContext):
    """Raw mode by running the ``stty`` command on the input terminal."""

    kind = "stty"

    def __init__(self, *args, **kwargs):
        self._before = None
        super().__init__(*args, **kwargs)

    def _stty(self, *args):
        try:
            p = subprocess.run(
                ["stty", *args],
                stdin=self.stdin,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                universal_newlines=True,
                check=True,
            )
        except (OSError, ValueError, subprocess.CalledProcessError) as err:
            raise DeviceUnavailable(f"stty {' '.join(args)} failed: {err}")
        return p.stdout.strip()

    def _store_terminal_mode(self):
        self._before = self._stty("-g")

    def _set_terminal_mode(self):
        self._stty("-echo", "-icanon", "-isig", "-icrnl", "min", "1")

    def _reset_terminal_mode(self):
        if self._before is not None:
            before, self._before = self._before, None
            self._stty(before)
