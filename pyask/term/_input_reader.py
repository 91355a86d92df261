import io
import os
import logging
from codecs import getincrementaldecoder


logger = logging.getLogger("pyask")


class CharReader:
    """Reads one character at a time from an input stream.

    Terminals are read straight from their file descriptor, so that no
    bytes end up in Python's buffers while we're in raw mode. Other
    streams (files, pipes, StringIO) are read via ``stream.read(1)``.
    A custom ``getch`` function can be given instead (e.g. msvcrt.getwch).
    """

    def __init__(self, stdin, getch=None):
        self._stdin = stdin
        self._getch = getch
        self._fd = None
        self.exhausted = False

        if getch is None and _isatty(stdin):
            try:
                self._fd = stdin.fileno()
            except (AttributeError, io.UnsupportedOperation):
                self._fd = None
        self._decode = getincrementaldecoder("utf-8")(errors="replace").decode

    def read_char(self):
        """Read a single character. Returns "" at end of input."""
        if self.exhausted:
            return ""

        if self._getch is not None:
            c = self._getch()
        elif self._fd is not None:
            c = self._read_fd()
        else:
            c = self._stdin.read(1)

        if not c:
            self.exhausted = True
            logger.info("input exhausted")
        return c

    def _read_fd(self):
        # Keep reading bytes until they make up a full (utf-8) character
        read = os.read
        decode = self._decode
        while True:
            bb = read(self._fd, 1)
            if not bb:
                return decode(b"", final=True)
            c = decode(bb)
            if c:
                return c


def _isatty(stream):
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False
