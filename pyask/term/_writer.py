import unicodedata


def char_width(ch):
    """Return the display width of a character in terminal cells."""
    o = ord(ch)
    # Fast path for ASCII
    if 0x20 <= o <= 0x7E:
        return 1
    if o < 0x20 or o == 0x7F:
        return 0
    if unicodedata.east_asian_width(ch) in ("W", "F"):
        return 2
    if unicodedata.category(ch).startswith("M"):
        return 0  # combining
    return 1


class LineWriter:
    """Writes the input line, keeping the terminal cursor in step.

    The cursor is only ever moved left with backspaces, and right by
    writing the characters that it passes over. That works on nearly
    anything, including consoles without vt100 support.

    When ``echo`` is given, each character is shown as that string
    instead (e.g. "*" for passwords). All widths are computed from what
    is shown, not from what was typed.
    """

    def __init__(self, file_out, echo=None):
        self._file_out = file_out
        self.echo = echo

    def _write(self, text):
        self._file_out.write(text)

    def flush(self):
        self._file_out.flush()

    def censor(self, text):
        if self.echo is None:
            return text
        return self.echo * len(text)

    def width(self, text):
        """The number of columns that ``text`` takes when displayed."""
        if self.echo is not None:
            return len(self.echo) * len(text)
        return sum(char_width(c) for c in text)

    # Primitives

    def display(self, text):
        """Show text at the cursor, moving the cursor past it."""
        if text:
            self._write(self.censor(text))

    def back(self, text):
        """Move the cursor left over the given (already displayed) text."""
        n = self.width(text)
        if n:
            self._write("\b" * n)

    def clear(self, text):
        """Blank out the columns taken by text, leaving the cursor in place."""
        n = self.width(text)
        if n:
            self._write(" " * n + "\b" * n)

    def goto_cursor(self, answer, old, new):
        """Move the cursor from position ``old`` to ``new`` in ``answer``."""
        if new > old:
            self.display(answer[old:new])
        elif new < old:
            self.back(answer[new:old])

    def bell(self):
        self._write("\a")
