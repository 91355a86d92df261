"""
Reading a line of input, with editing.

The LineEditor holds the answer and cursor position, and applies key
events to them. For every change, it writes the minimal output to keep
the terminal line in sync: characters to move right or redraw, backspaces
to move left, and blanks to clear what's left over.
"""

import re
import sys
import getpass
import logging

from .rewind import RewindRequested
from .term import TerminalContext, EventDecoder
from .term._input_reader import _isatty
from .term._writer import LineWriter


logger = logging.getLogger("pyask")

# Trailing whitespace, plus the run of non-space chars before it
KILL_WORD_RE = re.compile(r"\S*\s*$")


class InterruptedByUser(KeyboardInterrupt):
    """Raised when the user presses ctrl-c while input is read."""


class EditState:
    """The answer being edited, and the cursor position in it.

    The position is always between 0 and ``len(answer)``.
    """

    def __init__(self, answer="", position=0, echo=None, choices=None):
        self.answer = answer
        self.position = position
        self.echo = echo
        self.choices = choices
        self.done = False

    def __repr__(self):
        return f"<EditState {self.answer!r} at {self.position}{' done' if self.done else ''}>"

    def finish(self):
        """Signal that the read is complete."""
        self.done = True


class LineEditor:
    """Applies key events to an EditState, and updates the terminal.

    Parameters:
        file_out: the stream to write to.
        echo: if given, shown instead of each typed character.
        choices: candidates for tab-completion.
        complete: a callable ``complete(prefix)`` that returns candidates
            for tab-completion. Takes precedence over choices.
        rewind: a RewindStack; when given, up and shift-tab go back to the
            previous question.
        callback: a callable ``callback(key, editor)`` that gets the first
            go at every key. It returns True if it handled the key.
    """

    def __init__(
        self,
        file_out,
        *,
        echo=None,
        choices=None,
        complete=None,
        rewind=None,
        callback=None,
    ):
        self.state = EditState(echo=echo, choices=choices)
        self.writer = LineWriter(file_out, echo)
        self._complete = complete
        self._rewind = rewind
        self._callback = callback

    def on_key(self, key):
        if self.state.done:
            return
        if self._callback is not None and self._callback(key, self):
            return

        if len(key) == 1:
            # A regular character
            self._insert(key)
        elif key == "right":
            self._move_right()
        elif key == "left":
            self._move_left()
        elif key == "delete":
            self._delete()
        elif key == "backspace":
            self._backspace()
        elif key == "home":
            self._goto(0)
        elif key == "end":
            self._goto(len(self.state.answer))
        elif key == "kill_word":
            self._kill_word()
        elif key == "tab":
            self._tab()
        elif key == "interrupt":
            raise InterruptedByUser()
        elif key == "eof":
            if not self.state.answer:
                self.state.finish()
        elif key == "enter":
            self.state.finish()
        elif key in ("up", "shift_tab"):
            self._request_rewind()
        else:
            pass  # "down" and anything else we don't know

        self.writer.flush()

    def _insert(self, c):
        state, w = self.state, self.writer
        pos = state.position
        rest = state.answer[pos:]
        state.answer = state.answer[:pos] + c + rest
        w.display(c + rest)
        w.back(rest)
        state.position += 1

    def _move_right(self):
        state = self.state
        if state.position < len(state.answer):
            self.writer.display(state.answer[state.position])
            state.position += 1

    def _move_left(self):
        state = self.state
        if state.position > 0:
            self.writer.back(state.answer[state.position - 1])
            state.position -= 1

    def _delete(self):
        state, w = self.state, self.writer
        pos = state.position
        if pos < len(state.answer):
            removed = state.answer[pos]
            rest = state.answer[pos + 1 :]
            state.answer = state.answer[:pos] + rest
            w.display(rest)
            w.clear(removed)
            w.back(rest)

    def _backspace(self):
        state, w = self.state, self.writer
        pos = state.position
        if pos > 0:
            removed = state.answer[pos - 1]
            rest = state.answer[pos:]
            state.answer = state.answer[: pos - 1] + rest
            w.back(removed)
            w.display(rest)
            w.clear(removed)
            w.back(rest)
            state.position -= 1

    def _goto(self, new_pos):
        state = self.state
        self.writer.goto_cursor(state.answer, state.position, new_pos)
        state.position = new_pos

    def _kill_word(self):
        state, w = self.state, self.writer
        pos = state.position
        if pos == 0:
            return
        start = KILL_WORD_RE.search(state.answer[:pos]).start()
        killed = state.answer[start:pos]
        rest = state.answer[pos:]
        state.answer = state.answer[:start] + rest
        w.back(killed)
        w.display(rest)
        w.clear(killed)
        w.back(rest)
        state.position = start

    def _tab(self):
        state = self.state
        if self._complete is not None:
            candidates = self._complete(state.answer)
        else:
            candidates = state.choices or ()
        matches = []
        for candidate in candidates:
            if candidate.startswith(state.answer) and candidate not in matches:
                matches.append(candidate)

        # Only complete when unambiguous
        if len(matches) == 1:
            match = matches[0]
            self.writer.display(match[state.position :])
            state.answer = match
            state.position = len(match)
        else:
            self.writer.bell()

    def _request_rewind(self):
        if self._rewind is None:
            return
        point = self._rewind.rewind_once()
        if point is not None:
            raise RewindRequested(point)


def read_line(
    stdin=None,
    stdout=None,
    *,
    echo=None,
    choices=None,
    complete=None,
    rewind=None,
    callback=None,
    context_kind=None,
):
    """Read a line of input, with editing. Returns the answer as a string.

    See LineEditor for the meaning of the keyword arguments. Raises
    InterruptedByUser on ctrl-c, and RewindRequested when the user goes
    back to an earlier question. When the input ends, the read ends too,
    with whatever was typed so far ("" if nothing). In all cases the
    terminal is restored before this function returns or raises.
    """
    answer, _ = _read_line(
        stdin,
        stdout,
        echo=echo,
        choices=choices,
        complete=complete,
        rewind=rewind,
        callback=callback,
        context_kind=context_kind,
    )
    return answer


def _read_line(
    stdin=None,
    stdout=None,
    *,
    echo=None,
    choices=None,
    complete=None,
    rewind=None,
    callback=None,
    context_kind=None,
):
    # Returns (answer, exhausted), where exhausted means no more input can come
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    editor = LineEditor(
        stdout,
        echo=echo,
        choices=choices,
        complete=complete,
        rewind=rewind,
        callback=callback,
    )

    with TerminalContext(stdin, stdout, kind=context_kind) as context:
        if not context.raw and _isatty(stdin):
            # The terminal still echoes and buffers lines; let it do its thing
            return _read_plain_line(stdin, stdout, echo)

        reader = context.reader()
        decoder = EventDecoder(context.lead_chars)
        while not editor.state.done:
            key = decoder.next_event(reader.read_char)
            if reader.exhausted:
                # Nothing more can come, so this is the answer
                editor.state.finish()
            else:
                editor.on_key(key)

    return editor.state.answer, reader.exhausted


def read_event(stdin=None, callback=None, context_kind=None):
    """Read a single key event. If a callback is given, the result of
    ``callback(event)`` is returned instead.
    """
    stdin = stdin or sys.stdin
    with TerminalContext(stdin, kind=context_kind) as context:
        decoder = EventDecoder(context.lead_chars)
        event = decoder.next_event(context.reader().read_char)
    if callback is not None:
        return callback(event)
    return event


def read_char(stdin=None, context_kind=None):
    """Read a single character. Returns "" at end of input."""
    stdin = stdin or sys.stdin
    with TerminalContext(stdin, kind=context_kind) as context:
        return context.reader().read_char()


def _read_plain_line(stdin, stdout, echo):
    if echo is not None:
        # Masked input must not be echoed by the terminal either
        logger.info("reading a plain line without echo")
        try:
            return getpass.getpass("", stream=stdout), False
        except EOFError:
            return "", True
    logger.info("reading a plain line")
    line = stdin.readline()
    return line.rstrip("\r\n"), not line.endswith("\n")
