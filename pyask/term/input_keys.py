"""
Decoding of terminal input into key events.

An event is a plain string: either the name of a special key (e.g. "up" or
"kill_word"), or a single character for a regular key press. Since all
special names are longer than one character, ``len(event) == 1`` tells
the two apart.
"""

# %% Tables

# Characters that map directly to an event.
EVENTS = {
    "\b": "backspace",  # Control-H
    "\t": "tab",  # Control-I
    "\x01": "home",  # Control-A
    "\x03": "interrupt",  # Control-C
    "\x04": "eof",  # Control-D
    "\x05": "end",  # Control-E
    "\x17": "kill_word",  # Control-W
    # Vt220 (and Linux terminal) send this when pressing backspace.
    "\x7f": "backspace",
    "\r": "enter",
    "\n": "enter",
}

# Sequences following a lead character. The single-letter forms are what
# the Windows console reports after its extended-key prefix.
ESCAPES = {
    "[A": "up",
    "H": "up",
    "[B": "down",
    "P": "down",
    "[C": "right",
    "M": "right",
    "[D": "left",
    "K": "left",
    "[3~": "delete",
    "S": "delete",
    "[H": "home",
    "G": "home",
    "[F": "end",
    "O": "end",
    "[Z": "shift_tab",
}

EVENT_NAMES = frozenset(EVENTS.values()) | frozenset(ESCAPES.values())

LEAD_CHARS = ("\x1b",)

# msvcrt.getwch() reports arrows and friends as "\xe0" + letter. We only
# treat it as a lead on the console, since elsewhere it's just an "à".
WINDOWS_LEAD_CHARS = ("\x1b", "\xe0")


# %% Decoder


class EventDecoder:
    """A streaming input key decoder.

    Characters are fed one at a time. Escape sequences may span any
    number of calls. When a pending sequence can no longer match any
    entry in ESCAPES, it is dropped, including the character that broke
    it. Those characters are *not* replayed as regular keys.
    """

    def __init__(self, lead_chars=LEAD_CHARS):
        self._lead_chars = tuple(lead_chars)
        self._key_tree = build_tree(ESCAPES)
        self._branch = None  # None when not inside an escape sequence

    @property
    def escaped(self):
        """Whether the decoder is halfway an escape sequence."""
        return self._branch is not None

    def reset(self):
        self._branch = None

    def feed(self, c):
        """Feed a single character. Returns an event, or None if the
        character did not (yet) produce one.
        """
        if c in self._lead_chars:
            # A lead always starts a fresh sequence
            self._branch = self._key_tree
            return None

        if self._branch is not None:
            node = self._branch.get(c)
            if node is None:
                self._branch = None  # abandon
            elif isinstance(node, dict):
                self._branch = node
            else:
                self._branch = None
                return node
            return None

        if c in EVENTS:
            return EVENTS[c]
        elif c < " ":
            return None  # ignore other control chars
        else:
            return c

    def decode(self, text):
        """Decode the given string into a list of events.

        A partial escape sequence at the end is kept for the next call.
        """
        result = []
        for c in text:
            event = self.feed(c)
            if event is not None:
                result.append(event)
        return result

    def next_event(self, read_char):
        """Read characters using ``read_char()`` until an event is complete.

        An empty string from ``read_char`` means end of input, which
        produces "eof".
        """
        while True:
            c = read_char()
            if not c:
                self._branch = None
                return "eof"
            event = self.feed(c)
            if event is not None:
                return event


def build_tree(map):
    """Build a tree from a flat map, so it can be traversed while decoding incoming chars."""
    trunk = {}
    for text, event in map.items():
        branch = trunk
        while len(text) > 1:
            char, text = text[0], text[1:]
            branch = branch.setdefault(char, {})
            assert isinstance(branch, dict), "sequence is prefix of another"
        assert text not in branch, "sequence is prefix of another"
        branch[text] = event
    return trunk
