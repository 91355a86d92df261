"""
Utilities to work with the terminal and key input.

Reading a line with editing needs the terminal in "raw" mode: no echo,
no line buffering, and control keys delivered as characters. How to get
there differs per platform, which is why there is a base TerminalContext
class with implementations for termios, curses, stty and the Windows
console. The right one is picked when the context is instantiated.

Output is kept to backspaces and plain characters, so the same code
works on all of them.
"""

from ._context import TerminalContext, DeviceUnavailable, probe_kind  # noqa
from ._input_reader import CharReader  # noqa
from ._writer import LineWriter  # noqa
from .input_keys import EventDecoder, EVENTS, ESCAPES, EVENT_NAMES  # noqa
