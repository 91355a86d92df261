"""
pyask - ask questions in the terminal, with line editing and rewind.
"""

from .prompt import read_line, read_event, read_char  # noqa
from .prompt import LineEditor, EditState, InterruptedByUser  # noqa
from .rewind import RewindStack, ResumePoint, RewindRequested  # noqa
from .session import Session, Question  # noqa
from .progress import with_progress  # noqa
from .term import TerminalContext, DeviceUnavailable  # noqa
from ._cli import cli  # noqa

__version__ = "0.1.0"
version_info = tuple(map(int, __version__.split(".")))
