"""
Settings for pyask, read from the environment.

PYASK_REWIND: whether sessions allow going back to earlier questions
    with the up-arrow (default "1").
PYASK_RAW_MODE: force a raw-mode implementation instead of probing
    ("auto", "termios", "curses", "stty", "windows" or "null").
PYASK_LOG_UDP: send log records over UDP so ``pyask --listen`` can show
    them (default "0").
"""

import os


RAW_MODES = ("auto", "null", "windows", "termios", "curses", "stty")

TRUE_STRINGS = ("1", "true", "yes", "on")
FALSE_STRINGS = ("0", "false", "no", "off", "")


class Config:
    """Plain settings object. Pass ``environ`` to read from a custom mapping."""

    def __init__(self, environ=None):
        environ = os.environ if environ is None else environ

        self.rewind = _as_flag(environ, "PYASK_REWIND", True)
        self.log_udp = _as_flag(environ, "PYASK_LOG_UDP", False)

        raw_mode = environ.get("PYASK_RAW_MODE", "auto").strip().lower()
        if raw_mode not in RAW_MODES:
            raise ValueError(
                f"Invalid PYASK_RAW_MODE {raw_mode!r}, expected one of {RAW_MODES}"
            )
        self.raw_mode = raw_mode

    def __repr__(self):
        return (
            f"<Config rewind={self.rewind} raw_mode={self.raw_mode!r} "
            f"log_udp={self.log_udp}>"
        )


def _as_flag(environ, name, default):
    value = environ.get(name)
    if value is None:
        return default
    value = value.strip().lower()
    if value in TRUE_STRINGS:
        return True
    elif value in FALSE_STRINGS:
        return False
    raise ValueError(f"Invalid value for {name}: {value!r}")
