"""
A simple progress indicator: a message followed by animated dots.

The dots are written from a background thread. Since that would mess up
the cursor bookkeeping of a line being edited, the session stops all
running dots before it shows a prompt (see ``stop_all()``).
"""

import sys
import logging
import threading
import contextlib


logger = logging.getLogger("pyask")

DOT_COUNT = 3
DOT_TICK = 0.15

_running = set()
_running_lock = threading.Lock()


class Dots:
    """Dots that cycle between 1 and DOT_COUNT, on a background thread."""

    def __init__(self, file_out=None, tick=DOT_TICK):
        self._file_out = file_out or sys.stdout
        self._tick = tick
        self._thread = None
        self._stop = threading.Event()

    @property
    def running(self):
        return self._thread is not None

    def start(self):
        with _running_lock:
            if self._thread is not None:
                return
            self._stop.clear()
            self._thread = threading.Thread(target=self._run, daemon=True)
            _running.add(self)
        self._thread.start()

    def stop(self):
        """Stop the dots and wipe them. Returns after the thread is done."""
        with _running_lock:
            thread, self._thread = self._thread, None
            _running.discard(self)
        if thread is None:
            return
        self._stop.set()
        thread.join()

    def _run(self):
        write, flush = self._file_out.write, self._file_out.flush
        n = DOT_COUNT
        printed = False
        i = 1
        while not self._stop.is_set():
            if printed:
                write("\b" * n)
            write(("." * i).ljust(n))
            flush()
            printed = True
            i = 0 if i == n else i + 1
            self._stop.wait(self._tick)

        if printed:
            write("\b" * n + " " * n + "\b" * n)
            flush()


def stop_all():
    """Stop all running dots."""
    with _running_lock:
        dots = list(_running)
    for d in dots:
        d.stop()


class SkipProgress(Exception):
    """Raised by the Skipper to leave a ``with_progress`` block early."""

    def __init__(self, status):
        super().__init__(status)
        self.status = status


class Skipper:
    """Handed out by ``with_progress`` to end the block with another status."""

    def skip(self):
        raise SkipProgress("SKIPPED")

    def give_up(self):
        raise SkipProgress("GAVE UP")

    def fail(self):
        raise SkipProgress("FAILED")


@contextlib.contextmanager
def with_progress(message, file_out=None, quiet=False):
    """Show message with dots while the block runs, then its outcome.

    The outcome is "OK", "FAILED" when the block raises (the error is
    re-raised), or whatever the Skipper was asked to do.
    """
    file_out = file_out or sys.stdout
    dots = Dots(file_out)

    def finish(status):
        logger.info(f"progress {message!r}: {status}")
        if not quiet:
            dots.stop()
            file_out.write(f"... {status}\n")
            file_out.flush()

    if not quiet:
        file_out.write(message)
        file_out.flush()
        dots.start()

    try:
        yield Skipper()
    except SkipProgress as err:
        finish(err.status)
    except BaseException:
        finish("FAILED")
        raise
    else:
        finish("OK")
