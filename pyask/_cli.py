import sys

from ._main import main
from .utils import listen_to_logs


def cli(argv=None):
    argv = sys.argv if argv is None else argv
    if "--version" in argv:
        from . import __version__

        print("pyask", __version__)
    elif "--listen" in argv:
        listen_to_logs()
    else:
        try:
            main()
        except (KeyboardInterrupt, EOFError):
            print()
            sys.exit(1)
