import socket
import logging

from .config import Config


logger = logging.getLogger("pyask")
logger.setLevel(logging.INFO)

PORT = 12013


class UDPHandler(logging.Handler):
    """Sends log records over UDP, so they don't end up in the terminal
    that we're editing a line in.
    """

    udp_address = ("127.0.0.1", PORT)

    def __init__(self):
        super().__init__()
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def emit(self, record):
        msg = self.format(record)
        bb = msg.encode()
        size = 2**10
        while bb:
            bb1 = bb[:size]
            bb = bb[size:]
            self._socket.sendto(bb1, self.udp_address)

    def close(self):
        self._socket.close()
        super().close()


def enable_udp_logging():
    """Attach a UDPHandler to the pyask logger (once)."""
    for handler in logger.handlers:
        if isinstance(handler, UDPHandler):
            return handler
    handler = UDPHandler()
    logger.addHandler(handler)
    return handler


def listen_to_logs():
    """Called from ``pyask --listen```

    This way we can see the logs from another process, so it does not get mixed up with the prompts.
    """

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", PORT))

    while True:
        data, addr = sock.recvfrom(2**20)
        print(data.decode())


if Config().log_udp:
    enable_udp_logging()
