"""HTTP listener serving a WSGI application on one address."""

from __future__ import annotations

import socket
from threading import Lock
from typing import Optional

from werkzeug.serving import BaseWSGIServer, make_server

from .pool import Listener


class WSGIListener(Listener):
    """Serve ``app`` on ``host``:``port`` with werkzeug's threaded server.

    The socket is bound in :meth:`bind` so bind errors surface as
    :class:`OSError` to the pool; werkzeug then adopts the bound socket.
    """

    def __init__(self, host: str, port: int, app) -> None:
        self.host = host
        self.port = port
        self._app = app
        self._lock = Lock()
        self._sock: Optional[socket.socket] = None
        self._server: Optional[BaseWSGIServer] = None
        self._serving = False

    def bind(self) -> None:
        family = socket.AF_INET6 if ":" in self.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen(socket.SOMAXCONN)
            server = make_server(
                self.host, self.port, self._app, threaded=True, fd=sock.fileno()
            )
        except BaseException:
            sock.close()
            raise
        # werkzeug works on a duplicate of the descriptor; ours is closed in close()
        with self._lock:
            self._sock = sock
            self._server = server

    @property
    def address(self):
        with self._lock:
            if self._server is None:
                return None
            return self._server.socket.getsockname()

    def serve_forever(self) -> None:
        with self._lock:
            server = self._server
            if server is None:
                return
            self._serving = True
        server.serve_forever()

    def close(self) -> None:
        with self._lock:
            server, self._server = self._server, None
            sock, self._sock = self._sock, None
            serving = self._serving
        if server is not None:
            # shutdown() waits for serve_forever and would hang if it never ran
            if serving:
                server.shutdown()
            server.server_close()
        if sock is not None:
            sock.close()
