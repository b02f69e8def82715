"""
Shared fixtures: a fake unixctl daemon listening on a real Unix socket
"""
import shutil
import socket
import tempfile
import threading
from pathlib import Path

import pytest

from ovs_unixctl.utils.serialization import JsonStreamDecoder, encode_message

COMMANDS_LISTING = (
    "The available commands are:\n"
    "  list-commands\n"
    "  version\n"
    "  vlog/list\n"
    "  vlog/set                 {spec | PATTERN:destination:pattern}\n"
    "  dpif-netdev/bond-show    [dp]\n"
)


def ovs_vswitchd_handler(request):
    """Answer like ovs-vswitchd for a handful of commands"""
    method = request.get("method")
    params = request.get("params", [])
    request_id = request.get("id")

    if method == "list-commands":
        return {"result": COMMANDS_LISTING, "error": None, "id": request_id}
    if method == "version":
        return {"result": "ovs-vswitchd (Open vSwitch) 3.1.0\n", "error": None, "id": request_id}
    if method == "echo":
        return {"result": " ".join(params), "error": None, "id": request_id}
    return {
        "result": None,
        "error": f'"{method}" is not a valid command (use "list-commands" to see a list of valid commands)',
        "id": request_id,
    }


class FakeUnixctlServer:
    """Threaded Unix socket server replying through a handler

    The handler returns a document, raw bytes (sent verbatim, b"" sends
    nothing and keeps the connection open), or None to hang up.
    """

    def __init__(self, path: Path, handler):
        self.path = path
        self.handler = handler
        self.requests = []
        self.connections = 0
        self._sock = None
        self._running = False
        self._thread = None

    def start(self):
        self._sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self._sock.bind(str(self.path))
        self._sock.listen(5)
        self._sock.settimeout(0.1)
        self._running = True
        self._thread = threading.Thread(target=self._serve_loop, daemon=True)
        self._thread.start()

    def stop(self):
        self._running = False
        if self._thread:
            self._thread.join(timeout=2.0)
        if self._sock:
            self._sock.close()
        if self.path.exists():
            self.path.unlink()

    def _serve_loop(self):
        while self._running:
            try:
                conn, _ = self._sock.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            self.connections += 1
            threading.Thread(target=self._handle, args=(conn,), daemon=True).start()

    def _handle(self, conn):
        decoder = JsonStreamDecoder()
        with conn:
            while True:
                try:
                    chunk = conn.recv(65536)
                except OSError:
                    return
                if not chunk:
                    return
                decoder.feed(chunk)
                for request in decoder.drain():
                    self.requests.append(request)
                    reply = self.handler(request)
                    if reply is None:
                        return
                    if isinstance(reply, bytes):
                        conn.sendall(reply)
                    else:
                        conn.sendall(encode_message(reply))


@pytest.fixture
def run_dir():
    """Short-lived run directory; kept short for the AF_UNIX path limit"""
    path = Path(tempfile.mkdtemp(prefix="uctl-", dir="/tmp"))
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def unixctl_server(run_dir):
    """Factory starting fake daemons laid out like OVS: pidfile plus .ctl socket"""
    servers = []

    def start(handler=None, target="ovs-vswitchd", pid=4242):
        (run_dir / f"{target}.pid").write_text(f"{pid}\n")
        server = FakeUnixctlServer(run_dir / f"{target}.{pid}.ctl", handler or ovs_vswitchd_handler)
        server.start()
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.stop()
