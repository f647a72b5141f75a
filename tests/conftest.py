"""
pytest configuration and fixtures.
"""

import io
import socket
import threading
from typing import Callable, Generator, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tcpipdemo import DemoConfig, DemoServer, Narrator


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


@pytest.fixture
def config() -> DemoConfig:
    """Test configuration: loopback, OS-chosen port, never block forever."""
    return DemoConfig(host="127.0.0.1", port=0, timeout=5.0)


class RunningServer:
    """DemoServer running in a background thread, narrating into a buffer."""

    def __init__(self, config: DemoConfig):
        self.output = io.StringIO()
        self.server = DemoServer(config, Narrator(self.output))
        self.port: Optional[int] = None
        self._thread: Optional[threading.Thread] = None

    def start(self, max_connections: Optional[int] = None):
        self._thread = threading.Thread(
            target=self.server.start,
            kwargs={"max_connections": max_connections},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(5.0):
            raise RuntimeError("Server failed to start")
        self.port = self.server.address[1]

    def join(self, timeout: float = 5.0) -> bool:
        """Wait for the server thread to exit. True if it did."""
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def running_server(config: DemoConfig) -> Generator[RunningServer, None, None]:
    """A server on an ephemeral port, stopped after the test."""
    srv = RunningServer(config)
    srv.start()

    yield srv

    srv.stop()


@pytest.fixture
def make_server(config: DemoConfig) -> Generator[Callable[..., RunningServer], None, None]:
    """Factory for servers with custom start options; all stopped afterwards."""
    started = []

    def factory(max_connections: Optional[int] = None) -> RunningServer:
        srv = RunningServer(config)
        srv.start(max_connections=max_connections)
        started.append(srv)
        return srv

    yield factory

    for srv in started:
        srv.stop()


@pytest.fixture
def client_config(running_server: RunningServer) -> DemoConfig:
    """Client configuration pointing at the running server."""
    return DemoConfig(host="127.0.0.1", port=running_server.port, timeout=5.0)
