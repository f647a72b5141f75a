"""
=============================================================================
DEMO TCP SERVER
=============================================================================

The server side of the exchange: one listening socket, connections served
one at a time, each narrated layer by layer.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create a socket file descriptor
    2. bind()      Associate the socket with an IP:PORT
    3. listen()    Kernel starts completing handshakes and queueing them
                   └─ backlog = queue size before refusing
    4. accept()    Take one completed connection from the queue
                   └─ Returns a NEW socket just for that client
    5. recv()/send()   Exchange one buffer each way on the new socket
    6. close()     Close the client socket; the listening socket stays

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── Created once at startup
                    │   127.0.0.1:9999      │     Never sends/receives data
                    └───────────┬───────────┘
                                │ accept()
                                ▼
                          ┌───────────┐
                          │  Client   │   one at a time: receive,
                          │  Socket   │   reply, close, accept next
                          └───────────┘

There is no thread pool and no select(): the next client simply waits in
the kernel's accept queue until the current one is closed.

=============================================================================
SO_REUSEADDR
=============================================================================

After the server stops, its port lingers in TIME_WAIT for ~60 seconds.
Without SO_REUSEADDR a quick restart fails with "Address already in use".

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Tuple

from ..config import DemoConfig
from ..message import ApplicationMessage, build_ack
from ..narration import Narrator
from .. import layers
from .connection import Connection
from .errors import SocketStepError


logger = logging.getLogger(__name__)

ACCEPT_POLL_INTERVAL = 1.0


class DemoServer:
    """
    Accepts connections and answers each with one ACK message.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      DemoServer Internals                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    start()                                                           │
    │        ├──► _open()            socket(), setsockopt(), bind(),       │
    │        │                       listen()                              │
    │        ├──► _setup_signals()   SIGTERM/SIGINT → shutdown()           │
    │        └──► _accept_loop()     accept() → handle(conn), repeat       │
    │                                                                      │
    │    handle(conn)                                                      │
    │        recv → ApplicationMessage → ACK → send → close               │
    │                                                                      │
    │    shutdown()        Stop the loop (idempotent)                      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        server = DemoServer(DemoConfig(port=9999))
        server.start()  # Blocks until Ctrl+C
    """

    def __init__(self, config: Optional[DemoConfig] = None, narrator: Optional[Narrator] = None):
        self.config = config or DemoConfig()
        self.config.validate()
        self.narrator = narrator or Narrator()

        self._socket: Optional[socket.socket] = None
        self._running = False
        self._ready = threading.Event()
        self._original_handlers: dict = {}
        self._active: Optional[Connection] = None

        self.connections_handled = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (ip, port).

        After bind() this is the real address, which matters when the
        config asked for port 0 and the kernel picked one.
        """
        if self._socket is not None:
            return self._socket.getsockname()[:2]
        return (self.config.host, self.config.port)

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. True if it is."""
        return self._ready.wait(timeout)

    # =========================================================================
    # SETUP
    # =========================================================================

    def _open(self) -> socket.socket:
        """
        Create, bind and listen.

        Raises:
            SocketStepError: Naming whichever of the three steps failed.
        """
        narrator = self.narrator

        narrator.step("Creating TCP Socket (Transport Layer)")
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP)
        except OSError as e:
            raise SocketStepError("Socket creation failed", e) from e

        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        layers.describe_socket_created(narrator, sock.fileno(), role="server")

        try:
            # ─────────────────────────────────────────────────────────────
            # BIND: "packets for this IP:PORT belong to this socket"
            # ─────────────────────────────────────────────────────────────
            narrator.step("Binding to IP:Port (Network Layer)")
            try:
                sock.bind((self.config.host, self.config.port))
            except OSError as e:
                logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
                raise SocketStepError("Bind failed", e) from e
            host, port = sock.getsockname()[:2]
            layers.describe_bound(narrator, host, port)

            # ─────────────────────────────────────────────────────────────
            # LISTEN: kernel now answers SYNs on our behalf
            # ─────────────────────────────────────────────────────────────
            narrator.step("Listening for Connections (Transport Layer)")
            try:
                sock.listen(self.config.backlog)
            except OSError as e:
                raise SocketStepError("Listen failed", e) from e
            layers.describe_listening(narrator, self.config.backlog)
        except SocketStepError:
            sock.close()
            raise

        # accept() wakes up periodically so shutdown() is noticed
        sock.settimeout(ACCEPT_POLL_INTERVAL)
        return sock

    def _setup_signals(self):
        """
        Route SIGINT (Ctrl+C) and SIGTERM to shutdown().

        Python only allows signal handlers in the main thread, so a server
        started from another thread (tests) skips this.
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self, max_connections: Optional[int] = None):
        """
        Open the socket and serve connections. BLOCKS.

        Args:
            max_connections: Stop after this many connections.
                             None = serve until shutdown().

        Raises:
            SocketStepError: If socket(), bind() or listen() fails.
        """
        self.narrator.banner(
            "     TCP/IP Protocol Demonstration - SERVER",
            "     Research Project on TCP/IP Layers",
        )

        self._socket = self._open()
        self._running = True
        self._setup_signals()
        self._ready.set()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")

        try:
            self._accept_loop(max_connections)
        finally:
            self._cleanup()

    def _accept_loop(self, max_connections: Optional[int]):
        while self._running:
            if max_connections is not None and self.connections_handled >= max_connections:
                break

            self.narrator.line()
            self.narrator.banner("Accepting New Connection (TCP 3-way Handshake)")

            conn = self._accept()
            if conn is None:
                continue

            self._active = conn
            try:
                self.handle(conn)
            except SocketStepError as e:
                # One broken client must not take the server down
                logger.error(f"[{conn.id}] {e}")
            finally:
                self._active = None
                conn.close()
            self.connections_handled += 1

    def _accept(self) -> Optional[Connection]:
        """
        Wait for the next completed handshake.

        Returns None on poll timeout, on a failed accept() (logged), or
        when shutting down.
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept failed: {e}")
                return None

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")
            return Connection(
                socket=client_socket,
                address=client_address[:2],
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
            )
        return None

    def handle(self, conn: Connection):
        """
        Serve one client: receive, interpret, reply, close.

        Raises:
            SocketStepError: If receive or send fails.
        """
        narrator = self.narrator
        server_ip, server_port = conn.local_address

        layers.describe_accepted(narrator, conn.address, server_port)
        layers.describe_server_network(narrator, server_ip, conn.peer_ip)
        layers.describe_server_link(narrator)

        # TRANSPORT: one recv()
        layers.describe_server_waiting(narrator, server_port, conn.fileno)
        data = conn.receive()
        if not self._running:
            logger.warning(f"[{conn.id}] Connection aborted by shutdown")
            narrator.detail("Server shutting down, connection aborted", 2)
            return
        layers.describe_received(narrator, len(data), level=1)

        # APPLICATION: bytes → structure → reply
        message = ApplicationMessage.from_received(data, conn.peer_ip)
        layers.describe_received_message(narrator, message)
        logger.info(f"[{conn.id}] {conn.peer_ip}:{conn.peer_port} sent {message.message_length} bytes")

        response = build_ack(message, self.config.buffer_size)
        layers.describe_server_response(narrator, response)

        # TRANSPORT: one send()
        payload = response.encode("utf-8")
        layers.describe_server_send(narrator, server_port, conn.peer_port, len(payload))
        sent = conn.send(payload)
        layers.describe_server_sent(narrator, sent)

        narrator.step("Closing Connection (TCP FIN handshake)")
        conn.close()
        narrator.detail("Socket closed, connection terminated", 2)

    def shutdown(self):
        """
        Stop accepting. Safe to call from any thread, any number of times.

        A client that connected but never sends would keep handle() in
        recv() forever, so its socket is shut down too. recv() then
        returns EOF and the loop exits.
        """
        if self._running:
            logger.info("Shutting down server...")
        self._running = False

        conn = self._active
        if conn is not None:
            logger.info(f"[{conn.id}] Interrupting connection from {conn.peer_ip}:{conn.peer_port}")
            try:
                conn.socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass  # Already closed by the peer or by handle()

    def _cleanup(self):
        self._running = False
        self._restore_signals()

        if self._socket:
            self._socket.close()
            self._socket = None

        self._ready.clear()
        logger.info(f"Server stopped after {self.connections_handled} connection(s)")
