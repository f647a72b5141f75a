"""
=============================================================================
CONNECTION
=============================================================================

A thin wrapper around one CONNECTED TCP socket: the socket returned by
accept() on the server, or the socket after connect() on the client.

=============================================================================
ONE SEND, ONE RECEIVE
=============================================================================

The demonstration exchanges exactly one buffer in each direction:

    Client                                   Server
      │                                         │
      │ ── send("Hello") ─────────────────────► │ recv(255)
      │                                         │
      │ recv(255) ◄──── send("SERVER ACK ...") ─│
      │                                         │
      │ ── FIN ───────────────────────────────► │
      │ ◄────────────────────────────────── ACK │
      │ ◄────────────────────────────────── FIN │
      │ ── ACK ───────────────────────────────► │

TCP is a byte stream, so a single recv() is NOT guaranteed to return
everything the peer sent. With small messages on loopback it practically
always does, which is all this demo relies on. receive() is therefore a
single recv() of at most buffer_size - 1 bytes, mirroring a C program that
reserves the last byte of its buffer for the NUL terminator.

=============================================================================
CONNECTION STATES
=============================================================================

    NEW ──────► ESTABLISHED ──────► CLOSED
     │                                 ▲
     └─────────────────────────────────┘   (connect failed / closed early)

=============================================================================
"""

import socket
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Tuple
import uuid

from .errors import SocketStepError


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states."""
    NEW = "new"                  # Socket exists, handshake not done yet
    ESTABLISHED = "established"  # 3-way handshake complete
    CLOSED = "closed"            # FIN sent, socket released


@dataclass
class Connection:
    """
    One TCP connection.

    Attributes:
        socket: The connected socket.
        address: Peer's (ip, port) tuple.
        id: Short identifier for log lines.
        state: Current connection state.
        buffer_size: Application buffer size, terminator included.
        timeout: Socket timeout; None = blocking.
        bytes_sent: Total payload bytes handed to the kernel.
        bytes_received: Total payload bytes read from the kernel.
    """

    socket: socket.socket
    address: Tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.ESTABLISHED

    buffer_size: int = 256
    timeout: Optional[float] = None

    bytes_sent: int = 0
    bytes_received: int = 0

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def peer_ip(self) -> str:
        return self.address[0]

    @property
    def peer_port(self) -> int:
        return self.address[1]

    @property
    def fileno(self) -> int:
        """
        The socket's file descriptor.

        To the kernel, a socket is just another open file. -1 once closed.
        """
        return self.socket.fileno()

    @property
    def local_address(self) -> Tuple[str, int]:
        """
        Our own (ip, port).

        For a client this reveals the EPHEMERAL port the kernel picked
        during connect().
        """
        return self.socket.getsockname()[:2]

    # =========================================================================
    # CONNECTING (client side)
    # =========================================================================

    def connect(self):
        """
        Perform the 3-way handshake with the peer at self.address.

        connect() blocks while the kernel sends SYN, waits for SYN-ACK and
        answers with ACK. We never see those segments, only the result.

        Raises:
            SocketStepError: If the peer refuses, is unreachable, or the
                             handshake times out.
        """
        try:
            self.socket.connect(self.address)
        except OSError as e:
            self.socket.close()
            self.state = ConnectionState.CLOSED
            raise SocketStepError("Connection failed", e) from e

        self.state = ConnectionState.ESTABLISHED
        logger.debug(f"[{self.id}] Connected to {self.peer_ip}:{self.peer_port}")

    # =========================================================================
    # I/O
    # =========================================================================

    def send(self, data: bytes) -> int:
        """
        Send the whole payload.

        sendall() loops over send() until the kernel has accepted every byte.

        Returns:
            Number of bytes sent.

        Raises:
            SocketStepError: If the peer is gone or the send times out.
        """
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            raise SocketStepError("Send failed", e) from e

        self.bytes_sent += len(data)
        return len(data)

    def receive(self) -> bytes:
        """
        One recv() of at most buffer_size - 1 bytes.

        Returns:
            The bytes received; b"" if the peer closed without sending.

        Raises:
            SocketStepError: On reset or timeout.
        """
        try:
            data = self.socket.recv(self.buffer_size - 1)
        except OSError as e:
            logger.warning(f"[{self.id}] Receive failed: {e}")
            raise SocketStepError("Receive failed", e) from e

        self.bytes_received += len(data)
        return data

    def finish_sending(self):
        """
        Half-close: send our FIN but keep reading.

        The peer's recv() then returns b"" instead of waiting forever, which
        is how an empty message can still be "delivered".
        """
        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError as e:
            raise SocketStepError("Shutdown failed", e) from e

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection.

        shutdown(SHUT_WR) sends our FIN; close() releases the descriptor.
        The rest of the 4-way close (peer's ACK, peer's FIN, our ACK) is
        done by the kernel. Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        self.socket.close()
        self.state = ConnectionState.CLOSED
        logger.debug(
            f"[{self.id}] Connection closed "
            f"(sent={self.bytes_sent}, received={self.bytes_received})"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
