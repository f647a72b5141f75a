"""
=============================================================================
DEMO CLIENT
=============================================================================

The client side of the exchange, narrated layer by layer.

=============================================================================
CLIENT SOCKET LIFECYCLE
=============================================================================

    1. socket()    Create a TCP socket (no address yet)
    2. connect()   Kernel picks an ephemeral port and runs the handshake
    3. send()      Hand the payload to TCP
    4. recv()      Wait for the server's reply
    5. close()     Send FIN, release the descriptor

Unlike the server, the client never calls bind(): the kernel binds the
socket implicitly during connect(), choosing a free port from the
ephemeral range (typically 32768-60999 on Linux).

=============================================================================
"""

import socket
import logging
from typing import Optional

from .config import DemoConfig
from .core import Connection, ConnectionState, SocketStepError
from .message import decode_payload, prepare_payload
from .narration import Narrator
from . import layers


logger = logging.getLogger(__name__)


class DemoClient:
    """
    Sends one message and prints the server's reply, narrating each layer.

    Usage:
        client = DemoClient(DemoConfig(port=9999))
        reply = client.run("Hello")
        # reply == "SERVER ACK: Received 'Hello' (5 bytes)"
    """

    def __init__(self, config: Optional[DemoConfig] = None, narrator: Optional[Narrator] = None):
        self.config = config or DemoConfig()
        self.config.validate()
        self.narrator = narrator or Narrator()

    def _create_connection(self) -> Connection:
        """
        Create the TCP socket and wrap it, handshake not done yet.

        Raises:
            SocketStepError: If the OS refuses to create a socket.
        """
        self.narrator.step("Creating TCP Socket (Transport Layer)")
        try:
            # AF_INET = IPv4, SOCK_STREAM + IPPROTO_TCP = TCP
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP)
        except OSError as e:
            raise SocketStepError("Socket creation failed", e) from e

        conn = Connection(
            socket=sock,
            address=(self.config.host, self.config.port),
            buffer_size=self.config.buffer_size,
            timeout=self.config.timeout,
            state=ConnectionState.NEW,
        )
        layers.describe_socket_created(self.narrator, conn.fileno)
        return conn

    def run(self, message: Optional[str] = None) -> str:
        """
        Perform the whole exchange.

        Args:
            message: Text to send; defaults to config.message.

        Returns:
            The server's response text.

        Raises:
            SocketStepError: If any socket step fails.
        """
        text = message if message is not None else self.config.message
        narrator = self.narrator

        narrator.banner(
            "     TCP/IP Protocol Demonstration - CLIENT",
            "     Research Project on TCP/IP Layers",
        )

        # APPLICATION: text → bytes
        payload = prepare_payload(text, self.config.buffer_size)
        layers.describe_prepared_message(narrator, text, payload)

        # NETWORK + LINK: what the kernel and NIC will do with it
        layers.describe_client_network(narrator, self.config.host, self.config.port)
        layers.describe_client_link(narrator)

        # TRANSPORT: socket + handshake
        conn = self._create_connection()
        layers.describe_handshake(narrator)
        conn.connect()
        narrator.ok("TCP Connection ESTABLISHED")
        logger.info(f"Connected to {self.config.host}:{self.config.port}")

        with conn:
            local_port = conn.local_address[1]

            layers.describe_client_send(narrator, self.config.port, local_port, len(payload))
            sent = conn.send(payload)
            layers.describe_client_sent(narrator, sent)

            if not payload:
                # Zero bytes never wake the server's recv(); a FIN does
                conn.finish_sending()
                layers.describe_half_close(narrator)

            layers.describe_client_waiting(narrator)
            data = conn.receive()
            layers.describe_received(narrator, len(data))

            response = decode_payload(data)
            layers.describe_response(narrator, response)

            layers.describe_client_close(narrator)

        narrator.ok("Connection CLOSED")
        narrator.line()
        narrator.banner("Protocol Demonstration Complete")
        narrator.line()

        return response
