"""
=============================================================================
LAYER COMMENTARY
=============================================================================

What each layer of the TCP/IP model is doing while our program runs.

    ┌─────────────────────────────────────────────────────────────────┐
    │  APPLICATION   Our code: prepares and interprets the text       │
    ├─────────────────────────────────────────────────────────────────┤
    │  TRANSPORT     TCP, in the kernel: handshake, sequence numbers, │
    │                ACKs, checksums, retransmission, flow control    │
    ├─────────────────────────────────────────────────────────────────┤
    │  NETWORK (IP)  Kernel: addressing, routing, TTL, fragmentation  │
    ├─────────────────────────────────────────────────────────────────┤
    │  LINK          NIC + driver: MAC addresses, ARP, frames         │
    └─────────────────────────────────────────────────────────────────┘

Only the application layer is our code. Everything below it is reached
through the socket API, so the lower layers are DESCRIBED here, not
simulated. Where the socket exposes a real value (file descriptor, port,
byte count) we print it; everything else is labelled as kernel or hardware
managed.
=============================================================================
"""

import socket

from .message import ApplicationMessage, printable
from .narration import Layer, Narrator


IPPROTO_TCP_NUMBER = 6
DEFAULT_TTL = 64
ETHERTYPE_IPV4 = 0x0800


# =============================================================================
# APPLICATION LAYER
# =============================================================================

def describe_prepared_message(narrator: Narrator, user_input: str, payload: bytes):
    narrator.layer(Layer.APPLICATION)
    narrator.line("Preparing message for transmission:")
    narrator.detail(f"User Input: '{printable(user_input)}'")
    narrator.detail(f"Message Length: {len(payload)} bytes")
    narrator.detail("Encoded: READY FOR TRANSPORT LAYER")


def describe_response(narrator: Narrator, response: str):
    narrator.layer(Layer.APPLICATION, "APPLICATION LAYER (Response)")
    narrator.line("Server Response:")
    narrator.detail(f"Message: '{response}'")
    narrator.detail(f"Length: {len(response.encode('utf-8'))} bytes")


def describe_received_message(narrator: Narrator, message: ApplicationMessage):
    narrator.layer(Layer.APPLICATION)
    narrator.line("Received Message Structure:")
    narrator.detail(f"Timestamp: {message.timestamp}")
    narrator.detail(f"Client IP: {message.client_ip}")
    narrator.detail(f"Message: {message.message}")
    narrator.detail(f"Length: {message.message_length} bytes")


def describe_server_response(narrator: Narrator, response: str):
    narrator.layer(Layer.APPLICATION, "APPLICATION LAYER (Server Response)")
    narrator.line(f"Response message: {response}")


# =============================================================================
# TRANSPORT LAYER
# =============================================================================

def describe_socket_created(narrator: Narrator, fd: int, role: str = "client"):
    narrator.detail(f"Socket created: FD={fd}, Protocol=TCP/IPv4", 2)
    if role == "server":
        narrator.detail("SO_REUSEADDR: enabled (restart without TIME_WAIT errors)", 2)


def describe_handshake(narrator: Narrator):
    """Client view of the 3-way handshake that connect() performs."""
    narrator.step("Initiating TCP 3-Way Handshake (Transport Layer)")
    narrator.detail("Step 1: SYN - Client sends SYN packet to server", 2)
    narrator.detail("Step 2: SYN-ACK - Server responds with SYN-ACK", 2)
    narrator.detail("Step 3: ACK - Client sends ACK, connection established", 2)


def describe_client_send(narrator: Narrator, server_port: int, local_port: int, length: int):
    narrator.step("Sending Data (Transport Layer - TCP)")
    narrator.detail("TCP Segment Details:", 2)
    narrator.detail(f"Source Port: {local_port} (ephemeral, kernel assigned)", 3)
    narrator.detail(f"Destination Port: {server_port}", 3)
    narrator.detail(f"Data Length: {length} bytes", 3)
    narrator.detail("TCP Flags: PSH (push), ACK", 3)
    narrator.detail("Sequence Number: (kernel managed)", 3)
    narrator.detail("Acknowledgment Number: (kernel managed)", 3)
    narrator.detail("Checksum: (kernel calculated)", 3)


def describe_client_sent(narrator: Narrator, sent: int):
    narrator.ok(f"Sent: {sent} bytes", 3)
    narrator.detail("TCP guarantees: in-order delivery, error checking, retransmission", 2)


def describe_half_close(narrator: Narrator):
    narrator.detail("Empty payload: sending FIN early (half-close, SHUT_WR)", 2)
    narrator.detail("Server's recv() sees end-of-stream; we can still read its reply", 2)


def describe_client_waiting(narrator: Narrator):
    narrator.step("Receiving Response (Transport Layer - TCP)")
    narrator.detail("Waiting for TCP segment from server...", 2)


def describe_received(narrator: Narrator, received: int, level: int = 2):
    if received:
        narrator.ok(f"Received: {received} bytes", level)
        narrator.detail("TCP handled: sequencing, checksums, flow control", level)
    else:
        narrator.detail("Peer closed the connection without sending data (FIN)", level)


def describe_client_close(narrator: Narrator):
    """The 4-way FIN close, from the side that closes first."""
    narrator.step("Closing Connection (TCP FIN handshake)")
    narrator.detail("Step 1: FIN - Client sends FIN packet", 2)
    narrator.detail("Step 2: ACK - Server acknowledges", 2)
    narrator.detail("Step 3: FIN - Server sends FIN", 2)
    narrator.detail("Step 4: ACK - Client acknowledges", 2)


def describe_listening(narrator: Narrator, backlog: int):
    narrator.detail(f"Server listening... (TCP backlog: {backlog})", 2)
    narrator.detail("Waiting for TCP 3-way handshake from client", 2)


def describe_accepted(narrator: Narrator, client: tuple, server_port: int):
    narrator.step("TCP 3-Way Handshake Complete!")
    narrator.detail(f"Client IP: {client[0]}", 2)
    narrator.detail(f"Client Port: {client[1]} (ephemeral)", 2)
    narrator.detail(f"Server Port: {server_port}", 2)
    narrator.detail("Connection State: ESTABLISHED", 2)


def describe_server_waiting(narrator: Narrator, server_port: int, fd: int):
    narrator.layer(Layer.TRANSPORT)
    narrator.line("Waiting for TCP segment...")
    narrator.detail(f"Listening on Port: {server_port}")
    narrator.detail(f"Socket FD: {fd}")


def describe_server_send(narrator: Narrator, server_port: int, client_port: int, length: int):
    narrator.layer(Layer.TRANSPORT)
    narrator.line("TCP Segment to send:")
    narrator.detail(f"Source Port: {server_port}")
    narrator.detail(f"Destination Port: {client_port} (client ephemeral)")
    narrator.detail(f"Data Size: {length} bytes")
    narrator.detail("Flags: ACK, PSH (data push)")


def describe_server_sent(narrator: Narrator, sent: int):
    narrator.detail(f"Sent: {sent} bytes")
    narrator.detail("TCP will handle: sequencing, checksums, retransmission")


# =============================================================================
# NETWORK LAYER (IP)
# =============================================================================

def describe_client_network(narrator: Narrator, server_ip: str, port: int):
    narrator.layer(Layer.NETWORK)
    narrator.line("IP Address Resolution:")
    narrator.detail(f"Server IP: {server_ip}")
    narrator.detail(f"Server Port: {port}")
    narrator.detail("Protocol: TCP (IPv4)")
    narrator.detail("Address Family: AF_INET")
    # htons() is what the C API calls it; Python's socket module does it for us
    narrator.detail(
        f"Byte Order Conversion: htons({port}) = 0x{socket.htons(port):04x} "
        "for network byte order"
    )


def describe_bound(narrator: Narrator, host: str, port: int):
    narrator.detail(f"Bound to: {host}:{port}", 2)
    narrator.detail("htons() converts port to Network Byte Order (Big Endian)", 2)


def describe_server_network(narrator: Narrator, server_ip: str, client_ip: str):
    narrator.layer(Layer.NETWORK)
    narrator.line("IP Packet Information:")
    narrator.detail(f"Source IP: {server_ip} (local)")
    narrator.detail(f"Destination IP: {client_ip} (client)")
    narrator.detail(f"Protocol: TCP ({IPPROTO_TCP_NUMBER})")
    narrator.detail(f"TTL: {DEFAULT_TTL} (hops)")
    narrator.detail("Kernel handles: routing, fragmentation, reassembly")


# =============================================================================
# LINK LAYER
# =============================================================================

def describe_client_link(narrator: Narrator):
    narrator.layer(Layer.LINK)
    narrator.line("Frame Information (MAC/Physical):")
    narrator.detail("Source MAC: (client system MAC)")
    narrator.detail("Destination MAC: (server system MAC)")
    narrator.detail("ARP Protocol: used to resolve IP to MAC")
    narrator.detail("Hardware handles: frame construction and physical transmission")


def describe_server_link(narrator: Narrator):
    narrator.layer(Layer.LINK, "DATA LINK LAYER (Ethernet)")
    narrator.line("Frame Information:")
    narrator.detail("Source MAC: (system MAC address)")
    narrator.detail("Destination MAC: (resolved via ARP)")
    narrator.detail(f"Frame Type: 0x{ETHERTYPE_IPV4:04X} (IPv4)")
    narrator.detail("Hardware handles: MAC addressing, frame formatting")
