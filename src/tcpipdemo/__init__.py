"""
=============================================================================
TCPIPDEMO - The TCP/IP Layers, Narrated
=============================================================================

A client and a server exchange ONE message over a real TCP socket. While
they do, both print what each layer of the TCP/IP model is doing.

=============================================================================
WHAT HAPPENS
=============================================================================

    CLIENT                                          SERVER
    ──────                                          ──────
                                                    socket()
                                                    bind(127.0.0.1:9999)
                                                    listen(5)
    APPLICATION: prepare "Hello"                    accept()  (blocks)
    NETWORK:     127.0.0.1:9999, AF_INET                │
    LINK:        MAC / ARP                               │
    socket()                                             │
    connect()  ─── SYN / SYN-ACK / ACK ────────────────► │
    send("Hello") ─────────────────────────────────────► recv()
                                                    APPLICATION: timestamp,
                                                    client IP, length
    recv() ◄──── "SERVER ACK: Received 'Hello' (5 bytes)" send()
    close() ─── FIN / ACK / FIN / ACK ─────────────────► close()

The lower layers are not simulated. The kernel does the real work; the
narration explains what it is doing and shows the values the socket API
exposes (descriptors, ports, byte counts).

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    tcpipdemo/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m tcpipdemo)
    ├── config.py            # DemoConfig dataclass
    ├── message.py           # Application layer: the NUL-terminated buffer
    ├── narration.py         # Narrator: banners, sections, steps
    ├── layers.py            # Per-layer commentary
    ├── client.py            # DemoClient
    └── core/
        ├── socket_server.py # DemoServer
        ├── connection.py    # Connection wrapper
        └── errors.py        # SocketStepError

=============================================================================
QUICK START
=============================================================================

    # Terminal 1
    python -m tcpipdemo server

    # Terminal 2
    python -m tcpipdemo client "Hello, layers!"

=============================================================================
"""

__version__ = "1.0.0"

from .config import DemoConfig
from .client import DemoClient
from .core import DemoServer, SocketStepError
from .narration import Layer, Narrator

__all__ = [
    "DemoClient",
    "DemoServer",
    "DemoConfig",
    "Layer",
    "Narrator",
    "SocketStepError",
    "__version__",
]
