"""
=============================================================================
CORE SOCKET COMPONENTS
=============================================================================

The transport-layer plumbing shared by the demo client and server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          DEMO SERVER                                 │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Creates the TCP listening socket                                 │
    │  • Binds to IP:PORT and listens                                     │
    │  • Accepts ONE connection at a time and answers it                  │
    │  • Stops cleanly on SIGINT/SIGTERM                                  │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ wraps each accepted socket
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • One connected socket (client side or server side)                │
    │  • connect(), one send(), one receive(), close()                    │
    │  • Tracks state (NEW → ESTABLISHED → CLOSED) and byte counts        │
    └─────────────────────────────────────────────────────────────────────┘

Any failed socket call surfaces as SocketStepError, which names the step
("Bind failed", "Connection failed", ...).
=============================================================================
"""

from .errors import SocketStepError
from .connection import Connection, ConnectionState
from .socket_server import DemoServer

__all__ = [
    "DemoServer",       # Listening socket + sequential accept loop
    "Connection",       # Wrapper for one connected socket
    "ConnectionState",  # NEW / ESTABLISHED / CLOSED
    "SocketStepError",  # A named socket step failed
]
