"""
=============================================================================
DEMO CONFIGURATION
=============================================================================

Centralized configuration for both sides of the demonstration.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m tcpipdemo server --port 5000                     │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── TCPIP_PORT=5000 python -m tcpipdemo server                 │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The client and the server share one config class: they must agree on the
port and on the buffer size, otherwise the demonstration would not line up.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from .message import BUFFER_SIZE, DEFAULT_HOST, DEFAULT_MESSAGE, DEFAULT_PORT


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class DemoConfig:
    """
    Configuration for the demo client and server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, timeout

    APPLICATION SETTINGS
    - buffer_size, message

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = DEFAULT_HOST
    """
    For the server: the IP address to bind to.
    For the client: the server IP address to connect to.
    - "127.0.0.1" - Loopback, packets never leave the machine
    - "0.0.0.0" - All interfaces (server only)
    """

    port: int = DEFAULT_PORT
    """
    TCP port of the server. 0 lets the OS choose (useful in tests).
    """

    backlog: int = 5
    """
    How many completed handshakes the kernel queues before accept().
    """

    timeout: Optional[float] = None
    """
    Socket timeout in seconds for connect/send/recv.
    None = block forever, like the classic C socket calls.
    """

    # ─────────────────────────────────────────────────────────────────────
    # APPLICATION SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    buffer_size: int = BUFFER_SIZE
    """
    Size of the application buffer, terminator included.
    At most buffer_size - 1 bytes of text travel in each direction.
    """

    message: str = DEFAULT_MESSAGE
    """
    Message the client sends when none is given on the command line.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "WARNING"
    """
    Logging level for diagnostics on stderr. The layer narration is
    printed on stdout regardless of this setting.
    """

    @classmethod
    def from_env(cls) -> "DemoConfig":
        """
        Create configuration from environment variables.

        TCPIP_HOST          Server host (default: 127.0.0.1)
        TCPIP_PORT          Server port (default: 9999)
        TCPIP_BUFFER_SIZE   Application buffer size (default: 256)
        TCPIP_TIMEOUT       Socket timeout in seconds (default: none)
        TCPIP_LOG_LEVEL     Logging level (default: WARNING)
        """
        timeout = os.getenv("TCPIP_TIMEOUT")
        return cls(
            host=os.getenv("TCPIP_HOST", DEFAULT_HOST),
            port=int(os.getenv("TCPIP_PORT", str(DEFAULT_PORT))),
            buffer_size=int(os.getenv("TCPIP_BUFFER_SIZE", str(BUFFER_SIZE))),
            timeout=float(timeout) if timeout else None,
            log_level=os.getenv("TCPIP_LOG_LEVEL", "WARNING").upper(),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Fail fast at startup rather than halfway through the exchange.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        # Room for the ACK prefix plus at least a few bytes of message
        if self.buffer_size < 16:
            raise ValueError("buffer_size must be >= 16")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")
