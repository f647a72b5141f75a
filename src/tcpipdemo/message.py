"""
=============================================================================
APPLICATION LAYER: THE MESSAGE
=============================================================================

Everything below the application layer only ever sees BYTES. This module
is where text becomes bytes on the way out, and bytes become text on the
way in.

=============================================================================
A NUL-TERMINATED TEXT BUFFER
=============================================================================

The demonstration uses the simplest possible "protocol": one fixed-size
buffer of text, terminated by a NUL byte, exactly like a C string.

    buffer_size = 256
    ┌──────────────────────────────────────────────┬────┐
    │  up to 255 bytes of UTF-8 text               │ \0 │
    └──────────────────────────────────────────────┴────┘
                         │
                         └── only these bytes are sent; the terminator
                             stays in the sender's memory

There is no length prefix and no delimiter on the wire. The receiver does a
single recv() of at most buffer_size - 1 bytes and treats whatever arrived
as the whole message. That works for a demo on loopback; a real protocol
would need framing (TCP is a byte stream, not a message stream).

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 9999
BUFFER_SIZE = 256
MESSAGE_FIELD_SIZE = 200
DEFAULT_MESSAGE = "Hello from TCP Client!"

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

ACK_TEMPLATE = "SERVER ACK: Received '{message}' ({length} bytes)"


def truncate_utf8(text: str, max_bytes: int) -> str:
    """
    Cut text so that its UTF-8 encoding fits in max_bytes.

    A multi-byte character split by the cut is dropped whole, so the
    result is always valid text.
    """
    data = text.encode("utf-8")
    if len(data) <= max_bytes:
        return text
    return data[:max_bytes].decode("utf-8", errors="ignore")


def drop_split_character(data: bytes) -> bytes:
    """
    Remove a UTF-8 sequence left incomplete at the end of data.

    Unlike decoding with errors="ignore", stray bytes elsewhere in the
    buffer are kept exactly as they are.
    """
    for back in range(1, min(4, len(data)) + 1):
        byte = data[-back]
        if byte & 0xC0 == 0x80:
            continue  # continuation byte, keep looking for the lead
        if 0xF0 <= byte <= 0xF4:
            needed = 4
        elif 0xE0 <= byte <= 0xEF:
            needed = 3
        elif 0xC2 <= byte <= 0xDF:
            needed = 2
        else:
            needed = 1  # ASCII, or a byte that never starts a sequence
        return data[:-back] if needed > back else data
    return data


def prepare_payload(text: str, buffer_size: int = BUFFER_SIZE) -> bytes:
    """
    Turn user text into the bytes that go on the wire.

    Args:
        text: The message typed by the user. Bytes that were not valid
              UTF-8 on the command line arrive as surrogate escapes and
              are sent unchanged.
        buffer_size: Size of the application buffer, terminator included.

    Returns:
        At most buffer_size - 1 bytes. Anything after an embedded NUL is
        dropped, since a C string ends there.
    """
    data = text.split("\0", 1)[0].encode("utf-8", errors="surrogateescape")
    limit = buffer_size - 1
    if len(data) <= limit:
        return data
    return drop_split_character(data[:limit])


def printable(text: str) -> str:
    """Text safe to print: surrogate escapes become U+FFFD."""
    return text.encode("utf-8", errors="surrogateescape").decode("utf-8", errors="replace")


def decode_payload(data: bytes) -> str:
    """Bytes from recv() back to text, stopping at the first NUL."""
    return data.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def current_timestamp(now: Optional[datetime] = None) -> str:
    """Local time formatted for the message structure."""
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


@dataclass
class ApplicationMessage:
    """
    What the server's application layer knows about a received message.

    The transport layer delivered bytes; this is the structure the
    application builds on top of them.

    Attributes:
        message: Received text, truncated to fit MESSAGE_FIELD_SIZE.
        client_ip: Peer address reported by accept().
        message_length: Byte length of the FULL received payload.
        timestamp: Local receive time.
    """

    message: str
    client_ip: str
    message_length: int
    timestamp: str = field(default_factory=current_timestamp)

    @classmethod
    def from_received(
        cls,
        data: bytes,
        client_ip: str,
        now: Optional[datetime] = None,
    ) -> "ApplicationMessage":
        """
        Build the message structure from the bytes recv() returned.

        The stored message is capped at MESSAGE_FIELD_SIZE - 1 bytes, but
        message_length still reports how many bytes actually arrived
        before the first NUL, even if some of them were not valid UTF-8.
        """
        received = data.split(b"\0", 1)[0]
        return cls(
            message=truncate_utf8(decode_payload(received), MESSAGE_FIELD_SIZE - 1),
            client_ip=client_ip,
            message_length=len(received),
            timestamp=current_timestamp(now),
        )


def build_ack(message: ApplicationMessage, buffer_size: int = BUFFER_SIZE) -> str:
    """
    Build the server's single response.

    Example:
        SERVER ACK: Received 'Hello' (5 bytes)

    The response obeys the same buffer rule as the request: at most
    buffer_size - 1 bytes.
    """
    text = ACK_TEMPLATE.format(message=message.message, length=message.message_length)
    return truncate_utf8(text, buffer_size - 1)
