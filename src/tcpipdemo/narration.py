"""
=============================================================================
NARRATION
=============================================================================

The whole point of this program is the commentary. The Narrator is a tiny
formatter that writes it to a text stream (stdout by default), so tests can
capture it with io.StringIO.

Output shapes:

    ╔════════════════════════════════════════════════════════╗
    ║ banner title                                           ║
    ╚════════════════════════════════════════════════════════╝

    === TRANSPORT LAYER (TCP) ===          ← layer()
    Some heading:                          ← line()
      Key: value                           ← detail()

    >>> Creating TCP Socket                ← step()
        ✓ TCP Connection ESTABLISHED       ← ok()

Narration is deliberately NOT logging: it is the program's output, not a
diagnostic, and it must appear regardless of the log level.
=============================================================================
"""

import sys
from enum import Enum
from typing import Optional, TextIO


BANNER_WIDTH = 56


class Layer(Enum):
    """
    The four layers of the TCP/IP model.

    Values are the section titles printed by the narrator.
    """
    APPLICATION = "APPLICATION LAYER"
    TRANSPORT = "TRANSPORT LAYER (TCP)"
    NETWORK = "NETWORK LAYER (IP)"
    LINK = "NETWORK ACCESS LAYER"


class Narrator:
    """
    Writes layer-by-layer commentary.

    Usage:
        narrator = Narrator()
        narrator.layer(Layer.APPLICATION)
        narrator.detail("Message Length: 5 bytes")
    """

    def __init__(self, stream: Optional[TextIO] = None):
        # Resolved lazily so pytest's capsys sees our output
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def line(self, text: str = "") -> None:
        print(text, file=self.stream)
        self.stream.flush()

    def banner(self, *lines: str) -> None:
        """Boxed banner, one row per line."""
        self.line("╔" + "═" * BANNER_WIDTH + "╗")
        for text in lines:
            self.line("║ " + text.ljust(BANNER_WIDTH - 2) + " ║")
        self.line("╚" + "═" * BANNER_WIDTH + "╝")

    def layer(self, layer: Layer, title: Optional[str] = None) -> None:
        """Section header, e.g. `=== APPLICATION LAYER (Response) ===`."""
        heading = title if title is not None else layer.value
        self.line()
        self.line(f"=== {heading} ===")

    def step(self, text: str) -> None:
        """An action the program is about to take."""
        self.line()
        self.line(f">>> {text}")

    def detail(self, text: str, level: int = 1) -> None:
        self.line("  " * level + text)

    def ok(self, text: str, level: int = 2) -> None:
        self.detail(f"✓ {text}", level)
