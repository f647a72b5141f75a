"""
Socket step errors.

Every blocking socket call in the demo can fail: socket(), bind(), listen(),
connect(), send(), recv(). The classic C pattern is `perror("Bind failed")`
followed by `exit(1)`. We raise instead, carry the step name along, and let
the CLI decide to print and exit.
"""

from typing import Optional


class SocketStepError(OSError):
    """
    A socket operation failed.

    Attributes:
        step: Human-readable name of the failed step, e.g. "Bind failed".
        reason: The underlying OS error message.

    str(error) reads like perror() output:

        Connection failed: [Errno 111] Connection refused
    """

    def __init__(self, step: str, cause: Optional[BaseException] = None):
        self.step = step
        self.reason = str(cause) if cause is not None else "unknown error"
        errno = getattr(cause, "errno", None)
        super().__init__(errno, f"{step}: {self.reason}")

    def __str__(self) -> str:
        return f"{self.step}: {self.reason}"
