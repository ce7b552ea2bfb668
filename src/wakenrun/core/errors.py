"""Exception hierarchy for task orchestration."""

import shlex
from typing import Any, Optional, Sequence


class WakenrunError(Exception):
    """Base class for every fatal orchestration error."""

    stage: Optional[str] = None
    instructions_run: int = 0


class ConfigurationError(WakenrunError):
    """Raised for an unreadable, malformed or invalid task descriptor."""

    def __init__(self, message: str, errors: Optional[list[str]] = None) -> None:
        self.errors = errors or []
        super().__init__(message)


class CommandError(WakenrunError):
    """Raised when a process that must succeed exits non-zero or cannot start."""

    def __init__(
        self, argv: Sequence[str], returncode: int, stdout: str = "", stderr: str = ""
    ) -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        detail = stderr.strip()
        msg = f"{shlex.join(self.argv)} exited {returncode}"
        super().__init__(f"{msg}: {detail}" if detail else msg)


class ProbeTimeoutError(WakenrunError):
    """Raised when a reachability or session probe exhausts its deadline."""

    def __init__(
        self,
        host: str,
        timeout: float,
        probe: str,
        argv: Optional[Sequence[str]] = None,
    ) -> None:
        self.host = host
        self.timeout = timeout
        self.probe = probe
        self.argv = list(argv) if argv is not None else None
        msg = f"{probe} probe for {host} timed out after {timeout:g}s"
        if self.argv:
            msg += f" (last attempt: {shlex.join(self.argv)})"
        super().__init__(msg)


class ShutdownTimeoutError(ProbeTimeoutError):
    """Raised when the host still answers after the shutdown timeout."""


class InstructionFailureError(WakenrunError):
    """Raised when a local or remote instruction exits non-zero."""

    def __init__(self, index: int, instruction: Any, returncode: int, stderr: str = "") -> None:
        self.index = index
        self.instructions_run = index + 1
        self.instruction = instruction
        self.returncode = returncode
        self.stderr = stderr
        msg = (
            f"instruction #{index + 1} ({instruction.describe()}) "
            f"exited with status {returncode}"
        )
        if stderr.strip():
            msg += f": {stderr.strip()}"
        super().__init__(msg)


class WakeSignalError(WakenrunError):
    """Raised when the wake-on-LAN packet cannot be sent."""

    def __init__(self, mac: str, target: str, reason: str) -> None:
        self.mac = mac
        self.target = target
        super().__init__(f"could not send wake signal to {mac} via {target}: {reason}")
