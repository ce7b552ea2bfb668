"""Task descriptor data model."""

import shlex
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

DEFAULT_SSH_CMD = "ssh"
DEFAULT_PING_CMD = "ping"
DEFAULT_LOCAL_SHELL = "/bin/sh"
DEFAULT_BOOT_TIMEOUT = 120  # seconds
DEFAULT_SHUTDOWN_TIMEOUT = 120  # seconds
DEFAULT_POLL_INTERVAL_MS = 1000
DEFAULT_SHUTDOWN_CMD = "sudo shutdown -h now"
DEFAULT_BROADCAST_IP = "255.255.255.255"
DEFAULT_WOL_PORT = 9


class ExecutionSide(str, Enum):
    """Where an instruction runs."""

    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class SshSettings:
    """How to reach the target host with the external ssh client."""

    cmd: str = DEFAULT_SSH_CMD
    identity_file: Optional[str] = None
    port: Optional[int] = None
    user: Optional[str] = None


@dataclass(frozen=True)
class WakeSettings:
    """Wake-on-LAN and boot validation settings."""

    enabled: bool = False
    mac: str = ""
    boot_timeout_secs: int = DEFAULT_BOOT_TIMEOUT
    validate_ping: bool = True
    validate_ssh_connection: bool = False
    broadcast_ip: str = DEFAULT_BROADCAST_IP
    wol_port: int = DEFAULT_WOL_PORT


@dataclass(frozen=True)
class ShutdownSettings:
    """Remote shutdown and power-off validation settings."""

    shutdown_remote: bool = False
    shutdown_cmd: str = DEFAULT_SHUTDOWN_CMD
    validate_shutdown: bool = True
    shutdown_timeout_secs: int = DEFAULT_SHUTDOWN_TIMEOUT


@dataclass(frozen=True)
class Instruction:
    """
    One step of a task.

    ``command`` is either a single opaque string or a pre-split argument
    vector. Local strings go to the local shell untouched; local vectors are
    executed directly. Remote commands always reach ssh as one argument.
    """

    side: ExecutionSide
    command: Union[str, tuple[str, ...]]

    def local_argv(self, shell: str = DEFAULT_LOCAL_SHELL) -> list[str]:
        if isinstance(self.command, tuple):
            return list(self.command)
        return [shell, "-c", self.command]

    def remote_command(self) -> str:
        if isinstance(self.command, tuple):
            return shlex.join(self.command)
        return self.command

    def describe(self) -> str:
        text = self.command if isinstance(self.command, str) else shlex.join(self.command)
        return f"{self.side.value}: {text}"


@dataclass(frozen=True)
class Task:
    """A complete wake → run → shutdown description for one host."""

    host: str
    ssh: SshSettings = field(default_factory=SshSettings)
    wake: WakeSettings = field(default_factory=WakeSettings)
    instructions: tuple[Instruction, ...] = ()
    shutdown: ShutdownSettings = field(default_factory=ShutdownSettings)
    ping_cmd: str = DEFAULT_PING_CMD
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    # None means the invoking user's home directory.
    working_dir: Optional[str] = None
    local_shell: str = DEFAULT_LOCAL_SHELL
    name: str = ""

    @property
    def poll_interval(self) -> float:
        """Inter-attempt sleep in seconds."""
        return self.poll_interval_ms / 1000.0

    @property
    def display_name(self) -> str:
        return self.name or self.host
