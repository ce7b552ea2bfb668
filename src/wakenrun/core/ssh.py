"""Remote command execution through the external ssh client."""

import logging
from typing import Optional

from wakenrun.core.errors import ProbeTimeoutError
from wakenrun.core.models import SshSettings
from wakenrun.core.poll import Deadline, poll_until
from wakenrun.core.process import ExecutionResult, run_process

logger = logging.getLogger(__name__)

SESSION_CHECK_CMD = "whoami"


def build_ssh_args(settings: SshSettings, host: str, command: str) -> list[str]:
    """
    Build the ssh client arguments for running ``command`` on ``host``.

    The order is fixed: forced tty, identity file (with IdentitiesOnly), port,
    target, command. The command is passed as one opaque argument and is
    left to the remote shell to interpret.

    Args:
        settings: ssh connection settings
        host: Hostname or IP address
        command: Command string to run remotely

    Returns:
        Argument list, without the ssh program itself
    """
    args = ["-t"]
    if settings.identity_file:
        args.extend(["-i", settings.identity_file, "-o", "IdentitiesOnly=yes"])
    if settings.port:
        args.extend(["-p", str(settings.port)])
    args.append(f"{settings.user}@{host}" if settings.user else host)
    args.append(command)
    return args


def ssh_argv(settings: SshSettings, host: str, command: str) -> list[str]:
    """Full argument vector including the ssh program."""
    return [settings.cmd, *build_ssh_args(settings, host, command)]


def run_remote(
    settings: SshSettings,
    host: str,
    command: str,
    must_succeed: bool = False,
    stream_output: bool = False,
    output_log: Optional[logging.Logger] = None,
) -> ExecutionResult:
    """Execute a command on a remote host via the ssh client."""
    logger.debug("ssh %s: running %s", host, command)
    return run_process(
        ssh_argv(settings, host, command),
        must_succeed=must_succeed,
        stream_output=stream_output,
        output_log=output_log,
    )


def wait_for_session(
    settings: SshSettings,
    host: str,
    deadline: Deadline,
    interval: float = 1.0,
) -> int:
    """
    Wait until an ssh session to ``host`` can run a trivial command.

    Args:
        settings: ssh connection settings
        host: Hostname or IP address
        deadline: Time budget for all attempts
        interval: Seconds between failed attempts

    Returns:
        Number of attempts made

    Raises:
        ProbeTimeoutError: If no session succeeded before the deadline
    """
    argv = ssh_argv(settings, host, SESSION_CHECK_CMD)

    def _attempt() -> bool:
        return run_process(argv).success

    logger.info("Waiting for ssh session on %s (timeout: %gs)", host, deadline.timeout)
    outcome = poll_until(_attempt, deadline, interval, label=f"ssh session on {host}")
    if not outcome.satisfied:
        logger.warning("ssh session on %s not ready within %gs", host, deadline.timeout)
        raise ProbeTimeoutError(host, deadline.timeout, "ssh session", argv=argv)
    logger.info("ssh session on %s ready (attempt %d)", host, outcome.attempts)
    return outcome.attempts
