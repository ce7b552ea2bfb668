"""Remote shutdown and power-off confirmation."""

import logging

from wakenrun.core.errors import ProbeTimeoutError, ShutdownTimeoutError
from wakenrun.core.models import ShutdownSettings, SshSettings
from wakenrun.core.ping import wait_until_unreachable
from wakenrun.core.poll import Deadline
from wakenrun.core.ssh import run_remote

logger = logging.getLogger(__name__)


def shutdown_remote(
    settings: ShutdownSettings,
    host: str,
    ssh: SshSettings,
    ping_cmd: str = "ping",
    interval: float = 1.0,
) -> None:
    """
    Send the shutdown command to ``host`` and optionally wait for it to go dark.

    The shutdown command runs exactly once. Its exit status is only logged:
    the connection commonly drops while the host powers off.

    Raises:
        ShutdownTimeoutError: If validation is on and the host still answers
            ping after ``shutdown_timeout_secs``
    """
    if not settings.shutdown_remote:
        logger.debug("Remote shutdown disabled for %s, skipping", host)
        return

    logger.info("Shutting down remote host %s", host)
    result = run_remote(ssh, host, settings.shutdown_cmd, stream_output=True)
    if not result.success:
        logger.warning(
            "Shutdown command returned %d (expected if the connection dropped): %s",
            result.returncode,
            result.stderr.strip(),
        )

    if not settings.validate_shutdown:
        return

    deadline = Deadline.start(settings.shutdown_timeout_secs)
    try:
        wait_until_unreachable(ping_cmd, host, deadline, interval)
    except ProbeTimeoutError as exc:
        raise ShutdownTimeoutError(exc.host, exc.timeout, exc.probe) from exc
    logger.info("%s is powered off", host)
