"""ICMP reachability probing via the system ping program."""

import logging

from wakenrun.core.errors import ProbeTimeoutError
from wakenrun.core.poll import Deadline, poll_until
from wakenrun.core.process import run_process

logger = logging.getLogger(__name__)

PING_COUNT = 3
PING_WAIT_SECS = 2


def ping_args(ping_cmd: str, host: str) -> list[str]:
    return [ping_cmd, "-c", str(PING_COUNT), "-W", str(PING_WAIT_SECS), host]


def is_reachable(ping_cmd: str, host: str) -> bool:
    """Return True if ``host`` answered a single round of pings."""
    return run_process(ping_args(ping_cmd, host)).success


def wait_until_reachable(
    ping_cmd: str, host: str, deadline: Deadline, interval: float = 1.0
) -> int:
    """
    Ping ``host`` until it answers.

    Returns:
        Number of attempts made

    Raises:
        ProbeTimeoutError: If the host never answered before the deadline
    """
    logger.info("Waiting for %s to answer ping (timeout: %gs)", host, deadline.timeout)
    outcome = poll_until(
        lambda: is_reachable(ping_cmd, host), deadline, interval, label=f"ping {host}"
    )
    if not outcome.satisfied:
        logger.warning("%s did not answer ping within %gs", host, deadline.timeout)
        raise ProbeTimeoutError(host, deadline.timeout, "ping")
    logger.info("%s is reachable (attempt %d)", host, outcome.attempts)
    return outcome.attempts


def wait_until_unreachable(
    ping_cmd: str, host: str, deadline: Deadline, interval: float = 1.0
) -> int:
    """
    Ping ``host`` until it stops answering.

    Returns:
        Number of attempts made

    Raises:
        ProbeTimeoutError: If the host still answered when the deadline elapsed
    """
    logger.info("Waiting for %s to stop answering ping (timeout: %gs)", host, deadline.timeout)
    outcome = poll_until(
        lambda: not is_reachable(ping_cmd, host),
        deadline,
        interval,
        label=f"ping loss {host}",
    )
    if not outcome.satisfied:
        logger.warning("%s still answers ping after %gs", host, deadline.timeout)
        raise ProbeTimeoutError(host, deadline.timeout, "ping loss")
    logger.info("%s is unreachable (attempt %d)", host, outcome.attempts)
    return outcome.attempts
