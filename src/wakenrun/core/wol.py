"""Wake-on-LAN and boot validation."""

import logging
import re
from typing import Any

import wakeonlan

from wakenrun.core.errors import ConfigurationError, WakeSignalError
from wakenrun.core.models import SshSettings, WakeSettings
from wakenrun.core.ping import wait_until_reachable
from wakenrun.core.poll import Deadline
from wakenrun.core.ssh import wait_for_session

logger = logging.getLogger(__name__)

_MAC_RE = re.compile(r"^[0-9A-Fa-f]{2}([:\-]?)(?:[0-9A-Fa-f]{2}\1){4}[0-9A-Fa-f]{2}$")


def parse_mac(mac: Any) -> str:
    """
    Normalise a hardware address to ``AA:BB:CC:DD:EE:FF``.

    Accepts colon, dash or no separators, used consistently.

    Raises:
        ConfigurationError: If ``mac`` is not six hex octets
    """
    mac = str(mac if mac is not None else "").strip()
    if not _MAC_RE.match(mac):
        raise ConfigurationError(f"invalid MAC address '{mac}'")
    digits = re.sub(r"[:\-]", "", mac).upper()
    return ":".join(digits[i : i + 2] for i in range(0, 12, 2))


def send_wake_signal(mac_address: str, ip_address: str = "255.255.255.255", port: int = 9) -> None:
    """
    Broadcast the magic packet for an already normalised MAC.

    Socket failures (an unresolvable broadcast address, an unreachable
    network) surface as WakeSignalError so the wake stage fails cleanly.
    """
    target = f"{ip_address}:{port}"
    logger.info("Sending WOL magic packet to %s via %s", mac_address, target)
    try:
        wakeonlan.wake(mac_address, host=ip_address, port=port)
    except OSError as exc:
        raise WakeSignalError(mac_address, target, str(exc)) from exc
    logger.debug("WOL packet sent to %s", mac_address)


def wakeup(
    settings: WakeSettings,
    host: str,
    ssh: SshSettings,
    ping_cmd: str = "ping",
    interval: float = 1.0,
) -> None:
    """
    Wake ``host`` and optionally confirm it booted.

    Ping and ssh-session validation share a single deadline of
    ``boot_timeout_secs`` started right after the packet is sent.

    Raises:
        ConfigurationError: If the MAC address is malformed (nothing is sent)
        WakeSignalError: If the packet could not be sent
        ProbeTimeoutError: If a requested validation does not succeed in time
    """
    if not settings.enabled:
        logger.debug("Wake disabled for %s, skipping", host)
        return

    mac = parse_mac(settings.mac)
    send_wake_signal(mac, ip_address=settings.broadcast_ip, port=settings.wol_port)
    deadline = Deadline.start(settings.boot_timeout_secs)

    if settings.validate_ping:
        wait_until_reachable(ping_cmd, host, deadline, interval)
    if settings.validate_ssh_connection:
        wait_for_session(ssh, host, deadline, interval)
    logger.info("%s is awake", host)
