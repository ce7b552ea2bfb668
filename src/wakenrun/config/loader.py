"""YAML task descriptor loader and validator."""

from pathlib import Path
from typing import Any, Optional

import yaml

from wakenrun.core.errors import ConfigurationError
from wakenrun.core.models import (
    DEFAULT_BOOT_TIMEOUT,
    DEFAULT_BROADCAST_IP,
    DEFAULT_LOCAL_SHELL,
    DEFAULT_PING_CMD,
    DEFAULT_POLL_INTERVAL_MS,
    DEFAULT_SHUTDOWN_CMD,
    DEFAULT_SHUTDOWN_TIMEOUT,
    DEFAULT_SSH_CMD,
    DEFAULT_WOL_PORT,
    ExecutionSide,
    Instruction,
    ShutdownSettings,
    SshSettings,
    Task,
    WakeSettings,
)
from wakenrun.core.wol import parse_mac

_SIDES = {s.value for s in ExecutionSide}


def load_config(path: Path) -> Optional[dict[str, Any]]:
    """
    Load a task descriptor from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Parsed dictionary, or None if the file is empty

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML is invalid
    """
    with open(path) as f:
        result: Optional[dict[str, Any]] = yaml.safe_load(f)
        return result


def _is_non_negative_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _check_bool(section: dict[str, Any], key: str, prefix: str, errors: list[str]) -> None:
    if key in section and not isinstance(section[key], bool):
        errors.append(f"{prefix}.{key} must be true or false, got {section[key]!r}")


def _check_str(
    section: dict[str, Any], key: str, prefix: str, errors: list[str], required: bool = False
) -> None:
    if key not in section or (section[key] is None and not required):
        return
    value = section[key]
    if not isinstance(value, str) or (required and not value.strip()):
        errors.append(f"{prefix}.{key} must be a non-empty string, got {value!r}")


def _validate_section(raw: Any, name: str, errors: list[str]) -> dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        errors.append(f"'{name}' must be a mapping")
        return {}
    return raw


def validate_config(config: dict[str, Any]) -> list[str]:
    """
    Validate a loaded task descriptor.

    Returns:
        List of validation error messages (empty list = valid)
    """
    errors: list[str] = []

    if not isinstance(config, dict):
        return ["Config root must be a YAML mapping"]

    if not config.get("host") or not isinstance(config.get("host"), str):
        errors.append("'host' is required")

    for key in ("ping_cmd", "local_shell", "working_dir", "name"):
        if key in config and not isinstance(config[key], str):
            errors.append(f"'{key}' must be a string")
    if "poll_interval_ms" in config and not _is_non_negative_int(config["poll_interval_ms"]):
        errors.append("'poll_interval_ms' must be a non-negative integer")

    ssh = _validate_section(config.get("ssh"), "ssh", errors)
    port = ssh.get("port")
    if port is not None and not (_is_non_negative_int(port) and port > 0):
        errors.append(f"ssh.port must be a positive integer, got {port!r}")
    if "identity_file" in ssh and ssh["identity_file"] is not None:
        if not isinstance(ssh["identity_file"], str) or not ssh["identity_file"].strip():
            errors.append("ssh.identity_file must be a non-empty path")
    _check_str(ssh, "cmd", "ssh", errors, required=True)
    _check_str(ssh, "user", "ssh", errors)

    wake = _validate_section(config.get("wakeup_instructions"), "wakeup_instructions", errors)
    for key in ("enabled", "validate_ping", "validate_ssh_connection"):
        _check_bool(wake, key, "wakeup_instructions", errors)
    _check_str(wake, "broadcast_ip", "wakeup_instructions", errors, required=True)
    wol_port = wake.get("wol_port")
    if wol_port is not None and not (_is_non_negative_int(wol_port) and 0 < wol_port <= 65535):
        errors.append(f"wakeup_instructions.wol_port must be a port number, got {wol_port!r}")
    if wake.get("enabled") is True:
        mac = wake.get("mac", "")
        if not mac:
            errors.append("wakeup_instructions.mac is required when wake is enabled")
        elif not isinstance(mac, str):
            errors.append(f"wakeup_instructions.mac must be a quoted string, got {mac!r}")
        else:
            try:
                parse_mac(mac)
            except ConfigurationError:
                errors.append(f"wakeup_instructions: invalid mac '{mac}'")
    if "boot_timeout_secs" in wake and not _is_non_negative_int(wake["boot_timeout_secs"]):
        errors.append("wakeup_instructions.boot_timeout_secs must be a non-negative integer")

    after = _validate_section(config.get("after_instructions"), "after_instructions", errors)
    if "shutdown_timeout_secs" in after and not _is_non_negative_int(
        after["shutdown_timeout_secs"]
    ):
        errors.append("after_instructions.shutdown_timeout_secs must be a non-negative integer")
    for key in ("shutdown_remote", "validate_shutdown"):
        _check_bool(after, key, "after_instructions", errors)
    _check_str(after, "shutdown_cmd", "after_instructions", errors, required=True)

    instructions = config.get("instructions", [])
    if instructions is None:
        instructions = []
    if not isinstance(instructions, list):
        errors.append("'instructions' must be a list")
        return errors
    for i, item in enumerate(instructions):
        prefix = f"instructions[{i}]"
        if not isinstance(item, dict):
            errors.append(f"{prefix}: must be a mapping")
            continue
        side = item.get("execution_side")
        if side not in _SIDES:
            errors.append(f"{prefix}: execution_side must be 'local' or 'remote', got {side!r}")
        command = item.get("command")
        if isinstance(command, list):
            if not command or not all(isinstance(part, str) for part in command):
                errors.append(f"{prefix}: command list must be non-empty strings")
        elif not isinstance(command, str) or not command.strip():
            errors.append(f"{prefix}: missing required field 'command'")

    return errors


def task_from_config(config: dict[str, Any]) -> Task:
    """
    Construct a Task from a validated descriptor dict.

    Args:
        config: Parsed and validated descriptor

    Returns:
        Task instance with defaults filled in
    """
    ssh = config.get("ssh") or {}
    wake = config.get("wakeup_instructions") or {}
    after = config.get("after_instructions") or {}

    instructions = []
    for raw in config.get("instructions") or []:
        command = raw["command"]
        instructions.append(
            Instruction(
                side=ExecutionSide(raw["execution_side"]),
                command=tuple(command) if isinstance(command, list) else command,
            )
        )

    port = ssh.get("port")
    return Task(
        host=config["host"],
        name=config.get("name", ""),
        ssh=SshSettings(
            cmd=ssh.get("cmd", DEFAULT_SSH_CMD),
            identity_file=ssh.get("identity_file"),
            port=int(port) if port is not None else None,
            user=ssh.get("user"),
        ),
        wake=WakeSettings(
            enabled=wake.get("enabled", False),
            mac=str(wake.get("mac", "")),
            boot_timeout_secs=int(wake.get("boot_timeout_secs", DEFAULT_BOOT_TIMEOUT)),
            validate_ping=wake.get("validate_ping", True),
            validate_ssh_connection=wake.get("validate_ssh_connection", False),
            broadcast_ip=wake.get("broadcast_ip", DEFAULT_BROADCAST_IP),
            wol_port=int(wake.get("wol_port", DEFAULT_WOL_PORT)),
        ),
        instructions=tuple(instructions),
        shutdown=ShutdownSettings(
            shutdown_remote=after.get("shutdown_remote", False),
            shutdown_cmd=after.get("shutdown_cmd", DEFAULT_SHUTDOWN_CMD),
            validate_shutdown=after.get("validate_shutdown", True),
            shutdown_timeout_secs=int(
                after.get("shutdown_timeout_secs", DEFAULT_SHUTDOWN_TIMEOUT)
            ),
        ),
        ping_cmd=config.get("ping_cmd", DEFAULT_PING_CMD),
        poll_interval_ms=int(config.get("poll_interval_ms", DEFAULT_POLL_INTERVAL_MS)),
        working_dir=config.get("working_dir"),
        local_shell=config.get("local_shell", DEFAULT_LOCAL_SHELL),
    )


def load_task(path: Path) -> Task:
    """
    Read, validate and build a Task from a YAML file.

    Raises:
        ConfigurationError: If the file is missing, unparsable, empty or invalid
    """
    try:
        raw = load_config(path)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    if not raw:
        raise ConfigurationError(f"Config file {path} is empty.")
    errors = validate_config(raw)
    if errors:
        raise ConfigurationError("Config validation errors", errors)
    return task_from_config(raw)
