"""Atomic YAML task descriptor write-back and sample generation."""

import os
from pathlib import Path
from typing import Any

import yaml

from wakenrun.core.models import (
    ExecutionSide,
    Instruction,
    ShutdownSettings,
    SshSettings,
    Task,
    WakeSettings,
)


def task_to_raw(task: Task) -> dict[str, Any]:
    """Serialize a Task back to the raw YAML dict format the loader expects."""
    ssh: dict[str, Any] = {"cmd": task.ssh.cmd}
    if task.ssh.identity_file:
        ssh["identity_file"] = task.ssh.identity_file
    if task.ssh.port is not None:
        ssh["port"] = task.ssh.port
    if task.ssh.user:
        ssh["user"] = task.ssh.user

    d: dict[str, Any] = {}
    if task.name:
        d["name"] = task.name
    d["host"] = task.host
    d["ping_cmd"] = task.ping_cmd
    d["poll_interval_ms"] = task.poll_interval_ms
    if task.working_dir:
        d["working_dir"] = task.working_dir
    d["local_shell"] = task.local_shell
    d["ssh"] = ssh
    d["wakeup_instructions"] = {
        "enabled": task.wake.enabled,
        "mac": task.wake.mac,
        "boot_timeout_secs": task.wake.boot_timeout_secs,
        "validate_ping": task.wake.validate_ping,
        "validate_ssh_connection": task.wake.validate_ssh_connection,
        "broadcast_ip": task.wake.broadcast_ip,
        "wol_port": task.wake.wol_port,
    }
    d["instructions"] = [
        {
            "execution_side": i.side.value,
            "command": list(i.command) if isinstance(i.command, tuple) else i.command,
        }
        for i in task.instructions
    ]
    d["after_instructions"] = {
        "shutdown_remote": task.shutdown.shutdown_remote,
        "shutdown_cmd": task.shutdown.shutdown_cmd,
        "validate_shutdown": task.shutdown.validate_shutdown,
        "shutdown_timeout_secs": task.shutdown.shutdown_timeout_secs,
    }
    return d


def write_config(path: Path, config: dict[str, Any]) -> None:
    """
    Atomically write a descriptor dict to a YAML file.

    Uses a temp-file + os.replace so a crash mid-write never leaves a
    half-written file.

    Args:
        path: Destination YAML path.
        config: Raw descriptor dict.
    """
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp, "w", encoding="utf-8") as f:
            yaml.dump(
                config,
                f,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            )
        os.replace(tmp, path)
    except Exception:
        if tmp.exists():
            tmp.unlink(missing_ok=True)
        raise


def sample_task() -> Task:
    """An illustrative task with one local and one remote instruction."""
    return Task(
        name="example",
        host="192.168.1.50",
        ssh=SshSettings(identity_file="~/.ssh/id_ed25519", port=22, user="admin"),
        wake=WakeSettings(
            enabled=True,
            mac="AA:BB:CC:DD:EE:FF",
            validate_ping=True,
            validate_ssh_connection=True,
        ),
        instructions=(
            Instruction(ExecutionSide.LOCAL, "echo 'waking up the build box'"),
            Instruction(ExecutionSide.REMOTE, "uptime"),
        ),
        shutdown=ShutdownSettings(shutdown_remote=True, validate_shutdown=True),
    )


def write_sample(path: Path) -> None:
    """
    Write the sample task descriptor to ``path``.

    Raises:
        FileExistsError: If ``path`` already exists
    """
    if path.exists():
        raise FileExistsError(f"{path} already exists, refusing to overwrite")
    write_config(path, task_to_raw(sample_task()))
