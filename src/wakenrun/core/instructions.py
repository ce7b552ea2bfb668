"""Sequential execution of task instructions."""

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from wakenrun.core.errors import CommandError, InstructionFailureError
from wakenrun.core.models import DEFAULT_LOCAL_SHELL, ExecutionSide, Instruction, SshSettings
from wakenrun.core.process import run_process
from wakenrun.core.ssh import run_remote

logger = logging.getLogger(__name__)


def run_instruction(
    instruction: Instruction,
    host: str,
    ssh: SshSettings,
    cwd: Optional[Union[str, Path]] = None,
    local_shell: str = DEFAULT_LOCAL_SHELL,
    output_log: Optional[logging.Logger] = None,
) -> None:
    """Run one instruction; raises CommandError if it exits non-zero."""
    if instruction.side is ExecutionSide.REMOTE:
        run_remote(
            ssh,
            host,
            instruction.remote_command(),
            must_succeed=True,
            stream_output=True,
            output_log=output_log,
        )
    else:
        run_process(
            instruction.local_argv(local_shell),
            cwd=cwd,
            must_succeed=True,
            stream_output=True,
            output_log=output_log,
        )


def run_instructions(
    instructions: Sequence[Instruction],
    host: str,
    ssh: SshSettings,
    cwd: Optional[Union[str, Path]] = None,
    local_shell: str = DEFAULT_LOCAL_SHELL,
    output_log: Optional[logging.Logger] = None,
) -> int:
    """
    Execute instructions strictly in order, stopping at the first failure.

    Args:
        instructions: Ordered instructions to run
        host: Target host for remote instructions
        ssh: ssh connection settings
        cwd: Working directory for local instructions (default: home)
        local_shell: Shell used for local string commands
        output_log: Logger receiving live command output

    Returns:
        Number of instructions executed

    Raises:
        InstructionFailureError: Identifying the first instruction that failed
    """
    total = len(instructions)
    for index, instruction in enumerate(instructions):
        logger.info("[%d/%d] %s", index + 1, total, instruction.describe())
        try:
            run_instruction(instruction, host, ssh, cwd, local_shell, output_log)
        except CommandError as exc:
            logger.error("Instruction %d/%d failed (exit %d)", index + 1, total, exc.returncode)
            raise InstructionFailureError(index, instruction, exc.returncode, exc.stderr) from exc
    return total
