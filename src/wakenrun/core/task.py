"""Task orchestration: wake, run instructions, shut down."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from wakenrun.core.errors import WakenrunError
from wakenrun.core.instructions import run_instructions
from wakenrun.core.models import Task
from wakenrun.core.shutdown import shutdown_remote
from wakenrun.core.wol import wakeup

logger = logging.getLogger(__name__)

STAGE_WAKE = "wake"
STAGE_INSTRUCTIONS = "instructions"
STAGE_SHUTDOWN = "shutdown"


@dataclass
class TaskResult:
    """Result of one orchestration run."""

    task_name: str
    success: bool
    started_at: datetime
    finished_at: Optional[datetime] = None
    error: Optional[str] = None
    stage: Optional[str] = None
    instructions_run: int = 0
    log_lines: list[str] = field(default_factory=list)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at and self.started_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None


def execute_task(task: Task, output_log: Optional[logging.Logger] = None) -> int:
    """
    Run wake → instructions → shutdown for ``task``.

    Any error aborts immediately; later stages never run. The raised error's
    ``stage`` attribute names the stage it came from and ``instructions_run``
    counts the instructions that ran before it.

    Args:
        task: Task descriptor
        output_log: Logger receiving live command output

    Returns:
        Number of instructions executed

    Raises:
        WakenrunError: The first fatal error of the run
    """
    interval = task.poll_interval
    stage = STAGE_WAKE
    count = 0
    try:
        wakeup(task.wake, task.host, task.ssh, task.ping_cmd, interval)

        stage = STAGE_INSTRUCTIONS
        count = run_instructions(
            task.instructions,
            task.host,
            task.ssh,
            cwd=task.working_dir,
            local_shell=task.local_shell,
            output_log=output_log,
        )

        stage = STAGE_SHUTDOWN
        shutdown_remote(task.shutdown, task.host, task.ssh, task.ping_cmd, interval)
    except WakenrunError as exc:
        exc.stage = stage
        if stage == STAGE_SHUTDOWN:
            exc.instructions_run = count
        raise
    return count


def run_task(task: Task, output_log: Optional[logging.Logger] = None) -> TaskResult:
    """
    Execute a task and summarise the outcome.

    Log records from the ``wakenrun`` logger tree emitted during the run are
    captured into ``TaskResult.log_lines``.

    Args:
        task: Task descriptor
        output_log: Logger receiving live command output

    Returns:
        TaskResult with success status, failing stage and captured log lines
    """
    started_at = datetime.now(timezone.utc)
    log_lines: list[str] = []

    class _ListHandler(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            ts = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%H:%M:%S")
            log_lines.append(f"[{ts}] {record.levelname:7s} {record.getMessage()}")

    handler = _ListHandler(level=logging.DEBUG)
    root = logging.getLogger("wakenrun")
    root.addHandler(handler)
    try:
        logger.info("=== Starting task: %s ===", task.display_name)
        try:
            count = execute_task(task, output_log=output_log)
        except WakenrunError as exc:
            logger.error("[%s] %s stage failed: %s", task.display_name, exc.stage, exc)
            return TaskResult(
                task_name=task.display_name,
                success=False,
                started_at=started_at,
                finished_at=datetime.now(timezone.utc),
                error=str(exc),
                stage=exc.stage,
                instructions_run=exc.instructions_run,
                log_lines=log_lines,
            )

        result = TaskResult(
            task_name=task.display_name,
            success=True,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            instructions_run=count,
            log_lines=log_lines,
        )
        logger.info(
            "=== Task %s complete in %.1fs, %d instruction(s) run ===",
            task.display_name,
            result.duration_seconds or 0,
            count,
        )
        return result
    finally:
        root.removeHandler(handler)
