"""Local process execution with optional live output streaming."""

import logging
import shlex
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Optional, Sequence, Union

from wakenrun.core.errors import CommandError

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """Outcome of a single process invocation."""

    success: bool
    returncode: int
    stdout: str = ""
    stderr: str = ""


def run_process(
    argv: Sequence[str],
    cwd: Optional[Union[str, Path]] = None,
    must_succeed: bool = False,
    stream_output: bool = False,
    output_log: Optional[logging.Logger] = None,
) -> ExecutionResult:
    """
    Run a program to completion and capture its output.

    Args:
        argv: Program followed by its arguments
        cwd: Working directory (default: the invoking user's home directory)
        must_succeed: Raise CommandError on a non-zero exit status
        stream_output: Log every output line as it is produced
        output_log: Logger receiving streamed output (default: this module's)

    Returns:
        ExecutionResult with exit status and captured stdout/stderr

    Raises:
        CommandError: If the program cannot be started, or exits non-zero
            while ``must_succeed`` is set
    """
    argv = list(argv)
    workdir = Path(cwd).expanduser() if cwd else Path.home()
    logger.debug("Running: %s (cwd=%s)", shlex.join(argv), workdir)

    try:
        if stream_output:
            returncode, out, err = _run_streaming(argv, workdir, output_log or logger)
        else:
            completed = subprocess.run(argv, cwd=workdir, capture_output=True, text=True)
            returncode = completed.returncode
            out, err = completed.stdout or "", completed.stderr or ""
    except OSError as exc:
        raise CommandError(argv, 127, "", str(exc)) from exc

    if returncode != 0:
        logger.debug("%s exited %d", argv[0], returncode)
        if must_succeed:
            raise CommandError(argv, returncode, out, err)
    return ExecutionResult(success=returncode == 0, returncode=returncode, stdout=out, stderr=err)


def _run_streaming(
    argv: list[str], workdir: Path, sink: logging.Logger
) -> tuple[int, str, str]:
    proc = subprocess.Popen(
        argv,
        cwd=workdir,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        bufsize=1,
    )
    out_lines: list[str] = []
    err_lines: list[str] = []
    readers = [
        threading.Thread(target=_pump, args=(proc.stdout, out_lines, sink, "stdout"), daemon=True),
        threading.Thread(target=_pump, args=(proc.stderr, err_lines, sink, "stderr"), daemon=True),
    ]
    for t in readers:
        t.start()
    returncode = proc.wait()
    for t in readers:
        t.join()
    return returncode, "".join(out_lines), "".join(err_lines)


def _pump(stream: Optional[IO[str]], lines: list[str], sink: logging.Logger, label: str) -> None:
    if stream is None:
        return
    with stream:
        for line in stream:
            lines.append(line)
            if line.strip():
                sink.info("[%s] %s", label, line.rstrip("\n"))
