"""Tests for task orchestration."""

import logging
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from wakenrun.core.errors import (
    CommandError,
    ConfigurationError,
    InstructionFailureError,
    ProbeTimeoutError,
    ShutdownTimeoutError,
    WakeSignalError,
)
from wakenrun.core.models import (
    ExecutionSide,
    Instruction,
    ShutdownSettings,
    Task,
    WakeSettings,
)
from wakenrun.core.task import TaskResult, execute_task, run_task


def _make_task(**kwargs: object) -> Task:
    defaults = dict(
        name="test",
        host="backup.local",
        wake=WakeSettings(enabled=True, mac="AA:BB:CC:DD:EE:FF"),
        instructions=(
            Instruction(ExecutionSide.LOCAL, "echo hi"),
            Instruction(ExecutionSide.REMOTE, "uptime"),
        ),
        shutdown=ShutdownSettings(shutdown_remote=True),
        poll_interval_ms=250,
    )
    defaults.update(kwargs)  # type: ignore[arg-type]
    return Task(**defaults)  # type: ignore[arg-type]


class TestTask:
    """Tests for the Task dataclass."""

    def test_defaults(self) -> None:
        task = Task(host="h")

        assert task.wake.enabled is False
        assert task.shutdown.shutdown_remote is False
        assert task.ssh.cmd == "ssh"
        assert task.ping_cmd == "ping"
        assert task.poll_interval == 1.0
        assert task.display_name == "h"

    def test_is_immutable(self) -> None:
        task = Task(host="h")
        with pytest.raises(AttributeError):
            task.host = "other"  # type: ignore[misc]


class TestTaskResult:
    def test_duration_seconds_calculated(self) -> None:
        result = TaskResult(
            task_name="test",
            success=True,
            started_at=datetime(2024, 1, 1, 0, 0, 0),
            finished_at=datetime(2024, 1, 1, 0, 2, 30),
        )
        assert result.duration_seconds == 150.0

    def test_duration_none_without_finished_at(self) -> None:
        result = TaskResult(task_name="t", success=False, started_at=datetime.now(timezone.utc))
        assert result.duration_seconds is None


class TestExecuteTask:
    """Tests for execute_task stage sequencing."""

    @patch("wakenrun.core.task.shutdown_remote")
    @patch("wakenrun.core.task.run_instructions")
    @patch("wakenrun.core.task.wakeup")
    def test_runs_stages_in_order(
        self, mock_wake: MagicMock, mock_run: MagicMock, mock_shutdown: MagicMock
    ) -> None:
        order: list[str] = []
        mock_wake.side_effect = lambda *a, **k: order.append("wake")
        mock_run.side_effect = lambda *a, **k: order.append("run") or 2
        mock_shutdown.side_effect = lambda *a, **k: order.append("shutdown")
        task = _make_task(working_dir="/srv", local_shell="/bin/bash")

        count = execute_task(task)

        assert order == ["wake", "run", "shutdown"]
        assert count == 2
        mock_wake.assert_called_once_with(task.wake, task.host, task.ssh, task.ping_cmd, 0.25)
        mock_run.assert_called_once_with(
            task.instructions,
            task.host,
            task.ssh,
            cwd="/srv",
            local_shell="/bin/bash",
            output_log=None,
        )
        mock_shutdown.assert_called_once_with(
            task.shutdown, task.host, task.ssh, task.ping_cmd, 0.25
        )

    @patch("wakenrun.core.task.shutdown_remote")
    @patch("wakenrun.core.task.run_instructions")
    @patch("wakenrun.core.task.wakeup")
    def test_wake_failure_skips_later_stages(
        self, mock_wake: MagicMock, mock_run: MagicMock, mock_shutdown: MagicMock
    ) -> None:
        mock_wake.side_effect = ProbeTimeoutError("backup.local", 120, "ping")

        with pytest.raises(ProbeTimeoutError) as exc_info:
            execute_task(_make_task())

        assert exc_info.value.stage == "wake"
        mock_run.assert_not_called()
        mock_shutdown.assert_not_called()

    @patch("wakenrun.core.task.shutdown_remote")
    @patch("wakenrun.core.task.run_instructions")
    @patch("wakenrun.core.task.wakeup")
    def test_instruction_failure_skips_shutdown(
        self, mock_wake: MagicMock, mock_run: MagicMock, mock_shutdown: MagicMock
    ) -> None:
        task = _make_task()
        mock_run.side_effect = InstructionFailureError(1, task.instructions[1], 1)

        with pytest.raises(InstructionFailureError) as exc_info:
            execute_task(task)

        assert exc_info.value.stage == "instructions"
        mock_shutdown.assert_not_called()

    @patch("wakenrun.core.task.shutdown_remote")
    @patch("wakenrun.core.task.run_instructions", return_value=2)
    @patch("wakenrun.core.task.wakeup")
    def test_shutdown_timeout_is_tagged(
        self, mock_wake: MagicMock, mock_run: MagicMock, mock_shutdown: MagicMock
    ) -> None:
        mock_shutdown.side_effect = ShutdownTimeoutError("backup.local", 60, "ping loss")

        with pytest.raises(ShutdownTimeoutError) as exc_info:
            execute_task(_make_task())

        assert exc_info.value.stage == "shutdown"
        assert exc_info.value.instructions_run == 2
        mock_run.assert_called_once()


class TestRunTask:
    """Tests for run_task result reporting."""

    @patch("wakenrun.core.task.execute_task", return_value=2)
    def test_success_result(self, mock_exec: MagicMock) -> None:
        result = run_task(_make_task())

        assert result.success is True
        assert result.task_name == "test"
        assert result.instructions_run == 2
        assert result.error is None
        assert result.finished_at is not None

    @patch("wakenrun.core.task.execute_task")
    def test_failure_result_names_stage_and_error(self, mock_exec: MagicMock) -> None:
        task = _make_task()
        exc = InstructionFailureError(1, task.instructions[1], 3, "no such file")
        exc.stage = "instructions"
        mock_exec.side_effect = exc

        result = run_task(task)

        assert result.success is False
        assert result.stage == "instructions"
        assert result.instructions_run == 2
        assert "remote: uptime" in (result.error or "")
        assert "status 3" in (result.error or "")

    @patch("wakenrun.core.task.execute_task")
    def test_configuration_error_reported(self, mock_exec: MagicMock) -> None:
        exc = ConfigurationError("invalid MAC address 'zz'")
        exc.stage = "wake"
        mock_exec.side_effect = exc

        result = run_task(_make_task())

        assert result.success is False
        assert result.stage == "wake"
        assert result.instructions_run == 0

    @patch("wakenrun.core.task.shutdown_remote")
    @patch("wakenrun.core.task.run_instructions", return_value=2)
    @patch("wakenrun.core.task.wakeup")
    def test_shutdown_timeout_keeps_instruction_count(
        self, mock_wake: MagicMock, mock_run: MagicMock, mock_shutdown: MagicMock
    ) -> None:
        mock_shutdown.side_effect = ShutdownTimeoutError("backup.local", 60, "ping loss")

        result = run_task(_make_task())

        assert result.success is False
        assert result.stage == "shutdown"
        assert result.instructions_run == 2

    @patch("wakenrun.core.task.run_instructions")
    @patch("wakenrun.core.task.wakeup")
    def test_wake_signal_error_is_a_failed_wake_stage(
        self, mock_wake: MagicMock, mock_run: MagicMock
    ) -> None:
        mock_wake.side_effect = WakeSignalError(
            "AA:BB:CC:DD:EE:FF", "no-such-net.invalid:9", "Name or service not known"
        )

        result = run_task(_make_task())

        assert result.success is False
        assert result.stage == "wake"
        assert result.instructions_run == 0
        assert "could not send wake signal" in (result.error or "")
        mock_run.assert_not_called()

    @patch("wakenrun.core.task.execute_task")
    def test_unexpected_exceptions_propagate(self, mock_exec: MagicMock) -> None:
        mock_exec.side_effect = RuntimeError("bug")

        with pytest.raises(RuntimeError):
            run_task(_make_task())

    @patch("wakenrun.core.task.execute_task", return_value=0)
    def test_captures_log_lines(self, mock_exec: MagicMock, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger="wakenrun")

        result = run_task(_make_task())

        assert any("Starting task: test" in line for line in result.log_lines)
        assert any("complete" in line for line in result.log_lines)

    @patch("wakenrun.core.task.execute_task", return_value=0)
    def test_log_handler_removed_after_run(self, mock_exec: MagicMock) -> None:
        root = logging.getLogger("wakenrun")
        before = list(root.handlers)

        run_task(_make_task())

        assert root.handlers == before


class TestEndToEnd:
    """Full run with only the process and network seams patched."""

    @patch("wakenrun.core.wol.wakeonlan.wake")
    @patch("wakenrun.core.ping.run_process")
    @patch("wakenrun.core.ssh.run_process")
    @patch("wakenrun.core.instructions.run_process")
    def test_full_lifecycle(
        self,
        mock_local: MagicMock,
        mock_ssh: MagicMock,
        mock_ping: MagicMock,
        mock_send: MagicMock,
        fake_clock,
    ) -> None:
        from wakenrun.core.process import ExecutionResult

        ok = ExecutionResult(success=True, returncode=0)
        down = ExecutionResult(success=False, returncode=1)
        mock_local.return_value = ok
        mock_ssh.return_value = ok
        # boot: two misses then up; shutdown: still up once then gone
        mock_ping.side_effect = [down, down, ok, ok, down]

        result = run_task(_make_task())

        assert result.success is True
        mock_send.assert_called_once()
        assert mock_ping.call_count == 5
        mock_local.assert_called_once()
        remote_cmds = [c[0][0][-1] for c in mock_ssh.call_args_list]
        assert remote_cmds == ["uptime", "sudo shutdown -h now"]

    @patch("wakenrun.core.wol.wakeonlan.wake")
    @patch("wakenrun.core.ping.run_process")
    @patch("wakenrun.core.ssh.run_process")
    @patch("wakenrun.core.instructions.run_process")
    def test_failed_instruction_leaves_host_running(
        self,
        mock_local: MagicMock,
        mock_ssh: MagicMock,
        mock_ping: MagicMock,
        mock_send: MagicMock,
        fake_clock,
    ) -> None:
        from wakenrun.core.process import ExecutionResult

        mock_ping.return_value = ExecutionResult(success=True, returncode=0)
        mock_local.side_effect = CommandError(["/bin/sh", "-c", "echo hi"], 1)

        result = run_task(_make_task())

        assert result.success is False
        assert result.stage == "instructions"
        mock_ssh.assert_not_called()

    @patch("wakenrun.core.wol.wakeonlan.wake")
    @patch("wakenrun.core.ping.run_process")
    @patch("wakenrun.core.instructions.run_process")
    def test_unresolvable_broadcast_fails_wake_stage(
        self,
        mock_local: MagicMock,
        mock_ping: MagicMock,
        mock_send: MagicMock,
    ) -> None:
        import socket

        mock_send.side_effect = socket.gaierror(-2, "Name or service not known")
        task = _make_task(
            wake=WakeSettings(
                enabled=True, mac="AA:BB:CC:DD:EE:FF", broadcast_ip="no-such-net.invalid"
            )
        )

        result = run_task(task)

        assert result.success is False
        assert result.stage == "wake"
        assert "no-such-net.invalid" in (result.error or "")
        mock_ping.assert_not_called()
        mock_local.assert_not_called()
