import sys
import time

import pytest

from betternotes.services.latex.invoker import (
    FALLBACK_PASSES,
    CompilerInvoker,
    InvocationResult,
    run_process,
)
from betternotes.services.latex.toolchain import InvocationPlan
from betternotes.services.latex.workspace import workspace_scope

from .factories import VALID_LATEX, FakeRunner


def _python(code: str):
    return [sys.executable, "-c", code]


def test_run_process_captures_interleaved_output(tmp_path):
    result = run_process(
        _python("import sys; print('out'); print('err', file=sys.stderr)"),
        tmp_path,
        timeout_seconds=30,
        max_buffer_bytes=1024,
    )

    assert result.returncode == 0
    assert result.succeeded
    assert "out" in result.output
    assert "err" in result.output


def test_run_process_records_nonzero_exit(tmp_path):
    result = run_process(_python("import sys; sys.exit(3)"), tmp_path, 30, 1024)

    assert result.returncode == 3
    assert not result.succeeded
    assert not result.timed_out


def test_run_process_runs_in_given_directory(tmp_path):
    run_process(_python("open('marker.txt', 'w').write('here')"), tmp_path, 30, 1024)
    assert (tmp_path / "marker.txt").read_text() == "here"


def test_run_process_kills_on_timeout(tmp_path):
    started = time.monotonic()
    result = run_process(_python("import time; time.sleep(30)"), tmp_path, 0.5, 1024)

    assert result.timed_out
    assert not result.succeeded
    assert time.monotonic() - started < 10
    assert "ETIMEDOUT" in result.log_text()


def test_run_process_reports_missing_executable(tmp_path):
    result = run_process(["betternotes-no-such-binary-xyz", "main.tex"], tmp_path, 5, 1024)

    assert result.returncode is None
    assert result.error is not None
    assert not result.succeeded
    assert result.error in result.log_text()


def test_run_process_keeps_only_output_tail(tmp_path):
    result = run_process(
        _python("import sys; sys.stdout.write('a' * 5000 + 'TAIL')"),
        tmp_path,
        30,
        max_buffer_bytes=100,
    )

    assert result.output.startswith("[output truncated: kept last 100 of 5004 bytes]")
    assert result.output.endswith("TAIL")
    assert result.output.count("a") < 200


def test_commands_for_multi_pass_driver():
    invoker = CompilerInvoker(timeout_seconds=1, max_buffer_bytes=1024)
    commands = invoker.commands_for(InvocationPlan.MULTI_PASS_DRIVER, "main.tex")

    assert len(commands) == 1
    assert commands[0][0] == "latexmk"
    assert "-pdf" in commands[0]
    assert "-interaction=nonstopmode" in commands[0]
    assert "-halt-on-error" in commands[0]
    assert commands[0][-1] == "main.tex"


def test_commands_for_two_pass_fallback():
    invoker = CompilerInvoker(timeout_seconds=1, max_buffer_bytes=1024)
    commands = invoker.commands_for(InvocationPlan.TWO_PASS_FALLBACK, "paper.tex")

    assert len(commands) == FALLBACK_PASSES == 2
    assert all(command[0] == "pdflatex" and command[-1] == "paper.tex" for command in commands)


def test_commands_for_missing_tooling_raises():
    invoker = CompilerInvoker(timeout_seconds=1, max_buffer_bytes=1024)
    with pytest.raises(ValueError):
        invoker.commands_for(InvocationPlan.TOOLING_MISSING, "main.tex")


def test_invoke_runs_both_fallback_passes(temp_root):
    runner = FakeRunner(["pdf"])
    invoker = CompilerInvoker(timeout_seconds=2.0, max_buffer_bytes=512, runner=runner)

    with workspace_scope(VALID_LATEX) as workspace:
        report = invoker.invoke(InvocationPlan.TWO_PASS_FALLBACK, workspace)

    assert len(runner.calls) == 2
    assert all(cwd == workspace.work_dir for cwd in runner.cwds)
    assert report.plan is InvocationPlan.TWO_PASS_FALLBACK
    assert not report.timed_out


def test_invoke_stops_after_first_failure(temp_root):
    runner = FakeRunner(["fail"])
    invoker = CompilerInvoker(timeout_seconds=2.0, max_buffer_bytes=512, runner=runner)

    with workspace_scope(VALID_LATEX) as workspace:
        report = invoker.invoke(InvocationPlan.TWO_PASS_FALLBACK, workspace)

    assert len(runner.calls) == 1
    assert "Emergency stop" in report.log


def test_invoke_continues_after_failure_when_configured(temp_root):
    runner = FakeRunner(["fail", "pdf"])
    invoker = CompilerInvoker(
        timeout_seconds=2.0,
        max_buffer_bytes=512,
        stop_after_first_failure=False,
        runner=runner,
    )

    with workspace_scope(VALID_LATEX) as workspace:
        report = invoker.invoke(InvocationPlan.TWO_PASS_FALLBACK, workspace)

    assert len(runner.calls) == 2
    assert [result.returncode for result in report.results] == [1, 0]


def test_invoke_always_stops_on_timeout(temp_root):
    runner = FakeRunner(["timeout"])
    invoker = CompilerInvoker(
        timeout_seconds=2.0,
        max_buffer_bytes=512,
        stop_after_first_failure=False,
        runner=runner,
    )

    with workspace_scope(VALID_LATEX) as workspace:
        report = invoker.invoke(InvocationPlan.TWO_PASS_FALLBACK, workspace)

    assert len(runner.calls) == 1
    assert report.timed_out


def test_log_text_without_markers():
    result = InvocationResult(command=["pdflatex"], returncode=0, output="ok\n")
    assert result.log_text() == "ok\n"


def test_fallback_pass_outputs_are_joined_in_order(temp_root):
    outputs = iter(["pass 1: Output written on main.pdf\n", "pass 2: Output written on main.pdf\n"])

    def runner(command, cwd, timeout_seconds, max_buffer_bytes):
        return InvocationResult(command=list(command), returncode=0, output=next(outputs))

    invoker = CompilerInvoker(timeout_seconds=2.0, max_buffer_bytes=512, runner=runner)

    with workspace_scope(VALID_LATEX) as workspace:
        report = invoker.invoke(InvocationPlan.TWO_PASS_FALLBACK, workspace)

    assert report.log == "pass 1: Output written on main.pdf\npass 2: Output written on main.pdf\n"
