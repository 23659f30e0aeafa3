"""
Runs the LaTeX toolchain against a workspace.

Process failures are data here, not exceptions: a non-zero exit, a launch
error or a timeout is recorded on the InvocationResult and merged into the
running log. Whether the compile succeeded is decided afterward from the
presence of the PDF artifact.
"""

from __future__ import annotations

import os
import signal
import subprocess
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Callable, List, Optional

from loguru import logger

from betternotes.services.latex.toolchain import LATEXMK, PDFLATEX, InvocationPlan
from betternotes.services.latex.workspace import Workspace

LATEX_FLAGS = ["-interaction=nonstopmode", "-halt-on-error", "-file-line-error"]
LATEXMK_ARGS = ["-pdf", "-bibtex-", *LATEX_FLAGS]
FALLBACK_PASSES = 2


@dataclass
class InvocationResult:
    """Outcome of one toolchain process call."""

    command: List[str]
    returncode: Optional[int]
    output: str
    timed_out: bool = False
    error: Optional[str] = None
    duration_s: float = 0.0

    @property
    def succeeded(self) -> bool:
        return not self.timed_out and self.error is None and self.returncode == 0

    def log_text(self) -> str:
        """Captured output followed by any launch-error or timeout marker."""
        text = self.output
        if self.error:
            text += f"\n{self.error}\n"
        if self.timed_out:
            text += (
                f"\nTimeout: {self.command[0]} exceeded {self.duration_s * 1000:.0f} ms "
                "and was terminated (ETIMEDOUT).\n"
            )
        return text


@dataclass
class InvocationReport:
    plan: InvocationPlan
    results: List[InvocationResult] = field(default_factory=list)

    @property
    def log(self) -> str:
        return "".join(result.log_text() for result in self.results)

    @property
    def timed_out(self) -> bool:
        return any(result.timed_out for result in self.results)


ProcessRunner = Callable[[List[str], Path, float, int], InvocationResult]


def _read_tail(capture: IO[bytes], max_bytes: int) -> str:
    capture.seek(0, os.SEEK_END)
    size = capture.tell()
    start = max(0, size - max_bytes)
    capture.seek(start)
    text = capture.read().decode("utf-8", errors="replace")
    if start:
        return f"[output truncated: kept last {max_bytes} of {size} bytes]\n{text}"
    return text


def _terminate(proc: subprocess.Popen) -> None:
    # latexmk spawns pdflatex children; kill the whole process group.
    try:
        if os.name != "nt":
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except (ProcessLookupError, PermissionError):
        proc.kill()


def run_process(
    command: List[str],
    cwd: Path,
    timeout_seconds: float,
    max_buffer_bytes: int,
) -> InvocationResult:
    """
    Run one command with stdout and stderr interleaved into a spooled file.

    The capture goes to an anonymous temp file so memory use stays bounded;
    only the last ``max_buffer_bytes`` are read back.
    """
    start = time.monotonic()
    with tempfile.TemporaryFile() as capture:
        try:
            proc = subprocess.Popen(
                command,
                cwd=str(cwd),
                stdin=subprocess.DEVNULL,
                stdout=capture,
                stderr=subprocess.STDOUT,
                start_new_session=os.name != "nt",
            )
        except OSError as exc:
            return InvocationResult(
                command=command,
                returncode=None,
                output="",
                error=f"{exc.__class__.__name__}: {exc}",
                duration_s=time.monotonic() - start,
            )

        timed_out = False
        try:
            returncode = proc.wait(timeout=timeout_seconds)
        except subprocess.TimeoutExpired:
            timed_out = True
            _terminate(proc)
            returncode = proc.wait()

        output = _read_tail(capture, max_buffer_bytes)

    return InvocationResult(
        command=command,
        returncode=returncode,
        output=output,
        timed_out=timed_out,
        duration_s=time.monotonic() - start,
    )


class CompilerInvoker:
    """Executes an InvocationPlan inside a workspace."""

    def __init__(
        self,
        *,
        timeout_seconds: float,
        max_buffer_bytes: int,
        stop_after_first_failure: bool = True,
        runner: ProcessRunner = run_process,
    ):
        self.timeout_seconds = timeout_seconds
        self.max_buffer_bytes = max_buffer_bytes
        self.stop_after_first_failure = stop_after_first_failure
        self.runner = runner

    def commands_for(self, plan: InvocationPlan, entry_name: str) -> List[List[str]]:
        if plan is InvocationPlan.MULTI_PASS_DRIVER:
            return [[LATEXMK, *LATEXMK_ARGS, entry_name]]
        if plan is InvocationPlan.TWO_PASS_FALLBACK:
            return [[PDFLATEX, *LATEX_FLAGS, entry_name] for _ in range(FALLBACK_PASSES)]
        raise ValueError(f"Cannot invoke toolchain with plan {plan.value!r}")

    def invoke(self, plan: InvocationPlan, workspace: Workspace) -> InvocationReport:
        report = InvocationReport(plan=plan)
        commands = self.commands_for(plan, workspace.entry_file.name)

        for index, command in enumerate(commands, start=1):
            result = self.runner(command, workspace.work_dir, self.timeout_seconds, self.max_buffer_bytes)
            report.results.append(result)
            logger.debug(
                f"{command[0]} pass {index}/{len(commands)}: exit={result.returncode} "
                f"timed_out={result.timed_out} ({result.duration_s:.2f}s)"
            )

            if result.succeeded:
                continue
            if result.timed_out or self.stop_after_first_failure:
                break

        return report
