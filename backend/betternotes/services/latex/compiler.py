"""
LaTeX compilation service.

Orchestrates one compile request: workspace -> toolchain plan -> invocation ->
diagnostics -> PDF bytes or LatexCompileError. The workspace is released on
every exit path.
"""

from __future__ import annotations

import base64
import binascii
import time
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Callable, Dict, List, Optional

from loguru import logger

from betternotes.core.config import settings
from betternotes.core.logging import log_service_call
from betternotes.services.latex.diagnostics import DiagnosticsCollector
from betternotes.services.latex.fallbacks import apply_latex_fallbacks, strip_markdown_fences
from betternotes.services.latex.invoker import CompilerInvoker, ProcessRunner, run_process
from betternotes.services.latex.toolchain import (
    CommandExists,
    InvocationPlan,
    available_tools,
    command_exists,
    plan_invocation,
)
from betternotes.services.latex.workspace import (
    PROJECT_WORKSPACE_PREFIX,
    Workspace,
    workspace_scope,
    write_workspace_file,
)
from betternotes.utils.exceptions import ErrorCode, InvalidInputError, LatexCompileError


@dataclass(frozen=True)
class ProjectFile:
    """One file of a multi-file project; binary content is base64 encoded."""

    path: str
    content: str
    is_binary: bool = False


@dataclass(frozen=True)
class LatexCompileResult:
    pdf_bytes: bytes
    log: str
    plan: InvocationPlan
    latex_patched: Optional[str] = None


class LatexCompilerService:
    def __init__(
        self,
        *,
        timeout_seconds: Optional[float] = None,
        max_buffer_bytes: Optional[int] = None,
        max_log_chars: Optional[int] = None,
        stop_after_first_failure: Optional[bool] = None,
        apply_fallbacks: Optional[bool] = None,
        exists: Optional[CommandExists] = None,
        runner: ProcessRunner = run_process,
        plan: Optional[InvocationPlan] = None,
    ):
        self.apply_fallbacks = settings.LATEX_APPLY_FALLBACKS if apply_fallbacks is None else apply_fallbacks
        self.invoker = CompilerInvoker(
            timeout_seconds=settings.latex_timeout_seconds if timeout_seconds is None else timeout_seconds,
            max_buffer_bytes=settings.LATEX_MAX_BUFFER_BYTES if max_buffer_bytes is None else max_buffer_bytes,
            stop_after_first_failure=(
                settings.LATEX_STOP_AFTER_FIRST_FAILURE
                if stop_after_first_failure is None
                else stop_after_first_failure
            ),
            runner=runner,
        )
        self.diagnostics = DiagnosticsCollector(
            settings.LATEX_MAX_LOG_CHARS if max_log_chars is None else max_log_chars
        )
        self._exists = exists or self._probe
        self._fixed_plan = plan

    @staticmethod
    def _probe(name: str) -> bool:
        return command_exists(name, timeout_seconds=settings.LATEX_PROBE_TIMEOUT_SECONDS)

    def available_tools(self) -> Dict[str, bool]:
        return available_tools(self._exists)

    def plan(self) -> InvocationPlan:
        if self._fixed_plan is not None:
            return self._fixed_plan
        return plan_invocation(self._exists)

    def _prepare_source(self, latex: str) -> str:
        # Sources pasted from chat output arrive wrapped in a ``` fence
        if latex.lstrip().startswith("```"):
            latex = strip_markdown_fences(latex)
        return apply_latex_fallbacks(latex) if self.apply_fallbacks else latex

    def _run(self, workspace: Workspace, *, failure_message: str) -> LatexCompileResult:
        plan = self.plan()
        if plan is InvocationPlan.TOOLING_MISSING:
            raise LatexCompileError(
                "[TOOLING_MISSING] Neither latexmk nor pdflatex found in PATH. "
                "Install TeX Live or use the Docker image.",
                status_code=500,
                code=ErrorCode.TOOLING_MISSING,
            )

        logger.info(f"Compiling {workspace.entry_file.name} with {plan.value}")
        report = self.invoker.invoke(plan, workspace)
        log = self.diagnostics.collect(workspace, report, failure_message=failure_message)
        pdf_bytes = workspace.artifact_path.read_bytes()
        return LatexCompileResult(pdf_bytes=pdf_bytes, log=log, plan=plan)

    def _timed(self, method_name: str, func: Callable[[], LatexCompileResult]) -> LatexCompileResult:
        start = time.monotonic()
        try:
            result = func()
        except LatexCompileError as exc:
            log_service_call(
                "LatexCompilerService",
                method_name,
                (time.monotonic() - start) * 1000,
                success=False,
                code=exc.code,
            )
            raise
        log_service_call(
            "LatexCompilerService",
            method_name,
            (time.monotonic() - start) * 1000,
            plan=result.plan.value,
            pdf_bytes=len(result.pdf_bytes),
        )
        return result

    def compile_to_pdf(self, latex: str) -> LatexCompileResult:
        """
        Compile a single LaTeX document.

        Raises:
            InvalidInputError: empty or whitespace-only source (no workspace is created)
            LatexCompileError: TOOLING_MISSING, COMPILE_TIMEOUT or COMPILE_FAILED
        """
        if not isinstance(latex, str) or not latex.strip():
            raise InvalidInputError("Missing 'latex'.")

        source = self._prepare_source(latex)
        if not source.strip():
            raise InvalidInputError("Missing 'latex'.")

        def run() -> LatexCompileResult:
            with workspace_scope(source) as workspace:
                result = self._run(workspace, failure_message="LaTeX compilation failed.")
            return LatexCompileResult(
                pdf_bytes=result.pdf_bytes,
                log=result.log,
                plan=result.plan,
                latex_patched=source,
            )

        return self._timed("compile_to_pdf", run)

    def compile_project(self, files: List[ProjectFile], main_file: str) -> LatexCompileResult:
        """
        Compile a multi-file project, preserving its directory layout.

        The toolchain runs in the main file's directory and the artifact and
        log names derive from the main file's base name.
        """
        if not files:
            raise InvalidInputError("No files provided.", code=ErrorCode.NO_FILES)

        main_key = PurePosixPath((main_file or "").strip().replace("\\", "/")).as_posix()
        if not any(PurePosixPath(f.path.replace("\\", "/")).as_posix() == main_key for f in files):
            raise InvalidInputError(
                f'Main file "{main_file}" not found in provided files.',
                code=ErrorCode.MAIN_FILE_NOT_FOUND,
            )

        def run() -> LatexCompileResult:
            with workspace_scope(entry_name=main_key, prefix=PROJECT_WORKSPACE_PREFIX) as workspace:
                for project_file in files:
                    write_workspace_file(workspace, project_file.path, self._decode(project_file))
                return self._run(workspace, failure_message="Multi-file LaTeX compilation failed.")

        return self._timed("compile_project", run)

    def _decode(self, project_file: ProjectFile):
        if project_file.is_binary:
            try:
                return base64.b64decode("".join(project_file.content.split()), validate=True)
            except (binascii.Error, ValueError) as exc:
                raise InvalidInputError(
                    f"Invalid base64 content for {project_file.path}: {exc}", field="content"
                ) from exc
        if project_file.path.endswith(".tex"):
            return self._prepare_source(project_file.content)
        return project_file.content


latex_compiler_service = LatexCompilerService()
