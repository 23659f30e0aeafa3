"""
Compiler diagnostics: log assembly, failure classification and truncation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Tuple

from loguru import logger

from betternotes.services.latex.invoker import InvocationReport, InvocationResult
from betternotes.services.latex.workspace import Workspace
from betternotes.utils.exceptions import ErrorCode, LatexCompileError

DEFAULT_MAX_LOG_CHARS = 60000
TIMEOUT_MARKERS = ("Timeout", "ETIMEDOUT")


def trim_huge_log(text: str, max_chars: int = DEFAULT_MAX_LOG_CHARS) -> str:
    """Keep only the last ``max_chars`` characters; errors are reported near the end."""
    if len(text) <= max_chars:
        return text
    return text[-max_chars:]


def append_toolchain_log(log: str, log_path: Path) -> str:
    """Append the toolchain's own log file, when it exists, under a section header."""
    if not log_path.is_file():
        return log
    # pdflatex writes font metadata that is not always valid UTF-8
    contents = log_path.read_text(encoding="utf-8", errors="replace")
    return f"{log}\n\n----- {log_path.name} -----\n{contents}"


def _has_timeout_marker(text: Optional[str]) -> bool:
    return bool(text) and any(marker in text for marker in TIMEOUT_MARKERS)


def is_timeout(results: Iterable[InvocationResult]) -> bool:
    return any(result.timed_out or _has_timeout_marker(result.error) for result in results)


def classify_failure(results: Iterable[InvocationResult]) -> Tuple[int, str]:
    """Map a failed run to ``(http_status, error_code)``."""
    if is_timeout(results):
        return 408, ErrorCode.COMPILE_TIMEOUT
    return 422, ErrorCode.COMPILE_FAILED


class DiagnosticsCollector:
    """Decides success from the artifact and assembles the returned log."""

    def __init__(self, max_log_chars: int = DEFAULT_MAX_LOG_CHARS):
        self.max_log_chars = max_log_chars

    def collect(
        self,
        workspace: Workspace,
        report: InvocationReport,
        *,
        failure_message: str = "LaTeX compilation failed.",
    ) -> str:
        """
        Return the truncated log when the artifact exists.

        Raises:
            LatexCompileError: when no artifact was produced, classified as
                COMPILE_TIMEOUT (408) or COMPILE_FAILED (422)
        """
        log = append_toolchain_log(report.log, workspace.log_path)

        if not workspace.artifact_path.is_file():
            status_code, code = classify_failure(report.results)
            logger.info(
                f"{workspace.artifact_path.name} not produced by {report.plan.value} "
                f"after {len(report.results)} pass(es): {code}"
            )
            raise LatexCompileError(
                failure_message,
                status_code=status_code,
                code=code,
                log=trim_huge_log(log, self.max_log_chars),
            )

        if not all(result.succeeded for result in report.results):
            # Non-zero exits with a usable PDF are kept as successes
            logger.debug(f"{report.plan.value} reported errors but produced {workspace.artifact_path.name}")

        return trim_huge_log(log, self.max_log_chars)
