"""
LaTeX toolchain detection.
"""

from __future__ import annotations

import os
import subprocess
from enum import Enum
from typing import Callable, Dict

from loguru import logger

LATEXMK = "latexmk"
PDFLATEX = "pdflatex"

CommandExists = Callable[[str], bool]


class InvocationPlan(str, Enum):
    """How a compile request drives the toolchain. Decided once per request."""

    MULTI_PASS_DRIVER = "latexmk"
    TWO_PASS_FALLBACK = "pdflatex"
    TOOLING_MISSING = "missing"


def command_exists(name: str, *, timeout_seconds: float = 3.0) -> bool:
    """
    Check whether an executable is on PATH using the host lookup tool.

    Absence is ordinary input for planning, so every failure mode (non-zero
    exit, missing lookup tool, timeout) maps to ``False``.
    """
    lookup = "where" if os.name == "nt" else "which"
    try:
        proc = subprocess.run(
            [lookup, name],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=timeout_seconds,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug(f"Executable lookup for {name!r} failed: {exc}")
        return False
    return proc.returncode == 0


def plan_invocation(exists: CommandExists = command_exists) -> InvocationPlan:
    """Prefer latexmk, fall back to pdflatex, otherwise report missing tooling."""
    if exists(LATEXMK):
        return InvocationPlan.MULTI_PASS_DRIVER
    if exists(PDFLATEX):
        return InvocationPlan.TWO_PASS_FALLBACK
    return InvocationPlan.TOOLING_MISSING


def available_tools(exists: CommandExists = command_exists) -> Dict[str, bool]:
    return {
        LATEXMK: exists(LATEXMK),
        PDFLATEX: exists(PDFLATEX),
    }
