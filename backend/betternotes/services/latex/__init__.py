"""
LaTeX compile pipeline.
"""

from .compiler import LatexCompileResult, LatexCompilerService, ProjectFile, latex_compiler_service
from .toolchain import InvocationPlan

__all__ = [
    "InvocationPlan",
    "LatexCompileResult",
    "LatexCompilerService",
    "ProjectFile",
    "latex_compiler_service",
]
