"""
Compilation-safety patches applied to LaTeX sources before compiling.

Generated documents often use theorem-like environments or small math macros
without declaring them. These helpers add minimal declarations right before
``\\begin{document}`` so such documents still compile.
"""

from __future__ import annotations

import re

THEOREM_MARKER = "% BN_THEOREM_FALLBACKS"
MATH_MARKER = "% BN_MATH_FALLBACKS"

THEOREM_ENVIRONMENTS = [
    ("definition", "Definition"),
    ("theorem", "Theorem"),
    ("lemma", "Lemma"),
    ("proposition", "Proposition"),
    ("corollary", "Corollary"),
    ("example", "Example"),
    ("remark", "Remark"),
    ("obs", "Observation"),
]

MATH_FALLBACKS = [
    (re.compile(r"\\abs\s*\{"), r"\providecommand{\abs}[1]{\left|#1\right|}"),
    (re.compile(r"\\norm\s*\{"), r"\providecommand{\norm}[1]{\left\|#1\right\|}"),
    (re.compile(r"\\coloneqq\b"), r"\providecommand{\coloneqq}{\mathrel{:=}}"),
    (re.compile(r"\\generated\s*\{"), r"\providecommand{\generated}[1]{(\min\{#1\},\max\{#1\})}"),
]

_BEGIN_DOCUMENT_RE = re.compile(r"\\begin\s*\{document\}")
_AMSTHM_RE = re.compile(r"\\usepackage\s*(\[[^\]]*\])?\s*\{[^}]*amsthm[^}]*\}")


def strip_markdown_fences(text: str) -> str:
    """Remove a surrounding ``` fence (with optional language tag) from chat output."""
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    lines = stripped.split("\n")
    lines.pop(0)
    if lines and lines[-1].strip() == "```":
        lines.pop()
    return "\n".join(lines).strip()


def inject_theorem_fallbacks(latex: str) -> str:
    """Declare theorem-like environments that are used but never defined."""
    used = [
        (name, title)
        for name, title in THEOREM_ENVIRONMENTS
        if re.search(rf"\\begin\s*\{{{name}\}}", latex)
    ]
    missing = [
        (name, title)
        for name, title in used
        if not re.search(rf"\\newtheorem\s*\{{{name}\}}", latex)
    ]
    if not missing:
        return latex

    match = _BEGIN_DOCUMENT_RE.search(latex)
    if match is None:
        return latex

    lines = [THEOREM_MARKER]
    if not _AMSTHM_RE.search(latex):
        lines.append(r"\usepackage{amsthm}")
    lines.extend(rf"\newtheorem{{{name}}}{{{title}}}" for name, title in missing)

    insert_at = match.start()
    return f"{latex[:insert_at]}" + "\n".join(lines) + f"\n\n{latex[insert_at:]}"


def inject_common_math_fallbacks(latex: str) -> str:
    """Provide a few commonly assumed math macros (``\\abs``, ``\\norm``, ...)."""
    match = _BEGIN_DOCUMENT_RE.search(latex)
    if match is None or MATH_MARKER in latex:
        return latex

    definitions = [definition for pattern, definition in MATH_FALLBACKS if pattern.search(latex)]
    if not definitions:
        return latex

    injection = "\n".join([MATH_MARKER, *definitions]) + "\n"
    insert_at = match.start()
    return f"{latex[:insert_at]}{injection}\n{latex[insert_at:]}"


def apply_latex_fallbacks(latex: str) -> str:
    return inject_common_math_fallbacks(inject_theorem_fallbacks(latex))
