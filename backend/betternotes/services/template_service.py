"""
LaTeX template lookup.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from betternotes.utils.exceptions import TemplateNotFoundError

CONTENT_PLACEHOLDERS = ("{{CONTENT}}", "%%CONTENT%%", "%CONTENT%", "<<CONTENT>>")


@dataclass(frozen=True)
class Template:
    id: str
    source: str
    path: Path


def build_template_index(template_dir: Path) -> Dict[str, Path]:
    """Map template ids (file stems) to the ``*.tex`` files in ``template_dir``."""
    if not template_dir.is_dir():
        return {}
    return {
        path.stem: path
        for path in sorted(template_dir.iterdir())
        if path.is_file() and path.suffix == ".tex"
    }


def load_template(template_dir: Path, template_id: str) -> Template:
    index = build_template_index(template_dir)
    path = index.get(template_id)
    if path is None:
        raise TemplateNotFoundError(template_id, str(template_dir), sorted(index))
    return Template(id=template_id, source=path.read_text(encoding="utf-8"), path=path)


def find_placeholder(template_source: str) -> Optional[str]:
    """Return the first content placeholder present in the template, if any."""
    for placeholder in CONTENT_PLACEHOLDERS:
        if placeholder in template_source:
            return placeholder
    return None
