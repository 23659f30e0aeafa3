#!/usr/bin/env python3
"""
BetterNotes LaTeX CLI - compile documents through the BetterNotes LaTeX API.

Usage:
    bnlatex compile paper.tex -o paper.pdf       # Compile one file
    bnlatex project ./thesis --main main.tex     # Compile a multi-file project
    bnlatex health                               # Show service/toolchain status
    bnlatex templates                            # List available templates
"""

import argparse
import base64
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from requests.exceptions import ConnectionError, Timeout
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

DEFAULT_API_URL = "http://localhost:4000"
TEXT_SUFFIXES = {".tex", ".bib", ".sty", ".cls", ".bst", ".txt"}

console = Console()


def print_error(text: str):
    """Print error message."""
    console.print(f"[red]Error:[/red] {text}")


def print_success(text: str):
    """Print success message."""
    console.print(f"[green]✓[/green] {text}")


class CompileFailed(Exception):
    def __init__(self, status_code: int, body: Dict[str, Any]):
        super().__init__(body.get("error") or f"HTTP {status_code}")
        self.status_code = status_code
        self.code = body.get("code")
        self.log = body.get("log")


class BetterNotesClient:
    """BetterNotes LaTeX API client."""

    def __init__(self, base_url: Optional[str] = None, timeout: float = 120):
        self.base_url = (base_url or os.getenv("BETTERNOTES_API_URL") or DEFAULT_API_URL).rstrip("/")
        self.timeout = timeout

    def _post_pdf(self, endpoint: str, payload: Dict[str, Any]) -> bytes:
        response = requests.post(f"{self.base_url}{endpoint}", json=payload, timeout=self.timeout)
        # Success is raw PDF; anything else is the JSON error envelope
        if response.status_code == 200 and response.headers.get("content-type", "").startswith("application/pdf"):
            return response.content
        try:
            body = response.json()
        except ValueError:
            body = {"error": response.text or f"HTTP {response.status_code}"}
        raise CompileFailed(response.status_code, body)

    def compile(self, latex: str) -> bytes:
        return self._post_pdf("/latex/compile", {"latex": latex})

    def compile_project(self, files: List[Dict[str, Any]], main_file: str) -> bytes:
        return self._post_pdf("/latex/compile-project", {"files": files, "main_file": main_file})

    def get(self, endpoint: str) -> dict:
        response = requests.get(f"{self.base_url}{endpoint}", timeout=self.timeout)
        response.raise_for_status()
        return response.json()


def collect_project_files(root: Path) -> List[Dict[str, Any]]:
    """Read a project directory into the API's file list (binary files base64 encoded)."""
    files = []
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        relative = path.relative_to(root).as_posix()
        if path.suffix.lower() in TEXT_SUFFIXES:
            files.append({"path": relative, "content": path.read_text(encoding="utf-8")})
        else:
            encoded = base64.b64encode(path.read_bytes()).decode("ascii")
            files.append({"path": relative, "content": encoded, "is_binary": True})
    return files


def report_failure(exc: CompileFailed, show_log_lines: int):
    print_error(f"{exc} (HTTP {exc.status_code}, code={exc.code or 'n/a'})")
    if exc.log:
        tail = "\n".join(exc.log.splitlines()[-show_log_lines:])
        console.print(Panel(Syntax(tail, "text", word_wrap=True), title="compiler log (tail)"))


def write_pdf(pdf: bytes, output: Path):
    output.write_bytes(pdf)
    print_success(f"Wrote {output} ({len(pdf)} bytes)")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="BetterNotes LaTeX CLI - compile LaTeX through the BetterNotes API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--api-url", help=f"API base URL (default: $BETTERNOTES_API_URL or {DEFAULT_API_URL})")
    parser.add_argument("--log-lines", type=int, default=40, help="Log lines shown on failure (default: 40)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    compile_parser = subparsers.add_parser("compile", help="Compile a single .tex file")
    compile_parser.add_argument("file", help="LaTeX file")
    compile_parser.add_argument("-o", "--output", help="Output PDF path (default: alongside input)")

    project_parser = subparsers.add_parser("project", help="Compile a multi-file project directory")
    project_parser.add_argument("directory", help="Project root")
    project_parser.add_argument("--main", default="main.tex", help="Main file relative to the root")
    project_parser.add_argument("-o", "--output", help="Output PDF path")

    subparsers.add_parser("health", help="Show service and toolchain status")
    subparsers.add_parser("templates", help="List available templates")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    client = BetterNotesClient(args.api_url)

    try:
        if args.command == "compile":
            source = Path(args.file)
            pdf = client.compile(source.read_text(encoding="utf-8"))
            write_pdf(pdf, Path(args.output) if args.output else source.with_suffix(".pdf"))
        elif args.command == "project":
            root = Path(args.directory)
            pdf = client.compile_project(collect_project_files(root), args.main)
            default_output = root / Path(args.main).with_suffix(".pdf").name
            write_pdf(pdf, Path(args.output) if args.output else default_output)
        elif args.command == "health":
            console.print_json(json.dumps(client.get("/health")))
        elif args.command == "templates":
            for template_id in client.get("/templates").get("templates", []):
                console.print(template_id)
    except CompileFailed as exc:
        report_failure(exc, args.log_lines)
        sys.exit(2)
    except ConnectionError:
        print_error(f"Cannot connect to {client.base_url}")
        sys.exit(1)
    except Timeout:
        print_error("Request timed out")
        sys.exit(1)
    except requests.HTTPError as exc:
        print_error(f"API error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
