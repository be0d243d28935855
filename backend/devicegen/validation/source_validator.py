"""Compiler-backed validation of generated sources.

Each generated file is compiled on its own (``tsc --noEmit``) and only
diagnostics pointing at that file are kept. Diagnostics from
``node_modules`` and from environment globals (``import.meta.env``) are
dropped; they say nothing about whether generation was correct.
"""

from __future__ import annotations

import asyncio
import logging
import re
import shlex
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from .. import settings
from ..config import PROJECT_ROOT, TSC_COMMAND
from .report import ValidationReport

logger = logging.getLogger(__name__)

GENERATED_PATTERN = "*.gen.tsx"

TSC_ARGS = (
    "--noEmit",
    "--pretty", "false",
    "--jsx", "react-jsx",
    "--target", "ES2020",
    "--module", "ESNext",
    "--moduleResolution", "node",
    "--esModuleInterop",
    "--skipLibCheck",
    "--strict",
)

# file(line,col): error TS2304: Cannot find name 'x'.
DIAGNOSTIC_RE = re.compile(
    r"^(?P<file>.+?)\((?P<line>\d+),(?P<column>\d+)\): "
    r"(?P<severity>error|warning|message) TS(?P<code>\d+): (?P<message>.*)$"
)

IGNORED_MESSAGES = (
    "Property 'env' does not exist on type 'ImportMeta'",
    "The 'import.meta' meta-property is only allowed",
)


def parse_diagnostics(output: str) -> List[Dict[str, Any]]:
    """Parse compiler output lines into diagnostic dicts."""
    diagnostics = []
    for line in output.splitlines():
        match = DIAGNOSTIC_RE.match(line.strip())
        if not match:
            continue
        diagnostics.append({
            "file": match.group("file"),
            "line": int(match.group("line")),
            "column": int(match.group("column")),
            "severity": match.group("severity"),
            "code": int(match.group("code")),
            "detail": match.group("message"),
        })
    return diagnostics


def is_relevant(diagnostic: Dict[str, Any], generated: Sequence[Path], root: Path) -> bool:
    """True when a diagnostic points at one of the generated files."""
    file_name = diagnostic["file"].replace("\\", "/")
    if "node_modules" in file_name:
        return False
    if any(msg in diagnostic["detail"] for msg in IGNORED_MESSAGES):
        return False
    path = Path(file_name)
    if not path.is_absolute():
        path = root / path
    resolved = path.resolve()
    return any(resolved == g.resolve() for g in generated)


def collect_generated_files(target: Union[str, Path], pattern: str = GENERATED_PATTERN) -> List[Path]:
    """A single file, or every generated file under a directory, sorted."""
    target = Path(target)
    if target.is_dir():
        return sorted(target.rglob(pattern))
    return [target] if target.exists() else []


class SourceValidator:
    """Runs the TypeScript compiler over generated files."""

    def __init__(
        self,
        tsc_command: str = TSC_COMMAND,
        project_root: Union[str, Path] = PROJECT_ROOT,
        timeout: Optional[float] = None,
    ):
        self.tsc_command = shlex.split(tsc_command)
        self.project_root = Path(project_root)
        self.timeout = timeout or settings.TSC_TIMEOUT

    async def validate(self, target: Union[str, Path]) -> ValidationReport:
        report = ValidationReport()
        files = collect_generated_files(target)
        if not files:
            report.warnings.append({
                "file": str(target),
                "rule": "no_generated_files",
                "detail": f"No {GENERATED_PATTERN} files found",
            })
            return report
        for path in files:
            report.extend(await self.validate_file(path))
        if report.errors:
            logger.warning("SourceValidator: %d error(s) in %d file(s)", len(report.errors), len(files))
        return report

    async def validate_file(self, path: Path) -> ValidationReport:
        report = ValidationReport(files=[str(path)])
        cmd = [*self.tsc_command, *TSC_ARGS, str(path)]
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(self.project_root),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            report.errors.append({
                "file": str(path),
                "rule": "compiler_missing",
                "detail": f"TypeScript compiler not found: {' '.join(self.tsc_command)}",
            })
            return report

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.communicate()
            report.errors.append({
                "file": str(path),
                "rule": "compiler_timeout",
                "detail": f"TypeScript compiler timed out ({self.timeout}s)",
            })
            return report

        output = stdout.decode("utf-8", errors="replace") + stderr.decode("utf-8", errors="replace")
        for diagnostic in parse_diagnostics(output):
            if not is_relevant(diagnostic, [path], self.project_root):
                continue
            if diagnostic["severity"] == "error":
                report.errors.append(diagnostic)
            else:
                report.warnings.append(diagnostic)
        logger.debug("SourceValidator: %s → %d error(s)", path.name, len(report.errors))
        return report
