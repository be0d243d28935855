"""Structural checks on generated components, no compiler needed.

Fast pre-check: the file declares and default-exports something that
renders, carries the imports every device page needs, and every relative
import resolves on disk.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from .report import ValidationReport
from .source_validator import SourceValidator, collect_generated_files

logger = logging.getLogger(__name__)

REQUIRED_IMPORTS = ("React", "useLogStore", "useExecuteDeviceAction", "Button")

# (substring alternatives, rule, detail): missing → warning
_RECOMMENDED_ELEMENTS = (
    (("handleAction",), "missing_action_handler", "No handleAction function"),
    (("<div",), "missing_container", "No <div> container"),
    (("<h1", "<h2"), "missing_heading", "No <h1>/<h2> heading"),
    (("<Button",), "missing_buttons", "No <Button> elements"),
    (("onClick",), "missing_click_handlers", "No onClick handlers"),
)

IMPORT_RE = re.compile(r"import\s+(?:.*?\s+from\s+)?['\"]([^'\"]+)['\"]")
DECLARATION_RE = re.compile(r"\bfunction\s+\w+\s*\(|\bconst\s+\w+\s*=")

# provided by the host application
ASSUMED_PREFIXES = ("react", "@mui/", "../../stores", "../../hooks", "../../components")
RESOLVE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx")


def extract_imports(source: str) -> List[str]:
    return IMPORT_RE.findall(source)


def can_resolve_import(import_path: str, from_file: Path) -> bool:
    if import_path.startswith(ASSUMED_PREFIXES):
        return True
    if not import_path.startswith(("./", "../")):
        return True  # package import
    base = (from_file.parent / import_path).resolve()
    if base.is_file():
        return True
    for ext in RESOLVE_EXTENSIONS:
        if base.with_name(base.name + ext).is_file():
            return True
        if (base / f"index{ext}").is_file():
            return True
    return False


def validate_component_source(source: str, file_path: str = "") -> ValidationReport:
    """Structural rules over component source text."""
    report = ValidationReport(files=[file_path] if file_path else [])

    def error(rule: str, detail: str) -> None:
        report.errors.append({"file": file_path, "rule": rule, "detail": detail})

    if not DECLARATION_RE.search(source):
        error("missing_component", "No function or const component declaration")
    if "return (" not in source and "return <" not in source:
        error("missing_render", "Component does not return JSX")
    if "export default" not in source:
        error("missing_default_export", "No default export")

    for name in REQUIRED_IMPORTS:
        if not re.search(rf"import[^;]*\b{name}\b[^;]*from", source):
            error("missing_required_import", f"Missing required import: {name}")

    for alternatives, rule, detail in _RECOMMENDED_ELEMENTS:
        if not any(a in source for a in alternatives):
            report.warnings.append({"file": file_path, "rule": rule, "detail": detail})
    return report


class ComponentValidator:
    """Structural + import checks over one file or a directory of pages."""

    def validate(self, target: Union[str, Path]) -> ValidationReport:
        report = ValidationReport()
        for path in collect_generated_files(target):
            report.extend(self.validate_file(path))
        return report

    def validate_file(self, path: Union[str, Path]) -> ValidationReport:
        path = Path(path)
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as e:
            return ValidationReport(
                errors=[{"file": str(path), "rule": "unreadable", "detail": str(e)}],
                files=[str(path)],
            )
        report = validate_component_source(source, str(path))
        for import_path in extract_imports(source):
            if not can_resolve_import(import_path, path):
                report.errors.append({
                    "file": str(path),
                    "rule": "unresolved_import",
                    "detail": f"Cannot resolve import '{import_path}'",
                })
        return report


def validate_component_actions(path: Union[str, Path], action_names: Iterable[str]) -> ValidationReport:
    """Check that every expected action name appears quoted in the component."""
    path = Path(path)
    source = path.read_text(encoding="utf-8")
    report = ValidationReport(files=[str(path)])
    for name in action_names:
        if f"'{name}'" not in source and f'"{name}"' not in source:
            report.errors.append({
                "file": str(path),
                "rule": "missing_action",
                "detail": f"Action '{name}' is not wired in the component",
            })
    return report


async def run_validation_suite(
    output_dir: Union[str, Path],
    source_validator: Optional[SourceValidator] = None,
    component_validator: Optional[ComponentValidator] = None,
) -> Dict[str, Any]:
    """Component checks then compiler checks over all generated pages."""
    component_report = (component_validator or ComponentValidator()).validate(output_dir)
    source_report = await (source_validator or SourceValidator()).validate(output_dir)
    success = component_report.success and source_report.success
    logger.info(
        "Validation suite: %s (component errors=%d, compiler errors=%d)",
        "passed" if success else "failed",
        len(component_report.errors), len(source_report.errors),
    )
    return {
        "success": success,
        "component": component_report.to_dict(),
        "source": source_report.to_dict(),
    }
