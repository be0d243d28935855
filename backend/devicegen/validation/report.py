"""Validation report shared by the source and component validators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class ValidationReport:
    """``{success, errors, warnings}`` over one or more files.

    Errors and warnings are flat dicts (``file``, ``rule`` / ``code``,
    ``detail``, optional ``line`` / ``column``) so they serialize as-is.
    """
    errors: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[Dict[str, Any]] = field(default_factory=list)
    files: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def extend(self, other: "ValidationReport") -> None:
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.files.extend(f for f in other.files if f not in self.files)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "files": list(self.files),
        }
