"""Post-generation validation (advisory: never blocks writing files)."""

from .component_validator import (
    ComponentValidator,
    run_validation_suite,
    validate_component_actions,
    validate_component_source,
)
from .report import ValidationReport
from .source_validator import SourceValidator, parse_diagnostics

__all__ = [
    "ComponentValidator",
    "SourceValidator",
    "ValidationReport",
    "parse_diagnostics",
    "run_validation_suite",
    "validate_component_actions",
    "validate_component_source",
]
