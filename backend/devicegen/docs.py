"""Markdown documentation for generated device pages."""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import List, Sequence, Union

from .exceptions import OutputWriteError
from .structure import RemoteDeviceStructure, zone_actions
from .templates import component_name
from .templates.state_hook_template import hook_name

logger = logging.getLogger(__name__)

SYSTEM_DOC_NAME = "generated-device-system.md"


def render_device_doc(structure: RemoteDeviceStructure) -> str:
    page = component_name(structure.device_id)
    route = f"/{'scenario' if structure.is_scenario else 'devices'}/{structure.device_id}"
    lines = [
        f"# {structure.device_name}",
        "",
        f"- **Device ID:** `{structure.device_id}`",
        f"- **Device class:** `{structure.device_class}`",
        f"- **Component:** `{page}`",
        f"- **Route:** `{route}`",
        f"- **State interface:** `{structure.state_interface.interface_name}`",
        "",
        "## Zones",
        "",
    ]
    for zone in structure.remote_zones:
        status = "empty" if zone.is_empty else ("disabled" if not zone.enabled else "active")
        lines.append(f"### {zone.zone_name} (`{zone.zone_id.value}`, {status})")
        lines.append("")
        actions = zone_actions(zone)
        if not actions:
            lines.append("_No controls._")
        for action in actions:
            params = ", ".join(
                f"{p.name}: {p.type}" + (f" [{p.min}..{p.max}]" if p.type == "range" else "")
                for p in action.parameters
            )
            suffix = f" ({params})" if params else ""
            target = f" → `{action.location}`" if structure.is_scenario and action.location else ""
            lines.append(f"- `{action.action_name}`: {action.display_name}{suffix}{target}")
        lines.append("")

    lines += ["## State", ""]
    for f in structure.state_interface.fields:
        lines.append(f"- `{f.name}{'?' if f.optional else ''}: {f.type}` {f.description}".rstrip())
    if structure.special_cases:
        lines += ["", "## Special cases", ""]
        for case in structure.special_cases:
            lines.append(f"- `{case.case_type}`")
    lines += [
        "",
        "## Usage",
        "",
        "```tsx",
        f"import {page} from './pages/devices/{structure.device_id}.gen';",
        f"import {{ {hook_name(structure.state_interface)} }} from './pages/devices/{structure.device_id}.hooks';",
        "",
        f"<Route path=\"{route}\" element={{<{page} />}} />",
        "```",
        "",
    ]
    return "\n".join(lines)


def render_system_doc(structures: Sequence[RemoteDeviceStructure]) -> str:
    structures = sorted(structures, key=lambda s: s.device_id)
    by_class = Counter(s.device_class for s in structures)
    total_actions = sum(len(s.all_actions()) for s in structures)
    lines = [
        "# Generated Device System",
        "",
        f"- **Devices:** {len(structures)}",
        f"- **Device classes:** {len(by_class)}",
        f"- **Rendered actions:** {total_actions}",
        "",
        "## Families",
        "",
        "| Device class | Devices |",
        "|---|---|",
    ]
    lines += [f"| {cls} | {count} |" for cls, count in sorted(by_class.items())]
    lines += ["", "## Devices", "", "| Device | Class | Zones | Actions |", "|---|---|---|---|"]
    for s in structures:
        zones = ", ".join(z.zone_id.value for z in s.remote_zones if not z.is_empty)
        lines.append(f"| [{s.device_name}](devices/{s.device_id}.md) | {s.device_class} | {zones} | {len(s.all_actions())} |")
    lines.append("")
    return "\n".join(lines)


def write_docs(structures: Sequence[RemoteDeviceStructure], docs_dir: Union[str, Path]) -> List[Path]:
    """Write one page per device plus the system overview."""
    docs_dir = Path(docs_dir)
    written: List[Path] = []
    try:
        (docs_dir / "devices").mkdir(parents=True, exist_ok=True)
        for structure in structures:
            path = docs_dir / "devices" / f"{structure.device_id}.md"
            path.write_text(render_device_doc(structure), encoding="utf-8")
            written.append(path)
        system = docs_dir / SYSTEM_DOC_NAME
        system.write_text(render_system_doc(structures), encoding="utf-8")
        written.append(system)
    except OSError as e:
        raise OutputWriteError(f"Failed to write documentation under {docs_dir}: {e}") from e
    logger.info("Documentation: %d file(s) written to %s", len(written), docs_dir)
    return written
