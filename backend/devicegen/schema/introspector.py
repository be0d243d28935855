"""Schema introspection: derive a StateDefinition from an external Python class.

The state classes live in the device service's code base, so they are read
by a short-lived Python subprocess (AST first, ``__annotations__`` as a
fallback) that prints the fields as JSON. Any failure yields the one-field
fallback definition plus the reason; ``introspect`` never raises.

Schema references:
    ``package.module:ClassName``  imported as a module (15s timeout)
    ``path/to/file.py:ClassName`` parsed from the file (10s timeout)
    ``package.module.ClassName``  same as the first form

Usage:
    result = await SchemaIntrospector().introspect("wb_mqtt_bridge.domain.lg:LgTvState")
    if not result.success:
        logger.warning("degraded: %s", result.error)
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, NamedTuple, Optional, Protocol

from .. import settings
from ..config import PYTHON_BIN
from ..structure import StateDefinition, StateField

logger = logging.getLogger(__name__)

BASE_STATE = "BaseDeviceState"


# ---------------------------------------------------------------------------
# Type vocabulary
# ---------------------------------------------------------------------------

# closed vocabulary → TypeScript rendering
TEXT = "string"
NUMBER = "number"
BOOLEAN = "boolean"
LIST = "any[]"
MAP = "Record<string, any>"
ANY = "any"

_PRIMITIVES: Dict[str, str] = {
    "str": TEXT,
    "int": NUMBER,
    "float": NUMBER,
    "bool": BOOLEAN,
    "list": LIST,
    "List": LIST,
    "Sequence": LIST,
    "tuple": LIST,
    "Tuple": LIST,
    "set": LIST,
    "Set": LIST,
    "dict": MAP,
    "Dict": MAP,
    "Mapping": MAP,
    "Any": ANY,
}

_GENERIC_RE = re.compile(r"^(?:typing\.)?(\w+)\[(.*)\]$")


def _split_args(args: str) -> List[str]:
    """Split ``A, Dict[B, C]`` on top-level commas."""
    parts: List[str] = []
    depth = 0
    current = ""
    for ch in args:
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append(current.strip())
            current = ""
        else:
            current += ch
    if current.strip():
        parts.append(current.strip())
    return parts


def _nullable(ts_type: str) -> str:
    if ts_type == ANY or ts_type.endswith("| null"):
        return ts_type
    return f"{ts_type} | null"


def map_python_type(annotation: str) -> str:
    """Map a Python annotation onto the TypeScript type vocabulary.

    ``str``→string, ``int``/``float``→number, ``bool``→boolean,
    list-likes→array, dict-likes→Record, ``Optional[X]``/``X | None``→
    ``X | null``; anything else → ``any``.
    """
    text = (annotation or "").strip().strip("'\"")
    if not text:
        return ANY

    if "|" in text and "[" not in text.split("|")[0]:
        members = [m.strip() for m in text.split("|")]
        non_null = [m for m in members if m not in ("None", "NoneType")]
        if len(non_null) == 1 and len(members) > 1:
            return _nullable(map_python_type(non_null[0]))
        return ANY

    match = _GENERIC_RE.match(text)
    if match:
        outer, inner = match.group(1), _split_args(match.group(2))
        if outer == "Optional" and len(inner) == 1:
            return _nullable(map_python_type(inner[0]))
        if outer == "Union":
            non_null = [m for m in inner if m not in ("None", "NoneType")]
            if len(non_null) == 1 and len(inner) > 1:
                return _nullable(map_python_type(non_null[0]))
            return ANY
        base = _PRIMITIVES.get(outer)
        if base == LIST and len(inner) == 1:
            element = map_python_type(inner[0])
            if element in (TEXT, NUMBER, BOOLEAN):
                return f"{element}[]"
        return base or ANY

    return _PRIMITIVES.get(text.replace("typing.", ""), ANY)


# ---------------------------------------------------------------------------
# Schema references
# ---------------------------------------------------------------------------

class SchemaRef(NamedTuple):
    kind: str  # module | file
    target: str
    class_name: str

    @property
    def timeout(self) -> float:
        if self.kind == "file":
            return settings.INTROSPECT_FILE_TIMEOUT
        return settings.INTROSPECT_MODULE_TIMEOUT


def parse_schema_ref(ref: str) -> SchemaRef:
    """Parse ``target:Class`` or ``dotted.module.Class``.

    Raises:
        ValueError: the reference names no class
    """
    ref = (ref or "").strip()
    if ":" in ref:
        target, class_name = ref.rsplit(":", 1)
    elif "." in ref and not ref.endswith(".py"):
        target, class_name = ref.rsplit(".", 1)
    else:
        raise ValueError(f"Invalid schema reference '{ref}': expected 'module:Class' or 'file.py:Class'")
    if not target or not class_name.isidentifier():
        raise ValueError(f"Invalid schema reference '{ref}'")
    kind = "file" if target.endswith(".py") or "/" in target else "module"
    return SchemaRef(kind, target, class_name)


def interface_name_for(class_name: str) -> str:
    return class_name if class_name.endswith("State") else f"{class_name}State"


def fallback_definition(class_name: str) -> StateDefinition:
    """Minimal definition used whenever introspection fails."""
    return StateDefinition(
        interface_name=interface_name_for(class_name),
        fields=[StateField(
            name=settings.INTROSPECT_FALLBACK_FIELD,
            type=TEXT,
            optional=False,
            description="Current device status",
            default_value="unknown",
        )],
        imports=[BASE_STATE],
        extends=[BASE_STATE],
    )


def definition_from_fields(class_name: str, fields: List[Dict[str, Any]]) -> StateDefinition:
    """Build a StateDefinition from the subprocess field listing."""
    state_fields = []
    for raw in fields:
        ts_type = map_python_type(str(raw.get("type", "")))
        has_default = bool(raw.get("has_default"))
        state_fields.append(StateField(
            name=str(raw["name"]),
            type=ts_type,
            optional=has_default or ts_type.endswith("| null"),
            description=f"State field for {raw['name']}",
            default_value=raw.get("default"),
        ))
    return StateDefinition(
        interface_name=interface_name_for(class_name),
        fields=state_fields,
        imports=[BASE_STATE],
        extends=[BASE_STATE],
    )


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------

class IntrospectionBackend(Protocol):
    """Reads the raw fields of a state class; raises on any failure."""

    async def read_fields(self, ref: SchemaRef) -> List[Dict[str, Any]]: ...


# Run with ``python -c SCRIPT <module|file> <target> <ClassName>``; prints
# {"fields": [{name, type, has_default, default}, ...]} on stdout.
INTROSPECT_SCRIPT = r'''
import ast, importlib, inspect, json, sys

def fields_from_source(source, class_name):
    tree = ast.parse(source)
    for node in ast.walk(tree):
        if isinstance(node, ast.ClassDef) and node.name == class_name:
            fields = []
            for item in node.body:
                if not (isinstance(item, ast.AnnAssign) and isinstance(item.target, ast.Name)):
                    continue
                default = None
                if item.value is not None:
                    try:
                        default = ast.literal_eval(item.value)
                    except (ValueError, SyntaxError):
                        default = None
                fields.append({
                    "name": item.target.id,
                    "type": ast.unparse(item.annotation),
                    "has_default": item.value is not None,
                    "default": default,
                })
            return fields
    raise LookupError("class %s not found" % class_name)

def from_annotations(cls):
    return [
        {"name": k, "type": getattr(v, "__name__", str(v)), "has_default": hasattr(cls, k), "default": None}
        for k, v in getattr(cls, "__annotations__", {}).items()
    ]

def main(kind, target, class_name):
    if kind == "file":
        with open(target, encoding="utf-8") as fh:
            return fields_from_source(fh.read(), class_name)
    cls = getattr(importlib.import_module(target), class_name)
    try:
        return fields_from_source(inspect.getsource(cls), class_name)
    except (OSError, TypeError):
        return from_annotations(cls)

print(json.dumps({"fields": main(*sys.argv[1:4])}, default=str))
'''


class SubprocessIntrospectionBackend:
    """Runs INTROSPECT_SCRIPT in a separate interpreter with a hard timeout."""

    def __init__(self, python_bin: str = PYTHON_BIN, cwd: Optional[str] = None):
        self.python_bin = python_bin
        self.cwd = cwd

    async def read_fields(self, ref: SchemaRef) -> List[Dict[str, Any]]:
        proc = await asyncio.create_subprocess_exec(
            self.python_bin, "-c", INTROSPECT_SCRIPT, ref.kind, ref.target, ref.class_name,
            cwd=self.cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=ref.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.communicate()
            raise TimeoutError(f"Python introspection timed out ({ref.timeout}s) for {ref.class_name}")

        if proc.returncode != 0:
            err = stderr.decode("utf-8", errors="replace").strip()
            raise RuntimeError(f"Python introspection failed (exit {proc.returncode}): {err[-500:]}")

        try:
            payload = json.loads(stdout.decode("utf-8", errors="replace"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Malformed introspection output: {e}") from e
        fields = payload.get("fields") if isinstance(payload, dict) else None
        if not isinstance(fields, list):
            raise ValueError("Malformed introspection output: missing 'fields' list")
        return fields


# ---------------------------------------------------------------------------
# Introspector
# ---------------------------------------------------------------------------

@dataclass
class IntrospectionResult:
    """Definition plus whether it came from the real schema."""
    definition: StateDefinition
    success: bool
    error: Optional[str] = None
    class_name: str = ""


class SchemaIntrospector:
    """Async boundary around a pluggable IntrospectionBackend."""

    def __init__(self, backend: Optional[IntrospectionBackend] = None):
        self.backend = backend or SubprocessIntrospectionBackend()

    async def introspect(self, schema_ref: str) -> IntrospectionResult:
        try:
            ref = parse_schema_ref(schema_ref)
        except ValueError as e:
            logger.warning("Schema introspection skipped: %s", e)
            name = re.sub(r"\W", "", (schema_ref or "").rsplit(":", 1)[-1].rsplit(".", 1)[-1]) or "Device"
            return IntrospectionResult(fallback_definition(name), False, str(e), name)

        try:
            fields = await self.backend.read_fields(ref)
            if not fields:
                raise ValueError(f"No annotated fields found on {ref.class_name}")
            definition = definition_from_fields(ref.class_name, fields)
        except Exception as e:  # any backend failure degrades to the fallback
            logger.warning(
                "Schema introspection failed for %s, using fallback: %s", schema_ref, e,
            )
            return IntrospectionResult(fallback_definition(ref.class_name), False, str(e), ref.class_name)

        logger.info("Introspected %s: %d field(s)", schema_ref, len(definition.fields))
        return IntrospectionResult(definition, True, None, ref.class_name)
