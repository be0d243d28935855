"""State schema introspection."""

from .introspector import (
    IntrospectionBackend,
    IntrospectionResult,
    SchemaIntrospector,
    SchemaRef,
    SubprocessIntrospectionBackend,
    fallback_definition,
    map_python_type,
    parse_schema_ref,
)

__all__ = [
    "IntrospectionBackend",
    "IntrospectionResult",
    "SchemaIntrospector",
    "SchemaRef",
    "SubprocessIntrospectionBackend",
    "fallback_definition",
    "map_python_type",
    "parse_schema_ref",
]
