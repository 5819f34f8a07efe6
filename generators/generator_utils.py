"""
Shared utilities for the request generators (templates and optional-field paths).
Handles scalar defaults, field type resolution and the recursion guard, so both
generators make identical descend decisions for the same input.
"""
from enum import Enum
from typing import Any, Optional, Tuple

from proto_model import MAX_WALK_DEPTH, NodeKind, ProtoField, ProtoMessage, ProtoNode, ResolvedSchema, WELL_KNOWN_TIMESTAMP

DEFAULT_MAX_DEPTH = 32
# Larger depths are clamped; the generators recurse once per nesting level
MAX_DEPTH_LIMIT = MAX_WALK_DEPTH
# Message expansions per generate call; keeps branching self-references from exploding
DEFAULT_MAX_NODES = 10000

# --- Scalar defaults ---
SCALAR_DEFAULTS = {
    'string': '',
    'bytes': '',
    'bool': False,
    'int32': 0,
    'int64': 0,
    'uint32': 0,
    'uint64': 0,
    'sint32': 0,
    'sint64': 0,
    'fixed32': 0,
    'fixed64': 0,
    'sfixed32': 0,
    'sfixed64': 0,
    'float': 0.0,
    'double': 0.0,
}

UNRESOLVED_DEFAULT = ''


class ValueKind(Enum):
    SCALAR = "scalar"
    REPEATED = "repeated"
    MAP = "map"
    TIMESTAMP = "timestamp"
    MESSAGE = "message"
    ENUM = "enum"
    UNRESOLVED = "unresolved"


def is_timestamp_name(type_name: str) -> bool:
    return type_name.lstrip('.') == WELL_KNOWN_TIMESTAMP


def resolve_field_type(schema: ResolvedSchema, message: ProtoMessage, field: ProtoField) -> Optional[ProtoNode]:
    """
    Resolve a non-scalar field type. Order matters: nested-in-message shadows everything,
    then message lookup, then message-or-enum lookup.
    """
    type_name = field.type_name
    if not type_name.startswith('.'):
        nested = schema.lookup_nested(message, type_name)
        if nested is not None and nested.kind in (NodeKind.MESSAGE, NodeKind.ENUM):
            return nested
    found = schema.lookup_message(type_name, scope=message)
    if found is not None:
        return found
    return schema.lookup_message_or_enum(type_name, scope=message)


def classify_field(schema: ResolvedSchema, message: ProtoMessage, field: ProtoField) -> Tuple[ValueKind, Any]:
    """
    Returns (kind, detail): the scalar default, the resolved message/enum node, or None.
    Repeated and map cardinality override the element type.
    """
    if field.is_map:
        return ValueKind.MAP, None
    if field.is_repeated:
        return ValueKind.REPEATED, None
    if field.type_name in SCALAR_DEFAULTS:
        return ValueKind.SCALAR, SCALAR_DEFAULTS[field.type_name]
    if is_timestamp_name(field.type_name):
        return ValueKind.TIMESTAMP, None
    node = resolve_field_type(schema, message, field)
    if node is None:
        return ValueKind.UNRESOLVED, None
    if node.kind == NodeKind.ENUM:
        return ValueKind.ENUM, node
    if node.full_name == WELL_KNOWN_TIMESTAMP:
        return ValueKind.TIMESTAMP, None
    return ValueKind.MESSAGE, node


class RecursionGuard:
    """Per-call budget for descending into message-typed fields."""

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH, max_nodes: int = DEFAULT_MAX_NODES):
        self.max_depth = min(max_depth, MAX_DEPTH_LIMIT)
        self.max_nodes = max_nodes
        self.expanded = 0

    def enter(self, depth: int) -> bool:
        """True if a message field at `depth` may be expanded into depth + 1."""
        if depth + 1 > self.max_depth or self.expanded >= self.max_nodes:
            return False
        self.expanded += 1
        return True


def join_path(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name
