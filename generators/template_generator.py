"""
JSON request template generator.
Produces a default-valued, JSON-compatible mapping for a resolved message type.
"""
from typing import Any, Dict

from generators.generator_utils import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_NODES,
    UNRESOLVED_DEFAULT,
    RecursionGuard,
    ValueKind,
    classify_field,
)
from proto_model import ProtoField, ProtoMessage, ResolvedSchema


class TemplateGenerator:
    """
    Never raises for unknown types: anything that cannot be resolved becomes ''.
    Message fields past the recursion guard are truncated to '' as well.
    """

    def __init__(self, schema: ResolvedSchema, max_depth: int = DEFAULT_MAX_DEPTH, max_nodes: int = DEFAULT_MAX_NODES):
        self.schema = schema
        self.max_depth = max_depth
        self.max_nodes = max_nodes

    def generate(self, message: ProtoMessage) -> Dict[str, Any]:
        guard = RecursionGuard(self.max_depth, self.max_nodes)
        return self._message_template(message, 0, guard)

    def _message_template(self, message: ProtoMessage, depth: int, guard: RecursionGuard) -> Dict[str, Any]:
        template = {}
        for field in message.fields:
            template[field.name] = self._field_value(message, field, depth, guard)
        return template

    def _field_value(self, message: ProtoMessage, field: ProtoField, depth: int, guard: RecursionGuard) -> Any:
        kind, detail = classify_field(self.schema, message, field)
        if kind == ValueKind.REPEATED:
            return []
        if kind == ValueKind.MAP:
            return {}
        if kind == ValueKind.SCALAR:
            return detail
        if kind == ValueKind.ENUM:
            default = detail.default_value_name
            return default if default is not None else UNRESOLVED_DEFAULT
        if kind == ValueKind.MESSAGE:
            if not guard.enter(depth):
                return UNRESOLVED_DEFAULT
            return self._message_template(detail, depth + 1, guard)
        # TIMESTAMP and UNRESOLVED
        return UNRESOLVED_DEFAULT


def generate_template(schema: ResolvedSchema, message: ProtoMessage, max_depth: int = DEFAULT_MAX_DEPTH,
                      max_nodes: int = DEFAULT_MAX_NODES) -> Dict[str, Any]:
    return TemplateGenerator(schema, max_depth, max_nodes).generate(message)
