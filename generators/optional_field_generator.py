"""
Optional-field path extraction for request types.

Detection is keyed by type chain ('Outer.Inner.field', the lexical nesting of the
declaring message) while the reported paths are occurrence paths relative to the
request root ('address.country'). A type embedded in several places is therefore
reported once per embedding.

Recursion follows exactly the fields the template generator expands, so every
reported path names a key present in the template.
"""
from typing import List, Set

from generators.generator_utils import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_NODES,
    RecursionGuard,
    ValueKind,
    classify_field,
    join_path,
)
from proto_model import ProtoMessage, ResolvedSchema


class OptionalFieldGenerator:
    def __init__(self, schema: ResolvedSchema, explicit_paths: Set[str], max_depth: int = DEFAULT_MAX_DEPTH,
                 max_nodes: int = DEFAULT_MAX_NODES):
        self.schema = schema
        self.explicit_paths = explicit_paths
        self.max_depth = max_depth
        self.max_nodes = max_nodes

    def generate(self, message: ProtoMessage) -> List[str]:
        guard = RecursionGuard(self.max_depth, self.max_nodes)
        optional_fields = []
        self._collect(message, '', 0, guard, optional_fields)
        return optional_fields

    def _collect(self, message: ProtoMessage, prefix: str, depth: int, guard: RecursionGuard, out: List[str]) -> None:
        type_chain = message.type_chain
        for field in message.fields:
            field_path = join_path(prefix, field.name)
            if f"{type_chain}.{field.name}" in self.explicit_paths:
                out.append(field_path)
            kind, detail = classify_field(self.schema, message, field)
            if kind == ValueKind.MESSAGE and guard.enter(depth):
                self._collect(detail, field_path, depth + 1, guard, out)


def extract_optional_fields(schema: ResolvedSchema, message: ProtoMessage, explicit_paths: Set[str],
                            max_depth: int = DEFAULT_MAX_DEPTH, max_nodes: int = DEFAULT_MAX_NODES) -> List[str]:
    return OptionalFieldGenerator(schema, explicit_paths, max_depth, max_nodes).generate(message)
