"""
proto_model.py
Linked, read-only representation of one or more parsed .proto files.
Every node carries an explicit NodeKind tag; consumers dispatch on the tag.
"""
from enum import Enum
from typing import Dict, Iterator, List, Optional, Set

WELL_KNOWN_TIMESTAMP = "google.protobuf.Timestamp"

# Upper bound for namespace walks and name lookups
MAX_WALK_DEPTH = 256


class NodeKind(Enum):
    NAMESPACE = "namespace"
    MESSAGE = "message"
    ENUM = "enum"
    SERVICE = "service"


class FieldLabel(Enum):
    OPTIONAL = "optional"
    REQUIRED = "required"
    REPEATED = "repeated"


SCOPE_KINDS = (NodeKind.NAMESPACE, NodeKind.MESSAGE)


class ProtoNode:
    kind: NodeKind = None

    def __init__(self, name: str, parent: Optional['ProtoNode'] = None, file: Optional[str] = None, line: Optional[int] = None):
        self.name = name
        self.parent = parent
        self.file = file
        self.line = line

    @property
    def full_name(self) -> str:
        parts = []
        node = self
        while node is not None and node.name:
            parts.append(node.name)
            node = node.parent
        return '.'.join(reversed(parts))

    @property
    def nested(self) -> Dict[str, 'ProtoNode']:
        return {}

    def __repr__(self):
        return f"{type(self).__name__}({self.full_name!r})"


class ProtoField:
    def __init__(
        self,
        name: str,
        type_name: str,
        number: int,
        label: Optional[FieldLabel] = None,
        key_type: Optional[str] = None,  # set for map<K, V> fields, type_name holds V
        oneof: Optional[str] = None,
        file: Optional[str] = None,
        line: Optional[int] = None,
    ):
        self.name = name
        self.type_name = type_name
        self.number = number
        self.label = label
        self.key_type = key_type
        self.oneof = oneof
        self.file = file
        self.line = line

    @property
    def is_repeated(self) -> bool:
        return self.label == FieldLabel.REPEATED

    @property
    def is_map(self) -> bool:
        return self.key_type is not None

    @property
    def is_explicit_optional(self) -> bool:
        return self.label == FieldLabel.OPTIONAL

    def __repr__(self):
        return f"ProtoField(name={self.name!r}, type_name={self.type_name!r}, label={self.label})"


class ProtoEnumValue:
    def __init__(self, name: str, number: int, line: Optional[int] = None):
        self.name = name
        self.number = number
        self.line = line


class ProtoNamespace(ProtoNode):
    kind = NodeKind.NAMESPACE

    def __init__(self, name: str, parent: Optional[ProtoNode] = None, file: Optional[str] = None, line: Optional[int] = None):
        super().__init__(name, parent, file, line)
        self._nested: Dict[str, ProtoNode] = {}

    @property
    def nested(self) -> Dict[str, ProtoNode]:
        return self._nested


class ProtoMessage(ProtoNode):
    kind = NodeKind.MESSAGE

    def __init__(self, name: str, parent: Optional[ProtoNode] = None, file: Optional[str] = None, line: Optional[int] = None):
        super().__init__(name, parent, file, line)
        self.fields: List[ProtoField] = []
        self._nested: Dict[str, ProtoNode] = {}

    @property
    def nested(self) -> Dict[str, ProtoNode]:
        return self._nested

    @property
    def type_chain(self) -> str:
        """Dotted chain of enclosing message names, package excluded (e.g. 'Outer.Inner')."""
        parts = []
        node = self
        while node is not None and node.kind == NodeKind.MESSAGE:
            parts.append(node.name)
            node = node.parent
        return '.'.join(reversed(parts))


class ProtoEnum(ProtoNode):
    kind = NodeKind.ENUM

    def __init__(self, name: str, parent: Optional[ProtoNode] = None, file: Optional[str] = None, line: Optional[int] = None):
        super().__init__(name, parent, file, line)
        self.values: List[ProtoEnumValue] = []

    @property
    def default_value_name(self) -> Optional[str]:
        # First declared value, not the numerically smallest
        return self.values[0].name if self.values else None


class ProtoMethod:
    def __init__(self, name: str, request_type: str, response_type: str,
                 request_stream: bool = False, response_stream: bool = False, line: Optional[int] = None):
        self.name = name
        self.request_type = request_type
        self.response_type = response_type
        self.request_stream = request_stream
        self.response_stream = response_stream
        self.line = line


class ProtoService(ProtoNode):
    kind = NodeKind.SERVICE

    def __init__(self, name: str, parent: Optional[ProtoNode] = None, file: Optional[str] = None, line: Optional[int] = None):
        super().__init__(name, parent, file, line)
        self.methods: Dict[str, ProtoMethod] = {}


class ProtoFileInfo:
    def __init__(self, name: str, package: Optional[str] = None, syntax: Optional[str] = None, imports: Optional[List[str]] = None):
        self.name = name
        self.package = package
        self.syntax = syntax
        self.imports = imports or []


class ResolvedSchema:
    """
    The linked output of one resolve call. Built once by SchemaBuilder and only read afterwards.
    """
    def __init__(self, root: ProtoNamespace, files: Optional[Dict[str, ProtoFileInfo]] = None):
        self.root = root
        self.files = files or {}

    # --- Lookup ---

    def lookup(self, name: str, kinds=None, scope: Optional[ProtoNode] = None) -> Optional[ProtoNode]:
        """
        Resolve a (possibly dotted) type name.
        Searches from scope outwards to the root; at each level the direct child is tried first,
        then every nested scope depth-first. A leading '.' makes the name absolute.
        """
        if not name:
            return None
        if name.startswith('.'):
            return self._lookup_from(self.root, name[1:].split('.'), kinds, True, 0)
        start = scope if scope is not None else self.root
        # Lookups start from a scope; enums and services have nothing nested
        while start.kind not in SCOPE_KINDS:
            start = start.parent
        return self._lookup_from(start, name.split('.'), kinds, False, 0)

    def _lookup_from(self, node: ProtoNode, parts: List[str], kinds, parent_checked: bool, depth: int) -> Optional[ProtoNode]:
        if depth > MAX_WALK_DEPTH:
            return None
        nested = node.nested
        found = nested.get(parts[0])
        if found is not None:
            if len(parts) == 1:
                if kinds is None or found.kind in kinds:
                    return found
            elif found.kind in SCOPE_KINDS:
                result = self._lookup_from(found, parts[1:], kinds, True, depth + 1)
                if result is not None:
                    return result
        else:
            for child in nested.values():
                if child.kind in SCOPE_KINDS:
                    result = self._lookup_from(child, parts, kinds, True, depth + 1)
                    if result is not None:
                        return result
        if node.parent is None or parent_checked:
            return None
        return self._lookup_from(node.parent, parts, kinds, False, depth + 1)

    def lookup_nested(self, message: ProtoMessage, name: str) -> Optional[ProtoNode]:
        """Resolve a name strictly inside message (no outward or global search)."""
        node = message
        for part in name.split('.'):
            if node.kind not in SCOPE_KINDS:
                return None
            node = node.nested.get(part)
            if node is None:
                return None
        return node

    def lookup_message(self, name: str, scope: Optional[ProtoNode] = None) -> Optional[ProtoMessage]:
        return self.lookup(name, (NodeKind.MESSAGE,), scope)

    def lookup_enum(self, name: str, scope: Optional[ProtoNode] = None) -> Optional[ProtoEnum]:
        return self.lookup(name, (NodeKind.ENUM,), scope)

    def lookup_message_or_enum(self, name: str, scope: Optional[ProtoNode] = None) -> Optional[ProtoNode]:
        return self.lookup(name, (NodeKind.MESSAGE, NodeKind.ENUM), scope)

    # --- Walks ---

    def walk(self) -> Iterator[ProtoNode]:
        """Every node below the root in declaration order, depth-first, bounded by MAX_WALK_DEPTH."""
        stack = [(node, 1) for node in reversed(list(self.root.nested.values()))]
        while stack:
            node, depth = stack.pop()
            yield node
            if depth < MAX_WALK_DEPTH:
                stack.extend((child, depth + 1) for child in reversed(list(node.nested.values())))

    def services(self) -> Iterator[ProtoService]:
        for node in self.walk():
            if node.kind == NodeKind.SERVICE:
                yield node

    def messages(self) -> Iterator[ProtoMessage]:
        for node in self.walk():
            if node.kind == NodeKind.MESSAGE:
                yield node

    def explicit_optional_paths(self, file: Optional[str] = None) -> Set[str]:
        """
        Type-chain keys ('Outer.Inner.field') of every field declared with the optional label,
        optionally restricted to messages defined in one file.
        """
        paths = set()
        for message in self.messages():
            if file is not None and message.file != file:
                continue
            for field in message.fields:
                if field.is_explicit_optional:
                    paths.add(f"{message.type_chain}.{field.name}")
        return paths
