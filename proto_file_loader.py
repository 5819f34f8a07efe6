# proto_file_loader.py
# Converts lark parse trees of .proto files into schema nodes merged under one root namespace.
import re
import sys
from typing import List, Optional, Tuple

from lark import Token, Tree

from proto_model import (
    FieldLabel,
    NodeKind,
    ProtoEnum,
    ProtoEnumValue,
    ProtoField,
    ProtoFileInfo,
    ProtoMessage,
    ProtoMethod,
    ProtoNamespace,
    ProtoNode,
    ProtoService,
    ResolvedSchema,
    WELL_KNOWN_TIMESTAMP,
)

_ESCAPE_RE = re.compile(r'\\(.)')


def _unquote(token: str) -> str:
    return _ESCAPE_RE.sub(r'\1', str(token)[1:-1])


def _string_value(node: Tree) -> str:
    return ''.join(_unquote(tok) for tok in node.children if isinstance(tok, Token))


def _get_line(node) -> Optional[int]:
    if isinstance(node, Token):
        return node.line
    meta = getattr(node, 'meta', None)
    if meta is None or meta.empty:
        return None
    return meta.line


def _parse_int(text) -> int:
    # protoc reads 0x.. as hex and a leading 0 as octal
    text = str(text)
    sign = -1 if text.startswith("-") else 1
    digits = text.lstrip("-")
    if digits[:2] in ("0x", "0X"):
        return sign * int(digits, 16)
    if len(digits) > 1 and digits.startswith("0"):
        return sign * int(digits, 8)
    return sign * int(digits)


class SchemaBuilder:
    """
    Accumulates parsed files into a single root namespace.
    build() hands the root over to a ResolvedSchema; the builder cannot be used afterwards.
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.root = ProtoNamespace('')
        self.files = {}

    def debug_print(self, message: str) -> None:
        if self.verbose:
            print(message, file=sys.stderr)

    def add_well_known_timestamp(self) -> ProtoMessage:
        """Define google.protobuf.Timestamp {int64 seconds = 1; int32 nanos = 2;}."""
        package, _, name = WELL_KNOWN_TIMESTAMP.rpartition('.')
        scope = self._ensure_namespace(package, None)
        timestamp = ProtoMessage(name, parent=scope)
        timestamp.fields.append(ProtoField('seconds', 'int64', 1))
        timestamp.fields.append(ProtoField('nanos', 'int32', 2))
        self._add_node(scope, timestamp)
        return timestamp

    def add_file(self, tree: Tree, file_name: str) -> List[Tuple[Optional[str], str]]:
        """
        Merge one parsed file into the root.
        Returns its import statements as (modifier, path) pairs in declaration order.
        """
        if self.root is None:
            raise RuntimeError("SchemaBuilder.add_file called after build()")
        info = ProtoFileInfo(file_name)
        imports = []
        scope = self.root
        for stmt in tree.children:
            if not isinstance(stmt, Tree):
                continue
            if stmt.data == 'syntax_stmt':
                info.syntax = _string_value(stmt.children[0])
            elif stmt.data == 'import_stmt':
                modifier = None
                path = None
                for child in stmt.children:
                    if isinstance(child, Token) and child.type == 'IMPORT_MODIFIER':
                        modifier = str(child)
                    elif isinstance(child, Tree) and child.data == 'string_value':
                        path = _string_value(child)
                imports.append((modifier, path))
                info.imports.append(path)
            elif stmt.data == 'package_stmt':
                info.package = str(stmt.children[0]).lstrip('.')
                scope = self._ensure_namespace(info.package, file_name)
            elif stmt.data == 'message':
                self._add_node(scope, self._build_message(stmt, scope, file_name))
            elif stmt.data == 'enum_def':
                self._add_node(scope, self._build_enum(stmt, scope, file_name))
            elif stmt.data == 'service':
                self._add_node(scope, self._build_service(stmt, scope, file_name))
            # option_stmt and extend carry nothing a request template needs
        self.files[file_name] = info
        self.debug_print(f"[DEBUG] SchemaBuilder: added '{file_name}' package={info.package!r} imports={info.imports}")
        return imports

    def build(self) -> ResolvedSchema:
        if self.root is None:
            raise RuntimeError("SchemaBuilder.build called twice")
        schema = ResolvedSchema(self.root, self.files)
        self.root = None
        self.files = None
        return schema

    # --- Helpers ---

    def _ensure_namespace(self, package: str, file_name: Optional[str]) -> ProtoNode:
        scope = self.root
        if not package:
            return scope
        for part in package.split('.'):
            existing = scope.nested.get(part)
            if existing is None:
                existing = ProtoNamespace(part, parent=scope, file=file_name)
                scope.nested[part] = existing
            elif existing.kind not in (NodeKind.NAMESPACE, NodeKind.MESSAGE):
                self.debug_print(f"[DEBUG] SchemaBuilder: package segment '{part}' clashes with {existing!r}")
                return scope
            scope = existing
        return scope

    def _add_node(self, scope: ProtoNode, node: ProtoNode) -> None:
        existing = scope.nested.get(node.name)
        if existing is not None:
            # First definition wins
            self.debug_print(f"[DEBUG] SchemaBuilder: duplicate definition of '{node.full_name}' in '{node.file}', keeping {existing!r}")
            return
        scope.nested[node.name] = node

    def _build_message(self, tree: Tree, parent: ProtoNode, file_name: str) -> ProtoMessage:
        name = str(tree.children[0])
        message = ProtoMessage(name, parent=parent, file=file_name, line=_get_line(tree))
        body = tree.children[1]
        for element in body.children:
            if not isinstance(element, Tree):
                continue
            if element.data == 'field':
                message.fields.append(self._build_field(element, file_name))
            elif element.data == 'map_field':
                message.fields.append(self._build_map_field(element, file_name))
            elif element.data == 'oneof':
                oneof_name = str(element.children[0])
                for child in element.children[1:]:
                    if isinstance(child, Tree) and child.data == 'field':
                        message.fields.append(self._build_field(child, file_name, oneof=oneof_name))
            elif element.data == 'message':
                self._add_node(message, self._build_message(element, message, file_name))
            elif element.data == 'enum_def':
                self._add_node(message, self._build_enum(element, message, file_name))
        return message

    def _build_field(self, tree: Tree, file_name: str, oneof: Optional[str] = None) -> ProtoField:
        label = None
        tokens = [c for c in tree.children if isinstance(c, Token)]
        if tokens[0].type == 'FIELD_LABEL':
            label = FieldLabel(str(tokens[0]))
            tokens = tokens[1:]
        type_tok, name_tok, number_tok = tokens[0], tokens[1], tokens[2]
        return ProtoField(
            name=str(name_tok),
            type_name=str(type_tok),
            number=_parse_int(number_tok),
            label=label,
            oneof=oneof,
            file=file_name,
            line=name_tok.line,
        )

    def _build_map_field(self, tree: Tree, file_name: str) -> ProtoField:
        key_tok, value_tok, name_tok, number_tok = [c for c in tree.children if isinstance(c, Token)][:4]
        return ProtoField(
            name=str(name_tok),
            type_name=str(value_tok),
            number=_parse_int(number_tok),
            key_type=str(key_tok),
            file=file_name,
            line=name_tok.line,
        )

    def _build_enum(self, tree: Tree, parent: ProtoNode, file_name: str) -> ProtoEnum:
        enum = ProtoEnum(str(tree.children[0]), parent=parent, file=file_name, line=_get_line(tree))
        for element in tree.children[1].children:
            if isinstance(element, Tree) and element.data == 'enum_value':
                name_tok, number_tok = element.children[0], element.children[1]
                enum.values.append(ProtoEnumValue(str(name_tok), _parse_int(number_tok), line=name_tok.line))
        return enum

    def _build_service(self, tree: Tree, parent: ProtoNode, file_name: str) -> ProtoService:
        service = ProtoService(str(tree.children[0]), parent=parent, file=file_name, line=_get_line(tree))
        for element in tree.children[1:]:
            if not (isinstance(element, Tree) and element.data == 'rpc'):
                continue
            method_name = str(element.children[0])
            request_stream, request_type = self._rpc_side(element.children[1])
            response_stream, response_type = self._rpc_side(element.children[2])
            service.methods[method_name] = ProtoMethod(
                method_name,
                request_type,
                response_type,
                request_stream=request_stream,
                response_stream=response_stream,
                line=_get_line(element),
            )
        return service

    @staticmethod
    def _rpc_side(tree: Tree) -> Tuple[bool, str]:
        stream = False
        type_name = None
        for tok in tree.children:
            if tok.type == 'STREAM':
                stream = True
            elif tok.type == 'TYPE_NAME':
                type_name = str(tok)
        return stream, type_name
