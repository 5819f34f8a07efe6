"""
schema_debug.py
Pretty-print utilities for inspecting a ResolvedSchema.
"""
import sys

from proto_model import NodeKind, ResolvedSchema


def _print_field(field, indent_level, add_line_func):
    ind = '  ' * indent_level
    details = [f"type='{field.type_name}'", f"number={field.number}"]
    if field.label is not None: details.append(f"label={field.label.value}")
    if field.is_map: details.append(f"key_type='{field.key_type}'")
    if field.oneof: details.append(f"oneof='{field.oneof}'")
    add_line_func(f"{ind}Field: {field.name} ({', '.join(details)}) (line={field.line})")


def _print_node(node, indent_level, add_line_func):
    ind = '  ' * indent_level
    if node.kind == NodeKind.NAMESPACE:
        add_line_func(f"{ind}Namespace: {node.full_name}")
    elif node.kind == NodeKind.MESSAGE:
        add_line_func(f"{ind}Message: {node.full_name} (file='{node.file}', line={node.line})")
        for field in node.fields:
            _print_field(field, indent_level + 1, add_line_func)
    elif node.kind == NodeKind.ENUM:
        add_line_func(f"{ind}Enum: {node.full_name} (file='{node.file}', line={node.line})")
        for value in node.values:
            add_line_func(f"{ind}  Value: {value.name} = {value.number}")
    elif node.kind == NodeKind.SERVICE:
        add_line_func(f"{ind}Service: {node.full_name} (file='{node.file}', line={node.line})")
        for method in node.methods.values():
            request = f"stream {method.request_type}" if method.request_stream else method.request_type
            response = f"stream {method.response_type}" if method.response_stream else method.response_type
            add_line_func(f"{ind}  Method: {method.name}({request}) returns ({response})")
    for child in node.nested.values():
        _print_node(child, indent_level + 1, add_line_func)


def format_schema(schema: ResolvedSchema) -> str:
    lines = []
    for file_name, info in schema.files.items():
        lines.append(f"File: {file_name} (syntax={info.syntax!r}, package={info.package!r}, imports={info.imports})")
    for node in schema.root.nested.values():
        _print_node(node, 0, lines.append)
    return '\n'.join(lines)


def print_schema(schema: ResolvedSchema, out=None) -> None:
    print(format_schema(schema), file=out or sys.stderr)
