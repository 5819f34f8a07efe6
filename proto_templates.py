"""
proto_templates.py
Entry points consumed by the HTTP layer: request templates and optional-field paths
per RPC method, or the complete response document combining both.

Each call resolves its own schema; calls can run in any order or concurrently.
"""
from typing import Any, Dict, List, Mapping, Optional

from generators.generator_utils import DEFAULT_MAX_DEPTH
from method_catalog import MethodCatalogBuilder
from optional_scanner import scan_explicit_optional_fields
from schema_resolver import resolve


def parse_method_templates(main_proto_text: str, imports: Optional[Mapping[str, str]] = None,
                           main_name: Optional[str] = None, max_depth: int = DEFAULT_MAX_DEPTH,
                           verbose: bool = False) -> Dict[str, Dict[str, Any]]:
    """Method name -> JSON request template. Raises SchemaError for unparseable source."""
    schema = resolve(main_proto_text, imports, main_name, verbose)
    catalog = MethodCatalogBuilder(schema, max_depth=max_depth, verbose=verbose).build()
    return {name: entry.template for name, entry in catalog.items()}


def parse_optional_fields(main_proto_text: str, imports: Optional[Mapping[str, str]] = None,
                          main_name: Optional[str] = None, max_depth: int = DEFAULT_MAX_DEPTH,
                          verbose: bool = False) -> Dict[str, List[str]]:
    """Method name -> dotted optional field paths relative to the request root."""
    schema = resolve(main_proto_text, imports, main_name, verbose)
    explicit_paths = scan_explicit_optional_fields(main_proto_text, verbose)
    catalog = MethodCatalogBuilder(schema, explicit_paths, max_depth=max_depth, verbose=verbose).build()
    return {name: entry.optional_fields for name, entry in catalog.items()}


def parse_proto_payload(main_proto_text: str, imports: Optional[Mapping[str, str]] = None,
                        main_name: Optional[str] = None, max_depth: int = DEFAULT_MAX_DEPTH,
                        verbose: bool = False) -> Dict[str, Any]:
    """
    Full response document: per-service method metadata plus the flat
    methodTemplates / optionalFields maps.
    """
    schema = resolve(main_proto_text, imports, main_name, verbose)
    explicit_paths = scan_explicit_optional_fields(main_proto_text, verbose)
    return build_payload(MethodCatalogBuilder(schema, explicit_paths, max_depth=max_depth, verbose=verbose))


def build_payload(builder: MethodCatalogBuilder) -> Dict[str, Any]:
    catalog = builder.build()
    return {
        "services": builder.build_services(),
        "methodTemplates": {name: entry.template for name, entry in catalog.items()},
        "optionalFields": {name: entry.optional_fields for name, entry in catalog.items()},
        "success": True,
    }
