"""
method_catalog.py
Enumerates every service method of a ResolvedSchema and attaches its request template
and optional-field paths.
"""
import sys
from typing import Any, Dict, List, Optional, Set

from generators.generator_utils import DEFAULT_MAX_DEPTH, DEFAULT_MAX_NODES
from generators.optional_field_generator import OptionalFieldGenerator
from generators.template_generator import TemplateGenerator
from proto_model import ProtoMessage, ProtoMethod, ProtoService, ResolvedSchema


class MethodResolutionError(LookupError):
    """A method's request type is not in the schema."""


class MethodCatalogEntry:
    def __init__(self, name: str, service: str, request_type: str, response_type: str,
                 template: Dict[str, Any], optional_fields: List[str],
                 request_stream: bool = False, response_stream: bool = False):
        self.name = name
        self.service = service  # fully qualified, no leading dot
        self.request_type = request_type
        self.response_type = response_type
        self.template = template
        self.optional_fields = optional_fields
        self.request_stream = request_stream
        self.response_stream = response_stream

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "requestType": self.request_type,
            "responseType": self.response_type,
            "requestStream": self.request_stream,
            "responseStream": self.response_stream,
            "jsonTemplate": self.template,
            "optionalFields": self.optional_fields,
        }

    def __repr__(self):
        return f"MethodCatalogEntry({self.service}.{self.name})"


class MethodCatalogBuilder:
    """
    One failing method never sinks the catalog: it keeps its entry with an empty
    template and no optional fields.
    """

    def __init__(self, schema: ResolvedSchema, explicit_paths: Optional[Set[str]] = None,
                 max_depth: int = DEFAULT_MAX_DEPTH, max_nodes: int = DEFAULT_MAX_NODES, verbose: bool = False):
        self.schema = schema
        self.explicit_paths = explicit_paths or set()
        self.template_generator = TemplateGenerator(schema, max_depth, max_nodes)
        self.optional_generator = OptionalFieldGenerator(schema, self.explicit_paths, max_depth, max_nodes)
        self.verbose = verbose

    def debug_print(self, message: str) -> None:
        if self.verbose:
            print(message, file=sys.stderr)

    def build(self) -> Dict[str, MethodCatalogEntry]:
        """
        Flat catalog keyed by bare method name. When two services share a method name
        the one visited last in the namespace walk wins.
        """
        catalog = {}
        for service in self.schema.services():
            self.debug_print(f"[DEBUG] Found service: {service.full_name}")
            for method in service.methods.values():
                if method.name in catalog:
                    self.debug_print(f"[DEBUG] Method '{method.name}' of {service.full_name} replaces the one from {catalog[method.name].service}")
                catalog[method.name] = self.build_entry(service, method)
        self.debug_print(f"[DEBUG] Extracted {len(catalog)} methods: {list(catalog)}")
        return catalog

    def build_services(self) -> Dict[str, Dict[str, Any]]:
        """Per-service view keyed by service short name; methods never collide here."""
        services = {}
        for service in self.schema.services():
            services[service.name] = {
                "name": service.name,
                "fullName": service.full_name,
                "methods": {
                    method.name: self.build_entry(service, method).to_dict()
                    for method in service.methods.values()
                },
            }
        return services

    def build_entry(self, service: ProtoService, method: ProtoMethod) -> MethodCatalogEntry:
        self.debug_print(f"[DEBUG]   Processing method: {method.name} -> {method.request_type}")
        try:
            request = self._request_type(service, method)
            template = self.template_generator.generate(request)
            optional_fields = self.optional_generator.generate(request)
        except MethodResolutionError as e:
            self.debug_print(f"[DEBUG] Error processing method {method.name}: {e}")
            template = {}
            optional_fields = []
        return MethodCatalogEntry(
            method.name,
            service.full_name,
            method.request_type,
            method.response_type,
            template,
            optional_fields,
            request_stream=method.request_stream,
            response_stream=method.response_stream,
        )

    def _request_type(self, service: ProtoService, method: ProtoMethod) -> ProtoMessage:
        request = self.schema.lookup_message(method.request_type, scope=service)
        if request is None:
            raise MethodResolutionError(f"no such type: {method.request_type}")
        return request


def build_method_catalog(schema: ResolvedSchema, explicit_paths: Optional[Set[str]] = None,
                         max_depth: int = DEFAULT_MAX_DEPTH, verbose: bool = False) -> Dict[str, MethodCatalogEntry]:
    return MethodCatalogBuilder(schema, explicit_paths, max_depth=max_depth, verbose=verbose).build()


def build_service_catalog(schema: ResolvedSchema, explicit_paths: Optional[Set[str]] = None,
                          max_depth: int = DEFAULT_MAX_DEPTH, verbose: bool = False) -> Dict[str, Dict[str, Any]]:
    return MethodCatalogBuilder(schema, explicit_paths, max_depth=max_depth, verbose=verbose).build_services()
