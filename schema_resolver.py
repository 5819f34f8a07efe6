"""
schema_resolver.py
Turns a main .proto source plus a bag of import file contents into one ResolvedSchema.
Owns the import lookup policy; the grammar itself lives in lark_parser.py.
"""
import posixpath
import sys
from typing import Dict, Mapping, Optional

from lark.exceptions import UnexpectedInput

from lark_parser import parse_proto
from proto_file_loader import SchemaBuilder
from proto_model import ResolvedSchema

DEFAULT_MAIN_FILE_NAME = "main.proto"


class SchemaError(Exception):
    """The main proto source is not syntactically valid. Fatal for the whole request."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.column = column


class ImportNotFoundError(Exception):
    """A single import could not be located in the ImportSet."""


def _basename(path: str) -> str:
    return posixpath.basename(path.replace('\\', '/'))


class ImportResolver:
    """
    Import lookup hooks over an ImportSet (file identifier -> raw text).
    Keys may spell the same file differently (relative path, full path, bare name).
    """

    def __init__(self, imports: Optional[Mapping[str, str]] = None, verbose: bool = False):
        self.imports: Dict[str, str] = dict(imports or {})
        self.verbose = verbose

    def debug_print(self, message: str) -> None:
        if self.verbose:
            print(message, file=sys.stderr)

    def resolve_path(self, origin: Optional[str], target: str) -> str:
        """
        Map an import target to an ImportSet key: exact key or path-suffix match, first match wins.
        Falls back to the target itself.
        """
        self.debug_print(f"[DEBUG] Resolving: {target} from {origin}")
        for file_name in self.imports:
            if file_name == target or file_name.endswith(target):
                self.debug_print(f"[DEBUG] Found match: {file_name}")
                return file_name
        self.debug_print(f"[DEBUG] No match found for: {target}, returning as-is")
        return target

    def fetch(self, file_name: str) -> str:
        """
        Content for a resolved file name: exact key first, then suffix or basename match.
        Raises ImportNotFoundError.
        """
        if file_name in self.imports:
            return self.imports[file_name]
        wanted = _basename(file_name)
        for key, content in self.imports.items():
            if key.endswith(file_name) or _basename(key) == wanted:
                self.debug_print(f"[DEBUG] Found by basename: {key} for {file_name}")
                return content
        raise ImportNotFoundError(f"File not found: {file_name}")


class SchemaResolver:
    """
    Builds a fresh ResolvedSchema per resolve() call. Nothing is cached between calls.
    """

    def __init__(self, imports: Optional[Mapping[str, str]] = None, verbose: bool = False):
        self.import_resolver = ImportResolver(imports, verbose)
        self.verbose = verbose

    def debug_print(self, message: str) -> None:
        if self.verbose:
            print(message, file=sys.stderr)

    def resolve(self, main_source: str, main_name: Optional[str] = None) -> ResolvedSchema:
        """
        Parse main_source and every import reachable from it.

        Raises:
            SchemaError: main_source does not parse. Broken or missing imports are skipped.
        """
        main_name = main_name or DEFAULT_MAIN_FILE_NAME
        try:
            tree = parse_proto(main_source)
        except UnexpectedInput as e:
            line = getattr(e, 'line', None)
            column = getattr(e, 'column', None)
            raise SchemaError(f"Invalid proto syntax in '{main_name}' at line {line}, column {column}: {e}", line, column) from e

        builder = SchemaBuilder(self.verbose)
        builder.add_well_known_timestamp()
        loaded = {main_name}
        try:
            main_imports = builder.add_file(tree, main_name)
        except ValueError as e:
            raise SchemaError(f"Invalid proto content in '{main_name}': {e}") from e
        # Explicit work stack of (origin file, pending imports)
        pending = [(main_name, list(reversed(main_imports)))]
        while pending:
            origin, targets = pending[-1]
            if not targets:
                pending.pop()
                continue
            _, target = targets.pop()
            file_name = self.import_resolver.resolve_path(origin, target)
            if file_name in loaded:
                continue
            loaded.add(file_name)
            imported_tree = self._load_import(file_name)
            if imported_tree is None:
                continue
            try:
                imports = builder.add_file(imported_tree, file_name)
            except ValueError as e:
                self.debug_print(f"[DEBUG] SchemaResolver: skipping invalid import '{file_name}': {e}")
                continue
            pending.append((file_name, list(reversed(imports))))
        return builder.build()

    def _load_import(self, file_name: str):
        try:
            text = self.import_resolver.fetch(file_name)
        except ImportNotFoundError as e:
            self.debug_print(f"[DEBUG] SchemaResolver: skipping import: {e}")
            return None
        try:
            return parse_proto(text)
        except UnexpectedInput as e:
            self.debug_print(f"[DEBUG] SchemaResolver: skipping unparseable import '{file_name}': {e}")
            return None


def resolve(main_source: str, imports: Optional[Mapping[str, str]] = None, main_name: Optional[str] = None, verbose: bool = False) -> ResolvedSchema:
    return SchemaResolver(imports, verbose).resolve(main_source, main_name)
