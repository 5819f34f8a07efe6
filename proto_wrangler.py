#!/usr/bin/env python3
"""
ProtoWrangler

Reads a .proto file (plus the files it imports) and writes ready-to-edit JSON
request templates for every RPC method, together with the dotted paths of the
fields declared optional.

Usage:
    python proto_wrangler.py --input <proto_file> [--import <file> ...] [--import-dir <dir> ...]
                             [--output <json_file>] [--mode payload|templates|optional]
                             [--max-depth <n>] [--dump-schema] [--verbose]

Arguments:
    --input, -i      : Path to the main .proto file
    --import, -I     : Additional .proto file made available to import statements (repeatable)
    --import-dir     : Directory whose *.proto files are made available, keyed by relative path (repeatable)
    --output, -o     : Write JSON here instead of stdout
    --mode, -m       : payload   - services, methodTemplates and optionalFields (default)
                       templates - method name -> request template
                       optional  - method name -> optional field paths
    --max-depth      : Nesting bound for message-typed fields (default: 32, at most 256)
    --dump-schema    : Print the resolved schema tree to stderr
    --verbose, -v    : Print debug information to stderr

Environment overrides:
    PW_INPUT_FILE, PW_OUTPUT_FILE, PW_MODE, PW_MAX_DEPTH, PW_VERBOSE

Example:
    python proto_wrangler.py --input ride.proto --import-dir ./imports --output ride.json
    python proto_wrangler.py -i ride.proto -I common.proto --mode templates
"""

import argparse
import json
import os
import sys
from typing import Any, Dict, List, Optional

from generators.generator_utils import DEFAULT_MAX_DEPTH, MAX_DEPTH_LIMIT
from method_catalog import MethodCatalogBuilder
from optional_scanner import scan_explicit_optional_fields
from proto_templates import build_payload
from schema_debug import print_schema
from schema_resolver import SchemaError, SchemaResolver

MODES = ['payload', 'templates', 'optional']


class ProtoTemplateConverter:
    """
    Loads the input files, resolves the schema and renders the requested JSON document.
    """

    def __init__(self, input_file: str, import_files: Optional[List[str]] = None, import_dirs: Optional[List[str]] = None,
                 mode: str = 'payload', max_depth: int = DEFAULT_MAX_DEPTH, verbose: bool = False):
        """
        Args:
            input_file: Path to the main .proto file
            import_files: Extra .proto files, keyed by the path as given
            import_dirs: Directories scanned recursively for *.proto, keyed by relative path
            mode: One of MODES
            max_depth: Nesting bound passed to the generators
            verbose: Whether to print debug information (default: False)
        """
        self.input_file = input_file
        self.import_files = import_files or []
        self.import_dirs = import_dirs or []
        self.mode = mode
        self.max_depth = max_depth
        self.verbose = verbose
        self.main_source = None
        self.imports: Dict[str, str] = {}
        self.schema = None

    def debug_print(self, message: str) -> None:
        if self.verbose:
            print(message, file=sys.stderr)

    def load_inputs(self) -> bool:
        """
        Read the main file and every import candidate.

        Returns:
            bool: True if the main file could be read. Unreadable imports are skipped.
        """
        try:
            with open(self.input_file, 'r', encoding='utf-8') as f:
                self.main_source = f.read()
        except OSError as e:
            print(f"Error: cannot read input file '{self.input_file}': {e}", file=sys.stderr)
            return False
        self.debug_print(f"[DEBUG] Proto file read successfully ({len(self.main_source)} characters)")

        for import_dir in self.import_dirs:
            for dir_path, _, file_names in os.walk(import_dir):
                for file_name in sorted(file_names):
                    if file_name.endswith('.proto'):
                        full_path = os.path.join(dir_path, file_name)
                        key = os.path.relpath(full_path, import_dir).replace(os.sep, '/')
                        self._read_import(full_path, key)
        for import_file in self.import_files:
            self._read_import(import_file, import_file.replace(os.sep, '/'))
        return True

    def _read_import(self, path: str, key: str) -> None:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                self.imports[key] = f.read()
            self.debug_print(f"[DEBUG] Added import candidate: {key}")
        except OSError as e:
            self.debug_print(f"[DEBUG] Could not read import '{path}': {e}")

    def convert(self) -> Dict[str, Any]:
        """
        Resolve the schema and build the document for self.mode.

        Raises:
            SchemaError: the main file is not valid proto syntax
        """
        resolver = SchemaResolver(self.imports, self.verbose)
        self.schema = resolver.resolve(self.main_source, os.path.basename(self.input_file))
        explicit_paths = scan_explicit_optional_fields(self.main_source, self.verbose)
        builder = MethodCatalogBuilder(self.schema, explicit_paths, max_depth=self.max_depth, verbose=self.verbose)
        if self.mode == 'templates':
            return {name: entry.template for name, entry in builder.build().items()}
        if self.mode == 'optional':
            return {name: entry.optional_fields for name, entry in builder.build().items()}
        return build_payload(builder)


def write_json(document: Any, output_file: Optional[str]) -> None:
    text = json.dumps(document, indent=2)
    if output_file:
        with open(output_file, 'w', encoding='utf-8') as f:
            f.write(text + '\n')
    else:
        print(text)


def parse_arguments(argv=None):
    """
    Parse command line arguments.

    Returns:
        argparse.Namespace: Parsed command line arguments
    """
    parser = argparse.ArgumentParser(
        description="Generate JSON request templates for the RPC methods of a .proto file",
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument('--input', '-i', help='Path to the main .proto file')
    parser.add_argument('--import', '-I', dest='imports', action='append', default=[],
                        help='Extra .proto file available to import statements (repeatable)')
    parser.add_argument('--import-dir', dest='import_dirs', action='append', default=[],
                        help='Directory of .proto files available to import statements (repeatable)')
    parser.add_argument('--output', '-o', help='Write JSON to this file instead of stdout')
    parser.add_argument('--mode', '-m', choices=MODES, default='payload', help='Which document to produce')
    parser.add_argument('--max-depth', type=int, default=DEFAULT_MAX_DEPTH, help='Nesting bound for message fields')
    parser.add_argument('--dump-schema', action='store_true', help='Print the resolved schema tree to stderr')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose output for debugging')

    args = parser.parse_args(argv)

    # Environment variables override the command line
    args.input = os.environ.get('PW_INPUT_FILE', args.input)
    args.output = os.environ.get('PW_OUTPUT_FILE', args.output)
    if 'PW_MODE' in os.environ:
        mode = os.environ['PW_MODE'].strip().lower()
        if mode not in MODES:
            parser.error(f"PW_MODE: invalid choice: '{mode}' (choose from {', '.join(MODES)})")
        args.mode = mode
    if 'PW_MAX_DEPTH' in os.environ:
        try:
            args.max_depth = int(os.environ['PW_MAX_DEPTH'])
        except ValueError:
            parser.error(f"PW_MAX_DEPTH: not an integer: '{os.environ['PW_MAX_DEPTH']}'")
    if os.environ.get('PW_VERBOSE', '').strip().lower() in ('1', 'true', 'yes', 'on'):
        args.verbose = True

    if not args.input:
        parser.error("the following arguments are required: --input/-i (or PW_INPUT_FILE)")
    if args.max_depth < 0:
        parser.error("--max-depth must not be negative")
    if args.max_depth > MAX_DEPTH_LIMIT:
        parser.error(f"--max-depth must not exceed {MAX_DEPTH_LIMIT}")

    return args


def main(argv=None) -> int:
    """
    Main entry point of the script.
    """
    args = parse_arguments(argv)

    converter = ProtoTemplateConverter(args.input, args.imports, args.import_dirs, args.mode, args.max_depth, args.verbose)
    if not converter.load_inputs():
        return 1

    try:
        document = converter.convert()
    except SchemaError as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.mode == 'payload':
            write_json({"error": str(e), "success": False}, args.output)
        return 1

    if args.dump_schema:
        print_schema(converter.schema)

    write_json(document, args.output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
