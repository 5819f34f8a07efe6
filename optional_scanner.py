"""
optional_scanner.py
Line-oriented textual scan for fields declared with an explicit 'optional' qualifier.
Works on raw source and does not need a successfully linked schema.
"""
import re
import sys
from typing import List, Optional, Set

# One alternation so message names, braces and optional fields are seen in source order
_TOKEN_RE = re.compile(r'''
      (?:^|(?<=[;{}]))\s*message\s+(?P<message>[A-Za-z_]\w*)
    | (?P<aggregate>[=:]\s*\{)
    | (?P<open>\{)
    | (?P<close>\})
    | (?:^|(?<=[;{}]))\s*optional\s+(?P<type>\.?[\w.]+)\s+(?P<field>[A-Za-z_]\w*)\s*=
''', re.VERBOSE)

_STRING_RE = re.compile(r'"(?:\\.|[^"\\])*"|\'(?:\\.|[^\'\\])*\'')

# Frame for a text-format option value; never part of the chain
_AGGREGATE_FRAME = ''


class OptionalFieldScanner:
    """
    Records '<enclosing message chain>.<field>' for each explicit optional field.
    Every '{' pushes a frame (the pending message name, or None for enum/oneof/service
    bodies) and every '}' pops one, so only message frames contribute to the chain.
    Nothing inside an aggregate option value ('= { ... }') is read as a declaration.
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def debug_print(self, message: str) -> None:
        if self.verbose:
            print(message, file=sys.stderr)

    def scan(self, source: str) -> Set[str]:
        paths = set()
        frames: List[Optional[str]] = []
        pending_message = None
        in_block_comment = False

        for raw_line in source.split('\n'):
            line, in_block_comment = self._strip_comments(raw_line, in_block_comment)
            trimmed = line.strip()
            if not trimmed:
                continue
            for match in _TOKEN_RE.finditer(line):
                in_aggregate = bool(frames) and frames[-1] == _AGGREGATE_FRAME
                if match.group('aggregate') or (match.group('open') and in_aggregate):
                    frames.append(_AGGREGATE_FRAME)
                    pending_message = None
                elif match.group('close'):
                    if frames:
                        exited = frames.pop()
                        if exited:
                            self.debug_print(f"[DEBUG] Exiting message: {exited}, remaining stack: {self._chain(frames)}")
                elif in_aggregate:
                    continue
                elif match.group('message'):
                    pending_message = match.group('message')
                elif match.group('open'):
                    frames.append(pending_message)
                    if pending_message:
                        self.debug_print(f"[DEBUG] Entering message: {self._chain(frames)}")
                    pending_message = None
                elif match.group('field'):
                    chain = self._chain(frames)
                    path = f"{chain}.{match.group('field')}" if chain else match.group('field')
                    paths.add(path)
                    self.debug_print(f"[DEBUG] Found explicit optional field: {path}")
        return paths

    @staticmethod
    def _chain(frames: List[Optional[str]]) -> str:
        return '.'.join(name for name in frames if name)

    @staticmethod
    def _strip_comments(line: str, in_block_comment: bool):
        """Blank out string literals and drop // and /* */ comments. Returns (line, still_in_block)."""
        if in_block_comment:
            end = line.find('*/')
            if end == -1:
                return '', True
            line = line[end + 2:]
        line = _STRING_RE.sub('""', line)
        out = []
        i = 0
        while i < len(line):
            if line.startswith('//', i):
                break
            if line.startswith('/*', i):
                end = line.find('*/', i + 2)
                if end == -1:
                    return ''.join(out), True
                i = end + 2
                continue
            out.append(line[i])
            i += 1
        return ''.join(out), False


def scan_explicit_optional_fields(source: str, verbose: bool = False) -> Set[str]:
    return OptionalFieldScanner(verbose).scan(source)
