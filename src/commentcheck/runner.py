"""
Module Runner

Hosts rules against a set of configuration files. A runner plays three
roles for a rule:

- block provider: answers "all blocks of type T with N labels" queries
- byte source: returns the raw bytes of a file by name
- diagnostic sink: accepts issues emitted by rules

Rules depend only on the narrow protocols below, so tests can hand them
anything that quacks the same way.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Protocol, Tuple, Union

from commentcheck.errors import DocumentRetrievalError, SinkError
from commentcheck.issues import Issue
from commentcheck.parser import Block, Body, File, LexerError, ParseError, Range, parse_source

logger = logging.getLogger(__name__)


class BodyMode(Enum):
    """How much of a matched block's body a query returns."""
    JUST_ATTRIBUTES = "just_attributes"
    FULL = "full"


@dataclass(frozen=True)
class BlockSchema:
    """A block query: block type, required label names and body mode."""
    type: str
    label_names: Tuple[str, ...] = ("name",)
    mode: BodyMode = BodyMode.JUST_ATTRIBUTES


class BlockProvider(Protocol):
    def get_module_content(self, schema: BlockSchema) -> List[Block]:
        ...


class ByteSource(Protocol):
    def get_file(self, filename: str) -> bytes:
        ...


class DiagnosticSink(Protocol):
    def emit_issue(self, rule, message: str, issue_range: Range) -> None:
        ...


IssueCallback = Callable[[Issue], None]


class ModuleRunner:
    """
    Runner over an in-memory set of parsed files.

    Files are kept in filename order, so block queries return blocks in a
    stable order: by file name, then by position in the file.

    Usage:
        runner = ModuleRunner.from_directory(Path("infra"))
        rule.check(runner)
        for issue in runner.issues:
            print(issue)
    """

    def __init__(self, files: Mapping[str, File], sink: Optional[IssueCallback] = None):
        self.files: Dict[str, File] = {name: files[name] for name in sorted(files)}
        self.issues: List[Issue] = []
        self._sink = sink

    @classmethod
    def from_sources(cls, sources: Mapping[str, Union[str, bytes]],
                     sink: Optional[IssueCallback] = None) -> "ModuleRunner":
        """Build a runner from filename -> source text (or bytes)."""
        files = {}
        for filename, source in sources.items():
            files[filename] = _parse(source, filename)
        return cls(files, sink=sink)

    @classmethod
    def from_directory(cls, directory: Path, pattern: str = "*.tf",
                       sink: Optional[IssueCallback] = None) -> "ModuleRunner":
        """Load every file matching pattern directly inside directory."""
        if not directory.is_dir():
            raise DocumentRetrievalError("not a directory", str(directory))
        files = {}
        for file_path in sorted(directory.glob(pattern)):
            if not file_path.is_file():
                continue
            files[str(file_path)] = _parse(_read_bytes(file_path), str(file_path))
        logger.info("Loaded %d file(s) from %s", len(files), directory)
        return cls(files, sink=sink)

    @classmethod
    def from_path(cls, path: Path, pattern: str = "*.tf",
                  sink: Optional[IssueCallback] = None) -> "ModuleRunner":
        """Load a single file, or a directory of files."""
        if path.is_file():
            return cls({str(path): _parse(_read_bytes(path), str(path))}, sink=sink)
        return cls.from_directory(path, pattern=pattern, sink=sink)

    def get_module_content(self, schema: BlockSchema) -> List[Block]:
        """
        Return every top-level block of schema.type across all files.

        With BodyMode.JUST_ATTRIBUTES the returned blocks carry only their
        direct attributes; nested blocks are dropped rather than descended into.
        """
        matched = []
        arity = len(schema.label_names)
        for file in self.files.values():
            for block in file.body.get_blocks(schema.type):
                if len(block.labels) != arity:
                    raise DocumentRetrievalError(
                        f"{schema.type!r} block at line {block.type_range.start.line} has "
                        f"{len(block.labels)} label(s), expected {arity} "
                        f"({', '.join(schema.label_names)})",
                        file.filename,
                    )
                if schema.mode == BodyMode.JUST_ATTRIBUTES:
                    body = Body(attributes=dict(block.body.attributes), range=block.body.range)
                    block = replace(block, body=body)
                matched.append(block)
        logger.debug("Matched %d %r block(s)", len(matched), schema.type)
        return matched

    def get_file(self, filename: str) -> bytes:
        """Return the raw bytes of a loaded file."""
        file = self.files.get(filename)
        if file is None:
            raise DocumentRetrievalError("file is not part of this module", filename)
        return file.bytes

    def emit_issue(self, rule, message: str, issue_range: Range) -> None:
        """Forward an issue to the sink callback, if any, and record it."""
        issue = Issue(rule=rule.name, severity=rule.severity, message=message, range=issue_range)
        if self._sink is not None:
            try:
                self._sink(issue)
            except Exception as e:
                raise SinkError(f"sink rejected issue from {rule.name}: {e}",
                                issue_range.filename) from e
        self.issues.append(issue)


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise DocumentRetrievalError(str(e), str(path)) from e


def _parse(source: Union[str, bytes], filename: str) -> File:
    try:
        return parse_source(source, filename)
    except (LexerError, ParseError) as e:
        raise DocumentRetrievalError(e.message, f"{filename}:{e.line}:{e.column}") from e
