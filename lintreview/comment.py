"""Diagnostics and the services that post them as review comments."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, TextIO, runtime_checkable


@dataclass
class Position:
    """A 1-based line and column; 0 means unknown."""

    line: int = 0
    column: int = 0


@dataclass
class Location:
    """A file path and an optional span in it."""

    path: str = ""
    start: Position = field(default_factory=Position)
    end: Position | None = None


@dataclass
class Diagnostic:
    """A single result reported by a tool."""

    message: str = ""
    location: Location = field(default_factory=Location)
    original_output: str = ""


@dataclass
class FilteredDiagnostic:
    """A diagnostic together with the decision whether to report it."""

    diagnostic: Diagnostic = field(default_factory=Diagnostic)
    should_report: bool = False


@dataclass
class Comment:
    """A diagnostic to post, with the name of the tool that produced it."""

    result: FilteredDiagnostic = field(default_factory=FilteredDiagnostic)
    tool_name: str = ""


class _CommentService(Protocol):
    def post(self, comment: Comment) -> None: ...


@runtime_checkable
class _BulkCommentService(Protocol):
    def post(self, comment: Comment) -> None: ...

    def flush(self) -> None: ...


class MultiCommentService:
    """Posts every comment to each of several services in turn."""

    def __init__(self, *services: _CommentService) -> None:
        self.services = list(services)

    def post(self, comment: Comment) -> None:
        for service in self.services:
            service.post(comment)

    def flush(self) -> None:
        """Flush every service that collects comments before sending them."""
        for service in self.services:
            if isinstance(service, _BulkCommentService):
                service.flush()


class RawCommentWriter:
    """Writes the tool's original output of each comment, unformatted."""

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream

    def post(self, comment: Comment) -> None:
        print(comment.result.diagnostic.original_output, file=self.stream)


class UnifiedCommentWriter:
    """Writes comments as ``<file>[:<line>[:<col>]]: [<tool>] <message>``."""

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream

    def post(self, comment: Comment) -> None:
        diagnostic = comment.result.diagnostic
        location = diagnostic.location
        text = location.path
        start = location.start
        if start.line > 0:
            text += f":{start.line}"
            if start.column > 0:
                text += f":{start.column}"
        text += f": [{comment.tool_name}] {diagnostic.message}"
        print(text, file=self.stream)