"""Parser for unified diffs, including git's extended headers."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import BinaryIO, TextIO, Union

_TOKEN_DIFF = b"diff"
_TOKEN_OLD_FILE = b"---"
_TOKEN_NEW_FILE = b"+++"
_TOKEN_START_HUNK = b"@@"
_TOKEN_UNCHANGED = b" "
_TOKEN_ADDED = b"+"
_TOKEN_DELETED = b"-"
_TOKEN_NO_NEWLINE_AT_EOF = b"\\"

_INT_RE = re.compile(r"[+-]?[0-9]+")

_ESCAPES = {
    ord("a"): 0x07,
    ord("b"): 0x08,
    ord("t"): 0x09,
    ord("n"): 0x0A,
    ord("v"): 0x0B,
    ord("f"): 0x0C,
    ord("r"): 0x0D,
    ord('"'): ord('"'),
    ord("\\"): ord("\\"),
}

Source = Union[str, bytes, bytearray, memoryview, TextIO, BinaryIO]


class LineType(enum.IntEnum):
    """Kind of a line in a hunk body."""

    UNCHANGED = 0
    ADDED = 1
    DELETED = 2


@dataclass
class Line:
    """A body line of a hunk.

    ``lnum_diff`` is the position of the line counted from the first hunk
    header of the file; ``lnum_old`` is 0 for added lines and ``lnum_new``
    is 0 for deleted lines.
    """

    type: LineType
    content: str
    lnum_diff: int = 0
    lnum_old: int = 0
    lnum_new: int = 0


@dataclass
class Hunk:
    """A change hunk: ``@@ -start_old,len_old +start_new,len_new @@ section``."""

    start_line_old: int
    line_length_old: int
    start_line_new: int
    line_length_new: int
    section: str = ""
    lines: list[Line] = field(default_factory=list)


@dataclass
class FileDiff:
    """The unified diff of a single file."""

    path_old: str = ""
    path_new: str = ""
    time_old: str = ""
    time_new: str = ""
    hunks: list[Hunk] = field(default_factory=list)
    extended: list[str] = field(default_factory=list)


class DiffParseError(ValueError):
    """Base class for diff parse errors."""


class NoNewFileError(DiffParseError):
    """A ``---`` line was not followed by a ``+++`` line."""

    def __init__(self) -> None:
        super().__init__("no expected new file line")


class NoHunksError(DiffParseError):
    """A file header was not followed by any hunk."""

    def __init__(self) -> None:
        super().__init__("no expected hunks")


class InvalidHunkRangeError(DiffParseError):
    """A hunk header line could not be parsed."""

    def __init__(self, invalid: str) -> None:
        super().__init__(f"invalid hunk range: {invalid}")
        self.invalid = invalid


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def _to_bytes(source: Source) -> bytes:
    if isinstance(source, str):
        return source.encode("utf-8")
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    data = source.read()
    return data.encode("utf-8") if isinstance(data, str) else bytes(data)


class _Reader:
    """Byte cursor with look-ahead and line reads."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def peek(self, n: int) -> bytes | None:
        if len(self._data) - self._pos < n:
            return None
        return self._data[self._pos:self._pos + n]

    def readline(self) -> bytes:
        data = self._data
        if self._pos >= len(data):
            return b""
        end = data.find(b"\n", self._pos)
        if end == -1:
            line = data[self._pos:]
            self._pos = len(data)
            return line
        line = data[self._pos:end]
        self._pos = end + 1
        if line.endswith(b"\r"):
            line = line[:-1]
        return line


def _unquote(raw: bytes) -> bytes:
    if not raw.startswith(b'"'):
        return raw
    body = raw[:-1] if raw.endswith(b'"') else raw
    if body.startswith(b'"'):
        body = body[1:]

    out = bytearray()
    i = 0
    n = len(body)
    while i < n:
        ch = body[i]
        i += 1
        if ch != ord("\\"):
            out.append(ch)
            continue
        if i >= n:
            break
        ch = body[i]
        if ord("0") <= ch <= ord("9"):
            octal = body[i:i + 3]
            if len(octal) < 3:
                out += octal
                break
            i += 3
            if all(ord("0") <= c <= ord("7") for c in octal) and int(octal, 8) <= 0xFF:
                out.append(int(octal, 8))
            else:
                out += octal
            continue
        i += 1
        out.append(_ESCAPES.get(ch, ch))
    return bytes(out)


def unquote_c_style(text: str) -> str:
    """Undo git's C-style quoting of a path; unquoted text is returned as is."""
    return _decode(_unquote(text.encode("utf-8")))


def _parse_file_header(line: bytes) -> tuple[str, str]:
    rest = line[len(_TOKEN_OLD_FILE) + 1:]
    tab = rest.rfind(b"\t")
    if tab == -1:
        return _decode(_unquote(rest)), ""
    return _decode(_unquote(rest[:tab])), _decode(rest[tab + 1:])


def _parse_extended_header(reader: _Reader) -> list[str]:
    head = reader.peek(len(_TOKEN_DIFF))
    if head is None or not head.startswith(_TOKEN_DIFF):
        return []
    lines = [_decode(reader.readline())]
    while True:
        head = reader.peek(len(_TOKEN_DIFF))
        if head is None or head.startswith(_TOKEN_OLD_FILE) or head.startswith(_TOKEN_DIFF):
            break
        lines.append(_decode(reader.readline()))
    return lines


def _parse_int(text: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValueError(text)
    return int(text)


def _parse_ls(text: str) -> tuple[int, int]:
    parts = text.split(",", 1)
    start = _parse_int(parts[0])
    length = _parse_int(parts[1]) if len(parts) == 2 else 1
    return start, length


@dataclass
class _HunkRange:
    lold: int
    sold: int
    lnew: int
    snew: int
    section: str = ""


def _parse_hunk_range(rangeline: str) -> _HunkRange:
    parts = rangeline.split(" ", 4)
    if len(parts) < 4 or parts[0] != "@@" or parts[3] != "@@":
        raise InvalidHunkRangeError(rangeline)
    old, new = parts[1], parts[2]
    if not old.startswith("-") or not new.startswith("+"):
        raise InvalidHunkRangeError(rangeline)
    try:
        lold, sold = _parse_ls(old[1:])
        lnew, snew = _parse_ls(new[1:])
    except ValueError:
        raise InvalidHunkRangeError(rangeline) from None
    section = parts[4] if len(parts) == 5 else ""
    return _HunkRange(lold, sold, lnew, snew, section)


class _HunkParser:
    def __init__(self, reader: _Reader) -> None:
        self._reader = reader
        self._lnum_diff = 0

    def _done(self, lold: int, lnew: int, hr: _HunkRange) -> bool:
        end = lold >= hr.lold + hr.sold and lnew >= hr.lnew + hr.snew
        head = self._reader.peek(1)
        return head is None or (head != _TOKEN_NO_NEWLINE_AT_EOF and end)

    def parse(self) -> Hunk | None:
        reader = self._reader
        head = reader.peek(len(_TOKEN_START_HUNK))
        if head is None or not head.startswith(_TOKEN_START_HUNK):
            return None
        hr = _parse_hunk_range(_decode(reader.readline()))
        hunk = Hunk(hr.lold, hr.sold, hr.lnew, hr.snew, hr.section)
        lold, lnew = hr.lold, hr.lnew
        while not self._done(lold, lnew, hr):
            token = reader.peek(1)
            if token is None:
                break
            if token in (_TOKEN_UNCHANGED, _TOKEN_ADDED, _TOKEN_DELETED):
                self._lnum_diff += 1
                content = _decode(reader.readline()[1:])
                if token == _TOKEN_UNCHANGED:
                    line = Line(LineType.UNCHANGED, content, self._lnum_diff, lold, lnew)
                    lold += 1
                    lnew += 1
                elif token == _TOKEN_ADDED:
                    line = Line(LineType.ADDED, content, self._lnum_diff, lnum_new=lnew)
                    lnew += 1
                else:
                    line = Line(LineType.DELETED, content, self._lnum_diff, lnum_old=lold)
                    lold += 1
                hunk.lines.append(line)
            elif token == _TOKEN_NO_NEWLINE_AT_EOF:
                reader.readline()
            else:
                break
        self._lnum_diff += 1  # the next hunk header takes a position too
        return hunk


def _parse_hunks(reader: _Reader) -> list[Hunk]:
    head = reader.peek(len(_TOKEN_OLD_FILE))
    if head is None:
        raise NoHunksError()
    if not head.startswith(_TOKEN_START_HUNK):
        head = reader.peek(len(_TOKEN_DIFF))
        if head is not None and head.startswith(_TOKEN_DIFF):
            # git may emit a file diff without hunks, e.g. a deleted empty file
            return []
        raise NoHunksError()
    parser = _HunkParser(reader)
    hunks = []
    while (hunk := parser.parse()) is not None:
        hunks.append(hunk)
    return hunks


def _parse_one(reader: _Reader) -> FileDiff | None:
    fd = FileDiff(extended=_parse_extended_header(reader))
    head = reader.peek(len(_TOKEN_OLD_FILE))
    if head is None:
        return fd if fd.extended else None
    if head.startswith(_TOKEN_OLD_FILE):
        fd.path_old, fd.time_old = _parse_file_header(reader.readline())
        head = reader.peek(len(_TOKEN_NEW_FILE))
        if head is None or not head.startswith(_TOKEN_NEW_FILE):
            raise NoNewFileError()
        fd.path_new, fd.time_new = _parse_file_header(reader.readline())
    fd.hunks = _parse_hunks(reader)
    return fd


def parse_file(source: Source) -> FileDiff | None:
    """Parse the diff of one file; return None when there is nothing to parse.

    Raises a DiffParseError subclass on malformed input.
    """
    return _parse_one(_Reader(_to_bytes(source)))


def parse_multi_file(source: Source) -> list[FileDiff]:
    """Parse a multi-file diff, stopping quietly at the first malformed file."""
    reader = _Reader(_to_bytes(source))
    files = []
    while True:
        try:
            fd = _parse_one(reader)
        except DiffParseError:
            break
        if fd is None:
            break
        files.append(fd)
    return files