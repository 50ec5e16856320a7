"""Sources of the diff that results are filtered against."""

from __future__ import annotations

import subprocess
import threading
from collections.abc import Sequence


class DiffString:
    """A diff given as text."""

    def __init__(self, diff: str, strip: int) -> None:
        self._diff = diff.encode("utf-8")
        self.strip = strip

    def diff(self) -> bytes:
        """Return the diff."""
        return self._diff


class DiffCmd:
    """A diff produced by running a command, run at most once."""

    def __init__(self, cmd: Sequence[str], strip: int) -> None:
        self.cmd = list(cmd)
        self.strip = strip
        self._out: bytes | None = None
        self._lock = threading.Lock()

    def diff(self) -> bytes:
        """Return the command's output, running the command on first use.

        A non-zero exit status is ignored when the command printed something,
        since ``git diff`` exits with 1 when differences exist.
        """
        with self._lock:
            if self._out is not None:
                return self._out
            proc = subprocess.run(self.cmd, capture_output=True, check=False)
            if proc.returncode != 0 and not proc.stdout:
                raise subprocess.CalledProcessError(
                    proc.returncode, self.cmd, proc.stdout, proc.stderr
                )
            self._out = proc.stdout
            return self._out


class EmptyDiff:
    """A diff with no content."""

    strip = 0

    def diff(self) -> bytes:
        """Return an empty diff."""
        return b""