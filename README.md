# lintreview

Building blocks for taking the output of compilers and linters and reviewing it
against a code change.

The package has four modules:

- `lintreview.udiff` parses unified diffs, including `git diff` output with its
  extended headers, into `FileDiff`, `Hunk` and `Line` objects. Each line
  records its line number in the old file (`lnum_old`), its line number in the
  new file (`lnum_new`) and its position in the diff (`lnum_diff`). Paths that
  git quotes C-style are unquoted; `unquote_c_style` is also available on its
  own.
- `lintreview.cienv` reads build information from CI environment variables.
  It knows GitHub Actions (through the event file), Travis CI, CircleCI,
  drone.io, GitLab CI, Bitbucket Pipelines and Gerrit.
- `lintreview.diffservice` provides diff sources. `DiffString` returns a fixed
  text. `DiffCmd` runs a command such as `git diff` once and keeps its output.
  `EmptyDiff` returns nothing. Each has a `diff()` method returning bytes and a
  `strip` attribute.
- `lintreview.comment` holds the diagnostic data classes (`Position`,
  `Location`, `Diagnostic`, `FilteredDiagnostic`, `Comment`) and writers for
  them. `RawCommentWriter` writes the tool's original output.
  `UnifiedCommentWriter` writes `path:line:col: [tool] message`.
  `MultiCommentService` sends each comment to several services.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Parsing a diff

```python
from lintreview.udiff import parse_multi_file, LineType

with open("change.diff", encoding="utf-8") as fh:
    for file_diff in parse_multi_file(fh.read()):
        for hunk in file_diff.hunks:
            for line in hunk.lines:
                if line.type is LineType.ADDED:
                    print(file_diff.path_new, line.lnum_new, line.content)
```

`parse_multi_file` and `parse_file` accept text, bytes or an open file.

`parse_file` parses a single file's diff and returns `None` when there is
nothing to parse. On malformed input it raises a subclass of `DiffParseError`
(itself a `ValueError`): `NoNewFileError`, `NoHunksError` or
`InvalidHunkRangeError`. `parse_multi_file` does not raise on malformed input;
it returns the files parsed before the first malformed one.

## Reading CI build information

```python
from lintreview.cienv import get_build_info, CIEnvError

try:
    info, is_pull_request = get_build_info()
except CIEnvError as err:
    print(f"not enough CI information: {err}")
else:
    print(info.owner, info.repo, info.sha, info.pull_request, info.branch)
```

When no CI service sets them, you can give the values yourself with
`CI_REPO_OWNER`, `CI_REPO_NAME`, `CI_COMMIT`, `CI_BRANCH` and
`CI_PULL_REQUEST`. Inside GitHub Actions the values come from the file named by
`GITHUB_EVENT_PATH`; `build_info_from_github_event_path` and
`load_github_event_from_path` read such a file directly.

`get_gerrit_build_info` reads `GERRIT_CHANGE_ID`, `GERRIT_REVISION_ID` and
`GERRIT_BRANCH`, raising `CIEnvError` when one is missing.

Other helpers: `is_in_github_action`, `has_read_only_permission_github_token`,
`is_in_bitbucket_pipeline` and `is_in_bitbucket_pipe`.

## Getting a diff

```python
from lintreview.diffservice import DiffCmd

source = DiffCmd(["git", "diff"], strip=1)
data = source.diff()  # runs the command on the first call only
```

A non-zero exit status is accepted when the command printed something, since
`git diff` may exit with 1 when there are differences. With no output and a
non-zero status, `subprocess.CalledProcessError` is raised.

## Writing comments

```python
import sys
from lintreview.comment import (
    Comment, Diagnostic, FilteredDiagnostic, Location, Position,
    UnifiedCommentWriter,
)

diagnostic = Diagnostic(
    message="unused variable",
    location=Location(path="app.py", start=Position(line=3, column=5)),
)
writer = UnifiedCommentWriter(sys.stdout)
writer.post(Comment(result=FilteredDiagnostic(diagnostic=diagnostic), tool_name="pyflakes"))
# app.py:3:5: [pyflakes] unused variable
```

The line and column are left out when they are 0. `MultiCommentService.flush()`
calls `flush()` on each of its services that has one.

## What this package does not do

It is a library, not a program: it installs no command. It does not run
linters, parse their output into diagnostics, decide which diagnostics fall
inside a diff, or post comments to any code-hosting service. Those steps are
left to the code that uses these building blocks.