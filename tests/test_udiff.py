import io

import pytest

from lintreview.udiff import (
    DiffParseError,
    FileDiff,
    InvalidHunkRangeError,
    LineType,
    NoHunksError,
    NoNewFileError,
    parse_file,
    parse_multi_file,
    unquote_c_style,
)

GOLINT_DIFF = "\n".join(
    [
        "diff --git a/golint.old.go b/golint.new.go",
        "index 34cacb9..a727dd3 100644",
        "--- a/golint.old.go",
        "+++ b/golint.new.go",
        "@@ -2,6 +2,12 @@ package test",
        " ",
        " var V int",
        " ",
        "+var NewError1 int",
        "+",
        " // invalid func comment",
        " func F() {",
        " }",
        "+",
        "+// invalid func comment2",
        "+func F2() {",
        "+}",
        "",
    ]
)

TWO_HUNKS = "\n".join(
    [
        "--- a",
        "+++ b",
        "@@ -1,2 +1,2 @@",
        "-x",
        "+y",
        " z",
        "@@ -10,1 +10,2 @@",
        " p",
        "+q",
        "",
    ]
)


def _count(hunk, *types):
    return sum(1 for line in hunk.lines if line.type in types)


def test_golint_headers():
    fd = parse_file(GOLINT_DIFF)
    assert fd.extended == [
        "diff --git a/golint.old.go b/golint.new.go",
        "index 34cacb9..a727dd3 100644",
    ]
    assert fd.path_old == "a/golint.old.go"
    assert fd.path_new == "b/golint.new.go"
    assert fd.time_old == ""
    assert fd.time_new == ""


def test_golint_hunk():
    fd = parse_file(GOLINT_DIFF)
    assert len(fd.hunks) == 1
    hunk = fd.hunks[0]
    assert (hunk.start_line_old, hunk.line_length_old) == (2, 6)
    assert (hunk.start_line_new, hunk.line_length_new) == (2, 12)
    assert hunk.section == "package test"
    assert _count(hunk, LineType.UNCHANGED, LineType.DELETED) == hunk.line_length_old
    assert _count(hunk, LineType.UNCHANGED, LineType.ADDED) == hunk.line_length_new
    assert [line.lnum_diff for line in hunk.lines] == list(range(1, len(hunk.lines) + 1))
    added = [line for line in hunk.lines if line.type is LineType.ADDED]
    assert added[0].content == "var NewError1 int"
    assert hunk.lines[1].content == "var V int"


def test_line_numbers_follow_types():
    hunk = parse_file(GOLINT_DIFF).hunks[0]
    olds = [line.lnum_old for line in hunk.lines if line.type is not LineType.ADDED]
    news = [line.lnum_new for line in hunk.lines if line.type is not LineType.DELETED]
    assert olds == list(range(hunk.start_line_old, hunk.start_line_old + hunk.line_length_old))
    assert news == list(range(hunk.start_line_new, hunk.start_line_new + hunk.line_length_new))
    for line in hunk.lines:
        if line.type is LineType.ADDED:
            assert line.lnum_old == 0
        if line.type is LineType.DELETED:
            assert line.lnum_new == 0


def test_lnum_diff_counts_hunk_headers():
    fd = parse_file(TWO_HUNKS)
    first, second = fd.hunks
    assert second.lines[0].lnum_diff == first.lines[-1].lnum_diff + 2
    assert second.start_line_old == 10
    assert [line.content for line in second.lines] == ["p", "q"]


def test_multi_file_restarts_positions():
    text = TWO_HUNKS + "--- c\n+++ d\n@@ -1 +1 @@\n-m\n+n\n"
    files = parse_multi_file(text)
    assert [(f.path_old, f.path_new) for f in files] == [("a", "b"), ("c", "d")]
    assert files[1].hunks[0].lines[0].lnum_diff == 1


def test_default_hunk_length_is_one():
    fd = parse_file("--- a\n+++ b\n@@ -3 +3 @@\n-a\n+b\n")
    hunk = fd.hunks[0]
    assert hunk.line_length_old == 1
    assert hunk.line_length_new == 1
    assert hunk.start_line_new == 3


def test_timestamps():
    text = (
        "--- sample.old.txt\t2016-10-13 05:09:35.820791185 +0900\n"
        "+++ sample.new.txt\t2016-10-13 05:15:26.839245048 +0900\n"
        "@@ -1 +1 @@\n-a\n+b\n"
    )
    fd = parse_file(text)
    assert fd.path_old == "sample.old.txt"
    assert fd.time_old == "2016-10-13 05:09:35.820791185 +0900"
    assert fd.path_new == "sample.new.txt"
    assert fd.time_new == "2016-10-13 05:15:26.839245048 +0900"


def test_quoted_paths_are_unquoted():
    text = '--- "a/tab\\there"\n+++ "b/tab\\there"\n@@ -1 +1 @@\n-a\n+b\n'
    fd = parse_file(text)
    assert fd.path_old == "a/tab\there"
    assert fd.path_new == "b/tab\there"


def test_no_newline_marker_is_skipped():
    text = "--- a\n+++ b\n@@ -1 +1 @@\n-a\n\\ No newline at end of file\n+b\n\\ No newline at end of file\n"
    fd = parse_file(text)
    assert [line.content for line in fd.hunks[0].lines] == ["a", "b"]
    assert [line.type for line in fd.hunks[0].lines] == [LineType.DELETED, LineType.ADDED]


def test_crlf_line_endings():
    fd = parse_file("--- a\r\n+++ b\r\n@@ -1 +1 @@\r\n-old\r\n+new\r\n")
    assert fd.path_new == "b"
    assert [line.content for line in fd.hunks[0].lines] == ["old", "new"]


def test_empty_input():
    assert parse_file("") is None
    assert parse_multi_file("") == []


def test_deleted_empty_file_at_end():
    text = "diff --git a/x b/x\ndeleted file mode 100644\nindex e69de29..0000000\n"
    fd = parse_file(text)
    assert fd.extended == text.splitlines()
    assert fd.hunks == []
    assert fd.path_old == ""


def test_file_without_hunks_followed_by_diff():
    text = (
        "diff --git a/x b/x\ndeleted file mode 100644\n"
        "diff --git a/y b/y\n--- a/y\n+++ b/y\n@@ -1 +1 @@\n-a\n+b\n"
    )
    files = parse_multi_file(text)
    assert len(files) == 2
    assert files[0].hunks == []
    assert files[1].path_new == "b/y"
    assert len(files[1].hunks) == 1


def test_invalid_hunk_range():
    line = "@@ -x,1 +1 @@"
    with pytest.raises(InvalidHunkRangeError) as info:
        parse_file(f"--- a\n+++ b\n{line}\n-a\n")
    assert info.value.invalid == line
    assert str(info.value) == f"invalid hunk range: {line}"


@pytest.mark.parametrize("line", ["@@ -1 +1", "@@ 1 +1 @@", "@@ -1 1 @@", "@@ -1,a +1 @@", "@@ -1_0 +1 @@"])
def test_invalid_hunk_range_variants(line):
    with pytest.raises(InvalidHunkRangeError):
        parse_file(f"--- a\n+++ b\n{line}\n")


def test_missing_new_file_line():
    with pytest.raises(NoNewFileError):
        parse_file("--- a\n@@ -1 +1 @@\n")


def test_missing_hunks():
    with pytest.raises(NoHunksError):
        parse_file("--- a\n+++ b\n")
    with pytest.raises(DiffParseError):
        parse_file("--- a\n+++ b\nnot a hunk\n")


def test_multi_file_stops_at_error():
    files = parse_multi_file(TWO_HUNKS + "--- c\nbroken\n")
    assert len(files) == 1
    assert files[0].path_new == "b"


def test_accepts_bytes_and_files():
    expected = parse_multi_file(GOLINT_DIFF)
    assert parse_multi_file(GOLINT_DIFF.encode()) == expected
    assert parse_multi_file(io.StringIO(GOLINT_DIFF)) == expected
    assert parse_multi_file(io.BytesIO(GOLINT_DIFF.encode())) == expected
    assert isinstance(expected[0], FileDiff)


def test_unquote_plain_text_unchanged():
    assert unquote_c_style("a/b c.txt") == "a/b c.txt"


def test_unquote_escapes():
    assert unquote_c_style('"a\\tb\\nc\\\\d\\"e"') == 'a\tb\nc\\d"e'


def test_unquote_octal_utf8():
    assert unquote_c_style('"\\343\\201\\202"') == "\u3042"


def test_unquote_invalid_octal_kept_as_digits():
    assert unquote_c_style('"x\\999"') == "x999"


def test_unquote_short_octal_at_end():
    assert unquote_c_style('"x\\12"') == "x12"
    assert unquote_c_style('"x\\') == "x"
    assert unquote_c_style('"') == ""