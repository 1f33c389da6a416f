"""Tests for header classification, order validation and field parsing."""

import pytest

from patchscan.scanner.headers import (
    detect_patch_type,
    extract_filename,
    is_header_continuation,
    is_patch_start,
    parse_headers,
    parse_mode,
    parse_percentage,
    validate_headers,
)
from patchscan.scanner.models import GitDiffType, PatchType


def no_peek():
    raise AssertionError("peek should not be needed")


def peek_returning(line):
    return lambda: line


class TestClassification:
    @pytest.mark.parametrize("line", [
        "diff --git a/x b/x",
        "diff -u a b",
        "--- a/file.c",
        "*** a/file.c\t2024-01-01",
    ])
    def test_patch_starts(self, line):
        assert is_patch_start(line)

    @pytest.mark.parametrize("line", [
        "--- 1,3 ----",
        "*** 1,3 ****",
        "+++ b/file.c",
        "index 123..456",
        "hello",
    ])
    def test_not_patch_starts(self, line):
        assert not is_patch_start(line)

    def test_continuations(self):
        assert is_header_continuation("+++ b/x")
        assert is_header_continuation("index 1..2 100644")
        assert is_header_continuation("similarity index 90%")
        assert is_header_continuation("Binary files a/x and b/x differ")
        assert not is_header_continuation("@@ -1 +1 @@")
        assert not is_header_continuation("***************")
        assert not is_header_continuation("--- 1,2 ----")

    def test_detect_type(self):
        assert detect_patch_type(["--- a", "+++ b"]) is PatchType.UNIFIED
        assert detect_patch_type(["*** a", "--- b"]) is PatchType.CONTEXT
        assert detect_patch_type(["diff --git a/x b/x", "--- a/x"]) is PatchType.GIT_EXTENDED


class TestValidation:
    def test_unified_complete(self):
        assert validate_headers(["--- a", "+++ b"], no_peek)

    def test_unified_incomplete(self):
        assert not validate_headers(["--- a"], no_peek)

    def test_unified_wrong_order(self):
        assert not validate_headers(["--- a", "+++ b", "--- c"], no_peek)

    def test_context_complete(self):
        assert validate_headers(["*** a", "--- b"], no_peek)

    def test_git_with_file_lines(self):
        lines = ["diff --git a/x b/x", "index 1..2 100644", "--- a/x", "+++ b/x"]
        assert validate_headers(lines, no_peek)
        assert not validate_headers(lines[:3], no_peek)

    def test_git_index_only_is_incomplete(self):
        assert not validate_headers(["diff --git a/x b/x", "index 1..2"], no_peek)

    def test_git_metadata_completes_at_eof(self):
        lines = ["diff --git a/x b/x", "old mode 100644", "new mode 100755"]
        assert validate_headers(lines, peek_returning(None))

    def test_git_metadata_waits_for_more_headers(self):
        lines = ["diff --git a/x b/x", "new file mode 100644"]
        assert not validate_headers(lines, peek_returning("index 0000000..e69de29"))
        assert not validate_headers(lines, peek_returning("--- /dev/null"))
        assert not validate_headers(
            lines, peek_returning("Binary files /dev/null and b/x differ")
        )

    def test_git_metadata_completes_before_next_file(self):
        lines = ["diff --git a/x b/x", "rename from x", "rename to y"]
        assert validate_headers(lines, peek_returning("diff --git a/z b/z"))
        assert validate_headers(lines, peek_returning("@@ -1 +1 @@"))

    def test_git_binary_completes(self):
        lines = ["diff --git a/x b/x", "index 1..2", "GIT binary patch"]
        assert validate_headers(lines, no_peek)

    def test_git_rejects_stray_line(self):
        lines = ["diff --git a/x b/x", "garbage", "--- a/x", "+++ b/x"]
        assert not validate_headers(lines, no_peek)


class TestFieldParsing:
    @pytest.mark.parametrize("line,expected", [
        ("--- a/foo.c\t2024-01-01 10:00:00.000000000 +0000", "a/foo.c"),
        ("--- a/foo.c 2024-01-01 10:00:00", "a/foo.c"),
        ("--- foo.c\tThu Jan  1 00:00:00 1970", "foo.c"),
        ("--- name with spaces.txt\tsomething", "name with spaces.txt"),
        ("--- plain.txt", "plain.txt"),
        ("--- plain.txt\r", "plain.txt"),
    ])
    def test_extract_filename(self, line, expected):
        assert extract_filename(line, 4) == expected

    def test_parse_mode(self):
        assert parse_mode("new file mode 100644") == 0o100644
        assert parse_mode("old mode 100755\r") == 0o100755
        assert parse_mode("new mode 10064x") is None
        assert parse_mode("new mode 9999999") is None

    def test_parse_percentage(self):
        assert parse_percentage("similarity index 87%", "similarity index ") == 87
        assert parse_percentage("similarity index 187%", "similarity index ") is None
        assert parse_percentage("similarity index lots", "similarity index ") is None

    def test_unified_names(self):
        h = parse_headers(["--- a/x.c\t2024-01-01 00:00:00", "+++ b/x.c\t2024-01-02 00:00:00"])
        assert h.type is PatchType.UNIFIED
        assert (h.old_name, h.new_name) == ("a/x.c", "b/x.c")

    def test_context_names(self):
        h = parse_headers(["*** old.c\t2024-01-01 00:00:00", "--- new.c\t2024-01-02 00:00:00"])
        assert h.type is PatchType.CONTEXT
        assert (h.old_name, h.new_name) == ("old.c", "new.c")

    def test_git_index_and_names(self):
        h = parse_headers([
            "diff --git a/src/x.py b/src/x.py",
            "index 83db48f..bf269f4 100644",
            "--- a/src/x.py",
            "+++ b/src/x.py",
        ], start_line=7, start_position=120)
        assert h.git_type is GitDiffType.NORMAL
        assert (h.git_old_name, h.git_new_name) == ("a/src/x.py", "b/src/x.py")
        assert (h.old_hash, h.new_hash) == ("83db48f", "bf269f4")
        assert (h.start_line, h.start_position) == (7, 120)

    def test_bad_mode_stays_none(self):
        h = parse_headers(["diff --git a/x b/x", "old mode abc", "new mode 100755"])
        assert h.old_mode is None
        assert h.new_mode == 0o100755
        assert h.git_type is GitDiffType.NORMAL

    def test_same_modes_not_a_mode_change(self):
        h = parse_headers(["diff --git a/x b/x", "old mode 100644", "new mode 100644"])
        assert h.git_type is GitDiffType.NORMAL

    def test_rename_beats_mode_change(self):
        h = parse_headers([
            "diff --git a/x b/y",
            "old mode 100644",
            "new mode 100755",
            "similarity index 80%",
            "rename from x",
            "rename to y",
        ])
        assert h.git_type is GitDiffType.RENAME
        assert (h.old_name, h.new_name) == ("x", "y")

    def test_deleted_file_names(self):
        h = parse_headers(["diff --git a/x b/x", "deleted file mode 100644"])
        assert h.git_type is GitDiffType.DELETED_FILE
        assert (h.old_name, h.new_name) == ("a/x", "/dev/null")
