"""Tests for include/exclude filtering."""

from pathlib import Path

from patchscan.tools.patterns import FileFilter, read_pattern_file


class TestFileFilter:
    def test_inactive_matches_everything(self):
        assert FileFilter().matches("anything")
        assert FileFilter().matches(None)

    def test_include(self):
        f = FileFilter(include=["*.py"])
        assert f.matches("src/app.py")
        assert not f.matches("README.md")

    def test_exclude_wins(self):
        f = FileFilter(include=["src/*"], exclude=["*.md"])
        assert f.matches("src/app.py")
        assert not f.matches("src/notes.md")

    def test_strip_match(self):
        f = FileFilter(include=["src/*"], strip_match=1)
        assert f.matches("a/src/app.py")
        assert not f.matches("src/app.py")

    def test_star_crosses_directories(self):
        assert FileFilter(include=["*app.py"]).matches("deep/dir/app.py")


class TestPatternFiles:
    def test_read_skips_blank_lines(self, tmp_path: Path):
        path = tmp_path / "pats"
        path.write_text("*.c\n\n  \n*.h\n")
        assert read_pattern_file(path) == ["*.c", "*.h"]

    def test_build_merges_files(self, tmp_path: Path):
        inc = tmp_path / "inc"
        inc.write_text("*.c\n")
        exc = tmp_path / "exc"
        exc.write_text("test_*\n")
        f = FileFilter.build(include=["*.h"], include_files=[inc], exclude_files=[exc])
        assert f.include == ["*.h", "*.c"]
        assert f.matches("main.c")
        assert not f.matches("test_main.c")
