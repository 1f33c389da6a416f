"""Tests for the line source — numbering, byte offsets, pushback."""

import io

import pytest

from patchscan.scanner.line_source import LineSource


class TestReading:
    def test_numbers_and_positions(self):
        src = LineSource(io.BytesIO(b"one\ntwo\nthree"))
        lines = [src.next_line() for _ in range(3)]
        assert [l.number for l in lines] == [1, 2, 3]
        assert [l.position for l in lines] == [0, 4, 8]
        assert [l.text for l in lines] == ["one", "two", "three"]
        assert lines[2].raw == "three"
        assert src.next_line() is None
        assert src.bytes_read == 13

    def test_text_stream_counts_encoded_bytes(self):
        src = LineSource(io.StringIO("é\nx\n"))
        src.next_line()
        assert src.next_line().position == 3

    def test_carriage_return_kept_in_text(self):
        src = LineSource(io.BytesIO(b"a\r\n"))
        line = src.next_line()
        assert line.text == "a\r"
        assert line.raw == "a\r\n"

    def test_empty_stream(self):
        assert LineSource(io.BytesIO(b"")).next_line() is None


class TestPushback:
    def test_unread_returns_same_line(self):
        src = LineSource(io.BytesIO(b"a\nb\n"))
        first = src.next_line()
        src.unread(first)
        assert src.has_pending
        assert src.next_line() == first
        assert src.next_line().text == "b"
        assert src.lines_read == 2

    def test_only_one_slot(self):
        src = LineSource(io.BytesIO(b"a\nb\n"))
        a = src.next_line()
        b = src.next_line()
        src.unread(b)
        with pytest.raises(ValueError):
            src.unread(a)
