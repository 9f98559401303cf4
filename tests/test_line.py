"""Tests for macro.relay.line.LineAssembler."""

from __future__ import annotations

from macro.relay.line import LineAssembler, LineState


def lines(assembler: LineAssembler, data: bytes) -> list[bytes]:
    return list(assembler.feed(data))


class TestLineAssemblerBasics:
    def test_single_line(self) -> None:
        asm = LineAssembler()
        assert lines(asm, b"ls -la\n") == [b"ls -la"]
        assert asm.state is LineState.AWAITING_LINE

    def test_multiple_lines_in_one_chunk(self) -> None:
        asm = LineAssembler()
        assert lines(asm, b"a\nb\nc\n") == [b"a", b"b", b"c"]

    def test_line_split_across_chunks(self) -> None:
        asm = LineAssembler()
        assert lines(asm, b"hel") == []
        assert asm.state is LineState.PROCESSING_LINE
        assert asm.pending == b"hel"
        assert lines(asm, b"lo\n") == [b"hello"]

    def test_empty_line(self) -> None:
        asm = LineAssembler()
        assert lines(asm, b"\n") == [b""]

    def test_leading_spaces_dropped(self) -> None:
        asm = LineAssembler()
        assert lines(asm, b"    ls  -l\n") == [b"ls  -l"]

    def test_only_spaces_is_empty_line(self) -> None:
        asm = LineAssembler()
        assert lines(asm, b"     \n") == [b""]

    def test_control_bytes_become_spaces(self) -> None:
        asm = LineAssembler()
        assert lines(asm, b"a\tb\x00c\r\n") == [b"a b c "]

    def test_leading_control_bytes_dropped(self) -> None:
        asm = LineAssembler()
        assert lines(asm, b"\t\x1bls\n") == [b"ls"]

    def test_high_bytes_kept(self) -> None:
        asm = LineAssembler()
        assert lines(asm, "café\n".encode()) == ["café".encode()]


class TestLineAssemblerOverflow:
    def test_longest_line_fits(self) -> None:
        asm = LineAssembler(max_length=5)
        assert lines(asm, b"abcd\n") == [b"abcd"]

    def test_overflow_discards_whole_line(self) -> None:
        calls: list[int] = []
        asm = LineAssembler(max_length=5, on_overflow=lambda: calls.append(1))
        assert lines(asm, b"abcdefgh\nok\n") == [b"ok"]
        assert calls == [1]

    def test_flushing_state_until_newline(self) -> None:
        asm = LineAssembler(max_length=4)
        assert lines(asm, b"abcdef") == []
        assert asm.state is LineState.FLUSHING
        assert asm.pending == b""
        assert lines(asm, b"more") == []
        assert lines(asm, b"\n") == []
        assert asm.state is LineState.AWAITING_LINE

    def test_overflow_reported_once_per_line(self) -> None:
        calls: list[int] = []
        asm = LineAssembler(max_length=3, on_overflow=lambda: calls.append(1))
        lines(asm, b"x" * 100 + b"\n")
        assert calls == [1]

    def test_leading_spaces_do_not_count(self) -> None:
        asm = LineAssembler(max_length=4)
        assert lines(asm, b"          abc\n") == [b"abc"]


class TestLineAssemblerPending:
    def test_take_pending(self) -> None:
        asm = LineAssembler()
        lines(asm, b"partial")
        assert asm.take_pending() == b"partial"
        assert asm.state is LineState.AWAITING_LINE
        assert asm.pending == b""

    def test_take_pending_when_idle(self) -> None:
        asm = LineAssembler()
        assert asm.take_pending() is None

    def test_take_pending_while_flushing(self) -> None:
        asm = LineAssembler(max_length=3)
        lines(asm, b"abcdef")
        assert asm.take_pending() is None
        assert asm.state is LineState.AWAITING_LINE

    def test_reset(self) -> None:
        asm = LineAssembler()
        lines(asm, b"abc")
        asm.reset()
        assert lines(asm, b"d\n") == [b"d"]
