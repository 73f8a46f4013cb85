from __future__ import annotations

from nmeabridge.ingestion.assembler import StreamAssembler
from nmeabridge.ingestion.decoder import decode
from nmeabridge.models import DepthRecord

DBT = "$IIDBT,,f,003.5,M,,F*17"


def test_sentence_split_across_chunks_decodes() -> None:
    assembler = StreamAssembler()

    assert assembler.feed(DBT[:9]) == []
    assert assembler.pending == DBT[:9]
    lines = assembler.feed(DBT[9:] + "\r\n")

    assert lines == [DBT]
    assert isinstance(decode(lines[0]), DepthRecord)
    assert assembler.pending == ""


def test_every_split_point_yields_one_line() -> None:
    for cut in range(1, len(DBT)):
        assembler = StreamAssembler()
        first = assembler.feed(DBT[:cut].encode("ascii"))
        second = assembler.feed((DBT[cut:] + "\n").encode("ascii"))

        assert first == []
        assert second == [DBT]


def test_incomplete_trailing_line_held_back() -> None:
    assembler = StreamAssembler()

    lines = assembler.feed(f"{DBT}\r\n$SDDPT,4.2")

    assert lines == [DBT]
    assert assembler.pending == "$SDDPT,4.2"


def test_blank_lines_dropped() -> None:
    assembler = StreamAssembler()

    assert assembler.feed("\r\n\n   \n" + DBT + "\n\n") == [DBT]


def test_several_lines_in_one_chunk_keep_order() -> None:
    assembler = StreamAssembler()

    lines = assembler.feed("$A*00\n$B*00\n$C*00\n")

    assert lines == ["$A*00", "$B*00", "$C*00"]


def test_non_ascii_bytes_replaced() -> None:
    assembler = StreamAssembler()

    lines = assembler.feed(b"\xff" + DBT.encode("ascii") + b"\n")

    assert len(lines) == 1
    assert lines[0].endswith(DBT)
    assert decode(lines[0]) is None


def test_reset_discards_fragment() -> None:
    assembler = StreamAssembler()
    assembler.feed("$IIDBT,,f,0")

    assembler.reset()

    assert assembler.pending == ""
    assert assembler.feed("03.5,M,,F*17\n") == ["03.5,M,,F*17"]
