import logging

import pytest

from ranging_pipeline.ingestion import LineIngestor, MalformedRecordError, open_line_source, parse_record
from ranging_pipeline.samples import SampleWindow


def test_parse_record_accepts_sensor_format() -> None:
    assert parse_record("5.23 -61") == (5.23, -61)
    assert parse_record("  12.00 -48\r\n") == (12.0, -48)
    assert parse_record("3 -70") == (3.0, -70)


@pytest.mark.parametrize(
    "line",
    ["", "5.23", "5.23 -61 7", "abc -61", "5.23 -61.5", "5.23  -61", "nan -50", "1" * 70 + ".0 -50"],
)
def test_parse_record_rejects_malformed(line: str) -> None:
    with pytest.raises(MalformedRecordError):
        parse_record(line)


def test_feed_line_appends_with_clock(caplog: pytest.LogCaptureFixture) -> None:
    window = SampleWindow(window_size=4)
    ingestor = LineIngestor(window, clock_ms=lambda: 1234)

    assert ingestor.feed_line("5.00 -60")
    with caplog.at_level(logging.WARNING):
        assert not ingestor.feed_line("garbage")

    snapshot = window.snapshot()
    assert len(snapshot) == 1
    assert snapshot[0].timestamp_ms == 1234
    assert snapshot[0].signal_strength == -60.0
    assert ingestor.accepted == 1
    assert ingestor.dropped == 1
    assert "record_dropped" in caplog.text


def test_feed_bytes_carries_partial_lines() -> None:
    window = SampleWindow(window_size=10)
    records: list[None] = []
    ingestor = LineIngestor(window, clock_ms=lambda: 0, on_record=lambda: records.append(None))

    assert ingestor.feed_bytes(b"1.00 -50\r\n2.0") == 1
    assert ingestor.feed_bytes(b"0 -51\r\nbad\r\n3.00 -52\n") == 2

    assert [sample.distance for sample in window.snapshot()] == [1.0, 2.0, 3.0]
    assert len(records) == 3
    assert ingestor.dropped == 1


def test_feed_bytes_discards_unterminated_runaway() -> None:
    window = SampleWindow(window_size=10)
    ingestor = LineIngestor(window, clock_ms=lambda: 0)
    ingestor.feed_bytes(b"9" * 400)
    assert ingestor.dropped == 1
    assert ingestor.feed_bytes(b"\n1.00 -50\n") == 1


def test_open_line_source_reads_file(tmp_path) -> None:
    path = tmp_path / "capture.txt"
    path.write_text("1.00 -50\n2.00 -51\n")
    readline = open_line_source(str(path))
    assert readline() == "1.00 -50\n"
    assert readline() == "2.00 -51\n"
    assert readline() == ""
