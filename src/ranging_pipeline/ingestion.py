"""Ingestion boundary: text records from the sensor link into the window.

The sensor emits one ``"<distance> <rssi>"`` record per line (for example
``"5.23 -61"``). Anything that does not parse is logged and dropped before it
reaches the window.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Callable

from pydantic import ValidationError

from .models import RangeRecordModel
from .samples import Sample, SampleWindow

MAX_RECORD_BYTES = 64
RECORD_PATTERN = re.compile(r"^-?\d+(?:\.\d+)? -?\d+$")


class MalformedRecordError(ValueError):
    """Raised when a text record cannot be turned into a sample."""


def parse_record(line: str) -> tuple[float, int]:
    """Parse a ``"<float> <integer>"`` record.

    Args:
        line: Raw text line, surrounding whitespace allowed.

    Returns:
        A tuple of (distance, signal_strength).

    Raises:
        MalformedRecordError: If the record is oversized, does not match the
            expected format, or carries non-finite values.
    """

    record = line.strip()
    if len(record.encode("utf-8", errors="replace")) > MAX_RECORD_BYTES:
        raise MalformedRecordError(f"record exceeds {MAX_RECORD_BYTES} bytes")
    if not RECORD_PATTERN.match(record):
        raise MalformedRecordError(f"unexpected record format: {record!r}")
    distance, signal_strength = record.split(" ")
    try:
        model = RangeRecordModel.model_validate({"distance": distance, "signal_strength": signal_strength})
    except ValidationError as exc:
        raise MalformedRecordError(str(exc)) from exc
    return model.distance, model.signal_strength


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


class LineIngestor:
    """Feed text lines or raw byte chunks into a SampleWindow."""

    def __init__(
        self,
        window: SampleWindow,
        clock_ms: Callable[[], int] | None = None,
        logger: logging.Logger | None = None,
        on_record: Callable[[], None] | None = None,
    ) -> None:
        self._window = window
        self._clock_ms = clock_ms or _wall_clock_ms
        self._logger = logger or logging.getLogger(__name__)
        self._on_record = on_record
        self._pending = ""
        self.accepted = 0
        self.dropped = 0

    def feed_line(self, line: str) -> bool:
        """Parse one record and append it; returns False if it was dropped."""

        if not line.strip():
            return False
        try:
            distance, signal_strength = parse_record(line)
        except MalformedRecordError as exc:
            self.dropped += 1
            self._logger.warning("record_dropped", extra={"record": line[:MAX_RECORD_BYTES], "error": str(exc)})
            return False

        sample = Sample(distance=distance, signal_strength=float(signal_strength), timestamp_ms=self._clock_ms())
        if not self._window.append(sample):
            self.dropped += 1
            return False
        self.accepted += 1
        if self._on_record:
            self._on_record()
        return True

    def feed_bytes(self, chunk: bytes) -> int:
        """Decode a transport chunk and ingest every complete line in it.

        A trailing partial line is kept and completed by the next chunk.

        Returns:
            Number of samples appended.
        """

        self._pending += chunk.decode("ascii", errors="ignore")
        lines = self._pending.replace("\r\n", "\n").split("\n")
        self._pending = lines.pop()
        if len(self._pending) > MAX_RECORD_BYTES * 4:
            # A newline never arrived; discard instead of growing without bound.
            self.dropped += 1
            self._logger.warning(
                "record_dropped",
                extra={"record": self._pending[:MAX_RECORD_BYTES], "error": "unterminated record"},
            )
            self._pending = ""
        return sum(1 for line in lines if self.feed_line(line))


def open_line_source(path: str) -> Callable[[], str]:
    """Create a line source callable for serial or USB devices."""

    stream = open(path, "r", encoding="ascii", errors="ignore", buffering=1)
    return stream.readline
