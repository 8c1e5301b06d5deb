"""Streaming writer for the metrics mapping JSON document."""

import json
from typing import Iterable, TextIO

from .metrics import MetricRecord


HEADER = '{\n    "metrics": [\n'
FOOTER = '\n    ]\n}\n'
RECORD_SEPARATOR = ',\n'

_RECORD_INDENT = " " * 8
_FIELD_INDENT = " " * 12


def render_record(record: MetricRecord) -> str:
    """
    Render a single record as an indented JSON object.

    Args:
        record: Metric record to render

    Returns:
        str: JSON object text without trailing newline
    """
    lines = [
        f"{_FIELD_INDENT}{json.dumps(key)}: {json.dumps(value)}"
        for key, value in record.to_fields()
    ]
    return (
        f"{_RECORD_INDENT}{{\n"
        + ",\n".join(lines)
        + f"\n{_RECORD_INDENT}}}"
    )


class MetricsDocumentWriter:
    """
    Writes the {"metrics": [...]} document record by record.

    Records are written as soon as they arrive; a separator precedes every
    record except the first so the document stays valid JSON.
    """

    def __init__(self, stream: TextIO):
        """
        Initialize writer.

        Args:
            stream: Text stream receiving the document (usually stdout)
        """
        self.stream = stream
        self.count = 0
        self._started = False
        self._finished = False

    def begin(self) -> None:
        """Write the document header."""
        if self._started:
            raise RuntimeError("Document already started")
        self._started = True
        self.stream.write(HEADER)

    def write(self, record: MetricRecord) -> None:
        """Write one record."""
        if not self._started or self._finished:
            raise RuntimeError("Document is not open for writing")
        if self.count:
            self.stream.write(RECORD_SEPARATOR)
        self.stream.write(render_record(record))
        self.count += 1

    def write_all(self, records: Iterable[MetricRecord]) -> int:
        """Write every record of an iterable; return how many were written."""
        written = 0
        for record in records:
            self.write(record)
            written += 1
        return written

    def finish(self) -> None:
        """Write the document footer and flush."""
        if not self._started:
            raise RuntimeError("Document was never started")
        if self._finished:
            return
        self._finished = True
        self.stream.write(FOOTER)
        self.stream.flush()
