# src/cauchy_engine/run_report.py
"""Append-only text trace of a single integrator run."""

from __future__ import annotations

from collections.abc import Iterable

from .errors import ReportClosedError

_REPORT_CLOSED_ERROR_MSG = "RunReport is finalized; no further entries may be added"

SEPARATOR = "*" * 65


class RunReport:
    """Ordered, append-only buffer of report entries.

    Entries are collected while a run is in progress. Once :meth:`finalize`
    has been called the buffer is read-only and the joined text is cached.
    """

    def __init__(self, header: str | None = None) -> None:
        """Initialize RunReport.

        Args:
            header: Optional first entry.
        """
        self._entries: list[str] = []
        self._text: str | None = None
        if header is not None:
            self.append(header)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[str, ...]:
        """Snapshot of the entries appended so far."""
        return tuple(self._entries)

    @property
    def closed(self) -> bool:
        """Whether the report has been finalized."""
        return self._text is not None

    def append(self, line: str) -> None:
        """Append one entry.

        Args:
            line: Entry text. May itself contain newlines.

        Raises:
            ReportClosedError: If the report was already finalized.
        """
        if self._text is not None:
            raise ReportClosedError(_REPORT_CLOSED_ERROR_MSG)
        self._entries.append(str(line))

    def extend(self, lines: Iterable[str]) -> None:
        """Append several entries in order."""
        for line in lines:
            self.append(line)

    def finalize(self) -> str:
        """Freeze the report and return its text.

        Calling this more than once returns the same text.

        Returns:
            All entries joined with newlines.
        """
        if self._text is None:
            self._text = "\n".join(self._entries)
        return self._text
