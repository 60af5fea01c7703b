"""Error taxonomy for the run reporter."""

from __future__ import annotations


class ReporterError(Exception):
    """Base class for failures raised by the reporter itself."""


class NoCurrentSuiteError(ReporterError):
    """A test event arrived before any titled suite was started."""

    def __init__(self, event: str, test_title: str) -> None:
        super().__init__(f"no_current_suite:{event}:{test_title}")
        self.event = event
        self.test_title = test_title


class ReportAlreadyWrittenError(ReporterError):
    """The run-ended event was delivered more than once."""


class EventLogError(ReporterError):
    """A replayed event log line could not be turned into an event."""

    def __init__(self, line_number: int, detail: str) -> None:
        super().__init__(f"line {line_number}: {detail}")
        self.line_number = line_number
        self.detail = detail

    def to_dict(self) -> dict[str, object]:
        return {"line": self.line_number, "detail": self.detail}


__all__ = [
    "EventLogError",
    "NoCurrentSuiteError",
    "ReportAlreadyWrittenError",
    "ReporterError",
]
