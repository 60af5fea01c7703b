"""Record test-engine lifecycle events into a JSON run report."""

from .config import ReporterOptions, ReporterSettings, ResolvedOptions, default_file_name
from .errors import EventLogError, NoCurrentSuiteError, ReportAlreadyWrittenError, ReporterError
from .events import (
    EventSource,
    Fail,
    LifecycleListener,
    Pass,
    Pending,
    RunEnded,
    SuiteEnded,
    SuiteInfo,
    SuiteStarted,
    TestEnded,
    TestInfo,
    emit_event,
    fan_out,
)
from .models import ErrorSnapshot, Report, Suite, TestRecord, capture_error, derive_result, format_test
from .replay import replay
from .reporter import JsonReporter

__version__ = "1.0.0"

__all__ = [
    "ErrorSnapshot",
    "EventLogError",
    "EventSource",
    "Fail",
    "JsonReporter",
    "LifecycleListener",
    "NoCurrentSuiteError",
    "Pass",
    "Pending",
    "Report",
    "ReportAlreadyWrittenError",
    "ReporterError",
    "ReporterOptions",
    "ReporterSettings",
    "ResolvedOptions",
    "RunEnded",
    "Suite",
    "SuiteEnded",
    "SuiteInfo",
    "SuiteStarted",
    "TestEnded",
    "TestInfo",
    "TestRecord",
    "capture_error",
    "default_file_name",
    "derive_result",
    "emit_event",
    "fan_out",
    "format_test",
    "replay",
]
