"""JSON run reporter.

``JsonReporter`` folds the engine's lifecycle events into suites and outcome
lists, and writes one JSON report when the run ends.  Suites live in an arena
(``_arena``); the current suite and the nesting stack are indices into it, so
a child suite is owned by exactly one parent list while the reporter can still
point at it.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Type

from . import events as ev
from .config import ReporterOptions, ReporterSettings, ResolvedOptions
from .errors import NoCurrentSuiteError, ReportAlreadyWrittenError
from .models import Report, Suite, TestRecord, format_test

logger = logging.getLogger(__name__)


class JsonReporter:
    """Report aggregator; implements :class:`~testrun_report.events.LifecycleListener`."""

    def __init__(
        self,
        options: ReporterOptions | Mapping[str, Any] | None = None,
        *,
        settings: ReporterSettings | None = None,
        now: datetime | None = None,
        cwd: Path | None = None,
    ) -> None:
        if not isinstance(options, ReporterOptions):
            options = ReporterOptions.from_mapping(options)
        self.options: ResolvedOptions = options.with_settings(settings).resolve(now=now, cwd=cwd)
        self._arena: List[Suite] = []
        self._roots: List[int] = []
        self._stack: List[int] = []
        self._current: int | None = None
        self._pending: List[TestRecord] = []
        self._failures: List[TestRecord] = []
        self._passes: List[TestRecord] = []
        self._written = False
        self._handlers: Dict[Type[Any], Callable[[Any], None]] = {
            ev.SuiteStarted: self._on_suite,
            ev.SuiteEnded: self._on_suite_end,
            ev.TestEnded: self._on_test_end,
            ev.Pass: self._on_pass,
            ev.Fail: self._on_fail,
            ev.Pending: self._on_pending,
            ev.RunEnded: self._on_end,
        }

    @property
    def hierarchy(self) -> bool:
        return self.options.hierarchy

    @property
    def path(self) -> Path:
        return self.options.path

    @property
    def written(self) -> bool:
        return self._written

    def attach(self, source: ev.EventSource) -> None:
        """Subscribe to every lifecycle event ``source`` emits."""

        source.on(ev.SUITE, lambda suite: self.handle(ev.SuiteStarted(suite)))
        source.on(ev.SUITE_END, lambda suite: self.handle(ev.SuiteEnded(suite)))
        source.on(ev.TEST_END, lambda test: self.handle(ev.TestEnded(test)))
        source.on(ev.PASS, lambda test: self.handle(ev.Pass(test)))
        source.on(ev.FAIL, lambda test, err=None: self.handle(ev.Fail(test, err)))
        source.on(ev.PENDING, lambda test: self.handle(ev.Pending(test)))
        source.once(ev.END, lambda: self.handle(ev.RunEnded(source.stats)))

    def handle(self, event: ev.Event) -> None:
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"unsupported_event:{type(event).__name__}")
        logger.debug("reporter_event", extra={"event": event.name})
        handler(event)

    def _on_suite(self, event: ev.SuiteStarted) -> None:
        if not event.suite.title:
            return
        suite = Suite(title=event.suite.title)
        index = len(self._arena)
        self._arena.append(suite)
        if self.hierarchy:
            suite.sub_suites = []
            if self._stack:
                parent = self._arena[self._stack[-1]]
                parent.sub_suites.append(suite)
            else:
                self._roots.append(index)
            self._stack.append(index)
        else:
            self._roots.append(index)
        self._current = index

    def _on_suite_end(self, event: ev.SuiteEnded) -> None:
        if self.hierarchy and self._stack:
            self._stack.pop()

    def _format(self, event_name: str, test: Any) -> TestRecord:
        if self._current is None:
            raise NoCurrentSuiteError(event_name, test.title)
        return format_test(test, self._arena[self._current])

    def _on_test_end(self, event: ev.TestEnded) -> None:
        record = self._format(event.name, event.test)
        self._arena[self._current].tests.append(record)

    def _on_pass(self, event: ev.Pass) -> None:
        self._passes.append(self._format(event.name, event.test))

    def _on_fail(self, event: ev.Fail) -> None:
        # the shared test object keeps the error, so a later test end sees it too
        if event.err is not None:
            event.test.err = event.err
        self._failures.append(self._format(event.name, event.test))

    def _on_pending(self, event: ev.Pending) -> None:
        self._pending.append(self._format(event.name, event.test))

    def build_report(self, stats: Mapping[str, Any] | None) -> Report:
        return Report(
            stats=stats,
            suites=tuple(self._arena[i] for i in self._roots),
            pending=tuple(self._pending),
            failures=tuple(self._failures),
            passes=tuple(self._passes),
        )

    def _on_end(self, event: ev.RunEnded) -> None:
        if self._written:
            raise ReportAlreadyWrittenError(str(self.path))
        self._written = True
        report = self.build_report(event.stats)
        path = self.path
        try:
            path.write_text(report.to_json(), encoding="utf-8")
        except OSError as exc:
            logger.error("report_write_failed", extra={"path": str(path), "error": str(exc)})
            raise
        logger.info(
            "report_written",
            extra={
                "path": str(path),
                "suites": len(report.suites),
                "passes": len(report.passes),
                "failures": len(report.failures),
                "pending": len(report.pending),
            },
        )


__all__ = ["JsonReporter"]
