"""Replay a recorded JSON-lines event log through a reporter."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Mapping, Tuple

from . import events as ev
from .errors import EventLogError
from .reporter import JsonReporter

logger = logging.getLogger(__name__)

_TEST_EVENTS = {
    ev.TEST_END: ev.TestEnded,
    ev.PASS: ev.Pass,
    ev.PENDING: ev.Pending,
}


def _test_from_json(line_number: int, data: Any) -> ev.TestInfo:
    if not isinstance(data, Mapping) or not isinstance(data.get("title"), str):
        raise EventLogError(line_number, "test payload needs a string title")
    try:
        retry = int(data.get("currentRetry") or 0)
    except (TypeError, ValueError) as exc:
        raise EventLogError(line_number, "currentRetry must be an integer") from exc
    return ev.TestInfo(
        title=data["title"],
        duration=data.get("duration"),
        state=data.get("state"),
        pending=data.get("pending"),
        current_retry=lambda: retry,
        file=data.get("file"),
        speed=data.get("speed"),
        err=data.get("err"),
    )


def parse_event(line_number: int, record: Mapping[str, Any]) -> ev.Event:
    name = record.get("event")
    if name in (ev.SUITE, ev.SUITE_END):
        suite = ev.SuiteInfo(title=record.get("title") or "")
        return ev.SuiteStarted(suite) if name == ev.SUITE else ev.SuiteEnded(suite)
    if name in _TEST_EVENTS:
        return _TEST_EVENTS[name](_test_from_json(line_number, record.get("test")))
    if name == ev.FAIL:
        return ev.Fail(_test_from_json(line_number, record.get("test")), record.get("err"))
    if name == ev.END:
        return ev.RunEnded(record.get("stats"))
    raise EventLogError(line_number, f"unknown event {name!r}")


def read_events(lines: Iterable[str]) -> Iterator[ev.Event]:
    """Yield typed events; a failure error sticks to later lines for the same test."""

    failure_errors: Dict[Tuple[str, Any], Any] = {}
    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as exc:
            raise EventLogError(line_number, f"invalid json: {exc.msg}") from exc
        if not isinstance(record, dict):
            raise EventLogError(line_number, "expected a json object")
        event = parse_event(line_number, record)
        test = getattr(event, "test", None)
        if test is not None:
            key = (test.title, test.file)
            if isinstance(event, ev.Fail) and event.err is not None:
                failure_errors[key] = event.err
            elif test.err is None and key in failure_errors:
                test.err = failure_errors[key]
        yield event


def replay(path: Path, reporter: JsonReporter) -> Path:
    """Feed every event in ``path`` to ``reporter``; return the report path."""

    source = ev.EventSource()
    reporter.attach(source)
    count = 0
    with path.open("r", encoding="utf-8") as handle:
        for event in read_events(handle):
            ev.emit_event(source, event)
            count += 1
    logger.info("replay_finished", extra={"events": count, "source": str(path)})
    if not reporter.written:
        logger.warning("replay_without_end", extra={"source": str(path)})
    return reporter.path


__all__ = ["parse_event", "read_events", "replay"]
