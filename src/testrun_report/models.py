"""Report data model and the test-record formatting rules."""

from __future__ import annotations

import json
import math
import traceback
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Tuple

from .events import TestInfo

RESULT_PASSED = "passed"
RESULT_FAILED = "failed"
RESULT_PENDING = "pending"
RESULT_UNKNOWN = "unknown"


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()

# JSON key -> ErrorSnapshot attribute
_WELL_KNOWN_ERROR_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("message", "message"),
    ("stack", "stack"),
    ("name", "name"),
    ("code", "code"),
    ("expected", "expected"),
    ("actual", "actual"),
    ("showDiff", "show_diff"),
)


@dataclass(frozen=True, slots=True)
class ErrorSnapshot:
    """Diagnostic fields captured from a failed test's error.

    Well-known fields are typed slots; anything else the engine attached ends
    up in ``extra``.  Only fields that were present on the source error are
    serialized.
    """

    message: Any = MISSING
    stack: Any = MISSING
    name: Any = MISSING
    code: Any = MISSING
    expected: Any = MISSING
    actual: Any = MISSING
    show_diff: Any = MISSING
    extra: Mapping[str, Any] = field(default_factory=dict)
    # JSON keys in the order the source error listed them
    order: Tuple[str, ...] = ()

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> "ErrorSnapshot":
        known: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        attrs = dict(_WELL_KNOWN_ERROR_FIELDS)
        for key, value in fields.items():
            key = str(key)
            if key in attrs:
                known[attrs[key]] = value
            else:
                extra[key] = value
        return cls(extra=extra, order=tuple(str(key) for key in fields), **known)

    def as_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {}
        for key, attr in _WELL_KNOWN_ERROR_FIELDS:
            value = getattr(self, attr)
            if value is not MISSING:
                body[key] = value
        body.update(self.extra)
        if not self.order:
            return body
        ordered = {key: body[key] for key in self.order if key in body}
        ordered.update(body)
        return ordered


def capture_error(err: Any) -> ErrorSnapshot:
    """Copy every own field of ``err`` into an :class:`ErrorSnapshot`.

    ``None`` and objects without own fields yield an empty snapshot; this
    never raises.
    """

    if err is None:
        return ErrorSnapshot()
    if isinstance(err, Mapping):
        return ErrorSnapshot.from_fields(err)
    fields: Dict[str, Any] = {}
    if isinstance(err, BaseException):
        if err.__traceback__ is not None:
            fields["stack"] = "".join(traceback.format_exception(type(err), err, err.__traceback__))
        fields["message"] = str(err)
    own = getattr(err, "__dict__", None)
    if isinstance(own, dict):
        fields.update(own)
    return ErrorSnapshot.from_fields(fields)


def derive_result(test: TestInfo) -> str:
    state = getattr(test, "state", None)
    if state:
        return state
    if getattr(test, "pending", None) is True:
        return RESULT_PENDING
    return RESULT_UNKNOWN


@dataclass(frozen=True, slots=True)
class TestRecord:
    """Immutable snapshot of one test outcome."""

    full_title: str
    title: str
    result: str
    current_retry: int
    duration: float | None = None
    file: str | None = None
    speed: str | None = None
    err: ErrorSnapshot = field(default_factory=ErrorSnapshot)

    __test__ = False

    def as_dict(self) -> Dict[str, Any]:
        # absent optional values are dropped, not written as null
        body: Dict[str, Any] = {"fullTitle": self.full_title, "title": self.title}
        if self.duration is not None:
            body["duration"] = self.duration
        body["result"] = self.result
        body["currentRetry"] = self.current_retry
        if self.file is not None:
            body["file"] = self.file
        if self.speed is not None:
            body["speed"] = self.speed
        body["err"] = self.err.as_dict()
        return body


@dataclass(slots=True)
class Suite:
    """A titled group of tests; ``sub_suites`` is ``None`` in flat mode."""

    title: str
    tests: List[TestRecord] = field(default_factory=list)
    sub_suites: List["Suite"] | None = None

    def as_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "title": self.title,
            "tests": [t.as_dict() for t in self.tests],
        }
        if self.sub_suites is not None:
            body["subSuites"] = [s.as_dict() for s in self.sub_suites]
        return body


def format_test(test: TestInfo, suite: Suite) -> TestRecord:
    """Build the record for ``test`` as it attaches to ``suite``.

    ``test`` only needs a ``title``; the other engine attributes are optional.
    """

    current_retry = getattr(test, "current_retry", None)
    return TestRecord(
        full_title=f"{suite.title} {test.title}",
        title=test.title,
        duration=getattr(test, "duration", None),
        result=derive_result(test),
        current_retry=current_retry() if callable(current_retry) else 0,
        file=getattr(test, "file", None),
        speed=getattr(test, "speed", None),
        err=capture_error(getattr(test, "err", None)),
    )


def _finite(value: Any) -> Any:
    """Replace NaN and infinities with ``None`` so the output stays valid JSON."""

    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, Mapping):
        return {key: _finite(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_finite(item) for item in value]
    return value


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return list(value)
    if isinstance(value, BaseException):
        return _finite(capture_error(value).as_dict())
    return str(value)


@dataclass(frozen=True, slots=True)
class Report:
    """Final aggregate written once at the end of a run."""

    stats: Mapping[str, Any] | None
    suites: Tuple[Suite, ...] = ()
    pending: Tuple[TestRecord, ...] = ()
    failures: Tuple[TestRecord, ...] = ()
    passes: Tuple[TestRecord, ...] = ()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "stats": dict(self.stats) if self.stats is not None else None,
            "suites": [s.as_dict() for s in self.suites],
            "pending": [t.as_dict() for t in self.pending],
            "failures": [t.as_dict() for t in self.failures],
            "passes": [t.as_dict() for t in self.passes],
        }

    def to_json(self) -> str:
        return json.dumps(
            _finite(self.as_dict()), indent=2, ensure_ascii=False, allow_nan=False, default=_json_default
        )


__all__ = [
    "ErrorSnapshot",
    "MISSING",
    "RESULT_FAILED",
    "RESULT_PASSED",
    "RESULT_PENDING",
    "RESULT_UNKNOWN",
    "Report",
    "Suite",
    "TestRecord",
    "capture_error",
    "derive_result",
    "format_test",
]
