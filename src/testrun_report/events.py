"""Lifecycle events emitted by a test-execution engine.

The engine announces progress through a small, closed set of named events.
Each name maps to one typed variant below so listeners can dispatch on the
variant instead of inspecting loosely shaped arguments.  ``EventSource`` is
the synchronous emitter an engine (or the replay helper) drives: handlers run
in subscription order and finish before ``emit`` returns, and an exception
raised by a handler propagates straight back to the emitter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, List, Mapping, Protocol, Union

logger = logging.getLogger(__name__)

SUITE = "suite"
SUITE_END = "suite end"
TEST_END = "test end"
PASS = "pass"
FAIL = "fail"
PENDING = "pending"
END = "end"

EVENT_NAMES = (SUITE, SUITE_END, TEST_END, PASS, FAIL, PENDING, END)


def _no_retry() -> int:
    return 0


@dataclass(slots=True)
class SuiteInfo:
    """Engine-side suite as seen at ``suite`` / ``suite end`` time."""

    title: str = ""


@dataclass(slots=True)
class TestInfo:
    """Engine-side test object as seen when an event fires.

    ``current_retry`` is queried when the test is formatted, not stored.
    """

    title: str
    duration: float | None = None
    state: str | None = None
    pending: bool | None = None
    current_retry: Callable[[], int] = _no_retry
    file: str | None = None
    speed: str | None = None
    err: Any = None

    __test__ = False


@dataclass(slots=True)
class SuiteStarted:
    name: ClassVar[str] = SUITE
    suite: SuiteInfo


@dataclass(slots=True)
class SuiteEnded:
    name: ClassVar[str] = SUITE_END
    suite: SuiteInfo


@dataclass(slots=True)
class TestEnded:
    name: ClassVar[str] = TEST_END
    test: TestInfo

    __test__ = False


@dataclass(slots=True)
class Pass:
    name: ClassVar[str] = PASS
    test: TestInfo


@dataclass(slots=True)
class Fail:
    name: ClassVar[str] = FAIL
    test: TestInfo
    err: Any = None


@dataclass(slots=True)
class Pending:
    name: ClassVar[str] = PENDING
    test: TestInfo


@dataclass(slots=True)
class RunEnded:
    name: ClassVar[str] = END
    stats: Mapping[str, Any] | None = None


Event = Union[SuiteStarted, SuiteEnded, TestEnded, Pass, Fail, Pending, RunEnded]


class LifecycleListener(Protocol):
    """Anything that consumes typed lifecycle events."""

    def handle(self, event: Event) -> None:
        ...


@dataclass(slots=True)
class _FanOut:
    listeners: tuple[LifecycleListener, ...]

    def handle(self, event: Event) -> None:
        for listener in self.listeners:
            listener.handle(event)


def fan_out(*listeners: LifecycleListener) -> LifecycleListener:
    """Compose listeners so each event reaches all of them, in order."""

    return _FanOut(tuple(listeners))


Handler = Callable[..., None]


class EventSource:
    """Synchronous named-event emitter with engine-owned run statistics."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[Handler]] = {}
        self._once: Dict[str, List[Handler]] = {}
        self.stats: Dict[str, Any] | None = None

    def on(self, name: str, handler: Handler) -> None:
        self._handlers.setdefault(name, []).append(handler)

    def once(self, name: str, handler: Handler) -> None:
        self.on(name, handler)
        self._once.setdefault(name, []).append(handler)

    def off(self, name: str, handler: Handler) -> None:
        handlers = self._handlers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)
        once = self._once.get(name, [])
        if handler in once:
            once.remove(handler)

    def emit(self, name: str, *args: Any) -> None:
        handlers = list(self._handlers.get(name, ()))
        logger.debug("event_emitted", extra={"event": name, "handlers": len(handlers)})
        for handler in handlers:
            if handler in self._once.get(name, ()):
                self.off(name, handler)
            handler(*args)


def emit_event(source: EventSource, event: Event) -> None:
    """Emit a typed variant under its engine event name."""

    if isinstance(event, (SuiteStarted, SuiteEnded)):
        source.emit(event.name, event.suite)
    elif isinstance(event, Fail):
        source.emit(event.name, event.test, event.err)
    elif isinstance(event, (TestEnded, Pass, Pending)):
        source.emit(event.name, event.test)
    elif isinstance(event, RunEnded):
        if event.stats is not None:
            source.stats = dict(event.stats)
        source.emit(event.name)
    else:
        raise TypeError(f"unsupported_event:{type(event).__name__}")


__all__ = [
    "END",
    "EVENT_NAMES",
    "Event",
    "EventSource",
    "FAIL",
    "Fail",
    "LifecycleListener",
    "PASS",
    "PENDING",
    "Pass",
    "Pending",
    "RunEnded",
    "SUITE",
    "SUITE_END",
    "SuiteEnded",
    "SuiteInfo",
    "SuiteStarted",
    "TEST_END",
    "TestEnded",
    "TestInfo",
    "emit_event",
    "fan_out",
]
