from __future__ import annotations

import json
from datetime import datetime

import pytest

from testrun_report.models import (
    ErrorSnapshot,
    Report,
    Suite,
    capture_error,
    derive_result,
    format_test,
)


@pytest.mark.parametrize(
    "fields,expected",
    [
        ({"state": "passed"}, "passed"),
        ({"state": "failed", "pending": True}, "failed"),
        ({"pending": True}, "pending"),
        ({"pending": False}, "unknown"),
        ({}, "unknown"),
    ],
)
def test_derive_result(make_test, fields: dict, expected: str) -> None:
    assert derive_result(make_test(**fields)) == expected


def test_full_title_joins_with_single_space(make_test) -> None:
    record = format_test(make_test("adds"), Suite(title="Math"))
    assert record.full_title == "Math adds"


def test_full_title_is_not_trimmed(make_test) -> None:
    assert format_test(make_test(""), Suite(title="Math")).full_title == "Math "
    assert format_test(make_test("adds"), Suite(title="")).full_title == " adds"


def test_current_retry_is_queried_at_format_time(make_test) -> None:
    calls = []

    def retry() -> int:
        calls.append(1)
        return 2

    test = make_test()
    test.current_retry = retry
    record = format_test(test, Suite(title="Math"))
    assert record.current_retry == 2
    assert calls == [1]


def test_record_dict_drops_absent_optional_fields(make_test) -> None:
    record = format_test(make_test("adds", state="passed", duration=5, file="math.test"), Suite(title="Math"))
    assert record.as_dict() == {
        "fullTitle": "Math adds",
        "title": "adds",
        "duration": 5,
        "result": "passed",
        "currentRetry": 0,
        "file": "math.test",
        "err": {},
    }
    assert list(record.as_dict()) == ["fullTitle", "title", "duration", "result", "currentRetry", "file", "err"]


def test_record_dict_keeps_speed(make_test) -> None:
    record = format_test(make_test(speed="slow"), Suite(title="Math"))
    assert record.as_dict()["speed"] == "slow"


def test_capture_error_mapping_exact_keys() -> None:
    snapshot = capture_error({"message": "x", "stack": "y"})
    assert snapshot.as_dict() == {"message": "x", "stack": "y"}


def test_capture_error_none_is_empty() -> None:
    assert capture_error(None).as_dict() == {}


def test_capture_error_keeps_unknown_fields_in_extra() -> None:
    snapshot = capture_error({"message": "boom", "expected": 1, "actual": 2, "operator": "=="})
    assert snapshot.message == "boom"
    assert snapshot.expected == 1
    assert snapshot.actual == 2
    assert snapshot.extra == {"operator": "=="}
    assert snapshot.as_dict() == {"message": "boom", "expected": 1, "actual": 2, "operator": "=="}


def test_capture_error_keeps_explicit_none_values() -> None:
    assert capture_error({"expected": None}).as_dict() == {"expected": None}


def test_capture_error_from_exception() -> None:
    try:
        raise AssertionError("values differ")
    except AssertionError as exc:
        exc.showDiff = True
        snapshot = capture_error(exc)
    body = snapshot.as_dict()
    assert body["message"] == "values differ"
    assert "AssertionError: values differ" in body["stack"]
    assert body["showDiff"] is True


def test_capture_error_from_unraised_exception_has_no_stack() -> None:
    assert capture_error(ValueError("nope")).as_dict() == {"message": "nope"}


def test_capture_error_from_plain_object() -> None:
    class Detail:
        def __init__(self) -> None:
            self.message = "m"
            self.code = "E1"

    assert capture_error(Detail()).as_dict() == {"message": "m", "code": "E1"}
    assert capture_error(42).as_dict() == {}


def test_suite_dict_has_sub_suites_only_when_nested() -> None:
    flat = Suite(title="A")
    nested = Suite(title="B", sub_suites=[Suite(title="C", sub_suites=[])])
    assert flat.as_dict() == {"title": "A", "tests": []}
    assert nested.as_dict() == {
        "title": "B",
        "tests": [],
        "subSuites": [{"title": "C", "tests": [], "subSuites": []}],
    }


def test_report_json_layout() -> None:
    report = Report(stats={"passes": 1, "start": datetime(2024, 1, 2, 3, 4, 5)}, suites=(Suite(title="Math"),))
    text = report.to_json()
    data = json.loads(text)
    assert list(data) == ["stats", "suites", "pending", "failures", "passes"]
    assert data["stats"] == {"passes": 1, "start": "2024-01-02T03:04:05"}
    assert text.startswith('{\n  "stats": {\n    "passes": 1')


def test_report_json_keeps_non_ascii() -> None:
    report = Report(stats=None, suites=(Suite(title="Żółw"),))
    assert '"Żółw"' in report.to_json()
    assert json.loads(report.to_json())["stats"] is None


def test_error_snapshot_is_immutable() -> None:
    snapshot = ErrorSnapshot(message="x")
    with pytest.raises(AttributeError):
        snapshot.message = "y"  # type: ignore[misc]


def test_capture_error_keeps_source_key_order() -> None:
    snapshot = capture_error({"stack": "y", "operator": "==", "message": "x"})
    assert list(snapshot.as_dict()) == ["stack", "operator", "message"]


def test_report_json_replaces_non_finite_numbers() -> None:
    report = Report(stats={"ratio": float("-inf"), "values": [float("nan"), 1.5]})
    assert json.loads(report.to_json())["stats"] == {"ratio": None, "values": [None, 1.5]}
