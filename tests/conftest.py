import sys
from pathlib import Path
from typing import Any, Callable

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if SRC.exists():
    sys.path.insert(0, str(SRC))

from testrun_report.events import TestInfo  # noqa: E402


@pytest.fixture
def make_test() -> Callable[..., TestInfo]:
    def _make(title: str = "adds", *, retry: int = 0, **fields: Any) -> TestInfo:
        return TestInfo(title=title, current_retry=lambda: retry, **fields)

    return _make
