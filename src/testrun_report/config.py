"""Reporter options and their resolution into a concrete output target."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_FILE_PREFIX = "mocha-output-"
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


class ReporterSettings(BaseSettings):
    """Environment fallbacks for options the host did not pass explicitly."""

    FILE_NAME: Optional[str] = None
    FILE_PATH: Optional[str] = None
    HIERARCHY: Optional[str] = None

    model_config = SettingsConfigDict(env_prefix="TESTRUN_REPORT_", case_sensitive=False)


def default_file_name(now: datetime | None = None) -> str:
    stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    return f"{DEFAULT_FILE_PREFIX}{stamp}.json"


@dataclass(frozen=True, slots=True)
class ResolvedOptions:
    file_name: str
    directory: Path
    hierarchy: bool

    @property
    def path(self) -> Path:
        return self.directory / self.file_name


@dataclass(frozen=True, slots=True)
class ReporterOptions:
    """Options as handed over by the host, before defaults are applied."""

    file_name: str | None = None
    file_path: str | os.PathLike[str] | None = None
    hierarchy: str | None = None

    @classmethod
    def from_mapping(cls, reporter_options: Mapping[str, Any] | None) -> "ReporterOptions":
        """Read the engine's camelCase ``reporterOptions`` mapping."""

        if not reporter_options:
            return cls()
        return cls(
            file_name=reporter_options.get("fileName") or None,
            file_path=reporter_options.get("filePath") or None,
            hierarchy=reporter_options.get("hierarchy"),
        )

    def with_settings(self, settings: ReporterSettings | None = None) -> "ReporterOptions":
        """Fill unset options from ``TESTRUN_REPORT_*`` environment settings."""

        settings = settings or ReporterSettings()
        return ReporterOptions(
            file_name=self.file_name or settings.FILE_NAME or None,
            file_path=self.file_path or settings.FILE_PATH or None,
            hierarchy=self.hierarchy if self.hierarchy is not None else settings.HIERARCHY,
        )

    def resolve(self, *, now: datetime | None = None, cwd: Path | None = None) -> ResolvedOptions:
        file_name = self.file_name or default_file_name(now)
        directory = Path(self.file_path) if self.file_path else (cwd or Path.cwd())
        # only the exact string enables nesting
        hierarchy = self.hierarchy == "true"
        return ResolvedOptions(file_name=file_name, directory=directory, hierarchy=hierarchy)


__all__ = [
    "DEFAULT_FILE_PREFIX",
    "ReporterOptions",
    "ReporterSettings",
    "ResolvedOptions",
    "TIMESTAMP_FORMAT",
    "default_file_name",
]
