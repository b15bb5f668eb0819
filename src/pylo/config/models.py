"""Configuration models describing Pylo settings."""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field


class PyloBaseModel(BaseModel):
    """Shared configuration for Pylo Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class NamingOptions(PyloBaseModel):
    """Settings that govern generated names.

    Attributes:
        prefix: Base name given to every generated entry.
        extension_policy: Whether a file's extension starts at its first or last dot.
    """

    prefix: str = Field(default="pylo", min_length=1)
    extension_policy: Literal["first_dot", "last_dot"] = "first_dot"


class StorageOptions(PyloBaseModel):
    """Locations and backends for original-name metadata.

    Attributes:
        app_dir: Per-user directory holding the mapping documents and log file.
        dir_map_filename: File name of the directory mapping document.
        file_map_filename: File name of the path-keyed fallback for file names.
        sidecar: Which per-file metadata backend to use.
    """

    app_dir: str = "~/.pylo"
    dir_map_filename: str = ".pylo_dirs.orig.json"
    file_map_filename: str = ".pylo_files.orig.json"
    sidecar: Literal["auto", "native", "mapping"] = "auto"


class RunOptions(PyloBaseModel):
    """Defaults for rename and restore runs.

    Attributes:
        roots: Folders to process when none are given on the command line.
        execute_by_default: Whether runs mutate the filesystem unless `--dry-run` is passed.
    """

    roots: List[str] = Field(default_factory=list)
    execute_by_default: bool = True


class ReportSettings(PyloBaseModel):
    """Activity report delivery settings.

    Attributes:
        webhook_url: Discord-compatible webhook endpoint; empty disables delivery.
        username: Display name used for webhook messages.
        preview_chars: Maximum characters of change lines embedded in the message.
        attach_line_threshold: Line count above which the full list is attached.
        timeout_seconds: HTTP timeout for webhook requests.
    """

    webhook_url: str = ""
    username: str = "Pylo Bot"
    preview_chars: int = Field(default=1800, ge=0)
    attach_line_threshold: int = Field(default=50, ge=0)
    timeout_seconds: float = Field(default=10.0, gt=0)


class LoggingSettings(PyloBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    max_size_mb: int = 10
    backup_count: int = 5


class CLIOptions(PyloBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class PyloConfig(PyloBaseModel):
    """Top-level configuration struct for Pylo.

    Attributes:
        naming: Generated-name settings.
        storage: Metadata storage settings.
        run: Run defaults.
        report: Activity report settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    naming: NamingOptions = Field(default_factory=NamingOptions)
    storage: StorageOptions = Field(default_factory=StorageOptions)
    run: RunOptions = Field(default_factory=RunOptions)
    report: ReportSettings = Field(default_factory=ReportSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "PyloBaseModel",
    "NamingOptions",
    "StorageOptions",
    "RunOptions",
    "ReportSettings",
    "LoggingSettings",
    "CLIOptions",
    "PyloConfig",
]
