"""Pylo settings file handling.

Settings live in a YAML document inside the application directory. The file is
written with defaults on first use, edited through `pylo config set`, and
layered under `PYLO__` environment variables and command-line flags on load.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import PyloConfig
from .resolver import flatten_for_env, read_env, resolve_with_precedence, set_dotted

DEFAULT_CONFIG_PATH = Path("~/.pylo/config.yaml")
_HEADER = (
    "# Pylo configuration file\n"
    "# Edit directly or run `pylo config set KEY --value VALUE`.\n"
)


class ConfigManager:
    """Read, write, and resolve the Pylo settings file.

    Args:
        config_path: Settings file location; defaults to `~/.pylo/config.yaml`.
        env: Environment consulted for `PYLO__` overrides; defaults to `os.environ`.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = os.environ if env is None else env

    def ensure_exists(self) -> Path:
        """Write the default settings unless the file is already present."""
        if not self.config_path.exists():
            self.save(PyloConfig().model_dump(mode="python"))
        return self.config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
    ) -> PyloConfig:
        """Return the effective settings, creating the file first if needed.

        Args:
            cli_overrides: Dotted-key values taken from command-line flags.
            include_env: Whether `PYLO__` environment variables apply.

        Raises:
            ConfigError: If the file is unreadable or a value fails validation.
        """
        self.ensure_exists()
        return resolve_with_precedence(
            defaults=PyloConfig(),
            file_overrides=self.read_overrides(),
            env_overrides=read_env(self._env) if include_env else None,
            cli_overrides=cli_overrides,
        )

    def read_overrides(self) -> dict[str, Any]:
        """Return the sections stored in the settings file (empty when absent)."""
        try:
            text = self.config_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Cannot parse {self.config_path}: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"{self.config_path} must contain a mapping of sections.")
        return data

    def read_text(self) -> str:
        if not self.config_path.exists():
            return ""
        return self.config_path.read_text(encoding="utf-8")

    def save(self, data: Mapping[str, Any]) -> None:
        """Write `data` under the standard header and a last-updated stamp."""
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        body = yaml.safe_dump(dict(data), sort_keys=False)
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(f"{_HEADER}# Last updated: {stamp}\n{body}", encoding="utf-8")


__all__ = [
    "ConfigError",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "PyloConfig",
    "flatten_for_env",
    "resolve_with_precedence",
    "set_dotted",
]
