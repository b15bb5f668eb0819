"""Layered resolution of Pylo settings.

Each layer is a nested mapping of sections. Command-line overrides arrive as
dotted keys (`report.webhook_url`) and environment overrides as
`PYLO__SECTION__KEY` variables; both are expanded to nested form before they
are merged over the defaults and validated.
"""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from typing import Any, Dict, Iterator, Mapping, Sequence

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import PyloConfig

ENV_PREFIX = "PYLO__"
ENV_SEPARATOR = "__"


def set_dotted(target: dict[str, Any], path: Sequence[str], value: Any) -> None:
    """Assign `value` at `path` inside `target`, creating missing sections.

    Raises:
        ConfigError: If a segment along the path already holds a plain value.
    """
    node = target
    for segment in path[:-1]:
        child = node.get(segment)
        if child is None:
            child = node[segment] = {}
        elif not isinstance(child, dict):
            raise ConfigError(f"Cannot set {'.'.join(path)}: '{segment}' is not a section.")
        node = child
    node[path[-1]] = value


def expand_dotted(flat: Mapping[str, Any]) -> dict[str, Any]:
    """Turn `{"naming.prefix": "x"}` into `{"naming": {"prefix": "x"}}`."""
    nested: dict[str, Any] = {}
    for key, value in flat.items():
        path = [segment for segment in str(key).split(".") if segment]
        if not path:
            raise ConfigError(f"Override key {key!r} names no setting.")
        set_dotted(nested, path, value)
    return nested


def read_env(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect `PYLO__` variables from `env`, parsing each value as YAML."""
    nested: dict[str, Any] = {}
    for name, raw in env.items():
        if not name.startswith(ENV_PREFIX):
            continue
        path = [part.lower() for part in name[len(ENV_PREFIX) :].split(ENV_SEPARATOR) if part]
        if not path:
            continue
        try:
            value = yaml.safe_load(raw)
        except yaml.YAMLError:
            value = raw
        set_dotted(nested, path, value)
    return nested


def resolve_with_precedence(
    *,
    defaults: PyloConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> PyloConfig:
    """Merge configuration sources: defaults < file < environment < CLI.

    `cli_overrides` uses dotted keys; the other layers are nested mappings.

    Raises:
        ConfigError: If a layer is malformed or the merged values fail validation.
    """
    layers = [file_overrides, env_overrides]
    if cli_overrides:
        layers.append(expand_dotted(cli_overrides))

    merged = defaults.model_dump(mode="python")
    for layer in layers:
        if not layer:
            continue
        if not isinstance(layer, MappingABC):
            raise ConfigError("Configuration overrides must be mappings of sections.")
        merged = _overlay(merged, layer)

    try:
        return PyloConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: PyloConfig) -> Dict[str, str]:
    """Render every setting as a `PYLO__SECTION__KEY` variable assignment."""
    return {
        ENV_PREFIX + ENV_SEPARATOR.join(part.upper() for part in path): _render(value)
        for path, value in _leaves(config.model_dump(mode="python"))
    }


def _overlay(base: Mapping[str, Any], layer: Mapping[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in layer.items():
        current = result.get(key)
        if isinstance(value, MappingABC) and isinstance(current, MappingABC):
            result[key] = _overlay(current, value)
        else:
            result[key] = value
    return result


def _leaves(
    data: Mapping[str, Any], prefix: tuple[str, ...] = ()
) -> Iterator[tuple[tuple[str, ...], Any]]:
    for key, value in data.items():
        path = (*prefix, str(key))
        if isinstance(value, MappingABC):
            yield from _leaves(value, path)
        else:
            yield path, value


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, list):
        return yaml.safe_dump(value, default_flow_style=True).strip()
    return "null" if value is None else str(value)


__all__ = [
    "ENV_PREFIX",
    "expand_dotted",
    "flatten_for_env",
    "read_env",
    "resolve_with_precedence",
    "set_dotted",
]
