"""Configuration resolution helpers."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Iterator, Mapping, Tuple

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import MveditConfig

ENV_PREFIX = "MVEDIT__"


def resolve_with_precedence(
    *,
    defaults: MveditConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> MveditConfig:
    """Layer overrides onto ``defaults``; later sources win.

    Keys may be nested mappings or dotted paths such as ``rename.dry_run``.

    Raises:
        ConfigError: If an override is malformed or the merged values are invalid.
    """
    merged = defaults.model_dump(mode="python")
    for name, source in (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    ):
        if source is None:
            continue
        if not isinstance(source, MappingABC):
            raise ConfigError(f"{name.capitalize()} overrides must be a mapping.")
        for path, value in _walk(source, (), source_name=name):
            set_dotted(merged, list(path), value, source_name=name)

    try:
        return MveditConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: MveditConfig) -> Dict[str, str]:
    """Render ``config`` as ``MVEDIT__SECTION__KEY`` environment variables."""
    flat: Dict[str, str] = {}
    for path, value in _walk(config.model_dump(mode="python"), (), source_name="config"):
        key = ENV_PREFIX + "__".join(part.upper() for part in path)
        if isinstance(value, list):
            flat[key] = yaml.safe_dump(value, default_flow_style=True).strip()
        elif value is None:
            flat[key] = "null"
        else:
            flat[key] = str(value)
    return flat


def parse_env(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``MVEDIT__`` variables into a nested override mapping."""
    overrides: dict[str, Any] = {}
    for key, raw_value in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        segments = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__") if segment]
        if not segments:
            continue
        try:
            value: Any = yaml.safe_load(raw_value)
        except yaml.YAMLError:
            value = raw_value
        set_dotted(overrides, segments, value, source_name="environment")
    return overrides


def set_dotted(
    target: dict[str, Any],
    path: list[str],
    value: Any,
    *,
    source_name: str = "cli",
) -> None:
    """Assign ``value`` at the nested location named by ``path``.

    Raises:
        ConfigError: If a non-mapping value sits along the path.
    """
    node = target
    for segment in path[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise ConfigError(
                f"{source_name.capitalize()} override for {'.'.join(path)} "
                "conflicts with existing value."
            )
        node = child
    node[path[-1]] = deepcopy(value)


def _walk(
    source: Mapping[str, Any],
    prefix: Tuple[str, ...],
    *,
    source_name: str,
) -> Iterator[Tuple[Tuple[str, ...], Any]]:
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        path = prefix + tuple(key.split("."))
        if isinstance(value, MappingABC) and value:
            yield from _walk(value, path, source_name=source_name)
        else:
            yield path, value


__all__ = ["resolve_with_precedence", "flatten_for_env", "parse_env", "set_dotted", "ENV_PREFIX"]
