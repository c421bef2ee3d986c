"""Configuration management for mvedit."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import MveditConfig
from .resolver import flatten_for_env, parse_env, resolve_with_precedence, set_dotted

DEFAULT_CONFIG_PATH = Path("~/.mvedit/config.yaml")
_CONFIG_HEADER = textwrap.dedent(
    """\
    # mvedit configuration file
    # Manage with `mvedit config edit` or `mvedit config set KEY --value VALUE`.
    """
)


class ConfigManager:
    """Read and write the YAML configuration file and resolve effective settings."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> MveditConfig:
        """Return the effective configuration.

        Args:
            cli_overrides: Dotted-key overrides supplied on the command line.
            include_env: Whether ``MVEDIT__`` environment variables apply.
            env_overrides: Environment mapping to use instead of ``os.environ``.

        Returns:
            MveditConfig: Validated configuration.

        Raises:
            ConfigError: If the file or any override is invalid.
        """
        env_data: dict[str, Any] | None = None
        if include_env:
            env_data = parse_env(env_overrides if env_overrides is not None else self._env)

        return resolve_with_precedence(
            defaults=MveditConfig(),
            file_overrides=self.load_file_overrides(),
            env_overrides=env_data,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the raw mapping stored on disk, or an empty mapping."""
        if not self._config_path.exists():
            return {}

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return raw

    def save(self, config: MveditConfig | Mapping[str, Any]) -> None:
        """Write ``config`` to disk with the standard header."""
        if isinstance(config, MveditConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n" + yaml.safe_dump(data, sort_keys=False),
            encoding="utf-8",
        )

    def ensure_exists(self) -> Path:
        """Create the configuration file with defaults when it is missing."""
        if not self._config_path.exists():
            self.save(MveditConfig())
        return self._config_path

    def read_text(self) -> str:
        """Return the configuration file contents, or an empty string."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "MveditConfig",
    "resolve_with_precedence",
    "flatten_for_env",
    "parse_env",
    "set_dotted",
    "ConfigError",
]
