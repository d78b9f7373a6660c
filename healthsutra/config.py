"""Runtime settings: defaults, then ``hsutra.yml``, then environment variables.

CLI options are applied last by the command layer via ``Settings.with_overrides``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigError

DEFAULT_CONFIG_NAME = "hsutra.yml"

ENV_API_URL = "HSUTRA_API_URL"
ENV_TIMEOUT = "HSUTRA_TIMEOUT"
ENV_EXPORT_DIR = "HSUTRA_EXPORT_DIR"


@dataclass(frozen=True)
class Settings:
    api_url: str = "http://localhost:8000"
    timeout_s: float = 10.0
    export_dir: Path = Path(".")
    default_tool: str = "knowledge-graph"
    status_short_s: float = 3.0
    status_long_s: float = 5.0

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return _coerce(replace(self, **changes)) if changes else self


def _as_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be a number, got {value!r}") from e


def _coerce(settings: Settings) -> Settings:
    timeout = _as_float("timeout_s", settings.timeout_s)
    if timeout <= 0:
        raise ConfigError("timeout_s must be positive")
    return replace(
        settings,
        api_url=str(settings.api_url).rstrip("/"),
        timeout_s=timeout,
        export_dir=Path(settings.export_dir),
        default_tool=str(settings.default_tool),
        status_short_s=_as_float("status_short_s", settings.status_short_s),
        status_long_s=_as_float("status_long_s", settings.status_long_s),
    )


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping")
    return data


def load_settings(
    config_path: Path | None = None,
    *,
    cwd: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Resolve settings from an explicit or auto-detected YAML file and the environment."""
    env = os.environ if environ is None else environ
    known = {f.name for f in fields(Settings)}

    values: dict[str, Any] = {}
    path = config_path
    if path is None:
        candidate = (cwd or Path.cwd()) / DEFAULT_CONFIG_NAME
        path = candidate if candidate.is_file() else None
    if path is not None:
        for key, value in _read_yaml(path).items():
            if key in known:
                values[key] = value

    if env.get(ENV_API_URL):
        values["api_url"] = env[ENV_API_URL]
    if env.get(ENV_TIMEOUT):
        values["timeout_s"] = env[ENV_TIMEOUT]
    if env.get(ENV_EXPORT_DIR):
        values["export_dir"] = env[ENV_EXPORT_DIR]

    return _coerce(Settings(**values))
