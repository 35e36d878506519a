"""Configuration loading for toolspec (.toolspec.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

import yaml

CONFIG_FILENAME = ".toolspec.yml"
DEFAULT_API_BASE = "https://api.github.com"

ENV_API_BASE_KEYS = ("TOOLSPEC_GITHUB_API_BASE",)
ENV_TOKEN_KEYS = ("TOOLSPEC_GITHUB_TOKEN", "GITHUB_TOKEN")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class GitHubSettings:
    """Connection settings for the GitHub content provider."""

    api_base: str = DEFAULT_API_BASE
    token: Optional[str] = None
    timeout: float = 10.0


@dataclass
class GalaxyDefaults:
    command: Optional[str] = None
    container: Optional[str] = None
    container_version: Optional[str] = None
    profile: Optional[str] = None


@dataclass
class CwlDefaults:
    version: Optional[str] = None
    base_command: Optional[str] = None
    container: Optional[str] = None


@dataclass
class DoapDefaults:
    format: Optional[str] = None
    maintainer: Optional[str] = None


@dataclass
class ToolSpecConfig:
    """Settings defined in .toolspec.yml merged with environment overrides."""

    root: Path
    github: GitHubSettings = field(default_factory=GitHubSettings)
    export_format: Optional[str] = None
    galaxy: GalaxyDefaults = field(default_factory=GalaxyDefaults)
    cwl: CwlDefaults = field(default_factory=CwlDefaults)
    doap: DoapDefaults = field(default_factory=DoapDefaults)

    def export_options(self, format_id: str) -> Dict[str, Any]:
        """Return configured defaults for a format as a plain option mapping."""
        if format_id == "galaxy":
            options: Dict[str, Any] = {
                "command": self.galaxy.command,
                "container": self.galaxy.container,
                "container_version": self.galaxy.container_version,
                "profile": self.galaxy.profile,
            }
        elif format_id == "cwl":
            options = {
                "cwl_version": self.cwl.version,
                "base_command": self.cwl.base_command,
                "container": self.cwl.container,
            }
        elif format_id == "doap":
            options = {"format": self.doap.format, "maintainer": self.doap.maintainer}
        else:
            options = {}
        return {key: value for key, value in options.items() if value is not None}


def load_config(config_path: Path, *, environ: Mapping[str, str] | None = None) -> ToolSpecConfig:
    """Load configuration from disk and apply environment overrides."""
    env = os.environ if environ is None else environ
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    config = ToolSpecConfig(root=root)
    if config_file.exists():
        data = _read_config(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")
        _apply_file_settings(config, data)

    _apply_env_overrides(config, env)
    return config


def _apply_file_settings(config: ToolSpecConfig, data: Dict[str, Any]) -> None:
    github_data = _as_dict(data.get("github"))
    if github_data:
        config.github.api_base = _as_str(github_data.get("api_base")) or DEFAULT_API_BASE
        config.github.token = _as_str(github_data.get("token"))
        timeout = _as_float(github_data.get("timeout"))
        if timeout is not None and timeout > 0:
            config.github.timeout = timeout

    export_data = _as_dict(data.get("export"))
    config.export_format = _as_str(export_data.get("format")) if export_data else None

    galaxy_data = _as_dict(data.get("galaxy"))
    if galaxy_data:
        config.galaxy = GalaxyDefaults(
            command=_as_str(galaxy_data.get("command")),
            container=_as_str(galaxy_data.get("container")),
            container_version=_as_str(galaxy_data.get("container_version")),
            profile=_as_str(galaxy_data.get("profile")),
        )

    cwl_data = _as_dict(data.get("cwl"))
    if cwl_data:
        config.cwl = CwlDefaults(
            version=_as_str(cwl_data.get("version")),
            base_command=_as_str(cwl_data.get("base_command")),
            container=_as_str(cwl_data.get("container")),
        )

    doap_data = _as_dict(data.get("doap"))
    if doap_data:
        config.doap = DoapDefaults(
            format=_as_str(doap_data.get("format")),
            maintainer=_as_str(doap_data.get("maintainer")),
        )


def _apply_env_overrides(config: ToolSpecConfig, env: Mapping[str, str]) -> None:
    api_base = _first_env(env, ENV_API_BASE_KEYS)
    if api_base:
        config.github.api_base = api_base
    token = _first_env(env, ENV_TOKEN_KEYS)
    if token:
        config.github.token = token
    config.github.api_base = config.github.api_base.rstrip("/")


def _first_env(env: Mapping[str, str], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = env.get(key)
        if value and value.strip():
            return value.strip()
    return None


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "CwlDefaults",
    "DoapDefaults",
    "GalaxyDefaults",
    "GitHubSettings",
    "ToolSpecConfig",
    "load_config",
]
