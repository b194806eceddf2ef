"""Load BundlerConfig from bundler.yaml / bundler.toml if present.

Merges file config with keyword overrides. Overrides win.
"""

from __future__ import annotations

import tomllib
from dataclasses import fields
from pathlib import Path

import yaml

from tinybundler._errors import ConfigError
from tinybundler.config import BundlerConfig

# camelCase spellings accepted in config files
_ALIASES: dict[str, str] = {
    "assetsDir": "assets_dir",
    "backendDir": "backend_dir",
    "backendLanguage": "backend_language",
    "backendCommand": "backend_command",
    "bundleDir": "bundle_dir",
    "frontendAlias": "frontend_alias",
    "frontendDir": "frontend_dir",
    "templateDir": "template_dir",
    "tempDir": "temp_dir",
    "autoReload": "auto_reload",
    "cssCompiler": "css_compiler",
    "watchBackend": "watch_backend",
    "pollInterval": "poll_interval",
    "reloadPort": "reload_port",
}

_FIELDS = frozenset(f.name for f in fields(BundlerConfig)) - {"root"}


def load_config(root: Path, **overrides: object) -> BundlerConfig:
    """Load BundlerConfig from *root*, merging ``bundler.yaml`` or ``bundler.toml``.

    Raises:
        ConfigError: If a config file exists but cannot be parsed, or a value
            has the wrong shape.

    """
    file_config = _read_config_file(root)
    merged = {**file_config, **_normalize(overrides)}
    command = merged.get("backend_command")
    if command is not None:
        if isinstance(command, str):
            command = command.split()
        if not isinstance(command, (list, tuple)):
            msg = f"backend_command must be a string or list, got {type(command).__name__}"
            raise ConfigError(msg)
        merged["backend_command"] = tuple(str(part) for part in command)
    try:
        return BundlerConfig(root=root, **merged)  # type: ignore[arg-type]
    except TypeError as exc:
        msg = f"Invalid configuration in {root}: {exc}"
        raise ConfigError(msg) from exc


def _read_config_file(root: Path) -> dict[str, object]:
    """Read the first config file found in *root*. Returns {} when there is none."""
    for name in ("bundler.yaml", "bundler.yml"):
        path = root / name
        if path.is_file():
            try:
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
            except yaml.YAMLError as exc:
                msg = f"Failed to parse {path}: {exc}"
                raise ConfigError(msg) from exc
            return _flatten(data, path)
    toml_path = root / "bundler.toml"
    if toml_path.is_file():
        try:
            data = tomllib.loads(toml_path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as exc:
            msg = f"Failed to parse {toml_path}: {exc}"
            raise ConfigError(msg) from exc
        return _flatten(data, toml_path)
    return {}


def _flatten(data: object, path: Path) -> dict[str, object]:
    """Extract the ``tinybundler`` section and known top-level keys."""
    if not isinstance(data, dict):
        msg = f"{path} must contain a mapping, got {type(data).__name__}"
        raise ConfigError(msg)
    result: dict[str, object] = {}
    for k, v in data.items():
        if k != "tinybundler":
            result[k] = v
    section = data.get("tinybundler")
    if isinstance(section, dict):
        result.update(section)
    return _normalize(result)


def _normalize(values: dict[str, object]) -> dict[str, object]:
    """Map camelCase keys to field names and drop unknown keys."""
    result: dict[str, object] = {}
    for key, value in values.items():
        name = _ALIASES.get(key, key)
        if name in _FIELDS:
            result[name] = value
    return result
