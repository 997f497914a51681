"""Workspace configuration support for the matthiashihic CLI."""

from __future__ import annotations

import json
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .lang import DEFAULT_API_BASE, DEFAULT_API_KEY_ENV, DEFAULT_MODEL

CONFIG_FILENAMES = ("matthiashihic.toml", ".matthiashihicrc")


class ConfigError(ValueError):
    """Raised when a configuration file cannot be parsed."""


@dataclass
class WorkspaceDefaults:
    """Defaults applied to every program unless overridden."""

    model: str = DEFAULT_MODEL
    api_base: str = DEFAULT_API_BASE
    api_key: Optional[str] = None
    api_key_env: str = DEFAULT_API_KEY_ENV
    emit: str = "zipapp"
    python: str = "/usr/bin/env python3"
    output_dir: Optional[Path] = None
    bundle_deps: bool = False


@dataclass
class ProgramConfig:
    """Per-program overrides from a ``[programs.<name>]`` table."""

    name: str
    file: Path
    output: Optional[Path] = None
    model: Optional[str] = None
    api_base: Optional[str] = None
    emit: Optional[str] = None


@dataclass
class WorkspaceConfig:
    """Resolved workspace configuration."""

    root: Path
    defaults: WorkspaceDefaults = field(default_factory=WorkspaceDefaults)
    programs: Dict[str, ProgramConfig] = field(default_factory=dict)
    path: Optional[Path] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    def match(self, source_path: Path) -> Optional[ProgramConfig]:
        """Program entry whose file resolves to ``source_path``."""
        resolved = source_path.resolve()
        for entry in self.programs.values():
            if entry.file.resolve() == resolved:
                return entry
        return None


def _read_json_config(path: Path) -> Dict[str, Any]:
    content = path.read_text(encoding="utf-8")
    return json.loads(content)


def _read_toml_config(path: Path) -> Dict[str, Any]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _resolve_path(raw: Any, root: Path) -> Path:
    path = Path(str(raw))
    if not path.is_absolute():
        path = (root / path).resolve()
    return path


def _parse_defaults(data: Dict[str, Any], root: Path) -> WorkspaceDefaults:
    section = data.get("defaults") or {}
    output_dir = section.get("output_dir")
    return WorkspaceDefaults(
        model=str(section.get("model") or WorkspaceDefaults.model),
        api_base=str(section.get("api_base") or WorkspaceDefaults.api_base),
        api_key=str(section["api_key"]) if section.get("api_key") else None,
        api_key_env=str(section.get("api_key_env") or WorkspaceDefaults.api_key_env),
        emit=str(section.get("emit") or WorkspaceDefaults.emit),
        python=str(section.get("python") or WorkspaceDefaults.python),
        output_dir=_resolve_path(output_dir, root) if output_dir else None,
        bundle_deps=bool(section.get("bundle_deps", WorkspaceDefaults.bundle_deps)),
    )


def _parse_programs(data: Dict[str, Any], root: Path) -> Dict[str, ProgramConfig]:
    section = data.get("programs") or {}
    programs: Dict[str, ProgramConfig] = {}
    for name, raw in section.items():
        if not isinstance(raw, dict):
            continue
        output = raw.get("output")
        programs[name] = ProgramConfig(
            name=name,
            file=_resolve_path(raw.get("file") or f"{name}.matthiashihic", root),
            output=_resolve_path(output, root) if output else None,
            model=str(raw["model"]) if raw.get("model") else None,
            api_base=str(raw["api_base"]) if raw.get("api_base") else None,
            emit=str(raw["emit"]) if raw.get("emit") else None,
        )
    return programs


def locate_config_file(root: Path, explicit: Optional[Path] = None) -> Optional[Path]:
    if explicit is not None:
        return explicit if explicit.exists() else None
    for candidate in CONFIG_FILENAMES:
        path = root / candidate
        if path.exists():
            return path
    return None


def load_workspace_config(root: Path, explicit: Optional[Path] = None) -> WorkspaceConfig:
    """
    Load ``matthiashihic.toml`` (or ``.matthiashihicrc`` JSON) from ``root``.

    A missing file yields built-in defaults.

    Raises:
        ConfigError: If the file exists but cannot be parsed
    """
    root = root.resolve()
    config_path = locate_config_file(root, explicit)
    if config_path is None:
        return WorkspaceConfig(root=root)

    try:
        if config_path.suffix == ".toml":
            data = _read_toml_config(config_path)
        else:
            data = _read_json_config(config_path)
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Failed to read {config_path}: {exc}") from exc

    return WorkspaceConfig(
        root=root,
        defaults=_parse_defaults(data, root),
        programs=_parse_programs(data, root),
        path=config_path,
        raw=data,
    )


def resolve_credential(
    explicit: Optional[str],
    defaults: WorkspaceDefaults,
    environ: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    """
    Credential for a build: CLI flag, then config ``api_key``, then the
    environment variable named by ``api_key_env``.
    """
    if explicit:
        return explicit
    if defaults.api_key:
        return defaults.api_key
    environ = os.environ if environ is None else environ
    return environ.get(defaults.api_key_env) or None
