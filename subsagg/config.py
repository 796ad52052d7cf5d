"""Loading of the service configuration from a file and the environment."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class ServerConfig:
    host: str = ""
    port: str = ""
    log_level: str = "info"


@dataclass
class RepoConfig:
    driver_name: str = ""
    uri: str = ""
    max_open_conns: int = 15
    migrations_dir: str = ""


@dataclass
class Config:
    server: ServerConfig = field(default_factory=ServerConfig)
    subs_repo: RepoConfig = field(default_factory=RepoConfig)


# (attribute, file key, environment variable, default, type)
_SERVER_FIELDS = (
    ("host", "host", "HOST", None, str),
    ("port", "port", "PORT", None, str),
    ("log_level", "log_level", None, "info", str),
)
_REPO_FIELDS = (
    ("driver_name", "driver", None, None, str),
    ("uri", "db_uri", "DB_URI", None, str),
    ("max_open_conns", "max_open_conns", None, "15", int),
    ("migrations_dir", "migrations_dir", "MIGRATIONS_DIR", None, str),
)


def _convert(raw: Any, kind: type, name: str) -> Any:
    if isinstance(raw, (dict, list)):
        raise ValueError(f"config field {name!r} must be a scalar")
    if kind is str:
        if isinstance(raw, bool):
            return "true" if raw else "false"
        return str(raw)
    if isinstance(raw, bool) or isinstance(raw, float):
        raise ValueError(f"config field {name!r} must be an integer")
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"config field {name!r} must be an integer") from exc


def _section(data: dict, key: str) -> dict:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise ValueError(f"config section {key!r} must be a mapping")
    return section


def _build(cls: type, section: dict, specs: tuple) -> Any:
    values = {}
    for attr, key, env, default, kind in specs:
        raw = section.get(key)
        value = _convert(raw, kind, key) if raw is not None else kind()
        if env is not None and env in os.environ:
            value = _convert(os.environ[env], kind, env)
        elif default is not None and not value:
            value = _convert(default, kind, key)
        values[attr] = value
    return cls(**values)


def _read_file(path: Path) -> dict:
    suffix = path.suffix.lower()
    with path.open("r", encoding="utf-8") as fh:
        if suffix in (".yaml", ".yml"):
            data = yaml.safe_load(fh)
        elif suffix == ".json":
            data = json.load(fh)
        else:
            raise ValueError(f"file format '{suffix}' doesn't supported by the parser")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("config root must be a mapping")
    return data


def load_config(path: str | os.PathLike) -> Config:
    """Read the config file; environment variables override its values."""
    data = _read_file(Path(path))
    return Config(
        server=_build(ServerConfig, _section(data, "server"), _SERVER_FIELDS),
        subs_repo=_build(RepoConfig, _section(data, "subscriptions-repo"), _REPO_FIELDS),
    )