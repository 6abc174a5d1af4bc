"""Settings loader.

Settings come from three layers, later ones winning::

    defaults  <  TOML file ([nebula] table)  <  NEBULA_* environment variables

Example ``nebula.toml``::

    [nebula]
    notes_dir      = "~/notes"
    backlink_limit = 20
    dangling_limit = 20
    log_level      = "DEBUG"
    log_file       = "~/.nebula/logs/nebula.log"

Environment variables:
    NEBULA_NOTES_DIR, NEBULA_BACKLINK_LIMIT, NEBULA_DANGLING_LIMIT,
    NEBULA_EXCERPT_LENGTH, NEBULA_LOG_LEVEL, NEBULA_LOG_FILE
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

APP_NAME = "nebula"
DEFAULT_NOTES_DIR = Path.home() / f".{APP_NAME}" / "notes"

_INT_FIELDS = {"backlink_limit", "dangling_limit", "excerpt_length"}
_PATH_FIELDS = {"notes_dir", "log_file"}


@dataclass(frozen=True)
class Settings:
    notes_dir: Path = DEFAULT_NOTES_DIR
    backlink_limit: int = 20
    dangling_limit: int = 20
    excerpt_length: int = 120
    log_level: str = "INFO"
    log_file: Path | None = None


def _coerce(name: str, value: Any) -> Any:
    if name in _INT_FIELDS:
        return int(value)
    if name in _PATH_FIELDS:
        return Path(str(value)).expanduser() if value not in (None, "") else None
    return str(value)


def load_settings(
    path: Path | str | None = None,
    env: Mapping[str, str] | None = None,
) -> Settings:
    """Build :class:`Settings` from an optional TOML file and the environment."""
    env = os.environ if env is None else env
    values: dict[str, Any] = {}

    if path is not None:
        with open(path, "rb") as fh:
            data = tomllib.load(fh)
        table = data.get(APP_NAME, data)
        known = {f.name for f in fields(Settings)}
        values.update({k: v for k, v in table.items() if k in known})

    for f in fields(Settings):
        raw = env.get(f"NEBULA_{f.name.upper()}")
        if raw is not None:
            values[f.name] = raw

    settings = replace(Settings(), **{k: _coerce(k, v) for k, v in values.items()})
    if settings.notes_dir is None:
        settings = replace(settings, notes_dir=DEFAULT_NOTES_DIR)
    return settings
