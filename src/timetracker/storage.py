from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Sequence

import yaml

from .models import Config

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".timetracker"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.yaml"
CONFIG_ENV_VAR = "TIMETRACKER_CONFIG"


class ConfigError(RuntimeError):
    pass


def resolve_config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return DEFAULT_CONFIG_PATH


def load_config(path: Path | None = None) -> Config:
    path = path or resolve_config_path()
    if not path.exists():
        return Config()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Could not read config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config at {path} must be a mapping.")
    defaults = Config()
    try:
        config = Config(
            default_hours=float(data.get("default_hours", defaults.default_hours)),
            list_count=int(data.get("list_count", defaults.list_count)),
            log_level=str(data.get("log_level", defaults.log_level)).upper(),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid value in config at {path}: {exc}") from exc
    if not isinstance(logging.getLevelName(config.log_level), int):
        raise ConfigError(f"Unknown log_level {config.log_level!r} in config at {path}.")
    return config


class LedgerFile:
    """Plain-text ledger, one day per line."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self) -> list[str]:
        if not self.path.exists():
            logger.debug("Ledger %s does not exist yet, starting empty", self.path)
            return []
        try:
            lines = self.path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read ledger %s (%s), starting empty", self.path, exc)
            return []
        logger.debug("Read %d lines from %s", len(lines), self.path)
        return lines

    def write(self, lines: Sequence[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        content = "".join(f"{line}\n" for line in lines)
        self.path.write_text(content, encoding="utf-8")
        logger.debug("Wrote %d lines to %s", len(lines), self.path)
