import logging
import logging.config
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from errors import ConfigError

DEFAULT_CONFIG_FILE = "jsinfer.yaml"
REPORT_MODES = ("identifiers", "all")

_LOGGING: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {"format": "%(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
            "formatter": "standard",
        },
    },
    "root": {"level": "WARNING", "handlers": ["console"]},
}

@dataclass(frozen=True)
class Settings:
    log_level: str = "WARNING"
    report: str = "identifiers"
    prelude: bool = True

    def __post_init__(self):
        if self.report not in REPORT_MODES:
            raise ConfigError(f"report must be one of {', '.join(REPORT_MODES)}, got {self.report!r}")
        if not isinstance(self.log_level, str) or not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ConfigError(f"unknown log level {self.log_level!r}")
        if not isinstance(self.prelude, bool):
            raise ConfigError(f"prelude must be true or false, got {self.prelude!r}")

    def override(self, **changes) -> "Settings":
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def load_settings(path: str | Path | None = None) -> Settings:
    """Read settings from ``path``, or from ``jsinfer.yaml`` when it exists.

    A missing default file means defaults; a missing explicit file is an
    error.
    """
    if path is None:
        path = Path(DEFAULT_CONFIG_FILE)
        if not path.exists():
            return Settings()
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"configuration file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"failed to parse {path}: {exc}") from exc
    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: configuration root must be a mapping")
    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"{path}: unknown settings {', '.join(unknown)}")
    return Settings(**data)

def configure_logging(level: str) -> None:
    config = {**_LOGGING, "root": {**_LOGGING["root"], "level": level.upper()}}
    logging.config.dictConfig(config)
