"""
Configuration - where the memory lives and how picky the health checks are.

Settings are layered, later layers win:
1. Built-in defaults
2. YAML file (~/.recollect/config/recollect.yaml, or $RECOLLECT_CONFIG)
3. Environment variables (RECOLLECT_MEMORY_PATH, RECOLLECT_STALE_DAYS,
   RECOLLECT_DUPLICATE_THRESHOLD, RECOLLECT_LOG_LEVEL)
4. Explicit arguments (the command line)

A broken config never stops the server: bad YAML or a bad value is logged
and the lower layer's value is kept.

Example recollect.yaml:

    memory_path: ~/notes/memory.jsonl
    stale_threshold_days: 90
    duplicate_threshold: 0.9
    log_level: DEBUG
"""

import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

import yaml

from recollect.health import DEFAULT_DUPLICATE_THRESHOLD, DEFAULT_STALE_THRESHOLD_DAYS
from recollect.storage import DEFAULT_MEMORY_PATH


logger = logging.getLogger("recollect.config")

DEFAULT_CONFIG_PATH = Path.home() / ".recollect" / "config" / "recollect.yaml"
WORKING_MEMORY_FILENAME = "working_memory.json"

ENV_CONFIG_PATH = "RECOLLECT_CONFIG"
ENV_OVERRIDES = {
    "RECOLLECT_MEMORY_PATH": "memory_path",
    "RECOLLECT_STALE_DAYS": "stale_threshold_days",
    "RECOLLECT_DUPLICATE_THRESHOLD": "duplicate_threshold",
    "RECOLLECT_LOG_LEVEL": "log_level",
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class RecollectConfig:
    memory_path: Path = DEFAULT_MEMORY_PATH
    working_memory_path: Optional[Path] = None  # defaults to beside memory_path
    stale_threshold_days: float = DEFAULT_STALE_THRESHOLD_DAYS
    duplicate_threshold: float = DEFAULT_DUPLICATE_THRESHOLD
    log_level: str = "INFO"

    def __post_init__(self):
        self.memory_path = Path(self.memory_path).expanduser()
        if self.working_memory_path is None:
            self.working_memory_path = self.memory_path.parent / WORKING_MEMORY_FILENAME
        else:
            self.working_memory_path = Path(self.working_memory_path).expanduser()

    def to_dict(self) -> dict:
        data = asdict(self)
        data["memory_path"] = str(self.memory_path)
        data["working_memory_path"] = str(self.working_memory_path)
        return data


# =============================================================================
# VALUE PARSING
# =============================================================================

def _parse_path(value) -> Path:
    if not isinstance(value, (str, os.PathLike)) or not str(value).strip():
        raise ValueError(f"not a path: {value!r}")
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = Path.cwd() / path
    return path


def _parse_days(value) -> float:
    days = float(value)
    if days <= 0:
        raise ValueError(f"stale threshold must be positive, got {days}")
    return days


def _parse_threshold(value) -> float:
    threshold = float(value)
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"duplicate threshold must be between 0 and 1, got {threshold}")
    return threshold


def _parse_level(value) -> str:
    level = str(value).upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"unknown log level {value!r}")
    return level


PARSERS = {
    "memory_path": _parse_path,
    "working_memory_path": _parse_path,
    "stale_threshold_days": _parse_days,
    "duplicate_threshold": _parse_threshold,
    "log_level": _parse_level,
}


def _apply(values: dict, source: str, settings: dict) -> None:
    """Parse each known setting into ``settings``; skip bad ones with a warning."""
    for key, raw in values.items():
        parser = PARSERS.get(key)
        if parser is None:
            logger.warning(f"Ignoring unknown setting {key!r} from {source}")
            continue
        if raw is None:
            continue
        try:
            settings[key] = parser(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring invalid {key} from {source}: {e}")


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not read config file {path}, using defaults: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Config file {path} is not a mapping, using defaults")
        return {}
    return data


# =============================================================================
# LOADING
# =============================================================================

def load_config(
    memory_path: Optional[str] = None,
    log_level: Optional[str] = None,
    config_path: Optional[Path] = None,
    environ: Optional[dict] = None,
) -> RecollectConfig:
    """
    Build the effective configuration.

    Args:
        memory_path: Graph file from the command line (highest precedence)
        log_level: Log level from the command line
        config_path: YAML file to read; defaults to $RECOLLECT_CONFIG or
                     ~/.recollect/config/recollect.yaml
        environ: Environment mapping, os.environ when omitted

    Returns:
        RecollectConfig with every layer applied
    """
    env = os.environ if environ is None else environ

    if config_path is None:
        config_path = Path(env[ENV_CONFIG_PATH]).expanduser() if env.get(ENV_CONFIG_PATH) else DEFAULT_CONFIG_PATH

    settings: dict = {}
    _apply(_read_yaml(Path(config_path)), str(config_path), settings)
    _apply(
        {key: env[name] for name, key in ENV_OVERRIDES.items() if env.get(name)},
        "environment",
        settings,
    )
    _apply({"memory_path": memory_path, "log_level": log_level}, "command line", settings)

    config = RecollectConfig(**settings)
    logger.debug(f"Effective config: {config.to_dict()}")
    return config
