"""Configuration loading from defaults, an optional YAML file, and env vars."""

import logging
import os
from dataclasses import dataclass

import yaml

from tagtrack.models import SourceType

logger = logging.getLogger(__name__)

SINK_TYPES = ("jsonl", "logger", "memory")


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class Config:
    source_name: str | None = None
    source_type: SourceType = SourceType.APPL
    snapshot_category: str = "Logging"
    max_activity_size: int = 100
    metrics_on_exception: bool = True
    metrics_frequency: int = 60
    delimiter: str = "#"
    sink: str = "jsonl"
    output_file: str = "./tracking/events.jsonl"


def load_yaml_config(path: str | None) -> dict:
    """Load the YAML config file. Returns empty dict if no path or file missing."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info("Loaded YAML config from %s", path)
        return data
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}


def load_config(yaml_data: dict | None = None) -> Config:
    """Build Config from the YAML 'tracker' section, overridden by env vars."""
    section = (yaml_data or {}).get("tracker") or {}

    def pick(env_name: str, key: str, default):
        return os.environ.get(env_name, section.get(key, default))

    try:
        source_type = SourceType(str(pick("TAGTRACK_SOURCE_TYPE", "source_type",
                                          Config.source_type.value)).upper())
    except ValueError:
        raise ValueError("source_type must be one of "
                         + ", ".join(t.value for t in SourceType)) from None

    config = Config(
        source_name=pick("TAGTRACK_SOURCE_NAME", "source_name", Config.source_name),
        source_type=source_type,
        snapshot_category=pick("TAGTRACK_SNAPSHOT_CATEGORY", "snapshot_category",
                               Config.snapshot_category),
        max_activity_size=int(pick("TAGTRACK_MAX_ACTIVITY_SIZE", "max_activity_size",
                                   Config.max_activity_size)),
        metrics_on_exception=_parse_bool(
            pick("TAGTRACK_METRICS_ON_EXCEPTION", "metrics_on_exception", "true")
        ),
        metrics_frequency=int(pick("TAGTRACK_METRICS_FREQUENCY", "metrics_frequency",
                                   Config.metrics_frequency)),
        delimiter=pick("TAGTRACK_DELIMITER", "delimiter", Config.delimiter),
        sink=str(pick("TAGTRACK_SINK", "sink", Config.sink)).lower(),
        output_file=pick("TAGTRACK_OUTPUT_FILE", "output_file", Config.output_file),
    )

    if config.max_activity_size <= 0:
        raise ValueError("max_activity_size must be greater than 0")
    if config.metrics_frequency < 0:
        raise ValueError("metrics_frequency must not be negative")
    if len(config.delimiter) != 1:
        raise ValueError("delimiter must be a single character")
    if config.sink not in SINK_TYPES:
        raise ValueError(f"sink must be one of {', '.join(SINK_TYPES)}")
    return config
