# notifywait/utils/config.py

"""
Configuration management for notifywait
"""
import os
import re
import json
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
from dataclasses import dataclass, field, asdict, fields
import logging

logger = logging.getLogger(__name__)

KNOWN_EVENTS = ('create', 'modify', 'delete', 'move')
DEFAULT_EVENTS = list(KNOWN_EVENTS)
DEFAULT_FORMAT = "%T %w%f %e"
DEFAULT_TIMEFMT = "%Y-%m-%d %H:%M:%S"
DEFAULT_TIMEOUT = 10  # seconds

# Debounce timing
DEFAULT_POLL_INTERVAL = 0.100  # seconds between flush ticks
DEFAULT_QUIET_PERIOD = 0.075  # seconds a key must stay idle before it is emitted


class ConfigError(Exception):
    """Invalid or missing configuration"""


@dataclass
class WatchConfig:
    """Watch configuration produced by the command line or a config file"""
    paths: List[Path] = field(default_factory=list)
    recursive: bool = False
    monitor: bool = False
    quiet: bool = False
    events: List[str] = field(default_factory=lambda: list(DEFAULT_EVENTS))

    # Output
    format: str = DEFAULT_FORMAT
    timefmt: str = DEFAULT_TIMEFMT

    # Exclusion (case-sensitive / case-insensitive)
    exclude: Optional[str] = None
    excludei: Optional[str] = None

    # Command execution
    execute: Optional[str] = None
    parameter: str = ""
    timeout: int = DEFAULT_TIMEOUT

    # Engine
    poll_interval: float = DEFAULT_POLL_INTERVAL
    quiet_period: float = DEFAULT_QUIET_PERIOD
    use_polling: bool = False
    watch_stdin: bool = True

    # Logging
    log_level: str = "WARNING"
    log_file: Optional[str] = None
    log_format: str = "text"  # text, json, or color

    def __post_init__(self):
        # Convert strings to Path objects if needed
        self.paths = [Path(p) if isinstance(p, str) else p for p in self.paths]

        if isinstance(self.events, str):
            self.events = [e for e in self.events.split(',') if e.strip()]
        else:
            split = []
            for token in self.events:
                split.extend(e for e in token.split(',') if e.strip())
            self.events = split
        self.events = [e.strip().lower() for e in self.events]

    def validate(self):
        """
        Check the configuration before any watch is started

        Raises:
            ConfigError: if a value is missing or invalid
        """
        if not self.paths:
            raise ConfigError("At least one path to watch is required")

        if not self.events:
            raise ConfigError("At least one event must be selected")
        unknown = [e for e in self.events if e not in KNOWN_EVENTS]
        if unknown:
            raise ConfigError(f"Unknown event: {', '.join(unknown)} (expected one of {', '.join(KNOWN_EVENTS)})")

        if self.exclude is not None and self.excludei is not None:
            raise ConfigError("Use either exclude or excludei, not both")

        for pattern in (self.exclude, self.excludei):
            if pattern is None:
                continue
            try:
                re.compile(pattern)
            except re.error as e:
                raise ConfigError(f"Invalid exclude pattern '{pattern}': {e}") from e

        if not isinstance(self.timeout, int) or self.timeout <= 0:
            raise ConfigError(f"Timeout must be a positive number of seconds, got {self.timeout}")

        if self.poll_interval <= 0 or self.quiet_period < 0:
            raise ConfigError("poll_interval must be positive and quiet_period non-negative")

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary"""
        data = asdict(self)
        data['paths'] = [str(p) for p in self.paths]
        return data

    def to_yaml(self) -> str:
        """Convert config to YAML string"""
        return yaml.safe_dump(self.to_dict(), default_flow_style=False)

    def update_from_dict(self, data: Dict[str, Any]):
        """Update config from dictionary, ignoring unknown keys"""
        known = {f.name for f in fields(self)}
        for key, value in data.items():
            key = key.replace('-', '_')
            if key in known:
                setattr(self, key, value)
            else:
                logger.warning(f"Ignoring unknown configuration key: {key}")

        # Re-normalize paths and events
        self.__post_init__()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WatchConfig":
        config = cls()
        config.update_from_dict(data)
        return config


def load_config(path: Union[str, Path]) -> WatchConfig:
    """
    Load configuration from a YAML or JSON file

    Args:
        path: Config file path

    Returns:
        Loaded configuration

    Raises:
        ConfigError: if the file is missing or cannot be parsed
    """
    config_path = Path(os.path.expanduser(str(path)))
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading configuration from {config_path}")
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            if config_path.suffix.lower() in ['.yaml', '.yml']:
                data = yaml.safe_load(f)
            else:  # JSON
                data = json.load(f)
    except (yaml.YAMLError, json.JSONDecodeError, OSError) as e:
        raise ConfigError(f"Error loading configuration from {config_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration in {config_path} must be a mapping")

    return WatchConfig.from_dict(data)
