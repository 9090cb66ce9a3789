#!/usr/bin/env python3
"""
Configuration management for the rendezvous barrier.

Settings come from defaults, then environment variables, then the first
JSON config file found.
"""

import os
import json
import logging
from typing import Dict, Any, Optional
from dataclasses import dataclass, asdict, field, fields
from pathlib import Path

logger = logging.getLogger(__name__)


def _coerce(key: str, field_type: type, value: Any) -> Any:
    """Convert a config file value to the field's type or raise ValueError."""
    if isinstance(value, field_type):
        return value
    if field_type is bool and isinstance(value, str) and value.lower() in ('true', 'false'):
        return value.lower() == 'true'
    if field_type is float and isinstance(value, (int, str)) and not isinstance(value, bool):
        try:
            return float(value)
        except ValueError:
            pass
    raise ValueError(f"Config value {key} must be {field_type.__name__}, got {value!r}")


@dataclass
class BarrierConfig:
    """Barrier protocol settings."""
    poll_interval: float = 1.0
    all_clear_name: str = "AllClear"


@dataclass
class OperationalConfig:
    """Operational configuration."""
    log_level: str = "INFO"
    enable_metrics: bool = True


@dataclass
class RendezvousConfig:
    """Main rendezvous configuration."""
    barrier: BarrierConfig = field(default_factory=BarrierConfig)
    operational: OperationalConfig = field(default_factory=OperationalConfig)
    load_external: bool = True

    def __post_init__(self):
        """Load configuration from environment and files."""
        if self.load_external:
            self._load_from_environment()
            self._load_from_config_files()
        self.validate()

    def _load_from_environment(self):
        """Load configuration from environment variables."""
        self.barrier.poll_interval = float(os.getenv('RENDEZVOUS_POLL_INTERVAL', self.barrier.poll_interval))
        self.barrier.all_clear_name = os.getenv('RENDEZVOUS_ALL_CLEAR_NAME', self.barrier.all_clear_name)

        self.operational.log_level = os.getenv('RENDEZVOUS_LOG_LEVEL', self.operational.log_level)
        self.operational.enable_metrics = os.getenv(
            'RENDEZVOUS_ENABLE_METRICS', str(self.operational.enable_metrics)
        ).lower() == 'true'

    def _load_from_config_files(self):
        """Load configuration from config files."""
        config_paths = [
            Path.home() / '.rendezvous' / 'config.json',
            Path.cwd() / 'rendezvous.json',
        ]
        if os.getenv('RENDEZVOUS_CONFIG_FILE'):
            config_paths.append(Path(os.environ['RENDEZVOUS_CONFIG_FILE']))

        for config_path in config_paths:
            if config_path.is_file():
                try:
                    with open(config_path, 'r') as f:
                        config_data = json.load(f)
                except (OSError, ValueError) as e:
                    logger.warning(f"Failed to load config from {config_path}: {e}")
                    continue

                self._update_from_dict(config_data)
                logger.debug(f"Loaded config from {config_path}")
                break  # Use first found config file

    def _update_from_dict(self, data: Dict[str, Any]):
        """Update configuration from dictionary, converting values to each field's type."""
        for section_name in ('barrier', 'operational'):
            section = getattr(self, section_name)
            types = {f.name: f.type for f in fields(section)}
            for key, value in data.get(section_name, {}).items():
                if key not in types:
                    logger.warning(f"Ignoring unknown config key {section_name}.{key}")
                    continue
                setattr(section, key, _coerce(f"{section_name}.{key}", types[key], value))

    def validate(self):
        """Raise ValueError on settings the barrier cannot work with."""
        if self.barrier.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.barrier.poll_interval}")
        name = self.barrier.all_clear_name
        if not name or '/' in name:
            raise ValueError(f"all_clear_name must be a single node name, got {name!r}")
        if not isinstance(logging.getLevelName(str(self.operational.log_level).upper()), int):
            raise ValueError(f"log_level must be a logging level name, got {self.operational.log_level!r}")

    def save_to_file(self, path: Path):
        """Save configuration to file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            'barrier': asdict(self.barrier),
            'operational': asdict(self.operational),
        }


# Global configuration instance
_config: Optional[RendezvousConfig] = None

def get_config() -> RendezvousConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = RendezvousConfig()
    return _config

def init_config(config_file: Optional[str] = None) -> RendezvousConfig:
    """Initialize global configuration."""
    global _config
    _config = RendezvousConfig()

    if config_file:
        with open(config_file, 'r') as f:
            _config._update_from_dict(json.load(f))
        _config.validate()

    return _config

def save_config(path: Path):
    """Save current configuration to file."""
    get_config().save_to_file(path)


__all__ = [
    'BarrierConfig',
    'OperationalConfig',
    'RendezvousConfig',
    'get_config',
    'init_config',
    'save_config',
]
