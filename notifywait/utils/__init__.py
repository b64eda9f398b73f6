# notifywait/utils/__init__.py

"""
notifywait Utilities
"""
from .config import WatchConfig, ConfigError, load_config
from .logger import setup_logging, log_exception

__all__ = [
    'WatchConfig', 'ConfigError', 'load_config',
    'setup_logging', 'log_exception',
]
