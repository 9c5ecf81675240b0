"""
Configuration management for ntpsync CLI.

Handles:
- config file (INI format) reading/writing
- Value validation, clamping and legacy key migration
- Global CLI options (set by the app callback)
"""

import logging
import os
from dataclasses import fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from ntpsync.core import SyncConfig
from ntpsync.system import get_num_tz_services
from ntpsync.utils.constants import (
    MIN_TIMEOUT, MAX_TIMEOUT, MIN_TOLERANCE_MS, MAX_TOLERANCE_MS,
    MIN_THREADS, MAX_THREADS, MIN_UTC_OFFSET, MAX_UTC_OFFSET,
    MIN_NOTIFY, MAX_NOTIFY, MIN_INTERVAL, MAX_INTERVAL,
)
from ntpsync.utils.exceptions import ConfigError

logger = logging.getLogger(__name__)


# ============================================================================
# Global Options (set by CLI callback)
# ============================================================================

class GlobalOptions:
    """Global CLI options storage."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._config_path = None
            cls._instance._debug = False
        return cls._instance

    @property
    def config_path(self) -> Optional[str]:
        return self._config_path

    @config_path.setter
    def config_path(self, value: Optional[str]):
        self._config_path = value

    @property
    def debug(self) -> bool:
        return self._debug

    @debug.setter
    def debug(self, value: bool):
        self._debug = value

    def set(self, config_path: str = None, debug: bool = False):
        """Set global options."""
        self._config_path = config_path
        self._debug = debug

    def get(self) -> Dict[str, Any]:
        """Get all global options as dict."""
        return {
            'config_path': self._config_path,
            'debug': self._debug
        }

    def clear(self):
        """Clear all global options."""
        self._config_path = None
        self._debug = False


# Singleton instance
GLOBAL_OPTIONS = GlobalOptions()


# ============================================================================
# Value parsing
# ============================================================================

def _parse_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False
    raise ConfigError(f"Invalid boolean: {text!r}")


def _int_parser(lo: int, hi: int) -> Callable[[str], int]:
    def parse(text: str) -> int:
        try:
            value = int(text.strip())
        except ValueError:
            raise ConfigError(f"Invalid integer: {text!r}")
        return max(lo, min(hi, value))
    return parse


def _parse_tz_service(text: str) -> int:
    return _int_parser(0, get_num_tz_services() - 1)(text)


def _parse_server(text: str) -> str:
    value = text.strip()
    if not value:
        raise ConfigError("Server list cannot be empty")
    return value


# KEY -> (SyncConfig field, parser)
CONFIG_KEYS: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    'SERVER': ('server', _parse_server),
    'TIMEOUT': ('timeout', _int_parser(MIN_TIMEOUT, MAX_TIMEOUT)),
    'TOLERANCE': ('tolerance', _int_parser(MIN_TOLERANCE_MS, MAX_TOLERANCE_MS)),
    'THREADS': ('threads', _int_parser(MIN_THREADS, MAX_THREADS)),
    'AUTO_TZ': ('auto_tz', _parse_bool),
    'TZ_SERVICE': ('tz_service', _parse_tz_service),
    'UTC_OFFSET': ('utc_offset', _int_parser(MIN_UTC_OFFSET, MAX_UTC_OFFSET)),
    'NOTIFY': ('notify', _int_parser(MIN_NOTIFY, MAX_NOTIFY)),
    'SYNC_ON_BOOT': ('sync_on_boot', _parse_bool),
    'SYNC_ON_CHANGES': ('sync_on_changes', _parse_bool),
    'LOCAL_CLOCK': ('local_clock', _parse_bool),
    'INTERVAL': ('interval', _int_parser(MIN_INTERVAL, MAX_INTERVAL)),
}

# Changing any of these warrants a new synchronization pass.
IMPORTANT_KEYS = ('AUTO_TZ', 'TOLERANCE', 'TZ_SERVICE', 'UTC_OFFSET')

SECTION = 'SYNC'


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


# ============================================================================
# Config File Management
# ============================================================================

class ConfigManager:
    """
    Manages the ntpsync configuration file (INI format).

    File format:
        [SYNC]
        SERVER=pool.ntp.org
        TOLERANCE=500
        UTC_OFFSET=60
    """

    @staticmethod
    def default_path() -> str:
        override = os.environ.get('NTPSYNC_CONFIG')
        if override:
            return override
        return str(Path.home() / '.ntpsync' / 'config')

    @staticmethod
    def resolve_path(path: Optional[str] = None) -> str:
        return path or GLOBAL_OPTIONS.config_path or ConfigManager.default_path()

    @staticmethod
    def read(path: str) -> Dict[str, str]:
        """
        Read the [SYNC] section of an INI-style file.

        Returns:
            dict of upper-case KEY -> raw string value
        """
        result: Dict[str, str] = {}

        if not os.path.exists(path):
            return result

        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()

        current_section = None
        for line in content.splitlines():
            line = line.strip()

            # Skip empty lines and comments
            if not line or line.startswith('#') or line.startswith(';'):
                continue

            # Section header
            if line.startswith('[') and line.endswith(']'):
                current_section = line[1:-1].strip().upper()
                continue

            # Key=Value pairs
            if '=' in line and current_section == SECTION:
                key, value = line.split('=', 1)
                result[key.strip().upper()] = value.strip()

        return result

    @staticmethod
    def write(path: str, values: Dict[str, str]):
        """
        Write an INI-style file holding a single [SYNC] section.

        Args:
            path: Path to config file
            values: KEY -> string value
        """
        lines = [f'[{SECTION}]']
        for key, value in values.items():
            lines.append(f'{key}={value}')
        lines.append('')

        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        tmp = path + '.tmp'
        with open(tmp, 'w', encoding='utf-8') as f:
            f.write('\n'.join(lines))
        os.replace(tmp, path)

    @staticmethod
    def migrate(raw: Dict[str, str]) -> bool:
        """Rewrite legacy keys in place. Returns True if anything changed."""
        changed = False

        if 'HOURS' in raw or 'MINUTES' in raw:
            hours = raw.pop('HOURS', '0')
            minutes = raw.pop('MINUTES', '0')
            if 'UTC_OFFSET' not in raw:
                try:
                    raw['UTC_OFFSET'] = str(int(hours) * 60 + int(minutes))
                except ValueError:
                    logger.warning("Dropping invalid legacy UTC offset %s:%s", hours, minutes)
            changed = True

        if 'SYNC' in raw:
            legacy = raw.pop('SYNC')
            raw.setdefault('SYNC_ON_BOOT', legacy)
            changed = True

        return changed

    @staticmethod
    def from_raw(raw: Dict[str, str]) -> SyncConfig:
        """Build a config from raw values; unknown keys are ignored, bad values use defaults."""
        values = {}
        for key, text in raw.items():
            if key not in CONFIG_KEYS:
                logger.debug("Ignoring unknown config key %s", key)
                continue
            name, parse = CONFIG_KEYS[key]
            try:
                values[name] = parse(text)
            except ConfigError as e:
                logger.warning("%s: %s; using default", key, e.message)
        return SyncConfig(**values)

    @staticmethod
    def to_raw(config: SyncConfig) -> Dict[str, str]:
        return {key: format_value(getattr(config, name))
                for key, (name, _) in CONFIG_KEYS.items()}

    @staticmethod
    def load(path: Optional[str] = None) -> SyncConfig:
        path = ConfigManager.resolve_path(path)
        raw = ConfigManager.read(path)
        migrated = ConfigManager.migrate(raw)
        config = ConfigManager.from_raw(raw)
        if migrated:
            logger.info("Migrated legacy configuration in %s", path)
            ConfigManager.save(config, path)
        return config

    @staticmethod
    def save(config: SyncConfig, path: Optional[str] = None):
        ConfigManager.write(ConfigManager.resolve_path(path), ConfigManager.to_raw(config))

    @staticmethod
    def set(key: str, value: str, path: Optional[str] = None) -> Tuple[SyncConfig, SyncConfig]:
        """Validate and store one key. Returns (old, new) configuration."""
        key = key.strip().upper()
        if key not in CONFIG_KEYS:
            raise ConfigError(f"Unknown key: {key}")
        name, parse = CONFIG_KEYS[key]

        old = ConfigManager.load(path)
        new = replace(old, **{name: parse(value)})
        ConfigManager.save(new, path)
        return old, new

    @staticmethod
    def set_and_store_utc_offset(offset: int, path: Optional[str] = None) -> SyncConfig:
        _, new = ConfigManager.set('UTC_OFFSET', str(offset), path)
        return new

    @staticmethod
    def important_vars_changed(old: SyncConfig, new: SyncConfig) -> bool:
        return any(getattr(old, CONFIG_KEYS[key][0]) != getattr(new, CONFIG_KEYS[key][0])
                   for key in IMPORTANT_KEYS)

    @staticmethod
    def describe(config: SyncConfig) -> Dict[str, str]:
        """KEY -> display string, in file order."""
        names = {f.name for f in fields(config)}
        return {key: format_value(getattr(config, name))
                for key, (name, _) in CONFIG_KEYS.items() if name in names}
