"""
Configuration loading and resolution for the gpsdash dashboard.

Settings come from built-in defaults, an optional JSON file, the locale
(for units) and finally the command line. The file is only ever read.
"""

import json
import logging
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from .exceptions import ConfigurationError
from .formatting import DegreeFormat
from .gpsd_client import DEFAULT_HOST, DEFAULT_PORT
from .telemetry import DisplayMode
from .units import UnitPreference, UnitSystem, detect_unit_system
from .utils import ComponentType, ErrorSeverity, error_handler

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class DisplayConfig:
    """Display settings."""
    degree_format: str = "d"
    magnetic: bool = False
    silent: bool = False
    mode: str = "position"
    units: str = "auto"


@dataclass
class SourceConfig:
    """Location-data service settings."""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    device: Optional[str] = None


@dataclass
class LoggingConfig:
    """Log output settings."""
    file: Optional[str] = None
    level: str = "INFO"


@dataclass(frozen=True)
class DashboardConfig:
    """Fully resolved settings, fixed for the lifetime of the process."""
    degree_format: DegreeFormat
    magnetic: bool
    silent: bool
    mode: DisplayMode
    units: UnitPreference
    host: str
    port: int
    device: Optional[str]
    log_file: Optional[str]
    log_level: int


class ConfigValidator:
    """Configuration validation utilities."""

    @staticmethod
    def validate_display_settings(settings: Dict[str, Any]) -> bool:
        """Validate display configuration settings."""
        for name in ('degree_format', 'units'):
            if name in settings and not isinstance(settings[name], str):
                logger.error(f"Invalid {name}: {settings[name]!r} is not text")
                return False

        try:
            DegreeFormat.parse(settings.get('degree_format', 'd'))
        except ValueError:
            logger.error(f"Invalid degree format: {settings.get('degree_format')}")
            return False

        units = settings.get('units', 'auto')
        if units != 'auto':
            try:
                UnitSystem.parse(units)
            except ValueError:
                logger.error(f"Invalid unit system: {units}")
                return False

        if settings.get('mode', 'position') not in [mode.value for mode in DisplayMode]:
            logger.error(f"Invalid display mode: {settings.get('mode')}")
            return False

        for flag in ('magnetic', 'silent'):
            if not isinstance(settings.get(flag, False), bool):
                logger.error(f"Invalid {flag} flag: {settings.get(flag)}")
                return False

        return True

    @staticmethod
    def validate_source_settings(settings: Dict[str, Any]) -> bool:
        """Validate source configuration settings."""
        host = settings.get('host', DEFAULT_HOST)
        port = settings.get('port', DEFAULT_PORT)
        device = settings.get('device')

        if not isinstance(host, str) or not host:
            logger.error(f"Invalid source host: {host}")
            return False

        if not isinstance(port, int) or isinstance(port, bool) or not 0 < port < 65536:
            logger.error(f"Invalid source port: {port}")
            return False

        if device is not None and not isinstance(device, str):
            logger.error(f"Invalid source device: {device}")
            return False

        return True

    @staticmethod
    def validate_logging_settings(settings: Dict[str, Any]) -> bool:
        """Validate logging configuration settings."""
        level = settings.get('level', 'INFO')
        if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
            logger.error(f"Invalid log level: {level}")
            return False

        log_file = settings.get('file')
        if log_file is not None and not isinstance(log_file, str):
            logger.error(f"Invalid log file: {log_file}")
            return False

        return True


def _known_keys(cls, section: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys a settings dataclass does not define."""
    names = set(asdict(cls()))
    return {key: value for key, value in section.items() if key in names}


class Config:
    """Reads the optional JSON configuration file."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self.validator = ConfigValidator()
        self._config_data: Dict[str, Any] = {}

    def get_defaults(self) -> Dict[str, Any]:
        return {
            "display": asdict(DisplayConfig()),
            "source": asdict(SourceConfig()),
            "logging": asdict(LoggingConfig())
        }

    def _read_file(self) -> Any:
        try:
            with open(self.config_path, 'r') as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            kind = "bad JSON" if isinstance(e, json.JSONDecodeError) else "unreadable"
            error_handler.handle_error(
                ComponentType.CONFIG,
                ErrorSeverity.HIGH,
                f"Config file {self.config_path} is {kind}",
                error_code="CONFIG_UNREADABLE",
                details=str(e)
            )
            raise ConfigurationError(f"{self.config_path}: {kind}: {e}") from e

    def load(self) -> Dict[str, Any]:
        """Load configuration from file, falling back to defaults."""
        merged = self.get_defaults()
        if self.config_path is not None and not self.config_path.exists():
            error_handler.handle_error(
                ComponentType.CONFIG,
                ErrorSeverity.LOW,
                f"No config file at {self.config_path}",
                error_code="CONFIG_MISSING"
            )
        elif self.config_path is not None:
            loaded = self._read_file()
            if not isinstance(loaded, dict):
                raise ConfigurationError(f"{self.config_path} must contain a JSON object")
            # File values win key by key; sections that are not objects are ignored
            for section, values in merged.items():
                override = loaded.get(section)
                if isinstance(override, dict):
                    values.update(override)

        self._config_data = merged
        return merged

    def validate(self, config: Dict[str, Any]) -> bool:
        """Validate entire configuration."""
        if 'display' in config and not self.validator.validate_display_settings(config['display']):
            return False
        if 'source' in config and not self.validator.validate_source_settings(config['source']):
            return False
        if 'logging' in config and not self.validator.validate_logging_settings(config['logging']):
            return False
        return True

    def get_display_config(self) -> DisplayConfig:
        """Get display configuration as dataclass."""
        config = self._config_data or self.load()
        return DisplayConfig(**_known_keys(DisplayConfig, config.get('display', {})))

    def get_source_config(self) -> SourceConfig:
        """Get source configuration as dataclass."""
        config = self._config_data or self.load()
        return SourceConfig(**_known_keys(SourceConfig, config.get('source', {})))

    def get_logging_config(self) -> LoggingConfig:
        """Get logging configuration as dataclass."""
        config = self._config_data or self.load()
        return LoggingConfig(**_known_keys(LoggingConfig, config.get('logging', {})))


def parse_source_spec(spec: Optional[str], host: str = DEFAULT_HOST,
                      port: int = DEFAULT_PORT,
                      device: Optional[str] = None) -> Tuple[str, int, Optional[str]]:
    """
    Split a "server[:port[:device]]" argument

    IPv6 servers must be bracketed, e.g. "[::1]:2947:/dev/ttyUSB0". Any
    component left empty keeps the value passed in.

    Returns:
        Tuple of (host, port, device)

    Raises:
        ConfigurationError: If the port is not a valid number
    """
    if not spec:
        return host, port, device

    if spec.startswith('['):
        end = spec.find(']')
        if end < 0:
            raise ConfigurationError(f"Unterminated IPv6 address in source: {spec}")
        server, rest = spec[1:end], spec[end + 1:]
        rest = rest[1:] if rest.startswith(':') else ""
    else:
        server, _, rest = spec.partition(':')

    port_text, _, device_text = rest.partition(':')

    if server:
        host = server
    if port_text:
        try:
            port = int(port_text)
        except ValueError:
            raise ConfigurationError(f"Invalid port in source: {port_text}")
        if not 0 < port < 65536:
            raise ConfigurationError(f"Port out of range in source: {port}")
    if device_text:
        device = device_text

    return host, port, device


def resolve_config(config: Config, overrides: Optional[Dict[str, Any]] = None,
                   environ: Optional[Mapping[str, str]] = None) -> DashboardConfig:
    """
    Resolve the effective settings

    Order: defaults, config file, locale unit detection (when units are
    "auto"), then command-line overrides. Override keys are the field names
    of DisplayConfig plus "source", "log_file" and "log_level"; None values
    are ignored.

    Raises:
        ConfigurationError: If any resolved value is invalid
    """
    config.load()
    overrides = {key: value for key, value in (overrides or {}).items() if value is not None}

    display = asdict(config.get_display_config())
    for key in asdict(DisplayConfig()):
        if key in overrides:
            display[key] = overrides[key]

    logging_settings = asdict(config.get_logging_config())
    if 'log_file' in overrides:
        logging_settings['file'] = overrides['log_file']
    if 'log_level' in overrides:
        logging_settings['level'] = overrides['log_level']

    source = asdict(config.get_source_config())
    host, port, device = parse_source_spec(overrides.get('source'), source.get('host'),
                                           source.get('port'), source.get('device'))
    source.update(host=host, port=port, device=device)

    resolved = {"display": display, "source": source, "logging": logging_settings}
    if not config.validate(resolved):
        raise ConfigurationError("Configuration validation failed")

    if display['units'] == 'auto':
        system = detect_unit_system(os.environ if environ is None else environ) or UnitSystem.IMPERIAL
    else:
        system = UnitSystem.parse(display['units'])

    dashboard_config = DashboardConfig(
        degree_format=DegreeFormat.parse(display['degree_format']),
        magnetic=display['magnetic'],
        silent=display['silent'],
        mode=DisplayMode(display['mode']),
        units=UnitPreference.for_system(system),
        host=host,
        port=port,
        device=device,
        log_file=logging_settings['file'],
        log_level=getattr(logging, logging_settings['level'].upper())
    )
    logger.debug(f"Resolved configuration: {dashboard_config}")
    return dashboard_config
