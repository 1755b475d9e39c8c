"""
Configuration loader for the BluOS player locator
Loads configuration from YAML files, applies defaults and environment overrides
"""

import os
import copy
import yaml
import logging
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field
from pathlib import Path
from datetime import datetime
import pytz

from .errors import ConfigurationError
from .constants import BLUOS_SERVICE_TYPES, DEFAULT_DOMAIN

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/config.yaml"

# Keys understood by the menu-bar plugin's .env file
ENV_OVERRIDES = {
    'BLUE_URL': ('player', 'fallback_url'),
    'BLUE_WIFI': ('player', 'network_name'),
}

DEFAULTS: Dict[str, Dict[str, Any]] = {
    'player': {
        'fallback_url': '',
        'network_name': '',
    },
    'discovery': {
        'enabled': True,
        'timeout_seconds': 5.0,
        'domain': DEFAULT_DOMAIN,
        'service_types': list(BLUOS_SERVICE_TYPES),
        'query_pause_seconds': 0.1,
    },
    'verification': {
        'status_path': '/Status',
        'select_timeout_seconds': 3.0,
        'reachability_paths': ['/Status', '/Volume', '/'],
        'reachability_timeout_seconds': 15.0,
    },
    'http': {
        'request_timeout_seconds': 10.0,
        'retry_attempts': 3,
        'retry_delay_seconds': 0.5,
    },
    'logging': {
        'level': 'INFO',
        'file': None,
        'console_output': True,
        'timezone': 'UTC',
    },
}


@dataclass
class DiscoverySettings:
    enabled: bool = True
    timeout_seconds: float = 5.0
    domain: str = DEFAULT_DOMAIN
    service_types: List[str] = field(default_factory=lambda: list(BLUOS_SERVICE_TYPES))
    query_pause_seconds: float = 0.1


@dataclass
class VerificationSettings:
    status_path: str = '/Status'
    select_timeout_seconds: float = 3.0
    reachability_paths: List[str] = field(default_factory=lambda: ['/Status', '/Volume', '/'])
    reachability_timeout_seconds: float = 15.0
    request_timeout_seconds: float = 10.0
    retry_attempts: int = 3
    retry_delay_seconds: float = 0.5


@dataclass
class LocatorConfig:
    """Explicit configuration handed to device resolution"""
    fallback_url: str = ''
    network_name: str = ''
    discovery: DiscoverySettings = field(default_factory=DiscoverySettings)
    verification: VerificationSettings = field(default_factory=VerificationSettings)


def load_config(config_path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """
    Load configuration from a YAML file with validation
    Without a path only defaults and environment overrides are used
    """
    environ = os.environ if environ is None else environ
    config: Dict[str, Any] = {}

    if config_path:
        config_file = Path(config_path)
        if not config_file.exists():
            logger.error(f"Configuration file not found: {config_path}")
            raise ConfigurationError(f"Config file not found: {config_path}")

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(config, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")

    config = _apply_defaults(config)
    config = _apply_env_overrides(config, environ)
    _validate_config(config)

    if config_path:
        logger.info(f"Configuration loaded from {config_path}")
    else:
        logger.debug("No configuration file, using defaults")
    return config


def find_config_path(explicit: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> Optional[str]:
    """Pick the config file: explicit argument, CONFIG_FILE, then the default path if it exists"""
    environ = os.environ if environ is None else environ
    if explicit:
        return explicit
    if environ.get('CONFIG_FILE'):
        return environ['CONFIG_FILE']
    if Path(DEFAULT_CONFIG_PATH).exists():
        return DEFAULT_CONFIG_PATH
    return None


def _apply_defaults(config: Dict) -> Dict:
    """Apply default values to configuration"""
    config = copy.deepcopy(config)
    for section, defaults in DEFAULTS.items():
        if config.get(section) is None:
            config[section] = {}
        if not isinstance(config[section], dict):
            raise ConfigurationError(f"Configuration section '{section}' must be a mapping")
        for key, default_value in defaults.items():
            if key not in config[section]:
                config[section][key] = copy.deepcopy(default_value)
    return config


def _apply_env_overrides(config: Dict, environ) -> Dict:
    for env_key, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_key)
        if value:
            config[section][key] = value
            logger.debug(f"{section}.{key} overridden from {env_key}")
    return config


def _validate_config(config: Dict) -> None:
    """Validate value types and the fallback address format"""
    for key in ('fallback_url', 'network_name'):
        value = config['player'][key]
        if value is not None and not isinstance(value, str):
            raise ConfigurationError(f"player.{key} must be a string, got: {value!r}")

    fallback_url = config['player']['fallback_url'] or ''
    if fallback_url and not fallback_url.startswith(('http://', 'https://')):
        raise ConfigurationError(f"player.fallback_url must start with http:// or https://, got: {fallback_url}")

    discovery = config['discovery']
    if not isinstance(discovery['enabled'], bool):
        raise ConfigurationError(f"discovery.enabled must be true or false, got: {discovery['enabled']!r}")
    if not isinstance(discovery['service_types'], list) or not discovery['service_types']:
        raise ConfigurationError("discovery.service_types must be a non-empty list")

    numeric_fields = [
        ('discovery', 'timeout_seconds'),
        ('discovery', 'query_pause_seconds'),
        ('verification', 'select_timeout_seconds'),
        ('verification', 'reachability_timeout_seconds'),
        ('http', 'request_timeout_seconds'),
        ('http', 'retry_attempts'),
        ('http', 'retry_delay_seconds'),
    ]
    for section, key in numeric_fields:
        value = config[section][key]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigurationError(f"{section}.{key} must be a number, got: {value!r}")

    if config['http']['retry_attempts'] < 1:
        raise ConfigurationError("http.retry_attempts must be at least 1")

    paths = config['verification']['reachability_paths']
    if not isinstance(paths, list) or not paths:
        raise ConfigurationError("verification.reachability_paths must be a non-empty list")

    tz_name = config['logging']['timezone']
    if tz_name not in pytz.all_timezones_set:
        raise ConfigurationError(f"Unknown logging.timezone: {tz_name}")


def build_locator_config(config: Dict[str, Any]) -> LocatorConfig:
    """Turn the loaded configuration mapping into a LocatorConfig"""
    discovery = config['discovery']
    verification = config['verification']
    http = config['http']
    return LocatorConfig(
        fallback_url=(config['player']['fallback_url'] or '').rstrip('/'),
        network_name=config['player']['network_name'] or '',
        discovery=DiscoverySettings(
            enabled=bool(discovery['enabled']),
            timeout_seconds=float(discovery['timeout_seconds']),
            domain=discovery['domain'],
            service_types=list(discovery['service_types']),
            query_pause_seconds=float(discovery['query_pause_seconds']),
        ),
        verification=VerificationSettings(
            status_path=verification['status_path'],
            select_timeout_seconds=float(verification['select_timeout_seconds']),
            reachability_paths=list(verification['reachability_paths']),
            reachability_timeout_seconds=float(verification['reachability_timeout_seconds']),
            request_timeout_seconds=float(http['request_timeout_seconds']),
            retry_attempts=int(http['retry_attempts']),
            retry_delay_seconds=float(http['retry_delay_seconds']),
        ),
    )


class TimezoneFormatter(logging.Formatter):
    """Formatter that renders timestamps in a configured timezone"""

    def __init__(self, fmt=None, tz_name: str = 'UTC'):
        super().__init__(fmt)
        self.tz = pytz.timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=self.tz)
        if datefmt:
            return dt.strftime(datefmt)
        # Default format: YYYY-MM-DD HH:MM:SS TZ
        return dt.strftime('%Y-%m-%d %H:%M:%S %Z')


def setup_logging(config: Dict) -> None:
    """Setup logging based on configuration; console output goes to stderr"""
    log_config = config.get('logging', {})
    level = log_config.get('level', 'INFO')
    tz_name = log_config.get('timezone', 'UTC')

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = TimezoneFormatter(log_format, tz_name)

    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    # stdout is reserved for the menu-bar host
    if log_config.get('console_output', True):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    log_file = log_config.get('file')
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    logger.debug(f"Logging configured: level={level}, tz={tz_name}, console={log_config.get('console_output', True)}, file={log_file}")


def get_sample_config() -> Dict:
    """Return a sample configuration for reference"""
    return {
        "player": {
            "fallback_url": "http://192.168.1.50:11000",
            "network_name": "HomeWiFi"
        },
        "discovery": {
            "enabled": True,
            "timeout_seconds": 5,
            "domain": "local",
            "service_types": list(BLUOS_SERVICE_TYPES),
            "query_pause_seconds": 0.1
        },
        "verification": {
            "status_path": "/Status",
            "select_timeout_seconds": 3,
            "reachability_paths": ["/Status", "/Volume", "/"],
            "reachability_timeout_seconds": 15
        },
        "http": {
            "request_timeout_seconds": 10,
            "retry_attempts": 3,
            "retry_delay_seconds": 0.5
        },
        "logging": {
            "level": "INFO",
            "file": None,
            "console_output": True,
            "timezone": "America/New_York"
        }
    }
