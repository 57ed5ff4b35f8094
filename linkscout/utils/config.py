"""
Configuration management for the link checker.
"""

import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import yaml

DEFAULT_CONFIG_FILES = ('linkscout.config.yaml', 'linkscout.config.yml', 'linkscout.config.json')
FORMATS = ('text', 'json', 'csv')
VERBOSITIES = ('debug', 'info', 'warning', 'error', 'none')


class ConfigError(ValueError):
    """Raised for invalid options or unreadable configuration files."""


@dataclass(frozen=True)
class CheckOptions:
    """Options for a single link check run."""
    path: str
    concurrency: int = 100
    recurse: bool = False
    timeout: float = 0
    server_root: Optional[str] = None
    port: Optional[int] = None
    links_to_skip: Union[List[str], Callable[[str], Any], None] = None
    user_agent: Optional[str] = None
    markdown: bool = False

    def with_path(self, path: str) -> 'CheckOptions':
        return replace(self, path=path)


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    verbosity: str = 'warning'
    file: Optional[str] = None
    json: bool = False
    format: str = '%(message)s'


@dataclass
class Settings:
    """Merged settings from the config file and the command line."""
    recurse: Optional[bool] = None
    concurrency: Optional[int] = None
    timeout: Optional[float] = None
    skip: List[str] = field(default_factory=list)
    server_root: Optional[str] = None
    port: Optional[int] = None
    format: str = 'text'
    user_agent: Optional[str] = None
    markdown: Optional[bool] = None
    metrics_port: Optional[int] = None
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_check_options(self, path: str) -> CheckOptions:
        """Build the options for one run against the given location."""
        options = CheckOptions(
            path=path,
            concurrency=self.concurrency if self.concurrency is not None else 100,
            recurse=bool(self.recurse),
            timeout=self.timeout if self.timeout is not None else 0,
            server_root=self.server_root,
            port=self.port,
            links_to_skip=list(self.skip) or None,
            user_agent=self.user_agent,
            markdown=bool(self.markdown)
        )
        validate_options(options)
        return options


def validate_options(options: CheckOptions):
    """Validate option values."""
    if not options.path:
        raise ConfigError("A path or URL to check must be provided")

    if options.concurrency < 1:
        raise ConfigError("concurrency must be at least 1")

    if options.timeout < 0:
        raise ConfigError("timeout must be non-negative")

    if options.port is not None and not 0 <= options.port <= 65535:
        raise ConfigError("port must be between 0 and 65535")


class ConfigManager:
    """Loads a config file and merges command line flags over it."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self.logger = logging.getLogger(__name__)
        self._settings: Optional[Settings] = None

    def _find_config_file(self) -> Optional[Path]:
        if self.config_path is not None:
            return self.config_path
        for name in DEFAULT_CONFIG_FILES:
            candidate = Path(name)
            if candidate.exists():
                return candidate
        return None

    def load_file(self) -> Dict[str, Any]:
        """Load the raw config file contents. JSON files parse as YAML too."""
        path = self._find_config_file()
        if path is None:
            return {}

        try:
            with open(path, 'r', encoding='utf-8') as file:
                data = yaml.safe_load(file)
        except FileNotFoundError as e:
            raise ConfigError(f"Configuration file not found: {path}") from e
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not read configuration file {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file {path} must contain a mapping")

        self.logger.debug(f"Loaded configuration from {path}")
        return data

    def load_config(self, flags: Optional[Dict[str, Any]] = None) -> Settings:
        """Merge flags over the config file. Flags set to None are ignored."""
        merged = self.load_file()
        for key, value in (flags or {}).items():
            if value is not None:
                merged[key.replace('-', '_')] = value

        self._settings = self._build_settings(merged)
        self._validate_config()
        return self._settings

    def _build_settings(self, data: Dict[str, Any]) -> Settings:
        data = {key.replace('-', '_'): value for key, value in data.items()}
        # camelCase keys from JSON config files
        if 'serverRoot' in data:
            data.setdefault('server_root', data.pop('serverRoot'))

        logging_config = LoggingConfig()
        logging_data = data.pop('logging', None) or {}
        if not isinstance(logging_data, dict):
            raise ConfigError("'logging' must be a mapping")
        for key in ('verbosity', 'file', 'json', 'format'):
            if key in logging_data:
                setattr(logging_config, key, logging_data[key])
        verbosity = data.pop('verbosity', None)
        if data.pop('silent', False):
            if verbosity is not None:
                raise ConfigError("silent and verbosity cannot both be set; use verbosity only")
            verbosity = 'error'
        if verbosity is not None:
            logging_config.verbosity = verbosity

        known = {f.name for f in fields(Settings)} - {'logging'}
        unknown = set(data) - known - {'config', 'verbosity'}
        if unknown:
            self.logger.warning(f"Ignoring unknown configuration keys: {sorted(unknown)}")

        kwargs = {key: value for key, value in data.items() if key in known}
        skip = kwargs.get('skip')
        if isinstance(skip, str):
            kwargs['skip'] = [s for s in skip.split(' ') if s]
        elif skip is None:
            kwargs.pop('skip', None)

        try:
            return Settings(logging=logging_config, **kwargs)
        except TypeError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    def _validate_config(self):
        """Validate configuration values."""
        if not self._settings:
            raise ConfigError("Configuration not loaded")

        settings = self._settings
        if settings.concurrency is not None and settings.concurrency < 1:
            raise ConfigError("concurrency must be at least 1")

        if settings.timeout is not None and settings.timeout < 0:
            raise ConfigError("timeout must be non-negative")

        if settings.format.lower() not in FORMATS:
            raise ConfigError(f"format must be one of {', '.join(FORMATS)}")
        settings.format = settings.format.lower()

        verbosity = str(settings.logging.verbosity).lower()
        if verbosity not in VERBOSITIES:
            raise ConfigError(f"verbosity must be one of {', '.join(VERBOSITIES)}")
        settings.logging.verbosity = verbosity

    @property
    def settings(self) -> Settings:
        """Get the loaded settings."""
        if not self._settings:
            raise ConfigError("Configuration not loaded. Call load_config() first.")
        return self._settings


def load_config(config_path: Optional[str] = None, flags: Optional[Dict[str, Any]] = None) -> Settings:
    """Load settings from a config file merged with command line flags."""
    return ConfigManager(config_path).load_config(flags)
