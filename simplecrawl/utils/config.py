"""
Configuration management for the crawler.

Every section is an immutable dataclass validated when it is built, so a bad
value is rejected before any crawling starts.
"""

import os
import tempfile
import yaml
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlparse
from dataclasses import dataclass, field, fields


FOLLOW_ALL = 0
FOLLOW_SAME_DOMAIN = 1
FOLLOW_SAME_HOST = 2
FOLLOW_SAME_PATH = 3

FOLLOW_MODES = (FOLLOW_ALL, FOLLOW_SAME_DOMAIN, FOLLOW_SAME_HOST, FOLLOW_SAME_PATH)


class ConfigError(ValueError):
    """Raised when a configuration value is invalid."""
    pass


def _require_positive(name: str, value: Optional[float]):
    if value is not None and value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")


@dataclass(frozen=True)
class CrawlerConfig:
    """Configuration for crawl behavior.

    The first seed URL is the crawl root. Follow modes are evaluated against it
    and every extracted link is resolved against it.
    """
    seed_urls: Tuple[str, ...]
    follow_mode: int = FOLLOW_SAME_HOST
    working_directory: str = field(default_factory=tempfile.gettempdir)

    def __post_init__(self):
        if isinstance(self.seed_urls, str):
            object.__setattr__(self, 'seed_urls', (self.seed_urls,))
        else:
            object.__setattr__(self, 'seed_urls', tuple(self.seed_urls))

        if not self.seed_urls:
            raise ConfigError("At least one seed URL must be provided")

        for url in self.seed_urls:
            if not isinstance(url, str):
                raise ConfigError(f"Seed URL must be a string, got {url!r}")
            parsed = urlparse(url)
            if parsed.scheme not in ('http', 'https') or not parsed.netloc:
                raise ConfigError(f"Seed URL must be an absolute http(s) URL: {url!r}")

        if self.follow_mode not in FOLLOW_MODES:
            raise ConfigError(f"Invalid follow mode: {self.follow_mode}")

        self._validate_working_directory()

    def _validate_working_directory(self):
        directory = Path(self.working_directory)
        if not directory.is_dir() or not os.access(directory, os.W_OK):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise ConfigError(f"Invalid working directory {directory}: {e}") from e
            if not os.access(directory, os.W_OK):
                raise ConfigError(f"Working directory is not writable: {directory}")

    @property
    def root_url(self) -> str:
        return self.seed_urls[0]


@dataclass(frozen=True)
class LimitsConfig:
    """Stopping limits. ``None`` disables a limit."""
    request_limit: Optional[int] = None
    only_count_received_documents: bool = True
    content_size_limit: Optional[int] = None
    traffic_limit: Optional[int] = None
    complete_requested_files: bool = True

    def __post_init__(self):
        _require_positive('request_limit', self.request_limit)
        _require_positive('content_size_limit', self.content_size_limit)
        _require_positive('traffic_limit', self.traffic_limit)


@dataclass(frozen=True)
class ProxyConfig:
    """HTTP proxy, optionally authenticated."""
    host: str
    port: int
    username: Optional[str] = None
    password: Optional[str] = None

    def __post_init__(self):
        if not self.host:
            raise ConfigError("Proxy host must be set")
        _require_positive('proxy port', self.port)

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def has_credentials(self) -> bool:
        return self.username is not None and self.password is not None


@dataclass(frozen=True)
class HttpConfig:
    """Settings passed through to the HTTP transport."""
    concurrency: int = 5
    follow_redirects: bool = True
    request_delay: float = 0.0
    connect_timeout: Optional[float] = None
    stream_timeout: Optional[float] = None
    user_agent: Optional[str] = None
    verify_ssl: bool = True
    port: Optional[int] = None
    proxy: Optional[ProxyConfig] = None

    def __post_init__(self):
        if isinstance(self.proxy, dict):
            object.__setattr__(self, 'proxy', ProxyConfig(**self.proxy))
        elif self.proxy is not None and not isinstance(self.proxy, ProxyConfig):
            raise ConfigError(f"proxy must be a mapping, got {self.proxy!r}")

        if self.concurrency < 1:
            raise ConfigError("concurrency must be at least 1")

        if self.request_delay < 0:
            raise ConfigError("request_delay must be non-negative")

        _require_positive('connect_timeout', self.connect_timeout)
        _require_positive('stream_timeout', self.stream_timeout)
        _require_positive('port', self.port)


@dataclass(frozen=True)
class LoggingConfig:
    """Configuration for logging."""
    level: str = 'INFO'
    file: Optional[str] = None
    format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    def __post_init__(self):
        if not isinstance(self.level, str):
            raise ConfigError(f"Log level must be a name, got {self.level!r}")
        if not isinstance(logging.getLevelName(self.level.upper()), int):
            raise ConfigError(f"Unknown log level: {self.level}")
        if self.file is not None and not isinstance(self.file, str):
            raise ConfigError(f"Log file must be a path, got {self.file!r}")


@dataclass(frozen=True)
class MonitoringConfig:
    """Configuration for monitoring."""
    metrics_enabled: bool = False
    prometheus_port: int = 8000


@dataclass(frozen=True)
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)


class ConfigManager:
    """Loads configuration from a YAML file."""

    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = Path(config_path)
        self._config: Optional[Config] = None

    def load_config(self) -> Config:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r') as file:
            config_data = yaml.safe_load(file) or {}

        self._config = self.from_dict(config_data)
        return self._config

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> Config:
        """Build a validated Config from already parsed data."""
        if not isinstance(config_data, dict):
            raise ConfigError("Configuration must be a mapping")

        unknown = set(config_data) - {f.name for f in fields(Config)}
        if unknown:
            raise ConfigError(f"Unknown configuration sections: {sorted(unknown)}")

        if 'crawler' not in config_data:
            raise ConfigError("Missing required 'crawler' section")

        return Config(
            crawler=cls._section(CrawlerConfig, config_data['crawler']),
            limits=cls._section(LimitsConfig, config_data.get('limits')),
            http=cls._section(HttpConfig, config_data.get('http')),
            logging=cls._section(LoggingConfig, config_data.get('logging')),
            monitoring=cls._section(MonitoringConfig, config_data.get('monitoring')),
        )

    @staticmethod
    def _section(section_cls, data: Optional[Dict[str, Any]]):
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigError(f"Section for {section_cls.__name__} must be a mapping")

        unknown = set(data) - {f.name for f in fields(section_cls)}
        if unknown:
            raise ConfigError(f"Unknown keys for {section_cls.__name__}: {sorted(unknown)}")

        try:
            return section_cls(**data)
        except TypeError as e:
            raise ConfigError(f"Invalid {section_cls.__name__}: {e}") from e

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ValueError("Configuration not loaded. Call load_config() first.")
        return self._config


def load_config(config_path: str = "config.yaml") -> Config:
    """Load configuration from file."""
    return ConfigManager(config_path).load_config()
