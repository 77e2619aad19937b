"""
Utility modules for the crawler.
"""

from .config import (
    Config, ConfigError, ConfigManager, CrawlerConfig, HttpConfig, LimitsConfig,
    LoggingConfig, MonitoringConfig, ProxyConfig, load_config
)

__all__ = [
    'Config', 'ConfigError', 'ConfigManager', 'CrawlerConfig', 'HttpConfig',
    'LimitsConfig', 'LoggingConfig', 'MonitoringConfig', 'ProxyConfig', 'load_config'
]
