import dataclasses

import pytest
import yaml

from simplecrawl.utils.config import (
    Config, ConfigError, ConfigManager, CrawlerConfig, HttpConfig, LimitsConfig,
    ProxyConfig, load_config
)


def test_defaults(tmp_path):
    crawler = CrawlerConfig(seed_urls=["http://a.test/"], working_directory=str(tmp_path))
    config = Config(crawler=crawler)

    assert crawler.follow_mode == 2
    assert crawler.root_url == "http://a.test/"
    assert config.http.concurrency == 5
    assert config.http.follow_redirects is True
    assert config.http.verify_ssl is True
    assert config.limits.request_limit is None
    assert config.limits.only_count_received_documents is True
    assert config.limits.complete_requested_files is True


def test_single_seed_string_is_accepted(tmp_path):
    crawler = CrawlerConfig(seed_urls="http://a.test/", working_directory=str(tmp_path))
    assert crawler.seed_urls == ("http://a.test/",)


@pytest.mark.parametrize("seed_urls", [[], ["/relative"], ["ftp://a.test/"], ["a.test"]])
def test_invalid_seed_urls(tmp_path, seed_urls):
    with pytest.raises(ConfigError):
        CrawlerConfig(seed_urls=seed_urls, working_directory=str(tmp_path))


@pytest.mark.parametrize("mode", [-1, 4])
def test_invalid_follow_mode(tmp_path, mode):
    with pytest.raises(ConfigError):
        CrawlerConfig(seed_urls=["http://a.test/"], follow_mode=mode, working_directory=str(tmp_path))


def test_missing_working_directory_is_created(tmp_path):
    target = tmp_path / "nested" / "pages"
    CrawlerConfig(seed_urls=["http://a.test/"], working_directory=str(target))
    assert target.is_dir()


def test_working_directory_that_is_a_file_is_rejected(tmp_path):
    not_a_dir = tmp_path / "file.txt"
    not_a_dir.write_text("x")
    with pytest.raises(ConfigError):
        CrawlerConfig(seed_urls=["http://a.test/"], working_directory=str(not_a_dir))


@pytest.mark.parametrize("field_name", ["request_limit", "content_size_limit", "traffic_limit"])
@pytest.mark.parametrize("value", [0, -5])
def test_non_positive_limits_are_rejected(field_name, value):
    with pytest.raises(ConfigError):
        LimitsConfig(**{field_name: value})


@pytest.mark.parametrize("kwargs", [
    {"concurrency": 0},
    {"request_delay": -1},
    {"connect_timeout": 0},
    {"stream_timeout": -2},
    {"port": 0},
])
def test_invalid_http_settings(kwargs):
    with pytest.raises(ConfigError):
        HttpConfig(**kwargs)


def test_config_is_immutable(tmp_path):
    config = Config(crawler=CrawlerConfig(seed_urls=["http://a.test/"], working_directory=str(tmp_path)))
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.http = HttpConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.limits.request_limit = 3


def test_proxy_from_mapping():
    http = HttpConfig(proxy={"host": "proxy.test", "port": 3128, "username": "u", "password": "p"})
    assert isinstance(http.proxy, ProxyConfig)
    assert http.proxy.url == "http://proxy.test:3128"
    assert http.proxy.has_credentials


def test_load_config_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "crawler": {
            "seed_urls": ["https://a.test/blog"],
            "follow_mode": 3,
            "working_directory": str(tmp_path / "pages"),
        },
        "limits": {"request_limit": 10, "traffic_limit": 2048, "complete_requested_files": False},
        "http": {"concurrency": 2, "user_agent": "test-agent", "proxy": {"host": "p.test", "port": 8080}},
        "logging": {"level": "debug"},
    }))

    config = load_config(str(path))

    assert config.crawler.seed_urls == ("https://a.test/blog",)
    assert config.crawler.follow_mode == 3
    assert config.limits.request_limit == 10
    assert config.limits.complete_requested_files is False
    assert config.http.concurrency == 2
    assert config.http.proxy.has_credentials is False
    assert config.logging.level == "debug"
    assert config.monitoring.metrics_enabled is False


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "absent.yaml"))


@pytest.mark.parametrize("data", [
    {},
    {"crawler": {"seed_urls": ["http://a.test/"]}, "extra": {}},
    {"crawler": {"seed_urls": ["http://a.test/"], "depth": 3}},
    {"crawler": {"seed_urls": ["http://a.test/"]}, "http": {"proxy": {"host": "p", "port": 1, "x": 1}}},
    {"crawler": {"seed_urls": ["http://a.test/"]}, "limits": [1, 2]},
    {"crawler": {"seed_urls": ["http://a.test/"]}, "logging": {"level": "LOUD"}},
    {"crawler": {"seed_urls": [123]}},
    {"crawler": {"seed_urls": ["http://a.test/"]}, "logging": {"level": 5}},
    {"crawler": {"seed_urls": ["http://a.test/"]}, "logging": {"file": 5}},
    {"crawler": {"seed_urls": ["http://a.test/"]}, "http": {"proxy": "p.test:8080"}},
    {"crawler": {"seed_urls": ["http://a.test/"]}, "http": {"concurrency": "many"}},
])
def test_invalid_config_data(tmp_path, data):
    if "crawler" in data:
        data["crawler"]["working_directory"] = str(tmp_path)
    with pytest.raises(ConfigError):
        ConfigManager.from_dict(data)


def test_manager_requires_loading_first():
    with pytest.raises(ValueError):
        ConfigManager("unused.yaml").config
