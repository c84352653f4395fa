"""Settings, version and logging setup tests."""

import logging

import pytest
import structlog

from vortexq.config import Settings
from vortexq.logging_setup import build_processors, resolve_level, setup_logging

_ENV_VARS = [
    "SERVER_SERVICE_HOST",
    "SERVER_SERVICE_PORT",
    "SERVER_SERVICE_LOG_LEVEL",
    "SERVER_SERVICE_PROJECT",
    "SERVER_SERVICE_RELEASE",
    "SERVER_SERVICE_BUILD_TIME",
    "SERVER_SERVICE_COMMIT",
]


@pytest.fixture()
def clean_env(monkeypatch):
    for key in _ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_combined_address():
    cfg = Settings(host="127.0.0.1", port=9090)
    assert cfg.combined_address == "127.0.0.1:9090"


def test_defaults_without_env(clean_env):
    cfg = Settings()
    assert cfg.host == "0.0.0.0"
    assert cfg.port == 8085
    assert cfg.log_level == "local"
    assert cfg.project == "vortexq"
    assert cfg.release == "unset"
    assert cfg.swirl_interval_seconds == 1.0
    assert cfg.delivery_timeout_seconds == 5.0


def test_env_overrides(clean_env):
    clean_env.setenv("SERVER_SERVICE_HOST", "1.2.3.4")
    clean_env.setenv("SERVER_SERVICE_PORT", "9999")
    clean_env.setenv("SERVER_SERVICE_LOG_LEVEL", "debug")
    clean_env.setenv("SERVER_SERVICE_PROJECT", "proj")
    clean_env.setenv("SERVER_SERVICE_RELEASE", "rel")
    clean_env.setenv("SERVER_SERVICE_BUILD_TIME", "bt")
    clean_env.setenv("SERVER_SERVICE_COMMIT", "cm")

    cfg = Settings()
    assert cfg.host == "1.2.3.4"
    assert cfg.port == 9999
    assert cfg.log_level == "debug"

    info = cfg.build_version()
    assert info.project == "proj"
    assert info.release == "rel"
    assert info.build_time == "bt"
    assert info.commit == "cm"


def test_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        Settings(swirl_interval_seconds=0)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("local", (logging.DEBUG, False)),
        ("dev", (logging.DEBUG, True)),
        ("prod", (logging.INFO, True)),
        ("WARNING", (logging.WARNING, False)),
        ("debug", (logging.DEBUG, False)),
        ("nonsense", (logging.INFO, False)),
    ],
)
def test_resolve_level(value, expected):
    assert resolve_level(value) == expected


def test_setup_logging_returns_usable_logger():
    log = setup_logging("prod")
    log.info("config.test_event", key="value")


def test_console_output_leaves_exceptions_to_the_renderer():
    console = build_processors(as_json=False)
    assert structlog.processors.format_exc_info not in console
    assert isinstance(console[-1], structlog.dev.ConsoleRenderer)

    json_chain = build_processors(as_json=True)
    assert structlog.processors.format_exc_info in json_chain
    assert isinstance(json_chain[-1], structlog.processors.JSONRenderer)
