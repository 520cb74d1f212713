import pytest

from regioncheck.config import (
    DEFAULT_BLOCK_KEYWORDS,
    DEFAULT_EXCLUDE_DOMAINS,
    REPO_ROOT,
    ProbeConfig,
    load_config,
)

CONFIG_KEYS = [
    "LOG_DIR",
    "LOG_LEVEL",
    "APP_NAME",
    "PRIMARY_EGRESS",
    "SECONDARY_EGRESS",
    "DIRECT_EGRESS",
    "EGRESS_PROXIES",
    "PROBE_TIMEOUT_SECONDS",
    "REQUEST_INTERVAL_MS",
    "MAX_DOMAINS",
    "PROGRESS_EVERY",
    "BLOCK_KEYWORDS",
    "EXCLUDE_DOMAINS",
    "RULE_VERB",
    "RULE_TARGET",
]


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    for key in CONFIG_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_load_config_defaults(tmp_path):
    env_file = tmp_path / "empty.env"
    env_file.write_text("", encoding="utf-8")

    config = load_config(env_file)

    assert config.log_directory == REPO_ROOT / "logs"
    assert config.log_level == "INFO"
    assert config.app_name == "region-check"
    probe = config.probe
    assert (probe.primary_egress, probe.secondary_egress, probe.direct_egress) == ("US1", "JP3", "DIRECT")
    assert probe.timeout_seconds == 10.0
    assert probe.request_interval_ms == 2000
    assert probe.max_domains == 50
    assert probe.block_keywords == DEFAULT_BLOCK_KEYWORDS
    assert probe.exclude_domains == DEFAULT_EXCLUDE_DOMAINS
    assert probe.resolved_rule_target == "JP3"


def test_load_config_reads_env_file(tmp_path):
    env_file = tmp_path / "test.env"
    env_file.write_text(
        "\n".join(
            [
                "# probe settings",
                "LOG_DIR=logs/testing",
                "LOG_LEVEL=debug",
                "APP_NAME=geo-runner",
                "PRIMARY_EGRESS=US-West",
                "SECONDARY_EGRESS=JP-Tokyo",
                'EGRESS_PROXIES="US-West=http://127.0.0.1:7890, JP-Tokyo=socks5h://127.0.0.1:7891"',
                "PROBE_TIMEOUT_SECONDS=4.5",
                "REQUEST_INTERVAL_MS=500",
                "MAX_DOMAINS=5",
                "BLOCK_KEYWORDS=unavailable, blocked",
                "EXCLUDE_DOMAINS=",
                "RULE_TARGET=Japan",
            ]
        ),
        encoding="utf-8",
    )

    config = load_config(env_file)

    assert config.log_directory == REPO_ROOT / "logs/testing"
    assert config.log_level == "DEBUG"
    assert config.app_name == "geo-runner"
    probe = config.probe
    assert probe.primary_egress == "US-West"
    assert probe.egress_proxies == {
        "US-West": "http://127.0.0.1:7890",
        "JP-Tokyo": "socks5h://127.0.0.1:7891",
    }
    assert probe.timeout_seconds == 4.5
    assert probe.request_interval_seconds == 0.5
    assert probe.max_domains == 5
    assert probe.block_keywords == ("unavailable", "blocked")
    assert probe.exclude_domains == ()
    assert probe.resolved_rule_target == "Japan"


def test_load_config_prefers_environment_variables(tmp_path, monkeypatch):
    env_file = tmp_path / "test.env"
    env_file.write_text("PRIMARY_EGRESS=from-file\nLOG_LEVEL=info", encoding="utf-8")
    env_log_dir = tmp_path / "from_env"
    monkeypatch.setenv("PRIMARY_EGRESS", "from-env")
    monkeypatch.setenv("LOG_DIR", str(env_log_dir))
    monkeypatch.setenv("LOG_LEVEL", "warning")

    config = load_config(env_file)

    assert config.probe.primary_egress == "from-env"
    assert config.log_directory == env_log_dir
    assert config.log_level == "WARNING"


@pytest.mark.parametrize(
    "line",
    [
        "PROBE_TIMEOUT_SECONDS=soon",
        "PROBE_TIMEOUT_SECONDS=0",
        "PROBE_TIMEOUT_SECONDS=nan",
        "PROBE_TIMEOUT_SECONDS=inf",
        "REQUEST_INTERVAL_MS=-1",
        "MAX_DOMAINS=0",
        "SECONDARY_EGRESS=US1",
        "EGRESS_PROXIES=US1",
        "LOG_LEVEL=verbose",
    ],
)
def test_load_config_rejects_invalid_values(tmp_path, line):
    env_file = tmp_path / "bad.env"
    env_file.write_text(line, encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(env_file)


def test_probe_config_is_immutable():
    config = ProbeConfig()
    with pytest.raises(Exception):
        config.timeout_seconds = 1  # type: ignore[misc]


def test_probe_config_rejects_non_finite_timeout():
    with pytest.raises(ValueError):
        ProbeConfig(timeout_seconds=float("nan"))
