"""Configuration from YAML files and the environment."""
from __future__ import annotations

import pytest

from flyte_client.config import ConfigError, from_environment, load_config, parse_labels


def test_from_environment_reads_all_values():
    cfg = from_environment(
        {
            "FLYTE_API": "http://flyte:8080",
            "FLYTE_LABELS": " env = prod , team=ops",
            "FLYTE_API_TIMEOUT": "30",
            "FLYTE_JWT": "token",
            "FLYTE_INSECURE": "true",
        }
    )

    assert cfg.api_url == "http://flyte:8080"
    assert cfg.labels == {"env": "prod", "team": "ops"}
    assert cfg.timeout_s == 30.0
    assert cfg.jwt == "token"
    assert cfg.insecure is True


def test_from_environment_defaults():
    cfg = from_environment({"FLYTE_API": "https://flyte"})

    assert cfg.labels == {}
    assert cfg.timeout_s == 10.0
    assert cfg.jwt is None
    assert cfg.insecure is False
    assert cfg.polling_interval_s == 5.0
    assert cfg.register_retry_wait_s == 3.0
    assert cfg.health_port == 8090


@pytest.mark.parametrize("env", [{}, {"FLYTE_API": "not a url"}, {"FLYTE_API": "ftp://flyte"}])
def test_api_url_is_required(env):
    with pytest.raises(ConfigError):
        from_environment(env)


@pytest.mark.parametrize("timeout", ["soon", "-1", "nan", "inf"])
def test_invalid_timeout_is_rejected(timeout):
    with pytest.raises(ConfigError):
        from_environment({"FLYTE_API": "http://flyte", "FLYTE_API_TIMEOUT": timeout})


def test_malformed_labels_are_rejected():
    with pytest.raises(ConfigError):
        parse_labels("env=prod,team")


def test_load_config_with_environment_overrides(tmp_path):
    path = tmp_path / "pack.yaml"
    path.write_text(
        "\n".join(
            [
                "api_url: http://file-flyte:8080",
                "labels:",
                "  env: staging",
                "timeout_s: 5",
                "polling_interval_s: 1",
                "health_port: 9100",
            ]
        )
    )

    cfg = load_config(path, env={"FLYTE_API": "http://env-flyte:8080"})

    assert cfg.api_url == "http://env-flyte:8080"
    assert cfg.labels == {"env": "staging"}
    assert cfg.timeout_s == 5.0
    assert cfg.polling_interval_s == 1.0
    assert cfg.health_port == 9100


def test_load_config_requires_mapping(tmp_path):
    path = tmp_path / "pack.yaml"
    path.write_text("- just\n- a list\n")

    with pytest.raises(ConfigError):
        load_config(path, env={})


def test_fractional_timeout_is_kept(tmp_path):
    path = tmp_path / "pack.yaml"
    path.write_text("api_url: http://flyte:8080\ntimeout_s: 2.5\n")

    assert load_config(path, env={}).timeout_s == 2.5
    assert from_environment({"FLYTE_API": "http://flyte", "FLYTE_API_TIMEOUT": "0.5"}).timeout_s == 0.5
