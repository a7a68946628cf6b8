"""Configuration loader for flyte packs.

Values come from an optional YAML file and from the environment; environment
variables win when both are set.
"""
from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

import yaml

log = logging.getLogger(__name__)

API_ENV = "FLYTE_API"
JWT_ENV = "FLYTE_JWT"
LABELS_ENV = "FLYTE_LABELS"
API_TIMEOUT_ENV = "FLYTE_API_TIMEOUT"
INSECURE_ENV = "FLYTE_INSECURE"

DEFAULT_API_TIMEOUT_S = 10.0


class ConfigError(ValueError):
    pass


@dataclass(slots=True)
class ClientConfig:
    api_url: str
    labels: Dict[str, str] = field(default_factory=dict)
    timeout_s: float = DEFAULT_API_TIMEOUT_S
    jwt: Optional[str] = None
    insecure: bool = False
    polling_interval_s: float = 5.0
    register_retry_wait_s: float = 3.0
    health_port: int = 8090


def _parse_api_url(value: Optional[str]) -> str:
    if not value:
        raise ConfigError(f"{API_ENV} is not set")
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ConfigError(f"{API_ENV} is not set to a valid URL: {value!r}")
    return value


def parse_labels(value: Optional[str]) -> Dict[str, str]:
    """Parse labels in the form ``key=value,key=value``."""
    labels: Dict[str, str] = {}
    if not value:
        return labels
    for item in value.split(","):
        key, sep, val = item.partition("=")
        if not sep:
            raise ConfigError(f"invalid format of {LABELS_ENV}: {value!r}")
        labels[key.strip()] = val.strip()
    return labels


def _parse_timeout(value: Any) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{API_TIMEOUT_ENV} is an invalid number of seconds: {value!r}") from exc
    if isinstance(value, bool) or not math.isfinite(timeout) or timeout < 0:
        raise ConfigError(f"{API_TIMEOUT_ENV} has been set to an invalid value: {timeout}")
    return timeout


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _merge_env(raw: Dict[str, Any], env: Mapping[str, str]) -> Dict[str, Any]:
    merged = dict(raw)
    if env.get(API_ENV):
        merged["api_url"] = env[API_ENV]
    if env.get(LABELS_ENV):
        merged["labels"] = parse_labels(env[LABELS_ENV])
    if env.get(API_TIMEOUT_ENV):
        merged["timeout_s"] = env[API_TIMEOUT_ENV]
    if env.get(JWT_ENV):
        log.info("%s environment variable is set", JWT_ENV)
        merged["jwt"] = env[JWT_ENV]
    if env.get(INSECURE_ENV):
        merged["insecure"] = env[INSECURE_ENV]
    return merged


def _build(raw: Dict[str, Any]) -> ClientConfig:
    labels = raw.get("labels") or {}
    if isinstance(labels, str):
        labels = parse_labels(labels)
    if "timeout_s" in raw:
        timeout = _parse_timeout(raw["timeout_s"])
    else:
        log.info("%s is not set, using default of %ss", API_TIMEOUT_ENV, DEFAULT_API_TIMEOUT_S)
        timeout = DEFAULT_API_TIMEOUT_S
    return ClientConfig(
        api_url=_parse_api_url(raw.get("api_url")),
        labels={str(k): str(v) for k, v in labels.items()},
        timeout_s=timeout,
        jwt=raw.get("jwt") or None,
        insecure=_parse_bool(raw.get("insecure", False)),
        polling_interval_s=float(raw.get("polling_interval_s", 5.0)),
        register_retry_wait_s=float(raw.get("register_retry_wait_s", 3.0)),
        health_port=int(raw.get("health_port", 8090)),
    )


def from_environment(env: Optional[Mapping[str, str]] = None) -> ClientConfig:
    return _build(_merge_env({}, os.environ if env is None else env))


def load_config(path: str | Path, env: Optional[Mapping[str, str]] = None) -> ClientConfig:
    raw = yaml.safe_load(Path(path).read_text()) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"config file {path} must contain a mapping")
    return _build(_merge_env(raw, os.environ if env is None else env))
