"""Configuration for the analytics relay."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any


class ConfigError(ValueError):
    """Configuration value out of range or of the wrong kind."""
    pass


def _check_range(name: str, value: Any, low: int, high: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    if not low <= value <= high:
        raise ConfigError(f"{name} must be between {low} and {high}, got {value}")


@dataclass
class RelayConfig:
    """Delivery pipeline configuration."""
    # Collector endpoint
    server_url: str = field(
        default_factory=lambda: os.environ.get(
            "ANALYTICS_SERVER_URL", "https://analytics.example.com/api/events"
        )
    )

    # Seconds between the first unsent event and the send
    cooldown_before_send: int = 8

    # Submit attempts per send cycle before giving up and persisting
    max_retry_attempts: int = 5

    # Seconds between attempts
    retry_delay: int = 5

    # Synthetic "appStart" events tracked on startup
    initial_events_count: int = 10

    # HTTP request timeout (seconds)
    request_timeout: float = 10.0

    # http | console
    transport: str = "http"

    # Extra request headers for the http transport
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.server_url and self.transport == "http":
            raise ConfigError("server_url is required for the http transport")
        _check_range("cooldown_before_send", self.cooldown_before_send, 1, 10)
        _check_range("max_retry_attempts", self.max_retry_attempts, 1, 10)
        _check_range("retry_delay", self.retry_delay, 1, 30)
        _check_range("initial_events_count", self.initial_events_count, 0, 20)
        if self.request_timeout <= 0:
            raise ConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.transport not in ("http", "console"):
            raise ConfigError(f"Unknown transport {self.transport!r} (expected http | console)")


@dataclass
class PersistenceConfig:
    """Where undelivered events are mirrored."""
    backend: str = "file"  # file | memory
    path: str = field(
        default_factory=lambda: os.environ.get(
            "ANALYTICS_PERSISTENCE_PATH", "analytics_events.json"
        )
    )

    def __post_init__(self):
        if self.backend not in ("file", "memory"):
            raise ConfigError(f"Unknown persistence backend {self.backend!r} (expected file | memory)")
        if self.backend == "file" and not self.path:
            raise ConfigError("persistence path is required for the file backend")


@dataclass
class LoggingConfig:
    """Logging setup used by the CLI."""
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class Config:
    """Main configuration container."""
    relay: RelayConfig = field(default_factory=RelayConfig)
    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict) -> Config:
        """Create config from dictionary."""
        try:
            return cls(
                relay=RelayConfig(**data.get("relay", {})),
                persistence=PersistenceConfig(**data.get("persistence", {})),
                logging=LoggingConfig(**data.get("logging", {})),
            )
        except TypeError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_yaml(cls, path: str) -> Config:
        """Load config from YAML file."""
        import yaml
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_json(cls, path: str) -> Config:
        """Load config from JSON file."""
        import json
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)
