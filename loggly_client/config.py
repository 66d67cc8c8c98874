"""Configuration module: frozen dataclasses loaded from YAML, env vars and CLI args."""

import os
import argparse
from dataclasses import dataclass, field, fields

import yaml

DEFAULT_ENDPOINT = "https://logs-01.loggly.com/bulk/{token}"


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def _parse_tags(value) -> tuple:
    if isinstance(value, (list, tuple)):
        return tuple(str(t) for t in value)
    return tuple(t.strip() for t in str(value).split(",") if t.strip())


def load_yaml(path: str) -> dict:
    """Load a YAML config file and return it as a dict (empty file -> {})."""
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


@dataclass(frozen=True)
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8080
    token: str = ""
    fail_status: int = 0


def load_server_config() -> ServerConfig:
    """Build ServerConfig for the local ingestion server from environment variables."""
    return ServerConfig(
        host=os.environ.get("SERVER_HOST", ServerConfig.host),
        port=int(os.environ.get("SERVER_PORT", ServerConfig.port)),
        token=os.environ.get("INGEST_TOKEN", ServerConfig.token),
        fail_status=int(os.environ.get("FAIL_STATUS", ServerConfig.fail_status)),
    )


@dataclass(frozen=True)
class ClientConfig:
    token: str = ""
    endpoint: str = DEFAULT_ENDPOINT
    buffer_size: int = 100
    flush_interval: float = 5.0
    level: str = "info"
    minimal: bool = False
    tags: tuple = field(default_factory=tuple)
    timeout: float = 10.0
    logs_per_second: int = 5
    run_time: int = 10

    @property
    def resolved_endpoint(self) -> str:
        return self.endpoint.replace("{token}", self.token, 1)


# Environment variable -> (field name, converter)
_ENV_VARS = {
    "LOGGLY_TOKEN": ("token", str),
    "LOGGLY_ENDPOINT": ("endpoint", str),
    "BUFFER_SIZE": ("buffer_size", int),
    "FLUSH_INTERVAL": ("flush_interval", float),
    "LOG_LEVEL": ("level", str),
    "MINIMAL_LOG": ("minimal", _parse_bool),
    "LOGGLY_TAGS": ("tags", _parse_tags),
    "HTTP_TIMEOUT": ("timeout", float),
    "LOGS_PER_SECOND": ("logs_per_second", int),
    "RUN_TIME": ("run_time", int),
}

_CONVERTERS = {name: conv for name, conv in _ENV_VARS.values()}


def _from_yaml(path: str) -> dict:
    """Read the ``loggly`` section of a YAML file into ClientConfig kwargs."""
    data = load_yaml(path)
    section = data.get("loggly") or data
    known = {f.name for f in fields(ClientConfig)}
    return {
        key: _CONVERTERS[key](value)
        for key, value in section.items()
        if key in known
    }


def load_client_config(argv=None) -> ClientConfig:
    """Build ClientConfig: defaults <- YAML file <- env vars <- CLI args.

    The YAML file comes from ``--config`` or the ``CONFIG_PATH`` env var.
    Pass argv for testability; when None, argparse reads sys.argv.
    """
    parser = argparse.ArgumentParser(description="Loggly bulk log client")
    parser.add_argument("--config", type=str, default=None)
    parser.add_argument("--token", type=str, default=None)
    parser.add_argument("--endpoint", type=str, default=None)
    parser.add_argument("--buffer-size", type=int, default=None)
    parser.add_argument("--flush-interval", type=float, default=None)
    parser.add_argument("--level", type=str, default=None)
    parser.add_argument("--minimal", action="store_true", default=False)
    parser.add_argument("--tag", action="append", dest="tags", default=None)
    parser.add_argument("--timeout", type=float, default=None)
    parser.add_argument("--logs-per-second", type=int, default=None)
    parser.add_argument("--run-time", type=int, default=None)

    args = parser.parse_args(argv)

    kwargs: dict = {}

    config_path = args.config or os.environ.get("CONFIG_PATH")
    if config_path:
        kwargs.update(_from_yaml(config_path))

    for env_name, (key, convert) in _ENV_VARS.items():
        if env_name in os.environ:
            kwargs[key] = convert(os.environ[env_name])

    # CLI flags override everything else
    for key in ("token", "endpoint", "buffer_size", "flush_interval", "level",
                "timeout", "logs_per_second", "run_time"):
        value = getattr(args, key)
        if value is not None:
            kwargs[key] = value
    if args.minimal:
        kwargs["minimal"] = True
    if args.tags:
        kwargs["tags"] = tuple(args.tags)

    return ClientConfig(**kwargs)
