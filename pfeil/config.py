"""Tracer configuration loaded from ``JAEGER_*`` environment variables.

Supported variables (all optional except the service name, which may also come
from the ``--service`` option):

- JAEGER_SERVICE_NAME: service name reported with the span
- JAEGER_SAMPLER_TYPE: const, probabilistic, ratelimiting or remote (default)
- JAEGER_SAMPLER_PARAM: sampler parameter (number)
- JAEGER_ENDPOINT: OTLP/HTTP traces URL of the collector
- JAEGER_AGENT_HOST / JAEGER_AGENT_PORT: OTLP/HTTP receiver when no endpoint is set
- JAEGER_USER / JAEGER_PASSWORD: basic auth for the collector
- JAEGER_AUTH_TOKEN: bearer token for the collector
- JAEGER_TAGS: process tags, "k1=v1,k2=${ENV_VAR:default}"
- JAEGER_TRACEID_128BIT: generate 128-bit trace IDs for new traces
- JAEGER_DISABLED: create spans but do not export them
- JAEGER_REPORTER_LOG_SPANS: log every finished span
- JAEGER_REPORTER_TIMEOUT: export timeout in seconds
"""

from __future__ import annotations

import base64
import os
import socket
from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional

from pfeil.errors import ConfigError
from pfeil.processors.sampler import (
    SAMPLER_TYPE_CONST,
    SAMPLER_TYPE_REMOTE,
    SAMPLER_TYPES,
)

ENV_SERVICE_NAME = "JAEGER_SERVICE_NAME"
ENV_SAMPLER_TYPE = "JAEGER_SAMPLER_TYPE"
ENV_SAMPLER_PARAM = "JAEGER_SAMPLER_PARAM"
ENV_ENDPOINT = "JAEGER_ENDPOINT"
ENV_AGENT_HOST = "JAEGER_AGENT_HOST"
ENV_AGENT_PORT = "JAEGER_AGENT_PORT"
ENV_USER = "JAEGER_USER"
ENV_PASSWORD = "JAEGER_PASSWORD"
ENV_AUTH_TOKEN = "JAEGER_AUTH_TOKEN"
ENV_TAGS = "JAEGER_TAGS"
ENV_TRACEID_128BIT = "JAEGER_TRACEID_128BIT"
ENV_DISABLED = "JAEGER_DISABLED"
ENV_REPORTER_LOG_SPANS = "JAEGER_REPORTER_LOG_SPANS"
ENV_REPORTER_TIMEOUT = "JAEGER_REPORTER_TIMEOUT"

DEFAULT_AGENT_HOST = "localhost"
DEFAULT_AGENT_PORT = 4318
DEFAULT_TIMEOUT = 10.0

_TRUE_VALUES = {"1", "t", "T", "true", "TRUE", "True"}
_FALSE_VALUES = {"0", "f", "F", "false", "FALSE", "False"}


@dataclass(frozen=True)
class TracerConfig:
    """Settings for the tracer provider and its exporter."""

    service_name: str = ""
    sampler_type: str = SAMPLER_TYPE_REMOTE
    sampler_param: Optional[float] = None
    endpoint: Optional[str] = None
    agent_host: Optional[str] = None
    agent_port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = None
    auth_token: Optional[str] = None
    tags: Dict[str, str] = field(default_factory=dict)
    traceid_128bit: bool = False
    disabled: bool = False
    log_spans: bool = False
    timeout: float = DEFAULT_TIMEOUT

    def with_overrides(
        self,
        service: Optional[str] = None,
        sample: bool = False,
        nosample: bool = False,
    ) -> "TracerConfig":
        """
        Apply command line overrides.

        ``nosample`` wins over ``sample``; both switch to a const sampler.
        """
        config = self
        if service:
            config = replace(config, service_name=service)
        if sample:
            config = replace(config, sampler_type=SAMPLER_TYPE_CONST, sampler_param=1.0)
        if nosample:
            config = replace(config, sampler_type=SAMPLER_TYPE_CONST, sampler_param=0.0)
        return config

    def validate(self) -> None:
        """Raise ConfigError if the configuration cannot build a tracer."""
        if not self.service_name:
            raise ConfigError(
                f"service name must be specified by one of {ENV_SERVICE_NAME} or --service"
            )

    def collector_endpoint(self) -> Optional[str]:
        """
        OTLP/HTTP traces URL, or None to let the exporter use its default.
        """
        if self.endpoint:
            return self.endpoint
        if self.agent_host or self.agent_port:
            host = self.agent_host or DEFAULT_AGENT_HOST
            port = self.agent_port or DEFAULT_AGENT_PORT
            return f"http://{host}:{port}/v1/traces"
        return None

    def headers(self) -> Dict[str, str]:
        """Authentication headers for the collector."""
        if self.auth_token:
            return {"Authorization": f"Bearer {self.auth_token}"}
        if self.user:
            credentials = f"{self.user}:{self.password or ''}".encode("utf-8")
            return {"Authorization": "Basic " + base64.b64encode(credentials).decode("ascii")}
        return {}

    def resource_attributes(self) -> Dict[str, str]:
        from pfeil import __version__

        attributes = {
            "service.name": self.service_name,
            "host.name": socket.gethostname(),
            "telemetry.sdk.wrapper": f"pfeil-{__version__}",
        }
        attributes.update(self.tags)
        return attributes


def _parse_bool(environ: Mapping[str, str], name: str, default: bool = False) -> bool:
    value = environ.get(name)
    if value is None or value == "":
        return default
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"cannot parse env var {name}", {"value": value})


def _parse_float(environ: Mapping[str, str], name: str) -> Optional[float]:
    value = environ.get(name)
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError as e:
        raise ConfigError(f"cannot parse env var {name}", {"value": value}) from e


def _parse_port(environ: Mapping[str, str], name: str) -> Optional[int]:
    value = environ.get(name)
    if value is None or value == "":
        return None
    try:
        port = int(value)
    except ValueError as e:
        raise ConfigError(f"cannot parse env var {name}", {"value": value}) from e
    if not 0 < port < 65536:
        raise ConfigError(f"env var {name} is not a valid port", {"value": value})
    return port


def parse_tags(value: str, environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Parse ``k1=v1,k2=v2`` process tags.

    A value of the form ``${NAME:default}`` is replaced by the environment
    variable NAME, or ``default`` when it is unset or empty.
    """
    if environ is None:
        environ = os.environ
    tags: Dict[str, str] = {}
    for item in value.split(","):
        if not item.strip():
            continue
        key, sep, tag_value = item.partition("=")
        key, tag_value = key.strip(), tag_value.strip()
        if not sep or not key:
            raise ConfigError(f"cannot parse {ENV_TAGS}", {"tag": item})
        if tag_value.startswith("${") and tag_value.endswith("}"):
            name, _, default = tag_value[2:-1].partition(":")
            tag_value = environ.get(name, "") or default
        tags[key] = tag_value
    return tags


def load_config(environ: Optional[Mapping[str, str]] = None) -> TracerConfig:
    """
    Build a TracerConfig from the environment.

    Raises:
        ConfigError: if a variable is present but malformed
    """
    if environ is None:
        environ = os.environ

    sampler_type = environ.get(ENV_SAMPLER_TYPE) or SAMPLER_TYPE_REMOTE
    if sampler_type not in SAMPLER_TYPES:
        raise ConfigError(
            f"unknown sampler type in {ENV_SAMPLER_TYPE}",
            {"value": sampler_type, "supported": ", ".join(SAMPLER_TYPES)},
        )

    timeout = _parse_float(environ, ENV_REPORTER_TIMEOUT)
    if timeout is not None and timeout <= 0:
        raise ConfigError(f"env var {ENV_REPORTER_TIMEOUT} must be positive", {"value": timeout})

    return TracerConfig(
        service_name=environ.get(ENV_SERVICE_NAME, ""),
        sampler_type=sampler_type,
        sampler_param=_parse_float(environ, ENV_SAMPLER_PARAM),
        endpoint=environ.get(ENV_ENDPOINT) or None,
        agent_host=environ.get(ENV_AGENT_HOST) or None,
        agent_port=_parse_port(environ, ENV_AGENT_PORT),
        user=environ.get(ENV_USER) or None,
        password=environ.get(ENV_PASSWORD) or None,
        auth_token=environ.get(ENV_AUTH_TOKEN) or None,
        tags=parse_tags(environ.get(ENV_TAGS, ""), environ),
        traceid_128bit=_parse_bool(environ, ENV_TRACEID_128BIT),
        disabled=_parse_bool(environ, ENV_DISABLED),
        log_spans=_parse_bool(environ, ENV_REPORTER_LOG_SPANS),
        timeout=timeout if timeout is not None else DEFAULT_TIMEOUT,
    )
