from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from netlab.infrastructure.connectivity.checker import DEFAULT_PROBE_URL
from netlab.infrastructure.nm.bus import NM_SERVICE

SCAN_MAX_SECONDS = 60


class LoggingConfig(BaseModel):
    level: str = Field("INFO")
    format: str = Field("%(asctime)s | %(name)s | %(levelname)s | %(message)s")
    datefmt: str = Field("%Y-%m-%d %H:%M:%S")

    @field_validator("level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"invalid log level: {value}")
        return level


class WebConfig(BaseModel):
    enabled: bool = Field(True)
    bind_host: str = Field("0.0.0.0")
    bind_port: int = Field(5600, ge=1, le=65535)
    debug: bool = Field(False)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    @field_validator("bind_host")
    @classmethod
    def _validate_host(cls, value: str) -> str:
        if not value or any(c.isspace() for c in value):
            raise ValueError("bind_host must be a valid hostname or IP")
        return value


class BusConfig(BaseModel):
    service_name: str = Field(NM_SERVICE)
    mock: bool = Field(False)


class WifiConfig(BaseModel):
    scan_max_seconds: int = Field(SCAN_MAX_SECONDS, ge=1, le=SCAN_MAX_SECONDS)
    scan_default_seconds: int = Field(10, ge=0, le=SCAN_MAX_SECONDS)
    connect_timeout: float = Field(60.0, gt=0)
    hotspot_timeout: float = Field(30.0, gt=0)
    signal_buffer: int = Field(10, ge=1, le=1024)


class HotspotConfig(BaseModel):
    address: str = Field("172.24.1.1")
    prefix: int = Field(24, ge=1, le=32)
    gateway: str = Field("172.24.1.1")
    band: str = Field("bg")

    @field_validator("band")
    @classmethod
    def _validate_band(cls, value: str) -> str:
        if value not in ("a", "bg"):
            raise ValueError(f"invalid band: {value}")
        return value


class ConnectivityConfig(BaseModel):
    url: str = Field(DEFAULT_PROBE_URL)
    timeout_ms: int = Field(5000, ge=1)


class NetlabConfig(BaseModel):
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    web: WebConfig = Field(default_factory=WebConfig)
    bus: BusConfig = Field(default_factory=BusConfig)
    wifi: WifiConfig = Field(default_factory=WifiConfig)
    hotspot: HotspotConfig = Field(default_factory=HotspotConfig)
    connectivity: ConnectivityConfig = Field(default_factory=ConnectivityConfig)


def apply_env_overrides(raw: dict) -> dict:
    """Overlay HOST, PORT and DEBUG from the environment onto the web section."""
    web = raw.setdefault("web", {}) or {}
    raw["web"] = web
    host = os.environ.get("HOST")
    if host:
        web["bind_host"] = host
    port = os.environ.get("PORT")
    if port:
        web["bind_port"] = port
    debug = os.environ.get("DEBUG")
    if debug:
        web["debug"] = debug.strip().lower() in ("1", "true", "yes", "on")
    return raw


def load_config(path: Path | None) -> NetlabConfig:
    raw: dict = {}
    if path is not None and Path(path).expanduser().exists():
        with Path(path).expanduser().open("r", encoding="utf-8") as fp:
            raw = yaml.safe_load(fp) or {}
    apply_env_overrides(raw)
    try:
        return NetlabConfig.model_validate(raw)
    except ValidationError as exc:  # pragma: no cover - formatting
        raise ValueError(str(exc)) from exc


def resolve_config_path(cli_path: Path | None) -> Path:
    """Resolve config path by priority: CLI, env, /etc/netlab, repo configs."""
    candidates: list[Path] = []
    if cli_path:
        p = Path(cli_path).expanduser()
        if p.exists():
            return p.resolve()
        candidates.append(p)
    env = os.environ.get("NETLAB_CONFIG")
    if env:
        p = Path(env).expanduser()
        if p.exists():
            return p.resolve()
        candidates.append(p)
    for p in [Path("/etc/netlab/netlab.yml"), Path("configs/netlab.yml")]:
        if p.exists():
            return p.resolve()
        candidates.append(p)
    # Fall back to the first candidate so callers can report where they looked
    return candidates[0]
