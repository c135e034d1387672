from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
import os
import yaml


@dataclass(frozen=True)
class Settings:
    # Paths
    log_dir: str = "./logs"
    report_dir: str = "./reports"
    export_dir: str = "./exports"

    # Logging
    log_level: str = "INFO"

    # Export
    page_size: int = 200

    # API source
    api_base_url: str | None = None
    api_username: str | None = None
    api_password: str | None = None
    api_timeout_seconds: float = 20.0
    api_retries: int = 3
    api_retry_backoff_seconds: float = 0.5
    tls_skip_verify: bool = False


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    sources_used: list[str]


ENV_NAMES = {
    "log_dir": "GRIDEXPORT_LOG_DIR",
    "report_dir": "GRIDEXPORT_REPORT_DIR",
    "export_dir": "GRIDEXPORT_EXPORT_DIR",
    "log_level": "GRIDEXPORT_LOG_LEVEL",
    "page_size": "GRIDEXPORT_PAGE_SIZE",
    "api_base_url": "GRIDEXPORT_API_BASE_URL",
    "api_username": "GRIDEXPORT_API_USERNAME",
    "api_password": "GRIDEXPORT_API_PASSWORD",
    "api_timeout_seconds": "GRIDEXPORT_API_TIMEOUT_SECONDS",
    "api_retries": "GRIDEXPORT_API_RETRIES",
    "api_retry_backoff_seconds": "GRIDEXPORT_API_RETRY_BACKOFF_SECONDS",
    "tls_skip_verify": "GRIDEXPORT_TLS_SKIP_VERIFY",
}

INT_FIELDS = ("page_size", "api_retries")
FLOAT_FIELDS = ("api_timeout_seconds", "api_retry_backoff_seconds")
BOOL_FIELDS = ("tls_skip_verify",)


def _read_yaml_config(path: Path) -> dict:
    if not path.exists():
        return {}
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            return {}
        return data


def _env_get(name: str) -> str | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return None
    return v.strip()


def parseBool(v: str | bool | None) -> bool | None:
    if v is None or isinstance(v, bool):
        return v
    vv = str(v).lower()
    if vv in ("1", "true", "yes", "y"):
        return True
    if vv in ("0", "false", "no", "n"):
        return False
    raise ValueError(f"Invalid boolean value: {v}")


def _coerce(name: str, value):
    if value is None:
        return None
    if name in INT_FIELDS:
        return int(value)
    if name in FLOAT_FIELDS:
        return float(value)
    if name in BOOL_FIELDS:
        return parseBool(value)
    return value


def loadSettings(
    config_path: str | None,
    cli_overrides: dict,
) -> LoadedSettings:
    """
    Priority: CLI > ENV > config > defaults
    """
    sources: list[str] = []
    defaults = Settings()
    known = [f.name for f in fields(Settings)]

    # 1) config file
    cfg: dict = {}
    if config_path:
        cfg = _read_yaml_config(Path(config_path))
        if cfg:
            sources.append("config")

    # 2) env
    env = {name: _env_get(ENV_NAMES[name]) for name in known}
    if any(v is not None for v in env.values()):
        sources.append("env")

    merged = {name: cfg.get(name, getattr(defaults, name)) for name in known}

    for name, value in env.items():
        if value is not None:
            merged[name] = value

    # 3) apply CLI overrides (only those explicitly passed)
    if any(v is not None for v in cli_overrides.values()):
        sources.append("cli")

    for k, v in cli_overrides.items():
        if v is None or k not in merged:
            continue
        merged[k] = v

    settings = Settings(**{name: _coerce(name, merged[name]) for name in known})
    if settings.page_size < 1:
        raise ValueError(f"Invalid page_size: {settings.page_size}")

    return LoadedSettings(settings=settings, sources_used=sources)
