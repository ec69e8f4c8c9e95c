"""Configuration loading for stackmap (.stackmap.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".stackmap.yml"
DEFAULT_MAX_WORKERS = 8


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class LLMConfig:
    """Settings for the optional narrative enrichment step."""

    enabled: bool = False
    model: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    request_timeout: Optional[float] = None


@dataclass
class ScanConfig:
    """Directory walk settings."""

    respect_gitignore: bool = True
    max_workers: int = DEFAULT_MAX_WORKERS


@dataclass
class StackmapConfig:
    """Represents the settings defined in .stackmap.yml."""

    root: Path
    scan: ScanConfig = field(default_factory=ScanConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    exclude_paths: List[str] = field(default_factory=list)


def load_config(config_path: Path) -> StackmapConfig:
    """Load configuration from disk, returning defaults when no file exists."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return StackmapConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    scan_data = _as_dict(data.get("scan"))
    scan = ScanConfig()
    if scan_data:
        respect = _as_bool(scan_data.get("respect_gitignore"))
        if respect is not None:
            scan.respect_gitignore = respect
        workers = _as_int(scan_data.get("max_workers"))
        if workers is not None:
            if workers < 1:
                raise ConfigError("scan.max_workers must be a positive integer")
            scan.max_workers = workers

    llm_data = _as_dict(data.get("llm"))
    llm = LLMConfig()
    if llm_data:
        llm = LLMConfig(
            enabled=_as_bool(llm_data.get("enabled")) or False,
            model=_as_str(llm_data.get("model")),
            base_url=_as_str(llm_data.get("base_url")),
            api_key=_as_str(llm_data.get("api_key")),
            temperature=_as_float(llm_data.get("temperature")),
            max_tokens=_as_int(llm_data.get("max_tokens")),
            request_timeout=_as_float(llm_data.get("request_timeout")),
        )

    return StackmapConfig(
        root=root,
        scan=scan,
        llm=llm,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "LLMConfig",
    "ScanConfig",
    "StackmapConfig",
    "load_config",
]
