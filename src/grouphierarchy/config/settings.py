"""Runtime settings: YAML layers, environment overrides and keyword arguments."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Literal, Mapping

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .policies import Policies, load_policies

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_CONFIG_DIR = PROJECT_ROOT / "config"
NESTED_ENV_PREFIX = "GROUPHIERARCHY_SETTINGS__"


def _merge(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        return {}
    loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"configuration file '{path}' must hold a mapping")
    return loaded


def _nested_env_overrides() -> Dict[str, Any]:
    """Collect ``GROUPHIERARCHY_SETTINGS__A__B=value`` variables as ``{"a": {"b": value}}``."""

    overrides: Dict[str, Any] = {}
    for name, raw in sorted(os.environ.items()):
        if not name.startswith(NESTED_ENV_PREFIX):
            continue
        keys = [part.lower() for part in name[len(NESTED_ENV_PREFIX) :].split("__") if part]
        if not keys:
            continue
        branch = overrides
        for key in keys[:-1]:
            branch = branch.setdefault(key, {})
        branch[keys[-1]] = raw
    return overrides


def layered_config(config_dir: Path, environment: str) -> Dict[str, Any]:
    """Merge ``default.yaml``, ``<environment>.yaml`` and nested env overrides."""

    layers = (
        _read_yaml(config_dir / "default.yaml"),
        _read_yaml(config_dir / f"{environment}.yaml"),
        _nested_env_overrides(),
    )
    result: Dict[str, Any] = {}
    for layer in layers:
        result = _merge(result, layer)
    return result


class PathsConfig(BaseModel):
    """Where logs and exported hierarchies are written."""

    output_dir: Path = Field(default=PROJECT_ROOT / "output")
    logs_dir: Path = Field(default=PROJECT_ROOT / "logs")

    def create(self) -> None:
        for name in type(self).model_fields:
            directory = Path(getattr(self, name))
            if not directory.is_absolute():
                directory = PROJECT_ROOT / directory
            directory.mkdir(parents=True, exist_ok=True)
            object.__setattr__(self, name, directory)


class Settings(BaseSettings):
    """Configuration for the hierarchy engine and its CLI.

    Later sources win: class defaults, ``default.yaml``, ``<environment>.yaml``,
    ``GROUPHIERARCHY_SETTINGS__`` variables, ``GROUPHIERARCHY_`` field
    variables, then keyword arguments. The environment itself comes from the
    ``environment`` argument or ``GROUPHIERARCHY_ENV``.
    """

    model_config = SettingsConfigDict(
        env_prefix="GROUPHIERARCHY_",
        validate_assignment=True,
        extra="ignore",
    )

    environment: Literal["development", "testing", "production"] = "development"
    config_dir: Path = Field(default=DEFAULT_CONFIG_DIR)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    create_dirs: bool = Field(default=False, description="Create `paths` directories on load.")
    policies: Policies = Field(default_factory=Policies)

    @model_validator(mode="before")
    @classmethod
    def _apply_config_layers(cls, data: Any) -> Dict[str, Any]:
        explicit = {key: value for key, value in dict(data or {}).items() if value is not None}
        environment = explicit.get("environment") or os.getenv("GROUPHIERARCHY_ENV", "development")
        config_dir = Path(explicit.get("config_dir") or DEFAULT_CONFIG_DIR)

        combined = _merge(layered_config(config_dir, environment), explicit)
        policies = combined.pop("policies", None)
        if not isinstance(policies, Policies):
            policies = load_policies(policies or {})
        combined["policies"] = policies
        return combined

    @model_validator(mode="after")
    def _create_paths(self) -> "Settings":
        if self.create_dirs:
            self.paths.create()
        return self

    @property
    def policy_version(self) -> str:
        return self.policies.policy_version

    @property
    def log_file(self) -> Path:
        return self.paths.logs_dir / "grouphierarchy.log"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings built from the environment."""

    return Settings()


__all__ = ["Settings", "PathsConfig", "get_settings", "layered_config"]
