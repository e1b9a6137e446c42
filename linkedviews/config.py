"""
Configuration

Frozen configuration for the viewport, backend and interaction layers.

WHY FROZEN:
Config must not change while requests are in flight.
Changes require a new config instance.

SOURCES (later wins):
1. Dataclass defaults
2. JSON config file (AppConfig.load)
3. Environment variables (AppConfig.from_env)
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
import json
import os

from .contracts.base import SyncOperator


ENV_BACKEND_URL = "LINKEDVIEWS_BACKEND_URL"
ENV_TIMEOUT = "LINKEDVIEWS_TIMEOUT"
ENV_DEFAULT_GRAPH = "LINKEDVIEWS_DEFAULT_GRAPH"
ENV_BASE_ID_FIELD = "LINKEDVIEWS_BASE_ID_FIELD"


@dataclass(frozen=True)
class ViewportConfig:
    """
    Size of each view and the area reserved for interface chrome.

    The left `button_width` strip holds the buttons; `frame` is kept
    free on every side.
    """
    width: float = 960.0
    height: float = 500.0
    button_width: float = 130.0
    frame: float = 10.0

    def __post_init__(self):
        if self.width <= self.button_width + 2 * self.frame:
            raise ValueError("width leaves no room for nodes")
        if self.height <= 2 * self.frame:
            raise ValueError("height leaves no room for nodes")

    @property
    def available_width(self) -> float:
        return self.width - (self.button_width + 2 * self.frame)

    @property
    def available_height(self) -> float:
        return self.height - 2 * self.frame


@dataclass(frozen=True)
class BackendConfig:
    address: str = "http://localhost:8085"
    timeout_seconds: float = 30.0

    def __post_init__(self):
        if not self.address:
            raise ValueError("backend address must be set")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")


@dataclass(frozen=True)
class InteractionConfig:
    """
    Zoom limits, label sizing and response ordering policy.

    `discard_stale_responses` is off by default: responses are applied in
    arrival order (last write wins).
    """
    min_scale: float = 0.5
    max_scale: float = 2.0
    base_font_size: int = 12
    default_view_metric: float = 3.0
    default_operator: SyncOperator = SyncOperator.AND
    discard_stale_responses: bool = False

    def __post_init__(self):
        if not 0 < self.min_scale <= self.max_scale:
            raise ValueError("scale extent must satisfy 0 < min_scale <= max_scale")


@dataclass(frozen=True)
class AppConfig:
    viewport: ViewportConfig = field(default_factory=ViewportConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    interaction: InteractionConfig = field(default_factory=InteractionConfig)

    # Source field copied into baseID; positional index when unset
    base_id_field: Optional[str] = None

    # One-shot seed for the substrate when no file or query is given
    default_graph_path: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AppConfig:
        interaction = dict(data.get("interaction", {}))
        if "default_operator" in interaction:
            interaction["default_operator"] = SyncOperator(interaction["default_operator"])
        return cls(
            viewport=ViewportConfig(**data.get("viewport", {})),
            backend=BackendConfig(**data.get("backend", {})),
            interaction=InteractionConfig(**interaction),
            base_id_field=data.get("base_id_field"),
            default_graph_path=data.get("default_graph_path"),
        )

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> AppConfig:
        """Load from a JSON file, then apply environment overrides."""
        if config_path is None:
            return cls.from_env(cls())

        with open(config_path, 'r', encoding='utf-8') as f:
            config = json.load(f)

        return cls.from_env(cls.from_dict(config))

    @classmethod
    def from_env(cls, base: Optional[AppConfig] = None, environ: Optional[Mapping[str, str]] = None) -> AppConfig:
        config = base or cls()
        env = os.environ if environ is None else environ

        backend_overrides: Dict[str, Any] = {}
        if env.get(ENV_BACKEND_URL):
            backend_overrides["address"] = env[ENV_BACKEND_URL]
        if env.get(ENV_TIMEOUT):
            backend_overrides["timeout_seconds"] = float(env[ENV_TIMEOUT])
        if backend_overrides:
            config = replace(config, backend=replace(config.backend, **backend_overrides))

        if env.get(ENV_DEFAULT_GRAPH):
            config = replace(config, default_graph_path=env[ENV_DEFAULT_GRAPH])
        if env.get(ENV_BASE_ID_FIELD):
            config = replace(config, base_id_field=env[ENV_BASE_ID_FIELD])

        return config
