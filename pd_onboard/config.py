"""pd-onboard configuration: loading, validation, token resolution."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from pd_onboard.aggregator import PAGE_SIZE
from pd_onboard.auth import TOKEN_ENV_VAR, resolve_api_token
from pd_onboard.client import DEFAULT_BASE_URL
from pd_onboard.errors import ConfigError


@dataclass
class DirectoryConfig:
    base_url: str = DEFAULT_BASE_URL
    api_token: Optional[str] = None  # prefer api_token_env; kept for local runs
    api_token_env: str = TOKEN_ENV_VAR
    timeout: float = 30.0
    retries: int = 0
    page_size: int = PAGE_SIZE


@dataclass
class DatasetConfig:
    path: str = "mse_trace_analysis_enriched_V2.xlsx"


@dataclass
class OnboardConfig:
    """Full pd-onboard configuration."""

    directory: DirectoryConfig = field(default_factory=DirectoryConfig)
    dataset: DatasetConfig = field(default_factory=DatasetConfig)

    @classmethod
    def from_yaml(cls, path: str) -> "OnboardConfig":
        """Load config from YAML."""
        p = Path(path)
        if not p.exists():
            raise ConfigError(f"Config not found: {path}")
        with open(p, encoding="utf-8") as f:
            try:
                raw = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigError(f"Config must be a YAML mapping: {path}")
        return cls.from_dict(raw)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OnboardConfig":
        """Build config from a dict; unknown keys are ignored."""
        cfg = cls()

        directory = d.get("directory", {})
        if isinstance(directory, dict):
            for k, v in directory.items():
                if hasattr(cfg.directory, k):
                    setattr(cfg.directory, k, v)

        dataset = d.get("dataset", {})
        if isinstance(dataset, dict):
            for k, v in dataset.items():
                if hasattr(cfg.dataset, k):
                    setattr(cfg.dataset, k, v)

        cfg.validate()
        return cfg

    def validate(self) -> None:
        """Raise ConfigError if invalid."""
        if not self.directory.base_url:
            raise ConfigError("directory.base_url is required")
        if not isinstance(self.directory.page_size, int) or self.directory.page_size < 1:
            raise ConfigError(f"directory.page_size must be a positive integer, got {self.directory.page_size!r}")
        if not isinstance(self.directory.retries, int) or self.directory.retries < 0:
            raise ConfigError(f"directory.retries must be >= 0, got {self.directory.retries!r}")
        if not isinstance(self.directory.timeout, (int, float)) or self.directory.timeout <= 0:
            raise ConfigError(f"directory.timeout must be positive, got {self.directory.timeout!r}")
        if not self.dataset.path:
            raise ConfigError("dataset.path is required")

    def api_token(self) -> Optional[str]:
        """Explicit token > ``api_token_env`` environment variable."""
        return resolve_api_token(self.directory.api_token, self.directory.api_token_env)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["directory"].pop("api_token", None)
        return d

    def to_yaml(self, path: str) -> None:
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
