"""
Central configuration for the mode selection service.
All values can be overridden via environment variables or a local config.json.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from .rules.types import TimingConfig

_ROOT = Path(__file__).parent.parent
_CONFIG_FILE = _ROOT / "config.json"


@dataclass
class Config:
    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8766
    log_level: str = "info"

    # Storage
    data_dir: Path = field(default_factory=lambda: _ROOT / "data")
    audit_db: str = "audit.db"

    # Timing windows
    prep_window_minutes: float = 45.0        # upcoming meeting → prep
    synthesis_window_minutes: float = 60.0   # ended meeting → synthesis
    meeting_grace_minutes: float = 2.0       # jitter absorbed at start/end
    minimum_hold_ms: int = 5000              # hysteresis between switches

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def audit_db_path(self) -> Path:
        return self.data_dir / self.audit_db

    def timing(self) -> TimingConfig:
        return TimingConfig(
            prep_window_minutes=self.prep_window_minutes,
            synthesis_window_minutes=self.synthesis_window_minutes,
            meeting_grace_minutes=self.meeting_grace_minutes,
            minimum_hold_ms=self.minimum_hold_ms,
        )

    @classmethod
    def load(cls, config_file: Path = _CONFIG_FILE) -> "Config":
        cfg = cls()
        if config_file.exists():
            overrides = json.loads(config_file.read_text())
            for k, v in overrides.items():
                if hasattr(cfg, k):
                    setattr(cfg, k, v)
        # environment variable overrides (MSE_*)
        for k in cfg.__dataclass_fields__:  # type: ignore[attr-defined]
            env_key = f"MSE_{k.upper()}"
            if env_key in os.environ:
                setattr(cfg, k, type(getattr(cfg, k))(os.environ[env_key]))
        cfg.data_dir = Path(cfg.data_dir)
        cfg.data_dir.mkdir(parents=True, exist_ok=True)
        return cfg


# Module-level singleton
config = Config.load()
