"""Global configuration — environment variables and built-in defaults."""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass

from qualitygate.errors import ConfigError
from qualitygate.policy.loader import load_profile
from qualitygate.policy.models import Profile

CONFIG_ENV = "QUALITYGATE_CONFIG"
WORKERS_ENV = "QUALITYGATE_WORKERS"
TIMEOUT_ENV = "QUALITYGATE_TIMEOUT"


@dataclass
class QualityGateConfig:
    """Process-wide settings resolved from the environment."""

    config_ref: str | None = None
    workers: int | None = None
    timeout: float | None = None
    verbose: bool = False

    @classmethod
    def load(cls, config_ref: str | None = None) -> QualityGateConfig:
        """Load settings from environment variables; explicit arguments win."""
        config = cls(config_ref=config_ref or os.environ.get(CONFIG_ENV) or None)

        env_workers = os.environ.get(WORKERS_ENV)
        if env_workers:
            try:
                config.workers = int(env_workers)
            except ValueError as e:
                raise ConfigError(f"{WORKERS_ENV} must be an integer") from e
            if config.workers < 1:
                raise ConfigError(f"{WORKERS_ENV} must be at least 1")

        env_timeout = os.environ.get(TIMEOUT_ENV)
        if env_timeout:
            try:
                config.timeout = float(env_timeout)
            except ValueError as e:
                raise ConfigError(f"{TIMEOUT_ENV} must be a number") from e
            if not config.timeout > 0:
                raise ConfigError(f"{TIMEOUT_ENV} must be greater than 0")

        return config

    def profile(self) -> Profile:
        """Resolve the active profile; no configuration means built-in defaults."""
        profile = load_profile(self.config_ref) if self.config_ref else Profile()

        changes: dict = {}
        if self.workers is not None:
            changes["workers"] = self.workers
        if self.timeout is not None:
            changes["timeout"] = self.timeout
        if changes:
            profile = dataclasses.replace(
                profile, scan=dataclasses.replace(profile.scan, **changes)
            )
        return profile
