"""
statstree Configuration Settings

Values default from environment variables and can be overridden at runtime.
"""

import logging
import os
from pathlib import Path

DEFAULT_RULESET_PATH = Path(__file__).parent / "rules" / "data" / "wizard_ruleset.json"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class StatsTreeConfig:
    """Configuration for ruleset loading, logging and session tracking."""

    def __init__(self):
        self.ruleset_path: str = os.getenv("STATSTREE_RULESET", str(DEFAULT_RULESET_PATH))
        self.log_level: str = os.getenv("STATSTREE_LOG_LEVEL", "WARNING").upper()

        # Burr tracking for the event-driven session driver
        self.tracking_project: str = os.getenv("STATSTREE_TRACKING_PROJECT", "statstree-wizard")
        self.tracking_enabled: bool = os.getenv("STATSTREE_TRACKING", "false").lower() == "true"

    def update(self, **kwargs) -> 'StatsTreeConfig':
        """Update configuration values at runtime."""
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)
            else:
                raise ValueError(f"Unknown configuration parameter: {key}")
        return self

    def validate(self) -> bool:
        """Validate that the configured values are usable."""
        if not Path(self.ruleset_path).is_file():
            raise ValueError(f"Ruleset file not found: {self.ruleset_path}")
        if str(self.log_level).upper() not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")
        return True


# Global configuration instance
config = StatsTreeConfig()


def set_config(**kwargs) -> StatsTreeConfig:
    """Convenience function to update global configuration."""
    return config.update(**kwargs)


def get_config() -> StatsTreeConfig:
    """Get the global configuration instance."""
    return config


def configure_logging(level: str | None = None) -> logging.Logger:
    """Apply a log level to the ``statstree`` logger namespace."""
    logger = logging.getLogger("statstree")
    logger.setLevel((level or config.log_level).upper())
    # Leave output alone when the host application already configured logging
    if not logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
    return logger
