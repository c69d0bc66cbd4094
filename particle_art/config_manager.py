"""Configuration persistence manager for particle-art.

This module handles loading and saving of conversion settings and engine
limits to/from a JSON file.
"""

import json
import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Optional, Tuple

from particle_art.models import CONFIG_FILE, ConversionSettings, EngineConfig

logger = logging.getLogger(__name__)


def _merge(defaults, data: dict):
    """Copy known keys from data onto a dataclass, keeping defaults otherwise."""
    values = asdict(defaults)
    for f in fields(defaults):
        if f.name in data:
            values[f.name] = data[f.name]
    return type(defaults)(**values)


class ConfigManager:
    """Handles loading and saving of conversion configuration."""

    def __init__(self, config_path: Path = CONFIG_FILE):
        """Initialize config manager.

        Args:
            config_path: Path to configuration file (defaults to ~/.particle_art_config.json)
        """
        self.config_path = Path(config_path)

    def load(self) -> Tuple[ConversionSettings, EngineConfig]:
        """Load configuration from file, returning defaults if not found.

        Returns:
            Tuple of (ConversionSettings, EngineConfig) with loaded or default values
        """
        settings = ConversionSettings()
        engine = EngineConfig()

        try:
            if self.config_path.exists():
                with open(self.config_path, "r") as f:
                    data = json.load(f)
                # Update config with loaded values (fallback to defaults)
                settings = _merge(settings, data.get("settings", {}))
                engine = _merge(engine, data.get("engine", {}))
                logger.info("Loaded configuration from %s", self.config_path)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Could not load config file %s: %s", self.config_path, e)
            return ConversionSettings(), EngineConfig()

        return settings, engine

    def save(
        self, settings: ConversionSettings, engine: EngineConfig
    ) -> Tuple[bool, Optional[str]]:
        """Save configuration to file.

        Args:
            settings: ConversionSettings to save
            engine: EngineConfig to save

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        try:
            with open(self.config_path, "w") as f:
                json.dump(
                    {"settings": asdict(settings), "engine": asdict(engine)},
                    f,
                    indent=2,
                )
            return True, None
        except OSError as e:
            return False, str(e)

    def reset(self) -> Tuple[bool, Optional[str]]:
        """Overwrite the file with default values."""
        return self.save(ConversionSettings(), EngineConfig())
