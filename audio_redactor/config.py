"""
Configuration loader for Audio Redactor.

Loads settings from YAML config file with sensible defaults.
"""

import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import List, Optional

import yaml

from .editing.clips import RedactionMode
from .editing.renderer import RenderSettings

logger = logging.getLogger(__name__)


@dataclass
class RedactionConfig:
    """Configuration for applying redactions."""
    default_mode: str = "silence"  # "silence" or "tone"
    # Categories redacted automatically; empty means the catalog's critical ones
    auto_redact_categories: List[str] = field(default_factory=list)


@dataclass
class RenderConfig:
    """Configuration for export rendering."""
    sample_rate: int = 48000
    tone_frequency_hz: float = 1000.0
    tone_amplitude: float = 0.3
    strict_bounds: bool = False  # Fail instead of skipping missing source samples


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    log_file: str = ""


@dataclass
class Config:
    """Main configuration container."""
    redaction: RedactionConfig = field(default_factory=RedactionConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """
        Load configuration from YAML file.

        If no path is provided, uses default values.
        Missing keys in the config file will use defaults.
        """
        config = cls()

        if config_path and config_path.exists():
            logger.info(f"Loading configuration from {config_path}")
            with open(config_path, 'r') as f:
                data = yaml.safe_load(f) or {}

            for section in fields(config):
                values = data.get(section.name)
                if not isinstance(values, dict):
                    continue
                target = getattr(config, section.name)
                for key, value in values.items():
                    if hasattr(target, key):
                        setattr(target, key, value)
                    else:
                        logger.warning(f"Unknown config key {section.name}.{key}")

        return config

    @property
    def default_mode(self) -> RedactionMode:
        try:
            return RedactionMode(str(self.redaction.default_mode).lower())
        except ValueError:
            logger.warning(
                f"Unknown redaction mode '{self.redaction.default_mode}', using silence"
            )
            return RedactionMode.SILENCE

    def render_settings(self, sample_rate: Optional[int] = None) -> RenderSettings:
        """Build the immutable settings passed to the render engine."""
        return RenderSettings(
            sample_rate=int(sample_rate or self.render.sample_rate),
            tone_frequency_hz=float(self.render.tone_frequency_hz),
            tone_amplitude=float(self.render.tone_amplitude),
            default_mode=self.default_mode,
            strict_bounds=bool(self.render.strict_bounds),
        )

    def save(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        data = asdict(self)
        logger.info(f"Saving configuration to {config_path}")

        with open(config_path, 'w') as f:
            yaml.dump(data, f, default_flow_style=False)
