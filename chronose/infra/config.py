"""
Configuration management using Pydantic Settings.

Architecture Decision: Why pydantic-settings?
- Type-safe configuration with validation
- Supports multiple sources (YAML, env vars, defaults)
- Easy to test with different configurations
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional
import yaml

from pydantic_settings import BaseSettings, SettingsConfigDict
from chronose.domain.models import UserPreferences

logger = logging.getLogger(__name__)


def parse_feature_flags(raw: str, real_data_default: bool) -> Dict[str, bool]:
    """
    Parse the feature flag string.

    Accepts either a JSON object ('{"enableRealData": true}') or a CSV list
    of key=value pairs ('enableRealData=true,experiments=false').

    Args:
        raw: Raw flag string (may be empty)
        real_data_default: Default for 'enableRealData' when not listed

    Returns:
        Mapping of flag name to boolean
    """
    flags = {"enableRealData": real_data_default}
    if not raw or not raw.strip():
        return flags

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        parsed = None

    if isinstance(parsed, dict):
        for key, value in parsed.items():
            flags[key] = value.lower() == "true" if isinstance(value, str) else bool(value)
        return flags

    for part in raw.split(","):
        key, _, value = part.strip().partition("=")
        if key:
            flags[key] = value.strip().lower() == "true"
    return flags


class Settings(BaseSettings):
    """
    Application settings with multiple sources:
    1. Default values (hardcoded)
    2. YAML config file
    3. Environment variables (highest priority)
    """
    model_config = SettingsConfigDict(
        env_prefix='CHRONOSE_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    # Application paths
    app_name: str = "Chronose"
    config_dir: Optional[Path] = None
    data_dir: Optional[Path] = None

    # Remote entry store. Without a URL, real data is disabled.
    database_url: Optional[str] = None
    feature_flags: str = ""

    # Authentication collaborator
    user_id: str = "local-user"

    log_level: str = "INFO"

    # User preferences
    preferences: UserPreferences = UserPreferences()

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._init_paths()
        self._load_yaml_config()

    def _init_paths(self):
        """Initialize default paths based on OS"""
        if self.config_dir is None:
            if os.name == 'nt':  # Windows
                base = Path(os.getenv('APPDATA'))
            else:  # Linux/Mac
                base = Path.home() / '.config'
            self.config_dir = base / self.app_name.lower()

        if self.data_dir is None:
            if os.name == 'nt':  # Windows
                base = Path(os.getenv('APPDATA'))
            else:  # Linux/Mac
                base = Path.home() / '.local' / 'share'
            self.data_dir = base / self.app_name.lower()

        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _load_yaml_config(self):
        """Load user preferences from YAML file"""
        # First check in workspace config folder
        config_file = Path("config/settings.yaml")
        if not config_file.exists():
            # Then check in user's config directory
            config_file = self.config_dir / "settings.yaml"

        if config_file.exists():
            with open(config_file, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)
                if config_data:
                    logger.debug("Loaded preferences from %s", config_file)
                    self.preferences = UserPreferences(**config_data)

    def save_preferences(self):
        """Save current preferences to YAML file"""
        config_file = self.config_dir / "settings.yaml"
        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(self.preferences.model_dump(mode='json'), f, default_flow_style=False)

    @property
    def flags(self) -> Dict[str, bool]:
        return parse_feature_flags(self.feature_flags, real_data_default=bool(self.database_url))

    @property
    def enable_real_data(self) -> bool:
        return self.flags.get("enableRealData", False)

    @property
    def ledger_path(self) -> Path:
        """File backing the local timer ledger"""
        return self.data_dir / 'timer_ledger.json'


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
