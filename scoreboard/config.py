"""
Configuration loader
"""
import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from scoreboard.models import Settings


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/scoreboard.yaml"


def load_settings(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file

    The path defaults to $SCOREBOARD_CONFIG, then config/scoreboard.yaml.
    A missing file yields the built-in defaults.

    Args:
        config_path: Path to config file

    Returns:
        Settings object

    Raises:
        ValueError: If the file is not a YAML mapping
    """
    path = Path(config_path or os.environ.get("SCOREBOARD_CONFIG", DEFAULT_CONFIG_PATH))

    if not path.exists():
        logger.info(f"⚙️ No config at {path}, using defaults")
        return Settings()

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")

    # Env override for secrets kept out of the file
    api_key = os.environ.get("SCOREBOARD_STORE_API_KEY")
    if api_key:
        data.setdefault("store", {})["api_key"] = api_key

    settings = Settings(**data)
    logger.info(f"⚙️ Loaded config from {path} (store: {settings.store.backend})")
    return settings
