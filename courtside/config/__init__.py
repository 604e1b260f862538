"""
Configuration management for Courtside.

Loads settings from environment variables with sensible defaults.
Configures logging with rotation to prevent unbounded log growth.
"""

import os
import logging
import logging.handlers
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load .env file
load_dotenv()

# Project paths (courtside/config/__init__.py -> project root)
PROJECT_ROOT = Path(__file__).parent.parent.parent
LOG_DIR = PROJECT_ROOT / "logs"

DEFAULT_MODEL_VERSION = "v4_sota_singles"


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    max_bytes: int = 5 * 1024 * 1024,  # 5 MB per file
    backup_count: int = 3,
) -> None:
    """Configure logging with console output AND rotating file handler.
    
    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for log files (defaults to PROJECT_ROOT/logs)
        max_bytes: Max size per log file before rotation (default 5MB)
        backup_count: Number of rotated backup files to keep
    """
    log_dir = log_dir or LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    
    # Clear existing handlers to avoid duplicates on reload
    root.handlers.clear()
    
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)
    
    file_handler = logging.handlers.RotatingFileHandler(
        log_dir / "courtside.log",
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)


@dataclass
class Config:
    """Application configuration."""
    
    # Only predictions from this model are shown
    model_version: str = field(default_factory=lambda: os.getenv(
        "COURTSIDE_MODEL_VERSION", DEFAULT_MODEL_VERSION
    ))
    
    # Dashboard defaults (overridden per user by UserSettingsManager)
    default_bankroll: float = field(default_factory=lambda: float(os.getenv("DEFAULT_BANKROLL", "1000")))
    default_ev_threshold: float = field(default_factory=lambda: float(os.getenv("DEFAULT_EV_THRESHOLD", "0")))
    
    # Timezone the match dates/times are stored in
    reference_tz: str = field(default_factory=lambda: os.getenv("REFERENCE_TZ", "UTC"))
    
    user_settings_path: Path = field(default_factory=lambda: Path(
        os.getenv("USER_SETTINGS_PATH", "config/user_settings.json")
    ))
    
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Force reload configuration."""
    global _config
    load_dotenv(override=True)
    _config = Config()
    return _config
