"""
User Settings Management
========================

Handles persistence of per-user dashboard preferences (bankroll,
EV threshold, bookmaker, sort order) and alert preferences.
Stores data in a local JSON file.
Thread-safe and atomic to prevent corruption.
Includes automatic backup for corrupted files.
"""

import json
import logging
import os
import shutil
import threading
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, asdict, field

from . import get_config
from ..strategy.bets import SortField
from ..strategy.filters import ALL_BOOKMAKERS, AlertSettings, BetFilters

logger = logging.getLogger(__name__)

# Default settings
DEFAULT_EV_THRESHOLD = 0.0
DEFAULT_BANKROLL = 1000.0


@dataclass
class UserConfig:
    """Configuration for a specific user."""
    ev_threshold: float = DEFAULT_EV_THRESHOLD   # percent
    bankroll: float = DEFAULT_BANKROLL
    bookmaker: str = ALL_BOOKMAKERS
    sort_by: str = SortField.EV.value
    descending: bool = True
    alerts: AlertSettings = field(default_factory=AlertSettings)
    
    def filters(self) -> BetFilters:
        return BetFilters(ev_threshold=self.ev_threshold, bookmaker=self.bookmaker)
    
    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["alerts"] = self.alerts.model_dump()
        return data
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UserConfig':
        # Safely handle missing keys or wrong types
        try:
            return cls(
                ev_threshold=float(data.get("ev_threshold", DEFAULT_EV_THRESHOLD)),
                bankroll=float(data.get("bankroll", DEFAULT_BANKROLL)),
                bookmaker=str(data.get("bookmaker", ALL_BOOKMAKERS)),
                sort_by=SortField(data.get("sort_by", SortField.EV.value)).value,
                descending=bool(data.get("descending", True)),
                alerts=AlertSettings.model_validate(data.get("alerts") or {}),
            )
        except (ValueError, TypeError):
            return cls()


class UserSettingsManager:
    """Manages loading and saving of user settings."""
    
    def __init__(self, storage_path: Optional[str] = None):
        storage_path = str(storage_path or get_config().user_settings_path)
        # Resolve path relative to project root
        root_dir = Path(__file__).resolve().parent.parent.parent
        self.storage_path = root_dir / storage_path if not Path(storage_path).is_absolute() else Path(storage_path)
        
        self.settings: Dict[str, UserConfig] = {}
        self._lock = threading.RLock()
        self._load_failed = False
        
        self._load()

    def _load(self):
        """Load settings from JSON file."""
        with self._lock:
            if not self.storage_path.exists():
                logger.info(f"No user settings found at {self.storage_path}, starting fresh.")
                return
            
            try:
                with open(self.storage_path, "r") as f:
                    data = json.load(f)
                
                self.settings = {
                    str(k): UserConfig.from_dict(v)
                    for k, v in data.get("users", {}).items()
                    if isinstance(v, dict)
                }
                logger.info(f"Loaded settings for {len(self.settings)} users.")
                self._load_failed = False
                
            except (OSError, ValueError, AttributeError) as e:
                logger.error(f"Failed to load user settings: {e}")
                # Backup corrupted file, next save overwrites it
                backup_path = self.storage_path.with_suffix(".corrupt")
                try:
                    shutil.copy(self.storage_path, backup_path)
                    logger.warning(f"Backed up corrupted settings to {backup_path}")
                except OSError as ex:
                    logger.error(f"Failed to backup corrupted settings: {ex}")
                
                self.settings = {}
                self._load_failed = True

    def _save(self):
        """Save settings to JSON file atomically."""
        with self._lock:
            try:
                self.storage_path.parent.mkdir(parents=True, exist_ok=True)
                
                output_data = {
                    "users": {k: v.to_dict() for k, v in self.settings.items()},
                }
                
                # Write to temp file then rename
                temp_path = self.storage_path.with_suffix(".tmp")
                with open(temp_path, "w") as f:
                    json.dump(output_data, f, indent=2)
                    f.flush()
                    os.fsync(f.fileno())
                
                os.replace(temp_path, self.storage_path)
                logger.info("User settings saved.")
            except OSError as e:
                logger.error(f"Failed to save user settings: {e}")

    def get_settings(self, user_id: str) -> UserConfig:
        """Get settings for a user, returning defaults if not found."""
        with self._lock:
            return self.settings.get(str(user_id), UserConfig())

    def _update(self, user_id: str, **changes):
        with self._lock:
            key = str(user_id)
            config = self.settings.get(key, UserConfig())
            for name, value in changes.items():
                setattr(config, name, value)
            self.settings[key] = config
            self._save()
            logger.info(f"Updated {', '.join(changes)} for {user_id}")

    def update_bankroll(self, user_id: str, bankroll: float):
        """Update bankroll for a user. Must be a positive amount."""
        if not bankroll > 0:
            raise ValueError(f"Bankroll must be positive, got {bankroll}")
        self._update(user_id, bankroll=float(bankroll))

    def update_ev_threshold(self, user_id: str, ev_threshold: float):
        """Update EV threshold (percent, may be negative) for a user."""
        self._update(user_id, ev_threshold=float(ev_threshold))

    def update_bookmaker(self, user_id: str, bookmaker: str):
        self._update(user_id, bookmaker=bookmaker or ALL_BOOKMAKERS)

    def update_sort(self, user_id: str, sort_by: str, descending: bool = True):
        self._update(user_id, sort_by=SortField(sort_by).value, descending=descending)

    def update_alerts(self, user_id: str, alerts: AlertSettings):
        self._update(user_id, alerts=alerts)
