# SmartList: configuration
# Override paths and behavior via config.yaml, environment, or CLI args.

import logging
import os
import yaml
from pathlib import Path
from dataclasses import dataclass

from .codec import STORAGE_KEY
from .store import MAX_NAME_LENGTH

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).parent / "config.yaml"


@dataclass
class Config:
    """Runtime configuration for the card store."""

    # Storage
    db_path: str = "~/.local/share/smartlist/smartlist.db"
    storage_key: str = STORAGE_KEY

    # Behavior
    max_name_length: int = MAX_NAME_LENGTH
    background_saves: bool = True

    log_level: str = "WARNING"

    def resolve_paths(self):
        """Apply SMARTLIST_DB and expand ~."""
        env_db = os.environ.get("SMARTLIST_DB")
        if env_db:
            self.db_path = env_db
        self.db_path = str(Path(self.db_path).expanduser())

    @classmethod
    def load(cls, path: str = None) -> "Config":
        """Load config from YAML file, falling back to defaults."""
        if path is None:
            path = os.environ.get("SMARTLIST_CONFIG")
        cfg_path = Path(path) if path else CONFIG_PATH
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
                cfg = cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
            except Exception as e:
                logger.warning(f"Ignoring unreadable config {cfg_path}: {e}")
                cfg = cls()
        else:
            cfg = cls()
        cfg.resolve_paths()
        return cfg
