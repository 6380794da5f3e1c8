import logging
from pathlib import Path
from typing import Any, Dict, Optional

from cvscreen.schemas.score_schemas import ScoringCriteria
from cvscreen.utils.file_io import read_json, write_json

logger = logging.getLogger(__name__)

# <repo>/config/scoring.json, resolved from this file rather than the working directory
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "scoring.json"


class ConfigManager:
    def __init__(self, path: Optional[Path] = None, data: Optional[Dict] = None):
        self.config_path = Path(path) if path else None
        self._config = {}
        if data:
            self._config = data
        elif self.config_path and self.config_path.exists():
            self._config = read_json(self.config_path)

    def get(self, key: str, default: Any = None) -> Any:
        keys = key.split(".")
        val = self._config
        try:
            for k in keys:
                val = val[k]
            return val
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any):
        keys = key.split(".")
        val = self._config
        for k in keys[:-1]:
            val = val.setdefault(k, {})
        val[keys[-1]] = value

    def save(self, path: Optional[Path] = None):
        target = path or self.config_path
        if target:
            write_json(self._config, target)

    def scoring_criteria(self) -> ScoringCriteria:
        """Build scoring calibration from the ``scoring`` section (defaults for missing keys)."""
        section = self.get("scoring", {}) or {}
        return ScoringCriteria(**section)


def load_scoring_criteria(path: Optional[Path] = None) -> ScoringCriteria:
    """
    Load scoring calibration from a JSON config file.

    Without a path the repository's ``config/scoring.json`` is used, and the
    default calibration when that file is absent (e.g. a wheel install).

    Raises:
        FileNotFoundError: an explicit path does not exist
    """
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            logger.debug(f"No scoring config at {DEFAULT_CONFIG_PATH}, using defaults")
            return ScoringCriteria()
        path = DEFAULT_CONFIG_PATH

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Scoring config not found: {path}")
    criteria = ConfigManager(path).scoring_criteria()
    logger.info(f"Loaded scoring criteria from {path}")
    return criteria
