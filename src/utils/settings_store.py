import json
import logging
import os
import sys
from typing import Any, Dict

# Never written to disk
SECRET_KEYS = ("api_key",)


class SettingsStore:
    def __init__(self, filename: str = "settings.json", base_dir: str = None):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.path = self._resolve_settings_path(filename, base_dir)

    def _resolve_settings_path(self, filename: str, base_dir: str = None) -> str:
        if base_dir is None:
            if getattr(sys, "frozen", False):
                base_dir = os.path.dirname(sys.executable)
            else:
                base_dir = os.path.abspath(".")
        return os.path.join(base_dir, filename)

    def load(self) -> Dict[str, Any]:
        try:
            if not os.path.exists(self.path):
                return {}
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except Exception as e:
            self.logger.warning(f"Failed to load settings: {e}")
            return {}

    def save(self, data: Dict[str, Any]) -> None:
        public = {k: v for k, v in data.items() if k not in SECRET_KEYS}
        try:
            os.makedirs(os.path.dirname(self.path), exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(public, f, indent=2, ensure_ascii=True)
        except Exception as e:
            self.logger.warning(f"Failed to save settings: {e}")
