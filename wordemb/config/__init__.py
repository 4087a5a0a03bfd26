import json
import os
from pathlib import Path

from pydantic import BaseModel

from wordemb.config.settings import Settings, settings
from wordemb.utils.exceptions import ConfigurationError


class ConfigAdapter:
    """Dotted-key get/set access backed by Pydantic settings."""

    def __init__(self, settings_obj: Settings):
        self._settings = settings_obj
        self._overrides = {}  # keys not represented in Settings

    def get(self, key: str, default=None):
        if key in self._overrides:
            return self._overrides.get(key, default)

        current = self._settings
        for part in key.split("."):
            if hasattr(current, part):
                current = getattr(current, part)
            elif isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def set(self, key: str, value):
        parts = key.split(".")
        target = self._settings
        for part in parts[:-1]:
            if hasattr(target, part):
                target = getattr(target, part)
            else:
                self._overrides[key] = value
                return

        leaf = parts[-1]
        if hasattr(target, leaf):
            setattr(target, leaf, value)
        else:
            self._overrides[key] = value

    @property
    def all(self):
        combined = json.loads(self._settings.model_dump_json())
        combined.update(self._overrides)
        return combined


class Config(ConfigAdapter):
    """Settings overlaid with values from an optional JSON file."""

    def __init__(self, config_path: str | None = None, settings_obj: Settings | None = None):
        self._config_path = Path(config_path) if config_path else None
        super().__init__(settings_obj or settings)
        self._load_file()

    def _load_file(self):
        if not self._config_path or not self._config_path.exists():
            return
        try:
            data = json.loads(self._config_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Config file {self._config_path} is malformed: {e}",
                details={"path": str(self._config_path)},
            ) from e
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config file {self._config_path} must hold a JSON object",
                details={"path": str(self._config_path)},
            )
        self._apply(data)

    def _apply(self, data: dict, prefix: str = ""):
        for key, value in data.items():
            dotted = f"{prefix}{key}"
            if isinstance(value, dict) and isinstance(self.get(dotted), BaseModel):
                self._apply(value, prefix=f"{dotted}.")
            else:
                self.set(dotted, value)

    def save(self):
        if not self._config_path:
            return
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        self._config_path.write_text(json.dumps(self.all, indent=2), encoding="utf-8")


_DEFAULT_CONFIG_PATH = Path(os.getenv("WORDEMB_CONFIG", "wordemb.json"))
config = Config(_DEFAULT_CONFIG_PATH)

__all__ = ["Settings", "settings", "Config", "config", "ConfigAdapter"]
