from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from platformdirs import user_config_dir

from ..exceptions import ConfigError

logger = logging.getLogger(__name__)

APP_NAME = "pixel-sprout"
SETTINGS_FILE = "narrative.yaml"
API_KEY_ENV = "GEMINI_API_KEY"
DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"


def default_settings_path() -> Path:
    return Path(user_config_dir(APP_NAME)) / SETTINGS_FILE


@dataclass(frozen=True)
class NarrativeSettings:
    """Connection settings for the text-generation service.

    A key saved in the user's settings file wins over ``GEMINI_API_KEY``.
    With neither present the narrator runs offline.
    """

    api_key: Optional[str] = None
    model: str = "gemini-2.5-flash"
    api_base: str = DEFAULT_API_BASE
    timeout: float = 15.0
    max_retries: int = 2
    retry_delay: float = 0.5

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.max_retries < 0 or self.retry_delay < 0:
            raise ValueError("max_retries and retry_delay must be >= 0")

    def __repr__(self) -> str:
        key = "set" if self.api_key else "unset"
        return f"NarrativeSettings(model={self.model!r}, api_base={self.api_base!r}, api_key={key})"

    @property
    def has_key(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def with_api_key(self, api_key: Optional[str]) -> "NarrativeSettings":
        return replace(self, api_key=(api_key or "").strip() or None)

    @classmethod
    def load(
        cls,
        path: Optional[Union[str, Path]] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> "NarrativeSettings":
        env = os.environ if env is None else env
        config_path = Path(path) if path is not None else default_settings_path()
        data: Dict[str, Any] = {}
        if config_path.exists():
            try:
                loaded = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
            except (OSError, yaml.YAMLError) as exc:
                raise ConfigError(f"Cannot read narrative settings {config_path}: {exc}") from exc
            if not isinstance(loaded, dict):
                raise ConfigError(f"Narrative settings {config_path} must be a mapping")
            known = set(cls.__dataclass_fields__)
            data = {k: v for k, v in loaded.items() if k in known}
            logger.debug("Loaded narrative settings from %s", config_path)

        if not data.get("api_key") and env.get(API_KEY_ENV):
            data["api_key"] = env[API_KEY_ENV]
        try:
            settings = cls(**data)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid narrative settings: {exc}") from exc
        return settings.with_api_key(settings.api_key)

    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        config_path = Path(path) if path is not None else default_settings_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {k: v for k, v in asdict(self).items() if v is not None}
        config_path.write_text(yaml.safe_dump(payload, sort_keys=True), encoding="utf-8")
        logger.info("Narrative settings saved to %s", config_path)
        return config_path
