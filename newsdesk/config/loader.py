"""Load and save the YAML settings file."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from .models import ConfigModel

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "newsdesk" / "config.yaml"
CONFIG_PATH_ENV = "NEWSDESK_CONFIG"

# Never written back to disk by save_config
SECRET_FIELDS = {"postgres": {"password"}, "provider": {"api_key"}}


def _secret(env_name: Optional[str], fallback: Optional[str]) -> Optional[str]:
    if env_name:
        value = os.environ.get(env_name)
        if value:
            return value
    return fallback


class Config:
    """Lazily loaded settings plus secret lookup."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        if config_path is None:
            env_path = os.environ.get(CONFIG_PATH_ENV)
            config_path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH
        self.config_path = Path(config_path).expanduser()
        self._config: Optional[ConfigModel] = None

    @property
    def config(self) -> ConfigModel:
        if self._config is None:
            self._config = load_config(self.config_path)
        return self._config

    def get_db_config(self) -> Dict[str, Any]:
        """Postgres settings with the password taken from its env var when set."""
        postgres = self.config.postgres
        db_config = postgres.model_dump()
        db_config["password"] = _secret(postgres.password_env, postgres.password)
        return db_config

    def get_api_key(self) -> Optional[str]:
        """Provider API key, preferring the environment over the file."""
        provider = self.config.provider
        return _secret(provider.api_key_env, provider.api_key)


def load_config(config_path: Path) -> ConfigModel:
    """
    Parse a settings file.

    An empty file yields all defaults.

    Raises:
        FileNotFoundError: if the file does not exist
        ValueError: if the file is not YAML or fails validation
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")

    try:
        return ConfigModel.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}")


def save_config(config: ConfigModel, config_path: Path) -> None:
    """Write settings to disk, leaving secrets to the environment."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json", exclude=SECRET_FIELDS)

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
