"""Configuration management for connectai."""

import os
import copy
import json
from pathlib import Path
from typing import Optional, Dict, Any

from pydantic import ValidationError

from .models import AppConfig
from .error_handling import ConfigurationError


class ConfigManager:
    """Manages configuration loading and validation."""

    DEFAULT_CONFIG = {
        "app": {
            "name": "My Connect AI",
            "version": "2.0.0",
            "company": "MELIORO Systems",
            "tagline": "Hybridní AI Connect systém",
        },
        "ui": {
            "display": {
                "max_records_to_show": 20,
                "preview_fields_count": 2,
            },
            "messages": {},
        },
        "crm": {
            "provider": "json",
            "data_dir": None,
            "tables": [
                {
                    "id": "companies",
                    "name": "Firmy",
                    "type": "company",
                    "keywords": ["firm", "firem", "společnost", "company"],
                    "search_fields": ["name", "nazev", "ico", "email", "web"],
                },
                {
                    "id": "contacts",
                    "name": "Kontakty",
                    "type": "contact",
                    "keywords": ["kontakt", "osob", "lidi", "contact"],
                    "search_fields": ["name", "jmeno", "prijmeni", "email", "telefon"],
                },
                {
                    "id": "activities",
                    "name": "Aktivity",
                    "type": "activity",
                    "keywords": ["aktivit", "schůzk", "úkol"],
                    "search_fields": ["name", "title", "description", "status"],
                },
                {
                    "id": "deals",
                    "name": "Obchodní případy",
                    "type": "deal",
                    "keywords": ["obchod", "případ", "deal"],
                    "search_fields": ["name", "title", "value", "status"],
                },
            ],
        },
        "ai": {
            "provider": None,
            "system_prompt": (
                "Jsi asistent pro CRM data. Odpovídej česky, stručně a "
                "pouze na základě poskytnutých dat."
            ),
            "templates": {},
        },
        "logging": {
            "format": "text",
            "level": "WARNING",
            "log_file": None,
        },
    }

    def __init__(self, config_path: Optional[str] = None):
        """Initialize config manager.

        Args:
            config_path: Path to config file. If None, uses defaults + env vars
        """
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[AppConfig] = None

    def load(self) -> AppConfig:
        """Load configuration from file and environment."""
        if self._config:
            return self._config

        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(
                    f"Invalid JSON in config file {self.config_path}: {e}",
                    config_key=str(self.config_path),
                ) from e
            config_dict = self._deep_merge(config_dict, file_config)

        config_dict = self._apply_env_overrides(config_dict)

        try:
            self._config = AppConfig(**config_dict)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
        return self._config

    def _deep_merge(self, base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in update.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides."""
        data_dir = os.getenv("CONNECTAI_DATA_DIR")
        if data_dir:
            config.setdefault("crm", {})["data_dir"] = data_dir

        max_records = os.getenv("CONNECTAI_MAX_RECORDS")
        if max_records:
            try:
                config.setdefault("ui", {}).setdefault("display", {})[
                    "max_records_to_show"
                ] = int(max_records)
            except ValueError as e:
                raise ConfigurationError(
                    f"CONNECTAI_MAX_RECORDS must be an integer, got {max_records!r}",
                    config_key="CONNECTAI_MAX_RECORDS",
                ) from e

        ai_provider = os.getenv("CONNECTAI_AI_PROVIDER")
        if ai_provider:
            config.setdefault("ai", {})["provider"] = ai_provider

        log_level = os.getenv("CONNECTAI_LOG_LEVEL")
        if log_level:
            config.setdefault("logging", {})["level"] = log_level

        log_format = os.getenv("CONNECTAI_LOG_FORMAT")
        if log_format:
            config.setdefault("logging", {})["format"] = log_format

        return config

    def save_template(self, path: str) -> Path:
        """Save a configuration template file."""
        template = copy.deepcopy(self.DEFAULT_CONFIG)
        template["crm"]["data_dir"] = "PATH_TO_YOUR_EXPORTED_TABLES"

        target = Path(path)
        with open(target, "w", encoding="utf-8") as f:
            json.dump(template, f, indent=2, ensure_ascii=False)

        return target

    @property
    def config(self) -> AppConfig:
        """Get the loaded configuration."""
        if not self._config:
            self._config = self.load()
        return self._config
