"""YAML file operations service."""

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict

import yaml

from filepki.models.config import AppConfig

logger = logging.getLogger("filepki")


class YAMLService:
    """Service for YAML file operations."""

    @staticmethod
    def load_yaml(file_path: Path) -> Dict[str, Any]:
        """
        Load YAML file and return as dictionary.

        Args:
            file_path: Path to YAML file

        Returns:
            Parsed YAML content as dictionary

        Raises:
            FileNotFoundError: If file doesn't exist
            yaml.YAMLError: If file is not valid YAML
        """
        if not file_path.exists():
            raise FileNotFoundError(f"YAML file not found: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
                logger.debug(f"Loaded YAML from: {file_path}")
                return data or {}
            except yaml.YAMLError as e:
                logger.error(f"Error parsing YAML file {file_path}: {e}")
                raise

    @staticmethod
    def save_yaml(file_path: Path, data: Dict[str, Any]) -> None:
        """
        Save dictionary to YAML file.

        Args:
            file_path: Path to save YAML file
            data: Data to save

        Raises:
            yaml.YAMLError: If data cannot be serialized to YAML
        """
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w", encoding="utf-8") as f:
            try:
                yaml.safe_dump(
                    YAMLService._format_value(data),
                    f,
                    default_flow_style=False,
                    allow_unicode=True,
                    sort_keys=False,
                )
                logger.debug(f"Saved YAML to: {file_path}")
            except yaml.YAMLError as e:
                logger.error(f"Error saving YAML file {file_path}: {e}")
                raise

    @staticmethod
    def load_config(file_path: Path) -> AppConfig:
        """
        Load the application configuration.

        A missing file yields the built-in defaults.

        Raises:
            yaml.YAMLError: If file is not valid YAML
            pydantic.ValidationError: If a value is invalid
        """
        if not file_path.exists():
            logger.debug(f"No configuration file at {file_path}, using defaults")
            return AppConfig.default()

        return AppConfig(**YAMLService.load_yaml(file_path))

    @staticmethod
    def save_config(file_path: Path, config: AppConfig) -> None:
        YAMLService.save_yaml(file_path, config.model_dump(mode="json"))

    @staticmethod
    def _format_value(value: Any) -> Any:
        """Recursively convert Enum values to plain YAML scalars."""
        if isinstance(value, Enum):
            return value.value
        elif isinstance(value, dict):
            return {key: YAMLService._format_value(item) for key, item in value.items()}
        elif isinstance(value, list):
            return [YAMLService._format_value(item) for item in value]
        return value
