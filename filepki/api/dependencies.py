"""FastAPI dependencies."""

import logging
import os
from pathlib import Path
from typing import Optional

from fastapi import Depends

from filepki.models.config import AppConfig
from filepki.services.authority_service import AuthorityContext, AuthorityService
from filepki.services.key_service import PasswordProvider
from filepki.services.yaml_service import YAMLService

logger = logging.getLogger("filepki")

CONFIG_PATH_ENV = "FILEPKI_CONFIG"
DEFAULT_CONFIG_PATH = "config.yaml"


def get_config() -> AppConfig:
    """
    Get application configuration.

    The file named by FILEPKI_CONFIG, or config.yaml, is read if it exists.

    Returns:
        Application configuration
    """
    config_path = Path(os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH))
    return YAMLService.load_config(config_path)


def get_pki_data_dir(config: AppConfig = Depends(get_config)) -> Path:
    """
    Get PKI data directory path.

    Returns:
        Path to the artifact root directory
    """
    return Path(config.paths.pki_data)


def get_authority_context(
    pki_data_dir: Path = Depends(get_pki_data_dir),
    config: AppConfig = Depends(get_config),
) -> AuthorityContext:
    return AuthorityContext(pki_data_dir, config)


def get_authority_service(context: AuthorityContext = Depends(get_authority_context)) -> AuthorityService:
    return AuthorityService(context)


def password_provider(password: Optional[str]) -> Optional[PasswordProvider]:
    """Wrap a request password into a lazy provider."""
    if password is None:
        return None

    def provider() -> bytes:
        return password.encode("utf-8")

    return provider


def encode_password(password: Optional[str]) -> Optional[bytes]:
    return password.encode("utf-8") if password is not None else None
