"""File system utilities."""

import logging
import os
from pathlib import Path

from filepki.exceptions import AlreadyExistsError, ArtifactNotFoundError

logger = logging.getLogger("filepki")


class FileUtils:
    """Utility class for file operations."""

    @staticmethod
    def ensure_directory(path: Path) -> None:
        """
        Ensure directory exists, create if not.

        Args:
            path: Directory path to ensure
        """
        path.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Ensured directory exists: {path}")

    @staticmethod
    def read_binary_file(path: Path) -> bytes:
        """
        Read file contents as bytes.

        Args:
            path: File path to read

        Returns:
            File contents as bytes

        Raises:
            ArtifactNotFoundError: If the file does not exist
        """
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError as e:
            raise ArtifactNotFoundError(f"cannot read {path}: file not found") from e

    @staticmethod
    def create_file(path: Path, content: bytes, mode: int = 0o644) -> None:
        """
        Write a new file, failing if it already exists.

        Args:
            path: File path to create
            content: Binary content to write
            mode: Permissions of the new file

        Raises:
            AlreadyExistsError: If the file already exists
        """
        FileUtils._write(path, content, mode, os.O_EXCL)

    @staticmethod
    def create_or_replace_file(path: Path, content: bytes, mode: int = 0o644) -> None:
        """
        Write a file, replacing any previous content.

        Args:
            path: File path to write
            content: Binary content to write
            mode: Permissions of the file if it is created
        """
        FileUtils._write(path, content, mode, os.O_TRUNC)

    @staticmethod
    def _write(path: Path, content: bytes, mode: int, flags: int) -> None:
        FileUtils.ensure_directory(path.parent)

        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | flags, mode)
        except FileExistsError as e:
            raise AlreadyExistsError(f"{path} already exists") from e

        with os.fdopen(fd, "wb") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        logger.debug(f"Wrote binary file: {path}")
